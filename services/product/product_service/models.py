"""
Product Service: リクエスト / レスポンスモデル

JSON のキーは camelCase。価格・在庫の範囲チェックはこの層では行わない。
価格は NUMERIC(12,2) に収まる桁 (小数 2 桁まで) のみ受け付け、保存時に丸めない。
"""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductRequest(CamelModel):
    name: str
    description: str | None = None
    price: Decimal = Field(max_digits=12, decimal_places=2)
    quantity: int


class ProductResponse(CamelModel):
    id: UUID
    name: str
    description: str | None = None
    price: float
    quantity: int
