"""
Order Service: リクエスト / レスポンスモデル

クライアントが送ってきた id / date / status / totalAmount / customerId と
明細の price は無視され、サーバ側で設定される。
明細から注文への逆参照は出力しない。
"""

import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderLineRequest(CamelModel):
    product_id: UUID
    quantity: int
    price: float | None = None


class CreateOrderRequest(CamelModel):
    order_lines: list[OrderLineRequest] | None = None


class OrderLineResponse(CamelModel):
    id: UUID
    product_id: UUID
    quantity: int
    price: float


class OrderResponse(CamelModel):
    id: UUID
    date: datetime.date
    status: str
    total_amount: float
    customer_id: str
    order_lines: list[OrderLineResponse] = []


class ProductView(CamelModel):
    """商品サービスから受け取る商品表現（未知のフィールドは無視）"""

    id: UUID
    name: str
    description: str | None = None
    price: float
    quantity: int
