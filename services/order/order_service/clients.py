"""
Order Service: 商品サービスクライアント

GET /products/{id} を同期的に（1 明細ずつ順番に）呼び出す。
呼び出し元の Bearer トークンをそのまま転送する。

  - 2xx          → ProductView
                 (本文が読めなければ ProductServiceUnavailable)
  - 404          → None（商品が存在しない）
  - 通信エラー / タイムアウト / その他のステータス
                 → ProductServiceUnavailable（到達不能と「存在しない」を区別する）

リトライはしない。
"""

import logging
from uuid import UUID

import httpx
from pydantic import ValidationError

from shop_common.errors import ServiceUnavailable

from .models import ProductView

logger = logging.getLogger(__name__)


class ProductServiceUnavailable(ServiceUnavailable):
    pass


class ProductClient:
    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    async def find_product(self, product_id: UUID, token: str = "") -> ProductView | None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            resp = await self.http.get(f"/products/{product_id}", headers=headers)
        except httpx.HTTPError as e:
            logger.error("Product service unreachable for %s: %s", product_id, e)
            raise ProductServiceUnavailable(
                f"Product service unreachable: {type(e).__name__}"
            ) from e

        if resp.status_code == 404:
            return None
        if resp.is_error:
            logger.error(
                "Product service returned %s for product %s", resp.status_code, product_id
            )
            raise ProductServiceUnavailable(
                f"Product service returned status {resp.status_code}"
            )
        try:
            return ProductView.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            logger.error("Unreadable product %s from product service: %s", product_id, e)
            raise ProductServiceUnavailable(
                "Product service returned an unreadable product"
            ) from e

    async def aclose(self) -> None:
        await self.http.aclose()
