"""
Product Service: クエリハンドラ (Read 側)
"""

from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from .db import PRICE


def _row_to_dict(row) -> dict:
    return {
        "id": UUID(row.id),
        "name": row.name,
        "description": row.description,
        "price": float(row.price),
        "quantity": row.quantity,
    }


async def get_product(session: AsyncSession, product_id: UUID) -> dict | None:
    result = await session.execute(
        text(
            "SELECT id, name, description, price, quantity FROM products WHERE id = :id"
        ).columns(price=PRICE),
        {"id": str(product_id)},
    )
    row = result.fetchone()
    if not row:
        return None
    return _row_to_dict(row)


async def list_products(session: AsyncSession) -> list[dict]:
    result = await session.execute(
        text(
            "SELECT id, name, description, price, quantity FROM products ORDER BY name"
        ).columns(price=PRICE),
    )
    return [_row_to_dict(row) for row in result.fetchall()]
