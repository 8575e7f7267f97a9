"""
Product Service: コマンドハンドラ (Write 側)

商品の作成・更新・削除。ID は作成時にサービス側で採番し、
更新で変わることはない。
"""

import logging
from uuid import UUID, uuid4

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from shop_common.errors import NotFoundError

from . import queries
from .db import PRICE
from .models import ProductRequest

logger = logging.getLogger(__name__)

# デモ用カタログ
SEED_PRODUCTS = [
    {"name": "Laptop", "description": "High performance laptop", "price": 1200.0, "quantity": 10},
    {"name": "Smartphone", "description": "Latest smartphone", "price": 800.0, "quantity": 20},
    {"name": "Headphones", "description": "Noise cancelling headphones", "price": 200.0, "quantity": 50},
]


async def create_product(session: AsyncSession, req: ProductRequest) -> dict:
    product_id = uuid4()
    await session.execute(
        text("""
            INSERT INTO products (id, name, description, price, quantity)
            VALUES (:id, :name, :description, :price, :quantity)
        """).bindparams(bindparam("price", type_=PRICE)),
        {
            "id": str(product_id),
            "name": req.name,
            "description": req.description,
            "price": req.price,
            "quantity": req.quantity,
        },
    )
    await session.commit()
    return await queries.get_product(session, product_id)


async def update_product(
    session: AsyncSession,
    product_id: UUID,
    req: ProductRequest,
) -> dict:
    """既存レコードの name / description / price / quantity を上書きする。"""
    existing = await queries.get_product(session, product_id)
    if existing is None:
        raise NotFoundError("Product not found")

    await session.execute(
        text("""
            UPDATE products
            SET name = :name, description = :description,
                price = :price, quantity = :quantity
            WHERE id = :id
        """).bindparams(bindparam("price", type_=PRICE)),
        {
            "id": str(product_id),
            "name": req.name,
            "description": req.description,
            "price": req.price,
            "quantity": req.quantity,
        },
    )
    await session.commit()
    return await queries.get_product(session, product_id)


async def delete_product(session: AsyncSession, product_id: UUID) -> None:
    # 存在チェックはしない（存在しない ID の削除も成功扱い）
    await session.execute(
        text("DELETE FROM products WHERE id = :id"),
        {"id": str(product_id)},
    )
    await session.commit()


async def seed_products(session: AsyncSession) -> int:
    """テーブルが空ならデモ用カタログを投入し、投入件数を返す。"""
    result = await session.execute(text("SELECT COUNT(*) FROM products"))
    if result.scalar_one() > 0:
        return 0
    for data in SEED_PRODUCTS:
        await create_product(session, ProductRequest(**data))
    logger.info("Seeded %d products", len(SEED_PRODUCTS))
    return len(SEED_PRODUCTS)
