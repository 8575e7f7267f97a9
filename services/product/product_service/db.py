"""
Product Service: スキーマ定義

Database per Service: 商品テーブルはこのサービスだけが所有する。
ID はアプリ側で UUID を採番するため、DDL は PostgreSQL / SQLite 共通。
"""

from sqlalchemy import Numeric, text
from sqlalchemy.ext.asyncio import AsyncEngine

# text() の価格カラム用の型。SQLite では float、PostgreSQL では Decimal で受け渡す
PRICE = Numeric(12, 2, asdecimal=True)

DDL = [
    """
    CREATE TABLE IF NOT EXISTS products (
        id          VARCHAR(36) PRIMARY KEY,
        name        VARCHAR(255) NOT NULL,
        description TEXT,
        price       NUMERIC(12, 2) NOT NULL,
        quantity    INTEGER NOT NULL
    )
    """,
]


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        for statement in DDL:
            await conn.execute(text(statement))
