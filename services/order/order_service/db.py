"""
Order Service: スキーマ定義

orders と order_lines は 1 対多。明細は注文に所有され、
注文を削除すると明細も削除される (ON DELETE CASCADE)。
明細の product_id は商品サービス側の ID を参照するだけで外部キーではない。

SQLite は接続ごとに PRAGMA foreign_keys=ON を発行しないと外部キー
(と CASCADE) を無視するため、enable_sqlite_foreign_keys でエンジンに登録する。
"""

from sqlalchemy import Date, DateTime, Numeric, event, text
from sqlalchemy.ext.asyncio import AsyncEngine

PRICE = Numeric(12, 2, asdecimal=True)
DATE = Date()
TIMESTAMP = DateTime(timezone=True)

DDL = [
    """
    CREATE TABLE IF NOT EXISTS orders (
        id           VARCHAR(36) PRIMARY KEY,
        order_date   DATE NOT NULL,
        status       VARCHAR(32) NOT NULL,
        total_amount NUMERIC(12, 2) NOT NULL,
        customer_id  VARCHAR(255) NOT NULL,
        created_at   TIMESTAMP WITH TIME ZONE NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS order_lines (
        id         VARCHAR(36) PRIMARY KEY,
        order_id   VARCHAR(36) NOT NULL REFERENCES orders (id) ON DELETE CASCADE,
        line_no    INTEGER NOT NULL,
        product_id VARCHAR(36) NOT NULL,
        quantity   INTEGER NOT NULL,
        price      NUMERIC(12, 2) NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_orders_customer_id ON orders (customer_id)",
    "CREATE INDEX IF NOT EXISTS ix_orders_created_at ON orders (created_at)",
    "CREATE INDEX IF NOT EXISTS ix_order_lines_order_id ON order_lines (order_id)",
]


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        for statement in DDL:
            await conn.execute(text(statement))
