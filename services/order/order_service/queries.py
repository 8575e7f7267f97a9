"""
Order Service: クエリハンドラ (Read 側)

注文と明細をまとめて読み込み、OrderAggregate として返す。
"""

from collections import defaultdict
from uuid import UUID

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from .aggregate import OrderAggregate, OrderLine
from .db import DATE, PRICE, TIMESTAMP

_ORDER_COLUMNS = (
    "SELECT id, order_date, status, total_amount, customer_id, created_at FROM orders"
)
# 同じ日の注文も作成の新しい順に並べる
_NEWEST_FIRST = "ORDER BY created_at DESC, id"


async def _load_lines(session: AsyncSession, order_ids: list[str]) -> dict[str, list[OrderLine]]:
    if not order_ids:
        return {}
    result = await session.execute(
        text("""
            SELECT id, order_id, product_id, quantity, price
            FROM order_lines
            WHERE order_id IN :order_ids
            ORDER BY order_id, line_no
        """)
        .bindparams(bindparam("order_ids", expanding=True))
        .columns(price=PRICE),
        {"order_ids": order_ids},
    )
    lines: dict[str, list[OrderLine]] = defaultdict(list)
    for row in result.fetchall():
        lines[row.order_id].append(
            OrderLine(
                id=UUID(row.id),
                product_id=UUID(row.product_id),
                quantity=row.quantity,
                price=row.price,
            )
        )
    return lines


def _to_aggregate(row, lines: list[OrderLine]) -> OrderAggregate:
    return OrderAggregate(
        id=UUID(row.id),
        order_date=row.order_date,
        status=row.status,
        customer_id=row.customer_id,
        total_amount=row.total_amount,
        lines=lines,
        created_at=row.created_at,
    )


async def get_order(session: AsyncSession, order_id: UUID) -> OrderAggregate | None:
    result = await session.execute(
        text(f"{_ORDER_COLUMNS} WHERE id = :id").columns(
            order_date=DATE, total_amount=PRICE, created_at=TIMESTAMP
        ),
        {"id": str(order_id)},
    )
    row = result.fetchone()
    if not row:
        return None
    lines = await _load_lines(session, [row.id])
    return _to_aggregate(row, lines.get(row.id, []))


async def list_orders(
    session: AsyncSession,
    customer_id: str | None = None,
) -> list[OrderAggregate]:
    """customer_id を指定するとその顧客の注文だけを返す。"""
    if customer_id is None:
        stmt = text(f"{_ORDER_COLUMNS} {_NEWEST_FIRST}")
        params = {}
    else:
        stmt = text(
            f"{_ORDER_COLUMNS} WHERE customer_id = :customer_id {_NEWEST_FIRST}"
        )
        params = {"customer_id": customer_id}

    result = await session.execute(
        stmt.columns(order_date=DATE, total_amount=PRICE, created_at=TIMESTAMP), params
    )
    rows = result.fetchall()
    lines = await _load_lines(session, [row.id for row in rows])
    return [_to_aggregate(row, lines.get(row.id, [])) for row in rows]
