import asyncio
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from order_service import commands, db, queries
from order_service.aggregate import OrderAggregate


def run_with_session(tmp_path, work):
    async def run():
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
        db.enable_sqlite_foreign_keys(engine)
        await db.create_schema(engine)
        session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        try:
            async with session_factory() as session:
                return await work(session)
        finally:
            await engine.dispose()

    return asyncio.run(run())


def make_order(customer_id="alice", created_at=None):
    order = OrderAggregate(
        id=uuid4(),
        order_date=date(2026, 10, 19),
        status="PENDING",
        customer_id=customer_id,
        created_at=created_at,
    )
    order.add_line(uuid4(), 2, Decimal("5.25"))
    order.add_line(uuid4(), 1, Decimal("10.00"))
    return order


def test_deleting_an_order_deletes_its_lines(tmp_path):
    async def work(session):
        kept = make_order("bob")
        for order in (make_order(), kept):
            await commands._insert_order(session, order)
        await session.commit()

        await session.execute(text("DELETE FROM orders WHERE customer_id = 'alice'"))
        await session.commit()
        result = await session.execute(text("SELECT order_id FROM order_lines"))
        return kept, [row.order_id for row in result]

    kept, remaining = run_with_session(tmp_path, work)
    assert remaining == [str(kept.id), str(kept.id)]


def test_lines_load_in_insertion_order(tmp_path):
    async def work(session):
        order = make_order()
        await commands._insert_order(session, order)
        await session.commit()
        return order, await queries.get_order(session, order.id)

    order, loaded = run_with_session(tmp_path, work)
    assert [l.product_id for l in loaded.lines] == [l.product_id for l in order.lines]
    assert loaded.total_amount == Decimal("20.50")


def test_same_day_orders_are_listed_by_creation_time(tmp_path):
    start = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
    orders = [make_order(created_at=start + timedelta(minutes=m)) for m in (5, 10, 0)]

    async def work(session):
        for order in orders:
            await commands._insert_order(session, order)
        await session.commit()
        return await queries.list_orders(session, customer_id="alice")

    listed = run_with_session(tmp_path, work)
    newest_first = sorted(orders, key=lambda o: o.created_at, reverse=True)
    assert [o.id for o in listed] == [o.id for o in newest_first]
