"""
Order Service: コマンドハンドラ (Write 側)

注文作成フロー:

  1. 明細ごとに商品サービスから商品を取得（順番に 1 件ずつ）
  2. 商品が無ければ NotFoundError
  3. 在庫 < 要求数量なら InsufficientStockError
  4. 明細の価格を商品の現在価格で上書き
  5. 明細を注文に紐付け、合計金額に加算
  6. ループ完了後に注文と明細を 1 トランザクションで保存

途中で失敗した場合は何も保存されない。在庫は確認するだけで
引き当て（減算）はしないため、同時リクエストでは在庫を超えて受注しうる。
"""

import json
import logging
from datetime import date, datetime, timezone

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from shop_common.auth import Principal
from shop_common.errors import InsufficientStockError, NotFoundError

from .aggregate import OrderAggregate
from .clients import ProductClient
from .db import DATE, PRICE, TIMESTAMP
from .events import ORDER_EVENTS_CHANNEL, OrderCreated, OrderLinePlaced
from .models import OrderLineRequest

logger = logging.getLogger(__name__)


async def create_order(
    session: AsyncSession,
    product_client: ProductClient,
    redis: aioredis.Redis | None,
    principal: Principal,
    order_lines: list[OrderLineRequest] | None,
) -> OrderAggregate:
    order = OrderAggregate.new(customer_id=principal.username, today=date.today())

    for line in order_lines or []:
        product = await product_client.find_product(line.product_id, token=principal.token)
        if product is None:
            raise NotFoundError(f"Product not found: {line.product_id}")
        if product.quantity < line.quantity:
            logger.error("Insufficient stock for product: %s", product.name)
            raise InsufficientStockError(f"Insufficient stock for product: {product.name}")
        order.add_line(line.product_id, line.quantity, product.price)

    await _insert_order(session, order)
    await session.commit()
    logger.info(
        "Order created successfully with ID: %s for User: %s", order.id, principal.username
    )

    if redis is not None:
        await _publish_order_created(redis, order)
    return order


async def _insert_order(session: AsyncSession, order: OrderAggregate) -> None:
    """注文と明細をまとめて追加する（commit は呼び出し側）。"""
    await session.execute(
        text("""
            INSERT INTO orders (id, order_date, status, total_amount, customer_id, created_at)
            VALUES (:id, :order_date, :status, :total_amount, :customer_id, :created_at)
        """).bindparams(
            bindparam("order_date", type_=DATE),
            bindparam("total_amount", type_=PRICE),
            bindparam("created_at", type_=TIMESTAMP),
        ),
        {
            "id": str(order.id),
            "order_date": order.order_date,
            "status": order.status,
            "total_amount": order.total_amount,
            "customer_id": order.customer_id,
            "created_at": order.created_at,
        },
    )
    for line_no, line in enumerate(order.lines):
        await session.execute(
            text("""
                INSERT INTO order_lines (id, order_id, line_no, product_id, quantity, price)
                VALUES (:id, :order_id, :line_no, :product_id, :quantity, :price)
            """).bindparams(bindparam("price", type_=PRICE)),
            {
                "id": str(line.id),
                "order_id": str(order.id),
                "line_no": line_no,
                "product_id": str(line.product_id),
                "quantity": line.quantity,
                "price": line.price,
            },
        )


async def _publish_order_created(redis: aioredis.Redis, order: OrderAggregate) -> None:
    event = OrderCreated(
        order_id=order.id,
        customer_id=order.customer_id,
        order_date=order.order_date,
        status=order.status,
        total_amount=float(order.total_amount),
        lines=[
            OrderLinePlaced(product_id=l.product_id, quantity=l.quantity, price=float(l.price))
            for l in order.lines
        ],
        timestamp=datetime.now(timezone.utc),
    )
    try:
        await redis.publish(ORDER_EVENTS_CHANNEL, json.dumps({
            "event_type": "OrderCreated",
            "data": event.model_dump(mode="json"),
        }))
    except RedisError:
        # 注文は保存済み。イベントの欠落はログに残す
        logger.exception("Failed to publish OrderCreated for order %s", order.id)
