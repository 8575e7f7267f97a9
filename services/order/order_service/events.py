"""
Order Service: イベント定義

注文の保存後に Redis Pub/Sub の order_events チャネルへ発行する。
イベントは過去形で命名し、不変として扱う。
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel

ORDER_EVENTS_CHANNEL = "order_events"


class OrderLinePlaced(BaseModel):
    product_id: UUID
    quantity: int
    price: float


class OrderCreated(BaseModel):
    """注文が作成された"""
    order_id: UUID
    customer_id: str
    order_date: date
    status: str
    total_amount: float
    lines: list[OrderLinePlaced]
    timestamp: datetime
