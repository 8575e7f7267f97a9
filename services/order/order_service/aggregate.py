"""
Order Service: 注文集約 (Order Aggregate)

注文は明細 (OrderLine) を排他的に所有し、1 つの単位として保存・読込される。

  - 明細の価格は注文作成時点の商品価格をコピーしたもの（以後変わらない）
  - 合計金額は作成時に 1 度だけ計算され、再計算されない
  - created_at は作成時刻 (UTC)。JSON には出さず、一覧の並び順にだけ使う
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

PENDING = "PENDING"


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class OrderLine:
    """注文明細（値オブジェクト）"""

    def __init__(
        self,
        product_id: UUID,
        quantity: int,
        price: Decimal,
        id: UUID | None = None,
    ) -> None:
        self.id: UUID = id or uuid4()
        self.product_id = product_id
        self.quantity = quantity
        self.price = to_decimal(price)

    @property
    def amount(self) -> Decimal:
        return self.price * self.quantity


class OrderAggregate:
    def __init__(
        self,
        id: UUID,
        order_date: date,
        status: str,
        customer_id: str,
        total_amount: Decimal = Decimal("0"),
        lines: list[OrderLine] | None = None,
        created_at: datetime | None = None,
    ) -> None:
        self.id = id
        self.order_date = order_date
        self.status = status
        self.customer_id = customer_id
        self.total_amount = to_decimal(total_amount)
        self.lines: list[OrderLine] = lines or []
        self.created_at = created_at or datetime.now(timezone.utc)

    @classmethod
    def new(cls, customer_id: str, today: date) -> "OrderAggregate":
        """新規注文。状態は常に PENDING から始まる。"""
        return cls(id=uuid4(), order_date=today, status=PENDING, customer_id=customer_id)

    def add_line(self, product_id: UUID, quantity: int, price) -> OrderLine:
        """商品の現在価格で明細を確定させ、合計に加算する。"""
        line = OrderLine(product_id=product_id, quantity=quantity, price=price)
        self.lines.append(line)
        self.total_amount += line.amount
        return line

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.order_date,
            "status": self.status,
            "total_amount": float(self.total_amount),
            "customer_id": self.customer_id,
            "order_lines": [
                {
                    "id": line.id,
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "price": float(line.price),
                }
                for line in self.lines
            ],
        }
