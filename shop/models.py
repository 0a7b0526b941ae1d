"""
Shop Service — ドメインレコード

ストアとサービス層の間で受け渡す値。金額はすべて Decimal。
タイムスタンプは UTC の ISO-8601 文字列として保持する。
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

OrderStatus = Literal["pending", "completed", "cancelled"]


@dataclass(slots=True)
class Product:
    id: str
    name: str
    description: str
    price: Decimal
    stock: int
    category: str | None
    created_at: str
    updated_at: str


@dataclass(slots=True)
class LineItem:
    """注文リクエストの 1 明細"""

    product_id: str
    quantity: int


@dataclass(frozen=True, slots=True)
class OrderLine:
    """永続化された明細。price_at_order は注文時点の単価で固定される。"""

    product_id: str
    quantity: int
    price_at_order: Decimal


@dataclass(slots=True)
class Order:
    id: str
    customer_id: str
    total_amount: Decimal
    discount: Decimal
    final_amount: Decimal
    created_at: str
    updated_at: str
    status: OrderStatus = "pending"
    lines: list[OrderLine] = field(default_factory=list)
