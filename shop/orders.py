"""
Shop Service — 注文作成サービス

注文作成の流れ:
  ┌──────────────────────────────────────────────────────────┐
  │  1. 全明細の商品を解決（存在しなければ ProductNotFound）      │
  │  2. 全明細の在庫を確認（不足なら InsufficientStock）          │
  │  3. 合計金額・合計数量・カテゴリ集合を集計                    │
  │  4. 数量 / 季節 / 地域の調整から 1 つだけを選んで最終金額を算出 │
  │  5. 在庫を減らし、注文を保存し、イベントを追記               │
  │  6. commit してからイベントを発行                            │
  └──────────────────────────────────────────────────────────┘

1〜5 は 1 つのトランザクション内で行い、失敗時はすべてロールバックする。
在庫の確認から減算までは asyncio.Lock で直列化する（単一ライター）。
"""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from . import discounts, event_store, events
from .errors import InsufficientStock, ProductNotFound
from .models import LineItem, Order, OrderLine, Product
from .store import OrderStore, ProductStore

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _round(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


class OrderPlacementService:
    """注文作成のオーケストレーター"""

    def __init__(
        self,
        session_factory: sessionmaker,
        redis: aioredis.Redis | None = None,
    ):
        self.session_factory = session_factory
        self.redis = redis
        self._lock = asyncio.Lock()

    async def place_order(
        self,
        customer_id: str,
        line_items: Sequence[LineItem],
        location: str | None = None,
        order_date: datetime | None = None,
    ) -> Order:
        order_date = order_date or datetime.now(timezone.utc)

        async with self._lock:
            async with self.session_factory() as session:
                try:
                    order, published = await self._place(
                        session, customer_id, line_items, location, order_date
                    )
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

        for channel, event in published:
            await events.publish(self.redis, channel, event)

        logger.info(
            "Order placed: %s customer=%s total=%s discount=%s%% final=%s",
            order.id, customer_id, order.total_amount, order.discount, order.final_amount,
        )
        return order

    async def _place(
        self,
        session: AsyncSession,
        customer_id: str,
        line_items: Sequence[LineItem],
        location: str | None,
        order_date: datetime,
    ) -> tuple[Order, list]:
        products = ProductStore(session)

        # ── 1. 商品の解決 ──────────────────────────
        resolved: list[tuple[LineItem, Product]] = []
        for item in line_items:
            product = await products.get(item.product_id)
            if product is None:
                logger.warning(
                    "Order rejected for customer=%s: product %s not found",
                    customer_id, item.product_id,
                )
                raise ProductNotFound(item.product_id)
            resolved.append((item, product))

        # ── 2. 在庫確認（変更前に全明細を確認） ─────
        requested: dict[str, int] = {}
        for item, product in resolved:
            requested[product.id] = requested.get(product.id, 0) + item.quantity
            if product.stock < requested[product.id]:
                logger.warning(
                    "Order rejected for customer=%s: insufficient stock for %s",
                    customer_id, product.id,
                )
                raise InsufficientStock(product.name, product.stock, requested[product.id])

        # ── 3. 集計 ────────────────────────────────
        total_amount = Decimal("0")
        total_quantity = 0
        categories: set[str] = set()
        lines: list[OrderLine] = []
        for item, product in resolved:
            total_amount += product.price * item.quantity
            total_quantity += item.quantity
            if product.category:
                categories.add(product.category)
            lines.append(OrderLine(product.id, item.quantity, product.price))

        # ── 4. 割引の選択 ──────────────────────────
        volume = discounts.volume_discount(total_quantity)
        seasonal = discounts.seasonal_discount(order_date, categories)
        multiplier = discounts.location_multiplier(location)
        best = discounts.best_discount(volume, seasonal, multiplier)
        adjustment = discounts.select_adjustment(volume, seasonal, multiplier)

        # ── 5. 在庫減算・注文保存 ──────────────────
        order_id = str(uuid4())
        timestamp = order_date.isoformat()
        published: list = []

        for item, product in resolved:
            stock = await products.decrement_stock(product.id, item.quantity, timestamp)
            sold = events.ProductSold(
                product_id=product.id,
                quantity=item.quantity,
                stock=stock,
                order_id=order_id,
                timestamp=order_date,
            )
            version = await event_store.latest_version(session, product.id)
            await event_store.append_event(
                session, product.id, "Product", "ProductSold", events.payload(sold), version
            )
            published.append((events.PRODUCT_CHANNEL, sold))

        order = Order(
            id=order_id,
            customer_id=customer_id,
            total_amount=_round(total_amount),
            discount=_round(best * 100),
            final_amount=_round(adjustment.apply(total_amount)),
            created_at=timestamp,
            updated_at=timestamp,
            lines=lines,
        )
        await OrderStore(session).add(order)

        placed = events.OrderPlaced(
            order_id=order.id,
            customer_id=customer_id,
            total_amount=order.total_amount,
            discount=order.discount,
            final_amount=order.final_amount,
            adjustment=adjustment.kind,
            timestamp=order_date,
        )
        await event_store.append_event(
            session, order.id, "Order", "OrderPlaced", events.payload(placed), 0
        )
        published.append((events.ORDER_CHANNEL, placed))

        return order, published
