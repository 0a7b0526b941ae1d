"""
Shop Service — 商品コマンドハンドラ (CQRS の Write 側)

商品の登録・在庫補充・販売を処理する。
各コマンドは

  1. ストアを更新
  2. イベントストアにイベントを追記
  3. commit
  4. Redis Pub/Sub でイベントを発行（他サービスへ通知）

の順で動く。注文による在庫引き当ては orders.py が担当する。
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from . import event_store, events
from .errors import InsufficientStock, ProductNotFound
from .models import Product
from .store import ProductStore

logger = logging.getLogger(__name__)


async def create_product(
    session: AsyncSession,
    redis: aioredis.Redis | None,
    name: str,
    description: str,
    price: Decimal,
    stock: int,
    category: str | None = None,
) -> Product:
    now = datetime.now(timezone.utc)
    product = Product(
        id=str(uuid4()),
        name=name,
        description=description,
        price=price,
        stock=stock,
        category=category,
        created_at=now.isoformat(),
        updated_at=now.isoformat(),
    )
    await ProductStore(session).add(product)

    event = events.ProductCreated(
        product_id=product.id,
        name=name,
        price=price,
        stock=stock,
        category=category,
        timestamp=now,
    )
    await event_store.append_event(
        session, product.id, "Product", "ProductCreated", events.payload(event), 0
    )
    await session.commit()

    await events.publish(redis, events.PRODUCT_CHANNEL, event)
    logger.info("Product created: %s (%s)", product.id, name)
    return product


async def restock_product(
    session: AsyncSession,
    redis: aioredis.Redis | None,
    product_id: str,
    quantity: int,
) -> Product:
    """在庫補充コマンド"""
    now = datetime.now(timezone.utc)
    store = ProductStore(session)

    stock = await store.increment_stock(product_id, quantity, now.isoformat())

    event = events.ProductRestocked(
        product_id=product_id, quantity=quantity, stock=stock, timestamp=now
    )
    version = await event_store.latest_version(session, product_id)
    await event_store.append_event(
        session, product_id, "Product", "ProductRestocked", events.payload(event), version
    )
    await session.commit()

    await events.publish(redis, events.PRODUCT_CHANNEL, event)
    logger.info("Product restocked: %s +%d (stock=%d)", product_id, quantity, stock)
    return await store.get(product_id)


async def sell_product(
    session: AsyncSession,
    redis: aioredis.Redis | None,
    product_id: str,
    quantity: int,
) -> Product:
    """
    販売コマンド

    在庫を下回る数量は InsufficientStock で拒否し、在庫は変えない。
    """
    now = datetime.now(timezone.utc)
    store = ProductStore(session)

    try:
        stock = await store.decrement_stock(product_id, quantity, now.isoformat())
    except (ProductNotFound, InsufficientStock) as e:
        await session.rollback()
        logger.warning("Sell rejected for %s: %s", product_id, e)
        raise

    event = events.ProductSold(
        product_id=product_id, quantity=quantity, stock=stock, timestamp=now
    )
    version = await event_store.latest_version(session, product_id)
    await event_store.append_event(
        session, product_id, "Product", "ProductSold", events.payload(event), version
    )
    await session.commit()

    await events.publish(redis, events.PRODUCT_CHANNEL, event)
    logger.info("Product sold: %s -%d (stock=%d)", product_id, quantity, stock)
    return await store.get(product_id)
