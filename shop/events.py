"""
Shop Service — イベント定義

ドメインで発生した事実(イベント)を定義する。
イベントは過去形で命名し、不変(immutable)として扱う。
"""

import json
import logging
from datetime import datetime
from decimal import Decimal

import redis.asyncio as aioredis
from pydantic import BaseModel

PRODUCT_CHANNEL = "product_events"
ORDER_CHANNEL = "order_events"

logger = logging.getLogger(__name__)


class ProductCreated(BaseModel):
    """商品が登録された"""
    product_id: str
    name: str
    price: Decimal
    stock: int
    category: str | None = None
    timestamp: datetime


class ProductRestocked(BaseModel):
    """在庫が補充された"""
    product_id: str
    quantity: int
    stock: int
    timestamp: datetime


class ProductSold(BaseModel):
    """在庫が販売された（直接販売、または注文による引き当て）"""
    product_id: str
    quantity: int
    stock: int
    order_id: str | None = None
    timestamp: datetime


class OrderPlaced(BaseModel):
    """注文が作成された"""
    order_id: str
    customer_id: str
    total_amount: Decimal
    discount: Decimal
    final_amount: Decimal
    adjustment: str
    timestamp: datetime


def payload(event: BaseModel) -> dict:
    return event.model_dump(mode="json")


async def publish(
    redis: aioredis.Redis | None, channel: str, event: BaseModel
) -> None:
    """
    Redis Pub/Sub でイベントを発行する。Redis 未設定なら何もしない。

    呼び出し時点で状態変更は commit 済みなので、発行に失敗しても例外は
    呼び出し側に返さずログに残す（イベントはイベントストアに残っている）。
    """
    if redis is None:
        return
    event_type = type(event).__name__
    try:
        await redis.publish(channel, json.dumps({
            "event_type": event_type,
            "data": payload(event),
        }, default=str))
    except Exception:
        logger.exception("Failed to publish %s to %s", event_type, channel)
