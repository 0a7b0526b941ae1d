"""
Shop Service — クエリハンドラ (CQRS の Read 側)

ストアから読み出した商品・注文を API レスポンス用の dict に変換する。
キーはリクエストと同じく camelCase。
"""

from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order, Product
from .store import OrderStore, ProductStore


def product_to_dict(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": float(product.price),
        "stock": product.stock,
        "category": product.category,
        "createdAt": product.created_at,
        "updatedAt": product.updated_at,
    }


def order_to_dict(order: Order) -> dict:
    return {
        "id": order.id,
        "customerId": order.customer_id,
        "products": [
            {
                "productId": line.product_id,
                "quantity": line.quantity,
                "priceAtOrder": float(line.price_at_order),
            }
            for line in order.lines
        ],
        "totalAmount": float(order.total_amount),
        "discount": float(order.discount),
        "finalAmount": float(order.final_amount),
        "status": order.status,
        "createdAt": order.created_at,
        "updatedAt": order.updated_at,
    }


async def get_product(session: AsyncSession, product_id: str) -> dict | None:
    product = await ProductStore(session).get(product_id)
    if not product:
        return None
    return product_to_dict(product)


async def list_products(session: AsyncSession) -> list[dict]:
    return [product_to_dict(p) for p in await ProductStore(session).list_all()]


async def get_order(session: AsyncSession, order_id: str) -> dict | None:
    order = await OrderStore(session).get(order_id)
    if not order:
        return None
    return order_to_dict(order)


async def list_orders(session: AsyncSession) -> list[dict]:
    """全注文を作成順に返す。"""
    return [order_to_dict(o) for o in await OrderStore(session).list_all()]
