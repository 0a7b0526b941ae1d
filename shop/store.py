"""
Shop Service — ストアアクセサ

商品テーブル・注文テーブルへの読み書きをまとめる。
どちらも呼び出し側から渡された AsyncSession 上で動き、commit はしない。
トランザクション境界はコマンド / サービス層が決める。
"""

from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import InsufficientStock, ProductNotFound
from .models import Order, OrderLine, Product


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        description=row.description,
        price=Decimal(row.price),
        stock=row.stock,
        category=row.category,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class ProductStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, product_id: str) -> Product | None:
        result = await self.session.execute(
            text("SELECT * FROM products WHERE id = :id"),
            {"id": product_id},
        )
        row = result.fetchone()
        if not row:
            return None
        return _row_to_product(row)

    async def list_all(self) -> list[Product]:
        result = await self.session.execute(
            text("SELECT * FROM products ORDER BY rowid ASC"),
        )
        return [_row_to_product(row) for row in result.fetchall()]

    async def add(self, product: Product) -> None:
        await self.session.execute(
            text("""
                INSERT INTO products
                    (id, name, description, price, stock, category, created_at, updated_at)
                VALUES
                    (:id, :name, :description, :price, :stock, :category, :created_at, :updated_at)
            """),
            {
                "id": product.id,
                "name": product.name,
                "description": product.description,
                "price": str(product.price),
                "stock": product.stock,
                "category": product.category,
                "created_at": product.created_at,
                "updated_at": product.updated_at,
            },
        )

    async def increment_stock(self, product_id: str, quantity: int, now: str) -> int:
        result = await self.session.execute(
            text("""
                UPDATE products
                SET stock = stock + :qty, updated_at = :now
                WHERE id = :id
            """),
            {"qty": quantity, "now": now, "id": product_id},
        )
        if result.rowcount == 0:
            raise ProductNotFound(product_id)
        return await self._stock_of(product_id)

    async def decrement_stock(self, product_id: str, quantity: int, now: str) -> int:
        """
        在庫を減らす。条件付き UPDATE なので在庫が負になることはない。
        更新できなかった場合は原因（商品なし / 在庫不足）を調べて例外にする。
        """
        result = await self.session.execute(
            text("""
                UPDATE products
                SET stock = stock - :qty, updated_at = :now
                WHERE id = :id AND stock >= :qty
            """),
            {"qty": quantity, "now": now, "id": product_id},
        )
        if result.rowcount == 0:
            product = await self.get(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            raise InsufficientStock(product.name, product.stock, quantity)
        return await self._stock_of(product_id)

    async def _stock_of(self, product_id: str) -> int:
        result = await self.session.execute(
            text("SELECT stock FROM products WHERE id = :id"),
            {"id": product_id},
        )
        return result.scalar_one()


class OrderStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, order: Order) -> None:
        await self.session.execute(
            text("""
                INSERT INTO orders
                    (id, customer_id, total_amount, discount, final_amount,
                     status, created_at, updated_at)
                VALUES
                    (:id, :customer_id, :total_amount, :discount, :final_amount,
                     :status, :created_at, :updated_at)
            """),
            {
                "id": order.id,
                "customer_id": order.customer_id,
                "total_amount": str(order.total_amount),
                "discount": str(order.discount),
                "final_amount": str(order.final_amount),
                "status": order.status,
                "created_at": order.created_at,
                "updated_at": order.updated_at,
            },
        )
        for line_no, line in enumerate(order.lines):
            await self.session.execute(
                text("""
                    INSERT INTO order_lines
                        (order_id, line_no, product_id, quantity, price_at_order)
                    VALUES
                        (:order_id, :line_no, :product_id, :quantity, :price)
                """),
                {
                    "order_id": order.id,
                    "line_no": line_no,
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "price": str(line.price_at_order),
                },
            )

    async def get(self, order_id: str) -> Order | None:
        result = await self.session.execute(
            text("SELECT * FROM orders WHERE id = :id"),
            {"id": order_id},
        )
        row = result.fetchone()
        if not row:
            return None
        return await self._with_lines(row)

    async def list_all(self) -> list[Order]:
        """挿入順で返す。"""
        result = await self.session.execute(
            text("SELECT * FROM orders ORDER BY seq ASC"),
        )
        return [await self._with_lines(row) for row in result.fetchall()]

    async def _with_lines(self, row) -> Order:
        result = await self.session.execute(
            text("""
                SELECT product_id, quantity, price_at_order
                FROM order_lines
                WHERE order_id = :id
                ORDER BY line_no ASC
            """),
            {"id": row.id},
        )
        return Order(
            id=row.id,
            customer_id=row.customer_id,
            total_amount=Decimal(row.total_amount),
            discount=Decimal(row.discount),
            final_amount=Decimal(row.final_amount),
            status=row.status,
            created_at=row.created_at,
            updated_at=row.updated_at,
            lines=[
                OrderLine(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    price_at_order=Decimal(line.price_at_order),
                )
                for line in result.fetchall()
            ],
        )
