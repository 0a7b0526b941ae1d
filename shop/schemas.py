"""
Shop Service — リクエストモデル

不正な入力はここで弾き、コマンド / サービス層には届かない。
JSON のキーは camelCase (customerId, productId) を受け付ける。
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import LineItem


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateProductRequest(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=50)
    price: Decimal = Field(gt=0)
    stock: int = Field(ge=0, strict=True)
    category: str | None = Field(default=None, min_length=1, max_length=50)


class StockRequest(CamelModel):
    """在庫補充 / 販売"""
    quantity: int = Field(gt=0, strict=True)


class LineItemRequest(CamelModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(gt=0, strict=True)

    def to_line_item(self) -> LineItem:
        return LineItem(product_id=self.product_id, quantity=self.quantity)


class CreateOrderRequest(CamelModel):
    customer_id: str = Field(min_length=1)
    location: str | None = None
    products: list[LineItemRequest] = Field(min_length=1)
