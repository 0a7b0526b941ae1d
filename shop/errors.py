"""
Shop Service — ドメイン例外

コマンド・サービス層はビジネスルール違反をこれらの例外で通知する。
HTTP 層 (main.py) が status_code / title を使ってレスポンスに変換する。
"""


class ShopError(Exception):
    status_code = 400
    title = "Request failed"


class ProductNotFound(ShopError):
    """参照された商品が存在しない"""

    status_code = 404
    title = "Product not found"

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product with id {product_id} not found")
        self.product_id = product_id


class InsufficientStock(ShopError):
    """要求数量が現在の在庫を超えている"""

    status_code = 409
    title = "Insufficient stock"

    def __init__(self, product_name: str, available: int, requested: int) -> None:
        super().__init__(
            f'Insufficient stock for product "{product_name}". '
            f"Available: {available}, requested: {requested}"
        )
        self.product_name = product_name
        self.available = available
        self.requested = requested
