"""
Storefront Service — 注文エラー

注文作成コマンドが返す失敗の種類。HTTP 層でステータスコードに変換する。
"""


class OrderError(Exception):
    """注文作成の失敗（すべて終端エラー、内部リトライはしない）"""


class InvalidRequest(OrderError):
    def __init__(self, message: str = "Invalid request body") -> None:
        super().__init__(message)


class ProductNotFound(OrderError):
    def __init__(self, product_id: int) -> None:
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class InsufficientStock(OrderError):
    def __init__(self, product_id: int) -> None:
        self.product_id = product_id
        super().__init__(f"Insufficient stock for product {product_id}")


class StorageUnavailable(OrderError):
    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message)
