"""
Storefront Service — 注文モデル

注文作成コマンドが組み立てて返す値。
金額はすべて Decimal で扱う（float は使わない）。
"""

from datetime import datetime
from decimal import Decimal
from typing import NamedTuple

PENDING = "pending"


class LineRequest(NamedTuple):
    """注文リクエストの1行 (商品ID, 数量)"""
    product_id: int
    quantity: int


class ProductSnapshot(NamedTuple):
    """トランザクション内で読んだ商品の価格と在庫"""
    price: Decimal
    stock_quantity: int


class OrderLineItem:
    def __init__(
        self,
        order_id: int | None,
        product_id: int,
        quantity: int,
        price_at_purchase: Decimal,
    ) -> None:
        self.order_id = order_id
        self.product_id = product_id
        self.quantity = quantity
        self.price_at_purchase = price_at_purchase

    @property
    def subtotal(self) -> Decimal:
        return self.price_at_purchase * self.quantity


class Order:
    """
    注文 — ヘッダと明細をまとめて作成される。

    状態遷移（本サービスが扱うのは作成時の pending のみ）:
        pending → (出荷処理などサービス外のロジックで更新)
    """

    def __init__(
        self,
        id: int,
        user_id: int,
        total_amount: Decimal,
        status: str = PENDING,
        created_at: datetime | None = None,
    ) -> None:
        self.id = id
        self.user_id = user_id
        self.total_amount = total_amount
        self.status = status
        self.created_at = created_at
        self.items: list[OrderLineItem] = []

    @property
    def total_display(self) -> str:
        """小数点以下2桁の文字列表現 (例: "30.00")"""
        return f"{self.total_amount:.2f}"
