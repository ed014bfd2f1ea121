"""
Storefront Service — イベント定義

注文がコミットされた後に Redis Pub/Sub へ発行するイベント。
イベントは過去形で命名し、不変(immutable)として扱う。
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from .order import Order

ORDER_EVENTS_CHANNEL = "order_events"


class OrderPlacedItem(BaseModel):
    product_id: int
    quantity: int
    price_at_purchase: Decimal


class OrderPlaced(BaseModel):
    """注文が作成された（在庫の引き当てと明細の記録まで完了）"""
    order_id: int
    user_id: int
    total_amount: Decimal
    status: str
    items: list[OrderPlacedItem]
    timestamp: datetime

    @classmethod
    def from_order(cls, order: Order, timestamp: datetime) -> "OrderPlaced":
        return cls(
            order_id=order.id,
            user_id=order.user_id,
            total_amount=order.total_amount,
            status=order.status,
            items=[
                OrderPlacedItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    price_at_purchase=item.price_at_purchase,
                )
                for item in order.items
            ],
            timestamp=timestamp,
        )
