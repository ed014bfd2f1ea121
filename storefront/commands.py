"""
Storefront Service — 注文作成コマンド (Write 側)

在庫確認・合計金額の計算・在庫の引き当て・注文と明細の記録を
1つのトランザクションで行う。途中で失敗した場合はすべてロールバックされ、
中途半端な状態（在庫だけ減った、明細のない注文など）は外から見えない。

並行する注文の排他は DB の行ロック (SELECT ... FOR UPDATE) に任せる。
アプリケーション側ではロックやキューを持たない。
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from . import store
from .errors import InsufficientStock, InvalidRequest, ProductNotFound, StorageUnavailable
from .events import ORDER_EVENTS_CHANNEL, OrderPlaced
from .order import PENDING, LineRequest, Order, OrderLineItem

logger = logging.getLogger(__name__)


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_request(user_id: int, items: Iterable[tuple[int, int]]) -> list[LineRequest]:
    """DB に触れる前のリクエスト検証。不正なら InvalidRequest。"""
    try:
        lines = [LineRequest(*item) for item in items or ()]
    except TypeError as e:
        raise InvalidRequest() from e
    if not user_id or not lines:
        raise InvalidRequest()
    for line in lines:
        if not _is_positive_int(line.quantity):
            raise InvalidRequest(
                f"Invalid quantity for product {line.product_id}: {line.quantity}"
            )
    return lines


async def place_order(
    session: AsyncSession,
    redis: aioredis.Redis | None,
    user_id: int,
    items: Iterable[tuple[int, int]],
) -> Order:
    """
    注文作成コマンド

    1. 各行について、商品を行ロック付きで読み、在庫を確認して減らす
    2. 合計金額で注文ヘッダを INSERT
    3. 手順1で読んだ価格で明細を INSERT（価格は読み直さない）
    4. コミット
    5. Redis Pub/Sub で OrderPlaced を発行（コミット後）
    """
    lines = validate_request(user_id, items)

    try:
        async with session.begin():
            order = await _place_order_in_transaction(session, user_id, lines)
    except (ProductNotFound, InsufficientStock) as e:
        logger.warning("Order rejected for user %s: %s", user_id, e)
        raise
    except (SQLAlchemyError, OSError) as e:
        logger.exception("Failed to place order for user %s", user_id)
        raise StorageUnavailable() from e

    logger.info(
        "Order %s placed for user %s: %d item(s), total %s",
        order.id, user_id, len(order.items), order.total_display,
    )

    if redis is not None:
        await _publish_order_placed(redis, order)

    return order


async def _place_order_in_transaction(
    session: AsyncSession,
    user_id: int,
    lines: list[LineRequest],
) -> Order:
    items: list[OrderLineItem] = []

    # 1. 在庫確認と引き当て（呼び出し側が指定した順に処理）
    for line in lines:
        product = await store.read_product_for_update(session, line.product_id)
        if product is None:
            raise ProductNotFound(line.product_id)
        if product.stock_quantity < line.quantity:
            raise InsufficientStock(line.product_id)

        items.append(OrderLineItem(None, line.product_id, line.quantity, product.price))

        if not await store.decrement_stock(session, line.product_id, line.quantity):
            raise InsufficientStock(line.product_id)

    # 2. 注文ヘッダ（合計は明細の小計から求める）
    total_amount = sum((item.subtotal for item in items), Decimal("0"))
    order_id, created_at = await store.insert_order(
        session, user_id, total_amount, PENDING
    )
    order = Order(order_id, user_id, total_amount, PENDING, created_at)

    # 3. 明細
    for item in items:
        item.order_id = order_id
        await store.insert_order_item(
            session, order_id, item.product_id, item.quantity, item.price_at_purchase
        )
        order.items.append(item)

    return order


async def _publish_order_placed(redis: aioredis.Redis, order: Order) -> None:
    """
    OrderPlaced イベントを発行する。

    注文はコミット済みなので、発行に失敗しても注文作成は失敗にしない。
    """
    event = OrderPlaced.from_order(order, datetime.now(timezone.utc))
    try:
        await redis.publish(ORDER_EVENTS_CHANNEL, event.model_dump_json())
    except RedisError:
        logger.exception("Failed to publish OrderPlaced for order %s", order.id)
