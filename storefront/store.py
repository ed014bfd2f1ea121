"""
Storefront Service — 注文作成用のデータアクセス

注文作成コマンドはトランザクション内でこのモジュールの関数だけを使う。
どの関数も呼び出し側の AsyncSession（=同じトランザクション）上で実行され、
コミット/ロールバックは呼び出し側の session.begin() ブロックが担う。
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .order import ProductSnapshot
from .schema import order_items, orders, products


async def read_product_for_update(
    session: AsyncSession,
    product_id: int,
) -> ProductSnapshot | None:
    """
    商品の価格と在庫を行ロック付きで読む。

    PostgreSQL では SELECT ... FOR UPDATE になり、同じ商品を注文する
    並行トランザクションはコミットまで待たされる。
    (SQLite では FOR UPDATE は出力されず、DB 全体のロックに任せる)
    """
    result = await session.execute(
        select(products.c.price, products.c.stock_quantity)
        .where(products.c.id == product_id)
        .with_for_update()
    )
    row = result.fetchone()
    if not row:
        return None
    return ProductSnapshot(price=Decimal(row.price), stock_quantity=row.stock_quantity)


async def decrement_stock(
    session: AsyncSession,
    product_id: int,
    quantity: int,
) -> bool:
    """
    在庫を quantity だけ減らす。

    在庫が足りない行は更新しない。更新できなかった場合は False を返す。
    """
    result = await session.execute(
        update(products)
        .where(products.c.id == product_id)
        .where(products.c.stock_quantity >= quantity)
        .values(
            stock_quantity=products.c.stock_quantity - quantity,
            updated_at=func.now(),
        )
    )
    return result.rowcount == 1


async def insert_order(
    session: AsyncSession,
    user_id: int,
    total_amount: Decimal,
    status: str,
) -> tuple[int, datetime | None]:
    """注文ヘッダを INSERT し、採番された ID と作成日時を返す。"""
    result = await session.execute(
        insert(orders)
        .values(user_id=user_id, total_amount=total_amount, status=status)
        .returning(orders.c.id, orders.c.created_at)
    )
    row = result.one()
    return row.id, row.created_at


async def insert_order_item(
    session: AsyncSession,
    order_id: int,
    product_id: int,
    quantity: int,
    price: Decimal,
) -> None:
    await session.execute(
        insert(order_items).values(
            order_id=order_id,
            product_id=product_id,
            quantity=quantity,
            price_at_purchase=price,
        )
    )
