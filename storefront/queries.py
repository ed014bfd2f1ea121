"""
Storefront Service — クエリハンドラ (Read 側)

ユーザー・商品一覧・注文詳細の読み取り。状態は変更しない。
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .schema import order_items, orders, products, users

DEFAULT_PAGE_SIZE = 10


def _isoformat(value) -> str | None:
    return value.isoformat() if value else None


async def get_user(session: AsyncSession, user_id: int) -> dict | None:
    result = await session.execute(
        select(
            users.c.id,
            users.c.username,
            users.c.email,
            users.c.created_at,
            users.c.updated_at,
        ).where(users.c.id == user_id)
    )
    row = result.fetchone()
    if not row:
        return None
    return {
        "id": row.id,
        "username": row.username,
        "email": row.email,
        "created_at": _isoformat(row.created_at),
        "updated_at": _isoformat(row.updated_at),
    }


async def list_products(
    session: AsyncSession,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    category: str | None = None,
) -> dict:
    """
    商品一覧をページ単位で返す（新しい順）。

    page < 1 は 1、limit < 1 は DEFAULT_PAGE_SIZE として扱う。
    total は category で絞り込んだ後の件数。
    """
    page = max(page, 1)
    if limit < 1:
        limit = DEFAULT_PAGE_SIZE
    offset = (page - 1) * limit

    stmt = select(products)
    count_stmt = select(func.count()).select_from(products)
    if category:
        stmt = stmt.where(products.c.category == category)
        count_stmt = count_stmt.where(products.c.category == category)

    result = await session.execute(
        stmt.order_by(products.c.created_at.desc(), products.c.id.desc())
        .limit(limit)
        .offset(offset)
    )
    items = [
        {
            "id": row.id,
            "name": row.name,
            "description": row.description,
            "price": float(row.price),
            "stock_quantity": row.stock_quantity,
            "category": row.category,
            "created_at": _isoformat(row.created_at),
            "updated_at": _isoformat(row.updated_at),
        }
        for row in result.fetchall()
    ]
    total = (await session.execute(count_stmt)).scalar_one()

    return {
        "products": items,
        "pagination": {"page": page, "limit": limit, "total": total},
    }


async def get_order_details(session: AsyncSession, order_id: int) -> dict | None:
    """
    注文詳細（購入者と明細付き）を返す。

    明細が1件もない注文は見つからない扱いにする。
    """
    result = await session.execute(
        select(
            orders.c.id.label("order_id"),
            orders.c.total_amount,
            orders.c.status,
            orders.c.created_at.label("order_date"),
            users.c.username,
            users.c.email,
        )
        .join(users, orders.c.user_id == users.c.id)
        .where(orders.c.id == order_id)
    )
    header = result.fetchone()
    if not header:
        return None

    result = await session.execute(
        select(
            products.c.id.label("product_id"),
            products.c.name.label("product_name"),
            order_items.c.quantity,
            order_items.c.price_at_purchase,
        )
        .join(products, order_items.c.product_id == products.c.id)
        .where(order_items.c.order_id == order_id)
        .order_by(order_items.c.id)
    )
    items = [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "quantity": row.quantity,
            "price": float(row.price_at_purchase),
        }
        for row in result.fetchall()
    ]
    if not items:
        return None

    return {
        "order_id": header.order_id,
        "total_amount": float(header.total_amount),
        "status": header.status,
        "order_date": _isoformat(header.order_date),
        "username": header.username,
        "email": header.email,
        "items": items,
    }
