"""Shared pytest fixtures for storefront tests."""

import json
from decimal import Decimal

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from storefront.schema import metadata, order_items, orders, products, users

WIDGET = 1  # price 10.00, stock 5
GADGET = 2  # price 2.50, stock 2
GIZMO = 3  # price 7.25, stock 0


class RecordingRedis:
    """Stands in for the Redis client; records published messages."""

    def __init__(self):
        self.published: list[tuple[str, dict]] = []

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, json.loads(message)))
        return 1


class FailingRedis:
    async def publish(self, channel: str, message: str) -> int:
        raise RedisConnectionError("redis is down")


class UntouchableSession:
    """Session that fails the test on any use."""

    def __getattr__(self, name):
        raise AssertionError(f"session.{name} must not be used")


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def seeded(session_factory):
    """One user and three products."""
    async with session_factory() as session:
        async with session.begin():
            await session.execute(
                insert(users),
                [{"id": 1, "username": "alice", "email": "alice@example.com"}],
            )
            await session.execute(
                insert(products),
                [
                    {
                        "id": WIDGET,
                        "name": "Widget",
                        "description": "A sturdy widget",
                        "price": Decimal("10.00"),
                        "stock_quantity": 5,
                        "category": "tools",
                    },
                    {
                        "id": GADGET,
                        "name": "Gadget",
                        "description": None,
                        "price": Decimal("2.50"),
                        "stock_quantity": 2,
                        "category": "gadgets",
                    },
                    {
                        "id": GIZMO,
                        "name": "Gizmo",
                        "description": "Out of stock",
                        "price": Decimal("7.25"),
                        "stock_quantity": 0,
                        "category": "tools",
                    },
                ],
            )
    return session_factory


@pytest.fixture
async def broken_session_factory(tmp_path):
    """Sessions on a database with no tables: every statement fails."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    try:
        yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest.fixture
def redis():
    return RecordingRedis()


@pytest.fixture
def stock_of(session_factory):
    async def _stock_of(product_id: int) -> int:
        async with session_factory() as session:
            result = await session.execute(
                select(products.c.stock_quantity).where(products.c.id == product_id)
            )
            return result.scalar_one()

    return _stock_of


@pytest.fixture
def row_counts(session_factory):
    """Returns (orders, order_items) row counts."""

    async def _row_counts() -> tuple[int, int]:
        async with session_factory() as session:
            order_total = await session.execute(select(func.count()).select_from(orders))
            item_total = await session.execute(
                select(func.count()).select_from(order_items)
            )
            return order_total.scalar_one(), item_total.scalar_one()

    return _row_counts


@pytest.fixture
def failing_redis():
    return FailingRedis()


@pytest.fixture
def untouchable_session():
    return UntouchableSession()
