"""Pytest fixtures: a fresh SQLite database per test and a recording Redis double."""

import json
from decimal import Decimal

import pytest
import pytest_asyncio

from shop import db
from shop.commands import create_product
from shop.orders import OrderPlacementService
from shop.store import ProductStore


class RecordingRedis:
    """Stands in for redis.asyncio.Redis; keeps every published message."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, dict]] = []

    async def publish(self, channel: str, message: str) -> int:
        self.messages.append((channel, json.loads(message)))
        return 1

    def event_types(self, channel: str) -> list[str]:
        return [m["event_type"] for c, m in self.messages if c == channel]


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}"


@pytest.fixture
def redis() -> RecordingRedis:
    return RecordingRedis()


@pytest_asyncio.fixture
async def session_factory(database_url):
    engine = db.create_engine(database_url)
    await db.init_db(engine)
    yield db.create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def service(session_factory, redis) -> OrderPlacementService:
    return OrderPlacementService(session_factory, redis)


@pytest.fixture
def make_product(session_factory, redis):
    async def _make(
        name: str = "Laptop",
        price: str = "1000.00",
        stock: int = 10,
        category: str | None = None,
        description: str = "Test product",
    ):
        async with session_factory() as session:
            return await create_product(
                session, redis, name, description, Decimal(price), stock, category
            )

    return _make


@pytest.fixture
def stock_of(session_factory):
    async def _stock_of(product_id: str) -> int:
        async with session_factory() as session:
            product = await ProductStore(session).get(product_id)
            return product.stock

    return _stock_of
