"""
Shop Service — データベース初期化

非同期エンジンとセッションファクトリを作り、テーブルを用意する。
金額は丸め誤差を避けるため Decimal の文字列表現 (TEXT) で保存する。
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS products (
        id          TEXT PRIMARY KEY,
        name        TEXT NOT NULL,
        description TEXT NOT NULL,
        price       TEXT NOT NULL,
        stock       INTEGER NOT NULL CHECK (stock >= 0),
        category    TEXT,
        created_at  TEXT NOT NULL,
        updated_at  TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS orders (
        seq          INTEGER PRIMARY KEY,
        id           TEXT NOT NULL UNIQUE,
        customer_id  TEXT NOT NULL,
        total_amount TEXT NOT NULL,
        discount     TEXT NOT NULL,
        final_amount TEXT NOT NULL,
        status       TEXT NOT NULL,
        created_at   TEXT NOT NULL,
        updated_at   TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS order_lines (
        order_id       TEXT NOT NULL REFERENCES orders (id),
        line_no        INTEGER NOT NULL,
        product_id     TEXT NOT NULL,
        quantity       INTEGER NOT NULL,
        price_at_order TEXT NOT NULL,
        PRIMARY KEY (order_id, line_no)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS event_store (
        id             INTEGER PRIMARY KEY,
        aggregate_id   TEXT NOT NULL,
        aggregate_type TEXT NOT NULL,
        event_type     TEXT NOT NULL,
        event_data     TEXT NOT NULL,
        version        INTEGER NOT NULL,
        created_at     TEXT NOT NULL,
        UNIQUE (aggregate_id, version)
    )
    """,
)


def create_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, echo=False)


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        for statement in SCHEMA:
            await conn.execute(text(statement))
