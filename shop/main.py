"""
Shop Service — FastAPI エントリーポイント

CQRS パターンに従い、Command (POST) と Query (GET) のエンドポイントを分離。
すべての状態変更はイベントストアに記録され、Redis が設定されていれば発行される。
"""

from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import commands, config, db, event_store, queries
from .errors import ShopError
from .orders import OrderPlacementService
from .schemas import CreateOrderRequest, CreateProductRequest, StockRequest


def create_app(
    database_url: str = config.DATABASE_URL,
    redis_url: str | None = config.REDIS_URL,
) -> FastAPI:
    config.configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = db.create_engine(database_url)
        await db.init_db(engine)
        app.state.async_session = db.create_session_factory(engine)
        app.state.redis = (
            aioredis.from_url(redis_url, decode_responses=True) if redis_url else None
        )
        app.state.orders = OrderPlacementService(app.state.async_session, app.state.redis)
        yield
        if app.state.redis is not None:
            await app.state.redis.aclose()
        await engine.dispose()

    app = FastAPI(title="Shop Service", lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def validation_failed(_request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "Validation failed",
                "details": [err["msg"] for err in exc.errors()],
            },
        )

    @app.exception_handler(ShopError)
    async def shop_error(_request: Request, exc: ShopError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.title, "details": str(exc)},
        )

    # ── Command Endpoints (Write 側) ─────────────────

    @app.post("/commands/products", status_code=201)
    async def cmd_create_product(req: CreateProductRequest, request: Request):
        """商品登録コマンド"""
        async with request.app.state.async_session() as session:
            product = await commands.create_product(
                session, request.app.state.redis,
                req.name, req.description, req.price, req.stock, req.category,
            )
            return queries.product_to_dict(product)

    @app.post("/commands/products/{product_id}/restock")
    async def cmd_restock_product(product_id: str, req: StockRequest, request: Request):
        """在庫補充コマンド"""
        async with request.app.state.async_session() as session:
            product = await commands.restock_product(
                session, request.app.state.redis, product_id, req.quantity
            )
            return queries.product_to_dict(product)

    @app.post("/commands/products/{product_id}/sell")
    async def cmd_sell_product(product_id: str, req: StockRequest, request: Request):
        """販売コマンド（在庫は 0 未満にならない）"""
        async with request.app.state.async_session() as session:
            product = await commands.sell_product(
                session, request.app.state.redis, product_id, req.quantity
            )
            return queries.product_to_dict(product)

    @app.post("/commands/orders", status_code=201)
    async def cmd_create_order(req: CreateOrderRequest, request: Request):
        """注文作成コマンド（在庫確認・割引計算を含む）"""
        order = await request.app.state.orders.place_order(
            req.customer_id,
            [item.to_line_item() for item in req.products],
            location=req.location,
        )
        return queries.order_to_dict(order)

    # ── Query Endpoints (Read 側) ────────────────────

    @app.get("/queries/products")
    async def query_list_products(request: Request):
        async with request.app.state.async_session() as session:
            return await queries.list_products(session)

    @app.get("/queries/products/{product_id}")
    async def query_get_product(product_id: str, request: Request):
        async with request.app.state.async_session() as session:
            product = await queries.get_product(session, product_id)
            if not product:
                raise HTTPException(404, "Product not found")
            return product

    @app.get("/queries/orders")
    async def query_list_orders(request: Request):
        """全注文を作成順に取得"""
        async with request.app.state.async_session() as session:
            return await queries.list_orders(session)

    @app.get("/queries/orders/{order_id}")
    async def query_get_order(order_id: str, request: Request):
        async with request.app.state.async_session() as session:
            order = await queries.get_order(session, order_id)
            if not order:
                raise HTTPException(404, "Order not found")
            return order

    # ── Event Store ─────────────────────────────────

    @app.get("/events")
    async def get_all_events(request: Request):
        async with request.app.state.async_session() as session:
            return await event_store.load_all_events(session)

    @app.get("/events/{aggregate_id}")
    async def get_aggregate_events(aggregate_id: str, request: Request):
        async with request.app.state.async_session() as session:
            return await event_store.load_events(session, aggregate_id)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "shop-service"}

    return app


app = create_app()
