"""
Order Service: FastAPI エントリーポイント

注文の参照と作成を提供する。作成時は明細ごとに商品サービスへ
問い合わせて在庫と価格を確認する。

┌──────────────┐  GET /products/{id}  ┌─────────────────┐
│ Order Service │ ───────────────────▶ │ Product Service │
└──────┬───────┘   (Bearer 転送)       └─────────────────┘
       │ OrderCreated
       ▼
  Redis Pub/Sub (order_events)
"""

import logging
from contextlib import asynccontextmanager
from uuid import UUID

import httpx
import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, FastAPI, Request
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from shop_common.auth import ADMIN, USER, Principal, TokenDecoder, require_roles
from shop_common.errors import NotFoundError, install_error_handlers
from shop_common.logconfig import configure_logging

from . import commands, db, queries
from .clients import ProductClient
from .config import Settings
from .models import CreateOrderRequest, OrderResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)

    engine = create_async_engine(settings.database_url, echo=settings.sql_echo)
    db.enable_sqlite_foreign_keys(engine)
    app.state.async_session = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    if settings.create_schema:
        await db.create_schema(engine)

    app.state.product_client = ProductClient(
        httpx.AsyncClient(
            base_url=settings.product_service_url,
            timeout=settings.product_service_timeout,
        )
    )
    app.state.redis = (
        aioredis.from_url(settings.redis_url, decode_responses=True)
        if settings.redis_url
        else None
    )

    yield
    await app.state.product_client.aclose()
    if app.state.redis is not None:
        await app.state.redis.aclose()
    await engine.dispose()


async def get_session(request: Request):
    async with request.app.state.async_session() as session:
        yield session


def get_product_client(request: Request) -> ProductClient:
    return request.app.state.product_client


def get_redis(request: Request) -> aioredis.Redis | None:
    return request.app.state.redis


router = APIRouter()


# ── Query Endpoints (Read 側) ────────────────────

@router.get("/orders", response_model=list[OrderResponse])
async def list_orders(
    principal: Principal = Depends(require_roles(USER, ADMIN)),
    session: AsyncSession = Depends(get_session),
):
    """ADMIN は全注文、それ以外は自分の注文だけを返す"""
    logger.info("User: %s requested all orders", principal.username)
    customer_id = None if principal.is_admin else principal.username
    orders = await queries.list_orders(session, customer_id=customer_id)
    return [o.to_dict() for o in orders]


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    principal: Principal = Depends(require_roles(USER, ADMIN)),
    session: AsyncSession = Depends(get_session),
):
    """指定注文を取得（他人の注文は存在しないものとして扱う）"""
    logger.info("User: %s requested order with ID: %s", principal.username, order_id)
    order = await queries.get_order(session, order_id)
    if order is None or (
        not principal.is_admin and order.customer_id != principal.username
    ):
        raise NotFoundError("Order not found")
    return order.to_dict()


# ── Command Endpoints (Write 側) ─────────────────

@router.post("/orders", response_model=OrderResponse, status_code=201)
async def create_order(
    req: CreateOrderRequest,
    principal: Principal = Depends(require_roles(USER)),
    session: AsyncSession = Depends(get_session),
    product_client: ProductClient = Depends(get_product_client),
    redis: aioredis.Redis | None = Depends(get_redis),
):
    """注文作成（在庫確認と価格の確定は商品サービスに問い合わせる）"""
    logger.info("User: %s creating new order", principal.username)
    order = await commands.create_order(
        session, product_client, redis, principal, req.order_lines
    )
    return order.to_dict()


@router.get("/health")
async def health():
    return {"status": "ok", "service": "order-service"}


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    app = FastAPI(title="Order Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.token_decoder = TokenDecoder(
        settings.jwt_key,
        settings.jwt_algorithms,
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )
    install_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()
