"""
Product Service: FastAPI エントリーポイント

商品カタログの CRUD を提供する。
参照系は USER / ADMIN、更新系は ADMIN のみ実行できる。
"""

import logging
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from shop_common.auth import ADMIN, USER, Principal, TokenDecoder, require_roles
from shop_common.errors import NotFoundError, install_error_handlers
from shop_common.logconfig import configure_logging

from . import commands, db, queries
from .config import Settings
from .models import ProductRequest, ProductResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)

    engine = create_async_engine(settings.database_url, echo=settings.sql_echo)
    app.state.async_session = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    if settings.create_schema:
        await db.create_schema(engine)
    if settings.seed_products:
        async with app.state.async_session() as session:
            await commands.seed_products(session)

    yield
    await engine.dispose()


async def get_session(request: Request):
    async with request.app.state.async_session() as session:
        yield session


router = APIRouter()


# ── Query Endpoints (Read 側) ────────────────────

@router.get("/products", response_model=list[ProductResponse])
async def list_products(
    principal: Principal = Depends(require_roles(USER, ADMIN)),
    session: AsyncSession = Depends(get_session),
):
    """全商品を取得"""
    logger.info("User: %s requested all products", principal.username)
    return await queries.list_products(session)


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: UUID,
    principal: Principal = Depends(require_roles(USER, ADMIN)),
    session: AsyncSession = Depends(get_session),
):
    """指定商品を取得"""
    logger.info("User: %s requested product with ID: %s", principal.username, product_id)
    product = await queries.get_product(session, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product


# ── Command Endpoints (Write 側) ─────────────────

@router.post("/products", response_model=ProductResponse, status_code=201)
async def create_product(
    req: ProductRequest,
    principal: Principal = Depends(require_roles(ADMIN)),
    session: AsyncSession = Depends(get_session),
):
    """商品作成（ID はサービス側で採番）"""
    logger.info("User: %s creating product: %s", principal.username, req.name)
    return await commands.create_product(session, req)


@router.put("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    req: ProductRequest,
    principal: Principal = Depends(require_roles(ADMIN)),
    session: AsyncSession = Depends(get_session),
):
    logger.info("User: %s updating product with ID: %s", principal.username, product_id)
    return await commands.update_product(session, product_id, req)


@router.delete("/products/{product_id}", status_code=204)
async def delete_product(
    product_id: UUID,
    principal: Principal = Depends(require_roles(ADMIN)),
    session: AsyncSession = Depends(get_session),
):
    logger.info("User: %s deleting product with ID: %s", principal.username, product_id)
    await commands.delete_product(session, product_id)
    return Response(status_code=204)


@router.get("/health")
async def health():
    return {"status": "ok", "service": "product-service"}


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    app = FastAPI(title="Product Service", lifespan=lifespan)
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
