import time
from uuid import UUID, uuid4

import httpx
import jwt
import pytest
from fastapi.testclient import TestClient

from order_service.clients import ProductClient
from order_service.config import Settings as OrderSettings
from order_service.main import create_app as create_order_app
from order_service.main import get_product_client, get_redis
from product_service.config import Settings as ProductSettings
from product_service.main import create_app as create_product_app

SECRET = "test-signing-secret-0123456789abcdef"


def make_token(username, roles=(), scope=None, expires_in=300, **claims):
    payload = {
        "sub": str(uuid4()),
        "preferred_username": username,
        "exp": int(time.time()) + expires_in,
        **claims,
    }
    if roles is not None:
        payload["realm_access"] = {"roles": list(roles)}
    if scope is not None:
        payload["scope"] = scope
    return jwt.encode(payload, SECRET, algorithm="HS256")


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return bearer(make_token("admin", roles=["ADMIN"]))


@pytest.fixture
def alice_headers():
    return bearer(make_token("alice", roles=["USER"]))


@pytest.fixture
def bob_headers():
    return bearer(make_token("bob", roles=["USER"]))


# ── Product Service ──────────────────────────────

@pytest.fixture
def product_settings(tmp_path):
    return ProductSettings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'product.db'}",
        jwt_key=SECRET,
        jwt_algorithms=["HS256"],
        seed_products=False,
    )


@pytest.fixture
def product_api(product_settings):
    with TestClient(create_product_app(product_settings)) as client:
        yield client


# ── Order Service ────────────────────────────────

class FakeCatalog:
    """商品サービスの代わりに GET /products/{id} に応答する"""

    def __init__(self):
        self.products: dict[UUID, dict] = {}
        self.requests: list[httpx.Request] = []

    def add(self, name, price, quantity, description=None):
        product_id = uuid4()
        self.products[product_id] = {
            "id": str(product_id),
            "name": name,
            "description": description,
            "price": price,
            "quantity": quantity,
        }
        return product_id

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        product_id = UUID(request.url.path.rsplit("/", 1)[-1])
        product = self.products.get(product_id)
        if product is None:
            return httpx.Response(404, json={"error": {"code": "not_found"}})
        return httpx.Response(200, json=product)


class RecordingRedis:
    def __init__(self):
        self.published: list[tuple[str, str]] = []

    async def publish(self, channel, message):
        self.published.append((channel, message))
        return 1


def make_product_client(handler):
    return ProductClient(
        httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url="http://product-service",
        )
    )


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def published():
    return RecordingRedis()


@pytest.fixture
def order_settings(tmp_path):
    return OrderSettings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'order.db'}",
        jwt_key=SECRET,
        jwt_algorithms=["HS256"],
        redis_url=None,
    )


@pytest.fixture
def order_app(order_settings):
    return create_order_app(order_settings)


@pytest.fixture
def order_api(order_app, catalog, published):
    product_client = make_product_client(catalog.handler)
    order_app.dependency_overrides[get_product_client] = lambda: product_client
    order_app.dependency_overrides[get_redis] = lambda: published
    with TestClient(order_app) as client:
        yield client
