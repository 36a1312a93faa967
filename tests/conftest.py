import os
import pytest
from typing import Generator, List
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

# Pas de Redis pendant les tests: le lifespan désactive fastapi-limiter
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
# Paniers stockés dans fakeredis
os.environ.setdefault("USE_FAKE_REDIS_FOR_TESTS", "1")

from storefront.app import app as fastapi_app
from storefront.cart.storage import InMemoryStorage
from storefront.cart.store import CartStore
from storefront.catalog.models import CatalogSnapshot, Extra, Product, Size
from storefront.checkout.gateway import PaymentGateway
from storefront.checkout.models import CheckoutRequest, GatewaySession
from storefront.infra.redis_client import get_cart_redis
from storefront.utils.dependencies import get_catalog_provider, get_payment_gateway

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/tests/unit/" in nodeid or nodeid.startswith("tests/unit/"):
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in nodeid or nodeid.startswith("tests/integration/"):
            item.add_marker(pytest.mark.integration)


LARGE = Size(id="S-L", name="Large", price_delta=200)
CHEESE = Extra(id="E-CHEESE", name="Cheese", price_delta=150)
OLIVES = Extra(id="E-OLIVES", name="Olives", price_delta=100)

PIZZA = Product(
    id="P-PIZZA",
    name="Pizza",
    base_price=1000,
    quantity_limit=3,
    sizes=(Size(id="S-M", name="Medium", price_delta=0), LARGE),
    extras=(CHEESE, OLIVES),
)
SODA = Product(id="P-SODA", name="Soda", base_price=250, quantity_limit=1)


class FakeGateway(PaymentGateway):
    """Passerelle de test: enregistre les demandes, renvoie une session ou lève l'erreur configurée."""

    def __init__(self, handle: str = "cs_test_123", url: str = "https://checkout.stripe.test/cs_test_123"):
        self.handle = handle
        self.url = url
        self.error = None
        self.requests: List[CheckoutRequest] = []
        self.on_call = None

    def create_session(self, request: CheckoutRequest) -> GatewaySession:
        self.requests.append(request)
        if self.on_call:
            self.on_call(request)
        if self.error is not None:
            raise self.error
        return GatewaySession(handle=self.handle, url=self.url)


@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture
def catalog() -> CatalogSnapshot:
    return CatalogSnapshot([PIZZA, SODA])

@pytest.fixture
def catalog_provider(catalog):
    calls = []

    def _provider(ids):
        calls.append(list(ids))
        return catalog
    _provider.calls = calls
    return _provider

@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()

@pytest.fixture
def store() -> CartStore:
    return CartStore(InMemoryStorage())

# Catalogue et passerelle de test pour tous les endpoints
@pytest.fixture(autouse=True)
def _override_catalog_and_gateway(app, catalog_provider, fake_gateway):
    app.dependency_overrides[get_catalog_provider] = lambda: catalog_provider
    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_catalog_provider, None)
        app.dependency_overrides.pop(get_payment_gateway, None)

# Aucun accès réseau: Supabase mocké, Stripe sans clé
@pytest.fixture(scope="function", autouse=True)
def mock_external_services(monkeypatch):
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.config.STRIPE_SECRET_KEY", "", raising=True)
    monkeypatch.setattr("storefront.orders.repository.get_order_by_session", lambda handle: None)
    monkeypatch.setattr("storefront.orders.repository.insert_order", lambda order: {"id": "order-1", **order})

@pytest.fixture(autouse=True)
def _flush_cart_redis():
    yield
    get_cart_redis().flushall()

@pytest.fixture
def pizza() -> Product:
    return PIZZA

@pytest.fixture
def soda() -> Product:
    return SODA
