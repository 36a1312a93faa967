import pytest

from storefront.catalog.models import CatalogSnapshot
from storefront.checkout.models import CheckoutState, ShippingDetails
from storefront.checkout.service import CheckoutOrchestrator
from storefront.errors import (
    EmptyCartError,
    GatewayError,
    GatewayMisconfigured,
    GENERIC_FAILURE_MESSAGE,
    InvariantViolation,
    ServiceUnavailable,
    ValidationError,
)

SHIPPING = {"phone": "0600000000", "address": "1 rue de la Paix", "city": "Paris", "country": "FR"}


@pytest.fixture
def orchestrator(store, catalog_provider, fake_gateway):
    return CheckoutOrchestrator(store, catalog_provider, fake_gateway, delivery_fee=500, currency="usd")

@pytest.mark.asyncio
async def test_empty_cart_fails_without_gateway_call(orchestrator, fake_gateway):
    res = await orchestrator.submit(SHIPPING)
    assert res.state is CheckoutState.FAILED
    assert isinstance(res.error, EmptyCartError)
    assert fake_gateway.requests == []

@pytest.mark.asyncio
async def test_missing_fields_are_listed(orchestrator, store, pizza, fake_gateway):
    store.add_or_increment(pizza)
    res = await orchestrator.submit({"phone": "  ", "address": "1 rue", "city": "", "country": "FR"})
    assert isinstance(res.error, ValidationError)
    assert res.error.fields == ["phone", "city"]
    assert orchestrator.state is CheckoutState.FAILED
    assert fake_gateway.requests == []

@pytest.mark.asyncio
async def test_too_long_fields_are_rejected(orchestrator, store, pizza, fake_gateway):
    store.add_or_increment(pizza)
    res = await orchestrator.submit({**SHIPPING, "address": "x" * 480})
    assert isinstance(res.error, ValidationError)
    assert res.error.fields == ["address"]
    assert "200" in res.error.user_message
    assert fake_gateway.requests == []

@pytest.mark.asyncio
async def test_success_redirects_with_repriced_request(orchestrator, store, pizza, soda, fake_gateway):
    large = pizza.sizes[1]
    for _ in range(3):
        store.add_or_increment(pizza, size=large, extras=pizza.extras)
    store.add_or_increment(soda)

    res = await orchestrator.submit(ShippingDetails(**SHIPPING), buyer_id="u1")

    assert res.ok is True
    assert res.state is CheckoutState.REDIRECTED
    assert res.to_dict() == {"id": "cs_test_123", "url": "https://checkout.stripe.test/cs_test_123"}
    assert len(fake_gateway.requests) == 1
    req = fake_gateway.requests[0]
    assert req.subtotal == 4350 + 250
    assert req.total == 4350 + 250 + 500
    assert req.buyer_id == "u1"
    assert req.shipping.city == "Paris"
    assert [l.product_id for l in req.lines] == [pizza.id, soda.id]

@pytest.mark.asyncio
async def test_request_reflects_cart_at_submit_time(orchestrator, store, pizza):
    store.add_or_increment(pizza)
    shown_total = 1000 + 500
    store.add_or_increment(pizza)

    res = await orchestrator.submit(SHIPPING)

    assert res.request.total != shown_total
    assert res.request.total == 2000 + 500

@pytest.mark.asyncio
async def test_mutation_during_gateway_call_does_not_change_request(orchestrator, store, pizza, soda, fake_gateway):
    store.add_or_increment(pizza)
    fake_gateway.on_call = lambda request: store.add_or_increment(soda)

    res = await orchestrator.submit(SHIPPING)

    assert res.ok
    assert [l.product_id for l in res.request.lines] == [pizza.id]
    assert store.quantity_of(soda.id) == 1

@pytest.mark.asyncio
async def test_gateway_failure_keeps_cart_and_allows_retry(orchestrator, store, pizza, fake_gateway):
    store.add_or_increment(pizza)
    before = store.snapshot()
    fake_gateway.error = GatewayError("timeout")

    res = await orchestrator.submit(SHIPPING)

    assert res.state is CheckoutState.FAILED
    assert isinstance(res.error, GatewayError)
    assert res.message == res.error.user_message
    assert store.snapshot() is before
    assert len(fake_gateway.requests) == 1

    fake_gateway.error = None
    retry = await orchestrator.submit(SHIPPING)
    assert retry.ok
    assert len(fake_gateway.requests) == 2

@pytest.mark.asyncio
async def test_misconfiguration_shows_generic_message(orchestrator, store, pizza, fake_gateway):
    store.add_or_increment(pizza)
    fake_gateway.error = GatewayMisconfigured("STRIPE_SECRET_KEY manquant")
    res = await orchestrator.submit(SHIPPING)
    assert isinstance(res.error, GatewayMisconfigured)
    assert res.message == GENERIC_FAILURE_MESSAGE
    assert "STRIPE" not in res.message

@pytest.mark.asyncio
async def test_unexpected_gateway_exception_is_wrapped(orchestrator, store, pizza, fake_gateway):
    store.add_or_increment(pizza)
    fake_gateway.error = RuntimeError("boom")
    res = await orchestrator.submit(SHIPPING)
    assert isinstance(res.error, GatewayError)
    assert res.error.reason == "boom"

@pytest.mark.asyncio
async def test_missing_handle_is_gateway_error(orchestrator, store, pizza, fake_gateway):
    store.add_or_increment(pizza)
    fake_gateway.handle = ""
    res = await orchestrator.submit(SHIPPING)
    assert isinstance(res.error, GatewayError)

@pytest.mark.asyncio
async def test_product_missing_from_catalog_fails_before_gateway(store, pizza, fake_gateway):
    store.add_or_increment(pizza)
    orch = CheckoutOrchestrator(store, lambda ids: CatalogSnapshot(), fake_gateway)
    res = await orch.submit(SHIPPING)
    assert isinstance(res.error, InvariantViolation)
    assert res.message == GENERIC_FAILURE_MESSAGE
    assert fake_gateway.requests == []

@pytest.mark.asyncio
async def test_catalog_is_read_for_cart_products(orchestrator, store, pizza, catalog_provider):
    store.add_or_increment(pizza)
    await orchestrator.submit(SHIPPING)
    assert catalog_provider.calls[-1] == [pizza.id]

def test_initial_state_is_idle(orchestrator):
    assert orchestrator.state is CheckoutState.IDLE

@pytest.mark.asyncio
async def test_catalog_outage_is_retryable_without_gateway_call(store, pizza, fake_gateway):
    store.add_or_increment(pizza)

    def _down(ids):
        raise ServiceUnavailable("catalog", "timeout")
    orchestrator = CheckoutOrchestrator(store, _down, fake_gateway)

    res = await orchestrator.submit(SHIPPING)

    assert isinstance(res.error, ServiceUnavailable)
    assert res.error.status_code == 503
    assert res.error.user_recoverable is True
    assert fake_gateway.requests == []
    assert store.quantity_of(pizza.id) == 1
