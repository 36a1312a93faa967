import logging
import pytest

from storefront.cart.models import Cart, CartLine
from storefront.catalog.models import CatalogSnapshot, Extra, Product, Size
from storefront.errors import InvariantViolation
from storefront.pricing.engine import cart_quantity, price_cart, price_line, quote_cart


def _configured_line(pizza, quantity=3):
    return CartLine(pizza.id, quantity, pizza.sizes[1], pizza.extras)

def test_price_line_adds_size_and_extras(pizza):
    priced = price_line(_configured_line(pizza), pizza)
    assert priced.unit_price == 1450
    assert priced.line_total == 4350
    assert priced.name == "Pizza"

def test_price_cart_totals_with_delivery_fee(catalog, pizza):
    cart = Cart([_configured_line(pizza)])
    priced = price_cart(cart, catalog, delivery_fee=500)
    assert priced.subtotal == 4350
    assert priced.delivery_fee == 500
    assert priced.total == 4850

def test_price_cart_keeps_insertion_order(catalog, pizza, soda):
    cart = Cart([CartLine(soda.id), CartLine(pizza.id, 2)])
    priced = price_cart(cart, catalog, delivery_fee=0)
    assert [l.product_id for l in priced.lines] == [soda.id, pizza.id]
    assert priced.subtotal == 250 + 2000
    assert priced.total == priced.subtotal

def test_empty_cart_costs_only_delivery(catalog):
    priced = price_cart(Cart(), catalog, delivery_fee=500)
    assert priced.lines == ()
    assert priced.subtotal == 0
    assert priced.total == 500

def test_pricing_is_deterministic(catalog, pizza, soda):
    cart = Cart([_configured_line(pizza, 2), CartLine(soda.id)])
    assert price_cart(cart, catalog) == price_cart(cart, catalog)

def test_prices_come_from_current_catalog_not_stored_line(pizza):
    # Le panier garde une ancienne taille (delta 200), le catalogue a changé le delta
    stale_line = CartLine(pizza.id, 1, pizza.sizes[1], ())
    repriced = Product(
        id=pizza.id, name=pizza.name, base_price=1100, quantity_limit=3,
        sizes=(Size("S-L", "Large", 300),), extras=pizza.extras,
    )
    assert price_line(stale_line, repriced).unit_price == 1400

def test_missing_product_raises(catalog):
    with pytest.raises(InvariantViolation) as exc:
        price_cart(Cart([CartLine("ghost")]), catalog)
    assert exc.value.context["product_id"] == "ghost"

def test_negative_delta_raises(pizza):
    broken = Product(id="P-X", name="X", base_price=500, quantity_limit=2, extras=(Extra("E-NEG", "Promo", -100),))
    with pytest.raises(InvariantViolation):
        price_line(CartLine("P-X", 1, None, broken.extras), broken)

def test_quantity_above_limit_raises(soda):
    with pytest.raises(InvariantViolation):
        price_line(CartLine(soda.id, 2), soda)

def test_removed_option_raises(pizza):
    without_sizes = Product(id=pizza.id, name=pizza.name, base_price=1000, quantity_limit=3)
    with pytest.raises(InvariantViolation):
        price_line(CartLine(pizza.id, 1, pizza.sizes[1]), without_sizes)

def test_line_and_product_mismatch_raises(pizza, soda):
    with pytest.raises(InvariantViolation):
        price_line(CartLine(soda.id), pizza)

def test_negative_delivery_fee_raises(catalog):
    with pytest.raises(InvariantViolation):
        price_cart(Cart(), catalog, delivery_fee=-1)

def test_quote_cart_returns_error_instead_of_raising(caplog):
    with caplog.at_level(logging.ERROR):
        res = quote_cart(Cart([CartLine("ghost")]), CatalogSnapshot())
    assert res.ok is False
    assert res.priced is None
    assert isinstance(res.error, InvariantViolation)
    assert "ghost" in caplog.text

def test_quote_cart_success(catalog, pizza):
    res = quote_cart(Cart([CartLine(pizza.id)]), catalog, delivery_fee=500)
    assert res.ok is True
    assert res.priced.total == 1500

def test_cart_quantity_badge(pizza, soda):
    assert cart_quantity(Cart([CartLine(pizza.id, 2), CartLine(soda.id)])) == 3
    assert cart_quantity(Cart()) == 0
