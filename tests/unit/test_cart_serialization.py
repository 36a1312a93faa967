import pytest

from storefront.cart.models import Cart, CartLine
from storefront.cart.serialization import CartDecodeError, deserialize_cart, serialize_cart
from storefront.catalog.models import Extra, Size


def test_serialized_format_is_ordered_json_list():
    cart = Cart([
        CartLine("B", 2, Size("S1", "Large", 200), (Extra("E1", "Cheese", 150),)),
        CartLine("A", 1),
    ])
    raw = serialize_cart(cart)
    assert raw.startswith(b'[{"id":"B","quantity":2')
    restored = deserialize_cart(raw)
    assert restored == cart
    assert restored.product_ids() == ["B", "A"]

def test_deserialize_accepts_text():
    assert deserialize_cart('[{"id":"A","quantity":1}]').get("A").quantity == 1

@pytest.mark.parametrize("raw", [
    b"not json",
    b'{"id": "A"}',
    b'[{"quantity": 1}]',
    b'[{"id": "A", "quantity": 0}]',
    b'[{"id": "A", "quantity": true}]',
    b'[{"id": "A", "quantity": "2"}]',
    b'[{"id": "A", "quantity": 1}, {"id": "A", "quantity": 2}]',
    b'[{"id": "A", "quantity": 1, "extras": [{"id": "E1"}, {"id": "E1"}]}]',
    b'[{"id": "A", "quantity": 1, "size": {"name": "no id"}}]',
    b'["A"]',
])
def test_deserialize_rejects_inconsistent_data(raw):
    with pytest.raises(CartDecodeError):
        deserialize_cart(raw)

def test_cart_rejects_duplicate_lines():
    with pytest.raises(ValueError):
        Cart([CartLine("A"), CartLine("A", 2)])
