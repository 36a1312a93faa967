"""
Module 'cart' (feature-first): point d'entrée public.
Réunit modèles, stockage client, sérialisation et CartStore.
"""

from .models import Cart, CartLine, CartResult
from .storage import KeyValueStorage, InMemoryStorage, SessionStorage
from .serialization import CartDecodeError, serialize_cart, deserialize_cart
from .store import CartStore

__all__ = [
    # models
    "Cart",
    "CartLine",
    "CartResult",
    # storage
    "KeyValueStorage",
    "InMemoryStorage",
    "SessionStorage",
    # serialization
    "CartDecodeError",
    "serialize_cart",
    "deserialize_cart",
    # store
    "CartStore",
]
