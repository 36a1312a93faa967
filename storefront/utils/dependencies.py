"""
Dépendances FastAPI partagées par les routers panier et checkout.
Points d'extension surchargés par les tests via app.dependency_overrides.
"""
import secrets
from typing import Optional

from fastapi import Request

from storefront.cart.storage import KeyValueStorage, RedisStorage, SessionStorage
from storefront.cart.store import CartStore
from storefront.catalog import repository as catalog_repository
from storefront.checkout.gateway import PaymentGateway, StripeGateway
from storefront.config import CART_BACKEND, CART_TTL_SECONDS, CHECKOUT_CANCEL_PATH, CHECKOUT_SUCCESS_PATH
from storefront.infra.redis_client import get_cart_redis

CART_ID_SESSION_KEY = "cart_id"

def _base_url(request: Request) -> str:
    scheme = request.url.scheme
    host = request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}"

def get_cart_storage(request: Request) -> KeyValueStorage:
    """
    Stockage du panier de l'utilisateur courant.
    - redis (défaut): la session signée ne porte qu'un identifiant aléatoire de panier
    - session: panier entier dans le cookie (~4 Ko max, développement)
    """
    if CART_BACKEND == "session":
        return SessionStorage(request.session)
    cart_id = request.session.get(CART_ID_SESSION_KEY)
    if not cart_id:
        cart_id = secrets.token_urlsafe(16)
        request.session[CART_ID_SESSION_KEY] = cart_id
    return RedisStorage(get_cart_redis(), cart_id, ttl=CART_TTL_SECONDS)

def get_cart_store(request: Request) -> CartStore:
    """CartStore de l'utilisateur courant (voir get_cart_storage)."""
    return CartStore(get_cart_storage(request))

def get_catalog_provider():
    """Fournisseur d'instantané catalogue: ids -> CatalogSnapshot."""
    return catalog_repository.get_catalog_snapshot

def get_payment_gateway(request: Request) -> PaymentGateway:
    """Passerelle Stripe avec URLs de retour construites depuis l'hôte de la requête."""
    base_url = _base_url(request)
    sep = "&" if "?" in CHECKOUT_SUCCESS_PATH else "?"
    success_url = f"{base_url}{CHECKOUT_SUCCESS_PATH}{sep}session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{base_url}{CHECKOUT_CANCEL_PATH}"
    return StripeGateway(success_url=success_url, cancel_url=cancel_url)

def buyer_id_of(user: Optional[dict]) -> Optional[str]:
    if not user:
        return None
    uid = user.get("id")
    return str(uid) if uid else None
