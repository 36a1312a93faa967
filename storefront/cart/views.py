"""Endpoints du panier (stocké côté serveur, identifié par la session signée).
- GET /api/v1/cart: lignes + totaux chiffrés (sous-total, livraison, total) et leur version affichable
- POST /api/v1/cart/items: ajoute ou incrémente une ligne (limite de quantité par produit)
- POST /api/v1/cart/items/{product_id}/decrement: retire une unité
- DELETE /api/v1/cart/items/{product_id}: supprime la ligne
- DELETE /api/v1/cart: vide le panier
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from storefront.cart.store import CartStore
from storefront.catalog.models import CatalogSnapshot
from storefront.config import CHECKOUT_CURRENCY
from storefront.errors import InvariantViolation, ServiceUnavailable
from storefront.pricing.engine import quote_cart
from storefront.utils.dependencies import get_cart_store, get_catalog_provider
from storefront.utils.money import format_cents

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])


class AddItemPayload(BaseModel):
    product_id: str
    size_id: Optional[str] = None
    extra_ids: List[str] = []


def _line_dict(line) -> Dict[str, Any]:
    return {
        "product_id": line.product_id,
        "quantity": line.quantity,
        "size": line.selected_size.to_dict() if line.selected_size else None,
        "extras": [e.to_dict() for e in line.selected_extras],
    }

def _display_totals(pricing: Dict[str, Any]) -> Dict[str, str]:
    return {k: format_cents(pricing[k], CHECKOUT_CURRENCY) for k in ("subtotal", "delivery_fee", "total")}

def _cart_response(store: CartStore, catalog_provider) -> Dict[str, Any]:
    """
    Réponse commune: lignes brutes + panier chiffré.
    Une erreur de tarification ou un catalogue injoignable n'interrompt pas l'affichage:
    pricing=None et message utilisateur.
    """
    cart = store.snapshot()
    body: Dict[str, Any] = {
        "items": [_line_dict(line) for line in cart],
        "count": store.total_quantity(),
        "pricing": None,
    }
    try:
        catalog = catalog_provider(cart.product_ids())
    except ServiceUnavailable as e:
        logger.warning("cart.view catalogue indisponible: %s", e.reason)
        body["message"] = e.user_message
        return body
    result = quote_cart(cart, catalog)
    if result.ok:
        body["pricing"] = result.priced.to_dict()
        body["pricing"]["display"] = _display_totals(body["pricing"])
    else:
        body["message"] = result.error.user_message
    return body

# module storefront.cart.views
@router.get("")
def get_cart(store: CartStore = Depends(get_cart_store), catalog_provider=Depends(get_catalog_provider)):
    return _cart_response(store, catalog_provider)

@router.post("/items")
def add_item(
    payload: AddItemPayload,
    store: CartStore = Depends(get_cart_store),
    catalog_provider=Depends(get_catalog_provider),
):
    """
    Ajoute le produit au panier ou incrémente sa quantité.
    - 404 si le produit est introuvable dans le catalogue
    - 400 si la taille ou un supplément n'appartient pas au produit
    - 409 si la limite de quantité du produit est atteinte (panier inchangé)
    - 503 si le catalogue est injoignable
    """
    catalog: CatalogSnapshot = catalog_provider([payload.product_id])
    product = catalog.get(payload.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Produit introuvable")
    try:
        size = catalog.find_size(product, payload.size_id)
        extras = catalog.find_extras(product, payload.extra_ids)
    except InvariantViolation as e:
        logger.info("cart.add_item option refusée: %s context=%s", e.reason, e.context)
        raise HTTPException(status_code=400, detail="Taille ou supplément invalide")

    result = store.add_or_increment(product, size=size, extras=extras)
    if not result.ok:
        raise HTTPException(status_code=result.error.status_code, detail=result.message)
    return _cart_response(store, catalog_provider)

@router.post("/items/{product_id}/decrement")
def decrement_item(product_id: str, store: CartStore = Depends(get_cart_store), catalog_provider=Depends(get_catalog_provider)):
    store.decrement(product_id)
    return _cart_response(store, catalog_provider)

@router.delete("/items/{product_id}")
def remove_item(product_id: str, store: CartStore = Depends(get_cart_store), catalog_provider=Depends(get_catalog_provider)):
    store.remove_line(product_id)
    return _cart_response(store, catalog_provider)

@router.delete("")
def clear_cart(store: CartStore = Depends(get_cart_store), catalog_provider=Depends(get_catalog_provider)):
    store.clear()
    return _cart_response(store, catalog_provider)
