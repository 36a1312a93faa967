"""
Sérialisation/désérialisation du panier pour le stockage client.
Format JSON (liste ordonnée):
  [{"id": "<product_id>", "quantity": <int>, "size": {id, name, price_delta} | null, "extras": [...]}]
"""
import json
from typing import Any, Dict, List

from storefront.cart.models import Cart, CartLine
from storefront.catalog.models import Extra, Size


class CartDecodeError(ValueError):
    """Données de panier illisibles ou incohérentes"""


# module storefront.cart.serialization
def serialize_cart(cart: Cart) -> bytes:
    payload: List[Dict[str, Any]] = [
        {
            "id": line.product_id,
            "quantity": line.quantity,
            "size": line.selected_size.to_dict() if line.selected_size else None,
            "extras": [e.to_dict() for e in line.selected_extras],
        }
        for line in cart
    ]
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")

def _line_from_dict(item: Any) -> CartLine:
    if not isinstance(item, dict):
        raise CartDecodeError("ligne de panier invalide")
    product_id = str(item.get("id") or "").strip()
    quantity = item.get("quantity")
    if not product_id:
        raise CartDecodeError("id produit manquant")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise CartDecodeError(f"quantité invalide pour {product_id}: {quantity!r}")
    size_raw = item.get("size")
    extras_raw = item.get("extras") or []
    if not isinstance(extras_raw, list):
        raise CartDecodeError(f"extras invalides pour {product_id}")
    try:
        size = Size.from_dict(size_raw) if size_raw else None
        extras = tuple(Extra.from_dict(e) for e in extras_raw)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise CartDecodeError(f"options invalides pour {product_id}: {e}")
    if len({e.id for e in extras}) != len(extras):
        raise CartDecodeError(f"supplément en double pour {product_id}")
    return CartLine(product_id=product_id, quantity=quantity, selected_size=size, selected_extras=extras)

def deserialize_cart(raw: bytes) -> Cart:
    """
    Reconstruit un Cart à l'identique.
    - Soulève CartDecodeError si le JSON est invalide ou la structure incohérente.
    """
    try:
        payload = json.loads(raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CartDecodeError(f"JSON invalide: {e}")
    if not isinstance(payload, list):
        raise CartDecodeError("le panier doit être une liste")
    lines = [_line_from_dict(item) for item in payload]
    try:
        return Cart(lines)
    except ValueError as e:
        raise CartDecodeError(str(e))
