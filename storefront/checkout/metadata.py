"""
Sérialisation/désérialisation des métadonnées Stripe (buyer_id, shipping, cart).
Stripe limite chaque valeur de metadata à 500 caractères et une session à 50 clés:
les JSON du panier et des coordonnées sont découpés en morceaux (<prefix>_0..n,
nombre dans <prefix>_chunks) au lieu d'être tronqués.
"""
import json
from typing import Any, Dict, List, Optional, Tuple

from storefront.checkout.models import CheckoutRequest

METADATA_VALUE_LIMIT = 500
METADATA_MAX_KEYS = 50


def _compact_cart(request: CheckoutRequest) -> List[Dict[str, Any]]:
    return [
        {
            "id": line.product_id,
            "quantity": line.quantity,
            "unit_price": line.unit_price,
            "size": line.size.id if line.size else None,
            "extras": [e.id for e in line.extras],
        }
        for line in request.lines
    ]

def _put_chunked(metadata: Dict[str, str], prefix: str, text: str) -> None:
    chunks = [text[i:i + METADATA_VALUE_LIMIT] for i in range(0, len(text), METADATA_VALUE_LIMIT)]
    metadata[f"{prefix}_chunks"] = str(len(chunks))
    for i, chunk in enumerate(chunks):
        metadata[f"{prefix}_{i}"] = chunk

def _read_chunked(meta: Dict[str, Any], prefix: str, default: Any) -> Any:
    try:
        count = int(meta.get(f"{prefix}_chunks") or 0)
        text = "".join(meta.get(f"{prefix}_{i}") or "" for i in range(count))
        value = json.loads(text) if text else default
    except ValueError:
        return default
    return value if isinstance(value, type(default)) else default

# module storefront.checkout.metadata
def make_metadata(request: CheckoutRequest) -> Dict[str, str]:
    """
    Construit les métadonnées de la session.
    - buyer_id: identifiant de l'acheteur ("" si anonyme)
    - shipping_chunks + shipping_<i>: JSON des coordonnées, découpé
    - cart_chunks + cart_<i>: JSON compact du panier chiffré, découpé
    Soulève ValueError si l'ensemble dépasse la capacité des métadonnées.
    """
    metadata: Dict[str, str] = {"buyer_id": request.buyer_id or ""}
    shipping_json = json.dumps(request.shipping.model_dump(), ensure_ascii=False, separators=(",", ":"))
    _put_chunked(metadata, "shipping", shipping_json)
    _put_chunked(metadata, "cart", json.dumps(_compact_cart(request), separators=(",", ":")))
    if len(metadata) > METADATA_MAX_KEYS:
        raise ValueError(f"Panier trop volumineux pour les métadonnées ({len(metadata)} clés)")
    return metadata

def extract_metadata_from_session(session: Dict[str, Any]) -> Tuple[Optional[str], Dict[str, Any], List[Dict[str, Any]]]:
    """
    Extrait (buyer_id, shipping, cart) depuis une session Stripe Checkout.
    - Tolérant aux erreurs: shipping {} et cart [] si le JSON est illisible.
    """
    meta = (session or {}).get("metadata") or {} if isinstance(session, dict) else {}
    buyer_id = meta.get("buyer_id") or None
    return buyer_id, _read_chunked(meta, "shipping", {}), _read_chunked(meta, "cart", [])
