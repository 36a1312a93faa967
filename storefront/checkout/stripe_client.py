"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
"""
import stripe
from typing import Any, Dict, List, Optional

from storefront import config
from storefront.errors import GatewayMisconfigured

# module storefront.checkout.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY.
    - Clé absente: GatewayMisconfigured (fatal pour la tentative, jamais montré tel quel).
    """
    if not config.STRIPE_SECRET_KEY:
        raise GatewayMisconfigured("STRIPE_SECRET_KEY manquant")
    stripe.api_key = config.STRIPE_SECRET_KEY
    return stripe

def _as_dict(obj: Any) -> Dict[str, Any]:
    # Les objets Stripe exposent to_dict() (récursif); les mocks de tests sont déjà des dicts
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(obj)

def create_session(
    *,
    line_items: List[Dict[str, Any]],
    mode: str,
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, Any],
    client_reference_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout.
    - line_items: lignes Stripe (price_data en centimes + quantity)
    - mode: généralement "payment"
    - success_url / cancel_url: URLs de redirection
    - metadata: ex {"buyer_id": "...", "shipping_chunks": "1", "shipping_0": "{...}", "cart_chunks": "1", "cart_0": "[...]"}
    Retour: dict session (ex: {"id": "cs_test_...", "url": "https://..."})
    """
    require_stripe()
    params: Dict[str, Any] = {
        "line_items": line_items,
        "mode": mode,
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata,
        "payment_method_types": ["card"],
    }
    if client_reference_id:
        params["client_reference_id"] = client_reference_id
    session = stripe.checkout.Session.create(**params)
    return _as_dict(session)

def retrieve_session(session_id: str) -> Dict[str, Any]:
    """
    Récupère une session Stripe Checkout par son identifiant.
    Retour: dict session incluant "id", "payment_status", "metadata", "amount_total", etc.
    """
    require_stripe()
    session = stripe.checkout.Session.retrieve(session_id)
    return _as_dict(session)
