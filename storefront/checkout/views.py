import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse

from storefront.cart.store import CartStore
from storefront.checkout.gateway import PaymentGateway
from storefront.checkout.models import CheckoutPayload
from storefront.checkout.service import CheckoutOrchestrator, confirm_checkout
from storefront.errors import ValidationError
from storefront.utils.dependencies import (
    buyer_id_of,
    get_cart_store,
    get_catalog_provider,
    get_payment_gateway,
)
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.security import get_optional_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])

# module storefront.checkout.views
@router.post("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(
    payload: CheckoutPayload,
    store: CartStore = Depends(get_cart_store),
    catalog_provider=Depends(get_catalog_provider),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
):
    """
    Crée une session Checkout Stripe pour le panier de la session courante.
    - Entrée JSON: { "shipping": { "phone", "address", "city", "country" } }
    - Acheteur: identifié si connecté (Bearer ou cookie), sinon invité
    - Le panier est re-chiffré côté serveur depuis le catalogue courant
    - Réponse: {id, url} vers la page de paiement hébergée
    - Erreurs: 400 panier vide / champs manquants ou trop longs, 502 passerelle, 503 catalogue injoignable, 500 message générique
    """
    orchestrator = CheckoutOrchestrator(store, catalog_provider, gateway)
    result = await orchestrator.submit(payload.shipping, buyer_id=buyer_id_of(user))
    if result.ok:
        return JSONResponse(result.to_dict())

    error = result.error
    if isinstance(error, ValidationError):
        raise HTTPException(
            status_code=error.status_code,
            detail={"message": error.user_message, "fields": list(error.fields)},
        )
    raise HTTPException(status_code=error.status_code, detail=error.user_message)

@router.get("/confirm")
async def confirm_checkout_get(
    session_id: str,
    store: CartStore = Depends(get_cart_store),
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
):
    """
    Confirmation sans webhook après retour de la page de paiement.
    - Vérifie payment_status='paid' et la propriété (buyer_id)
    - Enregistre la commande (idempotent par session) et vide le panier
    - Erreurs: 400 si paiement non confirmé, 403 si session d'un autre acheteur
    """
    return confirm_checkout(session_id, store, current_user_id=buyer_id_of(user))

@router.post("/confirm")
async def confirm_checkout_post(
    request: Request,
    store: CartStore = Depends(get_cart_store),
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
):
    """
    Variante POST: accepte session_id en query ou JSON body {"session_id": "..."}.
    """
    session_id = request.query_params.get("session_id")
    if not session_id:
        try:
            body = await request.json()
            session_id = (body or {}).get("session_id")
        except ValueError:
            session_id = None
    if not session_id:
        raise HTTPException(status_code=400, detail="session_id manquant")
    return await confirm_checkout_get(session_id=session_id, store=store, user=user)
