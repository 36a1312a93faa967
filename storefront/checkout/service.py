"""
Cas d'usage 'checkout': orchestre panier, moteur de prix, passerelle de paiement et commandes.

Machine à états d'une tentative:
  Idle -> Validating -> Submitting -> {Redirected | Failed}
- Validating: panier non vide, champs de livraison renseignés et de longueur bornée
- Submitting: re-chiffre le panier *courant* du CartStore, puis un seul appel à la passerelle
- Failed: un seul message utilisateur, panier intact; aucun retry automatique
"""
import logging
from typing import Any, Callable, Dict, Iterable, Optional, Union

from fastapi import HTTPException
from starlette.concurrency import run_in_threadpool

from storefront.cart.store import CartStore
from storefront.catalog.models import CatalogSnapshot
from storefront.checkout import stripe_client
from storefront.checkout.gateway import PaymentGateway
from storefront.checkout.metadata import extract_metadata_from_session
from storefront.checkout.models import (
    SHIPPING_FIELD_MAX_LENGTH,
    CheckoutRequest,
    CheckoutResult,
    CheckoutState,
    ShippingDetails,
)
from storefront.config import CHECKOUT_CURRENCY, DELIVERY_FEE_CENTS
from storefront.errors import (
    EmptyCartError,
    GatewayError,
    GatewayMisconfigured,
    InvariantViolation,
    ServiceUnavailable,
    StorefrontError,
    ValidationError,
)
from storefront.orders import repository as orders_repository
from storefront.pricing.engine import price_cart

logger = logging.getLogger(__name__)

CatalogProvider = Callable[[Iterable[str]], CatalogSnapshot]


class CheckoutOrchestrator:
    def __init__(
        self,
        cart_store: CartStore,
        catalog_provider: CatalogProvider,
        gateway: PaymentGateway,
        delivery_fee: int = DELIVERY_FEE_CENTS,
        currency: str = CHECKOUT_CURRENCY,
    ):
        self._cart_store = cart_store
        self._catalog_provider = catalog_provider
        self._gateway = gateway
        self._delivery_fee = delivery_fee
        self._currency = currency
        self.state = CheckoutState.IDLE

    def _fail(self, error: StorefrontError) -> CheckoutResult:
        self.state = CheckoutState.FAILED
        return CheckoutResult(state=CheckoutState.FAILED, error=error)

    def _validate(self, shipping: Union[ShippingDetails, Dict[str, Any], None]) -> ShippingDetails:
        if self._cart_store.is_empty():
            raise EmptyCartError()
        if not isinstance(shipping, ShippingDetails):
            shipping = ShippingDetails(**(shipping or {}))
        missing = shipping.missing_fields()
        if missing:
            raise ValidationError(missing)
        too_long = shipping.too_long_fields()
        if too_long:
            raise ValidationError(
                too_long,
                f"Champs trop longs ({SHIPPING_FIELD_MAX_LENGTH} caractères max): {', '.join(too_long)}",
            )
        return shipping

    def _build_request(self, shipping: ShippingDetails, buyer_id: Optional[str]) -> CheckoutRequest:
        # Lecture du panier au moment de la soumission (jamais un total affiché plus tôt)
        cart = self._cart_store.snapshot()
        catalog = self._catalog_provider(cart.product_ids())
        priced = price_cart(cart, catalog, self._delivery_fee)
        return CheckoutRequest.from_priced(priced, shipping, buyer_id, self._currency)

    async def submit(self, shipping: Union[ShippingDetails, Dict[str, Any], None], buyer_id: Optional[str] = None) -> CheckoutResult:
        """
        Lance une tentative de checkout et retourne son issue (jamais d'exception pour les échecs typés).
        - EmptyCartError / ValidationError: avant tout appel réseau
        - InvariantViolation: panier incohérent avec le catalogue (loggé, message générique)
        - ServiceUnavailable: catalogue injoignable, réessayable
        - GatewayError / GatewayMisconfigured: échec de la passerelle, panier conservé
        """
        # Chaque soumission repart de Idle
        self.state = CheckoutState.VALIDATING
        try:
            shipping = self._validate(shipping)
        except (EmptyCartError, ValidationError) as e:
            return self._fail(e)

        try:
            request = self._build_request(shipping, buyer_id)
        except InvariantViolation as e:
            logger.error("checkout.submit invariant violé: %s context=%s buyer_id=%s", e.reason, e.context, buyer_id)
            return self._fail(e)
        except ServiceUnavailable as e:
            logger.warning("checkout.submit %s indisponible: %s", e.service, e.reason)
            return self._fail(e)

        self.state = CheckoutState.SUBMITTING
        try:
            session = await run_in_threadpool(self._gateway.create_session, request)
        except GatewayMisconfigured as e:
            logger.error("checkout.submit passerelle mal configurée: %s", e.reason)
            return self._fail(e)
        except GatewayError as e:
            logger.warning("checkout.submit passerelle en échec: %s", e.reason)
            return self._fail(e)
        except Exception as e:
            logger.exception("checkout.submit erreur inattendue de la passerelle")
            return self._fail(GatewayError(str(e)))

        if session is None or not session.handle:
            logger.warning("checkout.submit passerelle sans handle de session")
            return self._fail(GatewayError("handle de session absent"))

        self.state = CheckoutState.REDIRECTED
        logger.info(
            "checkout.submit session=%s lines=%s total=%s buyer_id=%s",
            session.handle, len(request.lines), request.total, buyer_id,
        )
        return CheckoutResult(
            state=CheckoutState.REDIRECTED,
            session_handle=session.handle,
            redirect_url=session.url,
            request=request,
        )


def build_order(session: Dict[str, Any]) -> Dict[str, Any]:
    """
    Données attendues par l'enregistrement de commande:
    {lines, shipping, buyer_id, gateway_session_handle, total, currency}
    """
    buyer_id, shipping, lines = extract_metadata_from_session(session)
    return {
        "lines": lines,
        "shipping": shipping,
        "buyer_id": buyer_id,
        "gateway_session_handle": session.get("id"),
        "total": session.get("amount_total"),
        "currency": session.get("currency") or CHECKOUT_CURRENCY,
    }

def confirm_checkout(session_id: str, cart_store: CartStore, current_user_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Confirmation après redirection (sans webhook):
    - Récupère la session Stripe et vérifie payment_status == 'paid'
    - Vérifie la propriété de la session si l'acheteur était identifié
    - Enregistre la commande (idempotent par session) puis vide le panier
      (seulement à la première confirmation)
    """
    if not session_id:
        raise HTTPException(status_code=400, detail="session_id manquant")
    try:
        session = stripe_client.retrieve_session(session_id)
    except GatewayMisconfigured:
        raise
    except Exception as e:
        logger.exception("checkout.confirm session introuvable session_id=%s", session_id)
        raise GatewayError(str(e))

    payment_status = session.get("payment_status") or ""
    if payment_status != "paid":
        raise HTTPException(status_code=400, detail=f"Paiement non confirmé (payment_status={payment_status})")

    order = build_order(session)
    if order["buyer_id"] and order["buyer_id"] != current_user_id:
        raise HTTPException(status_code=403, detail="Session appartenant à un autre utilisateur")

    existing = orders_repository.get_order_by_session(order["gateway_session_handle"])
    row = existing or orders_repository.insert_order(order)
    if not row:
        raise HTTPException(status_code=500, detail="Impossible d'enregistrer la commande")

    # Un rechargement de la page de succès ne doit pas vider un nouveau panier
    if not existing:
        cart_store.clear()
    logger.info(
        "checkout.confirm session=%s lines=%s buyer_id=%s existing=%s",
        session_id, len(order["lines"]), order["buyer_id"], bool(existing),
    )
    return {"status": "ok", "order": row}
