"""
Passerelle de paiement vue par l'orchestrateur: create_session(request) -> GatewaySession.
- PaymentGateway: contrat opaque (seul le handle de session est inspecté)
- StripeGateway: implémentation Stripe Checkout (line_items en centimes + ligne de livraison)
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

import stripe

from storefront.checkout import stripe_client
from storefront.checkout.metadata import make_metadata
from storefront.checkout.models import CheckoutRequest, GatewaySession
from storefront.errors import GatewayError, GatewayMisconfigured

logger = logging.getLogger(__name__)

DELIVERY_LINE_NAME = "Livraison"


class PaymentGateway(ABC):
    @abstractmethod
    def create_session(self, request: CheckoutRequest) -> GatewaySession:
        """Soumet la demande; GatewayError / GatewayMisconfigured en cas d'échec"""


def _line_name(line) -> str:
    name = line.name or "Article"
    if line.size is not None:
        name = f"{name} ({line.size.name})"
    if line.extras:
        name = f"{name} + {', '.join(e.name for e in line.extras)}"
    return name

def to_line_items(request: CheckoutRequest) -> List[Dict[str, Any]]:
    """
    Construit les line_items Stripe à partir de la demande chiffrée.
    - unit_amount = prix unitaire en centimes (taille et suppléments inclus)
    - Frais de livraison non nuls => ligne dédiée de quantité 1
    Le total facturé par Stripe est donc égal à request.total.
    """
    line_items: List[Dict[str, Any]] = [
        {
            "quantity": line.quantity,
            "price_data": {
                "currency": request.currency,
                "unit_amount": line.unit_price,
                "product_data": {"name": _line_name(line)},
            },
        }
        for line in request.lines
    ]
    if request.delivery_fee > 0:
        line_items.append({
            "quantity": 1,
            "price_data": {
                "currency": request.currency,
                "unit_amount": request.delivery_fee,
                "product_data": {"name": DELIVERY_LINE_NAME},
            },
        })
    return line_items


class StripeGateway(PaymentGateway):
    def __init__(self, success_url: str, cancel_url: str):
        self.success_url = success_url
        self.cancel_url = cancel_url

    def create_session(self, request: CheckoutRequest) -> GatewaySession:
        try:
            metadata = make_metadata(request)
        except ValueError as e:
            raise GatewayError(str(e))
        try:
            session = stripe_client.create_session(
                line_items=to_line_items(request),
                mode="payment",
                success_url=self.success_url,
                cancel_url=self.cancel_url,
                metadata=metadata,
                client_reference_id=request.buyer_id,
            )
        except (stripe.AuthenticationError, stripe.PermissionError) as e:
            raise GatewayMisconfigured(str(e))
        except stripe.StripeError as e:
            raise GatewayError(str(e))

        handle = (session or {}).get("id")
        if not handle:
            raise GatewayError("session Stripe sans identifiant")
        return GatewaySession(handle=str(handle), url=session.get("url"))
