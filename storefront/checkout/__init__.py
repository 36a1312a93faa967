"""
Module 'checkout' (feature-first): point d'entrée public.
Réunit modèles, metadata Stripe, client Stripe, passerelle et orchestrateur.
"""

from .models import ShippingDetails, CheckoutRequest, CheckoutResult, CheckoutState, GatewaySession
from .metadata import make_metadata, extract_metadata_from_session
from .stripe_client import require_stripe, create_session, retrieve_session
from .gateway import PaymentGateway, StripeGateway, to_line_items
from .service import CheckoutOrchestrator, build_order, confirm_checkout

__all__ = [
    # models
    "ShippingDetails",
    "CheckoutRequest",
    "CheckoutResult",
    "CheckoutState",
    "GatewaySession",
    # metadata
    "make_metadata",
    "extract_metadata_from_session",
    # stripe
    "require_stripe",
    "create_session",
    "retrieve_session",
    # gateway
    "PaymentGateway",
    "StripeGateway",
    "to_line_items",
    # services
    "CheckoutOrchestrator",
    "build_order",
    "confirm_checkout",
]
