# module storefront.checkout.models
"""
Modèles du checkout.
- ShippingDetails: coordonnées de livraison saisies dans le formulaire
- CheckoutRequest: demande de paiement indépendante du prestataire (construite à la soumission)
- CheckoutState / CheckoutResult: machine à états d'une tentative et son issue
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, field_validator

from storefront.errors import StorefrontError
from storefront.pricing.engine import PricedCart, PricedLine

SHIPPING_FIELDS = ("phone", "address", "city", "country")
SHIPPING_FIELD_MAX_LENGTH = 200


class ShippingDetails(BaseModel):
    phone: str = ""
    address: str = ""
    city: str = ""
    country: str = ""

    @field_validator("phone", "address", "city", "country", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> str:
        return str(v or "").strip()

    def missing_fields(self) -> List[str]:
        """Champs obligatoires vides, dans l'ordre du formulaire."""
        return [name for name in SHIPPING_FIELDS if not getattr(self, name)]

    def too_long_fields(self) -> List[str]:
        return [name for name in SHIPPING_FIELDS if len(getattr(self, name)) > SHIPPING_FIELD_MAX_LENGTH]


class CheckoutPayload(BaseModel):
    shipping: ShippingDetails = ShippingDetails()


@dataclass(frozen=True)
class CheckoutRequest:
    lines: Tuple[PricedLine, ...]
    shipping: ShippingDetails
    buyer_id: Optional[str]
    subtotal: int
    delivery_fee: int
    total: int
    currency: str = "usd"

    @classmethod
    def from_priced(cls, priced: PricedCart, shipping: ShippingDetails, buyer_id: Optional[str], currency: str) -> "CheckoutRequest":
        return cls(
            lines=priced.lines,
            shipping=shipping,
            buyer_id=buyer_id,
            subtotal=priced.subtotal,
            delivery_fee=priced.delivery_fee,
            total=priced.total,
            currency=currency,
        )


@dataclass(frozen=True)
class GatewaySession:
    handle: str
    url: Optional[str] = None


class CheckoutState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    REDIRECTED = "redirected"
    FAILED = "failed"


@dataclass
class CheckoutResult:
    state: CheckoutState
    session_handle: Optional[str] = None
    redirect_url: Optional[str] = None
    error: Optional[StorefrontError] = None
    request: Optional[CheckoutRequest] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.state is CheckoutState.REDIRECTED

    @property
    def message(self) -> Optional[str]:
        return self.error.user_message if self.error else None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.session_handle, "url": self.redirect_url}
