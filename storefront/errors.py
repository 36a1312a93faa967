"""
Erreurs métier de la boutique (panier, tarification, checkout).

Taxonomie:
- récupérables par l'utilisateur: LimitExceeded, EmptyCartError, ValidationError
- externes transitoires: GatewayError, ServiceUnavailable
- erreurs programme/données: InvariantViolation, GatewayMisconfigured
  (loggées avec le contexte complet, jamais montrées telles quelles)
"""
from typing import Any, Dict, Iterable, Optional

GENERIC_FAILURE_MESSAGE = "Une erreur est survenue, veuillez réessayer plus tard."


class StorefrontError(Exception):
    """Base: porte un code HTTP équivalent et un message destiné à l'utilisateur."""

    status_code = 500
    user_recoverable = False

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or GENERIC_FAILURE_MESSAGE
        self.context: Dict[str, Any] = context
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        return self.message


class LimitExceeded(StorefrontError):
    status_code = 409
    user_recoverable = True

    def __init__(self, product_id: str, limit: int):
        super().__init__(
            f"Impossible d'ajouter plus de {limit} article(s) au panier.",
            product_id=product_id,
            limit=limit,
        )
        self.product_id = product_id
        self.limit = limit


class EmptyCartError(StorefrontError):
    status_code = 400
    user_recoverable = True

    def __init__(self):
        super().__init__("Panier vide")


class ValidationError(StorefrontError):
    status_code = 400
    user_recoverable = True

    def __init__(self, fields: Iterable[str], message: Optional[str] = None):
        self.fields = list(fields)
        super().__init__(message or f"Champs obligatoires manquants: {', '.join(self.fields)}", fields=self.fields)


class ServiceUnavailable(StorefrontError):
    """Dépendance d'infrastructure injoignable (catalogue, stockage du panier): réessayable."""

    status_code = 503
    user_recoverable = True

    def __init__(self, service: str, reason: str = ""):
        super().__init__("Service momentanément indisponible, veuillez réessayer.", service=service, reason=reason)
        self.service = service
        self.reason = reason


class GatewayError(StorefrontError):
    status_code = 502
    user_recoverable = True

    def __init__(self, reason: str = ""):
        super().__init__("Le paiement n'a pas pu être initié, veuillez réessayer.", reason=reason)
        self.reason = reason


class GatewayMisconfigured(StorefrontError):
    status_code = 500

    def __init__(self, reason: str = ""):
        super().__init__(GENERIC_FAILURE_MESSAGE, reason=reason)
        self.reason = reason


class InvariantViolation(StorefrontError):
    status_code = 500

    def __init__(self, reason: str, **context: Any):
        super().__init__(GENERIC_FAILURE_MESSAGE, reason=reason, **context)
        self.reason = reason

    def __str__(self) -> str:
        return self.reason
