"""
Moteur de prix pur (sans effet de bord, sans état caché).
- price_line: prix unitaire et total d'une ligne
- price_cart: sous-total, frais de livraison, total (ordre d'insertion conservé pour l'affichage)
- quote_cart: variante « résultat explicite » pour le code côté UI
Tout est calculé en centimes entiers; une contribution négative est une erreur de données.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from storefront.cart.models import Cart, CartLine
from storefront.catalog.models import CatalogSnapshot, Extra, Product, Size
from storefront.config import DELIVERY_FEE_CENTS
from storefront.errors import InvariantViolation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    name: str
    quantity: int
    unit_price: int
    line_total: int
    size: Optional[Size] = None
    extras: Tuple[Extra, ...] = ()

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
            "size": self.size.to_dict() if self.size else None,
            "extras": [e.to_dict() for e in self.extras],
        }


@dataclass(frozen=True)
class PricedCart:
    lines: Tuple[PricedLine, ...]
    subtotal: int
    delivery_fee: int
    total: int

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "total": self.total,
        }


@dataclass(frozen=True)
class PricingResult:
    ok: bool
    priced: Optional[PricedCart] = None
    error: Optional[InvariantViolation] = None


def _contribution(amount: int, **context) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvariantViolation("montant non entier", amount=amount, **context)
    if amount < 0:
        raise InvariantViolation("contribution négative", amount=amount, **context)
    return amount

def _resolve_size(line: CartLine, product: Product) -> Optional[Size]:
    if line.selected_size is None:
        return None
    for size in product.sizes:
        if size.id == line.selected_size.id:
            return size
    raise InvariantViolation("taille absente du catalogue", product_id=product.id, size_id=line.selected_size.id)

def _resolve_extras(line: CartLine, product: Product) -> Tuple[Extra, ...]:
    by_id = {e.id: e for e in product.extras}
    resolved = []
    for extra in line.selected_extras:
        current = by_id.get(extra.id)
        if current is None:
            raise InvariantViolation("supplément absent du catalogue", product_id=product.id, extra_id=extra.id)
        resolved.append(current)
    return tuple(resolved)

# module storefront.pricing.engine
def price_line(line: CartLine, product: Product) -> PricedLine:
    """
    unit_price = base_price + size.price_delta + Σ extras.price_delta
    line_total = unit_price * quantity
    Les options sont résolues sur le catalogue courant (pas sur les prix stockés dans le panier).
    """
    if line.product_id != product.id:
        raise InvariantViolation("ligne et produit incohérents", product_id=product.id, line_product_id=line.product_id)
    if not 1 <= line.quantity <= product.quantity_limit:
        raise InvariantViolation(
            "quantité hors limites", product_id=product.id, quantity=line.quantity, limit=product.quantity_limit
        )
    size = _resolve_size(line, product)
    extras = _resolve_extras(line, product)

    unit_price = _contribution(product.base_price, product_id=product.id, field="base_price")
    if size is not None:
        unit_price += _contribution(size.price_delta, product_id=product.id, size_id=size.id)
    for extra in extras:
        unit_price += _contribution(extra.price_delta, product_id=product.id, extra_id=extra.id)

    return PricedLine(
        product_id=product.id,
        name=product.name,
        quantity=line.quantity,
        unit_price=unit_price,
        line_total=unit_price * line.quantity,
        size=size,
        extras=extras,
    )

def price_cart(cart: Cart, catalog: CatalogSnapshot, delivery_fee: int = DELIVERY_FEE_CENTS) -> PricedCart:
    """
    Dérive le panier chiffré.
    - subtotal = Σ line_total ; total = subtotal + delivery_fee
    - Produit absent du catalogue => InvariantViolation (jamais de ligne ignorée silencieusement)
    """
    fee = _contribution(delivery_fee, field="delivery_fee")
    lines = tuple(price_line(line, catalog.require(line.product_id)) for line in cart)
    subtotal = sum(line.line_total for line in lines)
    return PricedCart(lines=lines, subtotal=subtotal, delivery_fee=fee, total=subtotal + fee)

def quote_cart(cart: Cart, catalog: CatalogSnapshot, delivery_fee: int = DELIVERY_FEE_CENTS) -> PricingResult:
    """Comme price_cart mais retourne l'erreur au lieu de la lever (loggée avec son contexte)."""
    try:
        return PricingResult(ok=True, priced=price_cart(cart, catalog, delivery_fee))
    except InvariantViolation as e:
        logger.error("pricing.quote_cart invariant violé: %s context=%s", e.reason, e.context)
        return PricingResult(ok=False, error=e)

def cart_quantity(cart: Cart) -> int:
    """Nombre total d'articles (badge du header)."""
    return sum(line.quantity for line in cart)
