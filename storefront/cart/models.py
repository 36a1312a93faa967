# module storefront.cart.models
"""
Modèles du panier.
- CartLine: configuration + quantité d'un produit (au plus une ligne par produit)
- Cart: collection ordonnée (ordre d'insertion) et immuable de CartLine, indexée par product_id
- CartResult: résultat explicite d'une opération du panier (pas d'exception vers l'UI)
"""
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from storefront.catalog.models import Extra, Size
from storefront.errors import StorefrontError


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int = 1
    selected_size: Optional[Size] = None
    selected_extras: Tuple[Extra, ...] = ()

    def with_quantity(self, quantity: int) -> "CartLine":
        return replace(self, quantity=quantity)


class Cart:
    """
    Panier immuable: chaque mutation du CartStore produit un nouveau Cart.
    Un snapshot lu par l'UI n'est donc jamais modifié après coup.
    """

    def __init__(self, lines: Iterable[CartLine] = ()):
        self._lines: Dict[str, CartLine] = {}
        for line in lines:
            if line.product_id in self._lines:
                raise ValueError(f"Ligne en double pour le produit {line.product_id}")
            self._lines[line.product_id] = line

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._lines

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cart):
            return NotImplemented
        return list(self) == list(other)

    def __repr__(self) -> str:
        return f"Cart({list(self)!r})"

    def get(self, product_id: str) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def product_ids(self) -> List[str]:
        return list(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def put(self, line: CartLine) -> "Cart":
        """Ajoute ou remplace la ligne (une ligne existante garde sa position)."""
        lines = dict(self._lines)
        lines[line.product_id] = line
        return Cart(lines.values())

    def without(self, product_id: str) -> "Cart":
        return Cart(line for pid, line in self._lines.items() if pid != product_id)


@dataclass(frozen=True)
class CartResult:
    ok: bool
    cart: Cart
    error: Optional[StorefrontError] = None

    @property
    def message(self) -> Optional[str]:
        return self.error.user_message if self.error else None
