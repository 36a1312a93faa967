"""
CartStore: propriétaire du panier de la session courante.
- Seul composant autorisé à muter le panier (add_or_increment, decrement, remove_line, clear).
- Chaque mutation réussie réécrit le panier complet dans le stockage client.
- Au démarrage, réhydrate le panier précédent; données absentes ou corrompues => panier vide.
- Les refus (limite, option inconnue) sont retournés en CartResult, jamais levés.
"""
import logging
from typing import Iterable, List, Optional

from storefront.cart.models import Cart, CartLine, CartResult
from storefront.cart.serialization import CartDecodeError, deserialize_cart, serialize_cart
from storefront.cart.storage import KeyValueStorage
from storefront.catalog.models import Extra, Product, Size
from storefront.config import CART_STORAGE_KEY
from storefront.errors import InvariantViolation, LimitExceeded

logger = logging.getLogger(__name__)


class CartStore:
    def __init__(self, storage: KeyValueStorage, key: str = CART_STORAGE_KEY):
        self._storage = storage
        self._key = key
        self._cart = self.load()

    # --- Persistance ---

    def load(self) -> Cart:
        """Lit le panier stocké; absence ou corruption => panier vide (corruption loggée)."""
        raw = self._storage.get(self._key)
        if raw is None:
            return Cart()
        try:
            return deserialize_cart(raw)
        except CartDecodeError as e:
            logger.warning("cart.store panier corrompu ignoré key=%s: %s", self._key, e)
            return Cart()

    def _commit(self, cart: Cart) -> CartResult:
        # Écriture d'abord: un stockage en échec laisse le panier courant inchangé
        self._storage.set(self._key, serialize_cart(cart))
        self._cart = cart
        return CartResult(ok=True, cart=cart)

    # --- Lecture ---

    @property
    def cart(self) -> Cart:
        return self._cart

    def snapshot(self) -> Cart:
        """État courant (immuable): sûr à conserver côté UI."""
        return self._cart

    def lines(self) -> List[CartLine]:
        return list(self._cart)

    def quantity_of(self, product_id: str) -> int:
        line = self._cart.get(product_id)
        return line.quantity if line else 0

    def total_quantity(self) -> int:
        return sum(line.quantity for line in self._cart)

    def is_empty(self) -> bool:
        return self._cart.is_empty()

    def __len__(self) -> int:
        return len(self._cart)

    # --- Mutations ---

    def add_or_increment(self, product: Product, size: Optional[Size] = None, extras: Iterable[Extra] = ()) -> CartResult:
        """
        Ajoute le produit (quantité 1) ou incrémente sa ligne de 1.
        - La configuration (taille, suppléments) est écrasée par celle de cet appel.
        - Refus sans mutation (LimitExceeded) si la quantité dépasserait product.quantity_limit.
        """
        selected_extras = _dedupe_extras(extras)
        if size is not None and size not in product.sizes:
            return self._reject(InvariantViolation("taille hors catalogue", product_id=product.id, size_id=size.id))
        for extra in selected_extras:
            if extra not in product.extras:
                return self._reject(InvariantViolation("supplément hors catalogue", product_id=product.id, extra_id=extra.id))

        current = self.quantity_of(product.id)
        if current + 1 > product.quantity_limit:
            return CartResult(ok=False, cart=self._cart, error=LimitExceeded(product.id, product.quantity_limit))

        line = CartLine(
            product_id=product.id,
            quantity=current + 1,
            selected_size=size,
            selected_extras=selected_extras,
        )
        return self._commit(self._cart.put(line))

    def decrement(self, product_id: str) -> CartResult:
        """Retire une unité; la ligne disparaît quand la quantité atteindrait 0."""
        line = self._cart.get(product_id)
        if line is None:
            return CartResult(ok=True, cart=self._cart)
        if line.quantity <= 1:
            return self._commit(self._cart.without(product_id))
        return self._commit(self._cart.put(line.with_quantity(line.quantity - 1)))

    def remove_line(self, product_id: str) -> CartResult:
        """Supprime la ligne quelle que soit sa quantité."""
        if product_id not in self._cart:
            return CartResult(ok=True, cart=self._cart)
        return self._commit(self._cart.without(product_id))

    def clear(self) -> CartResult:
        """Vide le panier (après une commande confirmée)."""
        return self._commit(Cart())

    def _reject(self, error: InvariantViolation) -> CartResult:
        logger.error("cart.store option refusée: %s context=%s", error.reason, error.context)
        return CartResult(ok=False, cart=self._cart, error=error)


def _dedupe_extras(extras: Iterable[Extra]) -> tuple:
    seen = set()
    selected = []
    for extra in extras or ():
        if extra.id in seen:
            continue
        seen.add(extra.id)
        selected.append(extra)
    return tuple(selected)
