# module storefront.catalog.models
"""
Instantané du catalogue (lecture seule pour la durée d'une requête).
- Size / Extra: option tarifaire (price_delta en centimes)
- Product: prix de base en centimes, limite de quantité, tailles et suppléments
- CatalogSnapshot: mapping immuable product_id -> Product
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from storefront.errors import InvariantViolation


@dataclass(frozen=True)
class Size:
    id: str
    name: str
    price_delta: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "price_delta": self.price_delta}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Size":
        return cls(id=str(data["id"]), name=str(data.get("name") or ""), price_delta=int(data.get("price_delta") or 0))


@dataclass(frozen=True)
class Extra:
    id: str
    name: str
    price_delta: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "price_delta": self.price_delta}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Extra":
        return cls(id=str(data["id"]), name=str(data.get("name") or ""), price_delta=int(data.get("price_delta") or 0))


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    base_price: int
    image: str = ""
    quantity_limit: int = 1
    sizes: Tuple[Size, ...] = field(default_factory=tuple)
    extras: Tuple[Extra, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "base_price": self.base_price,
            "image": self.image,
            "quantity_limit": self.quantity_limit,
            "sizes": [s.to_dict() for s in self.sizes],
            "extras": [e.to_dict() for e in self.extras],
        }


class CatalogSnapshot(Mapping[str, Product]):
    """Vue en lecture seule des produits nécessaires à une dérivation de prix."""

    def __init__(self, products: Iterable[Product] = ()):
        self._products = MappingProxyType({p.id: p for p in products})

    def __getitem__(self, product_id: str) -> Product:
        return self._products[product_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def require(self, product_id: str) -> Product:
        """Produit obligatoire: son absence est une erreur de données, pas une ligne ignorée."""
        product = self._products.get(product_id)
        if product is None:
            raise InvariantViolation("produit absent du catalogue", product_id=product_id)
        return product

    @staticmethod
    def find_size(product: Product, size_id: Optional[str]) -> Optional[Size]:
        if not size_id:
            return None
        for size in product.sizes:
            if size.id == str(size_id):
                return size
        raise InvariantViolation("taille inconnue pour ce produit", product_id=product.id, size_id=size_id)

    @staticmethod
    def find_extras(product: Product, extra_ids: Iterable[str]) -> Tuple[Extra, ...]:
        by_id = {e.id: e for e in product.extras}
        selected = []
        seen = set()
        for extra_id in extra_ids or ():
            extra_id = str(extra_id)
            if extra_id in seen:
                continue
            extra = by_id.get(extra_id)
            if extra is None:
                raise InvariantViolation("supplément inconnu pour ce produit", product_id=product.id, extra_id=extra_id)
            seen.add(extra_id)
            selected.append(extra)
        return tuple(selected)
