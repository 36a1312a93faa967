"""
Accès aux données pour le catalogue (table 'products' + relations 'sizes', 'extras').
Les lignes sont normalisées en Product (centimes) et les lignes invalides sont rejetées ici:
le moteur de prix suppose des entrées déjà validées.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging

import storefront.infra.supabase_client as supabase_client
from storefront.catalog.models import CatalogSnapshot, Extra, Product, Size
from storefront.errors import ServiceUnavailable
from storefront.utils.money import to_cents

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, name, base_price, image, limit, sizes(id, name, price), extras(id, name, price)"

# module storefront.catalog.repository
def fetch_products_by_ids(ids: List[str]) -> List[dict]:
    """
    Récupère les produits (avec tailles et suppléments) par leurs IDs.
    - Retourne [] si ids vide.
    - ServiceUnavailable si Supabase est injoignable (ne pas confondre avec "produit introuvable").
    """
    if not ids:
        return []
    try:
        res = (
            supabase_client.get_supabase()
            .table("products")
            .select(PRODUCT_COLUMNS)
            .in_("id", [str(i) for i in ids])
            .execute()
        )
        return res.data or []
    except Exception as e:
        logger.exception("catalog.repository.fetch_products_by_ids failed ids=%s", ids)
        raise ServiceUnavailable("catalog", str(e))

def _option_cents(row: Dict[str, Any]) -> int:
    cents = to_cents(row.get("price") or 0)
    if cents < 0:
        raise ValueError(f"price_delta négatif ({cents}) pour l'option {row.get('id')}")
    return cents

def _quantity_limit(raw: Any) -> int:
    # Limite absente/nulle => 1 article
    try:
        limit = int(raw or 0)
    except (TypeError, ValueError):
        return 1
    return limit if limit > 0 else 1

def product_from_row(row: Dict[str, Any]) -> Optional[Product]:
    """
    Normalise une ligne Supabase en Product.
    - Prix décimaux convertis en centimes.
    - Retourne None (loggé) si un prix de base ou un delta est négatif ou illisible.
    """
    product_id = str(row.get("id") or "")
    if not product_id:
        return None
    try:
        base_price = to_cents(row.get("base_price") or 0)
        if base_price < 0:
            raise ValueError(f"base_price négatif ({base_price})")
        sizes = tuple(
            Size(id=str(s.get("id")), name=str(s.get("name") or ""), price_delta=_option_cents(s))
            for s in (row.get("sizes") or [])
        )
        extras = tuple(
            Extra(id=str(e.get("id")), name=str(e.get("name") or ""), price_delta=_option_cents(e))
            for e in (row.get("extras") or [])
        )
    except ValueError as e:
        logger.warning("catalog.repository produit rejeté id=%s: %s", product_id, e)
        return None
    return Product(
        id=product_id,
        name=str(row.get("name") or "Article"),
        base_price=base_price,
        image=str(row.get("image") or ""),
        quantity_limit=_quantity_limit(row.get("limit")),
        sizes=sizes,
        extras=extras,
    )

def get_catalog_snapshot(ids: Iterable[str]) -> CatalogSnapshot:
    """
    Construit un CatalogSnapshot pour les IDs demandés.
    Les produits introuvables ou rejetés sont absents du snapshot.
    """
    rows = fetch_products_by_ids(list(ids))
    products = [p for p in (product_from_row(r) for r in rows) if p is not None]
    return CatalogSnapshot(products)
