import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from storefront.utils.dependencies import get_catalog_provider

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/catalog", tags=["Catalog API"])

# module storefront.catalog.views
@router.get("/products")
def get_products_by_ids(ids: str = "", catalog_provider=Depends(get_catalog_provider)) -> Dict[str, Any]:
    """
    Retourne les produits {id, name, base_price, image, quantity_limit, sizes, extras} pour hydrater le panier.
    - Paramètre: ids séparés par des virgules.
    - Montants en centimes; les produits introuvables sont simplement absents.
    - 503 si le catalogue est injoignable.
    """
    id_list = [i.strip() for i in (ids or "").split(",") if i.strip()]
    if not id_list:
        return {"products": []}
    catalog = catalog_provider(id_list)
    return {"products": [catalog[pid].to_dict() for pid in id_list if pid in catalog]}
