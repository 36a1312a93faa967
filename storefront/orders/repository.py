"""
Accès aux données pour les commandes (table 'orders').
Une commande est créée une fois le paiement confirmé, à partir de:
{lines, shipping, buyer_id, gateway_session_handle, total, currency}.
"""
from typing import Any, Dict, Optional
import logging

import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module storefront.orders.repository
def get_order_by_session(gateway_session_handle: str) -> Optional[dict]:
    """
    Retourne la commande déjà enregistrée pour cette session de paiement (ou None).
    Permet de rendre la confirmation idempotente (rechargement de la page de succès).
    """
    if not gateway_session_handle:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("*")
            .eq("gateway_session_handle", gateway_session_handle)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.get_order_by_session failed handle=%s", gateway_session_handle)
        return None

def insert_order(order: Dict[str, Any]) -> Optional[dict]:
    """
    Insert via service-role (bypass RLS): la commande est écrite côté serveur.
    Retourne la ligne insérée, ou None (loggé) en cas d'échec.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .insert(order)
            .execute()
        )
        rows = res.data or []
        return rows[0] if isinstance(rows, list) and rows else {"status": "ok"}
    except Exception:
        logger.exception(
            "orders.repository.insert_order failed buyer_id=%s handle=%s",
            order.get("buyer_id"),
            order.get("gateway_session_handle"),
        )
        return None
