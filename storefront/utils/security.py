from fastapi import Request
from typing import Optional, Dict, Any
import logging

import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

COOKIE_NAME = "sb_access"

def _token_from_request(request: Request) -> Optional[str]:
    # Hybride: priorité au Bearer, fallback cookie
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(COOKIE_NAME) or None

def get_user_from_access_token(access_token: str) -> Dict[str, Any]:
    """Récupère et normalise l'utilisateur depuis supabase.auth.get_user(access_token)."""
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
        }
    return user or {}

def get_optional_user(request: Request) -> Optional[Dict[str, Any]]:
    """
    Identité de l'acheteur si connecté, sinon None (checkout invité autorisé).
    - Un token invalide ou expiré n'est pas une erreur: l'acheteur est traité en invité.
    """
    token = _token_from_request(request)
    if not token:
        return None
    try:
        user = get_user_from_access_token(token)
    except Exception:
        logger.warning("security.get_optional_user token rejeté, acheteur traité en invité")
        return None
    return user if user.get("id") else None
