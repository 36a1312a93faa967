# storefront.config
from pathlib import Path
import logging
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

logger = logging.getLogger(__name__)

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe), sécurité cookies, CORS/hosts
- Expose les constantes du panier (clé de stockage, frais de livraison en centimes)
- Fournit les chemins de redirection du checkout
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _parse_cents(raw: str, default: int) -> int:
    """
    Lit un montant en centimes (entier >= 0).
    - Valeur absente: default
    - Valeur invalide ou négative: default (loggé)
    """
    value = _clean_env(raw)
    if not value:
        return default
    try:
        cents = int(value)
    except ValueError:
        logger.warning("config: montant invalide=%r, utilisation de %s", value, default)
        return default
    if cents < 0:
        logger.warning("config: montant négatif=%s, utilisation de %s", cents, default)
        return default
    return cents

# Supabase: source du catalogue et des commandes
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies / sessions
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
SESSION_SECRET_KEY = _clean_env(os.getenv("SESSION_SECRET_KEY") or "replace_me_with_a_long_random_secret")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Stripe: clé secrète (checkout hébergé, pas de clé publique côté serveur)
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")

# Panier / tarification
CART_STORAGE_KEY = _clean_env(os.getenv("CART_STORAGE_KEY") or "cartItems")
CHECKOUT_CURRENCY = _clean_env(os.getenv("CHECKOUT_CURRENCY") or "usd").lower()
DELIVERY_FEE_CENTS = _parse_cents(os.getenv("DELIVERY_FEE_CENTS") or "", 500)

# Stockage du panier: Redis côté serveur, la session ne porte qu'un identifiant de panier
# CART_BACKEND=session conserve le panier entier dans le cookie (développement sans Redis)
CART_BACKEND = _clean_env(os.getenv("CART_BACKEND") or "redis").lower()
CART_REDIS_URL = _clean_env(os.getenv("CART_REDIS_URL") or os.getenv("RATE_LIMIT_REDIS_URL") or "redis://127.0.0.1:6379/0")
CART_TTL_SECONDS = int(_clean_env(os.getenv("CART_TTL_SECONDS") or "") or 7 * 24 * 3600)

# Pages de succès/annulation du checkout
CHECKOUT_SUCCESS_PATH = os.getenv("CHECKOUT_SUCCESS_PATH", "/checkout/success")
CHECKOUT_CANCEL_PATH = os.getenv("CHECKOUT_CANCEL_PATH", "/cart")

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000")
