"""
Stockage durable côté client du panier: un simple store clé/valeur d'octets.
- InMemoryStorage: tests et scripts
- SessionStorage: session signée starlette (cookie), limitée à ~4 Ko: développement uniquement
- RedisStorage: panier côté serveur, seul un identifiant de panier voyage dans le cookie
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, MutableMapping, Optional

import redis

from storefront.errors import ServiceUnavailable


class KeyValueStorage(ABC):
    """Contrat minimal: get(key) -> bytes | None, set(key, bytes)."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Retourne la valeur brute ou None si absente"""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Écrit la valeur brute (écrase l'existante)"""


class InMemoryStorage(KeyValueStorage):
    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)


class SessionStorage(KeyValueStorage):
    """
    Adapte request.session (SessionMiddleware) au contrat clé/valeur.
    La session est sérialisée en JSON: les octets y sont stockés en texte UTF-8.
    """

    def __init__(self, session: MutableMapping[str, Any]):
        self._session = session

    def get(self, key: str) -> Optional[bytes]:
        value = self._session.get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value
        if isinstance(value, str):
            return value.encode("utf-8")
        # Valeur d'un autre type (ancien format): laisser le décodeur la rejeter
        return repr(value).encode("utf-8")

    def set(self, key: str, value: bytes) -> None:
        self._session[key] = value.decode("utf-8")


class RedisStorage(KeyValueStorage):
    """
    Stockage Redis espacé par panier: clé "cart:<cart_id>:<key>", expirée après ttl secondes
    d'inactivité (chaque écriture renouvelle l'expiration).
    Redis injoignable => ServiceUnavailable("cart_storage").
    """

    def __init__(self, client: "redis.Redis", cart_id: str, ttl: Optional[int] = None):
        self._client = client
        self._cart_id = cart_id
        self._ttl = ttl

    def _name(self, key: str) -> str:
        return f"cart:{self._cart_id}:{key}"

    def get(self, key: str) -> Optional[bytes]:
        try:
            value = self._client.get(self._name(key))
        except redis.RedisError as e:
            raise ServiceUnavailable("cart_storage", str(e))
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    def set(self, key: str, value: bytes) -> None:
        try:
            self._client.set(self._name(key), bytes(value), ex=self._ttl or None)
        except redis.RedisError as e:
            raise ServiceUnavailable("cart_storage", str(e))
