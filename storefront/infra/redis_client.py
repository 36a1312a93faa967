import os
from typing import Optional

import redis

from storefront.config import CART_REDIS_URL

_cart_redis: Optional[redis.Redis] = None

def get_cart_redis() -> redis.Redis:
    """
    Client Redis (synchrone) du stockage des paniers.
    - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
    - sinon CART_REDIS_URL
    """
    global _cart_redis
    if _cart_redis is None:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            from fakeredis import FakeRedis
            _cart_redis = FakeRedis()
        else:
            _cart_redis = redis.Redis.from_url(CART_REDIS_URL)
    return _cart_redis
