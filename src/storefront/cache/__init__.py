"""Key-value caching layer.

Learn: A single store handle is built in create_app() and shared by
the session registry, the catalog cache, and the rate limiter. Key
namespaces (refresh_token:, session:, cart:, product:, categories:all)
are fixed so other services reading the same Redis stay compatible.
"""

from storefront.cache.store import (
    KeyValueStore,
    RateLimitResult,
    RedisKeyValueStore,
    StoreErrorPolicy,
)

__all__ = [
    "KeyValueStore",
    "RateLimitResult",
    "RedisKeyValueStore",
    "StoreErrorPolicy",
]
