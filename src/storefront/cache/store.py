"""Expiring key → JSON value store.

Learn: Every value is JSON-serialized on write and parsed on read, so
callers hand in plain dicts, lists, and strings. Each operation takes
an explicit StoreErrorPolicy:

- FAIL: a Redis outage raises StoreUnavailable to the caller
- DEGRADE: the outage is logged and a neutral answer comes back
  (cache miss, False, -1, or a permissive rate-limit result)

Reads default to DEGRADE, writes default to FAIL. Callers that want
the other behaviour pass on_error explicitly.
"""

import enum
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError, WatchError

from storefront.errors import StoreUnavailable

logger = structlog.get_logger()


class StoreErrorPolicy(str, enum.Enum):
    FAIL = "fail"
    DEGRADE = "degrade"


@dataclass(frozen=True)
class RateLimitResult:
    count: int
    remaining: int
    reset_seconds: int
    limited: bool


class KeyValueStore(ABC):
    """Abstract expiring key/value store."""

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: Optional[int] = None,
        on_error: StoreErrorPolicy = StoreErrorPolicy.FAIL,
    ) -> None: ...

    @abstractmethod
    async def get(
        self, key: str, on_error: StoreErrorPolicy = StoreErrorPolicy.DEGRADE
    ) -> Any: ...

    @abstractmethod
    async def delete(
        self, key: str, on_error: StoreErrorPolicy = StoreErrorPolicy.FAIL
    ) -> None: ...

    @abstractmethod
    async def exists(
        self, key: str, on_error: StoreErrorPolicy = StoreErrorPolicy.DEGRADE
    ) -> bool: ...

    @abstractmethod
    async def expire(
        self,
        key: str,
        ttl_seconds: int,
        on_error: StoreErrorPolicy = StoreErrorPolicy.FAIL,
    ) -> bool: ...

    @abstractmethod
    async def ttl(
        self, key: str, on_error: StoreErrorPolicy = StoreErrorPolicy.DEGRADE
    ) -> int: ...

    @abstractmethod
    async def compare_and_set(
        self,
        key: str,
        expected: Any,
        value: Any,
        ttl_seconds: Optional[int] = None,
        on_error: StoreErrorPolicy = StoreErrorPolicy.FAIL,
    ) -> bool: ...

    @abstractmethod
    async def increment_counter(
        self,
        key: str,
        window_seconds: int,
        limit: int,
        on_error: StoreErrorPolicy = StoreErrorPolicy.DEGRADE,
    ) -> RateLimitResult: ...

    @abstractmethod
    async def ping(self) -> bool: ...

    @abstractmethod
    async def close(self) -> None: ...


def _dumps(value: Any) -> str:
    return json.dumps(value)


def _check_ttl(ttl_seconds: Optional[int]) -> None:
    if ttl_seconds is not None and ttl_seconds <= 0:
        raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")


def _loads(raw: Optional[str]) -> Any:
    """Parse a stored value; anything unparseable reads as a miss."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return None


class RedisKeyValueStore(KeyValueStore):
    """KeyValueStore backed by a redis.asyncio client.

    The client must be created with decode_responses=True.
    """

    def __init__(self, client: aioredis.Redis):
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStore":
        """Build the store around a pooled client. Does not connect yet."""
        client = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client)

    @property
    def client(self) -> aioredis.Redis:
        return self._redis

    def _unavailable(
        self, operation: str, key: str, error: Exception, on_error: StoreErrorPolicy
    ) -> None:
        logger.warning(
            "storefront.store.unavailable",
            operation=operation,
            key=key,
            policy=on_error.value,
            error=str(error),
        )
        if on_error is StoreErrorPolicy.FAIL:
            raise StoreUnavailable(operation, key) from error

    async def set(self, key, value, ttl_seconds=None, on_error=StoreErrorPolicy.FAIL):
        _check_ttl(ttl_seconds)
        payload = _dumps(value)
        try:
            if ttl_seconds is not None:
                await self._redis.set(key, payload, ex=ttl_seconds)
            else:
                await self._redis.set(key, payload)
        except (RedisError, OSError) as e:
            self._unavailable("set", key, e, on_error)

    async def get(self, key, on_error=StoreErrorPolicy.DEGRADE):
        try:
            raw = await self._redis.get(key)
        except (RedisError, OSError) as e:
            self._unavailable("get", key, e, on_error)
            return None
        return _loads(raw)

    async def delete(self, key, on_error=StoreErrorPolicy.FAIL):
        try:
            await self._redis.delete(key)
        except (RedisError, OSError) as e:
            self._unavailable("delete", key, e, on_error)

    async def exists(self, key, on_error=StoreErrorPolicy.DEGRADE):
        try:
            return await self._redis.exists(key) == 1
        except (RedisError, OSError) as e:
            self._unavailable("exists", key, e, on_error)
            return False

    async def expire(self, key, ttl_seconds, on_error=StoreErrorPolicy.FAIL):
        _check_ttl(ttl_seconds)
        try:
            return bool(await self._redis.expire(key, ttl_seconds))
        except (RedisError, OSError) as e:
            self._unavailable("expire", key, e, on_error)
            return False

    async def ttl(self, key, on_error=StoreErrorPolicy.DEGRADE):
        try:
            remaining = await self._redis.ttl(key)
        except (RedisError, OSError) as e:
            self._unavailable("ttl", key, e, on_error)
            return -1
        # Redis answers -2 for a missing key and -1 for no expiry
        return remaining if remaining >= 0 else -1

    async def compare_and_set(
        self, key, expected, value, ttl_seconds=None, on_error=StoreErrorPolicy.FAIL
    ):
        """Write value only if the current value equals expected.

        Learn: WATCH makes the MULTI/EXEC block abort if another client
        touched the key between our read and our write. A lost race
        comes back as False, the same as a plain mismatch.
        """
        _check_ttl(ttl_seconds)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                current = _loads(await pipe.get(key))
                if current != expected:
                    await pipe.unwatch()
                    return False
                pipe.multi()
                if ttl_seconds is not None:
                    pipe.set(key, _dumps(value), ex=ttl_seconds)
                else:
                    pipe.set(key, _dumps(value))
                await pipe.execute()
                return True
        except WatchError:
            logger.info("storefront.store.cas_conflict", key=key)
            return False
        except (RedisError, OSError) as e:
            self._unavailable("compare_and_set", key, e, on_error)
            return False

    async def increment_counter(
        self, key, window_seconds, limit, on_error=StoreErrorPolicy.DEGRADE
    ):
        try:
            count = await self._redis.incr(key)
            if count == 1:
                await self._redis.expire(key, window_seconds)
            reset = await self._redis.ttl(key)
            if reset == -1:
                # Counter survived without a window (expire lost after incr)
                await self._redis.expire(key, window_seconds)
                reset = window_seconds
        except (RedisError, OSError) as e:
            self._unavailable("increment_counter", key, e, on_error)
            return RateLimitResult(
                count=0, remaining=limit, reset_seconds=window_seconds, limited=False
            )
        return RateLimitResult(
            count=count,
            remaining=max(0, limit - count),
            reset_seconds=max(reset, 0),
            limited=count > limit,
        )

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except (RedisError, OSError) as e:
            logger.warning("storefront.store.ping_failed", error=str(e))
            return False

    async def close(self) -> None:
        await self._redis.aclose()
