"""Per-principal state kept in the key-value store.

Learn: Only the latest refresh token per user is stored, under
refresh_token:<user_id>. Storing a new one overwrites the old, which
is what invalidates it: one active refresh token per user.

Carts and session blobs live here too. A cart is keyed by user id once
the shopper is logged in, or by an anonymous session id before that,
and does not care whether the shopper's tokens are still valid.
"""

from typing import Any, Optional

from storefront.cache.store import KeyValueStore

DEFAULT_REFRESH_TTL_SECONDS = 7 * 24 * 60 * 60
DEFAULT_CART_TTL_SECONDS = 24 * 60 * 60
DEFAULT_SESSION_TTL_SECONDS = 60 * 60


def refresh_token_key(principal_id: str) -> str:
    return f"refresh_token:{principal_id}"


def cart_key(owner_id: str) -> str:
    return f"cart:{owner_id}"


def session_key(session_id: str) -> str:
    return f"session:{session_id}"


def _or_default(ttl_seconds: Optional[int], default: int) -> int:
    return default if ttl_seconds is None else ttl_seconds


class SessionRegistry:
    """Refresh tokens, carts, and session blobs on top of a KeyValueStore."""

    def __init__(
        self,
        store: KeyValueStore,
        refresh_ttl_seconds: int = DEFAULT_REFRESH_TTL_SECONDS,
        cart_ttl_seconds: int = DEFAULT_CART_TTL_SECONDS,
        session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
    ):
        self.store = store
        self.refresh_ttl_seconds = refresh_ttl_seconds
        self.cart_ttl_seconds = cart_ttl_seconds
        self.session_ttl_seconds = session_ttl_seconds

    # ─── Refresh tokens ─────────────────────────────────

    async def store_refresh_token(self, principal_id: str, token: str) -> None:
        await self.store.set(
            refresh_token_key(principal_id), token, self.refresh_ttl_seconds
        )

    async def get_stored_refresh_token(self, principal_id: str) -> Optional[str]:
        stored = await self.store.get(refresh_token_key(principal_id))
        return stored if isinstance(stored, str) else None

    async def remove_refresh_token(self, principal_id: str) -> None:
        await self.store.delete(refresh_token_key(principal_id))

    async def rotate_refresh_token(
        self, principal_id: str, presented: str, replacement: str
    ) -> bool:
        """Swap presented for replacement only if presented is still current.

        Two refreshes racing on the same token: one wins, the other
        gets False and must be rejected.
        """
        return await self.store.compare_and_set(
            refresh_token_key(principal_id),
            presented,
            replacement,
            self.refresh_ttl_seconds,
        )

    # ─── Carts ──────────────────────────────────────────

    async def set_cart(
        self, owner_id: str, cart: dict, ttl_seconds: Optional[int] = None
    ) -> None:
        await self.store.set(
            cart_key(owner_id), cart, _or_default(ttl_seconds, self.cart_ttl_seconds)
        )

    async def get_cart(self, owner_id: str) -> Optional[dict]:
        cart = await self.store.get(cart_key(owner_id))
        return cart if isinstance(cart, dict) else None

    async def delete_cart(self, owner_id: str) -> None:
        await self.store.delete(cart_key(owner_id))

    async def extend_cart(self, owner_id: str, ttl_seconds: Optional[int] = None) -> bool:
        return await self.store.expire(
            cart_key(owner_id), _or_default(ttl_seconds, self.cart_ttl_seconds)
        )

    # ─── Session blobs ──────────────────────────────────

    async def set_session(
        self, session_id: str, data: Any, ttl_seconds: Optional[int] = None
    ) -> None:
        await self.store.set(
            session_key(session_id), data, _or_default(ttl_seconds, self.session_ttl_seconds)
        )

    async def get_session(self, session_id: str) -> Any:
        return await self.store.get(session_key(session_id))

    async def delete_session(self, session_id: str) -> None:
        await self.store.delete(session_key(session_id))

    async def extend_session(
        self, session_id: str, ttl_seconds: Optional[int] = None
    ) -> bool:
        return await self.store.expire(
            session_key(session_id), _or_default(ttl_seconds, self.session_ttl_seconds)
        )
