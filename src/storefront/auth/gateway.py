"""Request-level authentication and coarse authorization.

Learn: The gateway never touches a response. Each check either
returns an AuthContext or raises an AuthError subclass; the HTTP
layer (storefront.api.errors) turns those into 401/403 bodies.

Per request: no token → AccessTokenRequired; token present but bad
or expired → InvalidOrExpiredToken; otherwise the Principal is
attached to the context and the request continues.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from storefront.auth.jwt import Principal, TokenService
from storefront.errors import (
    AccessDenied,
    AccessTokenRequired,
    AdminAccessRequired,
    InvalidOrExpiredToken,
    InvalidToken,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthContext:
    """Identity attached to a request. principal is None for guests."""

    principal: Optional[Principal] = None
    token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an `Authorization: Bearer <token>` header."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


class AuthGateway:
    def __init__(self, tokens: TokenService):
        self.tokens = tokens

    def authenticate(self, authorization: Optional[str]) -> AuthContext:
        token = extract_bearer_token(authorization)
        if not token:
            raise AccessTokenRequired()
        try:
            principal = self.tokens.verify_access_token(token)
        except InvalidToken as e:
            logger.info("storefront.auth.rejected", reason=str(e))
            raise InvalidOrExpiredToken()
        return AuthContext(principal=principal, token=token)

    def authenticate_optional(self, authorization: Optional[str]) -> AuthContext:
        """Like authenticate, but a missing or bad token yields a guest context."""
        token = extract_bearer_token(authorization)
        if not token:
            return AuthContext()
        try:
            return AuthContext(principal=self.tokens.verify_access_token(token), token=token)
        except InvalidToken:
            return AuthContext()

    def require_admin(self, ctx: AuthContext) -> AuthContext:
        if ctx.principal is None or not ctx.principal.is_admin:
            raise AdminAccessRequired()
        return ctx

    def require_ownership_or_admin(
        self, ctx: AuthContext, target_user_id: str
    ) -> AuthContext:
        principal = ctx.principal
        if principal is None:
            raise AccessDenied()
        if principal.is_admin or principal.user_id == str(target_user_id):
            return ctx
        raise AccessDenied()
