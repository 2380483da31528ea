"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. Each one pulls
the shared AuthGateway off app.state and runs one check; an AuthError
raised here is rendered by the app's exception handler, so routes
never build 401/403 responses themselves.
"""

from typing import Optional

from fastapi import Depends, Header, Request

from storefront.auth.gateway import AuthContext, AuthGateway
from storefront.auth.jwt import TokenService
from storefront.auth.sessions import SessionRegistry


def get_gateway(request: Request) -> AuthGateway:
    return request.app.state.gateway


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


async def get_auth_context(
    authorization: Optional[str] = Header(None),
    gateway: AuthGateway = Depends(get_gateway),
) -> AuthContext:
    """Mandatory auth — 401 without a token, 403 with a bad one."""
    return gateway.authenticate(authorization)


async def get_optional_auth_context(
    authorization: Optional[str] = Header(None),
    gateway: AuthGateway = Depends(get_gateway),
) -> AuthContext:
    """Soft auth — guests and bad tokens both come through as anonymous."""
    return gateway.authenticate_optional(authorization)


async def require_admin(
    ctx: AuthContext = Depends(get_auth_context),
    gateway: AuthGateway = Depends(get_gateway),
) -> AuthContext:
    return gateway.require_admin(ctx)


async def require_owner_or_admin(
    user_id: str,
    ctx: AuthContext = Depends(get_auth_context),
    gateway: AuthGateway = Depends(get_gateway),
) -> AuthContext:
    """For routes with a {user_id} path parameter."""
    return gateway.require_ownership_or_admin(ctx, user_id)
