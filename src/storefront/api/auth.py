"""Auth API — registration, login, token refresh, logout.

Learn: Routes for the token lifecycle:
- POST /auth/register → create a shopper account
- POST /auth/login → email/password → access + refresh tokens
- POST /auth/refresh → refresh token → rotated token pair
- POST /auth/logout → forget the stored refresh token
- GET /auth/me → current user info

Refresh only succeeds for the refresh token currently stored for the
user. Rotation is a compare-and-set, so of two refreshes racing on the
same token exactly one gets a new pair.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth.dependencies import (
    get_auth_context,
    get_registry,
    get_token_service,
)
from storefront.auth.gateway import AuthContext
from storefront.auth.jwt import TokenService
from storefront.auth.sessions import SessionRegistry
from storefront.db.engine import get_db
from storefront.errors import InvalidRefreshToken, InvalidToken, NotFound, StoreUnavailable
from storefront.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserRead,
)
from storefront.services.cart_service import CartService
from storefront.services.user_service import UserService, principal_for

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


def _users(request: Request, db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db, bcrypt_rounds=request.app.state.settings.bcrypt_rounds)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: RegisterRequest, users: UserService = Depends(_users)):
    """Create a new shopper account. Admins are created via the CLI."""
    user = await users.create_user(email=body.email, name=body.name, password=body.password)
    await users.db.commit()
    logger.info("storefront.auth.registered", user_id=str(user.id))
    return user


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    users: UserService = Depends(_users),
    tokens: TokenService = Depends(get_token_service),
    registry: SessionRegistry = Depends(get_registry),
    x_session_id: Optional[str] = Header(None),
):
    """Login with email and password → JWT token pair."""
    user = await users.authenticate(body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    principal = principal_for(user)
    pair = tokens.issue_token_pair(principal)
    await registry.store_refresh_token(principal.user_id, pair.refresh_token)

    try:
        await CartService(users.db, registry).merge_guest_cart(x_session_id, principal.user_id)
    except StoreUnavailable:
        logger.warning("storefront.cart.merge_failed", user_id=principal.user_id)

    logger.info("storefront.auth.login", user_id=principal.user_id)
    return LoginResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=UserRead.model_validate(user),
    )


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: Optional[RefreshRequest] = None,
    users: UserService = Depends(_users),
    tokens: TokenService = Depends(get_token_service),
    registry: SessionRegistry = Depends(get_registry),
):
    """Exchange the current refresh token for a new token pair."""
    presented = body.refresh_token if body else None
    if not presented:
        raise HTTPException(status_code=400, detail="Refresh token is required")

    try:
        claims = tokens.verify_refresh_token(presented)
    except InvalidToken as e:
        logger.info("storefront.auth.refresh_rejected", reason=str(e))
        raise InvalidRefreshToken()

    stored = await registry.get_stored_refresh_token(claims.user_id)
    if stored is None or stored != presented:
        logger.info("storefront.auth.refresh_rejected", reason="not current", user_id=claims.user_id)
        raise InvalidRefreshToken()

    user = await users.get(claims.user_id)
    if not user:
        raise NotFound("User not found")

    # Re-read identity from the user row so role/email changes take effect
    pair = tokens.issue_token_pair(principal_for(user))
    if not await registry.rotate_refresh_token(claims.user_id, presented, pair.refresh_token):
        logger.info("storefront.auth.refresh_rejected", reason="lost rotation", user_id=claims.user_id)
        raise InvalidRefreshToken()

    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


# ─── Logout ─────────────────────────────────────────────


@router.post("/logout", response_model=MessageResponse)
async def logout(
    ctx: AuthContext = Depends(get_auth_context),
    registry: SessionRegistry = Depends(get_registry),
):
    """Drop the stored refresh token. Succeeds even if none was stored.

    The access token itself stays valid until it expires.
    """
    await registry.remove_refresh_token(ctx.principal.user_id)
    logger.info("storefront.auth.logout", user_id=ctx.principal.user_id)
    return MessageResponse(message="Logged out successfully")


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(
    ctx: AuthContext = Depends(get_auth_context),
    users: UserService = Depends(_users),
):
    user = await users.get(ctx.principal.user_id)
    if not user:
        raise NotFound("User not found")
    return user
