"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
- Access token: short-lived (15min), used for API calls
- Refresh token: long-lived (7 days), used only to mint a new pair

Each kind is signed with its own secret, so a leaked access secret
cannot forge refresh tokens. Claims carry userId, email, and role so
a verified token is enough to rebuild the Principal without a lookup.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from storefront.config import Settings
from storefront.errors import ConfigurationError, InvalidToken

ACCESS = "access"
REFRESH = "refresh"

ROLES = ("user", "admin")


@dataclass(frozen=True)
class Principal:
    """Authenticated identity carried inside every token."""

    user_id: str
    email: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """Issues and verifies access/refresh tokens for a Principal."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
    ):
        if not access_secret or not refresh_secret:
            raise ConfigurationError("JWT access and refresh secrets must both be set")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            access_secret=settings.jwt_secret,
            refresh_secret=settings.jwt_refresh_secret,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
            algorithm=settings.jwt_algorithm,
        )

    # ─── Issue ──────────────────────────────────────────

    def _issue(
        self, principal: Principal, token_type: str, secret: str, ttl: timedelta
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "userId": principal.user_id,
            "email": principal.email,
            "role": principal.role,
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def issue_access_token(self, principal: Principal) -> str:
        return self._issue(principal, ACCESS, self._access_secret, self.access_ttl)

    def issue_refresh_token(self, principal: Principal) -> str:
        return self._issue(principal, REFRESH, self._refresh_secret, self.refresh_ttl)

    def issue_token_pair(self, principal: Principal) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(principal),
            refresh_token=self.issue_refresh_token(principal),
        )

    # ─── Verify ─────────────────────────────────────────

    def _verify(self, token: Optional[str], token_type: str, secret: str) -> Principal:
        """Decode a token and rebuild its Principal.

        Raises InvalidToken on a bad signature, expiry, a token of the
        other type, or claims that do not describe a Principal.
        """
        if not token:
            raise InvalidToken("Token is empty")
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidToken("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidToken(f"Invalid token: {e}")

        if payload.get("type") != token_type:
            raise InvalidToken(f"Expected a {token_type} token")

        user_id = payload.get("userId")
        email = payload.get("email")
        role = payload.get("role")
        if not isinstance(user_id, str) or not isinstance(email, str) or role not in ROLES:
            raise InvalidToken("Malformed token payload")
        return Principal(user_id=user_id, email=email, role=role)

    def verify_access_token(self, token: Optional[str]) -> Principal:
        return self._verify(token, ACCESS, self._access_secret)

    def verify_refresh_token(self, token: Optional[str]) -> Principal:
        return self._verify(token, REFRESH, self._refresh_secret)
