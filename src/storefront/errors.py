"""Error taxonomy shared by the core and the HTTP boundary.

Learn: The core never builds HTTP responses. It raises one of these,
and storefront.api.errors maps each to a status code and a stable
message string that clients match on.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for all application errors."""


class ConfigurationError(StorefrontError):
    """Missing or invalid configuration detected at startup."""


class InvalidToken(StorefrontError):
    """Signature mismatch, malformed payload, wrong token type, or expiry."""


class StoreUnavailable(StorefrontError):
    """The backing key-value store could not be reached."""

    def __init__(self, operation: str, key: str):
        super().__init__(f"Key-value store unavailable during {operation} on {key!r}")
        self.operation = operation
        self.key = key


class NotFound(StorefrontError):
    """A referenced entity does not exist."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message)
        self.message = message


class Conflict(StorefrontError):
    """The request clashes with existing state (duplicate SKU, empty cart, stock)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ─── Authentication / authorization ─────────────────────


class AuthError(StorefrontError):
    """Terminal authentication or authorization failure for a request."""

    status_code: int = 403
    code: str = "AuthError"
    message: str = "Authentication failed"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class AccessTokenRequired(AuthError):
    status_code = 401
    code = "AccessTokenRequired"
    message = "Access token required"


class InvalidOrExpiredToken(AuthError):
    code = "InvalidOrExpiredToken"
    message = "Invalid or expired token"


class AdminAccessRequired(AuthError):
    code = "AdminAccessRequired"
    message = "Admin access required"


class AccessDenied(AuthError):
    code = "AccessDenied"
    message = "Access denied"


class InvalidRefreshToken(AuthError):
    code = "InvalidRefreshToken"
    message = "Invalid refresh token"
