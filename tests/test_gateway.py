"""AuthGateway: per-request authentication and role/ownership checks."""

import pytest

from storefront.auth.gateway import AuthContext, AuthGateway, extract_bearer_token
from storefront.auth.jwt import Principal, TokenService
from storefront.errors import (
    AccessDenied,
    AccessTokenRequired,
    AdminAccessRequired,
    InvalidOrExpiredToken,
)

SHOPPER = Principal(user_id="u1", email="shopper@example.com", role="user")
ADMIN = Principal(user_id="a1", email="admin@example.com", role="admin")


@pytest.fixture()
def tokens():
    return TokenService("access-secret", "refresh-secret")


@pytest.fixture()
def gateway(tokens):
    return AuthGateway(tokens)


@pytest.mark.parametrize(
    "header,expected",
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer abc", "abc"),
        ("Basic dXNlcjpwYXNz", None),
        ("Bearer", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


def test_authenticate_attaches_principal(gateway, tokens):
    token = tokens.issue_access_token(SHOPPER)
    ctx = gateway.authenticate(f"Bearer {token}")
    assert ctx.principal == SHOPPER
    assert ctx.token == token
    assert ctx.is_authenticated


def test_missing_token_is_401(gateway):
    with pytest.raises(AccessTokenRequired) as exc:
        gateway.authenticate(None)
    assert exc.value.status_code == 401
    assert exc.value.message == "Access token required"


def test_bad_token_is_403(gateway):
    with pytest.raises(InvalidOrExpiredToken) as exc:
        gateway.authenticate("Bearer nonsense")
    assert exc.value.status_code == 403
    assert exc.value.message == "Invalid or expired token"


def test_refresh_token_cannot_authenticate_requests(gateway, tokens):
    with pytest.raises(InvalidOrExpiredToken):
        gateway.authenticate(f"Bearer {tokens.issue_refresh_token(SHOPPER)}")


def test_optional_authentication(gateway, tokens):
    assert gateway.authenticate_optional(None) == AuthContext()
    assert gateway.authenticate_optional("Bearer nonsense").principal is None
    token = tokens.issue_access_token(SHOPPER)
    assert gateway.authenticate_optional(f"Bearer {token}").principal == SHOPPER


def test_require_admin(gateway):
    admin_ctx = AuthContext(principal=ADMIN)
    assert gateway.require_admin(admin_ctx) is admin_ctx
    with pytest.raises(AdminAccessRequired):
        gateway.require_admin(AuthContext(principal=SHOPPER))
    with pytest.raises(AdminAccessRequired):
        gateway.require_admin(AuthContext())


def test_require_ownership_or_admin(gateway):
    own = AuthContext(principal=SHOPPER)
    assert gateway.require_ownership_or_admin(own, "u1") is own
    assert gateway.require_ownership_or_admin(AuthContext(principal=ADMIN), "u1")
    with pytest.raises(AccessDenied) as exc:
        gateway.require_ownership_or_admin(own, "someone-else")
    assert exc.value.message == "Access denied"
    with pytest.raises(AccessDenied):
        gateway.require_ownership_or_admin(AuthContext(), "u1")
