# tests/test_tokens.py
from datetime import timedelta

import pytest

from storefront.core.errors import InternalError, InvalidToken, TokenExpired
from storefront.core.security import ACCESS, REFRESH, TokenService, hash_password, verify_password
from storefront.models.enums import UserRole


def test_access_token_roundtrip_keeps_claims(tokens):
    token = tokens.issue_access_token(7, "a@x.com", UserRole.SELLER)
    claims = tokens.verify(token)
    assert (claims.user_id, claims.email, claims.role, claims.type) == (7, "a@x.com", UserRole.SELLER, ACCESS)


def test_refresh_token_carries_refresh_type(tokens):
    claims = tokens.verify(tokens.issue_refresh_token(1, "a@x.com", UserRole.CUSTOMER))
    assert claims.type == REFRESH


def test_expired_token_is_distinguished_from_invalid():
    expired = TokenService(secret="test-secret", access_ttl=timedelta(seconds=-5))
    token = expired.issue_access_token(1, "a@x.com", UserRole.CUSTOMER)
    with pytest.raises(TokenExpired):
        expired.verify(token)


def test_wrong_secret_is_invalid(tokens):
    other = TokenService(secret="another-secret")
    token = other.issue_access_token(1, "a@x.com", UserRole.CUSTOMER)
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_wrong_audience_is_invalid(tokens):
    other = TokenService(secret="test-secret", audience="someone-else")
    token = other.issue_access_token(1, "a@x.com", UserRole.CUSTOMER)
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_garbage_token_is_invalid(tokens):
    with pytest.raises(InvalidToken):
        tokens.verify("not-a-jwt")


def test_missing_secret_is_a_configuration_error():
    with pytest.raises(InternalError):
        TokenService(secret="").issue_access_token(1, "a@x.com", UserRole.CUSTOMER)


def test_password_hash_verifies_but_differs_from_plaintext():
    hashed = hash_password("P@ssw0rd1")
    assert hashed != "P@ssw0rd1"
    assert verify_password("P@ssw0rd1", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("P@ssw0rd1", "not-a-bcrypt-hash")
