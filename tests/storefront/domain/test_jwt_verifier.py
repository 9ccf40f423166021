"""Tests for the PyJWT-backed token verifier."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from storefront.access.exceptions import Unauthenticated
from storefront.access.verifier.jwt_adapter import JwtTokenVerifier

SECRET = "test-secret-with-enough-length-for-hs256"


def _token(secret=SECRET, **claims):
    payload = {"sub": "uid-ana", "email": "ana@example.com", "name": "Ana"}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


class TestJwtTokenVerifier:
    def test_valid_token(self):
        claims = JwtTokenVerifier(SECRET).verify(_token())
        assert claims.subject == "uid-ana"
        assert claims.email == "ana@example.com"
        assert claims.name == "Ana"

    def test_wrong_secret(self):
        with pytest.raises(Unauthenticated):
            JwtTokenVerifier(SECRET).verify(_token(secret="another-secret-with-enough-length-xx"))

    def test_expired_token(self):
        expired = _token(exp=datetime.now(UTC) - timedelta(minutes=5))
        with pytest.raises(Unauthenticated):
            JwtTokenVerifier(SECRET).verify(expired)

    def test_subject_required(self):
        token = jwt.encode({"email": "ana@example.com"}, SECRET, algorithm="HS256")
        with pytest.raises(Unauthenticated):
            JwtTokenVerifier(SECRET).verify(token)

    def test_audience_checked_when_configured(self):
        verifier = JwtTokenVerifier(SECRET, audience="storefront")
        assert verifier.verify(_token(aud="storefront")).subject == "uid-ana"
        with pytest.raises(Unauthenticated):
            verifier.verify(_token(aud="elsewhere"))

    def test_garbage(self):
        with pytest.raises(Unauthenticated):
            JwtTokenVerifier(SECRET).verify("not-a-jwt")
