"""Tests for JWT-based identity verification."""
import json
import time
from unittest.mock import MagicMock, patch

import jwt
import pytest
import requests
from cryptography.hazmat.primitives.asymmetric import rsa

from vaultbox.adapters.memory_store.stores import MemoryDocumentStore
from vaultbox.domain.auth import USERS_COLLECTION, JwtIdentityProvider
from vaultbox.domain.interfaces import IdentityError

SECRET = "dev-shared-secret-0123456789abcdef0123"


def _hs_token(claims, secret=SECRET):
    payload = {"iat": int(time.time()), "exp": int(time.time()) + 300}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def store():
    return MemoryDocumentStore()


def test_hs256_token_maps_claims_and_records_user(store):
    provider = JwtIdentityProvider(store, secret=SECRET)
    token = _hs_token({"sub": "uid-1", "email": "Alice@Example.com", "role": "admin"})

    identity = provider.verify_token(token)

    assert identity.uid == "uid-1"
    assert identity.email == "Alice@Example.com"
    assert identity.role == "admin"

    user = store.get(USERS_COLLECTION, "uid-1")
    assert user["emailLower"] == "alice@example.com"
    assert provider.lookup_by_email(" ALICE@example.com ").uid == "uid-1"


def test_uid_claim_takes_precedence(store):
    provider = JwtIdentityProvider(store, secret=SECRET)
    identity = provider.verify_token(_hs_token({"sub": "sub-1", "uid": "uid-2"}))
    assert identity.uid == "uid-2"


def test_lookup_unknown_email(store):
    assert JwtIdentityProvider(store, secret=SECRET).lookup_by_email("nobody@example.com") is None


def test_expired_token_rejected(store):
    provider = JwtIdentityProvider(store, secret=SECRET)
    token = jwt.encode({"sub": "uid-1", "exp": int(time.time()) - 60}, SECRET, algorithm="HS256")

    with pytest.raises(IdentityError, match="expired"):
        provider.verify_token(token)


def test_wrong_secret_rejected(store):
    provider = JwtIdentityProvider(store, secret=SECRET)
    token = _hs_token({"sub": "uid-1"}, secret="another-secret-0123456789abcdef0123")

    with pytest.raises(IdentityError):
        provider.verify_token(token)


def test_audience_and_issuer_enforced(store):
    provider = JwtIdentityProvider(store, secret=SECRET, audience="vaultbox", issuer="https://issuer.example")

    good = _hs_token({"sub": "uid-1", "aud": "vaultbox", "iss": "https://issuer.example"})
    assert provider.verify_token(good).uid == "uid-1"

    with pytest.raises(IdentityError):
        provider.verify_token(_hs_token({"sub": "uid-1", "aud": "other", "iss": "https://issuer.example"}))


def test_token_without_subject_rejected(store):
    provider = JwtIdentityProvider(store, secret=SECRET)
    with pytest.raises(IdentityError):
        provider.verify_token(_hs_token({"email": "a@example.com"}))


def test_no_provider_configured(store):
    with pytest.raises(IdentityError):
        JwtIdentityProvider(store).verify_token(_hs_token({"sub": "uid-1"}))


def _rsa_setup(kid="k1"):
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    jwk = json.loads(jwt.algorithms.RSAAlgorithm.to_jwk(private_key.public_key()))
    jwk["kid"] = kid
    return private_key, {"keys": [jwk]}


def _jwks_response(jwks):
    response = MagicMock()
    response.json.return_value = jwks
    response.raise_for_status.return_value = None
    return response


def test_rs256_via_jwks_is_cached(store):
    private_key, jwks = _rsa_setup()
    token = jwt.encode(
        {"sub": "uid-9", "exp": int(time.time()) + 300},
        private_key, algorithm="RS256", headers={"kid": "k1"},
    )
    provider = JwtIdentityProvider(store, jwks_url="https://idp.example/jwks")

    with patch("vaultbox.domain.auth.requests.get", return_value=_jwks_response(jwks)) as mock_get:
        assert provider.verify_token(token).uid == "uid-9"
        assert provider.verify_token(token).uid == "uid-9"

    assert mock_get.call_count == 1


def test_rs256_unknown_kid(store):
    private_key, jwks = _rsa_setup(kid="k1")
    token = jwt.encode({"sub": "uid-9"}, private_key, algorithm="RS256", headers={"kid": "k2"})
    provider = JwtIdentityProvider(store, jwks_url="https://idp.example/jwks")

    with patch("vaultbox.domain.auth.requests.get", return_value=_jwks_response(jwks)):
        with pytest.raises(IdentityError, match="key ID"):
            provider.verify_token(token)


def test_jwks_unreachable(store):
    provider = JwtIdentityProvider(store, jwks_url="https://idp.example/jwks")
    private_key, _ = _rsa_setup()
    token = jwt.encode({"sub": "uid-9"}, private_key, algorithm="RS256", headers={"kid": "k1"})

    with patch("vaultbox.domain.auth.requests.get", side_effect=requests.ConnectionError("down")):
        with pytest.raises(IdentityError, match="unavailable"):
            provider.verify_token(token)


def test_malformed_jwks_entry_is_identity_error(store):
    private_key, _ = _rsa_setup()
    token = jwt.encode({"sub": "uid-9"}, private_key, algorithm="RS256", headers={"kid": "k1"})
    broken = {"keys": [{"kid": "k1", "kty": "RSA", "n": "!!", "e": "AQAB"}]}
    provider = JwtIdentityProvider(store, jwks_url="https://idp.example/jwks")

    with patch("vaultbox.domain.auth.requests.get", return_value=_jwks_response(broken)):
        with pytest.raises(IdentityError):
            provider.verify_token(token)
