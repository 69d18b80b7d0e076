"""Auth Domain Logic.

Identity verification is delegated to an external provider that issues
JWT ID tokens; this module only validates them and maps claims to an
``Identity``.
"""
import jwt
import requests
import logging
from typing import Optional, Dict, Any
from datetime import datetime, timedelta, timezone

from vaultbox.domain.interfaces import DocumentStore, Identity, IdentityError, IdentityProvider

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


class JwtIdentityProvider(IdentityProvider):
    def __init__(
        self,
        store: DocumentStore,
        jwks_url: Optional[str] = None,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
        secret: Optional[str] = None,
    ):
        self.store = store
        self.jwks_url = jwks_url
        self.issuer = issuer
        self.audience = audience
        self.secret = secret
        self._jwks_cache: Optional[Dict[str, Any]] = None
        self._jwks_last_fetch: Optional[datetime] = None

    def _fetch_jwks(self) -> Dict[str, Any]:
        if not self.jwks_url:
            return {}

        now = datetime.now(timezone.utc)
        if self._jwks_cache and self._jwks_last_fetch and (now - self._jwks_last_fetch) < timedelta(hours=1):
            return self._jwks_cache

        try:
            response = requests.get(self.jwks_url, timeout=10)
            response.raise_for_status()
            self._jwks_cache = response.json()
            self._jwks_last_fetch = now
            return self._jwks_cache
        except requests.RequestException as e:
            logger.error(f"Failed to fetch JWKS from {self.jwks_url}: {e}")
            if self._jwks_cache:
                return self._jwks_cache
            raise IdentityError("Identity provider unavailable")

    def _decode(self, token: str) -> Dict[str, Any]:
        options = {"verify_aud": self.audience is not None}
        if self.secret and not self.jwks_url:
            # Symmetric validation for DEV/internal
            return jwt.decode(
                token, self.secret, algorithms=["HS256"],
                audience=self.audience, issuer=self.issuer, options=options,
            )

        if not self.jwks_url:
            raise IdentityError("No identity provider configured")

        # Asymmetric validation via JWKS
        kid = jwt.get_unverified_header(token).get("kid")
        public_key = None
        for key in self._fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                public_key = jwt.algorithms.RSAAlgorithm.from_jwk(key)
                break
        if public_key is None:
            raise IdentityError("Invalid token key ID")

        return jwt.decode(
            token, public_key, algorithms=["RS256"],
            audience=self.audience, issuer=self.issuer, options=options,
        )

    def verify_token(self, token: str) -> Identity:
        """Validate JWT and return the identity it asserts."""
        try:
            claims = self._decode(token)
        except jwt.ExpiredSignatureError:
            raise IdentityError("Token expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            raise IdentityError("Invalid token")
        except jwt.PyJWTError as e:
            # Bad signing key material, e.g. a malformed JWKS entry
            logger.error(f"Token verification failed: {e}")
            raise IdentityError("Invalid token key")

        uid = claims.get("uid") or claims.get("sub")
        if not uid:
            raise IdentityError("Token has no subject")

        identity = Identity(uid=uid, email=claims.get("email"), role=claims.get("role"))
        self._remember(identity)
        return identity

    def _remember(self, identity: Identity) -> None:
        """Record the user so invites and shares can resolve them by email."""
        if not identity.email:
            return
        self.store.set(
            USERS_COLLECTION,
            identity.uid,
            {
                "uid": identity.uid,
                "email": identity.email,
                "emailLower": identity.email.lower(),
                "lastSeenAt": datetime.now(timezone.utc).isoformat(),
            },
            merge=True,
        )

    def lookup_by_email(self, email: str) -> Optional[Identity]:
        matches = self.store.query(USERS_COLLECTION, [("emailLower", "==", email.strip().lower())], limit=1)
        if not matches:
            return None
        _, data = matches[0]
        return Identity(uid=data["uid"], email=data.get("email"))
