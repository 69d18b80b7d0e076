import re
from typing import Optional

from fastapi import Cookie, Depends, Header

from vaultbox.dependencies import get_identity_provider
from vaultbox.domain.interfaces import Identity, IdentityError, IdentityProvider
from vaultbox.errors import raise_vault_error

SESSION_COOKIE = "session"

_BEARER_RE = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    m = _BEARER_RE.match(authorization.strip())
    return m.group(1) if m else None


async def require_session(
    authorization: Optional[str] = Header(None),
    session: Optional[str] = Cookie(None),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    """Resolve the caller from a Bearer token, falling back to the session cookie."""
    token = bearer_token(authorization)
    if token:
        try:
            return identity_provider.verify_token(token)
        except IdentityError:
            raise_vault_error("AUTH_INVALID", 401, "Invalid bearer token")

    if not session:
        raise_vault_error("AUTH_REQUIRED", 401, "Not authenticated")

    try:
        return identity_provider.verify_token(session)
    except IdentityError:
        raise_vault_error("AUTH_INVALID", 401, "Invalid session")
