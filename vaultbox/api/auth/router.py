"""Session endpoints backed by the external identity provider."""
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Request, Response
from pydantic import BaseModel, Field

from vaultbox.dependencies import get_audit_logger, get_identity_provider
from vaultbox.domain.audit import AuditLogger
from vaultbox.domain.interfaces import Identity, IdentityError, IdentityProvider
from vaultbox.errors import raise_vault_error
from vaultbox.middleware.auth_session import SESSION_COOKIE, require_session
from vaultbox.settings import Settings, get_settings

router = APIRouter()


class SessionRequest(BaseModel):
    idToken: str = Field(..., min_length=50)


def _user_body(identity: Identity) -> dict:
    return {"uid": identity.uid, "email": identity.email, "role": identity.role}


@router.post("/session")
async def create_session(
    payload: SessionRequest,
    request: Request,
    response: Response,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    audit: AuditLogger = Depends(get_audit_logger),
    settings: Settings = Depends(get_settings),
):
    """Exchange a provider ID token for an httpOnly session cookie."""
    try:
        identity = identity_provider.verify_token(payload.idToken)
    except IdentityError:
        audit.record("auth.login_failed", None, request, {"reason": "invalid_id_token"})
        raise_vault_error("AUTH_INVALID", 401, "Invalid credentials")

    response.set_cookie(
        SESSION_COOKIE,
        payload.idToken,
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        secure=settings.COOKIE_SECURE or settings.is_prod,
        samesite="strict",
        path="/",
    )
    audit.record("auth.login_success", identity, request)
    return {"user": _user_body(identity)}


@router.get("/me")
async def me(identity: Identity = Depends(require_session)):
    return {"user": _user_body(identity)}


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    session: Optional[str] = Cookie(None),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    audit: AuditLogger = Depends(get_audit_logger),
):
    if session:
        try:
            identity = identity_provider.verify_token(session)
            audit.record("auth.logout", identity, request)
        except IdentityError:
            # Expired or forged cookie: clearing it is all that is left to do
            pass

    response.delete_cookie(SESSION_COOKIE, path="/")
    return {"ok": True}
