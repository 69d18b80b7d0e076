"""Browser log ingestion, guarded by optional shared tokens."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from pydantic import BaseModel

from vaultbox.dependencies import get_client_log_buffer
from vaultbox.domain.audit import client_ip
from vaultbox.domain.client_logs import DEFAULT_READ_LIMIT, LEVELS, ClientLogBuffer
from vaultbox.domain.records import now_iso
from vaultbox.errors import raise_vault_error
from vaultbox.middleware.redaction import redact_dict
from vaultbox.settings import Settings, get_settings

router = APIRouter()


class ClientLogIn(BaseModel):
    at: Optional[str] = None
    level: Optional[str] = None
    kind: Optional[str] = None
    message: Optional[str] = None
    stack: Optional[str] = None
    url: Optional[str] = None
    userAgent: Optional[str] = None
    payload: Optional[Any] = None
    user: Optional[Dict[str, Any]] = None


def _check_token(expected: Optional[str], header_token: Optional[str], query_token: Optional[str]) -> None:
    if expected and (header_token or query_token) != expected:
        raise_vault_error("LOG_TOKEN_INVALID", 401, "invalid token")


def _parse_limit(raw: Optional[str]) -> int:
    """Non-numeric limits fall back to the default."""
    try:
        return int(raw) if raw is not None else DEFAULT_READ_LIMIT
    except ValueError:
        return DEFAULT_READ_LIMIT


@router.post("/client")
async def write_client_log(
    body: ClientLogIn,
    request: Request,
    x_log_token: Optional[str] = Header(None),
    token: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    buffer: ClientLogBuffer = Depends(get_client_log_buffer),
):
    _check_token(settings.LOG_WRITE_TOKEN, x_log_token, token)

    entry = body.model_dump()
    entry["at"] = body.at or now_iso()
    entry["level"] = body.level if body.level in LEVELS else "error"
    entry["ip"] = client_ip(request)
    if isinstance(body.payload, dict):
        entry["payload"] = redact_dict(body.payload)

    buffer.push(entry)
    return {"ok": True}


@router.get("/client")
async def read_client_logs(
    x_log_token: Optional[str] = Header(None),
    token: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    buffer: ClientLogBuffer = Depends(get_client_log_buffer),
):
    _check_token(settings.LOG_READ_TOKEN, x_log_token, token)

    items = buffer.recent(_parse_limit(limit))
    return {"ok": True, "count": len(items), "items": items}
