"""Share invites between users and the resulting connections."""
from typing import Dict, List

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from vaultbox.dependencies import get_audit_logger, get_document_store
from vaultbox.domain.audit import AuditLogger
from vaultbox.domain.interfaces import DocumentStore, Identity
from vaultbox.domain.records import INVITES_COLLECTION, now_iso
from vaultbox.errors import raise_vault_error
from vaultbox.middleware.auth_session import require_session

router = APIRouter()

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_DECLINED = "declined"


class InviteCreate(BaseModel):
    toEmail: str = Field(..., max_length=320)


@router.post("/invites")
async def create_invite(
    payload: InviteCreate,
    request: Request,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    audit: AuditLogger = Depends(get_audit_logger),
):
    to_email = payload.toEmail.strip()
    if not to_email or "@" not in to_email:
        raise_vault_error("INVALID_PAYLOAD", 400, "Invalid toEmail")
    if identity.email and identity.email.lower() == to_email.lower():
        raise_vault_error("INVALID_PAYLOAD", 400, "You cannot invite yourself")

    # Reuse a pending invite instead of duplicating it
    existing = store.query(INVITES_COLLECTION, [
        ("fromUid", "==", identity.uid),
        ("toEmailLower", "==", to_email.lower()),
        ("status", "==", STATUS_PENDING),
    ], limit=1)
    if existing:
        return {"ok": True, "inviteId": existing[0][0], "reused": True}

    invite_id = store.add(INVITES_COLLECTION, {
        "fromUid": identity.uid,
        "fromEmail": identity.email,
        "toEmailLower": to_email.lower(),
        "toEmail": to_email,
        "toUid": None,
        "status": STATUS_PENDING,
        "createdAt": now_iso(),
        "acceptedAt": None,
        "declinedAt": None,
    })

    audit.record("share_invite_create", identity, request, {"inviteId": invite_id, "toEmail": to_email})
    return {"ok": True, "inviteId": invite_id}


@router.get("/invites")
async def list_invites(
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
):
    """Invites sent by the caller, plus pending ones addressed to them."""
    sent = [
        {"id": doc_id, **data}
        for doc_id, data in store.query(INVITES_COLLECTION, [("fromUid", "==", identity.uid)])
    ]

    received: List[Dict] = []
    email = (identity.email or "").lower()
    if email:
        received = [
            {"id": doc_id, **data}
            for doc_id, data in store.query(INVITES_COLLECTION, [
                ("toEmailLower", "==", email),
                ("status", "==", STATUS_PENDING),
            ])
        ]

    return {"sent": sent, "received": received}


def _respond_to_invite(
    invite_id: str,
    status: str,
    stamp_field: str,
    identity: Identity,
    store: DocumentStore,
) -> Dict:
    email = (identity.email or "").lower()
    if not email:
        raise_vault_error("INVALID_PAYLOAD", 400, "Your account has no email")

    invite = store.get(INVITES_COLLECTION, invite_id)
    if invite is None:
        raise_vault_error("NOT_FOUND", 404, "Invite not found")
    if invite.get("status") != STATUS_PENDING:
        raise_vault_error("INVITE_NOT_PENDING", 400, "Invite is not pending")
    if invite.get("toEmailLower") != email:
        raise_vault_error("FORBIDDEN", 403, "This invite is not for you")

    store.set(INVITES_COLLECTION, invite_id, {
        "status": status,
        "toUid": identity.uid,
        "toEmail": identity.email,
        stamp_field: now_iso(),
    }, merge=True)
    return invite


@router.post("/invites/{invite_id}/accept")
async def accept_invite(
    invite_id: str,
    request: Request,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    audit: AuditLogger = Depends(get_audit_logger),
):
    invite = _respond_to_invite(invite_id, STATUS_ACCEPTED, "acceptedAt", identity, store)
    audit.record("share_invite_accept", identity, request, {"inviteId": invite_id, "fromUid": invite.get("fromUid")})
    return {"ok": True}


@router.post("/invites/{invite_id}/decline")
async def decline_invite(
    invite_id: str,
    request: Request,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    audit: AuditLogger = Depends(get_audit_logger),
):
    invite = _respond_to_invite(invite_id, STATUS_DECLINED, "declinedAt", identity, store)
    audit.record("share_invite_decline", identity, request, {"inviteId": invite_id, "fromUid": invite.get("fromUid")})
    return {"ok": True}


@router.get("/connections")
async def list_connections(
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
):
    """Users linked to the caller through an accepted invite, either direction."""
    as_owner = store.query(INVITES_COLLECTION, [("fromUid", "==", identity.uid), ("status", "==", STATUS_ACCEPTED)])
    as_guest = store.query(INVITES_COLLECTION, [("toUid", "==", identity.uid), ("status", "==", STATUS_ACCEPTED)])

    connections: Dict[str, Dict] = {}
    for doc_id, x in as_owner:
        if x.get("toUid"):
            connections[x["toUid"]] = {"uid": x["toUid"], "email": x.get("toEmail"), "inviteId": doc_id}
    for doc_id, x in as_guest:
        if x.get("fromUid"):
            connections[x["fromUid"]] = {"uid": x["fromUid"], "email": x.get("fromEmail"), "inviteId": doc_id}

    return {"connections": list(connections.values())}
