"""Per-user free-form notes, stored encrypted."""
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from vaultbox.dependencies import get_audit_logger, get_document_store, get_field_policy
from vaultbox.domain.audit import AuditLogger
from vaultbox.domain.crypto.policy import FieldPolicy
from vaultbox.domain.interfaces import DocumentStore, Identity
from vaultbox.domain.records import NOTES_COLLECTION, now_iso
from vaultbox.middleware.auth_session import require_session

router = APIRouter()


class NotesUpdate(BaseModel):
    notes: Optional[str] = Field(None, max_length=100_000)


@router.get("/")
async def get_notes(
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    policy: FieldPolicy = Depends(get_field_policy),
):
    doc = store.get(NOTES_COLLECTION, identity.uid) or {}
    field = policy.reveal_or_marker(doc.get("notes"), field="notes", record_id=identity.uid)
    return {
        "notes": field.value if field.value is not None else "",
        "unreadable": field.unreadable,
        "reason": field.reason,
        "updatedAt": doc.get("updatedAt"),
    }


@router.put("/")
async def put_notes(
    payload: NotesUpdate,
    request: Request,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    policy: FieldPolicy = Depends(get_field_policy),
    audit: AuditLogger = Depends(get_audit_logger),
):
    notes = payload.notes or ""
    now = now_iso()

    store.set(NOTES_COLLECTION, identity.uid, {"notes": policy.protect(notes), "updatedAt": now}, merge=True)
    audit.record("notes_update", identity, request, {"length": len(notes)})
    return {"ok": True, "updatedAt": now}
