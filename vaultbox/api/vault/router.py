"""Vault entries: credentials with per-field encryption."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from vaultbox.dependencies import get_audit_logger, get_document_store, get_field_policy
from vaultbox.domain.audit import AuditLogger
from vaultbox.domain.crypto.policy import FieldPolicy
from vaultbox.domain.interfaces import DocumentStore, Identity
from vaultbox.domain.records import VAULT_COLLECTION, VAULT_SENSITIVE_FIELDS, now_iso
from vaultbox.errors import raise_vault_error
from vaultbox.middleware.auth_session import require_session

router = APIRouter()

MAX_ENTRIES = 1000


class VaultEntryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    ip: Optional[str] = Field(None, max_length=200)
    username: Optional[str] = Field(None, max_length=200)
    password: Optional[str] = Field(None, max_length=2000)
    email: Optional[str] = Field(None, max_length=320)
    connectionData: Optional[str] = Field(None, max_length=5000)
    notes: Optional[str] = Field(None, max_length=10000)


class VaultEntryPatch(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    ip: Optional[str] = Field(None, max_length=200)
    username: Optional[str] = Field(None, max_length=200)
    password: Optional[str] = Field(None, max_length=2000)
    email: Optional[str] = Field(None, max_length=320)
    connectionData: Optional[str] = Field(None, max_length=5000)
    notes: Optional[str] = Field(None, max_length=10000)


def entry_to_api(doc_id: str, doc: Dict[str, Any], policy: FieldPolicy) -> Dict[str, Any]:
    """Decrypt an entry for display.

    A field that was never set comes back as ``None``; a field that is
    stored but cannot be decrypted also comes back as ``None`` and is listed
    in ``unreadableFields`` with the failure kind.
    """
    revealed = policy.reveal_fields(doc, VAULT_SENSITIVE_FIELDS, record_id=doc_id)
    entry: Dict[str, Any] = {"id": doc_id, "name": doc.get("name")}
    for name, field in revealed.items():
        entry[name] = field.value
    entry["unreadableFields"] = {
        name: field.reason for name, field in revealed.items() if field.unreadable
    }
    entry["createdAt"] = doc.get("createdAt")
    entry["updatedAt"] = doc.get("updatedAt")
    return entry


@router.get("/")
async def list_entries(
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    policy: FieldPolicy = Depends(get_field_policy),
):
    """List all entries (visible to any signed-in user)."""
    docs = store.query(VAULT_COLLECTION, order_by="updatedAt", descending=True, limit=MAX_ENTRIES)
    return {"entries": [entry_to_api(doc_id, doc, policy) for doc_id, doc in docs]}


@router.post("/", status_code=201)
async def create_entry(
    payload: VaultEntryCreate,
    request: Request,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    policy: FieldPolicy = Depends(get_field_policy),
    audit: AuditLogger = Depends(get_audit_logger),
):
    now = now_iso()
    doc = policy.protect_fields(payload.model_dump(), VAULT_SENSITIVE_FIELDS)
    doc.update({
        "createdAt": now,
        "updatedAt": now,
        "createdByUid": identity.uid,
        "createdByEmail": identity.email,
        "updatedByUid": identity.uid,
        "updatedByEmail": identity.email,
    })

    entry_id = store.add(VAULT_COLLECTION, doc)
    audit.record("vault.create", identity, request, {"entryId": entry_id, "name": payload.name})
    return {"id": entry_id}


@router.put("/{entry_id}")
async def update_entry(
    entry_id: str,
    payload: VaultEntryPatch,
    request: Request,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    policy: FieldPolicy = Depends(get_field_policy),
    audit: AuditLogger = Depends(get_audit_logger),
):
    if store.get(VAULT_COLLECTION, entry_id) is None:
        raise_vault_error("NOT_FOUND", 404, "Entry not found")

    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        raise_vault_error("INVALID_PAYLOAD", 400, "name cannot be null")

    # Each sent field is replaced by a fresh blob (or cleared)
    patch = policy.protect_fields(changes, VAULT_SENSITIVE_FIELDS)
    patch.update({
        "updatedAt": now_iso(),
        "updatedByUid": identity.uid,
        "updatedByEmail": identity.email,
    })

    store.set(VAULT_COLLECTION, entry_id, patch, merge=True)
    audit.record("vault.update", identity, request, {"entryId": entry_id, "fields": sorted(changes)})
    return {"ok": True}


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    request: Request,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    audit: AuditLogger = Depends(get_audit_logger),
):
    if not store.delete(VAULT_COLLECTION, entry_id):
        raise_vault_error("NOT_FOUND", 404, "Entry not found")

    audit.record("vault.delete", identity, request, {"entryId": entry_id})
    return {"ok": True}
