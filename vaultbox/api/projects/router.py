"""Projects: kanban boards, sharing and sticky notes."""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Request
from pydantic import BaseModel, Field

from vaultbox.dependencies import get_audit_logger, get_document_store, get_identity_provider
from vaultbox.domain.audit import AuditLogger
from vaultbox.domain.interfaces import DocumentStore, Identity, IdentityProvider
from vaultbox.domain.projects.board import (
    MAX_SHARE_LOG,
    default_board,
    is_member,
    is_owner,
    normalize_board,
    normalize_stickies,
    parse_project_type,
)
from vaultbox.domain.records import PROJECTS_COLLECTION, now_iso
from vaultbox.errors import raise_vault_error
from vaultbox.middleware.auth_session import require_session

router = APIRouter()


class ProjectCreate(BaseModel):
    name: str = Field("", max_length=200)
    description: Optional[str] = Field(None, max_length=4000)
    projectType: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=4000)
    driveFolderOverrideId: Optional[str] = Field(None, max_length=200)


class ShareRequest(BaseModel):
    uids: List[str] = []
    emails: List[str] = []


def _load_project(store: DocumentStore, project_id: str) -> Dict[str, Any]:
    project = store.get(PROJECTS_COLLECTION, project_id)
    if project is None:
        raise_vault_error("NOT_FOUND", 404, "Not found")
    return project


def _owned_project(store: DocumentStore, project_id: str, identity: Identity) -> Dict[str, Any]:
    project = _load_project(store, project_id)
    if not is_owner(project, identity.uid):
        raise_vault_error("FORBIDDEN", 403, "Forbidden")
    return project


def _member_project(store: DocumentStore, project_id: str, identity: Identity) -> Dict[str, Any]:
    project = _load_project(store, project_id)
    if not is_member(project, identity.uid):
        raise_vault_error("FORBIDDEN", 403, "Forbidden")
    return project


@router.get("/")
async def list_projects(
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
):
    """Projects owned by or shared with the caller, newest first."""
    owned = store.query(PROJECTS_COLLECTION, [("ownerUid", "==", identity.uid)])
    shared = store.query(PROJECTS_COLLECTION, [("sharedWith", "array-contains", identity.uid)])

    seen = set()
    projects = []
    for access, docs in (("owner", owned), ("shared", shared)):
        for doc_id, data in docs:
            if doc_id in seen:
                continue
            seen.add(doc_id)
            projects.append({"id": doc_id, **data, "_access": access})

    projects.sort(key=lambda p: str(p.get("updatedAt")), reverse=True)
    return {"projects": projects}


@router.post("/")
async def create_project(
    payload: ProjectCreate,
    request: Request,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    audit: AuditLogger = Depends(get_audit_logger),
):
    name = payload.name.strip()
    if not name:
        raise_vault_error("INVALID_PAYLOAD", 400, "name is required")

    now = now_iso()
    project_type = parse_project_type(payload.projectType)
    project_id = store.add(PROJECTS_COLLECTION, {
        "ownerUid": identity.uid,
        "ownerEmail": identity.email,
        "sharedWith": [],
        "shareLog": [],
        "projectType": project_type,
        "name": name,
        "description": (payload.description or "").strip() or None,
        "createdAt": now,
        "updatedAt": now,
        "board": default_board(now, project_type),
        "driveFolderOverrideId": None,
    })

    audit.record("project_create", identity, request, {"id": project_id, "name": name})
    return {"ok": True, "id": project_id}


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    request: Request,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    audit: AuditLogger = Depends(get_audit_logger),
):
    _owned_project(store, project_id, identity)

    changes = payload.model_dump(exclude_unset=True)
    patch: Dict[str, Any] = {"updatedAt": now_iso()}
    if "name" in changes:
        patch["name"] = (changes["name"] or "").strip()
    if "description" in changes:
        patch["description"] = (changes["description"] or "").strip() or None
    if "driveFolderOverrideId" in changes:
        patch["driveFolderOverrideId"] = (changes["driveFolderOverrideId"] or "").strip() or None

    store.set(PROJECTS_COLLECTION, project_id, patch, merge=True)
    audit.record("project_update", identity, request, {"id": project_id})
    return {"ok": True}


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    request: Request,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    audit: AuditLogger = Depends(get_audit_logger),
):
    _owned_project(store, project_id, identity)
    store.delete(PROJECTS_COLLECTION, project_id)
    audit.record("project_delete", identity, request, {"id": project_id})
    return {"ok": True}


@router.get("/{project_id}/board")
async def get_board(
    project_id: str,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
):
    project = _owned_project(store, project_id, identity)
    board = project.get("board") or default_board(now_iso(), parse_project_type(project.get("projectType")))
    return {"board": board}


@router.put("/{project_id}/board")
async def save_board(
    project_id: str,
    request: Request,
    board: Any = Body(None, embed=True),
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    audit: AuditLogger = Depends(get_audit_logger),
):
    _owned_project(store, project_id, identity)
    if not isinstance(board, dict):
        raise_vault_error("INVALID_PAYLOAD", 400, "board is required")

    now = now_iso()
    normalized = normalize_board(board, now)
    store.set(PROJECTS_COLLECTION, project_id, {"board": normalized, "updatedAt": now}, merge=True)

    audit.record("project_board_update", identity, request, {
        "id": project_id,
        "columns": len(normalized["columns"]),
        "cards": len(normalized["cards"]),
    })
    return {"ok": True}


@router.post("/{project_id}/share")
async def share_project(
    project_id: str,
    payload: ShareRequest,
    request: Request,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """Share with users by uid and/or email. Unknown emails fail the whole call."""
    project = _owned_project(store, project_id, identity)

    resolved: List[Dict[str, Optional[str]]] = [
        {"uid": u.strip(), "email": None} for u in payload.uids if u.strip()
    ]
    for raw in payload.emails:
        email = raw.strip().lower()
        if not email:
            continue
        user = identity_provider.lookup_by_email(email)
        if user is None:
            raise_vault_error("USER_NOT_FOUND", 400, f"No user found for email: {email}")
        resolved.append({"uid": user.uid, "email": user.email or email})

    now = now_iso()
    existing = [x for x in (project.get("sharedWith") or []) if isinstance(x, str)]
    merged: List[str] = []
    for uid in existing + [r["uid"] for r in resolved]:
        if uid and uid != identity.uid and uid not in merged:
            merged.append(uid)

    share_log = list(project.get("shareLog") or []) + [
        {"at": now, "byUid": identity.uid, "byEmail": identity.email, "toUid": r["uid"], "toEmail": r["email"]}
        for r in resolved
    ]

    store.set(PROJECTS_COLLECTION, project_id, {
        "sharedWith": merged,
        "shareLog": share_log[-MAX_SHARE_LOG:],
        "updatedAt": now,
    }, merge=True)

    audit.record("project_share", identity, request, {"id": project_id, "sharedWith": len(merged)})
    return {"ok": True, "sharedWith": merged}


@router.get("/{project_id}/stickies")
async def get_stickies(
    project_id: str,
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
):
    project = _member_project(store, project_id, identity)
    stickies = project.get("stickies")
    return {"stickies": stickies if isinstance(stickies, list) else []}


@router.put("/{project_id}/stickies")
async def save_stickies(
    project_id: str,
    request: Request,
    stickies: Any = Body(None, embed=True),
    identity: Identity = Depends(require_session),
    store: DocumentStore = Depends(get_document_store),
    audit: AuditLogger = Depends(get_audit_logger),
):
    _member_project(store, project_id, identity)

    now = now_iso()
    normalized = normalize_stickies(stickies, identity.uid, now)
    store.set(PROJECTS_COLLECTION, project_id, {"stickies": normalized, "updatedAt": now}, merge=True)

    audit.record("project_stickies_update", identity, request, {"id": project_id, "count": len(normalized)})
    return {"ok": True, "stickies": normalized}
