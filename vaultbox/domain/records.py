"""Collection names and the fields stored encrypted in each."""
from datetime import datetime, timezone
from typing import Dict, Tuple

VAULT_COLLECTION = "vaultEntries"
NOTES_COLLECTION = "userNotes"
PROJECTS_COLLECTION = "projects"
INVITES_COLLECTION = "shareInvites"

VAULT_SENSITIVE_FIELDS: Tuple[str, ...] = (
    "ip", "username", "password", "email", "connectionData", "notes",
)
NOTES_SENSITIVE_FIELDS: Tuple[str, ...] = ("notes",)

# Every field that holds a field cipher blob, by collection
ENCRYPTED_FIELDS: Dict[str, Tuple[str, ...]] = {
    VAULT_COLLECTION: VAULT_SENSITIVE_FIELDS,
    NOTES_COLLECTION: NOTES_SENSITIVE_FIELDS,
}


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
