import logging
import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from fastapi import Request

from vaultbox.domain.interfaces import DocumentStore, Identity
from vaultbox.middleware.redaction import redact_dict

logger = logging.getLogger(__name__)

AUDIT_COLLECTION = "auditLogs"


def client_ip(request: Optional[Request]) -> Optional[str]:
    """First hop of X-Forwarded-For, falling back to the socket peer."""
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


class AuditLogger:
    def __init__(self, store: DocumentStore):
        self.store = store

    def record(
        self,
        action: str,
        identity: Optional[Identity] = None,
        request: Optional[Request] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Log the event and persist it (best effort)."""
        event = {
            "action": action,
            "uid": identity.uid if identity else None,
            "email": identity.email if identity else None,
            "ip": client_ip(request),
            "userAgent": request.headers.get("user-agent") if request is not None else None,
            "details": redact_dict(details or {}),
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }

        logger.info(json.dumps({"type": "audit", **event}, default=str))

        try:
            self.store.add(AUDIT_COLLECTION, event)
        except Exception as e:
            # Audit persistence must not fail the request it describes
            logger.error(json.dumps({"type": "audit_store_error", "error": str(e)}))

        return event
