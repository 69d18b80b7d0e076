from fastapi import APIRouter, Depends, HTTPException
from vaultbox.dependencies import get_document_store
from vaultbox.domain.interfaces import DocumentStore
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health():
    return {"ok": True}


@router.get("/health/live")
async def liveness():
    """Liveness probe: Service is running."""
    return {"status": "ok", "checks": {"api": "ok"}}


@router.get("/health/ready")
async def readiness(store: DocumentStore = Depends(get_document_store)):
    """Readiness probe: document store reachable."""
    health = {"status": "ok", "checks": {}}

    if store.ping():
        health["checks"]["store"] = "ok"
    else:
        logger.error("Health check failed (store)")
        health["checks"]["store"] = "failed"
        health["status"] = "failed"

    if health["status"] == "failed":
        raise HTTPException(status_code=503, detail=health)

    return health
