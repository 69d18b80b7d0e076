"""Vaultbox - Main Application."""
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import sys

from vaultbox.api.auth import router as auth_router
from vaultbox.api.logs import router as logs_router
from vaultbox.api.notes import router as notes_router
from vaultbox.api.projects import router as projects_router
from vaultbox.api.sharing import router as sharing_router
from vaultbox.api.vault import router as vault_router
from vaultbox.dependencies import init_runtime
from vaultbox.domain.crypto.field_cipher import ConfigurationError
from vaultbox.logging_hardening import setup_logging, setup_logging_redaction
from vaultbox.routers import health
from vaultbox.settings import get_settings

logger = logging.getLogger(__name__)

# Initialize logging redaction filters early
setup_logging_redaction()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    try:
        init_runtime(settings)
    except ConfigurationError as e:
        logger.critical(f"CRITICAL STARTUP ERROR: {e}")
        sys.exit(1)

    logger.info(f"Vaultbox started (env={settings.ENV})")
    yield
    logger.info("Shutdown complete.")


app = FastAPI(
    title="Vaultbox",
    description="Multi-tenant credential vault with field-level encryption",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def vault_http_exception_handler(request: Request, exc: HTTPException):
    # Errors raised through raise_vault_error keep their top-level 'error' key
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail,
            headers=exc.headers
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers
    )


# Mount routers
app.include_router(auth_router.router, prefix="/auth", tags=["Auth"])
app.include_router(vault_router.router, prefix="/vault", tags=["Vault"])
app.include_router(notes_router.router, prefix="/notes", tags=["Notes"])
app.include_router(projects_router.router, prefix="/projects", tags=["Projects"])
app.include_router(sharing_router.router, prefix="/sharing", tags=["Sharing"])
app.include_router(logs_router.router, prefix="/logs", tags=["Logs"])
app.include_router(health.router, tags=["Health"])
