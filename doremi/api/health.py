"""
Health endpoints.

Lightweight checks for operational monitoring without exposing secrets.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("doremi")

root_router = APIRouter(tags=["health"])


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz(request: Request):
    """Readiness check: the keyed store can be reached."""
    store = request.app.state.services.store
    try:
        ready = store.ping()
    except Exception as e:
        logger.error(f"[readyz] store probe failed: {e}")
        ready = False
    if not ready:
        return JSONResponse(status_code=503, content={"status": "error", "detail": "store unavailable"})
    return {"status": "ok", "store": type(store).__name__}
