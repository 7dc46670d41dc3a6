"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def ready(request: Request):
    if getattr(request.app.state, "orchestrator", None) is None:
        return {"status": "starting"}
    store = getattr(request.app.state, "state_store", None)
    if store is not None and not store.ping():
        return JSONResponse(status_code=503, content={"status": "state backend unavailable"})
    return {"status": "ready"}
