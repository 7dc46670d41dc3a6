"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from ddbexport.api.routes import exports, health
from ddbexport.core.config import AppSettings
from ddbexport.core.log import configure_logging
from ddbexport.core.protocols import IOrchestrator, IRunStateStore
from ddbexport.orchestration.orchestrator import ExportWorkflowOrchestrator
from ddbexport.persistence import create_components


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize and tear down application resources."""
    settings: AppSettings = app.state.settings
    configure_logging(settings.log_level)
    if getattr(app.state, "orchestrator", None) is None:
        locator, exporter, state_store = create_components(settings)
        app.state.state_store = state_store
        app.state.orchestrator = ExportWorkflowOrchestrator.from_settings(
            settings, locator=locator, exporter=exporter, state_store=state_store,
        )
    yield


def create_app(
    settings: AppSettings | None = None,
    orchestrator: IOrchestrator | None = None,
    state_store: IRunStateStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="DynamoDB Backup Export Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or AppSettings()
    app.state.orchestrator = orchestrator
    app.state.state_store = state_store
    app.include_router(health.router)
    app.include_router(exports.router, prefix="/exports")
    return app
