"""Export workflow endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from ddbexport.models.workflow import RunSummary, TableRunState, WorkflowRequest, summarize

router = APIRouter(tags=["exports"])


class ExportRequestBody(BaseModel):
    table_ids: list[str]
    destination: Optional[str] = None
    # Chosen by the caller so GET /exports/{run_id}/... works before this returns.
    run_id: Optional[str] = Field(
        default=None, min_length=1, max_length=128, pattern=r"^[A-Za-z0-9_.-]+$",
    )


@router.post("")
async def start_run(body: ExportRequestBody, request: Request) -> RunSummary:
    """Run the export workflow for every table and return the breakdown."""
    destination = body.destination or request.app.state.settings.s3.bucket
    fields = {"table_ids": tuple(body.table_ids), "destination": destination}
    if body.run_id is not None:
        fields["run_id"] = body.run_id
    try:
        wf_request = WorkflowRequest(**fields)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    results = await request.app.state.orchestrator.run(wf_request)
    return summarize(wf_request.run_id, results)


@router.get("/{run_id}/{table_id}")
async def get_table_state(run_id: str, table_id: str, request: Request) -> TableRunState:
    """Return the recorded state of one table in a run."""
    store = request.app.state.state_store
    state = store.load(run_id, table_id) if store is not None else None
    if state is None:
        raise HTTPException(status_code=404, detail=f"No state for {table_id!r} in run {run_id!r}")
    return state
