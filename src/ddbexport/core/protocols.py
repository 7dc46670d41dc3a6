"""Protocol interfaces for ddbexport abstractions.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ddbexport.models.workflow import (
        BackupRef,
        ExportOutcome,
        ExportStatus,
        TableRunState,
        WorkflowRequest,
    )


# ---------------------------------------------------------------------------
# Backup Locator
# ---------------------------------------------------------------------------

@runtime_checkable
class IBackupLocator(Protocol):
    """Finds the most recent backup of a table.

    Raises BackupNotFoundError when the table has no backups and
    RemoteCallError for any transport or service failure.
    """

    def locate(self, table_id: str) -> BackupRef: ...


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------

@runtime_checkable
class IExporter(Protocol):
    """Exports a table's current contents to a destination.

    start_export never raises for remote faults; it reports FAILED instead.
    """

    def start_export(self, table_id: str, destination: str) -> ExportOutcome: ...

    def check_status(self, outcome: ExportOutcome) -> ExportStatus: ...


# ---------------------------------------------------------------------------
# Cache Backend
# ---------------------------------------------------------------------------

@runtime_checkable
class ICacheBackend(Protocol):
    """Redis-compatible cache interface."""

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def ping(self) -> bool: ...


# ---------------------------------------------------------------------------
# Run State Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IRunStateStore(Protocol):
    """Records per-table run state snapshots as they change."""

    def save(self, state: TableRunState) -> None: ...

    def load(self, run_id: str, table_id: str) -> TableRunState | None: ...

    def ping(self) -> bool: ...


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

@runtime_checkable
class IOrchestrator(Protocol):
    """Runs the locate/export/poll workflow for every table in a request."""

    async def run(self, request: WorkflowRequest) -> dict[str, TableRunState]: ...
