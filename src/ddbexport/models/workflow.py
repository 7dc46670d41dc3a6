"""Workflow request, per-table run state, and export status models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ddbexport.core.exceptions import InvalidTransitionError


class ExportStatus(StrEnum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    IN_PROGRESS = "IN_PROGRESS"

    @classmethod
    def parse(cls, value: Any) -> ExportStatus:
        """Map a raw status to the enum; anything unrecognized keeps polling."""
        if isinstance(value, cls):
            return value
        if value == cls.SUCCEEDED.value:
            return cls.SUCCEEDED
        if value == cls.FAILED.value:
            return cls.FAILED
        return cls.IN_PROGRESS


class TableStatus(StrEnum):
    PENDING = "PENDING"
    LOCATING_BACKUP = "LOCATING_BACKUP"
    EXPORTING = "EXPORTING"
    WAITING_FOR_COMPLETION = "WAITING_FOR_COMPLETION"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (TableStatus.SUCCEEDED, TableStatus.FAILED)


# Rank along the forward path; both terminal states share the last rank.
_STATUS_RANK: dict[TableStatus, int] = {
    TableStatus.PENDING: 0,
    TableStatus.LOCATING_BACKUP: 1,
    TableStatus.EXPORTING: 2,
    TableStatus.WAITING_FOR_COMPLETION: 3,
    TableStatus.SUCCEEDED: 4,
    TableStatus.FAILED: 4,
}


class FailureKind(StrEnum):
    NOT_FOUND = "NOT_FOUND"
    REMOTE_ERROR = "REMOTE_ERROR"
    EXPORT_FAILED = "EXPORT_FAILED"
    TIMEOUT = "TIMEOUT"
    POLL_LIMIT_EXCEEDED = "POLL_LIMIT_EXCEEDED"


class BackupRef(BaseModel):
    """Point-in-time backup of a table."""

    model_config = ConfigDict(frozen=True)

    backup_arn: str
    created_at: datetime


class ExportOutcome(BaseModel):
    """Handle returned by an exporter plus the status it last reported."""

    model_config = ConfigDict(frozen=True)

    destination_key: str
    destination_path: str = ""
    status: ExportStatus = ExportStatus.IN_PROGRESS
    message: str = ""
    export_arn: Optional[str] = None  # native DynamoDB exports only

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> ExportStatus:
        return ExportStatus.parse(value)


class WorkflowRequest(BaseModel):
    """Tables to export and where to put them. Immutable once a run starts."""

    model_config = ConfigDict(frozen=True)

    table_ids: tuple[str, ...]
    destination: str
    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex)

    @field_validator("table_ids")
    @classmethod
    def _require_table_ids(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("At least one table id is required.")
        if any(not t for t in value):
            raise ValueError("Table ids must be non-empty.")
        if len(set(value)) != len(value):
            raise ValueError("Table ids must be unique within a request.")
        return value

    @field_validator("destination")
    @classmethod
    def _require_destination(cls, value: str) -> str:
        if not value:
            raise ValueError("Destination must be non-empty.")
        return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TableRunState(BaseModel):
    """Execution state for a single table within a run."""

    table_id: str
    run_id: str = ""
    status: TableStatus = TableStatus.PENDING
    backup_ref: Optional[BackupRef] = None
    export_handle: Optional[ExportOutcome] = None
    last_error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    poll_count: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def advance(self, target: TableStatus) -> None:
        """Move forward along the state machine. Backward moves raise."""
        if self.status.is_terminal or _STATUS_RANK[target] <= _STATUS_RANK[self.status]:
            raise InvalidTransitionError(self.table_id, self.status, target)
        if target is TableStatus.SUCCEEDED and self.status is not TableStatus.WAITING_FOR_COMPLETION:
            raise InvalidTransitionError(self.table_id, self.status, target)
        if self.started_at is None:
            self.started_at = _utcnow()
        self.status = target
        if target.is_terminal:
            self.completed_at = _utcnow()

    def fail(self, kind: FailureKind, message: str) -> None:
        self.advance(TableStatus.FAILED)
        self.failure_kind = kind
        self.last_error = message


class RunSummary(BaseModel):
    """Per-run success/failure breakdown."""

    run_id: str
    succeeded: int
    failed: int
    failed_tables: list[str] = Field(default_factory=list)
    tables: dict[str, TableRunState] = Field(default_factory=dict)


def summarize(run_id: str, results: dict[str, TableRunState]) -> RunSummary:
    failed = [t for t, s in results.items() if s.status is TableStatus.FAILED]
    succeeded = sum(1 for s in results.values() if s.status is TableStatus.SUCCEEDED)
    return RunSummary(
        run_id=run_id,
        succeeded=succeeded,
        failed=len(failed),
        failed_tables=failed,
        tables=results,
    )
