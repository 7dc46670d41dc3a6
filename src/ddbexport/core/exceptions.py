"""Exception hierarchy for the backup export workflow."""

from __future__ import annotations


class ExportWorkflowError(Exception):
    """Base exception for all ddbexport errors."""


class BackupNotFoundError(ExportWorkflowError):
    """No backup exists for the requested table."""

    def __init__(self, table_id: str) -> None:
        self.table_id = table_id
        super().__init__(f"No backups found for table {table_id}")


class RemoteCallError(ExportWorkflowError):
    """A remote call failed (transport, permission, or unexpected error)."""


class StepTimeoutError(RemoteCallError):
    """A remote call exceeded the per-step time budget."""

    def __init__(self, step: str, timeout: float) -> None:
        self.step = step
        self.timeout = timeout
        super().__init__(f"Step {step} timed out after {timeout:g}s")


class ExportFailedError(ExportWorkflowError):
    """The export completed but reported failure."""

    def __init__(self, table_id: str, message: str) -> None:
        self.table_id = table_id
        super().__init__(message)


class PollLimitExceededError(ExportWorkflowError):
    """An export was still running when the status-check budget ran out."""


class InvalidTransitionError(ExportWorkflowError):
    """A table run was driven backwards or out of a terminal state."""

    def __init__(self, table_id: str, current: str, target: str) -> None:
        self.table_id = table_id
        self.current = current
        self.target = target
        super().__init__(f"Table {table_id}: cannot transition {current} -> {target}")


class StateStoreError(ExportWorkflowError):
    """Run state store operation failed."""
