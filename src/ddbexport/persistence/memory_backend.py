"""In-memory backends for unit tests and local runs: dict-backed fakes."""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Callable

from ddbexport.core.exceptions import BackupNotFoundError
from ddbexport.models.workflow import BackupRef, ExportOutcome, ExportStatus
from ddbexport.persistence.s3_backend import export_key


class MemoryBackupLocator:
    """Dict-backed IBackupLocator."""

    def __init__(self) -> None:
        self._backups: dict[str, list[BackupRef]] = {}
        self._errors: dict[str, Exception] = {}
        self.calls: list[str] = []

    def add_backup(self, table_id: str, backup_arn: str, created_at: datetime) -> None:
        self._backups.setdefault(table_id, []).append(
            BackupRef(backup_arn=backup_arn, created_at=created_at)
        )

    def set_error(self, table_id: str, exc: Exception) -> None:
        self._errors[table_id] = exc

    def locate(self, table_id: str) -> BackupRef:
        self.calls.append(table_id)
        if table_id in self._errors:
            raise self._errors[table_id]
        backups = self._backups.get(table_id)
        if not backups:
            raise BackupNotFoundError(table_id)
        return max(backups, key=lambda b: (b.created_at, b.backup_arn))


class MemoryExporter:
    """Scripted IExporter.

    Each table replays a list of statuses: the first is reported by
    start_export, the rest by successive check_status calls. The last status
    repeats once the script runs out.
    """

    def __init__(self, default_status: Any = ExportStatus.SUCCEEDED) -> None:
        self._default_status = default_status
        self._scripts: dict[str, list[Any]] = {}
        self._errors: dict[str, Exception] = {}
        self._positions: dict[str, int] = {}
        self.objects: dict[str, str] = {}
        self.started: list[tuple[str, str]] = []
        self.checks: dict[str, int] = {}
        self._key_tables: dict[str, str] = {}

    def set_statuses(self, table_id: str, statuses: list[Any]) -> None:
        self._scripts[table_id] = list(statuses)

    def set_error(self, table_id: str, exc: Exception) -> None:
        self._errors[table_id] = exc

    def _next_status(self, table_id: str) -> Any:
        script = self._scripts.get(table_id) or [self._default_status]
        pos = self._positions.get(table_id, 0)
        self._positions[table_id] = pos + 1
        return script[min(pos, len(script) - 1)]

    def start_export(self, table_id: str, destination: str) -> ExportOutcome:
        self.started.append((table_id, destination))
        if table_id in self._errors:
            raise self._errors[table_id]
        key = export_key(table_id, datetime.now())
        self._key_tables[key] = table_id
        self.objects[f"{destination}/{key}"] = table_id
        return ExportOutcome(
            destination_key=key,
            destination_path=f"s3://{destination}/{key}",
            status=self._next_status(table_id),
        )

    def check_status(self, outcome: ExportOutcome) -> ExportStatus:
        table_id = self._key_tables[outcome.destination_key]
        self.checks[table_id] = self.checks.get(table_id, 0) + 1
        return ExportStatus.parse(self._next_status(table_id))


class MemoryCacheBackend:
    """Dict-backed ICacheBackend. Entries expire after their TTL like Redis keys."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._store: dict[str, tuple[str, float]] = {}

    def _purge(self) -> None:
        now = self._clock()
        for key in [k for k, (_, expires_at) in self._store.items() if expires_at <= now]:
            del self._store[key]

    def get(self, key: str) -> str | None:
        self._purge()
        entry = self._store.get(key)
        return entry[0] if entry else None

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._purge()
        self._store[key] = (value, self._clock() + ttl)

    def ping(self) -> bool:
        return True
