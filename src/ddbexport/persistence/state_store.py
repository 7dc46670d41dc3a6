"""Run state recorder: JSON snapshots of TableRunState in a cache backend."""

from __future__ import annotations

from ddbexport.core.protocols import ICacheBackend
from ddbexport.models.workflow import TableRunState

KEY_TEMPLATE = "ddbexport:run:{run_id}:{table_id}"


class RunStateRecorder:
    """IRunStateStore writing each snapshot under a per-run, per-table key."""

    def __init__(self, cache: ICacheBackend, ttl: int = 86400) -> None:
        self._cache = cache
        self._ttl = ttl

    @staticmethod
    def key(run_id: str, table_id: str) -> str:
        return KEY_TEMPLATE.format(run_id=run_id, table_id=table_id)

    def save(self, state: TableRunState) -> None:
        self._cache.setex(self.key(state.run_id, state.table_id), self._ttl, state.model_dump_json())

    def load(self, run_id: str, table_id: str) -> TableRunState | None:
        raw = self._cache.get(self.key(run_id, table_id))
        if raw is None:
            return None
        return TableRunState.model_validate_json(raw)

    def ping(self) -> bool:
        return self._cache.ping()
