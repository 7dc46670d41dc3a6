"""Export workflow orchestrator.

Each table in a request runs its own state machine as an asyncio task:

    PENDING -> LOCATING_BACKUP -> EXPORTING -> WAITING_FOR_COMPLETION -> SUCCEEDED | FAILED

Blocking remote calls run on a per-run thread pool with one worker per
table and are bounded by a per-step timeout. Failures are recorded on the
table's state and never propagate to sibling tables or to the caller.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Awaitable, Callable

from ddbexport.core.config import AppSettings
from ddbexport.core.exceptions import (
    BackupNotFoundError,
    ExportFailedError,
    PollLimitExceededError,
    StateStoreError,
    StepTimeoutError,
)
from ddbexport.core.protocols import IBackupLocator, IExporter, IRunStateStore
from ddbexport.models.workflow import (
    ExportStatus,
    FailureKind,
    TableRunState,
    TableStatus,
    WorkflowRequest,
)

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[Any]]


class ExportWorkflowOrchestrator:
    """IOrchestrator: locate backup, export, then poll until terminal."""

    def __init__(
        self,
        *,
        locator: IBackupLocator,
        exporter: IExporter,
        state_store: IRunStateStore | None = None,
        poll_interval: float = 30.0,
        max_polls: int | None = None,
        step_timeout: float = 900.0,
        max_concurrency: int | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if max_polls is not None and max_polls < 1:
            raise ValueError("max_polls must be at least 1")
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._locator = locator
        self._exporter = exporter
        self._state_store = state_store
        self._poll_interval = poll_interval
        self._max_polls = max_polls
        self._step_timeout = step_timeout
        self._max_concurrency = max_concurrency
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        *,
        locator: IBackupLocator,
        exporter: IExporter,
        state_store: IRunStateStore | None = None,
    ) -> ExportWorkflowOrchestrator:
        wf = settings.workflow
        return cls(
            locator=locator,
            exporter=exporter,
            state_store=state_store,
            poll_interval=wf.poll_interval_seconds,
            max_polls=wf.max_polls,
            step_timeout=wf.step_timeout_seconds,
            max_concurrency=wf.max_concurrency,
        )

    async def run(self, request: WorkflowRequest) -> dict[str, TableRunState]:
        """Run every table to a terminal state and return the states by table id."""
        states = {
            table_id: TableRunState(table_id=table_id, run_id=request.run_id)
            for table_id in request.table_ids
        }
        for state in states.values():
            self._record(state)

        semaphore = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None
        # One worker per table: a table holds at most one call at a time, including
        # one abandoned after a timeout, so no call queues behind a sibling's.
        pool = ThreadPoolExecutor(max_workers=len(states), thread_name_prefix="ddbexport")
        logger.info(
            "Run %s: exporting %d table(s) to %s",
            request.run_id, len(states), request.destination,
        )
        try:
            await asyncio.gather(
                *(
                    self._run_bounded(state, request.destination, semaphore, pool)
                    for state in states.values()
                )
            )
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        failed = [t for t, s in states.items() if s.status is TableStatus.FAILED]
        logger.info(
            "Run %s finished: %d succeeded, %d failed",
            request.run_id, len(states) - len(failed), len(failed),
        )
        return states

    async def _run_bounded(
        self,
        state: TableRunState,
        destination: str,
        semaphore: asyncio.Semaphore | None,
        pool: Executor,
    ) -> None:
        if semaphore is None:
            await self._run_table(state, destination, pool)
            return
        async with semaphore:
            await self._run_table(state, destination, pool)

    async def _call(self, pool: Executor, step: str, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking remote call on the run's pool under the step timeout."""
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(pool, functools.partial(func, *args)),
                timeout=self._step_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise StepTimeoutError(step, self._step_timeout) from exc

    async def _run_table(self, state: TableRunState, destination: str, pool: Executor) -> None:
        table_id = state.table_id

        # 1. Locate the latest backup
        self._advance(state, TableStatus.LOCATING_BACKUP)
        try:
            state.backup_ref = await self._call(pool, "locate", self._locator.locate, table_id)
        except BackupNotFoundError as exc:
            self._fail(state, FailureKind.NOT_FOUND, str(exc))
            return
        except StepTimeoutError as exc:
            self._fail(state, FailureKind.TIMEOUT, str(exc))
            return
        except Exception as exc:  # noqa: BLE001 - any locate fault fails only this table
            self._fail(state, FailureKind.REMOTE_ERROR, str(exc))
            return
        logger.info("Table %s: latest backup %s", table_id, state.backup_ref.backup_arn)

        # 2. Start the export
        self._advance(state, TableStatus.EXPORTING)
        try:
            outcome = await self._call(
                pool, "start_export", self._exporter.start_export, table_id, destination,
            )
        except StepTimeoutError as exc:
            self._fail(state, FailureKind.TIMEOUT, str(exc))
            return
        except Exception as exc:  # noqa: BLE001
            self._fail(state, FailureKind.REMOTE_ERROR, str(exc))
            return
        state.export_handle = outcome

        # 3. Wait, then check, until terminal
        self._advance(state, TableStatus.WAITING_FOR_COMPLETION)
        try:
            await self._wait_for_completion(state, pool)
        except ExportFailedError as exc:
            self._fail(state, FailureKind.EXPORT_FAILED, str(exc))
            return
        except PollLimitExceededError as exc:
            self._fail(state, FailureKind.POLL_LIMIT_EXCEEDED, str(exc))
            return
        except StepTimeoutError as exc:
            self._fail(state, FailureKind.TIMEOUT, str(exc))
            return
        except Exception as exc:  # noqa: BLE001
            self._fail(state, FailureKind.REMOTE_ERROR, str(exc))
            return
        self._advance(state, TableStatus.SUCCEEDED)
        logger.info("Table %s: exported to %s", table_id, state.export_handle.destination_path)

    async def _wait_for_completion(self, state: TableRunState, pool: Executor) -> None:
        """Poll until the export reports SUCCEEDED.

        Raises ExportFailedError when it reports FAILED and PollLimitExceededError
        once ``max_polls`` checks have come back non-terminal.
        """
        while True:
            if self._max_polls is not None and state.poll_count >= self._max_polls:
                raise PollLimitExceededError(
                    f"Export still {state.export_handle.status} after {state.poll_count} checks"
                )

            await self._sleep(self._poll_interval)
            state.poll_count += 1
            raw = await self._call(pool, "check_status", self._exporter.check_status, state.export_handle)

            status = ExportStatus.parse(raw)
            if status is not state.export_handle.status:
                state.export_handle = state.export_handle.model_copy(update={"status": status})
            logger.debug("Table %s: check %d reported %s", state.table_id, state.poll_count, status)

            if status is ExportStatus.SUCCEEDED:
                return
            if status is ExportStatus.FAILED:
                raise ExportFailedError(
                    state.table_id,
                    state.export_handle.message or f"Export of {state.table_id} reported FAILED",
                )
            self._record(state)

    def _advance(self, state: TableRunState, target: TableStatus) -> None:
        state.advance(target)
        self._record(state)

    def _fail(self, state: TableRunState, kind: FailureKind, message: str) -> None:
        state.fail(kind, message)
        logger.warning("Table %s failed (%s): %s", state.table_id, kind, message)
        self._record(state)

    def _record(self, state: TableRunState) -> None:
        if self._state_store is None:
            return
        try:
            self._state_store.save(state)
        except StateStoreError as exc:
            logger.warning("Could not record state for table %s: %s", state.table_id, exc)
