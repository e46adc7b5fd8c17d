"""Background reaping of files whose record never became, or stopped being, linked."""

from __future__ import annotations

import asyncio
import contextlib
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from nextcdn.core.core import Service
from nextcdn.core.modules.cleanup.models import CleanupReport
from nextcdn.errors import StorageError, StoreError
from nextcdn.utils import now

if TYPE_CHECKING:
    from collections.abc import Callable

    from nextcdn.core.interfaces import FileStore, ObjectStore
    from nextcdn.core.modules.file.models import FileRecord

logger = structlog.get_logger(__name__)


class CleanupService(Service):
    """Periodically deletes expiry-eligible files from the object store, then their records.

    The object is always deleted first: an object without a record only costs
    storage, while a record without an object is a broken link. A stop request
    is honoured between cycles, never in the middle of one.
    """

    def __init__(
        self, files: FileStore, objects: ObjectStore, interval_seconds: float, clock: Callable[[], datetime] = now
    ) -> None:
        super().__init__()
        self._files = files
        self._objects = objects
        self._interval = interval_seconds
        self._clock = clock
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    async def on_start(self) -> None:
        self.start()

    async def on_stop(self) -> None:
        await self.stop()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the cleanup loop on the running event loop."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_forever(), name="file-cleanup")
        logger.info("cleanup_task_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        """Signal the loop to stop and wait for the current cycle to finish."""
        if self._task is None:
            return
        self._stop_event.set()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("cleanup_task_stopped")

    async def run_cycle(self) -> CleanupReport:
        """Scan once for expiry-eligible records and reap each of them."""
        report = CleanupReport()
        logger.info("cleanup_cycle_started")
        try:
            async for record in self._files.iter_expired(self._clock()):
                report.found += 1
                if await self.reap(record):
                    report.deleted += 1
                else:
                    report.failed += 1
        except StoreError as e:
            report.aborted = True
            logger.exception("cleanup_enumeration_failed", error=str(e))

        if report.found == 0 and not report.aborted:
            logger.info("cleanup_no_expired_files")
        else:
            logger.info(
                "cleanup_cycle_finished",
                found=report.found,
                deleted=report.deleted,
                failed=report.failed,
                aborted=report.aborted,
            )
        return report

    async def reap(self, record: FileRecord) -> bool:
        """Delete the object, then the record. Returns True when both are gone.

        Both deletes are idempotent, so reaping an already-reaped file succeeds.
        """
        try:
            await self._objects.delete(record.id)
        except StorageError as e:
            logger.error("cleanup_object_delete_failed", file_id=record.id, error=str(e))
            return False
        logger.info("cleanup_object_deleted", file_id=record.id)

        try:
            await self._files.delete(record.id)
        except StoreError as e:
            # Orphan record with no backing object; still matches the predicate next cycle
            logger.error("cleanup_record_delete_failed", file_id=record.id, error=str(e))
            return False
        return True

    async def _run_forever(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except TimeoutError:
                pass
            else:
                break
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("cleanup_cycle_crashed")
