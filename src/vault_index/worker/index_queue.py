"""Bounded work queue feeding change notifications to indexing workers."""

import asyncio
from dataclasses import dataclass

from vault_index.core.logging import get_logger
from vault_index.schemas.events import DocumentAction, DocumentChangeEvent
from vault_index.worker.handlers import ChangeHandler

logger = get_logger(__name__)


@dataclass(slots=True)
class QueueStats:
    """Counters describing queue activity since start."""

    accepted: int = 0
    coalesced: int = 0
    processed: int = 0
    failed: int = 0


class IndexQueue:
    """Debouncing queue of documents awaiting reindex or removal.

    The queue holds document ids; the latest event per document lives in a pending
    map, so rapid notifications for one document collapse into its newest snapshot.
    A document is owned by one worker at a time: events arriving while it is being
    processed stay pending and are picked up by the same worker afterwards.
    """

    def __init__(self, handler: ChangeHandler, *, workers: int = 4, maxsize: int = 1000):
        self.handler = handler
        self.workers = max(1, workers)
        self.stats = QueueStats()
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)
        self._pending: dict[str, DocumentChangeEvent] = {}
        self._in_flight: set[str] = set()
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def pending_count(self) -> int:
        """Documents waiting to be processed."""
        return len(self._pending)

    async def submit(self, event: DocumentChangeEvent) -> None:
        """Accept a change notification; waits when the queue is full.

        Renames are split into a removal of the old id and a modification of the
        new one, so coalescing never drops the removal.
        """
        if event.action == DocumentAction.RENAMED and event.old_document_id:
            await self.submit(
                DocumentChangeEvent(
                    document_id=event.old_document_id,
                    action=DocumentAction.DELETED,
                    timestamp=event.timestamp,
                )
            )
            event = event.model_copy(
                update={"action": DocumentAction.MODIFIED, "old_document_id": None}
            )

        self.stats.accepted += 1
        document_id = event.document_id
        previous = self._pending.get(document_id)
        self._pending[document_id] = self._merge(previous, event)

        if previous is not None:
            self.stats.coalesced += 1
            logger.debug("Coalesced pending event for '%s'", document_id)
            return
        if document_id in self._in_flight:
            # The owning worker picks it up when the current run finishes.
            return
        await self._queue.put(document_id)

    async def join(self) -> None:
        """Wait until every accepted event has been processed."""
        await self._queue.join()

    def start(self) -> None:
        """Spawn the worker tasks."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._worker(index), name=f"index-worker-{index}")
            for index in range(self.workers)
        ]
        logger.info("Index queue started with %d workers", self.workers)

    async def stop(self, timeout: float | None = None) -> None:
        """Drain outstanding work (up to ``timeout`` seconds), then stop the workers."""
        if not self._tasks:
            return
        try:
            await asyncio.wait_for(self.join(), timeout=timeout)
        except TimeoutError:
            logger.warning(
                "Shutdown timeout reached with %d documents pending, forcing stop",
                len(self._pending),
            )

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Index queue stopped: %s", self.stats)

    async def _worker(self, index: int) -> None:
        while True:
            document_id = await self._queue.get()
            self._in_flight.add(document_id)
            try:
                while document_id in self._pending:
                    event = self._pending.pop(document_id)
                    await self._process(event)
            finally:
                self._in_flight.discard(document_id)
                self._queue.task_done()

    async def _process(self, event: DocumentChangeEvent) -> None:
        try:
            success = await self.handler.handle(event)
        except Exception as exc:
            logger.error(
                "Handler raised for '%s': %s", event.document_id, exc, exc_info=True
            )
            success = False

        self.stats.processed += 1
        if not success:
            self.stats.failed += 1

    @staticmethod
    def _merge(
        previous: DocumentChangeEvent | None,
        latest: DocumentChangeEvent,
    ) -> DocumentChangeEvent:
        """The latest event wins, keeping the higher explicit version."""
        if previous is None:
            return latest
        if (
            previous.version is not None
            and latest.version is not None
            and previous.version > latest.version
        ):
            return previous
        return latest
