"""
Replication Channel - Snapshot synchronization between host and viewers.

Protocol:
1. Host: every state change serializes the full snapshot (fresh
   lastUpdated) and overwrites the shared document. Publishing runs in
   the background; the local change is never delayed or rolled back.
2. Viewer: every poll_interval seconds fetch the document, validate it,
   and replace the entire local state with it.
3. Failures (transport or schema) set status ERROR, are logged, and are
   retried on the next change/interval. Local state is kept as-is.

The role check lives here: a viewer channel never publishes and a host
channel never polls. Nothing stops two hosts from racing each other;
the last publish silently wins.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from cricauction.core.auction.engine import AuctionEngine
from cricauction.core.auction.models import Role, Snapshot
from cricauction.network.protocol import SnapshotValidationError, decode_snapshot, encode_snapshot
from cricauction.network.store import SnapshotStore, StoreError
from cricauction.utils.logger import get_logger

logger = get_logger("sync")


class SyncStatus(Enum):
    """Replication status flag."""
    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


@dataclass
class SyncProgress:
    """Tracks replication activity."""
    status: SyncStatus = SyncStatus.IDLE
    published: int = 0
    applied: int = 0
    skipped: int = 0
    failures: int = 0
    last_error: Optional[str] = None
    last_applied: int = 0  # lastUpdated of the last applied snapshot


class ReplicationChannel:
    """
    Moves whole snapshots between an engine and the shared store.

    Attributes:
        store: Shared document
        role: HOST publishes, VIEWER polls
        engine: Local state
        poll_interval: Seconds between viewer fetches
        monotonic: Discard fetched snapshots not newer than the last one
    """

    def __init__(
        self,
        store: SnapshotStore,
        role: Role,
        engine: AuctionEngine,
        poll_interval: float = 2.0,
        monotonic: bool = False,
    ):
        self.store = store
        self.role = role
        self.engine = engine
        self.poll_interval = poll_interval
        self.monotonic = monotonic
        self.progress = SyncProgress()

        self._outbox: Optional[Dict[str, Any]] = None
        self._publisher: Optional[asyncio.Task] = None
        self._poller: Optional[asyncio.Task] = None

    @property
    def status(self) -> SyncStatus:
        return self.progress.status

    def _record_failure(self, error: Exception) -> None:
        self.progress.status = SyncStatus.ERROR
        self.progress.failures += 1
        self.progress.last_error = str(error)
        logger.warning(f"Sync failed: {error}")

    # =========================================================================
    # Publish (host)
    # =========================================================================

    def schedule_publish(self, snapshot: Optional[Snapshot] = None) -> bool:
        """
        Queue the current state for publishing without waiting.

        Only the newest queued document is sent once the in-flight publish
        finishes, so publishes leave this process in mutation order.

        Returns:
            True if queued
        """
        if self.role != Role.HOST:
            logger.warning("Publish refused: not the host")
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("Publish skipped: no running event loop")
            return False

        self._outbox = encode_snapshot(snapshot or self.engine.snapshot())
        if self._publisher is None or self._publisher.done():
            self._publisher = loop.create_task(self._drain_outbox())
        return True

    async def publish(self, snapshot: Optional[Snapshot] = None) -> bool:
        """
        Publish a snapshot now and wait for the result.

        Returns:
            True if the store accepted it
        """
        if self.role != Role.HOST:
            logger.warning("Publish refused: not the host")
            return False
        return await self._send(encode_snapshot(snapshot or self.engine.snapshot()))

    async def flush(self) -> None:
        """Wait until every queued publish has been attempted."""
        if self._publisher is not None:
            await self._publisher

    async def _drain_outbox(self) -> None:
        while self._outbox is not None:
            document, self._outbox = self._outbox, None
            await self._send(document)

    async def _send(self, document: Dict[str, Any]) -> bool:
        self.progress.status = SyncStatus.SYNCING
        try:
            await self.store.publish(document)
        except StoreError as e:
            self._record_failure(e)
            return False
        self.progress.status = SyncStatus.IDLE
        self.progress.published += 1
        return True

    # =========================================================================
    # Poll (viewer)
    # =========================================================================

    async def poll_once(self) -> bool:
        """
        Fetch the shared document and, if valid, replace local state.

        Returns:
            True if a snapshot was applied
        """
        if self.role != Role.VIEWER:
            logger.warning("Poll refused: the host does not poll")
            return False

        self.progress.status = SyncStatus.SYNCING
        try:
            payload = await self.store.fetch()
            if payload is None:
                logger.debug("Shared document is empty")
                self.progress.status = SyncStatus.IDLE
                return False
            snapshot = decode_snapshot(payload)
        except (StoreError, SnapshotValidationError) as e:
            self._record_failure(e)
            return False

        if self.monotonic and snapshot.last_updated <= self.progress.last_applied:
            logger.debug(
                f"Discarding stale snapshot {snapshot.last_updated} "
                f"(have {self.progress.last_applied})"
            )
            self.progress.skipped += 1
            self.progress.status = SyncStatus.IDLE
            return False

        self.engine.load_snapshot(snapshot)
        self.progress.last_applied = snapshot.last_updated
        self.progress.applied += 1
        self.progress.status = SyncStatus.IDLE
        return True

    def start_polling(self) -> bool:
        """Start the poll loop (first fetch immediately)."""
        if self.role != Role.VIEWER:
            logger.warning("Poll refused: the host does not poll")
            return False
        if self._poller is not None and not self._poller.done():
            return True
        self._poller = asyncio.get_running_loop().create_task(self._poll_loop())
        logger.info(f"Polling every {self.poll_interval}s")
        return True

    @property
    def is_polling(self) -> bool:
        return self._poller is not None and not self._poller.done()

    async def _poll_loop(self) -> None:
        while True:
            await self.poll_once()
            await asyncio.sleep(self.poll_interval)

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def stop(self) -> None:
        """Cancel the poll loop and any queued or in-flight publish."""
        self._outbox = None
        tasks = [t for t in (self._poller, self._publisher) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._poller = None
        self._publisher = None
