"""
Auction Session - One participant's view of the room.

Wires the engine, the replication channel and the local cache for a
role:
- Host: every engine change is written to the local cache and queued
  for publishing.
- Viewer: a poll loop overwrites the engine from the shared document.

Leaving a session cancels the countdown tick, the poll loop and any
queued publish.
"""

from typing import Optional

from cricauction.core.auction.engine import AuctionEngine
from cricauction.core.auction.models import Role, Snapshot, default_snapshot
from cricauction.core.config import AuctionSettings
from cricauction.core.storage import StorageManager
from cricauction.network.store import SnapshotStore, create_store
from cricauction.network.sync import ReplicationChannel, SyncStatus
from cricauction.utils.logger import get_logger

logger = get_logger("session")


class AuctionSession:
    """
    Session lifecycle for a single process.

    Attributes:
        settings: Runtime settings
        storage: Local cold-start cache
        store: Shared snapshot document
        engine: Local auction state
        role: Current (or last used) role
        channel: Replication channel while active
    """

    def __init__(
        self,
        settings: AuctionSettings,
        storage: StorageManager,
        store: SnapshotStore,
    ):
        self.settings = settings
        self.storage = storage
        self.store = store
        self.role: Role = storage.load_role() or Role.VIEWER
        self.engine = AuctionEngine(
            snapshot=self._cold_start_snapshot(),
            is_host=self.role == Role.HOST,
            tick_interval=settings.tick_interval,
        )
        self.channel: Optional[ReplicationChannel] = None
        self.active = False

    @classmethod
    def from_settings(cls, settings: AuctionSettings) -> "AuctionSession":
        storage = StorageManager(settings.data_dir)
        store = create_store(settings.store_url, timeout=settings.request_timeout)
        return cls(settings, storage, store)

    def _cold_start_snapshot(self) -> Snapshot:
        snapshot = self.storage.load_snapshot()
        if snapshot is not None:
            logger.info("Restored auction state from local cache")
            return snapshot
        return default_snapshot()

    @property
    def is_host(self) -> bool:
        return self.role == Role.HOST

    @property
    def sync_status(self) -> SyncStatus:
        return self.channel.status if self.channel else SyncStatus.IDLE

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def enter(self, role: Role) -> None:
        """Start participating as host or viewer."""
        if self.active:
            await self.leave()

        self.role = role
        self.storage.save_role(role)
        self.engine.is_host = role == Role.HOST
        self.channel = ReplicationChannel(
            self.store,
            role,
            self.engine,
            poll_interval=self.settings.poll_interval,
            monotonic=self.settings.monotonic_polling,
        )
        self.active = True

        if role == Role.HOST:
            self.engine.add_listener(self._on_change)
            self.engine.resume_timer()
            # Announce current state so viewers pick it up immediately
            self._on_change()
        else:
            self.channel.start_polling()

        logger.info(f"Entered session as {role.value}")

    async def enter_as_host(self) -> None:
        await self.enter(Role.HOST)

    async def enter_as_viewer(self) -> None:
        await self.enter(Role.VIEWER)

    async def leave(self) -> None:
        """Stop ticking, polling and publishing."""
        if not self.active:
            return
        self.engine.remove_listener(self._on_change)
        self.engine.timer.detach()
        if self.channel is not None:
            await self.channel.stop()
        self.active = False
        logger.info("Left session")

    async def reset(self) -> None:
        """
        Wipe the local cache and return to the default state.

        Destructive and irreversible. The role falls back to viewer.
        """
        await self.leave()
        self.storage.clear()
        self.role = Role.VIEWER
        self.engine.is_host = False
        self.engine.load_snapshot(default_snapshot())
        logger.warning("Local auction data reset")

    async def refresh(self) -> bool:
        """
        Fetch the shared document once, as a viewer, without polling.

        Returns:
            True if a snapshot was applied
        """
        if self.active:
            await self.leave()
        self.engine.is_host = False
        self.channel = ReplicationChannel(
            self.store,
            Role.VIEWER,
            self.engine,
            poll_interval=self.settings.poll_interval,
            monotonic=self.settings.monotonic_polling,
        )
        return await self.channel.poll_once()

    async def close(self) -> None:
        await self.leave()
        await self.store.close()
        self.storage.close()

    # =========================================================================
    # Change Propagation (host)
    # =========================================================================

    def _on_change(self) -> None:
        if not self.active or self.role != Role.HOST:
            return
        snapshot = self.engine.snapshot()
        self.storage.save_snapshot(snapshot)
        self.channel.schedule_publish(snapshot)
