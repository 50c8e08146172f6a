from pathlib import Path
from typing import Optional

from cricauction.core.auction.models import Role, Snapshot
from cricauction.core.storage.sqlite_adapter import SQLiteAdapter
from cricauction.network.protocol import (
    SnapshotValidationError,
    decode_snapshot,
    encode_snapshot_json,
)
from cricauction.utils.logger import get_logger

logger = get_logger("storage.manager")

SNAPSHOT_KEY = "auction_state"
ROLE_KEY = "role"


class StorageManager:
    """
    Manages the local cold-start cache.

    Handles:
    - Last snapshot written by the host (lastUpdated stripped)
    - The caller's role

    Only read at process start; an active session never consults it.
    """

    def __init__(self, data_dir: Path, db_name: str = "auction.db"):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)

        logger.debug(f"StorageManager initialized at {self.db_path}")

    # =========================================================================
    # Snapshot
    # =========================================================================

    def save_snapshot(self, snapshot: Snapshot):
        """Persist the auction state (without its publish timestamp)."""
        document = encode_snapshot_json(snapshot, include_timestamp=False)
        self.adapter.put(SNAPSHOT_KEY, document, bucket="snapshot")

    def load_snapshot(self) -> Optional[Snapshot]:
        """
        Load the cached auction state.

        Returns:
            Snapshot, or None if nothing usable is stored
        """
        document = self.adapter.get(SNAPSHOT_KEY)
        if document is None:
            return None
        try:
            return decode_snapshot(document, require_timestamp=False)
        except SnapshotValidationError as e:
            logger.warning(f"Ignoring cached snapshot: {e}")
            return None

    def has_snapshot(self) -> bool:
        return self.adapter.get(SNAPSHOT_KEY) is not None

    # =========================================================================
    # Role
    # =========================================================================

    def save_role(self, role: Role):
        self.adapter.set_meta(ROLE_KEY, role.value)

    def load_role(self) -> Optional[Role]:
        value = self.adapter.get_meta(ROLE_KEY)
        if value is None:
            return None
        try:
            return Role(value)
        except ValueError:
            logger.warning(f"Ignoring unknown cached role: {value}")
            return None

    # =========================================================================
    # Reset
    # =========================================================================

    def clear(self):
        """Forget the cached snapshot and role."""
        self.adapter.clear()

    def close(self):
        self.adapter.close()
