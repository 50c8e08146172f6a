"""
cricauction Network Module - Snapshot replication.

Provides the shared document store, the snapshot wire schema and the
host-publish / viewer-poll channel.
"""

from cricauction.network.protocol import (
    SnapshotDocument,
    SnapshotValidationError,
    StateDocument,
    decode_snapshot,
    encode_snapshot,
    encode_snapshot_json,
)
from cricauction.network.store import (
    HttpSnapshotStore,
    MemorySnapshotStore,
    SnapshotStore,
    StoreError,
    create_store,
)
from cricauction.network.sync import ReplicationChannel, SyncProgress, SyncStatus

__all__ = [
    # Protocol
    "SnapshotDocument",
    "SnapshotValidationError",
    "StateDocument",
    "decode_snapshot",
    "encode_snapshot",
    "encode_snapshot_json",
    # Store
    "HttpSnapshotStore",
    "MemorySnapshotStore",
    "SnapshotStore",
    "StoreError",
    "create_store",
    # Sync
    "ReplicationChannel",
    "SyncProgress",
    "SyncStatus",
]
