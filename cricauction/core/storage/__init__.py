"""
Local Persistence Module.

Provides the SQLite-backed cold-start cache:
- Last known auction snapshot (without its publish timestamp)
- The caller's role (host or viewer)
"""

from cricauction.core.storage.sqlite_adapter import SQLiteAdapter
from cricauction.core.storage.storage_manager import StorageManager

__all__ = ["SQLiteAdapter", "StorageManager"]
