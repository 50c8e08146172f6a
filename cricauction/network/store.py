"""
Snapshot Store - The single shared remote document.

Two operations only:
    publish(document)  full replace (HTTP PUT)
    fetch()            current document (HTTP GET), None if never written

No versioning, no locking, no partial updates. Each publish overwrites
whatever was there; the last writer wins.
"""

import copy
from typing import Any, Dict, Optional

import httpx

from cricauction.utils.logger import get_logger

logger = get_logger("store")


class StoreError(Exception):
    """Transport-level failure talking to the snapshot store."""


class SnapshotStore:
    """Interface for the shared snapshot document."""

    async def publish(self, document: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def fetch(self) -> Optional[Any]:
        raise NotImplementedError

    async def close(self) -> None:
        """Release transport resources."""


class MemorySnapshotStore(SnapshotStore):
    """
    In-process store.

    Shared by several channels in one process (tests, local demos).
    Holds a deep copy so later local mutations never leak in.
    """

    def __init__(self, document: Optional[Dict[str, Any]] = None):
        self._document = copy.deepcopy(document)
        self.publish_count = 0
        self.fetch_count = 0

    async def publish(self, document: Dict[str, Any]) -> None:
        self._document = copy.deepcopy(document)
        self.publish_count += 1

    async def fetch(self) -> Optional[Dict[str, Any]]:
        self.fetch_count += 1
        return copy.deepcopy(self._document)

    @property
    def document(self) -> Optional[Dict[str, Any]]:
        return self._document


class HttpSnapshotStore(SnapshotStore):
    """
    JSON document at a fixed URL (PUT to replace, GET to read).

    Attributes:
        url: Document address
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def publish(self, document: Dict[str, Any]) -> None:
        try:
            response = await self._client.put(self.url, json=document)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StoreError(f"publish to {self.url} failed: {e}") from e
        logger.debug(f"Published snapshot to {self.url}")

    async def fetch(self) -> Optional[Any]:
        try:
            response = await self._client.get(self.url)
        except httpx.HTTPError as e:
            raise StoreError(f"fetch from {self.url} failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.is_error:
            raise StoreError(f"fetch from {self.url} returned {response.status_code}")
        # Raw text; schema validation happens in the protocol layer
        return response.text

    async def close(self) -> None:
        await self._client.aclose()


def create_store(url: Optional[str], timeout: float = 5.0) -> SnapshotStore:
    """HTTP store for a URL, in-memory store when no URL is given."""
    if not url or url == "memory://":
        return MemorySnapshotStore()
    return HttpSnapshotStore(url, timeout=timeout)
