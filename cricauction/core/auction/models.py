"""
Auction domain records.

Items (players), bidders (teams), bids, tiers and the replicated
snapshot that bundles them. Records are plain dataclasses; every state
transition over them goes through the AuctionEngine.
"""

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# Enums
# =============================================================================


class PlayerRole(Enum):
    """Playing role of an auctioned item."""
    BATSMAN = "Batsman"
    BOWLER = "Bowler"
    ALL_ROUNDER = "All-rounder"
    WICKETKEEPER = "Wicketkeeper"


class ItemStatus(Enum):
    """Lifecycle state of an item."""
    DRAFT = "Draft"     # Waiting to be auctioned
    LIVE = "Live"       # Accepting bids (at most one)
    SOLD = "Sold"       # Terminal, has an owner
    UNSOLD = "Unsold"   # Terminal, no owner


class Role(Enum):
    """Participant role in a session."""
    HOST = "host"       # Mutates and publishes
    VIEWER = "viewer"   # Polls and mirrors


ALL_ROLES = "All"


def new_id(nbytes: int = 8) -> str:
    """Fresh random identifier."""
    return secrets.token_hex(nbytes)


def now_ms() -> int:
    return int(time.time() * 1000)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Records
# =============================================================================


@dataclass
class BidRange:
    """
    A price band and the increment applied to prices inside it.

    Both bounds are inclusive; max=None means unbounded.
    """
    min: int
    max: Optional[int]
    increment: int
    id: str = field(default_factory=lambda: new_id(4))

    def contains(self, price: int) -> bool:
        return price >= self.min and (self.max is None or price <= self.max)


@dataclass
class Item:
    """A player put up for auction."""
    name: str
    role: PlayerRole = PlayerRole.BATSMAN
    age: int = 20
    base_price: int = 10000
    current_bid: int = 0
    status: ItemStatus = ItemStatus.DRAFT
    owner_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=lambda: {"matches": 0, "strikeRate": 0})
    verified: bool = False
    image: str = ""
    id: str = field(default_factory=new_id)

    @property
    def asking_price(self) -> int:
        """Price the next increment is computed from."""
        return self.current_bid or self.base_price


@dataclass
class Bidder:
    """A team with a purse."""
    name: str
    budget: int
    spent: int = 0
    id: str = field(default_factory=new_id)

    @property
    def remaining(self) -> int:
        return self.budget - self.spent


@dataclass
class Bid:
    """An accepted bid on the Live item."""
    item_id: str
    bidder_name: str
    amount: int
    timestamp: str = field(default_factory=now_iso)
    id: str = field(default_factory=lambda: new_id(5))


@dataclass
class AuctionConfig:
    """Replicated auction rules and presentation settings."""
    title: str = "Public Premier League"
    bid_ranges: List[BidRange] = field(default_factory=lambda: default_bid_ranges())
    time_per_item: int = 60
    max_items_per_bidder: int = 15
    default_budget: int = 10_000_000
    primary_color: str = "#39FF14"
    font_family: str = "Space Grotesk"


@dataclass
class Snapshot:
    """
    Complete replicable auction state.

    Always transferred whole; there is no partial update.
    """
    config: AuctionConfig
    bidders: List[Bidder]
    items: List[Item]
    bids: List[Bid]
    time_left: int
    is_timer_running: bool
    last_updated: int = 0

    @property
    def live_item(self) -> Optional[Item]:
        for item in self.items:
            if item.status == ItemStatus.LIVE:
                return item
        return None


# =============================================================================
# Defaults
# =============================================================================


def default_bid_ranges() -> List[BidRange]:
    return [
        BidRange(min=0, max=50_000, increment=2_000, id="1"),
        BidRange(min=50_001, max=200_000, increment=5_000, id="2"),
        BidRange(min=200_001, max=None, increment=10_000, id="3"),
    ]


def default_bidders(budget: int = 10_000_000) -> List[Bidder]:
    names = ["Mumbai Mavericks", "Delhi Dynamos", "Chennai Kings", "Bangalore Blasters"]
    return [Bidder(name=name, budget=budget, id=str(i)) for i, name in enumerate(names, start=1)]


def default_items() -> List[Item]:
    return [
        Item(
            id="1",
            name="Aryan Sharma",
            role=PlayerRole.ALL_ROUNDER,
            age=24,
            base_price=50_000,
            status=ItemStatus.LIVE,
            metadata={"matches": 45, "strikeRate": 145.5},
            verified=True,
            image="https://images.unsplash.com/photo-1540739414822-5c5703f4c812?w=800&fit=crop",
        )
    ]


def default_snapshot() -> Snapshot:
    """State of a process that has never run an auction."""
    config = AuctionConfig()
    return Snapshot(
        config=config,
        bidders=default_bidders(config.default_budget),
        items=default_items(),
        bids=[],
        time_left=config.time_per_item,
        is_timer_running=False,
    )
