"""
cricauction Auction Module.

This module provides the auction core:
- Domain records (items, bidders, bids, tiers, snapshot)
- Tiered increment lookup and tier table validation
- Countdown timer
- Auction engine state machine
"""

from cricauction.core.auction.models import (
    ALL_ROLES,
    AuctionConfig,
    Bid,
    BidRange,
    Bidder,
    Item,
    ItemStatus,
    PlayerRole,
    Role,
    Snapshot,
    default_snapshot,
)

from cricauction.core.auction.bid_ranges import (
    DEFAULT_INCREMENT,
    covering_tiers,
    find_tier,
    increment_for_price,
    next_bid_amount,
    validate_bid_ranges,
)

from cricauction.core.auction.timer import CountdownTimer

from cricauction.core.auction.engine import (
    AuctionEngine,
    ALREADY_HIGHEST,
    INSUFFICIENT_PURSE,
    NO_ELIGIBLE_ITEM,
    NO_LIVE_ITEM,
    NOT_HOST,
    NOTHING_TO_UNDO,
    SQUAD_FULL,
    UNKNOWN_BIDDER,
    UNKNOWN_ROLE,
)

__all__ = [
    # Models
    "ALL_ROLES",
    "AuctionConfig",
    "Bid",
    "BidRange",
    "Bidder",
    "Item",
    "ItemStatus",
    "PlayerRole",
    "Role",
    "Snapshot",
    "default_snapshot",
    # Tiers
    "DEFAULT_INCREMENT",
    "covering_tiers",
    "find_tier",
    "increment_for_price",
    "next_bid_amount",
    "validate_bid_ranges",
    # Timer
    "CountdownTimer",
    # Engine
    "AuctionEngine",
    "ALREADY_HIGHEST",
    "INSUFFICIENT_PURSE",
    "NO_ELIGIBLE_ITEM",
    "NO_LIVE_ITEM",
    "NOT_HOST",
    "NOTHING_TO_UNDO",
    "SQUAD_FULL",
    "UNKNOWN_BIDDER",
    "UNKNOWN_ROLE",
]
