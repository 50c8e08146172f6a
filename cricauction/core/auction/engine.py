"""
Auction Engine - Item state machine and bid ledger.

Drives one item at a time through:
    Draft --start--> Live --hammer(sold)--> Sold
                     Live --hammer(unsold)--> Unsold

Only the Live item accepts bids and runs the countdown. Operations
return (success, reason); a rejected operation leaves state untouched.
Every accepted mutation (and every countdown step) notifies listeners,
which is how the session persists and publishes.
"""

import copy
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from cricauction.core.auction.bid_ranges import (
    next_bid_amount,
    sorted_ranges,
    validate_bid_ranges,
)
from cricauction.core.auction.models import (
    ALL_ROLES,
    AuctionConfig,
    Bid,
    Bidder,
    Item,
    ItemStatus,
    PlayerRole,
    Snapshot,
    default_snapshot,
    now_ms,
)
from cricauction.core.auction.timer import CountdownTimer
from cricauction.utils.logger import get_logger
from cricauction.utils.validation import validate_amount, validate_integer, validate_name

logger = get_logger("engine")


# =============================================================================
# Rejection Reasons
# =============================================================================

NOT_HOST = "Only the host can change the auction"
NO_LIVE_ITEM = "No item is live"
UNKNOWN_BIDDER = "Bidder not found"
UNKNOWN_ITEM = "Item not found"
ALREADY_HIGHEST = "Highest bidder already"
SQUAD_FULL = "Squad full"
INSUFFICIENT_PURSE = "Insufficient purse"
NOTHING_TO_UNDO = "No bids to undo"
NO_ELIGIBLE_ITEM = "No draft item available"
UNKNOWN_ROLE = "Unknown player role"

CONFIG_FIELDS = (
    "title",
    "bid_ranges",
    "time_per_item",
    "max_items_per_bidder",
    "default_budget",
    "primary_color",
    "font_family",
)


class AuctionEngine:
    """
    Owns the auction state of one process.

    Attributes:
        config: Replicated rules
        bidders: Teams in display order
        items: Players in roster order
        bids: Ledger for the Live item, newest first
        timer: Countdown for the Live item
        is_host: Whether mutations are permitted
    """

    def __init__(
        self,
        snapshot: Optional[Snapshot] = None,
        is_host: bool = False,
        tick_interval: float = 1.0,
    ):
        self.is_host = is_host
        self.timer = CountdownTimer(interval=tick_interval, on_tick=self._notify)
        self._listeners: List[Callable[[], None]] = []

        self.config: AuctionConfig
        self.bidders: List[Bidder]
        self.items: List[Item]
        self.bids: List[Bid]
        self._replace_state(snapshot or default_snapshot())

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback run after every state change."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    def _reject(self, operation: str, reason: str) -> Tuple[bool, str]:
        logger.info(f"{operation} rejected: {reason}")
        return False, reason

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def live_item(self) -> Optional[Item]:
        for item in self.items:
            if item.status == ItemStatus.LIVE:
                return item
        return None

    @property
    def highest_bid(self) -> Optional[Bid]:
        return self.bids[0] if self.bids else None

    @property
    def time_left(self) -> int:
        return self.timer.value

    @property
    def is_timer_running(self) -> bool:
        return self.timer.running

    def get_bidder(self, bidder_id: str) -> Optional[Bidder]:
        for bidder in self.bidders:
            if bidder.id == bidder_id:
                return bidder
        return None

    def get_bidder_by_name(self, name: str) -> Optional[Bidder]:
        for bidder in self.bidders:
            if bidder.name == name:
                return bidder
        return None

    def get_item(self, item_id: str) -> Optional[Item]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def items_won(self, bidder_id: str) -> List[Item]:
        """Items owned by a bidder, in roster order."""
        return [item for item in self.items if item.owner_id == bidder_id]

    def remaining_purse(self, bidder_id: str) -> Optional[int]:
        bidder = self.get_bidder(bidder_id)
        return bidder.remaining if bidder else None

    def draft_items(self, role_filter: Any = None) -> List[Item]:
        """
        Draft items, optionally restricted to one role.

        Args:
            role_filter: PlayerRole, its string value, "All" or None
        """
        role = _coerce_role(role_filter)
        return [
            item for item in self.items
            if item.status == ItemStatus.DRAFT and (role is None or item.role == role)
        ]

    # =========================================================================
    # Bidding
    # =========================================================================

    def place_bid(self, bidder_id: str) -> Tuple[bool, str]:
        """
        Raise the Live item's price by one increment on behalf of a bidder.

        Checks, in order: host, Live item, bidder exists, not already
        highest, squad not full, purse covers the new amount.

        Returns:
            (success, reason)
        """
        if not self.is_host:
            return self._reject("place_bid", NOT_HOST)

        item = self.live_item
        if item is None:
            return self._reject("place_bid", NO_LIVE_ITEM)

        bidder = self.get_bidder(bidder_id)
        if bidder is None:
            return self._reject("place_bid", UNKNOWN_BIDDER)

        if self.bids and self.bids[0].bidder_name == bidder.name:
            return self._reject("place_bid", ALREADY_HIGHEST)

        if len(self.items_won(bidder.id)) >= self.config.max_items_per_bidder:
            return self._reject("place_bid", SQUAD_FULL)

        amount = next_bid_amount(self.config.bid_ranges, item.asking_price)
        if bidder.spent + amount > bidder.budget:
            return self._reject(
                "place_bid",
                f"{INSUFFICIENT_PURSE}: {bidder.name} needs {amount}, has {bidder.remaining}",
            )

        self.bids.insert(0, Bid(item_id=item.id, bidder_name=bidder.name, amount=amount))
        item.current_bid = amount

        # Every accepted bid extends the clock
        self.timer.reset(self.config.time_per_item)
        self.timer.start()

        logger.info(f"Bid: {bidder.name} -> {item.name} at {amount}")
        self._notify()
        return True, ""

    def undo_last_bid(self) -> Tuple[bool, str]:
        """
        Drop the newest bid and restore the previous price.

        The countdown is reset but not restarted.
        """
        if not self.is_host:
            return self._reject("undo_last_bid", NOT_HOST)
        if not self.bids:
            return self._reject("undo_last_bid", NOTHING_TO_UNDO)

        removed = self.bids.pop(0)
        item = self.get_item(removed.item_id) or self.live_item
        if item is not None:
            item.current_bid = self.bids[0].amount if self.bids else 0

        self.timer.reset(self.config.time_per_item)

        logger.info(f"Undo: removed {removed.bidder_name} at {removed.amount}")
        self._notify()
        return True, ""

    # =========================================================================
    # Item Transitions
    # =========================================================================

    def start_next(
        self,
        item_id: Optional[str] = None,
        role_filter: Any = None,
    ) -> Tuple[bool, str]:
        """
        Put an item up for bidding.

        Any Live item goes back to Draft first. The target is item_id if
        it is a Draft item, else the first Draft item matching role_filter.

        Returns:
            (True, "") when an item went Live, (True, NO_ELIGIBLE_ITEM)
            when nothing was eligible (the revert still happened)
        """
        if not self.is_host:
            return self._reject("start_next", NOT_HOST)
        try:
            role = _coerce_role(role_filter)
        except ValueError:
            return self._reject("start_next", f"{UNKNOWN_ROLE}: {role_filter}")

        for item in self.items:
            if item.status == ItemStatus.LIVE:
                item.status = ItemStatus.DRAFT
                item.current_bid = 0

        target = None
        if item_id is not None:
            candidate = self.get_item(item_id)
            if candidate is not None and candidate.status == ItemStatus.DRAFT:
                target = candidate
        if target is None:
            drafts = self.draft_items(role)
            target = drafts[0] if drafts else None

        self.timer.reset(self.config.time_per_item)
        self.bids.clear()

        if target is None:
            logger.info("start_next: no draft item available")
            self._notify()
            return True, NO_ELIGIBLE_ITEM

        target.status = ItemStatus.LIVE
        logger.info(f"Live: {target.name} (base {target.base_price})")
        self._notify()
        return True, ""

    def finalize_sale(self, sold: bool) -> Tuple[bool, str]:
        """
        Close bidding on the Live item.

        Sold with a winner charges the winner and records ownership.
        Anything else (unsold, or sold with an empty ledger) ends Unsold
        with no purse change.
        """
        if not self.is_host:
            return self._reject("finalize_sale", NOT_HOST)

        item = self.live_item
        if item is None:
            return self._reject("finalize_sale", NO_LIVE_ITEM)

        last_bid = self.highest_bid
        winner = self.get_bidder_by_name(last_bid.bidder_name) if last_bid else None

        if sold and winner is not None and winner.spent + last_bid.amount <= winner.budget:
            item.status = ItemStatus.SOLD
            item.owner_id = winner.id
            winner.spent += last_bid.amount
            logger.info(f"Sold: {item.name} to {winner.name} for {last_bid.amount}")
        else:
            if sold:
                logger.warning(f"Sold requested for {item.name} without a chargeable winner; marking Unsold")
            item.status = ItemStatus.UNSOLD
            item.owner_id = None
            logger.info(f"Unsold: {item.name}")

        self.timer.stop()
        self.timer.reset(self.config.time_per_item)
        self.bids.clear()

        self._notify()
        return True, ""

    # =========================================================================
    # Roster & Configuration
    # =========================================================================

    def append_items(self, new_items: Sequence[Item]) -> Tuple[bool, str]:
        """Append Draft items with unused ids (all or nothing)."""
        if not self.is_host:
            return self._reject("append_items", NOT_HOST)

        seen = {item.id for item in self.items}
        for item in new_items:
            if item.id in seen:
                return self._reject("append_items", f"Duplicate item id: {item.id}")
            if item.status != ItemStatus.DRAFT:
                return self._reject("append_items", f"Imported item {item.name} must be Draft")
            for field, value in (("age", item.age), ("base_price", item.base_price),
                                 ("current_bid", item.current_bid)):
                valid, err = validate_amount(value, field)
                if not valid:
                    return self._reject("append_items", f"{item.name}: {err}")
            seen.add(item.id)

        self.items.extend(new_items)
        logger.info(f"Appended {len(new_items)} items")
        self._notify()
        return True, ""

    def remove_item(self, item_id: str) -> Tuple[bool, str]:
        if not self.is_host:
            return self._reject("remove_item", NOT_HOST)
        item = self.get_item(item_id)
        if item is None:
            return self._reject("remove_item", UNKNOWN_ITEM)
        if item.status == ItemStatus.LIVE:
            return self._reject("remove_item", "Cannot remove the live item")

        self.items.remove(item)
        self._notify()
        return True, ""

    def add_bidder(self, name: str, budget: Optional[int] = None) -> Tuple[bool, str]:
        """Add a team; budget defaults to the configured default purse."""
        if not self.is_host:
            return self._reject("add_bidder", NOT_HOST)

        valid, err = validate_name(name, "bidder name")
        if not valid:
            return self._reject("add_bidder", err)
        if self.get_bidder_by_name(name) is not None:
            return self._reject("add_bidder", f"Bidder name already used: {name}")

        budget = self.config.default_budget if budget is None else budget
        valid, err = validate_amount(budget, "budget")
        if not valid:
            return self._reject("add_bidder", err)

        self.bidders.append(Bidder(name=name, budget=budget))
        self._notify()
        return True, ""

    def remove_bidder(self, bidder_id: str) -> Tuple[bool, str]:
        if not self.is_host:
            return self._reject("remove_bidder", NOT_HOST)
        bidder = self.get_bidder(bidder_id)
        if bidder is None:
            return self._reject("remove_bidder", UNKNOWN_BIDDER)
        if self.items_won(bidder.id):
            return self._reject("remove_bidder", f"{bidder.name} already owns items")
        if any(bid.bidder_name == bidder.name for bid in self.bids):
            return self._reject("remove_bidder", f"{bidder.name} is bidding on the live item")

        self.bidders.remove(bidder)
        self._notify()
        return True, ""

    def update_config(self, **changes) -> Tuple[bool, str]:
        """
        Apply configuration edits after validating them.

        A new tier table must cover every price exactly once.
        """
        if not self.is_host:
            return self._reject("update_config", NOT_HOST)

        unknown = set(changes) - set(CONFIG_FIELDS)
        if unknown:
            return self._reject("update_config", f"Unknown config fields: {sorted(unknown)}")

        if "bid_ranges" in changes:
            valid, err = validate_bid_ranges(changes["bid_ranges"])
            if not valid:
                return self._reject("update_config", err)
        if "time_per_item" in changes:
            valid, err = validate_integer(changes["time_per_item"], "time_per_item", min_val=1)
            if not valid:
                return self._reject("update_config", err)
        if "max_items_per_bidder" in changes:
            valid, err = validate_amount(changes["max_items_per_bidder"], "max_items_per_bidder")
            if not valid:
                return self._reject("update_config", err)
        if "default_budget" in changes:
            valid, err = validate_amount(changes["default_budget"], "default_budget")
            if not valid:
                return self._reject("update_config", err)

        for key, value in changes.items():
            if key == "bid_ranges":
                value = sorted_ranges(value)
            setattr(self.config, key, value)

        logger.info(f"Config updated: {sorted(changes)}")
        self._notify()
        return True, ""

    # =========================================================================
    # Snapshot I/O
    # =========================================================================

    def snapshot(self) -> Snapshot:
        """Detached copy of the full state, stamped now."""
        return Snapshot(
            config=copy.deepcopy(self.config),
            bidders=copy.deepcopy(self.bidders),
            items=copy.deepcopy(self.items),
            bids=copy.deepcopy(self.bids),
            time_left=self.timer.value,
            is_timer_running=self.timer.running,
            last_updated=now_ms(),
        )

    def load_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the entire state with a snapshot (never merges)."""
        self._replace_state(snapshot)
        self._notify()

    def resume_timer(self) -> None:
        """Schedule ticking for a running countdown restored from a snapshot."""
        if self.is_host and self.timer.running:
            self.timer.start()

    def _replace_state(self, snapshot: Snapshot) -> None:
        snapshot = copy.deepcopy(snapshot)
        self.config = snapshot.config
        self.bidders = snapshot.bidders
        self.items = snapshot.items
        self.bids = snapshot.bids
        self.timer.load(snapshot.time_left, snapshot.is_timer_running)


def _coerce_role(role_filter: Any) -> Optional[PlayerRole]:
    if role_filter is None or role_filter == ALL_ROLES:
        return None
    if isinstance(role_filter, PlayerRole):
        return role_filter
    return PlayerRole(role_filter)


def count_live(items: Iterable[Item]) -> int:
    return sum(1 for item in items if item.status == ItemStatus.LIVE)
