"""
Tests for the Auction Engine.

Tests cover:
1. Bid placement and its precondition order
2. Undo
3. Starting the next item
4. Finalizing a sale
5. Invariants (single Live item, spent <= budget)
6. Roster and configuration edits
"""

import pytest

from cricauction.core.auction import (
    ALREADY_HIGHEST,
    INSUFFICIENT_PURSE,
    NO_ELIGIBLE_ITEM,
    NO_LIVE_ITEM,
    NOT_HOST,
    NOTHING_TO_UNDO,
    SQUAD_FULL,
    UNKNOWN_BIDDER,
    AuctionConfig,
    AuctionEngine,
    BidRange,
    Bidder,
    Item,
    ItemStatus,
    PlayerRole,
    Snapshot,
    default_snapshot,
)
from cricauction.core.auction.engine import UNKNOWN_ROLE, count_live
from cricauction.network import encode_snapshot


# =============================================================================
# Fixtures
# =============================================================================


def make_snapshot(items=None, bidders=None, **config) -> Snapshot:
    cfg = AuctionConfig(**config)
    return Snapshot(
        config=cfg,
        bidders=bidders if bidders is not None else [
            Bidder(id="a", name="Alpha", budget=1_000_000),
            Bidder(id="b", name="Bravo", budget=1_000_000),
        ],
        items=items if items is not None else [
            Item(id="p1", name="One", role=PlayerRole.BATSMAN, base_price=50_000),
            Item(id="p2", name="Two", role=PlayerRole.BOWLER, base_price=20_000),
            Item(id="p3", name="Three", role=PlayerRole.BOWLER, base_price=100_000),
        ],
        bids=[],
        time_left=cfg.time_per_item,
        is_timer_running=False,
    )


@pytest.fixture
def engine():
    return AuctionEngine(snapshot=make_snapshot(), is_host=True)


@pytest.fixture
def live_engine(engine):
    engine.start_next("p1")
    return engine


def state_of(engine: AuctionEngine):
    snap = engine.snapshot()
    snap.last_updated = 0
    return snap


# =============================================================================
# Bidding
# =============================================================================


class TestPlaceBid:
    """Tests for place_bid."""

    def test_first_bid_from_base_price(self, live_engine):
        """First bid adds the increment for the base price."""
        ok, reason = live_engine.place_bid("a")

        assert ok, reason
        item = live_engine.live_item
        assert item.current_bid == 52_000
        assert live_engine.bids[0].amount == 52_000
        assert live_engine.bids[0].bidder_name == "Alpha"
        assert live_engine.bids[0].item_id == "p1"

    def test_bids_are_newest_first(self, live_engine):
        live_engine.place_bid("a")
        live_engine.place_bid("b")

        assert [b.bidder_name for b in live_engine.bids] == ["Bravo", "Alpha"]
        assert live_engine.live_item.current_bid == 57_000

    def test_bid_resets_and_starts_clock(self, live_engine):
        live_engine.timer.value = 3

        live_engine.place_bid("a")

        assert live_engine.time_left == live_engine.config.time_per_item
        assert live_engine.is_timer_running

    def test_viewer_rejected(self):
        engine = AuctionEngine(snapshot=default_snapshot(), is_host=False)
        before = state_of(engine)

        ok, reason = engine.place_bid("1")

        assert not ok
        assert reason == NOT_HOST
        assert state_of(engine) == before

    def test_no_live_item(self, engine):
        ok, reason = engine.place_bid("a")
        assert not ok
        assert reason == NO_LIVE_ITEM

    def test_unknown_bidder(self, live_engine):
        ok, reason = live_engine.place_bid("zzz")
        assert not ok
        assert reason == UNKNOWN_BIDDER

    def test_already_highest_is_stable(self, live_engine):
        """Repeating a rejected bid never changes state."""
        live_engine.place_bid("a")
        before = state_of(live_engine)

        first = live_engine.place_bid("a")
        after_first = state_of(live_engine)
        second = live_engine.place_bid("a")

        assert first == (False, ALREADY_HIGHEST)
        assert second == (False, ALREADY_HIGHEST)
        assert after_first == before
        assert state_of(live_engine) == before

    def test_squad_full(self):
        items = [
            Item(id="owned", name="Owned", status=ItemStatus.SOLD, owner_id="a", current_bid=10_000),
            Item(id="p1", name="One", base_price=10_000, status=ItemStatus.LIVE),
        ]
        engine = AuctionEngine(
            snapshot=make_snapshot(items=items, max_items_per_bidder=1),
            is_host=True,
        )

        ok, reason = engine.place_bid("a")

        assert not ok
        assert reason == SQUAD_FULL
        assert engine.bids == []

    def test_insufficient_purse(self):
        """budget 100000, spent 95000, candidate 10000 -> rejected."""
        bidders = [Bidder(id="a", name="Alpha", budget=100_000, spent=95_000)]
        items = [Item(id="p1", name="One", base_price=8_000, status=ItemStatus.LIVE)]
        engine = AuctionEngine(snapshot=make_snapshot(items=items, bidders=bidders), is_host=True)

        ok, reason = engine.place_bid("a")

        assert not ok
        assert INSUFFICIENT_PURSE in reason
        assert engine.get_bidder("a").spent == 95_000
        assert engine.live_item.current_bid == 0
        assert engine.bids == []

    def test_exact_purse_allowed(self):
        bidders = [Bidder(id="a", name="Alpha", budget=100_000, spent=90_000)]
        items = [Item(id="p1", name="One", base_price=8_000, status=ItemStatus.LIVE)]
        engine = AuctionEngine(snapshot=make_snapshot(items=items, bidders=bidders), is_host=True)

        ok, _ = engine.place_bid("a")

        assert ok
        assert engine.live_item.current_bid == 10_000

    def test_precondition_order(self):
        """Already-highest is reported before squad-full and purse checks."""
        bidders = [
            Bidder(id="a", name="Alpha", budget=60_000),
            Bidder(id="b", name="Bravo", budget=1_000_000),
        ]
        items = [Item(id="p1", name="One", base_price=50_000, status=ItemStatus.LIVE)]
        engine = AuctionEngine(snapshot=make_snapshot(items=items, bidders=bidders), is_host=True)
        engine.place_bid("a")
        engine.config.max_items_per_bidder = 0

        assert engine.place_bid("a") == (False, ALREADY_HIGHEST)
        assert engine.place_bid("b") == (False, SQUAD_FULL)

    def test_listener_notified(self, live_engine):
        calls = []
        live_engine.add_listener(lambda: calls.append(1))

        live_engine.place_bid("a")
        live_engine.place_bid("a")  # rejected

        assert len(calls) == 1


# =============================================================================
# Undo
# =============================================================================


class TestUndo:
    """Tests for undo_last_bid."""

    def test_single_bid_undo(self, live_engine):
        live_engine.place_bid("a")

        ok, _ = live_engine.undo_last_bid()

        assert ok
        assert live_engine.live_item.current_bid == 0
        assert len(live_engine.bids) == 0

    def test_restores_previous_amount(self, live_engine):
        live_engine.place_bid("a")
        live_engine.place_bid("b")

        live_engine.undo_last_bid()

        assert live_engine.live_item.current_bid == 52_000
        assert live_engine.bids[0].bidder_name == "Alpha"

    def test_empty_ledger_rejected(self, live_engine):
        ok, reason = live_engine.undo_last_bid()
        assert not ok
        assert reason == NOTHING_TO_UNDO

    def test_does_not_restart_stopped_clock(self, live_engine):
        live_engine.place_bid("a")
        live_engine.timer.stop()
        live_engine.timer.value = 5

        live_engine.undo_last_bid()

        assert live_engine.time_left == live_engine.config.time_per_item
        assert not live_engine.is_timer_running

    def test_viewer_rejected(self, live_engine):
        live_engine.place_bid("a")
        live_engine.is_host = False

        assert live_engine.undo_last_bid() == (False, NOT_HOST)
        assert len(live_engine.bids) == 1


# =============================================================================
# Start Next
# =============================================================================


class TestStartNext:
    """Tests for start_next."""

    def test_first_draft_promoted(self, engine):
        ok, reason = engine.start_next()

        assert ok and reason == ""
        assert engine.live_item.id == "p1"

    def test_explicit_item(self, engine):
        engine.start_next("p3")
        assert engine.live_item.id == "p3"

    def test_role_filter(self, engine):
        engine.start_next(role_filter=PlayerRole.BOWLER)
        assert engine.live_item.id == "p2"

        engine.start_next(role_filter="Bowler")
        # p2 reverted to Draft and is first again
        assert engine.live_item.id == "p2"

    def test_reverts_previous_live_item(self, live_engine):
        live_engine.place_bid("a")

        live_engine.start_next("p2")

        p1 = live_engine.get_item("p1")
        assert p1.status == ItemStatus.DRAFT
        assert p1.current_bid == 0
        assert live_engine.live_item.id == "p2"
        assert live_engine.bids == []
        assert count_live(live_engine.items) == 1

    def test_explicit_non_draft_falls_back(self, engine):
        engine.get_item("p1").status = ItemStatus.SOLD
        engine.start_next("p1")
        assert engine.live_item.id == "p2"

    def test_no_eligible_item(self, live_engine):
        live_engine.start_next(role_filter=PlayerRole.WICKETKEEPER)

        assert live_engine.live_item is None
        assert live_engine.get_item("p1").status == ItemStatus.DRAFT

    def test_unknown_role_filter_rejected(self, live_engine):
        """An unknown role is rejected before the Live item is reverted."""
        live_engine.place_bid("a")
        before = state_of(live_engine)
        calls = []
        live_engine.add_listener(lambda: calls.append(1))

        ok, reason = live_engine.start_next(role_filter="Spinner")

        assert not ok
        assert UNKNOWN_ROLE in reason
        assert state_of(live_engine) == before
        assert live_engine.live_item.id == "p1"
        assert calls == []

    def test_no_eligible_reason(self):
        engine = AuctionEngine(snapshot=make_snapshot(items=[]), is_host=True)
        assert engine.start_next() == (True, NO_ELIGIBLE_ITEM)

    def test_resets_clock(self, engine):
        engine.timer.value = 1
        engine.start_next()
        assert engine.time_left == engine.config.time_per_item

    def test_viewer_rejected(self, engine):
        engine.is_host = False
        assert engine.start_next() == (False, NOT_HOST)
        assert engine.live_item is None


# =============================================================================
# Finalize
# =============================================================================


class TestFinalizeSale:
    """Tests for finalize_sale."""

    def test_sold_to_highest_bidder(self, live_engine):
        live_engine.place_bid("a")
        live_engine.place_bid("b")

        ok, _ = live_engine.finalize_sale(True)

        assert ok
        item = live_engine.get_item("p1")
        assert item.status == ItemStatus.SOLD
        assert item.owner_id == "b"
        assert item.current_bid == 57_000  # frozen at winning price
        assert live_engine.get_bidder("b").spent == 57_000
        assert live_engine.get_bidder("a").spent == 0
        assert live_engine.bids == []
        assert not live_engine.is_timer_running
        assert live_engine.time_left == live_engine.config.time_per_item

    def test_unsold(self, live_engine):
        live_engine.place_bid("a")

        live_engine.finalize_sale(False)

        item = live_engine.get_item("p1")
        assert item.status == ItemStatus.UNSOLD
        assert item.owner_id is None
        assert live_engine.get_bidder("a").spent == 0
        assert live_engine.bids == []

    def test_start_then_unsold_round_trip(self, engine):
        budgets = [(b.id, b.spent) for b in engine.bidders]

        engine.start_next()
        target = engine.live_item.id
        engine.finalize_sale(False)

        item = engine.get_item(target)
        assert item.status == ItemStatus.UNSOLD
        assert item.owner_id is None
        assert [(b.id, b.spent) for b in engine.bidders] == budgets
        assert len(engine.bids) == 0

    def test_sold_with_no_bids_is_not_charged(self, live_engine):
        """
        Requesting 'sold' on an empty ledger charges nobody.

        The item leaves Live as Unsold: with no winner there is no owner
        to record, so a Sold label would be inconsistent with owner_id.
        """
        ok, _ = live_engine.finalize_sale(True)

        assert ok
        item = live_engine.get_item("p1")
        assert item.status == ItemStatus.UNSOLD
        assert item.owner_id is None
        assert all(b.spent == 0 for b in live_engine.bidders)

    def test_no_live_item(self, engine):
        assert engine.finalize_sale(True) == (False, NO_LIVE_ITEM)

    def test_viewer_rejected(self, live_engine):
        live_engine.is_host = False
        assert live_engine.finalize_sale(True) == (False, NOT_HOST)
        assert live_engine.live_item is not None


# =============================================================================
# Invariants
# =============================================================================


class TestInvariants:
    """Random action sequences keep the core invariants."""

    @pytest.mark.parametrize("seed", range(10))
    def test_random_session(self, seed):
        import random

        rng = random.Random(seed)
        bidders = [
            Bidder(id=str(i), name=f"Team {i}", budget=rng.randint(50_000, 400_000))
            for i in range(4)
        ]
        items = [
            Item(id=f"p{i}", name=f"Player {i}", base_price=rng.choice([10_000, 50_000, 150_000]))
            for i in range(12)
        ]
        engine = AuctionEngine(
            snapshot=make_snapshot(items=items, bidders=bidders, max_items_per_bidder=3),
            is_host=True,
        )

        for _ in range(300):
            action = rng.random()
            if action < 0.55:
                engine.place_bid(rng.choice(bidders).id)
            elif action < 0.65:
                engine.undo_last_bid()
            elif action < 0.8:
                engine.start_next()
            else:
                engine.finalize_sale(rng.random() < 0.8)

            assert count_live(engine.items) <= 1
            for bidder in engine.bidders:
                assert bidder.spent <= bidder.budget
                assert len(engine.items_won(bidder.id)) <= 3
            if engine.bids:
                assert engine.live_item is not None
                assert engine.live_item.current_bid == engine.bids[0].amount


# =============================================================================
# Roster & Config
# =============================================================================


class TestRosterEdits:
    """Tests for append_items, bidders and config updates."""

    def test_append_items(self, engine):
        ok, _ = engine.append_items([Item(id="new", name="New")])
        assert ok
        assert engine.get_item("new") is not None

    def test_append_duplicate_id_rejected(self, engine):
        ok, reason = engine.append_items([Item(id="x", name="X"), Item(id="p1", name="Dup")])
        assert not ok
        assert "Duplicate" in reason
        assert engine.get_item("x") is None

    def test_append_non_draft_rejected(self, engine):
        ok, _ = engine.append_items([Item(id="x", name="X", status=ItemStatus.LIVE)])
        assert not ok
        assert count_live(engine.items) == 0

    def test_append_negative_values_rejected(self, engine):
        """Items that could not be encoded never enter the roster."""
        bad = [
            Item(id="x", name="Ok"),
            Item(id="y", name="Bad", age=-5, base_price=-100),
        ]

        ok, reason = engine.append_items(bad)

        assert not ok
        assert "age" in reason
        assert engine.get_item("x") is None
        assert engine.get_item("y") is None
        encode_snapshot(engine.snapshot())

    def test_add_bidder_uses_default_budget(self, engine):
        ok, _ = engine.add_bidder("Charlie")
        assert ok
        assert engine.get_bidder_by_name("Charlie").budget == engine.config.default_budget

    def test_add_bidder_duplicate_name(self, engine):
        ok, reason = engine.add_bidder("Alpha")
        assert not ok
        assert "already used" in reason

    def test_remove_bidder_with_items_rejected(self, live_engine):
        live_engine.place_bid("a")
        live_engine.finalize_sale(True)

        ok, _ = live_engine.remove_bidder("a")
        assert not ok
        ok, _ = live_engine.remove_bidder("b")
        assert ok

    def test_remove_live_item_rejected(self, live_engine):
        ok, _ = live_engine.remove_item("p1")
        assert not ok
        ok, _ = live_engine.remove_item("p2")
        assert ok

    def test_update_config_valid_tiers(self, live_engine):
        tiers = [
            BidRange(min=100_001, max=None, increment=25_000),
            BidRange(min=0, max=100_000, increment=1_000),
        ]
        ok, _ = live_engine.update_config(bid_ranges=tiers, title="Night Auction")

        assert ok
        assert live_engine.config.title == "Night Auction"
        assert [t.min for t in live_engine.config.bid_ranges] == [0, 100_001]
        live_engine.place_bid("a")
        assert live_engine.live_item.current_bid == 51_000

    def test_update_config_gap_rejected_while_live(self, live_engine):
        before = list(live_engine.config.bid_ranges)
        tiers = [
            BidRange(min=0, max=10, increment=1),
            BidRange(min=20, max=None, increment=2),
        ]

        ok, _ = live_engine.update_config(bid_ranges=tiers)

        assert not ok
        assert live_engine.config.bid_ranges == before

    def test_update_config_rejects_unknown_and_bad_values(self, engine):
        assert not engine.update_config(colour="red")[0]
        assert not engine.update_config(time_per_item=0)[0]
        assert not engine.update_config(max_items_per_bidder=-1)[0]


# =============================================================================
# Snapshot I/O
# =============================================================================


class TestSnapshotIO:
    """Tests for snapshot and load_snapshot."""

    def test_snapshot_is_detached(self, live_engine):
        snap = live_engine.snapshot()
        live_engine.place_bid("a")

        assert snap.bids == []
        assert snap.live_item.current_bid == 0
        assert snap.last_updated > 0

    def test_load_replaces_everything(self, live_engine):
        live_engine.place_bid("a")
        other = make_snapshot(items=[Item(id="z", name="Zed")], bidders=[])
        other.time_left = 7

        live_engine.load_snapshot(other)

        assert [i.id for i in live_engine.items] == ["z"]
        assert live_engine.bidders == []
        assert live_engine.bids == []
        assert live_engine.time_left == 7
