"""
Tests for the snapshot wire schema.

Tests cover:
1. Encoding to camelCase documents
2. Decoding from text and dicts
3. Rejection of malformed documents
"""

import json

import pytest

from cricauction.core.auction import AuctionEngine, ItemStatus, default_snapshot
from cricauction.network import (
    SnapshotValidationError,
    decode_snapshot,
    encode_snapshot,
    encode_snapshot_json,
)


@pytest.fixture
def document():
    engine = AuctionEngine(snapshot=default_snapshot(), is_host=True)
    engine.place_bid("1")
    engine.place_bid("2")
    return encode_snapshot(engine.snapshot())


# =============================================================================
# Encoding
# =============================================================================


class TestEncode:
    """Tests for encode_snapshot."""

    def test_top_level_keys(self, document):
        assert set(document) == {
            "config", "bidders", "items", "bids",
            "timeLeft", "isTimerRunning", "lastUpdated",
        }

    def test_nested_camel_case(self, document):
        assert "bidRanges" in document["config"]
        assert "timePerItem" in document["config"]
        assert "maxItemsPerBidder" in document["config"]
        item = document["items"][0]
        assert item["basePrice"] == 50_000
        assert item["currentBid"] == 57_000
        assert item["ownerId"] is None
        assert item["status"] == "Live"
        assert item["role"] == "All-rounder"
        assert document["bids"][0]["bidderName"] == "Delhi Dynamos"
        assert document["config"]["bidRanges"][-1]["max"] is None

    def test_local_cache_shape_has_no_timestamp(self):
        doc = encode_snapshot(default_snapshot(), include_timestamp=False)
        assert "lastUpdated" not in doc

    def test_json_text(self):
        text = encode_snapshot_json(default_snapshot())
        assert json.loads(text)["config"]["title"] == "Public Premier League"


# =============================================================================
# Decoding
# =============================================================================


class TestDecode:
    """Tests for decode_snapshot."""

    def test_decode_dict(self, document):
        snapshot = decode_snapshot(document)

        assert snapshot.live_item.current_bid == 57_000
        assert snapshot.live_item.status == ItemStatus.LIVE
        assert [b.amount for b in snapshot.bids] == [57_000, 52_000]
        assert snapshot.last_updated == document["lastUpdated"]
        assert snapshot.config.bid_ranges[2].max is None

    def test_decode_text_and_bytes(self, document):
        text = json.dumps(document)
        assert decode_snapshot(text).bids[0].bidder_name == "Delhi Dynamos"
        assert decode_snapshot(text.encode()).time_left == document["timeLeft"]

    def test_missing_timestamp_rejected(self, document):
        del document["lastUpdated"]
        with pytest.raises(SnapshotValidationError):
            decode_snapshot(document)
        assert decode_snapshot(document, require_timestamp=False).last_updated == 0

    def test_missing_field_rejected(self, document):
        del document["items"][0]["basePrice"]
        with pytest.raises(SnapshotValidationError):
            decode_snapshot(document)

    def test_wrong_type_rejected(self, document):
        document["items"][0]["currentBid"] = "57000"
        with pytest.raises(SnapshotValidationError):
            decode_snapshot(document)

    def test_unknown_status_rejected(self, document):
        document["items"][0]["status"] = "Withdrawn"
        with pytest.raises(SnapshotValidationError):
            decode_snapshot(document)

    def test_two_live_items_rejected(self, document):
        second = dict(document["items"][0], id="2", name="Second")
        document["items"].append(second)
        with pytest.raises(SnapshotValidationError):
            decode_snapshot(document)

    def test_garbage_text_rejected(self):
        with pytest.raises(SnapshotValidationError):
            decode_snapshot("not json at all")
        with pytest.raises(SnapshotValidationError):
            decode_snapshot("[]")
