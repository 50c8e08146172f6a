"""
Snapshot Protocol - Wire schema for the replicated auction document.

The shared document is one JSON object with camelCase keys:

    {config, bidders[], items[], bids[], timeLeft, isTimerRunning, lastUpdated}

Every fetched or stored document is checked against these pydantic
models (field presence and types, at most one Live item) before it is
allowed to replace local state. A document that fails is rejected
whole; nothing is partially applied.
"""

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel

from cricauction.core.auction.models import (
    AuctionConfig,
    Bid,
    BidRange,
    Bidder,
    Item,
    ItemStatus,
    PlayerRole,
    Snapshot,
)


class SnapshotValidationError(ValueError):
    """A document does not match the snapshot schema."""


# =============================================================================
# Document Models
# =============================================================================


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BidRangeDoc(_Document):
    id: StrictStr
    min: StrictInt = Field(ge=0)
    max: Optional[StrictInt]
    increment: StrictInt = Field(gt=0)


class ConfigDoc(_Document):
    title: StrictStr
    bid_ranges: List[BidRangeDoc]
    time_per_item: StrictInt = Field(gt=0)
    max_items_per_bidder: StrictInt = Field(ge=0)
    default_budget: StrictInt = Field(ge=0)
    primary_color: StrictStr = "#39FF14"
    font_family: StrictStr = "Space Grotesk"


class BidderDoc(_Document):
    id: StrictStr
    name: StrictStr
    budget: StrictInt = Field(ge=0)
    spent: StrictInt = Field(ge=0)


class ItemDoc(_Document):
    id: StrictStr
    name: StrictStr
    role: PlayerRole
    age: StrictInt = Field(ge=0)
    base_price: StrictInt = Field(ge=0)
    current_bid: StrictInt = Field(ge=0)
    status: ItemStatus
    owner_id: Optional[StrictStr]
    metadata: Dict[str, Any] = Field(default_factory=dict)
    verified: StrictBool = False
    image: StrictStr = ""


class BidDoc(_Document):
    id: StrictStr
    item_id: StrictStr
    bidder_name: StrictStr
    amount: StrictInt = Field(gt=0)
    timestamp: StrictStr


class StateDocument(_Document):
    """Auction state without a publish timestamp (local cache shape)."""
    config: ConfigDoc
    bidders: List[BidderDoc]
    items: List[ItemDoc]
    bids: List[BidDoc]
    time_left: StrictInt = Field(ge=0)
    is_timer_running: StrictBool

    @model_validator(mode="after")
    def single_live_item(self):
        live = [item.id for item in self.items if item.status == ItemStatus.LIVE]
        if len(live) > 1:
            raise ValueError(f"more than one live item: {live}")
        return self


class SnapshotDocument(StateDocument):
    """Auction state as published to the shared document."""
    last_updated: StrictInt


# =============================================================================
# Conversion
# =============================================================================


def _to_state_fields(snapshot: Snapshot) -> Dict[str, Any]:
    config = snapshot.config
    return {
        "config": ConfigDoc(
            title=config.title,
            bid_ranges=[
                BidRangeDoc(id=t.id, min=t.min, max=t.max, increment=t.increment)
                for t in config.bid_ranges
            ],
            time_per_item=config.time_per_item,
            max_items_per_bidder=config.max_items_per_bidder,
            default_budget=config.default_budget,
            primary_color=config.primary_color,
            font_family=config.font_family,
        ),
        "bidders": [
            BidderDoc(id=b.id, name=b.name, budget=b.budget, spent=b.spent)
            for b in snapshot.bidders
        ],
        "items": [
            ItemDoc(
                id=i.id,
                name=i.name,
                role=i.role,
                age=i.age,
                base_price=i.base_price,
                current_bid=i.current_bid,
                status=i.status,
                owner_id=i.owner_id,
                metadata=dict(i.metadata),
                verified=i.verified,
                image=i.image,
            )
            for i in snapshot.items
        ],
        "bids": [
            BidDoc(
                id=b.id,
                item_id=b.item_id,
                bidder_name=b.bidder_name,
                amount=b.amount,
                timestamp=b.timestamp,
            )
            for b in snapshot.bids
        ],
        "time_left": snapshot.time_left,
        "is_timer_running": snapshot.is_timer_running,
    }


def _to_snapshot(doc: StateDocument) -> Snapshot:
    c = doc.config
    return Snapshot(
        config=AuctionConfig(
            title=c.title,
            bid_ranges=[
                BidRange(id=t.id, min=t.min, max=t.max, increment=t.increment)
                for t in c.bid_ranges
            ],
            time_per_item=c.time_per_item,
            max_items_per_bidder=c.max_items_per_bidder,
            default_budget=c.default_budget,
            primary_color=c.primary_color,
            font_family=c.font_family,
        ),
        bidders=[Bidder(id=b.id, name=b.name, budget=b.budget, spent=b.spent) for b in doc.bidders],
        items=[
            Item(
                id=i.id,
                name=i.name,
                role=i.role,
                age=i.age,
                base_price=i.base_price,
                current_bid=i.current_bid,
                status=i.status,
                owner_id=i.owner_id,
                metadata=dict(i.metadata),
                verified=i.verified,
                image=i.image,
            )
            for i in doc.items
        ],
        bids=[
            Bid(
                id=b.id,
                item_id=b.item_id,
                bidder_name=b.bidder_name,
                amount=b.amount,
                timestamp=b.timestamp,
            )
            for b in doc.bids
        ],
        time_left=doc.time_left,
        is_timer_running=doc.is_timer_running,
        last_updated=getattr(doc, "last_updated", 0),
    )


def encode_snapshot(snapshot: Snapshot, include_timestamp: bool = True) -> Dict[str, Any]:
    """
    Serialize a snapshot to a JSON-ready dict with camelCase keys.

    Args:
        snapshot: State to serialize
        include_timestamp: False for the local cache shape (no lastUpdated)
    """
    fields = _to_state_fields(snapshot)
    if include_timestamp:
        doc = SnapshotDocument(last_updated=snapshot.last_updated, **fields)
    else:
        doc = StateDocument(**fields)
    return doc.model_dump(mode="json", by_alias=True)


def encode_snapshot_json(snapshot: Snapshot, include_timestamp: bool = True) -> str:
    return json.dumps(encode_snapshot(snapshot, include_timestamp))


def decode_snapshot(
    payload: Union[str, bytes, Dict[str, Any]],
    require_timestamp: bool = True,
) -> Snapshot:
    """
    Validate and deserialize a snapshot document.

    Args:
        payload: JSON text/bytes or an already-parsed dict
        require_timestamp: Whether lastUpdated must be present

    Returns:
        Snapshot

    Raises:
        SnapshotValidationError: If the document is malformed
    """
    model = SnapshotDocument if require_timestamp else StateDocument
    try:
        if isinstance(payload, (str, bytes)):
            doc = model.model_validate_json(payload)
        else:
            doc = model.model_validate(payload)
    except ValidationError as e:
        raise SnapshotValidationError(f"invalid snapshot document: {e.error_count()} errors") from e
    return _to_snapshot(doc)
