"""
Squad Export - Read-only views of a team's purchases.
"""

import re
from typing import Any, Dict, Iterable, List

from cricauction.core.auction.models import Bidder, Item


def _squad(bidder: Bidder, items: Iterable[Item]) -> List[Item]:
    return [item for item in items if item.owner_id == bidder.id]


def squad_text(bidder: Bidder, items: Iterable[Item]) -> str:
    """Shareable plain-text squad list."""
    lines = [f"{bidder.name} Squad:"]
    for item in _squad(bidder, items):
        lines.append(f"- {item.name} ({item.role.value}): ₹{item.current_bid:,}")
    return "\n".join(lines)


def squad_document(bidder: Bidder, items: Iterable[Item]) -> Dict[str, Any]:
    """Downloadable squad summary."""
    return {
        "teamName": bidder.name,
        "budgetUsed": bidder.spent,
        "squad": [
            {"name": item.name, "role": item.role.value, "price": item.current_bid}
            for item in _squad(bidder, items)
        ],
    }


def squad_filename(bidder: Bidder) -> str:
    return re.sub(r"\s+", "_", bidder.name) + "_squad.json"
