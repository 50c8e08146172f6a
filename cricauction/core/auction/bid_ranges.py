"""
Bid Ranges - Tiered bid increments.

A tier table maps every non-negative price to exactly one increment.
Validation enforces that shape: sorted by min, starting at 0, contiguous
(next.min == prev.max + 1), only the last tier unbounded.
"""

from typing import List, Optional, Sequence, Tuple

from cricauction.core.auction.models import BidRange
from cricauction.utils.validation import validate_amount, validate_array, validate_integer

# Applied when no tier contains the price (only possible with an unvalidated table)
DEFAULT_INCREMENT = 1000


def find_tier(ranges: Sequence[BidRange], price: int) -> Optional[BidRange]:
    """Return the first tier whose [min, max] contains price."""
    for tier in ranges:
        if tier.contains(price):
            return tier
    return None


def covering_tiers(ranges: Sequence[BidRange], price: int) -> List[BidRange]:
    """All tiers containing price. A valid table yields exactly one."""
    return [tier for tier in ranges if tier.contains(price)]


def increment_for_price(ranges: Sequence[BidRange], price: int) -> int:
    """Increment for the tier containing price, or DEFAULT_INCREMENT."""
    tier = find_tier(ranges, price)
    return tier.increment if tier else DEFAULT_INCREMENT


def next_bid_amount(ranges: Sequence[BidRange], asking_price: int) -> int:
    """Amount of the next bid placed at asking_price."""
    return asking_price + increment_for_price(ranges, asking_price)


def validate_bid_ranges(ranges: Sequence[BidRange]) -> Tuple[bool, str]:
    """
    Check that a tier table covers every non-negative price exactly once.

    Args:
        ranges: Tier table in any order

    Returns:
        (is_valid, error_message)
    """
    valid, err = validate_array(ranges, "bid_ranges")
    if not valid:
        return False, err
    if not ranges:
        return False, "bid_ranges must contain at least one tier"

    ordered = sorted(ranges, key=lambda t: t.min)
    if ordered[0].min != 0:
        return False, f"first tier must start at 0, got {ordered[0].min}"

    for i, tier in enumerate(ordered):
        valid, err = validate_amount(tier.min, "tier min")
        if not valid:
            return False, err
        valid, err = validate_integer(tier.increment, "tier increment", min_val=1)
        if not valid:
            return False, err

        is_last = i == len(ordered) - 1
        if tier.max is None:
            if not is_last:
                return False, f"only the last tier may be unbounded (tier starting at {tier.min})"
            continue

        valid, err = validate_amount(tier.max, "tier max")
        if not valid:
            return False, err
        if tier.max < tier.min:
            return False, f"tier max {tier.max} below min {tier.min}"
        if is_last:
            return False, f"last tier must be unbounded, ends at {tier.max}"
        if ordered[i + 1].min != tier.max + 1:
            return False, f"tiers not contiguous: {tier.max} then {ordered[i + 1].min}"

    return True, ""


def sorted_ranges(ranges: Sequence[BidRange]) -> List[BidRange]:
    return sorted(ranges, key=lambda t: t.min)
