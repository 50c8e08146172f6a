"""
Roster Importer - Players from JSON or CSV text.

Accepted inputs:
- A JSON array of objects
- CSV with a header row (columns: name, role, age, basePrice, image,
  verified, matches, strikeRate; case-insensitive)

Every record becomes a Draft item with a fresh id. An import is all or
nothing: one malformed row and the result is empty.
"""

import csv
import io
import json
import math
from typing import Any, Dict, List, Optional

from cricauction.core.auction.models import Item, ItemStatus, PlayerRole, new_id
from cricauction.utils.logger import get_logger
from cricauction.utils.validation import MAX_ARRAY_LENGTH, validate_amount

logger = get_logger("roster")

DEFAULT_AGE = 20
DEFAULT_BASE_PRICE = 10000


class RosterFormatError(ValueError):
    """A roster row cannot be turned into an item."""


def _number(value: Any, default: float) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    # NaN, infinities and zero fall back, as an empty spreadsheet cell would
    if not math.isfinite(number) or number == 0:
        return default
    return number


def _amount(value: Any, default: int, field: str, row: str) -> int:
    amount = int(_number(value, default))
    valid, err = validate_amount(amount, field)
    if not valid:
        raise RosterFormatError(f"{row}: {err}")
    return amount


def _role(value: Any) -> PlayerRole:
    try:
        return PlayerRole(value)
    except ValueError:
        return PlayerRole.BATSMAN


def _item_from_record(record: Dict[str, Any], default_name: str) -> Item:
    name = str(record.get("name") or "").strip() or default_name
    base_price = record.get("baseprice") or record.get("base_price") or record.get("basePrice")
    strike_rate = record.get("strikerate") or record.get("strikeRate")
    verified = record.get("verified")
    if isinstance(verified, str):
        verified = verified.strip().lower() == "true"

    return Item(
        id=new_id(),
        name=name,
        role=_role(record.get("role")),
        age=_amount(record.get("age"), DEFAULT_AGE, "age", name),
        base_price=_amount(base_price, DEFAULT_BASE_PRICE, "basePrice", name),
        current_bid=0,
        status=ItemStatus.DRAFT,
        owner_id=None,
        metadata={
            "matches": int(_number(record.get("matches"), 0)),
            "strikeRate": _number(strike_rate, 0),
        },
        verified=bool(verified),
        image=str(record.get("image") or ""),
    )


def parse_json_roster(text: str) -> Optional[List[Item]]:
    """
    Parse a JSON array of player objects.

    Returns:
        Items, or None if text is not JSON at all

    Raises:
        RosterFormatError: JSON but not an array of objects
    """
    try:
        data = json.loads(text)
    except ValueError:
        return None

    if not isinstance(data, list):
        raise RosterFormatError("JSON roster must be an array")
    if len(data) > MAX_ARRAY_LENGTH:
        raise RosterFormatError(f"roster exceeds {MAX_ARRAY_LENGTH} players")

    items = []
    for i, record in enumerate(data):
        if not isinstance(record, dict):
            raise RosterFormatError(f"entry {i} is not an object")
        items.append(_item_from_record(record, "Unknown"))
    return items


def parse_csv_roster(text: str) -> List[Item]:
    """
    Parse CSV with a header row.

    Raises:
        RosterFormatError: A row's column count differs from the header
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        return []

    reader = csv.reader(io.StringIO("\n".join(lines)))
    headers = [h.strip().lower() for h in next(reader)]
    if "name" not in headers:
        raise RosterFormatError("CSV header must include a name column")

    items = []
    for line_no, row in enumerate(reader, start=2):
        if len(row) != len(headers):
            raise RosterFormatError(
                f"line {line_no}: expected {len(headers)} columns, got {len(row)}"
            )
        if len(items) >= MAX_ARRAY_LENGTH:
            raise RosterFormatError(f"roster exceeds {MAX_ARRAY_LENGTH} players")
        record = {h: cell.strip() for h, cell in zip(headers, row)}
        items.append(_item_from_record(record, "Unknown Player"))
    return items


def parse_roster(text: str) -> List[Item]:
    """
    Parse a roster file's text, JSON first, then CSV.

    Returns:
        New Draft items; empty if nothing usable was found
    """
    try:
        items = parse_json_roster(text)
        if items is None:
            items = parse_csv_roster(text)
    except RosterFormatError as e:
        logger.warning(f"Roster import discarded: {e}")
        return []

    logger.info(f"Parsed {len(items)} players from roster")
    return items
