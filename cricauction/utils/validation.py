"""
Input Validation - Sanity checks for host-supplied values.

Provides validation for values that enter the auction state from outside
the engine (configuration edits, roster imports, new bidders):
- Integer bounds (prices, budgets, counts)
- String lengths (names, titles)
- Array sizes (tier tables, rosters)
"""

import re
from typing import Any, Optional, Tuple

# =============================================================================
# Constants
# =============================================================================

MAX_ARRAY_LENGTH = 1024
MAX_STRING_LENGTH = 256

# Amount bounds (JSON consumers treat numbers as doubles)
MIN_AMOUNT = 0
MAX_AMOUNT = 2**53 - 1


# =============================================================================
# Validation Functions
# =============================================================================


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_AMOUNT,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a price, budget or purse amount."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_AMOUNT)


def validate_array(
    data: Any,
    name: str,
    max_length: int = MAX_ARRAY_LENGTH,
) -> Tuple[bool, str]:
    """
    Validate array/list input.

    Args:
        data: Data to validate
        name: Field name for errors
        max_length: Maximum allowed length

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, (list, tuple)):
        return False, f"{name} must be list/tuple, got {type(data).__name__}"

    if len(data) > max_length:
        return False, f"{name} exceeds max length {max_length}, got {len(data)}"

    return True, ""


def validate_string(
    value: Any,
    name: str,
    max_length: int = MAX_STRING_LENGTH,
    pattern: Optional[str] = None,
) -> Tuple[bool, str]:
    """
    Validate string input.

    Args:
        value: Value to validate
        name: Field name for errors
        max_length: Maximum string length
        pattern: Optional regex pattern

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    if len(value) > max_length:
        return False, f"{name} exceeds max length {max_length}"

    if pattern and not re.match(pattern, value):
        return False, f"{name} does not match required pattern"

    return True, ""


def validate_name(value: Any, name: str = "name") -> Tuple[bool, str]:
    """Validate a display name (non-blank, bounded)."""
    valid, err = validate_string(value, name)
    if not valid:
        return False, err
    if not value.strip():
        return False, f"{name} must not be blank"
    return True, ""


__all__ = [
    "validate_integer",
    "validate_amount",
    "validate_array",
    "validate_string",
    "validate_name",
    "MAX_ARRAY_LENGTH",
    "MAX_STRING_LENGTH",
    "MIN_AMOUNT",
    "MAX_AMOUNT",
]
