"""
Helper Utilities Module.

This module provides small, generic helpers shared by the pipeline
stages and the command-line entry point.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - utc_now: Current time as an aware UTC datetime
    - to_decimal: Coerce numeric input to Decimal without float noise
    - round_decimal: Banker's rounding to a fixed number of places
    - decimal_places: Stored scale of a Decimal
    - clamp01: Clamp a score into [0, 1]
    - collapse_whitespace: Squeeze whitespace runs to single spaces
"""

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from pathlib import Path
from typing import Any, Optional, Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Example:
        >>> ensure_directory("outputs/scored")
        PosixPath('outputs/scored')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Coerce a number to Decimal.

    Floats go through their shortest repr so that ``100.0`` becomes
    ``Decimal('100.0')`` rather than a long binary expansion. Strings
    must already be plain numbers; currency-formatted strings are handled
    by AmountNormalizer.

    Args:
        value: int, float, str or Decimal.

    Returns:
        Decimal value, or None for None/blank/unparseable input.

    Example:
        >>> to_decimal(12.5)
        Decimal('12.5')
        >>> to_decimal("abc") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = repr(value)
    try:
        text = str(value).strip()
        if not text:
            return None
        result = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def round_decimal(value: Optional[Decimal], places: int) -> Optional[Decimal]:
    """
    Round a Decimal to a fixed number of places (half to even).

    Args:
        value: Value to round, may be None.
        places: Number of decimal places to keep.

    Returns:
        Rounded Decimal with exactly ``places`` stored decimals, or None.

    Example:
        >>> round_decimal(Decimal("12.3456"), 2)
        Decimal('12.35')
    """
    if value is None:
        return None
    exponent = Decimal(1).scaleb(-places)
    return value.quantize(exponent, rounding=ROUND_HALF_EVEN)


def decimal_places(value: Decimal) -> int:
    """
    Return the number of stored decimal places of a Decimal.

    ``Decimal("500.00")`` has 2, ``Decimal("500")`` has 0.
    """
    exponent = value.as_tuple().exponent
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def clamp01(value: float) -> float:
    """Clamp a score into the closed interval [0, 1]."""
    return max(0.0, min(1.0, value))


def collapse_whitespace(text: str) -> str:
    """Replace whitespace runs with single spaces and trim the ends."""
    return re.sub(r'\s+', ' ', text).strip()
