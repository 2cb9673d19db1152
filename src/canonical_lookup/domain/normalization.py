"""Loose identifier normalization shared by the read and eviction paths."""

from __future__ import annotations

import math
import re
from typing import Final

_LEADING_INTEGER: Final[re.Pattern[str]] = re.compile(r"^\s*([+-]?)(\d+)")


def absint(value: object) -> int:
    """Convert ``value`` to a non-negative integer without ever raising.

    Missing, non-numeric and negative values collapse to ``0``. Strings are
    parsed by their leading integer part (``"42.9"`` and ``"42abc"`` both give
    ``42``), floats truncate toward zero.
    """

    if value is None:
        return 0
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        match = _LEADING_INTEGER.match(value)
        if match is None or match.group(1) == "-":
            return 0
        return int(match.group(2))
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return max(int(value), 0)
    try:
        number = int(value)  # pyright: ignore[reportArgumentType]
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(number, 0)


def meta_value_text(value: object) -> str:
    """Return the text form of a normalized id, as stored in the metadata table."""

    return str(absint(value))
