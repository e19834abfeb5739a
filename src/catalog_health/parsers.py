"""
Reusable parsers for planning-tool exports.

These parsers handle the messy reality of synced catalog data:
- Numbers that arrive as strings, currency-formatted text, or not at all
- Month keys in several shapes ("2024-03", "2024/3", "03/2024", ...)
- Sales/forecast history nested as {year: {month: value}}
"""

import math
import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import numpy as np


_CURRENCY_CHARS = re.compile(r"[$€£,\s]")


def coerce_number(value: Any) -> float | None:
    """
    Coerce a raw export value to a finite float.

    Returns None for missing, boolean, non-numeric or non-finite input.
    Never raises.
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return None

    if isinstance(value, (int, float, np.integer, np.floating)):
        try:
            result = float(value)
        except OverflowError:
            # JSON integers are unbounded; anything past float range is unusable
            return None
        return result if math.isfinite(result) else None

    if isinstance(value, str):
        cleaned = _CURRENCY_CHARS.sub("", value)
        if not cleaned:
            return None
        try:
            result = float(cleaned)
        except (OverflowError, ValueError):
            return None
        return result if math.isfinite(result) else None

    return None


class PeriodKeyParser:
    """
    Parses month identifiers into canonical YYYY-MM period keys.

    Reusable: Yes - these shapes cover the planners we sync from.
    To extend: Add new format patterns to PERIOD_FORMATS.
    """

    # Ordered by how often they show up in exports
    PERIOD_FORMATS = [
        "%Y-%m",      # canonical: 2024-03
        "%Y/%m",      # 2024/03
        "%Y%m",       # 202403
        "%m/%Y",      # 03/2024
        "%Y-%m-%d",   # first-of-month dates: 2024-03-01
        "%b %Y",      # Mar 2024
        "%B %Y",      # March 2024
    ]

    def __init__(self, custom_formats: list[str] | None = None):
        self.formats = (custom_formats or []) + self.PERIOD_FORMATS
        self._cache: dict[str, str | None] = {}

    def parse(self, key: Any) -> str | None:
        """Parse a single period key, returning YYYY-MM or None."""
        if key is None or (isinstance(key, float) and math.isnan(key)):
            return None

        key = str(key).strip()
        if not key:
            return None

        if key in self._cache:
            return self._cache[key]

        result = None
        for fmt in self.formats:
            try:
                result = datetime.strptime(key, fmt).strftime("%Y-%m")
                break
            except ValueError:
                continue

        self._cache[key] = result
        return result

    def from_parts(self, year: Any, month: Any) -> str | None:
        """Build a period key from separate year and month components."""
        try:
            year_num = int(str(year).strip())
            month_num = int(str(month).strip())
        except ValueError:
            return None

        if not 1 <= month_num <= 12 or year_num < 1:
            return None
        return f"{year_num:04d}-{month_num:02d}"


class MonthlyMapFlattener:
    """
    Flattens period-keyed maps from exports into {YYYY-MM: value}.

    Handles both shapes seen in the wild:
    - nested: {"2024": {"1": 12, "2": 9}}
    - flat:   {"2024-01": 12, "2024-02": 9}

    Values that are missing or not numeric become 0, matching how the
    planner reports months without sales. Keys that can't be parsed are
    skipped and remembered in `skipped_keys` for auditing.
    """

    def __init__(self, key_parser: PeriodKeyParser | None = None):
        self.key_parser = key_parser or PeriodKeyParser()
        self.skipped_keys: list[str] = []

    def flatten(self, data: Mapping | None) -> dict[str, float]:
        if not data or not isinstance(data, Mapping):
            return {}

        result: dict[str, float] = {}
        for outer_key, outer_value in data.items():
            if isinstance(outer_value, Mapping):
                for month, value in outer_value.items():
                    period = self.key_parser.from_parts(outer_key, month)
                    if period is None:
                        self.skipped_keys.append(f"{outer_key}-{month}")
                        continue
                    result[period] = coerce_number(value) or 0.0
            else:
                period = self.key_parser.parse(outer_key)
                if period is None:
                    self.skipped_keys.append(str(outer_key))
                    continue
                result[period] = coerce_number(outer_value) or 0.0

        return dict(sorted(result.items()))
