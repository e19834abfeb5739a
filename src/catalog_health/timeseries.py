"""
Monthly time series for per-SKU sales history and forecasts.

A TimeSeries is an ordered, immutable sequence of (period_key, value)
pairs with one entry per calendar month. Period keys use the YYYY-MM
format so lexicographic order is chronological order.
"""

from collections.abc import Iterator, Mapping
from typing import Any

import numpy as np
import pandas as pd

from .parsers import MonthlyMapFlattener, coerce_number


class TimeSeries:
    """Ordered monthly series backed by a pandas Series indexed by YYYY-MM."""

    __slots__ = ("_series",)

    def __init__(self, points: Mapping[str, float] | None = None):
        points = points or {}
        values = {key: coerce_number(value) or 0.0 for key, value in points.items()}
        series = pd.Series(values, dtype="float64")
        self._series = series.sort_index()

    @classmethod
    def from_export(
        cls, data: Mapping[str, Any] | None, flattener: MonthlyMapFlattener | None = None
    ) -> "TimeSeries":
        """Build from a raw export map, flat or nested by year."""
        flattener = flattener or MonthlyMapFlattener()
        return cls(flattener.flatten(data))

    @classmethod
    def _wrap(cls, series: pd.Series) -> "TimeSeries":
        ts = cls.__new__(cls)
        ts._series = series.sort_index()
        return ts

    @property
    def keys(self) -> list[str]:
        return list(self._series.index)

    @property
    def values(self) -> np.ndarray:
        return self._series.to_numpy(dtype=float, copy=True)

    def items(self) -> Iterator[tuple[str, float]]:
        return iter(zip(self._series.index, self._series.to_numpy(dtype=float)))

    def is_empty(self) -> bool:
        return self._series.empty

    def tail(self, n: int) -> "TimeSeries":
        """Keep the most recent n periods."""
        if n <= 0:
            return TimeSeries()
        return self._wrap(self._series.iloc[-n:].copy())

    def restrict(self, keys: list[str]) -> "TimeSeries":
        """Keep only the given periods (keys absent from the series are ignored)."""
        index = self._series.index.intersection(pd.Index(keys))
        return self._wrap(self._series.loc[index].copy())

    def to_dict(self) -> dict[str, float]:
        return {key: float(value) for key, value in self.items()}

    def __len__(self) -> int:
        return len(self._series)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeSeries):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        if self.is_empty():
            return "TimeSeries(empty)"
        return f"TimeSeries({self.keys[0]}..{self.keys[-1]}, n={len(self)})"


def align(actual: TimeSeries, forecast: TimeSeries) -> tuple[TimeSeries, TimeSeries]:
    """
    Restrict both series to the periods they share.

    Forecast periods with no matching actual (and vice versa) are dropped,
    never zero-filled.
    """
    shared = sorted(set(actual.keys) & set(forecast.keys))
    return actual.restrict(shared), forecast.restrict(shared)
