"""
Forecast accuracy metrics.

All metrics measure forecast error - lower is better (bias is signed).
Computed per SKU by comparing monthly actual sales with the planner's
forecast for the same months:
- MAPE: mean absolute percentage error
- WAPE: volume-weighted absolute percentage error
- RMSE: root mean square error
- WASE: error scaled by the error of a previous-month forecast
- Bias: mean forecast minus actual
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from .config import DEFAULT_CONFIG, ScoringConfig
from .confidence import classify, select_primary_metric
from .models import ForecastMetric
from .timeseries import TimeSeries, align

logger = logging.getLogger(__name__)

# Fewer aligned periods than this can't support any metric
MIN_PERIODS = 2


def _as_arrays(
    actual: Sequence[float], forecast: Sequence[float]
) -> tuple[np.ndarray, np.ndarray] | None:
    a = np.asarray(actual, dtype=float)
    f = np.asarray(forecast, dtype=float)
    if a.shape != f.shape or a.size == 0:
        return None
    return a, f


def calculate_mape(actual: Sequence[float], forecast: Sequence[float]) -> float | None:
    """
    (1/n) * sum(|actual - forecast| / |actual|) * 100

    Periods with actual = 0 are excluded (the ratio is undefined there).
    """
    arrays = _as_arrays(actual, forecast)
    if arrays is None:
        return None
    a, f = arrays

    nonzero = a != 0
    if not nonzero.any():
        return None
    return float(np.mean(np.abs(a[nonzero] - f[nonzero]) / np.abs(a[nonzero])) * 100)


def calculate_wape(actual: Sequence[float], forecast: Sequence[float]) -> float | None:
    """sum(|actual - forecast|) / sum(actual) * 100; None when nothing sold."""
    arrays = _as_arrays(actual, forecast)
    if arrays is None:
        return None
    a, f = arrays

    volume = np.abs(a).sum()
    if volume == 0:
        return None
    return float(np.abs(a - f).sum() / volume * 100)


def calculate_rmse(actual: Sequence[float], forecast: Sequence[float]) -> float | None:
    """sqrt(mean((actual - forecast)^2))"""
    arrays = _as_arrays(actual, forecast)
    if arrays is None:
        return None
    a, f = arrays
    return float(np.sqrt(np.mean((a - f) ** 2)))


def calculate_wase(actual: Sequence[float], forecast: Sequence[float]) -> float | None:
    """
    sum(|actual - forecast|) / sum(|actual_t - actual_t-1|)

    Below 1 the forecast beats "next month = this month". None for flat
    history, where the naive forecast has no error to scale by.
    """
    arrays = _as_arrays(actual, forecast)
    if arrays is None or arrays[0].size < MIN_PERIODS:
        return None
    a, f = arrays

    naive_error = np.abs(np.diff(a)).sum()
    if naive_error == 0:
        return None
    return float(np.abs(a - f).sum() / naive_error)


def calculate_bias(actual: Sequence[float], forecast: Sequence[float]) -> float | None:
    """mean(forecast - actual): positive = over-forecast, negative = under-forecast."""
    arrays = _as_arrays(actual, forecast)
    if arrays is None:
        return None
    a, f = arrays
    return float(np.mean(f - a))


def naive_forecast(actual: Sequence[float]) -> np.ndarray:
    """Previous period's actual as the forecast; the first period forecasts itself."""
    a = np.asarray(actual, dtype=float)
    if a.size == 0:
        return a
    return np.concatenate([a[:1], a[:-1]])


class MetricsEngine:
    """
    Computes a ForecastMetric for one SKU.

    When the planner supplied a usable forecast (at least two months that
    line up with sales history and some non-zero forecast), metrics are
    measured against it. Otherwise the previous month's sales stand in as
    a benchmark so the SKU still gets numbers, flagged as such.
    """

    def __init__(self, config: ScoringConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    def compute(
        self,
        actual: TimeSeries,
        forecast: TimeSeries | None = None,
        sku: str | None = None,
    ) -> ForecastMetric:
        actual = actual.tail(self.config.max_periods)

        if forecast is not None and not forecast.is_empty():
            aligned_actual, aligned_forecast = align(actual, forecast)
            if len(aligned_actual) >= MIN_PERIODS and (aligned_forecast.values > 0).any():
                return self._measure(
                    aligned_actual.values, aligned_forecast.values, "planner_forecast", sku
                )
            logger.debug(
                "SKU %s: planner forecast unusable (%d aligned periods), using benchmark",
                sku,
                len(aligned_actual),
            )

        if len(actual) < MIN_PERIODS:
            return self.insufficient(sku, period_count=len(actual))

        values = actual.values
        return self._measure(values, naive_forecast(values), "naive_benchmark", sku)

    def compute_for_record(self, record: Any) -> ForecastMetric:
        """Compute metrics straight from a record's nested export maps."""
        raw = record.as_raw() if hasattr(record, "as_raw") else record
        if not isinstance(raw, Mapping):
            raise TypeError(f"Expected a mapping or record, got {type(record).__name__}")

        sku = raw.get("sku")
        actual = TimeSeries.from_export(raw.get("orders_by_month"))
        forecast = TimeSeries.from_export(raw.get("forecast_by_period"))
        return self.compute(actual, forecast, sku=str(sku) if sku is not None else None)

    def insufficient(self, sku: str | None = None, period_count: int = 0) -> ForecastMetric:
        return ForecastMetric(
            sku=sku,
            source="insufficient_data",
            confidence="none",
            period_count=period_count,
        )

    def _measure(
        self, actual: np.ndarray, forecast: np.ndarray, source: str, sku: str | None
    ) -> ForecastMetric:
        period_count = int(actual.size)
        return ForecastMetric(
            sku=sku,
            mape=calculate_mape(actual, forecast),
            wape=calculate_wape(actual, forecast),
            rmse=calculate_rmse(actual, forecast),
            wase=calculate_wase(actual, forecast),
            bias=calculate_bias(actual, forecast),
            naive_mape=calculate_mape(actual, naive_forecast(actual)),
            source=source,
            confidence=classify(period_count),
            primary_metric=select_primary_metric(actual, self.config.zero_ratio_threshold),
            period_count=period_count,
            zero_periods=int((actual == 0).sum()),
        )
