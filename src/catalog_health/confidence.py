"""Confidence tiers and primary-metric selection for forecast metrics."""

from collections.abc import Sequence
from dataclasses import dataclass

from .models import Confidence, PrimaryMetric


# (minimum usable periods, confidence), checked top to bottom
CONFIDENCE_THRESHOLDS: tuple[tuple[int, Confidence], ...] = (
    (12, "high"),
    (6, "medium"),
    (2, "low"),
)

DEFAULT_ZERO_RATIO_THRESHOLD = 0.3


def classify(period_count: int) -> Confidence:
    """Confidence tier for a metric computed over `period_count` periods."""
    for minimum, confidence in CONFIDENCE_THRESHOLDS:
        if period_count >= minimum:
            return confidence
    return "none"


def select_primary_metric(
    actuals: Sequence[float], zero_ratio_threshold: float = DEFAULT_ZERO_RATIO_THRESHOLD
) -> PrimaryMetric:
    """
    WAPE for zero-inflated series, MAPE otherwise.

    MAPE drops zero-actual periods, so on intermittent SKUs it describes
    only the few months that sold.
    """
    if len(actuals) == 0:
        return "mape"
    zero_ratio = sum(1 for a in actuals if a == 0) / len(actuals)
    return "wape" if zero_ratio > zero_ratio_threshold else "mape"


@dataclass(frozen=True)
class DataTier:
    """Display-oriented description of how much history backs a metric."""

    tier: str
    periods: int
    confidence: Confidence
    reliable_metrics: tuple[str, ...]
    message: str


_TIER_DETAILS: dict[Confidence, tuple[str, tuple[str, ...], str]] = {
    "high": ("full", ("mape", "wape", "rmse", "wase", "bias"), "Full historical data available"),
    "medium": ("limited", ("mape", "wape", "rmse", "bias"), "Limited history - WASE may be unreliable"),
    "low": ("minimal", ("mape", "wape", "bias"), "Minimal data - metrics are directional only"),
    "none": ("insufficient", (), "Insufficient data for reliable metrics"),
}


def describe_tier(period_count: int) -> DataTier:
    confidence = classify(period_count)
    tier, reliable, message = _TIER_DETAILS[confidence]
    return DataTier(
        tier=tier,
        periods=period_count,
        confidence=confidence,
        reliable_metrics=reliable,
        message=message,
    )


# (MAPE upper bound, tier, label), checked top to bottom
MAPE_TIERS: tuple[tuple[float, str, str], ...] = (
    (10, "excellent", "Excellent"),
    (20, "good", "Good"),
    (30, "acceptable", "Acceptable"),
    (50, "poor", "Poor"),
)

# Bias within this share of average sales reads as balanced
BALANCED_BIAS_PERCENT = 5.0


def mape_tier(mape: float) -> str:
    """Qualitative tier for a MAPE value: excellent / good / acceptable / poor / very_poor."""
    for upper, tier, _ in MAPE_TIERS:
        if mape < upper:
            return tier
    return "very_poor"


def interpret_mape(mape: float) -> str:
    for upper, _, label in MAPE_TIERS:
        if mape < upper:
            return label
    return "Very Poor"


def interpret_wase(wase: float) -> str:
    """Describe a WASE value relative to the previous-month benchmark."""
    if wase < 0.8:
        return "Much better than naive"
    if wase < 1.0:
        return "Better than naive"
    if wase == 1.0:
        return "Same as naive"
    if wase < 1.2:
        return "Slightly worse than naive"
    return "Worse than naive"


def interpret_bias(bias: float, avg_actual: float) -> str:
    """
    Describe bias as a share of average monthly sales.

    Positive bias means the forecast ran high.
    """
    if avg_actual == 0:
        return "Cannot interpret (no sales)"
    bias_percent = bias / avg_actual * 100
    if abs(bias_percent) < BALANCED_BIAS_PERCENT:
        return "Well balanced"
    if bias_percent > 0:
        return f"Over-forecasting by {bias_percent:.1f}%"
    return f"Under-forecasting by {abs(bias_percent):.1f}%"
