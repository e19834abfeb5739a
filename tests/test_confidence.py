"""Tests for confidence tiers and primary-metric selection."""

import pytest

from catalog_health.confidence import (
    CONFIDENCE_THRESHOLDS,
    classify,
    describe_tier,
    interpret_bias,
    interpret_mape,
    interpret_wase,
    mape_tier,
    select_primary_metric,
)


class TestClassify:
    @pytest.mark.parametrize(
        "periods, expected",
        [
            (0, "none"),
            (1, "none"),
            (2, "low"),
            (5, "low"),
            (6, "medium"),
            (11, "medium"),
            (12, "high"),
            (36, "high"),
        ],
    )
    def test_step_function(self, periods, expected):
        assert classify(periods) == expected

    def test_thresholds_descend(self):
        minimums = [minimum for minimum, _ in CONFIDENCE_THRESHOLDS]
        assert minimums == sorted(minimums, reverse=True)

    def test_negative_count(self):
        assert classify(-1) == "none"


class TestSelectPrimaryMetric:
    def test_mostly_nonzero(self):
        assert select_primary_metric([10, 12, 0, 9, 11, 8, 7, 10, 9, 12]) == "mape"

    def test_exactly_at_threshold_keeps_mape(self):
        assert select_primary_metric([0, 0, 0, 1, 1, 1, 1, 1, 1, 1]) == "mape"

    def test_zero_inflated(self):
        assert select_primary_metric([0, 0, 0, 0, 1, 1, 1, 1, 1, 1]) == "wape"

    def test_custom_threshold(self):
        assert select_primary_metric([0, 1, 1, 1], zero_ratio_threshold=0.2) == "wape"

    def test_empty(self):
        assert select_primary_metric([]) == "mape"


class TestDescribeTier:
    def test_full(self):
        tier = describe_tier(12)
        assert tier.tier == "full"
        assert tier.confidence == "high"
        assert "wase" in tier.reliable_metrics

    def test_limited_flags_wase(self):
        tier = describe_tier(7)
        assert tier.tier == "limited"
        assert "wase" not in tier.reliable_metrics

    def test_insufficient(self):
        tier = describe_tier(1)
        assert tier.tier == "insufficient"
        assert tier.reliable_metrics == ()
        assert tier.periods == 1


class TestInterpretation:
    @pytest.mark.parametrize(
        "mape, tier, label",
        [
            (0, "excellent", "Excellent"),
            (9.99, "excellent", "Excellent"),
            (10, "good", "Good"),
            (25, "acceptable", "Acceptable"),
            (49, "poor", "Poor"),
            (50, "very_poor", "Very Poor"),
            (300, "very_poor", "Very Poor"),
        ],
    )
    def test_mape_tiers(self, mape, tier, label):
        assert mape_tier(mape) == tier
        assert interpret_mape(mape) == label

    @pytest.mark.parametrize(
        "wase, label",
        [
            (0.5, "Much better than naive"),
            (0.9, "Better than naive"),
            (1.0, "Same as naive"),
            (1.1, "Slightly worse than naive"),
            (2.0, "Worse than naive"),
        ],
    )
    def test_interpret_wase(self, wase, label):
        assert interpret_wase(wase) == label

    def test_interpret_bias(self):
        assert interpret_bias(2, 100) == "Well balanced"
        assert interpret_bias(12.5, 100) == "Over-forecasting by 12.5%"
        assert interpret_bias(-20, 80) == "Under-forecasting by 25.0%"
        assert interpret_bias(5, 0) == "Cannot interpret (no sales)"
