"""
Catalog data-health scoring.

Rolls six 0-100 component scores into one weighted score with a letter
grade, then runs a fixed list of rules to explain what is dragging the
score down and what to do about it:
- Field completeness of the fields every SKU should have
- Cost coverage (via the resolved cost field)
- Forecast and sales-history coverage
- Share of SKUs with forecast metrics
- Freshness of the last completed sync
- Stock health (negative / zero stock)
"""

import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pandas as pd

from .config import DEFAULT_CONFIG, ScoringConfig
from .fields import as_mapping, cost_resolver, sku_key
from .models import (
    CostCoverageComponent,
    FieldCompleteness,
    FieldCompletenessComponent,
    ForecastCoverageComponent,
    ForecastMetric,
    FreshnessComponent,
    Grade,
    HealthComponents,
    HealthIssue,
    HealthScore,
    MetricsCalculatedComponent,
    Severity,
    StockHealthComponent,
)
from .parsers import coerce_number

logger = logging.getLogger(__name__)


# Component weights for the overall score (must sum to 1.0)
HEALTH_WEIGHTS: dict[str, float] = {
    "field_completeness": 0.20,
    "cost_coverage": 0.25,
    "forecast_coverage": 0.20,
    "metrics_calculated": 0.15,
    "freshness": 0.10,
    "stock_health": 0.10,
}

REQUIRED_FIELDS = ("sku", "title", "price", "cost_price", "in_stock")

# (minimum overall score, grade), checked top to bottom; anything lower is F
GRADE_THRESHOLDS: tuple[tuple[float, Grade], ...] = (
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
)


def grade_for(score: float) -> Grade:
    for minimum, grade in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return "F"


def weighted_overall(
    scores: Mapping[str, float], weights: Mapping[str, float] = HEALTH_WEIGHTS
) -> float:
    """Convex combination of component scores, clamped to [0, 100]."""
    overall = sum(weights[name] * scores[name] for name in weights)
    return min(100.0, max(0.0, overall))


@dataclass(frozen=True)
class HealthContext:
    """What the issue rules get to look at."""

    components: HealthComponents
    total: int

    @property
    def cost_score(self) -> float:
        return self.components.cost_coverage.score

    @property
    def metrics_score(self) -> float:
        return self.components.metrics_calculated.score

    @property
    def forecast_ratio(self) -> float:
        return self.components.forecast_coverage.skus_with_forecast / self.total

    @property
    def sales_history_ratio(self) -> float:
        return self.components.forecast_coverage.skus_with_sales_history / self.total

    @property
    def hours_since_sync(self) -> float:
        return self.components.freshness.hours_since_sync

    @property
    def negative_stock(self) -> int:
        return self.components.stock_health.negative_stock


@dataclass(frozen=True)
class HealthRule:
    """
    One issue/recommendation rule.

    A rule with no severity only contributes its recommendation.
    """

    name: str
    predicate: Callable[[HealthContext], bool]
    severity: Severity | None = None
    message: Callable[[HealthContext], str] | None = None
    action: str = ""
    recommendation: str | None = None

    def issue(self, ctx: HealthContext) -> HealthIssue | None:
        if self.severity is None or self.message is None:
            return None
        return HealthIssue(severity=self.severity, message=self.message(ctx), action=self.action)


# Evaluated in this order; output order follows it, not severity
HEALTH_RULES: list[HealthRule] = [
    HealthRule(
        name="cost_critical",
        predicate=lambda ctx: ctx.cost_score < 50,
        severity="critical",
        message=lambda ctx: f"Only {ctx.cost_score:.0f}% of SKUs have cost data",
        action="Check field mapping in Admin > Field Mapping",
        recommendation="Verify the cost field name matches your Inventory Planner export",
    ),
    HealthRule(
        name="cost_warning",
        predicate=lambda ctx: 50 <= ctx.cost_score < 80,
        severity="warning",
        message=lambda ctx: f"{100 - ctx.cost_score:.0f}% of SKUs missing cost data",
        action="Review data quality in Inventory Planner",
    ),
    HealthRule(
        name="forecast_missing",
        predicate=lambda ctx: ctx.forecast_ratio < 0.3,
        severity="warning",
        message=lambda ctx: "Most SKUs missing forecast data from Inventory Planner",
        action="Ensure forecast_by_period is exported",
        recommendation="Configure Inventory Planner to export the forecast_by_period field",
    ),
    HealthRule(
        name="sales_history_missing",
        predicate=lambda ctx: ctx.sales_history_ratio < 0.5,
        severity="warning",
        message=lambda ctx: f"Only {ctx.sales_history_ratio:.0%} have sales history",
        action="Needed for accuracy metrics",
    ),
    HealthRule(
        name="sync_stale",
        predicate=lambda ctx: ctx.hours_since_sync > 48,
        severity="warning",
        message=lambda ctx: f"Data is {ctx.hours_since_sync:.0f} hours old",
        action="Run a new sync",
        recommendation="Set up an automated daily sync via the webhook",
    ),
    HealthRule(
        name="sync_aging",
        predicate=lambda ctx: 24 < ctx.hours_since_sync <= 48,
        severity="info",
        message=lambda ctx: f"Last sync was {ctx.hours_since_sync:.0f} hours ago",
        action="Consider more frequent syncs",
    ),
    HealthRule(
        name="negative_stock",
        predicate=lambda ctx: ctx.negative_stock > 0,
        severity="info",
        message=lambda ctx: f"{ctx.negative_stock} SKUs have negative stock (backorders)",
        action="Review order fulfillment",
    ),
    HealthRule(
        name="metrics_pending",
        predicate=lambda ctx: ctx.metrics_score < 50 and ctx.sales_history_ratio > 0.5,
        recommendation="Run a sync to calculate forecast accuracy metrics",
    ),
]


def empty_health_score(config: ScoringConfig = DEFAULT_CONFIG) -> HealthScore:
    """Sentinel score for a catalog with no records."""
    return HealthScore(
        overall=0.0,
        grade="F",
        components=HealthComponents(
            freshness=FreshnessComponent(hours_since_sync=config.missing_sync_hours)
        ),
        issues=[
            HealthIssue(
                severity="critical",
                message="No data imported yet",
                action="Import data from Inventory Planner",
            )
        ],
        recommendations=["Import your first dataset using the JSON upload or the sync webhook"],
    )


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _has_entries(value: Any) -> bool:
    return isinstance(value, Mapping) and len(value) > 0


class HealthScorer:
    """
    Scores a catalog snapshot.

    Rules run in declaration order and each one is independent, so several
    can fire together. Extend by adding rules via add_rule().
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        rules: list[HealthRule] | None = None,
        weights: Mapping[str, float] | None = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.rules = list(HEALTH_RULES if rules is None else rules)
        self.weights = dict(HEALTH_WEIGHTS if weights is None else weights)
        self._check_weights()

    def _check_weights(self) -> None:
        if set(self.weights) != set(HEALTH_WEIGHTS):
            missing = sorted(set(HEALTH_WEIGHTS) - set(self.weights))
            unknown = sorted(set(self.weights) - set(HEALTH_WEIGHTS))
            raise ValueError(
                f"Health weights must cover exactly the six components "
                f"(missing: {missing}, unknown: {unknown})"
            )
        if any(w < 0 for w in self.weights.values()):
            raise ValueError("Health weights must be non-negative")
        total = sum(self.weights.values())
        if not math.isclose(total, 1.0):
            raise ValueError(f"Health weights must sum to 1.0, got {total}")

    def add_rule(self, rule: HealthRule) -> "HealthScorer":
        """Append a rule after the existing ones. Returns self for chaining."""
        self.rules.append(rule)
        return self

    def score(
        self,
        catalog: list[Any],
        metrics_by_sku: Mapping[str, ForecastMetric] | None = None,
        last_sync: datetime | None = None,
        now: datetime | None = None,
    ) -> HealthScore:
        total = len(catalog)
        if total == 0:
            logger.info("Health score requested for an empty catalog")
            return empty_health_score(self.config)

        raws = [as_mapping(record) for record in catalog]
        metrics_by_sku = metrics_by_sku or {}

        components = HealthComponents(
            field_completeness=self._field_completeness(raws),
            cost_coverage=self._cost_coverage(catalog),
            forecast_coverage=self._forecast_coverage(raws),
            metrics_calculated=self._metrics_calculated(raws, metrics_by_sku),
            freshness=self._freshness(last_sync, now),
            stock_health=self._stock_health(raws),
        )

        overall = weighted_overall(components.scores(), self.weights)
        issues, recommendations = self._evaluate_rules(HealthContext(components, total))

        return HealthScore(
            overall=overall,
            grade=grade_for(overall),
            components=components,
            issues=issues,
            recommendations=recommendations,
        )

    def _field_completeness(self, raws: list[Mapping]) -> FieldCompletenessComponent:
        total = len(raws)
        frame = pd.DataFrame(
            {
                name: pd.Series([raw.get(name) for raw in raws], dtype=object)
                for name in REQUIRED_FIELDS
            }
        )

        details = {}
        for name in REQUIRED_FIELDS:
            count = int(frame[name].notna().sum())
            details[name] = FieldCompleteness(
                count=count, total=total, percentage=count / total * 100
            )

        score = sum(d.percentage for d in details.values()) / len(REQUIRED_FIELDS)
        return FieldCompletenessComponent(score=score, details=details)

    def _cost_coverage(self, catalog: list[Any]) -> CostCoverageComponent:
        cost_field = cost_resolver.resolve(catalog).detected_field
        costs = pd.Series(
            [cost_resolver.value_of(record, cost_field) for record in catalog], dtype="float64"
        )
        with_cost = int((costs > 0).sum())
        return CostCoverageComponent(
            score=with_cost / len(catalog) * 100,
            skus_with_cost=with_cost,
            cost_field=cost_field,
            total=len(catalog),
        )

    def _forecast_coverage(self, raws: list[Mapping]) -> ForecastCoverageComponent:
        total = len(raws)
        with_forecast = sum(1 for raw in raws if _has_entries(raw.get("forecast_by_period")))
        with_history = sum(1 for raw in raws if _has_entries(raw.get("orders_by_month")))
        return ForecastCoverageComponent(
            score=(with_forecast + with_history) / (2 * total) * 100,
            skus_with_forecast=with_forecast,
            skus_with_sales_history=with_history,
            total=total,
        )

    def _metrics_calculated(
        self, raws: list[Mapping], metrics_by_sku: Mapping[str, ForecastMetric]
    ) -> MetricsCalculatedComponent:
        with_metrics = 0
        for index, raw in enumerate(raws):
            metric = metrics_by_sku.get(sku_key(raw, index))
            if metric is not None and metric.is_calculated:
                with_metrics += 1
        return MetricsCalculatedComponent(
            score=with_metrics / len(raws) * 100,
            skus_with_metrics=with_metrics,
            total=len(raws),
        )

    def _freshness(self, last_sync: datetime | None, now: datetime | None) -> FreshnessComponent:
        if last_sync is None:
            hours = self.config.missing_sync_hours
        else:
            now = _as_utc(now or datetime.now(timezone.utc))
            elapsed = (now - _as_utc(last_sync)).total_seconds() / 3600
            # Clock skew can put the sync slightly in the future
            hours = max(0.0, elapsed)

        score = min(100.0, max(0.0, 100 - self.config.freshness_decay_per_hour * hours))
        return FreshnessComponent(score=score, last_sync=last_sync, hours_since_sync=hours)

    def _stock_health(self, raws: list[Mapping]) -> StockHealthComponent:
        total = len(raws)
        stock = pd.Series(
            [coerce_number(raw.get("in_stock")) or 0.0 for raw in raws], dtype="float64"
        )
        negative = int((stock < 0).sum())
        zero = int((stock == 0).sum())
        healthy = total - negative - zero
        return StockHealthComponent(
            score=healthy / total * 100,
            negative_stock=negative,
            zero_stock=zero,
            healthy_stock=healthy,
        )

    def _evaluate_rules(self, ctx: HealthContext) -> tuple[list[HealthIssue], list[str]]:
        issues: list[HealthIssue] = []
        recommendations: list[str] = []

        for rule in self.rules:
            if not rule.predicate(ctx):
                continue
            logger.debug("Health rule fired: %s", rule.name)
            issue = rule.issue(ctx)
            if issue is not None:
                issues.append(issue)
            if rule.recommendation:
                recommendations.append(rule.recommendation)

        return issues, recommendations
