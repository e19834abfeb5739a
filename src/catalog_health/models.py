"""
Output models for the scoring engine.

Pydantic models so the API/reporting layer gets stable field names and
string enum values straight from `model_dump(mode="json")`.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


ForecastSource = Literal["planner_forecast", "naive_benchmark", "insufficient_data"]
Confidence = Literal["high", "medium", "low", "none"]
PrimaryMetric = Literal["mape", "wape"]
Severity = Literal["critical", "warning", "info"]
Grade = Literal["A", "B", "C", "D", "F"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ForecastMetric(_Frozen):
    """Forecast accuracy for one SKU."""

    sku: str | None = None
    mape: float | None = Field(default=None, description="Mean absolute percentage error, %")
    wape: float | None = Field(default=None, description="Volume-weighted absolute percentage error, %")
    rmse: float | None = Field(default=None, description="Root mean square error, units")
    wase: float | None = Field(default=None, description="Error scaled by the lag-1 naive error")
    bias: float | None = Field(
        default=None, description="Mean forecast minus actual; positive = over-forecast"
    )
    naive_mape: float | None = Field(
        default=None, description="MAPE of the previous-period benchmark"
    )
    source: ForecastSource
    confidence: Confidence
    primary_metric: PrimaryMetric = "mape"
    period_count: int = Field(default=0, ge=0)
    zero_periods: int = Field(default=0, ge=0)

    @property
    def is_calculated(self) -> bool:
        return self.source != "insufficient_data"


class FieldAlternative(_Frozen):
    """How well one candidate field is populated."""

    field: str
    count: int = Field(ge=0)
    coverage: float = Field(ge=0, le=1)
    sample_value: Any = None


class FieldDetectionResult(_Frozen):
    """Which candidate field carries a semantic value across a batch."""

    detected_field: str | None
    coverage: float = Field(ge=0, le=1)
    alternatives: list[FieldAlternative] = Field(default_factory=list)


class FieldMappingDetection(_Frozen):
    """Field detection for everything an import needs mapped."""

    cost: FieldDetectionResult
    lost_revenue: FieldDetectionResult
    needs_confirmation: bool
    summary: str


class FieldCompleteness(_Frozen):
    count: int
    total: int
    percentage: float


class FieldCompletenessComponent(_Frozen):
    score: float = 0.0
    details: dict[str, FieldCompleteness] = Field(default_factory=dict)


class CostCoverageComponent(_Frozen):
    score: float = 0.0
    skus_with_cost: int = 0
    cost_field: str | None = None
    total: int = 0


class ForecastCoverageComponent(_Frozen):
    score: float = 0.0
    skus_with_forecast: int = 0
    skus_with_sales_history: int = 0
    total: int = 0


class MetricsCalculatedComponent(_Frozen):
    score: float = 0.0
    skus_with_metrics: int = 0
    total: int = 0


class FreshnessComponent(_Frozen):
    score: float = 0.0
    last_sync: datetime | None = None
    hours_since_sync: float = 0.0


class StockHealthComponent(_Frozen):
    score: float = 0.0
    negative_stock: int = 0
    zero_stock: int = 0
    healthy_stock: int = 0


class HealthComponents(_Frozen):
    field_completeness: FieldCompletenessComponent = Field(default_factory=FieldCompletenessComponent)
    cost_coverage: CostCoverageComponent = Field(default_factory=CostCoverageComponent)
    forecast_coverage: ForecastCoverageComponent = Field(default_factory=ForecastCoverageComponent)
    metrics_calculated: MetricsCalculatedComponent = Field(default_factory=MetricsCalculatedComponent)
    freshness: FreshnessComponent = Field(default_factory=FreshnessComponent)
    stock_health: StockHealthComponent = Field(default_factory=StockHealthComponent)

    def scores(self) -> dict[str, float]:
        """Component name -> 0-100 score."""
        return {name: getattr(self, name).score for name in type(self).model_fields}


class HealthIssue(_Frozen):
    severity: Severity
    message: str
    action: str


class HealthScore(_Frozen):
    """Catalog-wide data health."""

    overall: float = Field(ge=0, le=100)
    grade: Grade
    components: HealthComponents
    issues: list[HealthIssue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    def issues_by_severity(self, severity: Severity) -> list[HealthIssue]:
        return [i for i in self.issues if i.severity == severity]

    def summary(self) -> dict:
        return {
            "overall": round(self.overall, 1),
            "grade": self.grade,
            "critical": len(self.issues_by_severity("critical")),
            "warnings": len(self.issues_by_severity("warning")),
            "info": len(self.issues_by_severity("info")),
        }

    def quick_check(self) -> dict:
        """Score, grade and issue counts only."""
        return {
            "score": self.overall,
            "grade": self.grade,
            "critical_issues": len(self.issues_by_severity("critical")),
            "warnings": len(self.issues_by_severity("warning")),
        }


class BusinessSummary(_Frozen):
    """Headline numbers for the dashboard."""

    total_skus: int
    total_in_stock: float
    total_value: float = Field(description="Units in stock valued at resolved cost")
    items_needing_reorder: int
    items_out_of_stock: int
    items_overstocked: int
    total_lost_revenue: float
    avg_forecast_accuracy: float | None = Field(
        default=None, description="100 minus mean MAPE over SKUs with metrics"
    )
