# Core scoring engine for synced inventory catalogs
# Pure functions over catalog snapshots; loading data is the clients' job

from .parsers import coerce_number, PeriodKeyParser, MonthlyMapFlattener
from .timeseries import TimeSeries, align
from .models import (
    ForecastMetric,
    FieldDetectionResult,
    FieldMappingDetection,
    HealthScore,
    HealthIssue,
    BusinessSummary,
)
from .fields import (
    FieldResolver,
    COST_FIELD_CANDIDATES,
    LOST_REVENUE_FIELD_CANDIDATES,
    cost_resolver,
    lost_revenue_resolver,
    detect_field_mappings,
    discover_fields,
)
from .records import VariantRecord, ValidationResult, validate_variants
from .confidence import (
    CONFIDENCE_THRESHOLDS,
    classify,
    select_primary_metric,
    describe_tier,
    mape_tier,
    interpret_mape,
    interpret_wase,
    interpret_bias,
)
from .metrics import MetricsEngine
from .health import HealthScorer, HealthRule, HEALTH_WEIGHTS, HEALTH_RULES, grade_for
from .analysis import (
    compute_catalog_metrics,
    compute_business_summary,
    build_catalog_report,
    CatalogReport,
)
from .config import ScoringConfig
from .logging_config import setup_logging

__all__ = [
    "coerce_number",
    "PeriodKeyParser",
    "MonthlyMapFlattener",
    "TimeSeries",
    "align",
    "ForecastMetric",
    "FieldDetectionResult",
    "FieldMappingDetection",
    "HealthScore",
    "HealthIssue",
    "BusinessSummary",
    "FieldResolver",
    "COST_FIELD_CANDIDATES",
    "LOST_REVENUE_FIELD_CANDIDATES",
    "cost_resolver",
    "lost_revenue_resolver",
    "detect_field_mappings",
    "discover_fields",
    "VariantRecord",
    "ValidationResult",
    "validate_variants",
    "CONFIDENCE_THRESHOLDS",
    "classify",
    "select_primary_metric",
    "describe_tier",
    "mape_tier",
    "interpret_mape",
    "interpret_wase",
    "interpret_bias",
    "MetricsEngine",
    "HealthScorer",
    "HealthRule",
    "HEALTH_WEIGHTS",
    "HEALTH_RULES",
    "grade_for",
    "compute_catalog_metrics",
    "compute_business_summary",
    "build_catalog_report",
    "CatalogReport",
    "ScoringConfig",
    "setup_logging",
]
