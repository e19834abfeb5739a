"""
Catalog-level analysis.

Ties the per-SKU metrics engine, field resolution and health scoring
together over one catalog snapshot:
- Forecast metrics for every SKU (fanned out over a thread pool)
- Headline business numbers
- The combined report handed to the API layer
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .config import DEFAULT_CONFIG, ScoringConfig
from .fields import (
    as_mapping,
    cost_resolver,
    detect_field_mappings,
    lost_revenue_resolver,
    sku_key,
)
from .health import HealthScorer
from .metrics import MetricsEngine
from .models import BusinessSummary, FieldMappingDetection, ForecastMetric, HealthScore
from .parsers import coerce_number

logger = logging.getLogger(__name__)

# SKUs out of stock longer than this many days count as overstock candidates
OVERSTOCK_OOS_DAYS = 30


def compute_catalog_metrics(
    records: list[Any],
    engine: MetricsEngine | None = None,
    max_workers: int | None = None,
) -> dict[str, ForecastMetric]:
    """
    Compute forecast metrics for every record.

    Each SKU is independent, so the work is mapped over a thread pool and
    gathered in catalog order. A SKU whose data can't be processed gets an
    insufficient_data metric instead of failing the batch.

    Returns dict of sku -> ForecastMetric.
    """
    engine = engine or MetricsEngine()
    skus = [sku_key(record, i) for i, record in enumerate(records)]

    def compute_one(item: tuple[str, Any]) -> ForecastMetric:
        sku, record = item
        try:
            return engine.compute_for_record(record)
        except (TypeError, ValueError, ArithmeticError) as exc:
            logger.warning("Could not compute metrics for SKU %s: %s", sku, exc)
            return engine.insufficient(sku)

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(compute_one, zip(skus, records)))

    metrics = dict(zip(skus, results))
    calculated = sum(1 for m in metrics.values() if m.is_calculated)
    logger.info("Computed forecast metrics for %d of %d SKUs", calculated, len(records))
    return metrics


def compute_business_summary(
    records: list[Any],
    metrics_by_sku: dict[str, ForecastMetric] | None = None,
) -> BusinessSummary:
    """
    Compute headline numbers for the dashboard.

    Stock value uses the resolved cost field and lost revenue the resolved
    lost-revenue field, so exports with non-standard column names still
    produce totals.
    """
    metrics_by_sku = metrics_by_sku or {}
    cost_field = cost_resolver.resolve(records).detected_field
    lost_revenue_field = lost_revenue_resolver.resolve(records).detected_field

    total_in_stock = 0.0
    total_value = 0.0
    total_lost_revenue = 0.0
    needing_reorder = 0
    out_of_stock = 0
    overstocked = 0

    for record in records:
        raw = as_mapping(record)
        in_stock = coerce_number(raw.get("in_stock")) or 0.0
        cost = cost_resolver.value_of(record, cost_field) or 0.0

        total_in_stock += in_stock
        total_value += in_stock * cost
        total_lost_revenue += lost_revenue_resolver.value_of(record, lost_revenue_field) or 0.0

        if (coerce_number(raw.get("replenishment")) or 0) > 0:
            needing_reorder += 1
        if in_stock == 0:
            out_of_stock += 1
        if (coerce_number(raw.get("oos")) or 0) > OVERSTOCK_OOS_DAYS:
            overstocked += 1

    mapes = [m.mape for m in metrics_by_sku.values() if m.mape is not None]
    avg_accuracy = 100 - sum(mapes) / len(mapes) if mapes else None

    return BusinessSummary(
        total_skus=len(records),
        total_in_stock=total_in_stock,
        total_value=total_value,
        items_needing_reorder=needing_reorder,
        items_out_of_stock=out_of_stock,
        items_overstocked=overstocked,
        total_lost_revenue=total_lost_revenue,
        avg_forecast_accuracy=avg_accuracy,
    )


@dataclass
class CatalogReport:
    """Everything computed for one catalog snapshot."""

    field_mappings: FieldMappingDetection
    metrics: dict[str, ForecastMetric]
    health: HealthScore
    summary: BusinessSummary

    def to_dict(self) -> dict:
        return {
            "field_mappings": self.field_mappings.model_dump(mode="json"),
            "metrics": {sku: m.model_dump(mode="json") for sku, m in self.metrics.items()},
            "health": self.health.model_dump(mode="json"),
            "summary": self.summary.model_dump(mode="json"),
        }


def build_catalog_report(
    records: list[Any],
    last_sync: datetime | None = None,
    config: ScoringConfig | None = None,
    now: datetime | None = None,
) -> CatalogReport:
    """Run field detection, metrics, health scoring and the summary."""
    config = config or DEFAULT_CONFIG

    field_mappings = detect_field_mappings(records)
    if field_mappings.needs_confirmation:
        logger.info("Field mapping needs confirmation: %s", field_mappings.summary)

    metrics = compute_catalog_metrics(
        records, MetricsEngine(config), max_workers=config.metrics_max_workers
    )
    health = HealthScorer(config).score(records, metrics, last_sync, now=now)

    return CatalogReport(
        field_mappings=field_mappings,
        metrics=metrics,
        health=health,
        summary=compute_business_summary(records, metrics),
    )
