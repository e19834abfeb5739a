"""
Tagged catalog records and batch validation.

Variants arrive from the planner as loosely-typed JSON objects. VariantRecord
names the fields the engine relies on up front; everything else the export
carries is kept in the record's extras so it can be audited or resolved
later (e.g. alternative cost columns).
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .fields import cost_resolver
from .parsers import MonthlyMapFlattener

logger = logging.getLogger(__name__)


class VariantRecord(BaseModel):
    """One SKU from the synced catalog snapshot."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str = Field(description="Planner variant identifier")
    sku: str = Field(min_length=1, description="SKU code")
    title: str | None = None
    brand: str | None = None
    product_type: str | None = None

    price: float | None = Field(default=None, ge=0)
    cost_price: float | None = Field(default=None, ge=0)

    # Negative stock is allowed (backorders)
    in_stock: float = 0
    replenishment: float = 0
    oos: float = Field(default=0, ge=0, description="Days out of stock")
    lead_time: float | None = Field(default=None, ge=0, le=365)

    forecasted_lost_revenue: float | None = None

    orders_by_month: dict[str, Any] | None = None
    forecast_by_period: dict[str, Any] | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def extras(self) -> dict[str, Any]:
        """Export keys the record doesn't model explicitly."""
        return dict(self.model_extra or {})

    def as_raw(self) -> dict[str, Any]:
        """Flat view of declared fields plus extras, as the export had them."""
        return self.model_dump()

    @property
    def has_sales_history(self) -> bool:
        return bool(self.orders_by_month)

    @property
    def has_forecast(self) -> bool:
        return bool(self.forecast_by_period)


@dataclass
class RecordError:
    """A field-level problem found on a single input record."""

    field: str
    message: str
    value: Any = None


@dataclass
class RecordIssues:
    """All errors or warnings for one input record."""

    index: int
    sku: str
    problems: list[RecordError] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Outcome of validating a batch of raw variants."""

    total: int
    valid: list[VariantRecord] = field(default_factory=list)
    invalid: list[RecordIssues] = field(default_factory=list)
    warnings: list[RecordIssues] = field(default_factory=list)

    def summary(self) -> dict:
        return {
            "total": self.total,
            "passed": len(self.valid),
            "failed": len(self.invalid),
            "with_warnings": len(self.warnings),
        }

    def error_summary(self) -> dict[str, int]:
        """Count errors grouped by "field: message"."""
        counts: dict[str, int] = {}
        for issues in self.invalid:
            for problem in issues.problems:
                key = f"{problem.field}: {problem.message}"
                counts[key] = counts.get(key, 0) + 1
        return counts


# Stock above this is almost always a unit-of-measure mistake upstream
MAX_PLAUSIBLE_STOCK = 1_000_000


def _business_warnings(record: VariantRecord, today: date) -> list[RecordError]:
    warnings = []

    cost = cost_resolver.value_of(record)
    if record.price and cost and cost > record.price:
        warnings.append(
            RecordError("cost_price", "Cost exceeds selling price (negative margin)", cost)
        )

    current = f"{today.year:04d}-{today.month:02d}"
    history = MonthlyMapFlattener().flatten(record.orders_by_month)
    for period in history:
        if period > current:
            warnings.append(
                RecordError("orders_by_month", f"Future date in sales history: {period}", period)
            )

    if record.in_stock > MAX_PLAUSIBLE_STOCK:
        warnings.append(
            RecordError("in_stock", "Unusually high stock quantity (over 1M units)", record.in_stock)
        )

    return warnings


def validate_variants(data: list[Any], today: date | None = None) -> ValidationResult:
    """
    Validate raw variant objects.

    Invalid records are reported with their field errors and skipped; the
    rest of the batch is still returned.
    """
    today = today or date.today()
    result = ValidationResult(total=len(data))

    for index, item in enumerate(data):
        raw_sku = item.get("sku") if isinstance(item, dict) else None
        sku = str(raw_sku) if raw_sku else f"index-{index}"

        try:
            record = VariantRecord.model_validate(item)
        except ValidationError as exc:
            problems = [
                RecordError(
                    field=".".join(str(part) for part in err["loc"]) or "__root__",
                    message=err["msg"],
                    value=err.get("input"),
                )
                for err in exc.errors()
            ]
            result.invalid.append(RecordIssues(index=index, sku=sku, problems=problems))
            continue

        warnings = _business_warnings(record, today)
        if warnings:
            result.warnings.append(RecordIssues(index=index, sku=sku, problems=warnings))

        result.valid.append(record)

    if result.invalid:
        logger.warning(
            "%d of %d variants failed validation", len(result.invalid), result.total
        )
    return result
