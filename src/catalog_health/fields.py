"""
Field resolution for heterogeneous planner exports.

Different export configurations put the same business value under
different keys (cost can be `cost_price`, `unit_cost`, `cogs`, ...).
FieldResolver looks at a whole batch and picks the candidate that
actually carries data.
"""

from collections.abc import Mapping
from typing import Any

import pandas as pd

from .models import FieldAlternative, FieldDetectionResult, FieldMappingDetection
from .parsers import coerce_number


# Ordered by preference: earlier names win ties
COST_FIELD_CANDIDATES = [
    "cost_price",
    "cost",
    "unit_cost",
    "average_cost",
    "cogs",
    "purchase_price",
    "landed_cost",
]

LOST_REVENUE_FIELD_CANDIDATES = [
    "forecasted_lost_revenue_lead_time",
    "forecasted_lost_revenue",
    "lost_revenue",
    "potential_lost_revenue",
    "oos_lost_revenue",
]

# Cost mapping needs a human check below this coverage
CONFIRMATION_COVERAGE = 0.8
# ...or when the runner-up candidate covers more than this
COMPETING_COVERAGE = 0.1


def as_mapping(record: Any) -> Mapping[str, Any]:
    as_raw = getattr(record, "as_raw", None)
    if callable(as_raw):
        return as_raw()
    if isinstance(record, Mapping):
        return record
    return {}


def sku_key(record: Any, index: int) -> str:
    """Key a record by SKU, or by catalog position when it has none."""
    sku = as_mapping(record).get("sku")
    return str(sku) if sku else f"index-{index}"


class FieldResolver:
    """
    Detects which of several candidate fields supplies a semantic value.

    Candidates are ranked by how many records carry a numeric, non-zero
    value. Ties go to the candidate listed first, so the preference order
    in the candidate list is meaningful. A candidate that is present but
    zero everywhere never wins.

    Usage:
        resolver = FieldResolver(COST_FIELD_CANDIDATES)
        result = resolver.resolve(variants)
        cost = resolver.value_of(variant, result.detected_field)
    """

    def __init__(self, candidates: list[str]):
        if not candidates:
            raise ValueError("FieldResolver needs at least one candidate field")
        self.candidates = list(candidates)

    def resolve(self, records: list[Any]) -> FieldDetectionResult:
        """Score every candidate over the batch and pick the best one."""
        total = len(records)
        if total == 0:
            return FieldDetectionResult(detected_field=None, coverage=0.0, alternatives=[])

        raws = [as_mapping(record) for record in records]
        scored = []
        for name in self.candidates:
            raw_values = pd.Series([raw.get(name) for raw in raws], dtype=object)
            numbers = raw_values.apply(coerce_number)
            matched = numbers.notna() & (numbers != 0)
            count = int(matched.sum())
            scored.append(
                FieldAlternative(
                    field=name,
                    count=count,
                    coverage=count / total,
                    sample_value=raw_values[matched].iloc[0] if count else None,
                )
            )

        # sorted() is stable, so equal counts keep candidate order
        ranked = sorted(scored, key=lambda alt: alt.count, reverse=True)
        best = ranked[0]

        return FieldDetectionResult(
            detected_field=best.field if best.count > 0 else None,
            coverage=best.coverage,
            alternatives=[alt for alt in ranked if alt.count > 0],
        )

    def value_of(self, record: Any, resolved_field: str | None = None) -> float | None:
        """
        Read the semantic value from one record.

        Uses the resolved field when the record has it, otherwise the first
        candidate holding a numeric value. Returns None instead of raising.
        """
        raw = as_mapping(record)

        if resolved_field and raw.get(resolved_field) is not None:
            return coerce_number(raw[resolved_field])

        for name in self.candidates:
            if raw.get(name) is not None:
                value = coerce_number(raw[name])
                if value is not None:
                    return value
        return None


cost_resolver = FieldResolver(COST_FIELD_CANDIDATES)
lost_revenue_resolver = FieldResolver(LOST_REVENUE_FIELD_CANDIDATES)


def detect_field_mappings(records: list[Any]) -> FieldMappingDetection:
    """Detect cost and lost-revenue fields for an import."""
    cost = cost_resolver.resolve(records)
    lost_revenue = lost_revenue_resolver.resolve(records)

    needs_confirmation = cost.coverage < CONFIRMATION_COVERAGE or (
        len(cost.alternatives) > 1 and cost.alternatives[1].coverage > COMPETING_COVERAGE
    )

    parts = []
    if cost.detected_field:
        parts.append(f'Cost field: "{cost.detected_field}" ({cost.coverage:.0%} coverage)')
    else:
        parts.append("Cost field: Not detected")
    if lost_revenue.detected_field:
        parts.append(
            f'Lost revenue: "{lost_revenue.detected_field}" '
            f"({lost_revenue.coverage:.0%} coverage)"
        )

    return FieldMappingDetection(
        cost=cost,
        lost_revenue=lost_revenue,
        needs_confirmation=needs_confirmation,
        summary="; ".join(parts),
    )


def discover_fields(records: list[Any]) -> list[dict]:
    """
    List every field present in a batch with its observed types.

    Useful when building a field mapping for a new export layout.
    """
    stats: dict[str, dict] = {}
    for record in records:
        for name, value in as_mapping(record).items():
            entry = stats.setdefault(name, {"types": [], "non_null": 0, "sample": None})
            if value is None:
                continue
            entry["non_null"] += 1
            type_name = type(value).__name__
            if type_name not in entry["types"]:
                entry["types"].append(type_name)
            if entry["non_null"] == 1:
                entry["sample"] = value

    fields = [
        {
            "field": name,
            "type": "|".join(entry["types"]),
            "non_null_count": entry["non_null"],
            "sample_value": entry["sample"],
        }
        for name, entry in stats.items()
    ]
    return sorted(fields, key=lambda f: f["non_null_count"], reverse=True)
