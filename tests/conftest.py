"""Shared fixtures for catalog-health tests."""

from datetime import datetime, timezone

import pytest

from catalog_health.records import VariantRecord


def monthly(values: list[float], start_year: int = 2024) -> dict:
    """Nested {year: {month: value}} map for consecutive months from January."""
    nested: dict[str, dict[str, float]] = {}
    for offset, value in enumerate(values):
        year = start_year + offset // 12
        month = offset % 12 + 1
        nested.setdefault(str(year), {})[str(month)] = value
    return nested


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_variant():
    """Factory for a fully-populated, healthy VariantRecord."""

    def factory(sku: str = "SKU-1", **overrides) -> VariantRecord:
        data = {
            "id": sku.lower(),
            "sku": sku,
            "title": f"Product {sku}",
            "price": 20.0,
            "cost_price": 8.0,
            "in_stock": 25,
            "orders_by_month": monthly([100, 110, 90, 120, 105, 95]),
            "forecast_by_period": monthly([95, 105, 100, 115, 100, 100]),
        }
        data.update(overrides)
        return VariantRecord.model_validate(data)

    return factory
