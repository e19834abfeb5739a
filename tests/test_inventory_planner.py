"""Tests for the Inventory Planner export loader."""

import json
from datetime import datetime, timezone

import pytest

from planner_clients.inventory_planner import InventoryPlannerLoader, extract_variants

from conftest import monthly


def variant(sku, **extra):
    data = {
        "id": sku.lower(),
        "sku": sku,
        "title": f"Product {sku}",
        "price": 20,
        "cost_price": 8,
        "in_stock": 10,
        "orders_by_month": monthly([100, 110, 90, 120]),
        "forecast_by_period": monthly([95, 105, 100, 115]),
    }
    data.update(extra)
    return data


def write_export(directory, payload, filename="variants.json"):
    (directory / filename).write_text(json.dumps(payload), encoding="utf-8")


class TestExtractVariants:
    def test_plain_list(self):
        assert extract_variants([variant("A"), variant("B")]) == [variant("A"), variant("B")]

    def test_plain_list_skips_non_variants(self):
        assert extract_variants([variant("A"), {"note": "x"}, "junk"]) == [variant("A")]

    def test_variants_key(self):
        assert extract_variants({"variants": [variant("A")]}) == [variant("A")]

    def test_data_key(self):
        assert extract_variants({"data": [variant("A")]}) == [variant("A")]

    def test_n8n_items(self):
        payload = [{"json": {"variants": [variant("A")]}}, {"json": {"variants": [variant("B")]}}]
        assert [v["sku"] for v in extract_variants(payload)] == ["A", "B"]

    def test_list_of_variant_pages(self):
        payload = [{"variants": [variant("A")]}, {"variants": [variant("B")]}]
        assert [v["sku"] for v in extract_variants(payload)] == ["A", "B"]

    def test_body_wrapper(self):
        assert extract_variants({"body": {"variants": [variant("A")]}}) == [variant("A")]

    @pytest.mark.parametrize("payload", [None, "text", 5, {}, {"variants": "nope"}, []])
    def test_unrecognized_shapes(self, payload):
        assert extract_variants(payload) == []


class TestInventoryPlannerLoader:
    def test_load(self, tmp_path):
        write_export(
            tmp_path,
            {
                "last_completed_sync": "2025-01-15T06:00:00Z",
                "variants": [variant("A"), variant("B"), {"id": 3}],
            },
        )

        catalog = InventoryPlannerLoader(tmp_path).load()

        assert [r.sku for r in catalog.records] == ["A", "B"]
        assert catalog.validation.summary()["failed"] == 1
        assert catalog.last_completed_sync == datetime(2025, 1, 15, 6, 0, tzinfo=timezone.utc)
        assert catalog.field_mappings.cost.detected_field == "cost_price"

    def test_field_renames(self, tmp_path):
        raw = {"variant_id": 77, "sku": "R", "stock_on_hand": 5, "name": "Renamed", "vendor": "Acme"}
        write_export(tmp_path, {"variants": [raw]})

        record = InventoryPlannerLoader(tmp_path).load().records[0]

        assert record.id == "77"
        assert record.in_stock == 5
        assert record.title == "Renamed"
        assert record.brand == "Acme"

    def test_rename_never_overwrites_existing_field(self, tmp_path):
        write_export(tmp_path, {"variants": [variant("A", in_stock=3, stock_on_hand=9)]})

        record = InventoryPlannerLoader(tmp_path).load().records[0]

        assert record.in_stock == 3
        assert record.extras["stock_on_hand"] == 9

    def test_synced_at_fallback(self, tmp_path):
        write_export(tmp_path, {"synced_at": "2025-01-14T12:00:00+00:00", "variants": [variant("A")]})
        catalog = InventoryPlannerLoader(tmp_path).load()
        assert catalog.last_completed_sync == datetime(2025, 1, 14, 12, 0, tzinfo=timezone.utc)

    def test_unparseable_sync_time(self, tmp_path, caplog):
        write_export(tmp_path, {"last_completed_sync": "yesterday-ish", "variants": [variant("A")]})

        with caplog.at_level("WARNING", logger="planner_clients.inventory_planner"):
            catalog = InventoryPlannerLoader(tmp_path).load()

        assert catalog.last_completed_sync is None
        assert "yesterday-ish" in caplog.text

    def test_list_payload_has_no_sync_time(self, tmp_path):
        write_export(tmp_path, [variant("A")])
        assert InventoryPlannerLoader(tmp_path).load().last_completed_sync is None

    def test_custom_filename(self, tmp_path):
        write_export(tmp_path, [variant("A")], filename="export.json")
        assert len(InventoryPlannerLoader(tmp_path, filename="export.json").load().records) == 1

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InventoryPlannerLoader(tmp_path).load()

    def test_malformed_json_raises(self, tmp_path):
        (tmp_path / "variants.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            InventoryPlannerLoader(tmp_path).load()

    def test_empty_export(self, tmp_path):
        write_export(tmp_path, {"variants": []})
        catalog = InventoryPlannerLoader(tmp_path).load()
        assert catalog.records == []
        assert catalog.field_mappings.cost.detected_field is None


class TestAnalyze:
    def test_full_report(self, tmp_path, now):
        write_export(
            tmp_path,
            {
                "last_completed_sync": "2025-01-15T06:00:00Z",
                "variants": [variant("A"), variant("B", in_stock=-2)],
            },
        )

        report = InventoryPlannerLoader(tmp_path).analyze(now=now)

        assert report.metrics["A"].source == "planner_forecast"
        assert report.metrics["A"].confidence == "low"
        assert report.health.components.freshness.hours_since_sync == pytest.approx(6)
        assert report.health.components.freshness.score == pytest.approx(88)
        assert report.health.components.stock_health.negative_stock == 1
        assert report.summary.total_skus == 2

    def test_empty_export_reports_no_data(self, tmp_path, now):
        write_export(tmp_path, [])
        report = InventoryPlannerLoader(tmp_path).analyze(now=now)
        assert report.health.issues[0].message == "No data imported yet"
