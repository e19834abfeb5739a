"""Tests for export parsers and the monthly TimeSeries."""

import math

import numpy as np
import pytest

from catalog_health.parsers import MonthlyMapFlattener, PeriodKeyParser, coerce_number
from catalog_health.timeseries import TimeSeries, align


class TestCoerceNumber:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (12, 12.0),
            (3.5, 3.5),
            ("7", 7.0),
            (" 4.25 ", 4.25),
            ("$1,250.50", 1250.5),
            (np.int64(9), 9.0),
        ],
    )
    def test_numeric_inputs(self, raw, expected):
        assert coerce_number(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [None, "", "abc", True, False, float("nan"), float("inf"), "Infinity", [1], {}, 10**400, "9" * 400],
    )
    def test_unusable_inputs_return_none(self, raw):
        assert coerce_number(raw) is None


class TestPeriodKeyParser:
    @pytest.mark.parametrize(
        "key",
        ["2024-03", "2024/03", "2024-3", "202403", "03/2024", "2024-03-01", "Mar 2024", "March 2024"],
    )
    def test_formats_normalize_to_year_month(self, key):
        assert PeriodKeyParser().parse(key) == "2024-03"

    def test_unparseable_key(self):
        parser = PeriodKeyParser()
        assert parser.parse("last month") is None
        assert parser.parse(None) is None
        assert parser.parse(float("nan")) is None

    def test_from_parts_pads_month(self):
        parser = PeriodKeyParser()
        assert parser.from_parts("2024", "1") == "2024-01"
        assert parser.from_parts(2023, 12) == "2023-12"

    def test_from_parts_rejects_bad_month(self):
        parser = PeriodKeyParser()
        assert parser.from_parts("2024", "13") is None
        assert parser.from_parts("2024", "total") is None


class TestMonthlyMapFlattener:
    def test_nested_map(self):
        flat = MonthlyMapFlattener().flatten({"2024": {"2": 5, "1": "3"}, "2023": {"12": 1}})
        assert flat == {"2023-12": 1.0, "2024-01": 3.0, "2024-02": 5.0}
        assert list(flat) == ["2023-12", "2024-01", "2024-02"]

    def test_flat_map(self):
        flat = MonthlyMapFlattener().flatten({"2024-02": 4, "2024-01": 2})
        assert flat == {"2024-01": 2.0, "2024-02": 4.0}

    def test_bad_values_become_zero(self):
        flat = MonthlyMapFlattener().flatten({"2024": {"1": None, "2": "n/a"}})
        assert flat == {"2024-01": 0.0, "2024-02": 0.0}

    def test_bad_keys_are_skipped_and_recorded(self):
        flattener = MonthlyMapFlattener()
        flat = flattener.flatten({"2024": {"1": 5, "total": 50}, "notes": "x"})
        assert flat == {"2024-01": 5.0}
        assert flattener.skipped_keys == ["2024-total", "notes"]

    @pytest.mark.parametrize("data", [None, {}, [], "2024-01"])
    def test_empty_or_wrong_type(self, data):
        assert MonthlyMapFlattener().flatten(data) == {}


class TestTimeSeries:
    def test_sorted_by_period(self):
        ts = TimeSeries({"2024-03": 3, "2024-01": 1, "2024-02": 2})
        assert ts.keys == ["2024-01", "2024-02", "2024-03"]
        assert ts.values.tolist() == [1.0, 2.0, 3.0]

    def test_from_export_nested(self):
        ts = TimeSeries.from_export({"2024": {"1": 10, "2": 20}})
        assert ts.to_dict() == {"2024-01": 10.0, "2024-02": 20.0}

    def test_tail_keeps_most_recent(self):
        ts = TimeSeries({f"2024-{m:02d}": m for m in range(1, 13)})
        assert ts.tail(3).keys == ["2024-10", "2024-11", "2024-12"]
        assert len(ts.tail(0)) == 0
        assert len(ts) == 12

    def test_values_are_copies(self):
        ts = TimeSeries({"2024-01": 1})
        values = ts.values
        values[0] = 99
        assert ts.values[0] == 1.0

    def test_empty(self):
        ts = TimeSeries()
        assert ts.is_empty()
        assert len(ts) == 0
        assert ts.values.size == 0


class TestAlign:
    def test_intersection_only(self):
        actual = TimeSeries({"2024-01": 10, "2024-02": 20, "2024-03": 30})
        forecast = TimeSeries({"2024-02": 18, "2024-03": 33, "2024-04": 40})

        a, f = align(actual, forecast)

        assert a.keys == f.keys == ["2024-02", "2024-03"]
        assert a.values.tolist() == [20.0, 30.0]
        assert f.values.tolist() == [18.0, 33.0]

    def test_missing_forecast_periods_are_excluded_not_zero(self):
        actual = TimeSeries({"2024-01": 10, "2024-02": 20})
        forecast = TimeSeries({"2024-02": 25})

        a, f = align(actual, forecast)

        assert len(a) == len(f) == 1
        assert not math.isclose(f.values.sum(), 0)

    def test_inputs_not_modified(self):
        actual = TimeSeries({"2024-01": 10, "2024-02": 20})
        forecast = TimeSeries({"2024-02": 25})
        align(actual, forecast)
        assert len(actual) == 2
        assert len(forecast) == 1
