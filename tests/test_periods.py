"""Tests for reporting-period resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from esg_api.core.errors import InvalidPeriodSpec
from esg_api.models.enums import ReportType
from esg_api.modules.reporting.periods import resolve_period


class TestFixedPeriods:
    def test_annual(self):
        assert resolve_period(ReportType.ANNUAL, 2024) == (
            datetime(2024, 1, 1, 0, 0, 0),
            datetime(2024, 12, 31, 23, 59, 59),
        )

    @pytest.mark.parametrize(
        ("quarter", "start", "end"),
        [
            (1, datetime(2024, 1, 1), datetime(2024, 3, 31, 23, 59, 59)),
            (2, datetime(2024, 4, 1), datetime(2024, 6, 30, 23, 59, 59)),
            (3, datetime(2024, 7, 1), datetime(2024, 9, 30, 23, 59, 59)),
            (4, datetime(2024, 10, 1), datetime(2024, 12, 31, 23, 59, 59)),
        ],
    )
    def test_quarters(self, quarter, start, end):
        assert resolve_period("quarterly", 2024, quarter=quarter) == (start, end)

    def test_monthly_leap_february(self):
        assert resolve_period(ReportType.MONTHLY, 2024, month=2) == (
            datetime(2024, 2, 1),
            datetime(2024, 2, 29, 23, 59, 59),
        )

    def test_monthly_non_leap_february(self):
        _, end = resolve_period(ReportType.MONTHLY, 2023, month=2)
        assert end == datetime(2023, 2, 28, 23, 59, 59)

    def test_monthly_december(self):
        _, end = resolve_period(ReportType.MONTHLY, 2024, month=12)
        assert end == datetime(2024, 12, 31, 23, 59, 59)


class TestCustomPeriods:
    def test_passes_bounds_through(self):
        start, end = datetime(2024, 1, 15), datetime(2024, 2, 15, 12, 0)
        assert resolve_period(ReportType.CUSTOM, 2024, start=start, end=end) == (start, end)

    def test_aware_bounds_become_naive_utc(self):
        plus_two = timezone(timedelta(hours=2))
        start, end = resolve_period(
            ReportType.CUSTOM,
            2024,
            start=datetime(2024, 1, 1, 2, 0, tzinfo=plus_two),
            end=datetime(2024, 1, 2, 2, 0, tzinfo=plus_two),
        )
        assert start == datetime(2024, 1, 1, 0, 0)
        assert end == datetime(2024, 1, 2, 0, 0)
        assert start.tzinfo is None

    def test_single_instant_allowed(self):
        moment = datetime(2024, 5, 5, 5, 5, 5)
        assert resolve_period(ReportType.CUSTOM, 2024, start=moment, end=moment) == (moment, moment)

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidPeriodSpec):
            resolve_period(
                ReportType.CUSTOM, 2024, start=datetime(2024, 3, 1), end=datetime(2024, 2, 1)
            )

    @pytest.mark.parametrize("missing", ["start", "end"])
    def test_both_bounds_required(self, missing):
        bounds = {"start": datetime(2024, 1, 1), "end": datetime(2024, 2, 1)}
        bounds[missing] = None
        with pytest.raises(InvalidPeriodSpec):
            resolve_period(ReportType.CUSTOM, 2024, **bounds)


class TestInvalidSpecs:
    def test_unknown_type(self):
        with pytest.raises(InvalidPeriodSpec):
            resolve_period("biennial", 2024)

    @pytest.mark.parametrize("quarter", [None, 0, 5])
    def test_quarter_required_and_bounded(self, quarter):
        with pytest.raises(InvalidPeriodSpec):
            resolve_period(ReportType.QUARTERLY, 2024, quarter=quarter)

    @pytest.mark.parametrize("month", [None, 0, 13])
    def test_month_required_and_bounded(self, month):
        with pytest.raises(InvalidPeriodSpec):
            resolve_period(ReportType.MONTHLY, 2024, month=month)

    def test_year_out_of_range(self):
        with pytest.raises(InvalidPeriodSpec):
            resolve_period(ReportType.ANNUAL, 0)

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            resolve_period(ReportType.QUARTERLY, 2024)
