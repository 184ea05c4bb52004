"""Reporting-period resolution: report type + period fields -> inclusive datetime bounds."""

from __future__ import annotations

import calendar
from datetime import datetime

from esg_api.core.errors import InvalidPeriodSpec
from esg_api.models.base import to_naive_utc
from esg_api.models.enums import ReportType


def _month_span(year: int, first_month: int, months: int) -> tuple[datetime, datetime]:
    last_month = first_month + months - 1
    last_day = calendar.monthrange(year, last_month)[1]
    return (
        datetime(year, first_month, 1, 0, 0, 0),
        datetime(year, last_month, last_day, 23, 59, 59),
    )


def resolve_period(
    report_type: ReportType | str,
    year: int,
    quarter: int | None = None,
    month: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> tuple[datetime, datetime]:
    """Return the closed ``(start, end)`` interval a report covers.

    annual     Jan 1 00:00:00 .. Dec 31 23:59:59 of ``year``
    quarterly  first day of the quarter .. last day of its third month, 23:59:59
    monthly    first day of ``month`` .. its last day, 23:59:59
    custom     ``start`` and ``end`` passed through (naive UTC), start <= end

    Raises InvalidPeriodSpec for an unknown type or missing/out-of-range fields.
    """
    try:
        kind = ReportType(report_type)
    except ValueError as exc:
        raise InvalidPeriodSpec(f"Invalid report type: {report_type!r}") from exc

    if kind is ReportType.CUSTOM:
        if start is None or end is None:
            raise InvalidPeriodSpec("Start date and end date are required for custom reports")
        start, end = to_naive_utc(start), to_naive_utc(end)
        if end < start:
            raise InvalidPeriodSpec("End date must not be before start date")
        return start, end

    if year is None or not 1 <= year <= 9999:
        raise InvalidPeriodSpec(f"Invalid year: {year!r}")

    if kind is ReportType.ANNUAL:
        return _month_span(year, 1, 12)

    if kind is ReportType.QUARTERLY:
        if quarter is None or not 1 <= quarter <= 4:
            raise InvalidPeriodSpec("Quarter (1-4) is required for quarterly reports")
        return _month_span(year, (quarter - 1) * 3 + 1, 3)

    if month is None or not 1 <= month <= 12:
        raise InvalidPeriodSpec("Month (1-12) is required for monthly reports")
    return _month_span(year, month, 1)
