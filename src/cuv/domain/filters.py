"""Date-range filtering and small record-level derivations."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cuv.models.records import UsageRecord

logger = logging.getLogger(__name__)


class DateRange(StrEnum):
    """Named reporting windows ending on the report's last day."""

    ALL = "all"
    LAST_7_DAYS = "last7days"
    LAST_14_DAYS = "last14days"
    LAST_28_DAYS = "last28days"


_RANGE_DAYS: dict[DateRange, int] = {
    DateRange.LAST_7_DAYS: 7,
    DateRange.LAST_14_DAYS: 14,
    DateRange.LAST_28_DAYS: 28,
}


def range_start(date_range: DateRange, report_end_day: str) -> date | None:
    """Inclusive start date of a window, or None for ``all`` or an unparsable end day."""
    days = _RANGE_DAYS.get(date_range)
    if days is None:
        return None
    try:
        return date.fromisoformat(report_end_day) - timedelta(days=days - 1)
    except (ValueError, OverflowError):
        logger.warning("Cannot apply %s to report end day %r", date_range, report_end_day)
        return None


def filter_records_by_date_range(
    records: list[UsageRecord],
    date_range: DateRange,
    report_end_day: str,
) -> list[UsageRecord]:
    """Keep records whose day falls in ``[end - (N-1) days, end]``.

    ``all``, empty input and an unparsable end day return the very same list
    object.
    """
    if date_range == DateRange.ALL or not records or not report_end_day:
        return records
    start = range_start(date_range, report_end_day)
    if start is None:
        return records
    # ISO dates compare correctly as strings.
    start_day = start.isoformat()
    return [record for record in records if start_day <= record.day <= report_end_day]


def get_filtered_date_range(
    date_range: DateRange,
    report_start_day: str,
    report_end_day: str,
) -> tuple[str, str]:
    """Return the (start_day, end_day) pair a window covers."""
    start = range_start(date_range, report_end_day) if report_end_day else None
    if start is None:
        return report_start_day, report_end_day
    return start.isoformat(), report_end_day


def derive_enterprise_name(record: UsageRecord) -> str | None:
    """Best-effort display name: login suffix after the last underscore, else enterprise id."""
    if "_" in record.user_login:
        suffix = record.user_login.rsplit("_", 1)[-1].strip()
        if suffix:
            return suffix
    enterprise_id = record.enterprise_id.strip()
    return enterprise_id or None
