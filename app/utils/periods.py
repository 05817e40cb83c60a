"""
Reporting windows.

Symbolic periods are resolved against the restaurant's local clock. Every
window is a closed interval [start, end] of timezone-aware datetimes.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from app.exceptions import ValidationError
from app.utils.money import to_decimal, round2
from app.utils.timezone import get_local_now, local_midnight, local_end_of_day, to_local_tz

PERIODS = ("today", "week", "month", "quarter", "year")
DEFAULT_PERIOD = "week"
GROUP_BY_OPTIONS = ("day", "week", "month")


@dataclass
class ReportWindow:
    period: str
    start: datetime
    end: datetime

    def as_dict(self) -> dict:
        return {
            "type": self.period,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
        }


def _week_start(day: date) -> date:
    """Sunday on or before the given day"""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def parse_period(period: Optional[str], now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Resolve a period name to (start, end); unknown names fall back to week"""
    now = now or get_local_now()
    today = now.date()

    if period == "today":
        return local_midnight(today), local_end_of_day(today)
    if period == "month":
        return local_midnight(today.replace(day=1)), now
    if period == "quarter":
        quarter_month = ((today.month - 1) // 3) * 3 + 1
        return local_midnight(date(today.year, quarter_month, 1)), now
    if period == "year":
        return local_midnight(date(today.year, 1, 1)), now

    return local_midnight(_week_start(today)), now


def get_comparison_period(start: datetime, end: datetime) -> Tuple[datetime, datetime]:
    """The immediately preceding window of the same length"""
    duration = end - start
    return start - duration, start


def resolve_window(
    period: Optional[str],
    start: Optional[date] = None,
    end: Optional[date] = None,
    default: str = DEFAULT_PERIOD,
    now: Optional[datetime] = None,
) -> ReportWindow:
    """
    Explicit start/end dates win over the symbolic period. Both dates are
    inclusive calendar days; a range with only one of them is ignored.
    """
    period = period or default

    if start is not None and end is not None:
        if start > end:
            raise ValidationError("start must be on or before end")
        return ReportWindow(period="custom", start=local_midnight(start), end=local_end_of_day(end))

    if period not in PERIODS:
        period = default
    window_start, window_end = parse_period(period, now=now)
    return ReportWindow(period=period, start=window_start, end=window_end)


def bucket_key(logged_at: datetime, group_by: str) -> str:
    local = to_local_tz(logged_at)
    day = local.date()

    if group_by == "day":
        return day.isoformat()
    if group_by == "week":
        return _week_start(day).isoformat()
    if group_by == "month":
        return f"{day.year}-{day.month:02d}"

    raise ValidationError(f"groupBy must be one of: {', '.join(GROUP_BY_OPTIONS)}")


def describe_change(current, previous) -> dict:
    """Signed change between two money totals"""
    current = to_decimal(current)
    previous = to_decimal(previous)
    change = current - previous

    percent = Decimal("0")
    if previous > 0:
        percent = (change / previous * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)

    if change > 0:
        direction = "increased"
    elif change < 0:
        direction = "decreased"
    else:
        direction = "unchanged"

    return {
        "value": float(round2(change)),
        "percent": float(percent),
        "direction": direction,
    }
