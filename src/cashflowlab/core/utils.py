"""
Date and frequency utilities for CashFlowLab.
"""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

from .errors import ConfigError
from .kinds import Frequency


def coerce_date(value, field_name: str = "date") -> date:
    """
    Turn a date-like value into a ``datetime.date``.

    Accepts ``date``, ``datetime`` (time of day dropped) and ISO strings,
    including full timestamps such as ``"2026-03-01T00:00:00.000Z"``.

    Raises:
        ConfigError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()[:10]
        try:
            return date.fromisoformat(text)
        except ValueError as exc:
            raise ConfigError(f"Invalid {field_name}: {value!r}") from exc
    raise ConfigError(f"Invalid {field_name}: {value!r}")


def coerce_optional_date(value, field_name: str = "date") -> date | None:
    if value is None or value == "":
        return None
    return coerce_date(value, field_name)


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def add_months(d: date, months: int) -> date:
    """
    Shift a date by whole calendar months.

    The day of month is clamped to the length of the target month, so
    ``add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)``.
    """
    return d + relativedelta(months=months)


def last_day_of_month(d: date) -> date:
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def is_last_day_of_month(d: date) -> bool:
    return (d + timedelta(days=1)).day == 1


def with_day(d: date, day: int) -> date:
    """Set the day of month, clamped into ``1..days_in_month``."""
    days_in_month = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=min(max(int(day), 1), days_in_month))


def months_between(start: date, end: date) -> int:
    """Calendar-month distance ignoring the day of month (may be negative)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def date_range(start: date, days: int) -> list[date]:
    """Consecutive calendar days ``start .. start + days - 1``."""
    return [start + timedelta(days=i) for i in range(max(days, 0))]


def period_dates(start: date, end: date, freq: Frequency) -> list[date]:
    """
    Enumerate the payment dates of a periodic instrument.

    For ``OneTime`` the only date is ``end``. Otherwise the series steps from
    ``start`` by the frequency's calendar step, collects every date strictly
    before ``end``, and always closes with ``end`` itself, so the final
    period may be a short stub.

    Each step is taken from ``start`` (``start + k * step``), which keeps
    month-end anchors from drifting after a short month.

    **Args:**
        start: First day of the instrument (not itself a payment date)
        end: Maturity; always the last element
        freq: Payment frequency

    **Returns:**
        Ascending list of payment dates

    **Example:**
        ```python
        period_dates(date(2026, 1, 15), date(2026, 4, 1), Frequency.MONTHLY)
        # [date(2026, 2, 15), date(2026, 3, 15), date(2026, 4, 1)]
        ```
    """
    freq = Frequency.parse(freq)
    step = freq.months
    if step == 0:
        return [end]

    dates: list[date] = []
    k = 1
    current = add_months(start, step)
    while current < end:
        dates.append(current)
        k += 1
        current = add_months(start, step * k)
    dates.append(end)
    return dates


def finite_or_zero(value: float) -> float:
    """Return ``value`` when it is a finite number, else ``0.0``."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def non_negative(value: float) -> float:
    """Clamp a derived amount to a finite value >= 0."""
    value = finite_or_zero(value)
    return value if value > 0 else 0.0
