"""
Prime-rate resolution for CashFlowLab.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .records import GlobalSettings


def prime_rate_at(on: date | datetime, settings: GlobalSettings) -> float:
    """
    Resolve the prime rate in force on a given day.

    Settings may carry one scheduled rate change: a previous rate and the
    cutover date. Days strictly before the cutover use the previous rate;
    the cutover day and every later day use the current rate. Without a
    previous rate or without a cutover date the current rate always applies.

    Comparison is at day granularity; a ``datetime`` is truncated to its date.

    Args:
        on: Day to resolve
        settings: Global settings carrying the rate schedule

    Returns:
        Prime rate in percent (e.g. ``6.0``)
    """
    if settings.prev_prime_rate is None or settings.prime_rate_change_date is None:
        return settings.prime_rate
    day = on.date() if isinstance(on, datetime) else on
    if day < settings.prime_rate_change_date:
        return settings.prev_prime_rate
    return settings.prime_rate
