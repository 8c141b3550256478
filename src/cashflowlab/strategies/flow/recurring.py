"""
Placement of cash events on the simulation calendar.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

import numpy as np

from cashflowlab.core.context import SimulationContext
from cashflowlab.core.events import CashEvent
from cashflowlab.core.kinds import DayMode, Frequency
from cashflowlab.core.utils import add_days, is_last_day_of_month, months_between

logger = logging.getLogger(__name__)


@dataclass
class MaterializedFlows:
    """
    Events bucketed by entity and day index, plus the static daily net flow.

    Attributes:
        daily: ``entity_id -> [events of day 0, events of day 1, ...]``
        static_net: ``entity_id -> np.ndarray`` of signed, VAT-grossed daily
            totals; the capital-call lookahead scans these arrays
    """

    daily: dict[str, list[list[CashEvent]]]
    static_net: dict[str, np.ndarray]

    def events_on(self, entity_id: str, day: int) -> list[CashEvent]:
        buckets = self.daily.get(entity_id)
        if buckets is None or not 0 <= day < len(buckets):
            return []
        return buckets[day]


def day_matches(event: CashEvent, on: date) -> bool:
    """Whether the day-selection rule of a recurring event selects ``on``."""
    if event.day_mode is DayMode.LAST_DAY:
        return is_last_day_of_month(on)
    if event.day_mode is DayMode.SPECIFIC:
        return on.day == (event.day_in_month or 1)
    return on.day == event.date.day


def frequency_matches(event: CashEvent, on: date) -> bool:
    """Whether ``on`` lies a whole number of periods after the base month."""
    freq = event.frequency or Frequency.MONTHLY
    if freq is Frequency.ONE_TIME:
        return False
    return months_between(event.date, on) % freq.months == 0


def occurs_on(event: CashEvent, on: date) -> bool:
    """Whether a recurring event produces an instance on ``on``."""
    return on >= event.date and day_matches(event, on) and frequency_matches(event, on)


def materialize(
    events: Iterable[CashEvent], entity_ids: Iterable[str], ctx: SimulationContext
) -> MaterializedFlows:
    """
    Place events on day indices ``0 .. horizon_days - 1``.

    A one-off event lands on ``(event.date - ctx.start).days`` when that index
    is inside the horizon and is silently dropped otherwise. A recurring
    event lands on every simulated day on or after its base date selected by
    both its day rule and its frequency stride.

    Events of entities not listed in ``entity_ids`` are ignored.

    Args:
        events: Active cash events (entered transactions and expander output)
        entity_ids: Entities taking part in the run
        ctx: Simulation context (start, horizon, VAT rate)

    Returns:
        MaterializedFlows with per-day buckets and the static daily net flow
    """
    horizon = ctx.horizon_days
    vat_rate = ctx.vat_rate
    daily: dict[str, list[list[CashEvent]]] = {}
    static_net: dict[str, np.ndarray] = {}
    for entity_id in entity_ids:
        daily[entity_id] = [[] for _ in range(horizon)]
        static_net[entity_id] = np.zeros(horizon, dtype=float)

    placed = 0
    for event in events:
        buckets = daily.get(event.entity_id)
        if buckets is None:
            continue
        net = static_net[event.entity_id]
        signed = event.signed_amount(vat_rate)

        if not event.is_recurring:
            idx = (event.date - ctx.start).days
            if 0 <= idx < horizon:
                buckets[idx].append(event)
                net[idx] += signed
                placed += 1
            continue

        first = max((event.date - ctx.start).days, 0)
        for idx in range(first, horizon):
            if occurs_on(event, add_days(ctx.start, idx)):
                buckets[idx].append(event)
                net[idx] += signed
                placed += 1

    logger.debug("Materialized %d event instances over %d days", placed, horizon)
    return MaterializedFlows(daily=daily, static_net=static_net)
