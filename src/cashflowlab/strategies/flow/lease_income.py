"""
Lease income with pro-rata first period and CPI linkage.
"""

from __future__ import annotations

import logging
from datetime import date

from cashflowlab.core.context import SimulationContext
from cashflowlab.core.events import CashEvent
from cashflowlab.core.interfaces import IExpander
from cashflowlab.core.kinds import Cat, Frequency, TxKind
from cashflowlab.core.records import Lease
from cashflowlab.core.utils import add_months, days_between, non_negative, with_day

logger = logging.getLogger(__name__)


def first_standard_date(start: date, freq: Frequency) -> date:
    """
    First calendar-aligned billing date on or after ``start``.

    Billing periods are anchored on January 1st of the start year and step
    by the frequency (Quarterly leases bill on Jan/Apr/Jul/Oct 1st, ...).
    """
    anchor = date(start.year, 1, 1)
    step = freq.months
    if step == 0:
        return anchor if anchor >= start else start
    k = 0
    current = anchor
    while current < start:
        k += 1
        current = add_months(anchor, step * k)
    return current


class FlowLeaseIncome(IExpander):
    """
    Lease income expander (kind: 'f.lease.income').

    A lease produces one income event per billing period:

    1. The net amount is CPI-linked as ``net × cpi / linkage_base`` when a
       positive linkage base is set.
    2. When the lease starts between billing boundaries, a pro-rata event
       for the covered part of the stub period is dated on the lease start.
    3. From the first boundary on, full-amount events fall on the configured
       payment day (clamped to the month length) every period until the
       lease end or the window end, whichever comes first.

    A ``OneTime`` lease pays its amount once, on its start date.

    **Example:**
        A monthly lease of 10,000 starting on March 15th with payment day 1
        yields ``10,000 × 17/31`` on March 15th, then 10,000 on April 1st,
        May 1st, and so on.

    Every event is booked under the Rent category, so it always classifies
    as rent income. A non-default ``lease_type`` only tags the description.

    The stub is always pro-rated on the start date, even when the payment
    day falls after it: a lease starting on March 15th with payment day 20
    gets ``17/31`` of a month on March 15th and full rent from April 20th,
    rather than a full month on March 20th.
    """

    def accepts(self, record: Lease) -> bool:
        return isinstance(record, Lease)

    def expand(self, lease: Lease, ctx: SimulationContext) -> list[CashEvent]:
        events: list[CashEvent] = []
        if not self.accepts(lease):
            return events
        if lease.end_date < ctx.start or lease.start_date > ctx.end:
            return events

        amount = non_negative(lease.net_amount * ctx.linkage_factor(lease.linkage_index_base))
        freq = lease.frequency
        label = f"{lease.tenant_name} ({lease.property})"

        if freq is Frequency.ONE_TIME:
            if ctx.in_window(lease.start_date):
                events.append(self._event(lease, lease.start_date, amount, f"Rent: {label}"))
            return events

        standard = first_standard_date(lease.start_date, freq)
        if standard != lease.start_date:
            period_start = add_months(standard, -freq.months)
            period_days = days_between(period_start, standard)
            active_days = days_between(lease.start_date, standard)
            if period_days > 0 and ctx.in_window(lease.start_date):
                pro_rata = non_negative(amount * active_days / period_days)
                events.append(
                    self._event(lease, lease.start_date, pro_rata, f"Pro-rata rent: {label}")
                )

        # standard dates are always the 1st, so the payment day never precedes them
        first = with_day(standard, lease.payment_day)

        k = 0
        current = first
        while current <= lease.end_date and current <= ctx.end:
            if current >= ctx.start:
                events.append(self._event(lease, current, amount, f"Rent: {label}"))
            k += 1
            current = with_day(add_months(first, freq.months * k), lease.payment_day)

        logger.debug("Lease %s expanded into %d events", lease.id, len(events))
        return events

    @staticmethod
    def _event(lease: Lease, on: date, amount: float, description: str) -> CashEvent:
        if lease.lease_type and lease.lease_type != Cat.RENT:
            description = f"{description} [{lease.lease_type}]"
        return CashEvent(
            source_id=lease.id,
            entity_id=lease.entity_id,
            date=on,
            amount=amount,
            kind=TxKind.INCOME,
            category=Cat.RENT,
            description=description,
            account_id=lease.account_id,
            includes_vat=lease.includes_vat,
        )
