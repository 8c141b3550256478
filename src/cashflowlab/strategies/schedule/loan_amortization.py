"""
Term loan with independent interest and principal schedules.
"""

from __future__ import annotations

import logging

from cashflowlab.core.context import SimulationContext
from cashflowlab.core.events import CashEvent
from cashflowlab.core.interfaces import IExpander
from cashflowlab.core.kinds import Cat, TxKind
from cashflowlab.core.records import Loan
from cashflowlab.core.utils import days_between, non_negative, period_dates

logger = logging.getLogger(__name__)


class ScheduleLoanAmortization(IExpander):
    """
    Loan amortization expander (kind: 's.loan.amortizing').

    Turns a loan contract into the cash events it causes inside the
    simulation window:

    **Receipt:** the full principal on ``start_date`` (only when the start
    lies inside the window).

    **Interest:** simple interest, actual/365, on the outstanding principal
    for each elapsed period. Periods are delimited by the union of the
    interest and principal date series, and the rate is the prime rate
    resolved on the payment date plus the loan spread.

    **Principal:** ``principal / n`` per principal date, except the last one
    at ``end_date`` which repays whatever remains (balloon or rounding).
    With ``principal_frequency=OneTime`` the whole principal is repaid at
    maturity.

    Payments before the window still reduce the outstanding principal, so a
    loan that started in the past is picked up at its true balance.

    **Example:**
        ```python
        loan = Loan(
            id="l1", entity_id="opco", name="Bridge", principal=100_000,
            spread=1.0, start_date=date(2026, 1, 1), end_date=date(2027, 1, 1),
            interest_frequency=Frequency.MONTHLY,
            principal_frequency=Frequency.ONE_TIME,
        )
        events = ScheduleLoanAmortization().expand(loan, ctx)
        # receipt 100,000 / 12 monthly interest charges / repayment 100,000
        ```
    """

    def accepts(self, record: Loan) -> bool:
        return isinstance(record, Loan) and record.is_active

    def expand(self, loan: Loan, ctx: SimulationContext) -> list[CashEvent]:
        events: list[CashEvent] = []
        if not self.accepts(loan):
            return events

        if ctx.in_window(loan.start_date):
            events.append(
                self._event(loan, loan.start_date, loan.principal, Cat.LOAN_RECEIPT,
                            f"Loan receipt: {loan.name}", TxKind.FINANCIAL)
            )

        principal_dates = period_dates(
            loan.start_date, loan.end_date, loan.principal_frequency
        )
        interest_dates = period_dates(
            loan.start_date, loan.end_date, loan.interest_frequency
        )
        principal_set = set(principal_dates)
        payment_dates = sorted(principal_set | set(interest_dates))

        remaining = loan.principal
        last_payment = loan.start_date
        slice_amount = loan.principal / (len(principal_dates) or 1)

        for pay_date in payment_dates:
            elapsed = days_between(last_payment, pay_date)
            annual_rate = (ctx.prime_at(pay_date) + loan.spread) / 100.0
            interest = non_negative(remaining * annual_rate * (elapsed / 365.0))
            relevant = ctx.in_window(pay_date)

            if relevant and interest > ctx.config.interest_threshold:
                events.append(
                    self._event(loan, pay_date, interest, Cat.BANKS,
                                f"Loan interest: {loan.name}")
                )

            if pay_date in principal_set:
                is_last = pay_date == loan.end_date
                repay = remaining if is_last else slice_amount
                if relevant:
                    suffix = " (final)" if is_last else ""
                    events.append(
                        self._event(loan, pay_date, non_negative(repay),
                                    Cat.LOAN_REPAYMENT,
                                    f"Principal repayment: {loan.name}{suffix}")
                    )
                remaining -= repay

            last_payment = pay_date

        logger.debug("Loan %s expanded into %d events", loan.id, len(events))
        return events

    @staticmethod
    def _event(loan, on, amount, category, description, kind=TxKind.EXPENSE):
        return CashEvent(
            source_id=loan.id,
            entity_id=loan.entity_id,
            date=on,
            amount=amount,
            kind=kind,
            category=category,
            description=description,
            account_id=loan.account_id,
        )
