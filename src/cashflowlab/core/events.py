"""
Dated cash events consumed by the daily simulation loop.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date

from .kinds import Cat, DayMode, Frequency, TxKind
from .records import Transaction


@dataclass(frozen=True)
class CashEvent:
    """
    A single cash movement before it is placed on the simulation calendar.

    Expanders (loans, leases, milestones) produce one-off events; entered
    transactions become events unchanged, keeping their recurrence
    parameters for the materializer.

    Attributes:
        source_id: Identifier of the record the event was derived from
        entity_id: Entity whose cash moves
        date: Event date (base date for recurring events)
        amount: Positive net amount; the sign is derived by ``signed_amount``
        kind: Transaction kind driving sign, revenue and ledger kind
        category: Category from the fixed vocabulary
        description: Ledger description
        account_id: Account shown in drill-downs
        includes_vat: Whether VAT is added on top of ``amount``
        is_recurring: Whether the event repeats (see ``frequency``/``day_mode``)
        is_intercompany: Whether a mirrored leg is booked on ``target_entity_id``
    """

    source_id: str
    entity_id: str
    date: date
    amount: float
    kind: TxKind
    category: str
    description: str
    account_id: str | None = None
    includes_vat: bool = False
    is_recurring: bool = False
    frequency: Frequency | None = None
    day_mode: DayMode = DayMode.SAME_AS_START
    day_in_month: int | None = None
    is_intercompany: bool = False
    target_entity_id: str | None = None
    target_account_id: str | None = None

    @property
    def is_inflow(self) -> bool:
        """Loan receipts and income are inflows; everything else is an outflow."""
        return self.category == Cat.LOAN_RECEIPT or self.kind is TxKind.INCOME

    def gross_amount(self, vat_rate: float) -> float:
        """Amount including VAT when the event carries it (``vat_rate`` as fraction)."""
        if self.includes_vat:
            return self.amount * (1 + vat_rate)
        return self.amount

    def signed_amount(self, vat_rate: float) -> float:
        gross = abs(self.gross_amount(vat_rate))
        return gross if self.is_inflow else -gross

    def with_changes(self, **changes) -> CashEvent:
        return replace(self, **changes)

    @classmethod
    def from_transaction(cls, tx: Transaction) -> CashEvent:
        return cls(
            source_id=tx.id,
            entity_id=tx.entity_id,
            date=tx.date,
            amount=tx.amount,
            kind=tx.kind,
            category=tx.category,
            description=tx.description,
            account_id=tx.account_id,
            includes_vat=tx.includes_vat,
            is_recurring=tx.is_recurring,
            frequency=tx.frequency,
            day_mode=tx.day_mode,
            day_in_month=tx.day_in_month,
            is_intercompany=tx.is_intercompany,
            target_entity_id=tx.target_entity_id,
            target_account_id=tx.target_account_id,
        )
