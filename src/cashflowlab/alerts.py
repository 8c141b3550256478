"""
Alert derivation from simulation results and snapshot records.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from .core.kinds import LedgerClass
from .core.records import Snapshot
from .core.results import SimulationResults

NEGATIVE_BALANCE_DAYS = 7
INJECTION_DAYS = 90
CREDIT_DRAW_DAYS = 7
TASK_DAYS = 7
MATURITY_DAYS = 30


@dataclass(frozen=True)
class Alert:
    """
    One dashboard alert.

    Attributes:
        date: Day the alert refers to
        message: Human-readable text (unique within one derivation)
        severity: ``critical``, ``info``, ``asset`` or ``task``
        category: ``flow``, ``assets``, ``tasks``, ``loans``, ``guarantees``,
            ``leases`` or ``all``
    """

    date: date
    message: str
    severity: str
    category: str

    def to_dict(self) -> dict[str, str]:
        return {
            "date": self.date.isoformat(),
            "message": self.message,
            "severity": self.severity,
            "category": self.category,
        }


class _Collector:
    def __init__(self):
        self.alerts: list[Alert] = []
        self.seen: set[str] = set()

    def add(self, on: date, message: str, severity: str, category: str) -> None:
        if message in self.seen:
            return
        self.seen.add(message)
        self.alerts.append(Alert(on, message, severity, category))


def derive_alerts(
    results: SimulationResults,
    snapshot: Snapshot,
    weights: dict[str, float],
    today: date | None = None,
) -> list[Alert]:
    """
    Collect the alerts of a consolidated selection.

    Only entities with a positive weight are considered. Windows are
    measured from ``today`` (default: the first simulated day):

    - negative closing balance within 7 days (one alert per account)
    - capital injections within 90 days
    - credit-line draws within 7 days
    - asset purchases and sales anywhere in the horizon
    - alerts raised by the engine (failed capital calls)
    - open tasks due within 7 days
    - loans maturing, guarantees expiring and leases ending without a
      renewal within 30 days

    Returns:
        Alerts sorted by date, deduplicated by message
    """
    if today is None:
        today = results.start or date.today()
    week = today + timedelta(days=NEGATIVE_BALANCE_DAYS)
    quarter = today + timedelta(days=INJECTION_DAYS)
    month = today + timedelta(days=MATURITY_DAYS)

    active = [eid for eid, w in weights.items() if w > 0]
    active_set = set(active)
    names = {e.id: e.name for e in snapshot.entities}
    out = _Collector()

    for day in results:
        for entity_id in active:
            name = names.get(entity_id, "")

            if day.date <= week and day.balances.get(entity_id, 0.0) < 0:
                accounts = snapshot.accounts_of(entity_id)
                labels = [a.nickname or a.bank_name or a.id for a in accounts] or [name]
                for label in labels:
                    out.add(
                        day.date,
                        f"Projected negative balance: {label} ({name})",
                        "critical",
                        "flow",
                    )

            for row in day.rows:
                if row.entity_id != entity_id:
                    continue
                cls = row.ledger_class
                if cls is LedgerClass.CAPITAL and row.amount > 0 and day.date <= quarter:
                    out.add(
                        day.date,
                        f"Expected capital injection: {name} ({row.amount:,.0f})",
                        "info",
                        "flow",
                    )
                elif (
                    cls is LedgerClass.CREDIT_BALANCING
                    and row.amount > 0
                    and day.date <= week
                ):
                    out.add(
                        day.date,
                        f"Credit line draw required: {row.amount:,.0f} at {name}",
                        "info",
                        "flow",
                    )
                elif cls in (LedgerClass.ASSET_PURCHASE, LedgerClass.ASSET_SALE):
                    label = "Purchase" if cls is LedgerClass.ASSET_PURCHASE else "Sale"
                    out.add(
                        day.date,
                        f"Asset deal: {label} - {row.description} ({name})",
                        "asset",
                        "assets",
                    )

        for message in day.alerts:
            failed = "failed" in message.lower()
            out.add(day.date, message, "critical" if failed else "info", "flow")

    for task in snapshot.tasks:
        if task.is_completed or task.entity_id not in active_set:
            continue
        if today <= task.due_date <= week:
            out.add(task.due_date, f"Task due this week: {task.title}", "task", "tasks")

    for loan in snapshot.loans:
        if loan.entity_id in active_set and today <= loan.end_date <= month:
            out.add(
                loan.end_date,
                f"Loan maturing soon: {loan.name} ({loan.principal:,.0f})",
                "info",
                "loans",
            )

    for guarantee in snapshot.guarantees:
        if guarantee.entity_id in active_set and today <= guarantee.expiry_date <= month:
            out.add(
                guarantee.expiry_date,
                f"Guarantee expiring: {guarantee.beneficiary} ({guarantee.amount:,.0f})",
                "info",
                "guarantees",
            )

    for lease in snapshot.leases:
        if lease.entity_id not in active_set or not today <= lease.end_date <= month:
            continue
        renewed = any(
            other.id != lease.id
            and other.tenant_name == lease.tenant_name
            and other.property == lease.property
            and other.start_date > lease.end_date
            for other in snapshot.leases
        )
        if not renewed:
            out.add(
                lease.end_date,
                f"Lease ending without renewal: {lease.tenant_name} ({lease.property})",
                "critical",
                "leases",
            )

    return sorted(out.alerts, key=lambda a: a.date)
