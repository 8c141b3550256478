"""
Results and output structures for CashFlowLab.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Any

import numpy as np
import pandas as pd

from .kinds import LedgerClass, LedgerKind, classify

LEDGER_COLUMNS = [
    "date",
    "entity_id",
    "description",
    "amount",
    "kind",
    "category",
    "account_id",
    "includes_vat",
    "ledger_class",
    "section",
]


@dataclass(frozen=True)
class LedgerRow:
    """
    One synthetic ledger entry produced by the simulation loop.

    The reporting bucket (``ledger_class``) is assigned once when the row is
    created; consumers group on it instead of re-reading categories.

    Attributes:
        description: Human-readable description
        amount: Signed amount (positive = cash in)
        entity_id: Entity whose cash moved
        kind: Ledger kind (operational, financial, tax, intercompany)
        category: Category string from the fixed vocabulary
        account_id: Source account, when known
        includes_vat: True for rows created from VAT-inclusive events
        ledger_class: Reporting bucket derived from category, kind and sign
    """

    description: str
    amount: float
    entity_id: str
    kind: LedgerKind
    category: str
    account_id: str | None = None
    includes_vat: bool = False
    ledger_class: LedgerClass | None = None

    def __post_init__(self):
        if self.ledger_class is None:
            object.__setattr__(
                self, "ledger_class", classify(self.category, self.kind, self.amount)
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "amount": self.amount,
            "entity_id": self.entity_id,
            "kind": self.kind.value,
            "category": self.category,
            "account_id": self.account_id,
            "includes_vat": self.includes_vat,
            "ledger_class": self.ledger_class.value,
        }


@dataclass(frozen=True)
class DailyResult:
    """
    Closing state of one simulated day.

    Balance and utilization maps are read-only views; a result never changes
    after the engine hands it out.
    """

    date: date
    balances: Mapping[str, float]
    credit_util: Mapping[str, float]
    aggregate_cash: float
    rows: tuple[LedgerRow, ...] = ()
    alerts: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "balances", MappingProxyType(dict(self.balances)))
        object.__setattr__(
            self, "credit_util", MappingProxyType(dict(self.credit_util))
        )
        object.__setattr__(self, "rows", tuple(self.rows))
        object.__setattr__(self, "alerts", tuple(self.alerts))

    def net_flow(self, entity_id: str) -> float:
        return sum(r.amount for r in self.rows if r.entity_id == entity_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "entity_balances": dict(self.balances),
            "entity_credit_util": dict(self.credit_util),
            "aggregated_cash": self.aggregate_cash,
            "transactions": [r.to_dict() for r in self.rows],
            "alerts": list(self.alerts),
        }


@dataclass(frozen=True)
class SimulationResults(Sequence):
    """
    Ordered daily results of one simulation run.

    Behaves as a read-only sequence of ``DailyResult`` (index 0 is day zero)
    and offers pandas views for analysis and export.

    **Example Usage:**
        ```python
        results = simulate(snapshot, horizon_days=365, today=date(2026, 1, 1))
        results[0].balances["holding"]
        results.balances_frame().resample("ME").last()
        results.ledger_frame().groupby("ledger_class")["amount"].sum()
        ```
    """

    days: tuple[DailyResult, ...]
    entity_ids: tuple[str, ...] = ()
    entity_names: Mapping[str, str] = field(default_factory=dict)

    def __getitem__(self, index):
        return self.days[index]

    def __len__(self) -> int:
        return len(self.days)

    def __iter__(self) -> Iterator[DailyResult]:
        return iter(self.days)

    @property
    def start(self) -> date | None:
        return self.days[0].date if self.days else None

    @property
    def dates(self) -> list[date]:
        return [d.date for d in self.days]

    def index_of(self, on: date) -> int | None:
        """Day index of a calendar date, or None when outside the run."""
        if not self.days:
            return None
        idx = (on - self.days[0].date).days
        return idx if 0 <= idx < len(self.days) else None

    def _frame(self, attr: str) -> pd.DataFrame:
        index = pd.DatetimeIndex([pd.Timestamp(d) for d in self.dates], name="date")
        data = np.array(
            [[getattr(day, attr).get(e, 0.0) for e in self.entity_ids] for day in self],
            dtype=float,
        ).reshape(len(self.days), len(self.entity_ids))
        return pd.DataFrame(data, index=index, columns=list(self.entity_ids))

    def balances_frame(self) -> pd.DataFrame:
        """Closing cash per entity (rows = days, columns = entity ids)."""
        return self._frame("balances")

    def credit_frame(self) -> pd.DataFrame:
        """Closing credit utilization per entity."""
        return self._frame("credit_util")

    def aggregate_series(self) -> pd.Series:
        index = pd.DatetimeIndex([pd.Timestamp(d) for d in self.dates], name="date")
        return pd.Series(
            [d.aggregate_cash for d in self], index=index, name="aggregate_cash"
        )

    def ledger_frame(self) -> pd.DataFrame:
        """Every ledger row of the run, one line per row, in booking order."""
        records = []
        for day in self:
            ts = pd.Timestamp(day.date)
            for row in day.rows:
                records.append(
                    {
                        "date": ts,
                        "entity_id": row.entity_id,
                        "description": row.description,
                        "amount": row.amount,
                        "kind": row.kind.value,
                        "category": row.category,
                        "account_id": row.account_id,
                        "includes_vat": row.includes_vat,
                        "ledger_class": row.ledger_class.value,
                        "section": row.ledger_class.section,
                    }
                )
        return pd.DataFrame.from_records(records, columns=LEDGER_COLUMNS)

    def alerts(self) -> list[tuple[date, str]]:
        return [(day.date, msg) for day in self for msg in day.alerts]

    def to_records(self) -> list[dict[str, Any]]:
        """JSON-ready list of daily results."""
        return [day.to_dict() for day in self]

    def export_ledger_csv(self, path: str | Path) -> Path:
        path = Path(path)
        self.ledger_frame().to_csv(path, index=False, date_format="%Y-%m-%d")
        return path

    def export_results_json(self, path: str | Path, *, indent: int = 2) -> Path:
        path = Path(path)
        path.write_text(
            json.dumps(self.to_records(), indent=indent, ensure_ascii=False),
            encoding="utf-8",
        )
        return path
