"""
Forecast a small property group and print its headline figures.

Run from the repository root:

    python examples/group_forecast_example.py
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

from cashflowlab import (
    budget_analysis,
    cashflow_matrix,
    derive_alerts,
    guarantee_cost,
    load_snapshot,
    simulate,
    summary_kpis,
    validate_snapshot,
    weight_map,
)
from cashflowlab.core.kinds import LedgerClass

SNAPSHOT = Path(__file__).with_name("group_snapshot.yaml")
TODAY = date(2026, 1, 1)


def pretty(data: dict) -> str:
    """Return JSON formatted output."""
    return json.dumps(data, indent=2, sort_keys=True, default=str)


def main() -> None:
    snapshot = load_snapshot(SNAPSHOT)
    print(validate_snapshot(snapshot))

    results = simulate(snapshot, horizon_days=365, today=TODAY)

    print("\n=== Group KPIs ===")
    group = weight_map(snapshot.entities)
    print(pretty(summary_kpis(results, snapshot, group)))

    print("\n=== OpCo KPIs (stand-alone) ===")
    opco = weight_map(snapshot.entities, "opco")
    print(pretty(summary_kpis(results, snapshot, opco)))

    print("\n=== Quarterly cash flow (group) ===")
    monthly = cashflow_matrix(results, snapshot, group, freq="M")
    flows = monthly[[c.value for c in LedgerClass]]
    quarterly = flows.groupby(monthly.index.asfreq("Q")).sum()
    print(quarterly.round(0).to_string())

    print("\n=== Alerts ===")
    for alert in derive_alerts(results, snapshot, group):
        print(f"{alert.date}  [{alert.severity}] {alert.message}")

    print("\n=== Budgets ===")
    print(budget_analysis(results, snapshot.budgets).to_string())

    print("\n=== Guarantees ===")
    for guarantee in snapshot.guarantees:
        print(guarantee.beneficiary, pretty(guarantee_cost(guarantee)))


if __name__ == "__main__":
    main()
