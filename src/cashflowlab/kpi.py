"""
KPI calculation utilities for cash-flow forecasts.

This module provides standalone functions computing the dashboard headline
figures from simulation results. Figures that span several entities take a
consolidation weight map (see ``cashflowlab.consolidation.weight_map``).
"""

from __future__ import annotations

import math
from datetime import date

import pandas as pd

from .core.kinds import Cat
from .core.records import Budget, Guarantee, Snapshot
from .core.results import SimulationResults


def opening_balance(results: SimulationResults, weights: dict[str, float]) -> float:
    """
    Weighted cash position before any day-zero movement.

    Opening = day-zero closing balance minus day-zero ledger flows, per
    entity, weighted and summed.
    """
    if len(results) == 0:
        return 0.0
    day0 = results[0]
    total = 0.0
    for entity_id, w in weights.items():
        flow = day0.net_flow(entity_id)
        total += (day0.balances.get(entity_id, 0.0) - flow) * w
    return total


def available_credit(snapshot: Snapshot, weights: dict[str, float]) -> float:
    """Weighted unused credit of the accounts as entered (limit minus utilization)."""
    total = 0.0
    for entity_id, w in weights.items():
        unused = sum(
            max(0.0, a.credit_limit - a.current_credit_util)
            for a in snapshot.accounts_of(entity_id)
        )
        total += unused * w
    return total


def uncalled_capital(snapshot: Snapshot, weights: dict[str, float]) -> float:
    total = 0.0
    for entity_id, w in weights.items():
        ent = snapshot.entity(entity_id)
        if ent is not None:
            total += ent.uncalled_capital * w
    return total


def weighted_cash(results: SimulationResults, weights: dict[str, float]) -> pd.Series:
    """Weighted closing cash per day."""
    balances = results.balances_frame()
    w = pd.Series(weights, dtype=float).reindex(balances.columns, fill_value=0.0)
    return balances.mul(w, axis=1).sum(axis=1).rename("weighted_cash")


def first_deficit_date(
    results: SimulationResults, weights: dict[str, float], tol: float = 0.01
) -> date | None:
    """First day whose weighted closing cash is below ``-tol``, or None."""
    cash = weighted_cash(results, weights)
    below = cash[cash < -tol]
    if below.empty:
        return None
    return below.index[0].date()


def summary_kpis(
    results: SimulationResults, snapshot: Snapshot, weights: dict[str, float]
) -> dict[str, float | str | None]:
    """
    Headline figures of a consolidated selection.

    Returns:
        Dict with ``opening_balance``, ``available_credit``,
        ``uncalled_capital``, ``first_deficit_date`` (ISO string or None),
        ``closing_balance`` and ``min_balance`` (weighted closing cash on the
        last day and its minimum over the run)
    """
    cash = weighted_cash(results, weights)
    deficit = first_deficit_date(results, weights)
    return {
        "opening_balance": opening_balance(results, weights),
        "available_credit": available_credit(snapshot, weights),
        "uncalled_capital": uncalled_capital(snapshot, weights),
        "first_deficit_date": deficit.isoformat() if deficit else None,
        "closing_balance": float(cash.iloc[-1]) if len(cash) else 0.0,
        "min_balance": float(cash.min()) if len(cash) else 0.0,
    }


def guarantee_cost(guarantee: Guarantee) -> dict[str, float]:
    """
    Total cost of a bank guarantee over its life.

    ``total = setup_fee + amount × rate/100 × days/365`` where ``days`` is the
    non-negative number of days between issue and expiry.

    Returns:
        Dict with ``days``, ``interest`` and ``total``
    """
    days = max(0, (guarantee.expiry_date - guarantee.issue_date).days)
    interest = guarantee.amount * (guarantee.annual_interest_rate / 100.0) * (days / 365.0)
    interest = interest if math.isfinite(interest) else 0.0
    return {
        "days": days,
        "interest": interest,
        "total": (guarantee.setup_fee or 0.0) + interest,
    }


def budget_analysis(
    results: SimulationResults,
    budgets: list[Budget] | tuple[Budget, ...],
    year: int | None = None,
) -> pd.DataFrame:
    """
    Compare budget lines against actuals plus the simulated remainder of a year.

    For each budget line the forecast is the sum of absolute ledger amounts
    in ``year`` on the line's entity and category (and, when the line names a
    property, whose description mentions it). ``total_projected`` adds the
    manually entered actual YTD.

    Args:
        results: Simulation output
        budgets: Budget lines
        year: Calendar year to analyse (default: year of the first simulated day)

    Returns:
        DataFrame indexed by budget id with ``entity_id``, ``category``,
        ``annual_budget``, ``actual_ytd``, ``forecast``, ``total_projected``,
        ``utilization`` (percent), ``is_income`` and ``status``
        (``over``/``under``/``ontrack``)
    """
    columns = [
        "entity_id",
        "category",
        "property",
        "annual_budget",
        "actual_ytd",
        "forecast",
        "total_projected",
        "utilization",
        "is_income",
        "status",
    ]
    if year is None:
        year = results.start.year if results.start else date.today().year

    ledger = results.ledger_frame()
    ledger = ledger[pd.DatetimeIndex(ledger["date"]).year == year]

    rows = []
    for budget in budgets:
        lines = ledger[
            (ledger["entity_id"] == budget.entity_id)
            & (ledger["category"] == budget.category)
        ]
        if budget.property:
            lines = lines[lines["description"].str.contains(budget.property, regex=False)]
        forecast = float(lines["amount"].abs().sum()) if not lines.empty else 0.0
        total = budget.manual_actual_ytd + forecast
        utilization = total / budget.annual_budget * 100.0 if budget.annual_budget > 0 else 0.0
        is_income = budget.category in Cat.INCOME
        status = "ontrack"
        if not is_income and total > budget.annual_budget:
            status = "over"
        if is_income and total < budget.annual_budget:
            status = "under"
        rows.append(
            {
                "id": budget.id,
                "entity_id": budget.entity_id,
                "category": budget.category,
                "property": budget.property,
                "annual_budget": budget.annual_budget,
                "actual_ytd": budget.manual_actual_ytd,
                "forecast": forecast,
                "total_projected": total,
                "utilization": utilization,
                "is_income": is_income,
                "status": status,
            }
        )
    frame = pd.DataFrame(rows, columns=["id"] + columns)
    return frame.set_index("id")
