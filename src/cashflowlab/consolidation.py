"""
Ownership-weighted consolidation of simulation results.

A consolidation view looks at the run from the point of view of one or more
entities: every entity's figures are scaled by its effective ownership
share (the product of ownership percentages down the parent chain) and then
summed.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np
import pandas as pd

from .core.kinds import LedgerClass
from .core.records import Entity, Snapshot
from .core.results import SimulationResults

ALL = "all"

MATRIX_FREQS = {"D": "D", "W": "W", "M": "M", "Y": "Y"}


def consolidated_weight(entity_id: str, entities: Sequence[Entity]) -> float:
    """
    Product of ownership shares from ``entity_id`` up to its root.

    Each entity that has a parent contributes ``ownership_percentage / 100``;
    the root contributes nothing. Unknown ids weigh 1.0.
    """
    by_id = {e.id: e for e in entities}
    weight = 1.0
    current = by_id.get(entity_id)
    seen: set[str] = set()
    while current is not None and current.parent_id and current.id not in seen:
        seen.add(current.id)
        weight *= current.ownership_percentage / 100.0
        current = by_id.get(current.parent_id)
    return weight


def weight_map(
    entities: Sequence[Entity], selection: str | Iterable[str] = ALL
) -> dict[str, float]:
    """
    Consolidation weights for a selection of entities.

    Args:
        entities: All entities of the snapshot
        selection: ``"all"`` for the whole forest, a single entity id, or an
            iterable of entity ids

    Returns:
        ``entity_id -> weight``. For ``"all"`` the forest is walked from every
        root (entities without a known parent) multiplying ownership down
        each edge. A single entity weighs 1.0. An explicit subset uses
        ``consolidated_weight`` for each member.
    """
    if isinstance(selection, str):
        selection = [selection]
    selected = list(dict.fromkeys(selection))

    if ALL in selected:
        known = {e.id for e in entities}
        children: dict[str, list[Entity]] = {}
        for ent in entities:
            if ent.parent_id:
                children.setdefault(ent.parent_id, []).append(ent)
        weights: dict[str, float] = {}

        def _walk(entity_id: str, weight: float, path: frozenset[str]):
            weights[entity_id] = weights.get(entity_id, 0.0) + weight
            for child in children.get(entity_id, []):
                if child.id not in path:
                    _walk(
                        child.id,
                        weight * child.ownership_percentage / 100.0,
                        path | {child.id},
                    )

        for root in entities:
            if not root.parent_id or root.parent_id not in known:
                _walk(root.id, 1.0, frozenset({root.id}))
        return weights

    if len(selected) == 1:
        return {selected[0]: 1.0}
    return {entity_id: consolidated_weight(entity_id, entities) for entity_id in selected}


def _weights_series(weights: dict[str, float], columns) -> pd.Series:
    return pd.Series(weights, dtype=float).reindex(columns, fill_value=0.0)


def _credit_limits(snapshot: Snapshot, entity_ids) -> pd.Series:
    limits = {eid: 0.0 for eid in entity_ids}
    for acc in snapshot.accounts:
        if acc.entity_id in limits:
            limits[acc.entity_id] += acc.credit_limit
    return pd.Series(limits, dtype=float)


def _opening_available(snapshot: Snapshot, weights: dict[str, float]) -> float:
    total = 0.0
    for entity_id, w in weights.items():
        for acc in snapshot.accounts_of(entity_id):
            total += max(0.0, acc.credit_limit - acc.current_credit_util) * w
    return total


def weighted_ledger(
    results: SimulationResults, weights: dict[str, float]
) -> pd.DataFrame:
    """Ledger rows of weighted entities with ``weight`` and ``weighted`` columns."""
    ledger = results.ledger_frame()
    ledger = ledger.assign(
        weight=ledger["entity_id"].map(weights).fillna(0.0).astype(float)
    )
    ledger = ledger[ledger["weight"] > 0]
    return ledger.assign(weighted=ledger["amount"] * ledger["weight"])


def consolidated_frame(
    results: SimulationResults, snapshot: Snapshot, weights: dict[str, float]
) -> pd.DataFrame:
    """
    Daily consolidated view.

    Returns:
        DataFrame indexed by date with columns ``opening_cash``, ``net_flow``,
        ``closing_cash`` and ``available_credit`` (weighted unused credit at
        the close of each day).
    """
    balances = results.balances_frame()
    credit = results.credit_frame()
    w = _weights_series(weights, balances.columns)
    limits = _credit_limits(snapshot, balances.columns)

    closing = balances.mul(w, axis=1).sum(axis=1)
    available = credit.rsub(limits, axis=1).clip(lower=0.0).mul(w, axis=1).sum(axis=1)

    ledger = weighted_ledger(results, weights)
    if ledger.empty:
        net_flow = pd.Series(0.0, index=balances.index)
    else:
        net_flow = ledger.groupby("date")["weighted"].sum()
        net_flow = net_flow.reindex(balances.index, fill_value=0.0)

    frame = pd.DataFrame(
        {
            "opening_cash": closing - net_flow,
            "net_flow": net_flow,
            "closing_cash": closing,
            "available_credit": available,
        },
        index=balances.index,
    )
    return frame


def cashflow_matrix(
    results: SimulationResults,
    snapshot: Snapshot,
    weights: dict[str, float],
    freq: str = "M",
) -> pd.DataFrame:
    """
    Period-by-period cash-flow statement of the consolidated selection.

    Ledger rows are grouped by their ``LedgerClass`` and weighted by the
    owning entity's consolidation weight.

    Args:
        results: Simulation output
        snapshot: Snapshot the run was made from (for credit limits)
        weights: Consolidation weights (see ``weight_map``)
        freq: ``"D"``, ``"W"``, ``"M"`` or ``"Y"``

    Returns:
        DataFrame indexed by period with ``opening_balance``,
        ``opening_available_credit``, one column per ledger class,
        ``closing_balance`` and ``closing_available_credit``

    Raises:
        ValueError: If ``freq`` is not supported
    """
    freq = freq.upper()
    if freq not in MATRIX_FREQS:
        raise ValueError(f"Unsupported matrix frequency: {freq!r}")
    class_columns = [c.value for c in LedgerClass]
    columns = (
        ["opening_balance", "opening_available_credit"]
        + class_columns
        + ["closing_balance", "closing_available_credit"]
    )
    if len(results) == 0:
        return pd.DataFrame(columns=columns, dtype=float)

    daily = consolidated_frame(results, snapshot, weights)
    periods = daily.index.to_period(MATRIX_FREQS[freq])

    prev_available = daily["available_credit"].shift(1)
    prev_available.iloc[0] = _opening_available(snapshot, weights)

    grouped = daily.groupby(periods)
    matrix = pd.DataFrame(
        {
            "opening_balance": grouped["opening_cash"].first(),
            "opening_available_credit": prev_available.groupby(periods).first(),
            "closing_balance": grouped["closing_cash"].last(),
            "closing_available_credit": grouped["available_credit"].last(),
        }
    )

    ledger = weighted_ledger(results, weights)
    if not ledger.empty:
        ledger = ledger.assign(
            period=pd.DatetimeIndex(ledger["date"]).to_period(MATRIX_FREQS[freq]),
        )
        by_class = ledger.pivot_table(
            index="period",
            columns="ledger_class",
            values="weighted",
            aggfunc="sum",
            fill_value=0.0,
        )
        matrix = matrix.join(by_class, how="left")

    for col in class_columns:
        if col not in matrix.columns:
            matrix[col] = 0.0
    matrix[class_columns] = matrix[class_columns].fillna(0.0)
    matrix.index.name = "period"
    return matrix[columns].astype(np.float64)
