"""
Chart functions for visualizing cash-flow forecasts.

All chart functions return (figure, tidy_dataframe_used) for consistency.
"""

from __future__ import annotations

import pandas as pd

from .core.kinds import LedgerClass

# Plotly imports with graceful fallback
try:
    import plotly.express as px
    import plotly.graph_objects as go

    PLOTLY_AVAILABLE = True
except ImportError:
    PLOTLY_AVAILABLE = False


def _check_plotly() -> None:
    """Check if Plotly is available and raise helpful error if not."""
    if not PLOTLY_AVAILABLE:
        raise ImportError(
            "Plotly is required for chart functions. Install with:\n"
            "pip install plotly\n"
            "or\n"
            "poetry install --extras viz"
        )


def cash_vs_time(daily: pd.DataFrame) -> tuple[go.Figure, pd.DataFrame]:
    """
    Plot consolidated closing cash and available credit over time.

    **Use Cases:**
    - Spot the first day the group dips below zero
    - See how much headroom the credit lines leave at the trough

    **Args:**
        daily: Frame from ``cashflowlab.consolidation.consolidated_frame``

    **Returns:**
        Tuple of (plotly_figure, tidy_dataframe_used)

    **Example:**
        ```python
        from cashflowlab.consolidation import consolidated_frame, weight_map

        daily = consolidated_frame(results, snapshot, weight_map(snapshot.entities))
        fig, data = cash_vs_time(daily)
        fig.show()
        ```
    """
    _check_plotly()

    tidy = (
        daily[["closing_cash", "available_credit"]]
        .reset_index()
        .melt(id_vars="date", var_name="series", value_name="amount")
    )
    fig = px.line(
        tidy,
        x="date",
        y="amount",
        color="series",
        title="Cash and Available Credit",
        labels={"amount": "Amount", "date": "Date", "series": ""},
    )
    fig.add_hline(y=0, line_dash="dot", line_color="grey")
    fig.update_layout(hovermode="x unified")

    return fig, tidy


def cashflow_matrix_bars(matrix: pd.DataFrame) -> tuple[go.Figure, pd.DataFrame]:
    """
    Stacked bars of period flows per ledger class with the closing balance line.

    **Args:**
        matrix: Frame from ``cashflowlab.consolidation.cashflow_matrix``

    **Returns:**
        Tuple of (plotly_figure, tidy_dataframe_used)
    """
    _check_plotly()

    classes = [c.value for c in LedgerClass if c.value in matrix.columns]
    frame = matrix.copy()
    frame.index = frame.index.astype(str)
    tidy = (
        frame[classes]
        .reset_index()
        .melt(id_vars="period", var_name="ledger_class", value_name="amount")
    )
    tidy = tidy[tidy["amount"] != 0]

    fig = go.Figure()
    for cls, part in tidy.groupby("ledger_class", sort=False):
        fig.add_trace(go.Bar(x=part["period"], y=part["amount"], name=cls))
    fig.add_trace(
        go.Scatter(
            x=frame.index,
            y=frame["closing_balance"],
            name="closing_balance",
            mode="lines+markers",
        )
    )
    fig.update_layout(
        barmode="relative",
        title="Cash Flow by Class",
        xaxis_title="Period",
        yaxis_title="Amount",
        hovermode="x unified",
    )

    return fig, tidy


def entity_balances(results) -> tuple[go.Figure, pd.DataFrame]:
    """Plot each entity's closing cash (unweighted) over time."""
    _check_plotly()

    frame = results.balances_frame().rename(columns=dict(results.entity_names))
    tidy = frame.reset_index().melt(id_vars="date", var_name="entity", value_name="cash")
    fig = px.line(
        tidy,
        x="date",
        y="cash",
        color="entity",
        title="Closing Cash by Entity",
        labels={"cash": "Cash", "date": "Date"},
    )
    fig.update_layout(hovermode="x unified", legend_title="Entity")

    return fig, tidy
