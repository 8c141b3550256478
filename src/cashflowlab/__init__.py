"""
CashFlowLab - Multi-Entity Cash-Flow Forecasting

CashFlowLab projects the daily cash position of a group of legal entities
linked by ownership. It starts from an immutable snapshot of the group's
state (entities, bank accounts, transactions, loans, leases) and walks the
forecast horizon one day at a time.

Key Features:
- **Pure Engine**: ``simulate(snapshot, horizon_days, today, config)`` never
  mutates its inputs and returns the same results for the same arguments
- **Expanders**: Loans, leases and staged asset deals become dated cash
  events through strategies registered by kind
- **Recurring Flows**: Monthly to annual transactions with same-day,
  specific-day or last-day rules
- **Group Logic**: VAT accrual and settlement, income-tax advances,
  parent-to-subsidiary capital calls and credit-line balancing
- **Consolidation**: Ownership-weighted views, cash-flow matrices, KPIs and
  alerts on top of the daily results

Architecture Overview:
- **Records**: Frozen dataclasses loaded from JSON/YAML snapshots
- **Registry System**: Maps kind strings to expander implementations
- **Daily Loop**: Balances, credit utilization and ledger rows per day
- **Chart Library**: Interactive visualizations with Plotly integration

Quick Start:
    ```python
    from datetime import date
    from cashflowlab import load_snapshot, simulate, weight_map, summary_kpis

    snapshot = load_snapshot("group.yaml")
    results = simulate(snapshot, horizon_days=365, today=date(2026, 1, 1))
    kpis = summary_kpis(results, snapshot, weight_map(snapshot.entities))
    ```

Available Expanders:
    Schedules:
        - 's.loan.amortizing': Loan receipt, interest and principal repayment

    Flows:
        - 'f.lease.income': Lease income with a pro-rata first period
        - 'f.asset.milestones': Staged asset purchases and sales
"""

# Version information
__version__ = "0.1.0"
__author__ = "CashFlowLab Team"
__description__ = "Multi-entity cash-flow forecasting"

# Import core components for easy access
from .alerts import Alert, derive_alerts

# Import chart functions (require plotly at call time)
from .charts import PLOTLY_AVAILABLE, cash_vs_time, cashflow_matrix_bars, entity_balances

# Import consolidation utilities
from .consolidation import (
    ALL,
    cashflow_matrix,
    consolidated_frame,
    consolidated_weight,
    weight_map,
)
from .core import (
    DEFAULT_CONFIG,
    Account,
    Budget,
    CashEvent,
    Cat,
    ConfigError,
    DailyResult,
    DayMode,
    Entity,
    FlowRegistry,
    Frequency,
    GlobalSettings,
    Guarantee,
    K,
    Lease,
    LedgerClass,
    LedgerKind,
    LedgerRow,
    Loan,
    Milestone,
    ScheduleRegistry,
    SimulationConfig,
    SimulationContext,
    SimulationResults,
    Snapshot,
    SnapshotValidationError,
    Task,
    Transaction,
    TxKind,
    ValidationReport,
    dump_snapshot,
    load_config,
    load_snapshot,
    prime_rate_at,
    simulate,
    validate_snapshot,
)

# Import KPI utilities
from .kpi import (
    available_credit,
    budget_analysis,
    first_deficit_date,
    guarantee_cost,
    opening_balance,
    summary_kpis,
    uncalled_capital,
)

# Define what gets imported with "from cashflowlab import *"
__all__ = [
    # Records
    "Entity",
    "Account",
    "Milestone",
    "Transaction",
    "Loan",
    "Lease",
    "Guarantee",
    "Task",
    "Budget",
    "GlobalSettings",
    "Snapshot",
    # Kinds
    "K",
    "Cat",
    "Frequency",
    "DayMode",
    "TxKind",
    "LedgerKind",
    "LedgerClass",
    # Engine
    "simulate",
    "prime_rate_at",
    "SimulationConfig",
    "DEFAULT_CONFIG",
    "SimulationContext",
    "CashEvent",
    "LedgerRow",
    "DailyResult",
    "SimulationResults",
    # Registries
    "ScheduleRegistry",
    "FlowRegistry",
    # Loading and validation
    "load_snapshot",
    "load_config",
    "dump_snapshot",
    "validate_snapshot",
    "ValidationReport",
    "ConfigError",
    "SnapshotValidationError",
    # Consolidation
    "ALL",
    "consolidated_weight",
    "weight_map",
    "consolidated_frame",
    "cashflow_matrix",
    # KPI utilities
    "opening_balance",
    "available_credit",
    "uncalled_capital",
    "first_deficit_date",
    "summary_kpis",
    "guarantee_cost",
    "budget_analysis",
    # Alerts
    "Alert",
    "derive_alerts",
    # Charts
    "PLOTLY_AVAILABLE",
    "cash_vs_time",
    "cashflow_matrix_bars",
    "entity_balances",
]
