"""
Core module for CashFlowLab.

This module contains the domain records, the calendar helpers and the daily
simulation engine.
"""

from .config import DEFAULT_CONFIG, SimulationConfig
from .context import SimulationContext
from .engine import balance_with_credit, collect_events, simulate
from .errors import ConfigError
from .events import CashEvent
from .exceptions import SnapshotValidationError
from .interfaces import IExpander
from .kinds import Cat, DayMode, Frequency, K, LedgerClass, LedgerKind, TxKind, classify
from .loader import dump_snapshot, load_config, load_snapshot
from .rates import prime_rate_at
from .records import (
    Account,
    Budget,
    Entity,
    GlobalSettings,
    Guarantee,
    Lease,
    Loan,
    Milestone,
    Snapshot,
    Task,
    Transaction,
)
from .registry import FlowRegistry, ScheduleRegistry, resolve_expander
from .results import DailyResult, LedgerRow, SimulationResults
from .utils import add_days, add_months, period_dates
from .validation import ValidationReport, validate_snapshot

__all__ = [
    # Errors
    "ConfigError",
    "SnapshotValidationError",
    # Config
    "SimulationConfig",
    "DEFAULT_CONFIG",
    # Kinds
    "K",
    "Cat",
    "Frequency",
    "DayMode",
    "TxKind",
    "LedgerKind",
    "LedgerClass",
    "classify",
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
    # Events and Results
    "CashEvent",
    "LedgerRow",
    "DailyResult",
    "SimulationResults",
    # Context
    "SimulationContext",
    # Interfaces and registries
    "IExpander",
    "ScheduleRegistry",
    "FlowRegistry",
    "resolve_expander",
    # Engine
    "simulate",
    "collect_events",
    "balance_with_credit",
    "prime_rate_at",
    # Utilities
    "add_days",
    "add_months",
    "period_dates",
    # Loading and validation
    "load_snapshot",
    "load_config",
    "dump_snapshot",
    "ValidationReport",
    "validate_snapshot",
]
