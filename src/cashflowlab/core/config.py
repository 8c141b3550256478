"""
Simulation configuration for CashFlowLab.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any

from .errors import ConfigError


@dataclass(frozen=True)
class SimulationConfig:
    """
    Tunable constants of the daily simulation loop.

    Every threshold and calendar anchor the engine relies on lives here so a
    run is fully described by ``(snapshot, horizon_days, today, config)``.
    The defaults reproduce the behaviour of the dashboard the engine was
    built for.

    Attributes:
        horizon_days: Default number of simulated days
        default_vat_rate: VAT percentage used when settings carry none
        default_credit_spread: Spread over prime for credit-line interest when
            an entity has no accounts to take a spread from
        vat_settlement_threshold: Absolute monthly VAT position at or below
            which no settlement is queued
        vat_payment_day: Day of the current month on which VAT owed is paid
        vat_refund_day: Day of the following month on which VAT refunds land
        tax_advance_day: Day of month on which income-tax advances are charged
        tax_advance_threshold: Advances at or below this amount are skipped
        capital_call_trigger_days: Lookahead used to decide whether an
            injection is needed at all; 0 disables calls
        capital_call_lookahead_days: Sizing lookahead for wholly-owned
            subsidiaries
        capital_call_lookahead_minority_days: Sizing lookahead when minority
            partners exist (ownership below 100%)
        min_injection: Injections at or below this amount are not executed
        partner_share_threshold: Partner capital calls at or below this
            amount are not booked
        interest_threshold: Loan interest events at or below this amount
            are dropped

    Example:
        ```python
        from cashflowlab.core.config import SimulationConfig

        cfg = SimulationConfig(default_vat_rate=18.0)
        cfg = cfg.replace(min_injection=0.0)
        ```
    """

    horizon_days: int = 730
    default_vat_rate: float = 17.0
    default_credit_spread: float = 1.5
    vat_settlement_threshold: float = 1.0
    vat_payment_day: int = 22
    vat_refund_day: int = 15
    tax_advance_day: int = 15
    tax_advance_threshold: float = 1.0
    capital_call_trigger_days: int = 7
    capital_call_lookahead_days: int = 14
    capital_call_lookahead_minority_days: int = 90
    min_injection: float = 100.0
    partner_share_threshold: float = 0.01
    interest_threshold: float = 0.01

    def __post_init__(self):
        if self.horizon_days < 0:
            raise ConfigError(f"horizon_days must be >= 0, got {self.horizon_days}")
        for name in ("vat_payment_day", "vat_refund_day", "tax_advance_day"):
            day = getattr(self, name)
            if not 1 <= day <= 31:
                raise ConfigError(f"{name} must be within 1..31, got {day}")
        if self.capital_call_trigger_days < 0:
            raise ConfigError("capital_call_trigger_days must be >= 0")
        if (
            self.capital_call_lookahead_days < 0
            or self.capital_call_lookahead_minority_days < 0
        ):
            raise ConfigError("capital call lookahead windows must be >= 0")

    def replace(self, **changes: Any) -> SimulationConfig:
        """Return a copy with the given fields changed."""
        data = asdict(self)
        unknown = set(changes) - set(data)
        if unknown:
            raise ConfigError(f"Unknown config fields: {sorted(unknown)}")
        data.update(changes)
        return SimulationConfig(**data)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SimulationConfig:
        """Build a config from a mapping, ignoring ``None`` values."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config fields: {sorted(unknown)}")
        return cls(**{k: v for k, v in data.items() if v is not None})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


DEFAULT_CONFIG = SimulationConfig()
