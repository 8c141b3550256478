"""
Context classes for CashFlowLab simulation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from .config import SimulationConfig
from .rates import prime_rate_at
from .records import GlobalSettings
from .utils import add_days


@dataclass(frozen=True)
class SimulationContext:
    """
    Context object passed to all expanders during a simulation run.

    Attributes:
        start: Day zero of the run ("today")
        horizon_days: Number of simulated days
        settings: Global market settings of the snapshot
        config: Engine thresholds and calendar anchors

    Note:
        Expanders keep events dated inside ``[start, end]`` where
        ``end = start + horizon_days``; the materializer later drops anything
        that falls past the last simulated day.
    """

    start: date
    horizon_days: int
    settings: GlobalSettings = field(default_factory=GlobalSettings)
    config: SimulationConfig = field(default_factory=SimulationConfig)

    @property
    def end(self) -> date:
        return add_days(self.start, self.horizon_days)

    @property
    def vat_rate(self) -> float:
        """VAT rate as a fraction, falling back to the configured default."""
        rate = self.settings.vat_rate
        if rate is None:
            rate = self.config.default_vat_rate
        return rate / 100.0

    @property
    def cpi(self) -> float:
        return self.settings.cpi

    def in_window(self, d: date) -> bool:
        return self.start <= d <= self.end

    def prime_at(self, d: date) -> float:
        return prime_rate_at(d, self.settings)

    def linkage_factor(self, base: float | None) -> float:
        """CPI ratio ``cpi / base`` when both are positive, else 1."""
        if base is not None and base > 0 and self.cpi > 0:
            return self.cpi / base
        return 1.0
