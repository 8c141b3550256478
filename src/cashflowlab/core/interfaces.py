"""
Strategy interface protocols for CashFlowLab.
Defines the contract that all expanders must satisfy.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .context import SimulationContext
from .events import CashEvent


@runtime_checkable
class IExpander(Protocol):
    """
    Contract for expanders that turn a domain record into dated cash events.
    Responsibilities: decide whether the record takes part in the run and
    produce every event it contributes inside the simulation window.
    """

    def accepts(self, record: Any) -> bool:
        """Return True when the record should be expanded by this strategy."""
        ...

    def expand(self, record: Any, ctx: SimulationContext) -> list[CashEvent]:
        """
        Expand one record.

        Returns:
            Events in date order. Days past the horizon are dropped later by
            the materializer.
        """
        ...
