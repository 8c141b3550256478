"""
Expander registries for CashFlowLab.

Strategies are looked up by the source-kind discriminators in
``cashflowlab.core.kinds.K``. The default implementations are registered
by ``cashflowlab.strategies.register_defaults``.
"""

from __future__ import annotations

from .errors import ConfigError
from .interfaces import IExpander

ScheduleRegistry: dict[str, IExpander] = {}
FlowRegistry: dict[str, IExpander] = {}


def resolve_expander(kind: str) -> IExpander:
    """
    Look up the expander registered for a source kind.

    Raises:
        ConfigError: If no strategy is registered for ``kind``
    """
    if kind.startswith("s."):
        registry = ScheduleRegistry
        label = "schedule"
    elif kind.startswith("f."):
        registry = FlowRegistry
        label = "flow"
    else:
        raise ConfigError(f"Unknown expander family: {kind}")
    if kind not in registry:
        raise ConfigError(f"Unknown {label} strategy: {kind}")
    return registry[kind]
