"""
Strategy implementations for CashFlowLab.

Strategies turn domain records into dated cash events before the daily loop
runs. Each one is registered under a source-kind discriminator
(``cashflowlab.core.kinds.K``):

- Schedule Strategies: loans with interest and principal calendars
- Flow Strategies: lease income and staged asset deals

Registry System:
Importing this module registers the default strategies in the global
registries, making them available to the simulation engine.
"""

from .flow import FlowAssetMilestones, FlowLeaseIncome, materialize
from .registry import register_defaults
from .schedule import ScheduleLoanAmortization

# Register all default strategies when module is imported
register_defaults()

__all__ = [
    "ScheduleLoanAmortization",
    "FlowLeaseIncome",
    "FlowAssetMilestones",
    "materialize",
    "register_defaults",
]
