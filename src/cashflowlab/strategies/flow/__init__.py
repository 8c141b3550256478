"""
Flow strategies: leases, staged asset deals and the recurring materializer.
"""

from .asset_milestones import FlowAssetMilestones
from .lease_income import FlowLeaseIncome, first_standard_date
from .recurring import MaterializedFlows, materialize, occurs_on

__all__ = [
    "FlowAssetMilestones",
    "FlowLeaseIncome",
    "MaterializedFlows",
    "first_standard_date",
    "materialize",
    "occurs_on",
]
