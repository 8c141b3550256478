"""
Strategy registry setup for CashFlowLab.
"""

from cashflowlab.core.kinds import K
from cashflowlab.core.registry import FlowRegistry, ScheduleRegistry

# Flow strategies
from .flow.asset_milestones import FlowAssetMilestones
from .flow.lease_income import FlowLeaseIncome

# Schedule strategies
from .schedule.loan_amortization import ScheduleLoanAmortization


def register_defaults():
    """
    Register all default expanders in the global registries.

    Registered Strategies:
        Schedules:
            - 's.loan.amortizing': Loan receipt, interest and principal events

        Flows:
            - 'f.lease.income': Lease income with pro-rata first period
            - 'f.asset.milestones': Staged asset deals split into milestones

    Note:
        This function is automatically called when the module is imported.
        Additional expanders can be registered by assigning into the
        registry dictionaries directly.
    """
    ScheduleRegistry[K.S_LOAN_AMORTIZING] = ScheduleLoanAmortization()

    FlowRegistry[K.F_LEASE_INCOME] = FlowLeaseIncome()
    FlowRegistry[K.F_ASSET_MILESTONES] = FlowAssetMilestones()
