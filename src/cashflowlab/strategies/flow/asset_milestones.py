"""
Staged asset deals paid in dated milestones.
"""

from __future__ import annotations

import logging

from cashflowlab.core.context import SimulationContext
from cashflowlab.core.events import CashEvent
from cashflowlab.core.interfaces import IExpander
from cashflowlab.core.records import Transaction
from cashflowlab.core.utils import non_negative

logger = logging.getLogger(__name__)


class FlowAssetMilestones(IExpander):
    """
    Asset milestone expander (kind: 'f.asset.milestones').

    An active asset purchase or sale carrying milestones is replaced by one
    one-off event per milestone: dated on the milestone date, sized at the
    milestone amount (CPI-linked with the parent's linkage base) and
    described as ``"<parent description>: <milestone description>"``.
    The parent itself never reaches the event stream. Milestone totals are
    not reconciled against the parent amount here; see
    ``cashflowlab.core.validation`` for that check.
    """

    def accepts(self, record: Transaction) -> bool:
        return (
            isinstance(record, Transaction)
            and record.is_active
            and record.has_milestones
        )

    def expand(self, tx: Transaction, ctx: SimulationContext) -> list[CashEvent]:
        if not self.accepts(tx):
            return []

        factor = ctx.linkage_factor(tx.linkage_index_base)
        base = CashEvent.from_transaction(tx)
        events = [
            base.with_changes(
                source_id=f"{tx.id}:{m.id}",
                date=m.date,
                amount=non_negative(m.amount * factor),
                description=f"{tx.description}: {m.description}",
                is_recurring=False,
                frequency=None,
            )
            for m in tx.milestones
        ]
        logger.debug("Asset deal %s expanded into %d milestones", tx.id, len(events))
        return events
