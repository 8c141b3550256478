"""
Daily simulation loop for CashFlowLab.

``simulate`` is a pure function of ``(snapshot, horizon_days, today, config)``:
it expands loans, leases and staged asset deals into cash events, places
every event on the calendar, then walks the horizon one day at a time
applying credit interest, VAT accrual and settlement, income-tax advances,
the intercompany capital-call cascade and credit-line balancing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from cashflowlab.strategies.flow.recurring import MaterializedFlows, materialize

from .config import SimulationConfig
from .context import SimulationContext
from .events import CashEvent
from .kinds import Cat, K, LedgerKind, TxKind
from .records import Entity, Snapshot
from .registry import resolve_expander
from .results import DailyResult, LedgerRow, SimulationResults
from .utils import add_days, add_months, finite_or_zero, with_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreditMove:
    """Outcome of one credit-line balancing step."""

    action: str  # "draw", "repay" or "none"
    amount: float
    cash: float
    utilization: float


def balance_with_credit(
    cash: float, target: float, limit: float, utilization: float
) -> CreditMove:
    """
    Steer cash towards ``target`` with a pooled credit line.

    Below target the deficit is drawn, capped by the unused limit. Above
    target with outstanding utilization the surplus repays the line, capped
    by the utilization. Otherwise nothing moves.
    """
    if cash < target:
        available = max(0.0, limit - utilization)
        gap = target - cash
        if gap <= available:
            return CreditMove("draw", gap, target, utilization + gap)
        if available > 0:
            return CreditMove("draw", available, cash + available, limit)
    elif cash > target and utilization > 0:
        surplus = cash - target
        if surplus <= utilization:
            return CreditMove("repay", surplus, target, utilization - surplus)
        return CreditMove("repay", utilization, cash - utilization, 0.0)
    return CreditMove("none", 0.0, cash, utilization)


@dataclass
class _EntityState:
    cash: float = 0.0
    utilization: float = 0.0
    limit: float = 0.0
    month_revenue: float = 0.0
    vat_position: float = 0.0
    spread: float | None = None
    main_account_id: str | None = None


@dataclass
class _Settlement:
    due: date
    amount: float
    entity_id: str


def collect_events(snapshot: Snapshot, ctx: SimulationContext) -> list[CashEvent]:
    """
    Turn the snapshot's records into the event stream of a run.

    Active loans and leases go through their registered expanders. Active
    asset deals with milestones are replaced by their milestones; every other
    active transaction becomes an event as entered.
    """
    loans = resolve_expander(K.S_LOAN_AMORTIZING)
    leases = resolve_expander(K.F_LEASE_INCOME)
    milestones = resolve_expander(K.F_ASSET_MILESTONES)

    events: list[CashEvent] = []
    for tx in snapshot.transactions:
        if not tx.is_active:
            continue
        if tx.has_milestones:
            events.extend(milestones.expand(tx, ctx))
        else:
            events.append(CashEvent.from_transaction(tx))
    for loan in snapshot.loans:
        if loans.accepts(loan):
            events.extend(loans.expand(loan, ctx))
    for lease in snapshot.leases:
        if leases.accepts(lease):
            events.extend(leases.expand(lease, ctx))
    return events


def hierarchy_depth(entity_id: str, parents: dict[str, str | None]) -> int:
    """Number of parent hops to a root; a cycle stops the walk."""
    depth = 0
    seen = {entity_id}
    parent = parents.get(entity_id)
    while parent is not None and parent in parents and parent not in seen:
        seen.add(parent)
        depth += 1
        parent = parents.get(parent)
    return depth


class _DailyLoop:
    """Mutable accumulators of one run; discarded when the run returns."""

    def __init__(
        self,
        snapshot: Snapshot,
        ctx: SimulationContext,
        flows: MaterializedFlows,
    ):
        self.snapshot = snapshot
        self.ctx = ctx
        self.cfg = ctx.config
        self.flows = flows
        self.vat_rate = ctx.vat_rate

        self.entities: list[Entity] = []
        seen: set[str] = set()
        for ent in snapshot.entities:
            if ent.id not in seen:
                seen.add(ent.id)
                self.entities.append(ent)

        self.state: dict[str, _EntityState] = {}
        for ent in self.entities:
            st = _EntityState()
            accounts = snapshot.accounts_of(ent.id)
            if accounts:
                main = sorted(accounts, key=lambda a: -a.credit_limit)[0]
                st.main_account_id = main.id
                st.spread = main.interest_spread
            for acc in accounts:
                st.cash += acc.opening_balance
                st.utilization += acc.current_credit_util
                st.limit += acc.credit_limit
            self.state[ent.id] = st

        parents = {e.id: e.parent_id for e in self.entities}
        self.cascade_order = sorted(
            self.entities, key=lambda e: hierarchy_depth(e.id, parents)
        )
        self.queue: list[_Settlement] = []

    def _safe(self, amount: float, what: str) -> float:
        value = finite_or_zero(amount)
        if value != amount:
            logger.warning("Non-finite %s coerced to 0", what)
        return value

    def _available(self, st: _EntityState) -> float:
        return st.cash + (st.limit - st.utilization)

    def run(self) -> list[DailyResult]:
        return [self._day(i) for i in range(self.ctx.horizon_days)]

    def _day(self, i: int) -> DailyResult:
        today = add_days(self.ctx.start, i)
        rows: list[LedgerRow] = []
        alerts: list[str] = []

        if today.day == 1:
            self._month_start(today, rows)
        self._settle_vat(today, rows)
        for ent in self.entities:
            self._book_events(ent, i, rows)
            if today.day == self.cfg.tax_advance_day and ent.has_tax_advances:
                self._tax_advance(ent, rows)
        self._capital_calls(i, rows, alerts)
        self._balance_credit(rows)

        return DailyResult(
            date=today,
            balances={e.id: self.state[e.id].cash for e in self.entities},
            credit_util={e.id: self.state[e.id].utilization for e in self.entities},
            aggregate_cash=sum(self.state[e.id].cash for e in self.entities),
            rows=tuple(rows),
            alerts=tuple(alerts),
        )

    def _month_start(self, today: date, rows: list[LedgerRow]) -> None:
        prime = self.ctx.prime_at(today)
        for ent in self.entities:
            st = self.state[ent.id]
            if st.utilization > 0:
                spread = st.spread
                if spread is None:
                    spread = self.cfg.default_credit_spread
                interest = self._safe(
                    st.utilization * (prime + spread) / 1200.0, "credit interest"
                )
                st.cash -= interest
                rows.append(
                    LedgerRow(
                        description="Credit line interest",
                        amount=-interest,
                        entity_id=ent.id,
                        kind=LedgerKind.OPERATIONAL,
                        category=Cat.BANK_INTEREST,
                        account_id=st.main_account_id,
                    )
                )

            position = st.vat_position
            if abs(position) > self.cfg.vat_settlement_threshold:
                if position > 0:
                    due = with_day(today, self.cfg.vat_payment_day)
                else:
                    due = with_day(add_months(today, 1), self.cfg.vat_refund_day)
                self.queue.append(_Settlement(due, -position, ent.id))
            st.vat_position = 0.0
            st.month_revenue = 0.0

    def _settle_vat(self, today: date, rows: list[LedgerRow]) -> None:
        pending: list[_Settlement] = []
        for item in self.queue:
            if item.due != today:
                pending.append(item)
                continue
            st = self.state.get(item.entity_id)
            if st is None:
                continue
            st.cash += item.amount
            rows.append(
                LedgerRow(
                    description="VAT payment" if item.amount < 0 else "VAT refund",
                    amount=item.amount,
                    entity_id=item.entity_id,
                    kind=LedgerKind.TAX,
                    category=Cat.VAT,
                )
            )
        self.queue = pending

    def _book_events(self, ent: Entity, i: int, rows: list[LedgerRow]) -> None:
        st = self.state[ent.id]
        for event in self.flows.events_on(ent.id, i):
            gross = event.gross_amount(self.vat_rate)
            vat_amount = gross - event.amount if event.includes_vat else 0.0
            effective = self._safe(event.signed_amount(self.vat_rate), "event amount")
            st.cash += effective
            if event.includes_vat:
                st.vat_position += vat_amount if effective > 0 else -vat_amount
            if effective > 0 and event.kind in (TxKind.OPERATIONAL, TxKind.INCOME):
                st.month_revenue += event.amount

            rows.append(
                LedgerRow(
                    description=event.description,
                    amount=effective,
                    entity_id=ent.id,
                    kind=LedgerKind.from_tx_kind(event.kind),
                    category=event.category,
                    account_id=event.account_id,
                    includes_vat=event.includes_vat,
                )
            )

            if event.is_intercompany and event.target_entity_id:
                target = self.state.get(event.target_entity_id)
                if target is None:
                    logger.warning(
                        "Intercompany leg of %s points at unknown entity %s",
                        event.source_id,
                        event.target_entity_id,
                    )
                    continue
                target.cash -= effective
                rows.append(
                    LedgerRow(
                        description=f"Counter: {event.description}",
                        amount=-effective,
                        entity_id=event.target_entity_id,
                        kind=LedgerKind.INTERCOMPANY,
                        category=Cat.INTERCOMPANY,
                        account_id=event.target_account_id,
                    )
                )

    def _tax_advance(self, ent: Entity, rows: list[LedgerRow]) -> None:
        st = self.state[ent.id]
        payment = self._safe(
            st.month_revenue * ent.tax_advance_rate / 100.0, "tax advance"
        )
        if payment > self.cfg.tax_advance_threshold:
            st.cash -= payment
            rows.append(
                LedgerRow(
                    description="Income tax advance",
                    amount=-payment,
                    entity_id=ent.id,
                    kind=LedgerKind.TAX,
                    category=Cat.INCOME_TAX,
                )
            )

    def _capital_calls(self, i: int, rows: list[LedgerRow], alerts: list[str]) -> None:
        horizon = self.ctx.horizon_days
        for ent in self.cascade_order:
            if not ent.parent_id or ent.parent_id not in self.state:
                continue
            st = self.state[ent.id]
            target = ent.target_balance
            available = self._available(st)
            if available >= target:
                continue

            net = self.flows.static_net[ent.id]
            trigger_end = min(i + self.cfg.capital_call_trigger_days, horizon - 1)
            needed = False
            if trigger_end > i:
                running = available + net[i + 1 : trigger_end + 1].cumsum()
                needed = bool((running < target).any())
            if not needed:
                continue

            if ent.ownership_percentage < 100:
                lookahead = self.cfg.capital_call_lookahead_minority_days
            else:
                lookahead = self.cfg.capital_call_lookahead_days
            scan_end = min(i + lookahead, horizon)
            projected = available + net[i + 1 : scan_end].cumsum()
            min_projected = available
            if projected.size:
                min_projected = min(available, float(projected.min()))

            amount = self._safe(target - min_projected, "injection")
            if amount <= self.cfg.min_injection:
                continue

            parent = self.state[ent.parent_id]
            parent_share = ent.ownership_percentage / 100.0 * amount
            partner_share = amount - parent_share
            if self._available(parent) < parent_share:
                logger.warning("Capital call for %s not funded by %s", ent.id, ent.parent_id)
                alerts.append(f"Capital call failed for {ent.name}: parent deficit")
                continue

            st.cash += parent_share
            parent.cash -= parent_share
            rows.append(
                LedgerRow(
                    description="Capital injection",
                    amount=parent_share,
                    entity_id=ent.id,
                    kind=LedgerKind.FINANCIAL,
                    category=Cat.OWNER_EQUITY,
                )
            )
            rows.append(
                LedgerRow(
                    description="Injection to subsidiary",
                    amount=-parent_share,
                    entity_id=ent.parent_id,
                    kind=LedgerKind.FINANCIAL,
                    category=Cat.OWNER_INJECTION,
                )
            )
            if partner_share > self.cfg.partner_share_threshold:
                st.cash += partner_share
                rows.append(
                    LedgerRow(
                        description="Partner capital call",
                        amount=partner_share,
                        entity_id=ent.id,
                        kind=LedgerKind.FINANCIAL,
                        category=Cat.INVESTOR_EQUITY,
                    )
                )

    def _balance_credit(self, rows: list[LedgerRow]) -> None:
        for ent in self.entities:
            st = self.state[ent.id]
            move = balance_with_credit(
                st.cash, ent.target_balance, st.limit, st.utilization
            )
            if move.action == "none":
                continue
            st.cash = move.cash
            st.utilization = move.utilization
            draw = move.action == "draw"
            rows.append(
                LedgerRow(
                    description="Credit line draw" if draw else "Credit line repayment",
                    amount=move.amount if draw else -move.amount,
                    entity_id=ent.id,
                    kind=LedgerKind.FINANCIAL,
                    category=Cat.CREDIT_BALANCING,
                    account_id=st.main_account_id,
                )
            )


def simulate(
    snapshot: Snapshot,
    horizon_days: int | None = None,
    today: date | None = None,
    config: SimulationConfig | None = None,
) -> SimulationResults:
    """
    Project every entity's cash and credit day by day.

    The run never raises for data problems: missing accounts mean zero
    balances and limits, a capital call the parent cannot fund becomes an
    alert on that day, and non-finite amounts are booked as zero.

    Args:
        snapshot: Immutable application state; it is not modified
        horizon_days: Number of simulated days (default ``config.horizon_days``)
        today: Day zero of the run; defaults to ``date.today()``
        config: Engine thresholds (default ``SimulationConfig()``)

    Returns:
        SimulationResults with one DailyResult per day, date-ascending

    Example:
        ```python
        from datetime import date
        from cashflowlab import Snapshot, simulate

        results = simulate(snapshot, horizon_days=365, today=date(2026, 1, 1))
        results[-1].aggregate_cash
        ```
    """
    config = config or SimulationConfig()
    horizon = config.horizon_days if horizon_days is None else max(int(horizon_days), 0)
    start = today if today is not None else date.today()
    ctx = SimulationContext(
        start=start, horizon_days=horizon, settings=snapshot.settings, config=config
    )

    logger.debug("Simulating %d days from %s", horizon, start.isoformat())
    events = collect_events(snapshot, ctx)
    loop_entities = [e.id for e in snapshot.entities]
    flows = materialize(events, loop_entities, ctx)
    days = _DailyLoop(snapshot, ctx, flows).run()
    logger.debug("Simulation finished: %d days, %d events", len(days), len(events))

    names = {e.id: e.name for e in snapshot.entities}
    return SimulationResults(
        days=tuple(days),
        entity_ids=tuple(dict.fromkeys(loop_entities)),
        entity_names=names,
    )
