"""
Tests for the daily simulation loop.
"""

from datetime import date

import pytest
from cashflowlab.core.config import SimulationConfig
from cashflowlab.core.engine import balance_with_credit, hierarchy_depth, simulate
from cashflowlab.core.kinds import Cat, DayMode, Frequency, LedgerClass, LedgerKind, TxKind
from cashflowlab.core.records import (
    Account,
    Entity,
    GlobalSettings,
    Snapshot,
    Transaction,
)

TODAY = date(2026, 1, 1)


def _tx(tx_id, entity_id, kind, amount, on, category=Cat.CUSTOMERS, **kwargs):
    return Transaction(
        id=tx_id,
        entity_id=entity_id,
        kind=kind,
        category=category,
        description=kwargs.pop("description", tx_id),
        date=on,
        amount=amount,
        **kwargs,
    )


def _make_snapshot(transactions=(), accounts=None, entities=None, **kwargs):
    entities = entities or (Entity("e", "Entity"),)
    accounts = accounts if accounts is not None else (Account("acc", "e", opening_balance=1000.0),)
    return Snapshot(
        entities=entities,
        accounts=accounts,
        transactions=tuple(transactions),
        settings=kwargs.pop("settings", GlobalSettings(prime_rate=6.0, vat_rate=17.0)),
        **kwargs,
    )


def _rows(results, description):
    return [
        (day.date, row)
        for day in results
        for row in day.rows
        if row.description == description
    ]


class TestBalanceWithCredit:
    def test_draw_capped_by_unused_limit(self):
        move = balance_with_credit(cash=-5000.0, target=0.0, limit=3000.0, utilization=1000.0)
        assert move.action == "draw"
        assert move.amount == 2000.0
        assert move.cash == -3000.0
        assert move.utilization == 3000.0

    def test_repay_capped_by_utilization(self):
        move = balance_with_credit(cash=900.0, target=100.0, limit=5000.0, utilization=300.0)
        assert move.action == "repay"
        assert move.amount == 300.0
        assert move.cash == 600.0
        assert move.utilization == 0.0

    def test_second_pass_is_a_no_op(self):
        first = balance_with_credit(-500.0, 0.0, 10_000.0, 0.0)
        second = balance_with_credit(first.cash, 0.0, 10_000.0, first.utilization)
        assert second.action == "none"
        assert second.amount == 0.0

    def test_no_limit_no_move(self):
        move = balance_with_credit(-500.0, 0.0, 0.0, 0.0)
        assert move.action == "none"
        assert move.cash == -500.0


class TestBasics:
    def test_horizon_and_dates(self):
        results = simulate(_make_snapshot(), horizon_days=45, today=TODAY)
        assert len(results) == 45
        assert results.start == TODAY
        assert results[-1].date == date(2026, 2, 14)
        assert all(day.balances["e"] == 1000.0 for day in results)
        assert results.index_of(date(2026, 1, 11)) == 10
        assert results.index_of(date(2027, 1, 1)) is None

    def test_zero_horizon(self):
        results = simulate(_make_snapshot(), horizon_days=0, today=TODAY)
        assert len(results) == 0
        assert results.start is None

    def test_default_horizon_comes_from_config(self):
        results = simulate(
            _make_snapshot(), today=TODAY, config=SimulationConfig(horizon_days=12)
        )
        assert len(results) == 12

    def test_accounts_are_pooled(self):
        snapshot = _make_snapshot(
            accounts=(
                Account("a1", "e", opening_balance=700.0),
                Account("a2", "e", opening_balance=-200.0),
            )
        )
        results = simulate(snapshot, horizon_days=1, today=TODAY)
        assert results[0].balances["e"] == 500.0
        assert results[0].aggregate_cash == 500.0

    def test_entity_without_accounts_starts_at_zero(self):
        snapshot = _make_snapshot(accounts=())
        results = simulate(snapshot, horizon_days=3, today=TODAY)
        assert [d.balances["e"] for d in results] == [0.0, 0.0, 0.0]

    def test_signs_and_vat_gross_up(self):
        snapshot = _make_snapshot(
            [
                _tx("in", "e", TxKind.INCOME, 100.0, date(2026, 1, 2), includes_vat=True),
                _tx("out", "e", TxKind.EXPENSE, 50.0, date(2026, 1, 3), Cat.SUPPLIERS),
                _tx("fin", "e", TxKind.FINANCIAL, 20.0, date(2026, 1, 3), Cat.BANKS),
            ]
        )
        results = simulate(snapshot, horizon_days=5, today=TODAY)
        assert results[1].balances["e"] == pytest.approx(1117.0)
        assert results[2].balances["e"] == pytest.approx(1047.0)
        assert results[1].rows[0].includes_vat
        assert results[2].rows[1].kind is LedgerKind.FINANCIAL

    def test_inactive_and_out_of_window_transactions_are_ignored(self):
        snapshot = _make_snapshot(
            [
                _tx("old", "e", TxKind.EXPENSE, 10.0, date(2025, 12, 31)),
                _tx("late", "e", TxKind.EXPENSE, 10.0, date(2026, 1, 10)),
                _tx("off", "e", TxKind.EXPENSE, 10.0, date(2026, 1, 2), is_active=False),
            ]
        )
        results = simulate(snapshot, horizon_days=9, today=TODAY)
        assert all(not day.rows for day in results)

    def test_recurring_transaction_books_every_month(self):
        snapshot = _make_snapshot(
            [
                _tx(
                    "salary",
                    "e",
                    TxKind.EXPENSE,
                    100.0,
                    date(2025, 11, 30),
                    Cat.SALARIES,
                    is_recurring=True,
                    frequency=Frequency.MONTHLY,
                    day_mode=DayMode.LAST_DAY,
                )
            ]
        )
        results = simulate(snapshot, horizon_days=90, today=TODAY)
        booked = [on for on, _ in _rows(results, "salary")]
        assert booked == [date(2026, 1, 31), date(2026, 2, 28), date(2026, 3, 31)]


class TestPurity:
    def test_snapshot_is_not_modified(self):
        snapshot = _make_snapshot(
            [_tx("x", "e", TxKind.EXPENSE, 5000.0, date(2026, 1, 5))],
            accounts=(Account("acc", "e", opening_balance=0.0, credit_limit=10_000.0),),
        )
        before = snapshot.to_dict()
        simulate(snapshot, horizon_days=60, today=TODAY)
        assert snapshot.to_dict() == before

    def test_same_inputs_same_results(self):
        snapshot = _make_snapshot(
            [
                _tx(
                    "rent",
                    "e",
                    TxKind.INCOME,
                    800.0,
                    date(2026, 1, 3),
                    Cat.RENT,
                    is_recurring=True,
                    includes_vat=True,
                )
            ]
        )
        first = simulate(snapshot, horizon_days=120, today=TODAY)
        second = simulate(snapshot, horizon_days=120, today=TODAY)
        assert first.to_records() == second.to_records()

    def test_results_are_read_only(self):
        results = simulate(_make_snapshot(), horizon_days=1, today=TODAY)
        with pytest.raises(TypeError):
            results[0].balances["e"] = 0.0


class TestCreditLine:
    def test_draw_interest_and_redraw(self):
        snapshot = _make_snapshot(
            accounts=(
                Account("acc", "e", opening_balance=-5000.0, credit_limit=10_000.0),
            )
        )
        results = simulate(snapshot, horizon_days=20, today=date(2026, 1, 15))

        day0 = results[0]
        assert day0.balances["e"] == 0.0
        assert day0.credit_util["e"] == 5000.0
        assert day0.rows[0].description == "Credit line draw"
        assert day0.rows[0].ledger_class is LedgerClass.CREDIT_BALANCING

        feb1 = results[results.index_of(date(2026, 2, 1))]
        interest = [r for r in feb1.rows if r.description == "Credit line interest"]
        assert interest[0].amount == pytest.approx(-25.0)
        assert interest[0].category == Cat.BANK_INTEREST
        assert feb1.credit_util["e"] == pytest.approx(5025.0)
        assert feb1.balances["e"] == pytest.approx(0.0)

    def test_surplus_repays_line(self):
        snapshot = _make_snapshot(
            [_tx("sale", "e", TxKind.INCOME, 3000.0, date(2026, 1, 3))],
            accounts=(
                Account(
                    "acc",
                    "e",
                    opening_balance=0.0,
                    credit_limit=10_000.0,
                    current_credit_util=2000.0,
                ),
            ),
        )
        results = simulate(snapshot, horizon_days=5, today=date(2026, 1, 2))
        repay = _rows(results, "Credit line repayment")
        assert [(on, row.amount) for on, row in repay] == [(date(2026, 1, 3), -2000.0)]
        assert results[-1].balances["e"] == 1000.0
        assert results[-1].credit_util["e"] == 0.0

    def test_spread_from_main_account(self):
        snapshot = _make_snapshot(
            accounts=(
                Account("small", "e", credit_limit=1000.0, interest_spread=9.0),
                Account(
                    "main",
                    "e",
                    credit_limit=20_000.0,
                    current_credit_util=12_000.0,
                    opening_balance=12_000.0,
                    interest_spread=2.0,
                ),
            )
        )
        results = simulate(snapshot, horizon_days=1, today=date(2026, 3, 1))
        interest = _rows(results, "Credit line interest")[0][1]
        assert interest.amount == pytest.approx(-12_000.0 * 8.0 / 1200.0)
        assert interest.account_id == "main"

    def test_zero_spread_charges_prime_only(self):
        snapshot = _make_snapshot(
            accounts=(
                Account(
                    "main",
                    "e",
                    credit_limit=20_000.0,
                    current_credit_util=12_000.0,
                    opening_balance=12_000.0,
                    interest_spread=0.0,
                ),
            )
        )
        results = simulate(snapshot, horizon_days=1, today=date(2026, 3, 1))
        interest = _rows(results, "Credit line interest")[0][1]
        assert interest.amount == pytest.approx(-12_000.0 * 6.0 / 1200.0)


class TestVat:
    def test_monthly_settlement_on_payment_day(self):
        snapshot = _make_snapshot(
            [
                _tx(
                    "sales",
                    "e",
                    TxKind.INCOME,
                    1000.0,
                    date(2025, 1, 5),
                    is_recurring=True,
                    includes_vat=True,
                )
            ]
        )
        results = simulate(snapshot, horizon_days=400, today=date(2025, 1, 1))
        payments = _rows(results, "VAT payment")
        assert payments[0][0] == date(2025, 2, 22)
        assert payments[-1][0] == date(2026, 1, 22)
        assert len(payments) == 12
        assert sum(row.amount for _, row in payments) == pytest.approx(-12 * 170.0)
        assert all(row.kind is LedgerKind.TAX for _, row in payments)

    def test_refund_next_month(self):
        snapshot = _make_snapshot(
            [
                _tx(
                    "build",
                    "e",
                    TxKind.EXPENSE,
                    10_000.0,
                    date(2026, 1, 10),
                    Cat.SUPPLIERS,
                    includes_vat=True,
                )
            ]
        )
        results = simulate(snapshot, horizon_days=80, today=TODAY)
        refunds = _rows(results, "VAT refund")
        assert refunds == [(date(2026, 3, 15), refunds[0][1])]
        assert refunds[0][1].amount == pytest.approx(1700.0)

    def test_small_positions_are_not_settled(self):
        snapshot = _make_snapshot(
            [_tx("tiny", "e", TxKind.INCOME, 5.0, date(2026, 1, 10), includes_vat=True)]
        )
        results = simulate(snapshot, horizon_days=60, today=TODAY)
        assert _rows(results, "VAT payment") == []

    def test_zero_vat_rate_is_honoured(self):
        snapshot = _make_snapshot(
            [_tx("in", "e", TxKind.INCOME, 100.0, date(2026, 1, 2), includes_vat=True)],
            settings=GlobalSettings(vat_rate=0.0),
        )
        results = simulate(snapshot, horizon_days=3, today=TODAY)
        assert results[-1].balances["e"] == 1100.0


class TestTaxAdvances:
    def test_advance_on_month_to_date_revenue(self):
        snapshot = _make_snapshot(
            [
                _tx(
                    "fees",
                    "e",
                    TxKind.INCOME,
                    1000.0,
                    date(2026, 1, 5),
                    is_recurring=True,
                    includes_vat=True,
                )
            ],
            entities=(
                Entity("e", "Entity", has_tax_advances=True, tax_advance_rate=10.0),
            ),
        )
        results = simulate(snapshot, horizon_days=50, today=TODAY)
        advances = _rows(results, "Income tax advance")
        assert [on for on, _ in advances] == [date(2026, 1, 15), date(2026, 2, 15)]
        assert advances[0][1].amount == pytest.approx(-100.0)
        assert advances[0][1].ledger_class is LedgerClass.INCOME_TAX

    def test_no_advance_without_flag(self):
        snapshot = _make_snapshot(
            [_tx("fees", "e", TxKind.INCOME, 1000.0, date(2026, 1, 5))],
            entities=(Entity("e", "Entity", tax_advance_rate=10.0),),
        )
        results = simulate(snapshot, horizon_days=20, today=TODAY)
        assert _rows(results, "Income tax advance") == []


class TestIntercompany:
    def _entities(self):
        return (Entity("a", "A"), Entity("b", "B"))

    def test_counter_leg_mirrors_amount(self):
        snapshot = _make_snapshot(
            [
                _tx(
                    "fee",
                    "a",
                    TxKind.EXPENSE,
                    500.0,
                    TODAY,
                    Cat.MANAGEMENT_FEES,
                    description="Management fee",
                    is_intercompany=True,
                    target_entity_id="b",
                )
            ],
            entities=self._entities(),
            accounts=(),
        )
        results = simulate(snapshot, horizon_days=1, today=TODAY)
        day = results[0]
        assert day.balances == {"a": -500.0, "b": 500.0}
        counter = [r for r in day.rows if r.entity_id == "b"][0]
        assert counter.description == "Counter: Management fee"
        assert counter.kind is LedgerKind.INTERCOMPANY
        assert counter.category == Cat.INTERCOMPANY
        assert day.aggregate_cash == 0.0

    def test_unknown_target_is_skipped(self, caplog):
        snapshot = _make_snapshot(
            [
                _tx(
                    "fee",
                    "a",
                    TxKind.EXPENSE,
                    500.0,
                    TODAY,
                    is_intercompany=True,
                    target_entity_id="ghost",
                )
            ],
            entities=self._entities(),
            accounts=(),
        )
        with caplog.at_level("WARNING", logger="cashflowlab.core.engine"):
            results = simulate(snapshot, horizon_days=1, today=TODAY)
        assert results[0].balances == {"a": -500.0, "b": 0.0}
        assert "unknown entity ghost" in caplog.text


def test_non_finite_amount_is_booked_as_zero(caplog):
    snapshot = _make_snapshot(
        [_tx("bad", "e", TxKind.EXPENSE, float("inf"), date(2026, 1, 2))]
    )
    with caplog.at_level("WARNING", logger="cashflowlab.core.engine"):
        results = simulate(snapshot, horizon_days=3, today=TODAY)
    assert results[-1].balances["e"] == 1000.0
    assert "Non-finite event amount" in caplog.text


def test_hierarchy_depth():
    parents = {"h": None, "o": "h", "s": "o", "x": "missing", "c1": "c2", "c2": "c1"}
    assert hierarchy_depth("h", parents) == 0
    assert hierarchy_depth("s", parents) == 2
    assert hierarchy_depth("x", parents) == 0
    assert hierarchy_depth("c1", parents) == 1
