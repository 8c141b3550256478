"""
Tests for snapshot validation reports.
"""

from datetime import date

import pytest
from cashflowlab.core.exceptions import SnapshotValidationError
from cashflowlab.core.kinds import Cat, TxKind
from cashflowlab.core.records import Account, Entity, Milestone, Snapshot, Transaction
from cashflowlab.core.validation import find_cycles, validate_snapshot


def _deal(amount: float, milestone_amounts: list[float]) -> Transaction:
    return Transaction(
        id="deal",
        entity_id="a",
        kind=TxKind.EXPENSE,
        category=Cat.ASSET_PURCHASE,
        description="Land",
        date=date(2026, 1, 1),
        amount=amount,
        milestones=tuple(
            Milestone(id=f"m{i}", description=f"Step {i}", amount=x, date=date(2026, 1 + i, 1))
            for i, x in enumerate(milestone_amounts)
        ),
    )


def test_clean_snapshot_passes():
    snapshot = Snapshot(
        entities=(Entity("a", "A"), Entity("b", "B", parent_id="a", ownership_percentage=60)),
        accounts=(Account("acc", "b"),),
        transactions=(_deal(1000.0, [400.0, 600.0]),),
    )
    report = validate_snapshot(snapshot)
    assert report.is_valid()
    assert not report.has_warnings()
    assert report.get_exit_code() == 0
    assert str(report).startswith("✅ Validation passed")


def test_cycles_are_reported_once():
    assert find_cycles({"a": "b", "b": "a", "c": "a"}) == [["a", "b"]]
    assert find_cycles({"a": None, "b": "a"}) == []
    assert find_cycles({"x": "x"}) == [["x"]]


def test_errors():
    snapshot = Snapshot(
        entities=(
            Entity("a", "A", parent_id="b"),
            Entity("b", "B", parent_id="a"),
            Entity("c", "C", parent_id="ghost"),
            Entity("c", "C again"),
        ),
        accounts=(Account("acc-x", "nobody"),),
    )
    report = validate_snapshot(snapshot)
    assert report.cycles == [["a", "b"]]
    assert report.unknown_parents == {"c": "ghost"}
    assert report.unknown_refs == ["acc-x"]
    assert report.id_conflicts == ["c"]
    assert report.get_exit_code() == 1
    assert "❌ Validation failed" in str(report)
    assert set(report.problem_ids()) == {"a", "b", "c", "acc-x"}


def test_intercompany_target_must_exist():
    tx = Transaction(
        id="ic",
        entity_id="a",
        kind=TxKind.EXPENSE,
        category=Cat.INTERCOMPANY_SETTLEMENT,
        description="Recharge",
        date=date(2026, 1, 1),
        amount=10.0,
        is_intercompany=True,
        target_entity_id="zzz",
    )
    report = validate_snapshot(Snapshot(entities=(Entity("a", "A"),), transactions=(tx,)))
    assert report.unknown_refs == ["ic"]


def test_warnings_only():
    snapshot = Snapshot(
        entities=(Entity("a", "A"), Entity("b", "B", parent_id="a", ownership_percentage=150)),
        transactions=(_deal(1000.0, [400.0, 500.0]),),
    )
    report = validate_snapshot(snapshot)
    assert report.is_valid()
    assert report.milestone_mismatches == {"deal": pytest.approx(-100.0)}
    assert report.ownership_out_of_range == ["b"]
    assert report.get_exit_code() == 2
    assert report.to_dict()["exit_code"] == 2


def test_raise_mode():
    snapshot = Snapshot(entities=(Entity("a", "A", parent_id="a"),))
    with pytest.raises(SnapshotValidationError) as excinfo:
        validate_snapshot(snapshot, mode="raise")
    assert str(excinfo.value).startswith("[Snapshot] Snapshot validation failed")
    assert excinfo.value.problem_ids == ["a"]
    assert excinfo.value.report.cycles == [["a"]]


def test_warn_mode_logs(caplog):
    snapshot = Snapshot(entities=(Entity("c", "C", parent_id="ghost"),))
    with caplog.at_level("WARNING", logger="cashflowlab.core.validation"):
        validate_snapshot(snapshot, mode="warn")
    assert "unknown parent 'ghost'" in caplog.text


def test_unknown_mode():
    with pytest.raises(ValueError):
        validate_snapshot(Snapshot(), mode="strict")
