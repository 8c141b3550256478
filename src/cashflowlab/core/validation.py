"""
Validation system for CashFlowLab snapshots.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .exceptions import SnapshotValidationError
from .records import Snapshot

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    """
    Structured validation report for a domain snapshot.

    Provides machine-readable validation results with clear error/warning
    categorization for CI/CD integration and user feedback. The engine does
    not need a clean report to run; this is the data-entry check the
    surrounding application performs.
    """

    cycles: list[list[str]] = None
    unknown_parents: dict[str, str] = None
    unknown_refs: list[str] = None
    id_conflicts: list[str] = None
    milestone_mismatches: dict[str, float] = None
    ownership_out_of_range: list[str] = None

    def __post_init__(self):
        """Initialize default empty lists/dicts."""
        if self.cycles is None:
            self.cycles = []
        if self.unknown_parents is None:
            self.unknown_parents = {}
        if self.unknown_refs is None:
            self.unknown_refs = []
        if self.id_conflicts is None:
            self.id_conflicts = []
        if self.milestone_mismatches is None:
            self.milestone_mismatches = {}
        if self.ownership_out_of_range is None:
            self.ownership_out_of_range = []

    def has_errors(self) -> bool:
        """Check if there are any hard errors (cycles, dangling references, conflicts)."""
        return bool(
            self.cycles or self.unknown_parents or self.unknown_refs or self.id_conflicts
        )

    def has_warnings(self) -> bool:
        """Check if there are any warnings (milestone totals, ownership range)."""
        return bool(self.milestone_mismatches or self.ownership_out_of_range)

    def is_valid(self) -> bool:
        """Check if validation passed (no errors, warnings are OK)."""
        return not self.has_errors()

    def problem_ids(self) -> list[str]:
        ids: list[str] = []
        for cycle in self.cycles:
            ids.extend(cycle)
        ids.extend(self.unknown_parents)
        ids.extend(self.unknown_refs)
        ids.extend(self.id_conflicts)
        return list(dict.fromkeys(ids))

    def get_exit_code(self) -> int:
        """
        Get appropriate CLI exit code.

        Returns:
            0: Valid (no errors)
            1: Errors present
            2: Warnings only
        """
        if self.has_errors():
            return 1
        elif self.has_warnings():
            return 2
        else:
            return 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "cycles": self.cycles,
            "unknown_parents": self.unknown_parents,
            "unknown_refs": self.unknown_refs,
            "id_conflicts": self.id_conflicts,
            "milestone_mismatches": self.milestone_mismatches,
            "ownership_out_of_range": self.ownership_out_of_range,
            "has_errors": self.has_errors(),
            "has_warnings": self.has_warnings(),
            "is_valid": self.is_valid(),
            "exit_code": self.get_exit_code(),
        }

    def __str__(self) -> str:
        """Human-readable string representation."""
        lines = []

        if self.is_valid():
            lines.append("✅ Validation passed")
        else:
            lines.append("❌ Validation failed")

        for cycle in self.cycles:
            lines.append(f"Cycle detected: {' → '.join(cycle)} → {cycle[0]}")

        for entity_id, parent_id in self.unknown_parents.items():
            lines.append(f"Entity '{entity_id}' has unknown parent '{parent_id}'")

        if self.unknown_refs:
            lines.append(f"Unknown entity references: {', '.join(self.unknown_refs)}")

        if self.id_conflicts:
            lines.append(f"ID conflicts: {', '.join(self.id_conflicts)}")

        for tx_id, diff in self.milestone_mismatches.items():
            lines.append(f"Milestones of '{tx_id}' differ from the total by {diff:,.2f}")

        if self.ownership_out_of_range:
            lines.append(
                f"Ownership outside 0..100: {', '.join(self.ownership_out_of_range)}"
            )

        return "\n".join(lines)


def find_cycles(parents: dict[str, str | None]) -> list[list[str]]:
    """Return each parent cycle once, starting from its smallest id."""
    cycles: list[list[str]] = []
    seen_cycles: set[frozenset[str]] = set()
    for start in parents:
        path: list[str] = []
        node = start
        while node is not None and node in parents and node not in path:
            path.append(node)
            node = parents[node]
        if node is not None and node in path:
            cycle = path[path.index(node):]
            key = frozenset(cycle)
            if key not in seen_cycles:
                seen_cycles.add(key)
                pivot = cycle.index(min(cycle))
                cycles.append(cycle[pivot:] + cycle[:pivot])
    return cycles


def validate_snapshot(
    snapshot: Snapshot, mode: str = "report", tol: float = 0.01
) -> ValidationReport:
    """
    Check a snapshot's structural invariants.

    Args:
        snapshot: Snapshot to inspect
        mode: ``"report"`` returns the report, ``"warn"`` also logs each
            problem, ``"raise"`` raises SnapshotValidationError on errors
        tol: Absolute tolerance for milestone totals

    Returns:
        The ValidationReport

    Raises:
        SnapshotValidationError: If ``mode="raise"`` and errors were found
        ValueError: If ``mode`` is unknown
    """
    if mode not in ("report", "warn", "raise"):
        raise ValueError(f"Unknown validation mode: {mode!r}")

    report = ValidationReport()
    ids = [e.id for e in snapshot.entities]
    known = set(ids)

    seen: set[str] = set()
    for entity_id in ids:
        if entity_id in seen and entity_id not in report.id_conflicts:
            report.id_conflicts.append(entity_id)
        seen.add(entity_id)

    parents = {e.id: e.parent_id for e in snapshot.entities}
    report.cycles = find_cycles(parents)
    for ent in snapshot.entities:
        if ent.parent_id and ent.parent_id not in known:
            report.unknown_parents[ent.id] = ent.parent_id
        if not 0 <= ent.ownership_percentage <= 100:
            report.ownership_out_of_range.append(ent.id)

    def _check(record_id: str, entity_id: str | None):
        if entity_id and entity_id not in known and record_id not in report.unknown_refs:
            report.unknown_refs.append(record_id)

    for group in (
        snapshot.accounts,
        snapshot.loans,
        snapshot.leases,
        snapshot.guarantees,
        snapshot.budgets,
        snapshot.tasks,
    ):
        for record in group:
            _check(record.id, record.entity_id)
    for tx in snapshot.transactions:
        _check(tx.id, tx.entity_id)
        if tx.is_intercompany:
            _check(tx.id, tx.target_entity_id)
        if tx.has_milestones:
            diff = sum(m.amount for m in tx.milestones) - tx.amount
            if abs(diff) > tol:
                report.milestone_mismatches[tx.id] = diff

    if mode == "warn":
        for line in str(report).splitlines()[1:]:
            logger.warning(line)
    elif mode == "raise" and report.has_errors():
        raise SnapshotValidationError(
            "Snapshot validation failed", report=report, problem_ids=report.problem_ids()
        )
    return report
