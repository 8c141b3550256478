"""
Custom exceptions for CashFlowLab.

Raised only on request: the engine itself never refuses a snapshot, but the
data-entry layer can ask ``validate_snapshot`` to fail loudly.
"""

from __future__ import annotations

PREVIEW_IDS = 10


class SnapshotValidationError(Exception):
    """
    Raised by ``validate_snapshot(..., mode="raise")`` when hard errors exist.

    Attributes:
        report: The ValidationReport that failed
        problem_ids: Entity and record ids named by the report's errors
    """

    def __init__(self, message: str, report=None, problem_ids: list[str] | None = None):
        self.report = report
        self.problem_ids = list(problem_ids or [])
        super().__init__(self._describe(message))

    def _describe(self, message: str) -> str:
        parts = [f"[Snapshot] {message}"]
        if self.report is not None:
            counts = {
                "cycles": len(self.report.cycles),
                "unknown parents": len(self.report.unknown_parents),
                "unknown refs": len(self.report.unknown_refs),
                "id conflicts": len(self.report.id_conflicts),
            }
            parts.append(", ".join(f"{n} {label}" for label, n in counts.items() if n))
        if self.problem_ids:
            shown = ", ".join(self.problem_ids[:PREVIEW_IDS])
            hidden = len(self.problem_ids) - PREVIEW_IDS
            if hidden > 0:
                shown += f" (+{hidden} more)"
            parts.append(f"ids: [{shown}]")
        return " | ".join(p for p in parts if p)
