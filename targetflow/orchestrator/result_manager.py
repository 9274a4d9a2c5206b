"""Target result collection and reporting.

Results are stored in execution-plan order so that the summary table reads
top to bottom in the order targets ran.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any


class TargetStatus(Enum):
    """Outcome of a scheduled target."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    NOT_RUN = "not_run"


@dataclass
class TargetResult:
    """Structured result data for one scheduled target.

    Attributes:
        target: Target name
        status: Outcome
        start_time: When the action started (None if it never ran)
        end_time: When the action finished (None if it never ran)
        duration_seconds: Time spent in the action
        error: Error message for failed targets
        error_type: Exception class name for failed targets
        exception: The exception raised by the action, not exported
    """

    target: str
    status: TargetStatus
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration_seconds: float = 0.0
    error: str | None = None
    error_type: str | None = None
    exception: BaseException | None = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "status": self.status.value,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": self.duration_seconds,
            "error": self.error,
            "error_type": self.error_type,
        }


class ResultManager:
    """Storage, summary and export of target results."""

    def __init__(self) -> None:
        self.results: dict[str, TargetResult] = {}

    def add_result(self, result: TargetResult) -> None:
        """Store a result, replacing an earlier one for the same target."""
        self.results[result.target] = result

    def get_result(self, target: str) -> TargetResult | None:
        return self.results.get(target)

    def get_all_results(self) -> list[TargetResult]:
        return list(self.results.values())

    def get_results_by_status(self, status: TargetStatus) -> list[TargetResult]:
        return [result for result in self.results.values() if result.status == status]

    def get_failed_targets(self) -> list[TargetResult]:
        return self.get_results_by_status(TargetStatus.FAILED)

    @property
    def succeeded(self) -> bool:
        """True when no target failed or was left unrun."""
        return not any(
            r.status in (TargetStatus.FAILED, TargetStatus.NOT_RUN) for r in self.results.values()
        )

    def get_summary(self) -> dict[str, Any]:
        """Generate an execution summary.

        Returns:
            Dictionary with per-status counts, total duration and overall
            success flag
        """
        counts = {status.value: 0 for status in TargetStatus}
        for result in self.results.values():
            counts[result.status.value] += 1

        return {
            "total_targets": len(self.results),
            **counts,
            "total_duration_seconds": sum(r.duration_seconds for r in self.results.values()),
            "build_succeeded": self.succeeded,
        }

    def format_table(self) -> str:
        """Render results as a plain-text summary table."""
        if not self.results:
            return "No targets were scheduled."

        name_width = max(len("Target"), *(len(name) for name in self.results))
        status_width = max(len("Status"), *(len(s.value) for s in TargetStatus))
        rule = "=" * (name_width + status_width + 16)

        lines = [
            rule,
            f"{'Target':<{name_width}}  {'Status':<{status_width}}  {'Duration':>10}",
            "-" * len(rule),
        ]
        for result in self.results.values():
            duration = f"{result.duration_seconds:.2f}s" if result.start_time else "-"
            lines.append(
                f"{result.target:<{name_width}}  {result.status.value:<{status_width}}  {duration:>10}",
            )
        total = self.get_summary()["total_duration_seconds"]
        lines.append("-" * len(rule))
        lines.append(f"{'Total':<{name_width}}  {'':<{status_width}}  {total:>9.2f}s")
        lines.append(rule)
        lines.append("Build succeeded" if self.succeeded else "Build failed")
        return "\n".join(lines)

    def export_json(self, filepath: str | Path) -> None:
        """Export summary and per-target results to a JSON file."""
        filepath = Path(filepath)
        data = {
            "summary": self.get_summary(),
            "results": [r.to_dict() for r in self.results.values()],
        }
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with filepath.open("w") as f:
            json.dump(data, f, indent=2, default=str)

    def clear(self) -> None:
        self.results.clear()
