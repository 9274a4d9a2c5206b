"""Orchestrator module for target execution.

BuildRunner resolves and sequences targets, TargetExecutor runs a single
target action and ResultManager collects the outcome of each.
"""

from targetflow.orchestrator.orchestrator import BuildRunner, ConfigurationError, TargetFailedError
from targetflow.orchestrator.result_manager import ResultManager, TargetResult, TargetStatus
from targetflow.orchestrator.target_executor import TargetExecutor

__all__ = [
    "BuildRunner",
    "ConfigurationError",
    "ResultManager",
    "TargetExecutor",
    "TargetFailedError",
    "TargetResult",
    "TargetStatus",
]
