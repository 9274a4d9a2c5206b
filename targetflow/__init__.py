"""targetflow: declarative build targets with dependency-ordered execution."""

from targetflow.config import BuildConfig, Configuration
from targetflow.graph import (
    CycleDetectedError,
    ExecutionPlan,
    GraphValidator,
    Target,
    TargetGraph,
    TargetRegistry,
    UnknownTargetError,
)
from targetflow.orchestrator import (
    BuildRunner,
    ConfigurationError,
    ResultManager,
    TargetFailedError,
    TargetStatus,
)
from targetflow.process import ProcessFailedError, run_process

__version__ = "0.1.0"

__all__ = [
    "BuildConfig",
    "BuildRunner",
    "Configuration",
    "ConfigurationError",
    "CycleDetectedError",
    "ExecutionPlan",
    "GraphValidator",
    "ProcessFailedError",
    "ResultManager",
    "Target",
    "TargetFailedError",
    "TargetGraph",
    "TargetRegistry",
    "TargetStatus",
    "UnknownTargetError",
    "run_process",
]
