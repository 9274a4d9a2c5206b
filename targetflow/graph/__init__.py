"""Graph module for target declaration, validation and ordering.

Targets are declared into a TargetRegistry, checked by GraphValidator and
turned into an immutable TargetGraph that resolves execution plans using
Python's built-in graphlib.
"""

from targetflow.graph.dependency_graph import (
    CycleDetectedError,
    ExecutionPlan,
    TargetGraph,
    UnknownTargetError,
)
from targetflow.graph.target import DuplicateTargetError, Target, TargetRegistry
from targetflow.graph.validator import GraphValidator, ValidationReport

__all__ = [
    "CycleDetectedError",
    "DuplicateTargetError",
    "ExecutionPlan",
    "GraphValidator",
    "Target",
    "TargetGraph",
    "TargetRegistry",
    "UnknownTargetError",
    "ValidationReport",
]
