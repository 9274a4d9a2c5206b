"""Target graph construction and execution-plan resolution.

``TargetGraph`` is built once from a ``TargetRegistry`` and never changes
afterwards. It checks that every referenced target exists and that hard
dependencies and triggers form a DAG, then resolves requested targets into a
deterministic execution order using ``graphlib.TopologicalSorter``.
"""

import heapq
from collections.abc import Iterator
from dataclasses import dataclass
from graphlib import CycleError, TopologicalSorter
from types import MappingProxyType

import structlog

from targetflow.graph.target import Target, TargetRegistry

logger = structlog.get_logger(__name__)


class CycleDetectedError(Exception):
    """Exception raised when a cycle is detected in the target graph.

    Attributes:
        message: Description of the error
        cycle: Target names forming the cycle, first and last equal
    """

    def __init__(self, message: str, cycle: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.cycle = cycle or []


class UnknownTargetError(ValueError):
    """Raised for a reference to a target that was never declared."""

    def __init__(self, name: str, referenced_by: str | None = None, known: list[str] | None = None):
        if referenced_by:
            message = f"Target '{referenced_by}' references unknown target '{name}'"
        else:
            message = f"Unknown target '{name}'"
        if known is not None:
            message += f". Known targets: {', '.join(known)}"
        super().__init__(message)
        self.message = message
        self.name = name
        self.referenced_by = referenced_by


@dataclass(frozen=True)
class ExecutionPlan:
    """Resolved execution order for one request.

    Attributes:
        requested: Targets that were asked for
        order: Every scheduled target, dependencies first
    """

    requested: tuple[str, ...]
    order: tuple[str, ...]

    def __iter__(self) -> Iterator[str]:
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, name: object) -> bool:
        return name in self.order

    def index(self, name: str) -> int:
        return self.order.index(name)


def _cycle_message(cycle: list[str]) -> str:
    return "Cycle detected in target graph: " + " -> ".join(cycle)


class TargetGraph:
    """Immutable graph of declared targets.

    Example:
        >>> registry = TargetRegistry()
        >>> registry.add(Target("Restore"))
        >>> registry.add(Target("Compile", depends_on=("Restore",)))
        >>> registry.add(Target("Test", depends_on=("Compile",)))
        >>> TargetGraph(registry).resolve("Test").order
        ('Restore', 'Compile', 'Test')
    """

    def __init__(self, registry: TargetRegistry | list[Target]):
        """Build and validate the graph.

        Args:
            registry: Declared targets, in declaration order

        Raises:
            UnknownTargetError: If a target references an undeclared name
            CycleDetectedError: If hard dependencies and triggers form a cycle
        """
        targets = {target.name: target for target in registry}
        self._targets = MappingProxyType(targets)
        self._trigger_sources: dict[str, set[str]] = {name: set() for name in targets}
        self._triggered: dict[str, list[str]] = {name: [] for name in targets}
        self._soft_predecessors: dict[str, set[str]] = {name: set() for name in targets}

        known = list(targets)
        for target in targets.values():
            for ref in sorted(target.references()):
                if ref not in targets:
                    logger.error("unknown_target_reference", build_target=target.name, reference=ref)
                    raise UnknownTargetError(ref, referenced_by=target.name, known=known)

        for target in targets.values():
            for source in target.triggered_by:
                self._link_trigger(source, target.name)
            for triggered in target.triggers:
                self._link_trigger(target.name, triggered)
            self._soft_predecessors[target.name].update(target.after)
            for successor in target.before:
                self._soft_predecessors[successor].add(target.name)

        self._check_acyclic()

        logger.debug(
            "target_graph_built",
            target_count=len(targets),
            dependency_count=sum(len(t.depends_on) for t in targets.values()),
        )

    def _link_trigger(self, source: str, triggered: str) -> None:
        if source not in self._trigger_sources[triggered]:
            self._trigger_sources[triggered].add(source)
            self._triggered[source].append(triggered)

    def _check_acyclic(self) -> None:
        try:
            TopologicalSorter(self.hard_graph()).prepare()
        except CycleError as e:
            cycle = list(e.args[1]) if len(e.args) > 1 else []
            logger.error("cycle_detected_in_graph", cycle=cycle)
            raise CycleDetectedError(_cycle_message(cycle), cycle=cycle) from e

    @property
    def targets(self) -> MappingProxyType:
        """Read-only mapping of target name to descriptor."""
        return self._targets

    def names(self) -> list[str]:
        """Target names in declaration order."""
        return list(self._targets)

    def __contains__(self, name: object) -> bool:
        return name in self._targets

    def __getitem__(self, name: str) -> Target:
        return self._targets[name]

    def __len__(self) -> int:
        return len(self._targets)

    def hard_graph(self) -> dict[str, set[str]]:
        """Map each target to the targets that must run before it.

        Covers hard dependencies and trigger sources, the relation that must
        be acyclic for the whole graph.
        """
        return {
            name: set(target.depends_on) | self._trigger_sources[name]
            for name, target in self._targets.items()
        }

    def triggered_by(self, name: str) -> set[str]:
        """Targets whose scheduling schedules ``name``."""
        return set(self._trigger_sources[name])

    def soft_predecessors(self, name: str) -> set[str]:
        """Targets ordered before ``name`` when both are scheduled."""
        return set(self._soft_predecessors[name])

    def resolve(self, *requested: str) -> ExecutionPlan:
        """Resolve requested targets into an execution order.

        Hard dependencies are followed depth-first, recording a post-order.
        Triggers then add every target whose trigger source is scheduled,
        together with its own dependencies, until nothing changes. Finally a
        topological sort over hard, trigger and soft-ordering edges orders the
        scheduled set, always picking the ready target earliest in the
        post-order.

        Args:
            *requested: One or more target names

        Returns:
            ExecutionPlan with each scheduled target exactly once

        Raises:
            ValueError: If no target is requested
            UnknownTargetError: If a requested target is not declared
            CycleDetectedError: If soft ordering contradicts the hard order
        """
        if not requested:
            msg = "At least one target must be requested"
            raise ValueError(msg)
        for name in requested:
            if name not in self._targets:
                raise UnknownTargetError(name, known=self.names())

        post_order: list[str] = []
        visited: set[str] = set()

        def visit(root: str) -> None:
            if root in visited:
                return
            visited.add(root)
            stack = [(root, iter(self._targets[root].depends_on))]
            while stack:
                name, dependencies = stack[-1]
                for dependency in dependencies:
                    if dependency not in visited:
                        visited.add(dependency)
                        stack.append((dependency, iter(self._targets[dependency].depends_on)))
                        break
                else:
                    stack.pop()
                    post_order.append(name)

        for name in requested:
            visit(name)

        changed = True
        while changed:
            changed = False
            for source in list(post_order):
                for triggered in self._triggered[source]:
                    if triggered not in visited:
                        visit(triggered)
                        changed = True

        rank = {name: i for i, name in enumerate(post_order)}
        scheduled = set(post_order)
        constraints: dict[str, set[str]] = {}
        for name in post_order:
            predecessors = set(self._targets[name].depends_on)
            predecessors |= self._trigger_sources[name] & scheduled
            predecessors |= self._soft_predecessors[name] & scheduled
            constraints[name] = predecessors

        sorter = TopologicalSorter(constraints)
        try:
            sorter.prepare()
        except CycleError as e:
            cycle = list(e.args[1]) if len(e.args) > 1 else []
            logger.error("ordering_cycle_detected", cycle=cycle, requested=list(requested))
            raise CycleDetectedError(_cycle_message(cycle), cycle=cycle) from e

        order: list[str] = []
        ready: list[tuple[int, str]] = []
        while sorter.is_active():
            for name in sorter.get_ready():
                heapq.heappush(ready, (rank[name], name))
            _, name = heapq.heappop(ready)
            order.append(name)
            sorter.done(name)

        plan = ExecutionPlan(requested=tuple(requested), order=tuple(order))
        logger.debug("execution_plan_resolved", requested=list(requested), order=list(order))
        return plan
