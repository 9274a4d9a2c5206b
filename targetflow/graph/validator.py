"""Target declaration validation with detailed cycle reporting.

``TargetGraph`` stops at the first problem it finds. ``GraphValidator``
inspects a whole registry instead and collects every problem into a
``ValidationReport``, which the CLI prints before giving up. It also renders
the declared graph as Mermaid or Graphviz DOT.
"""

from dataclasses import dataclass, field

import structlog

from targetflow.graph.target import TargetRegistry

logger = structlog.get_logger(__name__)


@dataclass
class ValidationReport:
    """Report containing validation results for a set of targets.

    Attributes:
        is_valid: Whether the declarations passed all checks
        errors: Error messages (the graph cannot be built)
        warnings: Warning messages (the graph works but looks suspicious)
        cycles: Detected cycles, each a list of target names
        missing_refs: Target names referenced but not declared
        idle_targets: Targets with neither an action nor dependencies
    """

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    missing_refs: set[str] = field(default_factory=set)
    idle_targets: set[str] = field(default_factory=set)

    def add_error(self, message: str) -> None:
        """Add an error message and mark validation as failed."""
        self.errors.append(message)
        self.is_valid = False
        logger.error("validation_error", message=message)

    def add_warning(self, message: str) -> None:
        """Add a warning message without failing validation."""
        self.warnings.append(message)
        logger.warning("validation_warning", message=message)

    def summary(self) -> str:
        """Generate a human-readable summary of the validation report."""
        lines = [
            f"Validation Status: {'PASS' if self.is_valid else 'FAIL'}",
            f"Errors: {len(self.errors)}",
            f"Warnings: {len(self.warnings)}",
        ]

        if self.errors:
            lines.append("\nErrors:")
            lines.extend(f"  - {error}" for error in self.errors)

        if self.warnings:
            lines.append("\nWarnings:")
            lines.extend(f"  - {warning}" for warning in self.warnings)

        return "\n".join(lines)


class GraphValidator:
    """Validator for target declarations.

    Checks performed:
    - every referenced target is declared
    - hard dependencies and triggers contain no cycle (with the cycle path)
    - targets that can never do anything
    """

    def __init__(self):
        self._visited: set[str] = set()
        self._rec_stack: set[str] = set()
        self._path: list[str] = []

    def validate(self, registry: TargetRegistry) -> ValidationReport:
        """Validate target declarations and generate a report."""
        logger.debug("starting_graph_validation", target_count=len(registry))

        report = ValidationReport()
        declared = set(registry.names())

        for target in registry:
            for ref in sorted(target.references() - declared):
                report.missing_refs.add(ref)
                report.add_error(f"Target '{target.name}' references unknown target '{ref}'")

        graph = self.ordering_graph(registry)
        cycles = self._detect_cycles(graph)
        for cycle in cycles:
            report.cycles.append(cycle)
            report.add_error(f"Cycle detected: {' -> '.join(cycle)}")

        for target in registry:
            if target.action is None and not target.depends_on and not target.triggers:
                report.idle_targets.add(target.name)
                report.add_warning(f"Target '{target.name}' has no action and no dependencies")

        return report

    @staticmethod
    def ordering_graph(registry: TargetRegistry) -> dict[str, set[str]]:
        """Map each declared target to its hard predecessors.

        Trigger edges count as predecessors; references to undeclared
        targets are dropped.
        """
        declared = set(registry.names())
        graph: dict[str, set[str]] = {name: set() for name in registry.names()}
        for target in registry:
            graph[target.name].update(d for d in target.depends_on if d in declared)
            graph[target.name].update(s for s in target.triggered_by if s in declared)
            for triggered in target.triggers:
                if triggered in declared:
                    graph[triggered].add(target.name)
        return graph

    def _detect_cycles(self, graph: dict[str, set[str]]) -> list[list[str]]:
        """Detect cycles using depth-first search.

        Returns:
            List of cycles, each a list of target names starting and ending
            with the same target
        """
        self._visited = set()
        self._rec_stack = set()
        self._path = []
        cycles = []

        for node in graph:
            if node not in self._visited:
                cycle = self._dfs_cycle_detect(node, graph)
                if cycle:
                    cycles.append(cycle)
                # abandoned paths leave stale entries behind
                self._rec_stack.clear()
                self._path.clear()

        return cycles

    def _enter(self, node: str) -> None:
        self._visited.add(node)
        self._rec_stack.add(node)
        self._path.append(node)

    def _dfs_cycle_detect(self, node: str, graph: dict[str, set[str]]) -> list[str] | None:
        self._enter(node)
        stack = [iter(sorted(graph.get(node, set())))]

        while stack:
            for dep in stack[-1]:
                if dep not in self._visited:
                    self._enter(dep)
                    stack.append(iter(sorted(graph.get(dep, set()))))
                    break
                if dep in self._rec_stack:
                    cycle_start_idx = self._path.index(dep)
                    return [*self._path[cycle_start_idx:], dep]
            else:
                stack.pop()
                self._rec_stack.remove(self._path.pop())

        return None

    def generate_visualization(self, registry: TargetRegistry, output_format: str = "mermaid") -> str:
        """Render the declared targets.

        Hard dependencies are drawn as solid edges, triggers as dotted edges
        and soft ordering as dashed edges, each pointing from the target
        that runs first.

        Args:
            registry: Declared targets
            output_format: 'mermaid' or 'dot'

        Raises:
            ValueError: If an unsupported format is requested
        """
        output_format = output_format.lower().strip()
        edges = self._edges(registry)

        if output_format == "mermaid":
            return self._generate_mermaid(registry.names(), edges)
        if output_format == "dot":
            return self._generate_graphviz(registry.names(), edges)
        msg = f"Unsupported format: {output_format}. Use 'mermaid' or 'dot'."
        raise ValueError(msg)

    @staticmethod
    def _edges(registry: TargetRegistry) -> list[tuple[str, str, str]]:
        edges: set[tuple[str, str, str]] = set()
        for target in registry:
            edges.update((dep, target.name, "depends") for dep in target.depends_on)
            edges.update((src, target.name, "trigger") for src in target.triggered_by)
            edges.update((target.name, dst, "trigger") for dst in target.triggers)
            edges.update((pred, target.name, "order") for pred in target.after)
            edges.update((target.name, succ, "order") for succ in target.before)
        return sorted(edges)

    @staticmethod
    def _generate_mermaid(names: list[str], edges: list[tuple[str, str, str]]) -> str:
        def node_id(name: str) -> str:
            return name.replace("-", "_").replace(".", "_").replace(" ", "_")

        lines = ["graph TD"]
        if not names:
            lines.append("    Empty[Empty Graph]")
            return "\n".join(lines)

        lines.extend(f"    {node_id(name)}[{name}]" for name in names)
        arrows = {"depends": "-->", "trigger": "-. triggers .->", "order": "-.->"}
        lines.extend(f"    {node_id(src)} {arrows[kind]} {node_id(dst)}" for src, dst, kind in edges)
        return "\n".join(lines)

    @staticmethod
    def _generate_graphviz(names: list[str], edges: list[tuple[str, str, str]]) -> str:
        def escape(s: str) -> str:
            return s.replace('"', '\\"')

        styles = {"depends": "solid", "trigger": "dotted", "order": "dashed"}
        lines = [
            "digraph Targets {",
            "    rankdir=LR;",
            "    node [shape=box, style=rounded];",
        ]
        if not names:
            lines.append('    Empty [label="Empty Graph"];')
        else:
            lines.extend(f'    "{escape(name)}";' for name in names)
            lines.extend(
                f'    "{escape(src)}" -> "{escape(dst)}" [style={styles[kind]}];'
                for src, dst, kind in edges
            )
        lines.append("}")
        return "\n".join(lines)
