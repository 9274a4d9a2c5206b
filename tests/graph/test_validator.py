"""Unit tests for GraphValidator.

Tests cover:
- Unknown target references
- Cycle detection with cycle paths
- Idle target warnings
- Mermaid and DOT rendering
"""

import pytest

from targetflow.graph.target import Target, TargetRegistry
from targetflow.graph.validator import GraphValidator, ValidationReport


def make_registry(*targets: Target) -> TargetRegistry:
    registry = TargetRegistry()
    for target in targets:
        registry.add(target)
    return registry


def noop(config):
    pass


@pytest.fixture
def validator():
    return GraphValidator()


class TestValidation:
    """Test collected validation problems."""

    def test_valid_registry(self, validator):
        """Test a well-formed pipeline passes."""
        registry = make_registry(
            Target("Restore", action=noop),
            Target("Compile", action=noop, depends_on=("Restore",)),
            Target("Test", action=noop, depends_on=("Compile",)),
        )

        report = validator.validate(registry)

        assert report.is_valid
        assert report.errors == []
        assert report.warnings == []

    def test_missing_reference(self, validator):
        """Test references to undeclared targets are errors."""
        registry = make_registry(
            Target("Compile", action=noop, depends_on=("Restore",), after=("Lint",)),
        )

        report = validator.validate(registry)

        assert not report.is_valid
        assert report.missing_refs == {"Restore", "Lint"}
        assert "Target 'Compile' references unknown target 'Restore'" in report.errors

    def test_cycle_path_reported(self, validator):
        """Test a dependency cycle is reported with its path."""
        registry = make_registry(
            Target("A", action=noop, depends_on=("B",)),
            Target("B", action=noop, depends_on=("A",)),
        )

        report = validator.validate(registry)

        assert not report.is_valid
        assert report.cycles == [["A", "B", "A"]]
        assert "Cycle detected: A -> B -> A" in report.errors

    def test_trigger_cycle_reported(self, validator):
        """Test that triggers count when looking for cycles."""
        registry = make_registry(
            Target("Compile", action=noop, depends_on=("Check",)),
            Target("Check", action=noop, triggered_by=("Compile",)),
        )

        report = validator.validate(registry)

        assert not report.is_valid
        assert len(report.cycles) == 1

    def test_soft_ordering_is_not_a_cycle(self, validator):
        """Test that mutual after-hints alone do not fail validation."""
        registry = make_registry(
            Target("A", action=noop, after=("B",)),
            Target("B", action=noop, after=("A",)),
        )

        assert validator.validate(registry).is_valid

    def test_idle_target_warning(self, validator):
        """Test a target that can never do anything is a warning."""
        registry = make_registry(Target("Nothing"))

        report = validator.validate(registry)

        assert report.is_valid
        assert report.idle_targets == {"Nothing"}
        assert len(report.warnings) == 1

    def test_aggregate_target_is_not_idle(self, validator):
        """Test an action-less target with dependencies is fine."""
        registry = make_registry(
            Target("Restore", action=noop),
            Target("All", depends_on=("Restore",)),
        )

        assert validator.validate(registry).warnings == []


class TestValidationReport:
    """Test report formatting."""

    def test_summary(self):
        report = ValidationReport()
        report.add_error("Cycle detected: A -> B -> A")
        report.add_warning("Target 'X' has no action and no dependencies")

        summary = report.summary()

        assert "Validation Status: FAIL" in summary
        assert "Errors: 1" in summary
        assert "  - Cycle detected: A -> B -> A" in summary
        assert "Warnings: 1" in summary


class TestVisualization:
    """Test Mermaid and DOT output."""

    @pytest.fixture
    def registry(self):
        return make_registry(
            Target("Restore", action=noop),
            Target("Compile", action=noop, depends_on=("Restore",)),
            Target("Notify", action=noop, triggered_by=("Compile",)),
            Target("Lint", action=noop, before=("Compile",)),
        )

    def test_mermaid(self, validator, registry):
        output = validator.generate_visualization(registry, "mermaid")

        assert output.startswith("graph TD")
        assert "    Restore --> Compile" in output
        assert "    Compile -. triggers .-> Notify" in output
        assert "    Lint -.-> Compile" in output

    def test_dot(self, validator, registry):
        output = validator.generate_visualization(registry, "dot")

        assert output.startswith("digraph Targets {")
        assert '"Restore" -> "Compile" [style=solid];' in output
        assert '"Compile" -> "Notify" [style=dotted];' in output
        assert '"Lint" -> "Compile" [style=dashed];' in output
        assert output.endswith("}")

    def test_empty_graph(self, validator):
        output = validator.generate_visualization(TargetRegistry(), "mermaid")

        assert "Empty[Empty Graph]" in output

    def test_unsupported_format(self, validator, registry):
        """Test that unknown formats are rejected."""
        with pytest.raises(ValueError, match="Unsupported format"):
            validator.generate_visualization(registry, "svg")


class TestDeepGraphs:
    """Test validation of graphs deeper than the recursion limit."""

    def test_long_chain_is_valid(self, validator):
        names = [f"t{i}" for i in range(2000)]
        registry = make_registry(
            Target(names[0], action=noop),
            *(Target(name, action=noop, depends_on=(previous,)) for previous, name in zip(names, names[1:])),
        )

        report = validator.validate(registry)

        assert report.is_valid
        assert report.cycles == []

    def test_cycle_at_end_of_long_chain(self, validator):
        """Test a cycle closing a long chain is reported with its full path."""
        names = [f"t{i}" for i in range(2000)]
        registry = make_registry(
            Target(names[0], action=noop, depends_on=(names[-1],)),
            *(Target(name, action=noop, depends_on=(previous,)) for previous, name in zip(names, names[1:])),
        )

        report = validator.validate(registry)

        assert not report.is_valid
        assert len(report.cycles) == 1
        assert report.cycles[0][0] == report.cycles[0][-1]
        assert len(report.cycles[0]) == len(names) + 1
