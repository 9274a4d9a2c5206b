"""Unit tests for Target and TargetRegistry."""

import pytest

from targetflow.graph.target import DuplicateTargetError, Target, TargetRegistry


class TestTarget:
    """Test target descriptors."""

    def test_defaults(self):
        """Test that a bare target has no action and no relations."""
        target = Target("Compile")

        assert target.action is None
        assert target.depends_on == ()
        assert target.references() == set()

    def test_single_string_is_wrapped(self):
        """Test that a single name is accepted in place of a tuple."""
        target = Target("Compile", depends_on="Restore")

        assert target.depends_on == ("Restore",)

    def test_duplicates_removed_keeping_order(self):
        """Test that repeated names collapse to their first occurrence."""
        target = Target("Default", after=("Test", "Compile", "Test"))

        assert target.after == ("Test", "Compile")

    def test_empty_name_rejected(self):
        """Test that a target needs a name."""
        with pytest.raises(ValueError, match="must not be empty"):
            Target("  ")

    def test_is_immutable(self):
        """Test that target descriptors cannot be changed."""
        target = Target("Compile")

        with pytest.raises(AttributeError):
            target.name = "Other"

    def test_references(self):
        """Test that references cover every relation except requires."""
        target = Target(
            "Test",
            depends_on=("Compile",),
            after=("Lint",),
            before=("Pack",),
            triggered_by=("Restore",),
            triggers=("Report",),
            requires=("configuration",),
        )

        assert target.references() == {"Compile", "Lint", "Pack", "Restore", "Report"}


class TestTargetRegistry:
    """Test the registration table."""

    def test_decorator_registers_function(self):
        """Test that the decorator names the target after the function."""
        targets = TargetRegistry()

        @targets.target(depends_on=["Restore"])
        def Compile(config):
            """Compile the sources.

            More detail here.
            """

        target = targets["Compile"]
        assert target.action is Compile
        assert target.depends_on == ("Restore",)
        assert target.description == "Compile the sources."

    def test_decorator_accepts_single_names(self):
        """Test that a plain string relation is one name, not its characters."""
        targets = TargetRegistry()

        @targets.target(depends_on="Restore", triggered_by="Clean", requires="configuration")
        def Compile(config):
            pass

        target = targets["Compile"]
        assert target.depends_on == ("Restore",)
        assert target.triggered_by == ("Clean",)
        assert target.requires == ("configuration",)

    def test_decorator_with_explicit_name(self):
        """Test overriding the name and description."""
        targets = TargetRegistry()

        @targets.target("Pack", description="Create packages")
        def create_packages(config):
            pass

        assert "Pack" in targets
        assert "create_packages" not in targets
        assert targets["Pack"].description == "Create packages"

    def test_declaration_order_kept(self):
        """Test that names come back in registration order."""
        targets = TargetRegistry()
        for name in ("Test", "Compile", "Restore"):
            targets.add(Target(name))

        assert targets.names() == ["Test", "Compile", "Restore"]
        assert [t.name for t in targets] == ["Test", "Compile", "Restore"]
        assert len(targets) == 3  # noqa: PLR2004

    def test_duplicate_rejected(self):
        """Test that a name can only be registered once."""
        targets = TargetRegistry()
        targets.add(Target("Compile"))

        with pytest.raises(DuplicateTargetError) as exc_info:
            targets.add(Target("Compile"))

        assert exc_info.value.name == "Compile"

    def test_get_missing(self):
        """Test that get returns None for undeclared names."""
        assert TargetRegistry().get("Compile") is None
