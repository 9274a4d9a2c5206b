"""Unit tests for build file loading."""

import pytest

from targetflow.graph.target import TargetRegistry
from targetflow.loader import BuildFileError, load_build_file

REGISTRY_BUILD_FILE = """
from targetflow import TargetRegistry

targets = TargetRegistry()


@targets.target()
def Restore(config):
    \"\"\"Install dependencies.\"\"\"


@targets.target(depends_on=["Restore"])
def Compile(config):
    pass
"""

FUNCTION_BUILD_FILE = """
from targetflow import Target, TargetRegistry


def targets():
    registry = TargetRegistry()
    registry.add(Target("Restore"))
    return registry
"""


class TestLoadBuildFile:
    """Test loading target declarations."""

    def test_module_level_registry(self, tmp_path):
        path = tmp_path / "build.py"
        path.write_text(REGISTRY_BUILD_FILE)

        registry = load_build_file(path)

        assert isinstance(registry, TargetRegistry)
        assert registry.names() == ["Restore", "Compile"]
        assert registry["Restore"].description == "Install dependencies."

    def test_registry_factory(self, tmp_path):
        path = tmp_path / "build.py"
        path.write_text(FUNCTION_BUILD_FILE)

        assert load_build_file(path).names() == ["Restore"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(BuildFileError, match="Build file not found"):
            load_build_file(tmp_path / "build.py")

    def test_not_python(self, tmp_path):
        path = tmp_path / "build.yaml"
        path.write_text("targets: []\n")

        with pytest.raises(BuildFileError, match=r"must be a \.py file"):
            load_build_file(path)

    def test_no_registry(self, tmp_path):
        """Test a build file without a registry is rejected."""
        path = tmp_path / "build.py"
        path.write_text("targets = ['Compile']\n")

        with pytest.raises(BuildFileError) as exc_info:
            load_build_file(path)

        assert exc_info.value.path == path.resolve()

    def test_errors_in_build_file_propagate(self, tmp_path):
        path = tmp_path / "build.py"
        path.write_text("raise RuntimeError('broken build file')\n")

        with pytest.raises(RuntimeError, match="broken build file"):
            load_build_file(path)
