"""Loading target declarations from a Python build file.

A build file is a plain Python module that defines a module-level
``targets`` registry (a ``TargetRegistry``) or a ``targets()`` function
returning one. It is executed with ``runpy`` so it does not need to be
importable.
"""

import runpy
from pathlib import Path

from targetflow.graph.target import TargetRegistry
from targetflow.log_config import get_logger

logger = get_logger(__name__)

DEFAULT_BUILD_FILE = "build.py"


class BuildFileError(Exception):
    """The build file is missing or does not declare any targets."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.message = message
        self.path = path


def load_build_file(path: str | Path = DEFAULT_BUILD_FILE) -> TargetRegistry:
    """Execute a build file and return its target registry.

    Args:
        path: Path to the ``.py`` build file

    Returns:
        The TargetRegistry the file declares

    Raises:
        BuildFileError: If the file is missing, not Python, or declares no
            registry
    """
    build_path = Path(path).expanduser().resolve()
    if not build_path.exists():
        msg = f"Build file not found: {build_path}"
        raise BuildFileError(msg, build_path)
    if build_path.suffix != ".py":
        msg = f"Build file must be a .py file, got: {build_path.name}"
        raise BuildFileError(msg, build_path)

    logger.debug("loading_build_file", path=str(build_path))
    namespace = runpy.run_path(str(build_path), run_name=f"targetflow_build_{build_path.stem}")

    registry = namespace.get("targets")
    if callable(registry) and not isinstance(registry, TargetRegistry):
        registry = registry()

    if not isinstance(registry, TargetRegistry):
        msg = (
            f"{build_path.name} must define `targets = TargetRegistry()` "
            "or a `targets()` function returning one"
        )
        raise BuildFileError(msg, build_path)

    logger.info("build_file_loaded", path=str(build_path), target_count=len(registry))
    return registry
