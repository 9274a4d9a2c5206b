"""Build targets for this repository.

Run with ``targetflow <Target>`` (or ``python main.py <Target>``) from the
repository root. ``Default`` cleans, installs, byte-compiles and tests.
"""

import shutil
import sys

from targetflow import BuildConfig, Configuration, TargetRegistry, run_process
from targetflow.log_config import get_logger

logger = get_logger("build")

targets = TargetRegistry()

BUILD_OUTPUT_GLOBS = ("**/__pycache__", "**/*.egg-info", "build", "dist")
TEST_OUTPUT_GLOBS = ("**/__pycache__", ".pytest_cache")


def _delete_matching(root, patterns):
    if not root.is_dir():
        logger.warning("directory_missing", path=str(root))
        return
    for pattern in patterns:
        for path in sorted(root.glob(pattern)):
            if path.is_dir():
                logger.info("deleting_directory", path=str(path))
                shutil.rmtree(path)


@targets.target(depends_on=["CleanArtifacts", "CleanSourceDirectories", "CleanTestDirectories"])
def CleanAll(config: BuildConfig) -> None:
    """Clean build artifacts, source and test build output."""


@targets.target()
def CleanArtifacts(config: BuildConfig) -> None:
    """Recreate an empty artifacts directory."""
    logger.info("cleaning_artifacts_directory", path=str(config.artifacts_directory))
    if config.artifacts_directory.exists():
        shutil.rmtree(config.artifacts_directory)
    config.artifacts_directory.mkdir(parents=True)


@targets.target()
def CleanSourceDirectories(config: BuildConfig) -> None:
    """Delete byte-code caches and packaging output under the sources."""
    _delete_matching(config.source_directory, BUILD_OUTPUT_GLOBS)
    _delete_matching(config.root_directory, ("*.egg-info", "build", "dist"))


@targets.target()
def CleanTestDirectories(config: BuildConfig) -> None:
    """Delete byte-code and pytest caches under the tests."""
    _delete_matching(config.test_directory, TEST_OUTPUT_GLOBS)
    _delete_matching(config.root_directory, (".pytest_cache",))


@targets.target(depends_on=["CleanAll"])
def Restore(config: BuildConfig) -> None:
    """Install the project and its test dependencies."""
    run_process(
        [sys.executable, "-m", "pip", "install", "--quiet", "-e", ".[test]"],
        cwd=config.root_directory,
    )


@targets.target(depends_on=["Restore"], requires=["configuration"])
def Compile(config: BuildConfig) -> None:
    """Byte-compile the sources; Release builds are optimized."""
    command = [sys.executable]
    if config.configuration == Configuration.RELEASE:
        command.append("-O")
    command += ["-m", "compileall", "-q", str(config.source_directory)]
    run_process(command, cwd=config.root_directory)


@targets.target(depends_on=["Compile"], after=["Compile"], requires=["configuration"])
def Test(config: BuildConfig) -> None:
    """Run the test suite."""
    command = [sys.executable, "-m", "pytest", "-q", str(config.test_directory)]
    if config.configuration == Configuration.RELEASE:
        report = config.artifacts_directory / "test-results.xml"
        command.append(f"--junitxml={report}")
    run_process(command, cwd=config.root_directory)


@targets.target(depends_on=["Test"], after=["CleanAll", "Restore", "Compile", "Test"])
def Default(config: BuildConfig) -> None:
    """Clean, restore, compile and test."""
    logger.info("build_succeeded", configuration=str(config.configuration))
