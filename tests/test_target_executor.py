"""Unit tests for TargetExecutor."""

import sys
from unittest.mock import Mock

import pytest

from targetflow.config import BuildConfig
from targetflow.graph.target import Target
from targetflow.orchestrator.result_manager import TargetStatus
from targetflow.orchestrator.target_executor import TargetExecutor


@pytest.fixture
def executor(tmp_path):
    return TargetExecutor(BuildConfig.create("Release", root_directory=tmp_path))


class TestTargetExecutor:
    """Test single target execution."""

    def test_success(self, executor):
        """Test a successful action yields a timed SUCCEEDED result."""
        result = executor.execute(Target("Compile", action=lambda config: None))

        assert result.status == TargetStatus.SUCCEEDED
        assert result.target == "Compile"
        assert result.start_time is not None
        assert result.end_time >= result.start_time
        assert result.duration_seconds >= 0
        assert result.error is None

    def test_action_gets_config(self, executor):
        """Test the action is called with the executor's configuration."""
        action = Mock()

        executor.execute(Target("Compile", action=action))

        action.assert_called_once_with(executor.config)

    def test_failure(self, executor):
        """Test an exception becomes a FAILED result."""

        def broken(config):
            msg = "compiler not found"
            raise FileNotFoundError(msg)

        result = executor.execute(Target("Compile", action=broken))

        assert result.status == TargetStatus.FAILED
        assert result.error == "compiler not found"
        assert result.error_type == "FileNotFoundError"
        assert isinstance(result.exception, FileNotFoundError)

    def test_keyboard_interrupt_propagates(self, executor):
        """Test that interrupting the build is not reported as a failure."""

        def interrupted(config):
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            executor.execute(Target("Compile", action=interrupted))

    def test_no_action(self, executor):
        result = executor.execute(Target("All"))

        assert result.status == TargetStatus.SUCCEEDED

    def test_skip(self, executor):
        """Test skipping records a result without timing."""
        result = executor.skip(Target("Compile"))

        assert result.status == TargetStatus.SKIPPED
        assert result.start_time is None

    def test_system_exit_is_failure(self, executor):
        """Test an action calling sys.exit() fails instead of ending the build."""

        def exits(config):
            sys.exit(0)

        result = executor.execute(Target("Compile", action=exits))

        assert result.status == TargetStatus.FAILED
        assert result.error_type == "SystemExit"
        assert isinstance(result.exception, SystemExit)
