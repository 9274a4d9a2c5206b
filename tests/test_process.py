"""Unit tests for run_process."""

import sys

import pytest

from targetflow.process import ProcessFailedError, run_process


class TestRunProcess:
    """Test external command execution."""

    def test_captures_output(self):
        output = run_process([sys.executable, "-c", "print('hello')"], capture_output=True)

        assert output.strip() == "hello"

    def test_not_capturing_returns_empty(self):
        assert run_process([sys.executable, "-c", "pass"]) == ""

    def test_non_zero_exit(self):
        """Test a failing command raises with its exit code and output."""
        script = "import sys; print('bad things'); sys.exit(3)"

        with pytest.raises(ProcessFailedError) as exc_info:
            run_process([sys.executable, "-c", script], capture_output=True)

        assert exc_info.value.exit_code == 3  # noqa: PLR2004
        assert "bad things" in exc_info.value.output
        assert "exited with code 3" in exc_info.value.message

    def test_working_directory(self, tmp_path):
        output = run_process(
            [sys.executable, "-c", "import os; print(os.getcwd())"],
            cwd=tmp_path,
            capture_output=True,
        )

        assert output.strip() == str(tmp_path.resolve())

    def test_missing_working_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            run_process([sys.executable, "-c", "pass"], cwd=tmp_path / "missing")

    def test_extra_environment(self):
        output = run_process(
            [sys.executable, "-c", "import os; print(os.environ['TARGETFLOW_TEST_VALUE'])"],
            env={"TARGETFLOW_TEST_VALUE": "42"},
            capture_output=True,
        )

        assert output.strip() == "42"

    def test_missing_program(self):
        with pytest.raises(FileNotFoundError):
            run_process(["targetflow-no-such-program"])
