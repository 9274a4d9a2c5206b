"""Running external commands from target actions."""

import os
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from targetflow.log_config import get_logger

logger = get_logger(__name__)

# Characters of captured output kept in error messages
OUTPUT_TAIL = 4000


class ProcessFailedError(Exception):
    """An external command exited with a non-zero code.

    Attributes:
        command: The command line that was run
        exit_code: Process exit code
        output: Tail of the combined stdout/stderr, if captured
    """

    def __init__(self, command: Sequence[str], exit_code: int, output: str = ""):
        self.command = list(command)
        self.exit_code = exit_code
        self.output = output
        self.message = f"Process '{shlex.join(self.command)}' exited with code {exit_code}"
        super().__init__(self.message)


def run_process(
    command: Sequence[str],
    *,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    capture_output: bool = False,
) -> str:
    """Run a command and raise if it fails.

    Args:
        command: Program and arguments
        cwd: Working directory (default: current directory)
        env: Extra environment variables layered over os.environ
        capture_output: Capture and return output instead of streaming it

    Returns:
        Captured output, or an empty string when not capturing

    Raises:
        FileNotFoundError: If the program or working directory is missing
        ProcessFailedError: If the command exits non-zero
    """
    if cwd is not None and not Path(cwd).is_dir():
        msg = f"Working directory not found: {cwd}"
        raise FileNotFoundError(msg)

    process_env = os.environ.copy()
    if env:
        process_env.update(env)

    logger.info("process_started", command=shlex.join(command), cwd=str(cwd or "."))
    proc = subprocess.run(
        list(command),
        cwd=cwd,
        env=process_env,
        text=True,
        stdout=subprocess.PIPE if capture_output else None,
        stderr=subprocess.STDOUT if capture_output else None,
        check=False,
    )
    output = proc.stdout or ""

    if proc.returncode != 0:
        logger.error("process_failed", command=shlex.join(command), exit_code=proc.returncode)
        raise ProcessFailedError(command, proc.returncode, output[-OUTPUT_TAIL:])

    logger.debug("process_finished", command=shlex.join(command))
    return output
