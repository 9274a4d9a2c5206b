"""Execution of a single target action.

The executor knows nothing about ordering. It calls one action with the
build configuration, times it, and turns the outcome into a TargetResult.
"""

import time
from datetime import UTC, datetime

from targetflow.config import BuildConfig
from targetflow.graph.target import Target
from targetflow.log_config import bind_context, get_logger, unbind_context
from targetflow.orchestrator.result_manager import TargetResult, TargetStatus

logger = get_logger(__name__)


class TargetExecutor:
    """Runs target actions with an explicit build configuration.

    Example:
        >>> executor = TargetExecutor(BuildConfig.create("Debug"))
        >>> result = executor.execute(Target("Compile", action=compile_fn))
        >>> result.status
        <TargetStatus.SUCCEEDED: 'succeeded'>

    Attributes:
        config: Configuration handed to every action
    """

    def __init__(self, config: BuildConfig):
        self.config = config

    def execute(self, target: Target) -> TargetResult:
        """Run the action of ``target``.

        Exceptions raised by the action are caught and reported as a
        FAILED result, including SystemExit from an action calling
        sys.exit(). KeyboardInterrupt propagates.

        Args:
            target: Target to run

        Returns:
            TargetResult with SUCCEEDED or FAILED status
        """
        bind_context(build_target=target.name)
        start_time = datetime.now(UTC)
        start = time.perf_counter()
        logger.info("target_started")

        try:
            if target.action is not None:
                target.action(self.config)
        except (Exception, SystemExit) as e:
            duration = time.perf_counter() - start
            logger.exception(
                "target_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=round(duration, 3),
            )
            return TargetResult(
                target=target.name,
                status=TargetStatus.FAILED,
                start_time=start_time,
                end_time=datetime.now(UTC),
                duration_seconds=duration,
                error=str(e) or type(e).__name__,
                error_type=type(e).__name__,
                exception=e,
            )
        finally:
            unbind_context("build_target")

        duration = time.perf_counter() - start
        logger.info("target_succeeded", build_target=target.name, duration_seconds=round(duration, 3))
        return TargetResult(
            target=target.name,
            status=TargetStatus.SUCCEEDED,
            start_time=start_time,
            end_time=datetime.now(UTC),
            duration_seconds=duration,
        )

    def skip(self, target: Target) -> TargetResult:
        """Record a target that was scheduled but deliberately not run."""
        logger.info("target_skipped", build_target=target.name)
        return TargetResult(target=target.name, status=TargetStatus.SKIPPED)
