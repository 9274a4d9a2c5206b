"""Sequential, fail-fast execution of a resolved target plan.

This module implements the BuildRunner, which resolves requested targets
through the TargetGraph, checks parameter requirements for the whole plan and
then runs target actions one at a time, stopping at the first failure.
"""

from collections.abc import Iterable

from targetflow.config import BuildConfig
from targetflow.graph.dependency_graph import ExecutionPlan, TargetGraph, UnknownTargetError
from targetflow.log_config import get_logger
from targetflow.orchestrator.result_manager import ResultManager, TargetResult, TargetStatus
from targetflow.orchestrator.target_executor import TargetExecutor

logger = get_logger(__name__)


class ConfigurationError(Exception):
    """Raised before any action runs when the plan cannot be executed.

    Attributes:
        message: Description of the problem
        missing: Mapping of target name to the parameters it lacks
    """

    def __init__(self, message: str, missing: dict[str, list[str]] | None = None):
        super().__init__(message)
        self.message = message
        self.missing = missing or {}


class TargetFailedError(Exception):
    """Raised when a target action fails and the build stops.

    Attributes:
        message: Description including the target name
        target: Name of the failed target
        cause: Exception raised by the action
        results: Results of every scheduled target, unrun ones as NOT_RUN
    """

    def __init__(
        self,
        target: str,
        cause: BaseException | None,
        results: ResultManager,
    ):
        detail = f"{type(cause).__name__}: {cause}" if cause is not None else "unknown error"
        self.message = f"Target '{target}' failed: {detail}"
        super().__init__(self.message)
        self.target = target
        self.cause = cause
        self.results = results


class BuildRunner:
    """Runs requested targets in dependency order.

    Targets run strictly one after another in plan order. The first failing
    action aborts the build; every later target is recorded as NOT_RUN and
    ``TargetFailedError`` is raised.

    Example:
        >>> runner = BuildRunner(graph, BuildConfig.create("Release"))
        >>> results = runner.run("Test")
        >>> [r.target for r in results.get_all_results()]
        ['Restore', 'Compile', 'Test']

    Attributes:
        graph: Immutable target graph
        config: Build configuration handed to every action
        executor: Executor used to run single targets
    """

    def __init__(
        self,
        graph: TargetGraph,
        config: BuildConfig,
        executor: TargetExecutor | None = None,
    ):
        self.graph = graph
        self.config = config
        self.executor = executor or TargetExecutor(config)

    def plan(self, *targets: str) -> ExecutionPlan:
        """Resolve the execution order without running anything."""
        return self.graph.resolve(*targets)

    def check_skip(self, skip: Iterable[str]) -> None:
        """Verify every skipped target is declared.

        Raises:
            UnknownTargetError: If a skipped target is unknown
        """
        for name in skip:
            if name not in self.graph:
                raise UnknownTargetError(name, known=self.graph.names())

    def check_requirements(self, plan: ExecutionPlan, skip: Iterable[str] = ()) -> None:
        """Verify every parameter required by a target that will run is set.

        Raises:
            ConfigurationError: If any required parameter is missing
        """
        skipped = set(skip)
        missing: dict[str, list[str]] = {}
        for name in plan:
            if name in skipped:
                continue
            absent = [
                requirement
                for requirement in self.graph[name].requires
                if self.config.get_parameter(requirement) is None
            ]
            if absent:
                missing[name] = absent

        if missing:
            details = "; ".join(f"{name} requires {', '.join(params)}" for name, params in missing.items())
            logger.error("requirements_not_met", missing=missing)
            msg = f"Missing required parameters: {details}"
            raise ConfigurationError(msg, missing=missing)

    def run(self, *targets: str, skip: Iterable[str] = ()) -> ResultManager:
        """Resolve and execute the requested targets.

        Args:
            *targets: Targets to run
            skip: Targets kept in the plan whose actions are not run

        Returns:
            ResultManager holding one result per scheduled target

        Raises:
            UnknownTargetError: If a requested or skipped target is unknown
            CycleDetectedError: If the ordering constraints contain a cycle
            ConfigurationError: If a required parameter is missing
            TargetFailedError: If a target action fails
        """
        skip = list(skip)
        self.check_skip(skip)

        plan = self.plan(*targets)
        self.check_requirements(plan, skip)

        logger.info(
            "build_started",
            requested=list(plan.requested),
            plan=list(plan.order),
            configuration=str(self.config.configuration),
            skipped=skip,
        )

        results = ResultManager()
        skipped = set(skip)
        failure: TargetResult | None = None

        for name in plan:
            target = self.graph[name]

            if failure is not None:
                results.add_result(TargetResult(target=name, status=TargetStatus.NOT_RUN))
                continue

            if name in skipped:
                results.add_result(self.executor.skip(target))
                continue

            result = self.executor.execute(target)
            results.add_result(result)
            if result.status == TargetStatus.FAILED:
                failure = result

        summary = results.get_summary()
        if failure is not None:
            logger.error(
                "build_failed",
                failed_target=failure.target,
                error=failure.error,
                not_run=summary[TargetStatus.NOT_RUN.value],
            )
            raise TargetFailedError(failure.target, failure.exception, results)

        logger.info(
            "build_succeeded",
            targets=summary["total_targets"],
            skipped=summary[TargetStatus.SKIPPED.value],
            duration_seconds=round(summary["total_duration_seconds"], 3),
        )
        return results
