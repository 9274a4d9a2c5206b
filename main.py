#!/usr/bin/env python3
"""Main Entry Point and CLI Integration.

This module provides the command-line interface for targetflow. It loads the
build settings and the build file, validates the declared targets, resolves
the requested targets into an execution plan and runs it.
"""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

import structlog

from targetflow.config import BuildConfig, Configuration, find_config_file
from targetflow.graph.dependency_graph import CycleDetectedError, TargetGraph, UnknownTargetError
from targetflow.graph.target import TargetRegistry
from targetflow.graph.validator import GraphValidator
from targetflow.loader import DEFAULT_BUILD_FILE, BuildFileError, load_build_file
from targetflow.log_config import configure_logging
from targetflow.orchestrator.orchestrator import BuildRunner, ConfigurationError, TargetFailedError

logger = structlog.get_logger(__name__)

DEFAULT_TARGET = "Default"
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def parse_param(value: str) -> tuple[str, str]:
    """Parse a KEY=VALUE command-line parameter."""
    key, sep, val = value.partition("=")
    if not sep or not key.strip():
        msg = f"Parameter must be KEY=VALUE, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return key.strip(), val


def list_targets(registry: TargetRegistry) -> str:
    """Format declared targets with their descriptions and dependencies."""
    if not len(registry):
        return "No targets declared."
    width = max(len(name) for name in registry.names())
    lines = ["Targets:"]
    for target in registry:
        line = f"  {target.name:<{width}}  {target.description}".rstrip()
        if target.depends_on:
            line += f"  (depends on: {', '.join(target.depends_on)})"
        lines.append(line)
    return "\n".join(lines)


def run_build(args: argparse.Namespace) -> int:
    """Load, validate and run the requested targets.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    configure_logging(args.log_level or "INFO", json_logs=args.json_logs)

    try:
        config_path = args.config or find_config_file()
        config = BuildConfig.load(
            config_path,
            configuration=args.configuration,
            root_directory=args.root,
            parameters=dict(args.param) if args.param else None,
            logging_level=args.log_level,
            json_logs=True if args.json_logs else None,
        )
        if (config.logging_level, config.json_logs) != (args.log_level or "INFO", args.json_logs):
            configure_logging(config.logging_level, json_logs=config.json_logs)

        registry = load_build_file(args.build_file)

        if args.list:
            print(list_targets(registry))
            return EXIT_SUCCESS

        validator = GraphValidator()
        if args.graph:
            print(validator.generate_visualization(registry, args.graph))
            return EXIT_SUCCESS

        report = validator.validate(registry)
        if not report.is_valid:
            print(report.summary(), file=sys.stderr)
            return EXIT_FAILURE

        runner = BuildRunner(TargetGraph(registry), config)
        requested = args.targets or [DEFAULT_TARGET]

        if args.plan:
            skipped = set(args.skip or ())
            runner.check_skip(args.skip or ())
            plan = runner.plan(*requested)
            for i, name in enumerate(plan, 1):
                marker = " (skipped)" if name in skipped else ""
                print(f"{i:>3}. {name}{marker}")
            return EXIT_SUCCESS

        try:
            results = runner.run(*requested, skip=args.skip or ())
        except TargetFailedError as e:
            print(e.results.format_table())
            if args.report:
                e.results.export_json(args.report)
            print(e.message, file=sys.stderr)
            return EXIT_FAILURE

        print(results.format_table())
        if args.report:
            results.export_json(args.report)
            logger.info("report_written", path=str(args.report))

    except KeyboardInterrupt:
        logger.warning("build_interrupted")
        return EXIT_INTERRUPTED

    except (BuildFileError, FileNotFoundError) as e:
        logger.error("file_not_found", error=str(e))
        return EXIT_FAILURE

    except (UnknownTargetError, CycleDetectedError, ConfigurationError) as e:
        logger.error("configuration_error", error=e.message)
        return EXIT_FAILURE

    except ValueError as e:
        logger.error("invalid_settings", error=str(e))
        return EXIT_FAILURE

    except Exception as e:
        logger.exception("build_setup_failed", error=str(e))
        return EXIT_FAILURE

    return EXIT_SUCCESS


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="targetflow",
        description="Run build targets in dependency order",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the Default target from build.py
  targetflow

  # Run the tests in Release configuration
  targetflow Test --configuration Release

  # Show the execution order without running anything
  targetflow Test --plan

  # Run everything up to Test but do not clean first
  targetflow Test --skip CleanAll --skip CleanArtifacts
        """,
    )

    parser.add_argument(
        "targets",
        nargs="*",
        metavar="TARGET",
        help=f"Targets to run (default: {DEFAULT_TARGET})",
    )

    parser.add_argument(
        "--configuration",
        choices=[c.value for c in Configuration],
        default=None,
        help="Configuration to build (default: Debug locally, Release on a build server)",
    )

    parser.add_argument(
        "-f",
        "--build-file",
        type=Path,
        default=Path(DEFAULT_BUILD_FILE),
        help=f"Python file declaring the targets (default: {DEFAULT_BUILD_FILE})",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="YAML settings file (default: targetflow.yaml if present)",
    )

    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Repository root directory (default: current directory)",
    )

    parser.add_argument(
        "-p",
        "--param",
        type=parse_param,
        action="append",
        metavar="KEY=VALUE",
        help="Set a build parameter (repeatable)",
    )

    parser.add_argument(
        "--skip",
        action="append",
        metavar="TARGET",
        help="Keep TARGET in the plan but do not run its action (repeatable)",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--plan",
        action="store_true",
        help="Print the execution order and exit",
    )
    mode.add_argument(
        "--list",
        action="store_true",
        help="List declared targets and exit",
    )
    mode.add_argument(
        "--graph",
        choices=["mermaid", "dot"],
        default=None,
        help="Print the declared target graph and exit",
    )

    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Write a JSON report of the run to this path",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (INFO level)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug output (DEBUG level)",
    )

    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (default: INFO)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Render logs as JSON lines",
    )

    args = parser.parse_args(argv)

    if args.debug:
        args.log_level = "DEBUG"
    elif args.verbose:
        args.log_level = "INFO"

    return args


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point: parse arguments, run, exit with the build status."""
    args = parse_args(argv)
    sys.exit(run_build(args))


if __name__ == "__main__":
    main()
