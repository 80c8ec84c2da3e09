#!/usr/bin/env python3
"""
Fiddle Runner CLI - Run a fiddle file through the worker sandbox
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from fiddle_runner.application.commands.run_fiddle import RunFiddleCommand
from fiddle_runner.domain.value_objects import Fiddle
from fiddle_runner.errors import EnvironmentUnavailableError
from fiddle_runner.infrastructure.logging.logging_config import configure_logging, get_logger
from fiddle_runner.interfaces.cli.formatter import ResultFormatter
from fiddle_runner.settings import Settings

EXIT_OK = 0
EXIT_RUN_ERRORS = 1
EXIT_INVALID_INPUT = 2
EXIT_ENVIRONMENT_UNAVAILABLE = 3


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="fiddle-run",
        description="Run a fiddle (JSON or YAML file) through the worker sandbox"
    )

    parser.add_argument(
        "fiddle_file",
        type=str,
        help="Fiddle description file (JSON or YAML)"
    )

    # Overrides of FIDDLE_* settings
    parser.add_argument(
        "--root", "-r",
        type=str,
        help="Environment root directory (default: FIDDLE_ENVIRONMENT_ROOT)"
    )
    parser.add_argument(
        "--command", "-c",
        type=str,
        help="Worker command template containing <env_id> (default: FIDDLE_COMMAND)"
    )
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        help="Kill the worker after this many seconds (default: no limit)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Run the fiddle in debug mode (collect compiled templates and context)"
    )

    # Output control
    parser.add_argument(
        "--format",
        choices=["pretty", "json", "yaml"],
        default="pretty",
        help="Output format (default: pretty)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show the execution context of debug runs"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0"
    )

    return parser.parse_args(argv)


def load_fiddle(path: Path, debug: bool = False) -> Fiddle:
    """
    Load and validate a fiddle description file.

    YAML is a superset of JSON, so one loader covers both formats.
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must describe a mapping")
    if debug:
        data["debug"] = True
    return Fiddle.model_validate(data)


def build_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.root:
        overrides["environment_root"] = args.root
    if args.command:
        overrides["command"] = args.command
    if args.timeout is not None:
        overrides["worker_timeout"] = args.timeout
    return Settings(log_level=args.log_level, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function, returns the process exit code"""
    args = parse_args(argv)

    fiddle_path = Path(args.fiddle_file)
    if not fiddle_path.is_file():
        print(f"Error: Fiddle file not found: {args.fiddle_file}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    try:
        fiddle = load_fiddle(fiddle_path, debug=args.debug)
        settings = build_settings(args)
    except (yaml.YAMLError, ValidationError, ValueError) as e:
        print(f"Error: Invalid input: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    configure_logging(settings.log_level, settings.log_format)
    logger = get_logger(__name__)

    try:
        result = RunFiddleCommand.from_settings(settings).run(fiddle)
    except EnvironmentUnavailableError as e:
        logger.error("Environment unavailable", error=e.message)
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ENVIRONMENT_UNAVAILABLE

    formatter = ResultFormatter(format=args.format, verbose=args.verbose)
    print(formatter.format_result(result))

    return EXIT_RUN_ERRORS if result.errors else EXIT_OK


def entry_point():
    """CLI entry point"""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    entry_point()
