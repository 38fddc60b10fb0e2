"""
Step SDK - process entrypoint.

Reads the job payload and the file locations from the command line, runs the
registry and writes the output file. A step project calls run() from its
entry module:

    import sys
    from step_sdk import run

    if __name__ == "__main__":
        sys.exit(run([MyStep(my_service), OtherStep]))

The host inspects the output file, not the exit code: run() returns 0
whenever an output file was written, including FAILED outputs.
"""

import argparse
from pathlib import Path
from typing import List, Optional, Sequence, Union

from step_sdk.config import (
    CONFIG_ENV_VAR,
    DEFAULT_LOG_DIR,
    DEFAULT_OUTPUT_PATH,
    ConfigError,
    ConfigLoader,
    RegistryConfig,
)
from step_sdk.error_handler import get_error_handler
from step_sdk.exceptions import ErrorCode, RegistryError
from step_sdk.logger import configure_logger, get_logger
from step_sdk.registries.step_registry import StepRegistry, StepSource, write_output_file
from step_sdk.version import get_full_version


logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command line parser.

    Returns:
        argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="step-sdk",
        description="Run a step registry job and write its JSON output",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --input '{"job": "SYNTHESIZE-METADATA"}'
  python main.py --input '{"job": "EXECUTE", "type": "echo", "params": {"message": "hi"}}' \\
      --output /tmp/out.json --log-dir /tmp/logs --execution-id exec-42
        """,
    )

    parser.add_argument("--input", default=None, help="JSON job payload (required)")
    parser.add_argument(
        "--output",
        default=None,
        help=f"Path of the output JSON file (default: {DEFAULT_OUTPUT_PATH})",
    )
    parser.add_argument(
        "--log-dir",
        dest="log_dir",
        default=None,
        help=f"Directory for step log files (default: {DEFAULT_LOG_DIR})",
    )
    parser.add_argument(
        "--execution-id",
        dest="execution_id",
        default=None,
        help="Identifier of this execution (default: generated from the current time)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"YAML or JSON configuration file (default: ${CONFIG_ENV_VAR})",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=ConfigLoader.VALID_LOG_LEVELS,
        default=None,
        help="Level of SDK diagnostics written to stderr",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_full_version()}")

    return parser


def _write_startup_failure(
    output_path: Union[str, Path], error: Exception, default_code: str = ErrorCode.REGISTRY_ERROR
) -> int:
    """Report a failure that happened before a registry existed."""
    payload = get_error_handler().handle_error(error, default_code=default_code).to_dict()
    write_output_file(output_path, payload)
    return 0


def run(steps: Sequence[StepSource], args: Optional[List[str]] = None) -> int:
    """
    Run one registry job for ``steps``.

    Args:
        steps: Step instances and/or classes to register
        args: Command line arguments (for tests); defaults to sys.argv[1:]

    Returns:
        int: Exit code, 0 once an output file has been written
    """
    parser = create_parser()
    parsed_args, unknown = parser.parse_known_args(args)

    try:
        if parsed_args.config:
            loader = ConfigLoader(parsed_args.config)
        else:
            loader = ConfigLoader.from_env()
        loader.validate()
    except ConfigError as e:
        configure_logger(level=parsed_args.log_level or "WARNING")
        return _write_startup_failure(
            parsed_args.output or DEFAULT_OUTPUT_PATH,
            RegistryError(f"Invalid configuration: {e}"),
        )

    configure_logger(level=parsed_args.log_level or loader.get("logging.level"))
    if unknown:
        logger.warning("Ignoring unrecognized arguments", arguments=unknown)

    try:
        config = RegistryConfig.from_loader(
            loader,
            output_path=parsed_args.output,
            log_dir=parsed_args.log_dir,
            execution_id=parsed_args.execution_id,
        )
    except ConfigError as e:
        return _write_startup_failure(
            parsed_args.output or loader.get("registry.output_path"),
            RegistryError(f"Invalid configuration: {e}"),
        )

    try:
        registry = StepRegistry(steps, config)
    except Exception as e:
        return _write_startup_failure(config.output_path, e)

    registry.process(parsed_args.input)
    return 0
