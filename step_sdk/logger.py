"""
Structured logging for the Step SDK.

Two loggers live here:

- ``StepLogger``: the logger handed to steps. Appends one JSON object per
  line to ``{log_dir}/{execution_id}.jsonl`` so the host can collect the
  logs of an execution.
- ``StructuredLogger``: the SDK's own diagnostics (routing decisions, errors
  caught at the registry boundary). JSON to stderr with level filtering,
  stdout is left alone.
"""

import json
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union


def _utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class LogLevel(Enum):
    """Log levels for SDK diagnostics"""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StepLogLevel(Enum):
    """Levels a step may log at."""

    INFO = "info"
    ERROR = "error"


class StepLogger:
    """
    File-based structured logger for steps.

    Writes JSON lines to ``{log_dir}/{execution_id}.jsonl``. Every record has
    the fields timestamp, level, message, stepType and executionId, plus
    ``data`` when the caller supplied it.

    The log directory is created on construction. I/O errors are not caught.
    """

    def __init__(self, log_dir: Union[str, Path], execution_id: str, step_type: str):
        """
        Args:
            log_dir: Directory holding the per-execution log files
            execution_id: Identifier of the current execution, names the file
            step_type: Type identifier of the step doing the logging
        """
        self.step_type = step_type
        self.execution_id = execution_id
        self.log_file_path = Path(log_dir) / f"{execution_id}.jsonl"

        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)

    def info(self, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Record an info-level entry."""
        self._write_log(self._format_log(StepLogLevel.INFO, message, data))

    def error(self, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Record an error-level entry."""
        self._write_log(self._format_log(StepLogLevel.ERROR, message, data))

    def _format_log(
        self, level: StepLogLevel, message: str, data: Optional[Dict[str, Any]] = None
    ) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": _utc_timestamp(),
            "level": level.value,
            "message": message,
        }
        if data is not None:
            log_entry["data"] = data
        log_entry["stepType"] = self.step_type
        log_entry["executionId"] = self.execution_id

        return json.dumps(log_entry, ensure_ascii=False, default=str)

    def _write_log(self, log_str: str) -> None:
        with open(self.log_file_path, "a", encoding="utf-8") as f:
            f.write(log_str + "\n")

    def __repr__(self) -> str:
        return (
            f"StepLogger(step_type='{self.step_type}', "
            f"execution_id='{self.execution_id}', path='{self.log_file_path}')"
        )


class NoOpLogger(StepLogger):
    """Logger used by a step until the registry injects a real one."""

    def __init__(self):
        # No directory is created
        self.step_type = "noop"
        self.execution_id = "noop"
        self.log_file_path = None

    def info(self, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        pass

    def error(self, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        pass


class StructuredLogger:
    """
    Structured diagnostics logger.

    Features:
    - JSON output, one object per line
    - Configurable level
    - Context dictionary and extra keyword fields
    - Standard fields: timestamp, level, logger, message
    """

    def __init__(self, name: str = "step_sdk", level: str = "WARNING", output_stream=None):
        """
        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            output_stream: Output stream, defaults to sys.stderr
        """
        self.name = name
        self.level = self._parse_level(level)
        self.output_stream = output_stream or sys.stderr

        self._level_values = {
            LogLevel.DEBUG: 10,
            LogLevel.INFO: 20,
            LogLevel.WARNING: 30,
            LogLevel.ERROR: 40,
            LogLevel.CRITICAL: 50,
        }

    def _parse_level(self, level: str) -> LogLevel:
        try:
            return LogLevel[level.upper()]
        except KeyError:
            return LogLevel.WARNING

    def _should_log(self, level: LogLevel) -> bool:
        return self._level_values[level] >= self._level_values[self.level]

    def _format_log(
        self, level: LogLevel, message: str, context: Optional[Dict[str, Any]] = None, **kwargs
    ) -> str:
        """
        Format a log entry as a JSON string.

        Args:
            level: Log level
            message: Log message
            context: Context dictionary
            **kwargs: Extra top-level fields

        Returns:
            JSON encoded log entry
        """
        log_entry = {
            "timestamp": _utc_timestamp(),
            "level": level.value,
            "logger": self.name,
            "message": message,
        }

        if context is not None:
            log_entry["context"] = context

        for key, value in kwargs.items():
            if key not in log_entry:
                log_entry[key] = value

        return json.dumps(log_entry, ensure_ascii=False, default=str)

    def _write_log(self, log_str: str) -> None:
        self.output_stream.write(log_str + "\n")
        self.output_stream.flush()

    def log(
        self, level: str, message: str, context: Optional[Dict[str, Any]] = None, **kwargs
    ) -> None:
        """Log at a level given by name."""
        log_level = self._parse_level(level)
        if self._should_log(log_level):
            self._write_log(self._format_log(log_level, message, context, **kwargs))

    def debug(self, message: str, context: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        if self._should_log(LogLevel.DEBUG):
            self._write_log(self._format_log(LogLevel.DEBUG, message, context, **kwargs))

    def info(self, message: str, context: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        if self._should_log(LogLevel.INFO):
            self._write_log(self._format_log(LogLevel.INFO, message, context, **kwargs))

    def warning(self, message: str, context: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        if self._should_log(LogLevel.WARNING):
            self._write_log(self._format_log(LogLevel.WARNING, message, context, **kwargs))

    def error(self, message: str, context: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        if self._should_log(LogLevel.ERROR):
            self._write_log(self._format_log(LogLevel.ERROR, message, context, **kwargs))

    def critical(self, message: str, context: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        if self._should_log(LogLevel.CRITICAL):
            self._write_log(self._format_log(LogLevel.CRITICAL, message, context, **kwargs))

    def set_level(self, level: str) -> None:
        self.level = self._parse_level(level)


_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "step_sdk", level: Optional[str] = None, output_stream=None
) -> StructuredLogger:
    """
    Get the global diagnostics logger, creating it on first use.

    Args:
        name: Logger name (only used when the logger is created)
        level: Optional level to apply
        output_stream: Optional output stream (only used when the logger is created)

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(
            name=name, level=level or "WARNING", output_stream=output_stream
        )
    elif level is not None:
        _global_logger.set_level(level)

    return _global_logger


def configure_logger(
    level: str = "WARNING", name: str = "step_sdk", output_stream=None
) -> StructuredLogger:
    """
    Configure the global diagnostics logger.

    The existing instance is updated in place, so module-level references
    obtained through get_logger() pick up the new settings.

    Args:
        level: Log level
        name: Logger name
        output_stream: Output stream, defaults to sys.stderr

    Returns:
        The configured StructuredLogger
    """
    global _global_logger
    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, output_stream=output_stream)
    else:
        _global_logger.name = name
        _global_logger.set_level(level)
        _global_logger.output_stream = output_stream or sys.stderr
    return _global_logger
