"""
Error handling for the registry boundary.

Every error raised while handling a request is converted into a FAILED
output here, after being logged with its stack trace. The host only looks
at the output file, so nothing escapes as an uncaught exception.
"""

import traceback
from typing import Any, Dict, Optional

from step_sdk.exceptions import ErrorCode, StepSDKError
from step_sdk.logger import get_logger
from step_sdk.outputs import FailedOutput, failed


logger = get_logger(__name__)


class ErrorHandler:
    """Converts exceptions into FAILED outputs."""

    def handle_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        default_code: str = ErrorCode.EXECUTION_ERROR,
        force_code: Optional[str] = None,
    ) -> FailedOutput:
        """
        Unified error handling entry point.

        Strategy:
        1. Log the error with stack trace and context
        2. Use ``force_code`` when given, whatever the exception type
        3. Otherwise use the exception's own error code
        4. Fall back to ``default_code`` for exceptions without one

        Args:
            error: The caught exception
            context: Context at the point of failure (step type, phase, ...)
            default_code: Code for exceptions without their own error code
            force_code: Code that overrides the exception's own, used for
                        anything raised out of a lifecycle method

        Returns:
            FailedOutput
        """
        context = context or {}
        if isinstance(error, StepSDKError):
            context = {**error.context, **context}

        logger.error(
            "Error occurred",
            error_type=type(error).__name__,
            error_message=str(error),
            stack_trace="".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ),
            context=context,
        )

        if isinstance(error, StepSDKError):
            return self._handle_sdk_error(error, force_code or error.error_code or default_code)
        return self._handle_unknown_error(error, force_code or default_code)

    def _handle_sdk_error(self, error: StepSDKError, code: str) -> FailedOutput:
        return failed(error.message, code)

    def _handle_unknown_error(self, error: Exception, code: str) -> FailedOutput:
        message = str(error) or type(error).__name__
        return failed(message, code)


_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance."""
    global _error_handler
    if _error_handler is None:
        _error_handler = ErrorHandler()
    return _error_handler
