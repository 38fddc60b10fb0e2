"""
Exception hierarchy for the Step SDK.

Every error the registry can report to the host maps to one of these types.
Each type carries the ``error_code`` that ends up in the FAILED output.
"""

from typing import Any, Dict, Optional


class ErrorCode:
    """Error codes written to the ``errorCode`` field of FAILED outputs."""

    REGISTRY_ERROR = "REGISTRY_ERROR"
    STEP_NOT_FOUND = "STEP_NOT_FOUND"
    INVALID_PARAMS = "INVALID_PARAMS"
    EXECUTION_ERROR = "EXECUTION_ERROR"
    PREPARE_NOT_IMPLEMENTED = "PREPARE_NOT_IMPLEMENTED"


class StepSDKError(Exception):
    """Base exception for the Step SDK."""

    error_code: Optional[str] = None

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StepDefinitionError(StepSDKError):
    """A step class is declared incorrectly: missing decorator, bad base class, bad config."""

    pass


class RegistryError(StepSDKError):
    """Malformed top-level input or an invalid registry setup."""

    error_code = ErrorCode.REGISTRY_ERROR


class StepNotFoundError(StepSDKError):
    """No step is registered under the requested type."""

    error_code = ErrorCode.STEP_NOT_FOUND

    def __init__(
        self,
        message: str,
        step_type: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.step_type = step_type
        if step_type:
            self.context["step_type"] = step_type


class InvalidParamsError(StepSDKError):
    """Step parameters do not match the step's declared schema."""

    error_code = ErrorCode.INVALID_PARAMS


class StepExecutionError(StepSDKError):
    """A lifecycle method raised, or routing itself failed."""

    error_code = ErrorCode.EXECUTION_ERROR


class InvalidOutputError(StepExecutionError):
    """A lifecycle method returned a value that is not a legal output for its phase."""

    def __init__(
        self,
        message: str,
        phase: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.phase = phase
        if phase:
            self.context["phase"] = phase
