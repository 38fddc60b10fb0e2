"""
Step SDK

Author steps that run under an orchestration host: declare a params schema,
implement the lifecycle (run, or trigger/poll, with optional prepare for
approval) and return one of the structured outputs.
"""

from step_sdk.version import __version__, __version_info__, get_version

from step_sdk.outputs import (
    ApprovalContext,
    ApprovalRequiredOutput,
    FailedOutput,
    PollAgainOutput,
    PollOutput,
    PrepareOutput,
    RunOutput,
    StepOutput,
    StepOutputs,
    SuccessOutput,
    TriggeredOutput,
    TriggerOutput,
    serialize_output,
    validate_step_output,
)
from step_sdk.steps import (
    BaseStep,
    PollingStep,
    SimpleStep,
    StepConfig,
    StepData,
    StepKind,
    StepMetadata,
    step,
)
from step_sdk.registries import Phase, StepRegistry, resolve_phase
from step_sdk.schemas import ExecuteRequest, SynthesizeMetadataRequest, parse_registry_input
from step_sdk.config import ConfigLoader, RegistryConfig
from step_sdk.exceptions import (
    ErrorCode,
    InvalidOutputError,
    InvalidParamsError,
    RegistryError,
    StepDefinitionError,
    StepExecutionError,
    StepNotFoundError,
    StepSDKError,
)
from step_sdk.logger import NoOpLogger, StepLogger
from step_sdk.main import run

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "get_version",
    # Steps
    "BaseStep",
    "SimpleStep",
    "PollingStep",
    "StepKind",
    "StepData",
    "StepMetadata",
    "StepConfig",
    "step",
    # Outputs
    "ApprovalContext",
    "SuccessOutput",
    "FailedOutput",
    "ApprovalRequiredOutput",
    "TriggeredOutput",
    "PollAgainOutput",
    "PrepareOutput",
    "RunOutput",
    "TriggerOutput",
    "PollOutput",
    "StepOutput",
    "StepOutputs",
    "serialize_output",
    "validate_step_output",
    # Registry
    "StepRegistry",
    "Phase",
    "resolve_phase",
    "ExecuteRequest",
    "SynthesizeMetadataRequest",
    "parse_registry_input",
    "RegistryConfig",
    "ConfigLoader",
    "run",
    # Logging
    "StepLogger",
    "NoOpLogger",
    # Errors
    "ErrorCode",
    "StepSDKError",
    "StepDefinitionError",
    "RegistryError",
    "StepNotFoundError",
    "InvalidParamsError",
    "StepExecutionError",
    "InvalidOutputError",
]
