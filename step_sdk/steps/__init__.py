"""
Step contract: base classes, metadata and the @step decorator.
"""

from step_sdk.steps.base_step import BaseStep, StepData, StepKind, StepMetadata
from step_sdk.steps.simple_step import SimpleStep
from step_sdk.steps.polling_step import PollingStep
from step_sdk.steps.decorator import StepConfig, apply_step_config, step

__all__ = [
    "BaseStep",
    "StepData",
    "StepKind",
    "StepMetadata",
    "SimpleStep",
    "PollingStep",
    "StepConfig",
    "apply_step_config",
    "step",
]
