"""
Step registry and execution routing.
"""

from step_sdk.registries.routing import Phase, resolve_phase
from step_sdk.registries.step_registry import StepRegistry, StepSource, write_output_file

__all__ = [
    "Phase",
    "resolve_phase",
    "StepRegistry",
    "StepSource",
    "write_output_file",
]
