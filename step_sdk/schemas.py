"""
Registry input models.

The host passes a single JSON value per process invocation, discriminated
on ``job``:

    {"job": "SYNTHESIZE-METADATA"}
    {"job": "EXECUTE", "type": ..., "params": {...},
     "approvalContext"?: {...}, "pollingState"?: {...}}

The presence of ``approvalContext`` / ``pollingState`` is what the registry
routes on; it never keeps state of its own between invocations.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from step_sdk.outputs import ApprovalContext, WireModel


class SynthesizeMetadataRequest(WireModel):
    """List the metadata of every registered step."""

    job: Literal["SYNTHESIZE-METADATA"] = "SYNTHESIZE-METADATA"


class ExecuteRequest(WireModel):
    """
    Execute one lifecycle phase of a step.

    Attributes:
        type: Step type identifier
        params: Raw params, validated against the step's schema by the registry
        approval_context: Present once the host has collected approval
        polling_state: State returned by the previous trigger()/poll()
    """

    job: Literal["EXECUTE"] = "EXECUTE"
    type: str
    params: Dict[str, Any]
    approval_context: Optional[ApprovalContext] = None
    polling_state: Optional[Dict[str, Any]] = None


RegistryInput = Annotated[
    Union[ExecuteRequest, SynthesizeMetadataRequest],
    Field(discriminator="job"),
]

RegistryInputAdapter: TypeAdapter = TypeAdapter(RegistryInput)


def parse_registry_input(raw: Union[str, bytes, Dict[str, Any]]) -> WireModel:
    """
    Parse the host's input.

    Args:
        raw: JSON text, or an already decoded dict

    Returns:
        ExecuteRequest or SynthesizeMetadataRequest

    Raises:
        pydantic.ValidationError: If the input is not valid JSON or matches no job
    """
    if isinstance(raw, (str, bytes)):
        return RegistryInputAdapter.validate_json(raw)
    return RegistryInputAdapter.validate_python(raw)
