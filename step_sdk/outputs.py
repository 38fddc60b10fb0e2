"""
Step output protocol.

Defines the closed set of results a step can produce and the
phase-specific unions that say which results are legal where:

    prepare  -> APPROVAL_REQUIRED | FAILED
    run      -> SUCCESS | FAILED
    trigger  -> TRIGGERED | FAILED
    poll     -> POLL_AGAIN | SUCCESS | FAILED

All models serialize with camelCase field names (``errorCode``,
``approvalRequest``, ``pollingState``, ``retryAfterMs``) and omit optional
fields that are not set. Step authors build results through the helpers in
``StepOutputs`` rather than by hand.
"""

import math
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeFloat,
    NonNegativeInt,
    TypeAdapter,
    model_validator,
)
from pydantic.alias_generators import to_camel


def _check_finite(value: Any, path: str) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"{path} is {value}; outputs must be representable as JSON")
    if isinstance(value, dict):
        for key, item in value.items():
            _check_finite(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _check_finite(item, f"{path}[{index}]")


class WireModel(BaseModel):
    """Base for models that cross the process boundary."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the wire format.

        Returns:
            JSON compatible dict with camelCase keys, unset optionals dropped
        """
        dumped = self.model_dump(by_alias=True, mode="json")
        return {key: value for key, value in dumped.items() if value is not None}

    @model_validator(mode="after")
    def check_finite_values(self):
        # JSON has no NaN or Infinity; the encoder would write them as null
        for name in type(self).model_fields:
            _check_finite(getattr(self, name), name)
        return self


# ============ Approval context ============


class ApprovalContext(WireModel):
    """
    Proof, supplied by the host, that an approver authorized execution.

    There is no rejected form: a rejection means the host never calls the
    step again.
    """

    approved: Literal[True]
    approver_id: str


# ============ Output shapes ============


class SuccessOutput(WireModel):
    status: Literal["SUCCESS"] = "SUCCESS"
    data: Optional[Dict[str, Any]] = None


class FailedOutput(WireModel):
    status: Literal["FAILED"] = "FAILED"
    error: str
    error_code: Optional[str] = None


class ApprovalRequiredOutput(WireModel):
    """Returned by prepare(); ``approval_request`` is free-form, usually carries a ``message``."""

    status: Literal["APPROVAL_REQUIRED"] = "APPROVAL_REQUIRED"
    approval_request: Dict[str, Any]


class TriggeredOutput(WireModel):
    status: Literal["TRIGGERED"] = "TRIGGERED"
    polling_state: Dict[str, Any]


class PollAgainOutput(WireModel):
    status: Literal["POLL_AGAIN"] = "POLL_AGAIN"
    polling_state: Dict[str, Any]
    retry_after_ms: Optional[Union[NonNegativeInt, NonNegativeFloat]] = None


# ============ Phase unions ============

PrepareOutput = Annotated[
    Union[ApprovalRequiredOutput, FailedOutput],
    Field(discriminator="status"),
]

RunOutput = Annotated[
    Union[SuccessOutput, FailedOutput],
    Field(discriminator="status"),
]

TriggerOutput = Annotated[
    Union[TriggeredOutput, FailedOutput],
    Field(discriminator="status"),
]

PollOutput = Annotated[
    Union[PollAgainOutput, SuccessOutput, FailedOutput],
    Field(discriminator="status"),
]

StepOutput = Annotated[
    Union[
        SuccessOutput,
        FailedOutput,
        ApprovalRequiredOutput,
        TriggeredOutput,
        PollAgainOutput,
    ],
    Field(discriminator="status"),
]

PrepareOutputAdapter: TypeAdapter = TypeAdapter(PrepareOutput)
RunOutputAdapter: TypeAdapter = TypeAdapter(RunOutput)
TriggerOutputAdapter: TypeAdapter = TypeAdapter(TriggerOutput)
PollOutputAdapter: TypeAdapter = TypeAdapter(PollOutput)
StepOutputAdapter: TypeAdapter = TypeAdapter(StepOutput)


def _validate(adapter: TypeAdapter, output: Any) -> WireModel:
    # Re-validate model instances from their wire form so a model of the
    # wrong phase is rejected by the discriminator.
    if isinstance(output, BaseModel):
        output = output.model_dump(by_alias=True)
    return adapter.validate_python(output)


def validate_prepare_output(output: Any) -> WireModel:
    """Validate a prepare() result. Raises pydantic.ValidationError."""
    return _validate(PrepareOutputAdapter, output)


def validate_run_output(output: Any) -> WireModel:
    """Validate a run() result. Raises pydantic.ValidationError."""
    return _validate(RunOutputAdapter, output)


def validate_trigger_output(output: Any) -> WireModel:
    """Validate a trigger() result. Raises pydantic.ValidationError."""
    return _validate(TriggerOutputAdapter, output)


def validate_poll_output(output: Any) -> WireModel:
    """Validate a poll() result. Raises pydantic.ValidationError."""
    return _validate(PollOutputAdapter, output)


def validate_step_output(output: Any) -> WireModel:
    """
    Validate any output against the combined schema.

    Args:
        output: An output model or a plain dict (wire or Python field names)

    Returns:
        The validated output model

    Raises:
        pydantic.ValidationError: If the value is not a legal step output
    """
    return _validate(StepOutputAdapter, output)


def serialize_output(output: Any) -> Dict[str, Any]:
    """Validate against the combined schema and return the wire dict."""
    return validate_step_output(output).to_dict()


# ============ Helpers ============


def success(data: Optional[Dict[str, Any]] = None) -> SuccessOutput:
    """SUCCESS, used by SimpleStep.run and PollingStep.poll."""
    return SuccessOutput(data=data)


def failed(error: str, code: Optional[str] = None) -> FailedOutput:
    """FAILED, legal from every phase."""
    return FailedOutput(error=error, error_code=code)


def approval_required(request: Dict[str, Any]) -> ApprovalRequiredOutput:
    """APPROVAL_REQUIRED, used by prepare."""
    return ApprovalRequiredOutput(approval_request=request)


def triggered(polling_state: Dict[str, Any]) -> TriggeredOutput:
    """TRIGGERED, used by PollingStep.trigger."""
    return TriggeredOutput(polling_state=polling_state)


def poll_again(
    polling_state: Dict[str, Any], retry_after_ms: Optional[float] = None
) -> PollAgainOutput:
    """POLL_AGAIN, used by PollingStep.poll."""
    return PollAgainOutput(polling_state=polling_state, retry_after_ms=retry_after_ms)


class StepOutputs:
    """
    Namespace of output constructors.

    Example:
        return StepOutputs.success({"deploymentId": "123"})
        return StepOutputs.poll_again(state, retry_after_ms=5000)
    """

    success = staticmethod(success)
    failed = staticmethod(failed)
    approval_required = staticmethod(approval_required)
    triggered = staticmethod(triggered)
    poll_again = staticmethod(poll_again)
