"""
Execution routing.

Decides which lifecycle method a request goes to. The lifecycle state
(needs approval, approved but not started, polling, done) is rebuilt on
every invocation from the shape of the request; the registry keeps nothing
between calls.

Simple steps:

    | requires_approval | approval context | phase   |
    |-------------------|------------------|---------|
    | no                | -                | RUN     |
    | yes               | absent           | PREPARE |
    | yes               | present          | RUN     |

Polling steps (polling state wins over everything else):

    | requires_approval | approval context | polling state | phase   |
    |-------------------|------------------|---------------|---------|
    | -                 | -                | present       | POLL    |
    | no                | -                | absent        | TRIGGER |
    | yes               | absent           | absent        | PREPARE |
    | yes               | present          | absent        | TRIGGER |
"""

from enum import Enum
from typing import Any, Callable, Dict

from step_sdk.exceptions import StepExecutionError
from step_sdk.outputs import (
    WireModel,
    validate_poll_output,
    validate_prepare_output,
    validate_run_output,
    validate_trigger_output,
)
from step_sdk.steps.base_step import StepKind


class Phase(str, Enum):
    """Lifecycle method a request is routed to."""

    PREPARE = "prepare"
    RUN = "run"
    TRIGGER = "trigger"
    POLL = "poll"


# Output validator of each phase
PHASE_OUTPUT_VALIDATORS: Dict[Phase, Callable[[Any], WireModel]] = {
    Phase.PREPARE: validate_prepare_output,
    Phase.RUN: validate_run_output,
    Phase.TRIGGER: validate_trigger_output,
    Phase.POLL: validate_poll_output,
}


def route_simple_step(requires_approval: bool, has_approval: bool) -> Phase:
    if not requires_approval:
        return Phase.RUN
    if not has_approval:
        return Phase.PREPARE
    return Phase.RUN


def route_polling_step(
    requires_approval: bool, has_approval: bool, has_polling_state: bool
) -> Phase:
    # Polling state proves trigger() already ran, and with it any approval
    if has_polling_state:
        return Phase.POLL
    if not requires_approval:
        return Phase.TRIGGER
    if not has_approval:
        return Phase.PREPARE
    return Phase.TRIGGER


def resolve_phase(
    step_kind: StepKind,
    requires_approval: bool,
    has_approval: bool,
    has_polling_state: bool,
) -> Phase:
    """
    Pick the lifecycle phase for a request.

    Args:
        step_kind: SIMPLE or POLLING
        requires_approval: Frozen approval flag of the step type
        has_approval: Whether the request carries an approval context
        has_polling_state: Whether the request carries polling state (an
                           empty mapping counts as present)

    Returns:
        The Phase to invoke

    Raises:
        StepExecutionError: For an unknown step kind
    """
    if step_kind == StepKind.SIMPLE:
        return route_simple_step(requires_approval, has_approval)
    if step_kind == StepKind.POLLING:
        return route_polling_step(requires_approval, has_approval, has_polling_state)
    raise StepExecutionError(f"Unknown step kind: {step_kind}")
