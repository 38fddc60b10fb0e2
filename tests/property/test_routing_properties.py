"""
Property-based tests for execution routing.

Verifies that every combination of request shape lands on exactly one
lifecycle phase, and that the phase is legal for the step kind.
"""

from hypothesis import given, strategies as st

from step_sdk.registries.routing import Phase, resolve_phase
from step_sdk.steps import StepKind


@given(
    requires_approval=st.booleans(),
    has_approval=st.booleans(),
    has_polling_state=st.booleans(),
)
def test_property_simple_steps_never_trigger_or_poll(
    requires_approval, has_approval, has_polling_state
):
    """
    For any request to a simple step, the phase is PREPARE or RUN, and it is
    PREPARE exactly when approval is required but not yet given.
    """
    phase = resolve_phase(StepKind.SIMPLE, requires_approval, has_approval, has_polling_state)

    assert phase in (Phase.PREPARE, Phase.RUN)
    assert (phase == Phase.PREPARE) == (requires_approval and not has_approval)


@given(
    requires_approval=st.booleans(),
    has_approval=st.booleans(),
    has_polling_state=st.booleans(),
)
def test_property_polling_steps_never_run(requires_approval, has_approval, has_polling_state):
    """
    For any request to a polling step, the phase is PREPARE, TRIGGER or POLL,
    and polling state always routes to POLL.
    """
    phase = resolve_phase(StepKind.POLLING, requires_approval, has_approval, has_polling_state)

    assert phase in (Phase.PREPARE, Phase.TRIGGER, Phase.POLL)
    if has_polling_state:
        assert phase == Phase.POLL
    else:
        assert (phase == Phase.PREPARE) == (requires_approval and not has_approval)


@given(
    step_kind=st.sampled_from(list(StepKind)),
    has_approval=st.booleans(),
    has_polling_state=st.booleans(),
)
def test_property_no_approval_required_never_prepares(step_kind, has_approval, has_polling_state):
    """
    For any step that does not require approval, prepare() is never chosen.
    """
    phase = resolve_phase(step_kind, False, has_approval, has_polling_state)

    assert phase != Phase.PREPARE
