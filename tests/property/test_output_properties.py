"""
Property-based tests for the output protocol.

Verifies that outputs keep their shape on the wire and that phase
validation accepts exactly the legal statuses.
"""

import json

import pytest
from hypothesis import given, strategies as st
from pydantic import ValidationError

from step_sdk.outputs import (
    StepOutputs,
    serialize_output,
    validate_poll_output,
    validate_prepare_output,
    validate_run_output,
    validate_trigger_output,
)


# Strategies
json_scalar_strategy = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2**53), max_value=2**53),
    st.text(max_size=50),
)
json_value_strategy = st.recursive(
    json_scalar_strategy,
    lambda children: st.lists(children, max_size=5)
    | st.dictionaries(st.text(max_size=20), children, max_size=5),
    max_leaves=20,
)
state_strategy = st.dictionaries(st.text(max_size=20), json_value_strategy, max_size=8)

output_strategy = st.one_of(
    st.builds(StepOutputs.success, st.none() | state_strategy),
    st.builds(StepOutputs.failed, st.text(max_size=100), st.none() | st.text(max_size=30)),
    st.builds(StepOutputs.approval_required, state_strategy),
    st.builds(StepOutputs.triggered, state_strategy),
    st.builds(
        StepOutputs.poll_again,
        state_strategy,
        st.none() | st.integers(min_value=0, max_value=10**9),
    ),
)

PHASE_STATUSES = {
    validate_prepare_output: {"APPROVAL_REQUIRED", "FAILED"},
    validate_run_output: {"SUCCESS", "FAILED"},
    validate_trigger_output: {"TRIGGERED", "FAILED"},
    validate_poll_output: {"POLL_AGAIN", "SUCCESS", "FAILED"},
}


@given(output=output_strategy)
def test_property_wire_form_is_json_with_camel_case_keys(output):
    """
    For any output, the wire dict survives a JSON round trip unchanged,
    carries a status and never contains null or snake_case top-level keys.
    """
    wire = serialize_output(output)

    assert json.loads(json.dumps(wire)) == wire
    assert wire["status"] == output.status
    assert None not in wire.values()
    assert not any("_" in key for key in wire)


@given(state=state_strategy)
def test_property_polling_state_carried_opaquely(state):
    """
    For any polling state, TRIGGERED and POLL_AGAIN carry it unchanged.
    """
    assert serialize_output(StepOutputs.triggered(state))["pollingState"] == state
    assert serialize_output(StepOutputs.poll_again(state))["pollingState"] == state


@given(output=output_strategy)
def test_property_phase_validation_matches_legal_statuses(output):
    """
    For any output and any phase, validation succeeds exactly when the
    output's status is legal for that phase.
    """
    for validator, statuses in PHASE_STATUSES.items():
        if output.status in statuses:
            assert validator(output).status == output.status
        else:
            with pytest.raises(ValidationError):
                validator(output)
