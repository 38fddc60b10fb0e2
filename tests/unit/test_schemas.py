"""
Unit tests for registry input parsing.
"""

import pytest
from pydantic import ValidationError

from step_sdk.schemas import ExecuteRequest, SynthesizeMetadataRequest, parse_registry_input


class TestParseRegistryInput:
    """Tests for parse_registry_input."""

    def test_synthesize_metadata(self):
        request = parse_registry_input('{"job": "SYNTHESIZE-METADATA"}')

        assert isinstance(request, SynthesizeMetadataRequest)

    def test_execute_minimal(self):
        request = parse_registry_input(
            '{"job": "EXECUTE", "type": "echo", "params": {"message": "hi"}}'
        )

        assert isinstance(request, ExecuteRequest)
        assert request.type == "echo"
        assert request.params == {"message": "hi"}
        assert request.approval_context is None
        assert request.polling_state is None

    def test_execute_full(self):
        request = parse_registry_input(
            {
                "job": "EXECUTE",
                "type": "deploy",
                "params": {},
                "approvalContext": {"approved": True, "approverId": "user-1"},
                "pollingState": {"jobId": "j"},
            }
        )

        assert request.approval_context.approver_id == "user-1"
        assert request.polling_state == {"jobId": "j"}

    def test_bytes_input(self):
        assert isinstance(parse_registry_input(b'{"job": "SYNTHESIZE-METADATA"}'), SynthesizeMetadataRequest)

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            '{"type": "echo"}',
            '{"job": "UNKNOWN"}',
            '{"job": "EXECUTE", "params": {}}',
            '{"job": "EXECUTE", "type": "echo", "params": []}',
            '{"job": "EXECUTE", "type": "echo", "params": {}, "approvalContext": {"approved": false, "approverId": "u"}}',
        ],
    )
    def test_invalid(self, raw):
        with pytest.raises(ValidationError):
            parse_registry_input(raw)
