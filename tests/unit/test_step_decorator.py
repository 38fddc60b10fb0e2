"""
Unit tests for the @step decorator.
"""

import pytest
from pydantic import BaseModel, Field

from step_sdk.exceptions import StepDefinitionError
from step_sdk.outputs import StepOutputs
from step_sdk.steps import PollingStep, SimpleStep, StepConfig, StepKind, apply_step_config, step
from step_sdk.steps.base_step import BaseStep


class EchoParams(BaseModel):
    message: str = Field(description="Message to echo")


@step(
    name="Echo",
    type="echo",
    schema=EchoParams,
    short_description="Echoes a message",
    long_description="Returns the message it was given.",
    yaml_example="type: echo\nparams:\n  message: hi",
    documentation_url="https://example.com/docs/echo",
)
class EchoStep(SimpleStep):
    def run(self, params, approval=None):
        return StepOutputs.success({"echo": params.message})


@step(name="Approval Echo", type="approval-echo", schema=EchoParams)
class ApprovalEchoStep(SimpleStep):
    def prepare(self, params):
        return StepOutputs.approval_required({"message": f"Approve echo of {params.message}?"})

    def run(self, params, approval=None):
        return StepOutputs.success({"echo": params.message})


@step(type="job", schema=EchoParams)
class JobStep(PollingStep):
    def trigger(self, params, approval=None):
        return StepOutputs.triggered({"jobId": "1"})

    def poll(self, params, polling_state):
        return StepOutputs.success()


class TestStepDecorator:
    """Tests for metadata and step data produced by @step."""

    def test_metadata_fields(self):
        metadata = EchoStep().get_metadata()

        assert metadata.name == "Echo"
        assert metadata.step_type == "echo"
        assert metadata.short_description == "Echoes a message"
        assert metadata.long_description == "Returns the message it was given."
        assert metadata.yaml_example.startswith("type: echo")
        assert metadata.documentation_url == "https://example.com/docs/echo"

    def test_params_json_schema_comes_from_model(self):
        schema = EchoStep().get_metadata().params_json_schema

        assert schema["type"] == "object"
        assert "message" in schema["properties"]
        assert schema["properties"]["message"]["description"] == "Message to echo"
        assert schema["required"] == ["message"]

    def test_metadata_wire_form_omits_unset_fields(self):
        wire = JobStep().get_metadata().to_dict()

        assert wire["stepType"] == "job"
        assert "paramsJsonSchema" in wire
        assert "name" not in wire
        assert "documentationUrl" not in wire

    def test_simple_step_kind(self):
        data = EchoStep().get_step_data()

        assert data.step_kind == StepKind.SIMPLE
        assert data.step_type == "echo"
        assert data.schema is EchoParams

    def test_polling_step_kind(self):
        assert JobStep().get_step_data().step_kind == StepKind.POLLING

    def test_requires_approval_detected_from_prepare(self):
        assert ApprovalEchoStep().get_step_data().requires_approval is True
        assert EchoStep().get_step_data().requires_approval is False

    def test_requires_approval_inherited_prepare(self):
        @step(type="approval-echo-child", schema=EchoParams)
        class ChildStep(ApprovalEchoStep):
            pass

        assert ChildStep().get_step_data().requires_approval is True

    def test_explicit_requires_approval_false_wins(self):
        @step(type="never-approve", schema=EchoParams, requires_approval=False)
        class NeverApproveStep(ApprovalEchoStep):
            pass

        assert NeverApproveStep().get_step_data().requires_approval is False

    def test_explicit_requires_approval_without_prepare_rejected(self):
        with pytest.raises(StepDefinitionError, match="does not override prepare"):
            @step(type="broken", schema=EchoParams, requires_approval=True)
            class BrokenStep(SimpleStep):
                def run(self, params, approval=None):
                    return StepOutputs.success()

    def test_step_config_attached(self):
        assert isinstance(EchoStep.step_config, StepConfig)
        assert EchoStep.step_config.type == "echo"

    def test_decorator_returns_same_class(self):
        class PlainStep(SimpleStep):
            def run(self, params, approval=None):
                return StepOutputs.success()

        decorated = step(type="plain", schema=EchoParams)(PlainStep)

        assert decorated is PlainStep


class TestStepConfigValidation:
    """Tests for invalid declarations."""

    def test_empty_type_rejected(self):
        with pytest.raises(StepDefinitionError, match="non-empty string"):
            step(type="  ", schema=EchoParams)

    def test_non_model_schema_rejected(self):
        with pytest.raises(StepDefinitionError, match="pydantic BaseModel"):
            step(type="bad-schema", schema=dict)

    def test_base_step_subclass_rejected(self):
        class RawStep(BaseStep):
            pass

        with pytest.raises(StepDefinitionError, match="must extend SimpleStep or PollingStep"):
            step(type="raw", schema=EchoParams)(RawStep)

    def test_non_step_class_rejected(self):
        class NotAStep:
            pass

        with pytest.raises(StepDefinitionError, match="can only decorate"):
            apply_step_config(NotAStep, StepConfig(type="x", schema=EchoParams))
