"""
Integration tests for multi-invocation step lifecycles.

Each invocation goes through run() the way the host drives it: one process
per event, JSON in through --input, JSON out through the output file. The
host feeds approval contexts and polling states back between invocations.
"""

import json

from pydantic import BaseModel

from step_sdk import PollingStep, SimpleStep, StepOutputs, run, step


class EchoParams(BaseModel):
    message: str


class DeployParams(BaseModel):
    target: str


@step(name="Approval Echo", type="approval-echo", schema=EchoParams)
class ApprovalEchoStep(SimpleStep):
    def prepare(self, params):
        return StepOutputs.approval_required(
            {"message": f"Approve echo of '{params.message}'?"}
        )

    def run(self, params, approval=None):
        self.logger.info("Approved echo", {"approvedBy": approval.approver_id})
        return StepOutputs.success({"echo": params.message, "approvedBy": approval.approver_id})


class FakeDeployService:
    """Deployment that finishes after a fixed number of status checks."""

    def __init__(self, checks_until_done=2):
        self.checks_until_done = checks_until_done
        self.started = []

    def start(self, target):
        self.started.append(target)
        return f"deploy-{target}"

    def is_done(self, check_count):
        return check_count >= self.checks_until_done


@step(name="Approval Deploy", type="approval-deploy", schema=DeployParams)
class ApprovalDeployStep(PollingStep):
    def __init__(self, service):
        self.service = service

    def prepare(self, params):
        return StepOutputs.approval_required({"message": f"Deploy to {params.target}?"})

    def trigger(self, params, approval=None):
        deployment_id = self.service.start(params.target)
        self.logger.info("Deployment started", {"deploymentId": deployment_id})
        return StepOutputs.triggered(
            {"deploymentId": deployment_id, "approvedBy": approval.approver_id, "checks": 0}
        )

    def poll(self, params, polling_state):
        checks = polling_state["checks"] + 1
        if not self.service.is_done(checks):
            return StepOutputs.poll_again({**polling_state, "checks": checks}, retry_after_ms=1000)
        return StepOutputs.success(
            {"deploymentId": polling_state["deploymentId"], "approvedBy": polling_state["approvedBy"]}
        )


class Host:
    """Drives run() the way the orchestration host does."""

    def __init__(self, tmp_path, steps, execution_id="exec-lifecycle"):
        self.tmp_path = tmp_path
        self.steps = steps
        self.execution_id = execution_id
        self.invocations = 0

    def invoke(self, job):
        self.invocations += 1
        output_path = self.tmp_path / f"output-{self.invocations}.json"
        exit_code = run(
            self.steps,
            [
                "--input", json.dumps(job),
                "--output", str(output_path),
                "--log-dir", str(self.tmp_path / "logs"),
                "--execution-id", self.execution_id,
            ],
        )
        assert exit_code == 0
        return json.loads(output_path.read_text())

    def log_records(self):
        path = self.tmp_path / "logs" / f"{self.execution_id}.jsonl"
        return [json.loads(line) for line in path.read_text().splitlines()]


class TestApprovalLifecycle:
    """Approval gated simple step across two invocations."""

    def test_prepare_then_run(self, tmp_path):
        host = Host(tmp_path, [ApprovalEchoStep])
        job = {"job": "EXECUTE", "type": "approval-echo", "params": {"message": "hello"}}

        first = host.invoke(job)
        assert first == {
            "status": "APPROVAL_REQUIRED",
            "approvalRequest": {"message": "Approve echo of 'hello'?"},
        }

        second = host.invoke({**job, "approvalContext": {"approved": True, "approverId": "user-123"}})
        assert second == {
            "status": "SUCCESS",
            "data": {"echo": "hello", "approvedBy": "user-123"},
        }

        records = host.log_records()
        assert [r["message"] for r in records] == ["Approved echo"]
        assert records[0]["stepType"] == "approval-echo"


class TestPollingLifecycle:
    """Approval gated polling step across four invocations."""

    def test_prepare_trigger_poll_success(self, tmp_path):
        service = FakeDeployService(checks_until_done=2)
        host = Host(tmp_path, [ApprovalDeployStep(service)])
        job = {"job": "EXECUTE", "type": "approval-deploy", "params": {"target": "production"}}
        approval = {"approved": True, "approverId": "user-123"}

        assert host.invoke(job)["status"] == "APPROVAL_REQUIRED"
        assert service.started == []

        triggered = host.invoke({**job, "approvalContext": approval})
        assert triggered["status"] == "TRIGGERED"
        assert service.started == ["production"]

        polled = host.invoke({**job, "pollingState": triggered["pollingState"]})
        assert polled == {
            "status": "POLL_AGAIN",
            "pollingState": {"deploymentId": "deploy-production", "approvedBy": "user-123", "checks": 1},
            "retryAfterMs": 1000,
        }

        done = host.invoke({**job, "pollingState": polled["pollingState"]})
        assert done == {
            "status": "SUCCESS",
            "data": {"deploymentId": "deploy-production", "approvedBy": "user-123"},
        }
        assert service.started == ["production"]

    def test_metadata_lists_both_steps(self, tmp_path):
        host = Host(tmp_path, [ApprovalEchoStep, ApprovalDeployStep(FakeDeployService())])

        output = host.invoke({"job": "SYNTHESIZE-METADATA"})

        assert [m["stepType"] for m in output["data"]["metadata"]] == [
            "approval-echo",
            "approval-deploy",
        ]
        assert output["data"]["metadata"][1]["paramsJsonSchema"]["required"] == ["target"]
