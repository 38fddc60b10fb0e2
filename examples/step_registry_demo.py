"""
Step Registry Demo

This example demonstrates how to use the Step SDK to:
1. Declare simple, approval-gated and polling steps
2. List step metadata (SYNTHESIZE-METADATA)
3. Drive an approval and polling lifecycle the way the host does

Run it directly, or hand the steps to run() as a host would:

    python examples/step_registry_demo.py --host \
        --input '{"job": "EXECUTE", "type": "echo", "params": {"message": "hi"}}'
"""

import json
import sys
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from step_sdk import (
    PollingStep,
    RegistryConfig,
    SimpleStep,
    StepOutputs,
    StepRegistry,
    run,
    step,
)


class EchoParams(BaseModel):
    message: str = Field(description="Message to echo")


class DeployParams(BaseModel):
    target: str = Field(description="Deployment target")
    version: Optional[str] = Field(default=None, description="Version to deploy")


@step(
    name="Echo",
    type="echo",
    schema=EchoParams,
    short_description="Returns the message it was given",
)
class EchoStep(SimpleStep):
    def run(self, params, approval=None):
        self.logger.info("Echoing message", {"message": params.message})
        return StepOutputs.success({"echo": params.message})


@step(
    name="Approval Echo",
    type="approval-echo",
    schema=EchoParams,
    short_description="Echoes a message once an approver agreed",
)
class ApprovalEchoStep(SimpleStep):
    def prepare(self, params):
        return StepOutputs.approval_required(
            {"message": f"Approve echo of '{params.message}'?"}
        )

    def run(self, params, approval=None):
        return StepOutputs.success(
            {"echo": params.message, "approvedBy": approval.approver_id}
        )


@step(
    name="Deploy",
    type="deploy",
    schema=DeployParams,
    short_description="Simulated long-running deployment",
    yaml_example="type: deploy\nparams:\n  target: production\n  version: 1.0.0",
)
class DeployStep(PollingStep):
    def trigger(self, params, approval=None):
        self.logger.info("Starting deployment", {"target": params.target})
        return StepOutputs.triggered(
            {"deploymentId": f"deploy-{params.target}", "pollCount": 0}
        )

    def poll(self, params, polling_state):
        poll_count = polling_state["pollCount"] + 1
        if poll_count < 2:
            return StepOutputs.poll_again(
                {**polling_state, "pollCount": poll_count}, retry_after_ms=1000
            )
        return StepOutputs.success(
            {
                "deploymentId": polling_state["deploymentId"],
                "target": params.target,
                "version": params.version,
            }
        )


STEPS = [EchoStep, ApprovalEchoStep, DeployStep]


def show(title, payload):
    print(f"{title}:")
    print(json.dumps(payload, indent=2))
    print()


def main():
    """Run step registry demo."""
    print("=" * 70)
    print("Step Registry Demo")
    print("=" * 70)
    print()

    work_dir = Path(tempfile.mkdtemp(prefix="step-sdk-demo-"))
    registry = StepRegistry(
        STEPS,
        RegistryConfig(
            output_path=work_dir / "output.json",
            log_dir=work_dir / "logs",
            execution_id="exec-demo",
        ),
    )

    # Step 1: List metadata
    print("Step 1: Listing step metadata...")
    metadata = registry.process({"job": "SYNTHESIZE-METADATA"})
    for item in metadata["data"]["metadata"]:
        print(f"  - {item['stepType']}: {item.get('shortDescription', '')}")
    print()

    # Step 2: Approval lifecycle
    print("Step 2: Approval lifecycle...")
    job = {"job": "EXECUTE", "type": "approval-echo", "params": {"message": "hello"}}
    show("  first invocation", registry.process(job))
    job["approvalContext"] = {"approved": True, "approverId": "user-123"}
    show("  after approval", registry.process(job))

    # Step 3: Polling lifecycle
    print("Step 3: Polling lifecycle...")
    job = {"job": "EXECUTE", "type": "deploy", "params": {"target": "production", "version": "1.0.0"}}
    result = registry.process(job)
    show("  trigger", result)
    while result["status"] in ("TRIGGERED", "POLL_AGAIN"):
        result = registry.process({**job, "pollingState": result["pollingState"]})
        show("  poll", result)

    # Step 4: Errors become FAILED outputs
    print("Step 4: Errors...")
    show("  unknown step", registry.process({"job": "EXECUTE", "type": "missing", "params": {}}))
    show("  invalid params", registry.process({"job": "EXECUTE", "type": "echo", "params": {}}))

    print(f"Step logs: {work_dir / 'logs' / 'exec-demo.jsonl'}")
    print("=" * 70)
    print("Demo completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    if "--host" in sys.argv:
        sys.argv.remove("--host")
        sys.exit(run(STEPS))
    main()
