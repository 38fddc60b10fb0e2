"""
SimpleStep - a step that completes in a single invocation.
"""

from abc import abstractmethod
from typing import Any, Optional

from step_sdk.outputs import ApprovalContext
from step_sdk.steps.base_step import BaseStep


class SimpleStep(BaseStep):
    """
    A step that runs once with the provided params.

    Subclasses implement run(). Override prepare() to require approval
    before run() is called; run() then receives the approval context.
    Both methods may be coroutines.

    Example:
        class DeployParams(BaseModel):
            target: str

        @step(name="Deploy", type="deploy", schema=DeployParams)
        class DeployStep(SimpleStep):
            def run(self, params, approval=None):
                self.logger.info("Deploying", {"target": params.target})
                return StepOutputs.success({"deploymentId": "123"})

    Example with approval:
        @step(name="Delete User", type="delete-user", schema=DeleteUserParams)
        class DeleteUserStep(SimpleStep):
            def prepare(self, params):
                return StepOutputs.approval_required(
                    {"message": f"Delete user {params.user_id}?"}
                )

            def run(self, params, approval=None):
                self.logger.info("Deleting user", {"approvedBy": approval.approver_id})
                return StepOutputs.success()
    """

    @abstractmethod
    def run(self, params: Any, approval: Optional[ApprovalContext] = None) -> Any:
        """
        Execute the step logic.

        Args:
            params: Validated params (instance of the declared schema)
            approval: Approval context, present after the host collected approval

        Returns:
            SUCCESS or FAILED
        """
