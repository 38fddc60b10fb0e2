"""
PollingStep - a step for long-running operations checked across invocations.
"""

from abc import abstractmethod
from typing import Any, Dict, Optional

from step_sdk.outputs import ApprovalContext
from step_sdk.steps.base_step import BaseStep


class PollingStep(BaseStep):
    """
    A polling step starts work in trigger() and checks it in poll().

    trigger() returns TRIGGERED with an initial polling state. The host hands
    that state back on the next invocation, which goes to poll(). poll()
    returns POLL_AGAIN with an updated state until the work is done, then
    SUCCESS or FAILED. The polling state belongs to the step; the SDK only
    carries it.

    Override prepare() to require approval before trigger(). Once polling
    state exists, approval is not checked again.

    Example:
        @step(name="Long Job", type="long-job", schema=JobParams)
        class LongJobStep(PollingStep):
            def __init__(self, job_service=None):
                self.job_service = job_service or JobService()

            def trigger(self, params, approval=None):
                job_id = self.job_service.start(params.target)
                return StepOutputs.triggered({"jobId": job_id})

            def poll(self, params, polling_state):
                status = self.job_service.check(polling_state["jobId"])
                if status == "running":
                    return StepOutputs.poll_again(polling_state, retry_after_ms=5000)
                return StepOutputs.success({"result": status})
    """

    @abstractmethod
    def trigger(self, params: Any, approval: Optional[ApprovalContext] = None) -> Any:
        """
        Start the long-running operation.

        Args:
            params: Validated params
            approval: Approval context, present after the host collected approval

        Returns:
            TRIGGERED with the initial polling state, or FAILED
        """

    @abstractmethod
    def poll(self, params: Any, polling_state: Dict[str, Any]) -> Any:
        """
        Check the status of the operation.

        Args:
            params: The original validated params
            polling_state: State returned by the previous trigger() or poll()

        Returns:
            POLL_AGAIN with updated state, SUCCESS, or FAILED
        """
