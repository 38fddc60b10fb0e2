"""
Step Registry - dispatches host requests to steps.

The registry owns the mapping from step type to step, runs the two jobs the
host can ask for (SYNTHESIZE-METADATA and EXECUTE), routes EXECUTE requests
to exactly one lifecycle method and writes the single JSON output of the
invocation.
"""

import asyncio
import inspect
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, Union

from pydantic import ValidationError

from step_sdk.config import ConfigLoader, RegistryConfig
from step_sdk.error_handler import get_error_handler
from step_sdk.exceptions import (
    ErrorCode,
    InvalidOutputError,
    InvalidParamsError,
    RegistryError,
    StepDefinitionError,
    StepNotFoundError,
)
from step_sdk.logger import StepLogger, get_logger
from step_sdk.outputs import (
    ApprovalContext,
    FailedOutput,
    WireModel,
    serialize_output,
    success,
)
from step_sdk.registries.routing import PHASE_OUTPUT_VALIDATORS, Phase, resolve_phase
from step_sdk.schemas import SynthesizeMetadataRequest, parse_registry_input
from step_sdk.steps.base_step import BaseStep, StepMetadata


logger = get_logger(__name__)

StepSource = Union[BaseStep, Type[BaseStep]]


def write_output_file(output_path: Union[str, Path], payload: Dict[str, Any]) -> None:
    """
    Write the output JSON, replacing any previous content.

    Parent directories are created as needed. Errors propagate: there is no
    channel left to report them through.
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def _resolve_awaitable(result: Any) -> Any:
    """Run coroutine results of async lifecycle methods to completion."""
    if not inspect.isawaitable(result):
        return result

    async def _wait():
        return await result

    return asyncio.run(_wait())


class StepRegistry:
    """
    Registry and dispatcher for steps.

    Steps are registered as instances (constructed with their dependencies)
    or as classes (constructed with no arguments on every use). Each step
    type maps to exactly one step.

    Example:
        registry = StepRegistry(
            [EchoStep, DeployStep(deploy_service)],
            RegistryConfig(output_path="/tmp/out.json", log_dir="/tmp/logs"),
        )
        registry.process('{"job": "EXECUTE", "type": "echo", "params": {"message": "hi"}}')
    """

    def __init__(self, steps: Sequence[StepSource], config: Optional[RegistryConfig] = None):
        """
        Args:
            steps: Step instances and/or step classes
            config: File locations and execution id, defaults when None

        Raises:
            StepDefinitionError: If a step cannot be constructed or is undecorated
            RegistryError: If two steps share a step type
        """
        self.config = config or RegistryConfig()
        self._factories: Dict[str, Callable[[], BaseStep]] = {}
        self._error_handler = get_error_handler()

        for source in steps:
            self.register(source)

        logger.info(
            "StepRegistry initialized",
            step_types=self.get_step_types(),
            execution_id=self.config.execution_id,
        )

    @classmethod
    def from_config(
        cls,
        steps: Sequence[StepSource],
        config_path: Optional[Union[str, Path]] = None,
        **overrides: Any,
    ) -> "StepRegistry":
        """
        Build a registry from a configuration file.

        Args:
            steps: Step instances and/or step classes
            config_path: YAML or JSON file; falls back to $STEP_SDK_CONFIG,
                         then to the defaults
            **overrides: output_path, log_dir or execution_id, winning over the file

        Raises:
            ConfigError: If the file is missing, unreadable or invalid
        """
        loader = ConfigLoader(config_path) if config_path else ConfigLoader.from_env()
        loader.validate()
        return cls(steps, RegistryConfig.from_loader(loader, **overrides))

    # ============ Registration ============

    def register(self, source: StepSource) -> None:
        """
        Register a step class or instance.

        Raises:
            StepDefinitionError: If the step cannot be constructed or is undecorated
            RegistryError: If its step type is already registered
        """
        factory = self._make_factory(source)
        step_data = factory().get_step_data()

        if step_data.step_type in self._factories:
            raise RegistryError(
                f"Step type '{step_data.step_type}' is already registered. "
                f"Each step type must map to exactly one step."
            )

        self._factories[step_data.step_type] = factory
        logger.debug(
            f"Registered step '{step_data.step_type}'",
            step_kind=step_data.step_kind.value,
            requires_approval=step_data.requires_approval,
        )

    @staticmethod
    def _make_factory(source: StepSource) -> Callable[[], BaseStep]:
        if isinstance(source, BaseStep):
            return lambda: source

        if isinstance(source, type) and issubclass(source, BaseStep):
            def factory() -> BaseStep:
                try:
                    return source()
                except TypeError as e:
                    raise StepDefinitionError(
                        f"{source.__name__} cannot be constructed without arguments ({e}). "
                        f"Register an instance instead."
                    ) from e

            return factory

        raise StepDefinitionError(
            f"Cannot register {source!r}: expected a step class or step instance"
        )

    def get_step_types(self) -> List[str]:
        """Registered step types in registration order."""
        return list(self._factories.keys())

    def has(self, step_type: str) -> bool:
        return step_type in self._factories

    # ============ Jobs ============

    def synthesize_metadata(self) -> List[StepMetadata]:
        """
        Construct every registered step and collect its metadata.

        Returns:
            Metadata in registration order
        """
        return [factory().get_metadata() for factory in self._factories.values()]

    def execute_step(
        self,
        step_type: str,
        params: Dict[str, Any],
        approval_context: Optional[Union[ApprovalContext, Dict[str, Any]]] = None,
        polling_state: Optional[Dict[str, Any]] = None,
    ) -> WireModel:
        """
        Execute one lifecycle phase of a step.

        1. Resolve the step type (STEP_NOT_FOUND)
        2. Construct the step and inject a logger for this execution
        3. Validate params against the step's schema (INVALID_PARAMS)
        4. Route to prepare/run/trigger/poll
        5. Convert anything raised into FAILED (EXECUTION_ERROR)

        Coroutine results are run to completion with asyncio.run, so this
        must not be called from a running event loop; use
        execute_step_async() there.

        Args:
            step_type: Registered step type
            params: Raw params
            approval_context: Approval supplied by the host, if any
            polling_state: Polling state from the previous invocation, if any

        Returns:
            The phase output, or FailedOutput. Never raises.
        """
        context = self._execution_context(step_type)
        resolved = self._resolve_execution(
            step_type, params, approval_context, polling_state, context
        )
        if isinstance(resolved, FailedOutput):
            return resolved

        instance, phase, validated_params, approval = resolved
        try:
            result = _resolve_awaitable(
                self._call_phase(instance, phase, validated_params, approval, polling_state)
            )
            return self._validate_phase_output(instance, phase, result)
        except Exception as e:
            return self._fail(e, context, force_code=ErrorCode.EXECUTION_ERROR)

    async def execute_step_async(
        self,
        step_type: str,
        params: Dict[str, Any],
        approval_context: Optional[Union[ApprovalContext, Dict[str, Any]]] = None,
        polling_state: Optional[Dict[str, Any]] = None,
    ) -> WireModel:
        """Same as execute_step(), awaiting coroutine results on the caller's loop."""
        context = self._execution_context(step_type)
        resolved = self._resolve_execution(
            step_type, params, approval_context, polling_state, context
        )
        if isinstance(resolved, FailedOutput):
            return resolved

        instance, phase, validated_params, approval = resolved
        try:
            result = self._call_phase(instance, phase, validated_params, approval, polling_state)
            if inspect.isawaitable(result):
                result = await result
            return self._validate_phase_output(instance, phase, result)
        except Exception as e:
            return self._fail(e, context, force_code=ErrorCode.EXECUTION_ERROR)

    def _execution_context(self, step_type: str) -> Dict[str, Any]:
        return {"step_type": step_type, "execution_id": self.config.execution_id}

    def _resolve_execution(
        self,
        step_type: str,
        params: Dict[str, Any],
        approval_context: Optional[Union[ApprovalContext, Dict[str, Any]]],
        polling_state: Optional[Dict[str, Any]],
        context: Dict[str, Any],
    ) -> Union[FailedOutput, Tuple[BaseStep, Phase, Any, Optional[ApprovalContext]]]:
        """
        Everything up to the lifecycle call: lookup, construction, logger
        injection, params validation and routing.

        Returns:
            (step, phase, validated params, approval), or FailedOutput
        """
        factory = self._factories.get(step_type)
        if factory is None:
            return self._fail(
                StepNotFoundError(
                    f"No step registered with type: {step_type}", step_type=step_type
                ),
                context,
            )

        try:
            approval = self._coerce_approval(approval_context)
        except ValidationError as e:
            return self._fail(RegistryError(f"Invalid approval context: {e}"), context)

        try:
            instance = factory()
            step_data = instance.get_step_data()

            instance.set_logger(
                StepLogger(
                    log_dir=self.config.log_dir,
                    execution_id=self.config.execution_id,
                    step_type=step_data.step_type,
                )
            )

            try:
                validated_params = step_data.schema.model_validate(params)
            except ValidationError as e:
                return self._fail(InvalidParamsError(f"Invalid params: {e}"), context)

            phase = resolve_phase(
                step_data.step_kind,
                step_data.requires_approval,
                has_approval=approval is not None,
                has_polling_state=polling_state is not None,
            )
        except Exception as e:
            return self._fail(e, context, force_code=ErrorCode.EXECUTION_ERROR)

        context["phase"] = phase.value
        logger.info("Routing step execution", context=context)
        return instance, phase, validated_params, approval

    @staticmethod
    def _call_phase(
        instance: BaseStep,
        phase: Phase,
        params: Any,
        approval: Optional[ApprovalContext],
        polling_state: Optional[Dict[str, Any]],
    ) -> Any:
        if phase == Phase.PREPARE:
            return instance.prepare(params)
        elif phase == Phase.RUN:
            return instance.run(params, approval)
        elif phase == Phase.TRIGGER:
            return instance.trigger(params, approval)
        return instance.poll(params, polling_state)

    @staticmethod
    def _validate_phase_output(instance: BaseStep, phase: Phase, result: Any) -> WireModel:
        try:
            return PHASE_OUTPUT_VALIDATORS[phase](result)
        except ValidationError as e:
            raise InvalidOutputError(
                f"{type(instance).__name__}.{phase.value}() returned an invalid output: {e}",
                phase=phase.value,
            ) from e

    @staticmethod
    def _coerce_approval(
        approval_context: Optional[Union[ApprovalContext, Dict[str, Any]]]
    ) -> Optional[ApprovalContext]:
        if approval_context is None or isinstance(approval_context, ApprovalContext):
            return approval_context
        return ApprovalContext.model_validate(approval_context)

    def _fail(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        default_code: str = ErrorCode.EXECUTION_ERROR,
        force_code: Optional[str] = None,
    ) -> FailedOutput:
        return self._error_handler.handle_error(error, context, default_code, force_code)

    # ============ Host boundary ============

    def handle(self, raw_input: Optional[Union[str, bytes, Dict[str, Any]]]) -> WireModel:
        """
        Parse a host request and run the requested job.

        Args:
            raw_input: JSON text (or decoded dict) of the registry input

        Returns:
            The job's output. Malformed input gives FAILED/REGISTRY_ERROR.
            Never raises.
        """
        if raw_input is None:
            return self._fail(RegistryError("Missing registry input: pass the job as --input"))

        try:
            request = parse_registry_input(raw_input)
        except ValidationError as e:
            return self._fail(RegistryError(f"Invalid registry input: {e}"))

        if isinstance(request, SynthesizeMetadataRequest):
            try:
                metadata = self.synthesize_metadata()
            except Exception as e:
                return self._fail(e, {"job": request.job}, ErrorCode.REGISTRY_ERROR)
            return success({"metadata": [item.to_dict() for item in metadata]})

        return self.execute_step(
            request.type,
            request.params,
            request.approval_context,
            request.polling_state,
        )

    def finalize_output(self, output: Any) -> Dict[str, Any]:
        """
        Validate an output against the full output schema and serialize it.

        An output that fails validation or cannot be serialized becomes
        FAILED/EXECUTION_ERROR.
        """
        try:
            return serialize_output(output)
        except ValueError as e:
            return self._fail(
                InvalidOutputError(f"Step output failed validation: {e}")
            ).to_dict()

    def write_output(self, output: Any) -> Dict[str, Any]:
        """
        Finalize ``output`` and write it to the configured output path.

        Returns:
            The wire dict that was written
        """
        payload = self.finalize_output(output)
        write_output_file(self.config.output_path, payload)
        logger.info(
            "Wrote step output",
            status=payload.get("status"),
            output_path=str(self.config.output_path),
        )
        return payload

    def process(self, raw_input: Optional[Union[str, bytes, Dict[str, Any]]]) -> Dict[str, Any]:
        """Handle a host request and write its output. Returns the written dict."""
        return self.write_output(self.handle(raw_input))

    def __repr__(self) -> str:
        return (
            f"StepRegistry(step_types={self.get_step_types()}, "
            f"execution_id='{self.config.execution_id}')"
        )
