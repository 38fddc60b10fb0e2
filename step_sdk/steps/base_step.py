"""
BaseStep - Shared base for every step.

This module provides the capabilities common to simple and polling steps:
a logger handle injected by the registry, the metadata accessors filled in
by the @step decorator, and the default prepare() sentinel.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Type, TYPE_CHECKING

from pydantic import BaseModel

from step_sdk.exceptions import ErrorCode, StepDefinitionError
from step_sdk.logger import NoOpLogger, StepLogger
from step_sdk.outputs import WireModel, failed

if TYPE_CHECKING:
    from step_sdk.steps.decorator import StepConfig


class StepKind(str, Enum):
    """Lifecycle shape of a step."""

    SIMPLE = "simple"
    POLLING = "polling"


@dataclass(frozen=True)
class StepData:
    """
    Routing facts about a step type, frozen when the class is decorated.

    Attributes:
        step_type: Dispatch key of the step
        schema: Pydantic model the params are validated against
        step_kind: SIMPLE or POLLING
        requires_approval: Whether prepare() runs before run()/trigger()
    """

    step_type: str
    schema: Type[BaseModel]
    step_kind: StepKind
    requires_approval: bool


class StepMetadata(WireModel):
    """
    Published description of a step, as listed by SYNTHESIZE-METADATA.

    Serializes to ``{name?, shortDescription?, longDescription?, yamlExample?,
    stepType, paramsJsonSchema, documentationUrl?}``.
    """

    name: Optional[str] = None
    short_description: Optional[str] = None
    long_description: Optional[str] = None
    yaml_example: Optional[str] = None
    step_type: str
    params_json_schema: Dict[str, Any]
    documentation_url: Optional[str] = None


class BaseStep(ABC):
    """
    Abstract base class for steps.

    Do not subclass directly: derive from SimpleStep or PollingStep and
    decorate the class with @step. Constructors may take dependencies;
    classes registered without an instance must be constructible with no
    arguments.

    To require approval, override prepare() and return
    ``StepOutputs.approval_required(...)``.
    """

    # Filled in by the @step decorator, per class: subclasses do not inherit them
    step_config: ClassVar[Optional["StepConfig"]] = None
    _step_data: ClassVar[Optional[StepData]] = None
    _step_metadata: ClassVar[Optional[StepMetadata]] = None

    logger: StepLogger = NoOpLogger()

    def set_logger(self, logger: StepLogger) -> None:
        """
        Inject the execution logger. Called by the registry before routing.

        Args:
            logger: Logger scoped to the current execution and step type
        """
        self.logger = logger

    def get_metadata(self) -> StepMetadata:
        """
        Return the published metadata of this step.

        Raises:
            StepDefinitionError: If the class was not decorated with @step
        """
        metadata = type(self).__dict__.get("_step_metadata")
        if metadata is None:
            raise StepDefinitionError(self._missing_decorator_message())
        return metadata

    def get_step_data(self) -> StepData:
        """
        Return the routing facts of this step.

        Raises:
            StepDefinitionError: If the class was not decorated with @step
        """
        data = type(self).__dict__.get("_step_data")
        if data is None:
            raise StepDefinitionError(self._missing_decorator_message())
        return data

    def prepare(self, params: Any) -> Any:
        """
        Optional approval hook.

        Steps that need approval override this and return APPROVAL_REQUIRED
        (or FAILED). The default is never called by the registry; reaching
        it means the routing was handed a step that does not require
        approval.
        """
        return failed(
            "prepare() called but not implemented", ErrorCode.PREPARE_NOT_IMPLEMENTED
        )

    def _missing_decorator_message(self) -> str:
        return (
            f"{type(self).__name__} has no step metadata. "
            f"Did you forget to add the @step decorator?"
        )

    def __repr__(self) -> str:
        data = type(self).__dict__.get("_step_data")
        if data is None:
            return f"{self.__class__.__name__}(undecorated)"
        return (
            f"{self.__class__.__name__}("
            f"step_type='{data.step_type}', "
            f"step_kind='{data.step_kind.value}', "
            f"requires_approval={data.requires_approval})"
        )


def overrides_prepare(cls: Type[BaseStep]) -> bool:
    """True when ``cls`` replaces the default prepare() sentinel."""
    return cls.prepare is not BaseStep.prepare
