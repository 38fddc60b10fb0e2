"""
The @step decorator.

Attaches a StepConfig to a step class and freezes the facts the registry
routes on: the step kind (from the base class) and whether the step
requires approval (explicit flag, or whether prepare() is overridden).
Both are computed once, here, not per request.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Type, TypeVar

from pydantic import BaseModel

from step_sdk.exceptions import StepDefinitionError
from step_sdk.steps.base_step import (
    BaseStep,
    StepData,
    StepKind,
    StepMetadata,
    overrides_prepare,
)
from step_sdk.steps.polling_step import PollingStep
from step_sdk.steps.simple_step import SimpleStep


StepClassT = TypeVar("StepClassT", bound=Type[BaseStep])


@dataclass(frozen=True)
class StepConfig:
    """
    Static configuration of a step type.

    Attributes:
        type: Unique step type identifier, the dispatch key
        schema: Pydantic model describing the step params
        name: Display name
        short_description: One-line description
        long_description: Longer description
        yaml_example: Example of the step in a pipeline definition
        documentation_url: Link to the step's documentation
        requires_approval: Explicit approval flag. When None it is derived
                           from whether the class overrides prepare().
    """

    type: str
    schema: Type[BaseModel]
    name: Optional[str] = None
    short_description: Optional[str] = None
    long_description: Optional[str] = None
    yaml_example: Optional[str] = None
    documentation_url: Optional[str] = None
    requires_approval: Optional[bool] = None

    def __post_init__(self):
        if not isinstance(self.type, str) or not self.type.strip():
            raise StepDefinitionError("Step type must be a non-empty string")
        if not (isinstance(self.schema, type) and issubclass(self.schema, BaseModel)):
            raise StepDefinitionError(
                f"Step '{self.type}' schema must be a pydantic BaseModel subclass, "
                f"got {self.schema!r}"
            )


def detect_step_kind(cls: Type[BaseStep]) -> StepKind:
    """
    Determine the step kind from the class hierarchy.

    Raises:
        StepDefinitionError: If the class derives from neither SimpleStep nor PollingStep
    """
    if issubclass(cls, PollingStep):
        return StepKind.POLLING
    if issubclass(cls, SimpleStep):
        return StepKind.SIMPLE
    raise StepDefinitionError(
        f"{cls.__name__} must extend SimpleStep or PollingStep"
    )


def detect_requires_approval(cls: Type[BaseStep], config: StepConfig) -> bool:
    """
    Resolve the approval flag of a step class.

    Raises:
        StepDefinitionError: If approval is declared but prepare() is not overridden
    """
    has_prepare = overrides_prepare(cls)
    if config.requires_approval is None:
        return has_prepare
    if config.requires_approval and not has_prepare:
        raise StepDefinitionError(
            f"Step '{config.type}' declares requires_approval=True "
            f"but {cls.__name__} does not override prepare()"
        )
    return config.requires_approval


def build_step_metadata(config: StepConfig) -> StepMetadata:
    return StepMetadata(
        name=config.name,
        short_description=config.short_description,
        long_description=config.long_description,
        yaml_example=config.yaml_example,
        step_type=config.type,
        params_json_schema=config.schema.model_json_schema(),
        documentation_url=config.documentation_url,
    )


def apply_step_config(cls: StepClassT, config: StepConfig) -> StepClassT:
    """
    Attach ``config`` to ``cls`` and freeze its step data and metadata.

    This is what @step does; call it directly to configure a class built
    elsewhere.

    Raises:
        StepDefinitionError: If the class or configuration is invalid
    """
    if not (isinstance(cls, type) and issubclass(cls, BaseStep)):
        raise StepDefinitionError(
            f"@step can only decorate SimpleStep or PollingStep subclasses, got {cls!r}"
        )

    step_data = StepData(
        step_type=config.type,
        schema=config.schema,
        step_kind=detect_step_kind(cls),
        requires_approval=detect_requires_approval(cls, config),
    )

    cls.step_config = config
    cls._step_data = step_data
    cls._step_metadata = build_step_metadata(config)
    return cls


def step(
    type: str,
    schema: Type[BaseModel],
    name: Optional[str] = None,
    short_description: Optional[str] = None,
    long_description: Optional[str] = None,
    yaml_example: Optional[str] = None,
    documentation_url: Optional[str] = None,
    requires_approval: Optional[bool] = None,
) -> Callable[[StepClassT], StepClassT]:
    """
    Decorator that declares a step class.

    Required for every step registered with StepRegistry.

    Example:
        class MyParams(BaseModel):
            target: str

        @step(name="My Step", type="my-step", schema=MyParams)
        class MyStep(SimpleStep):
            def __init__(self, api_client=None):
                self.api_client = api_client or ApiClient()

            def run(self, params, approval=None):
                self.api_client.do_something(params.target)
                return StepOutputs.success()
    """
    config = StepConfig(
        type=type,
        schema=schema,
        name=name,
        short_description=short_description,
        long_description=long_description,
        yaml_example=yaml_example,
        documentation_url=documentation_url,
        requires_approval=requires_approval,
    )

    def decorator(cls: StepClassT) -> StepClassT:
        return apply_step_config(cls, config)

    return decorator
