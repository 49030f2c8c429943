"""Operator bundle bound to one source."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from .capabilities import CapabilityRegistry
from .config import OperatorsSettings
from .models import EntityType
from .operators import (
    BoardOperators,
    EntityOperators,
    FlowOperators,
    FlowStepOperators,
    OperatorBase,
    TaskOperators,
    TypedOperators,
)

Provider = Callable[["Operators"], OperatorBase]

DEFAULT_PROVIDERS: dict[str, Provider] = {
    "entity": EntityOperators,
    "task": TaskOperators,
    "flow_step": FlowStepOperators,
    "flow": FlowOperators,
    "board": BoardOperators,
}


class Operators:
    """Every operator for one source, wired to each other.

    ``providers`` replaces individual operators (usually with a subclass)::

        ops = Operators(source, providers={"board": AuditedBoardOperators})
    """

    def __init__(
        self,
        source: Any,
        *,
        settings: Optional[OperatorsSettings] = None,
        providers: Optional[Mapping[str, Provider]] = None,
    ) -> None:
        unknown = set(providers or {}) - set(DEFAULT_PROVIDERS)
        if unknown:
            raise ValueError(f"Unknown operator providers: {', '.join(sorted(unknown))}")
        resolved = {**DEFAULT_PROVIDERS, **(providers or {})}

        self.source = source
        self.settings = settings or OperatorsSettings()
        self.config = CapabilityRegistry(source, self.settings)

        self.entity: EntityOperators = resolved["entity"](self)  # type: ignore[assignment]
        self.task: TaskOperators = resolved["task"](self)  # type: ignore[assignment]
        self.flow_step: FlowStepOperators = resolved["flow_step"](self)  # type: ignore[assignment]
        self.flow: FlowOperators = resolved["flow"](self)  # type: ignore[assignment]
        self.board: BoardOperators = resolved["board"](self)  # type: ignore[assignment]

    def for_type(self, entity_type: EntityType) -> TypedOperators:
        return {
            EntityType.TASK: self.task,
            EntityType.FLOW_STEP: self.flow_step,
            EntityType.FLOW: self.flow,
            EntityType.BOARD: self.board,
        }[EntityType(entity_type)]


def get_operators(
    source: Any,
    *,
    settings: Optional[OperatorsSettings] = None,
    providers: Optional[Mapping[str, Provider]] = None,
) -> Operators:
    """Build the operator bundle for *source*."""
    return Operators(source, settings=settings, providers=providers)
