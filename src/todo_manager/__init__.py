"""Relationship-consistent operators for tasks, boards, flows and flow steps."""

from __future__ import annotations

from .capabilities import Capability, CapabilityRegistry
from .config import OperatorsSettings, load_settings
from .container import Operators, get_operators
from .errors import (
    BoardTaskWithoutStepError,
    EntityNotFoundError,
    EntityTypeMismatchError,
    FlowStepInUseError,
    InvalidBoardAssociationError,
    InvalidFlowStepError,
    OptionsNotImplementedError,
    SavingRequiredError,
    TodoManagerError,
)
from .models import Board, Entity, EntityType, Flow, FlowStep, Id, Task

__all__ = [
    "Board",
    "BoardTaskWithoutStepError",
    "Capability",
    "CapabilityRegistry",
    "Entity",
    "EntityNotFoundError",
    "EntityType",
    "EntityTypeMismatchError",
    "Flow",
    "FlowStep",
    "FlowStepInUseError",
    "Id",
    "InvalidBoardAssociationError",
    "InvalidFlowStepError",
    "Operators",
    "OperatorsSettings",
    "OptionsNotImplementedError",
    "SavingRequiredError",
    "Task",
    "TodoManagerError",
    "get_operators",
    "load_settings",
]
