"""Operator classes, one per entity kind plus the kind-agnostic ones."""

from .base import OperatorBase, TypedOperators
from .board import BoardOperators
from .entity import EntityOperators
from .flow import FlowOperators
from .flow_step import FlowStepOperators
from .task import TaskOperators

__all__ = [
    "OperatorBase",
    "TypedOperators",
    "EntityOperators",
    "TaskOperators",
    "FlowStepOperators",
    "FlowOperators",
    "BoardOperators",
]
