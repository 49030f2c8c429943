"""Entity model for tasks, boards, flows and flow steps.

Entities are plain dataclasses.  An entity is *saved* once the source has
given it an ``id``; there is no separate saved type.  Nested collections are
id-keyed dicts:

* ``Flow.steps`` maps flow-step id -> :class:`FlowStep`
* ``Board.tasks`` maps task id -> :class:`Task`
* ``Board.task_steps`` maps task id -> flow-step id
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, TypeVar, Union

from .errors import EntityTypeMismatchError


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

Id = Union[str, int, uuid.UUID]


def is_id(obj: Any) -> bool:
    """Return True for a literal id (``bool`` is excluded on purpose)."""
    if isinstance(obj, bool):
        return False
    return isinstance(obj, (str, int, uuid.UUID))


def new_token() -> uuid.UUID:
    """Opaque, unique id token for sources that do not use numbers or strings."""
    return uuid.uuid4()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

class EntityType(str, Enum):
    """Discriminant of every stored entity."""

    TASK = "Task"
    BOARD = "Board"
    FLOW_STEP = "FlowStep"
    FLOW = "Flow"


@dataclass
class Entity:
    id: Optional[Id] = None

    type: ClassVar[EntityType]

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "type": self.type.value}


@dataclass
class Task(Entity):
    type: ClassVar[EntityType] = EntityType.TASK

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        return cls(id=data.get("id"))


@dataclass
class FlowStep(Entity):
    type: ClassVar[EntityType] = EntityType.FLOW_STEP

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlowStep":
        return cls(id=data.get("id"))


@dataclass
class Flow(Entity):
    """Ordered-agnostic set of steps plus the step new board tasks start on."""

    steps: Dict[Id, FlowStep] = field(default_factory=dict)
    default_step_id: Optional[Id] = None

    type: ClassVar[EntityType] = EntityType.FLOW

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["steps"] = [step.to_dict() for step in self.steps.values()]
        data["default_step_id"] = self.default_step_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Flow":
        steps = [FlowStep.from_dict(s) for s in list(data.get("steps") or []) if isinstance(s, dict)]
        return cls(
            id=data.get("id"),
            steps={s.id: s for s in steps if s.id is not None},
            default_step_id=data.get("default_step_id"),
        )


@dataclass
class Board(Entity):
    """A flow, the tasks placed on it, and the step each task sits on."""

    flow: Flow = field(default_factory=Flow)
    tasks: Dict[Id, Task] = field(default_factory=dict)
    task_steps: Dict[Id, Id] = field(default_factory=dict)

    type: ClassVar[EntityType] = EntityType.BOARD

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["flow"] = self.flow.to_dict()
        data["tasks"] = [task.to_dict() for task in self.tasks.values()]
        data["task_steps"] = dict(self.task_steps)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Board":
        raw_flow = data.get("flow")
        tasks = [Task.from_dict(t) for t in list(data.get("tasks") or []) if isinstance(t, dict)]
        return cls(
            id=data.get("id"),
            flow=Flow.from_dict(raw_flow) if isinstance(raw_flow, dict) else Flow(),
            tasks={t.id: t for t in tasks if t.id is not None},
            task_steps=dict(data.get("task_steps") or {}),
        )


E = TypeVar("E", bound=Entity)

EntityCollection = Dict[Id, E]

ENTITY_CLASSES: dict[EntityType, type[Entity]] = {
    EntityType.TASK: Task,
    EntityType.BOARD: Board,
    EntityType.FLOW_STEP: FlowStep,
    EntityType.FLOW: Flow,
}


def entity_class(entity_type: EntityType) -> type[Entity]:
    return ENTITY_CLASSES[EntityType(entity_type)]


def entity_props(entity_type: EntityType, props: Mapping[str, Any]) -> dict[str, Any]:
    """Copy *props* for building or updating an entity of *entity_type*.

    The ``type`` discriminant is not a field: a matching ``type`` key is
    dropped, any other value raises :class:`EntityTypeMismatchError`.
    """
    cleaned = dict(props)
    if "type" not in cleaned:
        return cleaned
    raw = cleaned.pop("type")
    try:
        matches = EntityType(raw) == EntityType(entity_type)
    except ValueError:
        matches = False
    if not matches:
        raise EntityTypeMismatchError(f"Props of type {raw!r} cannot build a {EntityType(entity_type).value}.")
    return cleaned


def entity_from_dict(data: dict[str, Any]) -> Entity:
    """Rebuild an entity from :meth:`Entity.to_dict` output, dispatching on ``type``."""
    cls = entity_class(EntityType(data["type"]))
    return cls.from_dict(data)  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def is_entity(obj: Any) -> bool:
    return isinstance(obj, Entity) and isinstance(getattr(obj, "type", None), EntityType)


def is_saved(entity: Entity) -> bool:
    return is_id(entity.id)


def is_task(obj: Any) -> bool:
    return is_entity(obj) and obj.type == EntityType.TASK


def is_flow_step(obj: Any) -> bool:
    return is_entity(obj) and obj.type == EntityType.FLOW_STEP


def is_flow(obj: Any) -> bool:
    return is_entity(obj) and obj.type == EntityType.FLOW


def is_board(obj: Any) -> bool:
    return is_entity(obj) and obj.type == EntityType.BOARD
