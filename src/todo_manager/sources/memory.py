"""Dict-backed source implementing the full contract.

Every optional member can be switched off and on at runtime, which makes this
the reference backend for exercising each capability combination::

    source = MemorySource()
    source.deactivate(Capability.R2)
    assert source.get_step_flow is None
"""

from __future__ import annotations

import copy
from typing import Callable, Iterable, Optional

from ..capabilities import Capability
from ..errors import EntityNotFoundError
from ..models import Board, Entity, EntityType, Flow, FlowStep, Id, Task
from .base import Source


class MemorySource(Source):
    def __init__(self, entities: Iterable[Entity] = ()) -> None:
        self._storage: dict[EntityType, dict[Id, Entity]] = {t: {} for t in EntityType}
        self._active: dict[Capability, bool] = {c: True for c in Capability}
        for entity in entities:
            self.set(entity)

    # -- storage views ------------------------------------------------------

    def entities(self, entity_type: EntityType) -> dict[Id, Entity]:
        """The live storage dict for a type (mutating it bypasses the operators)."""
        return self._storage[EntityType(entity_type)]

    @property
    def tasks(self) -> dict[Id, Task]:
        return self._storage[EntityType.TASK]  # type: ignore[return-value]

    @property
    def flow_steps(self) -> dict[Id, FlowStep]:
        return self._storage[EntityType.FLOW_STEP]  # type: ignore[return-value]

    @property
    def flows(self) -> dict[Id, Flow]:
        return self._storage[EntityType.FLOW]  # type: ignore[return-value]

    @property
    def boards(self) -> dict[Id, Board]:
        return self._storage[EntityType.BOARD]  # type: ignore[return-value]

    def __len__(self) -> int:
        return sum(len(store) for store in self._storage.values())

    def _new_id(self) -> int:
        candidate = len(self)
        while any(candidate in store for store in self._storage.values()):
            candidate += 1
        return candidate

    # -- capability toggles -------------------------------------------------

    def activate(self, *capabilities: Capability) -> None:
        for capability in capabilities:
            self._active[Capability(capability)] = True

    def deactivate(self, *capabilities: Capability) -> None:
        for capability in capabilities:
            self._active[Capability(capability)] = False

    def is_active(self, capability: Capability) -> bool:
        return self._active[Capability(capability)]

    # -- mandatory contract -------------------------------------------------

    def get(self, entity_type: EntityType, entity_id: Id) -> Optional[Entity]:
        return self.entities(entity_type).get(entity_id)

    def set(self, entity: Entity) -> Entity:
        stored = copy.deepcopy(entity)
        if stored.id is None:
            stored.id = self._new_id()
        self.entities(stored.type)[stored.id] = stored
        return stored

    def delete(self, entity_type: EntityType, entity_id: Id) -> None:
        self.entities(entity_type).pop(entity_id, None)

    # -- optional contract --------------------------------------------------

    def _optional(self, capability: Capability, member: Callable) -> Optional[Callable]:
        return member if self._active[capability] else None

    @property
    def list(self) -> Optional[Callable[[EntityType], list[Entity]]]:  # noqa: A003
        return self._optional(Capability.A1, self._list)

    @property
    def get_task_board(self) -> Optional[Callable[[Id], Optional[Board]]]:
        return self._optional(Capability.R1, self._get_task_board)

    @property
    def get_step_flow(self) -> Optional[Callable[[Id], Flow]]:
        return self._optional(Capability.R2, self._get_step_flow)

    @property
    def get_tasks_with_step(self) -> Optional[Callable[[Id], list[Task]]]:
        return self._optional(Capability.ST1, self._get_tasks_with_step)

    def _list(self, entity_type: EntityType) -> list[Entity]:
        return list(self.entities(entity_type).values())

    def _get_task_board(self, task_id: Id) -> Optional[Board]:
        for board in self.boards.values():
            if task_id in board.tasks:
                return board
        return None

    def _get_step_flow(self, step_id: Id) -> Flow:
        for flow in self.flows.values():
            if step_id in flow.steps:
                return flow
        raise EntityNotFoundError(f"FlowStep with id {step_id!r} has no associated flow.")

    def _get_tasks_with_step(self, step_id: Id) -> list[Task]:
        related: dict[Id, Task] = {}
        for board in self.boards.values():
            for task_id, assigned_step_id in board.task_steps.items():
                if assigned_step_id != step_id:
                    continue
                task = self.tasks.get(task_id)
                if task is None:
                    raise EntityNotFoundError(
                        f"Task with id {task_id!r} is in task_steps of board {board.id!r} but is not stored."
                    )
                related[task_id] = task
        return list(related.values())
