"""The persistence contract operators consume.

Only ``get``, ``set`` and ``delete`` are mandatory.  A source may also
define any of the following; each one it defines (as a non-``None``
callable) unlocks a capability, see :mod:`todo_manager.capabilities`:

``list(entity_type) -> Iterable[Entity]``
    Every saved entity of a type.
``get_task_board(task_id) -> Board | None``
    The single board holding a task.
``get_step_flow(step_id) -> Flow``
    The single flow holding a step.  There is no "absent" result: a source
    raises when no flow holds the step.
``get_tasks_with_step(step_id) -> Iterable[Task]``
    Every task assigned to a step on any board.

Any method may return either a value or an awaitable.  The optional members
are deliberately not declared here so that subclasses opt in by defining them.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Awaitable, Optional, TypeVar, Union

from ..models import Entity, EntityType, Id

T = TypeVar("T")

MaybeAwaitable = Union[T, Awaitable[T]]


async def maybe_await(value: MaybeAwaitable[T]) -> T:
    """Await *value* if the source handed back an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value  # type: ignore[return-value]


class Source(ABC):
    @abstractmethod
    def get(self, entity_type: EntityType, entity_id: Id) -> MaybeAwaitable[Optional[Entity]]:
        raise NotImplementedError

    @abstractmethod
    def set(self, entity: Entity) -> MaybeAwaitable[Entity]:
        """Persist *entity*, assigning an id if it has none, and return the stored value."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, entity_type: EntityType, entity_id: Id) -> MaybeAwaitable[None]:
        raise NotImplementedError
