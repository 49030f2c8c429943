"""Shared plumbing for operator classes.

Every operator holds a reference to the :class:`~todo_manager.container.Operators`
bundle it belongs to and reaches its siblings (and the source) through it.
:class:`TypedOperators` implements the per-kind CRUD surface once; the task,
flow-step, flow and board operators only add their nested-collection cloning
and relationship operations on top.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any, Awaitable, ClassVar, Generic, Mapping, Optional, TypeVar, Union

from ..models import Entity, EntityCollection, EntityType, Id, entity_props, is_id

if TYPE_CHECKING:
    from ..capabilities import CapabilityRegistry
    from ..container import Operators
    from .board import BoardOperators
    from .entity import EntityOperators
    from .flow import FlowOperators
    from .flow_step import FlowStepOperators
    from .task import TaskOperators

E = TypeVar("E", bound=Entity)


class OperatorBase:
    def __init__(self, operators: "Operators") -> None:
        self._operators = operators

    @property
    def source(self) -> Any:
        return self._operators.source

    @property
    def config(self) -> "CapabilityRegistry":
        return self._operators.config

    @property
    def entity(self) -> "EntityOperators":
        return self._operators.entity

    @property
    def task(self) -> "TaskOperators":
        return self._operators.task

    @property
    def flow_step(self) -> "FlowStepOperators":
        return self._operators.flow_step

    @property
    def flow(self) -> "FlowOperators":
        return self._operators.flow

    @property
    def board(self) -> "BoardOperators":
        return self._operators.board


class TypedOperators(OperatorBase, Generic[E]):
    """CRUD operators bound to a single entity kind.

    Lookups accept either a literal id or a saved entity of the kind.  Methods
    that only need local checks (``get_id``, saved-ness) run those checks when
    called and hand back the coroutine afterwards.
    """

    entity_type: ClassVar[EntityType]

    def get(self, id_or_entity: Union[Id, E]) -> Awaitable[Optional[E]]:
        return self.entity.get(self.entity_type, self.get_id(id_or_entity))  # type: ignore[return-value]

    def get_or_fail(self, id_or_entity: Union[Id, E]) -> Awaitable[E]:
        return self.entity.get_or_fail(self.entity_type, self.get_id(id_or_entity))  # type: ignore[return-value]

    def list(self) -> Awaitable[EntityCollection[E]]:  # noqa: A003
        """Requires A1."""
        return self.entity.list(self.entity_type)  # type: ignore[return-value]

    def save(self, entity: E) -> Awaitable[E]:
        """Persist *entity*; the returned copy carries the id the source assigned."""
        return self.entity.save(entity)  # type: ignore[return-value]

    def create(self, props: Optional[Mapping[str, Any]] = None) -> Awaitable[E]:
        return self.entity.create(self.entity_type, props or {})  # type: ignore[return-value]

    def update(self, entity: E, changes: Mapping[str, Any]) -> E:
        """Return a copy of *entity* with *changes* applied.  Nothing is persisted."""
        return replace(self.clone(entity), **self._clone_changes(entity_props(self.entity_type, changes)))

    def delete(self, entity: E) -> Awaitable[E]:
        return self.entity._delete_saved(entity)  # type: ignore[return-value]

    def clone(self, entity: E) -> E:
        return replace(entity)

    def refresh(self, entity: E) -> Awaitable[Optional[E]]:
        return self.get(self.get_id(entity))

    def refresh_or_fail(self, entity: E) -> Awaitable[E]:
        return self.get_or_fail(self.get_id(entity))

    def get_id(self, id_or_entity: Union[Id, E]) -> Id:
        return self.entity.get_id(id_or_entity)

    # -- helpers ------------------------------------------------------------

    def _clone_changes(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        return dict(changes)

    async def resolve(self, id_or_entity: Union[Id, E]) -> E:
        """Fetch by id, or pass an entity value through untouched."""
        if is_id(id_or_entity):
            return await self.get_or_fail(id_or_entity)
        return id_or_entity  # type: ignore[return-value]
