"""Generic operators parameterised by entity kind."""

from __future__ import annotations

import copy
from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar, Union

from ..capabilities import requires_options
from ..errors import EntityNotFoundError, SavingRequiredError
from ..models import Entity, EntityCollection, EntityType, Id, entity_class, entity_props, is_entity, is_id, is_saved
from ..sources.base import maybe_await
from .base import OperatorBase

E = TypeVar("E", bound=Entity)
R = TypeVar("R")


class EntityOperators(OperatorBase):
    """Kind-agnostic reads and writes against the source.

    Every value handed back is a fresh copy; nested collections (flow steps,
    board tasks and task steps) are copied by the kind-specific operators.
    """

    async def _fetch(self, entity_type: EntityType, entity_id: Id) -> Optional[Entity]:
        found = await maybe_await(self.source.get(entity_type, entity_id))
        # A misbehaving source may hand back an entity of another kind.
        if found is not None and is_entity(found) and found.type == entity_type:
            return self.clone(found)
        return None

    async def get(self, entity_type: EntityType, entity_id: Id) -> Optional[Entity]:
        """Return the entity, or ``None`` if it is missing or of another kind."""
        return await self._fetch(EntityType(entity_type), entity_id)

    async def get_or_fail(self, entity_type: EntityType, entity_id: Id) -> Entity:
        entity_type = EntityType(entity_type)
        found = await self._fetch(entity_type, entity_id)
        if found is None:
            raise EntityNotFoundError(f"{entity_type.value} with id {entity_id!r} not found.")
        return found

    @requires_options("A1")
    async def list(self, entity_type: EntityType) -> EntityCollection[Entity]:  # noqa: A003
        entities = await maybe_await(self.source.list(EntityType(entity_type)))
        return self.to_collection(self.clone(e) for e in entities)

    async def save(self, entity: E) -> E:
        stored = await maybe_await(self.source.set(entity))
        return self.clone(stored)

    async def create(self, entity_type: EntityType, props: Mapping[str, Any]) -> Entity:
        """Build a bare entity of *entity_type* from *props* and persist it."""
        entity_type = EntityType(entity_type)
        cls = entity_class(entity_type)
        return await self.save(cls(**entity_props(entity_type, props)))

    def update(self, entity: E, changes: Mapping[str, Any]) -> E:
        return self._operators.for_type(entity.type).update(entity, changes)

    def delete(self, entity: E) -> Any:
        """Delete a saved entity and return (awaitably) its last known value.

        Goes through the operators of the entity's kind, so kind-specific
        checks (a flow step still in use) apply here too.  Raises
        :class:`SavingRequiredError` immediately for an unsaved entity.
        """
        return self._operators.for_type(entity.type).delete(entity)

    def _delete_saved(self, entity: E) -> Any:
        return self.require_saved_entity(self._delete)(entity)

    async def _delete(self, entity: E) -> E:
        await maybe_await(self.source.delete(entity.type, entity.id))
        return self.clone(entity)

    def clone(self, entity: E) -> E:
        if isinstance(getattr(entity, "type", None), EntityType):
            return self._operators.for_type(entity.type).clone(entity)
        return copy.copy(entity)

    def refresh(self, entity: Entity) -> Any:
        return self.get(entity.type, self.get_id(entity))

    def refresh_or_fail(self, entity: Entity) -> Any:
        return self.get_or_fail(entity.type, self.get_id(entity))

    def get_id(self, id_or_entity: Union[Id, Entity]) -> Id:
        """Pass a literal id through; otherwise return the id of a saved entity."""
        if is_id(id_or_entity):
            return id_or_entity  # type: ignore[return-value]
        return self.require_saved_entity(lambda entity: entity.id)(id_or_entity)

    # -- collections --------------------------------------------------------

    def to_collection(self, entities: Iterable[E]) -> EntityCollection[E]:
        """Key saved entities by id; later entries win on a repeated id."""
        collection: EntityCollection[E] = {}
        for entity in entities:
            collection[self.get_id(entity)] = entity
        return collection

    def merge_collections(self, collections: Iterable[EntityCollection[E]]) -> EntityCollection[E]:
        merged: EntityCollection[E] = {}
        for collection in collections:
            merged.update(collection)
        return merged

    # -- guards -------------------------------------------------------------

    def require_saved_entity(self, fn: Callable[[E], R]) -> Callable[[E], R]:
        def guarded(entity: E) -> R:
            if not is_saved(entity):
                kind = getattr(getattr(entity, "type", None), "value", type(entity).__name__)
                raise SavingRequiredError(f"{kind} must be saved first.")
            return fn(entity)

        return guarded
