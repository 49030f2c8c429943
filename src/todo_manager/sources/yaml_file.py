"""YAML-file source with cross-process locking.

All entities live in one YAML document (``todo_manager.yaml`` by default)::

    version: 1
    Task: [...]
    FlowStep: [...]
    Flow: [...]
    Board: [...]

Every call takes the file lock, loads the document, and (for writes) saves it
back atomically (write-tmp-then-replace).  The source implements every
optional member, so all capabilities are present.
"""

from __future__ import annotations

import os
import threading
import uuid
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml
from filelock import FileLock
from loguru import logger

from ..errors import EntityNotFoundError
from ..models import Board, Entity, EntityType, Flow, Id, Task, entity_from_dict
from .base import Source

STORE_FILENAME = "todo_manager.yaml"
LOCK_SUFFIX = ".lock"
STORE_VERSION = 1

_ID_PREFIXES: dict[EntityType, str] = {
    EntityType.TASK: "task",
    EntityType.BOARD: "board",
    EntityType.FLOW_STEP: "step",
    EntityType.FLOW: "flow",
}


def _new_id(entity_type: EntityType) -> str:
    return f"{_ID_PREFIXES[entity_type]}-{uuid.uuid4().hex[:10]}"


UUID_TAG = "!uuid"


class _StoreDumper(yaml.SafeDumper):
    pass


class _StoreLoader(yaml.SafeLoader):
    pass


# Opaque token ids (uuid.UUID) round-trip as tagged scalars, keys included.
_StoreDumper.add_representer(uuid.UUID, lambda dumper, value: dumper.represent_scalar(UUID_TAG, str(value)))
_StoreLoader.add_constructor(UUID_TAG, lambda loader, node: uuid.UUID(loader.construct_scalar(node)))


class YamlFileSource(Source):
    """File-backed source for one project directory or store file."""

    def __init__(self, path: Path, *, lock_timeout: float = 30) -> None:
        if path.is_dir():
            path = path / STORE_FILENAME
        self._path = path
        self._lock = FileLock(str(path) + LOCK_SUFFIX, timeout=lock_timeout)
        self._thread_lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    # -- low-level I/O ------------------------------------------------------

    def _load(self) -> dict[EntityType, dict[Id, Entity]]:
        store: dict[EntityType, dict[Id, Entity]] = {t: {} for t in EntityType}
        if not self._path.exists():
            return store
        raw = yaml.load(self._path.read_text(encoding="utf-8"), Loader=_StoreLoader)
        if not isinstance(raw, dict):
            return store
        for entity_type in EntityType:
            items = raw.get(entity_type.value, [])
            if not isinstance(items, list):
                continue
            for item in items:
                if not isinstance(item, dict) or item.get("id") is None:
                    continue
                entity = entity_from_dict({**item, "type": entity_type.value})
                store[entity_type][entity.id] = entity  # type: ignore[index]
        return store

    def _save(self, store: dict[EntityType, dict[Id, Entity]]) -> None:
        payload: dict[str, Any] = {"version": STORE_VERSION}
        for entity_type in EntityType:
            payload[entity_type.value] = [e.to_dict() for e in store[entity_type].values()]
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as handle:
                yaml.dump(payload, handle, Dumper=_StoreDumper, sort_keys=False)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def _read(self) -> dict[EntityType, dict[Id, Entity]]:
        with self._thread_lock, self._lock:
            return self._load()

    def _entities(self, entity_type: EntityType) -> Iterator[Entity]:
        yield from self._read()[EntityType(entity_type)].values()

    # -- mandatory contract -------------------------------------------------

    def get(self, entity_type: EntityType, entity_id: Id) -> Optional[Entity]:
        return self._read()[EntityType(entity_type)].get(entity_id)

    def set(self, entity: Entity) -> Entity:
        with self._thread_lock, self._lock:
            store = self._load()
            stored = entity_from_dict(entity.to_dict())
            if stored.id is None:
                stored.id = _new_id(stored.type)
            store[stored.type][stored.id] = stored
            self._save(store)
        logger.debug("Stored {} {} in {}", stored.type.value, stored.id, self._path.name)
        return stored

    def delete(self, entity_type: EntityType, entity_id: Id) -> None:
        with self._thread_lock, self._lock:
            store = self._load()
            if store[EntityType(entity_type)].pop(entity_id, None) is not None:
                self._save(store)
                logger.debug("Deleted {} {} from {}", EntityType(entity_type).value, entity_id, self._path.name)

    # -- optional contract --------------------------------------------------

    def list(self, entity_type: EntityType) -> list[Entity]:  # noqa: A003
        return list(self._entities(entity_type))

    def get_task_board(self, task_id: Id) -> Optional[Board]:
        for board in self._entities(EntityType.BOARD):
            if task_id in board.tasks:  # type: ignore[attr-defined]
                return board  # type: ignore[return-value]
        return None

    def get_step_flow(self, step_id: Id) -> Flow:
        for flow in self._entities(EntityType.FLOW):
            if step_id in flow.steps:  # type: ignore[attr-defined]
                return flow  # type: ignore[return-value]
        raise EntityNotFoundError(f"FlowStep with id {step_id!r} has no associated flow.")

    def get_tasks_with_step(self, step_id: Id) -> list[Task]:
        store = self._read()
        tasks = store[EntityType.TASK]
        related: dict[Id, Task] = {}
        for board in store[EntityType.BOARD].values():
            for task_id, assigned in board.task_steps.items():  # type: ignore[attr-defined]
                if assigned != step_id:
                    continue
                if task_id not in tasks:
                    raise EntityNotFoundError(
                        f"Task with id {task_id!r} is in task_steps of board {board.id!r} but is not stored."
                    )
                related[task_id] = tasks[task_id]  # type: ignore[assignment]
        return list(related.values())
