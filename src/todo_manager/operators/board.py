"""Board operators: task membership and per-task step assignment.

A board keeps two id-keyed views of its tasks, ``tasks`` and ``task_steps``.
Both must list the same task ids; :meth:`BoardOperators.has_task` reports a
board where they disagree instead of papering over it.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping, Union

from loguru import logger

from ..errors import BoardTaskWithoutStepError, EntityNotFoundError
from ..models import Board, EntityCollection, EntityType, FlowStep, Id, Task, is_saved
from .base import TypedOperators


class BoardOperators(TypedOperators[Board]):
    entity_type = EntityType.BOARD

    def _clone_tasks(self, tasks: Mapping[Id, Task]) -> EntityCollection[Task]:
        cloned = (self.task.clone(task) for task in tasks.values())
        return {task.id: task for task in cloned}  # type: ignore[misc]

    def _clone_changes(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        cloned = dict(changes)
        if cloned.get("tasks") is not None:
            cloned["tasks"] = self._clone_tasks(cloned["tasks"])
        if cloned.get("task_steps") is not None:
            cloned["task_steps"] = dict(cloned["task_steps"])
        if cloned.get("flow") is not None:
            cloned["flow"] = self.flow.clone(cloned["flow"])
        return cloned

    def clone(self, board: Board) -> Board:
        return replace(
            board,
            flow=self.flow.clone(board.flow),
            tasks=self._clone_tasks(board.tasks),
            task_steps=dict(board.task_steps),
        )

    async def add_task(self, id_or_task: Union[Id, Task], id_or_board: Union[Id, Board]) -> Board:
        """Put a task on a board and return the updated, unsaved board.

        With R1 a task lives on at most one board, so a saved task is first
        removed from its current board and that board is saved right away.
        The new task starts on the flow's default step when one is set.
        """
        task = await self.task.resolve(id_or_task)
        if self.config.has_task_unique_board() and is_saved(task):
            current = await self.task.get_board(task)
            if current is not None:
                logger.debug("Detaching task {} from board {}", task.id, current.id)
                current = await self.remove_task(task, current)
                await self.save(current)

        board = await self.resolve(id_or_board)
        task_id = self.task.get_id(task)
        tasks = self._clone_tasks(board.tasks)
        task_steps = dict(board.task_steps)
        tasks[task_id] = task
        if board.flow.default_step_id is not None:
            task_steps[task_id] = board.flow.default_step_id
        return self.update(board, {"tasks": tasks, "task_steps": task_steps})

    async def remove_task(self, id_or_task: Union[Id, Task], id_or_board: Union[Id, Board]) -> Board:
        """Drop a task and its step assignment together; returns the unsaved board."""
        task_id = self.task.get_id(id_or_task)
        board = await self.resolve(id_or_board)
        tasks = self._clone_tasks(board.tasks)
        task_steps = dict(board.task_steps)
        tasks.pop(task_id, None)
        task_steps.pop(task_id, None)
        return self.update(board, {"tasks": tasks, "task_steps": task_steps})

    async def has_task(self, id_or_task: Union[Id, Task], id_or_board: Union[Id, Board]) -> bool:
        """Whether the board holds the task.

        Raises:
            BoardTaskWithoutStepError: the task is listed but has no step.
            EntityNotFoundError: a step is assigned to a task the board does not list.
        """
        task_id = self.task.get_id(id_or_task)
        board = await self.resolve(id_or_board)
        in_tasks = task_id in board.tasks
        has_step = task_id in board.task_steps
        if in_tasks == has_step:
            return in_tasks
        logger.warning(
            "Board {} is inconsistent for task {} (in tasks: {}, has step: {})",
            board.id,
            task_id,
            in_tasks,
            has_step,
        )
        if in_tasks:
            raise BoardTaskWithoutStepError(f"In board with id {board.id!r} and task with id {task_id!r}.")
        raise EntityNotFoundError(
            f"Board with id {board.id!r} has no task with id {task_id!r} but has an associated flow step."
        )

    async def get_task_step_id(self, id_or_task: Union[Id, Task], id_or_board: Union[Id, Board]) -> Id:
        task_id = self.task.get_id(id_or_task)
        board = await self.resolve(id_or_board)
        step_id = board.task_steps.get(task_id)
        if step_id is None:
            raise BoardTaskWithoutStepError(f"On board {board.id!r} task {task_id!r} has no step associated.")
        return step_id

    async def get_task_step(self, id_or_task: Union[Id, Task], id_or_board: Union[Id, Board]) -> FlowStep:
        step_id = await self.get_task_step_id(id_or_task, id_or_board)
        return await self.flow_step.get_or_fail(step_id)

    async def set_task_step(
        self,
        id_or_step: Union[Id, FlowStep],
        id_or_task: Union[Id, Task],
        id_or_board: Union[Id, Board],
    ) -> Board:
        """Assign a step to a task on the board; returns the unsaved board.

        Neither board membership of the task nor flow membership of the step
        is checked.
        """
        step_id = self.flow_step.get_id(id_or_step)
        task_id = self.task.get_id(id_or_task)
        board = await self.resolve(id_or_board)
        task_steps = dict(board.task_steps)
        task_steps[task_id] = step_id
        return self.update(board, {"task_steps": task_steps})
