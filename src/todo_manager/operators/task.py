"""Task operators for the single board a task sits on (R1 sources)."""

from __future__ import annotations

from typing import Optional, Union

from ..capabilities import requires_options
from ..errors import InvalidBoardAssociationError
from ..models import Board, EntityType, FlowStep, Id, Task, is_id
from ..sources.base import maybe_await
from .base import TypedOperators


class TaskOperators(TypedOperators[Task]):
    entity_type = EntityType.TASK

    @requires_options("R1")
    async def get_board(self, id_or_task: Union[Id, Task]) -> Optional[Board]:
        """Return the single board holding the task, if any."""
        board = await maybe_await(self.source.get_task_board(self.get_id(id_or_task)))
        if board is None:
            return None
        return self.board.clone(board)

    @requires_options("R1")
    async def get_task_step(self, id_or_task: Union[Id, Task]) -> Optional[FlowStep]:
        """Return the step the task sits on in its board, or ``None`` without a board."""
        board = await self.get_board(id_or_task)
        if board is None:
            return None
        return await self.board.get_task_step(id_or_task, board)

    @requires_options("R1")
    async def set_task_step(self, id_or_step: Union[Id, FlowStep], id_or_task: Union[Id, Task]) -> Task:
        """Move the task to a step on its board and save the board.

        Raises:
            InvalidBoardAssociationError: the task is not on any board.
        """
        board = await self.get_board(id_or_task)
        if board is None:
            raise InvalidBoardAssociationError(f"Task with id {self.get_id(id_or_task)!r} has no board as a parent.")
        board = await self.board.set_task_step(id_or_step, id_or_task, board)
        await self.board.save(board)
        if is_id(id_or_task):
            return await self.get_or_fail(id_or_task)
        return self.clone(id_or_task)  # type: ignore[arg-type]
