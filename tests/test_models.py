"""Tests for the entity model (models.py)."""

from __future__ import annotations

import uuid

import pytest

from todo_manager.models import (
    Board,
    EntityType,
    Flow,
    FlowStep,
    Task,
    entity_class,
    entity_from_dict,
    is_board,
    is_entity,
    is_flow,
    is_flow_step,
    is_id,
    is_saved,
    is_task,
    new_token,
)


class TestIds:
    @pytest.mark.parametrize("value", ["abc", "", 0, 42, uuid.uuid4()])
    def test_literal_ids(self, value: object) -> None:
        assert is_id(value)

    @pytest.mark.parametrize("value", [None, True, 1.5, Task(id=1), ["a"]])
    def test_non_ids(self, value: object) -> None:
        assert not is_id(value)

    def test_tokens_are_unique(self) -> None:
        assert new_token() != new_token()

    def test_saved(self) -> None:
        assert is_saved(Task(id=0))
        assert is_saved(Task(id=""))
        assert not is_saved(Task())


class TestPredicates:
    def test_kind_predicates(self) -> None:
        assert is_task(Task()) and not is_task(FlowStep())
        assert is_flow_step(FlowStep()) and not is_flow_step(Flow())
        assert is_flow(Flow()) and not is_flow(Board())
        assert is_board(Board()) and not is_board(Task())

    def test_non_entities(self) -> None:
        assert not is_entity({"id": 1, "type": "Task"})
        assert not is_task("Task")

    def test_entity_class(self) -> None:
        assert entity_class(EntityType.FLOW_STEP) is FlowStep
        assert entity_class("Board") is Board  # type: ignore[arg-type]


class TestSerialisation:
    def test_board_to_dict(self) -> None:
        board = Board(
            id="b",
            flow=Flow(id="f", steps={"s": FlowStep(id="s")}, default_step_id="s"),
            tasks={"t": Task(id="t")},
            task_steps={"t": "s"},
        )
        data = board.to_dict()
        assert data["type"] == "Board"
        assert data["tasks"] == [{"id": "t", "type": "Task"}]
        assert data["task_steps"] == {"t": "s"}
        assert data["flow"]["steps"] == [{"id": "s", "type": "FlowStep"}]
        assert entity_from_dict(data) == board

    def test_from_dict_skips_malformed_members(self) -> None:
        flow = Flow.from_dict({"id": "f", "steps": [{"id": "a"}, "junk", {"type": "FlowStep"}]})
        assert set(flow.steps) == {"a"}
        board = Board.from_dict({"id": "b", "flow": None, "tasks": None})
        assert board.flow == Flow()
        assert board.tasks == {}

    def test_defaults_are_independent(self) -> None:
        first, second = Board(), Board()
        first.tasks[1] = Task(id=1)
        first.flow.steps[2] = FlowStep(id=2)
        assert second.tasks == {}
        assert second.flow.steps == {}
