"""Tests for the generic and per-kind CRUD operators."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import pytest

from todo_manager import get_operators
from todo_manager.capabilities import Capability
from todo_manager.container import Operators
from todo_manager.errors import (
    EntityNotFoundError,
    EntityTypeMismatchError,
    FlowStepInUseError,
    OptionsNotImplementedError,
    SavingRequiredError,
)
from todo_manager.models import Board, Entity, EntityType, Flow, FlowStep, Id, Task, new_token
from todo_manager.sources import MemorySource


@pytest.fixture
def source() -> MemorySource:
    return MemorySource()


@pytest.fixture
def ops(source: MemorySource) -> Operators:
    return get_operators(source)


class AsyncMemorySource(MemorySource):
    """Same storage, but the mandatory members answer with coroutines."""

    async def get(self, entity_type: EntityType, entity_id: Id) -> Optional[Entity]:  # type: ignore[override]
        await asyncio.sleep(0)
        return super().get(entity_type, entity_id)

    async def set(self, entity: Entity) -> Entity:  # type: ignore[override]
        await asyncio.sleep(0)
        return super().set(entity)

    async def delete(self, entity_type: EntityType, entity_id: Id) -> None:  # type: ignore[override]
        await asyncio.sleep(0)
        super().delete(entity_type, entity_id)


class MislabellingSource(MemorySource):
    """Answers every lookup with a flow step, whatever kind was asked for."""

    def get(self, entity_type: EntityType, entity_id: Id) -> Any:
        return FlowStep(id=entity_id)


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------

class TestRetrieval:
    @pytest.mark.anyio
    async def test_saving_assigns_distinct_ids(self, ops: Operators) -> None:
        saved = [await ops.task.save(Task()) for _ in range(5)]
        ids = [t.id for t in saved]
        assert len(set(ids)) == 5
        assert all(i is not None for i in ids)

        unknown = max(ids) + 100
        assert await ops.entity.get(EntityType.TASK, unknown) is None
        assert await ops.task.get(unknown) is None

    @pytest.mark.anyio
    async def test_get_returns_copies(self, ops: Operators, source: MemorySource) -> None:
        saved = await ops.task.save(Task())
        first = await ops.task.get(saved.id)
        assert first == saved
        assert first is not source.tasks[saved.id]

    @pytest.mark.anyio
    async def test_kind_mismatch_reads_as_absent(self) -> None:
        ops = get_operators(MislabellingSource())
        assert await ops.entity.get(EntityType.TASK, 1) is None
        assert await ops.task.get(1) is None
        with pytest.raises(EntityNotFoundError):
            await ops.task.get_or_fail(1)
        assert await ops.flow_step.get(1) == FlowStep(id=1)

    @pytest.mark.anyio
    async def test_get_or_fail_message(self, ops: Operators) -> None:
        with pytest.raises(EntityNotFoundError, match="Board with id 'missing'"):
            await ops.board.get_or_fail("missing")

    @pytest.mark.anyio
    async def test_get_accepts_saved_entity(self, ops: Operators) -> None:
        saved = await ops.flow_step.save(FlowStep())
        assert await ops.flow_step.get(saved) == saved

    def test_get_rejects_unsaved_entity_immediately(self, ops: Operators) -> None:
        with pytest.raises(SavingRequiredError):
            ops.task.get(Task())

    @pytest.mark.anyio
    async def test_opaque_token_ids(self, ops: Operators) -> None:
        token = new_token()
        await ops.task.save(Task(id=token))
        assert await ops.task.get_or_fail(token) == Task(id=token)

    @pytest.mark.anyio
    async def test_async_source(self) -> None:
        ops = get_operators(AsyncMemorySource())
        saved = await ops.task.create()
        assert await ops.task.get(saved.id) == saved
        deleted = await ops.task.delete(saved)
        assert deleted == saved
        assert await ops.task.get(saved.id) is None


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

class TestListing:
    @pytest.mark.anyio
    async def test_list_returns_collection(self, ops: Operators) -> None:
        for i in range(3):
            await ops.task.save(Task(id=f"t{i}"))
        await ops.flow_step.save(FlowStep(id="s"))
        tasks = await ops.task.list()
        assert set(tasks) == {"t0", "t1", "t2"}
        assert all(key == value.id for key, value in tasks.items())
        assert set(await ops.entity.list(EntityType.FLOW_STEP)) == {"s"}

    @pytest.mark.anyio
    async def test_list_follows_dynamic_toggle(self, ops: Operators, source: MemorySource) -> None:
        await ops.task.save(Task(id="t"))
        source.deactivate(Capability.A1)
        with pytest.raises(OptionsNotImplementedError):
            ops.task.list()
        with pytest.raises(OptionsNotImplementedError):
            ops.entity.list(EntityType.TASK)
        source.activate(Capability.A1)
        assert set(await ops.task.list()) == {"t"}


# ---------------------------------------------------------------------------
# Creation, update, deletion
# ---------------------------------------------------------------------------

class TestMutation:
    @pytest.mark.anyio
    async def test_create(self, ops: Operators, source: MemorySource) -> None:
        flow = await ops.flow.create({"default_step_id": "s1"})
        assert flow.id is not None
        assert flow.default_step_id == "s1"
        assert source.flows[flow.id] == flow

        generic = await ops.entity.create(EntityType.TASK, {})
        assert isinstance(generic, Task)
        assert generic.id in source.tasks

    def test_update_is_pure(self, ops: Operators) -> None:
        flow = Flow(id=1, steps={2: FlowStep(id=2)})
        updated = ops.flow.update(flow, {"default_step_id": 2})
        assert updated.default_step_id == 2
        assert flow.default_step_id is None
        assert updated.steps == flow.steps
        assert updated.steps is not flow.steps

        assert ops.entity.update(flow, {"default_step_id": 2}) == updated

    def test_update_copies_nested_props(self, ops: Operators) -> None:
        tasks = {1: Task(id=1)}
        board = ops.board.update(Board(id=9), {"tasks": tasks, "task_steps": {1: 5}})
        tasks[2] = Task(id=2)
        assert set(board.tasks) == {1}
        assert board.task_steps == {1: 5}

    @pytest.mark.anyio
    async def test_delete(self, ops: Operators, source: MemorySource) -> None:
        saved = await ops.task.save(Task())
        last_known = await ops.entity.delete(saved)
        assert last_known == saved
        assert last_known is not saved
        assert saved.id not in source.tasks

    def test_delete_requires_saving(self, ops: Operators) -> None:
        with pytest.raises(SavingRequiredError):
            ops.task.delete(Task())
        with pytest.raises(SavingRequiredError):
            ops.entity.delete(Board())

    @pytest.mark.anyio
    async def test_refresh(self, ops: Operators, source: MemorySource) -> None:
        saved = await ops.task.save(Task())
        assert await ops.task.refresh(saved) == saved
        assert await ops.entity.refresh(saved) == saved
        del source.tasks[saved.id]
        assert await ops.task.refresh(saved) is None
        with pytest.raises(EntityNotFoundError):
            await ops.task.refresh_or_fail(saved)
        with pytest.raises(EntityNotFoundError):
            await ops.entity.refresh_or_fail(saved)

    def test_refresh_requires_saving(self, ops: Operators) -> None:
        with pytest.raises(SavingRequiredError):
            ops.flow.refresh(Flow())

    @pytest.mark.anyio
    async def test_generic_delete_keeps_step_in_use(self, ops: Operators, source: MemorySource) -> None:
        step = await ops.flow_step.save(FlowStep(id="s"))
        await ops.task.save(Task(id="t"))
        await ops.board.save(Board(id="b", tasks={"t": Task(id="t")}, task_steps={"t": "s"}))

        with pytest.raises(FlowStepInUseError):
            await ops.entity.delete(await ops.flow_step.get_or_fail("s"))
        assert "s" in source.flow_steps

        await ops.board.save(await ops.board.remove_task("t", "b"))
        assert await ops.entity.delete(step) == step
        assert "s" not in source.flow_steps

    @pytest.mark.anyio
    async def test_matching_type_prop_is_ignored(self, ops: Operators) -> None:
        flow = await ops.flow.create({"type": "Flow", "default_step_id": "s"})
        assert flow.default_step_id == "s"
        task = await ops.entity.create(EntityType.TASK, {"type": EntityType.TASK})
        assert isinstance(task, Task)
        assert ops.board.update(Board(id=1), {"type": "Board", "task_steps": {}}) == Board(id=1)

    def test_conflicting_type_prop(self, ops: Operators) -> None:
        with pytest.raises(EntityTypeMismatchError, match="Task"):
            ops.flow.update(Flow(id=1), {"type": "Task"})
        with pytest.raises(EntityTypeMismatchError):
            ops.entity.update(Board(id=1), {"type": "Gantt"})

    @pytest.mark.anyio
    async def test_conflicting_type_prop_on_create(self, ops: Operators, source: MemorySource) -> None:
        with pytest.raises(EntityTypeMismatchError):
            await ops.task.create({"type": "Board"})
        assert source.tasks == {}


# ---------------------------------------------------------------------------
# Cloning and ids
# ---------------------------------------------------------------------------

class TestCloning:
    def test_flow_clone_is_deep(self, ops: Operators) -> None:
        flow = Flow(id=1, steps={2: FlowStep(id=2)}, default_step_id=2)
        copy = ops.flow.clone(flow)
        assert copy == flow
        assert copy is not flow
        copy.steps[3] = FlowStep(id=3)
        copy.steps[2].id = 99
        assert set(flow.steps) == {2}
        assert flow.steps[2].id == 2

    def test_board_clone_is_deep(self, ops: Operators) -> None:
        board = Board(
            id=1,
            flow=Flow(id=2, steps={3: FlowStep(id=3)}),
            tasks={4: Task(id=4)},
            task_steps={4: 3},
        )
        copy = ops.entity.clone(board)
        assert copy == board
        copy.tasks.pop(4)
        copy.task_steps[5] = 3
        copy.flow.steps.clear()
        assert set(board.tasks) == {4}
        assert board.task_steps == {4: 3}
        assert set(board.flow.steps) == {3}

    def test_get_id(self, ops: Operators) -> None:
        assert ops.entity.get_id("abc") == "abc"
        assert ops.entity.get_id(0) == 0
        assert ops.task.get_id(Task(id=7)) == 7
        with pytest.raises(SavingRequiredError):
            ops.entity.get_id(Task())

    def test_collections(self, ops: Operators) -> None:
        first = ops.entity.to_collection([Task(id=1), Task(id=2)])
        assert list(first) == [1, 2]
        replacement = FlowStep(id=2)
        merged = ops.entity.merge_collections([first, {2: replacement, 3: Task(id=3)}])
        assert list(merged) == [1, 2, 3]
        assert merged[2] is replacement
        with pytest.raises(SavingRequiredError):
            ops.entity.to_collection([Task()])

    def test_require_saved_entity(self, ops: Operators) -> None:
        guarded = ops.entity.require_saved_entity(lambda e: e.id * 2)
        assert guarded(Task(id=4)) == 8
        with pytest.raises(SavingRequiredError, match="Task"):
            guarded(Task())
