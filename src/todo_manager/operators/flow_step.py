"""Flow-step lookups and deletion guarded against steps still in use."""

from __future__ import annotations

from typing import Union

from ..capabilities import requires_options
from ..errors import FlowStepInUseError
from ..models import EntityCollection, EntityType, Flow, FlowStep, Id, Task
from ..sources.base import maybe_await
from .base import TypedOperators


class FlowStepOperators(TypedOperators[FlowStep]):
    entity_type = EntityType.FLOW_STEP

    @requires_options("R2")
    async def get_flow(self, id_or_step: Union[Id, FlowStep]) -> Flow:
        """Return the flow holding the step.

        The source has no "absent" answer here: when no flow holds the step,
        whatever it raises propagates unchanged.
        """
        flow = await maybe_await(self.source.get_step_flow(self.get_id(id_or_step)))
        return self.flow.clone(flow)

    @requires_options("ST1")
    async def get_tasks(self, id_or_step: Union[Id, FlowStep]) -> EntityCollection[Task]:
        """Return every task assigned to the step, keyed by task id."""
        tasks = await maybe_await(self.source.get_tasks_with_step(self.get_id(id_or_step)))
        return self.entity.to_collection(self.task.clone(t) for t in tasks)

    def delete(self, flow_step: FlowStep):
        """Delete a saved step.

        With ST1 available the step must not be assigned to any task; otherwise
        :class:`FlowStepInUseError` is raised and nothing is deleted.
        """
        return self.entity.require_saved_entity(self._delete_unused)(flow_step)

    async def _delete_unused(self, flow_step: FlowStep) -> FlowStep:
        if self.config.can_get_tasks_from_step():
            tasks = await self.get_tasks(flow_step)
            if tasks:
                raise FlowStepInUseError(f"FlowStep with id {flow_step.id!r} is assigned to {len(tasks)} task(s).")
        return await self.entity._delete(flow_step)
