"""Flow operators: step membership with optional single-parent enforcement."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping, Union

from loguru import logger

from ..capabilities import requires_options
from ..errors import FlowStepInUseError
from ..models import EntityCollection, EntityType, Flow, FlowStep, Id
from .base import TypedOperators


class FlowOperators(TypedOperators[Flow]):
    entity_type = EntityType.FLOW

    def _clone_steps(self, steps: Mapping[Id, FlowStep]) -> EntityCollection[FlowStep]:
        cloned = (self.flow_step.clone(step) for step in steps.values())
        return {step.id: step for step in cloned}  # type: ignore[misc]

    def _clone_changes(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        cloned = dict(changes)
        if cloned.get("steps") is not None:
            cloned["steps"] = self._clone_steps(cloned["steps"])
        return cloned

    def clone(self, flow: Flow) -> Flow:
        return replace(flow, steps=self._clone_steps(flow.steps))

    def get_steps(self, flow: Flow) -> EntityCollection[FlowStep]:
        """Return a copy of the flow's steps."""
        return self._clone_steps(flow.steps)

    @requires_options("!R2", "ST1")
    async def add_step(self, id_or_step: Union[Id, FlowStep], id_or_flow: Union[Id, Flow]) -> Flow:
        """Add a step to a flow and return the updated, unsaved flow.

        When the source enforces one flow per step (R2), the step is first
        removed from its current flow and that flow is saved.  The removal
        needs ST1 and fails with :class:`FlowStepInUseError` while tasks are
        still assigned to the step.
        """
        if self.config.has_step_unique_flow():
            current = await self.flow_step.get_flow(id_or_step)
            logger.debug("Detaching step {} from flow {}", self.flow_step.get_id(id_or_step), current.id)
            current = await self.remove_step(id_or_step, current)
            await self.save(current)

        flow = await self.resolve(id_or_flow)
        step = await self.flow_step.resolve(id_or_step)
        steps = self.get_steps(flow)
        steps[self.flow_step.get_id(step)] = step
        return self.update(flow, {"steps": steps})

    @requires_options("ST1")
    async def remove_step(self, id_or_step: Union[Id, FlowStep], id_or_flow: Union[Id, Flow]) -> Flow:
        """Remove a step from a flow and return the updated, unsaved flow."""
        step_id = self.flow_step.get_id(id_or_step)
        tasks = await self.flow_step.get_tasks(step_id)
        if tasks:
            raise FlowStepInUseError(f"FlowStep with id {step_id!r} is assigned to {len(tasks)} task(s).")

        flow = await self.resolve(id_or_flow)
        steps = self.get_steps(flow)
        steps.pop(step_id, None)
        return self.update(flow, {"steps": steps})
