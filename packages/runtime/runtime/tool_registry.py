from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Type

from pydantic import BaseModel, ValidationError

from protocol import TOOL_PARAM_MODELS, ToolName, WorkflowStep

logger = logging.getLogger(__name__)

ToolFn = Callable[[dict], Awaitable[Any] | Any]


class PlanValidationError(Exception):
    pass


class UnknownToolError(PlanValidationError):
    def __init__(self, tools: Iterable[str]) -> None:
        self.tools = sorted(set(tools))
        super().__init__(f"Tools not registered: {', '.join(self.tools)}")


class ToolRegistry:
    """Maps each ToolName to exactly one entry point.

    Plans are checked against the registry before any step runs, so an
    unknown or unregistered tool is a configuration error and never a
    runtime step failure.
    """

    def __init__(self) -> None:
        self._tools: Dict[ToolName, ToolFn] = {}
        self._param_models: Dict[ToolName, Type[BaseModel]] = {}

    def register(
        self,
        name: ToolName | str,
        fn: ToolFn,
        params_model: Optional[Type[BaseModel]] = None,
    ) -> None:
        tool = self._coerce(name)
        self._tools[tool] = fn
        model = params_model or TOOL_PARAM_MODELS.get(tool)
        if model is not None:
            self._param_models[tool] = model
        else:
            self._param_models.pop(tool, None)

    def is_registered(self, name: ToolName | str) -> bool:
        try:
            return self._coerce(name) in self._tools
        except UnknownToolError:
            return False

    def registered(self) -> List[ToolName]:
        return sorted(self._tools, key=lambda tool: tool.value)

    def validate_plan(self, steps: Sequence[WorkflowStep]) -> List[WorkflowStep]:
        """Check a plan and return it in execution order.

        Raises:
            UnknownToolError: a step names a tool with no entry point
            PlanValidationError: duplicate step ordinals or invalid params
        """
        missing = [step.tool.value for step in steps if step.tool not in self._tools]
        if missing:
            raise UnknownToolError(missing)

        seen: set[int] = set()
        duplicates: set[int] = set()
        for step in steps:
            if step.step in seen:
                duplicates.add(step.step)
            seen.add(step.step)
        if duplicates:
            raise PlanValidationError(
                f"Duplicate step numbers: {', '.join(str(n) for n in sorted(duplicates))}"
            )

        for step in steps:
            model = self._param_models.get(step.tool)
            if model is None:
                continue
            try:
                model.model_validate(step.params)
            except ValidationError as exc:
                raise PlanValidationError(
                    f"Step {step.step} ({step.tool.value}) has invalid params: "
                    f"{exc.error_count()} error(s)"
                ) from exc

        return sorted(steps, key=lambda step: step.step)

    async def invoke(self, name: ToolName | str, params: dict) -> Any:
        tool = self._coerce(name)
        fn = self._tools.get(tool)
        if fn is None:
            raise UnknownToolError([tool.value])

        logger.debug("invoking tool %s", tool.value)
        result = fn(params)
        if hasattr(result, "__await__"):
            result = await result

        return result

    @staticmethod
    def _coerce(name: ToolName | str) -> ToolName:
        if isinstance(name, ToolName):
            return name
        try:
            return ToolName(name)
        except ValueError:
            raise UnknownToolError([str(name)]) from None
