from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List

from pydantic import BaseModel, ConfigDict, ValidationError

from kafprobe.errors import ScenarioError
from kafprobe.scenarios.context import IterationContext


class ActionParams(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def writer_options(self) -> Dict[str, Any]:
        return {}

    def reader_options(self) -> Dict[str, Any]:
        return {}


ActionHandler = Callable[[IterationContext, ActionParams], Awaitable[None]]


@dataclass(slots=True)
class RegisteredAction:
    name: str
    handler: ActionHandler
    params_model: type[ActionParams]

    def parse(self, params: Dict[str, Any]) -> ActionParams:
        try:
            return self.params_model.model_validate(params)

        except ValidationError as err:
            raise ScenarioError(
                f"Invalid params for action '{self.name}': {err}"
            ) from err


class ActionRegistry:
    def __init__(self) -> None:
        self._actions: Dict[str, RegisteredAction] = {}

    def register(
        self,
        name: str,
        handler: ActionHandler,
        params_model: type[ActionParams] = ActionParams,
    ) -> None:
        self._actions[name] = RegisteredAction(
            name=name,
            handler=handler,
            params_model=params_model,
        )

    def get(self, name: str) -> RegisteredAction:
        if name not in self._actions:
            raise ScenarioError(f"Unknown action type: {name}")

        return self._actions[name]

    def names(self) -> List[str]:
        return list(self._actions)
