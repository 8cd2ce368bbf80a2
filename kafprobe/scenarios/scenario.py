from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, StrictBool, StrictInt, StrictStr, model_validator

from kafprobe.transport import ConnectionLifecycle
from kafprobe.utils import Duration


class TopicSettings(BaseModel):
    prefix: StrictStr = "kafprobe"
    name: Optional[StrictStr] = None
    partitions: StrictInt = Field(default=1, ge=1)
    replication_factor: StrictInt = Field(default=1, ge=1)
    provision: StrictBool = True


class CountCheck(BaseModel):
    name: StrictStr
    type: Literal["count_equals"] = "count_equals"
    metric: Literal["produced", "consumed"] = "consumed"
    expected: StrictInt = Field(ge=0)

    def evaluate(self, produced: int, consumed: int):
        actual = produced if self.metric == "produced" else consumed
        return actual == self.expected, actual


class PhaseSpec(BaseModel):
    name: StrictStr
    action: StrictStr
    workers: StrictInt = Field(default=1, ge=1)
    iterations: StrictInt = Field(default=1, ge=1)
    start_offset: Duration = 0.0
    pause: Duration = 0.0
    lifecycle: ConnectionLifecycle = ConnectionLifecycle.PER_INVOCATION
    params: Dict[str, Any] = Field(default_factory=dict)


class Scenario(BaseModel):
    name: StrictStr
    description: StrictStr = ""
    topic: TopicSettings = Field(default_factory=TopicSettings)
    phases: List[PhaseSpec]
    fail_fast: StrictBool = False
    require_all_checks: StrictBool = False
    targets: List[StrictStr] = Field(default_factory=list)
    checks: List[CountCheck] = Field(default_factory=list)
    timeout: Optional[Duration] = None

    @model_validator(mode="after")
    def validate_phases(self):
        if len(self.phases) == 0:
            raise ValueError("Scenario requires at least one phase")

        names = [phase.name for phase in self.phases]
        if len(set(names)) != len(names):
            raise ValueError(f"Scenario {self.name} has duplicate phase names")

        return self

    def supports(self, target: str | None) -> bool:
        return target is None or len(self.targets) == 0 or target in self.targets

    @property
    def total_iterations(self):
        return sum(phase.workers * phase.iterations for phase in self.phases)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Scenario:
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, path: str | Path) -> Scenario:
        scenario_path = Path(path)
        return cls.from_dict(json.loads(scenario_path.read_text()))
