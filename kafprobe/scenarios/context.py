from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List

from kafprobe.codec import now_millis
from kafprobe.logging import Logger
from kafprobe.metrics import RunSummary
from kafprobe.transport import ConnectionScope
from kafprobe.verdict import CorrelationLedger, VerdictAggregator


@dataclass(slots=True)
class RunContext:
    run_id: str
    scenario: str
    topic: str
    brokers: List[str]
    aggregator: VerdictAggregator
    ledger: CorrelationLedger
    summary: RunSummary
    logger: Logger
    sleep: Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class IterationContext:
    run: RunContext
    phase: str
    worker: int
    iteration: int
    scope: ConnectionScope
    state: Dict[str, Any] = field(default_factory=dict)

    def render(self, template: str, index: int = 0, **values: Any) -> str:
        return template.format(
            run_id=self.run.run_id,
            topic=self.run.topic,
            phase=self.phase,
            worker=self.worker,
            iteration=self.iteration,
            index=index,
            ts=now_millis(),
            **values,
        )
