from __future__ import annotations

from typing import Any, Dict

from pydantic import Field

from kafprobe.scenarios.context import IterationContext

from .action_registry import ActionParams
from .consume import ConsumeParams, consume
from .produce import ProduceParams, produce


class RoundtripParams(ActionParams):
    produce: ProduceParams = Field(default_factory=ProduceParams)
    consume: ConsumeParams = Field(
        default_factory=lambda: ConsumeParams(
            checks=[
                "received at least one message",
                "payload matches",
                "message correlated to producer",
            ],
        )
    )

    def writer_options(self) -> Dict[str, Any]:
        return self.produce.writer_options()

    def reader_options(self) -> Dict[str, Any]:
        return self.consume.reader_options()


async def run(context: IterationContext, params: RoundtripParams) -> None:
    await produce(context, params.produce)
    await consume(
        context,
        params.consume,
        produced=context.state["produced"],
    )
