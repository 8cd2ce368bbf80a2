from __future__ import annotations

from pydantic import Field

from kafprobe.errors import ScenarioError
from kafprobe.scenarios.context import IterationContext
from kafprobe.tasks import RetryPolicy

from .consume import ConsumeParams
from .roundtrip import RoundtripParams
from .roundtrip import run as run_roundtrip


class SharedRoundtripParams(RoundtripParams):
    consume: ConsumeParams = Field(
        default_factory=lambda: ConsumeParams(
            target=1,
            limit=1,
            retry=RetryPolicy(max_attempts=5, per_attempt_timeout=10.0),
            checks=["got message", "uuid preserved", "message correlated to producer"],
        )
    )


async def run(context: IterationContext, params: SharedRoundtripParams) -> None:
    """
    Produce then consume over handles that persist across iterations. The
    reader keeps its position between iterations, so the first message read
    in an iteration is the one produced by that same iteration.
    """
    if context.scope.shared is False:
        raise ScenarioError("shared_roundtrip requires the shared connection lifecycle")

    await run_roundtrip(context, params)
