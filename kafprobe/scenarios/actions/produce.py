from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field, StrictBool, StrictInt, StrictStr

from kafprobe.codec import Envelope, encode_raw
from kafprobe.logging.kafprobe_logging_models import WorkerDebug
from kafprobe.scenarios.context import IterationContext
from kafprobe.tasks import ProduceResult, ProducerTask
from kafprobe.transport import RequiredAcks

from .action_registry import ActionParams


class ProduceParams(ActionParams):
    messages: StrictInt = Field(default=1, ge=1)
    payload: Optional[StrictStr] = None
    raw: StrictBool = False
    flags: Dict[str, bool] = Field(default_factory=dict)
    key: Optional[StrictStr] = "{correlation_id}"
    correlation_id: Optional[StrictStr] = None
    acks: RequiredAcks = 1
    check: Optional[StrictStr] = None

    def writer_options(self) -> Dict[str, Any]:
        return {"required_acks": self.acks}


def build_batch(
    context: IterationContext,
    params: ProduceParams,
) -> List[Envelope | bytes]:
    batch: List[Envelope | bytes] = []

    for index in range(params.messages):
        payload = ""
        if params.payload is not None:
            payload = context.render(params.payload, index=index)

        if params.raw:
            batch.append(encode_raw(payload))
            continue

        correlation_id: str | None = None
        if params.correlation_id is not None:
            correlation_id = context.render(params.correlation_id, index=index)

        batch.append(
            Envelope.create(
                payload=payload,
                flags=params.flags,
                correlation_id=correlation_id,
            )
        )

    return batch


def build_keys(
    context: IterationContext,
    params: ProduceParams,
    batch: List[Envelope | bytes],
) -> List[bytes | None]:
    keys: List[bytes | None] = []

    for index, item in enumerate(batch):
        if params.key is None:
            keys.append(None)
            continue

        correlation_id = item.correlation_id if isinstance(item, Envelope) else None
        if correlation_id is None and "{correlation_id}" in params.key:
            keys.append(None)
            continue

        keys.append(
            context.render(
                params.key,
                index=index,
                correlation_id=correlation_id,
            ).encode()
        )

    return keys


async def produce(
    context: IterationContext,
    params: ProduceParams,
) -> ProduceResult:
    run = context.run
    batch = build_batch(context, params)

    duplicates: List[str] = []
    for item in batch:
        if isinstance(item, Envelope) and not run.ledger.register(
            item.correlation_id,
            context.phase,
            context.worker,
            context.iteration,
        ):
            duplicates.append(item.correlation_id)

    if duplicates:
        run.aggregator.check(
            duplicates,
            {"correlation ids unique": lambda ids: len(ids) == 0},
            worker=context.worker,
            iteration=context.iteration,
            error=f"duplicate correlation ids: {', '.join(duplicates)}",
        )

    result = await ProducerTask(context.scope).send(
        batch,
        keys=build_keys(context, params, batch),
    )

    run.summary.record_produce(result)
    context.state["produced"] = batch
    context.state["produce_result"] = result

    await run.logger.log(
        WorkerDebug(
            message=f"Produced {len(batch)} message(s) to {result.topic}: {result.context()}",
            run_id=run.run_id,
            phase=context.phase,
            worker=context.worker,
            iteration=context.iteration,
        ),
        name="kafprobe",
    )

    if params.check:
        run.aggregator.check(
            result,
            {params.check: lambda produce_result: produce_result.successful},
            worker=context.worker,
            iteration=context.iteration,
            error=result.error,
        )

    elif result.successful is False:
        run.aggregator.fail_fast(
            f"Producer error: {result.error}",
            error=result.error,
        )

    return result


async def run(context: IterationContext, params: ProduceParams) -> None:
    await produce(context, params)
