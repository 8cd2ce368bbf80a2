from __future__ import annotations

import asyncio
import time
from typing import Dict, List, Sequence

from kafprobe.codec import Envelope, encode_envelope, encode_raw
from kafprobe.transport import ConnectionScope, OutgoingMessage

from .models import ErrorKind, ProduceResult, TimingName


class ProducerTask:
    """
    Sends one batch to the scope's topic-partition. There is no internal
    retry, a failed send is returned as a tagged result.
    """

    def __init__(
        self,
        scope: ConnectionScope,
        timeout_grace: float = 1.0,
    ) -> None:
        self.scope = scope
        self.timeout_grace = timeout_grace

    async def send(
        self,
        batch: Sequence[Envelope | bytes | str],
        keys: Sequence[bytes | None] | None = None,
    ) -> ProduceResult:
        config = self.scope.writer_config

        timings: Dict[TimingName, float | None] = {
            "request_start": time.monotonic(),
            "connect_end": None,
            "write_start": None,
            "write_end": None,
            "request_end": None,
        }

        messages: List[OutgoingMessage] = []
        correlation_ids: List[str] = []

        if keys is None:
            keys = [None] * len(batch)

        for item, key in zip(batch, keys):
            if isinstance(item, Envelope):
                messages.append(
                    OutgoingMessage(
                        value=encode_envelope(item),
                        key=key,
                        correlation_id=item.correlation_id,
                    )
                )
                correlation_ids.append(item.correlation_id)

            else:
                messages.append(
                    OutgoingMessage(
                        value=encode_raw(item),
                        key=key,
                    )
                )

        try:
            async with self.scope.writer() as writer:
                timings["connect_end"] = time.monotonic()
                timings["write_start"] = time.monotonic()

                await asyncio.wait_for(
                    writer.produce(messages),
                    timeout=config.request_timeout + self.timeout_grace,
                )

                timings["write_end"] = time.monotonic()

            timings["request_end"] = time.monotonic()

            return ProduceResult(
                topic=config.topic,
                partition=config.partition,
                correlation_ids=correlation_ids,
                messages=len(messages),
                timings=timings,
            )

        except asyncio.TimeoutError:
            timings["request_end"] = time.monotonic()

            return ProduceResult(
                topic=config.topic,
                partition=config.partition,
                correlation_ids=correlation_ids,
                error_kind=ErrorKind.TIMEOUT,
                error=f"produce timed out after {config.request_timeout}s",
                timings=timings,
            )

        except Exception as err:
            timings["request_end"] = time.monotonic()

            return ProduceResult(
                topic=config.topic,
                partition=config.partition,
                correlation_ids=correlation_ids,
                error_kind=ErrorKind.PRODUCE,
                error=str(err) or err.__class__.__name__,
                timings=timings,
            )
