from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Set, Tuple

from kafprobe.codec import Payload, classify
from kafprobe.errors import ConsumeTimeoutError
from kafprobe.transport import ConnectionScope, RawMessage, ReaderHandle

from .models import ConsumeResult, ErrorKind, TimingName
from .retry_policy import RetryPolicy


@dataclass(slots=True)
class RetryState:
    max_attempts: int
    attempts_made: int = 0
    accumulated: List[Payload] = field(default_factory=list)
    messages: List[RawMessage] = field(default_factory=list)
    last_error: str | None = None
    seen: Set[Tuple[int, int]] = field(default_factory=set)

    @property
    def exhausted(self):
        return self.attempts_made >= self.max_attempts


class ConsumerTask:
    """
    Reads from the scope's topic-partition starting at the configured offset,
    retrying bounded reads until ``target`` messages have accumulated or the
    policy runs out of attempts.

    One reader is acquired per call and every attempt polls it. An empty
    read counts as a timed-out attempt. Messages are decoded with
    ``classify`` so undecodable values surface as ``Raw`` payloads rather
    than errors, and duplicates (same partition and offset) redelivered by a
    shared reader are dropped.
    """

    def __init__(
        self,
        scope: ConnectionScope,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.scope = scope
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def receive(
        self,
        target: int = 1,
        limit: int | None = None,
    ) -> ConsumeResult:
        config = self.scope.reader_config
        policy = self.policy

        if limit is None:
            limit = target

        timings: Dict[TimingName, float | None] = {
            "request_start": time.monotonic(),
            "read_start": None,
            "read_end": None,
            "request_end": None,
        }

        state = RetryState(max_attempts=policy.max_attempts)
        poll_latencies: List[float] = []

        try:
            async with self.scope.reader() as reader:
                while state.exhausted is False and len(state.accumulated) < target:
                    if state.attempts_made > 0:
                        delay = policy.calculate_delay(state.attempts_made - 1)
                        if delay > 0:
                            await self._sleep(delay)

                    poll_start = time.monotonic()
                    if timings["read_start"] is None:
                        timings["read_start"] = poll_start

                    await self._attempt(reader, limit, state)

                    poll_latencies.append(time.monotonic() - poll_start)
                    timings["read_end"] = time.monotonic()
                    state.attempts_made += 1

        except Exception as err:
            # Opening or closing the reader failed.
            state.last_error = str(err) or err.__class__.__name__

        timings["request_end"] = time.monotonic()

        result = ConsumeResult(
            topic=config.topic,
            partition=config.partition,
            offset=config.offset,
            target_count=target,
            attempts=state.attempts_made,
            payloads=state.accumulated,
            messages=state.messages,
            poll_latencies=poll_latencies,
            last_error=state.last_error,
            timings=timings,
        )

        if len(state.accumulated) >= target:
            return result

        if len(state.accumulated) == 0:
            result.error_kind = ErrorKind.CONSUME
            result.error = state.last_error or "no messages consumed"

        elif policy.allow_partial_success is False:
            result.error_kind = ErrorKind.PARTIAL
            result.error = (
                f"consumed {len(state.accumulated)} of {target} messages: "
                f"{state.last_error}"
            )

        return result

    async def _attempt(
        self,
        reader: ReaderHandle,
        limit: int,
        state: RetryState,
    ):
        policy = self.policy

        try:
            batch = await asyncio.wait_for(
                reader.consume(
                    limit,
                    policy.per_attempt_timeout,
                ),
                timeout=policy.per_attempt_timeout + policy.timeout_grace,
            )

            if len(batch) == 0:
                raise ConsumeTimeoutError(
                    f"no messages within {policy.per_attempt_timeout}s"
                )

            for message in batch:
                position = (message.partition, message.offset)
                if position in state.seen:
                    continue

                state.seen.add(position)
                state.messages.append(message)
                state.accumulated.append(classify(message.value))

        except asyncio.TimeoutError:
            state.last_error = (
                f"read timed out after {policy.per_attempt_timeout}s"
            )

        except Exception as err:
            state.last_error = str(err) or err.__class__.__name__
