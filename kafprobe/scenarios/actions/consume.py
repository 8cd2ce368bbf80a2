from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import Field, StrictBool, StrictInt

from kafprobe.codec import Envelope, Structured
from kafprobe.logging.kafprobe_logging_models import WorkerDebug
from kafprobe.scenarios.context import IterationContext
from kafprobe.tasks import ConsumeResult, ConsumerTask, ErrorKind, RetryPolicy
from kafprobe.verdict.correlation_ledger import Origin
from kafprobe.utils import Duration

from .action_registry import ActionParams

CheckName = Literal[
    "got message",
    "received at least one message",
    "message has content",
    "uuid preserved",
    "payload matches",
    "consumed expected messages",
    "test message found with correct UUID",
    "authorized consume succeeded",
    "message correlated to producer",
]


@dataclass(slots=True)
class ConsumeSubject:
    result: ConsumeResult
    produced: List[Envelope | bytes] = field(default_factory=list)
    origins: List[Origin | None] = field(default_factory=list)


def _received(subject: ConsumeSubject) -> bool:
    return subject.result.count > 0


def _has_content(subject: ConsumeSubject) -> bool:
    return isinstance(subject.result.payloads[0], Structured)


def _uuid_preserved(subject: ConsumeSubject) -> bool:
    return subject.result.payloads[0].correlation_id == subject.produced[0].correlation_id


def _payload_matches(subject: ConsumeSubject) -> bool:
    expected = subject.produced[0]

    if isinstance(expected, Envelope):
        consumed = subject.result.payloads[0]
        return isinstance(consumed, Structured) and consumed.data == expected.payload

    return subject.result.messages[0].value == expected


def _consumed_expected(subject: ConsumeSubject) -> bool:
    consumed = set()
    for payload, message in zip(subject.result.payloads, subject.result.messages):
        if isinstance(payload, Structured):
            consumed.add(payload.correlation_id)

        else:
            consumed.add(message.value)

    expected = [
        item.correlation_id if isinstance(item, Envelope) else item
        for item in subject.produced
    ]

    return len(expected) > 0 and all(item in consumed for item in expected)


def _correlated(subject: ConsumeSubject) -> bool:
    return all(origin is not None for origin in subject.origins)


def _flagged_message_found(subject: ConsumeSubject) -> bool:
    expected = subject.produced[0]

    return any(
        envelope.correlation_id == expected.correlation_id
        and all(
            envelope.flags.get(flag) == value
            for flag, value in expected.flags.items()
        )
        for envelope in subject.result.envelopes
    )


CHECKS: Dict[str, Callable[[ConsumeSubject], bool]] = {
    "got message": _received,
    "received at least one message": _received,
    "message has content": _has_content,
    "uuid preserved": _uuid_preserved,
    "payload matches": _payload_matches,
    "consumed expected messages": _consumed_expected,
    "test message found with correct UUID": _flagged_message_found,
    "authorized consume succeeded": lambda subject: subject.result.successful,
    "message correlated to producer": _correlated,
}


class ConsumeParams(ActionParams):
    target: StrictInt = Field(default=1, ge=1)
    limit: Optional[StrictInt] = Field(default=None, ge=1)
    offset: StrictInt = Field(default=0, ge=0)
    settle: Duration = 0.0
    max_wait: Duration = 5.0
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    checks: List[CheckName] = Field(
        default_factory=lambda: [
            "got message",
            "message has content",
            "message correlated to producer",
        ]
    )
    optional_checks: List[CheckName] = Field(default_factory=list)
    fail_on_error: StrictBool = True

    def reader_options(self) -> Dict[str, Any]:
        return {
            "offset": self.offset,
            "max_wait": self.max_wait,
        }


async def consume(
    context: IterationContext,
    params: ConsumeParams,
    produced: List[Envelope | bytes] | None = None,
) -> ConsumeResult:
    run = context.run

    if params.settle > 0:
        await run.sleep(params.settle)

    consumer = ConsumerTask(
        context.scope,
        policy=params.retry,
        sleep=run.sleep,
    )

    result = await consumer.receive(
        target=params.target,
        limit=params.limit or params.target,
    )

    run.summary.record_consume(result)
    context.state["consume_result"] = result

    origins = [run.ledger.match(envelope) for envelope in result.envelopes]

    await run.logger.log(
        WorkerDebug(
            message=(
                f"Consumed {result.count}/{params.target} message(s) "
                f"in {result.attempts} attempt(s): {result.context()}"
            ),
            run_id=run.run_id,
            phase=context.phase,
            worker=context.worker,
            iteration=context.iteration,
        ),
        name="kafprobe",
    )

    if result.error_kind in (ErrorKind.CONSUME, ErrorKind.PARTIAL):
        run.aggregator.note_error(result.last_error)

        if params.fail_on_error:
            run.aggregator.fail_fast(
                f"Consumer error: {result.error}",
                error=result.last_error,
            )

    subject = ConsumeSubject(
        result=result,
        produced=list(produced or []),
        origins=origins,
    )

    run.aggregator.check(
        subject,
        {name: CHECKS[name] for name in params.checks},
        worker=context.worker,
        iteration=context.iteration,
        error=result.last_error,
    )

    if params.optional_checks:
        run.aggregator.check(
            subject,
            {name: CHECKS[name] for name in params.optional_checks},
            required=False,
            worker=context.worker,
            iteration=context.iteration,
        )

    return result


async def run(context: IterationContext, params: ConsumeParams) -> None:
    await consume(context, params)
