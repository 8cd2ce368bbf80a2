from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from kafprobe.codec import Envelope, Payload, Raw, Structured
from kafprobe.transport.models import RawMessage


class ErrorKind(Enum):
    PRODUCE = "PRODUCE"
    CONSUME = "CONSUME"
    PARTIAL = "PARTIAL"
    TIMEOUT = "TIMEOUT"


TimingName = Literal[
    "request_start",
    "connect_end",
    "write_start",
    "write_end",
    "read_start",
    "read_end",
    "request_end",
]


class ProduceResult(BaseModel):
    topic: str
    partition: int = 0
    correlation_ids: List[str] = Field(default_factory=list)
    messages: int = 0
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None
    timings: Dict[TimingName, float | None] = Field(default_factory=dict)

    @property
    def successful(self):
        return self.error is None

    @property
    def latency(self) -> float | None:
        write_start = self.timings.get("write_start")
        write_end = self.timings.get("write_end")
        if write_start is None or write_end is None:
            return None

        return write_end - write_start

    def check(self):
        return self.error is None

    def context(self):
        return f"{self.error_kind.value}: {self.error}" if self.error else "OK"


class ConsumeResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    topic: str
    partition: int = 0
    offset: int = 0
    target_count: int = 1
    attempts: int = 0
    payloads: List[Structured | Raw] = Field(default_factory=list)
    messages: List[RawMessage] = Field(default_factory=list)
    poll_latencies: List[float] = Field(default_factory=list)
    last_error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None
    timings: Dict[TimingName, float | None] = Field(default_factory=dict)

    @property
    def successful(self):
        return self.error is None

    @property
    def count(self):
        return len(self.payloads)

    @property
    def partial(self):
        return 0 < len(self.payloads) < self.target_count

    @property
    def envelopes(self) -> List[Envelope]:
        return [
            payload.envelope
            for payload in self.payloads
            if isinstance(payload, Structured)
        ]

    @property
    def raw(self) -> List[Raw]:
        return [payload for payload in self.payloads if isinstance(payload, Raw)]

    @property
    def correlation_ids(self) -> List[str]:
        return [envelope.correlation_id for envelope in self.envelopes]

    def first(self) -> Payload | None:
        if len(self.payloads) == 0:
            return None

        return self.payloads[0]

    def check(self):
        return self.error is None and len(self.payloads) > 0

    def context(self):
        if self.error:
            return f"{self.error_kind.value}: {self.error}"

        if self.last_error and self.partial:
            return f"partial ({self.count}/{self.target_count}): {self.last_error}"

        return "OK"
