from __future__ import annotations

from enum import Enum
from typing import Literal

import msgspec
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
)

RequiredAcks = Literal[-1, 0, 1]


class ConnectionLifecycle(Enum):
    PER_INVOCATION = "per_invocation"
    SHARED = "shared"


class TopicDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: StrictStr
    partition_count: StrictInt = Field(default=1, ge=1)
    replication_factor: StrictInt = Field(default=1, ge=1)


class OutgoingMessage(msgspec.Struct, frozen=True, kw_only=True):
    value: bytes
    key: bytes | None = None
    correlation_id: str | None = None


class RawMessage(msgspec.Struct, frozen=True, kw_only=True):
    topic: str
    partition: int
    offset: int
    value: bytes
    key: bytes | None = None
    timestamp_millis: int | None = None


class WriterConfig(BaseModel):
    brokers: list[StrictStr]
    topic: StrictStr
    partition: StrictInt = 0
    required_acks: RequiredAcks = 1
    client_id: StrictStr = "kafprobe"
    request_timeout: float = 5.0
    compression_type: StrictStr | None = None


class ReaderConfig(BaseModel):
    brokers: list[StrictStr]
    topic: StrictStr
    partition: StrictInt = 0
    offset: StrictInt = Field(default=0, ge=0)
    max_wait: float = 5.0
    min_bytes: StrictInt = 1
    max_bytes: StrictInt = 10_000_000
    client_id: StrictStr = "kafprobe"
    request_timeout: float = 5.0
