import time
import uuid

import msgspec


def new_correlation_id() -> str:
    return str(uuid.uuid4())


def now_millis() -> int:
    return time.time_ns() // 1_000_000


class Envelope(msgspec.Struct, frozen=True, kw_only=True):
    correlation_id: str
    produced_at_millis: int = msgspec.field(default_factory=now_millis)
    payload: bytes = b""
    flags: dict[str, bool] = msgspec.field(default_factory=dict)

    @classmethod
    def create(
        cls,
        payload: bytes | str = b"",
        flags: dict[str, bool] | None = None,
        correlation_id: str | None = None,
    ):
        if isinstance(payload, str):
            payload = payload.encode("latin-1")

        return cls(
            correlation_id=correlation_id or new_correlation_id(),
            payload=payload,
            flags=dict(flags or {}),
        )

    @property
    def text(self) -> str:
        return self.payload.decode("latin-1")
