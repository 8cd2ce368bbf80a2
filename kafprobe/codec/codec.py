"""
Wire format for tracked test messages.

A tracked message is a JSON object carrying the producer's correlation id
under ``uuid`` and the produce time in epoch milliseconds under ``ts``. An
optional ``payload`` string and any boolean flags (for example ``aclTest``)
sit beside them at the top level:

    {"uuid": "6f1c...", "ts": 1718000000000, "payload": "hello-42", "aclTest": true}

Payload bytes map one-to-one onto code points (latin-1), so any 7-bit ASCII
payload survives an encode/decode cycle byte for byte. Messages that are not
JSON objects with a ``uuid`` are treated as raw payloads by ``classify``.
"""

from typing import Any, Dict

import orjson

from kafprobe.errors import DecodeError

from .envelope import Envelope, now_millis
from .payload import Payload, Raw, Structured


RESERVED_KEYS = frozenset({"uuid", "ts", "payload"})


def to_bytes(text: str) -> bytes:
    return text.encode("latin-1")


def to_text(data: bytes) -> str:
    return data.decode("latin-1")


def encode(
    correlation_id: str,
    payload: bytes | str = b"",
    flags: Dict[str, bool] | None = None,
    produced_at_millis: int | None = None,
) -> bytes:
    if isinstance(payload, str):
        payload = to_bytes(payload)

    if produced_at_millis is None:
        produced_at_millis = now_millis()

    document: Dict[str, Any] = {
        "uuid": correlation_id,
        "ts": produced_at_millis,
    }

    if payload:
        document["payload"] = to_text(payload)

    for flag_name, flag_value in (flags or {}).items():
        if flag_name in RESERVED_KEYS:
            raise ValueError(f"Err. - flag name {flag_name!r} is reserved")

        document[flag_name] = bool(flag_value)

    return orjson.dumps(document)


def encode_envelope(envelope: Envelope) -> bytes:
    return encode(
        envelope.correlation_id,
        payload=envelope.payload,
        flags=envelope.flags,
        produced_at_millis=envelope.produced_at_millis,
    )


def encode_raw(text: str | bytes) -> bytes:
    if isinstance(text, bytes):
        return text

    return to_bytes(text)


def decode(data: bytes) -> Envelope:
    try:
        document = orjson.loads(data)

    except orjson.JSONDecodeError as err:
        raise DecodeError(f"not a JSON document: {err}") from err

    if not isinstance(document, dict):
        raise DecodeError(f"expected a JSON object, got {type(document).__name__}")

    correlation_id = document.get("uuid")
    if isinstance(correlation_id, bool) or not isinstance(correlation_id, (str, int)):
        raise DecodeError("missing uuid")

    produced_at_millis = document.get("ts", 0)
    if isinstance(produced_at_millis, bool) or not isinstance(produced_at_millis, int):
        produced_at_millis = 0

    payload = document.get("payload", "")
    if isinstance(payload, str):
        try:
            payload_bytes = to_bytes(payload)

        except UnicodeEncodeError:
            payload_bytes = payload.encode("utf-8")

    elif payload is None:
        payload_bytes = b""

    else:
        payload_bytes = orjson.dumps(payload)

    return Envelope(
        correlation_id=str(correlation_id),
        produced_at_millis=produced_at_millis,
        payload=payload_bytes,
        flags={
            key: value
            for key, value in document.items()
            if key not in RESERVED_KEYS and isinstance(value, bool)
        },
    )


def classify(data: bytes | None) -> Payload:
    if data is None:
        return Raw(data=b"")

    try:
        return Structured(envelope=decode(data))

    except DecodeError:
        return Raw(data=data)
