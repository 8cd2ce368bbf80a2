from .codec import (
    classify as classify,
    decode as decode,
    encode as encode,
    encode_envelope as encode_envelope,
    encode_raw as encode_raw,
    to_bytes as to_bytes,
    to_text as to_text,
)
from .envelope import (
    Envelope as Envelope,
    new_correlation_id as new_correlation_id,
    now_millis as now_millis,
)
from .payload import Payload as Payload, Raw as Raw, Structured as Structured
