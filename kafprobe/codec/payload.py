import msgspec

from .envelope import Envelope


class Structured(msgspec.Struct, frozen=True, tag="structured"):
    envelope: Envelope

    @property
    def correlation_id(self) -> str | None:
        return self.envelope.correlation_id

    @property
    def data(self) -> bytes:
        return self.envelope.payload


class Raw(msgspec.Struct, frozen=True, tag="raw"):
    data: bytes

    @property
    def correlation_id(self) -> str | None:
        return None

    @property
    def text(self) -> str:
        return self.data.decode("latin-1")


Payload = Structured | Raw
