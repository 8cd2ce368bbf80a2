from typing import List, Protocol, Sequence, runtime_checkable

from .models import OutgoingMessage, RawMessage, ReaderConfig, WriterConfig


@runtime_checkable
class WriterHandle(Protocol):
    async def produce(self, batch: Sequence[OutgoingMessage]) -> None: ...

    async def close(self) -> None: ...


@runtime_checkable
class ReaderHandle(Protocol):
    async def consume(self, limit: int, timeout: float) -> List[RawMessage]: ...

    async def close(self) -> None: ...


class Transport(Protocol):
    async def open_writer(self, config: WriterConfig) -> WriterHandle: ...

    async def open_reader(self, config: ReaderConfig) -> ReaderHandle: ...


class TopicProvisioner(Protocol):
    async def ensure_topic(
        self,
        brokers: List[str],
        name: str,
        partitions: int,
        replication_factor: int,
    ) -> None: ...
