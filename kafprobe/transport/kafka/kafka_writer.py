from typing import Sequence

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError

from kafprobe.errors import ProduceError
from kafprobe.transport.models import OutgoingMessage, WriterConfig


class KafkaWriter:
    def __init__(self, config: WriterConfig) -> None:
        self.topic = config.topic
        self.partition = config.partition
        self.client_id = config.client_id
        self.timeout = config.request_timeout

        acks: int | str = config.required_acks
        if acks == -1:
            acks = "all"

        self._producer = AIOKafkaProducer(
            bootstrap_servers=",".join(config.brokers),
            client_id=self.client_id,
            acks=acks,
            compression_type=config.compression_type,
            request_timeout_ms=int(self.timeout * 1000),
            enable_idempotence=False,
        )
        self._started = False
        self._closed = False

    async def connect(self):
        try:
            await self._producer.start()
            self._started = True

        except (KafkaError, OSError) as err:
            await self._producer.stop()
            self._closed = True
            raise ProduceError(f"unable to open writer for {self.topic}: {err}") from err

    async def produce(self, batch: Sequence[OutgoingMessage]) -> None:
        if self._closed:
            raise ProduceError(f"writer for {self.topic} is closed")

        record_batch = self._producer.create_batch()
        for message in batch:
            metadata = record_batch.append(
                key=message.key,
                value=message.value,
                timestamp=None,
            )

            if metadata is None:
                raise ProduceError(
                    f"batch for {self.topic} is full after {record_batch.record_count()} messages"
                )

        try:
            delivery = await self._producer.send_batch(
                record_batch,
                self.topic,
                partition=self.partition,
            )
            await delivery

        except (KafkaError, OSError) as err:
            raise ProduceError(str(err) or err.__class__.__name__) from err

    async def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        if self._started:
            await self._producer.stop()
