from typing import List

from aiokafka import AIOKafkaConsumer, TopicPartition
from aiokafka.errors import KafkaError

from kafprobe.errors import ConsumeError, ConsumeTimeoutError
from kafprobe.transport.models import RawMessage, ReaderConfig


class KafkaReader:
    def __init__(self, config: ReaderConfig) -> None:
        self.topic = config.topic
        self.partition = config.partition
        self.offset = config.offset

        self._topic_partition = TopicPartition(config.topic, config.partition)
        self._consumer = AIOKafkaConsumer(
            bootstrap_servers=",".join(config.brokers),
            client_id=config.client_id,
            group_id=None,
            enable_auto_commit=False,
            auto_offset_reset="earliest",
            fetch_min_bytes=config.min_bytes,
            fetch_max_wait_ms=int(config.max_wait * 1000),
            max_partition_fetch_bytes=config.max_bytes,
            request_timeout_ms=int(config.request_timeout * 1000),
        )
        self._started = False
        self._closed = False

    async def connect(self):
        try:
            await self._consumer.start()
            self._started = True

            self._consumer.assign([self._topic_partition])
            self._consumer.seek(self._topic_partition, self.offset)

        except (KafkaError, OSError) as err:
            await self._consumer.stop()
            self._closed = True
            raise ConsumeError(f"unable to open reader for {self.topic}: {err}") from err

    async def consume(self, limit: int, timeout: float) -> List[RawMessage]:
        if self._closed:
            raise ConsumeError(f"reader for {self.topic} is closed")

        try:
            fetched = await self._consumer.getmany(
                self._topic_partition,
                timeout_ms=int(timeout * 1000),
                max_records=limit,
            )

        except (KafkaError, OSError) as err:
            raise ConsumeError(str(err) or err.__class__.__name__) from err

        records = fetched.get(self._topic_partition, [])
        if len(records) == 0:
            raise ConsumeTimeoutError(
                f"no messages on {self.topic}/{self.partition} within {timeout:g}s"
            )

        return [
            RawMessage(
                topic=record.topic,
                partition=record.partition,
                offset=record.offset,
                key=record.key,
                value=record.value if record.value is not None else b"",
                timestamp_millis=record.timestamp,
            )
            for record in records
        ]

    async def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        if self._started:
            await self._consumer.stop()
