from kafprobe.transport.models import ReaderConfig, WriterConfig

from .kafka_reader import KafkaReader
from .kafka_writer import KafkaWriter


class KafkaTransport:
    async def open_writer(self, config: WriterConfig) -> KafkaWriter:
        writer = KafkaWriter(config)
        await writer.connect()

        return writer

    async def open_reader(self, config: ReaderConfig) -> KafkaReader:
        reader = KafkaReader(config)
        await reader.connect()

        return reader
