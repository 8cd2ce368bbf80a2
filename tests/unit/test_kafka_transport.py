import asyncio
from types import SimpleNamespace
from typing import Dict, List

import pytest
from aiokafka.errors import KafkaConnectionError, TopicAlreadyExistsError

from kafprobe.errors import (
    ConnectivityError,
    ConsumeError,
    ConsumeTimeoutError,
    ProduceError,
    ProvisionError,
)
from kafprobe.transport import OutgoingMessage, ReaderConfig, WriterConfig, check_connectivity
from kafprobe.transport.kafka import KafkaReader, KafkaTopicProvisioner, KafkaTransport
from kafprobe.transport.kafka import kafka_provisioner, kafka_reader, kafka_writer

BROKERS = ["127.0.0.1:9092", "127.0.0.1:9093"]


class FakeAdmin:
    error_code = 0
    raises: Exception | None = None
    instances: List["FakeAdmin"] = []

    def __init__(self, **options) -> None:
        self.options = options
        self.requests: List[str] = []
        self.closed = False
        type(self).instances.append(self)

    async def start(self):
        await asyncio.sleep(0)

    async def create_topics(self, topics):
        await asyncio.sleep(0)
        self.requests.extend(topic.name for topic in topics)

        if self.raises is not None:
            raise self.raises

        return SimpleNamespace(
            topic_errors=[(topic.name, self.error_code, None) for topic in topics]
        )

    async def close(self):
        self.closed = True


class FakeBatch:
    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self.records: List[tuple] = []

    def append(self, key=None, value=None, timestamp=None):
        if len(self.records) >= self.capacity:
            return None

        self.records.append((key, value))
        return SimpleNamespace(size=len(value or b""))

    def record_count(self):
        return len(self.records)


class FakeProducer:
    capacity = 100
    start_error: Exception | None = None
    send_error: Exception | None = None
    instances: List["FakeProducer"] = []

    def __init__(self, **options) -> None:
        self.options = options
        self.sent: List[tuple] = []
        self.stopped = 0
        type(self).instances.append(self)

    async def start(self):
        if self.start_error is not None:
            raise self.start_error

    def create_batch(self):
        return FakeBatch(self.capacity)

    async def send_batch(self, batch, topic, partition=None):
        if self.send_error is not None:
            raise self.send_error

        self.sent.append((topic, partition, list(batch.records)))

        delivery = asyncio.get_running_loop().create_future()
        delivery.set_result(SimpleNamespace(offset=0))
        return delivery

    async def stop(self):
        self.stopped += 1


class FakeConsumer:
    fetches: List[Dict] = []
    instances: List["FakeConsumer"] = []

    def __init__(self, **options) -> None:
        self.options = options
        self.assigned = []
        self.position = None
        self.stopped = 0
        type(self).instances.append(self)

    async def start(self):
        pass

    def assign(self, partitions):
        self.assigned = list(partitions)

    def seek(self, partition, offset):
        self.position = (partition, offset)

    async def getmany(self, *partitions, timeout_ms=0, max_records=None):
        if len(self.fetches) == 0:
            return {}

        return self.fetches.pop(0)

    async def stop(self):
        self.stopped += 1


@pytest.fixture
def admin(monkeypatch):
    class Admin(FakeAdmin):
        instances = []

    monkeypatch.setattr(kafka_provisioner, "AIOKafkaAdminClient", Admin)
    return Admin


@pytest.fixture
def producer(monkeypatch):
    class Producer(FakeProducer):
        instances = []

    monkeypatch.setattr(kafka_writer, "AIOKafkaProducer", Producer)
    return Producer


@pytest.fixture
def consumer(monkeypatch):
    class Consumer(FakeConsumer):
        fetches = []
        instances = []

    monkeypatch.setattr(kafka_reader, "AIOKafkaConsumer", Consumer)
    return Consumer


def record(offset: int, value: bytes | None, key: bytes | None = None):
    return SimpleNamespace(
        topic="orders",
        partition=0,
        offset=offset,
        key=key,
        value=value,
        timestamp=1718000000000 + offset,
    )


class TestKafkaTopicProvisioner:
    @pytest.mark.asyncio
    async def test_creates_topic_once(self, admin):
        provisioner = KafkaTopicProvisioner(client_id="kafprobe-admin", request_timeout=3.0)

        await provisioner.ensure_topic(BROKERS, "orders", 3, 1)
        await provisioner.ensure_topic(BROKERS, "orders", 3, 1)

        assert len(admin.instances) == 1
        assert admin.instances[0].requests == ["orders"]
        assert admin.instances[0].options["bootstrap_servers"] == "127.0.0.1:9092,127.0.0.1:9093"
        assert admin.instances[0].options["request_timeout_ms"] == 3000
        assert admin.instances[0].closed

    @pytest.mark.asyncio
    async def test_concurrent_callers_request_once(self, admin):
        provisioner = KafkaTopicProvisioner()

        await asyncio.gather(
            *[provisioner.ensure_topic(BROKERS, "orders", 1, 1) for _ in range(5)]
        )

        assert [instance.requests for instance in admin.instances] == [["orders"]]

    @pytest.mark.asyncio
    async def test_distinct_topics_each_created(self, admin):
        provisioner = KafkaTopicProvisioner()

        await asyncio.gather(
            provisioner.ensure_topic(BROKERS, "orders", 1, 1),
            provisioner.ensure_topic(BROKERS, "payments", 1, 1),
        )

        assert sorted(instance.requests[0] for instance in admin.instances) == [
            "orders",
            "payments",
        ]

    @pytest.mark.asyncio
    async def test_already_exists_code_is_success(self, admin):
        admin.error_code = TopicAlreadyExistsError.errno

        await KafkaTopicProvisioner().ensure_topic(BROKERS, "orders", 1, 1)

        assert admin.instances[0].closed

    @pytest.mark.asyncio
    async def test_already_exists_error_is_success(self, admin):
        admin.raises = TopicAlreadyExistsError()

        await KafkaTopicProvisioner().ensure_topic(BROKERS, "orders", 1, 1)

    @pytest.mark.asyncio
    async def test_error_code_raises(self, admin):
        admin.error_code = 37
        provisioner = KafkaTopicProvisioner()

        with pytest.raises(ProvisionError, match=r"create topic orders: .*\(37\)"):
            await provisioner.ensure_topic(BROKERS, "orders", 0, 1)

        assert admin.instances[0].closed

        admin.error_code = 0
        await provisioner.ensure_topic(BROKERS, "orders", 1, 1)

        assert len(admin.instances) == 2

    @pytest.mark.asyncio
    async def test_connection_error_raises(self, admin):
        admin.raises = KafkaConnectionError("no brokers")

        with pytest.raises(ProvisionError, match="no brokers"):
            await KafkaTopicProvisioner().ensure_topic(BROKERS, "orders", 1, 1)


class TestKafkaWriter:
    @pytest.mark.asyncio
    async def test_batch_sent_to_partition(self, producer):
        writer = await KafkaTransport().open_writer(
            WriterConfig(brokers=BROKERS, topic="orders", partition=2)
        )

        await writer.produce(
            [
                OutgoingMessage(value=b"one", key=b"a"),
                OutgoingMessage(value=b"two"),
            ]
        )
        await writer.close()
        await writer.close()

        sent = producer.instances[0].sent
        assert sent == [("orders", 2, [(b"a", b"one"), (None, b"two")])]
        assert producer.instances[0].stopped == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("required_acks,expected", [(-1, "all"), (0, 0), (1, 1)])
    async def test_required_acks_mapping(self, producer, required_acks: int, expected):
        await KafkaTransport().open_writer(
            WriterConfig(brokers=BROKERS, topic="orders", required_acks=required_acks)
        )

        assert producer.instances[0].options["acks"] == expected
        assert producer.instances[0].options["enable_idempotence"] is False

    @pytest.mark.asyncio
    async def test_full_batch_raises(self, producer):
        producer.capacity = 1
        writer = await KafkaTransport().open_writer(WriterConfig(brokers=BROKERS, topic="orders"))

        with pytest.raises(ProduceError, match="batch for orders is full after 1 messages"):
            await writer.produce(
                [OutgoingMessage(value=b"one"), OutgoingMessage(value=b"two")]
            )

        assert producer.instances[0].sent == []

    @pytest.mark.asyncio
    async def test_send_error_raises(self, producer):
        producer.send_error = KafkaConnectionError("leader not available")
        writer = await KafkaTransport().open_writer(WriterConfig(brokers=BROKERS, topic="orders"))

        with pytest.raises(ProduceError, match="leader not available"):
            await writer.produce([OutgoingMessage(value=b"one")])

    @pytest.mark.asyncio
    async def test_start_failure_raises(self, producer):
        producer.start_error = KafkaConnectionError("unable to bootstrap")

        with pytest.raises(ProduceError, match="unable to open writer for orders"):
            await KafkaTransport().open_writer(WriterConfig(brokers=BROKERS, topic="orders"))

        assert producer.instances[0].stopped == 1

    @pytest.mark.asyncio
    async def test_closed_writer_rejects_produce(self, producer):
        writer = await KafkaTransport().open_writer(WriterConfig(brokers=BROKERS, topic="orders"))
        await writer.close()

        with pytest.raises(ProduceError, match="closed"):
            await writer.produce([OutgoingMessage(value=b"one")])


class TestKafkaReader:
    @pytest.mark.asyncio
    async def test_assigns_and_seeks(self, consumer):
        reader = await KafkaTransport().open_reader(
            ReaderConfig(brokers=BROKERS, topic="orders", offset=4, max_wait=0.5)
        )

        instance = consumer.instances[0]
        assert isinstance(reader, KafkaReader)
        assert instance.assigned[0].topic == "orders"
        assert instance.position[1] == 4
        assert instance.options["group_id"] is None
        assert instance.options["fetch_max_wait_ms"] == 500

    @pytest.mark.asyncio
    async def test_records_become_raw_messages(self, consumer):
        reader = await KafkaTransport().open_reader(ReaderConfig(brokers=BROKERS, topic="orders"))
        partition = consumer.instances[0].assigned[0]
        consumer.fetches.append({partition: [record(0, b"one", key=b"a"), record(1, None)]})

        messages = await reader.consume(limit=2, timeout=1.0)

        assert [message.offset for message in messages] == [0, 1]
        assert messages[0].key == b"a"
        assert messages[0].timestamp_millis == 1718000000000
        assert messages[1].value == b""

    @pytest.mark.asyncio
    async def test_empty_fetch_times_out(self, consumer):
        reader = await KafkaTransport().open_reader(ReaderConfig(brokers=BROKERS, topic="orders"))

        with pytest.raises(ConsumeTimeoutError, match="no messages on orders/0"):
            await reader.consume(limit=1, timeout=0.25)

    @pytest.mark.asyncio
    async def test_closed_reader_rejects_consume(self, consumer):
        reader = await KafkaTransport().open_reader(ReaderConfig(brokers=BROKERS, topic="orders"))
        await reader.close()
        await reader.close()

        with pytest.raises(ConsumeError, match="closed"):
            await reader.consume(limit=1, timeout=0.25)

        assert consumer.instances[0].stopped == 1


class TestCheckConnectivity:
    @pytest.mark.asyncio
    async def test_first_listening_broker_returned(self):
        async def accept(reader, writer):
            writer.close()

        server = await asyncio.start_server(accept, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]

        try:
            broker = await check_connectivity([f"127.0.0.1:{port}"], timeout=1.0)

        finally:
            server.close()
            await server.wait_closed()

        assert broker == f"127.0.0.1:{port}"

    @pytest.mark.asyncio
    async def test_falls_through_to_reachable_broker(self):
        async def accept(reader, writer):
            writer.close()

        server = await asyncio.start_server(accept, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]

        closed = await asyncio.start_server(accept, "127.0.0.1", 0)
        closed_port = closed.sockets[0].getsockname()[1]
        closed.close()
        await closed.wait_closed()

        try:
            broker = await check_connectivity(
                [f"127.0.0.1:{closed_port}", f"127.0.0.1:{port}"],
                timeout=1.0,
            )

        finally:
            server.close()
            await server.wait_closed()

        assert broker == f"127.0.0.1:{port}"

    @pytest.mark.asyncio
    async def test_unreachable_brokers(self):
        async def accept(reader, writer):
            writer.close()

        server = await asyncio.start_server(accept, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        server.close()
        await server.wait_closed()

        with pytest.raises(ConnectivityError, match="unable to connect to any broker"):
            await check_connectivity([f"127.0.0.1:{port}"], timeout=1.0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address", ["localhost", "localhost:port", ":9092"])
    async def test_invalid_address(self, address: str):
        with pytest.raises(ConnectivityError, match="invalid broker address"):
            await check_connectivity([address])

    @pytest.mark.asyncio
    async def test_no_brokers(self):
        with pytest.raises(ConnectivityError, match="no brokers configured"):
            await check_connectivity([])
