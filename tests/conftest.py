import io

import pytest

from kafprobe.logging import Logger, LoggingConfig
from kafprobe.logging.config import logging_config
from kafprobe.transport import ConnectionLifecycle, ConnectionScope, ReaderConfig, WriterConfig

from tests.mocks import InMemoryBroker, InMemoryTransport, RecordingProvisioner, SleepRecorder

BROKERS = ["127.0.0.1:9092"]


@pytest.fixture(autouse=True)
def configure_logging():
    config = LoggingConfig()
    level, output, directory = config.level, config.output, config.directory
    disabled = logging_config._disabled.get()

    config.update(log_level="info", log_output="stdout")
    yield

    logging_config._level.set(level)
    logging_config._output.set(output)
    logging_config._directory.set(directory)
    logging_config._disabled.set(disabled)


@pytest.fixture
def log_output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(log_output: io.StringIO) -> Logger:
    return Logger(stdout=log_output, stderr=log_output)


@pytest.fixture
def broker() -> InMemoryBroker:
    return InMemoryBroker()


@pytest.fixture
def transport(broker: InMemoryBroker) -> InMemoryTransport:
    return InMemoryTransport(broker)


@pytest.fixture
def provisioner() -> RecordingProvisioner:
    return RecordingProvisioner()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def writer_config() -> WriterConfig:
    return WriterConfig(brokers=BROKERS, topic="test")


@pytest.fixture
def reader_config() -> ReaderConfig:
    return ReaderConfig(brokers=BROKERS, topic="test")


@pytest.fixture
def scope_factory(
    transport: InMemoryTransport,
    writer_config: WriterConfig,
    reader_config: ReaderConfig,
):
    def create_scope(
        lifecycle: ConnectionLifecycle = ConnectionLifecycle.PER_INVOCATION,
    ) -> ConnectionScope:
        return ConnectionScope(
            transport,
            lifecycle,
            writer_config=writer_config,
            reader_config=reader_config,
        )

    return create_scope
