from .connection_scope import ConnectionScope as ConnectionScope
from .connectivity import check_connectivity as check_connectivity
from .models import (
    ConnectionLifecycle as ConnectionLifecycle,
    OutgoingMessage as OutgoingMessage,
    RawMessage as RawMessage,
    ReaderConfig as ReaderConfig,
    RequiredAcks as RequiredAcks,
    TopicDescriptor as TopicDescriptor,
    WriterConfig as WriterConfig,
)
from .protocols import (
    ReaderHandle as ReaderHandle,
    TopicProvisioner as TopicProvisioner,
    Transport as Transport,
    WriterHandle as WriterHandle,
)
