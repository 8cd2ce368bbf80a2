from .kafka_provisioner import KafkaTopicProvisioner as KafkaTopicProvisioner
from .kafka_reader import KafkaReader as KafkaReader
from .kafka_transport import KafkaTransport as KafkaTransport
from .kafka_writer import KafkaWriter as KafkaWriter
