import asyncio
from collections import defaultdict
from typing import Dict, List, Set

from aiokafka.admin import AIOKafkaAdminClient, NewTopic
from aiokafka.errors import KafkaError, TopicAlreadyExistsError, for_code

from kafprobe.errors import ProvisionError


class KafkaTopicProvisioner:
    """
    Create-if-absent topic provisioning through the Kafka admin API.

    Concurrent callers asking for the same topic are serialized on a per-name
    lock, and a topic that was already confirmed is never requested again by
    this instance. A broker answering TOPIC_ALREADY_EXISTS counts as success.
    """

    def __init__(
        self,
        client_id: str = "kafprobe-admin",
        request_timeout: float = 10.0,
    ) -> None:
        self.client_id = client_id
        self.timeout = request_timeout

        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._provisioned: Set[str] = set()

    async def ensure_topic(
        self,
        brokers: List[str],
        name: str,
        partitions: int,
        replication_factor: int,
    ) -> None:
        async with self._locks[name]:
            if name in self._provisioned:
                return

            admin = AIOKafkaAdminClient(
                bootstrap_servers=",".join(brokers),
                client_id=self.client_id,
                request_timeout_ms=int(self.timeout * 1000),
            )

            try:
                await admin.start()
                response = await admin.create_topics(
                    [
                        NewTopic(
                            name=name,
                            num_partitions=partitions,
                            replication_factor=replication_factor,
                        )
                    ]
                )

                for topic_error in getattr(response, "topic_errors", []):
                    topic_name, error_code = topic_error[0], topic_error[1]
                    if error_code in (0, TopicAlreadyExistsError.errno):
                        continue

                    error_type = for_code(error_code)
                    raise ProvisionError(
                        f"create topic {topic_name}: {error_type.__name__} ({error_code})"
                    )

            except TopicAlreadyExistsError:
                pass

            except (KafkaError, OSError) as err:
                raise ProvisionError(f"create topic {name}: {err}") from err

            finally:
                await admin.close()

            self._provisioned.add(name)
