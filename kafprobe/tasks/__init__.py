from .consumer_task import ConsumerTask as ConsumerTask, RetryState as RetryState
from .models import (
    ConsumeResult as ConsumeResult,
    ErrorKind as ErrorKind,
    ProduceResult as ProduceResult,
)
from .producer_task import ProducerTask as ProducerTask
from .retry_policy import JitterStrategy as JitterStrategy, RetryPolicy as RetryPolicy
