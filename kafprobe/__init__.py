from .codec import Envelope as Envelope, classify as classify, decode as decode, encode as encode
from .errors import KafprobeError as KafprobeError
from .scenarios import Scenario as Scenario, ScenarioRunner as ScenarioRunner
from .tasks import ConsumerTask as ConsumerTask, ProducerTask as ProducerTask, RetryPolicy as RetryPolicy
from .verdict import RunVerdict as RunVerdict, VerdictAggregator as VerdictAggregator
