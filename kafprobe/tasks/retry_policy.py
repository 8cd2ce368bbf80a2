"""
Bounded retry policy for consumer reads.

Broker-side commit and replication are asynchronous relative to the produce
acknowledgement, so a single bounded read cannot tell "not yet visible" from
"never produced". Reads are repeated up to ``max_attempts`` times, each bounded
by ``per_attempt_timeout``, which caps the worst-case wait of one consume call
at roughly ``max_attempts * per_attempt_timeout`` plus any backoff.
"""

import random
from dataclasses import dataclass
from enum import Enum

from kafprobe.utils import Duration


class JitterStrategy(Enum):
    """
    Jitter strategies for the delay between attempts.

    FULL: delay = random(0, min(cap, base * 2^attempt))
    EQUAL: temp = min(cap, base * 2^attempt); delay = temp/2 + random(0, temp/2)
    NONE: delay = min(cap, base * 2^attempt)
    """

    FULL = "full"
    EQUAL = "equal"
    NONE = "none"


@dataclass(slots=True)
class RetryPolicy:
    max_attempts: int = 3
    per_attempt_timeout: Duration = 5.0
    base_delay: Duration = 0.0
    max_delay: Duration = 5.0
    jitter: JitterStrategy = JitterStrategy.NONE
    timeout_grace: Duration = 1.0
    allow_partial_success: bool = True

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("Err. - max_attempts must be at least 1")

        if self.per_attempt_timeout <= 0:
            raise ValueError("Err. - per_attempt_timeout must be positive")

    def calculate_delay(self, attempt: int) -> float:
        """
        Delay before the attempt following zero-based ``attempt``.
        """
        if self.base_delay <= 0:
            return 0.0

        temp = min(self.max_delay, self.base_delay * (2**attempt))

        if self.jitter == JitterStrategy.FULL:
            return random.uniform(0, temp)

        elif self.jitter == JitterStrategy.EQUAL:
            return temp / 2 + random.uniform(0, temp / 2)

        return temp

    @property
    def worst_case_seconds(self) -> float:
        return self.max_attempts * self.per_attempt_timeout + sum(
            min(self.max_delay, self.base_delay * (2**attempt))
            for attempt in range(self.max_attempts - 1)
        )
