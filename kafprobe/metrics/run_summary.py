from __future__ import annotations

from typing import Dict, List

import numpy as np

from kafprobe.codec import now_millis
from kafprobe.tasks import ConsumeResult, ProduceResult

from .completion_counter import CompletionCounter


class RunSummary:
    def __init__(self) -> None:
        self.produced = CompletionCounter()
        self.consumed = CompletionCounter()
        self.errors = CompletionCounter()
        self._quantiles = [50, 95, 99]

        self.produce_latencies: List[float] = []
        self.poll_latencies: List[float] = []
        self.end_to_end_latencies: List[float] = []

    def record_produce(self, result: ProduceResult):
        if result.successful:
            self.produced.increment(result.messages)

            if (latency := result.latency) is not None:
                self.produce_latencies.append(latency)

        else:
            self.errors.increment()

    def record_consume(self, result: ConsumeResult):
        self.consumed.increment(result.count)
        self.poll_latencies.extend(result.poll_latencies)

        received_at = now_millis()
        for envelope in result.envelopes:
            if envelope.produced_at_millis > 0:
                self.end_to_end_latencies.append(
                    max(received_at - envelope.produced_at_millis, 0) / 1000
                )

        if result.successful is False:
            self.errors.increment()

    def record_error(self):
        self.errors.increment()

    def to_dict(self):
        return {
            "produced": self.produced.value(),
            "consumed": self.consumed.value(),
            "errors": self.errors.value(),
            "latencies": {
                "produce": self._calculate_quantiles(self.produce_latencies),
                "end_to_end": self._calculate_quantiles(self.end_to_end_latencies),
                "poll": self._calculate_quantiles(self.poll_latencies),
            },
        }

    def _calculate_quantiles(self, values: List[float]) -> Dict[str, float]:
        if len(values) == 0:
            return {}

        return {
            f"p{quantile}": float(value)
            for quantile, value in zip(
                self._quantiles,
                np.percentile(
                    values,
                    self._quantiles,
                ),
            )
        }
