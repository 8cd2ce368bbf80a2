from __future__ import annotations

from typing import Dict, List, Set, Tuple

from kafprobe.codec import Envelope

Origin = Tuple[str, int, int]


class CorrelationLedger:
    """
    Maps every produced correlation id back to the phase, worker and
    iteration that produced it. Consumed envelopes whose id was never
    registered in this run are counted as foreign.
    """

    def __init__(self) -> None:
        self._produced: Dict[str, Origin] = {}
        self._consumed: Set[str] = set()
        self.duplicates: List[str] = []
        self.matched = 0
        self.foreign: List[str] = []

    def __len__(self):
        return len(self._produced)

    def __contains__(self, correlation_id: str):
        return correlation_id in self._produced

    def register(
        self,
        correlation_id: str,
        phase: str,
        worker: int,
        iteration: int,
    ) -> bool:
        if correlation_id in self._produced:
            self.duplicates.append(correlation_id)
            return False

        self._produced[correlation_id] = (phase, worker, iteration)
        return True

    def origin(self, correlation_id: str) -> Origin | None:
        return self._produced.get(correlation_id)

    def match(self, envelope: Envelope) -> Origin | None:
        origin = self._produced.get(envelope.correlation_id)
        if origin is None:
            self.foreign.append(envelope.correlation_id)
            return None

        self._consumed.add(envelope.correlation_id)
        self.matched += 1

        return origin

    def unmatched(self) -> List[str]:
        return [
            correlation_id
            for correlation_id in self._produced
            if correlation_id not in self._consumed
        ]

    def to_dict(self):
        return {
            "produced": len(self._produced),
            "matched": self.matched,
            "foreign": len(self.foreign),
            "unmatched": len(self.unmatched()),
            "duplicates": len(self.duplicates),
        }
