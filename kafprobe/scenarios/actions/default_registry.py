from .action_registry import ActionRegistry
from .consume import ConsumeParams
from .consume import run as consume
from .produce import ProduceParams
from .produce import run as produce
from .roundtrip import RoundtripParams
from .roundtrip import run as roundtrip
from .shared_roundtrip import SharedRoundtripParams
from .shared_roundtrip import run as shared_roundtrip


def build_default_registry() -> ActionRegistry:
    registry = ActionRegistry()
    registry.register("produce", produce, ProduceParams)
    registry.register("consume", consume, ConsumeParams)
    registry.register("roundtrip", roundtrip, RoundtripParams)
    registry.register("shared_roundtrip", shared_roundtrip, SharedRoundtripParams)
    return registry
