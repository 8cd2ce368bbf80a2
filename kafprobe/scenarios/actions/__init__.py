from .action_registry import (
    ActionParams as ActionParams,
    ActionRegistry as ActionRegistry,
    RegisteredAction as RegisteredAction,
)
from .consume import CHECKS as CHECKS, ConsumeParams as ConsumeParams
from .default_registry import build_default_registry as build_default_registry
from .produce import ProduceParams as ProduceParams
from .roundtrip import RoundtripParams as RoundtripParams
from .shared_roundtrip import SharedRoundtripParams as SharedRoundtripParams
