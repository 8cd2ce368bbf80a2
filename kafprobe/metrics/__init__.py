from .completion_counter import CompletionCounter as CompletionCounter
from .run_summary import RunSummary as RunSummary
