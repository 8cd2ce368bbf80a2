from .correlation_ledger import CorrelationLedger as CorrelationLedger
from .models import CheckResult as CheckResult, RunVerdict as RunVerdict
from .verdict_aggregator import VerdictAggregator as VerdictAggregator
