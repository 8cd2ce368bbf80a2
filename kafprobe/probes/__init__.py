from .diagnose import (
    DIAGNOSTIC_TOPIC as DIAGNOSTIC_TOPIC,
    DiagnosticReport as DiagnosticReport,
    DiagnosticStep as DiagnosticStep,
    diagnose as diagnose,
)
from .metrics_probe import MetricsProbeResult as MetricsProbeResult, probe_metrics as probe_metrics
