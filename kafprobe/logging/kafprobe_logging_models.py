from .models import Entry, LogLevel


class RunInfo(Entry, kw_only=True):
    run_id: str
    scenario: str
    topic: str
    level: LogLevel = LogLevel.INFO

class RunError(Entry, kw_only=True):
    run_id: str
    scenario: str
    topic: str
    level: LogLevel = LogLevel.ERROR

class WorkerDebug(Entry, kw_only=True):
    run_id: str
    phase: str
    worker: int
    iteration: int
    level: LogLevel = LogLevel.DEBUG

class WorkerError(Entry, kw_only=True):
    run_id: str
    phase: str
    worker: int
    iteration: int
    level: LogLevel = LogLevel.ERROR

class CheckFailure(Entry, kw_only=True):
    run_id: str
    check: str
    worker: int
    iteration: int
    level: LogLevel = LogLevel.WARN
