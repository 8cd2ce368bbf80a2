import contextvars
from typing import FrozenSet, Literal

from kafprobe.logging.models import LogLevel, LogLevelName

from .stream_type import StreamType

LogOutput = Literal["stdout", "stderr"]

_level: contextvars.ContextVar[LogLevel] = contextvars.ContextVar(
    "kafprobe_log_level",
    default=LogLevel.INFO,
)
_output: contextvars.ContextVar[StreamType] = contextvars.ContextVar(
    "kafprobe_log_output",
    default=StreamType.STDOUT,
)
_directory: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "kafprobe_log_directory",
    default=None,
)
_disabled: contextvars.ContextVar[FrozenSet[str]] = contextvars.ContextVar(
    "kafprobe_disabled_loggers",
    default=frozenset(),
)


class LoggingConfig:
    """
    Logging settings shared by every ``LoggingConfig()`` in a context. The
    values live in context variables, so a task or test that changes them
    works on its own copy.
    """

    def update(
        self,
        log_directory: str | None = None,
        log_level: LogLevelName | None = None,
        log_output: LogOutput | None = None,
    ):
        if log_directory:
            _directory.set(log_directory)

        if log_level:
            _level.set(LogLevel.parse(log_level))

        if log_output:
            _output.set(StreamType(log_output.upper()))

    def disable(self, logger_name: str):
        _disabled.set(_disabled.get() | {logger_name})

    def enabled(self, logger_name: str, log_level: LogLevel) -> bool:
        return logger_name not in _disabled.get() and _level.get().admits(log_level)

    @property
    def level(self):
        return _level.get()

    @property
    def output(self):
        return _output.get()

    @property
    def directory(self):
        return _directory.get()
