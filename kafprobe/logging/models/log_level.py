from __future__ import annotations

from enum import Enum
from typing import Literal, Tuple, get_args

LogLevelName = Literal[
    "trace",
    "debug",
    "info",
    "warn",
    "error",
    "critical",
    "fatal",
]

LOG_LEVEL_NAMES: Tuple[str, ...] = get_args(LogLevelName)


class LogLevel(Enum):
    """Entry levels in ascending severity. Definition order is the ordering."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    FATAL = "FATAL"

    @property
    def severity(self) -> int:
        return list(LogLevel).index(self)

    def admits(self, level: LogLevel) -> bool:
        return level.severity >= self.severity

    @classmethod
    def parse(cls, name: str | LogLevel) -> LogLevel:
        if isinstance(name, LogLevel):
            return name

        try:
            return cls[name.strip().upper()]

        except KeyError:
            raise ValueError(
                f"Unknown log level {name!r}, expected one of {', '.join(LOG_LEVEL_NAMES)}"
            ) from None
