from .entry import Entry as Entry
from .log import Log as Log
from .log_level import (
    LOG_LEVEL_NAMES as LOG_LEVEL_NAMES,
    LogLevel as LogLevel,
    LogLevelName as LogLevelName,
)
