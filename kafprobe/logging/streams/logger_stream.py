import asyncio
import os
import sys
from typing import (
    Any,
    Callable,
    Dict,
    TextIO,
    TypeVar,
)

from kafprobe.logging.config.logging_config import LoggingConfig
from kafprobe.logging.config.stream_type import StreamType
from kafprobe.logging.models import Entry, Log, LogLevel

from .json_lines_file import JSONLinesFile, split_logfile_path

T = TypeVar('T', bound=Entry)

DEFAULT_TEMPLATE = "{timestamp} - {level} - {thread_id} - {filename}:{function_name}.{line_number} - {message}"

EntryModels = Dict[str, tuple[type[Entry], Dict[str, Any]]]


class LoggerStream:
    """
    Writes entries for one named logger. Entries go to a JSON lines file
    when the stream (or the call) names one and are rendered through the
    line template to the console otherwise. The console stream follows
    ``LoggingConfig().output`` and the configured logging directory wins
    over any directory given here.
    """

    def __init__(
        self,
        name: str | None = None,
        template: str | None = None,
        filename: str | None = None,
        directory: str | None = None,
        models: EntryModels | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.name = name or "default"
        self.template = template or DEFAULT_TEMPLATE
        self.filename = filename
        self.directory = directory

        self._config = LoggingConfig()
        self._console: Dict[StreamType, TextIO | None] = {
            StreamType.STDOUT: stdout,
            StreamType.STDERR: stderr,
        }
        self._files: Dict[str, JSONLinesFile] = {}
        self._loop: asyncio.AbstractEventLoop | None = None

        self._models: EntryModels = {
            "default": (Entry, {"level": LogLevel.INFO}),
            **(models or {}),
        }

    async def initialize(self):
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

    async def open_file(
        self,
        filename: str,
        directory: str | None = None,
    ) -> str:
        await self.initialize()

        logfile_path = self._logfile_path(filename, directory)
        logfile = self._files.setdefault(logfile_path, JSONLinesFile(logfile_path))
        await logfile.open()

        return logfile_path

    async def log(
        self,
        entry: T | Log[T],
        template: str | None = None,
        path: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        unwrapped = entry.entry if isinstance(entry, Log) else entry

        if self._config.enabled(self.name, unwrapped.level) is False:
            return

        if filter and filter(unwrapped) is False:
            return

        log = entry if isinstance(entry, Log) else Log.capture(unwrapped)

        filename, directory = split_logfile_path(path) if path else (None, None)
        filename = filename or self.filename
        directory = directory or self.directory

        await self.initialize()

        if filename:
            logfile_path = await self.open_file(filename, directory=directory)
            await self._files[logfile_path].append(log)

        else:
            await self._loop.run_in_executor(
                None,
                self._write_line,
                self._console_stream(),
                self._render(log, template or self.template),
            )

    def message(
        self,
        message: str,
        name: str = "default",
    ):
        model, defaults = self._models.get(name, self._models["default"])

        return model(
            message=message,
            **defaults,
        )

    async def close(self):
        await asyncio.gather(*[logfile.close() for logfile in self._files.values()])
        self._files.clear()

    def abort(self):
        for logfile in self._files.values():
            logfile.abort()

        self._files.clear()

    def _logfile_path(self, filename: str, directory: str | None):
        if not filename.endswith(".json"):
            raise ValueError(f"Log file {filename} must be a .json file")

        return os.path.join(
            self._config.directory or directory or os.getcwd(),
            filename,
        )

    def _console_stream(self) -> TextIO:
        output = self._config.output

        if (stream := self._console.get(output)) is not None:
            return stream

        return sys.stderr if output == StreamType.STDERR else sys.stdout

    def _render(self, log: Log, template: str) -> str:
        return log.entry.to_template(
            template,
            context={
                "filename": log.filename,
                "function_name": log.function_name,
                "line_number": log.line_number,
                "thread_id": log.thread_id,
                "timestamp": log.timestamp,
            },
        )

    def _write_line(self, stream: TextIO, line: str):
        stream.write(line + "\n")
        stream.flush()
