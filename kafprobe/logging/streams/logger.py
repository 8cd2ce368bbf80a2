from __future__ import annotations

from typing import Dict, TextIO, TypeVar

from kafprobe.logging.models import Entry, Log

from .json_lines_file import split_logfile_path
from .logger_context import LoggerContext
from .logger_stream import EntryModels

T = TypeVar('T', bound=Entry)


class Logger:
    """
    Entry point for run logging. Each logger name gets its own context,
    created on first use and writing to the console until ``context()``
    gives it a log file path.
    """

    def __init__(
        self,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self._contexts: Dict[str, LoggerContext] = {}
        self._stdout = stdout
        self._stderr = stderr

    def context(
        self,
        name: str = 'default',
        template: str | None = None,
        path: str | None = None,
        models: EntryModels | None = None,
    ) -> LoggerContext:
        filename, directory = split_logfile_path(path) if path else (None, None)

        context = self._contexts.get(name)
        if context is None:
            context = self._contexts[name] = LoggerContext(
                name,
                template=template,
                filename=filename,
                directory=directory,
                models=models,
                stdout=self._stdout,
                stderr=self._stderr,
            )

        else:
            context.configure(
                template=template,
                filename=filename,
                directory=directory,
            )

        return context

    async def log(
        self,
        entry: T,
        name: str = 'default',
        template: str | None = None,
        path: str | None = None,
    ):
        await self.context(name).stream.log(
            Log.capture(entry),
            template=template,
            path=path,
        )

    async def close(self):
        for context in self._contexts.values():
            await context.stream.close()

    def abort(self):
        for context in self._contexts.values():
            context.stream.abort()
