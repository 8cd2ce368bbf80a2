from typing import TextIO

from .logger_stream import EntryModels, LoggerStream


class LoggerContext:
    """
    A named stream plus where it writes. Used as an async context manager
    it opens the stream's log file on entry and closes the stream on exit.
    """

    def __init__(
        self,
        name: str,
        template: str | None = None,
        filename: str | None = None,
        directory: str | None = None,
        models: EntryModels | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.name = name
        self.stream = LoggerStream(
            name=name,
            template=template,
            filename=filename,
            directory=directory,
            models=models,
            stdout=stdout,
            stderr=stderr,
        )

    def configure(
        self,
        template: str | None = None,
        filename: str | None = None,
        directory: str | None = None,
    ):
        if template:
            self.stream.template = template

        if filename:
            self.stream.filename = filename

        if directory:
            self.stream.directory = directory

    async def __aenter__(self) -> LoggerStream:
        if self.stream.filename:
            await self.stream.open_file(
                self.stream.filename,
                directory=self.stream.directory,
            )

        return self.stream

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stream.close()
