from __future__ import annotations

import contextlib
from typing import AsyncIterator

from .models import ConnectionLifecycle, ReaderConfig, WriterConfig
from .protocols import ReaderHandle, Transport, WriterHandle


class ConnectionScope:
    """
    Owns the writer and reader handles of a single sequential worker.

    Under ``PER_INVOCATION`` every ``writer()``/``reader()`` block opens a
    fresh handle and closes it on exit, whatever the exit path. Under
    ``SHARED`` the first block opens the handle and later blocks reuse it;
    the handle is only closed by ``close()`` at worker teardown.

    A scope must never be used by two concurrently running workers.
    """

    def __init__(
        self,
        transport: Transport,
        lifecycle: ConnectionLifecycle,
        writer_config: WriterConfig | None = None,
        reader_config: ReaderConfig | None = None,
    ) -> None:
        self.transport = transport
        self.lifecycle = lifecycle
        self.writer_config = writer_config
        self.reader_config = reader_config

        self._writer: WriterHandle | None = None
        self._reader: ReaderHandle | None = None
        self.writers_opened = 0
        self.readers_opened = 0

    @property
    def shared(self):
        return self.lifecycle == ConnectionLifecycle.SHARED

    @contextlib.asynccontextmanager
    async def writer(self) -> AsyncIterator[WriterHandle]:
        if self.writer_config is None:
            raise ValueError("Err. - scope has no writer configuration")

        if self.shared:
            if self._writer is None:
                self._writer = await self.transport.open_writer(self.writer_config)
                self.writers_opened += 1

            yield self._writer
            return

        writer = await self.transport.open_writer(self.writer_config)
        self.writers_opened += 1

        try:
            yield writer

        finally:
            await writer.close()

    @contextlib.asynccontextmanager
    async def reader(self) -> AsyncIterator[ReaderHandle]:
        if self.reader_config is None:
            raise ValueError("Err. - scope has no reader configuration")

        if self.shared:
            if self._reader is None:
                self._reader = await self.transport.open_reader(self.reader_config)
                self.readers_opened += 1

            yield self._reader
            return

        reader = await self.transport.open_reader(self.reader_config)
        self.readers_opened += 1

        try:
            yield reader

        finally:
            await reader.close()

    async def close(self):
        writer, self._writer = self._writer, None
        reader, self._reader = self._reader, None

        try:
            if writer is not None:
                await writer.close()

        finally:
            if reader is not None:
                await reader.close()
