import asyncio
import io
import os
import pathlib
from typing import Tuple

import msgspec

from kafprobe.logging.models import Log


def split_logfile_path(path: str) -> Tuple[str | None, str]:
    """
    ``path`` names a log file when it has a suffix and a directory
    otherwise. Returns ``(filename, absolute directory)``.
    """
    logfile_path = pathlib.Path(path)

    if logfile_path.suffix:
        return logfile_path.name, str(logfile_path.parent.absolute())

    return None, str(logfile_path.absolute())


class JSONLinesFile:
    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = asyncio.Lock()
        self._handle: io.BufferedWriter | None = None
        self._encoder = msgspec.json.Encoder()

    @property
    def closed(self):
        return self._handle is None or self._handle.closed

    async def open(self):
        async with self._lock:
            await self._ensure_open()

    async def append(self, log: Log):
        line = self._encoder.encode(log) + b"\n"

        async with self._lock:
            await self._ensure_open()
            await asyncio.get_running_loop().run_in_executor(
                None,
                self._write,
                line,
            )

    async def close(self):
        async with self._lock:
            if self.closed is False:
                await asyncio.get_running_loop().run_in_executor(
                    None,
                    self._handle.close,
                )

            self._handle = None

    def abort(self):
        if self.closed is False:
            self._handle.close()

        self._handle = None

    async def _ensure_open(self):
        if self.closed:
            self._handle = await asyncio.get_running_loop().run_in_executor(
                None,
                self._open,
            )

    def _open(self) -> io.BufferedWriter:
        resolved_path = pathlib.Path(self.path).absolute()
        os.makedirs(resolved_path.parent, exist_ok=True)

        return open(resolved_path, "ab")

    def _write(self, line: bytes):
        self._handle.write(line)
        self._handle.flush()
