from __future__ import annotations

import datetime
import sys
import threading
from typing import Generic, TypeVar

import msgspec

from .entry import Entry

T = TypeVar('T', bound=Entry)


def _utc_now() -> str:
    return datetime.datetime.now(datetime.UTC).isoformat()


class Log(msgspec.Struct, Generic[T], kw_only=True):
    entry: Entry
    filename: str
    function_name: str
    line_number: int
    thread_id: int = msgspec.field(default_factory=threading.get_native_id)
    timestamp: str = msgspec.field(default_factory=_utc_now)

    @classmethod
    def capture(cls, entry: T, depth: int = 1) -> Log[T]:
        """
        Wraps ``entry`` with the source location ``depth`` frames above the
        function calling ``capture``.
        """
        frame = sys._getframe(depth + 1)

        return cls(
            entry=entry,
            filename=frame.f_code.co_filename,
            function_name=frame.f_code.co_name,
            line_number=frame.f_lineno,
        )
