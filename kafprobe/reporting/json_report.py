from __future__ import annotations

import asyncio
import functools
import os
import pathlib
from typing import Any, Dict

import orjson

from kafprobe.scenarios import SuiteResult
from kafprobe.verdict import RunVerdict


class JSONReport:
    def __init__(self, report_dir: str = "reports") -> None:
        self.report_dir = report_dir
        self._loop: asyncio.AbstractEventLoop | None = None

    async def submit(self, verdict: RunVerdict, filename: str = "summary.json") -> str:
        return await self._submit(
            verdict.run_id,
            filename,
            verdict.model_dump(mode="json"),
        )

    async def submit_suite(self, suite: SuiteResult, filename: str = "suite.json") -> str:
        return await self._submit(
            suite.run_id,
            filename,
            {
                **suite.model_dump(mode="json"),
                "passed": suite.passed,
            },
        )

    async def _submit(self, run_id: str, filename: str, document: Dict[str, Any]) -> str:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        run_dir = os.path.join(self.report_dir, run_id)
        await self._loop.run_in_executor(
            None,
            functools.partial(
                os.makedirs,
                run_dir,
                exist_ok=True,
            ),
        )

        filepath = await self._get_filepath(os.path.join(run_dir, filename))

        await self._loop.run_in_executor(
            None,
            self._write,
            filepath,
            orjson.dumps(
                document,
                option=orjson.OPT_INDENT_2,
            ),
        )

        return filepath

    def _write(self, filepath: str, data: bytes):
        with open(filepath, "wb") as report_file:
            report_file.write(data)

    async def _get_filepath(self, filepath: str):
        filename_offset = 0
        base_path = pathlib.Path(filepath)

        base_file_stem = base_path.stem
        parent_dir = base_path.parent

        while await self._loop.run_in_executor(
            None,
            os.path.exists,
            filepath,
        ):
            filename_offset += 1
            filepath = os.path.join(
                parent_dir,
                f"{base_file_stem}_{filename_offset}.json",
            )

        return filepath
