from __future__ import annotations

import asyncio
import time
from typing import List, Optional

from pydantic import BaseModel, Field, StrictStr

from kafprobe.transport import ReaderConfig, Transport, WriterConfig

DIAGNOSTIC_TOPIC = "diagnostic-test"


class DiagnosticStep(BaseModel):
    name: StrictStr
    ok: bool
    elapsed: float
    error: Optional[StrictStr] = None


class DiagnosticReport(BaseModel):
    brokers: List[StrictStr]
    topic: StrictStr
    steps: List[DiagnosticStep] = Field(default_factory=list)

    @property
    def successful(self):
        return len(self.steps) > 0 and all(step.ok for step in self.steps)


async def _step(report: DiagnosticReport, name: str, operation):
    start = time.monotonic()

    try:
        value = await operation
        report.steps.append(
            DiagnosticStep(name=name, ok=True, elapsed=time.monotonic() - start)
        )
        return value

    except Exception as err:
        report.steps.append(
            DiagnosticStep(
                name=name,
                ok=False,
                elapsed=time.monotonic() - start,
                error=f"{err.__class__.__name__}: {err}",
            )
        )
        return None


async def diagnose(
    transport: Transport,
    brokers: List[str],
    topic: str = DIAGNOSTIC_TOPIC,
    client_id: str = "kafprobe",
    request_timeout: float = 5.0,
) -> DiagnosticReport:
    """
    Opens and closes a writer, then a reader, against the diagnostic topic,
    recording the outcome of every step. Nothing is produced or consumed.
    """
    report = DiagnosticReport(brokers=brokers, topic=topic)

    writer = await _step(
        report,
        "create writer",
        asyncio.wait_for(
            transport.open_writer(
                WriterConfig(
                    brokers=brokers,
                    topic=topic,
                    client_id=client_id,
                    request_timeout=request_timeout,
                )
            ),
            timeout=request_timeout,
        ),
    )

    if writer is not None:
        await _step(report, "close writer", writer.close())

    reader = await _step(
        report,
        "create reader",
        asyncio.wait_for(
            transport.open_reader(
                ReaderConfig(
                    brokers=brokers,
                    topic=topic,
                    client_id=client_id,
                    request_timeout=request_timeout,
                )
            ),
            timeout=request_timeout,
        ),
    )

    if reader is not None:
        await _step(report, "close reader", reader.close())

    return report
