from __future__ import annotations

import time
from typing import Optional

import httpx
from pydantic import BaseModel, StrictStr


class MetricsProbeResult(BaseModel):
    url: Optional[StrictStr] = None
    status: Optional[int] = None
    body_size: int = 0
    elapsed: float = 0.0
    skipped: bool = False
    error: Optional[StrictStr] = None

    @property
    def successful(self):
        return self.skipped or (
            self.error is None and self.status == 200 and self.body_size > 0
        )

    def context(self):
        if self.skipped:
            return "skipped"

        if self.error:
            return self.error

        return f"HTTP {self.status} ({self.body_size} bytes in {self.elapsed:.3f}s)"


async def probe_metrics(
    url: str | None,
    target: str = "kafscale",
    timeout: float = 5.0,
    client: httpx.AsyncClient | None = None,
) -> MetricsProbeResult:
    """
    Single bounded GET against the metrics endpoint, expecting status 200
    and a non-empty body. Only KafScale exposes the endpoint, so any other
    target is reported as skipped.
    """
    if target != "kafscale":
        return MetricsProbeResult(url=url, skipped=True)

    if not url:
        return MetricsProbeResult(error="no metrics URL configured for profile")

    start = time.monotonic()

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as owned_client:
                response = await owned_client.get(url)

        else:
            response = await client.get(url, timeout=timeout)

    except httpx.HTTPError as err:
        return MetricsProbeResult(
            url=url,
            elapsed=time.monotonic() - start,
            error=f"{err.__class__.__name__}: {err}",
        )

    result = MetricsProbeResult(
        url=url,
        status=response.status_code,
        body_size=len(response.content),
        elapsed=time.monotonic() - start,
    )

    if response.status_code != 200:
        result.error = f"unexpected status {response.status_code}"

    elif result.body_size == 0:
        result.error = "empty metrics body"

    return result
