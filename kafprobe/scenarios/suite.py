from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, StrictBool, StrictStr, ValidationError

from kafprobe.errors import ScenarioError
from kafprobe.verdict import RunVerdict

from .runner import ScenarioRunner
from .scenario import Scenario

PROFILES_FILE = "profiles.json"


class SuiteEntry(BaseModel):
    profile: StrictStr
    scenario: StrictStr
    skipped: StrictBool = False
    verdict: Optional[RunVerdict] = None


class SuiteResult(BaseModel):
    run_id: StrictStr
    started_at: StrictStr
    duration: float = 0.0
    results: List[SuiteEntry] = Field(default_factory=list)
    errors: List[StrictStr] = Field(default_factory=list)

    @property
    def verdicts(self):
        return [entry.verdict for entry in self.results if entry.verdict is not None]

    @property
    def passed(self):
        return len(self.errors) == 0 and all(
            verdict.all_required_passed for verdict in self.verdicts
        )


def suite_run_id() -> str:
    return datetime.now().strftime("%Y%m%d-%H%M%S")


def load_suite(directory: str | Path) -> List[Scenario]:
    """
    Loads every ``*.json`` scenario in ``directory`` in name order. A
    ``profiles.json`` kept beside the scenarios is not a scenario.
    """
    suite_dir = Path(directory)
    files = sorted(
        path
        for path in suite_dir.glob("*.json")
        if path.name != PROFILES_FILE
    )

    if len(files) == 0:
        raise ScenarioError(f"No scenario files found in {suite_dir}")

    scenarios: List[Scenario] = []
    for path in files:
        try:
            scenarios.append(Scenario.from_json(path))

        except (OSError, json.JSONDecodeError, ValidationError) as err:
            raise ScenarioError(f"Unable to load scenario file {path}: {err}") from err

    return scenarios


async def run_suite(
    scenarios: List[Scenario],
    runners: Dict[str, ScenarioRunner],
    target: str | None = None,
    run_id: str | None = None,
) -> SuiteResult:
    suite = SuiteResult(
        run_id=run_id or suite_run_id(),
        started_at=datetime.now(timezone.utc).isoformat(),
    )
    start = time.monotonic()

    for profile, runner in runners.items():
        for scenario in scenarios:
            if scenario.supports(target) is False:
                suite.results.append(
                    SuiteEntry(profile=profile, scenario=scenario.name, skipped=True)
                )
                continue

            try:
                verdict = await runner.run(scenario)

            except ScenarioError as err:
                suite.errors.append(f"run scenario {scenario.name} [{profile}]: {err}")
                continue

            suite.results.append(
                SuiteEntry(profile=profile, scenario=scenario.name, verdict=verdict)
            )

    suite.duration = time.monotonic() - start

    return suite
