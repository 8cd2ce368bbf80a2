from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr


class CheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: StrictStr
    passed: StrictBool
    required: StrictBool = True
    worker: Optional[int] = None
    iteration: Optional[int] = None
    detail: Optional[StrictStr] = None


class RunVerdict(BaseModel):
    run_id: StrictStr
    scenario: StrictStr
    topic: StrictStr
    checks: List[CheckResult] = Field(default_factory=list)
    all_required_passed: StrictBool = False
    failed_checks: List[StrictStr] = Field(default_factory=list)
    aborts: int = 0
    abort_reasons: List[StrictStr] = Field(default_factory=list)
    last_error: Optional[StrictStr] = None
    run_error: Optional[StrictStr] = None
    summary: Dict[str, Any] = Field(default_factory=dict)

    @property
    def passed_count(self):
        return len([check for check in self.checks if check.passed])

    @property
    def failed_count(self):
        return len([check for check in self.checks if check.passed is False])

    def check_rates(self) -> Dict[str, float]:
        totals: Dict[str, List[int]] = {}
        for check in self.checks:
            passed, total = totals.setdefault(check.name, [0, 0])
            totals[check.name] = [passed + int(check.passed), total + 1]

        return {name: passed / total for name, (passed, total) in totals.items()}
