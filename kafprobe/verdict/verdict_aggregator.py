from __future__ import annotations

from typing import Any, Callable, Dict, List

from kafprobe.errors import WorkerAborted

from .models import CheckResult, RunVerdict


Assertion = Callable[[Any], bool]


class VerdictAggregator:
    """
    Collects named checks from every worker of a run and turns them into a
    single ``RunVerdict``.

    Workers share one aggregator. All mutation happens on the event loop
    thread between suspension points, so no locking is needed.
    """

    def __init__(self) -> None:
        self.checks: List[CheckResult] = []
        self.abort_reasons: List[str] = []
        self.last_error: str | None = None

    @property
    def aborts(self):
        return len(self.abort_reasons)

    def record(
        self,
        name: str,
        passed: bool,
        required: bool = True,
        worker: int | None = None,
        iteration: int | None = None,
        detail: str | None = None,
    ) -> CheckResult:
        result = CheckResult(
            name=name,
            passed=bool(passed),
            required=required,
            worker=worker,
            iteration=iteration,
            detail=detail,
        )

        self.checks.append(result)

        return result

    def check(
        self,
        subject: Any,
        assertions: Dict[str, Assertion],
        required: bool = True,
        worker: int | None = None,
        iteration: int | None = None,
        error: str | None = None,
    ) -> bool:
        failed: List[str] = []

        for name, assertion in assertions.items():
            detail: str | None = None

            try:
                passed = bool(assertion(subject))

            except Exception as err:
                passed = False
                detail = f"{err.__class__.__name__}: {err}"

            self.record(
                name,
                passed,
                required=required,
                worker=worker,
                iteration=iteration,
                detail=detail,
            )

            if passed is False:
                failed.append(name)

        if failed and required:
            self.fail_fast(
                f"failed checks: {', '.join(failed)}",
                error=error,
            )

        return len(failed) == 0

    def note_error(self, error: str | None):
        if error:
            self.last_error = error

    def abort(
        self,
        message: str,
        error: str | None = None,
    ):
        self.abort_reasons.append(message)
        self.note_error(error)

    def fail_fast(
        self,
        message: str,
        error: str | None = None,
    ):
        self.abort(message, error=error)

        raise WorkerAborted(message, error=error)

    def is_all_passed(self):
        return len(self.checks) > 0 and all(check.passed for check in self.checks)

    def failed_checks(self, required_only: bool = False) -> List[str]:
        names: Dict[str, None] = {}
        for check in self.checks:
            if check.passed is False and (check.required or required_only is False):
                names[check.name] = None

        return list(names)

    def verdict(
        self,
        run_id: str,
        scenario: str,
        topic: str,
        run_error: str | None = None,
        require_all_checks: bool = False,
        summary: Dict[str, Any] | None = None,
    ) -> RunVerdict:
        if require_all_checks:
            checks_passed = self.is_all_passed()

        else:
            checks_passed = len(self.checks) > 0 and all(
                check.passed for check in self.checks if check.required
            )

        return RunVerdict(
            run_id=run_id,
            scenario=scenario,
            topic=topic,
            checks=list(self.checks),
            all_required_passed=(
                checks_passed and self.aborts == 0 and run_error is None
            ),
            failed_checks=self.failed_checks(),
            aborts=self.aborts,
            abort_reasons=list(self.abort_reasons),
            last_error=self.last_error,
            run_error=run_error,
            summary=summary or {},
        )
