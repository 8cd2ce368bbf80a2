from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Tuple

from kafprobe.errors import (
    ConnectivityError,
    ProvisionError,
    RunTimeoutError,
    ScenarioError,
    WorkerAborted,
)
from kafprobe.logging import Logger
from kafprobe.logging.kafprobe_logging_models import (
    CheckFailure,
    RunError,
    RunInfo,
    WorkerError,
)
from kafprobe.metrics import RunSummary
from kafprobe.transport import (
    ConnectionScope,
    ReaderConfig,
    TopicProvisioner,
    Transport,
    WriterConfig,
    check_connectivity,
)
from kafprobe.verdict import CorrelationLedger, RunVerdict, VerdictAggregator

from .actions import ActionParams, ActionRegistry, RegisteredAction, build_default_registry
from .context import IterationContext, RunContext
from .run_id import new_run_id, topic_name
from .scenario import PhaseSpec, Scenario


class ScenarioRunner:
    def __init__(
        self,
        transport: Transport,
        provisioner: TopicProvisioner,
        brokers: List[str],
        run_id: str | None = None,
        registry: ActionRegistry | None = None,
        logger: Logger | None = None,
        client_id: str = "kafprobe",
        request_timeout: float = 5.0,
        connect_timeout: float = 2.0,
        preflight: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.transport = transport
        self.provisioner = provisioner
        self.brokers = brokers
        self.run_id = run_id
        self.client_id = client_id
        self.request_timeout = request_timeout
        self.connect_timeout = connect_timeout
        self.preflight = preflight

        self._registry = registry or build_default_registry()
        self._logger = logger or Logger()
        self._sleep = sleep

    async def run(self, scenario: Scenario) -> RunVerdict:
        run_id = new_run_id(self.run_id)
        topic = scenario.topic.name or topic_name(scenario.topic.prefix, run_id)

        context = RunContext(
            run_id=run_id,
            scenario=scenario.name,
            topic=topic,
            brokers=list(self.brokers),
            aggregator=VerdictAggregator(),
            ledger=CorrelationLedger(),
            summary=RunSummary(),
            logger=self._logger,
            sleep=self._sleep,
        )

        await self._logger.log(
            RunInfo(
                message=f"Starting scenario {scenario.name} against {', '.join(self.brokers)}",
                run_id=run_id,
                scenario=scenario.name,
                topic=topic,
            ),
            name="kafprobe",
        )

        run_error: str | None = None

        try:
            actions = [
                (phase, *self._resolve_action(phase)) for phase in scenario.phases
            ]

            if self.preflight:
                await check_connectivity(
                    self.brokers,
                    timeout=self.connect_timeout,
                )

            if scenario.topic.provision:
                await self.provisioner.ensure_topic(
                    self.brokers,
                    topic,
                    scenario.topic.partitions,
                    scenario.topic.replication_factor,
                )

            await self._run_phases(context, scenario, actions)

        except (ScenarioError, ConnectivityError, ProvisionError) as err:
            run_error = f"{err.__class__.__name__}: {err}"

            await self._logger.log(
                RunError(
                    message=f"Run ended early: {run_error}",
                    run_id=run_id,
                    scenario=scenario.name,
                    topic=topic,
                ),
                name="kafprobe",
            )

        for count_check in scenario.checks:
            passed, actual = count_check.evaluate(
                context.summary.produced.value(),
                context.summary.consumed.value(),
            )

            context.aggregator.record(
                count_check.name,
                passed,
                detail=None if passed else (
                    f"{count_check.metric} was {actual}, expected {count_check.expected}"
                ),
            )

        verdict = context.aggregator.verdict(
            run_id,
            scenario.name,
            topic,
            run_error=run_error,
            require_all_checks=scenario.require_all_checks,
            summary={
                **context.summary.to_dict(),
                "correlation": context.ledger.to_dict(),
            },
        )

        for check in verdict.checks:
            if check.passed is False:
                await self._logger.log(
                    CheckFailure(
                        message=check.detail or f"Check failed: {check.name}",
                        run_id=run_id,
                        check=check.name,
                        worker=check.worker if check.worker is not None else -1,
                        iteration=check.iteration if check.iteration is not None else -1,
                    ),
                    name="kafprobe",
                )

        status = "PASSED" if verdict.all_required_passed else "FAILED"
        await self._logger.log(
            RunInfo(
                message=(
                    f"Scenario {scenario.name} {status} - {verdict.passed_count} passed, "
                    f"{verdict.failed_count} failed, {verdict.aborts} aborted"
                ),
                run_id=run_id,
                scenario=scenario.name,
                topic=topic,
            ),
            name="kafprobe",
        )

        return verdict

    async def _run_phases(
        self,
        context: RunContext,
        scenario: Scenario,
        actions: List[Tuple[PhaseSpec, RegisteredAction, ActionParams]],
    ):
        abort = asyncio.Event()

        phases = asyncio.gather(
            *[
                self._run_phase(
                    context,
                    scenario,
                    phase,
                    action,
                    params,
                    abort,
                )
                for phase, action, params in actions
            ]
        )

        if scenario.timeout is None:
            await phases
            return

        try:
            await asyncio.wait_for(phases, timeout=scenario.timeout)

        except asyncio.TimeoutError as err:
            raise RunTimeoutError(
                f"scenario {scenario.name} did not finish within {scenario.timeout:g}s"
            ) from err

    def _resolve_action(self, phase: PhaseSpec):
        action = self._registry.get(phase.action)
        return action, action.parse(phase.params)

    async def _run_phase(
        self,
        context: RunContext,
        scenario: Scenario,
        phase: PhaseSpec,
        action: RegisteredAction,
        params: ActionParams,
        abort: asyncio.Event,
    ):
        if phase.start_offset > 0:
            await self._sleep(phase.start_offset)

        await asyncio.gather(
            *[
                self._run_worker(
                    context,
                    scenario,
                    phase,
                    action,
                    params,
                    worker,
                    abort,
                )
                for worker in range(phase.workers)
            ]
        )

    async def _run_worker(
        self,
        context: RunContext,
        scenario: Scenario,
        phase: PhaseSpec,
        action: RegisteredAction,
        params: ActionParams,
        worker: int,
        abort: asyncio.Event,
    ):
        scope = ConnectionScope(
            self.transport,
            phase.lifecycle,
            writer_config=WriterConfig(
                brokers=context.brokers,
                topic=context.topic,
                client_id=self.client_id,
                request_timeout=self.request_timeout,
                **params.writer_options(),
            ),
            reader_config=ReaderConfig(
                brokers=context.brokers,
                topic=context.topic,
                client_id=self.client_id,
                request_timeout=self.request_timeout,
                **params.reader_options(),
            ),
        )

        try:
            for iteration in range(phase.iterations):
                if scenario.fail_fast and abort.is_set():
                    break

                iteration_context = IterationContext(
                    run=context,
                    phase=phase.name,
                    worker=worker,
                    iteration=iteration,
                    scope=scope,
                )

                try:
                    await action.handler(iteration_context, params)

                except WorkerAborted as aborted:
                    await self._log_worker_error(
                        context,
                        phase,
                        worker,
                        iteration,
                        aborted.reason,
                    )

                    if scenario.fail_fast:
                        abort.set()

                except Exception as err:
                    reason = f"{phase.action} failed: {err.__class__.__name__}: {err}"
                    context.aggregator.abort(reason, error=str(err))
                    context.summary.record_error()

                    await self._log_worker_error(
                        context,
                        phase,
                        worker,
                        iteration,
                        reason,
                    )

                    if scenario.fail_fast:
                        abort.set()

                if phase.pause > 0:
                    await self._sleep(phase.pause)

        finally:
            try:
                await scope.close()

            except Exception as err:
                context.aggregator.note_error(f"close failed: {err}")

    async def _log_worker_error(
        self,
        context: RunContext,
        phase: PhaseSpec,
        worker: int,
        iteration: int,
        reason: str,
    ):
        await self._logger.log(
            WorkerError(
                message=reason,
                run_id=context.run_id,
                phase=phase.name,
                worker=worker,
                iteration=iteration,
            ),
            name="kafprobe",
        )
