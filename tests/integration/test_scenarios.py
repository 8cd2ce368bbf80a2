import json

import pytest

from kafprobe.codec import decode, encode
from kafprobe.errors import ConnectivityError, ProduceError, ScenarioError
from kafprobe.scenarios import (
    CountCheck,
    PhaseSpec,
    Scenario,
    ScenarioRunner,
    TopicSettings,
    build_default_registry,
    get_preset,
    preset_names,
)
from kafprobe.scenarios import runner as runner_module
from kafprobe.scenarios.actions import ActionParams
from kafprobe.transport import ConnectionLifecycle, OutgoingMessage

from tests.mocks import (
    FailingProvisioner,
    HangingReader,
    InMemoryBroker,
    InMemoryTransport,
    ScriptedTransport,
)

BROKERS = ["127.0.0.1:9092"]


@pytest.fixture
def make_runner(provisioner, logger, sleep):
    def create_runner(transport, run_id: str = "test-run", **options) -> ScenarioRunner:
        options.setdefault("preflight", False)
        return ScenarioRunner(
            transport,
            options.pop("provisioner", provisioner),
            BROKERS,
            run_id=run_id,
            logger=logger,
            sleep=sleep,
            **options,
        )

    return create_runner


def concurrent_scenario(workers: int = 5) -> Scenario:
    return Scenario(
        name="concurrent-5x5",
        topic=TopicSettings(prefix="smoke-concurrent"),
        phases=[
            PhaseSpec(name="producer", action="produce", workers=workers),
            PhaseSpec(
                name="consumer",
                action="consume",
                workers=workers,
                start_offset="5s",
            ),
        ],
    )


class TestSingleScenario:
    @pytest.mark.asyncio
    async def test_hello_42(self, make_runner, transport, broker, provisioner):
        scenario = Scenario(
            name="hello",
            topic=TopicSettings(prefix="smoke-hello"),
            phases=[
                PhaseSpec(
                    name="roundtrip",
                    action="roundtrip",
                    params={
                        "produce": {"payload": "hello-42"},
                        "consume": {
                            "target": 1,
                            "retry": {"max_attempts": 3, "per_attempt_timeout": "5s"},
                            "checks": [
                                "got message",
                                "message has content",
                                "uuid preserved",
                                "payload matches",
                            ],
                        },
                    },
                )
            ],
        )

        verdict = await make_runner(transport).run(scenario)

        assert verdict.all_required_passed
        assert verdict.topic == "smoke-hello-test-run"
        assert provisioner.calls == [(tuple(BROKERS), "smoke-hello-test-run", 1, 1)]
        assert [decode(message.value).text for message in broker.log(verdict.topic)] == ["hello-42"]
        assert verdict.summary["produced"] == 1
        assert verdict.summary["consumed"] == 1


class TestConcurrentScenario:
    @pytest.mark.asyncio
    async def test_five_by_five_passes(self, make_runner, transport, broker, sleep):
        verdict = await make_runner(transport).run(concurrent_scenario())

        assert verdict.all_required_passed
        assert len(verdict.checks) == 15
        assert verdict.failed_checks == []
        assert 5.0 in sleep.delays

        correlation_ids = {
            decode(message.value).correlation_id
            for message in broker.log(verdict.topic)
        }
        assert len(correlation_ids) == 5
        assert len(transport.writers) == 5
        assert len(transport.readers) == 5
        assert all(writer.close_count == 1 for writer in transport.writers)
        assert all(reader.close_count == 1 for reader in transport.readers)

    @pytest.mark.asyncio
    async def test_one_undecodable_message_fails_the_run(self, make_runner):
        transport = InMemoryTransport(InMemoryBroker(), corrupt_readers={2})

        verdict = await make_runner(transport).run(concurrent_scenario())

        assert verdict.all_required_passed is False
        assert verdict.failed_checks == ["message has content"]
        assert verdict.aborts == 1
        assert verdict.passed_count == 14

    @pytest.mark.asyncio
    async def test_concurrent_preset(self, make_runner, transport):
        verdict = await make_runner(transport).run(get_preset("concurrent"))

        assert verdict.all_required_passed
        assert verdict.summary["produced"] == 100
        assert len(verdict.checks) == 300

    @pytest.mark.asyncio
    async def test_multi_producer_single_consumer_preset(self, make_runner, transport):
        verdict = await make_runner(transport).run(
            get_preset("multi_producer_single_consumer")
        )

        assert verdict.all_required_passed
        assert len([check for check in verdict.checks if check.name == "got message"]) == 100


class TestSharedScenario:
    @pytest.mark.asyncio
    async def test_two_hundred_iterations_self_consistent(self, make_runner, transport, sleep):
        verdict = await make_runner(transport).run(get_preset("shared"))

        assert verdict.all_required_passed
        assert len(verdict.checks) == 600
        assert {check.name for check in verdict.checks} == {
            "got message",
            "uuid preserved",
            "message correlated to producer",
        }
        assert sleep.delays.count(0.05) == 200

        assert len(transport.writers) == 1
        assert len(transport.readers) == 1
        assert transport.writers[0].close_count == 1
        assert transport.readers[0].close_count == 1
        assert len(transport.writers[0].batches) == 200

    @pytest.mark.asyncio
    async def test_requires_shared_lifecycle(self, make_runner, transport):
        scenario = Scenario(
            name="misconfigured",
            phases=[
                PhaseSpec(
                    name="shared",
                    action="shared_roundtrip",
                    iterations=2,
                    lifecycle=ConnectionLifecycle.PER_INVOCATION,
                )
            ],
        )

        verdict = await make_runner(transport).run(scenario)

        assert verdict.all_required_passed is False
        assert verdict.aborts == 2
        assert "shared connection lifecycle" in verdict.abort_reasons[0]
        assert transport.writers == []


class TestPresets:
    def test_every_preset_resolves(self):
        registry = build_default_registry()

        for name in preset_names():
            scenario = get_preset(name)

            for phase in scenario.phases:
                registry.get(phase.action).parse(phase.params)

    def test_unknown_preset(self):
        with pytest.raises(ScenarioError):
            get_preset("does-not-exist")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["single", "batch", "acl_basic"])
    async def test_roundtrip_presets_pass(self, make_runner, transport, name: str):
        verdict = await make_runner(transport).run(get_preset(name))

        assert verdict.all_required_passed, verdict.failed_checks

    @pytest.mark.asyncio
    async def test_autocreate_skips_provisioning(self, make_runner, transport, provisioner):
        verdict = await make_runner(transport).run(get_preset("autocreate"))

        assert verdict.all_required_passed
        assert provisioner.calls == []

    @pytest.mark.asyncio
    async def test_acl_message_lookup(self, make_runner, transport, broker):
        verdict = await make_runner(transport, run_id="acl-run").run(get_preset("acl_basic"))

        envelope = decode(broker.log("acl-test-acl-run")[0].value)

        assert envelope.correlation_id == "acl-run"
        assert envelope.flags == {"aclTest": True}
        assert broker.log("acl-test-acl-run")[0].key == b"acl-test-key"
        assert [check.name for check in verdict.checks] == [
            "authorized produce succeeded",
            "authorized consume succeeded",
            "received at least one message",
            "test message found with correct UUID",
        ]


class TestFailureHandling:
    @pytest.mark.asyncio
    async def test_forced_collision_is_a_failed_check(self, make_runner, transport, broker):
        scenario = Scenario(
            name="collision",
            phases=[
                PhaseSpec(
                    name="producer",
                    action="produce",
                    iterations=2,
                    params={"correlation_id": "fixed-id"},
                )
            ],
        )

        verdict = await make_runner(transport).run(scenario)

        assert verdict.all_required_passed is False
        assert verdict.failed_checks == ["correlation ids unique"]
        assert "duplicate correlation ids: fixed-id" == verdict.last_error
        assert len(broker.log(verdict.topic)) == 1

    @pytest.mark.asyncio
    async def test_provision_error_ends_run_before_workers(self, make_runner, transport):
        runner = make_runner(transport, provisioner=FailingProvisioner())

        verdict = await runner.run(concurrent_scenario())

        assert verdict.all_required_passed is False
        assert verdict.run_error.startswith("ProvisionError")
        assert verdict.checks == []
        assert transport.writers == []

    @pytest.mark.asyncio
    async def test_connectivity_error_ends_run(self, make_runner, transport, monkeypatch):
        async def unreachable(brokers, timeout=2.0):
            raise ConnectivityError("unable to connect to any broker")

        monkeypatch.setattr(runner_module, "check_connectivity", unreachable)

        verdict = await make_runner(transport, preflight=True).run(concurrent_scenario())

        assert verdict.run_error.startswith("ConnectivityError")
        assert transport.writers == []

    @pytest.mark.asyncio
    async def test_invalid_params_end_run(self, make_runner, transport):
        scenario = Scenario(
            name="bad-params",
            phases=[PhaseSpec(name="producer", action="produce", params={"messages": 0})],
        )

        verdict = await make_runner(transport).run(scenario)

        assert verdict.run_error.startswith("ScenarioError")

    @pytest.mark.asyncio
    async def test_produce_errors_abort_each_iteration(self, make_runner):
        transport = InMemoryTransport(writer_error=ProduceError("broker down"))
        scenario = Scenario(
            name="producer-errors",
            phases=[PhaseSpec(name="producer", action="produce", iterations=3)],
        )

        verdict = await make_runner(transport).run(scenario)

        assert verdict.aborts == 3
        assert verdict.last_error == "broker down"
        assert verdict.summary["errors"] == 3

    @pytest.mark.asyncio
    async def test_fail_fast_stops_new_iterations(self, make_runner):
        transport = InMemoryTransport(writer_error=ProduceError("broker down"))
        scenario = Scenario(
            name="fail-fast",
            fail_fast=True,
            phases=[PhaseSpec(name="producer", action="produce", iterations=3)],
        )

        verdict = await make_runner(transport).run(scenario)

        assert verdict.aborts == 1
        assert len(transport.writers) == 1

    @pytest.mark.asyncio
    async def test_consume_error_reports_last_transport_error(self, make_runner, transport):
        scenario = Scenario(
            name="empty-topic",
            phases=[
                PhaseSpec(
                    name="consumer",
                    action="consume",
                    params={"retry": {"max_attempts": 2, "per_attempt_timeout": "10ms"}},
                )
            ],
        )

        verdict = await make_runner(transport).run(scenario)

        assert verdict.all_required_passed is False
        assert verdict.abort_reasons[0].startswith("Consumer error:")
        assert verdict.last_error is not None


class TestScenarioFiles:
    def test_from_json_parses_durations(self, tmp_path):
        path = tmp_path / "scenario.json"
        path.write_text(
            json.dumps(
                {
                    "name": "custom",
                    "topic": {"prefix": "custom", "partitions": 1},
                    "phases": [
                        {"name": "producer", "action": "produce", "workers": 2},
                        {
                            "name": "consumer",
                            "action": "consume",
                            "start_offset": "5s",
                            "pause": "50ms",
                            "lifecycle": "shared",
                            "params": {"retry": {"per_attempt_timeout": "3s"}},
                        },
                    ],
                }
            )
        )

        scenario = Scenario.from_json(path)

        assert scenario.phases[1].start_offset == 5.0
        assert scenario.phases[1].pause == pytest.approx(0.05)
        assert scenario.phases[1].lifecycle == ConnectionLifecycle.SHARED
        assert scenario.total_iterations == 3

        params = build_default_registry().get("consume").parse(scenario.phases[1].params)
        assert params.retry.per_attempt_timeout == 3.0

    def test_duplicate_phase_names_rejected(self):
        with pytest.raises(ValueError):
            Scenario(
                name="dupes",
                phases=[
                    PhaseSpec(name="p", action="produce"),
                    PhaseSpec(name="p", action="consume"),
                ],
            )


class TestRunChecks:
    @pytest.mark.asyncio
    async def test_count_checks_compare_summary_totals(self, make_runner, transport):
        scenario = Scenario.from_dict(
            {
                "name": "counted",
                "phases": [{"name": "producer", "action": "produce", "iterations": 3}],
                "checks": [
                    {
                        "name": "three produced",
                        "type": "count_equals",
                        "metric": "produced",
                        "expected": 3,
                    },
                    {"name": "one consumed", "type": "count_equals", "expected": 1},
                ],
            }
        )

        verdict = await make_runner(transport).run(scenario)

        assert verdict.failed_checks == ["one consumed"]
        failed = [check for check in verdict.checks if check.passed is False]
        assert failed[0].detail == "consumed was 0, expected 1"
        assert verdict.all_required_passed is False

    @pytest.mark.asyncio
    async def test_count_checks_pass(self, make_runner, transport):
        scenario = concurrent_scenario()
        scenario.checks = [
            CountCheck(name="all produced", type="count_equals", metric="produced", expected=5),
            CountCheck(name="all consumed", type="count_equals", metric="consumed", expected=5),
        ]

        verdict = await make_runner(transport).run(scenario)

        assert verdict.all_required_passed
        assert [check.name for check in verdict.checks[-2:]] == ["all produced", "all consumed"]

    def test_negative_expected_rejected(self):
        with pytest.raises(ValueError):
            CountCheck(name="bad", type="count_equals", expected=-1)

    @pytest.mark.asyncio
    async def test_foreign_message_fails_correlation(self, make_runner, broker, transport):
        broker.append(
            "stale-test-run",
            0,
            OutgoingMessage(value=encode("stale-from-other-run", "old")),
        )
        scenario = Scenario(
            name="stale",
            topic=TopicSettings(prefix="stale"),
            phases=[PhaseSpec(name="consumer", action="consume")],
        )

        verdict = await make_runner(transport).run(scenario)

        assert verdict.all_required_passed is False
        assert verdict.failed_checks == ["message correlated to producer"]
        assert verdict.summary["correlation"]["foreign"] == 1
        assert verdict.summary["correlation"]["matched"] == 0

    @pytest.mark.asyncio
    async def test_correlation_counts_in_summary(self, make_runner, transport):
        verdict = await make_runner(transport).run(concurrent_scenario())

        correlation = verdict.summary["correlation"]
        assert correlation["produced"] == 5
        assert correlation["matched"] == 5
        assert correlation["foreign"] == 0
        assert correlation["duplicates"] == 0


class TestRunTimeout:
    @pytest.mark.asyncio
    async def test_hanging_run_ends_with_timeout(self, make_runner):
        scenario = Scenario(
            name="hanging",
            timeout="50ms",
            phases=[
                PhaseSpec(
                    name="consumer",
                    action="consume",
                    params={"retry": {"max_attempts": 3, "per_attempt_timeout": "10s"}},
                )
            ],
        )

        verdict = await make_runner(ScriptedTransport(HangingReader())).run(scenario)

        assert verdict.all_required_passed is False
        assert verdict.run_error.startswith("RunTimeoutError")
        assert "did not finish within 0.05s" in verdict.run_error
        assert verdict.checks == []

    @pytest.mark.asyncio
    async def test_timeout_not_reached(self, make_runner, transport):
        scenario = concurrent_scenario()
        scenario.timeout = 30.0

        verdict = await make_runner(transport).run(scenario)

        assert verdict.all_required_passed
        assert verdict.run_error is None


class TestUnexpectedErrors:
    @pytest.mark.asyncio
    async def test_handler_exception_counted_as_error(self, make_runner, transport):
        registry = build_default_registry()

        async def explode(context, params):
            raise RuntimeError("handler bug")

        registry.register("explode", explode, ActionParams)
        scenario = Scenario(
            name="explode",
            phases=[PhaseSpec(name="boom", action="explode", iterations=2)],
        )

        verdict = await make_runner(transport, registry=registry).run(scenario)

        assert verdict.aborts == 2
        assert verdict.summary["errors"] == 2
        assert verdict.abort_reasons[0] == "explode failed: RuntimeError: handler bug"
