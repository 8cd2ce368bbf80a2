from __future__ import annotations

import os
import sys
from typing import List, Tuple

import click
import uvloop

from kafprobe.config import Env, load_env, load_profiles
from kafprobe.errors import KafprobeError, ProfileError, ScenarioError
from kafprobe.logging import LOG_LEVEL_NAMES, Logger
from kafprobe.probes import diagnose as run_diagnostics
from kafprobe.probes import probe_metrics
from kafprobe.reporting import JSONReport
from kafprobe.scenarios import (
    PRESETS,
    Scenario,
    ScenarioRunner,
    SuiteResult,
    get_preset,
    load_suite,
    run_suite,
)
from kafprobe.scenarios.suite import PROFILES_FILE
from kafprobe.transport.kafka import KafkaTopicProvisioner, KafkaTransport

from .settings import RunSettings, build_logger, resolve_settings

EXIT_FAILED = 1
EXIT_USAGE = 2


def _fail_usage(message: str):
    click.echo(f"Error: {message}", err=True)
    sys.exit(EXIT_USAGE)


def _load_scenario(name: str | None, scenario_file: str | None) -> Scenario:
    if scenario_file:
        try:
            return Scenario.from_json(scenario_file)

        except (OSError, ValueError) as err:
            _fail_usage(f"Unable to load scenario file {scenario_file}: {err}")

    if name is None:
        _fail_usage("Provide a scenario name or --file")

    try:
        return get_preset(name)

    except ScenarioError as err:
        _fail_usage(str(err))


def _settings(**options) -> RunSettings:
    env: Env = load_env(Env)

    try:
        return resolve_settings(env, **options)

    except ProfileError as err:
        _fail_usage(str(err))


def _build_runner(
    settings: RunSettings,
    logger: Logger,
    preflight: bool,
    run_id: str | None = None,
) -> ScenarioRunner:
    return ScenarioRunner(
        KafkaTransport(),
        KafkaTopicProvisioner(
            client_id=f"{settings.client_id}-admin",
            request_timeout=settings.request_timeout,
        ),
        settings.brokers,
        run_id=run_id,
        logger=logger,
        client_id=settings.client_id,
        request_timeout=settings.request_timeout,
        connect_timeout=settings.connect_timeout,
        preflight=preflight,
    )


async def _run(
    scenario: Scenario,
    settings: RunSettings,
    preflight: bool,
    write_report: bool,
):
    logger = build_logger(settings)
    runner = _build_runner(settings, logger, preflight, run_id=settings.run_id)

    try:
        verdict = await runner.run(scenario)

    finally:
        await logger.close()

    report_path: str | None = None
    if write_report:
        report_path = await JSONReport(settings.report_dir).submit(verdict)

    return verdict, report_path


async def _run_suite(
    scenarios: List[Scenario],
    profiles: List[RunSettings],
    preflight: bool,
    write_report: bool,
) -> Tuple[SuiteResult, str | None]:
    primary = profiles[0]
    logger = build_logger(primary)
    runners = {
        settings.profile_id: _build_runner(settings, logger, preflight)
        for settings in profiles
    }

    try:
        result = await run_suite(
            scenarios,
            runners,
            target=primary.target,
            run_id=primary.run_id,
        )

    finally:
        await logger.close()

    report_path: str | None = None
    if write_report:
        report_path = await JSONReport(primary.report_dir).submit_suite(result)

    return result, report_path


@click.group(help="Correctness and liveness probes for Kafka-compatible brokers.")
def kafprobe():
    pass


@kafprobe.command(help="Run a scenario preset or a scenario JSON file.")
@click.argument("scenario", required=False)
@click.option("--file", "scenario_file", type=click.Path(dir_okay=False), default=None)
@click.option("--profile", default=None, type=str)
@click.option("--profiles-path", default=None, type=click.Path(dir_okay=False))
@click.option("--target", default=None, type=str)
@click.option("--run-id", default=None, type=str)
@click.option("--report-dir", default=None, type=str)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(LOG_LEVEL_NAMES, case_sensitive=False),
)
@click.option(
    "--log-file",
    default=None,
    type=click.Path(dir_okay=False),
    help="Append run logs to this JSON lines file instead of the console.",
)
@click.option(
    "--no-preflight",
    is_flag=True,
    default=False,
    help="Skip the broker TCP reachability check.",
)
@click.option(
    "--no-report",
    is_flag=True,
    default=False,
    help="Do not write summary.json.",
)
def run(
    scenario: str | None,
    scenario_file: str | None,
    profile: str | None,
    profiles_path: str | None,
    target: str | None,
    run_id: str | None,
    report_dir: str | None,
    log_level: str | None,
    log_file: str | None,
    no_preflight: bool,
    no_report: bool,
):
    selected = _load_scenario(scenario, scenario_file)
    settings = _settings(
        profile_id=profile,
        profiles_path=profiles_path,
        target=target,
        run_id=run_id,
        report_dir=report_dir,
        log_level=log_level,
        log_file=log_file,
    )

    if selected.supports(settings.target) is False:
        click.echo(
            f"Skipping {selected.name}: not supported for target {settings.target}"
        )
        return

    try:
        verdict, report_path = uvloop.run(
            _run(
                selected,
                settings,
                preflight=no_preflight is False,
                write_report=no_report is False,
            )
        )

    except ScenarioError as err:
        _fail_usage(str(err))

    status = "PASSED" if verdict.all_required_passed else "FAILED"
    click.echo(f"{verdict.scenario} [{settings.profile_id}] {status}")
    click.echo(f"  run id:  {verdict.run_id}")
    click.echo(f"  topic:   {verdict.topic}")
    click.echo(
        f"  checks:  {verdict.passed_count} passed, {verdict.failed_count} failed, "
        f"{verdict.aborts} aborted"
    )

    if verdict.failed_checks:
        click.echo(f"  failed:  {', '.join(verdict.failed_checks)}")

    if verdict.last_error:
        click.echo(f"  last error: {verdict.last_error}")

    if verdict.run_error:
        click.echo(f"  run error:  {verdict.run_error}")

    if report_path:
        click.echo(f"  report:  {report_path}")

    if verdict.all_required_passed is False:
        sys.exit(EXIT_FAILED)


@kafprobe.command(help="Run several scenarios against one or more profiles.")
@click.argument("names", nargs=-1)
@click.option(
    "--dir",
    "suite_dir",
    default=None,
    type=click.Path(file_okay=False),
    help="Directory of scenario JSON files. A profiles.json inside it is used for profiles.",
)
@click.option(
    "--profile",
    "profile_ids",
    multiple=True,
    help="Profile to run against. Repeatable. Defaults to every configured profile.",
)
@click.option("--profiles-path", default=None, type=click.Path(dir_okay=False))
@click.option("--target", default=None, type=str)
@click.option("--run-id", default=None, type=str)
@click.option("--report-dir", default=None, type=str)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(LOG_LEVEL_NAMES, case_sensitive=False),
)
@click.option("--log-file", default=None, type=click.Path(dir_okay=False))
@click.option("--no-preflight", is_flag=True, default=False)
@click.option("--no-report", is_flag=True, default=False)
def suite(
    names: Tuple[str, ...],
    suite_dir: str | None,
    profile_ids: Tuple[str, ...],
    profiles_path: str | None,
    target: str | None,
    run_id: str | None,
    report_dir: str | None,
    log_level: str | None,
    log_file: str | None,
    no_preflight: bool,
    no_report: bool,
):
    scenarios: List[Scenario] = []

    if suite_dir:
        try:
            scenarios.extend(load_suite(suite_dir))

        except ScenarioError as err:
            _fail_usage(str(err))

        suite_profiles = os.path.join(suite_dir, PROFILES_FILE)
        if profiles_path is None and os.path.exists(suite_profiles):
            profiles_path = suite_profiles

    scenarios.extend(_load_scenario(name, None) for name in names)

    if len(scenarios) == 0:
        _fail_usage("Provide scenario names or --dir")

    selected_profiles = list(profile_ids)
    if len(selected_profiles) == 0:
        env: Env = load_env(Env)

        try:
            profiles, _ = load_profiles(profiles_path or env.KAFPROBE_PROFILES_PATH)

        except ProfileError as err:
            _fail_usage(str(err))

        selected_profiles = sorted(profiles.profiles)

    if len(selected_profiles) == 0:
        _fail_usage("No profiles configured")

    settings = [
        _settings(
            profile_id=profile_id,
            profiles_path=profiles_path,
            target=target,
            run_id=run_id,
            report_dir=report_dir,
            log_level=log_level,
            log_file=log_file,
        )
        for profile_id in selected_profiles
    ]

    result, report_path = uvloop.run(
        _run_suite(
            scenarios,
            settings,
            preflight=no_preflight is False,
            write_report=no_report is False,
        )
    )

    status = "PASSED" if result.passed else "FAILED"
    click.echo(f"suite {result.run_id} {status} [{result.duration:.2f}s]")

    for entry in result.results:
        if entry.skipped:
            click.echo(f"  {entry.scenario} [{entry.profile}] SKIPPED")
            continue

        verdict = entry.verdict
        entry_status = "PASSED" if verdict.all_required_passed else "FAILED"
        click.echo(
            f"  {entry.scenario} [{entry.profile}] {entry_status} - "
            f"{verdict.passed_count} passed, {verdict.failed_count} failed"
        )

    for error in result.errors:
        click.echo(f"  error: {error}")

    if report_path:
        click.echo(f"  report: {report_path}")

    if result.passed is False:
        sys.exit(EXIT_FAILED)


@kafprobe.command(name="list", help="List scenario presets and configured profiles.")
@click.option("--profiles-path", default=None, type=click.Path(dir_okay=False))
def list_scenarios(profiles_path: str | None):
    click.echo("Scenarios:")
    for name, factory in PRESETS.items():
        click.echo(f"  {name:<32} {factory().description}")

    env: Env = load_env(Env)

    try:
        profiles, source = load_profiles(profiles_path or env.KAFPROBE_PROFILES_PATH)

    except ProfileError as err:
        click.echo(f"\nProfiles: unavailable ({err})")
        return

    click.echo(f"\nProfiles ({source}):")
    for name, profile in profiles.profiles.items():
        marker = "*" if name == profiles.default_profile else " "
        click.echo(f" {marker}{name:<32} {', '.join(profile.brokers)}")


@kafprobe.command(help="Open and close a writer and a reader against the brokers.")
@click.option("--profile", default=None, type=str)
@click.option("--profiles-path", default=None, type=click.Path(dir_okay=False))
@click.option("--topic", default="diagnostic-test", type=str)
def diagnose(
    profile: str | None,
    profiles_path: str | None,
    topic: str,
):
    settings = _settings(profile_id=profile, profiles_path=profiles_path)

    report = uvloop.run(
        run_diagnostics(
            KafkaTransport(),
            settings.brokers,
            topic=topic,
            client_id=settings.client_id,
            request_timeout=settings.request_timeout,
        )
    )

    click.echo(f"Diagnosing {', '.join(report.brokers)} on topic {report.topic}")
    for step in report.steps:
        status = "OK" if step.ok else f"FAILED ({step.error})"
        click.echo(f"  {step.name:<16} {status} [{step.elapsed:.3f}s]")

    if report.successful is False:
        sys.exit(EXIT_FAILED)


@kafprobe.command(help="Check that the profile's metrics endpoint responds.")
@click.option("--profile", default=None, type=str)
@click.option("--profiles-path", default=None, type=click.Path(dir_okay=False))
@click.option("--target", default=None, type=str)
@click.option("--timeout", default=5.0, type=float)
def metrics(
    profile: str | None,
    profiles_path: str | None,
    target: str | None,
    timeout: float,
):
    settings = _settings(
        profile_id=profile,
        profiles_path=profiles_path,
        target=target,
    )

    result = uvloop.run(
        probe_metrics(
            settings.profile.metrics_url,
            target=settings.target,
            timeout=timeout,
        )
    )

    click.echo(f"metrics [{settings.target}] {result.url or '-'}: {result.context()}")

    if result.successful is False:
        sys.exit(EXIT_FAILED)


def main():
    try:
        kafprobe()

    except KafprobeError as err:
        click.echo(f"Error: {err}", err=True)
        sys.exit(EXIT_FAILED)
