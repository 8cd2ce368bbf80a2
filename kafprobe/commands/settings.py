from __future__ import annotations

from typing import List, Optional, TextIO

from pydantic import BaseModel, StrictStr

from kafprobe.config import Env, Profile, resolve_profile
from kafprobe.logging import Logger, LoggingConfig
from kafprobe.utils import TimeParser

DEFAULT_LOG_FILE = "kafprobe.json"


class RunSettings(BaseModel):
    profile_id: StrictStr
    profile: Profile
    profile_source: StrictStr
    brokers: List[StrictStr]
    target: StrictStr
    run_id: Optional[StrictStr] = None
    report_dir: StrictStr
    client_id: StrictStr
    connect_timeout: float
    request_timeout: float
    log_file: Optional[StrictStr] = None


def resolve_settings(
    env: Env,
    profile_id: str | None = None,
    profiles_path: str | None = None,
    target: str | None = None,
    run_id: str | None = None,
    report_dir: str | None = None,
    log_level: str | None = None,
    log_file: str | None = None,
) -> RunSettings:
    LoggingConfig().update(
        log_directory=env.KAFPROBE_LOG_DIRECTORY,
        log_level=log_level or env.KAFPROBE_LOG_LEVEL,
        log_output=env.KAFPROBE_LOG_OUTPUT,
    )

    if log_file is None and env.KAFPROBE_LOG_DIRECTORY:
        log_file = DEFAULT_LOG_FILE

    name, profile, source = resolve_profile(
        profile_id or env.KAFPROBE_PROFILE,
        path=profiles_path or env.KAFPROBE_PROFILES_PATH,
    )

    parser = TimeParser()

    return RunSettings(
        profile_id=name,
        profile=profile,
        profile_source=source,
        brokers=profile.brokers,
        target=target or env.KAFPROBE_TARGET,
        run_id=run_id or env.KAFPROBE_RUN_ID,
        report_dir=report_dir or env.KAFPROBE_REPORT_DIR,
        client_id=env.KAFPROBE_CLIENT_ID,
        connect_timeout=parser.parse(env.KAFPROBE_CONNECT_TIMEOUT),
        request_timeout=parser.parse(env.KAFPROBE_REQUEST_TIMEOUT),
        log_file=log_file,
    )


def build_logger(
    settings: RunSettings,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> Logger:
    """
    Run logs go to the console unless a log file is configured, in which
    case every ``kafprobe`` entry is appended to it as a JSON line. The
    ``KAFPROBE_LOG_DIRECTORY`` directory, when set, takes precedence over
    the directory part of the file path.
    """
    logger = Logger(stdout=stdout, stderr=stderr)

    if settings.log_file:
        logger.context(name="kafprobe", path=settings.log_file)

    return logger
