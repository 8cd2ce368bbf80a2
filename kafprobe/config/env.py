from typing import Callable, Dict, Literal, Union

from pydantic import BaseModel, StrictFloat, StrictInt, StrictStr

PrimaryType = Union[str, int, float, bytes, bool]


class Env(BaseModel):
    KAFPROBE_PROFILE: StrictStr | None = None
    KAFPROBE_PROFILES_PATH: StrictStr | None = None
    KAFPROBE_RUN_ID: StrictStr | None = None
    KAFPROBE_TARGET: StrictStr = "kafscale"
    KAFPROBE_LOG_LEVEL: Literal[
        "trace", "debug", "info", "warn", "error", "critical", "fatal"
    ] = "info"
    KAFPROBE_LOG_OUTPUT: Literal["stdout", "stderr"] = "stderr"
    KAFPROBE_LOG_DIRECTORY: StrictStr | None = None
    KAFPROBE_REPORT_DIR: StrictStr = "reports"
    KAFPROBE_CONNECT_TIMEOUT: StrictStr | StrictInt | StrictFloat = "2s"
    KAFPROBE_REQUEST_TIMEOUT: StrictStr | StrictInt | StrictFloat = "5s"
    KAFPROBE_CLIENT_ID: StrictStr = "kafprobe"

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "KAFPROBE_PROFILE": str,
            "KAFPROBE_PROFILES_PATH": str,
            "KAFPROBE_RUN_ID": str,
            "KAFPROBE_TARGET": str,
            "KAFPROBE_LOG_LEVEL": str,
            "KAFPROBE_LOG_OUTPUT": str,
            "KAFPROBE_LOG_DIRECTORY": str,
            "KAFPROBE_REPORT_DIR": str,
            "KAFPROBE_CONNECT_TIMEOUT": str,
            "KAFPROBE_REQUEST_TIMEOUT": str,
            "KAFPROBE_CLIENT_ID": str,
        }
