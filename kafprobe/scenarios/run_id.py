import random
import re

from kafprobe.codec import now_millis
from kafprobe.errors import ScenarioError

_valid_topic = re.compile(r"^[a-zA-Z0-9._-]{1,249}$")


def new_run_id(override: str | None = None) -> str:
    if override:
        return override

    return f"{now_millis()}-{random.randrange(1_000_000)}"


def topic_name(prefix: str, run_id: str) -> str:
    name = f"{prefix.rstrip('-')}-{run_id}"

    if _valid_topic.match(name) is None:
        raise ScenarioError(f"{name!r} is not a valid topic name")

    return name
