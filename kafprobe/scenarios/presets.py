from typing import Callable, Dict, List

from kafprobe.errors import ScenarioError
from kafprobe.transport import ConnectionLifecycle

from .scenario import PhaseSpec, Scenario, TopicSettings


def single() -> Scenario:
    return Scenario(
        name="single",
        description="One producer writes one raw message, one consumer reads it back.",
        topic=TopicSettings(prefix="smoke-single"),
        phases=[
            PhaseSpec(
                name="roundtrip",
                action="roundtrip",
                params={
                    "produce": {
                        "payload": "test-message-{ts}",
                        "raw": True,
                    },
                    "consume": {
                        "settle": 3.0,
                        "target": 1,
                        "limit": 10,
                        "retry": {"max_attempts": 1, "per_attempt_timeout": 5.0},
                        "checks": ["received at least one message"],
                    },
                },
            )
        ],
    )


def concurrent() -> Scenario:
    return Scenario(
        name="concurrent",
        description=(
            "Five producers write tracked messages over fresh connections while "
            "five consumers, started five seconds later, read them back."
        ),
        topic=TopicSettings(prefix="smoke-concurrent"),
        phases=[
            PhaseSpec(
                name="producer",
                action="produce",
                workers=5,
                iterations=20,
                pause=0.01,
            ),
            PhaseSpec(
                name="consumer",
                action="consume",
                workers=5,
                iterations=20,
                start_offset=5.0,
                pause=0.01,
                params={
                    "max_wait": 1.0,
                    "retry": {"max_attempts": 3, "per_attempt_timeout": 3.0},
                },
            ),
        ],
    )


def multi_producer_single_consumer() -> Scenario:
    return Scenario(
        name="multi_producer_single_consumer",
        description="Five producers and one consumer over fresh connections.",
        topic=TopicSettings(prefix="smoke-multi-prod-single-cons"),
        phases=[
            PhaseSpec(
                name="producer",
                action="produce",
                workers=5,
                iterations=20,
                pause=0.01,
            ),
            PhaseSpec(
                name="consumer",
                action="consume",
                workers=1,
                iterations=100,
                start_offset=5.0,
                pause=0.01,
                params={
                    "max_wait": 1.0,
                    "retry": {"max_attempts": 5, "per_attempt_timeout": 10.0},
                },
            ),
        ],
    )


def shared() -> Scenario:
    return Scenario(
        name="shared",
        description=(
            "One worker reuses a single writer and reader for 200 "
            "produce-then-consume iterations."
        ),
        topic=TopicSettings(prefix="smoke-shared"),
        phases=[
            PhaseSpec(
                name="shared",
                action="shared_roundtrip",
                iterations=200,
                lifecycle=ConnectionLifecycle.SHARED,
                pause=0.05,
            )
        ],
    )


def batch() -> Scenario:
    return Scenario(
        name="batch",
        description="Two raw messages in one batch, consumed back as a set.",
        topic=TopicSettings(prefix="smoke-batch"),
        phases=[
            PhaseSpec(
                name="roundtrip",
                action="roundtrip",
                params={
                    "produce": {
                        "messages": 2,
                        "payload": "batch-{run_id}-{index}",
                        "raw": True,
                    },
                    "consume": {
                        "settle": 2.0,
                        "target": 2,
                        "limit": 2,
                        "retry": {"max_attempts": 5, "per_attempt_timeout": 5.0},
                        "checks": [
                            "received at least one message",
                            "consumed expected messages",
                        ],
                    },
                },
            )
        ],
    )


def autocreate() -> Scenario:
    return Scenario(
        name="autocreate",
        description="Produce to a topic that was never provisioned and read it back.",
        topic=TopicSettings(prefix="smoke-autocreate", provision=False),
        phases=[
            PhaseSpec(
                name="roundtrip",
                action="roundtrip",
                params={
                    "produce": {
                        "payload": "auto-{ts}",
                        "raw": True,
                    },
                    "consume": {
                        "settle": 2.0,
                        "target": 1,
                        "limit": 5,
                        "retry": {"max_attempts": 3, "per_attempt_timeout": 3.0},
                        "checks": [
                            "received at least one message",
                            "payload matches",
                        ],
                    },
                },
            )
        ],
    )


def acl_basic() -> Scenario:
    return Scenario(
        name="acl_basic",
        description=(
            "Authorized produce and consume succeed and the flagged test "
            "message is found with its correlation id."
        ),
        topic=TopicSettings(prefix="acl-test"),
        require_all_checks=True,
        phases=[
            PhaseSpec(
                name="acl",
                action="roundtrip",
                params={
                    "produce": {
                        "payload": "acl-test-message-{run_id}",
                        "correlation_id": "{run_id}",
                        "key": "acl-test-key",
                        "flags": {"aclTest": True},
                        "check": "authorized produce succeeded",
                    },
                    "consume": {
                        "settle": 3.0,
                        "target": 1,
                        "limit": 10,
                        "retry": {"max_attempts": 1, "per_attempt_timeout": 5.0},
                        "fail_on_error": False,
                        "checks": [
                            "authorized consume succeeded",
                            "received at least one message",
                        ],
                        "optional_checks": ["test message found with correct UUID"],
                    },
                },
            )
        ],
    )


PRESETS: Dict[str, Callable[[], Scenario]] = {
    "single": single,
    "concurrent": concurrent,
    "multi_producer_single_consumer": multi_producer_single_consumer,
    "shared": shared,
    "batch": batch,
    "autocreate": autocreate,
    "acl_basic": acl_basic,
}


def preset_names() -> List[str]:
    return list(PRESETS)


def get_preset(name: str) -> Scenario:
    if name not in PRESETS:
        raise ScenarioError(
            f"Unknown scenario '{name}', expected one of: {', '.join(PRESETS)}"
        )

    return PRESETS[name]()
