class KafprobeError(Exception):
    pass


class ProfileError(KafprobeError):
    pass


class ProvisionError(KafprobeError):
    pass


class ConnectivityError(KafprobeError):
    pass


class ProduceError(KafprobeError):
    pass


class ConsumeError(KafprobeError):
    pass


class ConsumeTimeoutError(ConsumeError):
    pass


class DecodeError(KafprobeError):
    pass


class ScenarioError(KafprobeError):
    pass


class RunTimeoutError(ScenarioError):
    pass


class WorkerAborted(KafprobeError):
    def __init__(self, reason: str, error: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.error = error
