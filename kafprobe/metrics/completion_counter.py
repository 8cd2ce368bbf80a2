import itertools


class CompletionCounter:
    def __init__(self) -> None:
        self._incs = itertools.count()
        self._reads = itertools.count()

    def increment(self, amount: int = 1):
        for _ in range(amount):
            next(self._incs)

    def value(self):
        return next(self._incs) - next(self._reads)
