from core.database import MemoryStore
from registry.registry import Registry

OWNER = "0xowner"


class StepClock:
    """Deterministic clock: 1000.0, 1001.0, 1002.0, ..."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        value = self.now
        self.now += 1.0
        return value


def make_registry(store=None) -> Registry:
    return Registry(owner=OWNER, store=store if store is not None else MemoryStore(),
                    clock=StepClock())
