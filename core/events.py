"""
Event sink for Transfer notifications.

Events are written through the shared key-value store, so an event emitted by
a call that is later reverted disappears together with the call's other
writes.
"""
import logging
from typing import List

from core.database import KeyValueStore
from registry.models import TransferEvent

logger = logging.getLogger("chainpay.events")

_COUNT_KEY = "events:count"


class EventLog:

    def __init__(self, store: KeyValueStore):
        self.store = store

    def __len__(self) -> int:
        return self.store.get(_COUNT_KEY, 0)

    def emit(self, event: TransferEvent) -> None:
        seq = len(self)
        self.store.put(f"event:{seq}", event.to_dict())
        self.store.put(_COUNT_KEY, seq + 1)
        logger.debug(f"Transfer event #{seq}: {event.sender} -> {event.recipient} ({event.value})")

    def all(self) -> List[TransferEvent]:
        return [TransferEvent(**self.store.get(f"event:{i}")) for i in range(len(self))]

    def recent(self, limit: int = 50) -> List[TransferEvent]:
        total = len(self)
        start = max(0, total - limit)
        return [TransferEvent(**self.store.get(f"event:{i}")) for i in range(start, total)]
