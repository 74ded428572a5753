"""
ProfileStore – the two coupled structures behind the registry.

  by_identity : `profile:<address>` keys, identity -> Profile
  order       : `registry:order` key, identities in insertion order

Invariant: an identity is in `order` iff its stored profile has a non-empty
name. `_upsert` and `_remove` are the only writers and keep both in step.
"""
from contextlib import contextmanager
from typing import List, Optional

from core.database import KeyValueStore, MemoryStore
from registry.models import EMPTY_PROFILE, Profile


class ProfileStore:
    ORDER_KEY = "registry:order"

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store if store is not None else MemoryStore()

    # ── Raw access ────────────────────────────────────────────────────────────

    def _profile_key(self, identity: str) -> str:
        return f"profile:{identity}"

    def _order(self) -> List[str]:
        return self.store.get(self.ORDER_KEY, [])

    def _profile(self, identity: str) -> Profile:
        data = self.store.get(self._profile_key(identity))
        if data is None:
            return EMPTY_PROFILE
        return Profile.from_dict(data)

    def is_registered(self, identity: str) -> bool:
        return self._profile(identity).registered

    @contextmanager
    def atomic(self):
        """Scope of one registry call: all writes land together or not at all."""
        with self.store.transaction():
            yield

    # ── Mutation ──────────────────────────────────────────────────────────────

    def _upsert(self, identity: str, profile: Profile) -> None:
        """Create or overwrite a profile; new identities go to the end of `order`."""
        if not self.is_registered(identity):
            order = self._order()
            order.append(identity)
            self.store.put(self.ORDER_KEY, order)
        self.store.put(self._profile_key(identity), profile.to_dict())

    def _remove(self, identity: str) -> bool:
        """Drop identity from both structures. Returns whether it was present."""
        present = self.is_registered(identity)
        self.store.delete(self._profile_key(identity))
        if present:
            self.remove_from_addresses(identity)
        return present

    def remove_from_addresses(self, identity: str) -> None:
        """Order-preserving removal: every later entry shifts left by one."""
        order = self._order()
        if identity not in order:
            return
        del order[order.index(identity)]
        self.store.put(self.ORDER_KEY, order)

    # ── Uniqueness ────────────────────────────────────────────────────────────

    def validate_unique_phone(self, phone_number: int) -> bool:
        """
        True if no registered identity holds phone_number. The scan covers
        every entry, the caller's own record included.
        """
        for identity in self._order():
            if self._profile(identity).phone_number == phone_number:
                return False
        return True
