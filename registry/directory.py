"""
Directory – read-only queries over the registry, inherits from ProfileStore.
"""
from typing import Iterator, List, Optional

from registry.models import ProfileRecord, validate_phone_number
from registry.profile_store import ProfileStore


class Directory(ProfileStore):
    """
    Lookups by position, address and phone number. Nothing here raises for a
    missing entry: absent results are None or the empty sentinel record.
    """

    def count(self) -> int:
        """Number of registered identities."""
        return len(self._order())

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[ProfileRecord]:
        return iter(self.records())

    def records(self) -> List[ProfileRecord]:
        """All registered profiles in insertion order."""
        return [ProfileRecord.of(a, self._profile(a)) for a in self._order()]

    def get_by_index(self, index: int) -> Optional[ProfileRecord]:
        """Record at position `index` of the insertion order, or None if out of range."""
        order = self._order()
        if isinstance(index, bool) or not isinstance(index, int):
            return None
        if index < 0 or index >= len(order):
            return None
        address = order[index]
        return ProfileRecord.of(address, self._profile(address))

    def get_by_address(self, address: str) -> ProfileRecord:
        """
        Identity paired with whatever is stored for it. Unregistered
        identities come back with the empty sentinel (name == "").
        """
        return ProfileRecord.of(address, self._profile(address))

    def get_by_phone_number(self, phone_number: int) -> Optional[ProfileRecord]:
        """Earliest-inserted record holding phone_number, or None (also for values outside uint256)."""
        try:
            phone_number = validate_phone_number(phone_number)
        except ValueError:
            return None
        for address in self._order():
            profile = self._profile(address)
            if profile.phone_number == phone_number:
                return ProfileRecord.of(address, profile)
        return None
