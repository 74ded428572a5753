"""
Profile data structures.
"""
from dataclasses import dataclass, asdict

# Phone numbers are fixed-width unsigned 256-bit integers.
PHONE_NUMBER_BITS = 256
MAX_PHONE_NUMBER = 2 ** PHONE_NUMBER_BITS - 1


def validate_phone_number(phone_number) -> int:
    """Return phone_number as int, or raise ValueError if it is not a uint256."""
    if isinstance(phone_number, bool) or not isinstance(phone_number, int):
        raise ValueError(f"Phone number must be an integer, got {type(phone_number).__name__}")
    if phone_number < 0 or phone_number > MAX_PHONE_NUMBER:
        raise ValueError(f"Phone number out of range: {phone_number}")
    return phone_number


def validate_name(name) -> str:
    if not isinstance(name, str):
        raise ValueError(f"Name must be a string, got {type(name).__name__}")
    return name


@dataclass(frozen=True)
class Profile:
    name: str = ""
    phone_number: int = 0
    last_updated: float = 0.0

    @property
    def registered(self) -> bool:
        return self.name != ""

    def to_dict(self) -> dict:
        # Decimal string keeps 256-bit values intact for any JSON reader
        return {
            "name": self.name,
            "phone_number": str(self.phone_number),
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Profile":
        return cls(
            name=data.get("name", ""),
            phone_number=int(data.get("phone_number", 0)),
            last_updated=float(data.get("last_updated", 0.0)),
        )


EMPTY_PROFILE = Profile()


@dataclass(frozen=True)
class ProfileRecord:
    """An identity paired with its stored profile."""
    address: str
    name: str
    phone_number: int
    last_updated: float

    @classmethod
    def of(cls, address: str, profile: Profile) -> "ProfileRecord":
        return cls(address, profile.name, profile.phone_number, profile.last_updated)

    @property
    def registered(self) -> bool:
        return self.name != ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TransferEvent:
    sender: str
    recipient: str
    value: int
    timestamp: float

    def to_dict(self) -> dict:
        return asdict(self)
