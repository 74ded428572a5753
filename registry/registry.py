"""
Registry – registration, administration and pay-by-phone, inherits from Directory.
"""
import logging
from typing import Callable, Optional

from core.clock import SystemClock
from core.database import KeyValueStore
from core.events import EventLog
from core.ledger import Ledger
from registry.directory import Directory
from registry.errors import AuthorizationError, TransferFailure
from registry.models import Profile, TransferEvent, validate_name, validate_phone_number

logger = logging.getLogger("chainpay.registry")

DEFAULT_REGISTRY_ADDRESS = "registry"


class Registry(Directory):
    """
    Maps identities to (name, phone number) profiles.

    Self-service operations act on the caller's own record; `admin_update`,
    `admin_delete` and `credit` are reserved for the owner fixed at construction.
    Every operation runs as one atomic call against the shared store.
    """

    def __init__(self, owner: str,
                 address: str = DEFAULT_REGISTRY_ADDRESS,
                 store: Optional[KeyValueStore] = None,
                 ledger: Optional[Ledger] = None,
                 events: Optional[EventLog] = None,
                 clock: Optional[Callable[[], float]] = None):
        super().__init__(store)
        if not owner:
            raise ValueError("Registry owner identity must not be empty")
        self._owner = owner
        self.address = address
        self.ledger = ledger if ledger is not None else Ledger(self.store)
        self.events = events if events is not None else EventLog(self.store)
        self.clock = clock if clock is not None else SystemClock()

    @property
    def owner(self) -> str:
        return self._owner

    def _require_owner(self, caller: str, operation: str) -> None:
        if caller != self._owner:
            logger.warning(f"Rejected {operation} from non-owner {caller}")
            raise AuthorizationError(caller, operation)

    # ── Self-service ──────────────────────────────────────────────────────────

    def register(self, caller: str, name: str, phone_number: int) -> bool:
        """
        Create or overwrite the caller's profile.

        An empty name deletes the caller's profile instead and always
        reports False. A phone number already held by any registered
        identity, the caller included, is rejected with False, as is the
        registry's own ledger account.
        """
        name = validate_name(name)
        if caller == self.address:
            logger.warning(f"Register rejected: {caller} is the registry account")
            return False
        if name == "":
            with self.atomic():
                removed = self._remove(caller)
            if removed:
                logger.info(f"Unregistered {caller} via empty-name register")
            return False

        phone_number = validate_phone_number(phone_number)
        with self.atomic():
            if not self.validate_unique_phone(phone_number):
                logger.warning(f"Register by {caller} rejected: phone {phone_number} in use")
                return False
            self._upsert(caller, Profile(name, phone_number, self.clock()))
        logger.info(f"Registered {caller} as {name!r}")
        return True

    def update(self, caller: str, name: str, phone_number: int) -> bool:
        """Change the caller's existing profile. False if unregistered or the phone is taken."""
        name = validate_name(name)
        phone_number = validate_phone_number(phone_number)
        with self.atomic():
            if not self.is_registered(caller) or name == "":
                return False
            if not self.validate_unique_phone(phone_number):
                logger.warning(f"Update by {caller} rejected: phone {phone_number} in use")
                return False
            self._upsert(caller, Profile(name, phone_number, self.clock()))
        logger.info(f"Updated profile of {caller}")
        return True

    def delete(self, caller: str) -> bool:
        """Remove the caller's profile. Idempotent, always True."""
        with self.atomic():
            removed = self._remove(caller)
        if removed:
            logger.info(f"Deleted profile of {caller}")
        return True

    # ── Owner only ────────────────────────────────────────────────────────────

    def admin_update(self, caller: str, target: str, name: str, phone_number: int) -> bool:
        """
        Overwrite target's name and phone without the uniqueness check.
        False if target is unregistered or is the registry account, and for an
        empty name (the profile is left as is; use admin_delete to remove it).
        Raises AuthorizationError for non-owners.
        """
        self._require_owner(caller, "admin_update")
        name = validate_name(name)
        phone_number = validate_phone_number(phone_number)
        with self.atomic():
            if target == self.address or not self.is_registered(target) or name == "":
                return False
            self._upsert(target, Profile(name, phone_number, self.clock()))
        logger.info(f"Owner updated profile of {target}")
        return True

    def admin_delete(self, caller: str, target: str) -> bool:
        """Remove target's profile. Idempotent, always True for the owner."""
        self._require_owner(caller, "admin_delete")
        with self.atomic():
            removed = self._remove(target)
        if removed:
            logger.info(f"Owner deleted profile of {target}")
        return True

    def credit(self, caller: str, identity: str, amount: int) -> int:
        """Mint funds into an account. Returns the new balance."""
        self._require_owner(caller, "credit")
        with self.atomic():
            return self.ledger.credit(identity, amount)

    # ── Pay by phone ──────────────────────────────────────────────────────────

    def transfer(self, caller: str, phone_number: int, amount: int) -> str:
        """
        Attach `amount` from the caller, then sweep the registry's entire
        balance to whoever holds phone_number and return their name. With
        no match the balance goes back to the caller and "" is returned.

        If any ledger movement fails the whole call is reverted and
        TransferFailure propagates.
        """
        phone_number = validate_phone_number(phone_number)
        try:
            if caller == self.address:
                raise TransferFailure(caller, caller, amount, "the registry account cannot pay through itself")
            with self.atomic():
                self.ledger.transfer(caller, self.address, amount)
                match = self.get_by_phone_number(phone_number)
                held = self.ledger.balance_of(self.address)

                if match is None:
                    self.ledger.transfer(self.address, caller, held)
                    logger.info(f"No profile for phone {phone_number}; returned {held} to {caller}")
                    return ""

                self.events.emit(TransferEvent(caller, match.address, amount, self.clock()))
                self.ledger.transfer(self.address, match.address, held)
        except TransferFailure as e:
            logger.error(f"Transfer by {caller} to phone {phone_number} reverted: {e}")
            raise

        logger.info(f"Forwarded {held} from {caller} to {match.address} ({match.name})")
        return match.name
