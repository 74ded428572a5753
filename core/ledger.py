"""
Ledger – balances per identity and the transfer primitive.

Amounts are non-negative integers in minor units (no floats anywhere), the
same convention the wallet tables use. Balances live in the shared key-value
store under `balance:<address>`, so a ledger movement made inside a reverted
registry call is rolled back with it.
"""
import logging
from typing import Dict, Set

from core.database import KeyValueStore
from registry.errors import TransferFailure

logger = logging.getLogger("chainpay.ledger")


def _validate_amount(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"Amount must be an integer number of minor units, got {amount!r}")
    if amount < 0:
        raise ValueError(f"Amount must not be negative: {amount}")
    return amount


class Ledger:
    """
    Moves value between identities. Recipients marked with `reject_funds`
    refuse every incoming transfer.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._rejecting: Set[str] = set()

    def _key(self, identity: str) -> str:
        return f"balance:{identity}"

    def balance_of(self, identity: str) -> int:
        return self.store.get(self._key(identity), 0)

    def _set_balance(self, identity: str, amount: int) -> None:
        if amount:
            self.store.put(self._key(identity), amount)
        else:
            self.store.delete(self._key(identity))

    def balances(self) -> Dict[str, int]:
        prefix = "balance:"
        return {k[len(prefix):]: self.store.get(k) for k in self.store.keys(prefix)}

    def reject_funds(self, identity: str, rejecting: bool = True) -> None:
        """Mark (or unmark) an identity as refusing incoming transfers."""
        if rejecting:
            self._rejecting.add(identity)
        else:
            self._rejecting.discard(identity)

    def credit(self, identity: str, amount: int) -> int:
        """Mint `amount` into an account. Returns the new balance."""
        amount = _validate_amount(amount)
        new_balance = self.balance_of(identity) + amount
        self._set_balance(identity, new_balance)
        logger.info(f"Credited {amount} to {identity} (balance {new_balance})")
        return new_balance

    def transfer(self, source: str, destination: str, amount: int) -> None:
        """Move `amount` from source to destination or raise TransferFailure."""
        try:
            amount = _validate_amount(amount)
        except ValueError as e:
            raise TransferFailure(source, destination, amount, str(e))

        if destination in self._rejecting:
            raise TransferFailure(source, destination, amount, "recipient rejects funds")

        available = self.balance_of(source)
        if available < amount:
            raise TransferFailure(
                source, destination, amount,
                f"insufficient balance (have {available})"
            )

        if source == destination or amount == 0:
            return

        self._set_balance(source, available - amount)
        self._set_balance(destination, self.balance_of(destination) + amount)
        logger.debug(f"Moved {amount} from {source} to {destination}")
