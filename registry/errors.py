"""
Registry error taxonomy.

Lookups that find nothing and phone-number collisions are NOT errors:
they surface as None / the empty sentinel and False respectively.
"""


class RegistryError(Exception):
    """Base class for registry failures."""


class AuthorizationError(RegistryError):
    """An owner-only operation was invoked by someone other than the owner."""

    def __init__(self, caller: str, operation: str):
        self.caller = caller
        self.operation = operation
        super().__init__(f"{operation} requires the owner identity (caller: {caller})")


class TransferFailure(RegistryError):
    """The ledger refused to move funds; the whole call is reverted."""

    def __init__(self, source: str, destination: str, amount: int, reason: str):
        self.source = source
        self.destination = destination
        self.amount = amount
        self.reason = reason
        super().__init__(f"Transfer of {amount} from {source} to {destination} failed: {reason}")
