"""Ownership — the single operator allowed to run administrative calls."""

from __future__ import annotations

from easydrop.accounts import normalize_address
from easydrop.errors import Unauthorized


class Ownership:
    """Holds the owner address and gates owner-only operations.

    Usage:
        ownership = Ownership("0xOwner...")
        ownership.require_owner(caller)   # raises Unauthorized
        ownership.transfer(caller, "0xNewOwner...")
    """

    def __init__(self, owner: str) -> None:
        self._owner = normalize_address(owner)

    @property
    def owner(self) -> str:
        return self._owner

    def is_owner(self, account: str) -> bool:
        return normalize_address(account) == self._owner

    def require_owner(self, caller: str) -> str:
        """Return the normalised caller, or raise if it is not the owner."""
        caller = normalize_address(caller)
        if caller != self._owner:
            raise Unauthorized(f"Caller {caller} is not the owner")
        return caller

    def transfer(self, caller: str, new_owner: str) -> str:
        """Hand ownership to another account. Owner only."""
        self.require_owner(caller)
        self._owner = normalize_address(new_owner)
        return self._owner
