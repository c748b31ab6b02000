"""Asset registry contract — the external services that hold the assets.

The distribution engine never owns assets. It moves them on a holder's
behalf through a registry, after the holder has granted it transfer
authorization ("approval for all") on that registry.

Two registry shapes exist:
- UniqueAssetRegistry: each asset id has exactly one owner (ERC-721 style).
- QuantityAssetRegistry: an asset id exists in units held per account
  (ERC-1155 style).

Both expose checkpoint()/revert_to() so a failed batch can be rolled back
as a whole, the way an EVM call reverts every transfer it made.

The in-memory registries below are complete implementations of the
contract. They are seeded with their initial holdings at construction;
this system does not mint.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, Optional, Protocol, Set, Tuple, runtime_checkable

from easydrop.accounts import ZERO_ADDRESS, normalize_address
from easydrop.errors import InvalidAccount, RegistryError


@runtime_checkable
class ApprovalSource(Protocol):
    """Anything that can answer an approval-for-all query."""

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        ...


@runtime_checkable
class UniqueAssetRegistry(Protocol):
    """Registry of one-of-a-kind assets."""

    @property
    def registry_id(self) -> str:
        """Identifier of the registry (contract address for on-chain ones)."""
        ...

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        ...

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        ...

    def owner_of(self, asset_id: int) -> str:
        """Current owner. Raises RegistryError for an unknown id."""
        ...

    def transfer_from(
        self, operator: str, source: str, recipient: str, asset_id: int,
    ) -> None:
        """Move asset_id from source to recipient. Raises RegistryError."""
        ...

    def checkpoint(self) -> Any:
        ...

    def revert_to(self, checkpoint: Any) -> None:
        ...


@runtime_checkable
class QuantityAssetRegistry(Protocol):
    """Registry of assets held in units per id."""

    @property
    def registry_id(self) -> str:
        ...

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        ...

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        ...

    def balance_of(self, account: str, asset_id: int) -> int:
        ...

    def transfer_from(
        self, operator: str, source: str, recipient: str, asset_id: int, amount: int,
    ) -> None:
        """Move amount units of asset_id. Raises RegistryError."""
        ...

    def checkpoint(self) -> Any:
        ...

    def revert_to(self, checkpoint: Any) -> None:
        ...


def _registry_address(value: str, role: str) -> str:
    """Normalise an address for registry use, as a RegistryError on failure."""
    try:
        address = normalize_address(value)
    except InvalidAccount as exc:
        raise RegistryError(f"Invalid {role} address: {value!r}") from exc
    if address == ZERO_ADDRESS:
        raise RegistryError(f"{role.capitalize()} must not be the zero address")
    return address


class _ApprovalBook:
    """Shared approval-for-all bookkeeping."""

    def __init__(self) -> None:
        self._approvals: Set[Tuple[str, str]] = set()

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return (
            normalize_address(owner),
            normalize_address(operator),
        ) in self._approvals

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        owner = _registry_address(owner, "owner")
        operator = _registry_address(operator, "operator")
        if owner == operator:
            raise RegistryError("Cannot set approval status for self")
        if approved:
            self._approvals.add((owner, operator))
        else:
            self._approvals.discard((owner, operator))

    def _require_allowed(self, operator: str, source: str) -> None:
        if operator != source and (source, operator) not in self._approvals:
            raise RegistryError(
                f"Caller {operator} is not owner nor approved for {source}"
            )


class InMemoryUniqueRegistry(_ApprovalBook):
    """Unique-asset registry held in memory.

    Usage:
        registry = InMemoryUniqueRegistry("0xRegistry...", holder, count=20)
        registry.set_approval_for_all(holder, engine_address, True)
    """

    def __init__(
        self,
        registry_id: str,
        holder: Optional[str] = None,
        count: int = 0,
    ) -> None:
        super().__init__()
        self._registry_id = normalize_address(registry_id)
        self._owners: Dict[int, str] = {}
        if count:
            if holder is None:
                raise ValueError("A holder is required to seed assets")
            holder = _registry_address(holder, "holder")
            for asset_id in range(count):
                self._owners[asset_id] = holder

    @property
    def registry_id(self) -> str:
        return self._registry_id

    def owner_of(self, asset_id: int) -> str:
        owner = self._owners.get(asset_id)
        if owner is None:
            raise RegistryError(f"Invalid asset id: {asset_id}")
        return owner

    def balance_of(self, account: str) -> int:
        account = normalize_address(account)
        return sum(1 for owner in self._owners.values() if owner == account)

    def transfer_from(
        self, operator: str, source: str, recipient: str, asset_id: int,
    ) -> None:
        operator = _registry_address(operator, "operator")
        source = _registry_address(source, "source")
        recipient = _registry_address(recipient, "recipient")
        if self.owner_of(asset_id) != source:
            raise RegistryError(f"Asset {asset_id} is not owned by {source}")
        self._require_allowed(operator, source)
        self._owners[asset_id] = recipient

    def checkpoint(self) -> Any:
        return (dict(self._owners), set(self._approvals))

    def revert_to(self, checkpoint: Any) -> None:
        owners, approvals = checkpoint
        self._owners = dict(owners)
        self._approvals = set(approvals)


class InMemoryQuantityRegistry(_ApprovalBook):
    """Id+quantity registry held in memory.

    Seeded from parallel ``asset_ids``/``amounts`` lists credited to
    ``holder``; repeated ids accumulate.
    """

    def __init__(
        self,
        registry_id: str,
        holder: Optional[str] = None,
        asset_ids: Iterable[int] = (),
        amounts: Iterable[int] = (),
    ) -> None:
        super().__init__()
        self._registry_id = normalize_address(registry_id)
        self._balances: Dict[int, Dict[str, int]] = {}
        asset_ids = list(asset_ids)
        amounts = list(amounts)
        if len(asset_ids) != len(amounts):
            raise ValueError("asset_ids and amounts must have the same length")
        if asset_ids:
            if holder is None:
                raise ValueError("A holder is required to seed assets")
            holder = _registry_address(holder, "holder")
            for asset_id, amount in zip(asset_ids, amounts):
                if amount < 0:
                    raise ValueError(f"Seed amount must not be negative, got {amount}")
                held = self._balances.setdefault(asset_id, {})
                held[holder] = held.get(holder, 0) + amount

    @property
    def registry_id(self) -> str:
        return self._registry_id

    def balance_of(self, account: str, asset_id: int) -> int:
        account = normalize_address(account)
        return self._balances.get(asset_id, {}).get(account, 0)

    def transfer_from(
        self, operator: str, source: str, recipient: str, asset_id: int, amount: int,
    ) -> None:
        operator = _registry_address(operator, "operator")
        source = _registry_address(source, "source")
        recipient = _registry_address(recipient, "recipient")
        if amount < 0:
            raise RegistryError(f"Transfer amount must not be negative, got {amount}")
        self._require_allowed(operator, source)
        held = self._balances.setdefault(asset_id, {})
        available = held.get(source, 0)
        if available < amount:
            raise RegistryError(
                f"Insufficient balance for transfer: asset {asset_id}, "
                f"{available} < {amount}"
            )
        held[source] = available - amount
        held[recipient] = held.get(recipient, 0) + amount

    def checkpoint(self) -> Any:
        return (copy.deepcopy(self._balances), set(self._approvals))

    def revert_to(self, checkpoint: Any) -> None:
        balances, approvals = checkpoint
        self._balances = copy.deepcopy(balances)
        self._approvals = set(approvals)
