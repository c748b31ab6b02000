"""Batch distribution engine — all-or-nothing airdrops to many recipients.

Two modes:
    distribute_unique:   recipients[i] receives unique asset asset_ids[i]
    distribute_quantity: recipients[i] receives amounts[i] units of asset_ids[i]

Assets move from the caller's holdings, through the registry, on the
strength of the approval-for-all the caller granted to the engine
address. The engine keeps no asset state of its own.

A batch runs in two phases:
1. Preflight — list lengths, fee, engine authorization, every recipient
   address, and every asset (ownership, or aggregate balance per id) are
   checked before anything moves. An empty batch touches no assets and
   skips the authorization check.
2. Apply — transfers run in list order under a registry checkpoint. If
   the registry still rejects one, it is reverted to the checkpoint and
   the whole batch fails.

Either every transfer of a call is kept or none is.

Callers that are neither the owner nor a subscriber whose period is
still running pay the transaction fee with the call. The fee is
credited only once the batch has succeeded.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple, Union

from easydrop.accounts import ZERO_ADDRESS, normalize_address
from easydrop.admin.fees import FeeAdministrator
from easydrop.admin.ownership import Ownership
from easydrop.distribution.probe import ApprovalProbe
from easydrop.distribution.registry import (
    ApprovalSource,
    QuantityAssetRegistry,
    UniqueAssetRegistry,
)
from easydrop.errors import (
    InsufficientPayment,
    InvalidAccount,
    LengthMismatch,
    RegistryError,
    TransferFailed,
    Unauthorized,
)
from easydrop.models.distribution import DistributionMode, DistributionReceipt
from easydrop.subscriptions.ledger import SubscriberLedger
from easydrop.treasury.treasury import Treasury


class DistributionEngine:
    """Runs batch distributions on behalf of asset holders.

    Usage:
        engine = DistributionEngine(engine_address, ownership, fees, ledger, treasury)
        registry.set_approval_for_all(holder, engine_address, True)
        receipt = engine.distribute_unique(holder, registry, recipients, [0, 1, 2])
    """

    def __init__(
        self,
        engine_address: str,
        ownership: Ownership,
        fees: FeeAdministrator,
        ledger: SubscriberLedger,
        treasury: Treasury,
    ) -> None:
        self._probe = ApprovalProbe(engine_address)
        self._ownership = ownership
        self._fees = fees
        self._ledger = ledger
        self._treasury = treasury

    @property
    def engine_address(self) -> str:
        return self._probe.engine_address

    def is_authorized(self, registry: ApprovalSource, operator: str) -> bool:
        """Whether operator has granted this engine transfer authorization."""
        return self._probe.is_authorized(registry, operator)

    def distribute_unique(
        self,
        caller: str,
        registry: UniqueAssetRegistry,
        recipients: Sequence[str],
        asset_ids: Sequence[int],
        payment: Decimal = Decimal("0"),
        now: Optional[datetime] = None,
    ) -> DistributionReceipt:
        """Send asset_ids[i] to recipients[i] for every i, atomically.

        Raises:
            LengthMismatch: recipients and asset_ids differ in length.
            InsufficientPayment: Fee required and not covered by payment.
            Unauthorized: Caller has not approved the engine on registry.
            TransferFailed: Any individual transfer cannot complete.
        """
        if len(recipients) != len(asset_ids):
            raise LengthMismatch(
                f"Recipients ({len(recipients)}) and asset ids "
                f"({len(asset_ids)}) must have the same length"
            )
        if now is None:
            now = datetime.now(timezone.utc)
        caller = self._preflight_caller(
            caller, registry, payment, len(asset_ids), now,
        )
        targets = self._preflight_recipients(recipients)

        seen = set()
        for asset_id in asset_ids:
            if asset_id in seen:
                raise TransferFailed(f"Asset {asset_id} appears more than once in batch")
            seen.add(asset_id)
            try:
                owner = registry.owner_of(asset_id)
            except RegistryError as exc:
                raise TransferFailed(str(exc)) from exc
            if owner != caller:
                raise TransferFailed(f"Asset {asset_id} is not owned by {caller}")

        self._apply(registry, caller, list(zip(targets, asset_ids)))
        return self._complete(
            DistributionMode.UNIQUE, caller, registry, len(targets), payment, now,
        )

    def distribute_quantity(
        self,
        caller: str,
        registry: QuantityAssetRegistry,
        recipients: Sequence[str],
        asset_ids: Sequence[int],
        amounts: Sequence[int],
        payment: Decimal = Decimal("0"),
        now: Optional[datetime] = None,
    ) -> DistributionReceipt:
        """Send amounts[i] units of asset_ids[i] to recipients[i], atomically.

        Repeated asset ids are checked against the caller's balance in
        aggregate, so a batch that would overdraw an id fails up front.
        """
        if not len(recipients) == len(asset_ids) == len(amounts):
            raise LengthMismatch(
                f"Recipients ({len(recipients)}), asset ids ({len(asset_ids)}) "
                f"and amounts ({len(amounts)}) must have the same length"
            )
        if now is None:
            now = datetime.now(timezone.utc)
        caller = self._preflight_caller(
            caller, registry, payment, len(asset_ids), now,
        )
        targets = self._preflight_recipients(recipients)

        demand: Counter = Counter()
        for asset_id, amount in zip(asset_ids, amounts):
            if amount < 0:
                raise TransferFailed(f"Amount must not be negative, got {amount}")
            demand[asset_id] += amount
        for asset_id, needed in demand.items():
            held = registry.balance_of(caller, asset_id)
            if held < needed:
                raise TransferFailed(
                    f"Insufficient balance for asset {asset_id}: {held} < {needed}"
                )

        self._apply(registry, caller, list(zip(targets, asset_ids, amounts)))
        return self._complete(
            DistributionMode.QUANTITY, caller, registry, len(targets), payment, now,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _preflight_caller(
        self,
        caller: str,
        registry: ApprovalSource,
        payment: Decimal,
        transfer_count: int,
        now: datetime,
    ) -> str:
        caller = normalize_address(caller)
        if not payment.is_finite():
            raise InsufficientPayment(f"Payment must be a finite amount, got {payment}")
        if payment < Decimal("0"):
            raise ValueError(f"Payment must not be negative, got {payment}")
        fee_exempt = (
            self._ownership.is_owner(caller)
            or self._ledger.is_active(caller, now)
        )
        if not fee_exempt and payment < self._fees.tx_fee:
            raise InsufficientPayment(
                f"Transaction fee required: {payment} < {self._fees.tx_fee}"
            )
        if transfer_count and not self.is_authorized(registry, caller):
            raise Unauthorized(
                f"Engine {self.engine_address} is not approved to transfer "
                f"assets of {caller}"
            )
        return caller

    @staticmethod
    def _preflight_recipients(recipients: Sequence[str]) -> List[str]:
        targets: List[str] = []
        for index, recipient in enumerate(recipients):
            try:
                address = normalize_address(recipient)
            except InvalidAccount as exc:
                raise TransferFailed(f"Recipient {index}: {exc}") from exc
            if address == ZERO_ADDRESS:
                raise TransferFailed(f"Recipient {index} is the zero address")
            targets.append(address)
        return targets

    def _apply(
        self,
        registry: Union[UniqueAssetRegistry, QuantityAssetRegistry],
        caller: str,
        transfers: List[Tuple[Any, ...]],
    ) -> None:
        """Run transfers in order; revert the registry if any one fails."""
        checkpoint = registry.checkpoint()
        for index, args in enumerate(transfers):
            try:
                registry.transfer_from(self.engine_address, caller, *args)
            except Exception as exc:
                registry.revert_to(checkpoint)
                if isinstance(exc, RegistryError):
                    raise TransferFailed(f"Transfer {index} failed: {exc}") from exc
                raise

    def _complete(
        self,
        mode: DistributionMode,
        caller: str,
        registry: ApprovalSource,
        transfer_count: int,
        payment: Decimal,
        now: datetime,
    ) -> DistributionReceipt:
        self._treasury.credit(payment)
        return DistributionReceipt(
            mode=mode,
            operator=caller,
            registry_id=registry.registry_id,
            transfer_count=transfer_count,
            completed_utc=now,
        )
