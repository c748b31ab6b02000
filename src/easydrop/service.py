"""EasyDrop service — unified facade over the subscription and airdrop engine.

This is the primary interface for programmatic access to EasyDrop.
It wires every subsystem together:
- Administration (owner, fees)
- Subscriber ledger and expiry sweeper
- Batch distribution engine and approval probe
- Treasury (deposits, received total, withdrawal)
- Persistence (event log, state store)

Components raise; the service turns failures into ServiceResult values.
Every successful mutation appends its events to the event log and then
persists a state snapshot. Failed operations leave no state change and
no event behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Sequence
from uuid import uuid4

from easydrop.admin.fees import FeeAdministrator
from easydrop.admin.ownership import Ownership
from easydrop.config import EasyDropConfig
from easydrop.distribution.engine import DistributionEngine
from easydrop.distribution.registry import (
    ApprovalSource,
    QuantityAssetRegistry,
    UniqueAssetRegistry,
)
from easydrop.models.distribution import DistributionMode, DistributionReceipt
from easydrop.models.subscription import FeeSchedule
from easydrop.persistence.event_log import EventKind, EventLog, EventRecord
from easydrop.persistence.state_store import StateStore
from easydrop.subscriptions.ledger import SubscriberLedger
from easydrop.subscriptions.sweeper import ExpirySweeper
from easydrop.treasury.treasury import Treasury


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


class EasyDropService:
    """Subscription registry and batch airdrop facade.

    Usage:
        config = EasyDropConfig.from_env()
        service = EasyDropService(config)

        service.subscribe(user, Decimal("1"))
        service.add_custom_subscription(owner, user, 3600)
        service.remove_expired_subscriptions(owner, [user, ...])

        registry.set_approval_for_all(owner, config.engine_address, True)
        service.airdrop_unique(owner, registry, recipients, [0, 1, 2])

    Persistence (optional):
        service = EasyDropService(config, event_log=log, state_store=store)
        # State is loaded on construction and saved after each mutation.
    """

    def __init__(
        self,
        config: EasyDropConfig,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
    ) -> None:
        self._config = config
        self._event_log = event_log if event_log is not None else EventLog()
        self._state_store = state_store
        self._persistence_degraded = False

        snapshot = state_store.load() if state_store is not None else None

        owner = snapshot["owner"] if snapshot else config.owner
        self._ownership = Ownership(owner)
        schedule = (
            FeeSchedule.from_dict(snapshot["fees"]) if snapshot
            else config.fee_schedule()
        )
        self._fees = FeeAdministrator(self._ownership, schedule)
        if snapshot:
            self._treasury = Treasury.from_dict(self._ownership, snapshot["treasury"])
        else:
            self._treasury = Treasury(self._ownership)
        self._ledger = SubscriberLedger(self._ownership, self._fees, self._treasury)
        if snapshot:
            self._ledger.load_records(snapshot["ledger"])
        self._sweeper = ExpirySweeper(self._ownership, self._ledger)
        self._engine = DistributionEngine(
            config.engine_address,
            self._ownership,
            self._fees,
            self._ledger,
            self._treasury,
        )

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def owner(self) -> str:
        return self._ownership.owner

    @property
    def engine_address(self) -> str:
        return self._engine.engine_address

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def ledger(self) -> SubscriberLedger:
        return self._ledger

    @property
    def fees(self) -> FeeAdministrator:
        return self._fees

    @property
    def treasury(self) -> Treasury:
        return self._treasury

    @property
    def persistence_degraded(self) -> bool:
        return self._persistence_degraded

    def status(self) -> dict[str, Any]:
        """Summary of the deployment for operators."""
        return {
            "owner": self.owner,
            "engine_address": self.engine_address,
            "fees": self._fees.schedule.to_dict(),
            "treasury": self._treasury.to_dict(),
            "active_subscribers": self._ledger.active_count(),
            "events": self._event_log.count,
            "persistence_degraded": self._persistence_degraded,
        }

    def subscription(self, account: str) -> ServiceResult:
        """Read an account's subscription record."""
        try:
            record = self._ledger.get(account)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])
        return ServiceResult(success=True, data=record.to_dict())

    def check_balance(self) -> Decimal:
        return self._treasury.balance

    def received_total(self) -> Decimal:
        return self._treasury.received_total

    def is_approved(self, registry: ApprovalSource, operator: str) -> ServiceResult:
        """Whether operator has authorised the engine on registry."""
        try:
            approved = self._engine.is_authorized(registry, operator)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])
        return ServiceResult(success=True, data={"approved": approved})

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(
        self,
        account: str,
        payment: Decimal,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        """Paid enrollment. Emits SUBSCRIPTION, plus VALUE_RECEIVED_UNDEFINED
        when the payment matches no fee tier."""
        now = now or datetime.now(timezone.utc)
        try:
            enrollment = self._ledger.enroll(account, payment, now=now)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])

        self._emit(
            EventKind.SUBSCRIPTION,
            enrollment.account,
            {
                "account": enrollment.account,
                "timestamp": enrollment.enrolled_utc.isoformat(),
                "period_seconds": enrollment.period_seconds,
            },
            now,
        )
        if not enrollment.matched_tier:
            self._emit_received_undefined(enrollment.account, payment, now)
        return self._committed({
            "account": enrollment.account,
            "until": enrollment.until.isoformat(),
            "period_seconds": enrollment.period_seconds,
            "payment": str(enrollment.payment),
        })

    def add_custom_subscription(
        self,
        caller: str,
        account: str,
        duration_seconds: int,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        now = now or datetime.now(timezone.utc)
        try:
            record = self._ledger.custom_enroll(
                caller, account, duration_seconds, now=now,
            )
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])

        self._emit(
            EventKind.CUSTOM_SUBSCRIPTION,
            self.owner,
            {"account": record.account, "duration_seconds": duration_seconds},
            now,
        )
        return self._committed(record.to_dict())

    def remove_subscription(
        self,
        caller: str,
        account: str,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        """Strict single removal; fails unless the target has expired."""
        now = now or datetime.now(timezone.utc)
        try:
            record = self._ledger.remove_expired(caller, account, now=now)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])

        self._emit(
            EventKind.SUBSCRIPTION_REMOVED,
            self.owner,
            {"account": record.account},
            now,
        )
        return self._committed(record.to_dict())

    def remove_expired_subscriptions(
        self,
        caller: str,
        accounts: Sequence[str],
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        """Sweep a candidate list; non-qualifying entries are skipped."""
        now = now or datetime.now(timezone.utc)
        try:
            removed = self._sweeper.sweep(caller, accounts, now=now)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])

        for account in removed:
            self._emit(
                EventKind.SUBSCRIPTION_REMOVED,
                self.owner,
                {"account": account},
                now,
            )
        return self._committed({
            "removed": removed,
            "skipped": len(accounts) - len(removed),
        })

    # ------------------------------------------------------------------
    # Distribution
    # ------------------------------------------------------------------

    def airdrop_unique(
        self,
        caller: str,
        registry: UniqueAssetRegistry,
        recipients: Sequence[str],
        asset_ids: Sequence[int],
        payment: Decimal = Decimal("0"),
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        now = now or datetime.now(timezone.utc)
        try:
            receipt = self._engine.distribute_unique(
                caller, registry, recipients, asset_ids, payment=payment, now=now,
            )
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])
        return self._record_airdrop(receipt, payment, now)

    def airdrop_quantity(
        self,
        caller: str,
        registry: QuantityAssetRegistry,
        recipients: Sequence[str],
        asset_ids: Sequence[int],
        amounts: Sequence[int],
        payment: Decimal = Decimal("0"),
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        now = now or datetime.now(timezone.utc)
        try:
            receipt = self._engine.distribute_quantity(
                caller, registry, recipients, asset_ids, amounts,
                payment=payment, now=now,
            )
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])
        return self._record_airdrop(receipt, payment, now)

    def _record_airdrop(
        self,
        receipt: DistributionReceipt,
        payment: Decimal,
        now: datetime,
    ) -> ServiceResult:
        kind = (
            EventKind.AIRDROP_UNIQUE
            if receipt.mode == DistributionMode.UNIQUE
            else EventKind.AIRDROP_QUANTITY
        )
        self._emit(
            kind,
            receipt.operator,
            {
                "operator": receipt.operator,
                "registry": receipt.registry_id,
                "timestamp": receipt.completed_utc.isoformat(),
            },
            now,
        )
        data = receipt.to_dict()
        data["payment"] = str(payment)
        return self._committed(data)

    # ------------------------------------------------------------------
    # Treasury
    # ------------------------------------------------------------------

    def receive(
        self,
        payer: str,
        amount: Decimal,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        """Bare deposit with no structured operation attached."""
        now = now or datetime.now(timezone.utc)
        try:
            deposit = self._treasury.receive(payer, amount, now=now)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])

        self._emit_received_undefined(deposit.payer, deposit.amount, now)
        return self._committed({
            "payer": deposit.payer,
            "amount": str(deposit.amount),
            "received_total": str(self._treasury.received_total),
        })

    def withdraw(
        self,
        caller: str,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        now = now or datetime.now(timezone.utc)
        try:
            withdrawal = self._treasury.withdraw(caller, now=now)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])

        self._emit(
            EventKind.WITHDRAWAL,
            withdrawal.recipient,
            {"recipient": withdrawal.recipient, "amount": str(withdrawal.amount)},
            now,
        )
        return self._committed({
            "recipient": withdrawal.recipient,
            "amount": str(withdrawal.amount),
        })

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def set_owner(self, caller: str, new_owner: str) -> ServiceResult:
        previous = self.owner
        try:
            owner = self._ownership.transfer(caller, new_owner)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])

        self._emit(
            EventKind.OWNER_CHANGED,
            previous,
            {"previous_owner": previous, "new_owner": owner},
        )
        return self._committed({"owner": owner})

    def set_tx_fee(self, caller: str, fee: Decimal) -> ServiceResult:
        try:
            schedule = self._fees.set_tx_fee(caller, fee)
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])
        self._emit(EventKind.FEES_UPDATED, self.owner, schedule.to_dict())
        return self._committed(schedule.to_dict())

    def set_subscription_fees(
        self,
        caller: str,
        fee_0: Decimal,
        fee_1: Decimal,
        fee_2: Decimal,
        fee_3: Decimal,
    ) -> ServiceResult:
        try:
            schedule = self._fees.set_subscription_fees(
                caller, fee_0, fee_1, fee_2, fee_3,
            )
        except ValueError as e:
            return ServiceResult(success=False, errors=[str(e)])
        self._emit(EventKind.FEES_UPDATED, self.owner, schedule.to_dict())
        return self._committed(schedule.to_dict())

    # ------------------------------------------------------------------
    # Event and persistence helpers
    # ------------------------------------------------------------------

    def _emit_received_undefined(
        self, payer: str, amount: Decimal, now: datetime,
    ) -> None:
        self._emit(
            EventKind.VALUE_RECEIVED_UNDEFINED,
            payer,
            {
                "payer": payer,
                "amount": str(amount),
                "timestamp": now.isoformat(),
            },
            now,
        )

    def _emit(
        self,
        kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
        now: Optional[datetime] = None,
    ) -> EventRecord:
        event = EventRecord.create(
            event_id=f"evt_{uuid4().hex[:16]}",
            event_kind=kind,
            actor_id=actor_id,
            payload=payload,
            timestamp_utc=now,
        )
        self._event_log.append(event)
        return event

    def _snapshot(self) -> dict[str, Any]:
        return {
            "owner": self._ownership.owner,
            "fees": self._fees.schedule.to_dict(),
            "treasury": self._treasury.to_dict(),
            "ledger": self._ledger.to_dict(),
        }

    def _committed(self, data: dict[str, Any]) -> ServiceResult:
        """Persist after the events are logged and build the success result.

        The events are already written, so a persistence failure does
        not undo the operation. It marks persistence as degraded and
        is reported as a warning in the result data.
        """
        if self._state_store is not None:
            try:
                self._state_store.save(self._snapshot())
            except OSError as e:
                self._persistence_degraded = True
                data = dict(data)
                data["warning"] = (
                    f"Persistence degraded: {e}; state committed in audit "
                    f"trail but StateStore is stale"
                )
        return ServiceResult(success=True, data=data)
