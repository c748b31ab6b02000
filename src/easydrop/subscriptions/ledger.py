"""Subscriber ledger — per-account subscription state and expiry.

The ledger is a pure state machine — no side effects beyond its own
records and the treasury credit for paid enrollment. Event logging is
handled by the service layer.

State machine per account:
    (absent)   → SUBSCRIBED   (enroll / custom_enroll)
    INACTIVE   → SUBSCRIBED   (enroll / custom_enroll, record overwritten)
    SUBSCRIBED → SUBSCRIBED   (custom_enroll only, record overwritten)
    SUBSCRIBED → INACTIVE     (remove_expired / sweep, only once expired)

Paid enrollment never renews: an account that is still flagged
subscribed is refused even if its expiry instant has passed, until the
owner removes or sweeps it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Optional

from easydrop.accounts import normalize_address
from easydrop.admin.fees import FeeAdministrator
from easydrop.admin.ownership import Ownership
from easydrop.errors import AlreadySubscribed, InsufficientPayment, NotRemovable
from easydrop.models.subscription import (
    SUBSCRIPTION_PERIOD,
    SUBSCRIPTION_PERIOD_SECONDS,
    SubscriberRecord,
)
from easydrop.treasury.treasury import Treasury


@dataclass(frozen=True)
class Enrollment:
    """Outcome of a successful paid enrollment."""
    account: str
    payment: Decimal
    enrolled_utc: datetime
    until: datetime
    period_seconds: int
    matched_tier: bool
    """False when the payment is not exactly one of the fee tiers."""


class SubscriberLedger:
    """In-memory subscriber ledger keyed by checksum address.

    Usage:
        ledger = SubscriberLedger(ownership, fees, treasury)
        enrollment = ledger.enroll(user, Decimal("1"), now=now)
        ledger.custom_enroll(owner, user, 1000, now=now)
        ledger.remove_expired(owner, user, now=later)
    """

    def __init__(
        self,
        ownership: Ownership,
        fees: FeeAdministrator,
        treasury: Treasury,
    ) -> None:
        self._ownership = ownership
        self._fees = fees
        self._treasury = treasury
        self._records: Dict[str, SubscriberRecord] = {}

    def enroll(
        self,
        account: str,
        payment: Decimal,
        now: Optional[datetime] = None,
    ) -> Enrollment:
        """Paid enrollment for SUBSCRIPTION_PERIOD, whatever the amount paid.

        The full payment is credited to the treasury; excess over the
        minimum fee is retained.

        Raises:
            InsufficientPayment: Payment below the cheapest fee tier.
            AlreadySubscribed: Account is still flagged subscribed.
        """
        account = normalize_address(account)
        if not payment.is_finite():
            raise InsufficientPayment(f"Payment must be a finite amount, got {payment}")
        minimum = self._fees.min_subscription_fee
        if payment < minimum:
            raise InsufficientPayment(
                f"Trying to pay less than minimum subscription fee: "
                f"{payment} < {minimum}"
            )
        existing = self._records.get(account)
        if existing is not None and existing.subscribed:
            raise AlreadySubscribed(f"Already subscribed: {account}")
        if now is None:
            now = datetime.now(timezone.utc)

        until = now + SUBSCRIPTION_PERIOD
        self._records[account] = SubscriberRecord(
            account=account, subscribed=True, until=until,
        )
        self._treasury.credit(payment)
        return Enrollment(
            account=account,
            payment=payment,
            enrolled_utc=now,
            until=until,
            period_seconds=SUBSCRIPTION_PERIOD_SECONDS,
            matched_tier=self._fees.schedule.matches_tier(payment),
        )

    def custom_enroll(
        self,
        caller: str,
        account: str,
        duration_seconds: int,
        now: Optional[datetime] = None,
    ) -> SubscriberRecord:
        """Owner-granted subscription of arbitrary length, no payment.

        Overwrites any existing record, active or not.
        """
        self._ownership.require_owner(caller)
        account = normalize_address(account)
        if duration_seconds < 0:
            raise ValueError(
                f"Subscription duration must not be negative, got {duration_seconds}"
            )
        if now is None:
            now = datetime.now(timezone.utc)
        record = SubscriberRecord(
            account=account,
            subscribed=True,
            until=now + timedelta(seconds=duration_seconds),
        )
        self._records[account] = record
        return record

    def remove_expired(
        self,
        caller: str,
        account: str,
        now: Optional[datetime] = None,
    ) -> SubscriberRecord:
        """Flag a single expired subscription inactive. Owner only.

        Strict: the call fails unless the record exists, is subscribed,
        and its expiry has passed.
        """
        self._ownership.require_owner(caller)
        account = normalize_address(account)
        if now is None:
            now = datetime.now(timezone.utc)
        record = self._records.get(account)
        if record is None or not record.is_expired(now):
            raise NotRemovable(
                f"Not subscribed or subscription is not expired yet: {account}"
            )
        record.subscribed = False
        return record

    def deactivate_if_expired(self, account: str, now: datetime) -> bool:
        """Apply the expiry rule to one account without failing.

        Returns True if the account was flagged inactive. Authorization
        is the caller's responsibility.
        """
        record = self._records.get(normalize_address(account))
        if record is None or not record.is_expired(now):
            return False
        record.subscribed = False
        return True

    def get(self, account: str) -> SubscriberRecord:
        """Return a copy of the record, or an inactive default if absent."""
        account = normalize_address(account)
        record = self._records.get(account)
        if record is None:
            return SubscriberRecord(account=account)
        return SubscriberRecord(
            account=record.account,
            subscribed=record.subscribed,
            until=record.until,
        )

    def is_subscribed(self, account: str) -> bool:
        return self.get(account).subscribed

    def expires_at(self, account: str) -> Optional[datetime]:
        return self.get(account).until

    def is_active(self, account: str, now: Optional[datetime] = None) -> bool:
        """Subscribed and not yet past its expiry instant."""
        if now is None:
            now = datetime.now(timezone.utc)
        record = self.get(account)
        return record.subscribed and not record.is_expired(now)

    def active_count(self) -> int:
        return sum(1 for r in self._records.values() if r.subscribed)

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "records": [r.to_dict() for r in self._records.values()],
        }

    def load_records(self, data: dict) -> None:
        """Replace ledger contents with persisted records."""
        self._records = {}
        for item in data.get("records", []):
            record = SubscriberRecord.from_dict(item)
            self._records[record.account] = record
