"""Subscription models — subscriber records and the fee schedule.

All monetary values use Decimal. No floats in finance.

Subscriber records use a logical-delete model: a record is never removed
from the ledger, it is only flagged inactive. A fresh enrollment always
overwrites the previous record rather than merging with it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

SUBSCRIPTION_PERIOD_SECONDS = 2629743
"""Length of a paid subscription (one average Gregorian month)."""

SUBSCRIPTION_PERIOD = timedelta(seconds=SUBSCRIPTION_PERIOD_SECONDS)

SUBSCRIPTION_TIER_COUNT = 4

DEFAULT_TX_FEE = Decimal("0.01")
DEFAULT_SUBSCRIPTION_FEES: Tuple[Decimal, ...] = (
    Decimal("0.25"),
    Decimal("0.5"),
    Decimal("0.75"),
    Decimal("1"),
)


@dataclass
class SubscriberRecord:
    """Subscription state for a single account.

    Mutable — enroll overwrites it, expiry removal flags it inactive.
    ``until`` is only meaningful while ``subscribed`` is True.
    """
    account: str
    subscribed: bool = False
    until: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        """True once an active subscription's expiry instant has passed."""
        return self.subscribed and self.until is not None and now > self.until

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "subscribed": self.subscribed,
            "until": self.until.isoformat() if self.until else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SubscriberRecord:
        return cls(
            account=data["account"],
            subscribed=bool(data["subscribed"]),
            until=datetime.fromisoformat(data["until"]) if data.get("until") else None,
        )


@dataclass
class FeeSchedule:
    """Transaction fee plus the tiered subscription fees.

    The cheapest tier is the enrollment floor.
    """
    tx_fee: Decimal = DEFAULT_TX_FEE
    subscription_fees: Tuple[Decimal, ...] = field(
        default_factory=lambda: DEFAULT_SUBSCRIPTION_FEES,
    )

    def __post_init__(self) -> None:
        self.subscription_fees = tuple(self.subscription_fees)
        if len(self.subscription_fees) != SUBSCRIPTION_TIER_COUNT:
            raise ValueError(
                f"Expected {SUBSCRIPTION_TIER_COUNT} subscription fee tiers, "
                f"got {len(self.subscription_fees)}"
            )
        for fee in (self.tx_fee, *self.subscription_fees):
            if not fee.is_finite():
                raise ValueError(f"Fees must be finite, got {fee}")
            if fee < Decimal("0"):
                raise ValueError(f"Fees must not be negative, got {fee}")

    @property
    def min_subscription_fee(self) -> Decimal:
        return min(self.subscription_fees)

    def subscription_fee(self, tier: int) -> Decimal:
        """Fee for tier index 0..3."""
        if not 0 <= tier < SUBSCRIPTION_TIER_COUNT:
            raise ValueError(f"Unknown subscription tier: {tier}")
        return self.subscription_fees[tier]

    def matches_tier(self, amount: Decimal) -> bool:
        return amount in self.subscription_fees

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tx_fee": str(self.tx_fee),
            "subscription_fees": [str(f) for f in self.subscription_fees],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FeeSchedule:
        return cls(
            tx_fee=Decimal(data["tx_fee"]),
            subscription_fees=tuple(Decimal(f) for f in data["subscription_fees"]),
        )
