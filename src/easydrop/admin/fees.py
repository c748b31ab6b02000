"""Fee administration — owner-controlled transaction and subscription fees."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from easydrop.admin.ownership import Ownership
from easydrop.models.subscription import FeeSchedule


class FeeAdministrator:
    """Owns the live FeeSchedule and applies owner-authorised changes.

    Setters build a new schedule and swap it in only after validation,
    so a rejected update leaves the previous fees untouched.
    """

    def __init__(
        self,
        ownership: Ownership,
        schedule: Optional[FeeSchedule] = None,
    ) -> None:
        self._ownership = ownership
        self._schedule = schedule or FeeSchedule()

    @property
    def schedule(self) -> FeeSchedule:
        return self._schedule

    @property
    def tx_fee(self) -> Decimal:
        return self._schedule.tx_fee

    @property
    def min_subscription_fee(self) -> Decimal:
        return self._schedule.min_subscription_fee

    def subscription_fee(self, tier: int) -> Decimal:
        return self._schedule.subscription_fee(tier)

    def set_tx_fee(self, caller: str, fee: Decimal) -> FeeSchedule:
        self._ownership.require_owner(caller)
        self._schedule = FeeSchedule(
            tx_fee=fee,
            subscription_fees=self._schedule.subscription_fees,
        )
        return self._schedule

    def set_subscription_fees(
        self,
        caller: str,
        fee_0: Decimal,
        fee_1: Decimal,
        fee_2: Decimal,
        fee_3: Decimal,
    ) -> FeeSchedule:
        self._ownership.require_owner(caller)
        self._schedule = FeeSchedule(
            tx_fee=self._schedule.tx_fee,
            subscription_fees=(fee_0, fee_1, fee_2, fee_3),
        )
        return self._schedule
