"""Treasury — inbound value accounting and owner withdrawal.

The treasury keeps two numbers:
- received_total: every unit of value that ever arrived. Never decreases,
  not even on withdrawal.
- balance: value currently held. Withdrawal empties it.

Inbound value arrives two ways. Structured payments (enrollment fees,
distribution fees) are credited by the component that accepted them.
Bare deposits with no matching operation go through receive() and are
reported as "received undefined" by the service layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from easydrop.accounts import normalize_address
from easydrop.admin.ownership import Ownership


@dataclass
class TreasuryState:
    """Observable treasury counters."""
    balance: Decimal = Decimal("0")
    received_total: Decimal = Decimal("0")
    withdrawn_total: Decimal = Decimal("0")


@dataclass(frozen=True)
class Deposit:
    """A bare deposit — value received without a structured operation."""
    payer: str
    amount: Decimal
    received_utc: datetime


@dataclass(frozen=True)
class Withdrawal:
    """A full-balance withdrawal to the owner."""
    recipient: str
    amount: Decimal
    withdrawn_utc: datetime


class Treasury:
    """Tracks value held by the system.

    Usage:
        treasury = Treasury(ownership)
        treasury.credit(Decimal("1"))                 # enrollment payment
        deposit = treasury.receive(payer, Decimal("2"))
        withdrawal = treasury.withdraw(owner)
    """

    def __init__(
        self,
        ownership: Ownership,
        state: Optional[TreasuryState] = None,
    ) -> None:
        self._ownership = ownership
        self._state = state or TreasuryState()

    @property
    def balance(self) -> Decimal:
        return self._state.balance

    @property
    def received_total(self) -> Decimal:
        return self._state.received_total

    def get_state(self) -> TreasuryState:
        return self._state

    def credit(self, amount: Decimal) -> None:
        """Credit value accepted as part of a structured operation.

        Zero is allowed (a free tier or zero fee); negative is not.
        """
        if not amount.is_finite():
            raise ValueError(f"Credit amount must be finite, got {amount}")
        if amount < Decimal("0"):
            raise ValueError(f"Credit amount must not be negative, got {amount}")
        self._state.balance += amount
        self._state.received_total += amount

    def receive(
        self,
        payer: str,
        amount: Decimal,
        now: Optional[datetime] = None,
    ) -> Deposit:
        """Accept a bare deposit.

        Raises:
            ValueError: If amount is not a positive finite value.
        """
        payer = normalize_address(payer)
        if not amount.is_finite() or amount <= Decimal("0"):
            raise ValueError(f"Deposit amount must be positive, got {amount}")
        if now is None:
            now = datetime.now(timezone.utc)
        self.credit(amount)
        return Deposit(payer=payer, amount=amount, received_utc=now)

    def withdraw(
        self,
        caller: str,
        now: Optional[datetime] = None,
    ) -> Withdrawal:
        """Send the full balance to the owner. Owner only.

        received_total is unchanged; only the held balance drops to zero.
        """
        owner = self._ownership.require_owner(caller)
        if now is None:
            now = datetime.now(timezone.utc)
        amount = self._state.balance
        self._state.balance = Decimal("0")
        self._state.withdrawn_total += amount
        return Withdrawal(recipient=owner, amount=amount, withdrawn_utc=now)

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "balance": str(self._state.balance),
            "received_total": str(self._state.received_total),
            "withdrawn_total": str(self._state.withdrawn_total),
        }

    @classmethod
    def from_dict(cls, ownership: Ownership, data: dict) -> "Treasury":
        state = TreasuryState(
            balance=Decimal(data["balance"]),
            received_total=Decimal(data["received_total"]),
            withdrawn_total=Decimal(data.get("withdrawn_total", "0")),
        )
        return cls(ownership, state)
