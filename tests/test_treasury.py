"""Tests for the treasury: received total, balance and withdrawal."""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from eth_account import Account

from easydrop.admin.ownership import Ownership
from easydrop.errors import Unauthorized
from easydrop.treasury.treasury import Treasury


def _account(n: int) -> str:
    return Account.from_key(f"0x{n:064x}").address


OWNER = _account(1)
USER = _account(2)


def _now() -> datetime:
    return datetime(2026, 10, 16, 12, 0, 0, tzinfo=timezone.utc)


class TestDeposits:
    def test_receive_credits_counters(self) -> None:
        treasury = Treasury(Ownership(OWNER))
        deposit = treasury.receive(USER, Decimal("1"), now=_now())
        assert deposit.payer == USER
        assert deposit.amount == Decimal("1")
        assert deposit.received_utc == _now()
        assert treasury.balance == Decimal("1")
        assert treasury.received_total == Decimal("1")

    @pytest.mark.parametrize("amount", ["0", "-1", "NaN", "Infinity"])
    def test_rejects_invalid_amount(self, amount: str) -> None:
        treasury = Treasury(Ownership(OWNER))
        with pytest.raises(ValueError, match="positive"):
            treasury.receive(USER, Decimal(amount))
        assert treasury.received_total == Decimal("0")

    def test_credit_rejects_negative(self) -> None:
        treasury = Treasury(Ownership(OWNER))
        with pytest.raises(ValueError, match="negative"):
            treasury.credit(Decimal("-0.01"))

    def test_credit_rejects_non_finite(self) -> None:
        treasury = Treasury(Ownership(OWNER))
        with pytest.raises(ValueError, match="finite"):
            treasury.credit(Decimal("Infinity"))
        assert treasury.balance == Decimal("0")


class TestWithdrawal:
    def test_tracks_all_received_funds(self) -> None:
        treasury = Treasury(Ownership(OWNER))
        treasury.receive(USER, Decimal("1"))
        treasury.withdraw(OWNER)
        treasury.receive(USER, Decimal("2"))
        assert treasury.received_total == Decimal("3")
        assert treasury.balance == Decimal("2")

    def test_withdraws_full_balance_to_owner(self) -> None:
        treasury = Treasury(Ownership(OWNER))
        treasury.receive(USER, Decimal("1"))
        treasury.receive(USER, Decimal("2"))
        withdrawal = treasury.withdraw(OWNER, now=_now())
        assert withdrawal.recipient == OWNER
        assert withdrawal.amount == Decimal("3")
        assert treasury.balance == Decimal("0")
        assert treasury.get_state().withdrawn_total == Decimal("3")

    def test_non_owner_cannot_withdraw(self) -> None:
        treasury = Treasury(Ownership(OWNER))
        treasury.receive(USER, Decimal("5"))
        with pytest.raises(Unauthorized):
            treasury.withdraw(USER)
        assert treasury.balance == Decimal("5")

    def test_empty_withdrawal(self) -> None:
        treasury = Treasury(Ownership(OWNER))
        assert treasury.withdraw(OWNER).amount == Decimal("0")


class TestPersistence:
    def test_round_trip(self) -> None:
        ownership = Ownership(OWNER)
        treasury = Treasury(ownership)
        treasury.receive(USER, Decimal("1.5"))
        treasury.withdraw(OWNER)
        treasury.receive(USER, Decimal("0.25"))

        restored = Treasury.from_dict(ownership, treasury.to_dict())
        assert restored.balance == Decimal("0.25")
        assert restored.received_total == Decimal("1.75")
        assert restored.get_state().withdrawn_total == Decimal("1.5")
