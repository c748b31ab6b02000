"""Tests for ownership and fee administration."""

import pytest
from decimal import Decimal

from eth_account import Account

from easydrop.admin.fees import FeeAdministrator
from easydrop.admin.ownership import Ownership
from easydrop.errors import InsufficientPayment, InvalidAccount, Unauthorized
from easydrop.models.subscription import FeeSchedule
from easydrop.subscriptions.ledger import SubscriberLedger
from easydrop.treasury.treasury import Treasury


def _account(n: int) -> str:
    return Account.from_key(f"0x{n:064x}").address


OWNER = _account(1)
USER = _account(2)


class TestOwnership:
    def test_initial_owner(self) -> None:
        ownership = Ownership(OWNER.lower())
        assert ownership.owner == OWNER
        assert ownership.is_owner(OWNER)

    def test_change_owner(self) -> None:
        ownership = Ownership(OWNER)
        ownership.transfer(OWNER, USER)
        assert ownership.owner == USER
        with pytest.raises(Unauthorized):
            ownership.require_owner(OWNER)

    def test_non_owner_cannot_change_owner(self) -> None:
        ownership = Ownership(OWNER)
        with pytest.raises(Unauthorized, match="not the owner"):
            ownership.transfer(USER, USER)
        assert ownership.owner == OWNER

    def test_rejects_invalid_owner(self) -> None:
        with pytest.raises(InvalidAccount):
            Ownership("owner")


class TestFees:
    def test_defaults(self) -> None:
        fees = FeeAdministrator(Ownership(OWNER))
        assert fees.tx_fee == Decimal("0.01")
        assert fees.min_subscription_fee == Decimal("0.25")

    def test_change_transaction_fee(self) -> None:
        fees = FeeAdministrator(Ownership(OWNER))
        fees.set_tx_fee(OWNER, Decimal("1"))
        assert fees.tx_fee == Decimal("1")

    def test_change_subscription_fees(self) -> None:
        fees = FeeAdministrator(Ownership(OWNER))
        fees.set_subscription_fees(
            OWNER, Decimal("1"), Decimal("2"), Decimal("3"), Decimal("4"),
        )
        assert fees.subscription_fee(1) == Decimal("2")
        assert fees.min_subscription_fee == Decimal("1")

    def test_non_owner_cannot_set_fees(self) -> None:
        fees = FeeAdministrator(Ownership(OWNER))
        with pytest.raises(Unauthorized):
            fees.set_tx_fee(USER, Decimal("5"))
        with pytest.raises(Unauthorized):
            fees.set_subscription_fees(
                USER, Decimal("1"), Decimal("1"), Decimal("1"), Decimal("1"),
            )
        assert fees.schedule == FeeSchedule()

    def test_negative_fee_rejected_keeps_previous(self) -> None:
        fees = FeeAdministrator(Ownership(OWNER))
        with pytest.raises(ValueError, match="negative"):
            fees.set_tx_fee(OWNER, Decimal("-1"))
        assert fees.tx_fee == Decimal("0.01")

    @pytest.mark.parametrize("fee", ["NaN", "Infinity"])
    def test_non_finite_fee_rejected_keeps_previous(self, fee: str) -> None:
        fees = FeeAdministrator(Ownership(OWNER))
        with pytest.raises(ValueError, match="finite"):
            fees.set_tx_fee(OWNER, Decimal(fee))
        with pytest.raises(ValueError, match="finite"):
            fees.set_subscription_fees(
                OWNER, Decimal(fee), Decimal("1"), Decimal("1"), Decimal("1"),
            )
        assert fees.schedule == FeeSchedule()

    def test_unknown_tier(self) -> None:
        fees = FeeAdministrator(Ownership(OWNER))
        with pytest.raises(ValueError, match="tier"):
            fees.subscription_fee(4)

    def test_schedule_requires_four_tiers(self) -> None:
        with pytest.raises(ValueError, match="4 subscription fee tiers"):
            FeeSchedule(subscription_fees=(Decimal("1"),))

    def test_raised_floor_applies_to_enrollment(self) -> None:
        ownership = Ownership(OWNER)
        fees = FeeAdministrator(ownership)
        ledger = SubscriberLedger(ownership, fees, Treasury(ownership))
        fees.set_subscription_fees(
            OWNER, Decimal("1"), Decimal("2"), Decimal("3"), Decimal("4"),
        )
        with pytest.raises(InsufficientPayment):
            ledger.enroll(USER, Decimal("0.5"))
