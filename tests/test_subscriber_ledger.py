"""Tests for the subscriber ledger — proves the per-account state machine.

Covers:
- Paid enrollment sets a fixed period regardless of amount and credits
  the full payment to the treasury.
- Enrollment below the cheapest tier is refused.
- A still-flagged subscription blocks re-enrollment, even after expiry.
- Custom enrollment is owner-only and bypasses payment.
- Single removal is strict: absent, inactive, or unexpired targets fail.
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from eth_account import Account

from easydrop.admin.fees import FeeAdministrator
from easydrop.admin.ownership import Ownership
from easydrop.errors import (
    AlreadySubscribed,
    InsufficientPayment,
    NotRemovable,
    Unauthorized,
)
from easydrop.models.subscription import SUBSCRIPTION_PERIOD_SECONDS
from easydrop.subscriptions.ledger import SubscriberLedger
from easydrop.treasury.treasury import Treasury


def _account(n: int) -> str:
    return Account.from_key(f"0x{n:064x}").address


OWNER = _account(1)
USER = _account(2)
OTHER = _account(3)


def _now() -> datetime:
    return datetime(2026, 10, 16, 12, 0, 0, tzinfo=timezone.utc)


def _make_ledger() -> tuple[SubscriberLedger, Treasury]:
    ownership = Ownership(OWNER)
    fees = FeeAdministrator(ownership)
    treasury = Treasury(ownership)
    return SubscriberLedger(ownership, fees, treasury), treasury


class TestEnroll:
    def test_enroll_sets_fixed_period(self) -> None:
        ledger, treasury = _make_ledger()
        enrollment = ledger.enroll(USER, Decimal("1"), now=_now())

        record = ledger.get(USER)
        assert record.subscribed is True
        assert record.until == _now() + timedelta(seconds=2629743)
        assert enrollment.period_seconds == SUBSCRIPTION_PERIOD_SECONDS == 2629743
        assert enrollment.enrolled_utc == _now()
        assert treasury.received_total == Decimal("1")

    def test_period_independent_of_amount(self) -> None:
        ledger, _ = _make_ledger()
        ledger.enroll(USER, Decimal("0.25"), now=_now())
        ledger.enroll(OTHER, Decimal("1"), now=_now())
        assert ledger.expires_at(USER) == ledger.expires_at(OTHER)

    def test_rejects_payment_below_minimum(self) -> None:
        ledger, treasury = _make_ledger()
        with pytest.raises(InsufficientPayment, match="minimum subscription fee"):
            ledger.enroll(USER, Decimal("0.1"), now=_now())
        assert ledger.is_subscribed(USER) is False
        assert treasury.received_total == Decimal("0")

    @pytest.mark.parametrize("payment", ["NaN", "sNaN", "Infinity"])
    def test_rejects_non_finite_payment(self, payment: str) -> None:
        ledger, treasury = _make_ledger()
        with pytest.raises(InsufficientPayment, match="finite"):
            ledger.enroll(USER, Decimal(payment), now=_now())
        assert ledger.is_subscribed(USER) is False
        assert treasury.received_total == Decimal("0")

    def test_payment_at_minimum_accepted(self) -> None:
        ledger, _ = _make_ledger()
        ledger.enroll(USER, Decimal("0.25"), now=_now())
        assert ledger.is_subscribed(USER)

    def test_excess_payment_retained(self) -> None:
        ledger, treasury = _make_ledger()
        enrollment = ledger.enroll(USER, Decimal("2"), now=_now())
        assert enrollment.matched_tier is False
        assert treasury.balance == Decimal("2")
        assert treasury.received_total == Decimal("2")

    def test_tier_payment_matches(self) -> None:
        ledger, _ = _make_ledger()
        assert ledger.enroll(USER, Decimal("0.50"), now=_now()).matched_tier is True

    def test_rejects_already_subscribed(self) -> None:
        ledger, treasury = _make_ledger()
        ledger.enroll(USER, Decimal("1"), now=_now())
        with pytest.raises(AlreadySubscribed):
            ledger.enroll(USER, Decimal("1"), now=_now() + timedelta(days=1))
        assert treasury.received_total == Decimal("1")

    def test_expired_but_flagged_still_blocks(self) -> None:
        ledger, _ = _make_ledger()
        ledger.enroll(USER, Decimal("1"), now=_now())
        later = _now() + timedelta(seconds=SUBSCRIPTION_PERIOD_SECONDS + 10)
        with pytest.raises(AlreadySubscribed):
            ledger.enroll(USER, Decimal("1"), now=later)

    def test_custom_subscription_blocks_enroll(self) -> None:
        ledger, _ = _make_ledger()
        ledger.custom_enroll(OWNER, USER, 1000, now=_now())
        with pytest.raises(AlreadySubscribed, match="Already subscribed"):
            ledger.enroll(USER, Decimal("1"), now=_now())

    def test_reenroll_after_removal_overwrites(self) -> None:
        ledger, _ = _make_ledger()
        ledger.custom_enroll(OWNER, USER, 10, now=_now())
        later = _now() + timedelta(seconds=11)
        ledger.remove_expired(OWNER, USER, now=later)

        ledger.enroll(USER, Decimal("1"), now=later)
        record = ledger.get(USER)
        assert record.subscribed is True
        assert record.until == later + timedelta(seconds=SUBSCRIPTION_PERIOD_SECONDS)

    def test_address_case_insensitive(self) -> None:
        ledger, _ = _make_ledger()
        ledger.enroll(USER.lower(), Decimal("1"), now=_now())
        assert ledger.is_subscribed(USER)
        with pytest.raises(AlreadySubscribed):
            ledger.enroll(USER, Decimal("1"), now=_now())


class TestCustomEnroll:
    def test_owner_grants_subscription(self) -> None:
        ledger, treasury = _make_ledger()
        record = ledger.custom_enroll(OWNER, USER, 500, now=_now())
        assert record.subscribed is True
        assert record.until == _now() + timedelta(seconds=500)
        assert treasury.received_total == Decimal("0")

    def test_non_owner_rejected(self) -> None:
        ledger, _ = _make_ledger()
        with pytest.raises(Unauthorized):
            ledger.custom_enroll(USER, USER, 500, now=_now())
        assert ledger.is_subscribed(USER) is False

    def test_overwrites_active_record(self) -> None:
        ledger, _ = _make_ledger()
        ledger.enroll(USER, Decimal("1"), now=_now())
        ledger.custom_enroll(OWNER, USER, 60, now=_now())
        assert ledger.expires_at(USER) == _now() + timedelta(seconds=60)

    def test_rejects_negative_duration(self) -> None:
        ledger, _ = _make_ledger()
        with pytest.raises(ValueError, match="negative"):
            ledger.custom_enroll(OWNER, USER, -1, now=_now())


class TestRemoveExpired:
    def test_unknown_account_not_removable(self) -> None:
        ledger, _ = _make_ledger()
        with pytest.raises(NotRemovable, match="not expired yet"):
            ledger.remove_expired(OWNER, USER, now=_now())

    def test_active_unexpired_not_removable(self) -> None:
        ledger, _ = _make_ledger()
        ledger.enroll(USER, Decimal("0.5"), now=_now())
        with pytest.raises(NotRemovable):
            ledger.remove_expired(OWNER, USER, now=_now())
        assert ledger.is_subscribed(USER)

    def test_exactly_at_expiry_not_removable(self) -> None:
        ledger, _ = _make_ledger()
        ledger.custom_enroll(OWNER, USER, 100, now=_now())
        with pytest.raises(NotRemovable):
            ledger.remove_expired(OWNER, USER, now=_now() + timedelta(seconds=100))

    def test_removes_after_expiry(self) -> None:
        ledger, _ = _make_ledger()
        ledger.enroll(USER, Decimal("0.25"), now=_now())

        # One day later the paid month is still running.
        with pytest.raises(NotRemovable):
            ledger.remove_expired(OWNER, USER, now=_now() + timedelta(seconds=86401))

        later = _now() + timedelta(seconds=SUBSCRIPTION_PERIOD_SECONDS + 1)
        record = ledger.remove_expired(OWNER, USER, now=later)
        assert record.subscribed is False
        assert ledger.is_subscribed(USER) is False

    def test_second_removal_fails(self) -> None:
        ledger, _ = _make_ledger()
        ledger.custom_enroll(OWNER, USER, 1, now=_now())
        later = _now() + timedelta(seconds=2)
        ledger.remove_expired(OWNER, USER, now=later)
        with pytest.raises(NotRemovable):
            ledger.remove_expired(OWNER, USER, now=later)

    def test_non_owner_rejected(self) -> None:
        ledger, _ = _make_ledger()
        ledger.custom_enroll(OWNER, USER, 1, now=_now())
        with pytest.raises(Unauthorized):
            ledger.remove_expired(USER, USER, now=_now() + timedelta(seconds=2))
        assert ledger.is_subscribed(USER)


class TestQueries:
    def test_unknown_account_reads_inactive(self) -> None:
        ledger, _ = _make_ledger()
        record = ledger.get(USER)
        assert record.account == USER
        assert record.subscribed is False
        assert record.until is None

    def test_is_active_honours_expiry_before_sweep(self) -> None:
        ledger, _ = _make_ledger()
        ledger.custom_enroll(OWNER, USER, 60, now=_now())
        assert ledger.is_active(USER, now=_now() + timedelta(seconds=60))
        assert not ledger.is_active(USER, now=_now() + timedelta(seconds=61))
        assert ledger.is_subscribed(USER)
        assert not ledger.is_active(OTHER, now=_now())

    def test_get_returns_copy(self) -> None:
        ledger, _ = _make_ledger()
        ledger.enroll(USER, Decimal("1"), now=_now())
        copy = ledger.get(USER)
        copy.subscribed = False
        assert ledger.is_subscribed(USER) is True

    def test_records_survive_serialisation(self) -> None:
        ledger, _ = _make_ledger()
        ledger.enroll(USER, Decimal("1"), now=_now())
        ledger.custom_enroll(OWNER, OTHER, 5, now=_now())
        ledger.remove_expired(OWNER, OTHER, now=_now() + timedelta(seconds=6))

        restored, _ = _make_ledger()
        restored.load_records(ledger.to_dict())
        assert restored.get(USER) == ledger.get(USER)
        assert restored.get(OTHER) == ledger.get(OTHER)
        assert restored.active_count() == 1
