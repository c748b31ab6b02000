"""Expiry sweeper — batch deactivation of expired subscriptions.

Unlike SubscriberLedger.remove_expired, the sweep never fails because of
an individual account: entries that are absent, inactive, or not yet
expired are skipped. Only structural problems abort the sweep (caller is
not the owner, or an entry is not a valid address). Account ids are all
validated before any record changes, so a malformed list leaves the
ledger untouched.

Entries are independent, so the sweep is order-insensitive and
idempotent.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from easydrop.accounts import normalize_addresses
from easydrop.admin.ownership import Ownership
from easydrop.subscriptions.ledger import SubscriberLedger


class ExpirySweeper:
    """Deactivates every expired subscription in a candidate list."""

    def __init__(self, ownership: Ownership, ledger: SubscriberLedger) -> None:
        self._ownership = ownership
        self._ledger = ledger

    def sweep(
        self,
        caller: str,
        accounts: Sequence[str],
        now: Optional[datetime] = None,
    ) -> List[str]:
        """Flag expired candidates inactive. Owner only.

        Returns:
            The accounts that were deactivated by this call, in list order.
        """
        self._ownership.require_owner(caller)
        candidates = normalize_addresses(accounts)
        if now is None:
            now = datetime.now(timezone.utc)

        removed: List[str] = []
        for account in candidates:
            if self._ledger.deactivate_if_expired(account, now):
                removed.append(account)
        return removed
