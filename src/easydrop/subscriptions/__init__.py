"""Subscription subsystem — subscriber ledger and expiry sweeper."""

from easydrop.subscriptions.ledger import Enrollment, SubscriberLedger
from easydrop.subscriptions.sweeper import ExpirySweeper

__all__ = [
    "Enrollment",
    "ExpirySweeper",
    "SubscriberLedger",
]
