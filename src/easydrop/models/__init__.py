"""Core data models for EasyDrop."""

from easydrop.models.distribution import DistributionMode, DistributionReceipt
from easydrop.models.subscription import (
    SUBSCRIPTION_PERIOD,
    SUBSCRIPTION_PERIOD_SECONDS,
    FeeSchedule,
    SubscriberRecord,
)

__all__ = [
    "DistributionMode",
    "DistributionReceipt",
    "SUBSCRIPTION_PERIOD",
    "SUBSCRIPTION_PERIOD_SECONDS",
    "FeeSchedule",
    "SubscriberRecord",
]
