"""Distribution models — batch modes and receipts."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


class DistributionMode(str, enum.Enum):
    """How assets in a batch are addressed."""
    UNIQUE = "unique"
    """One owner per asset id (ERC-721 style)."""

    QUANTITY = "quantity"
    """Asset id plus a unit count (ERC-1155 style)."""


@dataclass(frozen=True)
class DistributionReceipt:
    """Outcome of a completed batch.

    Only successful batches produce a receipt; a failed batch raises and
    leaves nothing behind.
    """
    mode: DistributionMode
    operator: str
    registry_id: str
    transfer_count: int
    completed_utc: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "operator": self.operator,
            "registry_id": self.registry_id,
            "transfer_count": self.transfer_count,
            "completed_utc": self.completed_utc.isoformat(),
        }
