"""State store — durable JSON snapshot of ledger, fees, owner and treasury.

The service writes a full snapshot after every successful mutation and
reads it back on construction. Writes go to a sibling temp file that is
then renamed over the target, so a crash mid-write never leaves a
truncated state file behind.

Layout:
    {
      "owner": "0x...",
      "fees": {"tx_fee": "0.01", "subscription_fees": ["0.25", ...]},
      "treasury": {"balance": "...", "received_total": "...", ...},
      "ledger": {"records": [{"account": ..., "subscribed": ..., "until": ...}]}
    }
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional


class StateStore:
    """Whole-document JSON persistence."""

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    def exists(self) -> bool:
        return self._storage_path.exists()

    def load(self) -> Optional[dict[str, Any]]:
        """Return the stored snapshot, or None if nothing was saved yet."""
        if not self._storage_path.exists():
            return None
        with self._storage_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Corrupt state file: {self._storage_path}")
        return data

    def save(self, snapshot: dict[str, Any]) -> None:
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(snapshot, f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp_path, self._storage_path)
