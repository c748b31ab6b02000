"""Persistence — append-only event log and state snapshots."""

from easydrop.persistence.event_log import EventKind, EventLog, EventRecord
from easydrop.persistence.state_store import StateStore

__all__ = [
    "EventKind",
    "EventLog",
    "EventRecord",
    "StateStore",
]
