"""Treasury subsystem — received-value counters and withdrawal."""

from easydrop.treasury.treasury import Deposit, Treasury, TreasuryState, Withdrawal

__all__ = [
    "Deposit",
    "Treasury",
    "TreasuryState",
    "Withdrawal",
]
