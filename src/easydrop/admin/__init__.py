"""Administration — ownership and fee configuration."""

from easydrop.admin.fees import FeeAdministrator
from easydrop.admin.ownership import Ownership

__all__ = [
    "FeeAdministrator",
    "Ownership",
]
