"""Distribution subsystem — asset registries, batch engine, approval probe."""

from easydrop.distribution.engine import DistributionEngine
from easydrop.distribution.probe import ApprovalProbe, ContractApprovalReader
from easydrop.distribution.registry import (
    ApprovalSource,
    InMemoryQuantityRegistry,
    InMemoryUniqueRegistry,
    QuantityAssetRegistry,
    UniqueAssetRegistry,
)

__all__ = [
    "ApprovalProbe",
    "ApprovalSource",
    "ContractApprovalReader",
    "DistributionEngine",
    "InMemoryQuantityRegistry",
    "InMemoryUniqueRegistry",
    "QuantityAssetRegistry",
    "UniqueAssetRegistry",
]
