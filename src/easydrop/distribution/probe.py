"""Approval probe — does the engine hold transfer authorization?

Read-only. The answer always comes from the registry itself; nothing is
cached locally.

ContractApprovalReader answers the same question for a deployed ERC-721
or ERC-1155 contract over JSON-RPC, so an operator can confirm the
precondition on-chain before submitting a batch.
"""

from __future__ import annotations

from typing import Any, Optional

from easydrop.accounts import normalize_address
from easydrop.distribution.registry import ApprovalSource

# isApprovedForAll has the same signature in ERC-721 and ERC-1155.
IS_APPROVED_FOR_ALL_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "owner", "type": "address"},
            {"internalType": "address", "name": "operator", "type": "address"},
        ],
        "name": "isApprovedForAll",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class ApprovalProbe:
    """Asks registries whether an operator has approved the engine."""

    def __init__(self, engine_address: str) -> None:
        self._engine_address = normalize_address(engine_address)

    @property
    def engine_address(self) -> str:
        return self._engine_address

    def is_authorized(self, registry: ApprovalSource, operator: str) -> bool:
        return bool(
            registry.is_approved_for_all(
                normalize_address(operator), self._engine_address,
            )
        )


class ContractApprovalReader:
    """ApprovalSource backed by a deployed token contract.

    Usage:
        reader = ContractApprovalReader(contract_address, rpc_url=url)
        ApprovalProbe(engine_address).is_authorized(reader, holder)
    """

    def __init__(
        self,
        contract_address: str,
        rpc_url: Optional[str] = None,
        w3: Optional[Any] = None,
    ) -> None:
        from web3 import Web3, HTTPProvider

        if w3 is None:
            if not rpc_url:
                raise ValueError("Either rpc_url or a Web3 instance is required")
            w3 = Web3(HTTPProvider(rpc_url))
        self._registry_id = normalize_address(contract_address)
        self._contract = w3.eth.contract(
            address=self._registry_id, abi=IS_APPROVED_FOR_ALL_ABI,
        )

    @property
    def registry_id(self) -> str:
        return self._registry_id

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return bool(
            self._contract.functions.isApprovedForAll(
                normalize_address(owner), normalize_address(operator),
            ).call()
        )
