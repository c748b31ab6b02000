"""EasyDrop configuration.

Defaults ship with the package in params/easydrop_params.json.
Deployment-specific values (owner, engine address, data directory, RPC
endpoint) can be overridden from the environment or a .env file:

    EASYDROP_PARAMS          path to an alternative params file
    EASYDROP_OWNER           owner (operator) address
    EASYDROP_ENGINE_ADDRESS  address registries must approve
    EASYDROP_DATA_DIR        where state.json and events.jsonl live
    EASYDROP_RPC_URL         JSON-RPC endpoint for on-chain approval checks
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from decimal import Decimal
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import find_dotenv, load_dotenv

from easydrop.accounts import normalize_address
from easydrop.models.subscription import FeeSchedule

DEFAULT_PARAMS_PATH = Path(__file__).resolve().parent / "params" / "easydrop_params.json"
# Resolved against the working directory.
DEFAULT_DATA_DIR = Path("data")


@dataclass(frozen=True)
class EasyDropConfig:
    """Resolved configuration for one EasyDrop deployment."""

    owner: str
    engine_address: str
    tx_fee: Decimal
    subscription_fees: Tuple[Decimal, ...]
    data_dir: Path = DEFAULT_DATA_DIR
    rpc_url: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "owner", normalize_address(self.owner))
        object.__setattr__(
            self, "engine_address", normalize_address(self.engine_address),
        )
        # Validates tier count and non-negative fees.
        self.fee_schedule()

    def fee_schedule(self) -> FeeSchedule:
        return FeeSchedule(
            tx_fee=self.tx_fee,
            subscription_fees=self.subscription_fees,
        )

    @classmethod
    def from_params_file(cls, path: Path = DEFAULT_PARAMS_PATH) -> EasyDropConfig:
        """Load from a JSON params file."""
        params = json.loads(Path(path).read_text(encoding="utf-8"))
        fees = params["fees"]
        return cls(
            owner=params["owner"],
            engine_address=params["engine_address"],
            tx_fee=Decimal(fees["tx_fee"]),
            subscription_fees=tuple(Decimal(f) for f in fees["subscription_fees"]),
            data_dir=Path(params["data_dir"]) if params.get("data_dir") else DEFAULT_DATA_DIR,
            rpc_url=params.get("rpc_url"),
        )

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> EasyDropConfig:
        """Load the params file, then apply EASYDROP_* overrides.

        A .env file (by default the nearest one at or above the working
        directory) is loaded first; variables already set in the
        environment take precedence.
        """
        if environ is None:
            load_dotenv(env_file or find_dotenv(usecwd=True))
            environ = os.environ
        params_path = Path(environ.get("EASYDROP_PARAMS", DEFAULT_PARAMS_PATH))
        config = cls.from_params_file(params_path)

        overrides = {}
        if environ.get("EASYDROP_OWNER"):
            overrides["owner"] = environ["EASYDROP_OWNER"]
        if environ.get("EASYDROP_ENGINE_ADDRESS"):
            overrides["engine_address"] = environ["EASYDROP_ENGINE_ADDRESS"]
        if environ.get("EASYDROP_DATA_DIR"):
            overrides["data_dir"] = Path(environ["EASYDROP_DATA_DIR"])
        if environ.get("EASYDROP_RPC_URL"):
            overrides["rpc_url"] = environ["EASYDROP_RPC_URL"]
        return replace(config, **overrides) if overrides else config
