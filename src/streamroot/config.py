"""Construction-time configuration for source and mirror sides.

Values come from a JSON file or from the environment (optionally seeded
from a .env file). Addresses are normalized to checksum form on load.

Environment variables:
    STREAMROOT_ACCEPTED_ASSET      transferable asset accepted by relay and mirror
    STREAMROOT_STREAMING_ASSET     streaming asset the adapter listens to
    STREAMROOT_BRIDGE_ADDRESS      messaging bridge on the source domain
    STREAMROOT_CUSTODY_ADDRESS     account holding funds on the source domain
    STREAMROOT_ORIGIN_DOMAIN       source domain id (integer)
    STREAMROOT_GENESIS_COMMITMENT  mirror's initial relayed commitment (hex)
    STREAMROOT_SLIPPAGE_BPS        bridge slippage tolerance in basis points
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from streamroot.crypto.merkle import EMPTY_ROOT
from streamroot.models.subscriber import normalize_address

DEFAULT_SLIPPAGE_BPS = 300

_ENV_PREFIX = "STREAMROOT_"
_REQUIRED = ("accepted_asset", "streaming_asset", "bridge_address", "custody_address")


@dataclass(frozen=True)
class SyncConfig:
    """Addresses and parameters shared by both sides of the sync."""

    accepted_asset: str
    streaming_asset: str
    bridge_address: str
    custody_address: str
    origin_domain: int = 0
    genesis_commitment: bytes = EMPTY_ROOT
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS

    def __post_init__(self) -> None:
        for name in _REQUIRED:
            object.__setattr__(self, name, normalize_address(getattr(self, name)))
        if len(self.genesis_commitment) != 32:
            raise ValueError("genesis_commitment must be 32 bytes")
        if not 0 <= self.slippage_bps <= 10_000:
            raise ValueError(f"slippage_bps out of range: {self.slippage_bps}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> SyncConfig:
        """Build from a flat mapping of field names to raw values."""
        missing = [name for name in _REQUIRED if not values.get(name)]
        if missing:
            raise ValueError(f"Missing configuration: {', '.join(missing)}")
        genesis = values.get("genesis_commitment")
        return cls(
            accepted_asset=values["accepted_asset"],
            streaming_asset=values["streaming_asset"],
            bridge_address=values["bridge_address"],
            custody_address=values["custody_address"],
            origin_domain=int(_optional(values, "origin_domain", 0)),
            genesis_commitment=_parse_commitment(genesis) if genesis else EMPTY_ROOT,
            slippage_bps=int(_optional(values, "slippage_bps", DEFAULT_SLIPPAGE_BPS)),
        )

    @classmethod
    def from_json(cls, path: Path) -> SyncConfig:
        return cls.from_mapping(json.loads(Path(path).read_text(encoding="utf-8")))

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> SyncConfig:
        """Read STREAMROOT_* variables, loading env_file (default ./.env) first.

        Variables already set in the process environment take precedence
        over the file.
        """
        load_dotenv(env_file if env_file is not None else Path.cwd() / ".env")
        fields = _REQUIRED + (
            "origin_domain",
            "genesis_commitment",
            "slippage_bps",
        )
        return cls.from_mapping(
            {name: os.getenv(_ENV_PREFIX + name.upper()) for name in fields}
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "accepted_asset": self.accepted_asset,
            "streaming_asset": self.streaming_asset,
            "bridge_address": self.bridge_address,
            "custody_address": self.custody_address,
            "origin_domain": self.origin_domain,
            "genesis_commitment": f"0x{self.genesis_commitment.hex()}",
            "slippage_bps": self.slippage_bps,
        }


def _optional(values: Mapping[str, Any], name: str, default: Any) -> Any:
    """Value for name, or default when absent or blank. Zero is a value."""
    value = values.get(name)
    if value is None or value == "":
        return default
    return value


def _parse_commitment(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    text = str(value).removeprefix("0x")
    try:
        return bytes.fromhex(text)
    except ValueError as exc:
        raise ValueError(f"genesis_commitment is not hex: {value!r}") from exc
