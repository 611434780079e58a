"""Subscriber record model.

A record pairs a subscriber identity (a 20-byte EVM address) with a signed
flow rate. A rate of zero means the subscriber is present but inactive:
termination is an appended zero-rate record, never a removal.

Records are immutable once constructed. The ledger treats them as an event
log, so one identity may appear many times; the latest entry wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from web3 import Web3

from streamroot.errors import InvalidRecord

# Flow rates travel as int96 on the wire.
INT96_MIN = -(2 ** 95)
INT96_MAX = 2 ** 95 - 1


def normalize_address(value: str) -> str:
    """Return the EIP-55 checksum form of an address, or raise InvalidRecord."""
    if not isinstance(value, str) or not Web3.is_address(value):
        raise InvalidRecord(f"Not a valid address: {value!r}")
    return Web3.to_checksum_address(value)


@dataclass(frozen=True)
class SubscriberRecord:
    """One subscriber's rate at the time the record was appended."""
    identity: str
    flow_rate: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "identity", normalize_address(self.identity))
        # bool is an int subclass; reject it explicitly
        if isinstance(self.flow_rate, bool) or not isinstance(self.flow_rate, int):
            raise InvalidRecord(f"Flow rate must be an integer, got {self.flow_rate!r}")
        if not INT96_MIN <= self.flow_rate <= INT96_MAX:
            raise InvalidRecord(f"Flow rate out of int96 range: {self.flow_rate}")

    @property
    def is_active(self) -> bool:
        return self.flow_rate != 0

    def to_dict(self) -> dict[str, Any]:
        return {"identity": self.identity, "flow_rate": self.flow_rate}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SubscriberRecord:
        if not isinstance(data, Mapping):
            raise InvalidRecord(f"Record must be a mapping, got {type(data).__name__}")
        try:
            return cls(identity=data["identity"], flow_rate=data["flow_rate"])
        except KeyError as exc:
            raise InvalidRecord(f"Record missing field: {exc.args[0]}") from exc
