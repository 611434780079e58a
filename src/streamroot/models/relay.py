"""Value objects exchanged across the cross-domain channel."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RelayReceipt:
    """What the source side knows after handing a commitment to the bridge.

    Acceptance by the bridge only. Delivery is never confirmed back.
    """
    transfer_id: str
    commitment: bytes
    amount: int
    destination_domain: int
    target_address: str
    relayer_fee: int


@dataclass(frozen=True)
class InboundMessage:
    """A cross-domain message as seen by the destination handler."""
    transfer_id: str
    amount: int
    asset: str
    origin_sender: str
    origin_domain: int
    payload: bytes
