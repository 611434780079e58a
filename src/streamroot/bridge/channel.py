"""Cross-domain messaging bridge contract and an unreliable in-memory channel.

A bridge accepts a send request on the origin domain and, at some later
point, calls the receiver's handler on the destination domain. It gives no
acknowledgment, ordering or exactly-once guarantee. InMemoryBridge makes
each of those failure modes explicit: callers decide when messages are
delivered, in which order, and whether they are dropped or duplicated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable
from uuid import uuid4

from streamroot.bridge.assets import InMemoryAsset
from streamroot.errors import BridgeRejected
from streamroot.models.subscriber import normalize_address

logger = logging.getLogger(__name__)


@runtime_checkable
class MessagingBridge(Protocol):
    """Origin-side send surface of a cross-domain bridge."""

    @property
    def address(self) -> str: ...

    @property
    def domain(self) -> int: ...

    def xcall(
        self,
        sender: str,
        destination: int,
        to: str,
        asset: str,
        delegate: str,
        amount: int,
        slippage: int,
        call_data: bytes,
        relayer_fee: int = 0,
    ) -> str:
        """Pull amount of asset from sender and queue call_data for delivery.

        Returns a transfer id. Raises BridgeRejected if the request is
        refused, in which case no funds have moved.
        """
        ...


@runtime_checkable
class MessageReceiver(Protocol):
    """Destination-side handler invoked on delivery."""

    def on_message(
        self,
        transfer_id: str,
        amount: int,
        asset: str,
        origin_sender: str,
        origin_domain: int,
        payload: bytes,
    ) -> Any: ...


@dataclass(frozen=True)
class PendingMessage:
    """A send request accepted by the bridge and not yet delivered."""
    transfer_id: str
    origin_domain: int
    origin_sender: str
    destination: int
    to: str
    asset: str
    amount: int
    slippage: int
    relayer_fee: int
    call_data: bytes


class InMemoryBridge:
    """Single-process bridge with manual, unreliable delivery.

    Usage:
        bridge = InMemoryBridge(domain=1, address="0xbridge...")
        bridge.register_asset(asset)
        bridge.register_receiver(2, "0xmirror...", mirror)
        transfer_id = bridge.xcall(...)
        bridge.deliver(transfer_id)
    """

    def __init__(self, domain: int, address: str) -> None:
        self._domain = domain
        self._address = normalize_address(address)
        self._assets: Dict[str, InMemoryAsset] = {}
        self._receivers: Dict[Tuple[int, str], MessageReceiver] = {}
        self._pending: List[PendingMessage] = []
        self._rejecting = False

    @property
    def address(self) -> str:
        return self._address

    @property
    def domain(self) -> int:
        return self._domain

    @property
    def pending(self) -> List[PendingMessage]:
        return list(self._pending)

    def register_asset(self, asset: InMemoryAsset) -> None:
        self._assets[asset.address] = asset

    def register_receiver(self, domain: int, address: str, receiver: MessageReceiver) -> None:
        self._receivers[(domain, normalize_address(address))] = receiver

    def reject_sends(self, rejecting: bool = True) -> None:
        """Refuse every subsequent xcall until switched off."""
        self._rejecting = rejecting

    # ------------------------------------------------------------------
    # Origin side
    # ------------------------------------------------------------------

    def xcall(
        self,
        sender: str,
        destination: int,
        to: str,
        asset: str,
        delegate: str,
        amount: int,
        slippage: int,
        call_data: bytes,
        relayer_fee: int = 0,
    ) -> str:
        if self._rejecting:
            raise BridgeRejected("Bridge is not accepting sends")
        token = self._assets.get(normalize_address(asset))
        if token is None:
            raise BridgeRejected(f"Unsupported asset: {asset}")
        sender = normalize_address(sender)
        if token.allowance(sender, self._address) < amount:
            raise BridgeRejected("Bridge allowance below transfer amount")
        if token.balance_of(sender) < amount:
            raise BridgeRejected("Sender balance below transfer amount")

        token.transfer_from(self._address, sender, self._address, amount)
        message = PendingMessage(
            transfer_id=f"0x{uuid4().hex}",
            origin_domain=self._domain,
            origin_sender=sender,
            destination=destination,
            to=normalize_address(to),
            asset=token.address,
            amount=amount,
            slippage=slippage,
            relayer_fee=relayer_fee,
            call_data=bytes(call_data),
        )
        self._pending.append(message)
        logger.info(
            f"Accepted transfer {message.transfer_id}: {amount} of {token.address} "
            f"to domain {destination}"
        )
        return message.transfer_id

    # ------------------------------------------------------------------
    # Channel behaviour
    # ------------------------------------------------------------------

    def deliver(self, transfer_id: Optional[str] = None) -> Any:
        """Deliver one pending message (the oldest by default).

        The message leaves the queue before the handler runs, so a failing
        handler loses it. Returns the handler's result.
        """
        message = self._take(transfer_id)
        receiver = self._receivers.get((message.destination, message.to))
        if receiver is None:
            raise LookupError(
                f"No receiver at domain {message.destination} address {message.to}"
            )
        logger.info(f"Delivering transfer {message.transfer_id} to {message.to}")
        return receiver.on_message(
            message.transfer_id,
            message.amount,
            message.asset,
            message.origin_sender,
            message.origin_domain,
            message.call_data,
        )

    def deliver_all(self, reverse: bool = False) -> List[Any]:
        """Deliver every pending message, newest first if reverse."""
        ids = [m.transfer_id for m in self._pending]
        if reverse:
            ids.reverse()
        return [self.deliver(transfer_id) for transfer_id in ids]

    def drop(self, transfer_id: str) -> PendingMessage:
        """Lose a pending message."""
        message = self._take(transfer_id)
        logger.info(f"Dropped transfer {transfer_id}")
        return message

    def duplicate(self, transfer_id: str) -> None:
        """Queue a second copy of a pending message."""
        for message in self._pending:
            if message.transfer_id == transfer_id:
                self._pending.append(message)
                return
        raise LookupError(f"No pending transfer: {transfer_id}")

    def _take(self, transfer_id: Optional[str]) -> PendingMessage:
        if not self._pending:
            raise LookupError("No pending messages")
        if transfer_id is None:
            return self._pending.pop(0)
        for i, message in enumerate(self._pending):
            if message.transfer_id == transfer_id:
                return self._pending.pop(i)
        raise LookupError(f"No pending transfer: {transfer_id}")
