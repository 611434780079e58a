"""Service facades for the two sides of the commitment sync.

SourceService wires the subscriber ledger, the flow-event adapter and the
commitment relay on the source domain. MirrorService wraps the mirror
ledger on the destination domain. The two never share state; the only
link between them is whatever bridge carries relayed messages.

Operator-facing calls return a ServiceResult. Domain errors are converted
into failed results; nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from streamroot.bridge.assets import Asset, StreamingAsset
from streamroot.bridge.channel import MessagingBridge
from streamroot.bridge.relay import CommitmentRelay
from streamroot.config import SyncConfig
from streamroot.errors import StreamRootError
from streamroot.flow.adapter import FlowEventAdapter
from streamroot.flow.agreement import FlowRateSource
from streamroot.ledger.mirror import MirrorLedger
from streamroot.ledger.subscriber_ledger import SubscriberLedger
from streamroot.models.subscriber import SubscriberRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


class SourceService:
    """Source-domain facade: flow events in, relayed commitments out.

    Usage:
        service = SourceService(config, asset, streaming_asset, bridge, agreement)
        agreement.register_app(config.custody_address, service.adapter)
        result = service.relay(destination_domain, mirror_address)
    """

    def __init__(
        self,
        config: SyncConfig,
        asset: Asset,
        streaming_asset: StreamingAsset,
        bridge: MessagingBridge,
        rate_source: FlowRateSource,
        ledger: Optional[SubscriberLedger] = None,
    ) -> None:
        self._config = config
        self._ledger = ledger if ledger is not None else SubscriberLedger()
        self._adapter = FlowEventAdapter(
            self._ledger,
            rate_source,
            streaming_asset=config.streaming_asset,
            app_address=config.custody_address,
        )
        self._relay = CommitmentRelay(self._ledger, config, asset, streaming_asset, bridge)

    @property
    def ledger(self) -> SubscriberLedger:
        return self._ledger

    @property
    def adapter(self) -> FlowEventAdapter:
        return self._adapter

    def relay(self, target_domain_id: int, target_address: str, relayer_fee: int = 0) -> ServiceResult:
        try:
            receipt = self._relay.relay(target_domain_id, target_address, relayer_fee)
        except (StreamRootError, ValueError) as exc:
            return ServiceResult(success=False, errors=[str(exc)])
        return ServiceResult(
            success=True,
            data={
                "transfer_id": receipt.transfer_id,
                "commitment": f"0x{receipt.commitment.hex()}",
                "amount": receipt.amount,
                "destination_domain": receipt.destination_domain,
                "target_address": receipt.target_address,
            },
        )

    def status(self) -> dict[str, Any]:
        return {
            "side": "source",
            "records": self._ledger.count,
            "commitment": self._ledger.commitment_hex,
            "active_subscribers": len(self._ledger.active_subscribers()),
            "origin_domain": self._config.origin_domain,
        }


class MirrorService:
    """Destination-domain facade around a MirrorLedger.

    Registered with a bridge as the message receiver: on_message raises on
    failure so the channel sees it, receive() reports a ServiceResult.
    """

    def __init__(self, config: SyncConfig, mirror: Optional[MirrorLedger] = None) -> None:
        self._mirror = mirror if mirror is not None else MirrorLedger(
            accepted_asset=config.accepted_asset,
            genesis_commitment=config.genesis_commitment,
        )

    @property
    def mirror(self) -> MirrorLedger:
        return self._mirror

    def on_message(
        self,
        transfer_id: str,
        amount: int,
        asset: str,
        origin_sender: str,
        origin_domain: int,
        payload: bytes,
    ) -> bytes:
        return self._mirror.on_message(
            transfer_id, amount, asset, origin_sender, origin_domain, payload
        )

    def receive(
        self,
        transfer_id: str,
        amount: int,
        asset: str,
        origin_sender: str,
        origin_domain: int,
        payload: bytes,
    ) -> ServiceResult:
        try:
            commitment = self.on_message(
                transfer_id, amount, asset, origin_sender, origin_domain, payload
            )
        except StreamRootError as exc:
            return ServiceResult(success=False, errors=[str(exc)])
        return ServiceResult(success=True, data={"relayed_commitment": f"0x{commitment.hex()}"})

    def submit_replay(self, records: Iterable[SubscriberRecord]) -> ServiceResult:
        """Bulk replay: accepted only if it reproduces the relayed commitment."""
        batch = list(records)
        try:
            self._mirror.replace_bulk(batch)
        except StreamRootError as exc:
            return ServiceResult(success=False, errors=[str(exc)])
        return ServiceResult(
            success=True,
            data={
                "accepted": len(batch),
                "records": self._mirror.count,
                "commitment": f"0x{self._mirror.commitment.hex()}",
            },
        )

    def status(self) -> dict[str, Any]:
        return {
            "side": "mirror",
            "records": self._mirror.count,
            "commitment": f"0x{self._mirror.commitment.hex()}",
            "relayed_commitment": f"0x{self._mirror.relayed_commitment.hex()}",
            "in_sync": self._mirror.in_sync,
            "messages_received": len(self._mirror.inbound_messages),
        }
