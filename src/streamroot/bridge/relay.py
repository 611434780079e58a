"""Commitment relay: sends the current root and accrued funds across domains.

A relay call:
1. Downgrades the whole accrued streaming balance into the plain asset.
2. Approves the bridge for the entire plain-asset balance.
3. Hands the bridge the funds plus the ABI-encoded commitment.

Fire-and-forget: the relay learns only that the bridge accepted the send,
never whether the destination received it. If the send fails for any reason, the
approval is withdrawn and the relay fails as a whole with no funds moved.
"""

from __future__ import annotations

import logging

from streamroot.bridge.assets import Asset, StreamingAsset
from streamroot.bridge.channel import MessagingBridge
from streamroot.config import SyncConfig
from streamroot.crypto.encoding import encode_commitment
from streamroot.errors import BridgeRejected, RelayRejected, WrongAsset
from streamroot.ledger.subscriber_ledger import SubscriberLedger
from streamroot.models.relay import RelayReceipt
from streamroot.models.subscriber import normalize_address

logger = logging.getLogger(__name__)


class CommitmentRelay:
    """Packages the source ledger's commitment for a cross-domain send.

    Usage:
        relay = CommitmentRelay(ledger, config, asset, streaming_asset, bridge)
        receipt = relay.relay(destination_domain, mirror_address, relayer_fee=0)
    """

    def __init__(
        self,
        ledger: SubscriberLedger,
        config: SyncConfig,
        asset: Asset,
        streaming_asset: StreamingAsset,
        bridge: MessagingBridge,
    ) -> None:
        if normalize_address(bridge.address) != config.bridge_address:
            raise ValueError(
                f"Bridge {bridge.address} is not the configured {config.bridge_address}"
            )
        self._ledger = ledger
        self._config = config
        self._asset = asset
        self._streaming = streaming_asset
        self._bridge = bridge

    def relay(self, target_domain_id: int, target_address: str, relayer_fee: int = 0) -> RelayReceipt:
        """Send the current commitment and all custody funds to the bridge."""
        if relayer_fee < 0:
            raise ValueError("Relayer fee cannot be negative")
        self._require_assets()
        target = normalize_address(target_address)
        custody = self._config.custody_address
        commitment = self._ledger.commitment

        streamed = self._streaming.balance_of(custody)
        if streamed > 0:
            self._streaming.downgrade(custody, streamed)
        amount = self._asset.balance_of(custody)

        self._asset.approve(custody, self._bridge.address, amount)
        try:
            transfer_id = self._bridge.xcall(
                sender=custody,
                destination=target_domain_id,
                to=target,
                asset=self._asset.address,
                delegate=custody,
                amount=amount,
                slippage=self._config.slippage_bps,
                call_data=encode_commitment(commitment),
                relayer_fee=relayer_fee,
            )
        except Exception as exc:
            # No transfer id means no send; the bridge must not keep the allowance
            self._asset.approve(custody, self._bridge.address, 0)
            logger.warning(f"Relay to domain {target_domain_id} failed: {exc}")
            if isinstance(exc, BridgeRejected):
                raise RelayRejected(f"Bridge rejected relay: {exc}") from exc
            raise

        logger.info(
            f"Relayed commitment 0x{commitment.hex()} with {amount} units "
            f"to {target} on domain {target_domain_id} (transfer {transfer_id})"
        )
        return RelayReceipt(
            transfer_id=transfer_id,
            commitment=commitment,
            amount=amount,
            destination_domain=target_domain_id,
            target_address=target,
            relayer_fee=relayer_fee,
        )

    def _require_assets(self) -> None:
        asset = normalize_address(self._asset.address)
        if asset != self._config.accepted_asset:
            raise WrongAsset(expected=self._config.accepted_asset, actual=asset)
        streaming = normalize_address(self._streaming.address)
        if streaming != self._config.streaming_asset:
            raise WrongAsset(expected=self._config.streaming_asset, actual=streaming)
        underlying = normalize_address(self._streaming.underlying)
        if underlying != asset:
            raise WrongAsset(expected=asset, actual=underlying)
