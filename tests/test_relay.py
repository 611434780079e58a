"""Tests for the commitment relay: funds and root handed to the bridge."""

from __future__ import annotations

from typing import Tuple

import pytest

from streamroot.bridge.assets import Asset, InMemoryAsset, InMemoryStreamingAsset, StreamingAsset
from streamroot.bridge.channel import InMemoryBridge, MessagingBridge
from streamroot.bridge.relay import CommitmentRelay
from streamroot.config import SyncConfig
from streamroot.crypto.encoding import decode_commitment
from streamroot.errors import RelayRejected, WrongAsset
from streamroot.ledger.subscriber_ledger import SubscriberLedger
from streamroot.models.subscriber import SubscriberRecord

ASSET = "0x" + "11" * 20
STREAMING = "0x" + "22" * 20
BRIDGE = "0x" + "33" * 20
CUSTODY = "0x" + "44" * 20
MIRROR = "0x" + "55" * 20
OTHER = "0x" + "99" * 20


def _config(**overrides: object) -> SyncConfig:
    values = dict(
        accepted_asset=ASSET,
        streaming_asset=STREAMING,
        bridge_address=BRIDGE,
        custody_address=CUSTODY,
        origin_domain=1,
    )
    values.update(overrides)
    return SyncConfig(**values)  # type: ignore[arg-type]


def _setup(
    config: SyncConfig | None = None,
) -> Tuple[SubscriberLedger, InMemoryAsset, InMemoryStreamingAsset, InMemoryBridge, CommitmentRelay]:
    ledger = SubscriberLedger()
    ledger.append(SubscriberRecord("0x" + "aa" * 20, 5))
    asset = InMemoryAsset(ASSET)
    streaming = InMemoryStreamingAsset(STREAMING, asset)
    bridge = InMemoryBridge(domain=1, address=BRIDGE)
    bridge.register_asset(asset)
    relay = CommitmentRelay(ledger, config or _config(), asset, streaming, bridge)
    return ledger, asset, streaming, bridge, relay


class TestProtocols:
    def test_in_memory_types_satisfy_protocols(self) -> None:
        _, asset, streaming, bridge, _ = _setup()
        assert isinstance(asset, Asset)
        assert isinstance(streaming, StreamingAsset)
        assert isinstance(bridge, MessagingBridge)


class TestRelay:
    def test_downgrades_and_transfers_everything(self) -> None:
        ledger, asset, streaming, bridge, relay = _setup()
        streaming.accrue(CUSTODY, 700)
        asset.mint(CUSTODY, 300)

        receipt = relay.relay(2, MIRROR, relayer_fee=10)

        assert receipt.amount == 1_000
        assert receipt.commitment == ledger.commitment
        assert receipt.destination_domain == 2
        assert receipt.relayer_fee == 10
        assert streaming.balance_of(CUSTODY) == 0
        assert asset.balance_of(CUSTODY) == 0
        assert asset.balance_of(BRIDGE) == 1_000
        assert asset.allowance(CUSTODY, BRIDGE) == 0

    def test_message_carries_commitment(self) -> None:
        ledger, _, _, bridge, relay = _setup()
        receipt = relay.relay(2, MIRROR)
        (message,) = bridge.pending
        assert message.transfer_id == receipt.transfer_id
        assert message.destination == 2
        assert message.slippage == 300
        assert decode_commitment(message.call_data) == ledger.commitment

    def test_configured_slippage(self) -> None:
        _, _, _, bridge, relay = _setup(_config(slippage_bps=50))
        relay.relay(2, MIRROR)
        assert bridge.pending[0].slippage == 50

    def test_relay_with_no_funds(self) -> None:
        _, _, _, bridge, relay = _setup()
        receipt = relay.relay(2, MIRROR)
        assert receipt.amount == 0
        assert len(bridge.pending) == 1

    def test_each_relay_sends_current_commitment(self) -> None:
        ledger, _, _, bridge, relay = _setup()
        first = relay.relay(2, MIRROR)
        ledger.append(SubscriberRecord("0x" + "bb" * 20, 3))
        second = relay.relay(2, MIRROR)
        assert first.commitment != second.commitment
        assert len(bridge.pending) == 2

    def test_rejected_send_moves_no_funds(self) -> None:
        _, asset, streaming, bridge, relay = _setup()
        streaming.accrue(CUSTODY, 500)
        bridge.reject_sends()

        with pytest.raises(RelayRejected):
            relay.relay(2, MIRROR)

        assert asset.balance_of(CUSTODY) == 500
        assert asset.balance_of(BRIDGE) == 0
        assert asset.allowance(CUSTODY, BRIDGE) == 0
        assert bridge.pending == []

    def test_negative_fee_rejected(self) -> None:
        _, _, _, bridge, relay = _setup()
        with pytest.raises(ValueError):
            relay.relay(2, MIRROR, relayer_fee=-1)
        assert bridge.pending == []


class TestAssetChecks:
    def test_unconfigured_asset(self) -> None:
        _, _, _, bridge, relay = _setup(_config(accepted_asset=OTHER))
        with pytest.raises(WrongAsset):
            relay.relay(2, MIRROR)
        assert bridge.pending == []

    def test_unconfigured_streaming_asset(self) -> None:
        _, _, streaming, bridge, relay = _setup(_config(streaming_asset=OTHER))
        streaming.accrue(CUSTODY, 100)
        with pytest.raises(WrongAsset):
            relay.relay(2, MIRROR)
        assert streaming.balance_of(CUSTODY) == 100
        assert bridge.pending == []

    def test_bridge_must_match_config(self) -> None:
        ledger = SubscriberLedger()
        asset = InMemoryAsset(ASSET)
        streaming = InMemoryStreamingAsset(STREAMING, asset)
        bridge = InMemoryBridge(domain=1, address=OTHER)
        with pytest.raises(ValueError):
            CommitmentRelay(ledger, _config(), asset, streaming, bridge)


class FailingBridge(InMemoryBridge):
    """Bridge whose send path breaks with a non-rejection error."""

    def xcall(self, *args: object, **kwargs: object) -> str:
        raise RuntimeError("bridge node unreachable")


class TestFailedSend:
    def test_unexpected_bridge_error_withdraws_approval(self) -> None:
        ledger = SubscriberLedger()
        asset = InMemoryAsset(ASSET)
        streaming = InMemoryStreamingAsset(STREAMING, asset)
        bridge = FailingBridge(domain=1, address=BRIDGE)
        bridge.register_asset(asset)
        relay = CommitmentRelay(ledger, _config(), asset, streaming, bridge)
        streaming.accrue(CUSTODY, 500)

        with pytest.raises(RuntimeError, match="unreachable"):
            relay.relay(2, MIRROR)

        assert asset.allowance(CUSTODY, BRIDGE) == 0
        assert asset.balance_of(CUSTODY) == 500
        assert bridge.pending == []


class TestInMemoryAsset:
    def test_zero_pull_from_empty_account(self) -> None:
        asset = InMemoryAsset(ASSET)
        asset.transfer_from(BRIDGE, CUSTODY, BRIDGE, 0)
        assert asset.balance_of(CUSTODY) == 0
        assert asset.balance_of(BRIDGE) == 0

    def test_pull_respects_allowance_and_balance(self) -> None:
        asset = InMemoryAsset(ASSET)
        asset.mint(CUSTODY, 100)
        asset.approve(CUSTODY, BRIDGE, 60)
        asset.transfer_from(BRIDGE, CUSTODY, BRIDGE, 60)
        assert asset.balance_of(CUSTODY) == 40
        assert asset.allowance(CUSTODY, BRIDGE) == 0
        with pytest.raises(ValueError):
            asset.transfer_from(BRIDGE, CUSTODY, BRIDGE, 1)
