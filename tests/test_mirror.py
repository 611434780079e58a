"""Tests for the mirror ledger: inbound handler and gated bulk replay."""

import pytest

from streamroot.crypto.encoding import encode_commitment, leaf_hash
from streamroot.crypto.merkle import EMPTY_ROOT, merkle_root
from streamroot.errors import CommitmentMismatch, MalformedPayload, WrongAsset
from streamroot.ledger.mirror import MirrorLedger
from streamroot.models.subscriber import SubscriberRecord

ASSET = "0x" + "ab" * 20
OTHER_ASSET = "0x" + "99" * 20
SENDER = "0x" + "44" * 20


def _records() -> list[SubscriberRecord]:
    return [
        SubscriberRecord("0x" + "aa" * 20, 5),
        SubscriberRecord("0x" + "bb" * 20, 3),
        SubscriberRecord("0x" + "aa" * 20, 7),
    ]


def _root(records: list[SubscriberRecord]) -> bytes:
    return merkle_root([leaf_hash(r) for r in records])


def _deliver(mirror: MirrorLedger, root: bytes, transfer_id: str = "t1", asset: str = ASSET) -> bytes:
    return mirror.on_message(transfer_id, 0, asset, SENDER, 1, encode_commitment(root))


class TestConstruction:
    def test_genesis_commitment_default(self) -> None:
        mirror = MirrorLedger(ASSET)
        assert mirror.relayed_commitment == EMPTY_ROOT
        assert mirror.count == 0
        assert mirror.in_sync

    def test_custom_genesis_commitment(self) -> None:
        mirror = MirrorLedger(ASSET, genesis_commitment=b"\x07" * 32)
        assert mirror.relayed_commitment == b"\x07" * 32
        assert not mirror.in_sync

    def test_rejects_short_genesis(self) -> None:
        with pytest.raises(ValueError):
            MirrorLedger(ASSET, genesis_commitment=b"\x07")


class TestOnMessage:
    def test_stores_relayed_commitment(self) -> None:
        mirror = MirrorLedger(ASSET)
        root = _root(_records())
        assert _deliver(mirror, root) == root
        assert mirror.relayed_commitment == root
        assert len(mirror.inbound_messages) == 1
        assert mirror.inbound_messages[0].origin_domain == 1

    def test_asset_match_is_case_insensitive(self) -> None:
        mirror = MirrorLedger(ASSET)
        _deliver(mirror, b"\x02" * 32, asset="0x" + "AB" * 20)
        assert mirror.relayed_commitment == b"\x02" * 32

    def test_wrong_asset_rejected_without_state_change(self) -> None:
        mirror = MirrorLedger(ASSET)
        with pytest.raises(WrongAsset):
            _deliver(mirror, b"\x02" * 32, asset=OTHER_ASSET)
        assert mirror.relayed_commitment == EMPTY_ROOT
        assert mirror.inbound_messages == []

    def test_malformed_payload_rejected_without_state_change(self) -> None:
        mirror = MirrorLedger(ASSET)
        _deliver(mirror, b"\x02" * 32)
        with pytest.raises(MalformedPayload):
            mirror.on_message("t2", 0, ASSET, SENDER, 1, b"\x03" * 64)
        assert mirror.relayed_commitment == b"\x02" * 32
        assert len(mirror.inbound_messages) == 1

    def test_last_writer_wins(self) -> None:
        mirror = MirrorLedger(ASSET)
        _deliver(mirror, b"\x02" * 32, "t1")
        _deliver(mirror, b"\x01" * 32, "t2")
        assert mirror.relayed_commitment == b"\x01" * 32

    def test_duplicate_delivery_is_idempotent(self) -> None:
        mirror = MirrorLedger(ASSET)
        _deliver(mirror, b"\x02" * 32, "t1")
        _deliver(mirror, b"\x02" * 32, "t1")
        assert mirror.relayed_commitment == b"\x02" * 32
        assert len(mirror.inbound_messages) == 2


    def test_history_cap_drops_oldest(self) -> None:
        mirror = MirrorLedger(ASSET, inbound_history=2)
        _deliver(mirror, b"\x01" * 32, "t1")
        _deliver(mirror, b"\x02" * 32, "t2")
        _deliver(mirror, b"\x03" * 32, "t3")
        assert [m.transfer_id for m in mirror.inbound_messages] == ["t2", "t3"]
        assert mirror.relayed_commitment == b"\x03" * 32

    def test_history_cap_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            MirrorLedger(ASSET, inbound_history=0)


class TestReplay:
    def test_matching_replay_accepted(self) -> None:
        mirror = MirrorLedger(ASSET)
        records = _records()
        _deliver(mirror, _root(records))
        assert mirror.replace_bulk(records) is True
        assert mirror.count == 3
        assert mirror.commitment == _root(records)
        assert mirror.in_sync

    def test_mismatched_replay_rejected(self) -> None:
        mirror = MirrorLedger(ASSET)
        records = _records()
        _deliver(mirror, _root(records))
        with pytest.raises(CommitmentMismatch):
            mirror.replace_bulk(records[:2])
        assert mirror.count == 0
        assert mirror.commitment == EMPTY_ROOT

    def test_replay_before_any_message_must_match_genesis(self) -> None:
        mirror = MirrorLedger(ASSET)
        with pytest.raises(CommitmentMismatch):
            mirror.replace_bulk(_records())
        assert mirror.count == 0

    def test_incremental_replays(self) -> None:
        mirror = MirrorLedger(ASSET)
        records = _records()
        _deliver(mirror, _root(records[:2]), "t1")
        mirror.replace_bulk(records[:2])
        _deliver(mirror, _root(records), "t2")
        mirror.replace_bulk(records[2:])
        assert mirror.count == 3
        assert mirror.commitment == _root(records)
