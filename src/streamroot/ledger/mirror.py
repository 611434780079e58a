"""Mirror ledger: destination-side copy of the subscriber ledger.

The mirror never sees flow events. It learns the source commitment through
an inbound cross-domain message, and separately receives bulk replays of
records. A replay is accepted only if the mirror's own recomputed root
equals the last relayed commitment.

Ordering: the relayed commitment is last-writer-wins. The wire payload
carries a single bytes32 with no sequence number, so an out-of-order
delivery can replace a fresher commitment with a staler one. Duplicate
deliveries are idempotent. Recovery from a stale commitment is a new relay
from the source side.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterable, List, Optional

from streamroot.crypto.encoding import decode_commitment
from streamroot.crypto.merkle import EMPTY_ROOT
from streamroot.errors import WrongAsset
from streamroot.ledger.subscriber_ledger import SubscriberLedger
from streamroot.models.relay import InboundMessage
from streamroot.models.subscriber import SubscriberRecord, normalize_address

logger = logging.getLogger(__name__)


class MirrorLedger:
    """Destination-side ledger gated on a relayed commitment.

    Usage:
        mirror = MirrorLedger(accepted_asset="0xUSDC...")
        mirror.on_message(transfer_id, amount, asset, sender, domain, payload)
        mirror.replace_bulk(records)  # raises CommitmentMismatch on mismatch

    The inbound history is audit-only. It is unbounded unless
    inbound_history caps it, in which case the oldest entries fall off.
    """

    def __init__(
        self,
        accepted_asset: str,
        genesis_commitment: bytes = EMPTY_ROOT,
        ledger: Optional[SubscriberLedger] = None,
        inbound_history: Optional[int] = None,
    ) -> None:
        if inbound_history is not None and inbound_history < 1:
            raise ValueError("inbound_history must be at least 1")
        if len(genesis_commitment) != 32:
            raise ValueError("Genesis commitment must be 32 bytes")
        self._accepted_asset = normalize_address(accepted_asset)
        self._relayed_commitment = bytes(genesis_commitment)
        self._ledger = ledger if ledger is not None else SubscriberLedger()
        self._inbound: Deque[InboundMessage] = deque(maxlen=inbound_history)

    # ------------------------------------------------------------------
    # Inbound handler
    # ------------------------------------------------------------------

    def on_message(
        self,
        transfer_id: str,
        amount: int,
        asset: str,
        origin_sender: str,
        origin_domain: int,
        payload: bytes,
    ) -> bytes:
        """Handle an inbound cross-domain message. Returns the new relayed commitment.

        Rejects any asset other than the accepted one. Otherwise overwrites
        the relayed commitment unconditionally.
        """
        if not _same_address(asset, self._accepted_asset):
            logger.warning(f"Rejected message {transfer_id}: wrong asset {asset}")
            raise WrongAsset(expected=self._accepted_asset, actual=str(asset))

        commitment = decode_commitment(payload)
        self._relayed_commitment = commitment
        self._inbound.append(
            InboundMessage(
                transfer_id=transfer_id,
                amount=amount,
                asset=self._accepted_asset,
                origin_sender=origin_sender,
                origin_domain=origin_domain,
                payload=bytes(payload),
            )
        )
        logger.info(
            f"Message {transfer_id} from domain {origin_domain}: "
            f"relayed commitment set to 0x{commitment.hex()}"
        )
        return commitment

    # ------------------------------------------------------------------
    # Bulk replay
    # ------------------------------------------------------------------

    def replace_bulk(self, records: Iterable[SubscriberRecord]) -> bool:
        """Append a batch if it reproduces the relayed commitment."""
        return self._ledger.replace_bulk(records, self._relayed_commitment)

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    @property
    def accepted_asset(self) -> str:
        return self._accepted_asset

    @property
    def relayed_commitment(self) -> bytes:
        return self._relayed_commitment

    @property
    def ledger(self) -> SubscriberLedger:
        return self._ledger

    @property
    def commitment(self) -> bytes:
        return self._ledger.commitment

    @property
    def count(self) -> int:
        return self._ledger.count

    @property
    def inbound_messages(self) -> List[InboundMessage]:
        """Accepted inbound messages in arrival order, oldest dropped past the cap."""
        return list(self._inbound)

    @property
    def in_sync(self) -> bool:
        """Whether the local ledger reproduces the last relayed commitment."""
        return self._ledger.commitment == self._relayed_commitment


def _same_address(candidate: object, expected: str) -> bool:
    return isinstance(candidate, str) and candidate.lower() == expected.lower()
