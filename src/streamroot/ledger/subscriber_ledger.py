"""Subscriber ledger: append-only record log with a derived Merkle commitment.

The ledger is the data source for the cross-domain commitment. Records are
appended, never modified, reordered or deleted. Insertion order is leaf
order in the commitment tree.

Invariant: commitment == merkle_root(leaves(records)) after every mutating
call returns. The tree is rebuilt from scratch on every mutation (O(N)
per append); there is no incremental path cache.

The same class backs both sides. The mirror side adds gated bulk replay
via replace_bulk().
"""

from __future__ import annotations

import logging
from typing import Iterable

from streamroot.crypto.encoding import leaf_hash
from streamroot.crypto.merkle import EMPTY_ROOT, merkle_root
from streamroot.errors import CommitmentMismatch, InvalidRecord
from streamroot.models.subscriber import SubscriberRecord

logger = logging.getLogger(__name__)


class SubscriberLedger:
    """In-memory append-only ledger of subscriber records.

    Usage:
        ledger = SubscriberLedger()
        ledger.append(SubscriberRecord("0xabc...", 5))
        root = ledger.commitment

        # Mirror side: accept a batch only if it reproduces a known root
        ledger.replace_bulk(records, expected_root)
    """

    def __init__(self) -> None:
        self._records: list[SubscriberRecord] = []
        self._leaves: list[bytes] = []
        self._commitment: bytes = EMPTY_ROOT
        self._observed_leaves: set[bytes] = set()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def append(self, record: SubscriberRecord) -> bytes:
        """Append one record and recompute the commitment. Returns the new root.

        No deduplication: a repeated identity is a new event in the log.
        """
        _require_record(record)
        leaf = leaf_hash(record)
        leaves = self._leaves + [leaf]
        root = merkle_root(leaves)

        self._records.append(record)
        self._leaves = leaves
        self._commitment = root
        self._observed_leaves.add(leaf)
        logger.info(
            f"Appended {record.identity} rate={record.flow_rate}; "
            f"ledger size {len(self._records)}, root 0x{root.hex()}"
        )
        return root

    def replace_bulk(self, records: Iterable[SubscriberRecord], expected_root: bytes) -> bool:
        """Append a whole batch only if the resulting root equals expected_root.

        All-or-nothing: on mismatch, raises CommitmentMismatch and the
        ledger, commitment and observed leaves are exactly as before.
        """
        batch = list(records)
        for record in batch:
            _require_record(record)

        batch_leaves = [leaf_hash(r) for r in batch]
        leaves = self._leaves + batch_leaves
        root = merkle_root(leaves) if leaves else EMPTY_ROOT
        logger.debug(f"Recomputed root over {len(leaves)} leaves: 0x{root.hex()}")

        if root != expected_root:
            logger.warning(
                f"Rejected replay of {len(batch)} records: "
                f"root 0x{root.hex()} != expected 0x{expected_root.hex()}"
            )
            raise CommitmentMismatch(expected=expected_root, actual=root)

        self._records.extend(batch)
        self._leaves = leaves
        self._commitment = root
        self._observed_leaves.update(batch_leaves)
        logger.info(f"Accepted replay of {len(batch)} records; ledger size {len(self._records)}")
        return True

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    @property
    def commitment(self) -> bytes:
        """Merkle root over all records, or EMPTY_ROOT for an empty ledger."""
        return self._commitment

    @property
    def commitment_hex(self) -> str:
        return f"0x{self._commitment.hex()}"

    @property
    def count(self) -> int:
        return len(self._records)

    @property
    def records(self) -> tuple[SubscriberRecord, ...]:
        return tuple(self._records)

    def leaf_hashes(self) -> list[bytes]:
        """Leaf hashes in ledger order."""
        return list(self._leaves)

    @property
    def observed_leaves(self) -> frozenset[bytes]:
        """Every leaf hash that has been part of a committed tree.

        Audit index only. No ledger operation consults it.
        """
        return frozenset(self._observed_leaves)

    def current_rates(self) -> dict[str, int]:
        """Latest rate per identity, derived from the event log.

        This collapsed view is never hashed; the commitment covers the
        full history.
        """
        rates: dict[str, int] = {}
        for record in self._records:
            rates[record.identity] = record.flow_rate
        return rates

    def active_subscribers(self) -> list[str]:
        """Identities whose latest record has a non-zero rate."""
        return [identity for identity, rate in self.current_rates().items() if rate != 0]


def _require_record(record: object) -> None:
    if not isinstance(record, SubscriberRecord):
        raise InvalidRecord(f"Expected SubscriberRecord, got {type(record).__name__}")
