"""Error taxonomy for ledger, relay and mirror operations.

All errors are local and synchronous: they surface to the immediate caller
and are never retried internally. A failing operation leaves ledger and
commitment state exactly as it was before the call.
"""

from __future__ import annotations


class StreamRootError(Exception):
    """Base class for all streamroot failures."""


class InvalidRecord(StreamRootError, ValueError):
    """A subscriber record has a malformed identity or out-of-range rate."""


class WrongAsset(StreamRootError, ValueError):
    """An inbound message, flow event or relay used an unconfigured asset."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Wrong asset: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class MalformedPayload(StreamRootError, ValueError):
    """An inbound payload cannot be decoded as exactly one commitment."""


class CommitmentMismatch(StreamRootError):
    """A bulk replay's recomputed root differs from the relayed commitment."""

    def __init__(self, expected: bytes, actual: bytes) -> None:
        super().__init__(
            f"Commitment mismatch: relayed 0x{expected.hex()}, "
            f"recomputed 0x{actual.hex()}"
        )
        self.expected = expected
        self.actual = actual


class BridgeRejected(StreamRootError, RuntimeError):
    """The messaging bridge refused a send request. Raised by bridges."""


class RelayRejected(StreamRootError, RuntimeError):
    """A relay failed as a whole; no funds left custody."""
