"""Ledgers: source subscriber ledger and destination mirror."""

from streamroot.ledger.mirror import MirrorLedger
from streamroot.ledger.subscriber_ledger import SubscriberLedger

__all__ = ["MirrorLedger", "SubscriberLedger"]
