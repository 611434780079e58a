"""Data models: subscriber records and relay value objects."""

from streamroot.models.relay import InboundMessage, RelayReceipt
from streamroot.models.subscriber import (
    INT96_MAX,
    INT96_MIN,
    SubscriberRecord,
    normalize_address,
)

__all__ = [
    "INT96_MAX",
    "INT96_MIN",
    "InboundMessage",
    "RelayReceipt",
    "SubscriberRecord",
    "normalize_address",
]
