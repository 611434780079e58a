"""Cross-domain relay: asset and bridge contracts, in-memory channel, relay."""

from streamroot.bridge.assets import Asset, InMemoryAsset, InMemoryStreamingAsset, StreamingAsset
from streamroot.bridge.channel import InMemoryBridge, MessageReceiver, MessagingBridge, PendingMessage
from streamroot.bridge.relay import CommitmentRelay

__all__ = [
    "Asset",
    "CommitmentRelay",
    "InMemoryAsset",
    "InMemoryBridge",
    "InMemoryStreamingAsset",
    "MessageReceiver",
    "MessagingBridge",
    "PendingMessage",
    "StreamingAsset",
]
