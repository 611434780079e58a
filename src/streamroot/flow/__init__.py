"""Flow events: adapter from streaming-protocol callbacks to ledger appends."""

from streamroot.flow.adapter import FlowEventAdapter
from streamroot.flow.agreement import FlowCallbacks, FlowRateSource, InMemoryFlowAgreement

__all__ = ["FlowCallbacks", "FlowEventAdapter", "FlowRateSource", "InMemoryFlowAgreement"]
