"""Flow-rate source contract and an in-memory streaming agreement.

The adapter never trusts rates carried in events. It asks a FlowRateSource
for the live rate of a (sender, receiver) stream. InMemoryFlowAgreement is
a reference implementation of the external protocol: it stores rates and
fires the adapter's lifecycle callbacks after every change.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol, Tuple, runtime_checkable

from streamroot.models.subscriber import normalize_address


@runtime_checkable
class FlowRateSource(Protocol):
    """Anything that can report the current rate of a stream."""

    def get_flow_rate(self, asset: str, sender: str, receiver: str) -> int:
        """Current rate from sender to receiver, zero if no stream exists."""
        ...


@runtime_checkable
class FlowCallbacks(Protocol):
    """The app-side callback surface an agreement notifies."""

    def on_flow_created(self, asset: str, counterparty: str, context: Any = None) -> Any: ...

    def on_flow_updated(self, asset: str, counterparty: str, context: Any = None) -> Any: ...

    def on_flow_deleted(self, asset: str, counterparty: str, context: Any = None) -> Any: ...


class InMemoryFlowAgreement:
    """Constant-flow agreement for a single streaming asset.

    Usage:
        agreement = InMemoryFlowAgreement(streaming_asset)
        agreement.register_app(app_address, adapter)
        agreement.create_flow("0xalice...", app_address, 5)
    """

    def __init__(self, asset: str) -> None:
        self._asset = normalize_address(asset)
        self._rates: Dict[Tuple[str, str], int] = {}
        self._apps: Dict[str, FlowCallbacks] = {}

    @property
    def asset(self) -> str:
        return self._asset

    def register_app(self, address: str, callbacks: FlowCallbacks) -> None:
        self._apps[normalize_address(address)] = callbacks

    def get_flow_rate(self, asset: str, sender: str, receiver: str) -> int:
        if normalize_address(asset) != self._asset:
            return 0
        return self._rates.get((normalize_address(sender), normalize_address(receiver)), 0)

    def create_flow(self, sender: str, receiver: str, rate: int, context: Any = None) -> Any:
        key = self._key(sender, receiver)
        if key in self._rates:
            raise ValueError(f"Flow already exists: {key[0]} -> {key[1]}")
        if rate <= 0:
            raise ValueError("New flows need a positive rate")
        self._rates[key] = rate
        return self._notify(key, "on_flow_created", context)

    def update_flow(self, sender: str, receiver: str, rate: int, context: Any = None) -> Any:
        key = self._key(sender, receiver)
        if key not in self._rates:
            raise ValueError(f"No flow to update: {key[0]} -> {key[1]}")
        if rate <= 0:
            raise ValueError("Use delete_flow to stop a stream")
        self._rates[key] = rate
        return self._notify(key, "on_flow_updated", context)

    def delete_flow(self, sender: str, receiver: str, context: Any = None) -> Any:
        key = self._key(sender, receiver)
        if key not in self._rates:
            raise ValueError(f"No flow to delete: {key[0]} -> {key[1]}")
        del self._rates[key]
        return self._notify(key, "on_flow_deleted", context)

    def _key(self, sender: str, receiver: str) -> Tuple[str, str]:
        return normalize_address(sender), normalize_address(receiver)

    def _notify(self, key: Tuple[str, str], hook: str, context: Any) -> Any:
        sender, receiver = key
        app = self._apps.get(receiver)
        if app is None:
            return context
        return getattr(app, hook)(self._asset, sender, context)
