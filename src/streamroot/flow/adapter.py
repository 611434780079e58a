"""Flow-event adapter: turns stream lifecycle callbacks into ledger appends.

The continuous-payment protocol notifies the app when a stream to it is
created, updated or deleted. Each callback becomes one append:

    created → append(counterparty, current rate)
    updated → append(counterparty, current rate)
    deleted → append(counterparty, 0)

The rate is re-queried from the flow-rate source at call time. Any rate
embedded in the event is ignored. There is no removal path.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from streamroot.errors import WrongAsset
from streamroot.flow.agreement import FlowRateSource
from streamroot.ledger.subscriber_ledger import SubscriberLedger
from streamroot.models.subscriber import SubscriberRecord, normalize_address

logger = logging.getLogger(__name__)


class FlowEventAdapter:
    """Callback surface for the external streaming protocol.

    Usage:
        adapter = FlowEventAdapter(ledger, rates, streaming_asset, app_address)
        ctx = adapter.on_flow_created(streaming_asset, "0xsender...", ctx)
    """

    def __init__(
        self,
        ledger: SubscriberLedger,
        rate_source: FlowRateSource,
        streaming_asset: str,
        app_address: str,
    ) -> None:
        self._ledger = ledger
        self._rate_source = rate_source
        self._streaming_asset = normalize_address(streaming_asset)
        self._app_address = normalize_address(app_address)

    @property
    def ledger(self) -> SubscriberLedger:
        return self._ledger

    @property
    def app_address(self) -> str:
        return self._app_address

    def on_flow_created(self, asset: str, counterparty: str, context: Any = None) -> Any:
        self._record_current_rate(asset, counterparty, "created")
        return context

    def on_flow_updated(self, asset: str, counterparty: str, context: Any = None) -> Any:
        self._record_current_rate(asset, counterparty, "updated")
        return context

    def on_flow_deleted(self, asset: str, counterparty: str, context: Any = None) -> Any:
        """Termination is an appended zero-rate record."""
        self._require_streaming_asset(asset)
        self._append(counterparty, 0, "deleted")
        return context

    def _record_current_rate(self, asset: str, counterparty: str, label: str) -> None:
        self._require_streaming_asset(asset)
        rate = self._rate_source.get_flow_rate(
            self._streaming_asset, normalize_address(counterparty), self._app_address
        )
        self._append(counterparty, rate, label)

    def _append(self, counterparty: str, rate: int, label: str) -> None:
        record = SubscriberRecord(identity=counterparty, flow_rate=rate)
        logger.debug(f"Flow {label} for {record.identity}: rate={rate}")
        self._ledger.append(record)

    def _require_streaming_asset(self, asset: Optional[str]) -> None:
        if not isinstance(asset, str) or asset.lower() != self._streaming_asset.lower():
            logger.warning(f"Ignoring flow event for unexpected asset {asset}")
            raise WrongAsset(expected=self._streaming_asset, actual=str(asset))
