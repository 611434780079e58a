"""Asset contracts used by the relay, with in-memory implementations.

The relay moves two kinds of value: a streaming asset that accrues balance
continuously, and the plain transferable asset it downgrades into. Only the
plain asset can cross the bridge.
"""

from __future__ import annotations

from typing import Dict, Protocol, Tuple, runtime_checkable

from streamroot.models.subscriber import normalize_address


@runtime_checkable
class Asset(Protocol):
    """Transferable asset with allowance-based pulls (ERC-20 shape)."""

    @property
    def address(self) -> str: ...

    def balance_of(self, account: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def approve(self, owner: str, spender: str, amount: int) -> None: ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None: ...


@runtime_checkable
class StreamingAsset(Protocol):
    """Streaming wrapper around a transferable asset."""

    @property
    def address(self) -> str: ...

    @property
    def underlying(self) -> str:
        """Address of the asset this one downgrades into."""
        ...

    def balance_of(self, account: str) -> int: ...

    def downgrade(self, account: str, amount: int) -> None:
        """Convert amount of account's streaming balance into the underlying."""
        ...


class InMemoryAsset:
    """Minimal ERC-20 style ledger of balances and allowances."""

    def __init__(self, address: str, symbol: str = "TOKEN") -> None:
        self._address = normalize_address(address)
        self.symbol = symbol
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}

    @property
    def address(self) -> str:
        return self._address

    def mint(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot mint a negative amount")
        account = normalize_address(account)
        self._balances[account] = self._balances.get(account, 0) + amount

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Allowance cannot be negative")
        self._allowances[(normalize_address(owner), normalize_address(spender))] = amount

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        owner = normalize_address(owner)
        spender = normalize_address(spender)
        to = normalize_address(to)
        allowed = self.allowance(owner, spender)
        if amount > allowed:
            raise ValueError(f"Allowance exceeded: {amount} > {allowed}")
        if amount > self.balance_of(owner):
            raise ValueError(f"Insufficient balance: {amount} > {self.balance_of(owner)}")
        self._allowances[(owner, spender)] = allowed - amount
        self._balances[owner] = self.balance_of(owner) - amount
        self._balances[to] = self._balances.get(to, 0) + amount


class InMemoryStreamingAsset:
    """Streaming balance that downgrades 1:1 into an InMemoryAsset."""

    def __init__(self, address: str, underlying: InMemoryAsset) -> None:
        self._address = normalize_address(address)
        self._underlying = underlying
        self._balances: Dict[str, int] = {}

    @property
    def address(self) -> str:
        return self._address

    @property
    def underlying(self) -> str:
        return self._underlying.address

    def accrue(self, account: str, amount: int) -> None:
        """Credit streamed-in balance to account."""
        if amount < 0:
            raise ValueError("Cannot accrue a negative amount")
        account = normalize_address(account)
        self._balances[account] = self._balances.get(account, 0) + amount

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def downgrade(self, account: str, amount: int) -> None:
        account = normalize_address(account)
        if amount < 0 or amount > self.balance_of(account):
            raise ValueError(f"Cannot downgrade {amount}; balance {self.balance_of(account)}")
        self._balances[account] = self.balance_of(account) - amount
        self._underlying.mint(account, amount)
