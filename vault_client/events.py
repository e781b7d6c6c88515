"""Wallet notifications delivered to the session manager."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class AccountsChanged:
    """The set of authorized accounts changed; empty means locked/revoked."""

    accounts: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChainChanged:
    chain_id: int


WalletEvent = Union[AccountsChanged, ChainChanged]
