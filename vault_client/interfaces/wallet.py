"""Wallet provider protocol — account access, signing and notifications."""
import asyncio
from typing import Any, Protocol

from ..events import WalletEvent


class WalletProvider(Protocol):
    """Abstract interface for a wallet that holds and signs for accounts."""

    events: asyncio.Queue[WalletEvent]

    async def request_accounts(self) -> list[str]: ...

    async def chain_id(self) -> int: ...

    async def get_balance(self, address: str) -> int: ...

    async def call(self, to: str, data: str, sender: str | None = None) -> str: ...

    async def send_transaction(self, sender: str, to: str, data: str) -> str: ...

    async def wait_for_receipt(self, tx_hash: str) -> dict[str, Any]: ...

    async def watch(self) -> None: ...
