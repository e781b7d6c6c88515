"""Handle for a submitted transaction awaiting confirmation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..interfaces.wallet import WalletProvider


@dataclass(frozen=True)
class PendingTransaction:
    provider: WalletProvider
    tx_hash: str
    description: str = ""

    async def wait(self) -> dict[str, Any]:
        """Block until the transaction is mined; raises if it reverted."""
        return await self.provider.wait_for_receipt(self.tx_hash)
