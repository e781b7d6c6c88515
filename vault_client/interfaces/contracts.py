"""Contract protocols — the three call surfaces the client consumes."""
from typing import Protocol

from ..contracts.transaction import PendingTransaction


class Ledger(Protocol):
    """Lending vault holding per-account deposits and debt."""

    @property
    def address(self) -> str: ...

    async def deposit(self, amount: int) -> PendingTransaction: ...

    async def withdraw(self, amount: int) -> PendingTransaction: ...

    async def borrow(self, amount: int) -> PendingTransaction: ...

    async def repay(self, amount: int) -> PendingTransaction: ...

    async def balances(self, account: str) -> int: ...

    async def borrow_balances(self, account: str) -> int: ...

    async def get_account_health(self, account: str) -> int: ...

    async def total_deposits(self) -> int: ...

    async def total_borrows(self) -> int: ...

    async def collateral_factor(self) -> int: ...

    async def interest_rate(self) -> int: ...


class Token(Protocol):
    """ERC-20 collateral/debt token."""

    @property
    def address(self) -> str: ...

    async def balance_of(self, account: str) -> int: ...

    async def allowance(self, owner: str, spender: str) -> int: ...

    async def approve(self, spender: str, amount: int) -> PendingTransaction: ...


class ControllerRegistry(Protocol):
    """EVC-style registry gating which vault may control an account."""

    async def is_controller_enabled(self, account: str, controller: str) -> bool: ...

    async def enable_controller(
        self, account: str, controller: str
    ) -> PendingTransaction: ...

    async def disable_controller(
        self, account: str, controller: str
    ) -> PendingTransaction: ...
