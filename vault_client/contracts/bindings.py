"""Typed call surfaces for the vault, token and controller registry."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from eth_abi.exceptions import DecodingError
from web3 import Web3

from ..config import ContractsConfig
from ..exceptions import ExternalCallReverted
from .abi import EVC_INTERFACE, TOKEN_INTERFACE, VAULT_INTERFACE, ContractInterface
from .transaction import PendingTransaction

if TYPE_CHECKING:
    from ..interfaces.wallet import WalletProvider

logger = logging.getLogger(__name__)


def _addr(address: str) -> str:
    return Web3.to_checksum_address(address)


class _BoundContract:
    """Contract at a fixed address, signing as a fixed account."""

    def __init__(
        self,
        provider: WalletProvider,
        signer: str,
        address: str,
        interface: ContractInterface,
    ) -> None:
        self._provider = provider
        self._signer = _addr(signer)
        self._address = _addr(address)
        self._interface = interface

    @property
    def address(self) -> str:
        return self._address

    @property
    def signer(self) -> str:
        return self._signer

    async def _read(self, name: str, *args: Any) -> Any:
        interface = self._interface
        data = await self._provider.call(
            self._address, interface.encode_call(name, *args), sender=self._signer
        )
        try:
            return interface.decode_result(name, data)
        except DecodingError as e:
            raise ExternalCallReverted(f"{name} returned malformed data: {data!r}") from e

    async def _write(self, name: str, *args: Any) -> PendingTransaction:
        logger.debug("Sending %s to %s as %s", name, self._address, self._signer)
        tx_hash = await self._provider.send_transaction(
            self._signer, self._address, self._interface.encode_call(name, *args)
        )
        return PendingTransaction(self._provider, tx_hash, name)


class VaultContract(_BoundContract):
    def __init__(self, provider: WalletProvider, signer: str, address: str) -> None:
        super().__init__(provider, signer, address, VAULT_INTERFACE)

    async def deposit(self, amount: int) -> PendingTransaction:
        return await self._write("deposit", amount)

    async def withdraw(self, amount: int) -> PendingTransaction:
        return await self._write("withdraw", amount)

    async def borrow(self, amount: int) -> PendingTransaction:
        return await self._write("borrow", amount)

    async def repay(self, amount: int) -> PendingTransaction:
        return await self._write("repay", amount)

    async def balances(self, account: str) -> int:
        return await self._read("balances", _addr(account))

    async def borrow_balances(self, account: str) -> int:
        return await self._read("borrowBalances", _addr(account))

    async def get_account_health(self, account: str) -> int:
        return await self._read("getAccountHealth", _addr(account))

    async def total_deposits(self) -> int:
        return await self._read("totalDeposits")

    async def total_borrows(self) -> int:
        return await self._read("totalBorrows")

    async def collateral_factor(self) -> int:
        return await self._read("collateralFactor")

    async def interest_rate(self) -> int:
        return await self._read("interestRate")


class TokenContract(_BoundContract):
    def __init__(self, provider: WalletProvider, signer: str, address: str) -> None:
        super().__init__(provider, signer, address, TOKEN_INTERFACE)

    async def balance_of(self, account: str) -> int:
        return await self._read("balanceOf", _addr(account))

    async def allowance(self, owner: str, spender: str) -> int:
        return await self._read("allowance", _addr(owner), _addr(spender))

    async def approve(self, spender: str, amount: int) -> PendingTransaction:
        return await self._write("approve", _addr(spender), amount)

    async def mint(self, to: str, amount: int) -> PendingTransaction:
        return await self._write("mint", _addr(to), amount)

    async def name(self) -> str:
        return await self._read("name")

    async def symbol(self) -> str:
        return await self._read("symbol")

    async def decimals(self) -> int:
        return await self._read("decimals")


class ControllerRegistryContract(_BoundContract):
    def __init__(self, provider: WalletProvider, signer: str, address: str) -> None:
        super().__init__(provider, signer, address, EVC_INTERFACE)

    async def is_controller_enabled(self, account: str, controller: str) -> bool:
        return await self._read("isControllerEnabled", _addr(account), _addr(controller))

    async def enable_controller(self, account: str, controller: str) -> PendingTransaction:
        return await self._write("enableController", _addr(account), _addr(controller))

    async def disable_controller(self, account: str, controller: str) -> PendingTransaction:
        return await self._write("disableController", _addr(account), _addr(controller))


@dataclass(frozen=True)
class ContractBindings:
    """The three call surfaces for one signing identity."""

    signer: str
    ledger: VaultContract
    token: TokenContract
    controller_registry: ControllerRegistryContract


def build_bindings(
    provider: WalletProvider, signer: str, contracts: ContractsConfig
) -> ContractBindings:
    """Bind the vault, token and controller registry to ``signer``. No I/O."""
    return ContractBindings(
        signer=_addr(signer),
        ledger=VaultContract(provider, signer, contracts.vault),
        token=TokenContract(provider, signer, contracts.token),
        controller_registry=ControllerRegistryContract(provider, signer, contracts.evc),
    )
