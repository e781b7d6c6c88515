"""Integration tests for contract bindings over a mocked wallet provider."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import encode

from conftest import ACCOUNT, EVC, OTHER_ACCOUNT, TOKEN, VAULT
from vault_client.config import ContractsConfig
from vault_client.contracts import (
    ContractBindings,
    PendingTransaction,
    build_bindings,
)
from vault_client.contracts.abi import EVC_INTERFACE, TOKEN_INTERFACE, VAULT_INTERFACE
from vault_client.exceptions import ExternalCallReverted


def _provider(call_result: bytes = b"", tx_hash: str = "0xfeed") -> MagicMock:
    provider = MagicMock()
    provider.call = AsyncMock(return_value="0x" + call_result.hex())
    provider.send_transaction = AsyncMock(return_value=tx_hash)
    provider.wait_for_receipt = AsyncMock(return_value={"status": "0x1"})
    return provider


def _bindings(provider: MagicMock, signer: str = ACCOUNT.lower()) -> ContractBindings:
    return build_bindings(
        provider, signer, ContractsConfig(vault=VAULT, token=TOKEN, evc=EVC)
    )


class TestBuildBindings:
    def test_three_surfaces_bound_to_signer(self) -> None:
        bindings = _bindings(_provider())
        assert bindings.signer == ACCOUNT
        assert bindings.ledger.address == VAULT
        assert bindings.token.address == TOKEN
        assert bindings.controller_registry.address == EVC
        assert bindings.ledger.signer == ACCOUNT

    def test_no_io_on_construction(self) -> None:
        provider = _provider()
        _bindings(provider)
        provider.call.assert_not_called()
        provider.send_transaction.assert_not_called()

    def test_rebuilt_for_new_signer(self) -> None:
        provider = _provider()
        first = _bindings(provider, ACCOUNT)
        second = _bindings(provider, OTHER_ACCOUNT)
        assert first.signer != second.signer
        assert second.token.signer == OTHER_ACCOUNT


class TestReads:
    @pytest.mark.asyncio
    async def test_balance_of(self) -> None:
        provider = _provider(encode(["uint256"], [5 * 10**18]))
        bindings = _bindings(provider)

        assert await bindings.token.balance_of(ACCOUNT) == 5 * 10**18

        to, data = provider.call.call_args.args
        assert to == TOKEN
        assert data == TOKEN_INTERFACE.encode_call("balanceOf", ACCOUNT)
        assert provider.call.call_args.kwargs["sender"] == ACCOUNT

    @pytest.mark.asyncio
    async def test_allowance_encodes_owner_and_spender(self) -> None:
        provider = _provider(encode(["uint256"], [500]))
        bindings = _bindings(provider)

        assert await bindings.token.allowance(ACCOUNT, VAULT) == 500
        assert provider.call.call_args.args[1] == TOKEN_INTERFACE.encode_call(
            "allowance", ACCOUNT, VAULT
        )

    @pytest.mark.asyncio
    async def test_vault_health(self) -> None:
        provider = _provider(encode(["uint256"], [15000]))
        bindings = _bindings(provider)

        assert await bindings.ledger.get_account_health(ACCOUNT) == 15000
        assert provider.call.call_args.args[0] == VAULT

    @pytest.mark.asyncio
    async def test_is_controller_enabled(self) -> None:
        provider = _provider(encode(["bool"], [True]))
        bindings = _bindings(provider)

        assert await bindings.controller_registry.is_controller_enabled(ACCOUNT, VAULT) is True
        assert provider.call.call_args.args == (
            EVC,
            EVC_INTERFACE.encode_call("isControllerEnabled", ACCOUNT, VAULT),
        )

    @pytest.mark.asyncio
    async def test_token_metadata(self) -> None:
        provider = _provider()
        provider.call = AsyncMock(
            side_effect=[
                "0x" + encode(["string"], ["Mock Token"]).hex(),
                "0x" + encode(["string"], ["MOCK"]).hex(),
                "0x" + encode(["uint8"], [18]).hex(),
            ]
        )
        bindings = _bindings(provider)

        assert await bindings.token.name() == "Mock Token"
        assert await bindings.token.symbol() == "MOCK"
        assert await bindings.token.decimals() == 18

    @pytest.mark.asyncio
    async def test_empty_return_data_is_a_revert(self) -> None:
        provider = _provider(b"")
        bindings = _bindings(provider)

        with pytest.raises(ExternalCallReverted, match="malformed data"):
            await bindings.ledger.total_deposits()


class TestWrites:
    @pytest.mark.asyncio
    async def test_deposit_returns_pending_transaction(self) -> None:
        provider = _provider(tx_hash="0xabc")
        bindings = _bindings(provider)

        tx = await bindings.ledger.deposit(100)

        assert isinstance(tx, PendingTransaction)
        assert tx.tx_hash == "0xabc"
        provider.send_transaction.assert_awaited_once_with(
            ACCOUNT, VAULT, VAULT_INTERFACE.encode_call("deposit", 100)
        )

    @pytest.mark.asyncio
    async def test_wait_delegates_to_provider(self) -> None:
        provider = _provider(tx_hash="0xabc")
        bindings = _bindings(provider)

        tx = await bindings.token.approve(VAULT, 100)
        receipt = await tx.wait()

        assert receipt == {"status": "0x1"}
        provider.wait_for_receipt.assert_awaited_once_with("0xabc")

    @pytest.mark.asyncio
    async def test_enable_controller(self) -> None:
        provider = _provider()
        bindings = _bindings(provider)

        await bindings.controller_registry.enable_controller(ACCOUNT, VAULT)

        provider.send_transaction.assert_awaited_once_with(
            ACCOUNT, EVC, EVC_INTERFACE.encode_call("enableController", ACCOUNT, VAULT)
        )

    @pytest.mark.asyncio
    async def test_mint(self) -> None:
        provider = _provider()
        bindings = _bindings(provider)

        await bindings.token.mint(ACCOUNT, 1000)

        provider.send_transaction.assert_awaited_once_with(
            ACCOUNT, TOKEN, TOKEN_INTERFACE.encode_call("mint", ACCOUNT, 1000)
        )
