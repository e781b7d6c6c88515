"""EVM JSON-RPC wallet client with fallback support."""
from __future__ import annotations

import asyncio
import itertools
import logging
import ssl
from typing import Any

import aiohttp
import certifi
from eth_abi.exceptions import DecodingError
from web3 import Web3
from web3._utils.error_formatters_utils import raise_contract_logic_error_on_revert
from web3.exceptions import ContractLogicError

from ...config import NetworkConfig, WalletConfig
from ...events import AccountsChanged, ChainChanged, WalletEvent
from ...exceptions import (
    ExternalCallReverted,
    NetworkFailure,
    ProviderUnavailable,
    RpcError,
    UserRejected,
    VaultClientError,
)

logger = logging.getLogger(__name__)

USER_REJECTED_CODE = 4001
EXECUTION_ERROR_CODE = 3
METHOD_NOT_FOUND_CODES = (-32601, -32004)

REVERTED_PREFIX = "execution reverted: "


def _is_revert(code: Any, message: str, data: Any) -> bool:
    if code == EXECUTION_ERROR_CODE or "revert" in message.lower():
        return True
    return isinstance(data, str) and data.startswith("0x") and len(data) >= 10


def map_rpc_error(error: dict[str, Any]) -> VaultClientError:
    """Translate a JSON-RPC error object into a client error kind."""
    code = error.get("code")
    message = str(error.get("message") or "")
    data = error.get("data")
    if isinstance(data, dict):
        # hardhat nests the revert payload one level down
        data = data.get("data")

    if code == USER_REJECTED_CODE:
        return UserRejected(message or "User rejected the request")

    if _is_revert(code, message, data):
        try:
            raise_contract_logic_error_on_revert(
                {"jsonrpc": "2.0", "id": 0, "error": {**error, "data": data}}
            )
        except ContractLogicError as e:
            reason = e.message or "execution reverted"
            return ExternalCallReverted(reason.removeprefix(REVERTED_PREFIX))
        except (DecodingError, KeyError) as e:
            logger.debug("Undecodable revert data %r: %s", data, e)
            return ExternalCallReverted(message or "execution reverted")
        return ExternalCallReverted(message or "execution reverted")

    return RpcError(message or f"RPC error {code}", code)


class EvmClient:
    """Wallet provider backed by an EVM JSON-RPC endpoint with unlocked accounts.

    Read calls fall back across the configured endpoints. Transaction
    submission goes to the current endpoint only, so a lost response never
    leads to a second submission.
    """

    def __init__(
        self, config: NetworkConfig, wallet: WalletConfig | None = None
    ) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.expected_chain_id = config.chain_id
        self.poll_interval = (wallet or WalletConfig()).poll_interval_seconds
        self.current_rpc_index = 0
        self.events: asyncio.Queue[WalletEvent] = asyncio.Queue()
        self._ids = itertools.count(1)

    async def rpc_call(
        self, method: str, params: list[Any] | None = None, fallback: bool = True
    ) -> Any:
        """Make RPC call, falling back to alternative endpoints on transport errors."""
        if not self.endpoints:
            raise ProviderUnavailable()

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        attempts = len(self.endpoints) if fallback else 1
        last_error: Exception | None = None
        for attempt in range(attempts):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json(content_type=None)
                if not isinstance(result, dict):
                    raise NetworkFailure(f"Malformed JSON-RPC response: {result!r}")
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < attempts - 1:
                    logger.info("Trying next endpoint...")
                continue

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index

            if result.get("error"):
                raise map_rpc_error(result["error"])
            return result.get("result")

        raise NetworkFailure(f"All RPC endpoints failed. Last error: {last_error}")

    # ------------------------------------------------------------------
    # Account access
    # ------------------------------------------------------------------

    async def request_accounts(self) -> list[str]:
        """Ask for account access; plain nodes only answer eth_accounts."""
        try:
            accounts = await self.rpc_call("eth_requestAccounts")
        except RpcError as e:
            if e.code not in METHOD_NOT_FOUND_CODES:
                raise
            logger.debug("eth_requestAccounts unsupported, using eth_accounts")
            accounts = await self.rpc_call("eth_accounts")
        return [Web3.to_checksum_address(a) for a in accounts or []]

    async def accounts(self) -> list[str]:
        accounts = await self.rpc_call("eth_accounts")
        return [Web3.to_checksum_address(a) for a in accounts or []]

    async def chain_id(self) -> int:
        return int(await self.rpc_call("eth_chainId"), 16)

    async def get_balance(self, address: str) -> int:
        return int(await self.rpc_call("eth_getBalance", [address, "latest"]), 16)

    # ------------------------------------------------------------------
    # Calls and transactions
    # ------------------------------------------------------------------

    async def call(self, to: str, data: str, sender: str | None = None) -> str:
        """Execute a read-only contract call and return the raw hex result."""
        tx: dict[str, Any] = {"to": to, "data": data}
        if sender:
            tx["from"] = sender
        return await self.rpc_call("eth_call", [tx, "latest"])

    async def send_transaction(self, sender: str, to: str, data: str) -> str:
        """Submit a transaction for the wallet to sign; returns the tx hash."""
        tx = {"from": sender, "to": to, "data": data}
        tx_hash = await self.rpc_call("eth_sendTransaction", [tx], fallback=False)
        logger.info("Submitted transaction %s", tx_hash)
        return tx_hash

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        return await self.rpc_call("eth_getTransactionReceipt", [tx_hash])

    async def wait_for_receipt(self, tx_hash: str) -> dict[str, Any]:
        """Poll until the transaction is mined. There is no timeout."""
        while True:
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt:
                break
            await asyncio.sleep(self.poll_interval)

        if int(str(receipt.get("status", "0x1")), 16) == 0:
            raise ExternalCallReverted(f"transaction {tx_hash} reverted")
        logger.info(
            "Transaction %s confirmed in block %s",
            tx_hash,
            receipt.get("blockNumber"),
        )
        return receipt

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def watch(self) -> None:
        """Poll accounts and chain id, publishing changes on ``self.events``."""
        last_accounts: tuple[str, ...] | None = None
        last_chain: int | None = None

        while True:
            try:
                accounts = tuple(await self.accounts())
                chain = await self.chain_id()
            except VaultClientError as e:
                logger.warning("Wallet poll failed: %s", e)
            else:
                if last_accounts is not None and accounts != last_accounts:
                    await self.events.put(AccountsChanged(accounts))
                if last_chain is not None and chain != last_chain:
                    await self.events.put(ChainChanged(chain))
                last_accounts, last_chain = accounts, chain
            await asyncio.sleep(self.poll_interval)
