"""Shared test fixtures and fake on-chain collaborators."""
from __future__ import annotations

import asyncio
import textwrap
from pathlib import Path
from typing import Any

import pytest

from vault_client.config import (
    AppConfig,
    ContractsConfig,
    HealthConfig,
    NetworkConfig,
    SyncConfig,
    WalletConfig,
)
from vault_client.contracts import ContractBindings
from vault_client.models import AppState, PositionSnapshot, Session

VAULT = "0x1111111111111111111111111111111111111111"
TOKEN = "0x2222222222222222222222222222222222222222"
EVC = "0x3333333333333333333333333333333333333333"
ACCOUNT = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
OTHER_ACCOUNT = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"

ONE = 10**18


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_contracts_config() -> ContractsConfig:
    return ContractsConfig(vault=VAULT, token=TOKEN, evc=EVC)


@pytest.fixture()
def sample_network_config() -> NetworkConfig:
    return NetworkConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
        chain_id=31337,
    )


@pytest.fixture()
def sample_app_config(
    sample_network_config: NetworkConfig,
    sample_contracts_config: ContractsConfig,
) -> AppConfig:
    return AppConfig(
        network=sample_network_config,
        contracts=sample_contracts_config,
        sync=SyncConfig(max_retries=2, backoff_base=0.0, refresh_interval_seconds=0.01),
        wallet=WalletConfig(poll_interval_seconds=0.01),
        health=HealthConfig(),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent(f"""\
    network:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
      chain_id: 31337
    contracts:
      vault: "{VAULT}"
      token: "{TOKEN}"
      evc: "{EVC}"
    sync:
      max_retries: 4
      backoff_base: 0.25
    wallet:
      poll_interval_seconds: 2
    health:
      healthy_ratio: 1.5
      warning_ratio: 1.1
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Fake chain
# ---------------------------------------------------------------------------


class FakeTx:
    def __init__(self, chain: FakeChain, name: str, effect: Any = None) -> None:
        self.chain = chain
        self.name = name
        self.effect = effect

    async def wait(self) -> dict[str, Any]:
        await asyncio.sleep(0)
        self.chain.log.append(("confirmed", self.name))
        error = self.chain.fail_confirm.get(self.name)
        if error is not None:
            raise error
        if self.effect is not None:
            self.effect()
        return {"status": "0x1"}


class FakeChain:
    """In-memory vault, token and controller registry for one account.

    ``log`` records every state-changing submission and confirmation in order.
    """

    def __init__(
        self,
        *,
        token_balance: int = 1000 * ONE,
        allowance: int = 0,
        controller_enabled: bool = False,
        deposit: int = 0,
        borrow: int = 0,
        health: int = 0,
    ) -> None:
        self.token_balance = token_balance
        self.allowance_value = allowance
        self.controller_enabled = controller_enabled
        self.deposit_value = deposit
        self.borrow_value = borrow
        self.health = health
        self.log: list[tuple[str, Any]] = []
        self.fail_submit: dict[str, Exception] = {}
        self.fail_confirm: dict[str, Exception] = {}
        self.fail_reads: list[Exception] = []
        self.read_batches = 0

    def submit(self, name: str, arg: Any, effect: Any = None) -> FakeTx:
        self.log.append((name, arg))
        error = self.fail_submit.get(name)
        if error is not None:
            raise error
        return FakeTx(self, name, effect)

    def writes(self) -> list[tuple[str, Any]]:
        return [entry for entry in self.log if entry[0] != "confirmed"]

    def read(self, value: Any) -> Any:
        if self.fail_reads:
            raise self.fail_reads[0]
        return value


class FakeLedger:
    address = VAULT

    def __init__(self, chain: FakeChain) -> None:
        self.chain = chain

    async def deposit(self, amount: int) -> FakeTx:
        c = self.chain

        def effect() -> None:
            c.allowance_value -= amount
            c.token_balance -= amount
            c.deposit_value += amount

        return c.submit("deposit", amount, effect)

    async def withdraw(self, amount: int) -> FakeTx:
        c = self.chain

        def effect() -> None:
            c.token_balance += amount
            c.deposit_value -= amount

        return c.submit("withdraw", amount, effect)

    async def borrow(self, amount: int) -> FakeTx:
        c = self.chain

        def effect() -> None:
            c.token_balance += amount
            c.borrow_value += amount

        return c.submit("borrow", amount, effect)

    async def repay(self, amount: int) -> FakeTx:
        c = self.chain

        def effect() -> None:
            c.allowance_value -= amount
            c.token_balance -= amount
            c.borrow_value -= amount

        return c.submit("repay", amount, effect)

    async def balances(self, account: str) -> int:
        self.chain.read_batches += 1
        return self.chain.read(self.chain.deposit_value)

    async def borrow_balances(self, account: str) -> int:
        return self.chain.read(self.chain.borrow_value)

    async def get_account_health(self, account: str) -> int:
        return self.chain.read(self.chain.health)

    async def total_deposits(self) -> int:
        return self.chain.read(self.chain.deposit_value)

    async def total_borrows(self) -> int:
        return self.chain.read(self.chain.borrow_value)

    async def collateral_factor(self) -> int:
        return 8000

    async def interest_rate(self) -> int:
        return 500


class FakeToken:
    address = TOKEN

    def __init__(self, chain: FakeChain) -> None:
        self.chain = chain

    async def balance_of(self, account: str) -> int:
        return self.chain.read(self.chain.token_balance)

    async def allowance(self, owner: str, spender: str) -> int:
        return self.chain.read(self.chain.allowance_value)

    async def approve(self, spender: str, amount: int) -> FakeTx:
        c = self.chain

        def effect() -> None:
            c.allowance_value = amount

        return c.submit("approve", amount, effect)

    async def mint(self, to: str, amount: int) -> FakeTx:
        c = self.chain

        def effect() -> None:
            c.token_balance += amount

        return c.submit("mint", amount, effect)

    async def name(self) -> str:
        return "Test Token"

    async def symbol(self) -> str:
        return "TEST"

    async def decimals(self) -> int:
        return 18


class FakeRegistry:
    def __init__(self, chain: FakeChain) -> None:
        self.chain = chain

    async def is_controller_enabled(self, account: str, controller: str) -> bool:
        return self.chain.controller_enabled

    async def enable_controller(self, account: str, controller: str) -> FakeTx:
        c = self.chain

        def effect() -> None:
            c.controller_enabled = True

        return c.submit("enableController", controller, effect)


def make_bindings(chain: FakeChain) -> ContractBindings:
    return ContractBindings(
        signer=ACCOUNT,
        ledger=FakeLedger(chain),  # type: ignore[arg-type]
        token=FakeToken(chain),  # type: ignore[arg-type]
        controller_registry=FakeRegistry(chain),  # type: ignore[arg-type]
    )


def connected_state(chain: FakeChain) -> AppState:
    return AppState(
        session=Session(
            connected=True, account_address=ACCOUNT, native_balance="1.0", chain_id=31337
        ),
        bindings=make_bindings(chain),
        snapshot=PositionSnapshot(account_address=ACCOUNT),
    )


@pytest.fixture()
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture()
def state(chain: FakeChain) -> AppState:
    return connected_state(chain)
