"""Vault client — owns the application state and wires the services together."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

from ..chains.evm import EvmClient
from ..config import AppConfig
from ..exceptions import ProviderUnavailable, VaultClientError, describe_error
from ..interfaces.wallet import WalletProvider
from ..models import (
    ActionKind,
    ActionOutcome,
    AppState,
    HealthStatus,
    VaultInfo,
)
from ..units import parse_positive_units
from .health import classify
from .orchestrator import BUSY, NOT_CONNECTED, TransactionOrchestrator
from .session import SessionManager
from .synchronizer import PositionSynchronizer

logger = logging.getLogger(__name__)


class VaultClient:
    """Coordinates session, synchronization and action flows for one wallet.

    A single busy flag serializes connect and every state-changing flow.
    Background refreshes skip while it is held but do not take it.
    """

    def __init__(
        self, config: AppConfig, provider: WalletProvider | None = None
    ) -> None:
        self._config = config
        self.state = AppState()

        if provider is None and config.network.rpc_endpoints:
            provider = EvmClient(config.network, config.wallet)
        self._provider = provider

        self.synchronizer = PositionSynchronizer(config.sync)
        self.session = SessionManager(
            self.state,
            provider,
            config.contracts,
            self.synchronizer,
            expected_chain_id=config.network.chain_id,
        )
        self.orchestrator = TransactionOrchestrator(self.state, self.synchronizer)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        return await self.session.connect()

    def disconnect(self) -> None:
        self.session.disconnect()

    async def refresh(self) -> bool:
        return await self.synchronizer.refresh(self.state)

    def health(self) -> HealthStatus:
        return classify(self.state.snapshot.health_raw, self._config.health)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def set_input(self, kind: ActionKind | str, amount: str) -> None:
        kind = ActionKind(kind)
        self.state.inputs = {**self.state.inputs, kind: amount}

    async def submit(self, kind: ActionKind | str) -> ActionOutcome:
        """Run the flow for ``kind`` with the amount previously entered."""
        kind = ActionKind(kind)
        return await self.orchestrator.submit(kind, self.state.inputs.get(kind, ""))

    async def deposit(self, amount: str) -> ActionOutcome:
        return await self.orchestrator.deposit(amount)

    async def withdraw(self, amount: str) -> ActionOutcome:
        return await self.orchestrator.withdraw(amount)

    async def borrow(self, amount: str) -> ActionOutcome:
        return await self.orchestrator.borrow(amount)

    async def repay(self, amount: str) -> ActionOutcome:
        return await self.orchestrator.repay(amount)

    # ------------------------------------------------------------------
    # Setup tooling
    # ------------------------------------------------------------------

    async def vault_info(self) -> VaultInfo:
        bindings = self.state.bindings
        if bindings is None:
            raise VaultClientError(NOT_CONNECTED)

        (
            collateral_factor,
            interest_rate,
            name,
            symbol,
            decimals,
        ) = await asyncio.gather(
            bindings.ledger.collateral_factor(),
            bindings.ledger.interest_rate(),
            bindings.token.name(),
            bindings.token.symbol(),
            bindings.token.decimals(),
        )
        return VaultInfo(
            collateral_factor=collateral_factor,
            interest_rate=interest_rate,
            token_name=name,
            token_symbol=symbol,
            token_decimals=decimals,
        )

    async def mint(self, amount: str) -> bool:
        """Mint test tokens to the connected account (mock token only)."""
        state = self.state
        bindings = state.bindings
        account = state.session.account_address
        if bindings is None or not account:
            state.error = NOT_CONNECTED
            return False
        if not state.try_acquire():
            state.error = BUSY
            return False

        try:
            value = parse_positive_units(amount)
            state.notice = "Minting tokens..."
            tx = await bindings.token.mint(account, value)
            await tx.wait()
            state.notice = "Mint successful!"
            state.error = ""
            await self.synchronizer.refresh(state)
            return True
        except Exception as e:
            state.error = f"Mint failed: {describe_error(e)}"
            state.notice = ""
            logger.error("%s", state.error)
            return False
        finally:
            state.release()

    # ------------------------------------------------------------------
    # Continuous mode
    # ------------------------------------------------------------------

    async def watch(
        self,
        refresh_interval: float | None = None,
        on_update: Callable[[AppState], None] | None = None,
    ) -> None:
        """Follow wallet notifications and refresh the snapshot periodically."""
        if self._provider is None:
            raise ProviderUnavailable()

        interval = refresh_interval or self._config.sync.refresh_interval_seconds
        logger.info("Watching vault position (refreshing every %.1f seconds)", interval)

        tasks = [
            asyncio.create_task(self._provider.watch()),
            asyncio.create_task(self.session.run_events()),
        ]
        try:
            while True:
                try:
                    if self.state.session.connected and not self.state.busy:
                        await self.synchronizer.refresh(self.state)
                    if on_update is not None:
                        on_update(self.state)
                except Exception as e:
                    logger.error("Error in watch loop: %s", e)
                await asyncio.sleep(interval)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
