"""Wallet session lifecycle — connect, disconnect and wallet notifications."""
from __future__ import annotations

import logging

from ..config import ContractsConfig
from ..contracts import build_bindings
from ..events import AccountsChanged, ChainChanged, WalletEvent
from ..exceptions import ProviderUnavailable, UserRejected, describe_error
from ..interfaces.wallet import WalletProvider
from ..models import AppState, PositionSnapshot, Session
from ..units import format_units
from .synchronizer import PositionSynchronizer

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns the Session in ``state`` and keeps bindings in step with the signer."""

    def __init__(
        self,
        state: AppState,
        provider: WalletProvider | None,
        contracts: ContractsConfig,
        synchronizer: PositionSynchronizer,
        expected_chain_id: int | None = None,
    ) -> None:
        self._state = state
        self._provider = provider
        self._contracts = contracts
        self._synchronizer = synchronizer
        self._expected_chain_id = expected_chain_id

    @property
    def provider(self) -> WalletProvider | None:
        return self._provider

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Request account access and load the first account's position.

        Shares the busy flag with the action flows. Failures end up in
        ``state.error``; returns whether the session is connected.
        """
        state = self._state
        if not state.try_acquire():
            logger.info("Another operation is in progress — connect ignored")
            return False

        generation = state.generation
        try:
            if self._provider is None:
                raise ProviderUnavailable()
            provider = self._provider

            accounts = await provider.request_accounts()
            if not accounts:
                raise UserRejected("No accounts authorized")
            address = accounts[0]
            balance = await provider.get_balance(address)
            chain_id = await provider.chain_id()
            if state.generation != generation:
                logger.info("Wallet state changed while connecting — connect dropped")
                return False

            if self._expected_chain_id is not None and chain_id != self._expected_chain_id:
                logger.warning(
                    "Wallet is on chain %d, configuration expects %d",
                    chain_id,
                    self._expected_chain_id,
                )

            state.session = Session(
                connected=True,
                account_address=address,
                native_balance=format_units(balance),
                chain_id=chain_id,
            )
            state.bindings = build_bindings(provider, address, self._contracts)
            state.error = ""
            logger.info("Connected %s on chain %d", address, chain_id)

            await self._synchronizer.refresh(state)
            return True
        except Exception as e:
            state.error = f"Failed to connect wallet: {describe_error(e)}"
            logger.error("%s", state.error)
            return False
        finally:
            state.release()

    def disconnect(self) -> None:
        """Forget the session locally. Approvals and controllers stay on chain."""
        state = self._state
        state.invalidate()
        state.session = Session()
        state.bindings = None
        state.snapshot = PositionSnapshot()
        state.inputs = {}
        logger.info("Disconnected")

    # ------------------------------------------------------------------
    # Wallet notifications
    # ------------------------------------------------------------------

    async def on_accounts_changed(self, accounts: list[str]) -> None:
        """Follow the wallet's active account; an empty list disconnects."""
        state = self._state
        if not accounts:
            self.disconnect()
            return

        address = accounts[0]
        if not state.session.connected or self._provider is None:
            logger.debug("Accounts changed while disconnected — ignored")
            return
        if address == state.session.account_address:
            return

        logger.info("Active account changed to %s", address)
        state.invalidate()
        generation = state.generation
        native_balance = "0"
        try:
            native_balance = format_units(await self._provider.get_balance(address))
        except Exception as e:
            logger.warning("Could not read balance for %s: %s", address, e)
        if state.generation != generation:
            return

        state.session = Session(
            connected=True,
            account_address=address,
            native_balance=native_balance,
            chain_id=state.session.chain_id,
        )
        state.bindings = build_bindings(self._provider, address, self._contracts)
        state.snapshot = PositionSnapshot()
        await self._synchronizer.refresh(state)

    def on_chain_changed(self, chain_id: int | None = None) -> None:
        """Full reload: every piece of client state returns to its default."""
        logger.warning("Chain changed to %s — reloading client state", chain_id)
        self._state.reset()

    async def dispatch(self, event: WalletEvent) -> None:
        if isinstance(event, AccountsChanged):
            await self.on_accounts_changed(list(event.accounts))
        elif isinstance(event, ChainChanged):
            self.on_chain_changed(event.chain_id)
        else:
            logger.warning("Unknown wallet event: %r", event)

    async def run_events(self) -> None:
        """Drain wallet notifications until cancelled."""
        if self._provider is None:
            raise ProviderUnavailable()
        while True:
            event = await self._provider.events.get()
            try:
                await self.dispatch(event)
            except Exception as e:
                logger.error("Error handling wallet event %r: %s", event, e)
