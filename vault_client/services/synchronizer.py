"""Position synchronization — reads account and vault state into a snapshot."""
from __future__ import annotations

import asyncio
import logging

from ..config import SyncConfig
from ..exceptions import NetworkFailure, RpcError, VaultClientError
from ..interfaces.contracts import Ledger, Token
from ..models import AppState, PositionSnapshot
from ..units import format_units

logger = logging.getLogger(__name__)


class PositionSynchronizer:
    """Fetch the seven observable fields and publish them as one snapshot."""

    def __init__(self, config: SyncConfig | None = None) -> None:
        config = config or SyncConfig()
        self.max_retries = config.max_retries
        self.backoff_base = config.backoff_base

    async def _fetch(
        self, ledger: Ledger, token: Token, account: str
    ) -> PositionSnapshot:
        (
            user_deposit,
            user_borrow,
            token_balance,
            token_allowance,
            health,
            total_deposits,
            total_borrows,
        ) = await asyncio.gather(
            ledger.balances(account),
            ledger.borrow_balances(account),
            token.balance_of(account),
            token.allowance(account, ledger.address),
            ledger.get_account_health(account),
            ledger.total_deposits(),
            ledger.total_borrows(),
        )

        return PositionSnapshot(
            user_deposit=format_units(user_deposit),
            user_borrow=format_units(user_borrow),
            token_balance=format_units(token_balance),
            token_allowance=format_units(token_allowance),
            health_raw=str(health),
            total_deposits=format_units(total_deposits),
            total_borrows=format_units(total_borrows),
            account_address=account,
        )

    async def sync(
        self, ledger: Ledger, token: Token, account: str
    ) -> PositionSnapshot:
        """Read a complete snapshot, retrying the whole batch on failure.

        Retry strategy:
        - Up to ``max_retries`` attempts
        - Exponential backoff: base, 2*base, 4*base, ...
        - Only transport and node errors are retried; reverts and other
          errors propagate from the first attempt

        Raises:
            NetworkFailure: every attempt failed. No partial snapshot is
                ever returned.
        """
        attempt = 0
        while True:
            try:
                return await self._fetch(ledger, token, account)
            except (NetworkFailure, RpcError) as e:
                attempt += 1
                if attempt >= self.max_retries:
                    raise NetworkFailure(
                        f"Failed to load vault data after {attempt} attempt(s): {e}"
                    ) from e

                backoff = self.backoff_base * (2 ** (attempt - 1))
                logger.warning(
                    "Vault data sync attempt %d failed: %s — retrying in %.2fs",
                    attempt,
                    e,
                    backoff,
                )
                await asyncio.sleep(backoff)

    async def refresh(self, state: AppState) -> bool:
        """Re-read the active account and replace ``state.snapshot``.

        On failure the previous snapshot stays in place. Returns whether a new
        snapshot was published.
        """
        bindings = state.bindings
        account = state.session.account_address
        if bindings is None or not account:
            logger.debug("No active session — skipping sync")
            return False

        generation = state.generation
        try:
            snapshot = await self.sync(bindings.ledger, bindings.token, account)
        except VaultClientError as e:
            logger.error("Failed to load vault data: %s", e)
            return False

        if state.generation != generation or state.session.account_address != account:
            logger.info("Session changed during sync, discarding snapshot for %s", account)
            return False

        state.snapshot = snapshot
        logger.info(
            "Synced %s — deposit %s, debt %s, health %s",
            account,
            snapshot.user_deposit,
            snapshot.user_borrow,
            snapshot.health_raw,
        )
        return True
