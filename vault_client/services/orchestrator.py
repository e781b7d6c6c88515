"""Deposit / withdraw / borrow / repay flows.

Every flow is a strictly sequential script: optional pre-step (approval or
controller enablement) confirmed on chain, then the primary vault call
confirmed on chain, then a forced re-sync. A failing step ends the flow
without compensating steps that already confirmed; a retry will observe the
satisfied precondition and skip it.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

from ..contracts import ContractBindings
from ..exceptions import InvalidAmount, describe_error
from ..models import ActionKind, ActionOutcome, ActionRequest, AppState
from .synchronizer import PositionSynchronizer

logger = logging.getLogger(__name__)

NOT_CONNECTED = "Wallet not connected"
BUSY = "Another operation is in progress"

_Step = Callable[[ContractBindings, str, int], Awaitable[None]]


class TransactionOrchestrator:
    """Runs one action flow at a time against the bindings in ``state``."""

    def __init__(self, state: AppState, synchronizer: PositionSynchronizer) -> None:
        self._state = state
        self._synchronizer = synchronizer
        self._flows: dict[ActionKind, _Step] = {
            ActionKind.DEPOSIT: self._deposit,
            ActionKind.WITHDRAW: self._withdraw,
            ActionKind.BORROW: self._borrow,
            ActionKind.REPAY: self._repay,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def deposit(self, amount: str) -> ActionOutcome:
        return await self.submit(ActionKind.DEPOSIT, amount)

    async def withdraw(self, amount: str) -> ActionOutcome:
        return await self.submit(ActionKind.WITHDRAW, amount)

    async def borrow(self, amount: str) -> ActionOutcome:
        return await self.submit(ActionKind.BORROW, amount)

    async def repay(self, amount: str) -> ActionOutcome:
        return await self.submit(ActionKind.REPAY, amount)

    async def submit(self, kind: ActionKind | str, amount: str) -> ActionOutcome:
        """Validate user input and run the matching flow."""
        kind = ActionKind(kind)
        try:
            request = ActionRequest.parse(kind, amount)
        except InvalidAmount as e:
            logger.info("%s skipped: %s", kind.label, e)
            return ActionOutcome(kind=kind, ok=False, message=str(e), ran=False)
        return await self.execute(request)

    async def execute(self, request: ActionRequest) -> ActionOutcome:
        """Run one flow under the busy flag; errors become a message."""
        state = self._state
        kind = request.kind

        bindings = state.bindings
        account = state.session.account_address
        if bindings is None or not account:
            return ActionOutcome(kind=kind, ok=False, message=NOT_CONNECTED, ran=False)
        if not state.try_acquire():
            logger.info("%s ignored: %s", kind.label, BUSY)
            return ActionOutcome(kind=kind, ok=False, message=BUSY, ran=False)

        try:
            state.error = ""
            await self._flows[kind](bindings, account, request.amount)

            state.notice = f"{kind.label} successful!"
            state.inputs = {k: v for k, v in state.inputs.items() if k != kind}
            logger.info("%s of %s confirmed for %s", kind.label, request.amount, account)

            await self._synchronizer.refresh(state)
            return ActionOutcome(kind=kind, ok=True, message=state.notice)
        except Exception as e:
            message = f"{kind.label} failed: {describe_error(e)}"
            state.error = message
            state.notice = ""
            logger.error("%s", message)
            return ActionOutcome(kind=kind, ok=False, message=message)
        finally:
            state.release()

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def _notify(self, message: str) -> None:
        self._state.notice = message
        logger.info("%s", message)

    async def _ensure_allowance(
        self, bindings: ContractBindings, account: str, amount: int
    ) -> None:
        """Approve the vault for ``amount`` unless the allowance already covers it."""
        spender = bindings.ledger.address
        allowance = await bindings.token.allowance(account, spender)
        if allowance >= amount:
            logger.debug("Allowance %s covers %s — no approval needed", allowance, amount)
            return

        self._notify("Approving tokens...")
        tx = await bindings.token.approve(spender, amount)
        await tx.wait()

    async def _deposit(
        self, bindings: ContractBindings, account: str, amount: int
    ) -> None:
        await self._ensure_allowance(bindings, account, amount)
        self._notify("Depositing...")
        tx = await bindings.ledger.deposit(amount)
        await tx.wait()

    async def _withdraw(
        self, bindings: ContractBindings, account: str, amount: int
    ) -> None:
        self._notify("Withdrawing...")
        tx = await bindings.ledger.withdraw(amount)
        await tx.wait()

    async def _borrow(
        self, bindings: ContractBindings, account: str, amount: int
    ) -> None:
        registry = bindings.controller_registry
        vault = bindings.ledger.address
        if not await registry.is_controller_enabled(account, vault):
            self._notify("Enabling vault as controller...")
            tx = await registry.enable_controller(account, vault)
            await tx.wait()

        self._notify("Borrowing...")
        tx = await bindings.ledger.borrow(amount)
        await tx.wait()

    async def _repay(
        self, bindings: ContractBindings, account: str, amount: int
    ) -> None:
        await self._ensure_allowance(bindings, account, amount)
        self._notify("Repaying...")
        tx = await bindings.ledger.repay(amount)
        await tx.wait()
