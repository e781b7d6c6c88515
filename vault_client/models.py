"""Data models — value types are frozen; AppState is replaced field-by-field."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .units import parse_positive_units

if TYPE_CHECKING:
    from .contracts import ContractBindings

MAX_UINT256 = 2**256 - 1


@dataclass(frozen=True)
class Session:
    """Wallet connection for the single active account."""

    connected: bool = False
    account_address: str | None = None
    native_balance: str = "0"
    chain_id: int | None = None


@dataclass(frozen=True)
class PositionSnapshot:
    """Account and vault state as last read from chain.

    Amounts are decimal strings (18 fractional digits); ``health_raw`` is the
    unscaled health factor as returned by the vault.
    """

    user_deposit: str = "0"
    user_borrow: str = "0"
    token_balance: str = "0"
    token_allowance: str = "0"
    health_raw: str = "0"
    total_deposits: str = "0"
    total_borrows: str = "0"
    account_address: str | None = None


class ActionKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    BORROW = "borrow"
    REPAY = "repay"

    @property
    def label(self) -> str:
        return _ACTION_LABELS[self]


_ACTION_LABELS = {
    ActionKind.DEPOSIT: "Deposit",
    ActionKind.WITHDRAW: "Withdrawal",
    ActionKind.BORROW: "Borrow",
    ActionKind.REPAY: "Repayment",
}


@dataclass(frozen=True)
class ActionRequest:
    """One user intent; ``amount`` is the unscaled integer."""

    kind: ActionKind
    amount: int
    amount_text: str = ""

    @classmethod
    def parse(cls, kind: ActionKind | str, text: str) -> ActionRequest:
        """Build a request from user input, rejecting non-positive amounts."""
        kind = ActionKind(kind)
        amount = parse_positive_units(text)
        return cls(kind=kind, amount=amount, amount_text=str(text).strip())


@dataclass(frozen=True)
class ActionOutcome:
    """Result of one orchestration call — message only, no error code."""

    kind: ActionKind
    ok: bool
    message: str
    ran: bool = True


class HealthTier(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class HealthStatus:
    tier: HealthTier
    display: str


@dataclass(frozen=True)
class VaultInfo:
    """Static vault and token parameters."""

    collateral_factor: int
    interest_rate: int
    token_name: str
    token_symbol: str
    token_decimals: int


@dataclass
class AppState:
    """Everything the client holds for the active session.

    Owned by one coordinator and passed by reference to the session manager,
    synchronizer and orchestrator. ``session``, ``snapshot`` and ``inputs`` are
    always replaced as a whole, never edited in place.
    """

    session: Session = field(default_factory=Session)
    bindings: ContractBindings | None = None
    snapshot: PositionSnapshot = field(default_factory=PositionSnapshot)
    busy: bool = False
    error: str = ""
    notice: str = ""
    inputs: dict[ActionKind, str] = field(default_factory=dict)
    generation: int = 0

    def reset(self) -> None:
        """Return every field to its disconnected default.

        ``busy`` is left alone: a flow still in flight owns it and releases it
        on exit. ``generation`` moves forward so in-flight results are dropped.
        """
        self.invalidate()
        fresh = AppState()
        self.session = fresh.session
        self.bindings = fresh.bindings
        self.snapshot = fresh.snapshot
        self.error = fresh.error
        self.notice = fresh.notice
        self.inputs = fresh.inputs

    def invalidate(self) -> None:
        """Mark results of reads or connects already in flight as stale."""
        self.generation += 1

    def try_acquire(self) -> bool:
        """Take the busy flag; False if another flow already holds it."""
        if self.busy:
            return False
        self.busy = True
        return True

    def release(self) -> None:
        self.busy = False
