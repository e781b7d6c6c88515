"""Plain-text rendering of the client state for the CLI."""
from __future__ import annotations

from .models import AppState, HealthStatus, HealthTier, VaultInfo
from .units import format_display

_TIER_ICONS = {
    HealthTier.HEALTHY: "✅",
    HealthTier.WARNING: "⚠️",
    HealthTier.DANGER: "🚨",
}


def format_address(address: str | None) -> str:
    """Shorten an address to ``0x1234...abcd``."""
    if not address:
        return "—"
    if len(address) > 10:
        return f"{address[:6]}...{address[-4:]}"
    return address


def render_status(state: AppState, health: HealthStatus) -> str:
    session = state.session
    if not session.connected:
        lines = ["Wallet not connected"]
        if state.error:
            lines.append(f"Error: {state.error}")
        return "\n".join(lines)

    snap = state.snapshot
    lines = [
        f"👛 {format_address(session.account_address)} · "
        f"{format_display(session.native_balance, 4)} ETH · chain {session.chain_id}",
        "",
        f"Your Deposit:   {format_display(snap.user_deposit, 4)}",
        f"Your Debt:      {format_display(snap.user_borrow, 4)}",
        f"Token Balance:  {format_display(snap.token_balance, 4)}",
        f"Allowance:      {format_display(snap.token_allowance, 4)}",
        f"Total Deposits: {format_display(snap.total_deposits, 2)}",
        f"Total Borrows:  {format_display(snap.total_borrows, 2)}",
        "",
        f"{_TIER_ICONS[health.tier]} Health Factor: {health.display}",
    ]
    if state.notice:
        lines.append(state.notice)
    if state.error:
        lines.append(f"Error: {state.error}")
    return "\n".join(lines)


def render_info(info: VaultInfo) -> str:
    return (
        f"Token: {info.token_name} ({info.token_symbol}), "
        f"{info.token_decimals} decimals\n"
        f"Collateral factor: {info.collateral_factor}\n"
        f"Interest rate: {info.interest_rate}"
    )
