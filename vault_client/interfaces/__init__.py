"""Protocol interfaces for the vault client."""
from .contracts import ControllerRegistry, Ledger, Token
from .wallet import WalletProvider

__all__ = ["ControllerRegistry", "Ledger", "Token", "WalletProvider"]
