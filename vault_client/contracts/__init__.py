"""Contract bindings."""
from .bindings import (
    ContractBindings,
    ControllerRegistryContract,
    TokenContract,
    VaultContract,
    build_bindings,
)
from .transaction import PendingTransaction

__all__ = [
    "ContractBindings",
    "ControllerRegistryContract",
    "PendingTransaction",
    "TokenContract",
    "VaultContract",
    "build_bindings",
]
