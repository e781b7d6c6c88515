"""Service modules"""
from .client import VaultClient
from .health import classify
from .orchestrator import TransactionOrchestrator
from .session import SessionManager
from .synchronizer import PositionSynchronizer

__all__ = [
    "PositionSynchronizer",
    "SessionManager",
    "TransactionOrchestrator",
    "VaultClient",
    "classify",
]
