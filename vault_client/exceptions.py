"""Client-side error kinds raised by the wallet provider and contract bindings."""
from __future__ import annotations


class VaultClientError(Exception):
    """Base exception for the vault client"""

    pass


class ProviderUnavailable(VaultClientError):
    """No wallet provider is configured or reachable"""

    def __init__(self, message: str = "No wallet provider available") -> None:
        super().__init__(message)


class UserRejected(VaultClientError):
    """The wallet declined to sign the request"""

    def __init__(self, message: str = "User rejected the request") -> None:
        super().__init__(message)


class ExternalCallReverted(VaultClientError):
    """The vault, token or controller registry rejected the call"""

    def __init__(self, reason: str = "execution reverted") -> None:
        super().__init__(reason)
        self.reason = reason


class NetworkFailure(VaultClientError):
    """A read-only query could not complete"""

    pass


class RpcError(VaultClientError):
    """JSON-RPC error response that is not a rejection or a revert"""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class InvalidAmount(VaultClientError):
    """User-supplied amount is empty, malformed or not positive"""

    pass


def describe_error(exc: BaseException) -> str:
    """Reduce any exception to a single human-readable message."""
    if isinstance(exc, ExternalCallReverted):
        return f"Transaction reverted: {exc.reason}"
    if isinstance(exc, NetworkFailure):
        return f"Network error: {exc}"
    text = str(exc)
    return text if text else exc.__class__.__name__
