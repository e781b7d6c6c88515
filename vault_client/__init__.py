"""Async client for a collateralized position in an EVC-gated lending vault."""

__version__ = "0.1.0"
