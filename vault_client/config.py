"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from web3 import Web3

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NetworkConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    chain_id: int | None = None


@dataclass(frozen=True)
class ContractsConfig:
    vault: str = ""
    token: str = ""
    evc: str = ""


@dataclass(frozen=True)
class SyncConfig:
    max_retries: int = 3
    backoff_base: float = 0.5
    refresh_interval_seconds: float = 15.0


@dataclass(frozen=True)
class WalletConfig:
    poll_interval_seconds: float = 1.0


@dataclass(frozen=True)
class HealthConfig:
    healthy_ratio: float = 1.5
    warning_ratio: float = 1.1
    scale: int = 10000


@dataclass(frozen=True)
class AppConfig:
    network: NetworkConfig = field(default_factory=NetworkConfig)
    contracts: ContractsConfig = field(default_factory=ContractsConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    wallet: WalletConfig = field(default_factory=WalletConfig)
    health: HealthConfig = field(default_factory=HealthConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_network(raw: dict[str, Any]) -> NetworkConfig:
    chain_id = raw.get("chain_id")
    return NetworkConfig(
        rpc_endpoints=tuple(e for e in raw.get("rpc_endpoints", []) if e),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
        chain_id=int(chain_id) if chain_id not in (None, "") else None,
    )


def _build_contracts(raw: dict[str, Any]) -> ContractsConfig:
    return ContractsConfig(
        vault=raw.get("vault", ""),
        token=raw.get("token", ""),
        evc=raw.get("evc", ""),
    )


def _build_sync(raw: dict[str, Any]) -> SyncConfig:
    return SyncConfig(
        max_retries=int(raw.get("max_retries", 3)),
        backoff_base=float(raw.get("backoff_base", 0.5)),
        refresh_interval_seconds=float(raw.get("refresh_interval_seconds", 15.0)),
    )


def _build_wallet(raw: dict[str, Any]) -> WalletConfig:
    return WalletConfig(
        poll_interval_seconds=float(raw.get("poll_interval_seconds", 1.0)),
    )


def _build_health(raw: dict[str, Any]) -> HealthConfig:
    return HealthConfig(
        healthy_ratio=float(raw.get("healthy_ratio", 1.5)),
        warning_ratio=float(raw.get("warning_ratio", 1.1)),
        scale=int(raw.get("scale", 10000)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        network=_build_network(raw.get("network") or {}),
        contracts=_build_contracts(raw.get("contracts") or {}),
        sync=_build_sync(raw.get("sync") or {}),
        wallet=_build_wallet(raw.get("wallet") or {}),
        health=_build_health(raw.get("health") or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    for name in ("vault", "token", "evc"):
        address = getattr(cfg.contracts, name)
        if not address:
            raise ValueError(f"Contract '{name}' has no address")
        if not Web3.is_address(address):
            raise ValueError(f"Contract '{name}' has invalid address '{address}'")

    if cfg.sync.max_retries < 1:
        raise ValueError("sync.max_retries must be at least 1")
    if cfg.sync.backoff_base < 0:
        raise ValueError("sync.backoff_base must not be negative")
    if cfg.wallet.poll_interval_seconds <= 0:
        raise ValueError("wallet.poll_interval_seconds must be positive")
    if cfg.health.scale <= 0:
        raise ValueError("health.scale must be positive")
    if cfg.health.warning_ratio > cfg.health.healthy_ratio:
        raise ValueError("health.warning_ratio must not exceed health.healthy_ratio")

    if not cfg.network.rpc_endpoints:
        logger.warning("No RPC endpoints configured — wallet provider unavailable")
