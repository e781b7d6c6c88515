"""Health factor classification — pure, no I/O."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext

from ..config import HealthConfig
from ..models import MAX_UINT256, HealthStatus, HealthTier

NO_DEBT = "No Debt"

# enough digits for any uint256 divided by the scale
_PRECISION = 100

_DEFAULT = HealthConfig()


def health_ratio(health_raw: int | str, scale: int = _DEFAULT.scale) -> Decimal:
    """Unscaled vault health value → collateralization ratio."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(int(health_raw)) / Decimal(scale)


def classify(
    health_raw: int | str, thresholds: HealthConfig = _DEFAULT
) -> HealthStatus:
    """Map the vault's raw health value to a status tier and display text.

    ``0`` and ``2**256 - 1`` both mean the account has no debt, so the ratio
    is undefined and the account is reported healthy. Otherwise the ratio is
    ``raw / scale`` and tiers use inclusive lower bounds:
        ratio >= healthy_ratio                  → HEALTHY
        warning_ratio <= ratio < healthy_ratio  → WARNING
        ratio < warning_ratio                   → DANGER
    """
    raw = int(health_raw)
    if raw in (0, MAX_UINT256):
        return HealthStatus(tier=HealthTier.HEALTHY, display=NO_DEBT)

    ratio = health_ratio(raw, thresholds.scale)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        rounded = ratio.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    if ratio >= Decimal(str(thresholds.healthy_ratio)):
        tier = HealthTier.HEALTHY
    elif ratio >= Decimal(str(thresholds.warning_ratio)):
        tier = HealthTier.WARNING
    else:
        tier = HealthTier.DANGER
    return HealthStatus(tier=tier, display=f"{rounded}x")
