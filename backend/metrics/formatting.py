"""Display formatting for metric values."""

from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP, localcontext

from .catalog import MetricUnit

PLACEHOLDER = "—"
NOT_APPLICABLE = "N/A"

# Runway values at or above this are "no burn" sentinels, not real months.
MONTHS_SENTINEL = 999


def _quantize(value: float, places: int) -> Decimal:
    """Half-up quantize with enough precision for any finite float."""
    exact = Decimal(value)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + places + 2)
        return exact.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def round_half_up(value: float, places: int = 1) -> float:
    """Round the exact binary value half away from zero (dashboard rounding)."""
    return float(_quantize(value, places))


def _fixed(value: float, places: int = 1) -> str:
    return str(_quantize(value, places))


def _grouped(value: float) -> str:
    return f"{_quantize(value, 0):,}"


def format_currency(value: float) -> str:
    return f"${_grouped(value)}"


def format_metric_value(value: float, unit: str) -> str:
    """
    Render a metric value for display.

    0 is the "unset" placeholder for every unit.  Unknown units raise
    ValueError since the catalog never produces one.
    """
    if value == 0:
        return PLACEHOLDER

    if unit == MetricUnit.CURRENCY:
        return format_currency(value)
    if unit == MetricUnit.PERCENT:
        return f"{_fixed(value)}%"
    if unit == MetricUnit.RATIO:
        return f"{_fixed(value)}x"
    if unit == MetricUnit.MONTHS:
        if value >= MONTHS_SENTINEL:
            return NOT_APPLICABLE
        return f"{_fixed(value)} meses"
    if unit == MetricUnit.DAYS:
        return f"{_fixed(value)} días"
    if unit == MetricUnit.SCORE:
        return f"{math.floor(value + 0.5)}/100"
    if unit == MetricUnit.NUMBER:
        return _grouped(value)

    raise ValueError(f"Unknown metric unit: {unit}")
