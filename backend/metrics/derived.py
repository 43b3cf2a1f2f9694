"""
Derived survival metrics computed from itemized project costs.

burnRate, runway and fixedCostRatio are not entered by hand: the project edit
flow recomputes them from the fixed/variable cost entries plus the manually
entered mrr and cashBalance, then writes them into the metrics mapping.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping

from .formatting import MONTHS_SENTINEL, round_half_up

RUNWAY_SENTINEL = MONTHS_SENTINEL

DERIVED_METRIC_KEYS = ("burnRate", "runway", "fixedCostRatio")


@dataclass(frozen=True)
class DerivedMetrics:
    total_fixed: float
    total_variable: float
    burn_rate: float
    runway: float
    fixed_cost_ratio: float

    @property
    def total_costs(self) -> float:
        return self.total_fixed + self.total_variable

    def as_metrics(self) -> dict[str, float]:
        """The three values keyed the way Project.metrics stores them."""
        return {
            "burnRate": self.burn_rate,
            "runway": self.runway,
            "fixedCostRatio": self.fixed_cost_ratio,
        }

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["total_costs"] = self.total_costs
        return out


def _amount(entry: Any) -> float:
    if isinstance(entry, Mapping):
        return entry.get("amount") or 0
    return getattr(entry, "amount", 0) or 0


def sum_costs(entries: Iterable[Any]) -> float:
    """Sum the amount of CostEntry models or {'amount': ...} dicts."""
    return sum(_amount(e) for e in entries)


def compute_derived_metrics(
    total_fixed: float,
    total_variable: float,
    mrr: float = 0,
    cash_balance: float = 0,
) -> DerivedMetrics:
    total_costs = total_fixed + total_variable
    burn_rate = max(0, total_costs - mrr)

    if burn_rate > 0:
        runway = round_half_up(cash_balance / burn_rate, 1)
    else:
        runway = RUNWAY_SENTINEL

    if total_costs > 0:
        fixed_cost_ratio = round_half_up(total_fixed / total_costs * 100, 1)
    else:
        fixed_cost_ratio = 0

    return DerivedMetrics(
        total_fixed=total_fixed,
        total_variable=total_variable,
        burn_rate=burn_rate,
        runway=runway,
        fixed_cost_ratio=fixed_cost_ratio,
    )


def derive_from_costs(
    fixed_costs: Iterable[Any],
    variable_costs: Iterable[Any],
    metrics: Mapping[str, float],
) -> DerivedMetrics:
    """Derived metrics for a cost breakdown; mrr and cashBalance come from metrics."""
    return compute_derived_metrics(
        sum_costs(fixed_costs),
        sum_costs(variable_costs),
        mrr=metrics.get("mrr") or 0,
        cash_balance=metrics.get("cashBalance") or 0,
    )


def apply_derived_metrics(
    metrics: Mapping[str, float], derived: DerivedMetrics
) -> dict[str, float]:
    """Copy of metrics with the derived keys overwritten."""
    return {**metrics, **derived.as_metrics()}
