"""
Health classification for Control Tower metrics.

Every value is bucketed into one of three tiers by per-metric cutoffs.  Zero
means "no data yet" and is always WARNING; a key without a threshold row is
also WARNING so an unknown metric never reads as healthy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional


class MetricHealth:
    """Health tiers.  Plain strings so they serialize without unwrapping."""
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"

    ALL = frozenset({HEALTHY, WARNING, CRITICAL})

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in cls.ALL


HEALTH_LABELS: dict[str, str] = {
    MetricHealth.HEALTHY: "Saludable",
    MetricHealth.WARNING: "Advertencia",
    MetricHealth.CRITICAL: "Crítico",
}

HEALTH_SHORT_LABELS: dict[str, str] = {
    MetricHealth.HEALTHY: "OK",
    MetricHealth.WARNING: "Alerta",
    MetricHealth.CRITICAL: "Crítico",
}


@dataclass(frozen=True)
class ThresholdRule:
    """Two strict cutoffs plus the direction in which values improve."""
    healthy: float
    warning: float
    higher_is_better: bool

    def _passes(self, value: float, cutoff: float) -> bool:
        if self.higher_is_better:
            return value > cutoff
        return value < cutoff

    def classify(self, value: float) -> str:
        if self._passes(value, self.healthy):
            return MetricHealth.HEALTHY
        if self._passes(value, self.warning):
            return MetricHealth.WARNING
        return MetricHealth.CRITICAL


def _above(healthy: float, warning: float) -> ThresholdRule:
    return ThresholdRule(healthy, warning, higher_is_better=True)


def _below(healthy: float, warning: float) -> ThresholdRule:
    return ThresholdRule(healthy, warning, higher_is_better=False)


# Business-defined cutoffs.  averageTicket and breakEven are catalogued but
# have no row here; margenOperativo has a row but no catalog entry.
HEALTH_THRESHOLDS: dict[str, ThresholdRule] = {
    "burnRate": _below(5000, 15000),
    "runway": _above(6, 3),
    "fixedCostRatio": _below(50, 70),
    "revenueConcentration": _below(40, 70),
    "mrr": _above(10000, 5000),
    "netRevenue": _above(10000, 5000),
    "revenueGrowthRate": _above(10, 5),
    "arpu": _above(20, 10),
    "grossMargin": _above(60, 40),
    "appRoi": _above(50, 0),
    "contributionMargin": _above(15, 5),
    "cac": _below(20, 50),
    "costPerLead": _below(10, 25),
    "trialToPaidConversion": _above(15, 5),
    "activationRate": _above(40, 20),
    "churnRate": _below(5, 8),
    "revenueChurn": _below(5, 8),
    "retentionRate": _above(95, 90),
    "averageLifetime": _above(18, 12),
    "totalUsers": _above(5000, 1000),
    "dauMauRatio": _above(30, 20),
    "ltv": _above(500, 200),
    "ltvCacRatio": _above(3, 1.5),
    "paybackPeriod": _below(3, 6),
    "timeToActivation": _below(2, 5),
    "featureAdoptionRate": _above(50, 30),
    "sessionFrequency": _above(4, 2),
    "growthEfficiency": _above(1, 0.5),
    "startupHealthScore": _above(70, 50),
    "platformRiskIndex": _below(40, 70),
    "operationalLeverage": _above(2, 1),
    "portfolioPerformanceIndex": _above(70, 50),
    "margenOperativo": _above(30, 15),
    "cashBalance": _above(50000, 20000),
}


def get_threshold_rule(key: str) -> Optional[ThresholdRule]:
    return HEALTH_THRESHOLDS.get(key)


def get_metric_health(key: str, value: float) -> str:
    """Classify one metric value as healthy, warning or critical."""
    if value == 0:
        return MetricHealth.WARNING
    rule = HEALTH_THRESHOLDS.get(key)
    if rule is None:
        return MetricHealth.WARNING
    return rule.classify(value)


def classify_metrics(metrics: Mapping[str, float]) -> dict[str, str]:
    """Health for every entry of a ProjectMetrics mapping."""
    return {key: get_metric_health(key, value or 0) for key, value in metrics.items()}
