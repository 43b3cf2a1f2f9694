"""
Control Tower Metric Catalog
==============================
Static registry of the 35 business metrics tracked per project.  Every
definition declares:

  1. A stable key (the key used in every Project.metrics mapping).
  2. A display name and one of 14 business categories.
  3. A human-readable formula and the fundamental events that feed it
     (documentation only, nothing here is executed).
  4. A display unit and a directionality hint (higher_is_better).

Hard rules
----------
  - Keys are unique.  Registering a key twice raises at import time.
  - Entries of the same category are declared contiguously; the UI builds its
    section headers from runs of equal category, so a split run is rejected.
  - The catalog is read-only once the module is imported.

Public surface
--------------
    catalog = METRIC_CATALOG                       # Mapping[str, MetricDefinition]
    defn    = get_metric_definition("mrr")         # MetricDefinition | None
    defs    = metrics_for_category("ingresos")     # list[MetricDefinition]
    zeroes  = empty_metrics()                      # dict[str, float]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional


# ---------------------------------------------------------------------------
# Units and categories
# ---------------------------------------------------------------------------

class MetricUnit:
    CURRENCY = "currency"
    PERCENT = "percent"
    RATIO = "ratio"
    MONTHS = "months"
    DAYS = "days"
    NUMBER = "number"
    SCORE = "score"

    ALL = frozenset({CURRENCY, PERCENT, RATIO, MONTHS, DAYS, NUMBER, SCORE})

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in cls.ALL


# Declaration order is display order.
METRIC_CATEGORY_LABELS: dict[str, str] = {
    "supervivencia": "Supervivencia",
    "riesgo_financiero": "Riesgo Financiero",
    "ingresos": "Ingresos",
    "rentabilidad": "Rentabilidad",
    "adquisicion": "Adquisición",
    "activacion": "Activación",
    "retencion": "Retención",
    "engagement": "Engagement",
    "valor_cliente": "Valor Cliente",
    "producto": "Producto",
    "estrategica": "Estratégica",
    "riesgo_estructural": "Riesgo Estructural",
    "escalabilidad": "Escalabilidad",
    "portafolio": "Portafolio",
}

METRIC_CATEGORIES: tuple[str, ...] = tuple(METRIC_CATEGORY_LABELS)


# ---------------------------------------------------------------------------
# Fundamental events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FundamentalEvent:
    name: str
    description: str


FUNDAMENTAL_EVENTS: tuple[FundamentalEvent, ...] = (
    FundamentalEvent("user_registered", "Usuario crea cuenta en la app"),
    FundamentalEvent("activation_event", "Usuario realiza acción clave que demuestra valor"),
    FundamentalEvent("trial_started", "Usuario inicia periodo gratuito"),
    FundamentalEvent("subscription_started", "Usuario inicia suscripción paga"),
    FundamentalEvent("subscription_renewed", "Renovación automática exitosa"),
    FundamentalEvent("subscription_cancelled", "Usuario cancela su suscripción"),
    FundamentalEvent("refund_issued", "Reembolso realizado al usuario"),
    FundamentalEvent("session_started", "Inicio de sesión activa"),
    FundamentalEvent("order_completed", "Pedido completado"),
)


# ---------------------------------------------------------------------------
# Definition record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetricDefinition:
    """Static metadata for one metric."""
    key: str
    name: str
    category: str
    formula: str
    unit: str
    higher_is_better: bool
    events: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "category": self.category,
            "category_label": METRIC_CATEGORY_LABELS[self.category],
            "formula": self.formula,
            "events": list(self.events),
            "unit": self.unit,
            "higher_is_better": self.higher_is_better,
        }


# ---------------------------------------------------------------------------
# Catalog registry
# ---------------------------------------------------------------------------

_REGISTRY: dict[str, MetricDefinition] = {}


def _register(key: str, name: str, category: str, formula: str, unit: str,
              higher_is_better: bool, events: Iterable[str] = ()) -> None:
    if key in _REGISTRY:
        raise ValueError(f"Duplicate metric key: {key}")
    if category not in METRIC_CATEGORY_LABELS:
        raise ValueError(f"Unknown metric category {category!r} for {key}")
    if not MetricUnit.is_valid(unit):
        raise ValueError(f"Unknown metric unit {unit!r} for {key}")
    events = tuple(events)

    # A category may only be extended while it is the current run.
    last = next(reversed(_REGISTRY.values()), None)
    if last is not None and last.category != category and any(
        d.category == category for d in _REGISTRY.values()
    ):
        raise ValueError(f"Metric {key} breaks the contiguous run of category {category}")

    _REGISTRY[key] = MetricDefinition(
        key=key, name=name, category=category, formula=formula,
        unit=unit, higher_is_better=higher_is_better, events=events,
    )


# Supervivencia
_register("cashBalance", "Cash Balance", "supervivencia",
          "Bancos + Pasarelas – Obligaciones", "currency", True)
_register("burnRate", "Burn Rate", "supervivencia",
          "Costos – Ingresos", "currency", False,
          ["subscription_started", "subscription_renewed", "refund_issued"])
_register("runway", "Runway", "supervivencia",
          "Caja / Burn Rate", "months", True)
_register("fixedCostRatio", "Fixed Cost Ratio", "supervivencia",
          "Costos fijos / Costos totales", "percent", False)

# Riesgo financiero
_register("revenueConcentration", "Revenue Concentration", "riesgo_financiero",
          "Ingresos principal fuente / Total ingresos", "percent", False,
          ["subscription_started"])

# Ingresos
_register("mrr", "MRR", "ingresos",
          "Σ planes activos × precio", "currency", True,
          ["subscription_started", "subscription_renewed"])
_register("netRevenue", "Net Revenue", "ingresos",
          "Ingresos – comisiones – reembolsos", "currency", True,
          ["subscription_started", "subscription_renewed", "refund_issued"])
_register("revenueGrowthRate", "Revenue Growth Rate", "ingresos",
          "(MRR actual – MRR anterior) / anterior", "percent", True,
          ["subscription_started", "subscription_renewed"])
_register("arpu", "ARPU", "ingresos",
          "Ingresos / Usuarios pagados", "currency", True,
          ["subscription_started"])
_register("averageTicket", "Average Ticket", "ingresos",
          "Ingresos pedidos / Nº pedidos", "currency", True,
          ["order_completed"])

# Rentabilidad
_register("grossMargin", "Gross Margin", "rentabilidad",
          "(Ingresos – Costos directos) / Ingresos", "percent", True,
          ["subscription_started"])
_register("appRoi", "App ROI", "rentabilidad",
          "(Ingresos – Costos directos) / Costos directos", "percent", True,
          ["subscription_started"])
_register("breakEven", "Break-even", "rentabilidad",
          "Costos totales / Precio promedio", "number", False,
          ["subscription_started"])
_register("contributionMargin", "Contribution Margin", "rentabilidad",
          "ARPU – Costo variable", "currency", True,
          ["subscription_started"])

# Adquisición
_register("cac", "CAC", "adquisicion",
          "Marketing / Nuevos clientes", "currency", False,
          ["user_registered", "subscription_started"])
_register("costPerLead", "Cost per Lead", "adquisicion",
          "Marketing / Registros", "currency", False,
          ["user_registered"])
_register("trialToPaidConversion", "Trial → Paid Conversion", "adquisicion",
          "Paid / Trials", "percent", True,
          ["trial_started", "subscription_started"])

# Activación
_register("activationRate", "Activation Rate", "activacion",
          "Activados / Registrados", "percent", True,
          ["user_registered", "activation_event"])

# Retención
_register("churnRate", "Churn Rate", "retencion",
          "Cancelados / Activos inicio", "percent", False,
          ["subscription_cancelled"])
_register("revenueChurn", "Revenue Churn", "retencion",
          "Ingresos perdidos / MRR inicio", "percent", False,
          ["subscription_cancelled"])
_register("retentionRate", "Retention Rate", "retencion",
          "1 – Churn", "percent", True,
          ["subscription_cancelled"])
_register("averageLifetime", "Average Lifetime", "retencion",
          "1 / Churn", "months", True,
          ["subscription_cancelled"])

# Engagement
_register("totalUsers", "Total Users", "engagement",
          "Σ acumulado user_registered", "number", True,
          ["user_registered"])
_register("dauMauRatio", "DAU/MAU Ratio", "engagement",
          "DAU / MAU", "percent", True,
          ["session_started"])

# Valor cliente
_register("ltv", "LTV", "valor_cliente",
          "ARPU × Lifetime", "currency", True,
          ["subscription_started", "subscription_cancelled"])
_register("ltvCacRatio", "LTV/CAC", "valor_cliente",
          "LTV / CAC", "ratio", True,
          ["subscription_started"])
_register("paybackPeriod", "Payback Period", "valor_cliente",
          "CAC / Margen mensual", "months", False,
          ["subscription_started"])

# Producto
_register("timeToActivation", "Time to Activation", "producto",
          "Promedio (activación – registro)", "days", False,
          ["user_registered", "activation_event"])
_register("featureAdoptionRate", "Feature Adoption Rate", "producto",
          "Usuarios feature / Usuarios activos", "percent", True,
          ["feature_used"])
_register("sessionFrequency", "Session Frequency", "producto",
          "Sesiones / Usuario", "number", True,
          ["session_started"])

# Estratégica
_register("growthEfficiency", "Growth Efficiency", "estrategica",
          "Growth / CAC", "ratio", True,
          ["subscription_started"])
_register("startupHealthScore", "Startup Health Score", "estrategica",
          "Score ponderado (Runway, ROI, Churn, Growth)", "score", True)

# Riesgo estructural
_register("platformRiskIndex", "Platform Risk Index", "riesgo_estructural",
          "% ingresos plataforma dominante", "percent", False,
          ["subscription_started"])

# Escalabilidad
_register("operationalLeverage", "Operational Leverage", "escalabilidad",
          "Revenue Growth / Cost Growth", "ratio", True,
          ["subscription_started"])

# Portafolio
_register("portfolioPerformanceIndex", "Portfolio Performance Index", "portafolio",
          "ROI ponderado", "score", True,
          ["subscription_started"])


METRIC_CATALOG: Mapping[str, MetricDefinition] = MappingProxyType(_REGISTRY)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def get_metric_definition(key: str) -> Optional[MetricDefinition]:
    """Return the definition for key, or None when the metric is not catalogued."""
    return METRIC_CATALOG.get(key)


def metrics_for_category(category: Optional[str] = None) -> list[MetricDefinition]:
    """All definitions of one category in catalog order.  None or 'all' = everything."""
    if category is None or category == "all":
        return list(METRIC_CATALOG.values())
    return [d for d in METRIC_CATALOG.values() if d.category == category]


def group_by_category(
    definitions: Iterable[MetricDefinition],
) -> list[tuple[str, list[MetricDefinition]]]:
    """Split an ordered sequence into runs of equal category."""
    sections: list[tuple[str, list[MetricDefinition]]] = []
    for defn in definitions:
        if sections and sections[-1][0] == defn.category:
            sections[-1][1].append(defn)
        else:
            sections.append((defn.category, [defn]))
    return sections


def empty_metrics() -> dict[str, float]:
    """All-zero metrics mapping for a newly created project."""
    return {key: 0 for key in METRIC_CATALOG}


def undeclared_events() -> dict[str, list[str]]:
    """Metric key → referenced event names that are not fundamental events."""
    known = {e.name for e in FUNDAMENTAL_EVENTS}
    out: dict[str, list[str]] = {}
    for defn in METRIC_CATALOG.values():
        missing = [e for e in defn.events if e not in known]
        if missing:
            out[defn.key] = missing
    return out
