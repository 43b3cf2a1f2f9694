"""
Metric reports
==============
Tabular views over project metrics: one row per catalogued metric with its
health and display value, contiguous category sections, side-by-side project
comparison, the radar series, the portfolio summary figures and the
analytics breakdowns (industry, status, profitability).

Every function accepts anything with a ``metrics`` mapping (Project models)
and treats a missing metric as 0.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional, Sequence

from models import INDUSTRY_LABELS, STATUS_LABELS

from .catalog import (
    METRIC_CATALOG,
    METRIC_CATEGORY_LABELS,
    MetricDefinition,
    metrics_for_category,
)
from .formatting import format_metric_value
from .health import HEALTH_LABELS, HEALTH_SHORT_LABELS, MetricHealth, get_metric_health

# Categories offered by the analytics view (the others live on the metrics page).
ANALYTICS_CATEGORIES: tuple[str, ...] = (
    "supervivencia", "ingresos", "rentabilidad", "adquisicion",
    "retencion", "engagement", "valor_cliente", "producto", "estrategica",
)

# Headline cards for a single project.
KEY_METRIC_KEYS: tuple[str, ...] = (
    "totalUsers", "mrr", "netRevenue", "arpu", "grossMargin", "churnRate",
    "retentionRate", "dauMauRatio", "ltv", "ltvCacRatio", "cac", "startupHealthScore",
)

RADAR_LABELS: dict[str, str] = {
    "startupHealthScore": "Health Score",
    "grossMargin": "Margen Bruto",
    "retentionRate": "Retención",
    "dauMauRatio": "DAU/MAU",
    "growthEfficiency": "Eficiencia",
}

MAX_COMPARE_PROJECTS = 4

# Single-project radar on the analytics view, plotted against a 0-100 scale.
PROJECT_RADAR_LABELS: dict[str, str] = {
    "startupHealthScore": "Health",
    "grossMargin": "Margen",
    "retentionRate": "Retención",
    "dauMauRatio": "DAU/MAU",
    "activationRate": "Activación",
}

STATUS_CHART_COLORS: dict[str, str] = {
    "proposal": "#eab308",
    "in_development": "#3b82f6",
    "testing": "#8b5cf6",
    "completed": "#10b981",
    "on_hold": "#6b7280",
}


def _value(metrics: Mapping[str, float], key: str) -> float:
    return metrics.get(key) or 0


def _round(x: float) -> int:
    # half rounds up, also for negatives
    return math.floor(x + 0.5)


def metric_row(defn: MetricDefinition, metrics: Mapping[str, float]) -> dict[str, Any]:
    value = _value(metrics, defn.key)
    health = get_metric_health(defn.key, value)
    return {
        **defn.to_dict(),
        "value": value,
        "display": format_metric_value(value, defn.unit),
        "health": health,
        "health_label": HEALTH_LABELS[health],
        "health_short_label": HEALTH_SHORT_LABELS[health],
    }


def build_metric_rows(
    metrics: Mapping[str, float], category: Optional[str] = None
) -> list[dict[str, Any]]:
    return [metric_row(d, metrics) for d in metrics_for_category(category)]


def build_category_sections(rows: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Group rows into runs of equal category, preserving order."""
    sections: list[dict[str, Any]] = []
    for row in rows:
        if not sections or sections[-1]["category"] != row["category"]:
            sections.append({
                "category": row["category"],
                "label": METRIC_CATEGORY_LABELS[row["category"]],
                "rows": [],
            })
        sections[-1]["rows"].append(row)
    return sections


def summarize_health(rows: Iterable[Mapping[str, Any]]) -> dict[str, int]:
    counts = {h: 0 for h in (MetricHealth.HEALTHY, MetricHealth.WARNING, MetricHealth.CRITICAL)}
    for row in rows:
        counts[row["health"]] += 1
    return counts


def key_metric_cards(project: Any, category: Optional[str] = None) -> list[dict[str, Any]]:
    """Headline metric rows for one project, optionally limited to a category."""
    cards = []
    for key in KEY_METRIC_KEYS:
        defn = METRIC_CATALOG.get(key)
        if defn is None:
            continue
        if category and category != "all" and defn.category != category:
            continue
        cards.append(metric_row(defn, project.metrics))
    return cards


def _project_cells(defn: MetricDefinition, projects: Sequence[Any]) -> list[dict[str, Any]]:
    cells = []
    for project in projects:
        value = _value(project.metrics, defn.key)
        health = get_metric_health(defn.key, value)
        cells.append({
            "project_id": project.id,
            "value": value,
            "display": format_metric_value(value, defn.unit),
            "health": health,
        })
    return cells


def compare_projects(
    projects: Sequence[Any], category: Optional[str] = None
) -> dict[str, Any]:
    """
    Side-by-side values for up to MAX_COMPARE_PROJECTS projects.

    Extra projects are dropped, not rejected.
    """
    selected = list(projects)[:MAX_COMPARE_PROJECTS]
    rows = [
        {**defn.to_dict(), "projects": _project_cells(defn, selected)}
        for defn in metrics_for_category(category)
    ]
    return {
        "projects": [{"id": p.id, "name": p.name} for p in selected],
        "rows": rows,
        "radar": radar_series(selected),
    }


def radar_series(projects: Sequence[Any]) -> list[dict[str, Any]]:
    """One entry per radar axis; values are keyed by project id."""
    series = []
    for key, label in RADAR_LABELS.items():
        series.append({
            "metric": label,
            "key": key,
            "values": {p.id: _value(p.metrics, key) for p in projects},
        })
    return series


def project_radar(project: Any) -> list[dict[str, Any]]:
    return [
        {"metric": label, "key": key, "value": _value(project.metrics, key), "fullMark": 100}
        for key, label in PROJECT_RADAR_LABELS.items()
    ]


def portfolio_summary(projects: Sequence[Any]) -> dict[str, Any]:
    count = len(projects)
    completed = sum(1 for p in projects if p.status == "completed")
    return {
        "project_count": count,
        "total_budget": sum(p.budget for p in projects),
        "total_spent": sum(p.spent for p in projects),
        "completed_count": completed,
        "success_rate": _round(completed / count * 100) if count else 0,
        "average_progress": _round(sum(p.progress for p in projects) / count) if count else 0,
        "total_users": sum(_value(p.metrics, "totalUsers") for p in projects),
    }


def industry_breakdown(projects: Sequence[Any]) -> list[dict[str, Any]]:
    """Budget and spent per industry, in order of first appearance."""
    totals: dict[str, dict[str, float]] = {}
    for p in projects:
        entry = totals.setdefault(p.industry, {"budget": 0, "spent": 0})
        entry["budget"] += p.budget
        entry["spent"] += p.spent
    return [
        {"industry": industry, "name": INDUSTRY_LABELS.get(industry, industry), **data}
        for industry, data in totals.items()
    ]


def status_distribution(projects: Sequence[Any]) -> list[dict[str, Any]]:
    counts: dict[str, int] = {}
    for p in projects:
        counts[p.status] = counts.get(p.status, 0) + 1
    return [
        {
            "status": status,
            "name": STATUS_LABELS.get(status, status),
            "value": count,
            "color": STATUS_CHART_COLORS.get(status),
        }
        for status, count in counts.items()
    ]


def profitability_ranking(projects: Sequence[Any]) -> list[dict[str, Any]]:
    """
    Budget margin of every project that has spent something, best first.

    Projects without a positive budget have no margin and are left out.
    """
    ranking = []
    for p in projects:
        if p.spent <= 0 or p.budget <= 0:
            continue
        name = p.name if len(p.name) <= 18 else p.name[:18] + "…"
        ranking.append({
            "project_id": p.id,
            "name": name,
            "margin": _round((p.budget - p.spent) / p.budget * 100),
        })
    ranking.sort(key=lambda r: r["margin"], reverse=True)
    return ranking


def analytics_definitions(category: Optional[str] = None) -> list[MetricDefinition]:
    """Definitions offered by the analytics view; "all" means ANALYTICS_CATEGORIES."""
    if category in (None, "", "all"):
        return [d for d in METRIC_CATALOG.values() if d.category in ANALYTICS_CATEGORIES]
    return metrics_for_category(category)


def analytics_report(
    projects: Sequence[Any],
    project: Any = None,
    category: Optional[str] = None,
) -> dict[str, Any]:
    """
    Everything the analytics view shows.

    With a single project the report carries its key metric cards, metric
    rows and radar.  Otherwise it carries a metric matrix across projects.
    """
    scope = [project] if project is not None else list(projects)
    definitions = analytics_definitions(category)
    report = {
        **portfolio_summary(scope),
        "category": category or "all",
        "industries": industry_breakdown(scope),
        "statuses": status_distribution(scope),
        "profitability": profitability_ranking(scope),
    }
    if project is not None:
        report["project_id"] = project.id
        report["key_metrics"] = key_metric_cards(project, category)
        report["rows"] = [metric_row(d, project.metrics) for d in definitions]
        report["radar"] = project_radar(project)
    else:
        report["projects"] = [{"id": p.id, "name": p.name} for p in scope]
        report["matrix"] = [
            {**d.to_dict(), "projects": _project_cells(d, scope)} for d in definitions
        ]
    return report
