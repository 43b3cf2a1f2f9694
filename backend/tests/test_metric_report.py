"""
Tests for metrics/report.py
===========================
Metric rows, category sections, health summary, key metric cards,
project comparison (capped at four), radar series, portfolio summary and
the analytics breakdowns (industry, status, profitability, project radar).
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from metrics.report import (
    ANALYTICS_CATEGORIES,
    KEY_METRIC_KEYS,
    MAX_COMPARE_PROJECTS,
    PROJECT_RADAR_LABELS,
    RADAR_LABELS,
    analytics_definitions,
    analytics_report,
    build_category_sections,
    build_metric_rows,
    compare_projects,
    industry_breakdown,
    key_metric_cards,
    portfolio_summary,
    profitability_ranking,
    project_radar,
    radar_series,
    status_distribution,
    summarize_health,
)
from models import Project


def _project(pid="p1", name="App Uno", status="in_development", budget=10000,
             spent=2500, progress=40, industry="saas", **metrics):
    return Project(
        id=pid, name=name, client_id="c1", status=status, industry=industry, budget=budget,
        spent=spent, progress=progress, start_date="2025-01-01",
        end_date="2025-12-31", metrics=metrics,
    )


class TestMetricRows:

    def test_one_row_per_catalog_metric(self):
        rows = build_metric_rows({})
        assert len(rows) == 35

    def test_missing_metric_is_zero_placeholder_warning(self):
        row = build_metric_rows({})[0]
        assert row["key"] == "cashBalance"
        assert row["value"] == 0
        assert row["display"] == "—"
        assert row["health"] == "warning"
        assert row["health_label"] == "Advertencia"

    def test_row_values(self):
        rows = {r["key"]: r for r in build_metric_rows({"mrr": 12000, "churnRate": 9.5})}
        assert rows["mrr"]["display"] == "$12,000"
        assert rows["mrr"]["health"] == "healthy"
        assert rows["mrr"]["health_short_label"] == "OK"
        assert rows["churnRate"]["display"] == "9.5%"
        assert rows["churnRate"]["health"] == "critical"
        assert rows["churnRate"]["category_label"] == "Retención"

    def test_category_filter(self):
        rows = build_metric_rows({}, "engagement")
        assert [r["key"] for r in rows] == ["totalUsers", "dauMauRatio"]


class TestSections:

    def test_sections_are_contiguous_and_labelled(self):
        sections = build_category_sections(build_metric_rows({}))
        assert len(sections) == 14
        assert sections[0]["label"] == "Supervivencia"
        assert len({s["category"] for s in sections}) == 14

    def test_summarize_health(self):
        rows = build_metric_rows({"mrr": 20000, "cac": 100})
        summary = summarize_health(rows)
        assert summary["healthy"] == 1
        assert summary["critical"] == 1
        assert summary["warning"] == 33
        assert sum(summary.values()) == 35


class TestKeyMetricCards:

    def test_all_twelve(self):
        cards = key_metric_cards(_project())
        assert [c["key"] for c in cards] == list(KEY_METRIC_KEYS)

    def test_category_filter(self):
        cards = key_metric_cards(_project(), "retencion")
        assert [c["key"] for c in cards] == ["churnRate", "retentionRate"]

    def test_all_category(self):
        assert len(key_metric_cards(_project(), "all")) == 12


class TestCompare:

    def test_compare_caps_projects(self):
        projects = [_project(pid=f"p{i}", name=f"App {i}") for i in range(6)]
        result = compare_projects(projects)
        assert len(result["projects"]) == MAX_COMPARE_PROJECTS
        assert all(len(r["projects"]) == MAX_COMPARE_PROJECTS for r in result["rows"])

    def test_compare_cells(self):
        a = _project(pid="a", name="A", mrr=15000)
        b = _project(pid="b", name="B", mrr=3000)
        result = compare_projects([a, b], "ingresos")
        mrr_row = next(r for r in result["rows"] if r["key"] == "mrr")
        assert [c["health"] for c in mrr_row["projects"]] == ["healthy", "critical"]
        assert mrr_row["projects"][0]["display"] == "$15,000"

    def test_radar_series(self):
        a = _project(pid="a", name="A", grossMargin=65)
        series = radar_series([a])
        assert [s["key"] for s in series] == list(RADAR_LABELS)
        gm = next(s for s in series if s["key"] == "grossMargin")
        assert gm["metric"] == "Margen Bruto"
        assert gm["values"] == {"a": 65}
        assert series[0]["values"]["a"] == 0

    def test_radar_keeps_projects_with_same_name_apart(self):
        a = _project(pid="a", name="metric", grossMargin=65)
        b = _project(pid="b", name="metric", grossMargin=20)
        gm = next(s for s in radar_series([a, b]) if s["key"] == "grossMargin")
        assert gm["metric"] == "Margen Bruto"
        assert gm["values"] == {"a": 65, "b": 20}

    def test_compare_lists_names_separately(self):
        a = _project(pid="a", name="Twin")
        b = _project(pid="b", name="Twin")
        result = compare_projects([a, b])
        assert result["projects"] == [{"id": "a", "name": "Twin"}, {"id": "b", "name": "Twin"}]
        assert set(result["radar"][0]["values"]) == {"a", "b"}


class TestPortfolioSummary:

    def test_empty(self):
        summary = portfolio_summary([])
        assert summary["success_rate"] == 0
        assert summary["average_progress"] == 0
        assert summary["total_budget"] == 0

    def test_totals(self):
        projects = [
            _project(pid="a", status="completed", budget=10000, spent=9000, progress=100, totalUsers=1200),
            _project(pid="b", status="testing", budget=5000, spent=1000, progress=45, totalUsers=300),
            _project(pid="c", status="proposal", budget=2000, spent=0, progress=0),
        ]
        summary = portfolio_summary(projects)
        assert summary["project_count"] == 3
        assert summary["total_budget"] == 17000
        assert summary["total_spent"] == 10000
        assert summary["completed_count"] == 1
        assert summary["success_rate"] == 33
        assert summary["average_progress"] == 48
        assert summary["total_users"] == 1500

    def test_half_rounds_up(self):
        projects = [_project(pid="a", status="completed"), _project(pid="b")]
        assert portfolio_summary(projects)["success_rate"] == 50
        projects = [_project(pid="a", progress=1), _project(pid="b", progress=2)]
        assert portfolio_summary(projects)["average_progress"] == 2


def test_analytics_categories_subset():
    assert len(ANALYTICS_CATEGORIES) == 9
    assert "portafolio" not in ANALYTICS_CATEGORIES


class TestAnalyticsBreakdowns:

    def test_industry_breakdown(self):
        projects = [
            _project(pid="a", industry="fintech", budget=10000, spent=4000),
            _project(pid="b", industry="saas", budget=5000, spent=1000),
            _project(pid="c", industry="fintech", budget=2000, spent=500),
        ]
        assert industry_breakdown(projects) == [
            {"industry": "fintech", "name": "Fintech", "budget": 12000, "spent": 4500},
            {"industry": "saas", "name": "SaaS", "budget": 5000, "spent": 1000},
        ]

    def test_status_distribution(self):
        projects = [
            _project(pid="a", status="completed"),
            _project(pid="b", status="testing"),
            _project(pid="c", status="completed"),
        ]
        dist = {d["status"]: d for d in status_distribution(projects)}
        assert dist["completed"]["value"] == 2
        assert dist["completed"]["name"] == "Completado"
        assert dist["completed"]["color"] == "#10b981"
        assert dist["testing"]["value"] == 1
        assert status_distribution([]) == []

    def test_profitability_ranking(self):
        projects = [
            _project(pid="a", name="Bajo", budget=10000, spent=9000),
            _project(pid="b", name="Alto", budget=10000, spent=2500),
            _project(pid="c", name="Sin gasto", budget=10000, spent=0),
            _project(pid="d", name="Excedido", budget=1000, spent=1500),
        ]
        ranking = profitability_ranking(projects)
        assert [r["project_id"] for r in ranking] == ["b", "a", "d"]
        assert [r["margin"] for r in ranking] == [75, 10, -50]

    def test_profitability_skips_zero_budget(self):
        projects = [_project(pid="a", budget=0, spent=500)]
        assert profitability_ranking(projects) == []

    def test_profitability_margin_rounds_half_up(self):
        # (1000 - 995) / 1000 * 100 == 0.5
        ranking = profitability_ranking([_project(pid="a", budget=1000, spent=995)])
        assert ranking[0]["margin"] == 1

    def test_profitability_truncates_long_names(self):
        ranking = profitability_ranking([_project(name="Plataforma de Pagos Regional")])
        assert ranking[0]["name"] == "Plataforma de Pago…"

    def test_project_radar(self):
        radar = project_radar(_project(activationRate=45, startupHealthScore=80))
        assert [r["key"] for r in radar] == list(PROJECT_RADAR_LABELS)
        assert radar[0] == {"metric": "Health", "key": "startupHealthScore", "value": 80, "fullMark": 100}
        assert radar[-1]["value"] == 45
        assert all(r["fullMark"] == 100 for r in radar)


class TestAnalyticsReport:

    def test_all_category_limited_to_analytics_categories(self):
        defs = analytics_definitions("all")
        assert {d.category for d in defs} == set(ANALYTICS_CATEGORIES)
        assert analytics_definitions(None) == defs
        assert all(d.category not in ("portafolio", "riesgo_financiero") for d in defs)

    def test_single_category(self):
        assert [d.key for d in analytics_definitions("engagement")] == ["totalUsers", "dauMauRatio"]

    def test_portfolio_report(self):
        projects = [_project(pid="a", name="A"), _project(pid="b", name="B", status="completed")]
        report = analytics_report(projects)
        assert report["project_count"] == 2
        assert report["category"] == "all"
        assert report["projects"] == [{"id": "a", "name": "A"}, {"id": "b", "name": "B"}]
        assert len(report["matrix"]) == len(analytics_definitions())
        assert [c["project_id"] for c in report["matrix"][0]["projects"]] == ["a", "b"]
        assert "radar" not in report

    def test_single_project_report(self):
        a = _project(pid="a", budget=1000, mrr=12000)
        b = _project(pid="b", budget=2000)
        report = analytics_report([a, b], a, "ingresos")
        assert report["project_id"] == "a"
        assert report["total_budget"] == 1000
        assert report["category"] == "ingresos"
        assert {r["category"] for r in report["rows"]} == {"ingresos"}
        assert [c["key"] for c in report["key_metrics"]] == ["mrr", "netRevenue", "arpu"]
        assert len(report["radar"]) == 5
        assert "matrix" not in report
