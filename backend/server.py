"""Control Tower - Business Management Dashboard API"""
from fastapi import FastAPI, APIRouter, HTTPException, Depends, Query, Request
from dotenv import load_dotenv
from starlette.middleware.cors import CORSMiddleware
import os
import logging
from pathlib import Path
from pydantic import BaseModel, Field
from typing import List, Optional, Any
from datetime import datetime, timezone

from metrics import (
    FUNDAMENTAL_EVENTS, METRIC_CATEGORY_LABELS, MetricUnit,
    compute_derived_metrics, derive_from_costs, format_metric_value,
    get_metric_definition, get_metric_health, metrics_for_category, sum_costs,
)
from metrics.health import HEALTH_LABELS
from metrics.report import (
    ANALYTICS_CATEGORIES, analytics_report, build_category_sections,
    build_metric_rows, compare_projects, key_metric_cards, summarize_health,
)
from models import (
    Client, ClientUpdate, CostEntry, Developer, DeveloperUpdate,
    Project, ProjectCreate, ProjectEdit,
    INDUSTRY_LABELS, ROLE_LABELS, STATUS_LABELS,
)
from project_store import ProjectRepository, ProjectNotFoundError, ProjectValidationError
from supabase_service import FETCHERS, get_supabase

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# Configure logging
logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Control Tower - Business Management Dashboard")
api_router = APIRouter(prefix="/api")

app.state.repository = ProjectRepository()


# ============ Dependencies ============

def get_repository(request: Request) -> ProjectRepository:
    return request.app.state.repository


def get_db_client():
    return get_supabase()


# ============ Pydantic Models ============

class ClassifyRequest(BaseModel):
    key: str
    value: float


class ClassifyResponse(BaseModel):
    key: str
    value: float
    health: str
    label: str


class FormatRequest(BaseModel):
    value: float
    unit: str


class DerivedRequest(BaseModel):
    fixed_costs: List[CostEntry] = Field(default_factory=list)
    variable_costs: List[CostEntry] = Field(default_factory=list)
    mrr: float = 0
    cash_balance: float = 0


def _not_found(kind: str, item_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{kind} not found: {item_id}")


def _check_category(category: Optional[str]) -> Optional[str]:
    if category in (None, "", "all"):
        return None
    if category not in METRIC_CATEGORY_LABELS:
        raise HTTPException(status_code=422, detail=f"Unknown metric category: {category}")
    return category


# ============ Metric Endpoints ============

@api_router.get("/metrics/catalog")
async def get_metric_catalog(category: Optional[str] = None):
    """Metric definitions in catalog order, with contiguous category sections"""
    category = _check_category(category)
    definitions = [d.to_dict() for d in metrics_for_category(category)]
    return {
        "metrics": definitions,
        "sections": build_category_sections(definitions),
        "categories": METRIC_CATEGORY_LABELS,
        "analytics_categories": list(ANALYTICS_CATEGORIES),
    }


@api_router.get("/metrics/catalog/{key}")
async def get_metric(key: str):
    defn = get_metric_definition(key)
    if defn is None:
        raise _not_found("Metric", key)
    return defn.to_dict()


@api_router.get("/metrics/events")
async def get_fundamental_events():
    return [{"name": e.name, "description": e.description} for e in FUNDAMENTAL_EVENTS]


@api_router.post("/metrics/classify", response_model=ClassifyResponse)
async def classify_metric(request: ClassifyRequest):
    health = get_metric_health(request.key, request.value)
    return ClassifyResponse(
        key=request.key, value=request.value,
        health=health, label=HEALTH_LABELS[health],
    )


@api_router.post("/metrics/format")
async def format_metric(request: FormatRequest):
    if not MetricUnit.is_valid(request.unit):
        raise HTTPException(status_code=422, detail=f"Unknown metric unit: {request.unit}")
    return {"display": format_metric_value(request.value, request.unit)}


@api_router.post("/metrics/derived")
async def calculate_derived_metrics(request: DerivedRequest):
    """Preview burn rate, runway and fixed cost ratio for a cost breakdown"""
    derived = compute_derived_metrics(
        sum_costs(request.fixed_costs),
        sum_costs(request.variable_costs),
        mrr=request.mrr,
        cash_balance=request.cash_balance,
    )
    return {**derived.to_dict(), "metrics": derived.as_metrics()}


# ============ Project Endpoints ============

@api_router.get("/projects", response_model=List[Project])
async def list_projects(
    status: Optional[str] = None,
    repo: ProjectRepository = Depends(get_repository)
):
    return repo.list_projects(status)


@api_router.post("/projects", response_model=Project, status_code=201)
async def create_project(
    data: ProjectCreate,
    repo: ProjectRepository = Depends(get_repository)
):
    try:
        return repo.create_project(data)
    except ProjectValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors)


@api_router.get("/projects/compare")
async def compare(
    ids: str = Query(..., description="Comma-separated project ids"),
    category: Optional[str] = None,
    repo: ProjectRepository = Depends(get_repository)
):
    """Side-by-side metrics for up to four projects"""
    category = _check_category(category)
    project_ids = [pid.strip() for pid in ids.split(",") if pid.strip()]
    projects = repo.find_projects(project_ids)
    if not projects:
        raise HTTPException(status_code=404, detail="No matching projects")
    return compare_projects(projects, category)


@api_router.get("/projects/{project_id}", response_model=Project)
async def get_project(project_id: str, repo: ProjectRepository = Depends(get_repository)):
    try:
        return repo.get_project(project_id)
    except ProjectNotFoundError:
        raise _not_found("Project", project_id)


@api_router.put("/projects/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    edit: ProjectEdit,
    repo: ProjectRepository = Depends(get_repository)
):
    try:
        return repo.update_project(project_id, edit)
    except ProjectNotFoundError:
        raise _not_found("Project", project_id)
    except ProjectValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors)


@api_router.delete("/projects/{project_id}")
async def delete_project(project_id: str, repo: ProjectRepository = Depends(get_repository)):
    try:
        repo.delete_project(project_id)
    except ProjectNotFoundError:
        raise _not_found("Project", project_id)
    return {"success": True}


@api_router.get("/projects/{project_id}/metrics")
async def get_project_metrics(
    project_id: str,
    category: Optional[str] = None,
    repo: ProjectRepository = Depends(get_repository)
):
    """Every catalogued metric of a project with health and display value"""
    category = _check_category(category)
    try:
        project = repo.get_project(project_id)
    except ProjectNotFoundError:
        raise _not_found("Project", project_id)

    rows = build_metric_rows(project.metrics, category)
    return {
        "project_id": project.id,
        "rows": rows,
        "sections": build_category_sections(rows),
        "health_summary": summarize_health(rows),
        "key_metrics": key_metric_cards(project, category),
    }


@api_router.get("/projects/{project_id}/derived")
async def get_project_derived(project_id: str, repo: ProjectRepository = Depends(get_repository)):
    """Derived metrics recomputed from the project's current costs"""
    try:
        project = repo.get_project(project_id)
    except ProjectNotFoundError:
        raise _not_found("Project", project_id)

    derived = derive_from_costs(project.fixed_costs, project.variable_costs, project.metrics)
    stored = {k: project.metrics.get(k, 0) for k in derived.as_metrics()}
    return {
        **derived.to_dict(),
        "metrics": derived.as_metrics(),
        "stored": stored,
        "stale": stored != derived.as_metrics(),
    }


# ============ Analytics ============

@api_router.get("/analytics/summary")
async def get_analytics_summary(
    project_id: Optional[str] = None,
    category: Optional[str] = None,
    repo: ProjectRepository = Depends(get_repository)
):
    """Portfolio figures for all projects, or one project when project_id is set"""
    category = _check_category(category)
    project = None
    if project_id and project_id != "all":
        matches = repo.find_projects([project_id])
        project = matches[0] if matches else None
    return analytics_report(repo.list_projects(), project, category)


# ============ Clients & Developers ============

@api_router.get("/clients", response_model=List[Client])
async def list_clients(repo: ProjectRepository = Depends(get_repository)):
    return repo.list_clients()


@api_router.post("/clients", response_model=Client, status_code=201)
async def add_client(client: Client, repo: ProjectRepository = Depends(get_repository)):
    try:
        return repo.add_client(client)
    except ProjectValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors)


@api_router.put("/clients/{client_id}", response_model=Client)
async def update_client(
    client_id: str,
    data: ClientUpdate,
    repo: ProjectRepository = Depends(get_repository)
):
    try:
        return repo.update_client(client_id, data)
    except ProjectNotFoundError:
        raise _not_found("Client", client_id)


@api_router.get("/developers", response_model=List[Developer])
async def list_developers(repo: ProjectRepository = Depends(get_repository)):
    return repo.list_developers()


@api_router.post("/developers", response_model=Developer, status_code=201)
async def add_developer(developer: Developer, repo: ProjectRepository = Depends(get_repository)):
    try:
        return repo.add_developer(developer)
    except ProjectValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors)


@api_router.put("/developers/{developer_id}", response_model=Developer)
async def update_developer(
    developer_id: str,
    data: DeveloperUpdate,
    repo: ProjectRepository = Depends(get_repository)
):
    try:
        return repo.update_developer(developer_id, data)
    except ProjectNotFoundError:
        raise _not_found("Developer", developer_id)


@api_router.get("/labels")
async def get_labels():
    return {
        "industries": INDUSTRY_LABELS,
        "statuses": STATUS_LABELS,
        "roles": ROLE_LABELS,
        "health": HEALTH_LABELS,
    }


# ============ Supabase Tables ============

@api_router.get("/supabase/{table}")
async def get_supabase_table(table: str, supabase: Any = Depends(get_db_client)):
    """Raw rows from proyectos / clientes / desarrolladores, newest first"""
    fetcher = FETCHERS.get(table)
    if fetcher is None:
        raise HTTPException(status_code=404, detail=f"Unknown table: {table}")
    result = await fetcher(supabase)
    return {"table": table, "rows": result.rows, "error": result.error}


# ============ Health Check ============

@api_router.get("/")
async def root():
    return {"message": "Control Tower API"}


@api_router.get("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


# Include router and add middleware
app.include_router(api_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
    allow_methods=["*"],
    allow_headers=["*"],
)
