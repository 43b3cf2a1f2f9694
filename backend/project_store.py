"""
Project repository: in-memory store for projects, clients and developers.

One ProjectRepository instance is created by the server and handed to route
handlers through a FastAPI dependency, so tests build their own instance.

Saving an edited project snapshots the derived survival metrics (burnRate,
runway, fixedCostRatio) from the submitted costs into project.metrics.  Those
stored values are not refreshed if costs later change without another save;
use derive_from_costs() for a live figure.
"""

import logging
import math
import time
from typing import Any, Dict, Iterable, List, Optional

from metrics import apply_derived_metrics, derive_from_costs, empty_metrics
from models import (
    Client, ClientUpdate, CostEntry, Developer, DeveloperUpdate,
    Project, ProjectCreate, ProjectEdit,
)

logger = logging.getLogger(__name__)


class ProjectNotFoundError(KeyError):
    """Raised when a project, client or developer id is unknown."""
    pass


class ProjectValidationError(ValueError):
    """Form validation failed.  errors maps field name -> message."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__(", ".join(f"{k}: {v}" for k, v in errors.items()))


def _now_ms() -> int:
    return int(time.time() * 1000)


def _to_number(value: Any) -> Optional[float]:
    """Parse a form number.  Blank or non-numeric input gives None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _dedupe_tech(items: Iterable[str]) -> List[str]:
    stack: List[str] = []
    for item in items:
        item = (item or "").strip()
        if item and item not in stack:
            stack.append(item)
    return stack


def _validate_form(
    name: str,
    client_id: str,
    budget: Any,
    start_date: str,
    end_date: str,
    require_positive_budget: bool,
) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not (name or "").strip():
        errors["name"] = "El nombre es requerido"
    if not client_id:
        errors["client_id"] = "Selecciona un cliente"

    amount = _to_number(budget)
    if require_positive_budget:
        if amount is None or amount <= 0:
            errors["budget"] = "Ingresa un presupuesto válido"
    elif amount is None:
        errors["budget"] = "Presupuesto inválido"

    if not start_date:
        errors["start_date"] = "La fecha de inicio es requerida"
    if not end_date:
        errors["end_date"] = "La fecha de fin es requerida"
    # ISO dates compare correctly as strings
    if start_date and end_date and end_date <= start_date:
        errors["end_date"] = "La fecha de fin debe ser posterior al inicio"
    return errors


class ProjectRepository:
    """Holds every project, client and developer for one running app."""

    def __init__(
        self,
        projects: Optional[Iterable[Project]] = None,
        clients: Optional[Iterable[Client]] = None,
        developers: Optional[Iterable[Developer]] = None,
    ):
        self._projects: Dict[str, Project] = {p.id: p for p in projects or []}
        self._clients: Dict[str, Client] = {c.id: c for c in clients or []}
        self._developers: Dict[str, Developer] = {d.id: d for d in developers or []}

    # ── Projects ──────────────────────────────────────────────────────

    def list_projects(self, status: Optional[str] = None) -> List[Project]:
        projects = list(self._projects.values())
        if status:
            projects = [p for p in projects if p.status == status]
        return projects

    def get_project(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def find_projects(self, project_ids: Iterable[str]) -> List[Project]:
        """Projects for the given ids in request order, unknown ids skipped."""
        return [self._projects[pid] for pid in project_ids if pid in self._projects]

    def _new_project_id(self) -> str:
        stamp = _now_ms()
        while f"p{stamp}" in self._projects:
            stamp += 1
        return f"p{stamp}"

    def create_project(self, data: ProjectCreate) -> Project:
        errors = _validate_form(
            data.name, data.client_id, data.budget,
            data.start_date, data.end_date, require_positive_budget=True,
        )
        if errors:
            raise ProjectValidationError(errors)

        project = Project(
            id=self._new_project_id(),
            name=data.name.strip(),
            description=data.description.strip(),
            client_id=data.client_id,
            industry=data.industry,
            status=data.status,
            priority=data.priority,
            budget=_to_number(data.budget),
            spent=0,
            start_date=data.start_date,
            end_date=data.end_date,
            team_ids=list(data.team_ids),
            milestones=[],
            progress=0,
            tech_stack=_dedupe_tech(data.tech_stack),
            metrics=empty_metrics(),
            fixed_costs=[],
            variable_costs=[],
        )
        self._projects[project.id] = project
        logger.info(f"Created project {project.id} ({project.name})")
        return project

    def update_project(self, project_id: str, edit: ProjectEdit) -> Project:
        current = self.get_project(project_id)

        def pick(field: str):
            value = getattr(edit, field)
            return getattr(current, field) if value is None else value

        name = pick("name")
        client_id = pick("client_id")
        budget = pick("budget")
        start_date = pick("start_date")
        end_date = pick("end_date")

        errors = _validate_form(
            name, client_id, budget, start_date, end_date,
            require_positive_budget=False,
        )
        fixed_costs = self._assign_cost_ids(pick("fixed_costs"))
        variable_costs = self._assign_cost_ids(pick("variable_costs"))
        for field, entries in (("fixed_costs", fixed_costs), ("variable_costs", variable_costs)):
            ids = [c.id for c in entries]
            if len(ids) != len(set(ids)):
                errors[field] = "IDs de costos duplicados"
        if errors:
            raise ProjectValidationError(errors)

        metrics = dict(pick("metrics"))
        derived = derive_from_costs(fixed_costs, variable_costs, metrics)
        progress = _to_number(pick("progress")) or 0

        updated = current.model_copy(update={
            "name": name.strip(),
            "description": pick("description").strip(),
            "client_id": client_id,
            "industry": pick("industry"),
            "status": pick("status"),
            "priority": pick("priority"),
            "budget": _to_number(budget),
            "spent": _to_number(pick("spent")) or 0,
            "start_date": start_date,
            "end_date": end_date,
            "progress": min(100, max(0, progress)),
            "team_ids": list(pick("team_ids")),
            "tech_stack": _dedupe_tech(pick("tech_stack")),
            "fixed_costs": fixed_costs,
            "variable_costs": variable_costs,
            "metrics": apply_derived_metrics(metrics, derived),
        })
        self._projects[project_id] = updated
        logger.info(
            f"Updated project {project_id}: burnRate={derived.burn_rate} "
            f"runway={derived.runway} fixedCostRatio={derived.fixed_cost_ratio}"
        )
        return updated

    def delete_project(self, project_id: str) -> None:
        if self._projects.pop(project_id, None) is None:
            raise ProjectNotFoundError(project_id)
        logger.info(f"Deleted project {project_id}")

    @staticmethod
    def _assign_cost_ids(entries: Iterable[CostEntry]) -> List[CostEntry]:
        stamp = _now_ms()
        out: List[CostEntry] = []
        for n, entry in enumerate(entries):
            if not entry.id:
                entry = entry.model_copy(update={"id": f"c{stamp}-{n}"})
            out.append(entry)
        return out

    # ── Clients ───────────────────────────────────────────────────────

    def list_clients(self) -> List[Client]:
        return list(self._clients.values())

    def get_client(self, client_id: str) -> Client:
        client = self._clients.get(client_id)
        if client is None:
            raise ProjectNotFoundError(client_id)
        return client

    def add_client(self, client: Client) -> Client:
        if not client.name.strip():
            raise ProjectValidationError({"name": "El nombre es requerido"})
        if client.id in self._clients:
            raise ProjectValidationError({"id": "El cliente ya existe"})
        self._clients[client.id] = client
        logger.info(f"Added client {client.id} ({client.name})")
        return client

    def update_client(self, client_id: str, data: ClientUpdate) -> Client:
        current = self.get_client(client_id)
        updated = current.model_copy(update=data.model_dump(exclude_none=True))
        self._clients[client_id] = updated
        return updated

    # ── Developers ────────────────────────────────────────────────────

    def list_developers(self) -> List[Developer]:
        return list(self._developers.values())

    def get_developer(self, developer_id: str) -> Developer:
        developer = self._developers.get(developer_id)
        if developer is None:
            raise ProjectNotFoundError(developer_id)
        return developer

    def add_developer(self, developer: Developer) -> Developer:
        if developer.id in self._developers:
            raise ProjectValidationError({"id": "El desarrollador ya existe"})
        self._developers[developer.id] = developer
        logger.info(f"Added developer {developer.id} ({developer.name})")
        return developer

    def update_developer(self, developer_id: str, data: DeveloperUpdate) -> Developer:
        current = self.get_developer(developer_id)
        updated = current.model_copy(update=data.model_dump(exclude_none=True))
        self._developers[developer_id] = updated
        return updated
