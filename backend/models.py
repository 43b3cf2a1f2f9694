"""Pydantic models for projects, clients and developers"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ProjectStatus:
    PROPOSAL = "proposal"
    IN_DEVELOPMENT = "in_development"
    TESTING = "testing"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"

    ALL = frozenset({PROPOSAL, IN_DEVELOPMENT, TESTING, COMPLETED, ON_HOLD})


class Priority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    ALL = frozenset({LOW, MEDIUM, HIGH, CRITICAL})


INDUSTRY_LABELS = {
    'fintech': 'Fintech',
    'healthcare': 'Salud',
    'ecommerce': 'E-Commerce',
    'education': 'Educación',
    'logistics': 'Logística',
    'saas': 'SaaS',
    'media': 'Media',
    'real_estate': 'Bienes Raíces',
}

STATUS_LABELS = {
    ProjectStatus.PROPOSAL: 'Propuesta',
    ProjectStatus.IN_DEVELOPMENT: 'En Desarrollo',
    ProjectStatus.TESTING: 'Testing',
    ProjectStatus.COMPLETED: 'Completado',
    ProjectStatus.ON_HOLD: 'En Pausa',
}

ROLE_LABELS = {
    'frontend': 'Frontend',
    'backend': 'Backend',
    'fullstack': 'Full Stack',
    'mobile': 'Mobile',
    'devops': 'DevOps',
    'designer': 'Diseñador UI/UX',
    'qa': 'QA Engineer',
    'pm': 'Project Manager',
}


# ============ Projects ============

class CostEntry(BaseModel):
    id: str = ""             # assigned by the repository when blank
    label: str = ""
    amount: float = 0


class Milestone(BaseModel):
    id: str
    title: str
    due_date: str
    completed: bool = False


class Project(BaseModel):
    id: str
    name: str
    description: str = ""
    client_id: str
    industry: str = "saas"
    status: str = ProjectStatus.PROPOSAL
    priority: str = Priority.MEDIUM
    budget: float
    spent: float = 0
    start_date: str
    end_date: str
    team_ids: List[str] = Field(default_factory=list)
    milestones: List[Milestone] = Field(default_factory=list)
    progress: float = 0
    tech_stack: List[str] = Field(default_factory=list)
    metrics: Dict[str, float] = Field(default_factory=dict)  # metric key -> value
    fixed_costs: List[CostEntry] = Field(default_factory=list)
    variable_costs: List[CostEntry] = Field(default_factory=list)


class ProjectCreate(BaseModel):
    """New-project form.  Numbers arrive as form strings or numbers."""
    name: str = ""
    description: str = ""
    client_id: str = ""
    industry: str = "saas"
    status: str = ProjectStatus.PROPOSAL
    priority: str = Priority.MEDIUM
    budget: Optional[str | float] = None
    start_date: str = ""
    end_date: str = ""
    team_ids: List[str] = Field(default_factory=list)
    tech_stack: List[str] = Field(default_factory=list)


class ProjectEdit(BaseModel):
    """Edit form.  A field left as None keeps the project's current value."""
    name: Optional[str] = None
    description: Optional[str] = None
    client_id: Optional[str] = None
    industry: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    budget: Optional[str | float] = None
    spent: Optional[str | float] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    progress: Optional[str | float] = None
    team_ids: Optional[List[str]] = None
    tech_stack: Optional[List[str]] = None
    fixed_costs: Optional[List[CostEntry]] = None
    variable_costs: Optional[List[CostEntry]] = None
    metrics: Optional[Dict[str, float]] = None   # manually entered values


# ============ Clients & Developers ============

class Client(BaseModel):
    id: str
    name: str
    contact_name: str = ""
    email: str = ""
    phone: str = ""
    industry: str = "saas"
    logo: Optional[str] = None
    address: str = ""
    notes: str = ""
    created_at: str = ""


class ClientUpdate(BaseModel):
    name: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    industry: Optional[str] = None
    logo: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class Developer(BaseModel):
    id: str
    name: str
    role: str = "fullstack"
    skills: List[str] = Field(default_factory=list)
    avatar: Optional[str] = None
    email: str = ""
    hourly_rate: float = 0
    availability: float = 100   # percent free
    joined_at: str = ""


class DeveloperUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    skills: Optional[List[str]] = None
    avatar: Optional[str] = None
    email: Optional[str] = None
    hourly_rate: Optional[float] = None
    availability: Optional[float] = None
