"""
StaffSense - Engine Snapshot Types
Immutable Employee / Project / Assignment records the engine evaluates.

The engine never reads the roster store directly: callers hand it a
consistent snapshot built from these types, either via the API schemas or
via RosterService.snapshot().
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from staffsense.utils.errors import InvalidInput


# ============================================
# Enums
# ============================================

class AvailabilityState(str, Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    UNAVAILABLE = "unavailable"


class Workload(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Projects that still compete for people
OPEN_PROJECT_STATUSES = frozenset({ProjectStatus.PLANNING, ProjectStatus.ACTIVE})


def normalize_skill(skill: str) -> str:
    return skill.strip().lower()


def _coerce_enum(enum_cls, value, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise InvalidInput(f"{value!r} is not one of: {allowed}", field=field_name)


def _coerce_date(value, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass
    raise InvalidInput(f"expected an ISO date, got {value!r}", field=field_name)


def _require_number(value, field_name: str, minimum: float = 0) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"expected a number, got {value!r}", field=field_name)
    if value < minimum:
        raise InvalidInput(f"must be >= {minimum} (got {value})", field=field_name)
    return value


def _require_id(value, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidInput("identifier is required", field=field_name)
    return str(value)


def _skill_set(skills: Optional[Iterable[str]], field_name: str) -> Tuple[str, ...]:
    """De-duplicate case-insensitively, keeping first spelling and order."""
    if skills is None:
        return ()
    if isinstance(skills, str):
        skills = [s for s in skills.split(",")]
    seen = set()
    result = []
    for skill in skills:
        if not isinstance(skill, str):
            raise InvalidInput(f"skill names must be strings, got {skill!r}", field=field_name)
        key = normalize_skill(skill)
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(skill.strip())
    return tuple(result)


def _pick(data: Dict[str, Any], *keys, default=None):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


# ============================================
# Snapshot Records
# ============================================

@dataclass(frozen=True)
class EmployeeSnapshot:
    """Read-only view of one employee as owned by the HR system of record."""
    id: str
    skills: Tuple[str, ...]
    experience_years: float
    availability_state: AvailabilityState
    current_workload: Workload
    past_project_count: int = 0
    hourly_rate: float = 0.0
    name: Optional[str] = None
    department: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "id", _require_id(self.id, "employee.id"))
        object.__setattr__(self, "skills", _skill_set(self.skills, "employee.skills"))
        _require_number(self.experience_years, "employee.experienceYears")
        _require_number(self.past_project_count, "employee.pastProjectCount")
        _require_number(self.hourly_rate, "employee.hourlyRate")
        object.__setattr__(self, "availability_state", _coerce_enum(
            AvailabilityState, self.availability_state, "employee.availabilityState"))
        object.__setattr__(self, "current_workload", _coerce_enum(
            Workload, self.current_workload, "employee.currentWorkload"))

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def skill_keys(self) -> FrozenSet[str]:
        return frozenset(normalize_skill(s) for s in self.skills)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmployeeSnapshot":
        """Create from camelCase or snake_case mapping."""
        if not isinstance(data, dict):
            raise InvalidInput("employee record is required", field="employee")
        past_projects = _pick(data, "pastProjects", "past_projects")
        past_count = _pick(data, "pastProjectCount", "past_project_count")
        if past_count is None:
            past_count = len(past_projects) if past_projects else 0
        return cls(
            id=_pick(data, "id", "employeeId", "employee_id"),
            skills=_pick(data, "skills", default=()),
            experience_years=_pick(data, "experienceYears", "experience_years", "experience"),
            availability_state=_pick(data, "availabilityState", "availability_state", "availability"),
            current_workload=_pick(data, "currentWorkload", "current_workload"),
            past_project_count=past_count,
            hourly_rate=_pick(data, "hourlyRate", "hourly_rate", default=0.0),
            name=_pick(data, "name"),
            department=_pick(data, "department"),
        )


@dataclass(frozen=True)
class ProjectSnapshot:
    """Read-only view of one piece of work for a single evaluation."""
    id: str
    required_skills: Tuple[str, ...]
    estimated_hours: float
    budget_allocated: float
    start_date: date
    end_date: date
    min_team_size: int = 1
    max_team_size: int = 1
    name: Optional[str] = None
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: Priority = Priority.MEDIUM
    budget_spent: float = 0.0
    currency: str = "USD"

    def __post_init__(self):
        object.__setattr__(self, "id", _require_id(self.id, "project.id"))
        object.__setattr__(self, "required_skills",
                           _skill_set(self.required_skills, "project.requiredSkills"))
        _require_number(self.estimated_hours, "project.estimatedHours")
        _require_number(self.budget_allocated, "project.budget.allocated")
        _require_number(self.budget_spent, "project.budget.spent")
        object.__setattr__(self, "start_date", _coerce_date(self.start_date, "project.startDate"))
        object.__setattr__(self, "end_date", _coerce_date(self.end_date, "project.endDate"))
        if self.end_date < self.start_date:
            raise InvalidInput("endDate must not precede startDate", field="project.endDate")
        _require_number(self.min_team_size, "project.minTeamSize", minimum=1)
        _require_number(self.max_team_size, "project.maxTeamSize", minimum=1)
        if self.min_team_size > self.max_team_size:
            raise InvalidInput(
                f"minTeamSize ({self.min_team_size}) exceeds maxTeamSize ({self.max_team_size})",
                field="project.minTeamSize"
            )
        object.__setattr__(self, "status", _coerce_enum(ProjectStatus, self.status, "project.status"))
        object.__setattr__(self, "priority", _coerce_enum(Priority, self.priority, "project.priority"))

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_PROJECT_STATUSES

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectSnapshot":
        """Create from camelCase or snake_case mapping."""
        if not isinstance(data, dict):
            raise InvalidInput("project record is required", field="project")
        budget = data.get("budget") or {}
        return cls(
            id=_pick(data, "id", "projectId", "project_id"),
            required_skills=_pick(data, "requiredSkills", "required_skills", default=()),
            estimated_hours=_pick(data, "estimatedHours", "estimated_hours"),
            budget_allocated=_pick(budget, "allocated",
                                   default=_pick(data, "budgetAllocated", "budget_allocated", default=0.0)),
            budget_spent=_pick(budget, "spent", default=0.0),
            currency=_pick(budget, "currency", default="USD"),
            start_date=_pick(data, "startDate", "start_date"),
            end_date=_pick(data, "endDate", "end_date"),
            min_team_size=_pick(data, "minTeamSize", "min_team_size", default=1),
            max_team_size=_pick(data, "maxTeamSize", "max_team_size", default=1),
            name=_pick(data, "name"),
            status=_pick(data, "status", default=ProjectStatus.PLANNING),
            priority=_pick(data, "priority", default=Priority.MEDIUM),
        )


@dataclass(frozen=True)
class AssignmentSnapshot:
    """One employee's share of one project over a date range (inclusive)."""
    employee_id: str
    project_id: str
    allocation_percent: float
    start_date: date
    end_date: date
    is_lead: bool = False
    id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "employee_id", _require_id(self.employee_id, "assignment.employeeId"))
        object.__setattr__(self, "project_id", _require_id(self.project_id, "assignment.projectId"))
        _require_number(self.allocation_percent, "assignment.allocationPercent")
        if self.allocation_percent > 100:
            raise InvalidInput(
                f"must be within [0, 100] (got {self.allocation_percent})",
                field="assignment.allocationPercent"
            )
        object.__setattr__(self, "start_date", _coerce_date(self.start_date, "assignment.startDate"))
        object.__setattr__(self, "end_date", _coerce_date(self.end_date, "assignment.endDate"))
        if self.end_date < self.start_date:
            raise InvalidInput("endDate must not precede startDate", field="assignment.endDate")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssignmentSnapshot":
        if not isinstance(data, dict):
            raise InvalidInput("assignment record is required", field="assignment")
        return cls(
            employee_id=_pick(data, "employeeId", "employee_id"),
            project_id=_pick(data, "projectId", "project_id"),
            allocation_percent=_pick(data, "allocationPercent", "allocation_percent", "allocation"),
            start_date=_pick(data, "startDate", "start_date"),
            end_date=_pick(data, "endDate", "end_date"),
            is_lead=bool(_pick(data, "isLead", "is_lead", default=False)),
            id=_pick(data, "id"),
        )


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive planning window."""
    start: date
    end: date

    def __post_init__(self):
        object.__setattr__(self, "start", _coerce_date(self.start, "timeWindow.start"))
        object.__setattr__(self, "end", _coerce_date(self.end, "timeWindow.end"))
        if self.end < self.start:
            raise InvalidInput("end must not precede start", field="timeWindow.end")

    def overlaps(self, start: date, end: date) -> bool:
        return start <= self.end and end >= self.start

    def clip(self, start: date, end: date) -> Optional[Tuple[date, date]]:
        if not self.overlaps(start, end):
            return None
        return max(start, self.start), min(end, self.end)


def require_employee(employee: Optional[EmployeeSnapshot]) -> EmployeeSnapshot:
    if employee is None:
        raise InvalidInput("employee is required", field="employee")
    if not isinstance(employee, EmployeeSnapshot):
        raise InvalidInput(f"expected EmployeeSnapshot, got {type(employee).__name__}", field="employee")
    return employee


def require_project(project: Optional[ProjectSnapshot]) -> ProjectSnapshot:
    if project is None:
        raise InvalidInput("project is required", field="project")
    if not isinstance(project, ProjectSnapshot):
        raise InvalidInput(f"expected ProjectSnapshot, got {type(project).__name__}", field="project")
    return project
