"""
StaffSense - Roster Service
Stores employees, projects and assignments, and hands the engine an
immutable snapshot of them. Accepting a recommendation creates the
Assignment rows for the chosen team.
"""

from sqlalchemy.orm import Session
from typing import List, Optional, Sequence, Tuple
import logging
import uuid

from staffsense.models.models import Assignment, Employee, Project
from staffsense.services.snapshot import (
    AssignmentSnapshot,
    EmployeeSnapshot,
    ProjectSnapshot,
)
from staffsense.utils.errors import InvalidInput

logger = logging.getLogger(__name__)


class RecordNotFound(LookupError):
    """A referenced roster record does not exist."""


def _join(skills: Sequence[str], field_name: str) -> str:
    # Stored comma-separated, so a comma inside a name would split it on read
    for skill in skills:
        if "," in skill:
            raise InvalidInput(f"skill names must not contain commas, got {skill!r}", field=field_name)
    return ",".join(skills)


def employee_to_snapshot(row: Employee) -> EmployeeSnapshot:
    return EmployeeSnapshot(
        id=row.id,
        skills=row.skills or "",
        experience_years=row.experience_years or 0.0,
        availability_state=row.availability_state,
        current_workload=row.current_workload,
        past_project_count=row.past_project_count or 0,
        hourly_rate=row.hourly_rate or 0.0,
        name=row.name,
        department=row.department
    )


def project_to_snapshot(row: Project) -> ProjectSnapshot:
    return ProjectSnapshot(
        id=row.id,
        required_skills=row.required_skills or "",
        estimated_hours=row.estimated_hours or 0.0,
        budget_allocated=row.budget_allocated or 0.0,
        budget_spent=row.budget_spent or 0.0,
        currency=row.currency or "USD",
        start_date=row.start_date,
        end_date=row.end_date,
        min_team_size=row.min_team_size or 1,
        max_team_size=row.max_team_size or 1,
        name=row.name,
        status=row.status,
        priority=row.priority
    )


def assignment_to_snapshot(row: Assignment) -> AssignmentSnapshot:
    return AssignmentSnapshot(
        id=row.id,
        employee_id=row.employee_id,
        project_id=row.project_id,
        allocation_percent=row.allocation_percent,
        start_date=row.start_date,
        end_date=row.end_date,
        is_lead=bool(row.is_lead)
    )


class RosterService:
    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # EMPLOYEES & PROJECTS
    # =========================================================================

    def upsert_employee(self, employee: EmployeeSnapshot) -> Employee:
        skills = _join(employee.skills, "employee.skills")
        row = self.db.get(Employee, employee.id) or Employee(id=employee.id)
        row.name = employee.name
        row.department = employee.department
        row.skills = skills
        row.experience_years = employee.experience_years
        row.availability_state = employee.availability_state
        row.current_workload = employee.current_workload
        row.past_project_count = employee.past_project_count
        row.hourly_rate = employee.hourly_rate
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def upsert_project(self, project: ProjectSnapshot) -> Project:
        required_skills = _join(project.required_skills, "project.requiredSkills")
        row = self.db.get(Project, project.id) or Project(id=project.id)
        row.name = project.name
        row.required_skills = required_skills
        row.estimated_hours = project.estimated_hours
        row.budget_allocated = project.budget_allocated
        row.budget_spent = project.budget_spent
        row.currency = project.currency
        row.start_date = project.start_date
        row.end_date = project.end_date
        row.min_team_size = project.min_team_size
        row.max_team_size = project.max_team_size
        row.status = project.status
        row.priority = project.priority
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def list_employees(self) -> List[EmployeeSnapshot]:
        rows = self.db.query(Employee).order_by(Employee.id).all()
        return [employee_to_snapshot(r) for r in rows]

    def list_projects(self, open_only: bool = False) -> List[ProjectSnapshot]:
        rows = self.db.query(Project).order_by(Project.id).all()
        projects = [project_to_snapshot(r) for r in rows]
        if open_only:
            projects = [p for p in projects if p.is_open]
        return projects

    def get_project(self, project_id: str) -> ProjectSnapshot:
        row = self.db.get(Project, project_id)
        if not row:
            raise RecordNotFound(f"Project {project_id} not found")
        return project_to_snapshot(row)

    # =========================================================================
    # ASSIGNMENTS
    # =========================================================================

    def list_assignments(
        self,
        employee_id: Optional[str] = None,
        project_id: Optional[str] = None
    ) -> List[AssignmentSnapshot]:
        query = self.db.query(Assignment)
        if employee_id:
            query = query.filter(Assignment.employee_id == employee_id)
        if project_id:
            query = query.filter(Assignment.project_id == project_id)
        rows = query.order_by(Assignment.start_date, Assignment.id).all()
        return [assignment_to_snapshot(r) for r in rows]

    def create_assignment(self, assignment: AssignmentSnapshot, commit: bool = True) -> AssignmentSnapshot:
        if not self.db.get(Employee, assignment.employee_id):
            raise RecordNotFound(f"Employee {assignment.employee_id} not found")
        if not self.db.get(Project, assignment.project_id):
            raise RecordNotFound(f"Project {assignment.project_id} not found")

        row = Assignment(
            id=assignment.id or str(uuid.uuid4()),
            employee_id=assignment.employee_id,
            project_id=assignment.project_id,
            allocation_percent=assignment.allocation_percent,
            start_date=assignment.start_date,
            end_date=assignment.end_date,
            is_lead=assignment.is_lead
        )
        self.db.add(row)
        if commit:
            self.db.commit()
            self.db.refresh(row)
        return assignment_to_snapshot(row)

    def delete_assignment(self, assignment_id: str) -> None:
        row = self.db.get(Assignment, assignment_id)
        if not row:
            raise RecordNotFound(f"Assignment {assignment_id} not found")
        self.db.delete(row)
        self.db.commit()

    def accept_recommendation(
        self,
        project_id: str,
        employee_ids: Sequence[str],
        allocation_percent: float = 100,
        lead_id: Optional[str] = None
    ) -> List[AssignmentSnapshot]:
        """
        Record an accepted team as assignments spanning the project's dates.

        All rows are written in one transaction; nothing is written if any
        employee is unknown.
        """
        project = self.get_project(project_id)
        if not employee_ids:
            raise InvalidInput("at least one employee is required", field="employeeIds")
        if len(set(employee_ids)) != len(employee_ids):
            raise InvalidInput("employee ids must be unique", field="employeeIds")
        if lead_id is not None and lead_id not in employee_ids:
            raise InvalidInput(f"lead {lead_id} is not part of the team", field="leadId")

        lead = lead_id or employee_ids[0]
        created = []
        try:
            for employee_id in employee_ids:
                created.append(self.create_assignment(
                    AssignmentSnapshot(
                        employee_id=employee_id,
                        project_id=project.id,
                        allocation_percent=allocation_percent,
                        start_date=project.start_date,
                        end_date=project.end_date,
                        is_lead=(employee_id == lead),
                        id=str(uuid.uuid4())
                    ),
                    commit=False
                ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Accepted team of {len(created)} for project {project.id}")
        return created

    def snapshot(self) -> Tuple[List[EmployeeSnapshot], List[ProjectSnapshot], List[AssignmentSnapshot]]:
        """Consistent engine input: every employee, project and assignment."""
        return self.list_employees(), self.list_projects(), self.list_assignments()
