"""
StaffSense - Roster Router
Stored employees, projects and assignments, plus evaluation and
acceptance of staffing decisions over the stored roster.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from staffsense.database import get_db
from staffsense.routers.dependencies import engine_config, engine_http_error
from staffsense.schemas.engine_schemas import (
    AdvisorResponse,
    AssignmentSchema,
    EmployeeSchema,
    ProjectSchema,
    advisor_result_to_schema,
)
from staffsense.schemas.roster_schemas import (
    AcceptRecommendationRequest,
    AcceptRecommendationResponse,
)
from staffsense.services.allocation_advisor import AllocationAdvisor
from staffsense.services.roster_service import (
    RecordNotFound,
    RosterService,
    employee_to_snapshot,
    project_to_snapshot,
)
from staffsense.utils.errors import EngineError

router = APIRouter(prefix="/roster")
logger = logging.getLogger(__name__)


# ============================================
# Employees
# ============================================

@router.post("/employees", response_model=EmployeeSchema, status_code=201)
async def upsert_employee(employee: EmployeeSchema, db: Session = Depends(get_db)):
    """Create or replace an employee record."""
    try:
        row = RosterService(db).upsert_employee(employee.to_snapshot())
        return EmployeeSchema.from_snapshot(employee_to_snapshot(row))
    except EngineError as e:
        raise engine_http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/employees", response_model=List[EmployeeSchema])
async def list_employees(db: Session = Depends(get_db)):
    """List all stored employees."""
    return [EmployeeSchema.from_snapshot(e) for e in RosterService(db).list_employees()]


# ============================================
# Projects
# ============================================

@router.post("/projects", response_model=ProjectSchema, status_code=201)
async def upsert_project(project: ProjectSchema, db: Session = Depends(get_db)):
    """Create or replace a project record."""
    try:
        row = RosterService(db).upsert_project(project.to_snapshot())
        return ProjectSchema.from_snapshot(project_to_snapshot(row))
    except EngineError as e:
        raise engine_http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/projects", response_model=List[ProjectSchema])
async def list_projects(
    open_only: bool = Query(False, alias="openOnly", description="Only planning/active projects"),
    db: Session = Depends(get_db)
):
    """List stored projects."""
    return [ProjectSchema.from_snapshot(p) for p in RosterService(db).list_projects(open_only=open_only)]


# ============================================
# Assignments
# ============================================

@router.get("/assignments", response_model=List[AssignmentSchema])
async def list_assignments(
    employee_id: Optional[str] = Query(None, alias="employeeId"),
    project_id: Optional[str] = Query(None, alias="projectId"),
    db: Session = Depends(get_db)
):
    """List assignments, optionally filtered by employee or project."""
    assignments = RosterService(db).list_assignments(employee_id=employee_id, project_id=project_id)
    return [AssignmentSchema.from_snapshot(a) for a in assignments]


@router.post("/assignments", response_model=AssignmentSchema, status_code=201)
async def create_assignment(assignment: AssignmentSchema, db: Session = Depends(get_db)):
    """Record a single assignment. Both employee and project must exist."""
    try:
        created = RosterService(db).create_assignment(assignment.to_snapshot())
        return AssignmentSchema.from_snapshot(created)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EngineError as e:
        raise engine_http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/assignments/{assignment_id}", status_code=204)
async def delete_assignment(assignment_id: str, db: Session = Depends(get_db)):
    try:
        RosterService(db).delete_assignment(assignment_id)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


# ============================================
# Decisions over the stored roster
# ============================================

@router.get("/projects/{project_id}/evaluation", response_model=AdvisorResponse)
async def evaluate_stored_project(
    project_id: str,
    allocation_percent: float = Query(100, alias="allocationPercent", ge=0, le=100),
    db: Session = Depends(get_db)
):
    """
    **Evaluate a Stored Project**

    Runs the allocation advisor against a fresh snapshot of every stored
    employee, project and assignment.
    """
    service = RosterService(db)
    try:
        project = service.get_project(project_id)
        employees, projects, assignments = service.snapshot()

        advisor = AllocationAdvisor(engine_config())
        result = advisor.evaluate(
            project=project,
            employees=employees,
            projects=projects,
            assignments=assignments,
            allocation_percent=allocation_percent
        )
        return advisor_result_to_schema(result)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EngineError as e:
        raise engine_http_error(e)
    except Exception as e:
        logger.exception(f"Evaluation of project {project_id} failed")
        raise HTTPException(status_code=500, detail=f"Evaluation error: {str(e)}")


@router.post("/projects/{project_id}/accept", response_model=AcceptRecommendationResponse, status_code=201)
async def accept_recommendation(
    project_id: str,
    request: AcceptRecommendationRequest,
    db: Session = Depends(get_db)
):
    """
    **Accept a Staffing Decision**

    Creates one assignment per accepted employee spanning the project's
    dates. The first employee (or `leadId`) is marked as lead.
    """
    try:
        created = RosterService(db).accept_recommendation(
            project_id=project_id,
            employee_ids=request.employee_ids,
            allocation_percent=request.allocation_percent,
            lead_id=request.lead_id
        )
        return AcceptRecommendationResponse(
            project_id=project_id,
            assignments=[AssignmentSchema.from_snapshot(a) for a in created],
            message=f"Assigned {len(created)} employees to project {project_id}"
        )
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EngineError as e:
        raise engine_http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
