"""
StaffSense - Capacity Router
Cross-project capacity planning and what-if staffing checks.
"""

from fastapi import APIRouter, HTTPException

from staffsense.routers.dependencies import engine_config, engine_http_error
from staffsense.schemas.engine_schemas import (
    CapacityPlanRequest,
    CapacityPlanResponse,
    WhatIfRequest,
    WhatIfResponse,
    capacity_plan_to_schema,
    what_if_to_schema,
)
from staffsense.services.capacity_planner import CapacityPlanner
from staffsense.services.ranker import Ranker
from staffsense.utils.errors import EngineError

router = APIRouter(prefix="/capacity")


@router.post("/plan", response_model=CapacityPlanResponse)
async def capacity_plan(request: CapacityPlanRequest):
    """
    **Capacity Plan for a Time Window**

    Per-employee concurrent allocation (with over-allocated sub-intervals),
    per-project allocated vs. required hours, and skill / employee /
    timeline bottlenecks with recommendations.
    """
    try:
        planner = CapacityPlanner(engine_config(request.options))
        plan = planner.plan(
            request.time_window.to_window(),
            [e.to_snapshot() for e in request.employees],
            [p.to_snapshot() for p in request.projects],
            [a.to_snapshot() for a in request.assignments]
        )
        return capacity_plan_to_schema(plan)
    except EngineError as e:
        raise engine_http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Capacity planning error: {str(e)}")


@router.post("/what-if", response_model=WhatIfResponse)
async def capacity_what_if(request: WhatIfRequest):
    """
    **What-if: Staff a Project Tentatively**

    Adds tentative assignments for `employeeIds` (or the ranker's team
    selection when omitted) over the project's dates and re-plans.
    `newlyOverAllocated` lists anyone the team would push above 100%.
    """
    try:
        config = engine_config(request.options)
        planner = CapacityPlanner(config)
        project = request.project.to_snapshot()
        employees = [e.to_snapshot() for e in request.employees]

        if request.employee_ids is None:
            ranker = Ranker(config)
            selection = ranker.select_team(project, ranker.rank(project, employees))
        else:
            selection = request.employee_ids

        result = planner.simulate(
            request.time_window.to_window(),
            employees,
            [p.to_snapshot() for p in request.projects],
            [a.to_snapshot() for a in request.assignments],
            project,
            selection,
            request.allocation_percent
        )
        return what_if_to_schema(result)
    except EngineError as e:
        raise engine_http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"What-if error: {str(e)}")
