"""
StaffSense - Analysis Router
Hire-vs-assign comparison and the full allocation advisor pipeline.
"""

from fastapi import APIRouter, HTTPException
import logging

from staffsense.routers.dependencies import engine_config, engine_http_error
from staffsense.schemas.engine_schemas import (
    AdvisorRequest,
    AdvisorResponse,
    HireVsAssignRequest,
    HireVsAssignResponse,
    advisor_result_to_schema,
    analysis_to_schema,
)
from staffsense.services.allocation_advisor import AllocationAdvisor
from staffsense.services.hire_vs_assign import HireVsAssignAnalyzer
from staffsense.services.ranker import Ranker
from staffsense.utils.errors import EngineError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/analysis/hire-vs-assign", response_model=HireVsAssignResponse)
async def hire_vs_assign(request: HireVsAssignRequest):
    """
    **Compare Hiring Against Internal Assignment**

    - hire cost = required skills × per-skill hiring cost
    - assign cost = estimated hours × internal hourly rate

    Recommendation: `hire` when nobody clears the availability floor,
    `hybrid` when the viable team is smaller than `minTeamSize`, otherwise
    the cheaper plan (assign wins ties). `reasoning` cites the cost delta,
    timeline delta and feasibility.
    """
    try:
        config = engine_config(request.options)
        ranker = Ranker(config)
        analyzer = HireVsAssignAnalyzer(config, ranker)

        project = request.project.to_snapshot()
        employees = [e.to_snapshot() for e in request.employees]
        matches = ranker.rank(project, employees)
        analysis = analyzer.analyze(project, matches)

        return analysis_to_schema(analysis)
    except EngineError as e:
        raise engine_http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Analysis error: {str(e)}")


@router.post("/advisor/evaluate", response_model=AdvisorResponse)
async def evaluate_project(request: AdvisorRequest):
    """
    **Run the Allocation Advisor**

    rank → select team → hire-vs-assign → capacity what-if.

    An `assign` or `hybrid` recommendation whose team would push anyone
    above 100% concurrent allocation comes back with `vetoed: true` and
    the reasons; the recommendation itself is not changed.
    """
    try:
        advisor = AllocationAdvisor(engine_config(request.options))
        result = advisor.evaluate(
            project=request.project.to_snapshot(),
            employees=[e.to_snapshot() for e in request.employees],
            projects=[p.to_snapshot() for p in request.projects],
            assignments=[a.to_snapshot() for a in request.assignments],
            time_window=request.time_window.to_window() if request.time_window else None,
            allocation_percent=request.allocation_percent
        )
        return advisor_result_to_schema(result)
    except EngineError as e:
        raise engine_http_error(e)
    except Exception as e:
        logger.exception("Advisor evaluation failed")
        raise HTTPException(status_code=500, detail=f"Advisor error: {str(e)}")
