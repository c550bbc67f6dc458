"""
StaffSense - Matching Router
API endpoints for ranking employees against a project and selecting a team.
"""

from fastapi import APIRouter, HTTPException

from staffsense.routers.dependencies import engine_config, engine_http_error
from staffsense.schemas.engine_schemas import (
    RankRequest,
    RankResponse,
    TeamResponse,
    match_to_schema,
    team_selection_to_schema,
)
from staffsense.services.ranker import Ranker
from staffsense.utils.errors import EngineError

router = APIRouter(prefix="/match")


# ============================================
# Ranking Endpoints
# ============================================

@router.post("/rank", response_model=RankResponse)
async def rank_employees(request: RankRequest):
    """
    **Rank Employees for a Project**

    Scores every supplied employee against the project:

    - Skills (40%): share of required skills held
    - Availability (30%): state / workload lookup
    - Performance (30%): experience plus past-project bonus

    Ordered by overall score, then skill match, then availability,
    then employee id.
    """
    try:
        ranker = Ranker(engine_config(request.options))
        project = request.project.to_snapshot()
        employees = [e.to_snapshot() for e in request.employees]
        matches = ranker.rank(project, employees)

        return RankResponse(
            project_id=project.id,
            matches=[match_to_schema(m) for m in matches],
            total_candidates=len(matches)
        )
    except EngineError as e:
        raise engine_http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Ranking error: {str(e)}")


@router.post("/team", response_model=TeamResponse)
async def select_team(request: RankRequest):
    """
    **Rank and Select a Team**

    Greedily takes ranked employees whose availability clears the viability
    floor until `maxTeamSize`. Fewer than `minTeamSize` viable employees
    returns `feasible: false`; the floor is never relaxed.
    """
    try:
        ranker = Ranker(engine_config(request.options))
        project = request.project.to_snapshot()
        employees = [e.to_snapshot() for e in request.employees]
        matches = ranker.rank(project, employees)
        selection = ranker.select_team(project, matches)

        return TeamResponse(
            project_id=project.id,
            matches=[match_to_schema(m) for m in matches],
            team_selection=team_selection_to_schema(selection)
        )
    except EngineError as e:
        raise engine_http_error(e)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Team selection error: {str(e)}")
