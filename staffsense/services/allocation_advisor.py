"""
StaffSense - Allocation Advisor
Runs the full decision pipeline for one project:

    rank → select team → hire-vs-assign → capacity what-if

An assign or hybrid recommendation whose tentative team would push
someone over 100% is flagged as vetoed. The veto is advisory: the
recommendation itself is left unchanged for the reviewer.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import logging

from staffsense.config import EngineConfig
from staffsense.services.capacity_planner import CapacityPlanner, WhatIfResult
from staffsense.services.hire_vs_assign import HireVsAssignAnalysis, HireVsAssignAnalyzer, Recommendation
from staffsense.services.ranker import Ranker, TeamSelection
from staffsense.services.scoring_engine import Match, ScoringEngine
from staffsense.services.snapshot import (
    AssignmentSnapshot,
    EmployeeSnapshot,
    ProjectSnapshot,
    TimeWindow,
    require_project,
)
from staffsense.utils.cancellation import CancelToken, check_cancelled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdvisorResult:
    """Everything a reviewer needs to accept or reject a staffing decision."""
    project_id: str
    matches: Tuple[Match, ...]
    team_selection: TeamSelection
    analysis: HireVsAssignAnalysis
    capacity_check: WhatIfResult
    vetoed: bool
    veto_reasons: Tuple[str, ...] = field(default_factory=tuple)


class AllocationAdvisor:
    """Wires the engine components together around one shared EngineConfig."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.scoring_engine = ScoringEngine(self.config)
        self.ranker = Ranker(self.config, self.scoring_engine)
        self.analyzer = HireVsAssignAnalyzer(self.config, self.ranker)
        self.planner = CapacityPlanner(self.config)

    def evaluate(
        self,
        project: ProjectSnapshot,
        employees: Sequence[EmployeeSnapshot],
        projects: Optional[Sequence[ProjectSnapshot]] = None,
        assignments: Optional[Sequence[AssignmentSnapshot]] = None,
        time_window: Optional[TimeWindow] = None,
        allocation_percent: float = 100,
        cancel: Optional[CancelToken] = None
    ) -> AdvisorResult:
        """
        Evaluate one project against a consistent snapshot.

        Args:
            project: Project to staff
            employees: Whole employee pool
            projects: All other active/planned projects (project is added if absent)
            assignments: Current assignments across the pool
            time_window: Capacity window (defaults to the project's dates)
            allocation_percent: Share each selected employee would commit
            cancel: Optional token checked between pipeline stages
        """
        project = require_project(project)
        window = time_window or TimeWindow(project.start_date, project.end_date)

        matches = self.ranker.rank(project, employees, cancel)
        check_cancelled(cancel, "advisor.select")
        selection = self.ranker.select_team(project, matches)

        check_cancelled(cancel, "advisor.analyze")
        analysis = self.analyzer.analyze(project, matches, selection)

        check_cancelled(cancel, "advisor.capacity")
        what_if = self.planner.simulate(
            window, employees, projects or [], assignments or [],
            project, selection, allocation_percent, cancel
        )

        veto_reasons: List[str] = []
        if analysis.recommendation in (Recommendation.ASSIGN, Recommendation.HYBRID):
            for employee_id in what_if.newly_over_allocated:
                row = what_if.plan.employee(employee_id)
                peak = row.peak_allocation if row else 0
                veto_reasons.append(
                    f"Assigning {employee_id} would raise concurrent allocation to {peak:g}%"
                )

        vetoed = bool(veto_reasons)
        if vetoed:
            logger.warning(
                f"Recommendation {analysis.recommendation.value} for project {project.id} "
                f"is infeasible under current capacity"
            )

        return AdvisorResult(
            project_id=project.id,
            matches=tuple(matches),
            team_selection=selection,
            analysis=analysis,
            capacity_check=what_if,
            vetoed=vetoed,
            veto_reasons=tuple(veto_reasons)
        )
