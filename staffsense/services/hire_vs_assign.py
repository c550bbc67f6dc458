"""
StaffSense - Hire-vs-Assign Analyzer
Compares an external hiring plan against an internal assignment plan.

COST MODEL:
    hire.cost   = |required skills| × per_skill_hiring_cost
    assign.cost = estimated_hours × avg_internal_hourly_rate

RECOMMENDATION POLICY (first rule that applies):
    1. Nobody clears the viability floor     → hire
    2. Viable team smaller than min_team_size → hybrid
    3. Otherwise the cheaper plan             → assign | hire (assign wins ties)

Reasoning is a fixed template citing cost delta, timeline delta and
feasibility so every recommendation can be audited.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Sequence, Tuple
import logging

from staffsense.config import EngineConfig
from staffsense.services.ranker import Ranker, TeamSelection
from staffsense.services.scoring_engine import Match
from staffsense.services.snapshot import ProjectSnapshot, require_project
from staffsense.utils.errors import InvalidInput

logger = logging.getLogger(__name__)


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Recommendation(str, Enum):
    HIRE = "hire"
    ASSIGN = "assign"
    HYBRID = "hybrid"


HIRE_PROS = (
    "Fresh perspective and new ideas",
    "Dedicated focus on project",
    "Latest industry knowledge",
    "Long-term team growth",
)
HIRE_CONS = (
    "Longer time to productivity",
    "Higher upfront costs",
    "Cultural integration time",
    "Uncertain performance",
)
ASSIGN_PROS = (
    "Immediate availability",
    "Known performance history",
    "Existing team dynamics",
    "Lower risk",
)
ASSIGN_CONS = (
    "Potential skill gaps",
    "Competing priorities",
    "Limited fresh perspective",
    "Workload concerns",
)


@dataclass(frozen=True)
class PlanOption:
    """One side of the comparison."""
    cost: float
    timeline_days: int
    risk_level: RiskLevel
    confidence: float
    pros: Tuple[str, ...] = field(default_factory=tuple)
    cons: Tuple[str, ...] = field(default_factory=tuple)
    available_employees: Tuple[Match, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class HireVsAssignAnalysis:
    """Fresh per evaluation; superseded, never mutated."""
    project_id: str
    hire: PlanOption
    assign: PlanOption
    recommendation: Recommendation
    reasoning: str
    team_selection: TeamSelection
    generated_at: datetime

    @property
    def cost_delta(self) -> float:
        """Positive when hiring costs more than assigning."""
        return self.hire.cost - self.assign.cost

    @property
    def timeline_delta(self) -> int:
        """Positive when hiring takes longer than assigning."""
        return self.hire.timeline_days - self.assign.timeline_days


def _money(value: float) -> str:
    return f"{value:,.0f}"


class HireVsAssignAnalyzer:
    """Builds both plans from EngineConfig constants and picks one."""

    def __init__(self, config: Optional[EngineConfig] = None, ranker: Optional[Ranker] = None):
        self.config = config or EngineConfig()
        self.ranker = ranker or Ranker(self.config)

    def hire_plan(self, project: ProjectSnapshot) -> PlanOption:
        return PlanOption(
            cost=len(project.required_skills) * self.config.per_skill_hiring_cost,
            timeline_days=int(self.config.avg_time_to_hire_days),
            risk_level=RiskLevel.MEDIUM,
            confidence=self.config.hire_confidence,
            pros=HIRE_PROS,
            cons=HIRE_CONS
        )

    def assign_plan(
        self,
        project: ProjectSnapshot,
        ranked_matches: Sequence[Match],
        selection: TeamSelection
    ) -> PlanOption:
        feasible = selection.feasible
        return PlanOption(
            cost=project.estimated_hours * self.config.avg_internal_hourly_rate,
            timeline_days=int(self.config.avg_reassignment_days),
            risk_level=RiskLevel.LOW if feasible else RiskLevel.HIGH,
            confidence=self.config.assign_confidence if feasible else self.config.infeasible_assign_confidence,
            pros=ASSIGN_PROS,
            cons=ASSIGN_CONS,
            available_employees=tuple(ranked_matches[:self.config.shortlist_size])
        )

    def analyze(
        self,
        project: ProjectSnapshot,
        ranked_matches: Sequence[Match],
        selection: Optional[TeamSelection] = None,
        now: Optional[datetime] = None
    ) -> HireVsAssignAnalysis:
        """
        Compare hiring against assigning the ranked shortlist.

        Args:
            project: Project under evaluation
            ranked_matches: Output of Ranker.rank() for this project
            selection: Precomputed team selection (computed when omitted)
            now: Timestamp for generated_at (defaults to current UTC time)
        """
        project = require_project(project)
        if ranked_matches is None:
            raise InvalidInput("ranked matches are required", field="rankedMatches")
        for match in ranked_matches:
            if match.project_id != project.id:
                raise InvalidInput(
                    f"match for employee {match.employee_id} belongs to project {match.project_id}",
                    field="rankedMatches"
                )

        if selection is None:
            selection = self.ranker.select_team(project, ranked_matches)

        hire = self.hire_plan(project)
        assign = self.assign_plan(project, ranked_matches, selection)
        recommendation = self._recommend(hire, assign, selection)
        reasoning = self._reasoning(project, hire, assign, selection, recommendation)

        logger.info(
            f"Hire-vs-assign for project {project.id}: {recommendation.value} "
            f"(hire {_money(hire.cost)}, assign {_money(assign.cost)}, feasible={selection.feasible})"
        )

        return HireVsAssignAnalysis(
            project_id=project.id,
            hire=hire,
            assign=assign,
            recommendation=recommendation,
            reasoning=reasoning,
            team_selection=selection,
            generated_at=now or datetime.now(timezone.utc)
        )

    def _recommend(self, hire: PlanOption, assign: PlanOption, selection: TeamSelection) -> Recommendation:
        if not selection.selected:
            return Recommendation.HIRE
        # Nobody viable is infeasible outright; a short but non-empty team keeps
        # its viable members and hires the shortfall
        if len(selection.selected) < selection.min_team_size:
            return Recommendation.HYBRID
        if assign.cost <= hire.cost:
            return Recommendation.ASSIGN
        return Recommendation.HIRE

    def _reasoning(
        self,
        project: ProjectSnapshot,
        hire: PlanOption,
        assign: PlanOption,
        selection: TeamSelection,
        recommendation: Recommendation
    ) -> str:
        cost_delta = hire.cost - assign.cost
        days_delta = hire.timeline_days - assign.timeline_days

        if cost_delta >= 0:
            cost_line = (f"Internal assignment costs {_money(assign.cost)} versus {_money(hire.cost)} "
                         f"to hire, saving {_money(cost_delta)}.")
        else:
            cost_line = (f"Hiring costs {_money(hire.cost)} versus {_money(assign.cost)} "
                         f"for internal assignment, saving {_money(-cost_delta)}.")

        if days_delta >= 0:
            time_line = (f"Assignment can start in {assign.timeline_days} days versus "
                         f"{hire.timeline_days} days to hire ({days_delta} days sooner).")
        else:
            time_line = (f"Hiring completes in {hire.timeline_days} days versus "
                         f"{assign.timeline_days} days to reassign ({-days_delta} days sooner).")

        viable = len(selection.selected)
        if selection.feasible:
            team_line = (f"A feasible team of {viable} (minimum {selection.min_team_size}, "
                         f"maximum {selection.max_team_size}) clears the availability floor.")
        else:
            team_line = (f"Only {viable} of the required {selection.min_team_size} employees "
                         f"clear the availability floor; the internal team is infeasible.")

        if recommendation == Recommendation.HIRE and not selection.selected:
            decision = f"Recommendation: hire for all {len(project.required_skills)} required skills."
        elif recommendation == Recommendation.HYBRID:
            decision = (f"Recommendation: hybrid. Assign the {viable} viable employees and hire "
                        f"{selection.shortfall} more to reach the minimum team size.")
        elif recommendation == Recommendation.ASSIGN:
            decision = "Recommendation: assign, the cheaper option with a feasible team."
        else:
            decision = "Recommendation: hire, the cheaper option."

        if selection.uncovered_skills:
            decision += f" Skills not covered internally: {', '.join(selection.uncovered_skills)}."

        return " ".join([cost_line, time_line, team_line, decision])
