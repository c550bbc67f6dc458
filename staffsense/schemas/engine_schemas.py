"""
StaffSense - Engine Schemas
Pydantic models for the matching, hire-vs-assign and capacity APIs.

Payloads use camelCase on the wire (requiredSkills, allocationPercent, ...)
and accept snake_case too. Input models convert to the engine's immutable
snapshot records; the *_to_schema helpers convert engine results back.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from staffsense.services.snapshot import (
    AssignmentSnapshot,
    AvailabilityState,
    EmployeeSnapshot,
    Priority,
    ProjectSnapshot,
    ProjectStatus,
    TimeWindow,
    Workload,
)
from staffsense.services.scoring_engine import Match, MatchTier
from staffsense.services.ranker import TeamSelection
from staffsense.services.hire_vs_assign import HireVsAssignAnalysis, PlanOption, Recommendation, RiskLevel
from staffsense.services.capacity_planner import (
    AllocationSegment,
    BottleneckType,
    CapacityBottleneck,
    CapacityPlan,
    EmployeeUtilization,
    Impact,
    ProjectUtilization,
    WhatIfResult,
)
from staffsense.services.allocation_advisor import AdvisorResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ═══════════════════════════════════════════════════════════════════════════════
# SNAPSHOT INPUTS
# ═══════════════════════════════════════════════════════════════════════════════

class EmployeeSchema(CamelModel):
    """One employee as supplied by the HR system of record."""
    id: str
    name: Optional[str] = None
    department: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    experience_years: float
    availability_state: AvailabilityState
    current_workload: Workload
    past_project_count: Optional[int] = None
    past_projects: Optional[List[str]] = None
    hourly_rate: float = 0.0

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "emp-a",
                "name": "Asha Rao",
                "skills": ["Go", "Kubernetes"],
                "experienceYears": 6,
                "availabilityState": "available",
                "currentWorkload": "light",
                "pastProjectCount": 3
            }
        }
    )

    def to_snapshot(self) -> EmployeeSnapshot:
        past_count = self.past_project_count
        if past_count is None:
            past_count = len(self.past_projects or [])
        return EmployeeSnapshot(
            id=self.id,
            skills=tuple(self.skills),
            experience_years=self.experience_years,
            availability_state=self.availability_state,
            current_workload=self.current_workload,
            past_project_count=past_count,
            hourly_rate=self.hourly_rate,
            name=self.name,
            department=self.department
        )

    @classmethod
    def from_snapshot(cls, employee: EmployeeSnapshot) -> "EmployeeSchema":
        return cls(
            id=employee.id,
            name=employee.name,
            department=employee.department,
            skills=list(employee.skills),
            experience_years=employee.experience_years,
            availability_state=employee.availability_state,
            current_workload=employee.current_workload,
            past_project_count=employee.past_project_count,
            hourly_rate=employee.hourly_rate
        )


class BudgetSchema(CamelModel):
    allocated: float = 0.0
    spent: float = 0.0
    currency: str = "USD"


class ProjectSchema(CamelModel):
    """One piece of work to be staffed."""
    id: str
    name: Optional[str] = None
    required_skills: List[str] = Field(default_factory=list)
    estimated_hours: float
    budget: BudgetSchema = Field(default_factory=BudgetSchema)
    start_date: date
    end_date: date
    min_team_size: int = 1
    max_team_size: int = 1
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: Priority = Priority.MEDIUM

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "proj-platform",
                "name": "Platform migration",
                "requiredSkills": ["Go", "Kubernetes", "AWS"],
                "estimatedHours": 800,
                "budget": {"allocated": 90000, "spent": 0, "currency": "USD"},
                "startDate": "2025-03-03",
                "endDate": "2025-05-30",
                "minTeamSize": 1,
                "maxTeamSize": 3
            }
        }
    )

    def to_snapshot(self) -> ProjectSnapshot:
        return ProjectSnapshot(
            id=self.id,
            required_skills=tuple(self.required_skills),
            estimated_hours=self.estimated_hours,
            budget_allocated=self.budget.allocated,
            budget_spent=self.budget.spent,
            currency=self.budget.currency,
            start_date=self.start_date,
            end_date=self.end_date,
            min_team_size=self.min_team_size,
            max_team_size=self.max_team_size,
            name=self.name,
            status=self.status,
            priority=self.priority
        )

    @classmethod
    def from_snapshot(cls, project: ProjectSnapshot) -> "ProjectSchema":
        return cls(
            id=project.id,
            name=project.name,
            required_skills=list(project.required_skills),
            estimated_hours=project.estimated_hours,
            budget=BudgetSchema(
                allocated=project.budget_allocated,
                spent=project.budget_spent,
                currency=project.currency
            ),
            start_date=project.start_date,
            end_date=project.end_date,
            min_team_size=project.min_team_size,
            max_team_size=project.max_team_size,
            status=project.status,
            priority=project.priority
        )


class AssignmentSchema(CamelModel):
    """An employee's share of a project over an inclusive date range."""
    id: Optional[str] = None
    employee_id: str
    project_id: str
    allocation_percent: float
    start_date: date
    end_date: date
    is_lead: bool = False

    def to_snapshot(self) -> AssignmentSnapshot:
        return AssignmentSnapshot(
            id=self.id,
            employee_id=self.employee_id,
            project_id=self.project_id,
            allocation_percent=self.allocation_percent,
            start_date=self.start_date,
            end_date=self.end_date,
            is_lead=self.is_lead
        )

    @classmethod
    def from_snapshot(cls, assignment: AssignmentSnapshot) -> "AssignmentSchema":
        return cls(
            id=assignment.id,
            employee_id=assignment.employee_id,
            project_id=assignment.project_id,
            allocation_percent=assignment.allocation_percent,
            start_date=assignment.start_date,
            end_date=assignment.end_date,
            is_lead=assignment.is_lead
        )


class TimeWindowSchema(CamelModel):
    start: date
    end: date

    def to_window(self) -> TimeWindow:
        return TimeWindow(self.start, self.end)


# ═══════════════════════════════════════════════════════════════════════════════
# REQUEST SCHEMAS
# ═══════════════════════════════════════════════════════════════════════════════

class EngineRequest(CamelModel):
    """Common base: optional per-request engine option overrides."""
    options: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Engine option overrides, e.g. {\"minViableAvailability\": 40}"
    )


class RankRequest(EngineRequest):
    project: ProjectSchema
    employees: List[EmployeeSchema]


class HireVsAssignRequest(RankRequest):
    pass


class CapacityPlanRequest(EngineRequest):
    time_window: TimeWindowSchema
    employees: List[EmployeeSchema]
    projects: List[ProjectSchema] = Field(default_factory=list)
    assignments: List[AssignmentSchema] = Field(default_factory=list)


class WhatIfRequest(CapacityPlanRequest):
    project: ProjectSchema
    employee_ids: Optional[List[str]] = Field(
        default=None,
        description="Tentative team; omitted means the ranker's team selection"
    )
    allocation_percent: float = 100


class AdvisorRequest(EngineRequest):
    project: ProjectSchema
    employees: List[EmployeeSchema]
    projects: List[ProjectSchema] = Field(default_factory=list)
    assignments: List[AssignmentSchema] = Field(default_factory=list)
    time_window: Optional[TimeWindowSchema] = None
    allocation_percent: float = 100


# ═══════════════════════════════════════════════════════════════════════════════
# RESPONSE SCHEMAS
# ═══════════════════════════════════════════════════════════════════════════════

class MatchSchema(CamelModel):
    employee_id: str
    employee_name: Optional[str] = None
    project_id: str
    skill_match: int
    availability_score: int
    performance_score: int
    overall_score: int
    tier: MatchTier
    matching_skills: List[str]
    missing_skills: List[str]
    current_workload: Optional[Workload] = None


class RankResponse(CamelModel):
    project_id: str
    matches: List[MatchSchema]
    total_candidates: int


class TeamSelectionSchema(CamelModel):
    project_id: str
    selected: List[MatchSchema]
    selected_ids: List[str]
    feasible: bool
    min_team_size: int
    max_team_size: int
    shortfall: int
    skipped_below_floor: List[str]
    covered_skills: List[str]
    uncovered_skills: List[str]


class TeamResponse(CamelModel):
    project_id: str
    matches: List[MatchSchema]
    team_selection: TeamSelectionSchema


class PlanOptionSchema(CamelModel):
    cost: float
    timeline_days: int
    risk_level: RiskLevel
    confidence: float
    pros: List[str]
    cons: List[str]
    available_employees: List[MatchSchema] = Field(default_factory=list)


class HireVsAssignResponse(CamelModel):
    project_id: str
    hire: PlanOptionSchema
    assign: PlanOptionSchema
    recommendation: Recommendation
    reasoning: str
    cost_delta: float
    timeline_delta: int
    team_selection: TeamSelectionSchema
    generated_at: datetime


class AllocationSegmentSchema(CamelModel):
    start: date
    end: date
    total_percent: float
    project_ids: List[str]


class EmployeeUtilizationSchema(CamelModel):
    employee_id: str
    employee_name: str
    department: Optional[str] = None
    skills: List[str]
    current_allocation: float
    peak_allocation: float
    available_hours: float
    over_allocated: bool
    over_allocated_windows: List[AllocationSegmentSchema]
    assignments: List[AssignmentSchema]


class ProjectUtilizationSchema(CamelModel):
    project_id: str
    project_name: str
    required_hours: float
    allocated_hours: float
    utilization_rate: float
    is_over_allocated: bool


class UtilizationSummarySchema(CamelModel):
    current: float
    projected: float
    optimal: float


class BottleneckSchema(CamelModel):
    type: BottleneckType
    description: str
    impact: Impact
    affected_project_ids: List[str]
    recommendations: List[str]
    skill: Optional[str] = None


class CapacityPlanResponse(CamelModel):
    time_window: TimeWindowSchema
    bottlenecks: List[BottleneckSchema]
    per_employee_utilization: List[EmployeeUtilizationSchema]
    per_project_utilization: List[ProjectUtilizationSchema]
    utilization: UtilizationSummarySchema
    recommendations: List[str]


class WhatIfResponse(CamelModel):
    project_id: str
    feasible: bool
    newly_over_allocated: List[str]
    baseline_over_allocated: List[str]
    tentative_assignments: List[AssignmentSchema]
    plan: CapacityPlanResponse


class AdvisorResponse(CamelModel):
    project_id: str
    matches: List[MatchSchema]
    team_selection: TeamSelectionSchema
    analysis: HireVsAssignResponse
    capacity_check: WhatIfResponse
    vetoed: bool
    veto_reasons: List[str]


# ═══════════════════════════════════════════════════════════════════════════════
# RESULT → SCHEMA CONVERSION
# ═══════════════════════════════════════════════════════════════════════════════

def match_to_schema(match: Match) -> MatchSchema:
    return MatchSchema(
        employee_id=match.employee_id,
        employee_name=match.employee_name,
        project_id=match.project_id,
        skill_match=match.skill_match,
        availability_score=match.availability_score,
        performance_score=match.performance_score,
        overall_score=match.overall_score,
        tier=match.tier,
        matching_skills=list(match.matching_skills),
        missing_skills=list(match.missing_skills),
        current_workload=match.current_workload
    )


def team_selection_to_schema(selection: TeamSelection) -> TeamSelectionSchema:
    return TeamSelectionSchema(
        project_id=selection.project_id,
        selected=[match_to_schema(m) for m in selection.selected],
        selected_ids=selection.selected_ids,
        feasible=selection.feasible,
        min_team_size=selection.min_team_size,
        max_team_size=selection.max_team_size,
        shortfall=selection.shortfall,
        skipped_below_floor=list(selection.skipped_below_floor),
        covered_skills=list(selection.covered_skills),
        uncovered_skills=list(selection.uncovered_skills)
    )


def _plan_option_to_schema(option: PlanOption) -> PlanOptionSchema:
    return PlanOptionSchema(
        cost=option.cost,
        timeline_days=option.timeline_days,
        risk_level=option.risk_level,
        confidence=option.confidence,
        pros=list(option.pros),
        cons=list(option.cons),
        available_employees=[match_to_schema(m) for m in option.available_employees]
    )


def analysis_to_schema(analysis: HireVsAssignAnalysis) -> HireVsAssignResponse:
    return HireVsAssignResponse(
        project_id=analysis.project_id,
        hire=_plan_option_to_schema(analysis.hire),
        assign=_plan_option_to_schema(analysis.assign),
        recommendation=analysis.recommendation,
        reasoning=analysis.reasoning,
        cost_delta=analysis.cost_delta,
        timeline_delta=analysis.timeline_delta,
        team_selection=team_selection_to_schema(analysis.team_selection),
        generated_at=analysis.generated_at
    )


def _segment_to_schema(segment: AllocationSegment) -> AllocationSegmentSchema:
    return AllocationSegmentSchema(
        start=segment.start,
        end=segment.end,
        total_percent=segment.total_percent,
        project_ids=list(segment.project_ids)
    )


def _employee_row_to_schema(row: EmployeeUtilization) -> EmployeeUtilizationSchema:
    return EmployeeUtilizationSchema(
        employee_id=row.employee_id,
        employee_name=row.employee_name,
        department=row.department,
        skills=list(row.skills),
        current_allocation=row.current_allocation,
        peak_allocation=row.peak_allocation,
        available_hours=row.available_hours,
        over_allocated=row.over_allocated,
        over_allocated_windows=[_segment_to_schema(s) for s in row.over_allocated_windows],
        assignments=[AssignmentSchema.from_snapshot(a) for a in row.assignments]
    )


def _project_row_to_schema(row: ProjectUtilization) -> ProjectUtilizationSchema:
    return ProjectUtilizationSchema(
        project_id=row.project_id,
        project_name=row.project_name,
        required_hours=row.required_hours,
        allocated_hours=row.allocated_hours,
        utilization_rate=row.utilization_rate,
        is_over_allocated=row.is_over_allocated
    )


def _bottleneck_to_schema(bottleneck: CapacityBottleneck) -> BottleneckSchema:
    return BottleneckSchema(
        type=bottleneck.type,
        description=bottleneck.description,
        impact=bottleneck.impact,
        affected_project_ids=list(bottleneck.affected_project_ids),
        recommendations=list(bottleneck.recommendations),
        skill=bottleneck.skill
    )


def capacity_plan_to_schema(plan: CapacityPlan) -> CapacityPlanResponse:
    return CapacityPlanResponse(
        time_window=TimeWindowSchema(start=plan.time_window.start, end=plan.time_window.end),
        bottlenecks=[_bottleneck_to_schema(b) for b in plan.bottlenecks],
        per_employee_utilization=[_employee_row_to_schema(r) for r in plan.per_employee_utilization],
        per_project_utilization=[_project_row_to_schema(r) for r in plan.per_project_utilization],
        utilization=UtilizationSummarySchema(
            current=plan.utilization.current,
            projected=plan.utilization.projected,
            optimal=plan.utilization.optimal
        ),
        recommendations=list(plan.recommendations)
    )


def what_if_to_schema(result: WhatIfResult) -> WhatIfResponse:
    return WhatIfResponse(
        project_id=result.project_id,
        feasible=result.feasible,
        newly_over_allocated=list(result.newly_over_allocated),
        baseline_over_allocated=list(result.baseline_over_allocated),
        tentative_assignments=[AssignmentSchema.from_snapshot(a) for a in result.tentative_assignments],
        plan=capacity_plan_to_schema(result.plan)
    )


def advisor_result_to_schema(result: AdvisorResult) -> AdvisorResponse:
    return AdvisorResponse(
        project_id=result.project_id,
        matches=[match_to_schema(m) for m in result.matches],
        team_selection=team_selection_to_schema(result.team_selection),
        analysis=analysis_to_schema(result.analysis),
        capacity_check=what_if_to_schema(result.capacity_check),
        vetoed=result.vetoed,
        veto_reasons=list(result.veto_reasons)
    )
