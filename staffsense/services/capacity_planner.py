"""
StaffSense - Capacity Planner
Cross-project aggregation of assignments to detect over-allocation and
skill shortages inside a planning window.

EMPLOYEE ALLOCATION:
    Sweep each employee's assignments (clipped to the window, end dates
    inclusive) into segments of constant summed allocation. Any segment
    above 100% is reported as an over-allocated sub-interval. Assignments
    that never run concurrently are never summed together.

PROJECT UTILIZATION:
    allocated_hours = Σ weekdays(assignment ∩ project dates)
                      × hours_per_workday × allocation%
    utilization_rate = allocated_hours / estimated_hours (0 if no hours)
    over-allocated when allocated_hours > estimated_hours × margin

BOTTLENECKS:
    - skill: open projects needing a skill outnumber viable holders
    - employee: someone is over-allocated somewhere in the window
    - timeline: an active project has fewer hours allocated than it needs

Read-only and re-runnable; the plan is advisory.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

import numpy as np

from staffsense.config import EngineConfig
from staffsense.services.ranker import TeamSelection
from staffsense.services.scoring_engine import calculate_availability_score
from staffsense.services.snapshot import (
    AssignmentSnapshot,
    EmployeeSnapshot,
    ProjectSnapshot,
    ProjectStatus,
    TimeWindow,
    normalize_skill,
    require_project,
)
from staffsense.utils.cancellation import CancelToken, check_cancelled
from staffsense.utils.errors import InvalidInput

logger = logging.getLogger(__name__)

FULL_ALLOCATION = 100
# Concurrent totals are rounded so 0.2 + 86.9 + 12.9 reads as exactly 100
PERCENT_PRECISION = 6
SEVERE_OVER_ALLOCATION = 150
TIMELINE_SEVERE_RATE = 0.5

SKILL_RECOMMENDATIONS = ("hire for this skill", "cross-train staff", "engage contractors")
EMPLOYEE_RECOMMENDATIONS = (
    "rebalance assignments",
    "stagger project start dates",
    "reduce allocation on lower-priority work",
)
TIMELINE_RECOMMENDATIONS = ("add staff to the project", "extend the deadline", "reduce project scope")


class BottleneckType(str, Enum):
    SKILL = "skill"
    EMPLOYEE = "employee"
    TIMELINE = "timeline"


class Impact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


IMPACT_ORDER = {Impact.HIGH: 0, Impact.MEDIUM: 1, Impact.LOW: 2}
TYPE_ORDER = {BottleneckType.SKILL: 0, BottleneckType.EMPLOYEE: 1, BottleneckType.TIMELINE: 2}


# ============================================
# Result Types
# ============================================

@dataclass(frozen=True)
class AllocationSegment:
    """Inclusive date range over which an employee's summed allocation is constant."""
    start: date
    end: date
    total_percent: float
    project_ids: Tuple[str, ...]


@dataclass(frozen=True)
class EmployeeUtilization:
    employee_id: str
    employee_name: str
    department: Optional[str]
    skills: Tuple[str, ...]
    current_allocation: float
    peak_allocation: float
    available_hours: float
    over_allocated: bool
    over_allocated_windows: Tuple[AllocationSegment, ...] = field(default_factory=tuple)
    assignments: Tuple[AssignmentSnapshot, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ProjectUtilization:
    project_id: str
    project_name: str
    required_hours: float
    allocated_hours: float
    utilization_rate: float
    is_over_allocated: bool


@dataclass(frozen=True)
class UtilizationSummary:
    current: float
    projected: float
    optimal: float


@dataclass(frozen=True)
class CapacityBottleneck:
    type: BottleneckType
    description: str
    impact: Impact
    affected_project_ids: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    skill: Optional[str] = None


@dataclass(frozen=True)
class CapacityPlan:
    time_window: TimeWindow
    bottlenecks: Tuple[CapacityBottleneck, ...]
    per_employee_utilization: Tuple[EmployeeUtilization, ...]
    per_project_utilization: Tuple[ProjectUtilization, ...]
    utilization: UtilizationSummary
    recommendations: Tuple[str, ...]

    @property
    def over_allocated_employee_ids(self) -> List[str]:
        return [e.employee_id for e in self.per_employee_utilization if e.over_allocated]

    def employee(self, employee_id: str) -> Optional[EmployeeUtilization]:
        for row in self.per_employee_utilization:
            if row.employee_id == employee_id:
                return row
        return None

    def project(self, project_id: str) -> Optional[ProjectUtilization]:
        for row in self.per_project_utilization:
            if row.project_id == project_id:
                return row
        return None


@dataclass(frozen=True)
class WhatIfResult:
    """Capacity impact of tentatively staffing one project."""
    project_id: str
    plan: CapacityPlan
    tentative_assignments: Tuple[AssignmentSnapshot, ...]
    baseline_over_allocated: Tuple[str, ...]
    newly_over_allocated: Tuple[str, ...]

    @property
    def feasible(self) -> bool:
        return not self.newly_over_allocated


# ============================================
# Helpers
# ============================================

def count_weekdays(start: date, end: date) -> int:
    """Mon-Fri days in the inclusive range."""
    if end < start:
        return 0
    return int(np.busday_count(start, end + timedelta(days=1)))


def allocation_segments(assignments: Iterable[AssignmentSnapshot], window: TimeWindow) -> List[AllocationSegment]:
    """
    Sweep-line over one employee's assignments.

    Boundaries are every (clipped) start date and the day after every
    (clipped) end date. Between consecutive boundaries the set of running
    assignments, and so the summed allocation, is constant.
    """
    spans: List[Tuple[date, date, AssignmentSnapshot]] = []
    for assignment in assignments:
        clipped = window.clip(assignment.start_date, assignment.end_date)
        if clipped is not None:
            spans.append((clipped[0], clipped[1], assignment))

    boundaries = sorted({s for s, _, _ in spans} | {e + timedelta(days=1) for _, e, _ in spans})

    segments: List[AllocationSegment] = []
    for day, next_day in zip(boundaries, boundaries[1:]):
        running = [a for s, e, a in spans if s <= day <= e]
        if not running:
            continue
        segments.append(AllocationSegment(
            start=day,
            end=next_day - timedelta(days=1),
            total_percent=round(sum(a.allocation_percent for a in running), PERCENT_PRECISION),
            project_ids=tuple(sorted({a.project_id for a in running}))
        ))
    return segments


def _merge_segments(segments: Sequence[AllocationSegment]) -> List[AllocationSegment]:
    """Join touching segments with identical totals and project sets."""
    merged: List[AllocationSegment] = []
    for segment in segments:
        if merged:
            last = merged[-1]
            if (last.end + timedelta(days=1) == segment.start
                    and last.total_percent == segment.total_percent
                    and last.project_ids == segment.project_ids):
                merged[-1] = AllocationSegment(last.start, segment.end, last.total_percent, last.project_ids)
                continue
        merged.append(segment)
    return merged


# ============================================
# Planner
# ============================================

class CapacityPlanner:
    """
    Aggregates allocation across all projects for a planning window.

    Key Methods:
    - plan(): full capacity report with bottlenecks
    - simulate(): what-if report for a tentative team before committing it
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def plan(
        self,
        time_window: TimeWindow,
        employees: Sequence[EmployeeSnapshot],
        projects: Sequence[ProjectSnapshot],
        assignments: Sequence[AssignmentSnapshot],
        cancel: Optional[CancelToken] = None
    ) -> CapacityPlan:
        """
        Build a capacity report.

        Args:
            time_window: Inclusive window to evaluate
            employees: Every employee in the snapshot
            projects: Every active/planned project in the snapshot
            assignments: Every current assignment
            cancel: Optional token checked per employee, project and skill
        """
        if time_window is None:
            raise InvalidInput("time window is required", field="timeWindow")
        employee_index = self._index(employees, "employees")
        project_index = self._index(projects, "projects")

        by_employee: Dict[str, List[AssignmentSnapshot]] = {e: [] for e in employee_index}
        by_project: Dict[str, List[AssignmentSnapshot]] = {p: [] for p in project_index}
        for assignment in assignments or ():
            if assignment.employee_id not in employee_index:
                raise InvalidInput(
                    f"assignment references unknown employee {assignment.employee_id!r}",
                    field="assignment.employeeId"
                )
            if assignment.project_id not in project_index:
                raise InvalidInput(
                    f"assignment references unknown project {assignment.project_id!r}",
                    field="assignment.projectId"
                )
            by_employee[assignment.employee_id].append(assignment)
            by_project[assignment.project_id].append(assignment)

        employee_rows = []
        for employee in employee_index.values():
            check_cancelled(cancel, "capacity.employees")
            employee_rows.append(self._employee_utilization(employee, by_employee[employee.id], time_window))

        window_projects = [p for p in project_index.values()
                           if time_window.overlaps(p.start_date, p.end_date)]
        project_rows = []
        for project in window_projects:
            check_cancelled(cancel, "capacity.projects")
            project_rows.append(self._project_utilization(project, by_project[project.id]))

        bottlenecks: List[CapacityBottleneck] = []
        bottlenecks.extend(self._skill_bottlenecks(employee_index.values(), window_projects, cancel))
        bottlenecks.extend(self._employee_bottlenecks(employee_rows))
        bottlenecks.extend(self._timeline_bottlenecks(window_projects, project_rows))
        bottlenecks.sort(key=lambda b: (TYPE_ORDER[b.type], IMPACT_ORDER[b.impact], b.description))

        utilization = self._summary(employee_rows)
        recommendations = self._recommendations(bottlenecks, employee_rows, utilization)

        logger.info(
            f"Capacity plan {time_window.start}..{time_window.end}: "
            f"{len(employee_rows)} employees, {len(project_rows)} projects, "
            f"{len(bottlenecks)} bottlenecks"
        )

        return CapacityPlan(
            time_window=time_window,
            bottlenecks=tuple(bottlenecks),
            per_employee_utilization=tuple(employee_rows),
            per_project_utilization=tuple(project_rows),
            utilization=utilization,
            recommendations=tuple(recommendations)
        )

    def simulate(
        self,
        time_window: TimeWindow,
        employees: Sequence[EmployeeSnapshot],
        projects: Sequence[ProjectSnapshot],
        assignments: Sequence[AssignmentSnapshot],
        project: ProjectSnapshot,
        selection,
        allocation_percent: float = FULL_ALLOCATION,
        cancel: Optional[CancelToken] = None
    ) -> WhatIfResult:
        """
        What-if: staff `project` with `selection` (a TeamSelection or a list
        of employee ids) for its whole duration and re-plan.
        """
        project = require_project(project)
        if isinstance(selection, TeamSelection):
            employee_ids = selection.selected_ids
        else:
            employee_ids = list(selection or [])

        # people already staffed on this project are not counted twice
        already = {a.employee_id for a in assignments or () if a.project_id == project.id}
        employee_ids = [e for e in employee_ids if e not in already]

        tentative = tuple(
            AssignmentSnapshot(
                employee_id=employee_id,
                project_id=project.id,
                allocation_percent=allocation_percent,
                start_date=project.start_date,
                end_date=project.end_date,
                is_lead=(i == 0)
            )
            for i, employee_id in enumerate(employee_ids)
        )

        all_projects = list(projects or [])
        if all(p.id != project.id for p in all_projects):
            all_projects.append(project)

        baseline = self.plan(time_window, employees, all_projects, assignments, cancel)
        simulated = self.plan(time_window, employees, all_projects, list(assignments or []) + list(tentative), cancel)

        before = set(baseline.over_allocated_employee_ids)
        newly = tuple(e for e in simulated.over_allocated_employee_ids if e not in before)
        if newly:
            logger.warning(f"Staffing project {project.id} would over-allocate: {', '.join(newly)}")

        return WhatIfResult(
            project_id=project.id,
            plan=simulated,
            tentative_assignments=tentative,
            baseline_over_allocated=tuple(sorted(before)),
            newly_over_allocated=newly
        )

    # =========================================================================
    # AGGREGATION
    # =========================================================================

    @staticmethod
    def _index(records, field_name: str) -> "OrderedDict":
        index = OrderedDict()
        for record in records or ():
            if record is None:
                raise InvalidInput("list contains an empty entry", field=field_name)
            if record.id in index:
                raise InvalidInput(f"duplicate id {record.id!r}", field=field_name)
            index[record.id] = record
        return index

    def _employee_utilization(
        self,
        employee: EmployeeSnapshot,
        assignments: List[AssignmentSnapshot],
        window: TimeWindow
    ) -> EmployeeUtilization:
        segments = _merge_segments(allocation_segments(assignments, window))

        current = 0.0
        for segment in segments:
            if segment.start <= window.start <= segment.end:
                current = segment.total_percent
                break
        peak = max((s.total_percent for s in segments), default=0.0)

        hours_per_day = self.config.hours_per_workday
        committed = sum(
            count_weekdays(s.start, s.end) * hours_per_day * min(s.total_percent, FULL_ALLOCATION) / 100
            for s in segments
        )
        available = count_weekdays(window.start, window.end) * hours_per_day - committed

        over_windows = tuple(s for s in segments if s.total_percent > FULL_ALLOCATION)
        in_window = tuple(a for a in assignments if window.overlaps(a.start_date, a.end_date))

        return EmployeeUtilization(
            employee_id=employee.id,
            employee_name=employee.display_name,
            department=employee.department,
            skills=employee.skills,
            current_allocation=current,
            peak_allocation=peak,
            available_hours=round(max(0.0, available), 2),
            over_allocated=bool(over_windows),
            over_allocated_windows=over_windows,
            assignments=in_window
        )

    def _project_utilization(
        self,
        project: ProjectSnapshot,
        assignments: List[AssignmentSnapshot]
    ) -> ProjectUtilization:
        project_window = TimeWindow(project.start_date, project.end_date)
        allocated = 0.0
        for assignment in assignments:
            clipped = project_window.clip(assignment.start_date, assignment.end_date)
            if clipped is None:
                continue
            allocated += (count_weekdays(*clipped) * self.config.hours_per_workday
                          * assignment.allocation_percent / 100)

        required = project.estimated_hours
        rate = allocated / required if required > 0 else 0.0
        return ProjectUtilization(
            project_id=project.id,
            project_name=project.display_name,
            required_hours=required,
            allocated_hours=round(allocated, 2),
            utilization_rate=round(rate, 4),
            is_over_allocated=allocated > required * self.config.over_allocation_margin
        )

    # =========================================================================
    # BOTTLENECKS
    # =========================================================================

    def _skill_bottlenecks(
        self,
        employees: Iterable[EmployeeSnapshot],
        projects: Sequence[ProjectSnapshot],
        cancel: Optional[CancelToken]
    ) -> List[CapacityBottleneck]:
        demand: "OrderedDict[str, List[str]]" = OrderedDict()
        spelling: Dict[str, str] = {}
        for project in projects:
            if not project.is_open:
                continue
            for skill in project.required_skills:
                key = normalize_skill(skill)
                spelling.setdefault(key, skill)
                demand.setdefault(key, []).append(project.id)

        floor = self.config.min_viable_availability
        viable = [
            e for e in employees
            if calculate_availability_score(e.availability_state, e.current_workload) >= floor
        ]

        bottlenecks = []
        for key in sorted(demand):
            check_cancelled(cancel, "capacity.skills")
            project_ids = demand[key]
            supply = sum(1 for e in viable if key in e.skill_keys)
            if len(project_ids) <= supply:
                continue
            gap = len(project_ids) - supply
            bottlenecks.append(CapacityBottleneck(
                type=BottleneckType.SKILL,
                description=(f"{spelling[key]} shortage: required by {len(project_ids)} projects, "
                             f"{supply} available employees have it"),
                impact=Impact.HIGH if gap >= 2 else Impact.MEDIUM,
                affected_project_ids=tuple(sorted(project_ids)),
                recommendations=SKILL_RECOMMENDATIONS,
                skill=spelling[key]
            ))
        return bottlenecks

    def _employee_bottlenecks(self, rows: Sequence[EmployeeUtilization]) -> List[CapacityBottleneck]:
        bottlenecks = []
        for row in rows:
            if not row.over_allocated:
                continue
            first = row.over_allocated_windows[0]
            affected = sorted({p for w in row.over_allocated_windows for p in w.project_ids})
            bottlenecks.append(CapacityBottleneck(
                type=BottleneckType.EMPLOYEE,
                description=(f"{row.employee_name} over-allocated at {row.peak_allocation:g}% "
                             f"(first from {first.start.isoformat()} to {first.end.isoformat()})"),
                impact=Impact.HIGH if row.peak_allocation >= SEVERE_OVER_ALLOCATION else Impact.MEDIUM,
                affected_project_ids=tuple(affected),
                recommendations=EMPLOYEE_RECOMMENDATIONS
            ))
        return bottlenecks

    def _timeline_bottlenecks(
        self,
        projects: Sequence[ProjectSnapshot],
        rows: Sequence[ProjectUtilization]
    ) -> List[CapacityBottleneck]:
        by_id = {row.project_id: row for row in rows}
        bottlenecks = []
        for project in projects:
            if project.status != ProjectStatus.ACTIVE:
                continue
            row = by_id[project.id]
            if row.required_hours <= 0 or row.allocated_hours >= row.required_hours:
                continue
            bottlenecks.append(CapacityBottleneck(
                type=BottleneckType.TIMELINE,
                description=(f"{row.project_name} has {row.allocated_hours:g} of "
                             f"{row.required_hours:g} required hours allocated before "
                             f"{project.end_date.isoformat()}"),
                impact=Impact.HIGH if row.utilization_rate < TIMELINE_SEVERE_RATE else Impact.MEDIUM,
                affected_project_ids=(project.id,),
                recommendations=TIMELINE_RECOMMENDATIONS
            ))
        return bottlenecks

    # =========================================================================
    # SUMMARY
    # =========================================================================

    def _summary(self, rows: Sequence[EmployeeUtilization]) -> UtilizationSummary:
        if not rows:
            return UtilizationSummary(current=0.0, projected=0.0, optimal=self.config.optimal_utilization)
        return UtilizationSummary(
            current=round(sum(r.current_allocation for r in rows) / len(rows), 1),
            projected=round(sum(r.peak_allocation for r in rows) / len(rows), 1),
            optimal=self.config.optimal_utilization
        )

    def _recommendations(
        self,
        bottlenecks: Sequence[CapacityBottleneck],
        rows: Sequence[EmployeeUtilization],
        utilization: UtilizationSummary
    ) -> List[str]:
        recommendations: List[str] = []

        def add(text: str):
            if text not in recommendations:
                recommendations.append(text)

        for bottleneck in bottlenecks:
            if bottleneck.type == BottleneckType.SKILL:
                add(f"Hire or cross-train for {bottleneck.skill} ({len(bottleneck.affected_project_ids)} projects affected)")
            elif bottleneck.type == BottleneckType.TIMELINE:
                add(f"Add capacity to project {bottleneck.affected_project_ids[0]} or extend its deadline")

        overloaded = [r.employee_name for r in rows if r.over_allocated]
        if overloaded:
            add(f"Rebalance assignments for {', '.join(overloaded)}")

        if utilization.projected > utilization.optimal:
            add(f"Projected utilization {utilization.projected:g}% exceeds the optimal "
                f"{utilization.optimal:g}%; plan additional capacity")
        return recommendations
