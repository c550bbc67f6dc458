from datetime import date

import pytest

from conftest import make_assignment, make_employee, make_project
from staffsense.config import EngineConfig
from staffsense.services.capacity_planner import (
    SKILL_RECOMMENDATIONS,
    BottleneckType,
    CapacityPlanner,
    Impact,
    allocation_segments,
    count_weekdays,
)
from staffsense.services.snapshot import TimeWindow
from staffsense.utils.cancellation import CancelToken
from staffsense.utils.errors import EngineCancelled, InvalidInput

MARCH = TimeWindow(date(2025, 3, 1), date(2025, 3, 31))


def march_project(id, **overrides):
    data = dict(start_date=date(2025, 3, 3), end_date=date(2025, 3, 28))
    data.update(overrides)
    return make_project(id, **data)


def plan(employees, projects, assignments, window=MARCH, config=None):
    return CapacityPlanner(config or EngineConfig()).plan(window, employees, projects, assignments)


def test_count_weekdays_is_inclusive():
    # Mon 3 Mar .. Fri 14 Mar 2025
    assert count_weekdays(date(2025, 3, 3), date(2025, 3, 14)) == 10
    assert count_weekdays(date(2025, 3, 8), date(2025, 3, 9)) == 0


# ============================================
# Over-allocation
# ============================================

def test_overlapping_assignments_over_allocate_only_where_they_overlap():
    employee = make_employee("emp-a", name="Asha")
    projects = [march_project("proj-a"), march_project("proj-b")]
    assignments = [
        make_assignment("emp-a", "proj-a", 60, date(2025, 3, 3), date(2025, 3, 14)),
        make_assignment("emp-a", "proj-b", 60, date(2025, 3, 10), date(2025, 3, 21)),
    ]
    result = plan([employee], projects, assignments)
    row = result.employee("emp-a")

    assert row.over_allocated
    assert row.peak_allocation == 120
    assert len(row.over_allocated_windows) == 1
    window = row.over_allocated_windows[0]
    assert (window.start, window.end) == (date(2025, 3, 10), date(2025, 3, 14))
    assert window.project_ids == ("proj-a", "proj-b")

    employee_bottlenecks = [b for b in result.bottlenecks if b.type == BottleneckType.EMPLOYEE]
    assert len(employee_bottlenecks) == 1
    assert employee_bottlenecks[0].impact == Impact.MEDIUM
    assert employee_bottlenecks[0].affected_project_ids == ("proj-a", "proj-b")


def test_sequential_assignments_are_never_summed():
    employee = make_employee("emp-a")
    projects = [march_project("proj-a"), march_project("proj-b")]
    assignments = [
        make_assignment("emp-a", "proj-a", 60, date(2025, 3, 3), date(2025, 3, 9)),
        make_assignment("emp-a", "proj-b", 60, date(2025, 3, 10), date(2025, 3, 21)),
    ]
    result = plan([employee], projects, assignments)

    assert not result.employee("emp-a").over_allocated
    assert result.employee("emp-a").peak_allocation == 60
    assert result.over_allocated_employee_ids == []


def test_exactly_full_allocation_is_not_over():
    projects = [march_project("proj-a"), march_project("proj-b")]
    assignments = [
        make_assignment("emp-a", "proj-a", 50, date(2025, 3, 3), date(2025, 3, 28)),
        make_assignment("emp-a", "proj-b", 50, date(2025, 3, 3), date(2025, 3, 28)),
    ]
    result = plan([make_employee("emp-a")], projects, assignments)
    assert not result.employee("emp-a").over_allocated


def test_fractional_allocations_summing_to_full_are_not_over():
    projects = [march_project("proj-a"), march_project("proj-b"), march_project("proj-c")]
    assignments = [
        make_assignment("emp-a", "proj-a", 0.2, date(2025, 3, 3), date(2025, 3, 28)),
        make_assignment("emp-a", "proj-b", 86.9, date(2025, 3, 3), date(2025, 3, 28)),
        make_assignment("emp-a", "proj-c", 12.9, date(2025, 3, 3), date(2025, 3, 28)),
    ]
    result = plan([make_employee("emp-a")], projects, assignments)
    row = result.employee("emp-a")

    assert row.peak_allocation == 100
    assert not row.over_allocated
    assert not [b for b in result.bottlenecks if b.type == BottleneckType.EMPLOYEE]


def test_severe_over_allocation_has_high_impact():
    projects = [march_project("proj-a"), march_project("proj-b")]
    assignments = [
        make_assignment("emp-a", "proj-a", 80, date(2025, 3, 3), date(2025, 3, 28)),
        make_assignment("emp-a", "proj-b", 80, date(2025, 3, 3), date(2025, 3, 28)),
    ]
    result = plan([make_employee("emp-a")], projects, assignments)
    bottleneck = next(b for b in result.bottlenecks if b.type == BottleneckType.EMPLOYEE)
    assert bottleneck.impact == Impact.HIGH


def test_assignments_outside_window_are_ignored():
    window = TimeWindow(date(2025, 3, 17), date(2025, 3, 31))
    projects = [march_project("proj-a"), march_project("proj-b")]
    assignments = [
        make_assignment("emp-a", "proj-a", 80, date(2025, 3, 3), date(2025, 3, 14)),
        make_assignment("emp-a", "proj-b", 80, date(2025, 3, 3), date(2025, 3, 14)),
    ]
    result = plan([make_employee("emp-a")], projects, assignments, window=window)
    assert result.over_allocated_employee_ids == []


def test_allocation_segments_sweep():
    assignments = [
        make_assignment("emp-a", "proj-a", 30, date(2025, 3, 3), date(2025, 3, 5)),
        make_assignment("emp-a", "proj-b", 20, date(2025, 3, 5), date(2025, 3, 7)),
    ]
    segments = allocation_segments(assignments, MARCH)
    assert [(s.start.day, s.end.day, s.total_percent) for s in segments] == [
        (3, 4, 30), (5, 5, 50), (6, 7, 20)
    ]


def test_current_allocation_and_available_hours():
    window = TimeWindow(date(2025, 3, 3), date(2025, 3, 14))
    projects = [march_project("proj-a")]
    assignments = [make_assignment("emp-a", "proj-a", 50, date(2025, 3, 3), date(2025, 3, 14))]
    row = plan([make_employee("emp-a")], projects, assignments, window=window).employee("emp-a")

    assert row.current_allocation == 50
    # 10 weekdays x 8h, half committed
    assert row.available_hours == 40


# ============================================
# Project utilization & timeline
# ============================================

def test_project_utilization_and_margin():
    project = make_project("proj-a", estimated_hours=80,
                           start_date=date(2025, 3, 3), end_date=date(2025, 3, 14))
    employees = [make_employee("emp-a"), make_employee("emp-b")]

    one = [make_assignment("emp-a", "proj-a", 100, date(2025, 3, 3), date(2025, 3, 14))]
    row = plan(employees, [project], one).project("proj-a")
    assert row.allocated_hours == 80
    assert row.utilization_rate == 1.0
    assert not row.is_over_allocated

    two = one + [make_assignment("emp-b", "proj-a", 100, date(2025, 3, 3), date(2025, 3, 14))]
    row = plan(employees, [project], two).project("proj-a")
    assert row.allocated_hours == 160
    assert row.is_over_allocated


def test_zero_estimated_hours_has_zero_utilization():
    project = make_project("proj-a", estimated_hours=0,
                           start_date=date(2025, 3, 3), end_date=date(2025, 3, 14))
    assignments = [make_assignment("emp-a", "proj-a", 100, date(2025, 3, 3), date(2025, 3, 14))]
    row = plan([make_employee("emp-a")], [project], assignments).project("proj-a")
    assert row.utilization_rate == 0.0


def test_understaffed_active_project_is_a_timeline_bottleneck():
    project = make_project("proj-a", estimated_hours=160, status="active",
                           start_date=date(2025, 3, 3), end_date=date(2025, 3, 14))
    assignments = [make_assignment("emp-a", "proj-a", 50, date(2025, 3, 3), date(2025, 3, 14))]
    result = plan([make_employee("emp-a")], [project], assignments)

    timeline = [b for b in result.bottlenecks if b.type == BottleneckType.TIMELINE]
    assert len(timeline) == 1
    assert timeline[0].impact == Impact.HIGH
    assert timeline[0].affected_project_ids == ("proj-a",)


def test_planning_project_is_not_a_timeline_bottleneck():
    project = make_project("proj-a", estimated_hours=160, status="planning",
                           start_date=date(2025, 3, 3), end_date=date(2025, 3, 14))
    result = plan([make_employee("emp-a")], [project], [])
    assert not [b for b in result.bottlenecks if b.type == BottleneckType.TIMELINE]


# ============================================
# Skill bottlenecks
# ============================================

def test_skill_demand_exceeding_supply_is_a_bottleneck():
    projects = [
        march_project("proj-a", required_skills=("Rust",)),
        march_project("proj-b", required_skills=("rust",)),
    ]
    employees = [make_employee("emp-a", skills=("Rust",))]
    result = plan(employees, projects, [])

    skill = [b for b in result.bottlenecks if b.type == BottleneckType.SKILL]
    assert len(skill) == 1
    assert skill[0].description.startswith("Rust shortage")
    assert skill[0].impact == Impact.MEDIUM
    assert skill[0].affected_project_ids == ("proj-a", "proj-b")
    assert skill[0].recommendations == SKILL_RECOMMENDATIONS


def test_unavailable_holders_do_not_count_as_supply():
    projects = [
        march_project("proj-a", required_skills=("Rust",)),
        march_project("proj-b", required_skills=("Rust",)),
    ]
    employees = [make_employee("emp-a", skills=("Rust",), availability_state="unavailable")]
    skill = [b for b in plan(employees, projects, []).bottlenecks if b.type == BottleneckType.SKILL]
    assert skill[0].impact == Impact.HIGH


def test_closed_projects_do_not_create_demand():
    projects = [
        march_project("proj-a", required_skills=("Rust",), status="completed"),
        march_project("proj-b", required_skills=("Rust",), status="cancelled"),
    ]
    result = plan([make_employee("emp-a", skills=())], projects, [])
    assert not [b for b in result.bottlenecks if b.type == BottleneckType.SKILL]


def test_recommendations_are_deduplicated():
    projects = [
        march_project("proj-a", required_skills=("Rust", "Go")),
        march_project("proj-b", required_skills=("Rust", "Go")),
    ]
    result = plan([make_employee("emp-a", skills=())], projects, [])
    assert len(result.recommendations) == len(set(result.recommendations))
    assert any("Rust" in r for r in result.recommendations)


# ============================================
# Input handling
# ============================================

def test_empty_snapshot_yields_empty_plan():
    result = plan([], [], [])
    assert result.bottlenecks == ()
    assert result.per_employee_utilization == ()
    assert result.utilization.current == 0.0


def test_assignment_to_unknown_employee_is_rejected():
    with pytest.raises(InvalidInput) as exc:
        plan([], [march_project("proj-a")],
             [make_assignment("emp-ghost", "proj-a", 50, date(2025, 3, 3), date(2025, 3, 7))])
    assert exc.value.field == "assignment.employeeId"


def test_plan_is_repeatable():
    projects = [march_project("proj-a"), march_project("proj-b")]
    assignments = [
        make_assignment("emp-a", "proj-a", 70, date(2025, 3, 3), date(2025, 3, 14)),
        make_assignment("emp-a", "proj-b", 70, date(2025, 3, 10), date(2025, 3, 21)),
    ]
    employees = [make_employee("emp-a")]
    assert plan(employees, projects, assignments) == plan(employees, projects, assignments)


# ============================================
# What-if
# ============================================

def test_what_if_flags_new_over_allocation():
    target = make_project("proj-new", start_date=date(2025, 3, 3), end_date=date(2025, 3, 28))
    other = march_project("proj-a")
    assignments = [make_assignment("emp-a", "proj-a", 60, date(2025, 3, 3), date(2025, 3, 28))]
    planner = CapacityPlanner(EngineConfig())

    result = planner.simulate(MARCH, [make_employee("emp-a")], [other], assignments, target, ["emp-a"])
    assert result.newly_over_allocated == ("emp-a",)
    assert not result.feasible
    assert result.tentative_assignments[0].is_lead

    partial = planner.simulate(MARCH, [make_employee("emp-a")], [other], assignments, target, ["emp-a"], 40)
    assert partial.feasible


def test_what_if_does_not_double_count_existing_staff():
    target = march_project("proj-a")
    assignments = [make_assignment("emp-a", "proj-a", 80, date(2025, 3, 3), date(2025, 3, 28))]
    result = CapacityPlanner(EngineConfig()).simulate(
        MARCH, [make_employee("emp-a")], [target], assignments, target, ["emp-a"]
    )
    assert result.tentative_assignments == ()
    assert result.feasible


def test_concurrent_150_percent_flagged_but_sequential_is_not():
    projects = [march_project("proj-a"), march_project("proj-b")]
    employees = [make_employee("emp-a")]

    concurrent = [
        make_assignment("emp-a", "proj-a", 100, date(2025, 3, 3), date(2025, 3, 14)),
        make_assignment("emp-a", "proj-b", 50, date(2025, 3, 10), date(2025, 3, 21)),
    ]
    row = plan(employees, projects, concurrent).employee("emp-a")
    assert row.over_allocated
    assert [(w.start, w.end, w.total_percent) for w in row.over_allocated_windows] == [
        (date(2025, 3, 10), date(2025, 3, 14), 150)
    ]

    sequential = [
        make_assignment("emp-a", "proj-a", 100, date(2025, 3, 3), date(2025, 3, 9)),
        make_assignment("emp-a", "proj-b", 50, date(2025, 3, 10), date(2025, 3, 21)),
    ]
    assert not plan(employees, projects, sequential).employee("emp-a").over_allocated


def test_skill_recommendation_names_the_project_spelling():
    projects = [
        march_project("proj-a", required_skills=("Node.js",)),
        march_project("proj-b", required_skills=("node.js",)),
    ]
    result = plan([make_employee("emp-a", skills=())], projects, [])

    skill = next(b for b in result.bottlenecks if b.type == BottleneckType.SKILL)
    assert skill.skill == "Node.js"
    assert "Hire or cross-train for Node.js (2 projects affected)" in result.recommendations


# ============================================
# Cancellation
# ============================================

def test_cancelled_token_aborts_plan():
    token = CancelToken()
    token.cancel("window changed")
    with pytest.raises(EngineCancelled) as exc:
        CapacityPlanner(EngineConfig()).plan(
            MARCH, [make_employee("emp-a")], [march_project("proj-a")], [], cancel=token
        )
    assert exc.value.field == "capacity.employees"


def test_cancelled_token_aborts_simulation():
    token = CancelToken()
    token.cancel()
    target = march_project("proj-new")
    with pytest.raises(EngineCancelled):
        CapacityPlanner(EngineConfig()).simulate(
            MARCH, [make_employee("emp-a")], [], [], target, ["emp-a"], cancel=token
        )


def test_cancellation_is_checked_on_project_only_snapshots():
    token = CancelToken()
    token.cancel()
    with pytest.raises(EngineCancelled) as exc:
        CapacityPlanner(EngineConfig()).plan(
            MARCH, [], [march_project("proj-a")], [], cancel=token
        )
    assert exc.value.field == "capacity.projects"
