#!/usr/bin/env python3
"""
+==============================================================================+
|              STAFFSENSE - ALLOCATION DECISION DEMO (Standalone)              |
|                                                                              |
|  Walks one project through the whole decision pipeline without a           |
|  database or web server.                                                     |
|                                                                              |
|  Run independently: python matching_engine_demo.py                           |
+==============================================================================+

SCORING OVERVIEW:
=================

+-----------------------------------------------------------------------------+
|  OVERALL = round(Skills × 0.4 + Availability × 0.3 + Performance × 0.3)     |
|                                                                              |
|  * Skills       = share of required skills the employee has                  |
|  * Availability = available 100, assigned+light 70, assigned+medium 40,      |
|                   otherwise 10                                               |
|  * Performance  = min(100, years×10 + 40) + min(20, projects×5), capped 100  |
+-----------------------------------------------------------------------------+

PIPELINE:
=========
1. RANK every employee against the project
2. SELECT a team of viable employees (availability >= 50)
3. COMPARE hiring against assigning (cost, timeline, risk, confidence)
4. CHECK capacity: would the team push anyone above 100%?
"""

from datetime import date
from typing import List

from staffsense.config import EngineConfig
from staffsense.services.allocation_advisor import AdvisorResult, AllocationAdvisor
from staffsense.services.snapshot import AssignmentSnapshot, EmployeeSnapshot, ProjectSnapshot


# =============================================================================
# DEMO DATA
# =============================================================================

def create_demo_data(min_team_size: int = 1):
    """Go/Kubernetes/AWS project, 800 hours, and a small pool."""
    project = ProjectSnapshot(
        id="proj-platform",
        name="Platform migration",
        required_skills=("Go", "Kubernetes", "AWS"),
        estimated_hours=800,
        budget_allocated=90000,
        start_date=date(2025, 3, 3),
        end_date=date(2025, 5, 30),
        min_team_size=min_team_size,
        max_team_size=3
    )
    employees = [
        EmployeeSnapshot(id="emp-a", name="Employee A", skills=("Go", "Kubernetes"),
                         experience_years=6, availability_state="available",
                         current_workload="light", past_project_count=3),
        EmployeeSnapshot(id="emp-b", name="Employee B", skills=("AWS",),
                         experience_years=3, availability_state="assigned",
                         current_workload="heavy", past_project_count=2),
        EmployeeSnapshot(id="emp-c", name="Employee C", skills=("Python",),
                         experience_years=1, availability_state="unavailable",
                         current_workload="heavy", past_project_count=0),
    ]
    other = ProjectSnapshot(
        id="proj-billing", name="Billing rewrite", required_skills=("Go",),
        estimated_hours=300, budget_allocated=30000,
        start_date=date(2025, 3, 17), end_date=date(2025, 4, 11), status="active"
    )
    assignments = [
        AssignmentSnapshot(employee_id="emp-a", project_id="proj-billing", allocation_percent=40,
                           start_date=date(2025, 3, 17), end_date=date(2025, 4, 11)),
    ]
    return project, employees, [other], assignments


# =============================================================================
# OUTPUT
# =============================================================================

def print_header():
    print("\n" + "#" * 75)
    print("#" + " " * 73 + "#")
    print("#" + "  STAFFSENSE - ALLOCATION DECISION DEMO".center(73) + "#")
    print("#" + " " * 73 + "#")
    print("#" * 75)


def print_ranking(result: AdvisorResult):
    print("\n" + "=" * 75)
    print(" RANKED EMPLOYEES")
    print("=" * 75)
    print(f"{'Rank':<5}{'Employee':<14}{'Skills':>8}{'Avail':>8}{'Perf':>8}{'Overall':>9}  {'Missing'}")
    print("-" * 75)
    for rank, match in enumerate(result.matches, 1):
        print(f"{rank:<5}{match.employee_name:<14}{match.skill_match:>8}{match.availability_score:>8}"
              f"{match.performance_score:>8}{match.overall_score:>9}  {', '.join(match.missing_skills) or '-'}")

    selection = result.team_selection
    print(f"\n👥 Team: {', '.join(selection.selected_ids) or 'nobody'} "
          f"({'feasible' if selection.feasible else 'infeasible'}, "
          f"min {selection.min_team_size}, max {selection.max_team_size})")


def print_analysis(result: AdvisorResult):
    analysis = result.analysis
    print("\n" + "=" * 75)
    print(" HIRE VS ASSIGN")
    print("=" * 75)
    print(f"{'':<10}{'Cost':>12}{'Days':>8}{'Risk':>10}{'Confidence':>12}")
    for label, option in (("hire", analysis.hire), ("assign", analysis.assign)):
        print(f"{label:<10}{option.cost:>12,.0f}{option.timeline_days:>8}"
              f"{option.risk_level.value:>10}{option.confidence:>12g}")
    print(f"\n🎯 Recommendation: {analysis.recommendation.value.upper()}")
    print(f"📝 {analysis.reasoning}")


def print_capacity(result: AdvisorResult):
    check = result.capacity_check
    print("\n" + "=" * 75)
    print(" CAPACITY CHECK")
    print("=" * 75)
    for row in check.plan.per_employee_utilization:
        flag = "⚠️ " if row.over_allocated else "  "
        print(f"{flag}{row.employee_name:<14} peak {row.peak_allocation:>5g}%  "
              f"available {row.available_hours:>7g}h")
    for bottleneck in check.plan.bottlenecks:
        print(f"  [{bottleneck.impact.value}] {bottleneck.type.value}: {bottleneck.description}")
    if result.vetoed:
        print("\n⛔ Vetoed:")
        for reason in result.veto_reasons:
            print(f"   - {reason}")
    else:
        print("\n✅ No new over-allocation")


def run(min_team_size: int) -> AdvisorResult:
    project, employees, projects, assignments = create_demo_data(min_team_size)
    advisor = AllocationAdvisor(EngineConfig())
    return advisor.evaluate(project, employees, projects, assignments)


def main(team_sizes: List[int] = None):
    print_header()
    for min_team_size in team_sizes or [1, 2]:
        print(f"\n⏳ Evaluating with minTeamSize={min_team_size}...")
        result = run(min_team_size)
        print_ranking(result)
        print_analysis(result)
        print_capacity(result)

    print("\n" + "#" * 75)
    print("  ✅ Evaluation complete!")
    print("#" * 75 + "\n")


if __name__ == "__main__":
    main()
