"""
StaffSense - Scoring Engine
Deterministic employee-to-project fit scoring.

SCORING FORMULA:
    overall = round(skill_match × 0.4 + availability × 0.3 + performance × 0.3)

CRITERIA:
    - skill_match: share of the project's required skills the employee has
      (100 when the project requires none)
    - availability: coarse lookup on (availability state, workload)
    - performance: experience plus a capped past-project bonus

Weights come from EngineConfig. Same inputs always produce the same Match.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
import logging
import math

from staffsense.config import EngineConfig
from staffsense.services.snapshot import (
    AvailabilityState,
    EmployeeSnapshot,
    ProjectSnapshot,
    Workload,
    normalize_skill,
    require_employee,
    require_project,
)

logger = logging.getLogger(__name__)


# Availability lookup; anything not listed scores AVAILABILITY_FLOOR
AVAILABILITY_TABLE = {
    (AvailabilityState.ASSIGNED, Workload.LIGHT): 70,
    (AvailabilityState.ASSIGNED, Workload.MEDIUM): 40,
}
AVAILABILITY_FULL = 100
AVAILABILITY_FLOOR = 10

PERFORMANCE_BASE = 40
PERFORMANCE_PER_YEAR = 10
PERFORMANCE_PER_PROJECT = 5
PERFORMANCE_BONUS_CAP = 20

STRONG_MATCH = 85
MODERATE_MATCH = 70


class MatchTier(str, Enum):
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


@dataclass(frozen=True)
class Match:
    """Scored relationship between one employee and one project."""
    employee_id: str
    project_id: str
    skill_match: int
    availability_score: int
    performance_score: int
    overall_score: int
    matching_skills: Tuple[str, ...] = field(default_factory=tuple)
    missing_skills: Tuple[str, ...] = field(default_factory=tuple)
    employee_name: Optional[str] = None
    current_workload: Optional[Workload] = None

    @property
    def tier(self) -> MatchTier:
        if self.overall_score >= STRONG_MATCH:
            return MatchTier.STRONG
        if self.overall_score >= MODERATE_MATCH:
            return MatchTier.MODERATE
        return MatchTier.WEAK


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; scores are non-negative and round half-up
    return int(math.floor(value + 0.5 + 1e-9))


def split_skills(
    employee_skills: Tuple[str, ...],
    required_skills: Tuple[str, ...]
) -> Tuple[List[str], List[str]]:
    """Partition required skills into (matching, missing), case-insensitively."""
    have = {normalize_skill(s) for s in employee_skills}
    matching = sorted(s for s in required_skills if normalize_skill(s) in have)
    missing = sorted(s for s in required_skills if normalize_skill(s) not in have)
    return matching, missing


def calculate_skill_match(
    employee_skills: Tuple[str, ...],
    required_skills: Tuple[str, ...]
) -> int:
    """
    Calculate skill match score (0-100).

    Formula: round(100 × |employee ∩ required| / |required|).
    A project with no required skills cannot be unmet, so it scores 100.
    """
    if not required_skills:
        logger.debug("No required skills specified, skill match = 100")
        return 100

    matching, _ = split_skills(employee_skills, required_skills)
    score = _round_half_up(100 * len(matching) / len(required_skills))
    logger.debug(f"Skill match: {len(matching)}/{len(required_skills)} = {score}")
    return score


def calculate_availability_score(
    availability_state: AvailabilityState,
    current_workload: Workload
) -> int:
    """
    Availability lookup:
    - available → 100
    - assigned + light → 70
    - assigned + medium → 40
    - everything else (unavailable, assigned + heavy) → 10
    """
    if availability_state == AvailabilityState.AVAILABLE:
        return AVAILABILITY_FULL
    return AVAILABILITY_TABLE.get((availability_state, current_workload), AVAILABILITY_FLOOR)


def calculate_performance_score(experience_years: float, past_project_count: int) -> int:
    """
    Performance score (0-100).

    base = min(100, years × 10 + 40); bonus = min(20, projects × 5);
    score = min(100, base + bonus).
    """
    base = min(100, experience_years * PERFORMANCE_PER_YEAR + PERFORMANCE_BASE)
    bonus = min(PERFORMANCE_BONUS_CAP, past_project_count * PERFORMANCE_PER_PROJECT)
    score = min(100, base + bonus)
    logger.debug(f"Performance: base={base}, bonus={bonus}, score={score}")
    return _round_half_up(score)


class ScoringEngine:
    """Stateless scorer; weights are injected through EngineConfig."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def combine(self, skill_match: float, availability_score: float, performance_score: float) -> int:
        """Weighted composite, clamped to [0, 100]."""
        total = (
            self.config.skill_weight * skill_match +
            self.config.availability_weight * availability_score +
            self.config.performance_weight * performance_score
        )
        return max(0, min(100, _round_half_up(total)))

    def score(self, employee: EmployeeSnapshot, project: ProjectSnapshot) -> Match:
        """Score one employee against one project."""
        employee = require_employee(employee)
        project = require_project(project)

        skill_match = calculate_skill_match(employee.skills, project.required_skills)
        availability = calculate_availability_score(
            employee.availability_state, employee.current_workload
        )
        performance = calculate_performance_score(
            employee.experience_years, employee.past_project_count
        )
        overall = self.combine(skill_match, availability, performance)
        matching, missing = split_skills(employee.skills, project.required_skills)

        logger.debug(
            f"Scored {employee.id} for {project.id}: skills={skill_match} "
            f"availability={availability} performance={performance} overall={overall}"
        )

        return Match(
            employee_id=employee.id,
            project_id=project.id,
            skill_match=skill_match,
            availability_score=availability,
            performance_score=performance,
            overall_score=overall,
            matching_skills=tuple(matching),
            missing_skills=tuple(missing),
            employee_name=employee.display_name,
            current_workload=employee.current_workload
        )
