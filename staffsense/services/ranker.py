"""
StaffSense - Ranker
Orders employees for one project and greedily selects a team.

ORDERING (descending, fully deterministic):
    1. overall_score
    2. skill_match
    3. availability_score
    4. employee id (lexicographically smallest first)

TEAM SELECTION:
    Walk the ranking and keep employees whose availability clears the
    viability floor until max_team_size is reached. Fewer than
    min_team_size viable employees marks the selection infeasible; the
    floor is never relaxed.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import logging

from staffsense.config import EngineConfig
from staffsense.services.scoring_engine import Match, ScoringEngine
from staffsense.services.snapshot import (
    EmployeeSnapshot,
    ProjectSnapshot,
    normalize_skill,
    require_project,
)
from staffsense.utils.cancellation import CancelToken, check_cancelled
from staffsense.utils.errors import InvalidInput

logger = logging.getLogger(__name__)

# Below this many employees the thread pool costs more than it saves
PARALLEL_THRESHOLD = 32


@dataclass(frozen=True)
class TeamSelection:
    """Greedy shortlist for one project."""
    project_id: str
    selected: Tuple[Match, ...]
    feasible: bool
    min_team_size: int
    max_team_size: int
    skipped_below_floor: Tuple[str, ...] = field(default_factory=tuple)
    covered_skills: Tuple[str, ...] = field(default_factory=tuple)
    uncovered_skills: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def selected_ids(self) -> List[str]:
        return [m.employee_id for m in self.selected]

    @property
    def shortfall(self) -> int:
        return max(0, self.min_team_size - len(self.selected))


def ranking_key(match: Match):
    return (-match.overall_score, -match.skill_match, -match.availability_score, match.employee_id)


class Ranker:
    """
    Ranks employees for a project using the ScoringEngine.

    Key Methods:
    - rank(): score everyone and sort with documented tie-breaks
    - select_team(): greedy viable shortlist bounded by team size
    """

    def __init__(self, config: Optional[EngineConfig] = None, scoring_engine: Optional[ScoringEngine] = None):
        self.config = config or EngineConfig()
        self.scoring_engine = scoring_engine or ScoringEngine(self.config)

    # =========================================================================
    # RANKING
    # =========================================================================

    def rank(
        self,
        project: ProjectSnapshot,
        employees: Sequence[EmployeeSnapshot],
        cancel: Optional[CancelToken] = None
    ) -> List[Match]:
        """
        Score every employee against the project and sort.

        Args:
            project: The project being staffed
            employees: Candidate pool (ids must be unique)
            cancel: Optional token checked between scoring batches

        Returns:
            Matches ordered best-first
        """
        project = require_project(project)
        if employees is None:
            raise InvalidInput("employee list is required", field="employees")

        seen = set()
        for employee in employees:
            if employee is None:
                raise InvalidInput("employee list contains an empty entry", field="employees")
            if employee.id in seen:
                raise InvalidInput(f"duplicate employee id {employee.id!r}", field="employees")
            seen.add(employee.id)

        workers = self.config.scoring_workers
        if workers > 1 and len(employees) >= PARALLEL_THRESHOLD:
            matches = self._score_parallel(project, employees, workers, cancel)
        else:
            matches = []
            for employee in employees:
                check_cancelled(cancel, "rank")
                matches.append(self.scoring_engine.score(employee, project))

        matches.sort(key=ranking_key)

        logger.info(
            f"Ranked {len(matches)} employees for project {project.id}"
            + (f"; top {matches[0].employee_id} ({matches[0].overall_score})" if matches else "")
        )
        return matches

    def _score_parallel(
        self,
        project: ProjectSnapshot,
        employees: Sequence[EmployeeSnapshot],
        workers: int,
        cancel: Optional[CancelToken]
    ) -> List[Match]:
        """Fan scoring out over a thread pool, then merge in input order."""
        chunk = max(1, len(employees) // (workers * 4))
        batches = [employees[i:i + chunk] for i in range(0, len(employees), chunk)]

        def score_batch(batch):
            results = []
            for employee in batch:
                check_cancelled(cancel, "rank")
                results.append(self.scoring_engine.score(employee, project))
            return results

        matches: List[Match] = []
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(score_batch, batch) for batch in batches]
            try:
                for future in futures:
                    matches.extend(future.result())
            except Exception:
                for future in futures:
                    future.cancel()
                raise
        return matches

    # =========================================================================
    # TEAM SELECTION
    # =========================================================================

    def select_team(self, project: ProjectSnapshot, ranked_matches: Sequence[Match]) -> TeamSelection:
        """
        Greedy viable team in ranked order.

        Only employees with availability_score >= min_viable_availability
        count; selection stops at max_team_size.
        """
        project = require_project(project)
        floor = self.config.min_viable_availability

        selected: List[Match] = []
        skipped: List[str] = []
        for match in ranked_matches:
            if len(selected) >= project.max_team_size:
                break
            if match.availability_score >= floor:
                selected.append(match)
            else:
                skipped.append(match.employee_id)

        covered_keys = {normalize_skill(s) for m in selected for s in m.matching_skills}
        covered = [s for s in project.required_skills if normalize_skill(s) in covered_keys]
        uncovered = [s for s in project.required_skills if normalize_skill(s) not in covered_keys]

        feasible = len(selected) >= project.min_team_size
        if not feasible:
            logger.info(
                f"Team for project {project.id} infeasible: {len(selected)} viable of "
                f"{project.min_team_size} required (floor {floor})"
            )

        return TeamSelection(
            project_id=project.id,
            selected=tuple(selected),
            feasible=feasible,
            min_team_size=project.min_team_size,
            max_team_size=project.max_team_size,
            skipped_below_floor=tuple(skipped),
            covered_skills=tuple(sorted(covered)),
            uncovered_skills=tuple(sorted(uncovered))
        )
