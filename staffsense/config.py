"""
StaffSense - Configuration Module
Loads environment variables and provides app-wide settings plus the
immutable engine configuration injected into every engine component.
"""

from pydantic_settings import BaseSettings
from dataclasses import dataclass, fields, asdict
from functools import lru_cache
from typing import Optional, Dict, Any

from staffsense.utils.errors import InvalidConfig


WEIGHT_TOLERANCE = 1e-6

# camelCase option names accepted by EngineConfig.from_options()
OPTION_ALIASES = {
    "skillWeight": "skill_weight",
    "availabilityWeight": "availability_weight",
    "performanceWeight": "performance_weight",
    "minViableAvailability": "min_viable_availability",
    "perSkillHiringCost": "per_skill_hiring_cost",
    "avgTimeToHireDays": "avg_time_to_hire_days",
    "avgInternalHourlyRate": "avg_internal_hourly_rate",
    "avgReassignmentDays": "avg_reassignment_days",
    "overAllocationMargin": "over_allocation_margin",
    "hireConfidence": "hire_confidence",
    "assignConfidence": "assign_confidence",
    "infeasibleAssignConfidence": "infeasible_assign_confidence",
    "hoursPerWorkday": "hours_per_workday",
    "optimalUtilization": "optimal_utilization",
    "shortlistSize": "shortlist_size",
    "scoringWorkers": "scoring_workers",
}


@dataclass(frozen=True)
class EngineConfig:
    """
    Tuning surface for scoring, hire-vs-assign costing and capacity checks.

    Validated at construction time; an invalid combination raises
    InvalidConfig naming the offending option.
    """

    # Scoring weights (must sum to 1.0)
    skill_weight: float = 0.4
    availability_weight: float = 0.3
    performance_weight: float = 0.3

    # Team selection floor on availabilityScore
    min_viable_availability: float = 50

    # Hire-vs-assign constants
    per_skill_hiring_cost: float = 25000
    avg_time_to_hire_days: int = 45
    avg_internal_hourly_rate: float = 75
    avg_reassignment_days: int = 7
    hire_confidence: float = 70
    assign_confidence: float = 85
    infeasible_assign_confidence: float = 40
    shortlist_size: int = 5

    # Capacity planning
    over_allocation_margin: float = 1.10
    hours_per_workday: float = 8
    optimal_utilization: float = 80

    # Scoring fan-out (1 = sequential)
    scoring_workers: int = 1

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidConfig(f"expected a number, got {value!r}", field=f.name)
            if f.type is int and not isinstance(value, int):
                raise InvalidConfig(f"expected a whole number, got {value!r}", field=f.name)
            if value < 0:
                raise InvalidConfig(f"must not be negative (got {value})", field=f.name)

        total = self.skill_weight + self.availability_weight + self.performance_weight
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise InvalidConfig(
                f"skill, availability and performance weights must sum to 1.0 (got {total:.4f})",
                field="weights"
            )

        if not 0 < self.min_viable_availability <= 100:
            raise InvalidConfig("must be within (0, 100]", field="min_viable_availability")

        if self.over_allocation_margin < 1:
            raise InvalidConfig("must be at least 1.0", field="over_allocation_margin")

        for name in ("hire_confidence", "assign_confidence",
                     "infeasible_assign_confidence", "optimal_utilization"):
            if getattr(self, name) > 100:
                raise InvalidConfig("must be within [0, 100]", field=name)

        if self.hours_per_workday <= 0 or self.hours_per_workday > 24:
            raise InvalidConfig("must be within (0, 24]", field="hours_per_workday")

        if self.scoring_workers < 1:
            raise InvalidConfig("must be at least 1", field="scoring_workers")

    @classmethod
    def from_options(cls, options: Optional[Dict[str, Any]] = None) -> "EngineConfig":
        """Build from a mapping using either camelCase or snake_case keys."""
        if not options:
            return cls()

        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in options.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise InvalidConfig("unrecognized option", field=key)
            kwargs[name] = value
        return cls(**kwargs)

    def with_overrides(self, options: Optional[Dict[str, Any]] = None) -> "EngineConfig":
        if not options:
            return self
        merged = asdict(self)
        for key, value in options.items():
            merged[OPTION_ALIASES.get(key, key)] = value
        return EngineConfig.from_options(merged)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App Info
    app_name: str = "StaffSense API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Roster store (SQLite locally, PostgreSQL in deployment)
    database_url: str = "sqlite:///./staffsense.db"

    # API Settings
    api_prefix: str = "/api/v1"

    # CORS
    cors_origins: str = "*"  # Comma-separated list in production

    # Engine options
    skill_weight: float = 0.4
    availability_weight: float = 0.3
    performance_weight: float = 0.3
    min_viable_availability: float = 50
    per_skill_hiring_cost: float = 25000
    avg_time_to_hire_days: int = 45
    avg_internal_hourly_rate: float = 75
    avg_reassignment_days: int = 7
    over_allocation_margin: float = 1.10
    hire_confidence: float = 70
    assign_confidence: float = 85
    infeasible_assign_confidence: float = 40
    hours_per_workday: float = 8
    optimal_utilization: float = 80
    shortlist_size: int = 5
    scoring_workers: int = 1

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every request.
    """
    return Settings()


@lru_cache()
def get_engine_config() -> EngineConfig:
    """Engine configuration derived from settings; raises InvalidConfig on load."""
    settings = get_settings()
    return EngineConfig(**{
        f.name: getattr(settings, f.name) for f in fields(EngineConfig)
    })
