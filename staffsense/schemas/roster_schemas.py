"""
StaffSense - Roster Schemas
Request/response models for the stored roster endpoints.
"""

from pydantic import Field
from typing import List, Optional

from staffsense.schemas.engine_schemas import (
    AssignmentSchema,
    CamelModel,
)


class AcceptRecommendationRequest(CamelModel):
    """Team the reviewer accepted for a stored project."""
    employee_ids: List[str] = Field(..., min_length=1)
    allocation_percent: float = Field(default=100, ge=0, le=100)
    lead_id: Optional[str] = None


class AcceptRecommendationResponse(CamelModel):
    project_id: str
    assignments: List[AssignmentSchema]
    message: str
