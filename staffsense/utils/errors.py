"""
StaffSense - Engine Errors
Structured error taxonomy shared by the engine and the API layer.
"""

from typing import Any, Dict, Optional


class EngineError(ValueError):
    """Base class for structured engine errors (kind + offending field)."""

    kind = "EngineError"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "field": self.field,
            "message": self.message
        }

    def __str__(self) -> str:
        if self.field:
            return f"{self.kind} ({self.field}): {self.message}"
        return f"{self.kind}: {self.message}"


class InvalidInput(EngineError):
    """Missing or malformed Employee / Project / Assignment fields."""
    kind = "InvalidInput"


class InvalidConfig(EngineError):
    """Rejected engine configuration (weights, negative constants)."""
    kind = "InvalidConfig"


class EngineCancelled(EngineError):
    """The caller abandoned the computation through its cancel token."""
    kind = "Cancelled"
