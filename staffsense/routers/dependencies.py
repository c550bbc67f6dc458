"""
StaffSense - Shared Router Helpers
Engine configuration per request and engine-error → HTTP translation.
"""

from fastapi import HTTPException
from typing import Any, Dict, Optional
import logging

from staffsense.config import EngineConfig, get_engine_config
from staffsense.utils.errors import EngineCancelled, EngineError, InvalidConfig

logger = logging.getLogger(__name__)


def engine_config(options: Optional[Dict[str, Any]] = None) -> EngineConfig:
    """Application engine config with optional request overrides applied."""
    return get_engine_config().with_overrides(options)


def engine_http_error(error: EngineError) -> HTTPException:
    """
    Map a structured engine error to an HTTPException.

    - InvalidConfig (request overrides) → 400
    - EngineCancelled → 409
    - InvalidInput → 422
    The detail is always {kind, field, message}.
    """
    if isinstance(error, InvalidConfig):
        status_code = 400
    elif isinstance(error, EngineCancelled):
        status_code = 409
    else:
        status_code = 422
    logger.warning(f"Rejected request: {error}")
    return HTTPException(status_code=status_code, detail=error.to_dict())
