# StaffSense - Routers Package
from staffsense.routers import health, matching, analysis, capacity, roster

__all__ = ["health", "matching", "analysis", "capacity", "roster"]
