"""
StaffSense - FastAPI Application Entry Point
Resource matching and allocation decisions: who should staff a project,
whether to hire or assign, and whether the organisation has the capacity.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from staffsense.config import get_settings, get_engine_config
from staffsense.database import init_db
from staffsense.routers import analysis, capacity, health, matching, roster

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Validates engine configuration and prepares the roster store.
    """
    # Startup: an invalid engine configuration fails here, not on first request
    config = get_engine_config()
    init_db()
    print(f"🚀 Starting {settings.app_name} v{settings.app_version}")
    print(f"📍 Environment: {settings.app_env}")
    print(f"⚖️  Weights: skills={config.skill_weight} availability={config.availability_weight} "
          f"performance={config.performance_weight}")
    yield
    # Shutdown
    print("👋 Shutting down StaffSense API")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="""
## StaffSense API

**Resource Matching & Allocation Decision Engine**

### Modules

- **Matching** - Score and rank employees against a project, select a team
- **Hire vs Assign** - Cost / timeline / risk comparison with an auditable recommendation
- **Capacity** - Cross-project over-allocation and skill bottleneck detection
- **Advisor** - Full pipeline with a capacity veto on infeasible assignments
- **Roster** - Stored employees, projects and assignments
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware for cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(health.router, tags=["Health"])
app.include_router(
    matching.router,
    prefix=settings.api_prefix,
    tags=["Matching"]
)
app.include_router(
    analysis.router,
    prefix=settings.api_prefix,
    tags=["Hire vs Assign & Advisor"]
)
app.include_router(
    capacity.router,
    prefix=settings.api_prefix,
    tags=["Capacity Planning"]
)
app.include_router(
    roster.router,
    prefix=settings.api_prefix,
    tags=["Roster"]
)


@app.get("/", tags=["Root"])
async def root():
    """
    Welcome endpoint with API information.
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
