from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from staffsense.config import EngineConfig
from staffsense.database import Base, get_db
from staffsense.main import app
from staffsense.models import models  # noqa: F401
from staffsense.services.snapshot import AssignmentSnapshot, EmployeeSnapshot, ProjectSnapshot


def make_employee(id="emp-a", **overrides) -> EmployeeSnapshot:
    data = dict(
        id=id,
        skills=("Go", "Kubernetes"),
        experience_years=6,
        availability_state="available",
        current_workload="light",
        past_project_count=3,
    )
    data.update(overrides)
    return EmployeeSnapshot(**data)


def make_project(id="proj-platform", **overrides) -> ProjectSnapshot:
    data = dict(
        id=id,
        required_skills=("Go", "Kubernetes", "AWS"),
        estimated_hours=800,
        budget_allocated=90000,
        start_date=date(2025, 3, 3),
        end_date=date(2025, 5, 30),
        min_team_size=1,
        max_team_size=3,
    )
    data.update(overrides)
    return ProjectSnapshot(**data)


def make_assignment(employee_id, project_id, percent, start, end, **overrides) -> AssignmentSnapshot:
    return AssignmentSnapshot(
        employee_id=employee_id,
        project_id=project_id,
        allocation_percent=percent,
        start_date=start,
        end_date=end,
        **overrides
    )


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def employee_a():
    """Go + Kubernetes, available, 6 years, 3 past projects."""
    return make_employee()


@pytest.fixture
def platform_project():
    """Go / Kubernetes / AWS, 800 estimated hours."""
    return make_project()


# ============================================
# API fixtures (in-memory roster store)
# ============================================

@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
