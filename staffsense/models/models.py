from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, Date, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from staffsense.database import Base
from staffsense.services.snapshot import AvailabilityState, Workload, ProjectStatus, Priority


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Employee(Base):
    __tablename__ = "employees"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, index=True)
    department = Column(String, nullable=True)
    skills = Column(String, default="")  # Comma-separated

    experience_years = Column(Float, nullable=False, default=0.0)
    availability_state = Column(
        Enum(AvailabilityState, values_callable=_values),
        default=AvailabilityState.AVAILABLE
    )
    current_workload = Column(Enum(Workload, values_callable=_values), default=Workload.LIGHT)
    past_project_count = Column(Integer, default=0)
    hourly_rate = Column(Float, default=0.0)

    assignments = relationship("Assignment", back_populates="employee", cascade="all, delete-orphan")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, index=True)
    required_skills = Column(String, default="")  # Comma-separated

    estimated_hours = Column(Float, nullable=False, default=0.0)
    budget_allocated = Column(Float, default=0.0)
    budget_spent = Column(Float, default=0.0)
    currency = Column(String, default="USD")

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    min_team_size = Column(Integer, default=1)
    max_team_size = Column(Integer, default=1)

    status = Column(Enum(ProjectStatus, values_callable=_values), default=ProjectStatus.PLANNING)
    priority = Column(Enum(Priority, values_callable=_values), default=Priority.MEDIUM)

    assignments = relationship("Assignment", back_populates="project", cascade="all, delete-orphan")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(String, primary_key=True, index=True)

    employee_id = Column(String, ForeignKey("employees.id"), nullable=False, index=True)
    employee = relationship("Employee", back_populates="assignments")

    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    project = relationship("Project", back_populates="assignments")

    allocation_percent = Column(Float, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_lead = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
