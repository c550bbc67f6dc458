import sys
import os

# Add the project root to the python path
sys.path.append(os.getcwd())

from datetime import date
from staffsense.database import SessionLocal, init_db
from staffsense.models.models import Employee
from staffsense.services.roster_service import RosterService
from staffsense.services.snapshot import AssignmentSnapshot, EmployeeSnapshot, ProjectSnapshot
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("Seeder")


EMPLOYEES = [
    EmployeeSnapshot(id="emp-asha", name="Asha Rao", department="Platform",
                     skills=("Go", "Kubernetes"), experience_years=6,
                     availability_state="available", current_workload="light",
                     past_project_count=3, hourly_rate=80),
    EmployeeSnapshot(id="emp-ben", name="Ben Okafor", department="Platform",
                     skills=("AWS", "Terraform", "Go"), experience_years=4,
                     availability_state="assigned", current_workload="light",
                     past_project_count=5, hourly_rate=70),
    EmployeeSnapshot(id="emp-chen", name="Chen Wei", department="Data",
                     skills=("Python", "Spark", "AWS"), experience_years=8,
                     availability_state="assigned", current_workload="medium",
                     past_project_count=7, hourly_rate=90),
    EmployeeSnapshot(id="emp-dana", name="Dana Levi", department="Frontend",
                     skills=("TypeScript", "React"), experience_years=2,
                     availability_state="available", current_workload="light",
                     past_project_count=1, hourly_rate=60),
    EmployeeSnapshot(id="emp-eli", name="Eli Moreau", department="Data",
                     skills=("Python", "Kubernetes"), experience_years=5,
                     availability_state="unavailable", current_workload="heavy",
                     past_project_count=4, hourly_rate=85),
]

PROJECTS = [
    ProjectSnapshot(id="proj-platform", name="Platform migration",
                    required_skills=("Go", "Kubernetes", "AWS"), estimated_hours=800,
                    budget_allocated=90000, start_date=date(2025, 3, 3), end_date=date(2025, 5, 30),
                    min_team_size=1, max_team_size=3, status="planning", priority="high"),
    ProjectSnapshot(id="proj-lakehouse", name="Lakehouse rollout",
                    required_skills=("Python", "Spark", "AWS"), estimated_hours=1200,
                    budget_allocated=150000, start_date=date(2025, 2, 3), end_date=date(2025, 6, 27),
                    min_team_size=2, max_team_size=4, status="active", priority="critical"),
    ProjectSnapshot(id="proj-portal", name="Customer portal",
                    required_skills=("TypeScript", "React"), estimated_hours=400,
                    budget_allocated=40000, start_date=date(2025, 4, 1), end_date=date(2025, 5, 16),
                    min_team_size=1, max_team_size=2, status="planning", priority="medium"),
]

ASSIGNMENTS = [
    AssignmentSnapshot(employee_id="emp-chen", project_id="proj-lakehouse", allocation_percent=80,
                       start_date=date(2025, 2, 3), end_date=date(2025, 6, 27), is_lead=True),
    AssignmentSnapshot(employee_id="emp-ben", project_id="proj-lakehouse", allocation_percent=50,
                       start_date=date(2025, 2, 3), end_date=date(2025, 4, 30)),
]


def seed_data():
    logger.info("creating tables...")
    init_db()

    db = SessionLocal()
    try:
        # Check if data exists
        if db.query(Employee).count() > 0:
            logger.info("Data already exists. Skipping seed.")
            return

        roster = RosterService(db)

        logger.info("Seeding Employees...")
        for employee in EMPLOYEES:
            roster.upsert_employee(employee)

        logger.info("Seeding Projects...")
        for project in PROJECTS:
            roster.upsert_project(project)

        logger.info("Seeding Assignments...")
        for assignment in ASSIGNMENTS:
            roster.create_assignment(assignment)

        logger.info(
            f"Seeding Complete! {len(EMPLOYEES)} employees, {len(PROJECTS)} projects, "
            f"{len(ASSIGNMENTS)} assignments"
        )

    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        db.rollback()
    finally:
        db.close()

if __name__ == "__main__":
    seed_data()
