EMPLOYEE_A = {
    "id": "emp-a",
    "name": "Asha Rao",
    "skills": ["Go", "Kubernetes"],
    "experienceYears": 6,
    "availabilityState": "available",
    "currentWorkload": "light",
    "pastProjectCount": 3,
}

EMPLOYEE_B = {
    "id": "emp-b",
    "name": "Ben Okafor",
    "skills": ["AWS"],
    "experienceYears": 3,
    "availabilityState": "assigned",
    "currentWorkload": "heavy",
    "pastProjectCount": 2,
}

PROJECT = {
    "id": "proj-platform",
    "name": "Platform migration",
    "requiredSkills": ["Go", "Kubernetes", "AWS"],
    "estimatedHours": 800,
    "budget": {"allocated": 90000},
    "startDate": "2025-03-03",
    "endDate": "2025-05-30",
    "minTeamSize": 1,
    "maxTeamSize": 3,
}

BILLING = {
    "id": "proj-billing",
    "requiredSkills": ["Go"],
    "estimatedHours": 300,
    "startDate": "2025-03-17",
    "endDate": "2025-04-11",
    "status": "active",
}

BILLING_ASSIGNMENT = {
    "employeeId": "emp-a",
    "projectId": "proj-billing",
    "allocationPercent": 40,
    "startDate": "2025-03-17",
    "endDate": "2025-04-11",
}


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["checks"]["database"]["status"] == "healthy"


# ============================================
# Engine endpoints
# ============================================

def test_rank_worked_example(client):
    response = client.post("/api/v1/match/rank", json={"project": PROJECT, "employees": [EMPLOYEE_B, EMPLOYEE_A]})
    assert response.status_code == 200
    body = response.json()

    top = body["matches"][0]
    assert top["employeeId"] == "emp-a"
    assert top["skillMatch"] == 67
    assert top["availabilityScore"] == 100
    assert top["performanceScore"] == 100
    assert top["overallScore"] == 87
    assert top["tier"] == "strong"
    assert top["missingSkills"] == ["AWS"]
    assert body["totalCandidates"] == 2


def test_team_selection(client):
    response = client.post("/api/v1/match/team", json={"project": PROJECT, "employees": [EMPLOYEE_A, EMPLOYEE_B]})
    assert response.status_code == 200
    selection = response.json()["teamSelection"]
    assert selection["selectedIds"] == ["emp-a"]
    assert selection["skippedBelowFloor"] == ["emp-b"]
    assert selection["feasible"] is True


def test_hire_vs_assign_worked_example(client):
    response = client.post("/api/v1/analysis/hire-vs-assign", json={"project": PROJECT, "employees": [EMPLOYEE_A]})
    assert response.status_code == 200
    body = response.json()
    assert body["hire"]["cost"] == 75000
    assert body["assign"]["cost"] == 60000
    assert body["recommendation"] == "assign"
    assert body["costDelta"] == 15000


def test_hire_vs_assign_hybrid_when_minimum_not_met(client):
    project = dict(PROJECT, minTeamSize=2)
    response = client.post("/api/v1/analysis/hire-vs-assign", json={"project": project, "employees": [EMPLOYEE_A]})
    assert response.json()["recommendation"] == "hybrid"


def test_request_options_override_engine_config(client):
    response = client.post("/api/v1/analysis/hire-vs-assign", json={
        "project": PROJECT,
        "employees": [EMPLOYEE_A],
        "options": {"perSkillHiringCost": 10000},
    })
    body = response.json()
    assert body["hire"]["cost"] == 30000
    assert body["recommendation"] == "hire"


def test_invalid_options_return_400(client):
    response = client.post("/api/v1/match/rank", json={
        "project": PROJECT,
        "employees": [EMPLOYEE_A],
        "options": {"skillWeight": 0.9},
    })
    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "InvalidConfig"


def test_fractional_shortlist_option_returns_400(client):
    response = client.post("/api/v1/analysis/hire-vs-assign", json={
        "project": PROJECT,
        "employees": [EMPLOYEE_A],
        "options": {"shortlistSize": 2.5},
    })
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "shortlist_size"


def test_invalid_snapshot_returns_structured_422(client):
    employee = dict(EMPLOYEE_A, experienceYears=-2)
    response = client.post("/api/v1/match/rank", json={"project": PROJECT, "employees": [employee]})
    assert response.status_code == 422
    assert response.json()["detail"] == {
        "kind": "InvalidInput",
        "field": "employee.experienceYears",
        "message": "must be >= 0 (got -2.0)",
    }


def test_capacity_plan(client):
    response = client.post("/api/v1/capacity/plan", json={
        "timeWindow": {"start": "2025-03-01", "end": "2025-04-30"},
        "employees": [EMPLOYEE_A],
        "projects": [BILLING, dict(PROJECT, status="active")],
        "assignments": [
            BILLING_ASSIGNMENT,
            dict(BILLING_ASSIGNMENT, projectId="proj-platform", allocationPercent=80),
        ],
    })
    assert response.status_code == 200
    body = response.json()
    row = body["perEmployeeUtilization"][0]
    assert row["overAllocated"] is True
    assert row["peakAllocation"] == 120
    assert {b["type"] for b in body["bottlenecks"]} >= {"employee", "timeline"}


def test_what_if_with_explicit_team(client):
    response = client.post("/api/v1/capacity/what-if", json={
        "timeWindow": {"start": "2025-03-01", "end": "2025-05-31"},
        "employees": [EMPLOYEE_A],
        "projects": [BILLING],
        "assignments": [BILLING_ASSIGNMENT],
        "project": PROJECT,
        "employeeIds": ["emp-a"],
    })
    assert response.status_code == 200
    body = response.json()
    assert body["feasible"] is False
    assert body["newlyOverAllocated"] == ["emp-a"]


def test_advisor_vetoes_over_allocating_assign(client):
    response = client.post("/api/v1/advisor/evaluate", json={
        "project": PROJECT,
        "employees": [EMPLOYEE_A],
        "projects": [BILLING],
        "assignments": [BILLING_ASSIGNMENT],
    })
    assert response.status_code == 200
    body = response.json()
    assert body["analysis"]["recommendation"] == "assign"
    assert body["vetoed"] is True
    assert body["capacityCheck"]["newlyOverAllocated"] == ["emp-a"]


# ============================================
# Roster endpoints
# ============================================

def seed_roster(client):
    for employee in (EMPLOYEE_A, EMPLOYEE_B):
        assert client.post("/api/v1/roster/employees", json=employee).status_code == 201
    for project in (PROJECT, BILLING):
        assert client.post("/api/v1/roster/projects", json=project).status_code == 201


def test_roster_round_trip(client):
    seed_roster(client)

    employees = client.get("/api/v1/roster/employees").json()
    assert [e["id"] for e in employees] == ["emp-a", "emp-b"]
    assert employees[0]["skills"] == ["Go", "Kubernetes"]

    projects = client.get("/api/v1/roster/projects", params={"openOnly": True}).json()
    assert {p["id"] for p in projects} == {"proj-billing", "proj-platform"}


def test_upsert_replaces_employee(client):
    seed_roster(client)
    client.post("/api/v1/roster/employees", json=dict(EMPLOYEE_A, skills=["Go", "AWS"]))
    employees = client.get("/api/v1/roster/employees").json()
    assert len(employees) == 2
    assert employees[0]["skills"] == ["Go", "AWS"]


def test_assignment_lifecycle(client):
    seed_roster(client)

    created = client.post("/api/v1/roster/assignments", json=BILLING_ASSIGNMENT)
    assert created.status_code == 201
    assignment_id = created.json()["id"]

    listed = client.get("/api/v1/roster/assignments", params={"employeeId": "emp-a"}).json()
    assert [a["id"] for a in listed] == [assignment_id]

    assert client.delete(f"/api/v1/roster/assignments/{assignment_id}").status_code == 204
    assert client.get("/api/v1/roster/assignments").json() == []
    assert client.delete(f"/api/v1/roster/assignments/{assignment_id}").status_code == 404


def test_assignment_for_unknown_employee_returns_404(client):
    seed_roster(client)
    response = client.post("/api/v1/roster/assignments", json=dict(BILLING_ASSIGNMENT, employeeId="emp-ghost"))
    assert response.status_code == 404


def test_evaluate_and_accept_stored_project(client):
    seed_roster(client)
    client.post("/api/v1/roster/assignments", json=BILLING_ASSIGNMENT)

    evaluation = client.get("/api/v1/roster/projects/proj-platform/evaluation")
    assert evaluation.status_code == 200
    body = evaluation.json()
    assert body["analysis"]["recommendation"] == "assign"
    assert body["vetoed"] is True

    accepted = client.post("/api/v1/roster/projects/proj-platform/accept", json={
        "employeeIds": ["emp-a"],
        "allocationPercent": 60,
    })
    assert accepted.status_code == 201
    assignments = accepted.json()["assignments"]
    assert len(assignments) == 1
    assert assignments[0]["isLead"] is True
    assert assignments[0]["startDate"] == "2025-03-03"

    stored = client.get("/api/v1/roster/assignments", params={"projectId": "proj-platform"}).json()
    assert len(stored) == 1


def test_accept_with_unknown_employee_writes_nothing(client):
    seed_roster(client)
    response = client.post("/api/v1/roster/projects/proj-platform/accept", json={
        "employeeIds": ["emp-a", "emp-ghost"],
    })
    assert response.status_code == 404
    assert client.get("/api/v1/roster/assignments").json() == []


def test_evaluate_unknown_project_returns_404(client):
    assert client.get("/api/v1/roster/projects/proj-missing/evaluation").status_code == 404


def test_skill_names_with_commas_are_rejected(client):
    response = client.post("/api/v1/roster/employees", json=dict(EMPLOYEE_A, skills=["Go", "C, C++"]))
    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "employee.skills"
    assert client.get("/api/v1/roster/employees").json() == []

    project = dict(PROJECT, requiredSkills=["Sales, EMEA"])
    response = client.post("/api/v1/roster/projects", json=project)
    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "project.requiredSkills"
