from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_model_gateway
from app.core.errors import ModelUnavailable
from app.main import app
from conftest import FakeGateway

OVERLAPPING_TASKS = [
    {
        "id": "a",
        "title": "Write report",
        "priority": "high",
        "estimatedDuration": 60,
        "scheduledTime": "2025-01-01T09:00:00Z",
    },
    {
        "id": "b",
        "title": "Review slides",
        "priority": "medium",
        "estimatedDuration": 60,
        "scheduledTime": "2025-01-01T09:00:00Z",
    },
]


@pytest.fixture()
def gateway():
    return FakeGateway(
        response={"optimizedTasks": OVERLAPPING_TASKS, "optimizationInsights": ["Morning focus block"]}
    )


@pytest.fixture()
def client(gateway):
    app.dependency_overrides[get_model_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_overlapping_tasks_report_conflicts(client, auth_headers) -> None:
    response = client.post("/api/v1/optimize-schedule", json={"tasks": OVERLAPPING_TASKS}, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    schedule = body["optimizedSchedule"]
    assert [task["id"] for task in schedule] == ["a", "b"]
    assert schedule[0]["startTime"] == "2025-01-01T09:00:00+00:00"
    assert schedule[0]["endTime"] == "2025-01-01T10:00:00+00:00"
    assert schedule[0]["status"] == "scheduled"

    actions = {action["type"]: action for action in body["execution"]["actions"]}
    assert actions["schedule_updated"]["details"]["updatedTasks"] == 2
    assert actions["conflicts_resolved"]["details"]["conflictsResolved"] == 1
    assert actions["conflicts_resolved"]["details"]["resolutionMethod"] == "ai_optimization"
    assert "Morning focus block" in body["execution"]["optimizations"]

    summary = body["summary"]
    assert summary == {
        "totalTasks": 2,
        "totalDuration": 120,
        "efficiency": 0.35,
        "improvementPercentage": 0,
    }
    assert body["metadata"]["aiPowered"] is True
    assert body["metadata"]["fallbackUsed"] is False


def test_new_tasks_alias_is_accepted(client, auth_headers) -> None:
    response = client.post(
        "/api/v1/optimize-schedule",
        json={"newTasks": OVERLAPPING_TASKS, "preferences": {"workStyle": "morning"}},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert len(response.json()["optimizedSchedule"]) == 2
    assert "The schedule was adjusted for a morning work style." in response.json()["execution"]["optimizations"]


def test_estimated_hours_are_converted_and_extra_fields_forwarded(client, gateway, auth_headers) -> None:
    gateway.response = {"optimizedTasks": [{"title": "Deep work", "scheduledTime": "2025-01-02T10:00:00+00:00"}]}

    response = client.post(
        "/api/v1/optimize-schedule",
        json={"tasks": [{"title": "Deep work", "priority": 4, "estimatedHours": 1.5, "location": "office"}]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    task = response.json()["optimizedSchedule"][0]
    assert task["estimatedDuration"] == 90
    assert task["priority"] == "high"
    assert task["endTime"] == "2025-01-02T11:30:00+00:00"
    _, prompt = gateway.calls[0]
    assert '"location": "office"' in prompt


def test_model_failure_falls_back_to_rules(client, gateway, auth_headers) -> None:
    gateway.error = ModelUnavailable("offline")

    response = client.post(
        "/api/v1/optimize-schedule",
        json={"tasks": [{"title": "Plan", "priority": "high", "estimatedDuration": 45, "scheduledDate": "2025-03-10"}]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["metadata"]["aiPowered"] is False
    assert body["metadata"]["fallbackUsed"] is True
    assert body["metadata"]["model"] == "rule-based"
    assert body["optimizedSchedule"][0]["startTime"] == "2025-03-10T09:00:00+00:00"
    assert "fallback_applied" in [action["type"] for action in body["execution"]["actions"]]


def test_task_count_mismatch_falls_back(client, gateway, auth_headers) -> None:
    gateway.response = {"optimizedTasks": OVERLAPPING_TASKS[:1]}

    response = client.post("/api/v1/optimize-schedule", json={"tasks": OVERLAPPING_TASKS}, headers=auth_headers)

    body = response.json()
    assert response.status_code == 200
    assert body["metadata"]["fallbackUsed"] is True
    assert len(body["optimizedSchedule"]) == 2


@pytest.mark.parametrize("payload", [{}, {"tasks": []}, {"tasks": "nope"}, {"preferences": {}}])
def test_missing_tasks_is_rejected(client, auth_headers, payload) -> None:
    response = client.post("/api/v1/optimize-schedule", json=payload, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "tasks array is required"
    assert response.json()["code"] == "MISSING_REQUIRED_FIELD"


@pytest.mark.parametrize(
    "task",
    [
        {"priority": "high", "estimatedDuration": 30},
        {"title": "No priority", "estimatedDuration": 30},
        {"title": "No duration", "priority": "low"},
        {"title": "Zero duration", "priority": "low", "estimatedDuration": 0},
        {"title": "Over a week", "priority": "low", "estimatedDuration": 1e12},
        {"title": "Over a week in hours", "priority": "low", "estimatedHours": 1e9},
        {"title": "Long hours beside minutes", "priority": "low", "estimatedDuration": 30, "estimatedHours": 169},
        {"title": "Bad priority", "priority": "sometime", "estimatedDuration": 30},
    ],
)
def test_malformed_task_is_rejected(client, auth_headers, task) -> None:
    response = client.post("/api/v1/optimize-schedule", json={"tasks": [task]}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_TASK_FORMAT"


def test_week_long_task_is_accepted(client, gateway, auth_headers) -> None:
    gateway.error = ModelUnavailable("offline")
    task = {"title": "Sprint", "priority": "high", "estimatedHours": 168, "scheduledDate": "2025-03-10"}

    response = client.post("/api/v1/optimize-schedule", json={"tasks": [task]}, headers=auth_headers)

    assert response.status_code == 200
    scheduled = response.json()["optimizedSchedule"][0]
    assert scheduled["estimatedDuration"] == 10080
    assert scheduled["endTime"] == "2025-03-17T09:00:00+00:00"


def test_non_finite_duration_is_rejected(client, auth_headers) -> None:
    body = '{"tasks": [{"title": "Forever", "priority": "high", "estimatedDuration": Infinity}]}'

    response = client.post(
        "/api/v1/optimize-schedule",
        content=body,
        headers={**auth_headers, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_TASK_FORMAT"


def test_out_of_range_model_slot_falls_back(client, gateway, auth_headers) -> None:
    gateway.response = {"optimizedTasks": [{"title": "a", "scheduledTime": "9999-12-31T23:30:00Z"}]}
    task = {"title": "a", "priority": "high", "estimatedDuration": 60, "scheduledDate": "2025-03-10"}

    response = client.post("/api/v1/optimize-schedule", json={"tasks": [task]}, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["metadata"]["fallbackUsed"] is True
    assert body["metadata"]["aiPowered"] is False
    assert body["optimizedSchedule"][0]["startTime"] == "2025-03-10T09:00:00+00:00"
    assert body["optimizedSchedule"][0]["endTime"] == "2025-03-10T10:00:00+00:00"
