"""Mini README: End-to-end tests for the FastAPI budgeting interface.

Each test builds a fresh application backed by the in-memory store and
drives it through ``TestClient``: signup, login, config, records and the
daily allowance endpoint, plus the error statuses for each failure kind.
"""

from __future__ import annotations

import inspect
from typing import Dict

import pytest
from fastapi.testclient import TestClient

from dailybudget.configuration import DailyBudgetSettings
from dailybudget.interface import create_application

JANUARY_CONFIG = {
    "start_money": 1000,
    "start_date": "01/01/2024",
    "end_money": 0,
    "end_date": "10/01/2024",
}


@pytest.fixture()
def client(tmp_path) -> TestClient:
    settings = DailyBudgetSettings(
        data_directory=tmp_path,
        storage_backend="memory",
        jwt_secret="test-secret",
    )
    return TestClient(create_application(settings=settings))


def _login(client: TestClient, username: str = "alice") -> Dict[str, str]:
    assert client.post("/signup", json={"username": username, "password": "pw"}).status_code == 201
    response = client.post("/login", json={"username": username, "password": "pw"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


def test_daily_allowance_scenario(client: TestClient) -> None:
    """Config, one spending, then the allowance for the fifth of January."""

    headers = _login(client)
    assert client.post("/config", json=JANUARY_CONFIG, headers=headers).json() == {
        "message": "Config saved"
    }
    created = client.post("/spendings", json={"amount": 50, "date": "02/01/2024"}, headers=headers)
    assert created.status_code == 201

    response = client.get("/daily-allowance/05_01_2024", headers=headers)
    assert response.status_code == 200
    assert response.json()["dailyAllowance"] == pytest.approx(158.33)

    first_day = client.get("/daily-allowance/01_01_2024", headers=headers)
    assert first_day.json()["dailyAllowance"] == pytest.approx(100.0)


def test_income_transaction_changes_allowance(client: TestClient) -> None:
    headers = _login(client)
    client.post("/config", json=JANUARY_CONFIG, headers=headers)
    client.post(
        "/transactions",
        json={"amount": 300, "is_income": True, "description": "Bonus"},
        headers=headers,
    )

    response = client.get("/daily-allowance/05_01_2024", headers=headers)
    assert response.json()["dailyAllowance"] == pytest.approx(216.67)

    listed = client.get("/transactions", headers=headers).json()
    assert [entry["description"] for entry in listed] == ["Bonus"]


def test_allowance_errors(client: TestClient) -> None:
    headers = _login(client)

    missing = client.get("/daily-allowance/05_01_2024", headers=headers)
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Config not set"

    client.post("/config", json=JANUARY_CONFIG, headers=headers)
    out_of_bounds = client.get("/daily-allowance/11_01_2024", headers=headers)
    assert out_of_bounds.status_code == 400
    assert out_of_bounds.json()["detail"] == "Date is out of bounds"

    assert client.get("/daily-allowance/not-a-date", headers=headers).status_code == 400


def test_requests_without_valid_token_are_refused(client: TestClient) -> None:
    missing = client.get("/config")
    assert missing.status_code == 401
    assert missing.json()["detail"] == "Token missing"

    invalid = client.get("/config", headers={"Authorization": "Bearer nonsense"})
    assert invalid.status_code == 401
    assert invalid.json()["detail"] == "Invalid token"


def test_config_round_trip_and_validation(client: TestClient) -> None:
    headers = _login(client)
    assert client.get("/config", headers=headers).status_code == 404

    reversed_window = dict(JANUARY_CONFIG, start_date="20/01/2024")
    assert client.post("/config", json=reversed_window, headers=headers).status_code == 400

    client.post("/config", json=JANUARY_CONFIG, headers=headers)
    assert client.get("/config", headers=headers).json() == {
        "start_money": 1000.0,
        "start_date": "01/01/2024",
        "end_money": 0.0,
        "end_date": "10/01/2024",
    }


def test_records_cannot_be_deleted_by_other_users(client: TestClient) -> None:
    alice = _login(client, "alice")
    bob = _login(client, "bob")
    transaction_id = client.post("/transactions", json={"amount": 10}, headers=alice).json()["id"]
    spending_id = client.post(
        "/spendings", json={"amount": 10, "date": "03/01/2024"}, headers=alice
    ).json()["id"]

    assert client.delete(f"/transactions/{transaction_id}", headers=bob).status_code == 404
    assert client.delete(f"/spendings/{spending_id}", headers=bob).status_code == 404
    assert client.get("/transactions", headers=bob).json() == []

    assert client.delete(f"/transactions/{transaction_id}", headers=alice).json() == {
        "message": "Transaction deleted"
    }
    assert client.delete(f"/spendings/{spending_id}", headers=alice).status_code == 200
    assert client.get("/spendings", headers=alice).json() == []


def test_unknown_or_negative_fields_are_rejected(client: TestClient) -> None:
    headers = _login(client)
    assert client.post(
        "/transactions", json={"amount": 10, "user_id": "bob"}, headers=headers
    ).status_code == 422
    assert client.post(
        "/spendings", json={"amount": -5, "date": "03/01/2024"}, headers=headers
    ).status_code == 422
    assert client.post(
        "/spendings", json={"amount": 5, "date": "yesterday"}, headers=headers
    ).status_code == 400


def test_signup_and_login_failures(client: TestClient) -> None:
    _login(client)
    assert client.post("/signup", json={"username": "alice", "password": "x"}).status_code == 409
    assert client.post("/signup", json={"username": "carol"}).status_code == 400
    assert client.post("/login", json={"username": "alice", "password": "bad"}).status_code == 401


def test_application_requires_token_secret(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("DAILYBUDGET_JWT_SECRET", raising=False)
    settings = DailyBudgetSettings(data_directory=tmp_path, storage_backend="memory")
    with pytest.raises(RuntimeError):
        create_application(settings=settings)


def test_oversized_config_money_is_rejected(client: TestClient) -> None:
    headers = _login(client)
    oversized = dict(JANUARY_CONFIG, start_money="1e27", end_date="01/01/2024")

    response = client.post("/config", json=oversized, headers=headers)

    assert response.status_code == 400
    assert client.get("/config", headers=headers).status_code == 404


def test_password_hashing_routes_run_in_threadpool(client: TestClient) -> None:
    """Signup and login hash passwords, so they must not block the event loop."""

    endpoints = {route.path: route.endpoint for route in client.app.routes if hasattr(route, "endpoint")}
    assert not inspect.iscoroutinefunction(endpoints["/signup"])
    assert not inspect.iscoroutinefunction(endpoints["/login"])
