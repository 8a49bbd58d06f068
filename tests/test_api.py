"""Tests for the HTTP endpoints."""

import asyncio
import time

import pytest
from fastapi.testclient import TestClient

from food_journal.api.app import create_app, status_for
from food_journal.api.dependencies import run_store_call
from food_journal.domain.errors import (
    Conflict,
    CorruptRecord,
    InvalidInput,
    NotFound,
    StorageUnavailable,
    TransactionTimeout,
)

ALICE = {
    "image": "https://example.com/alice.png",
    "user_name": "alice",
    "display_name": "Alice",
    "target_calories": 2400,
    "current_date": "2024-03-01",
}

YOGURT = {
    "text": "Greek yogurt with honey",
    "qty": 1.5,
    "qty_units": "cup",
    "calories": 320,
    "carbohydrate": 40,
    "fat": 8,
    "protein": 22,
}


@pytest.fixture
def client(container) -> TestClient:
    return TestClient(create_app(container))


def test_home_and_health(client: TestClient) -> None:
    assert client.get("/").text == "home"
    assert client.get("/health").json() == {"status": "ok"}


def test_register_then_list_users(client: TestClient) -> None:
    response = client.post("/v1/register", json=ALICE)

    assert response.status_code == 201
    assert response.json() == {
        "image": "https://example.com/alice.png",
        "user_name": "alice",
        "display_name": "Alice",
        "target_calories": 2400,
        "target_fat": 300,
        "target_protein": 200,
        "target_carbohydrate": 53,
        "current_date": "2024-03-01",
    }
    users = client.get("/v1/users").json()["users"]
    assert [user["user_name"] for user in users] == ["alice"]


def test_register_rejects_dotted_user_name(client: TestClient) -> None:
    response = client.post("/v1/register", json={**ALICE, "user_name": "al.ice"})

    assert response.status_code == 422


def test_end_day_advances_current_date(client: TestClient) -> None:
    client.post("/v1/register", json=ALICE)

    response = client.post("/v1/end-day", headers={"x-fj-user": "alice"})

    assert response.status_code == 200
    assert response.json() == {"current_date": "2024-03-02"}
    assert client.get("/v1/users").json()["users"][0]["current_date"] == "2024-03-02"


def test_end_day_for_unknown_user_is_precondition_failure(client: TestClient) -> None:
    response = client.post("/v1/end-day", headers={"x-fj-user": "ghost"})

    assert response.status_code == 412


def test_missing_user_header(client: TestClient) -> None:
    assert client.post("/v1/end-day").status_code == 400
    assert client.get("/journal").status_code == 400


def test_post_and_get_journal(client: TestClient) -> None:
    client.post("/v1/register", json=ALICE)
    headers = {"x-fj-user": "alice"}

    posted = client.post("/journal", json=YOGURT, headers=headers)
    records = client.get("/journal", headers=headers).json()["records"]

    assert posted.status_code == 204
    assert len(records) == 1
    record = records[0]
    assert record["id"] == posted.headers["x-fj-entry"]
    assert record["id"].startswith("2024-03-01.")
    assert record["text"] == "Greek yogurt with honey"
    assert record["qty"] == 1.5
    assert record["qty_units"] == "cup"
    assert record["protein"] == 22


def test_post_journal_for_unknown_user(client: TestClient) -> None:
    response = client.post("/journal", json=YOGURT, headers={"x-fj-user": "ghost"})

    assert response.status_code == 412


def test_post_journal_with_short_text(client: TestClient) -> None:
    client.post("/v1/register", json=ALICE)

    response = client.post(
        "/journal", json={**YOGURT, "text": "Apple"}, headers={"x-fj-user": "alice"}
    )

    assert response.status_code == 422
    assert client.get("/journal", headers={"x-fj-user": "alice"}).json() == {
        "records": []
    }


def test_post_journal_validates_payload(client: TestClient) -> None:
    client.post("/v1/register", json=ALICE)

    response = client.post(
        "/journal",
        json={"text": "Greek yogurt with honey"},
        headers={"x-fj-user": "alice"},
    )

    assert response.status_code == 422


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (NotFound("x"), 412),
        (InvalidInput("x"), 422),
        (Conflict("x"), 409),
        (TransactionTimeout("x"), 409),
        (CorruptRecord("x"), 500),
        (StorageUnavailable("x"), 503),
    ],
)
def test_status_for_errors(error, status_code: int) -> None:
    assert status_for(error) == status_code


def test_run_store_call_cancels_deadline_on_timeout(container) -> None:
    container.settings.request_timeout_seconds = 0.05
    seen = []

    def slow(deadline):
        seen.append(deadline)
        time.sleep(0.3)
        return "late"

    with pytest.raises(TransactionTimeout):
        asyncio.run(run_store_call(container, slow))

    assert seen[0].cancelled


def test_run_store_call_returns_result(container) -> None:
    result = asyncio.run(run_store_call(container, lambda deadline: deadline))

    assert result.remaining() is not None
    assert not result.cancelled


def test_get_single_user(client: TestClient) -> None:
    client.post("/v1/register", json=ALICE)

    found = client.get("/v1/users/alice")
    missing = client.get("/v1/users/ghost")

    assert found.status_code == 200
    assert found.json()["display_name"] == "Alice"
    assert missing.status_code == 412


def test_reregister_does_not_rewind_current_date(client: TestClient) -> None:
    client.post("/v1/register", json=ALICE)
    client.post("/v1/end-day", headers={"x-fj-user": "alice"})

    response = client.post("/v1/register", json={**ALICE, "target_calories": 1800})

    assert response.status_code == 201
    assert response.json()["current_date"] == "2024-03-02"
    assert response.json()["target_calories"] == 1800


def test_register_rejects_user_name_too_long_for_entries(client: TestClient) -> None:
    response = client.post("/v1/register", json={**ALICE, "user_name": "a" * 490})

    assert response.status_code == 422
    assert client.get("/v1/users").json() == {"users": []}


def test_run_store_call_reports_write_that_was_committing(container) -> None:
    container.settings.request_timeout_seconds = 0.05

    def committing(deadline):
        deadline.seal()
        time.sleep(0.3)
        return "committed"

    assert asyncio.run(run_store_call(container, committing)) == "committed"
