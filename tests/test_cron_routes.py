"""Tests for the cron trigger endpoint."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import func
from sqlmodel import select

from ledgercron import create_app
from ledgercron.exceptions import RuleLoadError
from ledgercron.extensions import ADMIN_CLIENT_KEY, get_session_factory
from ledgercron.models import RecurringRule, Transaction, User, Wallet

SECRET = "test-cron-secret"
URL = "/api/cron/recurring"


def _make_app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, secret: str | None = SECRET):
    monkeypatch.setenv("LEDGERCRON_DATABASE_URL", f"sqlite:///{tmp_path / 'app.db'}")
    monkeypatch.setenv("LEDGERCRON_DATA_DIR", str(tmp_path / "data"))
    if secret is None:
        monkeypatch.delenv("CRON_SECRET", raising=False)
    else:
        monkeypatch.setenv("CRON_SECRET", secret)
    return create_app("testing")


def _seed_rule(app) -> int:
    with get_session_factory(app)() as session:
        user = User(username="owner")
        session.add(user)
        session.flush()
        wallet = Wallet(user_id=user.id, name="Main", currency_code="EUR")
        session.add(wallet)
        session.flush()
        rule = RecurringRule(
            user_id=user.id,
            wallet_id=wallet.id,
            type="income",
            amount_minor=250000,
            currency_code="EUR",
            description="Salary",
            frequency="monthly",
            interval=1,
            next_run_at=datetime(2025, 1, 25),
        )
        session.add(rule)
        session.flush()
        return rule.id


def _state(app, rule_id: int) -> tuple[int, datetime]:
    with get_session_factory(app)() as session:
        count = session.exec(select(func.count()).select_from(Transaction)).one()
        next_run_at = session.get(RecurringRule, rule_id).next_run_at
    return count, next_run_at


@pytest.fixture()
def app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    return _make_app(tmp_path, monkeypatch)


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


@pytest.mark.parametrize("method", ["get", "post"])
def test_authorized_invocation_materializes(app, client, method):
    rule_id = _seed_rule(app)

    response = getattr(client, method)(URL, headers={"x-cron-secret": SECRET})

    assert response.status_code == 200
    assert response.headers["Cache-Control"] == "no-store"
    payload = response.get_json()
    assert set(payload) == {"date", "processed", "created", "updated"}
    assert (payload["processed"], payload["created"], payload["updated"]) == (1, 1, 1)
    datetime.strptime(payload["date"], "%Y-%m-%d")
    assert _state(app, rule_id) == (1, datetime(2025, 2, 25))


def test_bearer_authorization_accepted(app, client):
    _seed_rule(app)
    response = client.post(URL, headers={"Authorization": f"Bearer {SECRET}"})
    assert response.status_code == 200
    assert response.get_json()["created"] == 1


@pytest.mark.parametrize(
    "headers",
    [{}, {"x-cron-secret": "wrong"}, {"Authorization": "Bearer wrong"}, {"x-cron-secret": ""}],
)
def test_unauthorized_invocation_writes_nothing(app, client, headers):
    rule_id = _seed_rule(app)

    response = client.post(URL, headers=headers)

    assert response.status_code == 401
    assert response.get_json() == {"error": "Unauthorized."}
    assert _state(app, rule_id) == (0, datetime(2025, 1, 25))


def test_missing_server_secret_rejects_everything(tmp_path, monkeypatch):
    app = _make_app(tmp_path, monkeypatch, secret=None)
    rule_id = _seed_rule(app)

    with app.test_client() as client:
        for headers in ({}, {"x-cron-secret": ""}, {"Authorization": "Bearer "}, {"x-cron-secret": "None"}):
            assert client.get(URL, headers=headers).status_code == 401

    assert _state(app, rule_id) == (0, datetime(2025, 1, 25))


def test_empty_server_secret_rejects_everything(tmp_path, monkeypatch):
    app = _make_app(tmp_path, monkeypatch, secret="")
    with app.test_client() as client:
        assert client.get(URL, headers={"x-cron-secret": ""}).status_code == 401


def test_empty_bearer_does_not_match_secret_named_bearer(tmp_path, monkeypatch):
    app = _make_app(tmp_path, monkeypatch, secret="Bearer")
    rule_id = _seed_rule(app)

    with app.test_client() as client:
        assert client.post(URL, headers={"Authorization": "Bearer "}).status_code == 401

    assert _state(app, rule_id) == (0, datetime(2025, 1, 25))


def test_nothing_due_returns_message(client):
    response = client.get(URL, headers={"x-cron-secret": SECRET})
    payload = response.get_json()
    assert response.status_code == 200
    assert payload["processed"] == 0
    assert payload["message"] == "No recurring rules due at this time"


def test_rule_load_failure_returns_500(app, client):
    class BrokenClient:
        def load_due_rules(self, now):
            raise RuleLoadError("connection refused")

    app.extensions[ADMIN_CLIENT_KEY] = BrokenClient()

    response = client.post(URL, headers={"x-cron-secret": SECRET})

    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to load recurring rules"}
    assert response.headers["Cache-Control"] == "no-store"


def test_other_methods_not_allowed(client):
    response = client.put(URL, headers={"x-cron-secret": SECRET})
    assert response.status_code == 405
