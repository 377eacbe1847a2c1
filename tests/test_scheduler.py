"""Tests for the in-process recurring scheduler."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from ledgercron import create_app
from ledgercron.exceptions import RuleLoadError
from ledgercron.extensions import ADMIN_CLIENT_KEY, get_session_factory
from ledgercron.models import RecurringRule, User, Wallet
from ledgercron.logging_config import get_logger
from ledgercron.scheduler import JOB_ID, create_scheduler, logger as scheduler_logger


@pytest.fixture()
def app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LEDGERCRON_DATABASE_URL", f"sqlite:///{tmp_path / 'sched.db'}")
    monkeypatch.setenv("LEDGERCRON_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LEDGERCRON_SCHEDULER_INTERVAL_MINUTES", "30")
    return create_app("testing")


def test_testing_app_has_no_scheduler(app):
    assert "ledgercron.scheduler" not in app.extensions


def test_scheduler_logs_under_package_logger():
    assert scheduler_logger is get_logger("scheduler")
    assert scheduler_logger.name == "ledgercron.scheduler"


def test_start_registers_interval_job(app):
    scheduler = create_scheduler(app, auto_start=True)
    try:
        assert scheduler.running
        job = scheduler.scheduler.get_job(JOB_ID)
        assert job is not None
        assert job.trigger.interval.total_seconds() == 30 * 60
        assert job.max_instances == 1
        assert job.coalesce is True

        scheduler.start()  # second start is a no-op
        assert len(scheduler.scheduler.get_jobs()) == 1
    finally:
        scheduler.stop()
    assert not scheduler.running


def test_run_once_processes_due_rules(app):
    with get_session_factory(app)() as session:
        user = User(username="sched")
        session.add(user)
        session.flush()
        wallet = Wallet(user_id=user.id, name="Main")
        session.add(wallet)
        session.flush()
        session.add(
            RecurringRule(
                user_id=user.id,
                wallet_id=wallet.id,
                amount_minor=1200,
                currency_code="USD",
                frequency="weekly",
                next_run_at=datetime(2025, 1, 1),
            )
        )

    summary = create_scheduler(app).run_once()

    assert summary is not None
    assert summary.created == 1
    assert summary.date == datetime.now(timezone.utc).date()


def test_run_once_swallows_load_failure(app):
    class BrokenClient:
        def load_due_rules(self, now):
            raise RuleLoadError("down")

    app.extensions[ADMIN_CLIENT_KEY] = BrokenClient()

    assert create_scheduler(app).run_once() is None
