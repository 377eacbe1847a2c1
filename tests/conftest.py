"""Pytest configuration and shared fixtures for ledgercron tests.

Each test gets its own SQLite file so the recurring job, the rule repository and
assertions all see committed state through independent sessions.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

import pytest
from sqlalchemy import func
from sqlmodel import SQLModel, create_engine, select

from ledgercron import models  # noqa: F401  # register tables with SQLModel metadata
from ledgercron.infra.database import create_session_factory
from ledgercron.infra.repositories import (
    SQLModelRecurringLedgerClient,
    SQLModelRecurringRuleRepository,
)
from ledgercron.models import RecurringRule, Transaction, User, Wallet


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine(tmp_path: Path):
    """Create an isolated SQLite database file for each test."""
    db_path = tmp_path / "ledgercron-test.db"
    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Transactional session scopes, the shape repositories expect."""
    return create_session_factory(db_engine)


@pytest.fixture
def ledger_client(session_factory) -> SQLModelRecurringLedgerClient:
    return SQLModelRecurringLedgerClient(session_factory)


@pytest.fixture
def rule_repo(session_factory) -> SQLModelRecurringRuleRepository:
    return SQLModelRecurringRuleRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user(session_factory) -> User:
    with session_factory() as session:
        u = User(username="tester")
        session.add(u)
        session.commit()
        session.refresh(u)
        session.expunge(u)
    return u


@pytest.fixture
def wallet_factory(session_factory, user):
    """Factory for persisted wallets owned by the default user."""

    def _create_wallet(name: str = "Checking", currency_code: str = "USD") -> Wallet:
        with session_factory() as session:
            wallet = Wallet(user_id=user.id, name=name, currency_code=currency_code)
            session.add(wallet)
            session.commit()
            session.refresh(wallet)
            session.expunge(wallet)
        return wallet

    return _create_wallet


@pytest.fixture
def rule_factory(session_factory, user, wallet_factory):
    """Factory for persisted recurring rules.

    ``next_run_at`` is naive UTC, the storage form.
    """

    def _create_rule(
        next_run_at: datetime = datetime(2025, 1, 1),
        frequency: str = "monthly",
        interval: int = 1,
        amount_minor: int = 150000,
        type: str = "expense",
        wallet_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        is_active: bool = True,
        description: str | None = "Rent",
    ) -> RecurringRule:
        if wallet_id is None:
            wallet_id = wallet_factory().id
        with session_factory() as session:
            rule = RecurringRule(
                user_id=user.id,
                wallet_id=wallet_id,
                type=type,
                amount_minor=amount_minor,
                currency_code="USD",
                description=description,
                frequency=frequency,
                interval=interval,
                start_date=start_date,
                end_date=end_date,
                next_run_at=next_run_at,
                is_active=is_active,
            )
            session.add(rule)
            session.commit()
            session.refresh(rule)
            session.expunge(rule)
        return rule

    return _create_rule


# =============================================================================
# Query Helpers
# =============================================================================


@pytest.fixture
def count_transactions(session_factory):
    def _count() -> int:
        with session_factory() as session:
            return session.exec(select(func.count()).select_from(Transaction)).one()

    return _count


@pytest.fixture
def reload_rule(session_factory):
    def _reload(rule_id: int) -> RecurringRule:
        with session_factory() as session:
            rule = session.get(RecurringRule, rule_id)
            session.expunge(rule)
            return rule

    return _reload
