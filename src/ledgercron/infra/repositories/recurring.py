"""SQLModel implementations of the recurring-rule repositories."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from ...exceptions import AdvanceError, IdempotencyCheckError, MaterializationError, RuleLoadError
from ...models.recurring_rule import RecurringRule
from ...models.transaction import Transaction
from ...services.schedule import to_naive_utc
from ..database import SessionFactory


class SQLModelRecurringLedgerClient:
    """Administrative ledger client used by the recurring job.

    Queries here are deliberately not filtered by user: one invocation processes
    every user's rules. Storage errors are re-raised as the job's own exception types.
    """

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def load_due_rules(self, now: datetime) -> list[RecurringRule]:
        cutoff = to_naive_utc(now)
        try:
            with self.session_factory() as session:
                statement = (
                    select(RecurringRule)
                    .where(RecurringRule.is_active == True)  # noqa: E712
                    .where(RecurringRule.next_run_at <= cutoff)
                    .order_by(RecurringRule.next_run_at, RecurringRule.id)  # type: ignore
                )
                rows = list(session.exec(statement).all())
                session.expunge_all()
                return rows
        except SQLAlchemyError as exc:
            raise RuleLoadError(f"Failed to load recurring rules: {exc}") from exc

    def find_materialized(self, rule: RecurringRule, due_at: datetime) -> Optional[int]:
        """Match on user, wallet, amount, currency, type, and exact occurrence instant."""
        occurred_at = to_naive_utc(due_at)
        try:
            with self.session_factory() as session:
                statement = (
                    select(Transaction.id)
                    .where(Transaction.user_id == rule.user_id)
                    .where(Transaction.wallet_id == rule.wallet_id)
                    .where(Transaction.amount_minor == rule.amount_minor)
                    .where(Transaction.currency_code == rule.currency_code)
                    .where(Transaction.type == rule.type)
                    .where(Transaction.occurred_at == occurred_at)
                    .limit(1)
                )
                return session.exec(statement).first()
        except SQLAlchemyError as exc:
            raise IdempotencyCheckError(
                f"Idempotency check failed: {exc}", rule_id=rule.id
            ) from exc

    def _occurrence_exists(self, rule_id: int, occurred_at: datetime) -> bool:
        with self.session_factory() as session:
            statement = (
                select(Transaction.id)
                .where(Transaction.recurring_rule_id == rule_id)
                .where(Transaction.occurred_at == occurred_at)
                .limit(1)
            )
            return session.exec(statement).first() is not None

    def insert_occurrence(self, transaction: Transaction) -> bool:
        occurred_at = to_naive_utc(transaction.occurred_at)
        transaction.occurred_at = occurred_at
        rule_id = transaction.recurring_rule_id
        try:
            with self.session_factory() as session:
                session.add(transaction)
                session.commit()
                session.refresh(transaction)
                session.expunge(transaction)
            return True
        except IntegrityError as exc:
            # Lost the race on (recurring_rule_id, occurred_at): another invocation
            # already posted this occurrence. Any other constraint is a real failure.
            if rule_id is not None and self._occurrence_exists(rule_id, occurred_at):
                return False
            raise MaterializationError(f"Insert rejected: {exc}", rule_id=rule_id) from exc
        except SQLAlchemyError as exc:
            raise MaterializationError(f"Insert failed: {exc}", rule_id=rule_id) from exc

    def advance_rule(self, rule_id: int, expected: datetime, next_run_at: datetime) -> bool:
        statement = (
            update(RecurringRule)
            .where(RecurringRule.id == rule_id)
            .where(RecurringRule.next_run_at == to_naive_utc(expected))
            .values(next_run_at=to_naive_utc(next_run_at))
        )
        try:
            with self.session_factory() as session:
                result = session.connection().execute(statement)
                return result.rowcount == 1
        except SQLAlchemyError as exc:
            raise AdvanceError(f"Failed to update next_run_at: {exc}", rule_id=rule_id) from exc


class SQLModelRecurringRuleRepository:
    """User-scoped rule repository backing the authoring commands."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, rule_id: int, *, user_id: int) -> Optional[RecurringRule]:
        with self.session_factory() as session:
            obj = session.exec(
                select(RecurringRule)
                .where(RecurringRule.id == rule_id)
                .where(RecurringRule.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int, include_inactive: bool = True) -> list[RecurringRule]:
        with self.session_factory() as session:
            statement = select(RecurringRule).where(RecurringRule.user_id == user_id)
            if not include_inactive:
                statement = statement.where(RecurringRule.is_active == True)  # noqa: E712
            statement = statement.order_by(RecurringRule.next_run_at, RecurringRule.id)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, rule: RecurringRule, *, user_id: int) -> RecurringRule:
        with self.session_factory() as session:
            rule.user_id = user_id
            rule.next_run_at = to_naive_utc(rule.next_run_at)
            session.add(rule)
            session.commit()
            session.refresh(rule)
            session.expunge(rule)
            return rule

    def set_active(self, rule_id: int, active: bool, *, user_id: int) -> bool:
        with self.session_factory() as session:
            rule = session.exec(
                select(RecurringRule)
                .where(RecurringRule.id == rule_id)
                .where(RecurringRule.user_id == user_id)
            ).first()
            if rule is None:
                return False
            rule.is_active = active
            session.add(rule)
            return True

    def delete(self, rule_id: int, *, user_id: int) -> bool:
        with self.session_factory() as session:
            rule = session.exec(
                select(RecurringRule)
                .where(RecurringRule.id == rule_id)
                .where(RecurringRule.user_id == user_id)
            ).first()
            if rule is None:
                return False
            session.delete(rule)
            return True
