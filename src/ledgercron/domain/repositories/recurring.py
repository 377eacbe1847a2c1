"""Repository protocols for recurring rules and their materialized transactions."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.recurring_rule import RecurringRule
from ...models.transaction import Transaction


class RecurringLedgerClient(Protocol):
    """Administrative, user-unscoped access used by the recurring job."""

    def load_due_rules(self, now: datetime) -> list[RecurringRule]:
        """Return active rules with ``next_run_at <= now``, oldest first."""
        ...

    def find_materialized(self, rule: RecurringRule, due_at: datetime) -> Optional[int]:
        """Return the id of a transaction matching the rule's occurrence, if any."""
        ...

    def insert_occurrence(self, transaction: Transaction) -> bool:
        """Insert ``transaction``; return False if the occurrence already exists."""
        ...

    def advance_rule(self, rule_id: int, expected: datetime, next_run_at: datetime) -> bool:
        """Move ``next_run_at`` forward only if it still equals ``expected``."""
        ...


class RecurringRuleRepository(Protocol):
    """User-scoped rule management."""

    def get_by_id(self, rule_id: int, *, user_id: int) -> Optional[RecurringRule]:
        ...

    def list_all(self, *, user_id: int, include_inactive: bool = True) -> list[RecurringRule]:
        ...

    def create(self, rule: RecurringRule, *, user_id: int) -> RecurringRule:
        ...

    def set_active(self, rule_id: int, active: bool, *, user_id: int) -> bool:
        ...

    def delete(self, rule_id: int, *, user_id: int) -> bool:
        ...
