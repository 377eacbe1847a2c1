"""Exceptions raised by the recurring-transaction job.

Only ``RuleLoadError`` is fatal to an invocation; the others are raised per rule and
caught by the runner, which logs them and moves on to the next rule.
"""

from __future__ import annotations

from typing import Optional


class RecurringError(Exception):
    """Base class for recurring-job failures."""

    code: str = "RECURRING_ERROR"

    def __init__(self, message: str, *, rule_id: Optional[int] = None):
        super().__init__(message)
        self.rule_id = rule_id


class RuleLoadError(RecurringError):
    """The set of due rules could not be read."""

    code = "RULE_LOAD_FAILED"


class IdempotencyCheckError(RecurringError):
    """The lookup for an existing occurrence failed."""

    code = "IDEMPOTENCY_CHECK_FAILED"


class MaterializationError(RecurringError):
    """Inserting the transaction for an occurrence failed."""

    code = "MATERIALIZATION_FAILED"


class AdvanceError(RecurringError):
    """Persisting the rule's next due instant failed."""

    code = "ADVANCE_FAILED"
