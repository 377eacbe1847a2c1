"""Recurring-transaction job: turns due rules into ledger transactions.

One invocation loads every active rule whose ``next_run_at`` has passed, drops rules
outside their start/end window, and for each remaining rule:

1. checks whether the occurrence was already posted (composite match),
2. posts it if not, tagged with the rule id so the unique key rejects a concurrent twin,
3. moves ``next_run_at`` forward with a compare-and-set update.

A rule whose insert fails keeps its ``next_run_at`` and is retried by the next
invocation. A rule whose advance fails is also seen again, and step 1 then recognises
the transaction that was already posted. Invocations may overlap; nothing here takes a lock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Optional

from ..domain.repositories import RecurringLedgerClient
from ..exceptions import AdvanceError, IdempotencyCheckError, MaterializationError
from ..logging_config import get_logger
from ..models import RecurringRule, Transaction
from .schedule import advance, in_window, to_utc

logger = get_logger("recurring")

NOTHING_DUE_MESSAGE = "No recurring rules due at this time"


@dataclass
class RuleOutcome:
    """What one invocation did with one rule."""

    rule_id: int
    due_at: datetime
    created: bool = False
    duplicate: bool = False
    advanced: bool = False
    next_run_at: Optional[datetime] = None
    error: Optional[str] = None


@dataclass
class RunSummary:
    """Counts reported back to the trigger."""

    date: date
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped_window: int = 0
    outcomes: list[RuleOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "date": self.date.isoformat(),
            "processed": self.processed,
            "created": self.created,
            "updated": self.updated,
        }
        if self.processed == 0:
            payload["message"] = NOTHING_DUE_MESSAGE
        return payload


def already_materialized(
    client: RecurringLedgerClient, rule: RecurringRule, due_at: datetime
) -> bool:
    """True when a transaction for this rule's occurrence at ``due_at`` exists."""

    return client.find_materialized(rule, due_at) is not None


def build_occurrence(rule: RecurringRule, due_at: datetime) -> Transaction:
    """Construct the transaction a rule produces for ``due_at``."""

    return Transaction(
        user_id=rule.user_id,
        wallet_id=rule.wallet_id,
        category_id=rule.category_id,
        type=rule.type,
        amount_minor=rule.amount_minor,
        currency_code=rule.currency_code,
        occurred_at=due_at,
        description=rule.description,
        recurring_rule_id=rule.id,
    )


def materialize(client: RecurringLedgerClient, rule: RecurringRule, due_at: datetime) -> bool:
    """Insert the occurrence. Returns False if a concurrent invocation won the insert.

    Raises:
        MaterializationError: the insert failed; nothing was written.
    """

    return client.insert_occurrence(build_occurrence(rule, due_at))


def _process_rule(
    client: RecurringLedgerClient, rule: RecurringRule, summary: RunSummary
) -> RuleOutcome:
    due_at = to_utc(rule.next_run_at)
    outcome = RuleOutcome(rule_id=rule.id, due_at=due_at)
    log_extra = {"rule_id": rule.id, "due_at": due_at.isoformat()}

    try:
        duplicate = already_materialized(client, rule, due_at)
    except IdempotencyCheckError as exc:
        logger.error("Idempotency check failed for rule %s: %s", rule.id, exc, extra=log_extra)
        outcome.error = str(exc)
        return outcome

    if duplicate:
        outcome.duplicate = True
        logger.info("Occurrence for rule %s already posted; advancing only", rule.id, extra=log_extra)
    else:
        try:
            inserted = materialize(client, rule, due_at)
        except MaterializationError as exc:
            logger.error("Failed to create transaction for rule %s: %s", rule.id, exc, extra=log_extra)
            outcome.error = str(exc)
            return outcome
        if inserted:
            outcome.created = True
            summary.created += 1
        else:
            outcome.duplicate = True
            logger.info("Rule %s occurrence posted concurrently", rule.id, extra=log_extra)

    try:
        next_run_at = advance(due_at, rule.frequency, rule.interval)
        outcome.advanced = client.advance_rule(rule.id, due_at, next_run_at)
    except (AdvanceError, ValueError) as exc:
        logger.error("Failed to update next_run_at for rule %s: %s", rule.id, exc, extra=log_extra)
        outcome.error = str(exc)
        return outcome

    if outcome.advanced:
        outcome.next_run_at = next_run_at
        summary.updated += 1
    else:
        logger.info("Rule %s was already advanced by another run", rule.id, extra=log_extra)
    return outcome


def run_recurring(client: RecurringLedgerClient, *, now: Optional[datetime] = None) -> RunSummary:
    """Run one invocation of the recurring job.

    Args:
        client: Administrative ledger client (unscoped across users)
        now: Reference instant; defaults to the current UTC time

    Returns:
        RunSummary with processed/created/updated counts

    Raises:
        RuleLoadError: the due rules could not be loaded; nothing was written
    """

    reference = to_utc(now) if now is not None else datetime.now(timezone.utc)
    today = reference.date()

    rules = client.load_due_rules(reference)
    eligible = [rule for rule in rules if in_window(rule, today)]

    summary = RunSummary(date=today, processed=len(eligible))
    summary.skipped_window = len(rules) - len(eligible)
    if summary.skipped_window:
        logger.debug("%d due rule(s) outside their window", summary.skipped_window)

    for rule in eligible:
        try:
            outcome = _process_rule(client, rule, summary)
        except Exception as exc:
            logger.exception("Unexpected failure processing rule %s", rule.id, extra={"rule_id": rule.id})
            outcome = RuleOutcome(rule_id=rule.id, due_at=to_utc(rule.next_run_at), error=str(exc))
        summary.outcomes.append(outcome)

    logger.info(
        "Recurring run finished: processed=%d created=%d updated=%d",
        summary.processed,
        summary.created,
        summary.updated,
        extra={"run_date": today.isoformat(), "skipped_window": summary.skipped_window},
    )
    return summary
