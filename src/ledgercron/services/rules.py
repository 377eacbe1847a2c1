"""Recurring rule authoring: create, pause, activate, delete, list."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from ..domain.repositories import RecurringRuleRepository
from ..logging_config import get_logger
from ..models import FREQUENCIES, TRANSACTION_TYPES, RecurringRule

logger = get_logger("rules")


def to_minor_units(amount: Union[str, int, float, Decimal]) -> int:
    """Convert a major-unit amount (``"12.34"``) to integer minor units (``1234``)."""

    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _first_run_instant(first_run: date) -> datetime:
    return datetime.combine(first_run, time.min, tzinfo=timezone.utc)


def create_rule(
    repo: RecurringRuleRepository,
    *,
    user_id: int,
    wallet_id: int,
    amount_minor: int,
    currency_code: str,
    first_run: date,
    type: str = "expense",
    frequency: str = "monthly",
    interval: int = 1,
    category_id: Optional[int] = None,
    description: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> RecurringRule:
    """Validate and persist a new active rule whose first occurrence is ``first_run``.

    Raises ``ValueError`` for invalid input.
    """

    if frequency not in FREQUENCIES:
        raise ValueError(f"Invalid frequency: {frequency}")
    if type not in TRANSACTION_TYPES:
        raise ValueError(f"Invalid transaction type: {type}")
    if interval < 1:
        raise ValueError("Interval must be at least 1")
    if amount_minor <= 0:
        raise ValueError("Amount must be positive")
    currency = (currency_code or "").strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValueError(f"Invalid currency code: {currency_code}")

    start = start_date or first_run
    # The first occurrence must itself fall inside the window.
    if start > first_run:
        raise ValueError("Start date must be on or before the first run date")
    if end_date is not None and start > end_date:
        raise ValueError("Start date must be on or before end date")

    rule = RecurringRule(
        user_id=user_id,
        wallet_id=wallet_id,
        category_id=category_id,
        type=type,
        amount_minor=amount_minor,
        currency_code=currency,
        description=(description or "").strip() or None,
        frequency=frequency,
        interval=interval,
        day_of_month=first_run.day if frequency == "monthly" else None,
        day_of_week=first_run.weekday() if frequency == "weekly" else None,
        start_date=start,
        end_date=end_date,
        next_run_at=_first_run_instant(first_run),
        is_active=True,
    )
    created = repo.create(rule, user_id=user_id)
    logger.info("Created recurring rule %s", created.id, extra={"rule_id": created.id, "user_id": user_id})
    return created


def list_rules(
    repo: RecurringRuleRepository, *, user_id: int, include_inactive: bool = True
) -> list[RecurringRule]:
    return repo.list_all(user_id=user_id, include_inactive=include_inactive)


def _set_active(repo: RecurringRuleRepository, rule_id: int, active: bool, *, user_id: int) -> None:
    if not repo.set_active(rule_id, active, user_id=user_id):
        raise LookupError(f"Recurring rule {rule_id} not found")
    logger.info(
        "%s recurring rule %s", "Activated" if active else "Paused", rule_id,
        extra={"rule_id": rule_id, "user_id": user_id},
    )


def pause_rule(repo: RecurringRuleRepository, rule_id: int, *, user_id: int) -> None:
    """Stop a rule from being selected by the job."""
    _set_active(repo, rule_id, False, user_id=user_id)


def activate_rule(repo: RecurringRuleRepository, rule_id: int, *, user_id: int) -> None:
    """Resume a paused rule. Occurrences missed while paused fire one per invocation."""
    _set_active(repo, rule_id, True, user_id=user_id)


def delete_rule(repo: RecurringRuleRepository, rule_id: int, *, user_id: int) -> None:
    if not repo.delete(rule_id, user_id=user_id):
        raise LookupError(f"Recurring rule {rule_id} not found")
    logger.info("Deleted recurring rule %s", rule_id, extra={"rule_id": rule_id, "user_id": user_id})
