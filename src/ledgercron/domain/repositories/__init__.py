"""Repository protocols."""

from .recurring import RecurringLedgerClient, RecurringRuleRepository

__all__ = ["RecurringLedgerClient", "RecurringRuleRepository"]
