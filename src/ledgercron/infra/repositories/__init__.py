"""SQLModel repository implementations."""

from .recurring import SQLModelRecurringLedgerClient, SQLModelRecurringRuleRepository

__all__ = ["SQLModelRecurringLedgerClient", "SQLModelRecurringRuleRepository"]
