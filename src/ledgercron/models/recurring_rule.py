"""Recurring transaction rules."""

from __future__ import annotations

from datetime import date, datetime
from typing import ClassVar, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

FREQUENCIES = ("daily", "weekly", "monthly")
TRANSACTION_TYPES = ("income", "expense")


class RecurringRule(SQLModel, table=True):
    """A standing instruction to post a transaction on a schedule.

    ``next_run_at`` is the next due instant (naive UTC). ``day_of_month`` and
    ``day_of_week`` are display hints only; the schedule advances from the previous
    due instant.
    """

    __tablename__: ClassVar[str] = "recurring_rule"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    wallet_id: int = Field(foreign_key="wallet.id", nullable=False)
    category_id: Optional[int] = Field(default=None, foreign_key="category.id")
    type: str = Field(default="expense", nullable=False, max_length=16)
    amount_minor: int = Field(nullable=False)
    currency_code: str = Field(nullable=False, max_length=3)
    description: Optional[str] = Field(default=None, max_length=255)

    frequency: str = Field(default="monthly", nullable=False, max_length=16)
    interval: int = Field(default=1, nullable=False)
    day_of_month: Optional[int] = Field(default=None)
    day_of_week: Optional[int] = Field(default=None, description="0=Monday .. 6=Sunday")
    start_date: Optional[date] = Field(default=None)
    end_date: Optional[date] = Field(default=None)

    next_run_at: datetime = Field(sa_type=DateTime(timezone=False), nullable=False, index=True)
    is_active: bool = Field(default=True, nullable=False, index=True)
