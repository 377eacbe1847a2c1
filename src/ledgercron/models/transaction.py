"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


class Transaction(SQLModel, table=True):
    """A single ledger transaction, hand-entered or materialized from a recurring rule.

    ``occurred_at`` is stored as naive UTC. Rows created by the recurring job carry
    ``recurring_rule_id``; the unique key on ``(recurring_rule_id, occurred_at)`` allows
    at most one row per rule occurrence. Manual rows leave it NULL and are unconstrained.
    """

    __tablename__: ClassVar[str] = "transaction"
    __table_args__ = (
        UniqueConstraint("recurring_rule_id", "occurred_at", name="uq_transaction_rule_occurrence"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    wallet_id: int = Field(foreign_key="wallet.id", nullable=False, index=True)
    category_id: Optional[int] = Field(default=None, foreign_key="category.id")
    type: str = Field(nullable=False, max_length=16, description="income or expense")
    amount_minor: int = Field(nullable=False, description="Amount in minor units, always positive")
    currency_code: str = Field(nullable=False, max_length=3)
    occurred_at: datetime = Field(sa_type=DateTime(timezone=False), nullable=False, index=True)
    description: Optional[str] = Field(default=None, max_length=255)
    # Plain column, not a foreign key: deleting a rule keeps its posted history.
    recurring_rule_id: Optional[int] = Field(default=None, index=True)
