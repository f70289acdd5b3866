"""Expense and expense participant ORM models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from splitledger.db.base import Base
from splitledger.db.models.user import utcnow
from splitledger.domain.expense_rules import ExpenseCategory
from splitledger.domain.money import ZERO


class Expense(Base):
    """Shared expense; owns its participant lines."""

    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        Index("ix_expenses_group_id", "group_id"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    category: Mapped[ExpenseCategory] = mapped_column(
        Enum(
            ExpenseCategory,
            name="expense_category",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        nullable=False,
        default=ExpenseCategory.GENERAL,
    )
    receipt_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    expense_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    created_by: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    group_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("groups.id"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    participants: Mapped[list[ExpenseParticipant]] = relationship(
        back_populates="expense",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ExpenseParticipant.created_at",
    )

    @property
    def total_paid(self) -> Decimal:
        return sum((p.paid_amount for p in self.participants), ZERO)

    @property
    def total_owed(self) -> Decimal:
        return sum((p.owed_amount for p in self.participants), ZERO)

    def has_settled_participant(self) -> bool:
        return any(p.is_settled for p in self.participants)

    def participant_for(self, user_id: UUID) -> ExpenseParticipant | None:
        return next((p for p in self.participants if p.user_id == user_id), None)


class ExpenseParticipant(Base):
    """One user's paid and owed share of an expense."""

    __tablename__ = "expense_participants"
    __table_args__ = (
        UniqueConstraint(
            "expense_id",
            "user_id",
            name="uq_expense_participants_expense_user",
        ),
        CheckConstraint("paid_amount >= 0", name="ck_expense_participants_paid"),
        CheckConstraint("owed_amount >= 0", name="ck_expense_participants_owed"),
        Index("ix_expense_participants_user_id", "user_id"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    expense_id: Mapped[UUID] = mapped_column(
        ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), nullable=False, default=ZERO
    )
    owed_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), nullable=False, default=ZERO
    )
    is_settled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )
    settled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    expense: Mapped[Expense] = relationship(back_populates="participants")

    @property
    def net_amount(self) -> Decimal:
        """Paid minus owed; positive means creditor on this expense."""
        return self.paid_amount - self.owed_amount

    def mark_settled(self, settled_at: datetime | None = None) -> None:
        self.is_settled = True
        self.settled_at = settled_at or utcnow()
