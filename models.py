from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    case,
    func,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)

    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction", back_populates="user", cascade="all, delete-orphan"
    )
    budgets: Mapped[list["Budget"]] = relationship(
        "Budget", back_populates="user", cascade="all, delete-orphan"
    )
    goals: Mapped[list["Goal"]] = relationship(
        "Goal", back_populates="user", cascade="all, delete-orphan"
    )


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    # Signed: positive is income, negative is expense.
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    subcategory: Mapped[Optional[str]] = mapped_column(String(100))
    # Nullable for rows imported before the type column existed.
    type: Mapped[Optional[TransactionType]] = mapped_column(SAEnum(TransactionType))
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    bank_account_id: Mapped[Optional[str]] = mapped_column(String(64))
    is_mock: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="transactions")

    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "date"),
        Index("ix_transactions_user_category_date", "user_id", "category", "date"),
        Index("ix_transactions_user_type_date", "user_id", "type", "date"),
    )

    @hybrid_property
    def effective_type(self) -> TransactionType:
        if self.type is not None:
            return self.type
        if self.amount_cents > 0:
            return TransactionType.income
        return TransactionType.expense

    @effective_type.inplace.expression
    @classmethod
    def _effective_type_expression(cls):
        return func.coalesce(
            cls.type,
            case(
                (cls.amount_cents > 0, TransactionType.income.name),
                else_=TransactionType.expense.name,
            ),
        )

    @property
    def amount(self) -> float:
        return self.amount_cents / 100


class Budget(Base, TimestampMixin):
    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM
    limit_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="budgets")

    __table_args__ = (
        CheckConstraint("limit_cents > 0", name="ck_budget_limit_positive"),
        UniqueConstraint(
            "user_id", "category", "month", name="uq_budget_user_category_month"
        ),
        Index("ix_budget_user_month", "user_id", "month"),
    )

    @property
    def limit(self) -> float:
        return self.limit_cents / 100


class Goal(Base, TimestampMixin):
    __tablename__ = "goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    target_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    # Recomputed from transactions, never incremented in place.
    saved_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    due_date: Mapped[Optional[date]] = mapped_column(Date)

    user: Mapped["User"] = relationship("User", back_populates="goals")

    __table_args__ = (
        CheckConstraint("target_cents > 0", name="ck_goal_target_positive"),
        Index("ix_goal_user", "user_id"),
    )

    @property
    def target_amount(self) -> float:
        return self.target_cents / 100

    @property
    def saved_amount(self) -> float:
        return self.saved_cents / 100
