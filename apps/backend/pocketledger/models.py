from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from zoneinfo import ZoneInfo
from enum import Enum
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Index,
    Boolean,
    JSON,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .core.config import settings
from .core.database import Base


try:
    LOCAL_ZONE = ZoneInfo(getattr(settings, "TIMEZONE", "Asia/Kolkata"))
except Exception:
    LOCAL_ZONE = ZoneInfo("Asia/Kolkata")


def now_local_naive() -> datetime:
    """Return naive datetime normalized to configured local timezone."""
    return datetime.now(LOCAL_ZONE).replace(tzinfo=None)


def today_local() -> date:
    return now_local_naive().date()


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, onupdate=now_local_naive, nullable=False)


class User(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    email_confirmed_at: Mapped[datetime | None] = mapped_column(DateTime)

    profile: Mapped["Profile"] = relationship(back_populates="user", uselist=False, cascade="all, delete-orphan")

    @property
    def is_confirmed(self) -> bool:
        return self.email_confirmed_at is not None


class Profile(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(100))
    avatar_url: Mapped[str | None] = mapped_column(String(500))
    currency: Mapped[str] = mapped_column(String(3), default=settings.DEFAULT_CURRENCY, nullable=False)

    user: Mapped[User] = relationship(back_populates="profile")


class AuthTokenPurpose(str, Enum):
    SESSION = "session"
    SIGNUP = "signup"


class AuthToken(Base, TimestampMixin):
    """Opaque bearer/OTP token. Only the sha256 digest is persisted."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    purpose: Mapped[AuthTokenPurpose] = mapped_column(SAEnum(AuthTokenPurpose, name="auth_token_purpose"), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime)

    user: Mapped[User] = relationship("User")

    def is_usable(self, at: datetime) -> bool:
        return self.used_at is None and self.expires_at > at


class AccountType(str, Enum):
    CASH = "cash"
    BANK = "bank"
    CREDIT_CARD = "credit_card"
    SAVINGS = "savings"
    INVESTMENT = "investment"


class Account(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[AccountType] = mapped_column(SAEnum(AccountType, name="account_type"), nullable=False)
    balance: Mapped[float] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default=settings.DEFAULT_CURRENCY, nullable=False)
    icon: Mapped[str | None] = mapped_column(String(32))
    color: Mapped[str | None] = mapped_column(String(32))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_account_name"),
    )


class CategoryType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


class Category(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(32))
    color: Mapped[str | None] = mapped_column(String(32))
    type: Mapped[CategoryType] = mapped_column(SAEnum(CategoryType, name="category_type"), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "name", "type", name="uq_category_name"),
    )


class TxnType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"


class Transaction(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    account_id: Mapped[int] = mapped_column(ForeignKey("account.id"), nullable=False)
    # Destination of a transfer; income/expense rows leave this empty
    to_account_id: Mapped[int | None] = mapped_column(ForeignKey("account.id"))
    category_id: Mapped[int | None] = mapped_column(ForeignKey("category.id", ondelete="SET NULL"))
    type: Mapped[TxnType] = mapped_column(SAEnum(TxnType, name="txn_type"), nullable=False)
    # Always stored as a magnitude; direction comes from ``type``
    amount: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    tags: Mapped[list[str] | None] = mapped_column(JSON)

    account: Mapped[Account] = relationship("Account", foreign_keys=[account_id])
    to_account: Mapped[Account | None] = relationship("Account", foreign_keys=[to_account_id])
    category: Mapped[Category | None] = relationship("Category")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_transaction_amount_positive"),
        Index("ix_transaction_user_date", "user_id", "date"),
    )

    @property
    def category_name(self) -> str:
        return self.category.name if self.category else UNCATEGORIZED

    @property
    def signed_amount(self) -> float:
        value = abs(float(self.amount))
        return -value if self.type == TxnType.EXPENSE else value


class BudgetPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Budget(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("category.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False)
    period: Mapped[BudgetPeriod] = mapped_column(SAEnum(BudgetPeriod, name="budget_period"), default=BudgetPeriod.MONTHLY, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    category: Mapped[Category] = relationship("Category")

    __table_args__ = (
        UniqueConstraint("user_id", "category_id", "period", name="uq_budget_category_period"),
        CheckConstraint("end_date IS NULL OR end_date >= start_date", name="ck_budget_dates"),
    )


UNCATEGORIZED = "Uncategorized"
DEFAULT_CATEGORY_COLOR = "#8884d8"

# Seeded for every new user
DEFAULT_CATEGORIES: list[dict[str, Any]] = [
    {"name": "Food & Groceries", "icon": "🍔", "color": "#f97316", "type": CategoryType.EXPENSE},
    {"name": "Entertainment", "icon": "🎬", "color": "#ec4899", "type": CategoryType.EXPENSE},
    {"name": "Salary", "icon": "💼", "color": "#10b981", "type": CategoryType.INCOME},
    {"name": "Freelance", "icon": "💻", "color": "#34d399", "type": CategoryType.INCOME},
    {"name": "Shopping", "icon": "🛍️", "color": "#8b5cf6", "type": CategoryType.EXPENSE},
    {"name": "Transport", "icon": "🚌", "color": "#0ea5e9", "type": CategoryType.EXPENSE},
    {"name": "Utilities", "icon": "💡", "color": "#eab308", "type": CategoryType.EXPENSE},
]
