from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from typing import Optional, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from .models import (
    AccountType,
    BudgetPeriod,
    CategoryType,
    TxnType,
)


# Numeric(14, 2) 컬럼에 들어가는 최대 금액
MAX_AMOUNT = 999_999_999_999.99


def _normalize_currency(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().upper()
    if len(normalized) != 3 or not normalized.isalpha():
        raise ValueError("currency must be a 3-letter ISO 4217 code")
    return normalized


# ===== Auth =====

class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str | None = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class TokenOut(BaseModel):
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    expires_at: datetime


class ProfileOut(BaseModel):
    id: int
    email: EmailStr
    full_name: str | None = None
    avatar_url: str | None = None
    currency: str


class UserOut(BaseModel):
    id: int
    email: EmailStr
    is_active: bool
    email_confirmed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class SignUpResult(BaseModel):
    user: UserOut
    confirmation_required: bool
    # Only populated outside production, where no mailer delivers it
    confirmation_token: str | None = None


class MeOut(BaseModel):
    user: UserOut
    profile: ProfileOut


# ===== Profile =====

class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, max_length=100)
    currency: str | None = None

    @field_validator("currency")
    def valid_currency(cls, v: str | None):
        return _normalize_currency(v)


class UserStatsOut(BaseModel):
    total_transactions: int
    budgets_created: int
    money_saved: float


# ===== Accounts =====

class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: AccountType
    balance: float = Field(default=0, allow_inf_nan=False, ge=-MAX_AMOUNT, le=MAX_AMOUNT)
    currency: Optional[str] = None
    icon: Optional[str] = Field(default=None, max_length=32)
    color: Optional[str] = Field(default=None, max_length=32)
    is_active: bool = True

    @field_validator("currency")
    def valid_currency(cls, v: str | None):
        return _normalize_currency(v)


class AccountUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[AccountType] = None
    currency: Optional[str] = None
    icon: Optional[str] = Field(default=None, max_length=32)
    color: Optional[str] = Field(default=None, max_length=32)
    is_active: Optional[bool] = None

    @field_validator("currency")
    def valid_currency(cls, v: str | None):
        return _normalize_currency(v)


class AccountOut(BaseModel):
    id: int
    user_id: int
    name: str
    type: AccountType
    balance: float
    currency: str
    icon: Optional[str]
    color: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ===== Categories =====

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: CategoryType
    icon: Optional[str] = Field(default=None, max_length=32)
    color: Optional[str] = Field(default=None, max_length=32)

    @field_validator("name")
    def strip_name(cls, v: str):
        stripped = v.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    icon: Optional[str] = Field(default=None, max_length=32)
    color: Optional[str] = Field(default=None, max_length=32)


class CategoryOut(BaseModel):
    id: int
    user_id: int
    name: str
    icon: Optional[str]
    color: Optional[str]
    type: CategoryType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ===== Transactions =====

class TransactionCreate(BaseModel):
    account_id: int
    to_account_id: Optional[int] = None
    category_id: Optional[int] = None
    type: TxnType
    amount: float = Field(allow_inf_nan=False, ge=-MAX_AMOUNT, le=MAX_AMOUNT)
    description: Optional[str] = Field(default=None, max_length=255)
    date: dt.date = Field(validation_alias=AliasChoices("date", "transaction_date"))
    notes: Optional[str] = None
    tags: Optional[list[str]] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("amount")
    def non_zero_amount(cls, v: float):
        if v == 0:
            raise ValueError("amount must not be zero")
        return abs(v)

    @model_validator(mode="after")
    def validate_directions(self) -> "TransactionCreate":
        if self.type is TxnType.TRANSFER:
            if self.category_id is not None:
                raise ValueError("transfers cannot carry a category")
            if self.to_account_id is not None and self.to_account_id == self.account_id:
                raise ValueError("to_account_id must differ from account_id")
        elif self.to_account_id is not None:
            raise ValueError("to_account_id is only allowed for transfers")
        return self


class TransactionUpdate(BaseModel):
    account_id: Optional[int] = None
    to_account_id: Optional[int] = None
    category_id: Optional[int] = None
    type: Optional[TxnType] = None
    amount: Optional[float] = Field(default=None, allow_inf_nan=False, ge=-MAX_AMOUNT, le=MAX_AMOUNT)
    description: Optional[str] = Field(default=None, max_length=255)
    date: Optional[dt.date] = Field(default=None, validation_alias=AliasChoices("date", "transaction_date"))
    notes: Optional[str] = None
    tags: Optional[list[str]] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("amount")
    def non_zero_amount(cls, v: float | None):
        if v is None:
            return v
        if v == 0:
            raise ValueError("amount must not be zero")
        return abs(v)


class TransactionOut(BaseModel):
    id: int
    user_id: int
    account_id: int
    to_account_id: Optional[int]
    category_id: Optional[int]
    category_name: str
    type: TxnType
    amount: float
    signed_amount: float
    description: Optional[str]
    date: dt.date
    notes: Optional[str]
    tags: Optional[list[str]]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field(return_type=str)
    def title(self) -> str:
        return self.description or "N/A"


class TransactionStatsOut(BaseModel):
    total_income: float
    total_expenses: float
    net_balance: float


class BulkDeleteResult(BaseModel):
    removed: int


# ===== Budgets =====

class BudgetCreate(BaseModel):
    category_id: int
    amount: float = Field(gt=0, le=MAX_AMOUNT, allow_inf_nan=False)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True

    @model_validator(mode="after")
    def validate_span(self) -> "BudgetCreate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class BudgetUpdate(BaseModel):
    category_id: Optional[int] = None
    amount: Optional[float] = Field(default=None, gt=0, le=MAX_AMOUNT, allow_inf_nan=False)
    period: Optional[BudgetPeriod] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class BudgetOut(BaseModel):
    id: int
    user_id: int
    category_id: int
    amount: float
    period: BudgetPeriod
    start_date: date
    end_date: Optional[date]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


BudgetStatus = Literal["exceeded", "warning", "good"]


class BudgetWithSpentOut(BaseModel):
    id: int
    category_id: int
    category_name: str
    category_icon: Optional[str]
    color: str
    amount: float
    spent: float
    remaining: float
    percentage: float
    status: BudgetStatus
    period: BudgetPeriod
    start_date: date
    end_date: Optional[date]
    is_active: bool
    window_start: date
    window_end: date


class BudgetOverviewOut(BaseModel):
    total_budget: float
    total_spent: float
    total_remaining: float
    overall_percentage: float
    exceeded_count: int
    warning_count: int
    good_count: int


class BudgetSummaryOut(BaseModel):
    budget_id: int
    window_start: date
    window_end: date
    planned: float
    spent: float
    remaining: float
    execution_rate: float
    status: BudgetStatus


# ===== Dashboard =====

class DashboardStatsOut(BaseModel):
    monthly_income: float
    monthly_expenses: float
    net_monthly_balance: float


class DashboardCategorySpending(BaseModel):
    category_name: str
    total_amount: float
    percentage: int
    color: str


class MonthlyTrendPoint(BaseModel):
    month: str
    income: float
    expenses: float


class DashboardOut(BaseModel):
    as_of: date
    stats: DashboardStatsOut
    recent_transactions: list[TransactionOut]
    category_spending: list[DashboardCategorySpending]
    monthly_trend: list[MonthlyTrendPoint]


# ===== Analytics =====

class AnalyticsStatsOut(BaseModel):
    total_spent: float
    avg_daily: float
    transaction_count: int
    savings_rate: float


class AnalyticsCategorySpending(BaseModel):
    name: str
    value: float
    color: str
    percentage: float


class TopTransactionOut(BaseModel):
    name: str
    amount: float
    category: str
    date: str


class SpendingTrendPoint(BaseModel):
    date: str
    spending: float
    income: float


class WeeklyComparisonRow(BaseModel):
    day: str
    this_week: float
    last_week: float


class InsightOut(BaseModel):
    id: str
    title: str
    description: str
    change: str = ""
    severity: Literal["info", "warning", "positive"] = "info"


class AnalyticsOut(BaseModel):
    range: Literal["week", "month", "quarter", "year"]
    as_of: date
    start: date
    stats: AnalyticsStatsOut
    category_spending: list[AnalyticsCategorySpending]
    top_transactions: list[TopTransactionOut]
    spending_trend: list[SpendingTrendPoint]
    weekly_comparison: list[WeeklyComparisonRow]
    insights: list[InsightOut]
