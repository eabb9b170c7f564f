import datetime as dt
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from models import TransactionType
from periods import parse_month


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SignupIn(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=128)


class LoginIn(ApiModel):
    email: str = Field(..., min_length=1, max_length=254)
    password: str = Field(..., min_length=1, max_length=128)


class UserOut(ApiModel):
    id: int
    name: str
    email: str


class AuthOut(UserOut):
    token: str


class TransactionIn(ApiModel):
    date: dt.date
    description: str = Field(..., min_length=1, max_length=200)
    amount: float
    category: Optional[str] = Field(default=None, max_length=100)
    subcategory: Optional[str] = Field(default=None, max_length=100)
    is_recurring: bool = False
    bank_account_id: Optional[str] = Field(default=None, max_length=64)


class TransactionUpdate(ApiModel):
    date: Optional[dt.date] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[float] = None
    category: Optional[str] = Field(default=None, max_length=100)
    subcategory: Optional[str] = Field(default=None, max_length=100)
    is_recurring: Optional[bool] = None


class TransactionOut(ApiModel):
    id: int
    date: dt.date
    description: str
    amount: float
    category: str
    subcategory: Optional[str]
    type: TransactionType = Field(validation_alias="effective_type")
    is_recurring: bool
    bank_account_id: Optional[str]
    is_mock: bool
    created_at: datetime


class TransactionPage(ApiModel):
    items: list[TransactionOut]
    page: int
    limit: int
    total: int
    total_pages: int


class BudgetIn(ApiModel):
    category: str = Field(..., min_length=1, max_length=100)
    month: str
    limit: float = Field(..., gt=0)

    @field_validator("month")
    @classmethod
    def _valid_month(cls, value: str) -> str:
        return parse_month(value).key


class BudgetOut(ApiModel):
    id: int
    category: str
    month: str
    limit: float


class BudgetProgressOut(BudgetOut):
    spent: float
    percent: float


class GoalIn(ApiModel):
    title: str = Field(..., min_length=1, max_length=120)
    target_amount: float = Field(..., gt=0)
    due_date: Optional[date] = None


class GoalUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=120)
    target_amount: Optional[float] = Field(default=None, gt=0)
    due_date: Optional[date] = None


class GoalOut(ApiModel):
    id: int
    title: str
    target_amount: float
    saved_amount: float
    due_date: Optional[date]


class MonthTrendOut(ApiModel):
    month: str
    label: str
    income: float
    expenses: float
    net: float


class CategoryTotalOut(ApiModel):
    name: str
    value: float


class DashboardOut(ApiModel):
    month: str
    total_income: float
    total_expenses: float
    net: float
    monthly_trends: list[MonthTrendOut]
    top_categories: list[CategoryTotalOut]


class BankConnectIn(ApiModel):
    bank_name: str = Field(..., min_length=1, max_length=100)
    account_number: str = Field(..., min_length=1, max_length=64)


class BankAccountOut(ApiModel):
    id: str
    name: str
    account_number: str
    connected_date: datetime


class BankConnectOut(ApiModel):
    message: str
    bank_account: BankAccountOut
    transactions_fetched: int


class BankFetchOut(ApiModel):
    message: str
    new_transactions_count: int
    transactions: list[TransactionOut]


class MessageOut(ApiModel):
    message: str


class ImportOut(ApiModel):
    imported: int
