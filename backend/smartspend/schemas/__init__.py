from __future__ import annotations
import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

TransactionType = Literal["income", "expense"]
CategoryType = Literal["income", "expense", "both"]
Frequency = Literal["weekly", "monthly", "yearly"]
Currency = Literal["GBP", "USD", "EUR"]
Theme = Literal["light", "dark"]


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case keys, serializes camelCase"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _naive_local(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    # All stored dates are naive server-local time
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


# --- AUTH / USER SCHEMAS ---
class UserRegister(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    avatar: Optional[str] = None
    currency: str
    monthly_income: float
    settings: Dict[str, Any]
    created_at: Optional[datetime.datetime] = None


class ChangePassword(CamelModel):
    current_password: str
    new_password: str = Field(min_length=6)


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    avatar: Optional[str] = None
    currency: Optional[Currency] = None
    monthly_income: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class NotificationSettings(CamelModel):
    email: Optional[bool] = None
    push: Optional[bool] = None
    budget_alerts: Optional[bool] = None
    weekly_report: Optional[bool] = None


class SettingsUpdate(CamelModel):
    theme: Optional[Theme] = None
    notifications: Optional[NotificationSettings] = None
    currency: Optional[Currency] = None


# --- CATEGORY SCHEMAS ---
class CategoryBrief(CamelModel):
    id: int
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    icon: Optional[str] = None
    color: Optional[str] = None
    type: CategoryType = "expense"


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    icon: Optional[str] = None
    color: Optional[str] = None
    type: Optional[CategoryType] = None


class CategoryOut(CategoryBrief):
    type: str
    is_default: bool = False
    created_at: Optional[datetime.datetime] = None


# --- TRANSACTION SCHEMAS ---
class TransactionCreate(CamelModel):
    type: TransactionType
    amount: float = Field(gt=0, allow_inf_nan=False)
    category_id: int
    description: str = Field(min_length=1)
    # Make date optional in create
    date: Optional[datetime.datetime] = None
    is_recurring: bool = False
    recurring_frequency: Optional[Frequency] = None
    tags: List[str] = []
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def naive_date(cls, value):
        return _naive_local(value)


class TransactionUpdate(CamelModel):
    type: Optional[TransactionType] = None
    amount: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    category_id: Optional[int] = None
    description: Optional[str] = Field(default=None, min_length=1)
    date: Optional[datetime.datetime] = None
    is_recurring: Optional[bool] = None
    recurring_frequency: Optional[Frequency] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def naive_date(cls, value):
        return _naive_local(value)


class TransactionOut(CamelModel):
    id: int
    type: str
    amount: float
    category_id: int
    category: Optional[CategoryBrief] = None
    description: str
    date: datetime.datetime
    tags: List[str] = []
    notes: Optional[str] = None
    is_recurring: bool = False
    recurring_frequency: Optional[str] = None
    created_at: Optional[datetime.datetime] = None


# --- BUDGET SCHEMAS ---
class BudgetCreate(CamelModel):
    category_id: int
    amount: float = Field(gt=0, allow_inf_nan=False)
    period: Frequency = "monthly"
    alert_threshold: int = Field(default=80, ge=0, le=100)


class BudgetUpdate(CamelModel):
    amount: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    period: Optional[Frequency] = None
    alert_threshold: Optional[int] = Field(default=None, ge=0, le=100)
    is_active: Optional[bool] = None


class BudgetOut(CamelModel):
    id: int
    category_id: int
    category: Optional[CategoryBrief] = None
    amount: float
    period: str
    alert_threshold: int
    is_active: bool
    start_date: Optional[datetime.datetime] = None


# --- SUBSCRIPTION SCHEMAS ---
class SubscriptionCreate(CamelModel):
    name: str = Field(min_length=1)
    amount: float = Field(gt=0, allow_inf_nan=False)
    category_id: Optional[int] = None
    frequency: Frequency = "monthly"
    billing_day: int = Field(default=1, ge=1, le=31)
    start_date: Optional[datetime.datetime] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    notes: Optional[str] = None


class SubscriptionUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    category_id: Optional[int] = None
    frequency: Optional[Frequency] = None
    billing_day: Optional[int] = Field(default=None, ge=1, le=31)
    icon: Optional[str] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class SubscriptionOut(CamelModel):
    id: int
    name: str
    amount: float
    category_id: Optional[int] = None
    category: Optional[CategoryBrief] = None
    frequency: str
    billing_day: int
    start_date: Optional[datetime.datetime] = None
    next_billing_date: Optional[datetime.datetime] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    is_active: bool
    notes: Optional[str] = None


# --- INSIGHTS PREVIEW SCHEMAS ---
class PreviewTransaction(CamelModel):
    """Client-held transaction; categoryId may be a category name"""
    type: TransactionType
    amount: float = Field(gt=0, allow_inf_nan=False)
    category_id: Union[int, str]
    description: str = ""
    date: datetime.datetime

    @field_validator("date")
    @classmethod
    def naive_date(cls, value):
        return _naive_local(value)


class InsightsPreviewRequest(CamelModel):
    transactions: List[PreviewTransaction] = []
    monthly_income: float = Field(default=0, ge=0, allow_inf_nan=False)
    currency: Currency = "GBP"
