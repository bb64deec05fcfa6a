from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from uuid import uuid4


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    FIXED_EXPENSE = "FIXED_EXPENSE"
    SAVING = "SAVING"
    TRANSFER = "TRANSFER"  # reporting only, never aggregated


EXPENSE_TYPES = (TransactionType.EXPENSE, TransactionType.FIXED_EXPENSE)


class AccountType(str, Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CREDIT_CARD = "CREDIT_CARD"
    CASH = "CASH"
    INVESTMENT = "INVESTMENT"
    LOAN = "LOAN"


class RecurrenceFrequency(str, Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


def new_id(prefix: str = "id") -> str:
    return f"{prefix}-{uuid4().hex[:12]}"


@dataclass(frozen=True)
class Recurrence:
    frequency: RecurrenceFrequency
    next_date: str  # advisory, never materialized automatically

    def to_dict(self) -> dict:
        return {"frequency": self.frequency.value, "nextDate": self.next_date}

    @classmethod
    def from_dict(cls, data: dict) -> "Recurrence":
        return cls(RecurrenceFrequency(data["frequency"]), str(data.get("nextDate", "")))


@dataclass(frozen=True)
class Transaction:
    id: str
    name: str
    planned_amount: float   # budget target
    actual_amount: float    # realized value
    type: TransactionType
    category: str           # joined to Category.name, may dangle
    date: str               # YYYY-MM-DD
    sub_category: Optional[str] = None
    note: Optional[str] = None
    recurrence: Optional[Recurrence] = None
    account_id: Optional[str] = None
    to_account_id: Optional[str] = None  # TRANSFER destination

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "plannedAmount": self.planned_amount,
            "actualAmount": self.actual_amount,
            "type": self.type.value,
            "category": self.category,
            "date": self.date,
        }
        optional = {
            "subCategory": self.sub_category,
            "note": self.note,
            "recurrence": self.recurrence.to_dict() if self.recurrence else None,
            "accountId": self.account_id,
            "toAccountId": self.to_account_id,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        recurrence = data.get("recurrence")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            planned_amount=float(data.get("plannedAmount") or 0),
            actual_amount=float(data.get("actualAmount") or 0),
            type=TransactionType(data["type"]),
            category=str(data.get("category") or ""),
            date=str(data["date"]),
            sub_category=data.get("subCategory"),
            note=data.get("note"),
            recurrence=Recurrence.from_dict(recurrence) if recurrence else None,
            account_id=data.get("accountId"),
            to_account_id=data.get("toAccountId"),
        )


@dataclass(frozen=True)
class Account:
    id: str
    name: str
    type: AccountType
    initial_balance: float
    currency: str   # display label only
    color: str
    is_default: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "initialBalance": self.initial_balance,
            "currency": self.currency,
            "color": self.color,
            "isDefault": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            type=AccountType(data.get("type", AccountType.CHECKING.value)),
            initial_balance=float(data.get("initialBalance") or 0),
            currency=str(data.get("currency", "")),
            color=str(data.get("color", "")),
            is_default=bool(data.get("isDefault", False)),
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    icon: str
    types: tuple[TransactionType, ...]
    sub_categories: tuple[str, ...] = ()
    is_custom: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "types": [t.value for t in self.types],
            "subCategories": list(self.sub_categories),
            "isCustom": self.is_custom,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Category":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            icon=str(data.get("icon", "")),
            types=tuple(TransactionType(t) for t in data.get("types", [])),
            sub_categories=tuple(data.get("subCategories") or ()),
            is_custom=bool(data.get("isCustom", False)),
        )


@dataclass(frozen=True)
class SavingsGoal:
    id: str
    name: str
    target_amount: float  # 0 means open-ended
    initial_amount: float
    category: str
    color: str
    deadline: Optional[str] = None
    sub_category: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "targetAmount": self.target_amount,
            "initialAmount": self.initial_amount,
            "category": self.category,
            "color": self.color,
        }
        if self.deadline:
            data["deadline"] = self.deadline
        if self.sub_category:
            data["subCategory"] = self.sub_category
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SavingsGoal":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            target_amount=float(data.get("targetAmount") or 0),
            initial_amount=float(data.get("initialAmount") or 0),
            category=str(data.get("category") or ""),
            color=str(data.get("color", "")),
            deadline=data.get("deadline") or None,
            sub_category=data.get("subCategory") or None,
        )


@dataclass(frozen=True)
class PeriodSettings:
    start_date: str
    end_date: str
    base_currency: str = "EUR"

    def to_dict(self) -> dict:
        return {
            "startDate": self.start_date,
            "endDate": self.end_date,
            "baseCurrency": self.base_currency,
        }


@dataclass(frozen=True)
class Snapshot:
    transactions: tuple[Transaction, ...]
    goals: tuple[SavingsGoal, ...]
    settings: PeriodSettings
    accounts: tuple[Account, ...]
    categories: tuple[Category, ...] = field(default_factory=tuple)
