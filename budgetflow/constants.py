from typing import NamedTuple

from budgetflow.domain import Account, AccountType, Category, TransactionType

INC = TransactionType.INCOME
EXP = TransactionType.EXPENSE
FIX = TransactionType.FIXED_EXPENSE
SAV = TransactionType.SAVING

OTHER_CATEGORY = "Other"
FALLBACK_ICON = "MoreHorizontal"
ACTION_REQUIRED_PREFIX = "ACTION_REQUIRED:"


class Currency(NamedTuple):
    code: str
    symbol: str
    name: str


CURRENCIES: tuple[Currency, ...] = (
    Currency("EUR", "€", "Euro"),
    Currency("USD", "$", "US Dollar"),
    Currency("GBP", "£", "British Pound"),
    Currency("JPY", "¥", "Japanese Yen"),
    Currency("CHF", "CHF", "Swiss Franc"),
    Currency("AUD", "A$", "Australian Dollar"),
    Currency("CAD", "C$", "Canadian Dollar"),
)


def currency_for(code: str) -> Currency:
    return next((c for c in CURRENCIES if c.code == code), CURRENCIES[0])


INITIAL_ACCOUNTS: tuple[Account, ...] = (
    Account("default-checking", "Main Checking", AccountType.CHECKING, 0.0, "EUR", "#6366F1", is_default=True),
    Account("default-cash", "Cash / Wallet", AccountType.CASH, 0.0, "EUR", "#10B981"),
)


def _cat(cid: str, name: str, icon: str, types: tuple, subs: tuple = ()) -> Category:
    return Category(id=cid, name=name, icon=icon, types=types, sub_categories=subs)


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    _cat("Salary", "Salary", "Briefcase", (INC,), ("Base Salary", "Bonus", "Overtime", "Commission")),
    _cat("Business", "Business & Freelance", "Laptop", (INC,), ("Freelance", "Consulting", "Sales", "Side Hustle")),
    _cat("Passive", "Passive Income", "TrendingUp", (INC,), ("Dividends", "Interest", "Rental Income", "Crypto")),
    _cat("GiftsInc", "Gifts & Refunds", "Gift", (INC,), ("Tax Refund", "Gift Received", "Sold Items")),
    _cat("Rollover", "Rollover", "CircleDollarSign", (INC,), ("Previous Month",)),
    _cat("Housing", "Housing", "Home", (FIX, EXP), ("Rent", "Mortgage", "Property Tax", "Condo Fees", "Home Insurance")),
    _cat("Utilities", "Utilities", "Zap", (FIX, EXP), ("Electricity", "Water", "Heating", "Garbage", "Gas")),
    _cat("Digital", "Digital Services", "Wifi", (FIX,), ("Internet", "Mobile Plan", "Cloud Storage", "Software Subscriptions", "VPN")),
    _cat("Insurance", "Insurance", "Shield", (FIX,), ("Life", "Health", "Disability", "Legal")),
    _cat("Debt", "Debt Repayment", "CreditCard", (FIX, EXP), ("Credit Card", "Student Loan", "Personal Loan", "Car Loan")),
    _cat("Groceries", "Groceries", "ShoppingCart", (EXP,)),
    _cat("Dining", "Dining Out", "Utensils", (EXP,)),
    _cat("Drinks", "Coffee & Drinks", "Coffee", (EXP,)),
    _cat("Transport", "Transportation", "Car", (EXP, FIX)),
    _cat("Shopping", "Shopping", "Shirt", (EXP,)),
    _cat("Health", "Health & Wellness", "Heart", (EXP, FIX)),
    _cat("Personal", "Personal Care", "Smile", (EXP,)),
    _cat("Entertainment", "Entertainment", "Film", (EXP, FIX)),
    _cat("Travel", "Travel", "Plane", (EXP, SAV)),
    _cat("Family", "Family & Kids", "Baby", (EXP, FIX)),
    _cat("Pets", "Pets", "PawPrint", (EXP,)),
    _cat("Gifts", "Gifts & Charity", "Gift", (EXP, FIX)),
    _cat("Maintenance", "Home Maintenance", "Hammer", (EXP, FIX)),
    _cat("Savings", "General Savings", "PiggyBank", (SAV,)),
    _cat("Investments", "Investments", "TrendingUp", (SAV,)),
    _cat("GoalSavings", "Specific Goals", "TargetIcon", (SAV,)),
    _cat(OTHER_CATEGORY, OTHER_CATEGORY, FALLBACK_ICON, (INC, EXP, FIX, SAV)),
)
