"""Description based transaction categorization.

The catalog below is ordered and the order is significant: the first matching
subcategory wins, so reordering entries changes how existing descriptions are
categorized. Weights, amount ranges and frequencies are only consumed by
:mod:`mock_bank` when generating simulated bank data.
"""

from dataclasses import dataclass
from typing import Optional

from models import TransactionType

FALLBACK_EXPENSE_CATEGORY = "Others"
FALLBACK_INCOME_CATEGORY = "Uncategorized Income"


@dataclass(frozen=True)
class SubcategoryDefinition:
    name: str
    min_amount: int
    max_amount: int
    frequency: float = 1.0  # chance of appearing in a generated month


@dataclass(frozen=True)
class CategoryDefinition:
    name: str
    type: TransactionType
    subcategories: tuple[SubcategoryDefinition, ...]
    weight: int = 0


def _subs(*items: tuple) -> tuple[SubcategoryDefinition, ...]:
    return tuple(SubcategoryDefinition(*item) for item in items)


CATALOG: tuple[CategoryDefinition, ...] = (
    CategoryDefinition(
        "Salary",
        TransactionType.income,
        _subs(
            ("Monthly Salary", 85000, 115000),
            ("Payroll", 85000, 115000),
            ("Bonus", 5000, 50000),
            ("Commission", 2000, 20000),
        ),
    ),
    CategoryDefinition(
        "Freelance",
        TransactionType.income,
        _subs(
            ("Freelance Project", 10000, 40000),
            ("Project Work", 10000, 40000),
            ("Consulting", 5000, 30000),
            ("Tutoring", 1000, 10000),
        ),
    ),
    CategoryDefinition(
        "Investments",
        TransactionType.income,
        _subs(
            ("Dividends", 500, 10000),
            ("Interest", 100, 5000),
            ("Capital Gains", 1000, 50000),
        ),
    ),
    CategoryDefinition(
        "Housing",
        TransactionType.expense,
        _subs(
            ("Rent", 15000, 30000),
            ("Utilities", 2000, 8000),
            ("Maintenance", 1000, 5000),
            ("Property Tax", 5000, 15000, 0.1),
        ),
        weight=30,
    ),
    CategoryDefinition(
        "Food",
        TransactionType.expense,
        _subs(
            ("Groceries", 3000, 10000),
            ("Dining Out", 500, 5000),
            ("Restaurant", 500, 5000),
            ("Coffee Shops", 100, 2000),
            ("Cafe", 100, 2000),
            ("Starbucks", 100, 1000),
            ("Pizza", 300, 2000),
            ("McDonald", 200, 1000),
            ("Lunch", 200, 1500),
            ("Dinner", 500, 4000),
            ("Snacks", 50, 1000),
        ),
        weight=20,
    ),
    CategoryDefinition(
        "Transport",
        TransactionType.expense,
        _subs(
            ("Fuel", 2000, 10000),
            ("Public Transport", 500, 3000),
            ("Uber", 150, 1500),
            ("Lyft", 150, 1500),
            ("Train", 100, 3000),
            ("Bus", 50, 500),
            ("Parking", 100, 2000),
            ("Car Maintenance", 1000, 15000, 0.3),
        ),
        weight=15,
    ),
    CategoryDefinition(
        "Entertainment",
        TransactionType.expense,
        _subs(
            ("Movies", 200, 2000),
            ("Streaming", 100, 1500),
            ("Concerts", 1000, 10000, 0.2),
            ("Hobbies", 500, 5000),
        ),
        weight=10,
    ),
    CategoryDefinition(
        "Shopping",
        TransactionType.expense,
        _subs(
            ("Clothing", 1000, 15000),
            ("Clothes", 1000, 15000),
            ("Electronics", 5000, 100000, 0.1),
            ("Amazon", 500, 10000),
            ("Mall", 500, 10000),
            ("Home Goods", 500, 10000),
            ("Gifts", 500, 10000),
        ),
        weight=15,
    ),
    CategoryDefinition(
        "Health",
        TransactionType.expense,
        _subs(
            ("Doctor", 500, 5000),
            ("Pharmacy", 200, 3000),
            ("Insurance", 2000, 10000, 0.5),
            ("Gym", 1000, 3000),
        ),
        weight=5,
    ),
    CategoryDefinition(
        "Personal",
        TransactionType.expense,
        _subs(
            ("Haircut", 200, 2000, 0.3),
            ("Spa", 1000, 5000, 0.2),
            ("Self-care", 500, 5000),
            ("Education", 1000, 20000),
        ),
        weight=5,
    ),
)


@dataclass(frozen=True)
class Categorization:
    category: str
    subcategory: Optional[str]
    type: TransactionType


def transaction_type_for(amount: float) -> TransactionType:
    return TransactionType.income if amount > 0 else TransactionType.expense


def _matches(description: str, name: str) -> bool:
    candidate = name.lower()
    return candidate in description or description in candidate


def categorize(
    description: str,
    amount: float,
    catalog: tuple[CategoryDefinition, ...] = CATALOG,
) -> Categorization:
    txn_type = transaction_type_for(amount)
    fallback = (
        FALLBACK_INCOME_CATEGORY
        if txn_type == TransactionType.income
        else FALLBACK_EXPENSE_CATEGORY
    )
    desc = (description or "").strip().lower()
    if not desc:
        return Categorization(fallback, None, txn_type)

    candidates = [c for c in catalog if c.type == txn_type]
    for category in candidates:
        for sub in category.subcategories:
            if _matches(desc, sub.name):
                return Categorization(category.name, sub.name, txn_type)
    for category in candidates:
        if _matches(desc, category.name):
            return Categorization(category.name, None, txn_type)
    return Categorization(fallback, None, txn_type)


def expense_categories(
    catalog: tuple[CategoryDefinition, ...] = CATALOG,
) -> list[CategoryDefinition]:
    return [c for c in catalog if c.type == TransactionType.expense]
