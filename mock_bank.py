"""Simulated bank feed.

Generates plausible transactions from the categorizer catalog so the app has
data to show without a real bank integration.
"""

import random
import string
from dataclasses import dataclass
from datetime import date
from typing import Optional

from categorizer import CategoryDefinition, expense_categories
from models import TransactionType
from periods import Month


@dataclass
class MockTransaction:
    date: date
    description: str
    amount_cents: int
    category: str
    subcategory: Optional[str]
    type: TransactionType
    is_recurring: bool


SAMPLE_TRANSACTIONS: tuple[tuple[str, float], ...] = (
    ("Starbucks Coffee", -5.50),
    ("Uber Ride", -12.75),
    ("Monthly Salary", 2000.00),
)


def mock_account_id(rng: random.Random) -> str:
    suffix = "".join(rng.choices(string.ascii_lowercase + string.digits, k=7))
    return f"mock-bank-account-id-{suffix}"


def _pick_category(
    rng: random.Random, categories: list[CategoryDefinition]
) -> CategoryDefinition:
    total_weight = sum(c.weight for c in categories)
    remaining = rng.random() * total_weight
    for category in categories:
        remaining -= category.weight
        if remaining <= 0:
            return category
    return categories[-1]


def _random_expense(
    rng: random.Random, month: Month, description_suffix: str
) -> Optional[MockTransaction]:
    category = _pick_category(rng, expense_categories())
    eligible = [s for s in category.subcategories if rng.random() <= s.frequency]
    if not eligible:
        return None
    sub = rng.choice(eligible)
    amount = rng.randint(sub.min_amount, sub.max_amount)
    description = f"{sub.name} {description_suffix}".strip()
    return MockTransaction(
        date=month.start.replace(day=rng.randint(1, month.days)),
        description=description,
        amount_cents=-amount * 100,
        category=category.name,
        subcategory=sub.name,
        type=TransactionType.expense,
        is_recurring=rng.random() > 0.8,
    )


def generate_month(
    month: Month, is_current: bool, rng: Optional[random.Random] = None
) -> list[MockTransaction]:
    rng = rng or random.Random()
    out: list[MockTransaction] = []

    if is_current or rng.random() > 0.7:
        out.append(
            MockTransaction(
                date=month.start,
                description="Monthly Salary",
                amount_cents=(85000 + rng.randint(0, 29999)) * 100,
                category="Salary",
                subcategory="Monthly Salary",
                type=TransactionType.income,
                is_recurring=True,
            )
        )
        if rng.random() > 0.4:
            out.append(
                MockTransaction(
                    date=month.start.replace(day=15),
                    description="Freelance Project",
                    amount_cents=(10000 + rng.randint(0, 29999)) * 100,
                    category="Freelance",
                    subcategory="Freelance Project",
                    type=TransactionType.income,
                    is_recurring=True,
                )
            )

    count = rng.randint(20, 40)
    for i in range(count):
        # Every fifth entry keeps the plain subcategory name.
        suffix = "" if i % 5 == 0 else str(i // 5 + 1)
        txn = _random_expense(rng, month, suffix)
        if txn is not None:
            out.append(txn)
    return out


def generate_history(
    months: int, today: date, rng: Optional[random.Random] = None
) -> list[MockTransaction]:
    """Mock transactions for ``months`` calendar months ending with ``today``'s."""
    rng = rng or random.Random()
    current = Month.of(today)
    out: list[MockTransaction] = []
    for offset in range(months):
        out.extend(generate_month(current.shift(-offset), offset == 0, rng))
    out.sort(key=lambda t: t.date)
    return out


def generate_new(
    count: int, today: date, rng: Optional[random.Random] = None
) -> list[MockTransaction]:
    rng = rng or random.Random()
    current = Month.of(today)
    out: list[MockTransaction] = []
    for _ in range(count):
        txn = _random_expense(rng, current, "(New)")
        if txn is not None:
            out.append(txn)
    out.sort(key=lambda t: t.date)
    return out
