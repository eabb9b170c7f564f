import pytest

from categorizer import (
    CATALOG,
    CategoryDefinition,
    SubcategoryDefinition,
    categorize,
    expense_categories,
    transaction_type_for,
)
from models import TransactionType


@pytest.mark.parametrize(
    "description, amount, category, subcategory",
    [
        ("Uber Ride", -12.75, "Transport", "Uber"),
        ("Starbucks Coffee", -5.50, "Food", "Starbucks"),
        ("Monthly Salary", 2000.00, "Salary", "Monthly Salary"),
        ("Weekly GROCERIES run", -40.0, "Food", "Groceries"),
        ("Netflix Streaming", -15.0, "Entertainment", "Streaming"),
        ("Dividends payout", 120.0, "Investments", "Dividends"),
    ],
)
def test_categorize_matches_subcategory(description, amount, category, subcategory) -> None:
    result = categorize(description, amount)
    assert result.category == category
    assert result.subcategory == subcategory


def test_category_name_matches_when_no_subcategory_does() -> None:
    result = categorize("Health checkup", -30.0)
    assert result.category == "Health"
    assert result.subcategory is None
    assert result.type == TransactionType.expense


def test_short_description_contained_in_subcategory_name() -> None:
    result = categorize("Car", -300.0)
    assert result.category == "Transport"
    assert result.subcategory == "Car Maintenance"


def test_fallbacks_depend_on_sign() -> None:
    assert categorize("Refund", 50.0).category == "Uncategorized Income"
    assert categorize("Refund", 50.0).type == TransactionType.income
    assert categorize("Mystery charge xyz", -9.0).category == "Others"
    assert categorize("", -9.0).category == "Others"
    assert categorize("   ", 9.0).category == "Uncategorized Income"


def test_type_follows_amount_sign() -> None:
    assert transaction_type_for(0.01) == TransactionType.income
    assert transaction_type_for(-0.01) == TransactionType.expense
    assert transaction_type_for(0) == TransactionType.expense
    for description in ("Uber Ride", "Monthly Salary", "Rent"):
        assert categorize(description, 10.0).type == TransactionType.income
        assert categorize(description, -10.0).type == TransactionType.expense


def test_income_descriptions_only_match_income_categories() -> None:
    # "Rent" is an expense subcategory; as income it falls through.
    assert categorize("Rent", 500.0).category == "Uncategorized Income"


def test_first_match_in_catalog_order_wins() -> None:
    catalog = (
        CategoryDefinition(
            "Alpha",
            TransactionType.expense,
            (SubcategoryDefinition("Coffee", 1, 2),),
        ),
        CategoryDefinition(
            "Beta",
            TransactionType.expense,
            (SubcategoryDefinition("Coffee", 1, 2),),
        ),
    )
    assert categorize("Coffee", -1.0, catalog).category == "Alpha"
    assert categorize("Coffee", -1.0, tuple(reversed(catalog))).category == "Beta"


def test_categorize_is_deterministic() -> None:
    first = categorize("Dinner with friends", -25.0)
    assert all(categorize("Dinner with friends", -25.0) == first for _ in range(5))


def test_expense_categories_carry_weights() -> None:
    categories = expense_categories()
    assert categories
    assert all(c.type == TransactionType.expense for c in categories)
    assert all(c.weight > 0 for c in categories)
    assert [c.name for c in categories] == [
        c.name for c in CATALOG if c.type == TransactionType.expense
    ]
