from datetime import date

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session

from database import Base
from models import Budget, User
from periods import Month
from schemas import BudgetIn, TransactionIn
from services import BudgetService, NotFoundError, TransactionService, budget_percent


def test_budget_percent_rounds_to_one_decimal() -> None:
    assert budget_percent(45_000, 50_000) == 90.0
    assert budget_percent(110_000, 100_000) == 110.0
    assert budget_percent(1, 3) == 33.3
    assert budget_percent(2, 3) == 66.7
    assert budget_percent(4_900, 40_000) == 12.3
    assert budget_percent(25, 10_000) == 0.3
    assert budget_percent(125, 1_000) == 12.5


def test_upsert_keeps_one_budget_per_category_and_month() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        user = User(name="Asha", email="asha@example.com", password_hash="x")
        session.add(user)
        session.commit()

        budgets = BudgetService(session, user.id)
        first = budgets.upsert(BudgetIn(category="Food", month="2025-03", limit=500))
        second = budgets.upsert(BudgetIn(category="Food", month="2025-03", limit=650))
        budgets.upsert(BudgetIn(category="Food", month="2025-04", limit=500))

        assert first.id == second.id
        assert second.limit == 650.0
        count = session.scalar(select(func.count(Budget.id)))
        assert count == 2


def test_progress_reports_spent_and_percent() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        user = User(name="Asha", email="asha@example.com", password_hash="x")
        session.add(user)
        session.commit()

        txns = TransactionService(session, user.id)
        txns.create(TransactionIn(date=date(2025, 3, 3), description="Groceries", amount=-300))
        txns.create(TransactionIn(date=date(2025, 3, 9), description="Dinner", amount=-150))
        txns.create(TransactionIn(date=date(2025, 4, 1), description="Dinner", amount=-80))
        txns.create(TransactionIn(date=date(2025, 3, 4), description="Rent", amount=-1100))

        budgets = BudgetService(session, user.id)
        budgets.upsert(BudgetIn(category="food", month="2025-03", limit=500))
        budgets.upsert(BudgetIn(category="Housing", month="2025-03", limit=1000))
        budgets.upsert(BudgetIn(category="Transport", month="2025-03", limit=200))

        progress = {
            p["category"]: p for p in budgets.progress_for_month(Month(2025, 3))
        }
        assert progress["food"]["spent"] == 450.0
        assert progress["food"]["percent"] == 90.0
        assert progress["Housing"]["percent"] == 110.0
        assert progress["Transport"]["spent"] == 0.0
        assert progress["Transport"]["percent"] == 0.0


def test_budget_input_validation() -> None:
    with pytest.raises(ValidationError):
        BudgetIn(category="Food", month="2025-3", limit=100)
    with pytest.raises(ValidationError):
        BudgetIn(category="Food", month="2025-03", limit=0)


def test_delete_other_users_budget_is_not_found() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        owner = User(name="Asha", email="asha@example.com", password_hash="x")
        other = User(name="Ravi", email="ravi@example.com", password_hash="x")
        session.add_all([owner, other])
        session.commit()

        budget = BudgetService(session, owner.id).upsert(
            BudgetIn(category="Food", month="2025-03", limit=500)
        )
        with pytest.raises(NotFoundError):
            BudgetService(session, other.id).delete(budget.id)
        BudgetService(session, owner.id).delete(budget.id)
        assert session.get(Budget, budget.id) is None


def test_budget_month_is_stored_normalized() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        user = User(name="Asha", email="asha@example.com", password_hash="x")
        session.add(user)
        session.commit()

        budgets = BudgetService(session, user.id)
        padded = budgets.upsert(BudgetIn(category="Food", month=" 2025-06 ", limit=500))
        assert padded.month == "2025-06"

        again = budgets.upsert(BudgetIn(category="Food", month="2025-06", limit=600))
        assert again.id == padded.id

        progress = budgets.progress_for_month(Month(2025, 6))
        assert [(p["category"], p["limit"]) for p in progress] == [("Food", 600.0)]


def test_upsert_matches_category_case_insensitively() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        user = User(name="Asha", email="asha@example.com", password_hash="x")
        session.add(user)
        session.commit()

        budgets = BudgetService(session, user.id)
        first = budgets.upsert(BudgetIn(category="Food", month="2025-03", limit=500))
        second = budgets.upsert(BudgetIn(category="food", month="2025-03", limit=450))

        assert second.id == first.id
        assert second.limit == 450.0
        assert session.scalar(select(func.count(Budget.id))) == 1
