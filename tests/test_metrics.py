from datetime import date

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from models import Transaction, TransactionType, User
from periods import Month
from services import MetricsService


def _txn(user_id: int, day: date, cents: int, category: str, type_=None) -> Transaction:
    if type_ is None:
        type_ = TransactionType.income if cents > 0 else TransactionType.expense
    return Transaction(
        user_id=user_id,
        date=day,
        description=category,
        amount_cents=cents,
        category=category,
        type=type_,
    )


def test_summary_splits_income_and_expenses() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        user = User(name="Asha", email="asha@example.com", password_hash="x")
        session.add(user)
        session.commit()
        session.add_all(
            [
                _txn(user.id, date(2025, 3, 1), 200_000, "Salary"),
                _txn(user.id, date(2025, 3, 4), -1_275, "Transport"),
                _txn(user.id, date(2025, 3, 5), -550, "Food"),
                _txn(user.id, date(2025, 2, 28), -99_900, "Housing"),
            ]
        )
        session.commit()

        summary = MetricsService(session, user.id).summary(Month(2025, 3))
        assert summary == {
            "total_income": 2000.0,
            "total_expenses": 18.25,
            "net": 1981.75,
        }


def test_monthly_trend_has_six_zero_filled_entries() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        user = User(name="Asha", email="asha@example.com", password_hash="x")
        session.add(user)
        session.commit()
        session.add_all(
            [
                _txn(user.id, date(2025, 1, 15), -5_000, "Food"),
                _txn(user.id, date(2025, 3, 1), 100_000, "Salary"),
                # Outside the window.
                _txn(user.id, date(2024, 9, 30), -7_000, "Food"),
            ]
        )
        session.commit()

        trend = MetricsService(session, user.id).monthly_trend(Month(2025, 3))
        assert [t["month"] for t in trend] == [
            "2024-10",
            "2024-11",
            "2024-12",
            "2025-01",
            "2025-02",
            "2025-03",
        ]
        by_month = {t["month"]: t for t in trend}
        assert by_month["2024-10"] == {
            "month": "2024-10",
            "label": "Oct 24",
            "income": 0.0,
            "expenses": 0.0,
            "net": 0.0,
        }
        assert by_month["2025-01"]["expenses"] == 50.0
        assert by_month["2025-03"]["income"] == 1000.0
        assert by_month["2025-03"]["net"] == 1000.0


def test_top_categories_limited_and_sorted() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        user = User(name="Asha", email="asha@example.com", password_hash="x")
        session.add(user)
        session.commit()
        spend = {
            "Housing": 90_000,
            "Food": 12_000,
            "Transport": 8_000,
            "Shopping": 15_000,
            "Health": 3_000,
            "Personal": 1_000,
        }
        for category, cents in spend.items():
            session.add(_txn(user.id, date(2025, 3, 10), -cents, category))
        session.add(_txn(user.id, date(2025, 3, 1), 500_000, "Salary"))
        session.commit()

        top = MetricsService(session, user.id).top_categories(Month(2025, 3))
        assert top == [
            {"name": "Housing", "value": 900.0},
            {"name": "Shopping", "value": 150.0},
            {"name": "Food", "value": 120.0},
            {"name": "Transport", "value": 80.0},
            {"name": "Health", "value": 30.0},
        ]


def test_rows_without_type_classified_by_sign() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        user = User(name="Asha", email="asha@example.com", password_hash="x")
        session.add(user)
        session.commit()
        for cents in (4_000, -1_500):
            txn = _txn(user.id, date(2025, 3, 3), cents, "Others")
            txn.type = None
            session.add(txn)
        session.commit()

        metrics = MetricsService(session, user.id)
        assert metrics.summary(Month(2025, 3)) == {
            "total_income": 40.0,
            "total_expenses": 15.0,
            "net": 25.0,
        }
        assert metrics.top_categories(Month(2025, 3)) == [
            {"name": "Others", "value": 15.0}
        ]


def test_dashboard_for_empty_month() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        user = User(name="Asha", email="asha@example.com", password_hash="x")
        session.add(user)
        session.commit()

        data = MetricsService(session, user.id).dashboard(Month(2025, 3))
        assert data["month"] == "2025-03"
        assert data["total_income"] == 0.0
        assert data["total_expenses"] == 0.0
        assert data["net"] == 0.0
        assert len(data["monthly_trends"]) == 6
        assert data["top_categories"] == []
