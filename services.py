from __future__ import annotations

import logging
import math
import random
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

import mock_bank
from auth import AuthenticationError, hash_password, issue_token, verify_password
from categorizer import categorize, transaction_type_for
from models import Budget, Goal, Transaction, TransactionType, User
from periods import Month, today as local_today, trailing_months
from schemas import (
    BankConnectIn,
    BudgetIn,
    GoalIn,
    GoalUpdate,
    LoginIn,
    SignupIn,
    TransactionIn,
    TransactionUpdate,
)

logger = logging.getLogger(__name__)

TREND_MONTHS = 6
TOP_CATEGORY_LIMIT = 5
BANK_HISTORY_MONTHS = 12
BANK_FETCH_COUNT = 5


class NotFoundError(ValueError):
    pass


def to_cents(amount: float) -> int:
    return int(
        (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )


def cents_to_amount(cents: int) -> float:
    return cents / 100


def budget_percent(spent_cents: int, limit_cents: int) -> float:
    percent = Decimal(spent_cents) * 100 / Decimal(limit_cents)
    return float(percent.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def _income_cents():
    return func.coalesce(
        func.sum(
            case(
                (
                    Transaction.effective_type == TransactionType.income,
                    Transaction.amount_cents,
                ),
                else_=0,
            )
        ),
        0,
    )


def _expense_cents():
    return func.coalesce(
        func.sum(
            case(
                (
                    Transaction.effective_type == TransactionType.expense,
                    func.abs(Transaction.amount_cents),
                ),
                else_=0,
            )
        ),
        0,
    )


class UserService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _by_email(self, email: str) -> Optional[User]:
        return self.session.scalar(
            select(User).where(User.email == email.strip().lower())
        )

    def signup(self, data: SignupIn) -> tuple[User, str]:
        if self._by_email(data.email):
            raise ValueError("User already exists")
        user = User(
            name=data.name.strip(),
            email=data.email.strip().lower(),
            password_hash=hash_password(data.password),
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info(f"user_signup: user_id={user.id}")
        return user, issue_token(user.id)

    def login(self, data: LoginIn) -> tuple[User, str]:
        user = self._by_email(data.email)
        if not user or not verify_password(data.password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        logger.info(f"user_login: user_id={user.id}")
        return user, issue_token(user.id)

    def get(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise AuthenticationError("Not authorized, token failed")
        return user


class TransactionService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id

    def create(self, data: TransactionIn) -> Transaction:
        amount_cents = to_cents(data.amount)
        result = categorize(data.description, data.amount)
        category = (data.category or "").strip()
        if category:
            subcategory = data.subcategory
        else:
            category, subcategory = result.category, result.subcategory
        txn = Transaction(
            user_id=self.user_id,
            date=data.date,
            description=data.description.strip(),
            amount_cents=amount_cents,
            category=category,
            subcategory=subcategory,
            type=result.type,
            is_recurring=data.is_recurring,
            bank_account_id=data.bank_account_id,
            is_mock=False,
        )
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(txn)
        logger.info(
            f"transaction_created: user_id={self.user_id} id={txn.id} "
            f"category={txn.category} type={txn.type.value}"
        )
        return txn

    def get(self, transaction_id: int) -> Transaction:
        txn = self.session.scalar(
            select(Transaction).where(
                Transaction.user_id == self.user_id, Transaction.id == transaction_id
            )
        )
        if not txn:
            raise NotFoundError("Transaction not found")
        return txn

    def update(self, transaction_id: int, data: TransactionUpdate) -> Transaction:
        txn = self.get(transaction_id)
        fields = data.model_fields_set

        if data.date is not None:
            txn.date = data.date
        if data.description is not None:
            txn.description = data.description.strip()
        if data.amount is not None:
            txn.amount_cents = to_cents(data.amount)
        if data.is_recurring is not None:
            txn.is_recurring = data.is_recurring

        category = (data.category or "").strip()
        if category:
            txn.category = category
            txn.subcategory = data.subcategory
        elif "description" in fields or "amount" in fields:
            result = categorize(txn.description, txn.amount)
            txn.category = result.category
            txn.subcategory = result.subcategory
        txn.type = transaction_type_for(txn.amount_cents)

        self.session.commit()
        self.session.refresh(txn)
        logger.info(
            f"transaction_updated: user_id={self.user_id} id={txn.id} "
            f"category={txn.category}"
        )
        return txn

    def delete(self, transaction_id: int) -> None:
        txn = self.get(transaction_id)
        self.session.delete(txn)
        self.session.commit()
        logger.info(f"transaction_deleted: user_id={self.user_id} id={transaction_id}")

    def list(
        self,
        page: int = 1,
        limit: int = 20,
        month: Optional[Month] = None,
        txn_type: Optional[TransactionType] = None,
        category: Optional[str] = None,
    ) -> tuple[list[Transaction], int]:
        conditions = [Transaction.user_id == self.user_id]
        if month is not None:
            conditions.append(Transaction.date.between(month.start, month.end))
        if txn_type is not None:
            conditions.append(Transaction.effective_type == txn_type)
        if category:
            conditions.append(func.lower(Transaction.category) == category.lower())

        total = int(
            self.session.execute(
                select(func.count(Transaction.id)).where(*conditions)
            ).scalar_one()
            or 0
        )
        stmt = (
            select(Transaction)
            .where(*conditions)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(self.session.scalars(stmt).all()), total

    def for_month(self, month: Month) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .where(
                Transaction.user_id == self.user_id,
                Transaction.date.between(month.start, month.end),
            )
            .order_by(Transaction.date.asc(), Transaction.id.asc())
        )
        return list(self.session.scalars(stmt).all())

    def insert_mock(
        self, generated: list[mock_bank.MockTransaction], bank_account_id: str
    ) -> list[Transaction]:
        rows = [
            Transaction(
                user_id=self.user_id,
                date=item.date,
                description=item.description,
                amount_cents=item.amount_cents,
                category=item.category,
                subcategory=item.subcategory,
                type=item.type,
                is_recurring=item.is_recurring,
                bank_account_id=bank_account_id,
                is_mock=True,
            )
            for item in generated
        ]
        self.session.add_all(rows)
        self.session.commit()
        return rows

    def import_samples(self, on: Optional[date] = None) -> int:
        on = on or local_today()
        rows = []
        for description, amount in mock_bank.SAMPLE_TRANSACTIONS:
            result = categorize(description, amount)
            rows.append(
                Transaction(
                    user_id=self.user_id,
                    date=on,
                    description=description,
                    amount_cents=to_cents(amount),
                    category=result.category,
                    subcategory=result.subcategory,
                    type=result.type,
                    is_mock=True,
                )
            )
        self.session.add_all(rows)
        self.session.commit()
        logger.info(f"mock_import: user_id={self.user_id} imported={len(rows)}")
        return len(rows)


class MetricsService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id

    def totals_between(self, start: date, end: date) -> tuple[int, int]:
        row = self.session.execute(
            select(
                _income_cents().label("income"), _expense_cents().label("expenses")
            ).where(
                Transaction.user_id == self.user_id,
                Transaction.date.between(start, end),
            )
        ).one()
        return int(row.income or 0), int(row.expenses or 0)

    def summary(self, month: Month) -> dict[str, float]:
        income, expenses = self.totals_between(month.start, month.end)
        return {
            "total_income": cents_to_amount(income),
            "total_expenses": cents_to_amount(expenses),
            "net": cents_to_amount(income - expenses),
        }

    def monthly_trend(
        self, month: Month, months: int = TREND_MONTHS
    ) -> list[dict[str, object]]:
        window = trailing_months(month, months)
        bucket = func.strftime("%Y-%m", Transaction.date).label("bucket")
        stmt = (
            select(
                bucket,
                _income_cents().label("income"),
                _expense_cents().label("expenses"),
            )
            .where(
                Transaction.user_id == self.user_id,
                Transaction.date.between(window[0].start, window[-1].end),
            )
            .group_by(bucket)
        )
        by_month = {
            row.bucket: (int(row.income or 0), int(row.expenses or 0))
            for row in self.session.execute(stmt)
        }

        out: list[dict[str, object]] = []
        for m in window:
            income, expenses = by_month.get(m.key, (0, 0))
            out.append(
                {
                    "month": m.key,
                    "label": m.label,
                    "income": cents_to_amount(income),
                    "expenses": cents_to_amount(expenses),
                    "net": cents_to_amount(income - expenses),
                }
            )
        return out

    def top_categories(
        self, month: Month, limit: int = TOP_CATEGORY_LIMIT
    ) -> list[dict[str, object]]:
        total = func.sum(func.abs(Transaction.amount_cents)).label("total")
        stmt = (
            select(Transaction.category, total)
            .where(
                Transaction.user_id == self.user_id,
                Transaction.effective_type == TransactionType.expense,
                Transaction.date.between(month.start, month.end),
            )
            .group_by(Transaction.category)
            .order_by(total.desc(), Transaction.category.asc())
            .limit(limit)
        )
        return [
            {"name": row.category, "value": cents_to_amount(int(row.total or 0))}
            for row in self.session.execute(stmt)
        ]

    def dashboard(self, month: Month) -> dict[str, object]:
        data: dict[str, object] = {"month": month.key}
        data.update(self.summary(month))
        data["monthly_trends"] = self.monthly_trend(month)
        data["top_categories"] = self.top_categories(month)
        return data


class BudgetService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id

    def upsert(self, data: BudgetIn) -> Budget:
        category = data.category.strip()
        stmt = select(Budget).where(
            Budget.user_id == self.user_id,
            func.lower(Budget.category) == category.lower(),
            Budget.month == data.month,
        )
        budget = self.session.scalar(stmt)
        if budget:
            budget.limit_cents = to_cents(data.limit)
        else:
            budget = Budget(
                user_id=self.user_id,
                category=category,
                month=data.month,
                limit_cents=to_cents(data.limit),
            )
            self.session.add(budget)
        self.session.commit()
        self.session.refresh(budget)
        logger.info(
            f"budget_upserted: user_id={self.user_id} id={budget.id} "
            f"category={budget.category} month={budget.month}"
        )
        return budget

    def list_for_month(self, month: Month) -> list[Budget]:
        stmt = (
            select(Budget)
            .where(Budget.user_id == self.user_id, Budget.month == month.key)
            .order_by(Budget.category)
        )
        return list(self.session.scalars(stmt).all())

    def spent_by_category(self, month: Month) -> dict[str, int]:
        category_key = func.lower(Transaction.category).label("category_key")
        stmt = (
            select(
                category_key,
                func.coalesce(func.sum(func.abs(Transaction.amount_cents)), 0).label(
                    "spent"
                ),
            )
            .where(
                Transaction.user_id == self.user_id,
                Transaction.effective_type == TransactionType.expense,
                Transaction.date.between(month.start, month.end),
            )
            .group_by(category_key)
        )
        return {
            row.category_key: int(row.spent or 0) for row in self.session.execute(stmt)
        }

    def progress_for_month(self, month: Month) -> list[dict[str, object]]:
        spent_by_category = self.spent_by_category(month)
        out: list[dict[str, object]] = []
        for budget in self.list_for_month(month):
            spent = spent_by_category.get(budget.category.lower(), 0)
            out.append(
                {
                    "id": budget.id,
                    "category": budget.category,
                    "month": budget.month,
                    "limit": budget.limit,
                    "spent": cents_to_amount(spent),
                    "percent": budget_percent(spent, budget.limit_cents),
                }
            )
        return out

    def delete(self, budget_id: int) -> None:
        budget = self.session.get(Budget, budget_id)
        if not budget or budget.user_id != self.user_id:
            raise NotFoundError("Budget not found")
        self.session.delete(budget)
        self.session.commit()
        logger.info(f"budget_deleted: user_id={self.user_id} id={budget_id}")


class GoalService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id

    def compute_saved(self) -> int:
        row = self.session.execute(
            select(
                _income_cents().label("income"), _expense_cents().label("expenses")
            ).where(Transaction.user_id == self.user_id)
        ).one()
        return int(row.income or 0) - int(row.expenses or 0)

    def get(self, goal_id: int) -> Goal:
        goal = self.session.get(Goal, goal_id)
        if not goal or goal.user_id != self.user_id:
            raise NotFoundError("Goal not found")
        return goal

    def create(self, data: GoalIn) -> Goal:
        goal = Goal(
            user_id=self.user_id,
            title=data.title.strip(),
            target_cents=to_cents(data.target_amount),
            saved_cents=self.compute_saved(),
            due_date=data.due_date,
        )
        self.session.add(goal)
        self.session.commit()
        self.session.refresh(goal)
        logger.info(f"goal_created: user_id={self.user_id} id={goal.id}")
        return goal

    def list_all(self) -> list[Goal]:
        goals = list(
            self.session.scalars(
                select(Goal)
                .where(Goal.user_id == self.user_id)
                .order_by(Goal.created_at, Goal.id)
            ).all()
        )
        saved = self.compute_saved()
        changed = False
        for goal in goals:
            if goal.saved_cents != saved:
                goal.saved_cents = saved
                changed = True
        if changed:
            self.session.commit()
        return goals

    def update(self, goal_id: int, data: GoalUpdate) -> Goal:
        goal = self.get(goal_id)
        if data.title is not None:
            goal.title = data.title.strip()
        if data.target_amount is not None:
            goal.target_cents = to_cents(data.target_amount)
        if data.due_date is not None:
            goal.due_date = data.due_date
        goal.saved_cents = self.compute_saved()
        self.session.commit()
        self.session.refresh(goal)
        logger.info(
            f"goal_updated: user_id={self.user_id} id={goal.id} "
            f"saved_cents={goal.saved_cents}"
        )
        return goal

    def delete(self, goal_id: int) -> None:
        goal = self.get(goal_id)
        self.session.delete(goal)
        self.session.commit()
        logger.info(f"goal_deleted: user_id={self.user_id} id={goal_id}")


class BankService:
    def __init__(
        self,
        session: Session,
        user_id: int,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.session = session
        self.user_id = user_id
        self.rng = rng or random.Random()
        self.transactions = TransactionService(session, user_id)

    def connect(
        self, data: BankConnectIn, on: Optional[date] = None
    ) -> dict[str, object]:
        on = on or local_today()
        generated = mock_bank.generate_history(BANK_HISTORY_MONTHS, on, self.rng)
        account_id = mock_bank.mock_account_id(self.rng)
        self.transactions.insert_mock(generated, account_id)
        logger.info(
            f"bank_connected: user_id={self.user_id} bank={data.bank_name} "
            f"transactions={len(generated)}"
        )
        return {
            "message": (
                f"Successfully connected to {data.bank_name} "
                "and fetched initial transactions."
            ),
            "bank_account": {
                "id": account_id,
                "name": data.bank_name,
                "account_number": data.account_number,
                "connected_date": datetime.now(timezone.utc),
            },
            "transactions_fetched": len(generated),
        }

    def fetch_new(self, on: Optional[date] = None) -> list[Transaction]:
        on = on or local_today()
        generated = mock_bank.generate_new(BANK_FETCH_COUNT, on, self.rng)
        rows: list[Transaction] = []
        if generated:
            rows = self.transactions.insert_mock(
                generated, mock_bank.mock_account_id(self.rng)
            )
        logger.info(f"bank_fetched: user_id={self.user_id} transactions={len(rows)}")
        return rows


class ReportService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id
        self.metrics = MetricsService(session, user_id)
        self.transactions = TransactionService(session, user_id)

    def gather(self, month: Month) -> dict[str, object]:
        return {
            "month": month,
            "transactions": self.transactions.for_month(month),
            "summary": self.metrics.summary(month),
        }

