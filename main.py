import logging
import os
import traceback
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

import reports
from auth import AuthenticationError, bearer_token, read_token
from config import get_settings
from database import Base, engine, get_db
from models import TransactionType, User
from periods import resolve_month
from schemas import (
    AuthOut,
    BankConnectIn,
    BankConnectOut,
    BankFetchOut,
    BudgetIn,
    BudgetOut,
    BudgetProgressOut,
    DashboardOut,
    GoalIn,
    GoalOut,
    GoalUpdate,
    ImportOut,
    LoginIn,
    MessageOut,
    SignupIn,
    TransactionIn,
    TransactionOut,
    TransactionPage,
    TransactionUpdate,
    UserOut,
)
from services import (
    BankService,
    BudgetService,
    GoalService,
    MetricsService,
    NotFoundError,
    ReportService,
    TransactionService,
    UserService,
    total_pages,
)

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()

app = FastAPI(title="Smart Finance Tracker", version=APP_VERSION)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event():
    Base.metadata.create_all(bind=engine)


def error_response(
    status_code: int, message: str, exc: Optional[BaseException] = None
) -> JSONResponse:
    stack = None
    if exc is not None and not get_settings().is_production:
        stack = "".join(traceback.format_exception(exc))
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "stack": stack},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        problems.append(f"{location}: {error['msg']}" if location else error["msg"])
    return error_response(400, "; ".join(problems) or "Invalid request")


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return error_response(401, str(exc))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return error_response(404, str(exc))


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return error_response(400, str(exc))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"unhandled_error: path={request.url.path}")
    return error_response(500, str(exc) or exc.__class__.__name__, exc)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = bearer_token(request.headers.get("Authorization"))
    return UserService(db).get(read_token(token))


def parse_transaction_type(value: Optional[str]) -> Optional[TransactionType]:
    if not value:
        return None
    try:
        return TransactionType(value)
    except ValueError:
        return None


@app.get("/api/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


# Auth


@app.post("/api/auth/signup", response_model=AuthOut, status_code=201)
def signup(payload: SignupIn, db: Session = Depends(get_db)):
    user, token = UserService(db).signup(payload)
    return AuthOut(id=user.id, name=user.name, email=user.email, token=token)


@app.post("/api/auth/login", response_model=AuthOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user, token = UserService(db).login(payload)
    return AuthOut(id=user.id, name=user.name, email=user.email, token=token)


@app.get("/api/auth/profile", response_model=UserOut)
def profile(user: User = Depends(get_current_user)):
    return UserOut.model_validate(user)


# Transactions


@app.get("/api/transactions", response_model=TransactionPage)
def list_transactions(
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    params = request.query_params
    page = max(int(params.get("page", "1")), 1)
    limit = min(max(int(params.get("limit", "20")), 1), 100)
    month = resolve_month(params["month"]) if params.get("month") else None
    items, total = TransactionService(db, user.id).list(
        page=page,
        limit=limit,
        month=month,
        txn_type=parse_transaction_type(params.get("type")),
        category=params.get("category"),
    )
    return TransactionPage(
        items=[TransactionOut.model_validate(txn) for txn in items],
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages(total, limit),
    )


@app.post("/api/transactions", response_model=TransactionOut, status_code=201)
def create_transaction(
    payload: TransactionIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    txn = TransactionService(db, user.id).create(payload)
    return TransactionOut.model_validate(txn)


@app.post("/api/transactions/import/mock", response_model=ImportOut, status_code=201)
def import_mock_transactions(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    count = TransactionService(db, user.id).import_samples()
    return ImportOut(imported=count)


@app.put("/api/transactions/{transaction_id}", response_model=TransactionOut)
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    txn = TransactionService(db, user.id).update(transaction_id, payload)
    return TransactionOut.model_validate(txn)


@app.delete("/api/transactions/{transaction_id}", response_model=MessageOut)
def delete_transaction(
    transaction_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    TransactionService(db, user.id).delete(transaction_id)
    return MessageOut(message="Transaction removed")


# Budgets


@app.get("/api/budgets", response_model=list[BudgetProgressOut])
def list_budgets(
    month: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    target = resolve_month(month)
    return BudgetService(db, user.id).progress_for_month(target)


@app.post("/api/budgets", response_model=BudgetOut, status_code=201)
def set_budget(
    payload: BudgetIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    budget = BudgetService(db, user.id).upsert(payload)
    return BudgetOut.model_validate(budget)


@app.delete("/api/budgets/{budget_id}", response_model=MessageOut)
def delete_budget(
    budget_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    BudgetService(db, user.id).delete(budget_id)
    return MessageOut(message="Budget removed")


# Goals


@app.get("/api/goals", response_model=list[GoalOut])
def list_goals(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [GoalOut.model_validate(g) for g in GoalService(db, user.id).list_all()]


@app.post("/api/goals", response_model=GoalOut, status_code=201)
def create_goal(
    payload: GoalIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return GoalOut.model_validate(GoalService(db, user.id).create(payload))


@app.put("/api/goals/{goal_id}", response_model=GoalOut)
def update_goal(
    goal_id: int,
    payload: GoalUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return GoalOut.model_validate(GoalService(db, user.id).update(goal_id, payload))


@app.delete("/api/goals/{goal_id}", response_model=MessageOut)
def delete_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    GoalService(db, user.id).delete(goal_id)
    return MessageOut(message="Goal removed")


# Dashboard & reports


@app.get("/api/dashboard", response_model=DashboardOut)
def dashboard(
    month: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return MetricsService(db, user.id).dashboard(resolve_month(month))


@app.get("/api/reports/pdf")
def monthly_report_pdf(
    month: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    target = resolve_month(month)
    start_time = datetime.now()
    data = ReportService(db, user.id).gather(target)
    html, pages = reports.render_report_html(
        target,
        data["transactions"],
        data["summary"],
        generated_at=datetime.now(ZoneInfo(settings.timezone)),
        currency_symbol=settings.currency_symbol,
    )
    pdf_bytes = reports.write_pdf(html)
    duration = (datetime.now() - start_time).total_seconds()
    logger.info(
        f"report_generated: user_id={user.id} month={target.key} "
        f"rows={len(data['transactions'])} pages={len(pages)} "
        f"pdf_size_bytes={len(pdf_bytes)} duration={duration:.2f}s"
    )

    filename = f"report-{target.key}.pdf"
    return StreamingResponse(
        iter([pdf_bytes]),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(pdf_bytes)),
        },
    )


# Simulated bank


@app.post("/api/bank/connect", response_model=BankConnectOut)
def connect_bank(
    payload: BankConnectIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BankService(db, user.id).connect(payload)


@app.get("/api/bank/transactions", response_model=BankFetchOut)
def fetch_bank_transactions(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    rows = BankService(db, user.id).fetch_new()
    return BankFetchOut(
        message="Fetched new transactions from mock bank.",
        new_transactions_count=len(rows),
        transactions=[TransactionOut.model_validate(txn) for txn in rows],
    )


def main():
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=False)


if __name__ == "__main__":
    main()
