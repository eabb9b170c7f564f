"""Thin HTTP client for the finance tracker API.

Each client carries its own bearer token; ``with_token`` returns a copy bound
to a different one.
"""

from typing import Any, Optional

import requests


class ApiError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class FinanceClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def with_token(self, token: Optional[str]) -> "FinanceClient":
        return FinanceClient(
            self.base_url, token=token, session=self.session, timeout=self.timeout
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> requests.Response:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        response = self.session.request(
            method,
            f"{self.base_url}{path}",
            headers=headers,
            json=json,
            params=params or None,
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            raise ApiError(response.status_code, _error_message(response))
        return response

    def _json(self, method: str, path: str, **kwargs: Any) -> Any:
        return self._request(method, path, **kwargs).json()

    # Auth

    def signup(self, name: str, email: str, password: str) -> dict:
        return self._json(
            "POST",
            "/api/auth/signup",
            json={"name": name, "email": email, "password": password},
        )

    def login(self, email: str, password: str) -> dict:
        return self._json(
            "POST", "/api/auth/login", json={"email": email, "password": password}
        )

    def profile(self) -> dict:
        return self._json("GET", "/api/auth/profile")

    # Transactions

    def list_transactions(
        self,
        page: int = 1,
        limit: int = 20,
        month: Optional[str] = None,
        type: Optional[str] = None,
        category: Optional[str] = None,
    ) -> dict:
        return self._json(
            "GET",
            "/api/transactions",
            params={
                "page": page,
                "limit": limit,
                "month": month,
                "type": type,
                "category": category,
            },
        )

    def create_transaction(self, payload: dict[str, Any]) -> dict:
        return self._json("POST", "/api/transactions", json=payload)

    def update_transaction(self, transaction_id: int, payload: dict[str, Any]) -> dict:
        return self._json("PUT", f"/api/transactions/{transaction_id}", json=payload)

    def delete_transaction(self, transaction_id: int) -> dict:
        return self._json("DELETE", f"/api/transactions/{transaction_id}")

    def import_mock(self) -> dict:
        return self._json("POST", "/api/transactions/import/mock")

    # Budgets

    def list_budgets(self, month: Optional[str] = None) -> list[dict]:
        return self._json("GET", "/api/budgets", params={"month": month})

    def set_budget(self, category: str, month: str, limit: float) -> dict:
        return self._json(
            "POST",
            "/api/budgets",
            json={"category": category, "month": month, "limit": limit},
        )

    def delete_budget(self, budget_id: int) -> dict:
        return self._json("DELETE", f"/api/budgets/{budget_id}")

    # Goals

    def list_goals(self) -> list[dict]:
        return self._json("GET", "/api/goals")

    def create_goal(
        self, title: str, target_amount: float, due_date: Optional[str] = None
    ) -> dict:
        payload: dict[str, Any] = {"title": title, "targetAmount": target_amount}
        if due_date:
            payload["dueDate"] = due_date
        return self._json("POST", "/api/goals", json=payload)

    def update_goal(self, goal_id: int, payload: dict[str, Any]) -> dict:
        return self._json("PUT", f"/api/goals/{goal_id}", json=payload)

    def delete_goal(self, goal_id: int) -> dict:
        return self._json("DELETE", f"/api/goals/{goal_id}")

    # Dashboard & reports

    def dashboard(self, month: Optional[str] = None) -> dict:
        return self._json("GET", "/api/dashboard", params={"month": month})

    def download_report(self, month: Optional[str] = None) -> bytes:
        return self._request("GET", "/api/reports/pdf", params={"month": month}).content

    # Simulated bank

    def connect_bank(self, bank_name: str, account_number: str) -> dict:
        return self._json(
            "POST",
            "/api/bank/connect",
            json={"bankName": bank_name, "accountNumber": account_number},
        )

    def fetch_bank_transactions(self) -> dict:
        return self._json("GET", "/api/bank/transactions")


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or "Request failed"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason or "Request failed"
