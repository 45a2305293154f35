"""Async client for the hosted backend's REST tables and serverless functions."""

import asyncio
from typing import Any

import httpx
import structlog

from ledgerly.config import get_settings

logger = structlog.get_logger(__name__)

Filters = list[tuple[str, str]]


class BackendAPIError(Exception):
    """Base exception for backend errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AuthenticationError(BackendAPIError):
    """Access token rejected."""

    pass


class RateLimitError(BackendAPIError):
    """Rate limit exceeded."""

    @property
    def retry_after(self) -> int:
        if isinstance(self.details, dict):
            return int(self.details.get("retry_after", 60))
        return 60


class BackendClient:
    """Async client for the backend, scoped to a single account.

    Reads, updates and deletes against account-owned tables are filtered by
    ``user_id``; inserts into them get the ``user_id`` column filled in.
    """

    # Tables whose rows belong to one account
    _USER_SCOPED_TABLES = (
        "categories",
        "vendors",
        "tax_rates",
        "budgets",
        "expenses",
        "incomes",
        "invoices",
        "clients",
        "user_settings",
        "invoice_settings",
        "chat_pending_actions",
    )

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        access_token: str | None = None,
        user_id: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self._api_key = api_key or settings.backend_key.get_secret_value()
        self._access_token = access_token or settings.access_token.get_secret_value()
        self._user_id = user_id or settings.user_id
        self._timeout = timeout if timeout is not None else settings.backend_timeout
        self._max_retries = (
            max_retries if max_retries is not None else settings.backend_max_retries
        )
        self._client: httpx.AsyncClient | None = None

    @property
    def user_id(self) -> str:
        return self._user_id

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _scope(self, table: str, filters: Filters | None) -> Filters:
        scoped = list(filters or [])
        if table in self._USER_SCOPED_TABLES and not any(k == "user_id" for k, _ in scoped):
            scoped.append(("user_id", f"eq.{self._user_id}"))
        return scoped

    async def _request(
        self,
        method: str,
        path: str,
        params: Filters | dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        prefer: str | None = None,
        retry_count: int = 0,
    ) -> Any:
        """Make an authenticated request, retrying transport failures."""
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=path,
                params=params,
                json=json,
                headers=self._get_headers(prefer),
            )
        except httpx.RequestError as e:
            if retry_count < self._max_retries:
                logger.warning(
                    "backend_request_retry", path=path, attempt=retry_count + 1, error=str(e)
                )
                await asyncio.sleep(2**retry_count)
                return await self._request(method, path, params, json, prefer, retry_count + 1)
            raise BackendAPIError(f"Request failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError(
                "Access token rejected", status_code=response.status_code
            )

        if response.status_code == 429:
            retry_after = int(response.headers.get("Retry-After", "60"))
            raise RateLimitError(
                f"Rate limited, retry after {retry_after}s",
                status_code=429,
                details={"retry_after": retry_after},
            )

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except ValueError:
                error_detail = {"raw": response.text[:500] if response.text else "empty response"}
            raise BackendAPIError(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                details=error_detail,
            )

        return response.json() if response.content else None

    # === Generic Table Access ===

    async def select(
        self,
        table: str,
        filters: Filters | None = None,
        columns: str = "*",
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        """Select rows from a table."""
        params = [("select", columns), *self._scope(table, filters)]
        if order:
            params.append(("order", order))
        result = await self._request("GET", f"/rest/v1/{table}", params=params)
        return result if isinstance(result, list) else []

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored."""
        if table in self._USER_SCOPED_TABLES:
            row = {"user_id": self._user_id, **row}
        result = await self._request(
            "POST", f"/rest/v1/{table}", json=row, prefer="return=representation"
        )
        return self._first(result)

    async def update(self, table: str, row_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update one row by id and return it as stored."""
        result = await self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=self._scope(table, [("id", f"eq.{row_id}")]),
            json=data,
            prefer="return=representation",
        )
        return self._first(result)

    async def delete(self, table: str, row_id: str) -> None:
        """Delete one row by id."""
        await self._request(
            "DELETE",
            f"/rest/v1/{table}",
            params=self._scope(table, [("id", f"eq.{row_id}")]),
        )

    async def invoke_function(
        self,
        name: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Invoke a serverless function. GET without a body, POST with one."""
        method = "POST" if json is not None else "GET"
        result = await self._request(method, f"/functions/v1/{name}", params=params, json=json)
        return result if isinstance(result, dict) else {}

    @staticmethod
    def _first(result: Any) -> dict[str, Any]:
        if isinstance(result, list):
            return result[0] if result else {}
        return result if isinstance(result, dict) else {}

    # === Categories ===

    async def list_categories(self, category_type: str | None = None) -> list[dict[str, Any]]:
        filters: Filters = []
        if category_type:
            filters.append(("type", f"eq.{category_type}"))
        return await self.select("categories", filters, order="name.asc")

    async def create_category(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self.insert("categories", data)

    # === Vendors ===

    async def list_vendors(self) -> list[dict[str, Any]]:
        return await self.select("vendors", order="name.asc")

    async def create_vendor(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self.insert("vendors", data)

    # === Tax Rates ===

    async def list_tax_rates(self) -> list[dict[str, Any]]:
        return await self.select("tax_rates", order="created_at.desc")

    async def create_tax_rate(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self.insert("tax_rates", data)

    # === Budgets ===

    async def list_budgets(self) -> list[dict[str, Any]]:
        return await self.select("budgets", columns="*,category:categories(*)")

    async def update_budget(self, budget_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self.update("budgets", budget_id, data)

    async def delete_budget(self, budget_id: str) -> None:
        await self.delete("budgets", budget_id)

    # === Expenses & Incomes ===

    @staticmethod
    def _date_filters(start_date: str | None, end_date: str | None) -> Filters:
        filters: Filters = []
        if start_date:
            filters.append(("date", f"gte.{start_date}"))
        if end_date:
            filters.append(("date", f"lte.{end_date}"))
        return filters

    async def list_expenses(
        self, start_date: str | None = None, end_date: str | None = None
    ) -> list[dict[str, Any]]:
        return await self.select(
            "expenses",
            self._date_filters(start_date, end_date),
            columns="*,category:categories(*),vendor_detail:vendors(*)",
            order="date.desc",
        )

    async def update_expense(self, expense_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self.update("expenses", expense_id, data)

    async def list_incomes(
        self, start_date: str | None = None, end_date: str | None = None
    ) -> list[dict[str, Any]]:
        return await self.select(
            "incomes",
            self._date_filters(start_date, end_date),
            columns="*,category:categories(*)",
            order="date.desc",
        )

    # === Invoices ===

    async def list_invoices(self) -> list[dict[str, Any]]:
        return await self.select(
            "invoices", columns="*,client:clients(*)", order="date.desc"
        )

    # === Settings ===

    async def get_user_settings(self) -> dict[str, Any]:
        rows = await self.select("user_settings")
        return rows[0] if rows else {}

    async def get_invoice_settings(self) -> dict[str, Any]:
        rows = await self.select("invoice_settings")
        return rows[0] if rows else {}

    # === Pending Actions ===

    async def create_pending_action(
        self,
        conversation_id: str,
        action_type: str,
        action_data: dict[str, Any],
        confidence_score: float | None = None,
    ) -> dict[str, Any]:
        """Store a write for the user to confirm before it is executed."""
        row: dict[str, Any] = {
            "conversation_id": conversation_id,
            "action_type": action_type,
            "action_data": action_data,
            "user_confirmed": False,
        }
        if confidence_score is not None:
            row["confidence_score"] = confidence_score
        return await self.insert("chat_pending_actions", row)

    # === Exchange Rates ===

    async def get_exchange_rates(self, base_currency: str) -> dict[str, float]:
        """Fetch the current rate table quoted against ``base_currency``."""
        data = await self.invoke_function("get-exchange-rates", params={"base": base_currency})
        rates = data.get("rates")
        return {str(k): float(v) for k, v in rates.items()} if isinstance(rates, dict) else {}
