"""Tool executor that bridges LLM tool calls to the tool functions."""

from collections.abc import Callable
from dataclasses import asdict
from datetime import date
from typing import Any, assert_never

import structlog
from pydantic import ValidationError

from ledgerly.config import get_settings
from ledgerly.dates import resolve_date_query
from ledgerly.tools import budgets, expenses, invoices, lookups
from ledgerly.tools.backend import BackendAPIError, BackendClient
from ledgerly.tools.exchange_rates import BackendRateSource, CachedExchangeRates
from ledgerly.tools.requests import (
    TOOL_NAMES,
    CreateBudgetRequest,
    CreateCategoryRequest,
    CreateExpenseRequest,
    CreateTaxRateRequest,
    CreateVendorRequest,
    DeleteBudgetRequest,
    GetBudgetsRequest,
    GetCategoriesRequest,
    GetExpensesRequest,
    GetInvoicesRequest,
    GetTaxRatesRequest,
    GetVendorsRequest,
    ParseDateQueryRequest,
    ToolRequest,
    UpdateBudgetRequest,
    UpdateExpenseRequest,
    ValidateBudgetRequest,
    ValidateExpenseRequest,
    parse_tool_request,
)

logger = structlog.get_logger(__name__)


class ToolExecutionError(Exception):
    """Error during tool execution."""

    def __init__(self, tool_name: str, message: str, details: Any = None):
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name
        self.details = details


class ToolExecutor:
    """Executes LLM tool calls for one conversation.

    Every call returns an envelope. Tools that already report their own
    ``success`` flag are passed through; anything else is wrapped as
    ``{"success": True, "result": ...}``.
    """

    def __init__(
        self,
        client: BackendClient,
        conversation_id: str,
        rates: CachedExchangeRates | None = None,
        today: Callable[[], date] = date.today,
        default_currency: str | None = None,
    ):
        settings = get_settings()
        self.client = client
        self.conversation_id = conversation_id
        self.rates = rates or CachedExchangeRates(
            BackendRateSource(client), ttl_seconds=settings.exchange_rate_ttl_seconds
        )
        self._today = today
        self._default_currency = default_currency or settings.default_currency
        self._logger = logger.bind(conversation_id=conversation_id)

    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Execute a tool call and return the result envelope."""
        if tool_name not in TOOL_NAMES:
            raise ToolExecutionError(tool_name, f"Unknown tool: {tool_name}")

        self._logger.info("executing_tool", tool=tool_name, args=arguments)

        try:
            request = parse_tool_request(tool_name, arguments)
        except ValidationError as e:
            details = e.errors(include_url=False, include_context=False, include_input=False)
            self._logger.warning("tool_arguments_invalid", tool=tool_name, errors=len(details))
            return {
                "success": False,
                "error": f"Invalid arguments for {tool_name}",
                "details": details,
            }

        try:
            result = await self._dispatch(request)
            envelope = self._envelope(result)
            self._logger.info("tool_executed", tool=tool_name, success=envelope["success"])
            return envelope
        except BackendAPIError as e:
            self._logger.warning(
                "tool_api_error",
                tool=tool_name,
                status=e.status_code,
                details=e.details,
            )
            return {
                "success": False,
                "error": str(e),
                "status_code": e.status_code,
                "details": e.details,
            }
        except Exception as e:
            self._logger.exception("tool_execution_error", tool=tool_name)
            return {"success": False, "error": str(e)}

    def today(self) -> date:
        """The anchor date for relative dates in this call."""
        return self._today()

    @staticmethod
    def _envelope(result: Any) -> dict[str, Any]:
        if isinstance(result, dict) and "success" in result:
            return result
        return {"success": True, "result": result}

    async def _dispatch(self, request: ToolRequest) -> Any:
        client = self.client
        today = self.today()

        match request:
            case ParseDateQueryRequest():
                return resolve_date_query(request.query, today).to_dict()
            case GetCategoriesRequest():
                return [asdict(c) for c in await lookups.get_categories(client, request.type)]
            case CreateCategoryRequest():
                return await lookups.create_category(
                    client, request.name, request.type, request.color
                )
            case GetVendorsRequest():
                return [asdict(v) for v in await lookups.get_vendors(client)]
            case CreateVendorRequest():
                return await lookups.create_vendor(
                    client,
                    request.name,
                    email=request.email,
                    phone=request.phone,
                    address=request.address,
                    tax_id=request.tax_id,
                    payment_terms=request.payment_terms,
                    notes=request.notes,
                )
            case GetTaxRatesRequest():
                return [asdict(t) for t in await lookups.get_tax_rates(client)]
            case CreateTaxRateRequest():
                return await lookups.create_tax_rate(client, request.name, request.rate)
            case ValidateExpenseRequest():
                return await expenses.validate_expense(client, request, self._default_currency)
            case CreateExpenseRequest():
                return await expenses.create_expense(
                    client,
                    request,
                    conversation_id=self.conversation_id,
                    rates=self.rates,
                    today=today,
                    default_currency=self._default_currency,
                )
            case GetExpensesRequest():
                return await expenses.get_expenses(client, request)
            case UpdateExpenseRequest():
                return await expenses.update_expense(client, request, today=today)
            case ValidateBudgetRequest():
                return await budgets.validate_budget(client, request)
            case CreateBudgetRequest():
                return await budgets.create_budget(
                    client, request, conversation_id=self.conversation_id, today=today
                )
            case GetBudgetsRequest():
                return await budgets.get_budgets(client, request, today=today)
            case UpdateBudgetRequest():
                return await budgets.update_budget(client, request, today=today)
            case DeleteBudgetRequest():
                return await budgets.delete_budget(client, request)
            case GetInvoicesRequest():
                return await invoices.get_invoices(client, request, today=today)
            case _:
                assert_never(request)
