"""Typed tool requests.

Each tool the assistant can call has one request model. The models form a
discriminated union keyed on ``tool``, so raw LLM arguments are validated in
one place and handlers receive fully typed values.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from ledgerly.models import BudgetPeriod, CategoryType, InvoiceStatus


class _ToolRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


# === Dates ===


class ParseDateQueryRequest(_ToolRequest):
    tool: Literal["parse_date_query"] = "parse_date_query"
    query: str = ""


# === Categories, Vendors, Tax Rates ===


class GetCategoriesRequest(_ToolRequest):
    tool: Literal["get_categories"] = "get_categories"
    type: CategoryType | None = None


class CreateCategoryRequest(_ToolRequest):
    tool: Literal["create_category"] = "create_category"
    name: str = Field(min_length=1)
    type: CategoryType
    color: str | None = None


class GetVendorsRequest(_ToolRequest):
    tool: Literal["get_vendors"] = "get_vendors"


class CreateVendorRequest(_ToolRequest):
    tool: Literal["create_vendor"] = "create_vendor"
    name: str = Field(min_length=1)
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    tax_id: str | None = None
    payment_terms: int | None = Field(default=None, ge=0)
    notes: str | None = None


class GetTaxRatesRequest(_ToolRequest):
    tool: Literal["get_tax_rates"] = "get_tax_rates"


class CreateTaxRateRequest(_ToolRequest):
    tool: Literal["create_tax_rate"] = "create_tax_rate"
    name: str = Field(min_length=1)
    rate: float = Field(ge=0, le=100)


# === Expenses ===


class ValidateExpenseRequest(_ToolRequest):
    tool: Literal["validate_expense"] = "validate_expense"
    amount: float = Field(gt=0)
    description: str | None = None
    category_name: str | None = None
    vendor_name: str | None = None
    tax_rate: float | None = Field(default=None, ge=0, le=100)
    currency: str | None = None


class CreateExpenseRequest(_ToolRequest):
    tool: Literal["create_expense"] = "create_expense"
    amount: float = Field(gt=0)
    description: str
    date: str = "today"
    category_name: str | None = None
    vendor_name: str | None = None
    reference_number: str | None = None
    tax_rate: float | None = Field(default=None, ge=0, le=100)
    currency: str | None = None


class GetExpensesRequest(_ToolRequest):
    tool: Literal["get_expenses"] = "get_expenses"
    start_date: str | None = None
    end_date: str | None = None
    category_name: str | None = None
    vendor_name: str | None = None


class UpdateExpenseRequest(_ToolRequest):
    tool: Literal["update_expense"] = "update_expense"
    expense_id: str = Field(min_length=1)
    amount: float | None = Field(default=None, gt=0)
    description: str | None = None
    date: str | None = None
    category_name: str | None = None
    vendor_name: str | None = None
    reference_number: str | None = None
    tax_rate: float | None = Field(default=None, ge=0, le=100)
    currency: str | None = None


# === Budgets ===


class ValidateBudgetRequest(_ToolRequest):
    tool: Literal["validate_budget"] = "validate_budget"
    amount: float = Field(gt=0)
    category_name: str | None = None
    period: BudgetPeriod | None = None


class CreateBudgetRequest(_ToolRequest):
    tool: Literal["create_budget"] = "create_budget"
    amount: float = Field(gt=0)
    category_name: str = Field(min_length=1)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: str | None = None


class GetBudgetsRequest(_ToolRequest):
    tool: Literal["get_budgets"] = "get_budgets"
    category_name: str | None = None
    period: BudgetPeriod | None = None


class _BudgetSelector(_ToolRequest):
    budget_id: str | None = None
    category_name: str | None = None

    @model_validator(mode="after")
    def _require_selector(self) -> "_BudgetSelector":
        if not self.budget_id and not self.category_name:
            raise ValueError("either budget_id or category_name is required")
        return self


class UpdateBudgetRequest(_BudgetSelector):
    tool: Literal["update_budget"] = "update_budget"
    amount: float | None = Field(default=None, gt=0)
    period: BudgetPeriod | None = None
    start_date: str | None = None


class DeleteBudgetRequest(_BudgetSelector):
    tool: Literal["delete_budget"] = "delete_budget"


# === Invoices ===


class GetInvoicesRequest(_ToolRequest):
    tool: Literal["get_invoices"] = "get_invoices"
    start_date: str | None = None
    end_date: str | None = None
    status: InvoiceStatus | None = None
    client_name: str | None = None
    currency: str | None = None
    min_amount: float | None = None
    max_amount: float | None = None


ToolRequest = Annotated[
    ParseDateQueryRequest
    | GetCategoriesRequest
    | CreateCategoryRequest
    | GetVendorsRequest
    | CreateVendorRequest
    | GetTaxRatesRequest
    | CreateTaxRateRequest
    | ValidateExpenseRequest
    | CreateExpenseRequest
    | GetExpensesRequest
    | UpdateExpenseRequest
    | ValidateBudgetRequest
    | CreateBudgetRequest
    | GetBudgetsRequest
    | UpdateBudgetRequest
    | DeleteBudgetRequest
    | GetInvoicesRequest,
    Field(discriminator="tool"),
]

_REQUEST_ADAPTER: TypeAdapter[ToolRequest] = TypeAdapter(ToolRequest)

TOOL_NAMES: frozenset[str] = frozenset(
    {
        "parse_date_query",
        "get_categories",
        "create_category",
        "get_vendors",
        "create_vendor",
        "get_tax_rates",
        "create_tax_rate",
        "validate_expense",
        "create_expense",
        "get_expenses",
        "update_expense",
        "validate_budget",
        "create_budget",
        "get_budgets",
        "update_budget",
        "delete_budget",
        "get_invoices",
    }
)


def parse_tool_request(tool_name: str, arguments: dict[str, Any] | None) -> ToolRequest:
    """Validate raw tool-call arguments into the request model for ``tool_name``.

    Raises:
        pydantic.ValidationError: unknown tool or invalid arguments.
    """
    payload = dict(arguments or {})
    payload["tool"] = tool_name
    return _REQUEST_ADAPTER.validate_python(payload)
