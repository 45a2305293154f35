"""Tool definitions for LLM function calling.

These schemas describe the tools the assistant may call. Each one is backed
by a request model in ``ledgerly.tools.requests`` and a handler in the
``ToolExecutor``.
"""

from typing import Any

_DATE_FIELD_HINT = (
    "Date as YYYY-MM-DD, or a relative value like 'today' or 'yesterday'. "
    "Resolve other phrases with parse_date_query first."
)

# === Date Tools ===

PARSE_DATE_QUERY_TOOL: dict[str, Any] = {
    "name": "parse_date_query",
    "description": (
        "Convert a natural-language date phrase into concrete dates. ALWAYS call this "
        "before filtering records by a relative date. Understands 'today', 'last 7 days', "
        "'this week', 'last month', 'this year', 'November 5', 'all of october 2023' and "
        "ranges like 'from january to march'. Returns start_date and end_date as YYYY-MM-DD."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The date phrase exactly as the user wrote it",
            },
        },
        "required": ["query"],
    },
}

# === Category Tools ===

GET_CATEGORIES_TOOL: dict[str, Any] = {
    "name": "get_categories",
    "description": "List the user's categories, optionally only income or expense categories.",
    "input_schema": {
        "type": "object",
        "properties": {
            "type": {
                "type": "string",
                "enum": ["income", "expense"],
                "description": "Only return categories of this type",
            },
        },
        "required": [],
    },
}

CREATE_CATEGORY_TOOL: dict[str, Any] = {
    "name": "create_category",
    "description": (
        "Create a new income or expense category. Fails if a category with the same or "
        "a similar name already exists; ask the user before retrying."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Category name"},
            "type": {
                "type": "string",
                "enum": ["income", "expense"],
                "description": "Whether the category is for income or expenses",
            },
            "color": {
                "type": "string",
                "description": "Hex colour such as #3B82F6",
            },
        },
        "required": ["name", "type"],
    },
}

# === Vendor Tools ===

GET_VENDORS_TOOL: dict[str, Any] = {
    "name": "get_vendors",
    "description": "List all vendors (suppliers the user pays).",
    "input_schema": {
        "type": "object",
        "properties": {},
        "required": [],
    },
}

CREATE_VENDOR_TOOL: dict[str, Any] = {
    "name": "create_vendor",
    "description": (
        "Create a new vendor. Fails if the vendor already exists or similar vendors are "
        "found; show the user the list and ask which one they meant."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Vendor or business name"},
            "email": {"type": "string", "format": "email", "description": "Contact email"},
            "phone": {"type": "string", "description": "Contact phone number"},
            "address": {"type": "string", "description": "Postal address"},
            "tax_id": {"type": "string", "description": "Vendor tax identifier"},
            "payment_terms": {
                "type": "integer",
                "description": "Payment terms in days",
            },
            "notes": {"type": "string", "description": "Free-form notes"},
        },
        "required": ["name"],
    },
}

# === Tax Rate Tools ===

GET_TAX_RATES_TOOL: dict[str, Any] = {
    "name": "get_tax_rates",
    "description": "List the tax rates the user has set up.",
    "input_schema": {
        "type": "object",
        "properties": {},
        "required": [],
    },
}

CREATE_TAX_RATE_TOOL: dict[str, Any] = {
    "name": "create_tax_rate",
    "description": (
        "Create a tax rate. The first tax rate becomes the default. Fails if a rate with "
        "the same percentage already exists."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Display name, e.g. 'VAT'"},
            "rate": {
                "type": "number",
                "minimum": 0,
                "maximum": 100,
                "description": "Percentage, e.g. 20 for 20%",
            },
        },
        "required": ["name", "rate"],
    },
}

# === Expense Tools ===

_EXPENSE_FIELDS: dict[str, Any] = {
    "amount": {"type": "number", "description": "Expense amount in the expense currency"},
    "description": {"type": "string", "description": "What the expense was for"},
    "category_name": {"type": "string", "description": "Expense category name"},
    "vendor_name": {"type": "string", "description": "Vendor name"},
    "tax_rate": {
        "type": "number",
        "description": "Tax percentage; must match one of the user's tax rates",
    },
    "currency": {
        "type": "string",
        "description": "ISO currency code; defaults to the user's base currency",
    },
}

VALIDATE_EXPENSE_TOOL: dict[str, Any] = {
    "name": "validate_expense",
    "description": (
        "Check expense details before creating the expense. Returns errors (unknown or "
        "ambiguous category, vendor or tax rate, disabled currency) and missing optional "
        "fields to ask the user about. Does not save anything."
    ),
    "input_schema": {
        "type": "object",
        "properties": dict(_EXPENSE_FIELDS),
        "required": ["amount"],
    },
}

CREATE_EXPENSE_TOOL: dict[str, Any] = {
    "name": "create_expense",
    "description": (
        "Prepare a new expense for the user to confirm. Resolves category, vendor and tax "
        "rate by name and converts foreign currencies to the base currency. The expense "
        "is only saved after the user confirms the preview."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            **_EXPENSE_FIELDS,
            "date": {"type": "string", "description": _DATE_FIELD_HINT},
            "reference_number": {"type": "string", "description": "Receipt or reference number"},
        },
        "required": ["amount", "description", "date"],
    },
}

GET_EXPENSES_TOOL: dict[str, Any] = {
    "name": "get_expenses",
    "description": (
        "List expenses, optionally within a date range and filtered by category or vendor "
        "name. Use parse_date_query to get the date range."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "start_date": {"type": "string", "format": "date", "description": "YYYY-MM-DD"},
            "end_date": {"type": "string", "format": "date", "description": "YYYY-MM-DD"},
            "category_name": {"type": "string", "description": "Category name to filter by"},
            "vendor_name": {"type": "string", "description": "Vendor name to filter by"},
        },
        "required": [],
    },
}

UPDATE_EXPENSE_TOOL: dict[str, Any] = {
    "name": "update_expense",
    "description": "Update fields of an existing expense. Only the provided fields change.",
    "input_schema": {
        "type": "object",
        "properties": {
            "expense_id": {"type": "string", "description": "ID of the expense to update"},
            **_EXPENSE_FIELDS,
            "date": {"type": "string", "description": _DATE_FIELD_HINT},
            "reference_number": {"type": "string", "description": "Receipt or reference number"},
        },
        "required": ["expense_id"],
    },
}

# === Budget Tools ===

_PERIOD_FIELD: dict[str, Any] = {
    "type": "string",
    "enum": ["monthly", "quarterly", "yearly"],
    "description": "Budget period",
}

VALIDATE_BUDGET_TOOL: dict[str, Any] = {
    "name": "validate_budget",
    "description": (
        "Check budget details before creating a budget. Returns errors for unknown or "
        "ambiguous categories and the optional fields still missing."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "amount": {"type": "number", "description": "Budgeted amount"},
            "category_name": {"type": "string", "description": "Income or expense category"},
            "period": _PERIOD_FIELD,
        },
        "required": ["amount"],
    },
}

CREATE_BUDGET_TOOL: dict[str, Any] = {
    "name": "create_budget",
    "description": (
        "Prepare a new budget for a category for the user to confirm. Only one budget is "
        "allowed per category."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "amount": {"type": "number", "description": "Budgeted amount"},
            "category_name": {"type": "string", "description": "Income or expense category"},
            "period": _PERIOD_FIELD,
            "start_date": {
                "type": "string",
                "description": "Defaults to the first day of the current month",
            },
        },
        "required": ["amount", "category_name", "period"],
    },
}

GET_BUDGETS_TOOL: dict[str, Any] = {
    "name": "get_budgets",
    "description": (
        "List budgets with progress for the current month: actual amount, remaining "
        "amount, percentage used and a status of healthy, warning or critical."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "category_name": {"type": "string", "description": "Category name to filter by"},
            "period": _PERIOD_FIELD,
        },
        "required": [],
    },
}

UPDATE_BUDGET_TOOL: dict[str, Any] = {
    "name": "update_budget",
    "description": "Update a budget found by its ID or by its category name.",
    "input_schema": {
        "type": "object",
        "properties": {
            "budget_id": {"type": "string", "description": "ID of the budget"},
            "category_name": {
                "type": "string",
                "description": "Category of the budget; a different name moves the budget",
            },
            "amount": {"type": "number", "description": "New budgeted amount"},
            "period": _PERIOD_FIELD,
            "start_date": {"type": "string", "description": _DATE_FIELD_HINT},
        },
        "required": [],
    },
}

DELETE_BUDGET_TOOL: dict[str, Any] = {
    "name": "delete_budget",
    "description": "Delete a budget found by its ID or by its category name.",
    "input_schema": {
        "type": "object",
        "properties": {
            "budget_id": {"type": "string", "description": "ID of the budget"},
            "category_name": {"type": "string", "description": "Category of the budget"},
        },
        "required": [],
    },
}

# === Invoice Tools ===

GET_INVOICES_TOOL: dict[str, Any] = {
    "name": "get_invoices",
    "description": (
        "List invoices filtered by date range, status, client name, currency or total "
        "amount. Each invoice includes days_until_due, is_overdue and client_display_name."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "start_date": {"type": "string", "format": "date", "description": "YYYY-MM-DD"},
            "end_date": {"type": "string", "format": "date", "description": "YYYY-MM-DD"},
            "status": {
                "type": "string",
                "enum": ["draft", "sent", "paid", "overdue", "canceled", "partially_paid"],
                "description": "Invoice status",
            },
            "client_name": {"type": "string", "description": "Client or company name"},
            "currency": {"type": "string", "description": "ISO currency code"},
            "min_amount": {"type": "number", "description": "Minimum invoice total"},
            "max_amount": {"type": "number", "description": "Maximum invoice total"},
        },
        "required": [],
    },
}

# === Tool Collections ===

LOOKUP_TOOLS: list[dict[str, Any]] = [
    PARSE_DATE_QUERY_TOOL,
    GET_CATEGORIES_TOOL,
    CREATE_CATEGORY_TOOL,
    GET_VENDORS_TOOL,
    CREATE_VENDOR_TOOL,
    GET_TAX_RATES_TOOL,
    CREATE_TAX_RATE_TOOL,
]

EXPENSE_TOOLS: list[dict[str, Any]] = [
    VALIDATE_EXPENSE_TOOL,
    CREATE_EXPENSE_TOOL,
    GET_EXPENSES_TOOL,
    UPDATE_EXPENSE_TOOL,
]

BUDGET_TOOLS: list[dict[str, Any]] = [
    VALIDATE_BUDGET_TOOL,
    CREATE_BUDGET_TOOL,
    GET_BUDGETS_TOOL,
    UPDATE_BUDGET_TOOL,
    DELETE_BUDGET_TOOL,
]

INVOICE_TOOLS: list[dict[str, Any]] = [
    GET_INVOICES_TOOL,
]

ALL_TOOLS: list[dict[str, Any]] = LOOKUP_TOOLS + EXPENSE_TOOLS + BUDGET_TOOLS + INVOICE_TOOLS
