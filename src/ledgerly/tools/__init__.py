"""Assistant tool layer: backend client, tool schemas and executor."""

from ledgerly.tools.backend import (
    AuthenticationError,
    BackendAPIError,
    BackendClient,
    RateLimitError,
)
from ledgerly.tools.definitions import (
    ALL_TOOLS,
    BUDGET_TOOLS,
    EXPENSE_TOOLS,
    INVOICE_TOOLS,
    LOOKUP_TOOLS,
)
from ledgerly.tools.exchange_rates import (
    BackendRateSource,
    CachedExchangeRates,
    ExchangeRateSource,
)
from ledgerly.tools.executor import ToolExecutionError, ToolExecutor
from ledgerly.tools.requests import TOOL_NAMES, ToolRequest, parse_tool_request

__all__ = [
    # Backend Client
    "BackendClient",
    "BackendAPIError",
    "AuthenticationError",
    "RateLimitError",
    # Exchange Rates
    "ExchangeRateSource",
    "BackendRateSource",
    "CachedExchangeRates",
    # Requests
    "TOOL_NAMES",
    "ToolRequest",
    "parse_tool_request",
    # Tool Definitions
    "ALL_TOOLS",
    "LOOKUP_TOOLS",
    "EXPENSE_TOOLS",
    "BUDGET_TOOLS",
    "INVOICE_TOOLS",
    # Tool Executor
    "ToolExecutor",
    "ToolExecutionError",
]
