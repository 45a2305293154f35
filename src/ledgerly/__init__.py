"""Ledgerly assistant - date resolution, entity matching and tools for a finance chat assistant."""

__version__ = "0.1.0"

from ledgerly.agents import FinanceAssistant
from ledgerly.clients import ClaudeClient
from ledgerly.config import configure_logging, get_settings
from ledgerly.dates import DateQueryResult, parse_relative_date, resolve_date_query
from ledgerly.matching import MatchResult, MatchStatus, match_entity_by_name, match_tax_rate
from ledgerly.tools import BackendClient, CachedExchangeRates, ToolExecutor

__all__ = [
    # Version
    "__version__",
    # Dates
    "DateQueryResult",
    "resolve_date_query",
    "parse_relative_date",
    # Matching
    "MatchResult",
    "MatchStatus",
    "match_entity_by_name",
    "match_tax_rate",
    # Tools
    "BackendClient",
    "CachedExchangeRates",
    "ToolExecutor",
    # Assistant
    "ClaudeClient",
    "FinanceAssistant",
    # Config
    "get_settings",
    "configure_logging",
]
