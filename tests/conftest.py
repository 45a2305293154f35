"""Pytest configuration and fixtures."""

import os
from datetime import date
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("LEDGERLY_BACKEND_KEY", "anon-test-key")
os.environ.setdefault("LEDGERLY_ACCESS_TOKEN", "access-token-123")
os.environ.setdefault("LEDGERLY_USER_ID", "user-1")
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-test")

from ledgerly.tools.backend import BackendClient  # noqa: E402

ANCHOR = date(2024, 6, 15)


@pytest.fixture
def anchor():
    """A fixed anchor date (Saturday 2024-06-15)."""
    return ANCHOR


@pytest.fixture
def expense_categories():
    return [
        {"id": "cat-office", "name": "Office Supplies", "type": "expense", "color": "#3B82F6"},
        {"id": "cat-travel", "name": "Travel", "type": "expense", "color": "#10B981"},
        {"id": "cat-software", "name": "Software", "type": "expense", "color": "#F59E0B"},
    ]


@pytest.fixture
def income_categories():
    return [
        {"id": "cat-consulting", "name": "Consulting Fees", "type": "income", "color": None},
    ]


@pytest.fixture
def vendors():
    return [
        {"id": "ven-acme", "name": "Acme Corp", "email": "billing@acme.test"},
        {"id": "ven-staples", "name": "Staples", "email": None},
    ]


@pytest.fixture
def tax_rates():
    return [
        {"id": "tax-vat", "name": "VAT", "rate": 20, "is_default": True},
        {"id": "tax-reduced", "name": "Reduced", "rate": 5.5, "is_default": False},
    ]


@pytest.fixture
def backend(expense_categories, income_categories, vendors, tax_rates):
    """A BackendClient double with realistic default rows."""
    client = AsyncMock(spec=BackendClient)
    client.user_id = "user-1"

    async def list_categories(category_type=None):
        rows = expense_categories + income_categories
        if category_type:
            rows = [r for r in rows if r["type"] == category_type]
        return rows

    client.list_categories.side_effect = list_categories
    client.list_vendors.return_value = vendors
    client.list_tax_rates.return_value = tax_rates
    client.list_budgets.return_value = []
    client.list_expenses.return_value = []
    client.list_incomes.return_value = []
    client.list_invoices.return_value = []
    client.get_user_settings.return_value = {
        "base_currency": "USD",
        "enabled_currencies": ["USD", "EUR"],
    }
    client.get_invoice_settings.return_value = {"default_tax_rate": 0}
    client.create_pending_action.return_value = {"id": "pending-1"}
    client.get_exchange_rates.return_value = {"EUR": 0.8, "GBP": 0.5}
    return client
