"""Tests for the expense tools."""

from unittest.mock import AsyncMock

import pytest

from ledgerly.tools.backend import BackendAPIError
from ledgerly.tools.exchange_rates import CachedExchangeRates
from ledgerly.tools.expenses import (
    create_expense,
    get_expenses,
    load_currency_settings,
    update_expense,
    validate_expense,
)
from ledgerly.tools.requests import (
    CreateExpenseRequest,
    GetExpensesRequest,
    UpdateExpenseRequest,
    ValidateExpenseRequest,
)


@pytest.fixture
def rates():
    source = AsyncMock()
    source.fetch_rates = AsyncMock(return_value={"EUR": 0.8, "GBP": 0.5})
    return CachedExchangeRates(source)


@pytest.fixture
def expense_rows():
    return [
        {
            "id": "exp-1",
            "amount": 42.0,
            "description": "Printer paper",
            "date": "2024-06-10",
            "category": {"id": "cat-office", "name": "Office Supplies", "type": "expense"},
            "vendor_detail": {"id": "ven-staples", "name": "Staples"},
        },
        {
            "id": "exp-2",
            "amount": 300.0,
            "description": "Train tickets",
            "date": "2024-06-02",
            "category": {"id": "cat-travel", "name": "Travel", "type": "expense"},
            "vendor_detail": None,
        },
    ]


async def _create(backend, rates, anchor, **fields):
    request = CreateExpenseRequest(**{"amount": 100, "description": "Paper", **fields})
    return await create_expense(
        backend, request, conversation_id="conv-1", rates=rates, today=anchor
    )


class TestCurrencySettings:
    """Tests for load_currency_settings."""

    @pytest.mark.asyncio
    async def test_defaults_when_unset(self, backend):
        backend.get_user_settings.return_value = {}

        settings = await load_currency_settings(backend, "GBP")

        assert settings.base_currency == "GBP"
        assert settings.enabled_currencies == ["GBP"]


class TestValidateExpense:
    """Tests for validate_expense."""

    @pytest.mark.asyncio
    async def test_valid_expense(self, backend):
        request = ValidateExpenseRequest(
            amount=50,
            description="Paper",
            category_name="office supplies",
            vendor_name="Staples",
            tax_rate=20,
            currency="EUR",
        )

        result = await validate_expense(backend, request)

        assert result == {"valid": True, "errors": [], "missing_fields": []}

    @pytest.mark.asyncio
    async def test_missing_optional_fields(self, backend):
        result = await validate_expense(backend, ValidateExpenseRequest(amount=50))

        assert result["valid"] is True
        assert result["missing_fields"] == ["description", "category", "vendor"]

    @pytest.mark.asyncio
    async def test_disabled_currency(self, backend):
        result = await validate_expense(backend, ValidateExpenseRequest(amount=50, currency="JPY"))

        assert result["valid"] is False
        assert result["errors"] == [
            "JPY is not enabled in your currency settings. Please enable it in "
            "Settings > Currency and try again."
        ]

    @pytest.mark.asyncio
    async def test_ambiguous_category(self, backend):
        result = await validate_expense(
            backend, ValidateExpenseRequest(amount=50, category_name="office")
        )

        (error,) = result["errors"]
        assert error.startswith('Found 1 similar category but no exact match for "office"')
        assert "- Office Supplies" in error

    @pytest.mark.asyncio
    async def test_unknown_vendor(self, backend):
        result = await validate_expense(
            backend, ValidateExpenseRequest(amount=50, vendor_name="Globex")
        )

        assert result["errors"] == [
            'Vendor "Globex" doesn\'t exist. Would you like me to create it?'
        ]

    @pytest.mark.asyncio
    async def test_income_category_is_not_an_expense_category(self, backend):
        result = await validate_expense(
            backend, ValidateExpenseRequest(amount=50, category_name="Consulting Fees")
        )

        assert result["valid"] is False

    @pytest.mark.asyncio
    async def test_similar_tax_rate(self, backend):
        result = await validate_expense(backend, ValidateExpenseRequest(amount=50, tax_rate=5))

        (error,) = result["errors"]
        assert error.startswith("Found 1 similar tax rate but no exact match for 5%")
        assert "- Reduced (5.5%)" in error

    @pytest.mark.asyncio
    async def test_unknown_tax_rate(self, backend):
        result = await validate_expense(backend, ValidateExpenseRequest(amount=50, tax_rate=7))

        assert result["errors"] == [
            "You don't have a 7% tax rate set up yet. Would you like me to create it?"
        ]


class TestCreateExpense:
    """Tests for create_expense."""

    @pytest.mark.asyncio
    async def test_creates_pending_action(self, backend, rates, anchor):
        result = await _create(
            backend,
            rates,
            anchor,
            category_name="Office Supplies",
            vendor_name="staples",
            date="yesterday",
        )

        assert result["success"] is True
        assert result["pending_action_id"] == "pending-1"
        preview = result["preview"]
        assert preview["date"] == "2024-06-14"
        assert preview["category_id"] == "cat-office"
        assert preview["vendor_name"] == "Staples"
        assert preview["currency"] == "USD"
        assert preview["exchange_rate"] == 1.0
        assert preview["base_amount"] == 100
        backend.create_pending_action.assert_awaited_once_with("conv-1", "expense", preview)

    @pytest.mark.asyncio
    async def test_absent_fields_are_omitted(self, backend, rates, anchor):
        result = await _create(backend, rates, anchor)

        preview = result["preview"]
        assert "category_id" not in preview
        assert "vendor_id" not in preview
        assert "reference_number" not in preview
        assert preview["tax_rate"] == 0

    @pytest.mark.asyncio
    async def test_foreign_currency_is_converted(self, backend, rates, anchor):
        result = await _create(backend, rates, anchor, amount=80, currency="EUR")

        preview = result["preview"]
        assert preview["exchange_rate"] == 0.8
        assert preview["base_amount"] == 100.0

    @pytest.mark.asyncio
    async def test_explicit_tax_rate(self, backend, rates, anchor):
        result = await _create(backend, rates, anchor, amount=59.99, tax_rate=20)

        preview = result["preview"]
        assert preview["tax_rate_name"] == "VAT"
        assert preview["tax_amount"] == 12.0

    @pytest.mark.asyncio
    async def test_default_tax_rate_from_settings(self, backend, rates, anchor):
        backend.get_invoice_settings.return_value = {"default_tax_rate": 5.5}

        result = await _create(backend, rates, anchor)

        assert result["preview"]["tax_rate"] == 5.5
        assert result["preview"]["tax_amount"] == 5.5

    @pytest.mark.asyncio
    async def test_unknown_tax_rate_is_rejected(self, backend, rates, anchor):
        result = await _create(backend, rates, anchor, tax_rate=7)

        assert result["success"] is False
        backend.create_pending_action.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ambiguous_category_offers_creation(self, backend, rates, anchor):
        result = await _create(backend, rates, anchor, category_name="soft")

        assert result["success"] is False
        assert result["error"].endswith(
            'Which one did you mean? Or I can create a new category "soft" for you.'
        )
        backend.create_pending_action.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_category(self, backend, rates, anchor):
        result = await _create(backend, rates, anchor, category_name="Payroll")

        assert result["error"] == (
            'Category "Payroll" doesn\'t exist. Would you like me to create it?'
        )

    @pytest.mark.asyncio
    async def test_unparsed_date_is_kept(self, backend, rates, anchor):
        result = await _create(backend, rates, anchor, date="2024-05-01")

        assert result["preview"]["date"] == "2024-05-01"


class TestGetExpenses:
    """Tests for get_expenses."""

    @pytest.mark.asyncio
    async def test_date_range_is_passed_through(self, backend, expense_rows):
        backend.list_expenses.return_value = expense_rows

        result = await get_expenses(
            backend, GetExpensesRequest(start_date="2024-06-01", end_date="2024-06-30")
        )

        assert [e["id"] for e in result] == ["exp-1", "exp-2"]
        backend.list_expenses.assert_awaited_once_with("2024-06-01", "2024-06-30")

    @pytest.mark.asyncio
    async def test_category_filter(self, backend, expense_rows):
        backend.list_expenses.return_value = expense_rows

        result = await get_expenses(backend, GetExpensesRequest(category_name="office"))

        assert [e["id"] for e in result] == ["exp-1"]

    @pytest.mark.asyncio
    async def test_vendor_filter_skips_expenses_without_vendor(self, backend, expense_rows):
        backend.list_expenses.return_value = expense_rows

        result = await get_expenses(backend, GetExpensesRequest(vendor_name="staples"))

        assert [e["id"] for e in result] == ["exp-1"]

    @pytest.mark.asyncio
    async def test_backend_failure_propagates(self, backend):
        backend.list_expenses.side_effect = BackendAPIError("down", status_code=503)

        with pytest.raises(BackendAPIError):
            await get_expenses(backend, GetExpensesRequest())


class TestUpdateExpense:
    """Tests for update_expense."""

    @pytest.mark.asyncio
    async def test_not_found(self, backend, anchor):
        result = await update_expense(
            backend, UpdateExpenseRequest(expense_id="exp-9", amount=5), today=anchor
        )

        assert result == {"success": False, "error": "Expense record with ID exp-9 not found."}
        backend.update_expense.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_updates_only_given_fields(self, backend, expense_rows, anchor):
        backend.list_expenses.return_value = expense_rows
        request = UpdateExpenseRequest(
            expense_id="exp-2", amount=250, tax_rate=20, category_name="travel", date="today"
        )

        result = await update_expense(backend, request, today=anchor)

        assert result == {"success": True}
        backend.update_expense.assert_awaited_once_with(
            "exp-2",
            {
                "amount": 250,
                "date": "2024-06-15",
                "category_id": "cat-travel",
                "tax_rate": 20,
                "tax_amount": 50.0,
            },
        )

    @pytest.mark.asyncio
    async def test_zero_tax_rate_clears_it(self, backend, expense_rows, anchor):
        backend.list_expenses.return_value = expense_rows

        await update_expense(
            backend, UpdateExpenseRequest(expense_id="exp-1", tax_rate=0), today=anchor
        )

        backend.update_expense.assert_awaited_once_with(
            "exp-1", {"tax_rate": None, "tax_amount": None}
        )

    @pytest.mark.asyncio
    async def test_new_tax_rate_uses_stored_amount(self, backend, expense_rows, anchor):
        backend.list_expenses.return_value = expense_rows

        await update_expense(
            backend, UpdateExpenseRequest(expense_id="exp-1", tax_rate=10), today=anchor
        )

        backend.update_expense.assert_awaited_once_with(
            "exp-1", {"tax_rate": 10, "tax_amount": 4.2}
        )

    @pytest.mark.asyncio
    async def test_new_amount_uses_stored_tax_rate(self, backend, expense_rows, anchor):
        backend.list_expenses.return_value = [{**expense_rows[1], "tax_rate": 20}]

        await update_expense(
            backend, UpdateExpenseRequest(expense_id="exp-2", amount=150), today=anchor
        )

        backend.update_expense.assert_awaited_once_with(
            "exp-2", {"amount": 150, "tax_amount": 30.0}
        )

    @pytest.mark.asyncio
    async def test_new_amount_without_tax_leaves_tax_alone(self, backend, expense_rows, anchor):
        backend.list_expenses.return_value = expense_rows

        await update_expense(
            backend, UpdateExpenseRequest(expense_id="exp-2", amount=150), today=anchor
        )

        backend.update_expense.assert_awaited_once_with("exp-2", {"amount": 150})

    @pytest.mark.asyncio
    async def test_ambiguous_vendor(self, backend, expense_rows, anchor):
        backend.list_expenses.return_value = expense_rows

        result = await update_expense(
            backend, UpdateExpenseRequest(expense_id="exp-1", vendor_name="acme"), today=anchor
        )

        assert result["success"] is False
        assert result["error"].endswith("Which one did you mean?")
