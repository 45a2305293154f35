"""Tests for the category, vendor and tax-rate tools."""

import pytest

from ledgerly.models import CategoryType
from ledgerly.tools.backend import BackendAPIError
from ledgerly.tools.lookups import (
    DEFAULT_CATEGORY_COLOR,
    create_category,
    create_tax_rate,
    create_vendor,
    get_categories,
    get_tax_rates,
    get_vendors,
    percent,
    search_category,
)


class TestGetTools:
    """Tests for the list tools."""

    @pytest.mark.asyncio
    async def test_get_categories_by_type(self, backend):
        categories = await get_categories(backend, CategoryType.INCOME)

        assert [c.name for c in categories] == ["Consulting Fees"]
        backend.list_categories.assert_awaited_once_with("income")

    @pytest.mark.asyncio
    async def test_get_categories_all(self, backend):
        categories = await get_categories(backend)

        assert len(categories) == 4
        backend.list_categories.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_backend_failure_returns_empty(self, backend):
        """Test list tools degrade to an empty list."""
        backend.list_vendors.side_effect = BackendAPIError("down", status_code=503)
        backend.list_tax_rates.side_effect = BackendAPIError("down", status_code=503)

        assert await get_vendors(backend) == []
        assert await get_tax_rates(backend) == []

    @pytest.mark.asyncio
    async def test_search_propagates_backend_failure(self, backend):
        """Test searches used by write tools do not hide outages."""
        backend.list_categories.side_effect = BackendAPIError("down", status_code=503)

        with pytest.raises(BackendAPIError):
            await search_category(backend, "Travel", CategoryType.EXPENSE)


class TestCreateCategory:
    """Tests for create_category."""

    @pytest.mark.asyncio
    async def test_creates_with_default_color(self, backend):
        backend.create_category.return_value = {
            "id": "cat-rent",
            "name": "Rent",
            "type": "expense",
            "color": DEFAULT_CATEGORY_COLOR,
        }

        result = await create_category(backend, " Rent ", CategoryType.EXPENSE)

        assert result["success"] is True
        assert result["category"]["id"] == "cat-rent"
        backend.create_category.assert_awaited_once_with(
            {"name": "Rent", "type": "expense", "color": DEFAULT_CATEGORY_COLOR}
        )

    @pytest.mark.asyncio
    async def test_existing_name_is_rejected(self, backend):
        result = await create_category(backend, "travel", CategoryType.EXPENSE)

        assert result == {
            "success": False,
            "error": 'A expense category named "travel" already exists.',
        }
        backend.create_category.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_similar_names_are_listed(self, backend):
        result = await create_category(backend, "Office", CategoryType.EXPENSE)

        assert result["success"] is False
        assert result["error"].startswith("Found 1 similar category:\n\n- Office Supplies")
        backend.create_category.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_same_name_other_type_is_allowed(self, backend):
        """Test an income category may share a name with an expense category."""
        backend.create_category.return_value = {"id": "c9", "name": "Travel", "type": "income"}

        result = await create_category(backend, "Travel", CategoryType.INCOME)

        assert result["success"] is True


class TestCreateVendor:
    """Tests for create_vendor."""

    @pytest.mark.asyncio
    async def test_existing_vendor_shows_email(self, backend):
        result = await create_vendor(backend, "ACME CORP")

        assert result["error"] == 'Vendor "ACME CORP" already exists. Email: billing@acme.test'

    @pytest.mark.asyncio
    async def test_similar_vendors_are_listed(self, backend):
        result = await create_vendor(backend, "Acme")

        assert "Found 1 similar vendor(s):" in result["error"]
        assert "- Acme Corp (billing@acme.test)" in result["error"]

    @pytest.mark.asyncio
    async def test_blank_optional_fields_are_dropped(self, backend):
        backend.create_vendor.return_value = {"id": "ven-new", "name": "Globex"}

        result = await create_vendor(
            backend, "Globex", email=" ap@globex.test ", phone="  ", payment_terms=30
        )

        assert result["success"] is True
        backend.create_vendor.assert_awaited_once_with(
            {"name": "Globex", "email": "ap@globex.test", "payment_terms": 30}
        )


class TestCreateTaxRate:
    """Tests for create_tax_rate."""

    @pytest.mark.asyncio
    async def test_duplicate_percentage(self, backend):
        result = await create_tax_rate(backend, "Standard", 20)

        assert result["error"] == "A tax rate of 20% already exists (VAT)."

    @pytest.mark.asyncio
    async def test_first_rate_becomes_default(self, backend):
        backend.list_tax_rates.return_value = []
        backend.create_tax_rate.return_value = {
            "id": "tax-new",
            "name": "GST",
            "rate": 10,
            "is_default": True,
        }

        result = await create_tax_rate(backend, "GST", 10)

        assert result["tax_rate"]["is_default"] is True
        backend.create_tax_rate.assert_awaited_once_with(
            {"name": "GST", "rate": 10, "is_default": True}
        )

    @pytest.mark.asyncio
    async def test_later_rate_is_not_default(self, backend):
        backend.create_tax_rate.return_value = {"id": "tax-new", "name": "Zero", "rate": 0}

        await create_tax_rate(backend, "Zero", 0)

        assert backend.create_tax_rate.await_args.args[0]["is_default"] is False

    def test_percent_format(self):
        assert percent(20.0) == "20%"
        assert percent(7.5) == "7.5%"
