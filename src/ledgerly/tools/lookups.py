"""Category, vendor and tax-rate tools.

The ``get_*`` tools feed lists to the assistant and degrade to an empty list
when the backend fails. The ``search_*`` helpers are used by the write tools
and let backend errors propagate, so an outage is never reported as
"doesn't exist".
"""

from dataclasses import asdict
from typing import Any

import structlog

from ledgerly.matching import MatchResult, format_candidates, match_entity_by_name, match_tax_rate
from ledgerly.models import Category, CategoryType, TaxRate, Vendor
from ledgerly.tools.backend import BackendAPIError, BackendClient

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORY_COLOR = "#3B82F6"


def percent(value: float) -> str:
    """Render a percentage the way users type it: 20%, 7.5%."""
    return f"{value:g}%"


def categories_noun(count: int) -> str:
    return "category" if count == 1 else "categories"


def describe_vendor(vendor: Vendor) -> str:
    return f"{vendor.name} ({vendor.email})" if vendor.email else vendor.name


def describe_tax_rate(rate: TaxRate) -> str:
    return f"{rate.name} ({percent(rate.rate)})"


# === Categories ===


async def get_categories(
    client: BackendClient, category_type: CategoryType | None = None
) -> list[Category]:
    try:
        rows = await client.list_categories(category_type.value if category_type else None)
    except BackendAPIError as e:
        logger.warning("categories_fetch_failed", error=str(e), status=e.status_code)
        return []
    return [Category.from_record(row) for row in rows]


async def search_category(
    client: BackendClient, name: str, category_type: CategoryType
) -> MatchResult[Category]:
    """Match a category name within one category type."""
    rows = await client.list_categories(category_type.value)
    return match_entity_by_name([Category.from_record(row) for row in rows], name)


async def create_category(
    client: BackendClient,
    name: str,
    category_type: CategoryType,
    color: str | None = None,
) -> dict[str, Any]:
    name = name.strip()
    rows = await client.list_categories(category_type.value)
    categories = [Category.from_record(row) for row in rows]

    if any(c.name.lower() == name.lower() for c in categories):
        return {
            "success": False,
            "error": f'A {category_type.value} category named "{name}" already exists.',
        }

    similar = match_entity_by_name(categories, name).similar_candidates
    if similar:
        return {
            "success": False,
            "error": (
                f"Found {len(similar)} similar {categories_noun(len(similar))}:\n\n"
                f"{format_candidates(similar)}\n\n"
                "Please use a different name or specify if you want to use an existing "
                "category."
            ),
        }

    row = await client.create_category(
        {"name": name, "type": category_type.value, "color": color or DEFAULT_CATEGORY_COLOR}
    )
    category = Category.from_record(row)
    logger.info("category_created", category_id=category.id, type=category.type.value)
    return {"success": True, "category": asdict(category)}


# === Vendors ===


async def get_vendors(client: BackendClient) -> list[Vendor]:
    try:
        rows = await client.list_vendors()
    except BackendAPIError as e:
        logger.warning("vendors_fetch_failed", error=str(e), status=e.status_code)
        return []
    return [Vendor.from_record(row) for row in rows]


async def search_vendor(client: BackendClient, name: str) -> MatchResult[Vendor]:
    rows = await client.list_vendors()
    return match_entity_by_name([Vendor.from_record(row) for row in rows], name)


async def create_vendor(
    client: BackendClient,
    name: str,
    email: str | None = None,
    phone: str | None = None,
    address: str | None = None,
    tax_id: str | None = None,
    payment_terms: int | None = None,
    notes: str | None = None,
) -> dict[str, Any]:
    name = name.strip()
    match = await search_vendor(client, name)

    if match.exact_match is not None:
        existing = match.exact_match
        suffix = f" Email: {existing.email}" if existing.email else ""
        return {"success": False, "error": f'Vendor "{name}" already exists.{suffix}'}

    if match.similar_candidates:
        similar = match.similar_candidates
        return {
            "success": False,
            "error": (
                f"Found {len(similar)} similar vendor(s):\n\n"
                f"{format_candidates(similar, describe_vendor)}\n\n"
                "Please use a different name or specify if you want to use an existing "
                "vendor."
            ),
        }

    data: dict[str, Any] = {"name": name}
    for key, value in (
        ("email", email),
        ("phone", phone),
        ("address", address),
        ("tax_id", tax_id),
        ("notes", notes),
    ):
        if value and value.strip():
            data[key] = value.strip()
    if payment_terms:
        data["payment_terms"] = payment_terms

    vendor = Vendor.from_record(await client.create_vendor(data))
    logger.info("vendor_created", vendor_id=vendor.id)
    return {"success": True, "vendor": asdict(vendor)}


# === Tax Rates ===


async def get_tax_rates(client: BackendClient) -> list[TaxRate]:
    try:
        rows = await client.list_tax_rates()
    except BackendAPIError as e:
        logger.warning("tax_rates_fetch_failed", error=str(e), status=e.status_code)
        return []
    return [TaxRate.from_record(row) for row in rows]


async def search_tax_rate(client: BackendClient, percentage: float) -> MatchResult[TaxRate]:
    rows = await client.list_tax_rates()
    return match_tax_rate([TaxRate.from_record(row) for row in rows], percentage)


async def create_tax_rate(client: BackendClient, name: str, rate: float) -> dict[str, Any]:
    rows = await client.list_tax_rates()
    existing = [TaxRate.from_record(row) for row in rows]

    match = match_tax_rate(existing, rate)
    if match.exact_match is not None:
        return {
            "success": False,
            "error": (
                f"A tax rate of {percent(rate)} already exists ({match.exact_match.name})."
            ),
        }

    row = await client.create_tax_rate(
        {"name": name.strip(), "rate": rate, "is_default": not existing}
    )
    tax_rate = TaxRate.from_record(row)
    logger.info("tax_rate_created", tax_rate_id=tax_rate.id, is_default=tax_rate.is_default)
    return {"success": True, "tax_rate": asdict(tax_rate)}
