"""Expense tools: validate, create (as a pending action), list and update."""

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any

import structlog

from ledgerly.dates import parse_relative_date
from ledgerly.matching import format_candidates
from ledgerly.models import Category, CategoryType, Expense, PendingActionType, Vendor
from ledgerly.tools.backend import BackendClient
from ledgerly.tools.exchange_rates import CachedExchangeRates
from ledgerly.tools.lookups import (
    categories_noun,
    describe_tax_rate,
    describe_vendor,
    percent,
    search_category,
    search_tax_rate,
    search_vendor,
)
from ledgerly.tools.requests import (
    CreateExpenseRequest,
    GetExpensesRequest,
    UpdateExpenseRequest,
    ValidateExpenseRequest,
)

logger = structlog.get_logger(__name__)


@dataclass
class CurrencySettings:
    base_currency: str
    enabled_currencies: list[str]


async def load_currency_settings(
    client: BackendClient, default_currency: str = "USD"
) -> CurrencySettings:
    settings = await client.get_user_settings()
    base = settings.get("base_currency") or default_currency
    enabled = settings.get("enabled_currencies") or [base]
    return CurrencySettings(base_currency=base, enabled_currencies=list(enabled))


def _vendors_noun(count: int) -> str:
    return "vendor" if count == 1 else "vendors"


def _tax_rates_noun(count: int) -> str:
    return "tax rate" if count == 1 else "tax rates"


async def _resolve_category(
    client: BackendClient, name: str, follow_up: str
) -> tuple[Category | None, str | None]:
    """Return the expense category named ``name`` or a question for the user."""
    match = await search_category(client, name, CategoryType.EXPENSE)
    if match.exact_match is not None:
        return match.exact_match, None
    similar = match.similar_candidates
    if similar:
        return None, (
            f"Found {len(similar)} similar {categories_noun(len(similar))}:\n\n"
            f"{format_candidates(similar)}\n\n{follow_up}"
        )
    return None, f'Category "{name}" doesn\'t exist. Would you like me to create it?'


async def _resolve_vendor(
    client: BackendClient, name: str, follow_up: str
) -> tuple[Vendor | None, str | None]:
    """Return the vendor named ``name`` or a question for the user."""
    match = await search_vendor(client, name)
    if match.exact_match is not None:
        return match.exact_match, None
    similar = match.similar_candidates
    if similar:
        return None, (
            f"Found {len(similar)} similar {_vendors_noun(len(similar))}:\n\n"
            f"{format_candidates(similar, describe_vendor)}\n\n{follow_up}"
        )
    return None, f'Vendor "{name}" doesn\'t exist. Would you like me to create it?'


async def _tax_rate_error(client: BackendClient, rate: float) -> str | None:
    match = await search_tax_rate(client, rate)
    if match.exact_match is not None:
        return None
    similar = match.similar_candidates
    if similar:
        return (
            f"Found {len(similar)} similar {_tax_rates_noun(len(similar))} but no exact "
            f"match for {percent(rate)}:\n\n{format_candidates(similar, describe_tax_rate)}"
            f"\n\nWhich one did you mean? Or should I create a new {percent(rate)} tax rate?"
        )
    return f"You don't have a {percent(rate)} tax rate set up yet. Would you like me to create it?"


async def validate_expense(
    client: BackendClient, request: ValidateExpenseRequest, default_currency: str = "USD"
) -> dict[str, Any]:
    """Check expense fields without saving anything.

    Returns ``valid``, a list of ``errors`` phrased as questions for the
    user and the optional fields that are still ``missing_fields``.
    """
    errors: list[str] = []
    missing_fields: list[str] = []

    currency = await load_currency_settings(client, default_currency)
    if request.currency and request.currency not in currency.enabled_currencies:
        errors.append(
            f"{request.currency} is not enabled in your currency settings. Please enable "
            "it in Settings > Currency and try again."
        )

    if not request.description:
        missing_fields.append("description")
    if not request.category_name:
        missing_fields.append("category")
    if not request.vendor_name:
        missing_fields.append("vendor")

    if request.category_name:
        name = request.category_name
        match = await search_category(client, name, CategoryType.EXPENSE)
        similar = match.similar_candidates
        if match.exact_match is None and similar:
            errors.append(
                f"Found {len(similar)} similar {categories_noun(len(similar))} but no exact "
                f'match for "{name}":\n\n{format_candidates(similar)}\n\n'
                f'Which one did you mean? Or I can create a new category "{name}".'
            )
        elif match.exact_match is None:
            errors.append(f'Category "{name}" doesn\'t exist. Would you like me to create it?')

    if request.vendor_name:
        name = request.vendor_name
        vendor_match = await search_vendor(client, name)
        vendors = vendor_match.similar_candidates
        if vendor_match.exact_match is None and vendors:
            errors.append(
                f"Found {len(vendors)} similar {_vendors_noun(len(vendors))} but no exact "
                f'match for "{name}":\n\n{format_candidates(vendors, describe_vendor)}\n\n'
                f'Which one did you mean? Or I can create a new vendor "{name}".'
            )
        elif vendor_match.exact_match is None:
            errors.append(f'Vendor "{name}" doesn\'t exist. Would you like me to create it?')

    if request.tax_rate:
        error = await _tax_rate_error(client, request.tax_rate)
        if error:
            errors.append(error)

    logger.info(
        "expense_validated",
        valid=not errors,
        errors=len(errors),
        missing=len(missing_fields),
    )
    return {"valid": not errors, "errors": errors, "missing_fields": missing_fields}


async def create_expense(
    client: BackendClient,
    request: CreateExpenseRequest,
    *,
    conversation_id: str,
    rates: CachedExchangeRates,
    today: date,
    default_currency: str = "USD",
) -> dict[str, Any]:
    """Resolve an expense and record it as a pending action for confirmation.

    Nothing is written to the expenses table here; the user confirms the
    returned preview first.
    """
    currency_settings = await load_currency_settings(client, default_currency)
    invoice_settings = await client.get_invoice_settings()

    expense_date = parse_relative_date(request.date, today) or request.date

    category: Category | None = None
    if request.category_name:
        category, error = await _resolve_category(
            client,
            request.category_name,
            "Which one did you mean? Or I can create a new category "
            f'"{request.category_name}" for you.',
        )
        if error:
            return {"success": False, "error": error}

    vendor: Vendor | None = None
    if request.vendor_name:
        vendor, error = await _resolve_vendor(
            client,
            request.vendor_name,
            f'Which one did you mean? Or I can create a new vendor "{request.vendor_name}" '
            "for you.",
        )
        if error:
            return {"success": False, "error": error}

    tax_rate = request.tax_rate
    if tax_rate is None:
        tax_rate = float(invoice_settings.get("default_tax_rate") or 0)
    tax_rate_name = None
    if request.tax_rate:
        tax_match = await search_tax_rate(client, request.tax_rate)
        if tax_match.exact_match is None:
            return {"success": False, "error": await _tax_rate_error(client, request.tax_rate)}
        tax_rate, tax_rate_name = tax_match.exact_match.rate, tax_match.exact_match.name

    tax_amount = round(request.amount * tax_rate / 100, 2) if tax_rate > 0 else 0.0

    base_currency = currency_settings.base_currency
    currency = request.currency or base_currency
    exchange_rate = await rates.get_rate(currency, base_currency)
    base_amount = round(request.amount / exchange_rate, 2)

    action_data = {
        "amount": request.amount,
        "description": request.description,
        "date": expense_date,
        "category_id": category.id if category else None,
        "category_name": category.name if category else None,
        "vendor_id": vendor.id if vendor else None,
        "vendor_name": vendor.name if vendor else None,
        "reference_number": request.reference_number,
        "tax_rate": tax_rate,
        "tax_rate_name": tax_rate_name,
        "tax_amount": tax_amount,
        "currency": currency,
        "exchange_rate": exchange_rate,
        "base_amount": base_amount,
    }
    action_data = {key: value for key, value in action_data.items() if value is not None}

    pending = await client.create_pending_action(
        conversation_id, PendingActionType.EXPENSE.value, action_data
    )
    logger.info(
        "expense_pending",
        pending_action_id=pending.get("id"),
        currency=currency,
        converted=currency != base_currency,
    )
    return {"success": True, "pending_action_id": pending.get("id"), "preview": action_data}


def _name_overlaps(name: str | None, search: str) -> bool:
    if not name:
        return False
    name = name.lower()
    return search in name or name in search


async def get_expenses(client: BackendClient, request: GetExpensesRequest) -> list[dict[str, Any]]:
    rows = await client.list_expenses(request.start_date, request.end_date)
    expenses = [Expense.from_record(row) for row in rows]

    if request.category_name:
        search = request.category_name.lower()
        expenses = [
            e for e in expenses if _name_overlaps(e.category.name if e.category else None, search)
        ]

    if request.vendor_name:
        search = request.vendor_name.lower()
        expenses = [
            e for e in expenses if _name_overlaps(e.vendor.name if e.vendor else None, search)
        ]

    logger.debug("expenses_listed", count=len(expenses))
    return [asdict(e) for e in expenses]


async def update_expense(
    client: BackendClient, request: UpdateExpenseRequest, *, today: date
) -> dict[str, Any]:
    rows = await client.list_expenses()
    row = next((r for r in rows if str(r.get("id")) == request.expense_id), None)
    if row is None:
        return {
            "success": False,
            "error": f"Expense record with ID {request.expense_id} not found.",
        }

    data: dict[str, Any] = {}
    if request.amount is not None:
        data["amount"] = request.amount
    if request.description is not None:
        data["description"] = request.description
    if request.date is not None:
        data["date"] = parse_relative_date(request.date, today) or request.date
    if request.reference_number is not None:
        data["reference_number"] = request.reference_number or None

    if request.category_name:
        category, error = await _resolve_category(
            client, request.category_name, "Which one did you mean?"
        )
        if error:
            return {"success": False, "error": error}
        data["category_id"] = category.id

    if request.vendor_name:
        vendor, error = await _resolve_vendor(
            client, request.vendor_name, "Which one did you mean?"
        )
        if error:
            return {"success": False, "error": error}
        data["vendor_id"] = vendor.id

    if request.tax_rate is not None:
        data["tax_rate"] = request.tax_rate or None

    # Tax amount is recomputed from the stored amount or rate when only one changes
    if request.amount is not None or request.tax_rate is not None:
        stored = Expense.from_record(row)
        amount = request.amount if request.amount is not None else stored.amount
        rate = request.tax_rate if request.tax_rate is not None else float(stored.tax_rate or 0)
        if rate > 0:
            data["tax_amount"] = round(amount * rate / 100, 2)
        elif request.tax_rate is not None:
            data["tax_amount"] = None

    if request.currency is not None:
        data["currency"] = request.currency

    await client.update_expense(request.expense_id, data)
    logger.info("expense_updated", expense_id=request.expense_id, fields=sorted(data))
    return {"success": True}
