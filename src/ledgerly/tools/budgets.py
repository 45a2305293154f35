"""Budget tools: validate, create (as a pending action), progress, update, delete.

A budget's category may be an income or an expense category. Name lookups
try income categories first and fall back to expense categories.
"""

import asyncio
import math
from dataclasses import asdict
from datetime import date
from typing import Any

import structlog

from ledgerly.dates import parse_relative_date
from ledgerly.matching import format_candidates
from ledgerly.models import Budget, Category, CategoryType, Expense, PendingActionType
from ledgerly.tools.backend import BackendAPIError, BackendClient
from ledgerly.tools.lookups import categories_noun, search_category
from ledgerly.tools.requests import (
    CreateBudgetRequest,
    DeleteBudgetRequest,
    GetBudgetsRequest,
    UpdateBudgetRequest,
    ValidateBudgetRequest,
)

logger = structlog.get_logger(__name__)

WARNING_THRESHOLD = 70
CRITICAL_THRESHOLD = 90


def budget_status(percentage: int) -> str:
    """Classify budget usage: healthy below 70%, warning below 90%, else critical."""
    if percentage >= CRITICAL_THRESHOLD:
        return "critical"
    if percentage >= WARNING_THRESHOLD:
        return "warning"
    return "healthy"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _describe_typed(category: Category) -> str:
    return f"{category.name} ({category.type.value})"


async def validate_budget(client: BackendClient, request: ValidateBudgetRequest) -> dict[str, Any]:
    errors: list[str] = []
    missing_fields: list[str] = []

    if not request.category_name:
        missing_fields.append("category")
    if not request.period:
        missing_fields.append("period")

    if request.category_name:
        name = request.category_name
        income = await search_category(client, name, CategoryType.INCOME)
        if income.exact_match is None:
            expense = await search_category(client, name, CategoryType.EXPENSE)
            if expense.exact_match is None:
                similar = income.similar_candidates + expense.similar_candidates
                if similar:
                    errors.append(
                        f"Found {len(similar)} similar {categories_noun(len(similar))} but no "
                        f'exact match for "{name}":\n\n'
                        f"{format_candidates(similar, _describe_typed)}\n\n"
                        f'Which one did you mean? Or I can create a new category "{name}".'
                    )
                else:
                    errors.append(
                        f'Category "{name}" doesn\'t exist. Would you like me to create it? '
                        "(Specify if it's an income or expense category)"
                    )

    logger.info("budget_validated", valid=not errors, errors=len(errors))
    return {"valid": not errors, "errors": errors, "missing_fields": missing_fields}


async def _resolve_budget_category(
    client: BackendClient, name: str, similar_prefix: str, follow_up: str, not_found: str
) -> tuple[Category | None, str | None]:
    income = await search_category(client, name, CategoryType.INCOME)
    if income.exact_match is not None:
        return income.exact_match, None

    expense = await search_category(client, name, CategoryType.EXPENSE)
    if expense.exact_match is not None:
        return expense.exact_match, None

    similar = expense.similar_candidates
    if similar:
        return None, (
            f"Found {len(similar)} {similar_prefix}{categories_noun(len(similar))}:\n\n"
            f"{format_candidates(similar)}\n\n{follow_up}"
        )
    return None, f'Category "{name}" doesn\'t exist. {not_found}'


async def create_budget(
    client: BackendClient,
    request: CreateBudgetRequest,
    *,
    conversation_id: str,
    today: date,
) -> dict[str, Any]:
    """Resolve a budget and record it as a pending action for confirmation."""
    if request.start_date:
        start_date = parse_relative_date(request.start_date, today) or request.start_date
    else:
        start_date = today.replace(day=1).isoformat()

    category, error = await _resolve_budget_category(
        client,
        request.category_name,
        similar_prefix="similar expense ",
        follow_up=(
            "Which one did you mean? Or I can create a new category "
            f'"{request.category_name}" for you.'
        ),
        not_found=(
            "Would you like me to create it? "
            "(Please specify if it's an income or expense category)"
        ),
    )
    if error:
        return {"success": False, "error": error}

    budgets = [Budget.from_record(row) for row in await client.list_budgets()]
    if any(b.category_id == category.id for b in budgets):
        return {
            "success": False,
            "error": (
                f'A budget already exists for category "{category.name}". '
                "Would you like me to update it instead?"
            ),
        }

    action_data = {
        "amount": request.amount,
        "category_id": category.id,
        "category_name": category.name,
        "category_type": category.type.value,
        "period": request.period.value,
        "start_date": start_date,
    }
    pending = await client.create_pending_action(
        conversation_id, PendingActionType.BUDGET.value, action_data
    )
    logger.info("budget_pending", pending_action_id=pending.get("id"), category_id=category.id)
    return {"success": True, "pending_action_id": pending.get("id"), "preview": action_data}


async def get_budgets(
    client: BackendClient, request: GetBudgetsRequest, *, today: date
) -> list[dict[str, Any]]:
    """List budgets with their progress for the current month to date."""
    try:
        budgets = [Budget.from_record(row) for row in await client.list_budgets()]

        if request.category_name:
            search = request.category_name.lower()
            budgets = [
                b for b in budgets
                if b.category
                and (search in b.category.name.lower() or b.category.name.lower() in search)
            ]

        if request.period:
            budgets = [b for b in budgets if b.period == request.period]

        start = today.replace(day=1).isoformat()
        end = today.isoformat()
        income_rows, expense_rows = await asyncio.gather(
            client.list_incomes(start, end),
            client.list_expenses(start, end),
        )
    except BackendAPIError as e:
        logger.warning("budgets_fetch_failed", error=str(e), status=e.status_code)
        return []

    expenses = [Expense.from_record(row) for row in expense_rows]

    results = []
    for budget in budgets:
        if budget.category and budget.category.type == CategoryType.INCOME:
            actual = sum(
                float(row.get("base_amount") or row.get("amount") or 0)
                for row in income_rows
                if row.get("category_id") == budget.category_id
            )
        else:
            actual = sum(
                e.amount_in_base_currency for e in expenses if e.category_id == budget.category_id
            )

        percentage = _round_half_up(actual / budget.amount * 100) if budget.amount > 0 else 0
        results.append(
            {
                **asdict(budget),
                "actual": _round_half_up(actual),
                "remaining": _round_half_up(budget.amount - actual),
                "percentage": percentage,
                "status": budget_status(percentage),
            }
        )

    logger.debug("budgets_listed", count=len(results))
    return results


def _find_budget(
    budgets: list[Budget], budget_id: str | None, category_name: str | None
) -> Budget | None:
    if budget_id:
        return next((b for b in budgets if b.id == budget_id), None)
    if category_name:
        search = category_name.lower()
        return next(
            (b for b in budgets if b.category and b.category.name.lower() == search), None
        )
    return None


def _not_found(budget_id: str | None, category_name: str | None) -> dict[str, Any]:
    if budget_id:
        return {"success": False, "error": f"Budget with ID {budget_id} not found."}
    return {"success": False, "error": f'No budget found for category "{category_name}".'}


async def update_budget(
    client: BackendClient, request: UpdateBudgetRequest, *, today: date
) -> dict[str, Any]:
    budgets = [Budget.from_record(row) for row in await client.list_budgets()]
    budget = _find_budget(budgets, request.budget_id, request.category_name)
    if budget is None:
        return _not_found(request.budget_id, request.category_name)

    data: dict[str, Any] = {}
    if request.amount is not None:
        data["amount"] = request.amount
    if request.period is not None:
        data["period"] = request.period.value
    if request.start_date is not None:
        data["start_date"] = parse_relative_date(request.start_date, today) or request.start_date

    current_name = budget.category.name.lower() if budget.category else None
    if request.category_name and request.category_name.lower() != current_name:
        category, error = await _resolve_budget_category(
            client,
            request.category_name,
            similar_prefix="similar ",
            follow_up="Which one did you mean?",
            not_found="Would you like me to create it?",
        )
        if error:
            return {"success": False, "error": error}
        data["category_id"] = category.id

    await client.update_budget(budget.id, data)
    logger.info("budget_updated", budget_id=budget.id, fields=sorted(data))
    return {"success": True}


async def delete_budget(client: BackendClient, request: DeleteBudgetRequest) -> dict[str, Any]:
    budgets = [Budget.from_record(row) for row in await client.list_budgets()]
    budget = _find_budget(budgets, request.budget_id, request.category_name)
    if budget is None:
        return _not_found(request.budget_id, request.category_name)

    await client.delete_budget(budget.id)
    logger.info("budget_deleted", budget_id=budget.id)
    return {"success": True}
