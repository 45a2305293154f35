"""Read-only invoice tool. Invoices are created and sent from the app itself."""

from dataclasses import asdict
from datetime import date
from typing import Any

import structlog

from ledgerly.models import Invoice, InvoiceStatus
from ledgerly.tools.backend import BackendAPIError, BackendClient
from ledgerly.tools.requests import GetInvoicesRequest

logger = structlog.get_logger(__name__)

_SETTLED = (InvoiceStatus.PAID, InvoiceStatus.CANCELED)


def days_until_due(invoice: Invoice, today: date) -> int | None:
    """Days from ``today`` to the due date; negative once it has passed."""
    if not invoice.due_date:
        return None
    return (date.fromisoformat(invoice.due_date[:10]) - today).days


def is_overdue(invoice: Invoice, today: date) -> bool:
    days = days_until_due(invoice, today)
    return days is not None and days < 0 and invoice.status not in _SETTLED


def _client_matches(invoice: Invoice, search: str) -> bool:
    if invoice.client is None:
        return False
    names = [n.lower() for n in (invoice.client.name, invoice.client.company_name) if n]
    return any(search in name or name in search for name in names)


async def get_invoices(
    client: BackendClient, request: GetInvoicesRequest, *, today: date
) -> list[dict[str, Any]]:
    try:
        rows = await client.list_invoices()
    except BackendAPIError as e:
        logger.warning("invoices_fetch_failed", error=str(e), status=e.status_code)
        return []

    invoices = [Invoice.from_record(row) for row in rows]

    if request.start_date:
        invoices = [i for i in invoices if i.date[:10] >= request.start_date]
    if request.end_date:
        invoices = [i for i in invoices if i.date[:10] <= request.end_date]
    if request.status:
        invoices = [i for i in invoices if i.status == request.status]
    if request.client_name:
        search = request.client_name.lower()
        invoices = [i for i in invoices if _client_matches(i, search)]
    if request.currency:
        invoices = [i for i in invoices if i.currency == request.currency]
    if request.min_amount is not None:
        invoices = [i for i in invoices if i.total >= request.min_amount]
    if request.max_amount is not None:
        invoices = [i for i in invoices if i.total <= request.max_amount]

    logger.debug("invoices_listed", count=len(invoices))
    return [
        {
            **asdict(invoice),
            "days_until_due": days_until_due(invoice, today),
            "is_overdue": is_overdue(invoice, today),
            "client_display_name": (
                invoice.client.display_name if invoice.client else "No client"
            ),
        }
        for invoice in invoices
    ]
