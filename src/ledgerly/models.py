"""Typed records for rows returned by the hosted backend."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class CategoryType(str, Enum):
    """Kinds of category. Income and expense categories never mix."""

    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELED = "canceled"
    PARTIALLY_PAID = "partially_paid"


class PendingActionType(str, Enum):
    """Records the assistant previews before the user confirms them."""

    EXPENSE = "expense"
    BUDGET = "budget"


def _float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _enum_value(enum_cls: type[Enum], value: Any, fallback: Any = None) -> Any:
    """Convert a backend string to ``enum_cls``.

    Values the enum does not know are logged and returned as ``fallback``,
    or unchanged when no fallback is given.
    """
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning("unknown_enum_value", enum=enum_cls.__name__, value=value)
        return value if fallback is None else fallback


@dataclass
class Category:
    id: str
    name: str
    type: CategoryType
    color: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Category":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            type=_enum_value(
                CategoryType, record.get("type") or "expense", fallback=CategoryType.EXPENSE
            ),
            color=record.get("color"),
        )


@dataclass
class Vendor:
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    tax_id: str | None = None
    payment_terms: int | None = None
    notes: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Vendor":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            email=record.get("email"),
            phone=record.get("phone"),
            address=record.get("address"),
            tax_id=record.get("tax_id"),
            payment_terms=record.get("payment_terms"),
            notes=record.get("notes"),
        )


@dataclass
class TaxRate:
    id: str
    name: str
    rate: float
    is_default: bool = False

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "TaxRate":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            rate=_float(record.get("rate")),
            is_default=bool(record.get("is_default", False)),
        )


@dataclass
class Client:
    id: str
    name: str
    company_name: str | None = None
    email: str | None = None

    @property
    def display_name(self) -> str:
        return self.company_name or self.name

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Client":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            company_name=record.get("company_name"),
            email=record.get("email"),
        )


@dataclass
class Budget:
    id: str
    amount: float
    period: BudgetPeriod | str
    start_date: str | None = None
    category_id: str | None = None
    category: Category | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Budget":
        category = record.get("category")
        return cls(
            id=str(record["id"]),
            amount=_float(record.get("amount")),
            period=_enum_value(BudgetPeriod, record.get("period") or "monthly"),
            start_date=record.get("start_date"),
            category_id=record.get("category_id"),
            category=Category.from_record(category) if category else None,
        )


@dataclass
class Expense:
    id: str
    amount: float
    description: str = ""
    date: str | None = None
    category_id: str | None = None
    vendor_id: str | None = None
    category: Category | None = None
    vendor: Vendor | None = None
    currency: str | None = None
    base_amount: float | None = None
    tax_rate: float | None = None
    tax_amount: float | None = None
    reference_number: str | None = None

    @property
    def amount_in_base_currency(self) -> float:
        return self.base_amount if self.base_amount else self.amount

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Expense":
        category = record.get("category")
        vendor = record.get("vendor_detail")
        return cls(
            id=str(record["id"]),
            amount=_float(record.get("amount")),
            description=record.get("description") or "",
            date=record.get("date"),
            category_id=record.get("category_id"),
            vendor_id=record.get("vendor_id"),
            category=Category.from_record(category) if category else None,
            vendor=Vendor.from_record(vendor) if vendor else None,
            currency=record.get("currency"),
            base_amount=record.get("base_amount"),
            tax_rate=record.get("tax_rate"),
            tax_amount=record.get("tax_amount"),
            reference_number=record.get("reference_number"),
        )


@dataclass
class Invoice:
    id: str
    invoice_number: str
    date: str
    due_date: str | None = None
    status: InvoiceStatus | str = InvoiceStatus.DRAFT
    total: float = 0.0
    currency: str = "USD"
    client: Client | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Invoice":
        client = record.get("client")
        return cls(
            id=str(record["id"]),
            invoice_number=str(record.get("invoice_number", "")),
            date=str(record.get("date", "")),
            due_date=record.get("due_date"),
            status=_enum_value(InvoiceStatus, record.get("status") or "draft"),
            total=_float(record.get("total")),
            currency=record.get("currency") or "USD",
            client=Client.from_record(client) if client else None,
        )


@dataclass
class PendingAction:
    """A previewed write waiting for the user to confirm it."""

    id: str
    conversation_id: str
    action_type: PendingActionType
    action_data: dict[str, Any] = field(default_factory=dict)
    user_confirmed: bool = False

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "PendingAction":
        return cls(
            id=str(record["id"]),
            conversation_id=str(record.get("conversation_id", "")),
            action_type=PendingActionType(record["action_type"]),
            action_data=dict(record.get("action_data") or {}),
            user_confirmed=bool(record.get("user_confirmed", False)),
        )
