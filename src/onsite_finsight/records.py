# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Record model for OnSite FinSight.

This module defines the immutable value records consumed by the reporting
engine. Records are read from an external store (or from CSV files, see
io.py) and are never mutated by the engine.

Entities
--------
- MoneyRecord          : a dated money movement, explicitly tagged as an
                         'expense' or a 'payment'.
- RecurringExpenseDef  : a recurring cost definition (amount + frequency).
- BudgetLineItem       : a budgeted vs. actual amount for one project category.
- Invoice              : an invoice issued for a project.
- InvoicePayment       : a payment recorded against an invoice.
- Project              : a project id and display name.
- LedgerSnapshot       : one consistent snapshot of all the collections above.

All monetary amounts are stored as ``decimal.Decimal``. Constructors accept
int, float, str or Decimal values and normalize them with ``to_decimal``.
Invalid records (negative amounts, unknown tags) raise ``ValueError`` at
construction time.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

KIND_EXPENSE = "expense"
KIND_PAYMENT = "payment"
RECORD_KINDS: tuple[str, ...] = (KIND_EXPENSE, KIND_PAYMENT)

FREQUENCIES: tuple[str, ...] = ("weekly", "monthly", "quarterly", "yearly")

INVOICE_STATUSES: tuple[str, ...] = (
    "draft",
    "sent",
    "outstanding",
    "partial",
    "paid",
    "overdue",
)

PAYMENT_METHODS: tuple[str, ...] = (
    "cash",
    "check",
    "credit_card",
    "bank_transfer",
    "other",
)

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Convert a numeric-like value to Decimal.

    Floats go through ``str()`` first so that 0.1 becomes Decimal('0.1')
    rather than its binary approximation.

    Raises:
        ValueError: if the value cannot be interpreted as a number.
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, TypeError) as exc:
            raise ValueError(f"Invalid monetary amount: {value!r}") from exc

    if not result.is_finite():
        raise ValueError(f"Invalid monetary amount: {value!r}")
    return result


def to_date(value: Any) -> date:
    """Normalize a date, datetime or ISO string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise ValueError(f"Invalid date, expected YYYY-MM-DD: {value!r}") from exc


def _optional_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    return to_date(value)


def _non_negative(value: Any, what: str) -> Decimal:
    amount = to_decimal(value)
    if amount < 0:
        raise ValueError(f"{what} cannot be negative (got {amount}).")
    return amount


def _check_choice(value: str, choices: tuple[str, ...], what: str) -> None:
    if value not in choices:
        raise ValueError(
            f"Unknown {what} {value!r}. Expected one of: {', '.join(choices)}."
        )


@dataclass(frozen=True)
class MoneyRecord:
    """
    A dated money movement: a one-off expense or a client payment.

    ``kind`` is explicit so that aggregation never has to infer meaning from
    which collection a record came from.
    """

    id: str
    kind: str
    amount: Decimal
    date: date
    category: Optional[str] = None
    project_id: Optional[str] = None
    description: str = ""

    def __post_init__(self) -> None:
        _check_choice(self.kind, RECORD_KINDS, "record kind")
        object.__setattr__(
            self, "amount", _non_negative(self.amount, f"Amount of {self.kind} {self.id}")
        )
        object.__setattr__(self, "date", to_date(self.date))

    @property
    def is_expense(self) -> bool:
        return self.kind == KIND_EXPENSE

    @property
    def is_payment(self) -> bool:
        return self.kind == KIND_PAYMENT


@dataclass(frozen=True)
class RecurringExpenseDef:
    """
    Definition of a recurring cost (rent, insurance, software, ...).

    ``start_date`` is optional: when it is missing, the cost is only projected
    onto future periods (see recurring.py).
    """

    id: str
    amount: Decimal
    frequency: str
    is_active: bool = True
    start_date: Optional[date] = None
    project_id: Optional[str] = None
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "amount",
            _non_negative(self.amount, f"Amount of recurring expense {self.id}"),
        )
        _check_choice(self.frequency, FREQUENCIES, "frequency")
        object.__setattr__(self, "start_date", _optional_date(self.start_date))


@dataclass(frozen=True)
class BudgetLineItem:
    """Budgeted and actual amounts for one category of a project."""

    id: str
    project_id: str
    category: str
    budgeted_amount: Decimal
    actual_amount: Decimal
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "budgeted_amount",
            _non_negative(self.budgeted_amount, f"Budgeted amount of {self.id}"),
        )
        object.__setattr__(
            self,
            "actual_amount",
            _non_negative(self.actual_amount, f"Actual amount of {self.id}"),
        )


@dataclass(frozen=True)
class Invoice:
    """
    An invoice issued to a client for a project.

    ``status`` is the status stored by the editing flow. Only 'draft' and
    'sent' are meaningful inputs for the ledger; every other status is
    re-derived from the payments (see invoices.py).
    """

    id: str
    project_id: str
    total_amount: Decimal
    status: str = "draft"
    due_date: Optional[date] = None
    issued_date: Optional[date] = None
    invoice_number: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "total_amount",
            _non_negative(self.total_amount, f"Total amount of invoice {self.id}"),
        )
        _check_choice(self.status, INVOICE_STATUSES, "invoice status")
        object.__setattr__(self, "due_date", _optional_date(self.due_date))
        object.__setattr__(self, "issued_date", _optional_date(self.issued_date))


@dataclass(frozen=True)
class InvoicePayment:
    """A payment applied against an invoice."""

    id: str
    invoice_id: str
    amount: Decimal
    payment_date: date
    method: str = "other"
    reference_number: str = ""
    notes: str = ""

    def __post_init__(self) -> None:
        amount = to_decimal(self.amount)
        if amount <= 0:
            raise ValueError(
                f"Invoice payment {self.id} must have a positive amount (got {amount})."
            )
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "payment_date", to_date(self.payment_date))
        _check_choice(self.method, PAYMENT_METHODS, "payment method")


@dataclass(frozen=True)
class Project:
    """A project, as needed for per-project rollups."""

    id: str
    name: str


def _ensure_kind(records: Iterable[MoneyRecord], kind: str) -> tuple[MoneyRecord, ...]:
    out = tuple(records)
    for r in out:
        if r.kind != kind:
            raise ValueError(
                f"Record {r.id} is tagged {r.kind!r} but was supplied as {kind!r}."
            )
    return out


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    One consistent snapshot of every collection the engine reads.

    Callers are responsible for fetching all collections at the same point
    in time. The snapshot checks that expenses and payments carry the right
    ``kind`` tag but does not check cross-collection references (an invoice
    payment pointing at a deleted invoice is simply ignored downstream).
    """

    expenses: tuple[MoneyRecord, ...] = ()
    payments: tuple[MoneyRecord, ...] = ()
    recurring_expenses: tuple[RecurringExpenseDef, ...] = ()
    budget_items: tuple[BudgetLineItem, ...] = ()
    invoices: tuple[Invoice, ...] = ()
    invoice_payments: tuple[InvoicePayment, ...] = ()
    projects: tuple[Project, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "expenses", _ensure_kind(self.expenses, KIND_EXPENSE))
        object.__setattr__(self, "payments", _ensure_kind(self.payments, KIND_PAYMENT))
        for name in (
            "recurring_expenses",
            "budget_items",
            "invoices",
            "invoice_payments",
            "projects",
        ):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @property
    def money_records(self) -> tuple[MoneyRecord, ...]:
        """Expenses and payments together."""
        return self.expenses + self.payments
