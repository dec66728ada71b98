# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Invoice ledger: balances and derived statuses.

An invoice's status is not driven by events. It is re-derived every time
from the invoice total, the payments recorded against it, its due date and
the current date:

    balance <= 0                        -> paid
    0 < balance < total                 -> partial
    balance == total, past due date     -> overdue
    balance == total, not past due      -> outstanding

'draft' and 'sent' are set explicitly by the editing flow; an unpaid invoice
that carries one of these statuses and is not past due keeps it.

Recording a payment is a pure append: the position of an invoice is a pure
function of its payment list, so re-deriving it from the same payments
always gives the same balance and status.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from .log import get_logger
from .periods import DateLike, as_day
from .records import ZERO, Invoice, InvoicePayment

logger = get_logger(__name__)

EDITOR_STATUSES: tuple[str, ...] = ("draft", "sent")
OPEN_STATUSES: tuple[str, ...] = ("outstanding", "partial", "overdue")


@dataclass(frozen=True)
class InvoicePosition:
    """
    Derived state of one invoice.

    Attributes:
        invoice_id: Invoice identifier.
        project_id: Project the invoice belongs to.
        total_amount: Invoice total.
        paid_amount: Sum of the payments recorded against the invoice.
        balance: total_amount - paid_amount (negative when over-paid).
        status: Derived status (see module docstring).
        overpaid: True when the payments exceed the invoice total.
    """

    invoice_id: str
    project_id: str
    total_amount: Decimal
    paid_amount: Decimal
    balance: Decimal
    status: str
    overpaid: bool = False


def derive_status(
    invoice: Invoice,
    balance: Decimal,
    now: DateLike,
) -> str:
    """Derive an invoice status from its balance and due date."""
    if balance <= 0:
        return "paid"
    if balance < invoice.total_amount:
        return "partial"

    if invoice.due_date is not None and as_day(now) > invoice.due_date:
        return "overdue"
    if invoice.status in EDITOR_STATUSES:
        return invoice.status
    return "outstanding"


def invoice_position(
    invoice: Invoice,
    payments: Iterable[InvoicePayment],
    now: DateLike,
) -> InvoicePosition:
    """
    Compute the balance and status of an invoice from its payments.

    Payments recorded against other invoices are ignored, so the full
    payment collection can be passed as is.
    """
    paid = ZERO
    for p in payments:
        if p.invoice_id != invoice.id:
            continue
        paid += p.amount

    balance = invoice.total_amount - paid
    overpaid = balance < 0
    if overpaid:
        logger.warning(
            "invoice_overpaid",
            invoice_id=invoice.id,
            total=str(invoice.total_amount),
            paid=str(paid),
        )

    return InvoicePosition(
        invoice_id=invoice.id,
        project_id=invoice.project_id,
        total_amount=invoice.total_amount,
        paid_amount=paid,
        balance=balance,
        status=derive_status(invoice, balance, now),
        overpaid=overpaid,
    )


def apply_payment(
    invoice: Invoice,
    payment: InvoicePayment,
    now: DateLike,
    previous_payments: Iterable[InvoicePayment] = (),
) -> InvoicePosition:
    """
    Append a payment to an invoice and return the resulting position.

    Raises:
        ValueError: if the payment is addressed to another invoice.
    """
    if payment.invoice_id != invoice.id:
        raise ValueError(
            f"Payment {payment.id} belongs to invoice {payment.invoice_id}, "
            f"not {invoice.id}."
        )
    return invoice_position(invoice, [*previous_payments, payment], now)


def invoice_ledger(
    invoices: Iterable[Invoice],
    payments: Iterable[InvoicePayment],
    now: DateLike,
) -> list[InvoicePosition]:
    """
    Positions of every invoice, in input order.

    Payments whose invoice is not in ``invoices`` are ignored.
    """
    invoice_list = list(invoices)
    known = {inv.id for inv in invoice_list}

    by_invoice: dict[str, list[InvoicePayment]] = {inv_id: [] for inv_id in known}
    for p in payments:
        if p.invoice_id not in known:
            logger.debug("orphan_payment_ignored", payment_id=p.id, invoice_id=p.invoice_id)
            continue
        by_invoice[p.invoice_id].append(p)

    return [invoice_position(inv, by_invoice[inv.id], now) for inv in invoice_list]


def outstanding_total(positions: Iterable[InvoicePosition]) -> Decimal:
    """Sum of the balances still owed on outstanding, partial and overdue invoices."""
    total = ZERO
    for pos in positions:
        if pos.status in OPEN_STATUSES:
            total += pos.balance
    return total
