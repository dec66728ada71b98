from datetime import date
from decimal import Decimal

import pytest

from onsite_finsight.invoices import (
    apply_payment,
    derive_status,
    invoice_ledger,
    invoice_position,
    outstanding_total,
)
from onsite_finsight.records import Invoice, InvoicePayment

NOW = date(2025, 5, 20)


def invoice(inv_id="inv1", total=500, status="sent", due=date(2025, 6, 30)) -> Invoice:
    return Invoice(
        id=inv_id,
        project_id="p1",
        total_amount=total,
        status=status,
        due_date=due,
    )


def payment(pid, amount, inv_id="inv1", day=date(2025, 5, 1)) -> InvoicePayment:
    return InvoicePayment(id=pid, invoice_id=inv_id, amount=amount, payment_date=day)


def test_partial_payment_leaves_balance_and_partial_status() -> None:
    pos = apply_payment(invoice(), payment("pay1", 200), now=NOW)

    assert pos.paid_amount == Decimal("200")
    assert pos.balance == Decimal("300")
    assert pos.status == "partial"
    assert pos.overpaid is False


def test_full_payment_marks_invoice_paid() -> None:
    inv = invoice()
    first = payment("pay1", 200)

    pos = apply_payment(inv, payment("pay2", 300), previous_payments=[first], now=NOW)

    assert pos.balance == 0
    assert pos.status == "paid"


def test_overpayment_is_paid_and_flagged() -> None:
    pos = invoice_position(invoice(), [payment("pay1", 550)], NOW)

    assert pos.status == "paid"
    assert pos.balance == Decimal("-50")
    assert pos.overpaid is True


@pytest.mark.parametrize(
    "stored, due, expected",
    [
        ("sent", date(2025, 6, 30), "sent"),
        ("draft", date(2025, 6, 30), "draft"),
        ("draft", None, "draft"),
        ("outstanding", date(2025, 6, 30), "outstanding"),
        # a stale stored status is re-derived
        ("paid", date(2025, 6, 30), "outstanding"),
        ("sent", date(2025, 5, 1), "overdue"),
        ("outstanding", date(2025, 5, 19), "overdue"),
        # due today is not yet overdue
        ("outstanding", date(2025, 5, 20), "outstanding"),
    ],
)
def test_unpaid_invoice_status(stored, due, expected) -> None:
    pos = invoice_position(invoice(status=stored, due=due), [], NOW)

    assert pos.balance == Decimal("500")
    assert pos.status == expected


def test_partially_paid_invoice_past_due_stays_partial() -> None:
    inv = invoice(due=date(2025, 1, 31))

    assert derive_status(inv, Decimal("100"), NOW) == "partial"


def test_position_is_a_pure_function_of_payments() -> None:
    inv = invoice()
    payments = [payment("pay1", 100), payment("pay2", 150)]

    once = invoice_position(inv, payments, NOW)
    twice = invoice_position(inv, payments, NOW)
    stepwise = apply_payment(inv, payments[1], previous_payments=payments[:1], now=NOW)

    assert once == twice == stepwise


def test_payments_for_other_invoices_are_ignored() -> None:
    pos = invoice_position(invoice(), [payment("pay1", 100), payment("x", 400, "inv2")], NOW)

    assert pos.paid_amount == Decimal("100")


def test_apply_payment_rejects_payment_for_another_invoice() -> None:
    with pytest.raises(ValueError, match="belongs to invoice inv2"):
        apply_payment(invoice(), payment("pay1", 100, inv_id="inv2"), now=NOW)


def test_invoice_payment_must_be_positive() -> None:
    with pytest.raises(ValueError, match="positive"):
        payment("pay0", 0)


def test_ledger_keeps_input_order_and_ignores_orphans() -> None:
    invoices = [invoice("inv2", total=100), invoice("inv1", total=500)]
    payments = [
        payment("pay1", 200, "inv1"),
        payment("pay2", 100, "inv2"),
        payment("pay3", 999, "deleted"),
    ]

    positions = invoice_ledger(invoices, payments, NOW)

    assert [p.invoice_id for p in positions] == ["inv2", "inv1"]
    assert [p.status for p in positions] == ["paid", "partial"]


def test_outstanding_total_sums_open_balances_only() -> None:
    invoices = [
        invoice("inv1", total=500),  # partial, 300 owed
        invoice("inv2", total=100),  # paid
        invoice("inv3", total=250, status="outstanding", due=date(2025, 1, 1)),  # overdue
        invoice("inv4", total=700, status="draft"),  # not billed yet
    ]
    payments = [payment("pay1", 200, "inv1"), payment("pay2", 100, "inv2")]

    positions = invoice_ledger(invoices, payments, NOW)

    assert outstanding_total(positions) == Decimal("550")
