# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Report assembly for OnSite FinSight.

This module provides the high-level entry point that turns one snapshot of
records into everything a finance dashboard or export needs, in a single
pass.

Overview
--------
``build_report(snapshot, timeframe, now, project_id=None, from_date=None,
to_date=None)``:

0. optionally narrows the snapshot to one project and/or a date range
   (``scope_snapshot``);
1. builds the period buckets for the requested timeframe (periods.py);
2. sums payments (revenue) and expenses per bucket (engine.py) and adds
   the amortized recurring costs of each bucket (recurring.py);
3. computes per-project profitability and per-category expense breakdowns
   over the whole (scoped) snapshot (engine.py);
4. rolls up budget line items per project and per category, and raises an
   alert for every over-budget project (budget.py);
5. derives the balance and status of every invoice (invoices.py);
6. computes the headline figures of the finance dashboard.

Every step is a pure function of the snapshot, the timeframe, the scope and
``now``; nothing is cached between calls.

Output
------
``FinancialReport`` holds typed rows. ``FinancialReport.to_dict()`` renders
the JSON-friendly structure consumed by dashboards and exports:

    {
      "periods":          [{label, revenue, expense, profit, isFuture, ...}],
      "byProject":        [{id, name, revenue, expense, profit, margin}],
      "byCategory":       [{category, amount, percentageOfTotal}],
      "budgetAlerts":     [{projectId, overspendAmount, overspendPercentage}],
      "budgetByCategory": [{projectId, category, totalBudgeted, ...}],
      "invoices":         [...],
      "summary":          {...}
    }
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from .budget import (
    BudgetAlert,
    BudgetRollup,
    budget_alerts,
    category_rollups,
    project_rollups,
)
from .engine import (
    CategorySummary,
    ProjectSummary,
    Transaction,
    aggregate_by_category,
    aggregate_by_period,
    aggregate_by_project,
    percentage,
    recent_transactions,
    total_amount,
)
from .invoices import InvoicePosition, invoice_ledger, outstanding_total
from .log import get_logger
from .periods import DateLike, as_day, build_buckets
from .records import KIND_EXPENSE, KIND_PAYMENT, LedgerSnapshot
from .recurring import monthly_recurring_cost, recurring_for_bucket

logger = get_logger(__name__)


@dataclass(frozen=True)
class PeriodSummary:
    """
    Revenue and expense of one period bucket.

    ``expense`` includes the amortized ``recurring`` cost of the bucket.
    """

    label: str
    start: date
    end: date
    revenue: Decimal
    expense: Decimal
    recurring: Decimal
    profit: Decimal
    is_future: bool


@dataclass(frozen=True)
class FinancialSummary:
    """Headline figures of the finance dashboard."""

    total_revenue: Decimal
    total_expenses: Decimal
    profit: Decimal
    profit_margin: Decimal
    outstanding_invoices: Decimal
    monthly_recurring_cost: Decimal
    recent_transactions: list[Transaction] = field(default_factory=list)


@dataclass(frozen=True)
class FinancialReport:
    """
    Everything computed from one snapshot for one timeframe.

    ``project_id``, ``from_date`` and ``to_date`` record the scope the
    report was built for (None when unrestricted).
    """

    timeframe: str
    generated_for: date
    periods: list[PeriodSummary]
    by_project: list[ProjectSummary]
    by_category: list[CategorySummary]
    budget_alerts: list[BudgetAlert]
    budget_by_category: list[BudgetRollup]
    invoices: list[InvoicePosition]
    summary: FinancialSummary
    project_id: Optional[str] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly rendering; amounts become floats, dates ISO strings."""
        return {
            "timeframe": self.timeframe,
            "generatedFor": self.generated_for.isoformat(),
            "projectId": self.project_id,
            "dateRange": {
                "start": self.from_date.isoformat() if self.from_date else None,
                "end": self.to_date.isoformat() if self.to_date else None,
            },
            "periods": [
                {
                    "label": p.label,
                    "start": p.start.isoformat(),
                    "end": p.end.isoformat(),
                    "revenue": float(p.revenue),
                    "expense": float(p.expense),
                    "recurring": float(p.recurring),
                    "profit": float(p.profit),
                    "isFuture": p.is_future,
                }
                for p in self.periods
            ],
            "byProject": [
                {
                    "id": s.id,
                    "name": s.name,
                    "revenue": float(s.revenue),
                    "expense": float(s.expense),
                    "profit": float(s.profit),
                    "margin": float(s.margin),
                }
                for s in self.by_project
            ],
            "byCategory": [
                {
                    "category": c.category,
                    "amount": float(c.amount),
                    "percentageOfTotal": float(c.percentage_of_total),
                }
                for c in self.by_category
            ],
            "budgetAlerts": [
                {
                    "projectId": a.project_id,
                    "overspendAmount": float(a.overspend_amount),
                    "overspendPercentage": float(a.overspend_percentage),
                }
                for a in self.budget_alerts
            ],
            "budgetByCategory": [
                {
                    "projectId": r.project_id,
                    "category": r.category,
                    "totalBudgeted": float(r.total_budgeted),
                    "totalActual": float(r.total_actual),
                    "totalVariance": float(r.total_variance),
                    "totalVariancePercentage": float(r.total_variance_percentage),
                    "overBudget": r.over_budget,
                }
                for r in self.budget_by_category
            ],
            "invoices": [
                {
                    "invoiceId": i.invoice_id,
                    "projectId": i.project_id,
                    "totalAmount": float(i.total_amount),
                    "paidAmount": float(i.paid_amount),
                    "balance": float(i.balance),
                    "status": i.status,
                    "overpaid": i.overpaid,
                }
                for i in self.invoices
            ],
            "summary": {
                "totalRevenue": float(self.summary.total_revenue),
                "totalExpenses": float(self.summary.total_expenses),
                "profit": float(self.summary.profit),
                "profitMargin": float(self.summary.profit_margin),
                "outstandingInvoices": float(self.summary.outstanding_invoices),
                "monthlyRecurringCost": float(self.summary.monthly_recurring_cost),
                "recentTransactions": [
                    {
                        "id": t.id,
                        "date": t.date.isoformat(),
                        "kind": t.kind,
                        "amount": float(t.amount),
                        "description": t.description,
                    }
                    for t in self.summary.recent_transactions
                ],
            },
        }


def scope_snapshot(
    snapshot: LedgerSnapshot,
    project_id: Optional[str] = None,
    from_date: Optional[DateLike] = None,
    to_date: Optional[DateLike] = None,
) -> LedgerSnapshot:
    """
    Narrow a snapshot to one project and/or a date range.

    With ``project_id``, every collection keeps only the rows of that
    project: expenses, payments, recurring expenses, budget items, invoices,
    the payments of the kept invoices, and the project itself. Rows without
    a project are dropped.

    With ``from_date`` / ``to_date`` (inclusive, either may be omitted),
    dated expenses and payments outside the range are dropped. Recurring
    definitions, budgets and invoices are not dated records and are kept.

    Raises:
        ValueError: if ``to_date`` is before ``from_date``, or if the
            snapshot lists projects and ``project_id`` is not one of them.
    """
    start = as_day(from_date) if from_date is not None else None
    end = as_day(to_date) if to_date is not None else None
    if start is not None and end is not None and end < start:
        raise ValueError("Report end date cannot be before start date.")

    expenses = snapshot.expenses
    payments = snapshot.payments
    recurring = snapshot.recurring_expenses
    budget_items = snapshot.budget_items
    invoices = snapshot.invoices
    invoice_payments = snapshot.invoice_payments
    projects = snapshot.projects

    # 1) Project scope
    if project_id is not None:
        if projects and project_id not in {p.id for p in projects}:
            raise ValueError(f"Unknown project: {project_id!r}")
        expenses = tuple(r for r in expenses if r.project_id == project_id)
        payments = tuple(r for r in payments if r.project_id == project_id)
        recurring = tuple(d for d in recurring if d.project_id == project_id)
        budget_items = tuple(b for b in budget_items if b.project_id == project_id)
        invoices = tuple(i for i in invoices if i.project_id == project_id)
        kept = {i.id for i in invoices}
        invoice_payments = tuple(p for p in invoice_payments if p.invoice_id in kept)
        projects = tuple(p for p in projects if p.id == project_id)

    # 2) Date range on dated money records
    if start is not None:
        expenses = tuple(r for r in expenses if r.date >= start)
        payments = tuple(r for r in payments if r.date >= start)
    if end is not None:
        expenses = tuple(r for r in expenses if r.date <= end)
        payments = tuple(r for r in payments if r.date <= end)

    return LedgerSnapshot(
        expenses=expenses,
        payments=payments,
        recurring_expenses=recurring,
        budget_items=budget_items,
        invoices=invoices,
        invoice_payments=invoice_payments,
        projects=projects,
    )


def build_period_series(
    snapshot: LedgerSnapshot,
    timeframe: str,
    now: DateLike,
    anchor: Optional[DateLike] = None,
) -> list[PeriodSummary]:
    """
    Revenue, expense and profit per bucket of a timeframe.

    Dated expenses and amortized recurring costs are added together; a
    recurring cost only reaches a bucket through the inclusion policy of
    recurring.py, so it is never counted twice.
    """
    buckets = build_buckets(timeframe, anchor=anchor if anchor is not None else now, now=now)
    records = snapshot.money_records

    revenue = aggregate_by_period(records, buckets, KIND_PAYMENT)
    expenses = aggregate_by_period(records, buckets, KIND_EXPENSE)

    out: list[PeriodSummary] = []
    for i, bucket in enumerate(buckets):
        recurring = recurring_for_bucket(snapshot.recurring_expenses, bucket, now)
        expense = expenses[i] + recurring
        out.append(
            PeriodSummary(
                label=bucket.label,
                start=bucket.start,
                end=bucket.end,
                revenue=revenue[i],
                expense=expense,
                recurring=recurring,
                profit=revenue[i] - expense,
                is_future=bucket.is_future,
            )
        )
    return out


def build_budget_by_category(snapshot: LedgerSnapshot) -> list[BudgetRollup]:
    """Per-category budget rollups of every project, grouped by project."""
    rollups: list[BudgetRollup] = []
    for project in project_rollups(snapshot.budget_items):
        rollups.extend(category_rollups(snapshot.budget_items, project.project_id))
    return rollups


def build_summary(
    snapshot: LedgerSnapshot,
    invoices: list[InvoicePosition],
    recent_limit: int = 10,
) -> FinancialSummary:
    """Headline totals over the whole snapshot."""
    records = snapshot.money_records
    revenue = total_amount(records, KIND_PAYMENT)
    expenses = total_amount(records, KIND_EXPENSE)
    profit = revenue - expenses
    return FinancialSummary(
        total_revenue=revenue,
        total_expenses=expenses,
        profit=profit,
        profit_margin=percentage(profit, revenue),
        outstanding_invoices=outstanding_total(invoices),
        monthly_recurring_cost=monthly_recurring_cost(snapshot.recurring_expenses),
        recent_transactions=recent_transactions(records, limit=recent_limit),
    )


def build_report(
    snapshot: LedgerSnapshot,
    timeframe: str,
    now: DateLike,
    project_id: Optional[str] = None,
    from_date: Optional[DateLike] = None,
    to_date: Optional[DateLike] = None,
) -> FinancialReport:
    """
    Compute the full financial report for one snapshot and timeframe.

    Parameters
    ----------
    snapshot :
        Consistent snapshot of all record collections.
    timeframe :
        One of '6months', 'year', '2years', 'quarterly', 'forecast'.
    now :
        Reporting date. The engine never reads the clock; callers pass the
        real date in production and a fixed one in tests.
    project_id :
        Restrict the report to one project (see ``scope_snapshot``).
    from_date, to_date :
        Restrict dated expenses and payments to an inclusive range.

    Returns
    -------
    FinancialReport

    Raises
    ------
    ValueError
        On an unknown timeframe or project, an inverted date range, or
        invalid record values.
    """
    today = as_day(now)
    scoped = scope_snapshot(snapshot, project_id, from_date, to_date)

    periods = build_period_series(scoped, timeframe, today)
    by_project = aggregate_by_project(scoped.money_records, scoped.projects)
    by_category = aggregate_by_category(scoped.expenses)
    alerts = budget_alerts(project_rollups(scoped.budget_items))
    budget_by_category = build_budget_by_category(scoped)
    invoices = invoice_ledger(scoped.invoices, scoped.invoice_payments, today)
    summary = build_summary(scoped, invoices)

    logger.info(
        "report_built",
        timeframe=timeframe,
        now=today.isoformat(),
        project_id=project_id,
        periods=len(periods),
        projects=len(by_project),
        categories=len(by_category),
        budget_alerts=len(alerts),
        invoices=len(invoices),
    )

    return FinancialReport(
        timeframe=timeframe,
        generated_for=today,
        periods=periods,
        by_project=by_project,
        by_category=by_category,
        budget_alerts=alerts,
        budget_by_category=budget_by_category,
        invoices=invoices,
        summary=summary,
        project_id=project_id,
        from_date=as_day(from_date) if from_date is not None else None,
        to_date=as_day(to_date) if to_date is not None else None,
    )
