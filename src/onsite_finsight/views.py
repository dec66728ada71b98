# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for OnSite FinSight.

This module turns a FinancialReport into pandas DataFrames, one per section,
ready for console display or CSV export. Decimal amounts are rounded to the
requested number of decimals and converted to floats here; the engine itself
never rounds.

Sections and columns:

- periods:    label, start, end, revenue, expense, recurring, profit, is_future
- projects:   id, name, revenue, expense, profit, margin_pct
- categories: category, amount, percentage_of_total
- alerts:     project_id, overspend_amount, overspend_pct
- budget:     project_id, category, total_budgeted, total_actual,
              total_variance, variance_pct, over_budget
- invoices:   invoice_id, project_id, total_amount, paid_amount, balance,
              status, overpaid
- summary:    metric, value
"""

from decimal import Decimal

import pandas as pd

from .report import FinancialReport

SECTION_COLUMNS: dict[str, list[str]] = {
    "periods": [
        "label",
        "start",
        "end",
        "revenue",
        "expense",
        "recurring",
        "profit",
        "is_future",
    ],
    "projects": ["id", "name", "revenue", "expense", "profit", "margin_pct"],
    "categories": ["category", "amount", "percentage_of_total"],
    "alerts": ["project_id", "overspend_amount", "overspend_pct"],
    "budget": [
        "project_id",
        "category",
        "total_budgeted",
        "total_actual",
        "total_variance",
        "variance_pct",
        "over_budget",
    ],
    "invoices": [
        "invoice_id",
        "project_id",
        "total_amount",
        "paid_amount",
        "balance",
        "status",
        "overpaid",
    ],
    "summary": ["metric", "value"],
}


def _num(value: Decimal, decimals: int) -> float:
    return round(float(value), decimals)


def _frame(section: str, rows: list[dict[str, object]]) -> pd.DataFrame:
    """Build a DataFrame with a stable column order, even when empty."""
    columns = SECTION_COLUMNS[section]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows)[columns]


def periods_to_dataframe(report: FinancialReport, decimals: int = 2) -> pd.DataFrame:
    rows: list[dict[str, object]] = [
        {
            "label": p.label,
            "start": p.start.isoformat(),
            "end": p.end.isoformat(),
            "revenue": _num(p.revenue, decimals),
            "expense": _num(p.expense, decimals),
            "recurring": _num(p.recurring, decimals),
            "profit": _num(p.profit, decimals),
            "is_future": p.is_future,
        }
        for p in report.periods
    ]
    return _frame("periods", rows)


def projects_to_dataframe(report: FinancialReport, decimals: int = 2) -> pd.DataFrame:
    rows: list[dict[str, object]] = [
        {
            "id": s.id,
            "name": s.name,
            "revenue": _num(s.revenue, decimals),
            "expense": _num(s.expense, decimals),
            "profit": _num(s.profit, decimals),
            "margin_pct": _num(s.margin, decimals),
        }
        for s in report.by_project
    ]
    return _frame("projects", rows)


def categories_to_dataframe(report: FinancialReport, decimals: int = 2) -> pd.DataFrame:
    rows: list[dict[str, object]] = [
        {
            "category": c.category,
            "amount": _num(c.amount, decimals),
            "percentage_of_total": _num(c.percentage_of_total, decimals),
        }
        for c in report.by_category
    ]
    return _frame("categories", rows)


def alerts_to_dataframe(report: FinancialReport, decimals: int = 2) -> pd.DataFrame:
    rows: list[dict[str, object]] = [
        {
            "project_id": a.project_id,
            "overspend_amount": _num(a.overspend_amount, decimals),
            "overspend_pct": _num(a.overspend_percentage, decimals),
        }
        for a in report.budget_alerts
    ]
    return _frame("alerts", rows)


def budget_to_dataframe(report: FinancialReport, decimals: int = 2) -> pd.DataFrame:
    rows: list[dict[str, object]] = [
        {
            "project_id": r.project_id,
            "category": r.category,
            "total_budgeted": _num(r.total_budgeted, decimals),
            "total_actual": _num(r.total_actual, decimals),
            "total_variance": _num(r.total_variance, decimals),
            "variance_pct": _num(r.total_variance_percentage, decimals),
            "over_budget": r.over_budget,
        }
        for r in report.budget_by_category
    ]
    return _frame("budget", rows)


def invoices_to_dataframe(report: FinancialReport, decimals: int = 2) -> pd.DataFrame:
    rows: list[dict[str, object]] = [
        {
            "invoice_id": i.invoice_id,
            "project_id": i.project_id,
            "total_amount": _num(i.total_amount, decimals),
            "paid_amount": _num(i.paid_amount, decimals),
            "balance": _num(i.balance, decimals),
            "status": i.status,
            "overpaid": i.overpaid,
        }
        for i in report.invoices
    ]
    return _frame("invoices", rows)


def summary_to_dataframe(report: FinancialReport, decimals: int = 2) -> pd.DataFrame:
    s = report.summary
    rows: list[dict[str, object]] = [
        {"metric": "total_revenue", "value": _num(s.total_revenue, decimals)},
        {"metric": "total_expenses", "value": _num(s.total_expenses, decimals)},
        {"metric": "profit", "value": _num(s.profit, decimals)},
        {"metric": "profit_margin_pct", "value": _num(s.profit_margin, decimals)},
        {"metric": "outstanding_invoices", "value": _num(s.outstanding_invoices, decimals)},
        {
            "metric": "monthly_recurring_cost",
            "value": _num(s.monthly_recurring_cost, decimals),
        },
    ]
    return _frame("summary", rows)


def report_to_dataframes(report: FinancialReport, decimals: int = 2) -> dict[str, pd.DataFrame]:
    """
    Convert every section of a report into a DataFrame.

    Returns:
        A dict keyed by section name (see ``SECTION_COLUMNS``), in display
        order.
    """
    return {
        "summary": summary_to_dataframe(report, decimals),
        "periods": periods_to_dataframe(report, decimals),
        "projects": projects_to_dataframe(report, decimals),
        "categories": categories_to_dataframe(report, decimals),
        "alerts": alerts_to_dataframe(report, decimals),
        "budget": budget_to_dataframe(report, decimals),
        "invoices": invoices_to_dataframe(report, decimals),
    }
