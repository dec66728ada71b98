# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Core ledger aggregation engine for OnSite FinSight.

This module folds dated money movements (expenses and client payments)
into the three groupings used by reports:

1. By period
   ---------
   ``aggregate_by_period(records, buckets, kind)`` sums the records of one
   kind into the calendar buckets produced by periods.py. Each record lands
   in the unique bucket containing its date; records outside every bucket
   are dropped silently, since they are outside the requested window.

2. By project
   ----------
   ``aggregate_by_project(records, projects)`` computes revenue (payments),
   expense (expenses), profit and margin for each known project. Projects
   with neither revenue nor expense are left out of the result.

3. By category
   -----------
   ``aggregate_by_category(records)`` sums expenses per category and
   expresses each category as a percentage of *all* expenses supplied.
   Callers that want period-scoped percentages must filter first.

Notes
-----
The engine never reads the clock and never mutates its inputs. All sums
are Decimal; rounding for display happens in views.py.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from .periods import PeriodBucket, bucket_index_for
from .records import KIND_EXPENSE, KIND_PAYMENT, RECORD_KINDS, ZERO, MoneyRecord, Project

HUNDRED = Decimal(100)
UNCATEGORIZED = "Other"


@dataclass(frozen=True)
class ProjectSummary:
    """
    Profitability of one project.

    Attributes
    ----------
    id, name :
        Project identifier and display name.
    revenue :
        Sum of client payments recorded for the project.
    expense :
        Sum of expenses recorded for the project.
    profit :
        revenue - expense.
    margin :
        profit / revenue x 100, or 0 when there is no revenue.
    """

    id: str
    name: str
    revenue: Decimal
    expense: Decimal
    profit: Decimal
    margin: Decimal


@dataclass(frozen=True)
class CategorySummary:
    """Total expense of one category and its share of all expenses."""

    category: str
    amount: Decimal
    percentage_of_total: Decimal


@dataclass(frozen=True)
class Transaction:
    """A money movement as shown in a "recent activity" list."""

    id: str
    date: date
    kind: str
    amount: Decimal
    description: str


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole x 100, defined as 0 when ``whole`` is 0."""
    if whole == 0:
        return ZERO
    return part / whole * HUNDRED


def aggregate_by_period(
    records: Iterable[MoneyRecord],
    buckets: Sequence[PeriodBucket],
    kind: str,
) -> list[Decimal]:
    """Sum the records of one kind into period buckets.

    Args:
        records: Money records (any mix of kinds).
        buckets: Chronologically ordered buckets, as built by periods.py.
        kind: 'expense' or 'payment'; records of the other kind are ignored.

    Returns:
        One amount per bucket, in bucket order. Buckets with no record
        have an amount of 0.

    Raises:
        ValueError: if ``kind`` is unknown or a record has a negative amount.
    """
    if kind not in RECORD_KINDS:
        raise ValueError(f"Unknown record kind: {kind!r}")

    # 1) One accumulator per bucket, so empty buckets still show up as 0.
    amounts: list[Decimal] = [ZERO for _ in buckets]

    # 2) Route each record to the bucket containing its date.
    for r in records:
        if r.kind != kind:
            continue
        if r.amount < 0:
            raise ValueError(f"Record {r.id} has a negative amount ({r.amount}).")
        index = bucket_index_for(buckets, r.date)
        if index is None:
            continue
        amounts[index] += r.amount

    return amounts


def aggregate_by_project(
    records: Iterable[MoneyRecord],
    projects: Iterable[Project],
) -> list[ProjectSummary]:
    """Compute revenue, expense, profit and margin per project.

    Only projects listed in ``projects`` are reported; records without a
    project, or pointing at an unknown project, are ignored. Projects with
    zero revenue and zero expense are excluded rather than zero-filled.

    Returns:
        ProjectSummary entries sorted by revenue, highest first.
    """
    # 1) Initialize accumulators for every known project.
    names: dict[str, str] = {}
    revenue: dict[str, Decimal] = {}
    expense: dict[str, Decimal] = {}
    for p in projects:
        names[p.id] = p.name
        revenue[p.id] = ZERO
        expense[p.id] = ZERO

    # 2) Payments feed revenue, expenses feed expense.
    for r in records:
        if r.project_id is None or r.project_id not in names:
            continue
        if r.kind == KIND_PAYMENT:
            revenue[r.project_id] += r.amount
        elif r.kind == KIND_EXPENSE:
            expense[r.project_id] += r.amount

    # 3) Build summaries, dropping projects without any activity.
    out: list[ProjectSummary] = []
    for project_id, name in names.items():
        rev = revenue[project_id]
        exp = expense[project_id]
        if rev == 0 and exp == 0:
            continue
        profit = rev - exp
        out.append(
            ProjectSummary(
                id=project_id,
                name=name,
                revenue=rev,
                expense=exp,
                profit=profit,
                margin=percentage(profit, rev),
            )
        )

    out.sort(key=lambda s: s.revenue, reverse=True)
    return out


def aggregate_by_category(records: Iterable[MoneyRecord]) -> list[CategorySummary]:
    """Sum expenses per category.

    Payments in the input are ignored. Expenses without a category are
    grouped under "Other". The percentage denominator is the total of all
    expense records supplied, not of any period subset.

    Returns:
        CategorySummary entries sorted by amount, highest first.
    """
    totals: dict[str, Decimal] = {}
    grand_total = ZERO
    for r in records:
        if r.kind != KIND_EXPENSE:
            continue
        category = (r.category or "").strip() or UNCATEGORIZED
        totals[category] = totals.get(category, ZERO) + r.amount
        grand_total += r.amount

    out = [
        CategorySummary(
            category=category,
            amount=amount,
            percentage_of_total=percentage(amount, grand_total),
        )
        for category, amount in totals.items()
    ]
    out.sort(key=lambda c: c.amount, reverse=True)
    return out


def total_amount(records: Iterable[MoneyRecord], kind: Optional[str] = None) -> Decimal:
    """Sum of the records, optionally restricted to one kind."""
    total = ZERO
    for r in records:
        if kind is None or r.kind == kind:
            total += r.amount
    return total


def recent_transactions(
    records: Iterable[MoneyRecord],
    limit: int = 10,
) -> list[Transaction]:
    """The ``limit`` most recent money movements, newest first."""
    out: list[Transaction] = []
    for r in records:
        if r.description:
            description = r.description
        elif r.kind == KIND_PAYMENT:
            description = "Payment received"
        else:
            description = f"Expense: {r.category or UNCATEGORIZED}"
        out.append(
            Transaction(
                id=r.id,
                date=r.date,
                kind=r.kind,
                amount=r.amount,
                description=description,
            )
        )
    out.sort(key=lambda t: t.date, reverse=True)
    return out[:limit]
