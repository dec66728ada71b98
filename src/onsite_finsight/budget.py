# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Budget variance calculations.

Variance is budgeted minus actual: a positive variance means the project
(or line item) is under budget, a negative one that it is over budget.
The variance percentage is expressed against the budgeted amount and is
0 when nothing was budgeted.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from .engine import percentage
from .records import ZERO, BudgetLineItem


@dataclass(frozen=True)
class Variance:
    """Variance of a single budget line item."""

    variance: Decimal
    variance_percentage: Decimal


@dataclass(frozen=True)
class BudgetRollup:
    """
    Totals of a group of budget line items (a project, or one category of
    a project).
    """

    project_id: str
    total_budgeted: Decimal
    total_actual: Decimal
    total_variance: Decimal
    total_variance_percentage: Decimal
    category: str = ""

    @property
    def over_budget(self) -> bool:
        return self.total_actual > self.total_budgeted


@dataclass(frozen=True)
class BudgetAlert:
    """An over-budget project, as surfaced by reports."""

    project_id: str
    overspend_amount: Decimal
    overspend_percentage: Decimal


def line_variance(item: BudgetLineItem) -> Variance:
    """Variance and variance percentage of one line item."""
    variance = item.budgeted_amount - item.actual_amount
    return Variance(
        variance=variance,
        variance_percentage=percentage(variance, item.budgeted_amount),
    )


def _rollup(project_id: str, items: Iterable[BudgetLineItem], category: str = "") -> BudgetRollup:
    budgeted = ZERO
    actual = ZERO
    for item in items:
        budgeted += item.budgeted_amount
        actual += item.actual_amount
    variance = budgeted - actual
    return BudgetRollup(
        project_id=project_id,
        total_budgeted=budgeted,
        total_actual=actual,
        total_variance=variance,
        total_variance_percentage=percentage(variance, budgeted),
        category=category,
    )


def project_rollup(items: Iterable[BudgetLineItem]) -> BudgetRollup:
    """
    Roll up the line items of a single project.

    Raises:
        ValueError: if the items are empty or belong to several projects.
    """
    item_list = list(items)
    project_ids = {item.project_id for item in item_list}
    if len(project_ids) != 1:
        raise ValueError(
            "project_rollup expects items of exactly one project "
            f"(got {len(project_ids)})."
        )
    return _rollup(project_ids.pop(), item_list)


def project_rollups(items: Iterable[BudgetLineItem]) -> list[BudgetRollup]:
    """Roll up line items per project, in order of first appearance."""
    grouped: dict[str, list[BudgetLineItem]] = {}
    for item in items:
        grouped.setdefault(item.project_id, []).append(item)
    return [_rollup(project_id, group) for project_id, group in grouped.items()]


def category_rollups(items: Iterable[BudgetLineItem], project_id: str) -> list[BudgetRollup]:
    """Roll up the line items of one project per category."""
    grouped: dict[str, list[BudgetLineItem]] = {}
    for item in items:
        if item.project_id != project_id:
            continue
        grouped.setdefault(item.category, []).append(item)
    return [
        _rollup(project_id, group, category=category)
        for category, group in grouped.items()
    ]


def budget_alerts(rollups: Iterable[BudgetRollup]) -> list[BudgetAlert]:
    """
    One alert per over-budget rollup (actual strictly above budgeted).

    Each call is independent: alerts are neither deduplicated nor throttled.
    """
    alerts: list[BudgetAlert] = []
    for rollup in rollups:
        if not rollup.over_budget:
            continue
        overspend = rollup.total_actual - rollup.total_budgeted
        alerts.append(
            BudgetAlert(
                project_id=rollup.project_id,
                overspend_amount=overspend,
                overspend_percentage=percentage(overspend, rollup.total_budgeted),
            )
        )
    return alerts
