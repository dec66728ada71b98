from decimal import Decimal

import pytest

from onsite_finsight.budget import (
    budget_alerts,
    category_rollups,
    line_variance,
    project_rollup,
    project_rollups,
)
from onsite_finsight.records import BudgetLineItem


def item(item_id, budgeted, actual, project="p1", category="Materials") -> BudgetLineItem:
    return BudgetLineItem(
        id=item_id,
        project_id=project,
        category=category,
        budgeted_amount=budgeted,
        actual_amount=actual,
    )


def test_over_budget_line_has_negative_variance() -> None:
    v = line_variance(item("b1", 1000, 1200))

    assert v.variance == Decimal("-200")
    assert v.variance_percentage == Decimal("-20")


def test_under_budget_line_has_positive_variance() -> None:
    v = line_variance(item("b1", 800, 600))

    assert v.variance == Decimal("200")
    assert v.variance_percentage == Decimal("25")


def test_zero_budget_gives_zero_percentage() -> None:
    v = line_variance(item("b1", 0, 150))

    assert v.variance == Decimal("-150")
    assert v.variance_percentage == 0


def test_project_rollup_sums_line_items() -> None:
    rollup = project_rollup(
        [item("b1", 1000, 1200), item("b2", 1000, 600, category="Labor")]
    )

    assert rollup.project_id == "p1"
    assert rollup.total_budgeted == Decimal("2000")
    assert rollup.total_actual == Decimal("1800")
    assert rollup.total_variance == Decimal("200")
    assert rollup.total_variance_percentage == Decimal("10")
    assert rollup.over_budget is False


@pytest.mark.parametrize(
    "items",
    [
        [],
        [item("b1", 10, 5, project="p1"), item("b2", 10, 5, project="p2")],
    ],
)
def test_project_rollup_requires_a_single_project(items) -> None:
    with pytest.raises(ValueError):
        project_rollup(items)


def test_project_rollups_group_by_project_in_order() -> None:
    items = [
        item("b1", 100, 50, project="p2"),
        item("b2", 1000, 1500, project="p1"),
        item("b3", 200, 100, project="p2"),
    ]

    rollups = project_rollups(items)

    assert [r.project_id for r in rollups] == ["p2", "p1"]
    assert rollups[0].total_budgeted == Decimal("300")
    assert rollups[1].over_budget is True


def test_category_rollups_for_one_project() -> None:
    items = [
        item("b1", 100, 120, category="Materials"),
        item("b2", 50, 30, category="Materials"),
        item("b3", 400, 400, category="Labor"),
        item("b4", 999, 1, project="p2", category="Materials"),
    ]

    rollups = {r.category: r for r in category_rollups(items, "p1")}

    assert set(rollups) == {"Materials", "Labor"}
    assert rollups["Materials"].total_actual == Decimal("150")
    assert rollups["Labor"].total_variance == 0


def test_alerts_only_for_projects_strictly_over_budget() -> None:
    items = [
        item("b1", 1000, 1200, project="p1"),
        item("b2", 1000, 900, project="p1", category="Labor"),
        item("b3", 500, 500, project="p2"),
        item("b4", 200, 250, project="p3"),
    ]
    rollups = project_rollups(items)

    alerts = budget_alerts(rollups)

    assert [a.project_id for a in alerts] == ["p1", "p3"]
    assert alerts[0].overspend_amount == Decimal("100")
    assert alerts[0].overspend_percentage == Decimal("5")
    assert alerts[1].overspend_percentage == Decimal("25")


def test_alerts_are_recomputed_on_each_call() -> None:
    rollups = project_rollups([item("b1", 100, 150)])

    assert budget_alerts(rollups) == budget_alerts(rollups)
    assert len(budget_alerts(rollups)) == 1
