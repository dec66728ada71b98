from datetime import date
from decimal import Decimal

import pytest

from onsite_finsight.engine import (
    aggregate_by_category,
    aggregate_by_period,
    aggregate_by_project,
    recent_transactions,
    total_amount,
)
from onsite_finsight.periods import build_buckets
from onsite_finsight.records import MoneyRecord, Project


def exp(rid, amount, day, category=None, project=None) -> MoneyRecord:
    return MoneyRecord(
        id=rid,
        kind="expense",
        amount=amount,
        date=day,
        category=category,
        project_id=project,
    )


def pay(rid, amount, day, project=None) -> MoneyRecord:
    return MoneyRecord(id=rid, kind="payment", amount=amount, date=day, project_id=project)


def test_aggregate_by_period_routes_records_and_drops_out_of_window() -> None:
    buckets = build_buckets("6months", anchor=date(2025, 6, 15))  # Jan..Jun 2025
    records = [
        exp("e1", 10, date(2025, 1, 1)),
        exp("e2", 20, date(2025, 3, 31)),
        exp("e3", 30, date(2025, 6, 30)),
        exp("e4", 1000, date(2024, 12, 31)),  # before window
        exp("e5", 2000, date(2025, 7, 1)),  # after window
        pay("p1", 500, date(2025, 2, 1)),  # other kind
    ]

    amounts = aggregate_by_period(records, buckets, "expense")

    assert amounts == [
        Decimal("10"),
        Decimal("0"),
        Decimal("20"),
        Decimal("0"),
        Decimal("0"),
        Decimal("30"),
    ]


@pytest.mark.parametrize("timeframe", ["6months", "year", "2years", "quarterly", "forecast"])
def test_period_sums_equal_sum_of_records_within_window(timeframe) -> None:
    buckets = build_buckets(timeframe, anchor=date(2025, 6, 15))
    first, last = buckets[0].start, buckets[-1].end
    records = [
        pay(f"p{i}", i + 1, date(2023, 1, 1).replace(month=(i % 12) + 1, year=2023 + i // 12))
        for i in range(48)
    ]

    amounts = aggregate_by_period(records, buckets, "payment")
    expected = sum((r.amount for r in records if first <= r.date <= last), Decimal(0))

    assert sum(amounts, Decimal(0)) == expected


def test_aggregate_by_period_rejects_unknown_kind() -> None:
    buckets = build_buckets("6months", anchor=date(2025, 6, 15))

    with pytest.raises(ValueError):
        aggregate_by_period([], buckets, "refund")


def test_aggregate_by_project_computes_profit_and_margin() -> None:
    projects = [Project("p1", "Kitchen"), Project("p2", "Roof"), Project("p3", "Deck")]
    records = [
        pay("pay1", 1000, date(2025, 1, 10), project="p1"),
        exp("e1", 250, date(2025, 1, 12), project="p1"),
        exp("e2", 100, date(2025, 2, 1), project="p2"),
        exp("e3", 75, date(2025, 2, 2), project="p9"),  # unknown project
        exp("e4", 60, date(2025, 2, 3)),  # no project
    ]

    summaries = aggregate_by_project(records, projects)

    assert [s.id for s in summaries] == ["p1", "p2"]
    kitchen, roof = summaries
    assert kitchen.name == "Kitchen"
    assert kitchen.revenue == Decimal("1000")
    assert kitchen.expense == Decimal("250")
    assert kitchen.profit == Decimal("750")
    assert kitchen.margin == Decimal("75")
    # no revenue: margin falls back to 0
    assert roof.profit == Decimal("-100")
    assert roof.margin == 0


def test_aggregate_by_category_uses_all_expenses_as_denominator() -> None:
    records = [
        exp("e1", 300, date(2025, 1, 1), category="Materials"),
        exp("e2", 100, date(2025, 2, 1), category="Labor"),
        exp("e3", 100, date(2025, 3, 1)),
        pay("p1", 5000, date(2025, 3, 2)),
    ]

    categories = aggregate_by_category(records)
    by_name = {c.category: c for c in categories}

    assert categories[0].category == "Materials"
    assert by_name["Materials"].amount == Decimal("300")
    assert by_name["Materials"].percentage_of_total == Decimal("60")
    assert by_name["Labor"].percentage_of_total == Decimal("20")
    assert by_name["Other"].amount == Decimal("100")


def test_aggregate_by_category_empty_input() -> None:
    assert aggregate_by_category([]) == []


def test_zero_expenses_give_zero_percentages() -> None:
    categories = aggregate_by_category([exp("e1", 0, date(2025, 1, 1), category="Fuel")])

    assert categories[0].percentage_of_total == 0


def test_total_amount_by_kind() -> None:
    records = [exp("e1", 10, date(2025, 1, 1)), pay("p1", 25, date(2025, 1, 2))]

    assert total_amount(records) == Decimal("35")
    assert total_amount(records, "payment") == Decimal("25")


def test_recent_transactions_newest_first_and_limited() -> None:
    records = [exp(f"e{i}", i, date(2025, 1, i + 1), category="Fuel") for i in range(12)]
    records.append(pay("p1", 500, date(2025, 2, 1)))

    recent = recent_transactions(records, limit=10)

    assert len(recent) == 10
    assert recent[0].id == "p1"
    assert recent[0].description == "Payment received"
    assert recent[1].id == "e11"
    assert recent[1].description == "Expense: Fuel"
