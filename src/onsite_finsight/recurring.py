# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Amortization of recurring expenses into period buckets.

A recurring expense is defined by an amount and a frequency. Reports need
its per-period equivalent, which is derived from a per-month equivalent:

    weekly     amount x 4.33   (average number of weeks per month)
    monthly    amount
    quarterly  amount / 3
    yearly     amount / 12

A bucket spanning several calendar months (quarterly timeframe) receives
the monthly equivalent times the number of months it covers.

Inclusion policy
----------------
- inactive definitions contribute nothing;
- a definition with a start date contributes to buckets starting on or
  after that date;
- a definition without a start date contributes only to future buckets.
  Historical periods are therefore never inflated with today's list of
  recurring costs, at the cost of undercounting expenses that existed
  before anyone recorded their start date.
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from .log import get_logger
from .periods import DateLike, PeriodBucket
from .records import ZERO, RecurringExpenseDef, to_decimal

logger = get_logger(__name__)

WEEKS_PER_MONTH = Decimal("4.33")

# frequency -> (multiplier, divisor) applied to the amount to get a month
_MONTHLY_FACTORS: dict[str, tuple[Decimal, Decimal]] = {
    "weekly": (WEEKS_PER_MONTH, Decimal(1)),
    "monthly": (Decimal(1), Decimal(1)),
    "quarterly": (Decimal(1), Decimal(3)),
    "yearly": (Decimal(1), Decimal(12)),
}


def monthly_equivalent(defn: RecurringExpenseDef) -> Decimal:
    """
    Per-month equivalent amount of a recurring expense.

    Raises:
        ValueError: if the frequency is not one of weekly, monthly,
            quarterly or yearly, or if the amount is negative.
    """
    try:
        multiplier, divisor = _MONTHLY_FACTORS[defn.frequency]
    except KeyError as exc:
        raise ValueError(
            f"Unknown frequency {defn.frequency!r} on recurring expense {defn.id}."
        ) from exc

    amount = to_decimal(defn.amount)
    if amount < 0:
        raise ValueError(f"Recurring expense {defn.id} has a negative amount.")
    return amount * multiplier / divisor


def is_included(defn: RecurringExpenseDef, bucket: PeriodBucket) -> bool:
    """Whether the inclusion policy lets ``defn`` contribute to ``bucket``."""
    if not defn.is_active:
        return False
    if defn.start_date is not None:
        return bucket.start >= defn.start_date
    return bucket.is_future


def amortized_contribution(
    defn: RecurringExpenseDef,
    bucket: PeriodBucket,
    now: Optional[DateLike] = None,
) -> Decimal:
    """
    Contribution of one recurring expense to one period bucket.

    ``now`` is accepted for symmetry with the other time-sensitive entry
    points; the future/past decision has already been made by the bucketer
    and is carried by ``bucket.is_future``.

    Raises:
        ValueError: on an unknown frequency or a negative amount.
        RuntimeError: if a bucket starting before the expense's start date
            is about to be counted.
    """
    per_month = monthly_equivalent(defn)
    if not is_included(defn, bucket):
        return ZERO

    if defn.start_date is not None and bucket.start < defn.start_date:
        raise RuntimeError(
            f"Recurring expense {defn.id} started on {defn.start_date} "
            f"but was included in bucket {bucket.label} starting {bucket.start}."
        )

    return per_month * bucket.months


def recurring_for_bucket(
    defs: Iterable[RecurringExpenseDef],
    bucket: PeriodBucket,
    now: Optional[DateLike] = None,
) -> Decimal:
    """Total recurring cost attributed to ``bucket``."""
    total = ZERO
    for defn in defs:
        total += amortized_contribution(defn, bucket, now)
    if total:
        logger.debug("recurring_amortized", bucket=bucket.label, amount=str(total))
    return total


def monthly_recurring_cost(defs: Iterable[RecurringExpenseDef]) -> Decimal:
    """
    What all active recurring expenses cost per month, regardless of dates.

    This is the headline figure of the recurring expenses screen; it is not
    used by period reports, which apply the inclusion policy instead.
    """
    total = ZERO
    for defn in defs:
        if defn.is_active:
            total += monthly_equivalent(defn)
    return total
