# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for OnSite FinSight.

This module reads record collections from CSV files and turns them into the
typed records of records.py. It is the record-fetch boundary of the engine:
this is where expenses and payments receive their explicit ``kind`` tag.

Column names are case-insensitive and surrounding whitespace is ignored.
The camelCase names used by the hosted data store are accepted as aliases
(``projectId`` for ``project_id``, ``startDate`` for ``start_date``, ...).

Expected columns
----------------
expenses / payments   id, amount, date [, category, project_id, description]
recurring_expenses    id, amount, frequency [, is_active, start_date,
                      project_id, name]
budget_items          id, project_id, category, budgeted_amount,
                      actual_amount [, name]
invoices              id, project_id, total_amount [, status, due_date,
                      issued_date, invoice_number]
invoice_payments      id, invoice_id, amount, payment_date [, method,
                      reference_number, notes]
projects              id, name

If a required column is missing, or a value cannot be parsed, a ValueError
naming the file is raised.
"""

import os
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Optional, TypeVar, Union

import pandas as pd

from .log import get_logger
from .records import (
    KIND_EXPENSE,
    KIND_PAYMENT,
    BudgetLineItem,
    Invoice,
    InvoicePayment,
    LedgerSnapshot,
    MoneyRecord,
    Project,
    RecurringExpenseDef,
)

logger = get_logger(__name__)

PathLike = Union[str, "os.PathLike[str]"]
T = TypeVar("T")

COLLECTIONS: tuple[str, ...] = (
    "expenses",
    "payments",
    "recurring_expenses",
    "budget_items",
    "invoices",
    "invoice_payments",
    "projects",
)

# Backward compat with older exports of the data store.
_ALIASES: dict[str, str] = {
    "receipt_id": "id",
    "paymentmethod": "method",
    "payment_method": "method",
    "budget": "budgeted_amount",
    "actual": "actual_amount",
    "vendor": "description",
}

_TRUE = {"true", "1", "yes", "y", "t"}
_FALSE = {"false", "0", "no", "n", "f", ""}


def _snake(name: str) -> str:
    """'projectId' -> 'project_id', ' Start Date ' -> 'start_date'."""
    s = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", str(name).strip())
    s = re.sub(r"[\s\-]+", "_", s).lower()
    return _ALIASES.get(s, s)


def _read_frame(path: PathLike, required: set[str]) -> pd.DataFrame:
    """Read a CSV file as strings and normalize its column names."""
    if not Path(path).is_file():
        raise FileNotFoundError(f"Records file not found: {path}")

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [_snake(c) for c in df.columns]

    missing = required - set(df.columns)
    if missing:
        raise ValueError(
            f"Invalid structure in {path}: missing column(s) "
            f"{', '.join(sorted(missing))}. Found: {', '.join(df.columns)}."
        )
    return df


def _text(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key, "")
    return "" if value is None else str(value).strip()


def _optional_text(row: Mapping[str, Any], key: str) -> Optional[str]:
    return _text(row, key) or None


def _bool(value: str, default: bool = True) -> bool:
    s = str(value).strip().lower()
    if s == "":
        return default
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def _build(
    path: PathLike,
    required: set[str],
    factory: Callable[[Mapping[str, Any]], T],
) -> list[T]:
    df = _read_frame(path, required)
    out: list[T] = []
    for line, row in enumerate(df.to_dict(orient="records"), start=2):
        try:
            out.append(factory(row))
        except ValueError as exc:
            raise ValueError(f"{path}, line {line}: {exc}") from exc
    logger.debug("records_loaded", path=str(path), count=len(out))
    return out


def read_money_records(path: PathLike, kind: str) -> list[MoneyRecord]:
    """Read expenses or payments and tag every record with ``kind``."""

    def factory(row: Mapping[str, Any]) -> MoneyRecord:
        return MoneyRecord(
            id=_text(row, "id"),
            kind=kind,
            amount=_text(row, "amount"),
            date=_text(row, "date"),
            category=_optional_text(row, "category"),
            project_id=_optional_text(row, "project_id"),
            description=_text(row, "description"),
        )

    return _build(path, {"id", "amount", "date"}, factory)


def read_expenses(path: PathLike) -> list[MoneyRecord]:
    return read_money_records(path, KIND_EXPENSE)


def read_payments(path: PathLike) -> list[MoneyRecord]:
    return read_money_records(path, KIND_PAYMENT)


def read_recurring_expenses(path: PathLike) -> list[RecurringExpenseDef]:
    def factory(row: Mapping[str, Any]) -> RecurringExpenseDef:
        return RecurringExpenseDef(
            id=_text(row, "id"),
            amount=_text(row, "amount"),
            frequency=_text(row, "frequency").lower(),
            is_active=_bool(_text(row, "is_active")),
            start_date=_optional_text(row, "start_date"),
            project_id=_optional_text(row, "project_id"),
            name=_text(row, "name"),
        )

    return _build(path, {"id", "amount", "frequency"}, factory)


def read_budget_items(path: PathLike) -> list[BudgetLineItem]:
    def factory(row: Mapping[str, Any]) -> BudgetLineItem:
        return BudgetLineItem(
            id=_text(row, "id"),
            project_id=_text(row, "project_id"),
            category=_text(row, "category"),
            budgeted_amount=_text(row, "budgeted_amount") or "0",
            actual_amount=_text(row, "actual_amount") or "0",
            name=_text(row, "name"),
        )

    return _build(
        path,
        {"id", "project_id", "category", "budgeted_amount", "actual_amount"},
        factory,
    )


def read_invoices(path: PathLike) -> list[Invoice]:
    def factory(row: Mapping[str, Any]) -> Invoice:
        return Invoice(
            id=_text(row, "id"),
            project_id=_text(row, "project_id"),
            total_amount=_text(row, "total_amount"),
            status=_text(row, "status").lower() or "draft",
            due_date=_optional_text(row, "due_date"),
            issued_date=_optional_text(row, "issued_date"),
            invoice_number=_text(row, "invoice_number"),
        )

    return _build(path, {"id", "project_id", "total_amount"}, factory)


def read_invoice_payments(path: PathLike) -> list[InvoicePayment]:
    def factory(row: Mapping[str, Any]) -> InvoicePayment:
        return InvoicePayment(
            id=_text(row, "id"),
            invoice_id=_text(row, "invoice_id"),
            amount=_text(row, "amount"),
            payment_date=_text(row, "payment_date"),
            method=_text(row, "method").lower() or "other",
            reference_number=_text(row, "reference_number"),
            notes=_text(row, "notes"),
        )

    return _build(path, {"id", "invoice_id", "amount", "payment_date"}, factory)


def read_projects(path: PathLike) -> list[Project]:
    def factory(row: Mapping[str, Any]) -> Project:
        return Project(id=_text(row, "id"), name=_text(row, "name"))

    return _build(path, {"id", "name"}, factory)


_READERS: dict[str, Callable[[PathLike], list[Any]]] = {
    "expenses": read_expenses,
    "payments": read_payments,
    "recurring_expenses": read_recurring_expenses,
    "budget_items": read_budget_items,
    "invoices": read_invoices,
    "invoice_payments": read_invoice_payments,
    "projects": read_projects,
}


def load_snapshot(paths: Mapping[str, Optional[PathLike]]) -> LedgerSnapshot:
    """
    Load every collection of a snapshot from CSV files.

    Parameters
    ----------
    paths:
        Mapping of collection name (see ``COLLECTIONS``) to a CSV path.
        Collections that are missing from the mapping, or mapped to None,
        are loaded as empty.

    Raises
    ------
    ValueError
        If the mapping names an unknown collection or a file is invalid.
    FileNotFoundError
        If a configured file does not exist.
    """
    unknown = set(paths) - set(COLLECTIONS)
    if unknown:
        raise ValueError(f"Unknown record collection(s): {', '.join(sorted(unknown))}")

    loaded: dict[str, list[Any]] = {}
    for name in COLLECTIONS:
        path = paths.get(name)
        loaded[name] = _READERS[name](path) if path is not None else []

    return LedgerSnapshot(**loaded)
