# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
OnSite FinSight
---------------

The financial aggregation and reporting engine of a contractor back-office
application. It turns raw ledger-like records into the figures shown on
finance dashboards and exports.

Main capabilities:
- calendar-aligned period buckets (6 / 12 / 24 trailing months, 4 trailing
  quarters, 12-month forecast),
- amortization of weekly, monthly, quarterly and yearly recurring costs,
- revenue / expense / profit trends per period,
- per-project profitability and per-category expense breakdowns,
- invoice balances with derived statuses,
- budget variance per line item and per project, with over-budget alerts.

The engine is pure: it reads snapshots of records, takes "now" as an explicit
parameter, and never writes back. Reading records from CSV, configuration
(TOML) and presentation (CLI) are thin layers around it.


Version: 0.1.0

Usage:
    python -m onsite_finsight.cli --help
"""

__all__ = [
    "records",
    "periods",
    "recurring",
    "engine",
    "invoices",
    "budget",
    "report",
    "io",
    "config",
    "views",
    "cli",
    "log",
]

__version__ = "0.1.0"
