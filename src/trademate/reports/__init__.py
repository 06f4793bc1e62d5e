"""
trademate.reports
~~~~~~~~~~~~~~~~~
Derived views over saved expenses.

  - ``quota``       — monthly receipt allowance (creation-date based)
  - ``monthly``     — spending totals per spend month and category
  - ``csv_export``  — CSV rendering and ``<prefix>_<YYYY-MM>.csv`` files
"""

from .csv_export import CSV_HEADER, export_filename, to_csv, write_csv
from .monthly import MonthlyStats, monthly_stats
from .quota import STANDARD_MONTHLY_LIMIT, QuotaEngine, QuotaStatus

__all__ = [
    "CSV_HEADER",
    "export_filename",
    "to_csv",
    "write_csv",
    "MonthlyStats",
    "monthly_stats",
    "STANDARD_MONTHLY_LIMIT",
    "QuotaEngine",
    "QuotaStatus",
]
