"""Export services."""

from .journal import HEADERS, filter_entries_for_month, journal_to_csv, journal_to_xlsx

__all__ = [
    "HEADERS",
    "filter_entries_for_month",
    "journal_to_csv",
    "journal_to_xlsx",
]
