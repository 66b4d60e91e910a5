"""Utility functions for ledgerpost."""

from ledgerpost.utils.date_parser import parse_date, parse_timestamp
from ledgerpost.utils.money_parser import parse_money_cents, format_cents
from ledgerpost.utils.row_hash import compute_row_hash

__all__ = ["parse_date", "parse_timestamp", "parse_money_cents", "format_cents", "compute_row_hash"]
