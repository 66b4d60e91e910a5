"""External ledger provider clients and wire formats."""

from ledgerpost.providers.quickbooks import QuickBooksClient, to_journal_entry
from ledgerpost.providers.xero import XERO_DEFAULT_ACCOUNTS, to_xero_journal

__all__ = ["QuickBooksClient", "to_journal_entry", "XERO_DEFAULT_ACCOUNTS", "to_xero_journal"]
