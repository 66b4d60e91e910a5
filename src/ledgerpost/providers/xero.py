"""Xero-style manual journal format (preview only, never posted)."""

from typing import Any

from ledgerpost.domain.entities import AccountType, Direction, Journal
from ledgerpost.utils.money_parser import cents_to_amount

# Chart-of-accounts codes used when an org has not mapped a bucket
XERO_DEFAULT_ACCOUNTS: dict[AccountType, str] = {
    AccountType.REVENUE: "4000",
    AccountType.SHIPPING_INCOME: "4001",
    AccountType.FEES_EXPENSE: "5000",
    AccountType.REFUNDS_CONTRA: "5001",
    AccountType.SHIPPING_COST: "5002",
    AccountType.CHARGEBACKS_EXPENSE: "5003",
    AccountType.SALES_TAX_LIABILITY: "2100",
    AccountType.CLEARING: "1000",
}


def journal_reference(journal: Journal) -> str:
    if journal.order_ref:
        return f"LP-{journal.date}-{journal.marketplace}-{journal.order_ref}"
    return f"LP-{journal.date}-{journal.marketplace}"


def to_xero_journal(journal: Journal) -> dict[str, Any]:
    """Render a resolved journal as a Xero manual journal.

    Xero carries direction in the sign: debits positive, credits negative.
    """
    narration = f"Order {journal.order_ref}" if journal.order_ref else "Daily Summary"
    return {
        "Date": journal.date,
        "Reference": journal_reference(journal),
        "Narration": f"Export: {journal.marketplace} {narration}",
        "JournalLines": [
            {
                "LineAmount": cents_to_amount(line.amount_cents) * (1 if line.direction is Direction.DEBIT else -1),
                "AccountCode": str(line.account),
                "Description": line.memo or "",
                "TaxType": "NONE",
            }
            for line in journal.lines
            if line.amount_cents > 0
        ],
    }
