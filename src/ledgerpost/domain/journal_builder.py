"""Journal building domain service.

Sales are rolled up into six buckets and turned into balanced journals. All
arithmetic is in integer cents; a single clearing line absorbs the residual
between the credit and debit sides.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from ledgerpost.database.base import Database
from ledgerpost.domain.entities import (
    AccountType,
    Direction,
    Journal,
    JournalLine,
    LogicalAccount,
    RecordKind,
    TransactionRecord,
)
from ledgerpost.domain.errors import UnbalancedJournalError, ValidationError, unbalanced_journal
from ledgerpost.utils.date_parser import epoch_ms_to_ymd

logger = logging.getLogger(__name__)


class JournalMode(str, Enum):
    SUMMARIZED = "summarized"
    PER_ORDER = "per-order"


@dataclass(frozen=True)
class SaleBuckets:
    """Category sums for one sale or one group of sales, in cents."""

    revenue: int = 0
    shipping_income: int = 0
    fees: int = 0
    refunds_total: int = 0
    shipping_cost: int = 0
    tax_collected: int = 0

    def __add__(self, other: "SaleBuckets") -> "SaleBuckets":
        return SaleBuckets(
            revenue=self.revenue + other.revenue,
            shipping_income=self.shipping_income + other.shipping_income,
            fees=self.fees + other.fees,
            refunds_total=self.refunds_total + other.refunds_total,
            shipping_cost=self.shipping_cost + other.shipping_cost,
            tax_collected=self.tax_collected + other.tax_collected,
        )


def sale_buckets(record: TransactionRecord) -> SaleBuckets:
    """Compute bucket sums for one sale record."""
    return SaleBuckets(
        revenue=(
            record.sale_price_cents
            + record.shipping_charged_cents
            - record.refunds_cents
            - record.discounts_cents
            - record.chargebacks_cents
        ),
        shipping_income=record.shipping_charged_cents,
        fees=record.platform_fees_cents,
        refunds_total=record.refunds_cents + record.discounts_cents + record.chargebacks_cents,
        shipping_cost=record.shipping_cost_cents,
        tax_collected=record.tax_collected_cents,
    )


def _line(
    account_type: AccountType,
    signed_cents: int,
    direction: Direction,
    memo: str,
    marketplace: Optional[str],
) -> Optional[JournalLine]:
    # Negative sums post their absolute value on the opposite side
    if signed_cents == 0:
        return None
    if signed_cents < 0:
        direction = direction.flipped()
    return JournalLine(
        account=LogicalAccount(account_type),
        amount_cents=abs(signed_cents),
        direction=direction,
        memo=memo,
        marketplace=marketplace,
    )


def build_journal_lines(
    buckets: SaleBuckets, marketplace: str, order_ref: Optional[str] = None
) -> list[JournalLine]:
    """Category lines for a bucket set, zero lines omitted, clearing not included."""
    revenue_memo = f"Revenue {marketplace}"
    if order_ref:
        revenue_memo = f"{revenue_memo} {order_ref}"

    candidates = [
        _line(AccountType.REVENUE, buckets.revenue, Direction.CREDIT, revenue_memo, marketplace),
        _line(AccountType.SHIPPING_INCOME, buckets.shipping_income, Direction.CREDIT,
              f"Shipping Income {marketplace}", marketplace),
        _line(AccountType.SALES_TAX_LIABILITY, buckets.tax_collected, Direction.CREDIT,
              f"Sales Tax {marketplace}", marketplace),
        _line(AccountType.FEES_EXPENSE, buckets.fees, Direction.DEBIT,
              f"Platform Fees {marketplace}", marketplace),
        _line(AccountType.REFUNDS_CONTRA, buckets.refunds_total, Direction.DEBIT,
              f"Refunds {marketplace}", marketplace),
        _line(AccountType.SHIPPING_COST, buckets.shipping_cost, Direction.DEBIT,
              f"Shipping Cost {marketplace}", marketplace),
    ]
    return [line for line in candidates if line is not None]


def balance_with_clearing(
    lines: Sequence[JournalLine], memo: str, marketplace: Optional[str] = None
) -> list[JournalLine]:
    """Append one clearing line sized to bring debits and credits level.

    ``clearing = |credits - debits|``, debited when credits exceed debits and
    credited otherwise. No line is added when the sides already match.
    """
    credits = sum(l.amount_cents for l in lines if l.direction is Direction.CREDIT)
    debits = sum(l.amount_cents for l in lines if l.direction is Direction.DEBIT)
    delta = credits - debits

    balanced = list(lines)
    if delta != 0:
        balanced.append(
            JournalLine(
                account=LogicalAccount(AccountType.CLEARING),
                amount_cents=abs(delta),
                direction=Direction.DEBIT if delta > 0 else Direction.CREDIT,
                memo=memo,
                marketplace=marketplace,
            )
        )
    return balanced


def ensure_balanced(journal: Journal) -> None:
    """Raise if the journal's debit and credit totals differ."""
    if not journal.is_balanced:
        raise UnbalancedJournalError(
            unbalanced_journal(journal.label, journal.total_debits, journal.total_credits)
        )


def _make_journal(
    day: str,
    marketplace: str,
    buckets: SaleBuckets,
    order_ref: Optional[str] = None,
    record_id: Optional[int] = None,
) -> Journal:
    lines = build_journal_lines(buckets, marketplace, order_ref)
    lines = balance_with_clearing(lines, f"Clearing {marketplace}", marketplace)
    journal = Journal(date=day, marketplace=marketplace, lines=lines, order_ref=order_ref, record_id=record_id)
    ensure_balanced(journal)
    return journal


def summarize_by_day(records: Iterable[TransactionRecord]) -> list[Journal]:
    """One journal per (UTC day, marketplace), ordered by day then marketplace.

    Groups whose buckets are all zero produce no journal.
    """
    groups: dict[tuple[str, str], SaleBuckets] = defaultdict(SaleBuckets)
    for record in records:
        key = (epoch_ms_to_ymd(record.occurred_at), record.vendor or "unknown")
        groups[key] = groups[key] + sale_buckets(record)

    journals = []
    for (day, marketplace), buckets in sorted(groups.items()):
        journal = _make_journal(day, marketplace, buckets)
        if journal.lines:
            journals.append(journal)
    return journals


def journals_per_order(records: Iterable[TransactionRecord]) -> list[Journal]:
    """One journal per sale record, ordered by occurred_at."""
    journals = []
    for record in sorted(records, key=lambda r: (r.occurred_at, r.id)):
        journal = _make_journal(
            epoch_ms_to_ymd(record.occurred_at),
            record.vendor or "unknown",
            sale_buckets(record),
            order_ref=record.order_ref,
            record_id=record.id,
        )
        if journal.lines:
            journals.append(journal)
    return journals


class JournalBuilderService:
    """Service for building journals from stored sale records."""

    def __init__(self, db: Database):
        """Initialize journal builder service.

        Args:
            db: Database instance
        """
        self.db = db

    def build(
        self,
        org_id: str,
        start_ms: Optional[int] = None,
        end_ms: Optional[int] = None,
        mode: JournalMode | str = JournalMode.SUMMARIZED,
    ) -> list[Journal]:
        """Build balanced journals for sales in an inclusive epoch-ms range.

        Args:
            org_id: Organization ID
            start_ms: Optional lower bound
            end_ms: Optional upper bound
            mode: "summarized" (per day and marketplace) or "per-order"

        Returns:
            List of balanced journals with logical account references

        Raises:
            ValidationError: If mode is unknown or the range is inverted
        """
        try:
            mode = JournalMode(mode)
        except ValueError:
            raise ValidationError(f"Unknown journal mode '{mode}'. Use 'summarized' or 'per-order'")
        if start_ms is not None and end_ms is not None and start_ms > end_ms:
            raise ValidationError("Start of range is after its end")

        records = self.db.list_records(org_id, start_ms=start_ms, end_ms=end_ms, kind=RecordKind.SALE.value)
        if mode is JournalMode.SUMMARIZED:
            journals = summarize_by_day(records)
        else:
            journals = journals_per_order(records)

        logger.info("Built %d %s journals from %d sales for org %s", len(journals), mode.value, len(records), org_id)
        return journals
