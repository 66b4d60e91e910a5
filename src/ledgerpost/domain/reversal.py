"""Round-trip verification: post a nominal journal, then its exact reverse."""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from ledgerpost.config import Settings
from ledgerpost.database.base import Database
from ledgerpost.domain.account_mapping import QUICKBOOKS, resolve_account_ids
from ledgerpost.domain.entities import AccountType, Direction, ExportStatus, Journal, JournalLine, LogicalAccount
from ledgerpost.domain.export import ClientFactory, ExportService
from ledgerpost.domain.journal_builder import balance_with_clearing, ensure_balanced

logger = logging.getLogger(__name__)

NOMINAL_CENTS = 100
VERIFY_MARKETPLACE = "verification"
REVERSE_SUFFIX = " (AUTO-REVERSE)"

_CREDIT_TYPES = (AccountType.REVENUE, AccountType.SHIPPING_INCOME, AccountType.SALES_TAX_LIABILITY)
_DEBIT_TYPES = (
    AccountType.FEES_EXPENSE,
    AccountType.REFUNDS_CONTRA,
    AccountType.CHARGEBACKS_EXPENSE,
    AccountType.SHIPPING_COST,
)


def verification_journal(day: str, amount_cents: int = NOMINAL_CENTS) -> Journal:
    """Journal touching every account type with the same nominal amount."""
    lines = [
        JournalLine(LogicalAccount(t), amount_cents, Direction.CREDIT, f"Round-trip {t.value}", VERIFY_MARKETPLACE)
        for t in _CREDIT_TYPES
    ] + [
        JournalLine(LogicalAccount(t), amount_cents, Direction.DEBIT, f"Round-trip {t.value}", VERIFY_MARKETPLACE)
        for t in _DEBIT_TYPES
    ]
    lines = balance_with_clearing(lines, "Round-trip clearing", VERIFY_MARKETPLACE)
    return Journal(date=day, marketplace=VERIFY_MARKETPLACE, lines=lines)


def invert_journal(journal: Journal, day: Optional[str] = None) -> Journal:
    """Same accounts and amounts with every direction flipped."""
    lines = [
        replace(line, direction=line.direction.flipped(), memo=f"{line.memo or ''}{REVERSE_SUFFIX}")
        for line in journal.lines
    ]
    return replace(journal, date=day or journal.date, lines=tuple(lines))


@dataclass
class RoundTripResult:
    date: str
    reverse_date: str
    forward_status: Optional[ExportStatus] = None
    reverse_status: Optional[ExportStatus] = None
    forward_id: Optional[str] = None
    reverse_id: Optional[str] = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.forward_status is ExportStatus.COMMITTED and self.reverse_status is ExportStatus.COMMITTED


class ReversalVerifier:
    """Checks that an org's QuickBooks connection and mappings accept postings."""

    def __init__(
        self,
        db: Database,
        settings: Optional[Settings] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.exports = ExportService(db, settings=settings, client_factory=client_factory)

    def run_round_trip(
        self,
        org_id: str,
        same_day: bool = False,
        class_id: Optional[str] = None,
        location_id: Optional[str] = None,
        note_suffix: Optional[str] = None,
        today: Optional[date] = None,
    ) -> RoundTripResult:
        """Post a nominal journal and its reverse.

        Args:
            org_id: Organization ID
            same_day: Date the reverse on the forward's day instead of the next day
            class_id: Optional class reference on every line
            location_id: Optional location (department) reference on every line
            note_suffix: Extra text appended to both private notes
            today: Forward posting date (default: current UTC date)

        Returns:
            RoundTripResult; a failed forward posting skips the reverse

        Raises:
            MissingMappingError: If any of the account types is unmapped
            NotConnectedError: If the org has no live credential
        """
        mapping = self.exports.mappings.resolve_mappings(org_id, QUICKBOOKS)
        client = self.exports.open_client(org_id, QUICKBOOKS)

        today = today or datetime.now(timezone.utc).date()
        reverse_day = today if same_day else today + timedelta(days=1)
        forward = resolve_account_ids(verification_journal(today.isoformat()), mapping)
        ensure_balanced(forward)

        note = f"LedgerPost round-trip check ({'same day' if same_day else 'next day'})"
        if note_suffix:
            note = f"{note} {note_suffix}"

        result = RoundTripResult(date=today.isoformat(), reverse_date=reverse_day.isoformat())
        try:
            posted = self.exports.post_journal(
                client, org_id, forward, private_note=note, class_id=class_id, location_id=location_id
            )
            result.forward_status = posted.status
            result.forward_id = posted.external_id
            if not posted.committed:
                result.errors.append(f"Forward posting failed: {posted.error}")
                logger.warning("Round trip for org %s stopped after forward failure", org_id)
                return result

            reverse = invert_journal(forward, reverse_day.isoformat())
            reversed_ = self.exports.post_journal(
                client,
                org_id,
                reverse,
                private_note=f"{note} REVERSE of #{posted.external_id}",
                class_id=class_id,
                location_id=location_id,
                links={"reverses": posted.external_id, "reverses_export_id": posted.export_id},
            )
            result.reverse_status = reversed_.status
            result.reverse_id = reversed_.external_id
            if not reversed_.committed:
                result.errors.append(f"Reverse posting failed: {reversed_.error}")
        finally:
            client.close()

        logger.info("Round trip for org %s: forward=%s reverse=%s", org_id, result.forward_id, result.reverse_id)
        return result
