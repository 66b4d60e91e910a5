"""Export domain services.

``ExportService`` turns balanced journals into QuickBooks journal entries and
either records them as previews or posts them one at a time. Every attempt
leaves an append-only ``ExportRecord``. ``GLPreviewService`` renders the same
journals in Xero's manual journal shape without posting anything.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Iterable, Optional, Sequence

from ledgerpost.config import Settings, load_settings
from ledgerpost.database.base import Database
from ledgerpost.domain.account_mapping import (
    QUICKBOOKS,
    XERO,
    AccountMappingService,
    audit_account_mappings,
    required_account_types,
    resolve_account_ids,
)
from ledgerpost.domain.credentials import CredentialService
from ledgerpost.domain.entities import ExportRecord, ExportStatus, Journal, ProviderCredential
from ledgerpost.domain.errors import (
    ProviderConnectionError,
    ProviderError,
    ProviderRejectedError,
    ProviderTimeoutError,
    ValidationError,
)
from ledgerpost.domain.journal_builder import JournalBuilderService, JournalMode, ensure_balanced
from ledgerpost.providers.quickbooks import QuickBooksClient, request_id_for, to_journal_entry
from ledgerpost.providers.xero import XERO_DEFAULT_ACCOUNTS, to_xero_journal

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ProviderCredential, Settings], QuickBooksClient]

# Why a post failed, recorded next to the free-text error
FAILURE_REJECTED = "rejected"
FAILURE_TIMEOUT = "timeout"
FAILURE_CONNECTION = "connection"
FAILURE_OTHER = "error"


def source_key(journal: Journal) -> Optional[str]:
    """Identity of the stored record a per-order journal was built from."""
    if journal.record_id is None:
        return None
    return f"record:{journal.record_id}"


def quickbooks_client_factory(credential: ProviderCredential, settings: Settings) -> QuickBooksClient:
    """Build a QuickBooks client from a stored credential and runtime settings."""
    return QuickBooksClient(
        base_url=settings.qbo_base_url,
        access_token=credential.access_token,
        realm_id=credential.realm_id or "",
        timeout=settings.http_timeout,
        max_retries=settings.http_retries,
        minor_version=settings.qbo_minor_version,
    )


@dataclass
class JournalResult:
    """Outcome of one journal in a submission."""

    date: str
    marketplace: str
    status: ExportStatus
    order_ref: Optional[str] = None
    external_id: Optional[str] = None
    http_status: Optional[int] = None
    error: Optional[str] = None
    failure: Optional[str] = None
    export_id: Optional[int] = None

    @property
    def committed(self) -> bool:
        return self.status is ExportStatus.COMMITTED


@dataclass
class SubmissionResult:
    """Aggregate outcome of ``ExportService.submit``."""

    committed_count: int = 0
    results: list[JournalResult] = field(default_factory=list)
    preview: list[dict[str, Any]] = field(default_factory=list)
    dry_run: bool = False

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.status is ExportStatus.ERROR)


class ExportService:
    """Service for previewing and committing journals to QuickBooks."""

    def __init__(
        self,
        db: Database,
        settings: Optional[Settings] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        """Initialize export service.

        Args:
            db: Database instance
            settings: Runtime settings (default: loaded from environment)
            client_factory: Builds a provider client from a credential
        """
        self.db = db
        self.settings = settings or load_settings()
        self.client_factory = client_factory or quickbooks_client_factory
        self.mappings = AccountMappingService(db)
        self.credentials = CredentialService(db)

    def open_client(self, org_id: str, provider: str = QUICKBOOKS) -> QuickBooksClient:
        """Resolve the org's credential and build a client.

        Raises:
            NotConnectedError: If the credential is missing or expired
        """
        credential = self.credentials.resolve(org_id, provider)
        return self.client_factory(credential, self.settings)

    def submit(
        self,
        org_id: str,
        journals: Sequence[Journal],
        dry_run: bool = False,
        provider: str = QUICKBOOKS,
    ) -> SubmissionResult:
        """Preview or commit a batch of journals.

        Pre-flight checks (balance, mappings, credential) raise before any
        side effect. Provider failures after that are reported per journal
        and never undo earlier postings.

        Args:
            org_id: Organization ID
            journals: Balanced journals with logical or external accounts
            dry_run: Record previews only; also forced by LEDGERPOST_DRY_RUN
            provider: Ledger provider to post to

        Returns:
            SubmissionResult with one JournalResult per journal

        Raises:
            UnbalancedJournalError: If any journal does not balance
            MissingMappingError: If a referenced account type is unmapped
            NotConnectedError: If committing without a live credential
        """
        if provider != QUICKBOOKS:
            raise ValidationError(f"Posting is only supported for {QUICKBOOKS}; {provider} is preview-only")

        journals = list(journals)
        for journal in journals:
            ensure_balanced(journal)

        mapping = self.mappings.resolve_mappings(org_id, provider, required_account_types(journals))
        resolved = [resolve_account_ids(journal, mapping) for journal in journals]
        entries = [to_journal_entry(journal) for journal in resolved]

        dry_run = dry_run or self.settings.dry_run
        result = SubmissionResult(preview=entries, dry_run=dry_run)
        if not resolved:
            return result

        if dry_run:
            for journal, entry in zip(resolved, entries):
                export_id = self._record(org_id, provider, journal, ExportStatus.PREVIEWED, entry)
                result.results.append(
                    JournalResult(
                        date=journal.date,
                        marketplace=journal.marketplace,
                        order_ref=journal.order_ref,
                        status=ExportStatus.PREVIEWED,
                        export_id=export_id,
                    )
                )
            logger.info("Previewed %d journals for org %s", len(resolved), org_id)
            return result

        client = self.open_client(org_id, provider)
        try:
            for journal, entry in zip(resolved, entries):
                result.results.append(self._post_entry(client, org_id, journal, entry))
        finally:
            client.close()

        result.committed_count = sum(
            1 for r in result.results if r.committed and r.http_status is not None and r.http_status < 300
        )
        logger.info(
            "Committed %d of %d journals for org %s", result.committed_count, len(result.results), org_id
        )
        return result

    def post_journal(
        self,
        client: QuickBooksClient,
        org_id: str,
        journal: Journal,
        private_note: Optional[str] = None,
        class_id: Optional[str] = None,
        location_id: Optional[str] = None,
        links: Optional[dict[str, Any]] = None,
    ) -> JournalResult:
        """Post one journal with resolved accounts and record the attempt."""
        entry = to_journal_entry(journal, private_note=private_note, class_id=class_id, location_id=location_id)
        return self._post_entry(client, org_id, journal, entry, links)

    def _post_entry(
        self,
        client: QuickBooksClient,
        org_id: str,
        journal: Journal,
        entry: dict[str, Any],
        links: Optional[dict[str, Any]] = None,
    ) -> JournalResult:
        request_id = request_id_for(org_id, entry, source_key(journal))
        payload: dict[str, Any] = {"request_id": request_id, **(links or {})}
        result = JournalResult(
            date=journal.date,
            marketplace=journal.marketplace,
            order_ref=journal.order_ref,
            status=ExportStatus.ERROR,
        )
        try:
            posted = client.post_journal_entry(entry, request_id=request_id)
        except ProviderRejectedError as e:
            result.http_status = e.status_code
            result.error = e.message
            result.failure = FAILURE_REJECTED
            payload["response"] = e.body
        except ProviderTimeoutError as e:
            result.error = str(e)
            result.failure = FAILURE_TIMEOUT
        except ProviderConnectionError as e:
            result.error = str(e)
            result.failure = FAILURE_CONNECTION
        except ProviderError as e:
            result.error = str(e)
            result.failure = FAILURE_OTHER
        else:
            result.status = ExportStatus.COMMITTED
            result.external_id = posted.external_id
            result.http_status = posted.status_code
            payload["response"] = posted.body

        if result.status is ExportStatus.ERROR:
            logger.warning("Journal %s failed: %s", journal.label, result.error)
            payload["error"] = result.error
            payload["failure"] = result.failure
        result.export_id = self._record(
            org_id,
            QUICKBOOKS,
            journal,
            result.status,
            entry,
            payload=payload,
            external_id=result.external_id,
            http_status=result.http_status,
        )
        return result

    def _record(
        self,
        org_id: str,
        provider: str,
        journal: Journal,
        status: ExportStatus,
        entry: dict[str, Any],
        payload: Optional[dict[str, Any]] = None,
        external_id: Optional[str] = None,
        http_status: Optional[int] = None,
    ) -> int:
        day = date.fromisoformat(journal.date)
        return self.db.create_export_record(
            org_id=org_id,
            provider=provider,
            period_start=day,
            period_end=day,
            status=status.value,
            preview=entry,
            payload=payload,
            external_id=external_id,
            http_status=http_status,
        )

    def lookup_entries(self, org_id: str, external_ids: Iterable[str]) -> list[dict[str, Any]]:
        """Fetch posted entries by provider id for reconciliation.

        Each result has ``id``, ``status`` ("found", "not_found" or "error"),
        ``entry`` and ``error``.

        Raises:
            NotConnectedError: If the org has no live credential
        """
        results = []
        client = self.open_client(org_id)
        try:
            for external_id in external_ids:
                item: dict[str, Any] = {"id": external_id, "status": "not_found", "entry": None, "error": None}
                try:
                    entry = client.get_journal_entry(external_id)
                except ProviderError as e:
                    item["status"] = "error"
                    item["error"] = str(e)
                else:
                    if entry is not None:
                        item["status"] = "found"
                        item["entry"] = entry
                results.append(item)
        finally:
            client.close()
        return results

    def list_accounts(self, org_id: str) -> list[dict[str, Any]]:
        """Fetch the org's active QuickBooks chart of accounts.

        Raises:
            NotConnectedError: If the org has no live credential
        """
        client = self.open_client(org_id)
        try:
            return client.list_accounts()
        finally:
            client.close()

    def audit_mappings(self, org_id: str) -> list[str]:
        """Check every mapped QuickBooks id against the live chart of accounts.

        Returns:
            Warnings for ids that are inactive or of an unsuitable type

        Raises:
            MissingMappingError: If any account type is unmapped
            NotConnectedError: If the org has no live credential
        """
        mapping = self.mappings.resolve_mappings(org_id, QUICKBOOKS)
        warnings = audit_account_mappings(mapping, self.list_accounts(org_id))
        for warning in warnings:
            logger.warning("Org %s mapping %s", org_id, warning)
        return warnings

    def list_exports(
        self,
        org_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        provider: Optional[str] = None,
    ) -> list[ExportRecord]:
        """List export provenance overlapping an inclusive date range."""
        if start and end and start > end:
            raise ValidationError("Start date is after end date")
        return self.db.list_export_records(org_id, start_date=start, end_date=end, provider=provider)


class GLPreviewService:
    """Read-only Xero-style general ledger preview."""

    def __init__(self, db: Database):
        self.db = db
        self.builder = JournalBuilderService(db)
        self.mappings = AccountMappingService(db)

    def account_codes(self, org_id: str, provider: str = XERO) -> dict:
        """Org mappings layered over the default chart of accounts."""
        codes = dict(XERO_DEFAULT_ACCOUNTS)
        for mapping in self.mappings.list_mappings(org_id, provider):
            codes[mapping.account_type] = mapping.external_account_id
        return codes

    def preview(
        self,
        org_id: str,
        start_ms: Optional[int] = None,
        end_ms: Optional[int] = None,
        mode: JournalMode | str = JournalMode.SUMMARIZED,
        provider: str = XERO,
    ) -> list[dict[str, Any]]:
        """Build journals for a range and render them as Xero manual journals."""
        journals = self.builder.build(org_id, start_ms=start_ms, end_ms=end_ms, mode=mode)
        codes = self.account_codes(org_id, provider)
        return [to_xero_journal(resolve_account_ids(journal, codes)) for journal in journals]
