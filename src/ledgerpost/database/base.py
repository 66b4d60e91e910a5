"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Any
from datetime import date, datetime

# Import entities directly so the database layer never pulls in domain services
from ledgerpost.domain.entities import (
    AccountMapping,
    ExportRecord,
    ProviderCredential,
    TransactionRecord,
)


class Database(ABC):
    """Abstract database interface for ledgerpost."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Transaction record operations
    @abstractmethod
    def create_record(self, org_id: str, row_hash: str, **fields: Any) -> int:
        """Insert an imported record. Returns record ID.

        Raises:
            ConflictError: If (org_id, row_hash) already exists
        """
        pass

    @abstractmethod
    def get_record(self, record_id: int) -> Optional[TransactionRecord]:
        """Get record by ID."""
        pass

    @abstractmethod
    def record_hash_exists(self, org_id: str, row_hash: str) -> bool:
        """Check if a record with given hash exists for org."""
        pass

    @abstractmethod
    def list_records(
        self,
        org_id: str,
        start_ms: Optional[int] = None,
        end_ms: Optional[int] = None,
        kind: Optional[str] = None,
    ) -> list[TransactionRecord]:
        """List records for an org, ordered by occurred_at then ID.

        Args:
            org_id: Organization
            start_ms: Optional inclusive lower bound (epoch ms)
            end_ms: Optional inclusive upper bound (epoch ms)
            kind: Optional record kind filter ("sale" or "expense")
        """
        pass

    # Account mapping operations
    @abstractmethod
    def upsert_account_mapping(
        self, org_id: str, provider: str, account_type: str, external_account_id: str
    ) -> int:
        """Create or replace the active mapping for an account type. Returns mapping ID."""
        pass

    @abstractmethod
    def deactivate_account_mapping(self, org_id: str, provider: str, account_type: str) -> bool:
        """Deactivate a mapping. Returns False if none was active."""
        pass

    @abstractmethod
    def list_account_mappings(
        self, org_id: str, provider: str, active_only: bool = True
    ) -> list[AccountMapping]:
        """List mappings for an org/provider pair."""
        pass

    # Credential operations
    @abstractmethod
    def save_credential(
        self,
        org_id: str,
        provider: str,
        access_token: str,
        expires_at: datetime,
        realm_id: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> None:
        """Store (or replace) the credential for an org/provider pair."""
        pass

    @abstractmethod
    def get_credential(self, org_id: str, provider: str) -> Optional[ProviderCredential]:
        """Get the stored credential, if any."""
        pass

    # Export provenance operations (append-only)
    @abstractmethod
    def create_export_record(
        self,
        org_id: str,
        provider: str,
        period_start: date,
        period_end: date,
        status: str,
        preview: Optional[dict[str, Any]] = None,
        payload: Optional[dict[str, Any]] = None,
        external_id: Optional[str] = None,
        http_status: Optional[int] = None,
    ) -> int:
        """Append a provenance row. Returns export record ID."""
        pass

    @abstractmethod
    def list_export_records(
        self,
        org_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        provider: Optional[str] = None,
    ) -> list[ExportRecord]:
        """List provenance rows for an org, oldest first."""
        pass
