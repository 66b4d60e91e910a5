"""Mapper functions to convert between domain models and SQLAlchemy models.

SQLite hands back naive datetimes; every timestamp is stored in UTC, so the
mappers re-attach the zone before it reaches domain code.
"""

from datetime import datetime, UTC
from typing import Optional

from ledgerpost.domain import entities as domain
from ledgerpost.database.models import (
    TransactionRecord as ORMTransactionRecord,
    AccountMapping as ORMAccountMapping,
    ProviderCredential as ORMProviderCredential,
    ExportRecord as ORMExportRecord,
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def record_to_domain(orm_record: ORMTransactionRecord) -> domain.TransactionRecord:
    """Convert SQLAlchemy TransactionRecord model to domain TransactionRecord entity."""
    return domain.TransactionRecord(
        id=orm_record.id,
        org_id=orm_record.org_id,
        kind=domain.RecordKind(orm_record.kind),
        occurred_at=orm_record.occurred_at,
        amount_cents=orm_record.amount_cents,
        category=orm_record.category,
        vendor=orm_record.vendor,
        order_ref=orm_record.order_ref,
        source_label=orm_record.source_label,
        row_hash=orm_record.row_hash,
        imported_at=_as_utc(orm_record.imported_at),
        mileage_miles=orm_record.mileage_miles,
        vehicle_rate=orm_record.vehicle_rate,
        sale_price_cents=orm_record.sale_price_cents or 0,
        shipping_charged_cents=orm_record.shipping_charged_cents or 0,
        shipping_cost_cents=orm_record.shipping_cost_cents or 0,
        platform_fees_cents=orm_record.platform_fees_cents or 0,
        discounts_cents=orm_record.discounts_cents or 0,
        refunds_cents=orm_record.refunds_cents or 0,
        chargebacks_cents=orm_record.chargebacks_cents or 0,
        tax_collected_cents=orm_record.tax_collected_cents or 0,
    )


def account_mapping_to_domain(orm_mapping: ORMAccountMapping) -> domain.AccountMapping:
    """Convert SQLAlchemy AccountMapping model to domain AccountMapping entity."""
    return domain.AccountMapping(
        id=orm_mapping.id,
        org_id=orm_mapping.org_id,
        provider=orm_mapping.provider,
        account_type=domain.AccountType(orm_mapping.account_type),
        external_account_id=orm_mapping.external_account_id,
        active=orm_mapping.active,
        updated_at=_as_utc(orm_mapping.updated_at),
    )


def credential_to_domain(orm_credential: ORMProviderCredential) -> domain.ProviderCredential:
    """Convert SQLAlchemy ProviderCredential model to domain ProviderCredential entity."""
    return domain.ProviderCredential(
        org_id=orm_credential.org_id,
        provider=orm_credential.provider,
        access_token=orm_credential.access_token,
        realm_id=orm_credential.realm_id,
        expires_at=_as_utc(orm_credential.expires_at),
        refresh_token=orm_credential.refresh_token,
    )


def export_record_to_domain(orm_export: ORMExportRecord) -> domain.ExportRecord:
    """Convert SQLAlchemy ExportRecord model to domain ExportRecord entity."""
    return domain.ExportRecord(
        id=orm_export.id,
        org_id=orm_export.org_id,
        provider=orm_export.provider,
        period_start=orm_export.period_start,
        period_end=orm_export.period_end,
        status=domain.ExportStatus(orm_export.status),
        preview=orm_export.preview,
        payload=orm_export.payload,
        created_at=_as_utc(orm_export.created_at),
        external_id=orm_export.external_id,
        http_status=orm_export.http_status,
    )
