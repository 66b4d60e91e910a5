"""SQLAlchemy models for ledgerpost database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    BigInteger,
    String,
    DateTime,
    Date,
    Numeric,
    Boolean,
    JSON,
    UniqueConstraint,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TransactionRecord(Base):
    """Imported sale or expense row."""

    __tablename__ = "transaction_records"

    id = Column(Integer, primary_key=True)
    org_id = Column(String, nullable=False)
    kind = Column(String, nullable=False)
    occurred_at = Column(BigInteger, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    category = Column(String, nullable=False)
    vendor = Column(String, nullable=True)
    order_ref = Column(String, nullable=True)
    source_label = Column(String, nullable=False)
    row_hash = Column(String(64), nullable=False)
    mileage_miles = Column(Numeric(10, 2), nullable=True)
    vehicle_rate = Column(Numeric(10, 4), nullable=True)
    sale_price_cents = Column(BigInteger, default=0, nullable=False)
    shipping_charged_cents = Column(BigInteger, default=0, nullable=False)
    shipping_cost_cents = Column(BigInteger, default=0, nullable=False)
    platform_fees_cents = Column(BigInteger, default=0, nullable=False)
    discounts_cents = Column(BigInteger, default=0, nullable=False)
    refunds_cents = Column(BigInteger, default=0, nullable=False)
    chargebacks_cents = Column(BigInteger, default=0, nullable=False)
    tax_collected_cents = Column(BigInteger, default=0, nullable=False)
    imported_at = Column(DateTime, default=_utcnow, nullable=False)

    # One stored record per logical row per org
    __table_args__ = (
        UniqueConstraint("org_id", "row_hash", name="uq_org_row_hash"),
        Index("ix_records_org_occurred", "org_id", "occurred_at"),
    )


class AccountMapping(Base):
    """Account type to provider account binding."""

    __tablename__ = "account_mappings"

    id = Column(Integer, primary_key=True)
    org_id = Column(String, nullable=False)
    provider = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    external_account_id = Column(String, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("org_id", "provider", "account_type", name="uq_org_provider_account_type"),
    )


class ProviderCredential(Base):
    """Access credential for a connected provider."""

    __tablename__ = "provider_credentials"

    id = Column(Integer, primary_key=True)
    org_id = Column(String, nullable=False)
    provider = Column(String, nullable=False)
    access_token = Column(String, nullable=False)
    refresh_token = Column(String, nullable=True)
    realm_id = Column(String, nullable=True)
    expires_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("org_id", "provider", name="uq_org_provider_credential"),)


class ExportRecord(Base):
    """Append-only provenance row, one per journal submission attempt."""

    __tablename__ = "journal_exports"

    id = Column(Integer, primary_key=True)
    org_id = Column(String, nullable=False)
    provider = Column(String, nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    status = Column(String, nullable=False)
    external_id = Column(String, nullable=True)
    http_status = Column(Integer, nullable=True)
    preview = Column(JSON, nullable=True)
    payload = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (Index("ix_exports_org_provider_period", "org_id", "provider", "period_start"),)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
