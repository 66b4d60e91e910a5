"""Shared pytest fixtures for ledgerpost tests."""

import tempfile
import os
from datetime import datetime, timedelta, UTC
from pathlib import Path
import pytest

from ledgerpost.config import Settings
from ledgerpost.database.factories import create_sqlite_database
from ledgerpost.domain.account_mapping import AccountMappingService
from ledgerpost.domain.credentials import CredentialService
from ledgerpost.domain.export import ExportService
from ledgerpost.domain.journal_builder import JournalBuilderService
from ledgerpost.domain.row_import import RowImportService

ORG = "acme"
REALM = "9130"
QBO_BASE = "https://qbo.test"
JOURNAL_URL = f"{QBO_BASE}/v3/company/{REALM}/journalentry"
QUERY_URL = f"{QBO_BASE}/v3/company/{REALM}/query"

QBO_ACCOUNTS = {
    "revenue": "79",
    "shipping_income": "80",
    "fees_expense": "81",
    "refunds_contra": "82",
    "chargebacks_expense": "83",
    "shipping_cost": "84",
    "sales_tax_liability": "85",
    "clearing": "86",
}


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def settings():
    """Settings pointing at a fake QuickBooks host, without retries."""
    return Settings(qbo_base_url=QBO_BASE, http_timeout=5, http_retries=0)


@pytest.fixture
def import_service(temp_db):
    """Create a RowImportService with a temporary database."""
    return RowImportService(temp_db)


@pytest.fixture
def mapping_service(temp_db):
    """Create an AccountMappingService with a temporary database."""
    return AccountMappingService(temp_db)


@pytest.fixture
def builder(temp_db):
    """Create a JournalBuilderService with a temporary database."""
    return JournalBuilderService(temp_db)


@pytest.fixture
def credential_service(temp_db):
    """Create a CredentialService with a temporary database."""
    return CredentialService(temp_db)


@pytest.fixture
def export_service(temp_db, settings):
    """Create an ExportService talking to the fake QuickBooks host."""
    return ExportService(temp_db, settings=settings)


@pytest.fixture
def full_mappings(mapping_service):
    """Map every account type for the QuickBooks provider."""
    for account_type, account_id in QBO_ACCOUNTS.items():
        mapping_service.set_mapping(ORG, "quickbooks", account_type, account_id)
    return dict(QBO_ACCOUNTS)


@pytest.fixture
def connected_org(credential_service):
    """Store a live QuickBooks credential for the sample org."""
    credential_service.save(
        ORG,
        "quickbooks",
        access_token="test-token",
        expires_at=datetime.now(UTC) + timedelta(hours=1),
        realm_id=REALM,
    )
    return ORG


@pytest.fixture
def sample_sales(import_service):
    """Import three sales over two days and two marketplaces."""
    rows = [
        {
            "marketplace": "Etsy",
            "orderId": "E-1001",
            "date": "2024-03-05",
            "salePrice": "100.00",
            "shippingCharged": "5.00",
            "platformFees": "3.00",
            "shippingCost": "2.00",
            "taxCollected": "8.00",
        },
        {
            "marketplace": "etsy",
            "orderId": "E-1002",
            "date": "2024-03-05",
            "salePrice": "$40.00",
            "platformFees": "1.20",
        },
        {
            "marketplace": "ebay",
            "orderId": "B-77",
            "date": "2024-03-06",
            "salePrice": "25.50",
            "refunds": "5.50",
        },
    ]
    result = import_service.import_rows(ORG, "fixture", rows)
    assert result["errors"] == []
    return result["inserted_ids"]


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
