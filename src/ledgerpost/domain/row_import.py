"""Row import domain service."""

import csv
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from ledgerpost.database.base import Database
from ledgerpost.domain.entities import RecordKind
from ledgerpost.domain.errors import ConflictError, ValidationError, duplicate_row
from ledgerpost.utils.date_parser import parse_timestamp
from ledgerpost.utils.money_parser import parse_money_cents
from ledgerpost.utils.row_hash import compute_row_hash

logger = logging.getLogger(__name__)

# Canonical field -> accepted column names, first match wins
SALE_COLUMNS: dict[str, tuple[str, ...]] = {
    "marketplace": ("marketplace", "Marketplace", "platform"),
    "order_ref": ("marketplaceOrderId", "orderId", "Order ID"),
    "occurred_at": ("soldAt", "date", "Sold At"),
    "sale_price": ("salePrice", "Sale Price", "price"),
    "shipping_charged": ("shippingCharged", "Shipping Charged", "shipping_income"),
    "shipping_cost": ("shippingCost", "Shipping Cost", "shipping_label_cost"),
    "platform_fees": ("platformFees", "Platform Fees", "fees"),
    "discounts": ("discounts", "Discounts"),
    "refunds": ("refunds", "Refunds"),
    "chargebacks": ("chargebacks", "Chargebacks"),
    "tax_collected": ("taxCollected", "Sales Tax Collected", "tax"),
}

EXPENSE_COLUMNS: dict[str, tuple[str, ...]] = {
    "occurred_at": ("occurredAt", "date", "Date"),
    "amount": ("amount", "Amount"),
    "category": ("category", "Category"),
    "vendor": ("vendor", "Vendor"),
    "mileage_miles": ("mileageMiles", "Mileage"),
    "vehicle_rate": ("vehicleRate", "Vehicle Rate"),
}

SALE_COMPONENTS = (
    "shipping_charged",
    "shipping_cost",
    "platform_fees",
    "discounts",
    "refunds",
    "chargebacks",
    "tax_collected",
)


def _pick(row: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    for name in aliases:
        value = row.get(name)
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        return value
    return None


def _parse_decimal(value: Any, field: str) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value).replace(",", ""))
    except InvalidOperation:
        raise ValidationError(f"Invalid {field} '{value}'")


class RowImportService:
    """Service for importing sale and expense rows."""

    def __init__(self, db: Database):
        """Initialize row import service.

        Args:
            db: Database instance
        """
        self.db = db

    def _sale_fields(self, row: Mapping[str, Any], source_label: str) -> dict[str, Any]:
        values = {field: _pick(row, aliases) for field, aliases in SALE_COLUMNS.items()}

        if values["marketplace"] is None:
            raise ValidationError("Missing marketplace")
        if values["occurred_at"] is None:
            raise ValidationError("Missing sale date")
        if values["sale_price"] is None:
            raise ValidationError("Missing sale price")

        marketplace = str(values["marketplace"]).strip().lower()
        order_ref = str(values["order_ref"]) if values["order_ref"] is not None else None
        occurred_at = parse_timestamp(values["occurred_at"])
        sale_price_cents = parse_money_cents(values["sale_price"])

        fields: dict[str, Any] = {
            "kind": RecordKind.SALE.value,
            "occurred_at": occurred_at,
            "amount_cents": sale_price_cents,
            "category": "revenue",
            "vendor": marketplace,
            "order_ref": order_ref,
            "source_label": source_label,
            "sale_price_cents": sale_price_cents,
        }
        for component in SALE_COMPONENTS:
            fields[f"{component}_cents"] = parse_money_cents(values[component])

        fields["row_hash"] = compute_row_hash(
            source_label, occurred_at, sale_price_cents, "revenue", marketplace, reference=order_ref
        )
        return fields

    def _expense_fields(self, row: Mapping[str, Any], source_label: str) -> dict[str, Any]:
        values = {field: _pick(row, aliases) for field, aliases in EXPENSE_COLUMNS.items()}

        if values["occurred_at"] is None:
            raise ValidationError("Missing date")
        if values["amount"] is None:
            raise ValidationError("Missing amount")
        if values["category"] is None:
            raise ValidationError("Missing category")

        occurred_at = parse_timestamp(values["occurred_at"])
        amount_cents = parse_money_cents(values["amount"])
        category = str(values["category"]).strip()
        vendor = str(values["vendor"]).strip() if values["vendor"] is not None else None

        return {
            "kind": RecordKind.EXPENSE.value,
            "occurred_at": occurred_at,
            "amount_cents": amount_cents,
            "category": category,
            "vendor": vendor,
            "order_ref": None,
            "source_label": source_label,
            "mileage_miles": _parse_decimal(values["mileage_miles"], "mileage"),
            "vehicle_rate": _parse_decimal(values["vehicle_rate"], "vehicle rate"),
            "row_hash": compute_row_hash(source_label, occurred_at, amount_cents, category, vendor),
        }

    def import_rows(
        self,
        org_id: str,
        source_label: str,
        rows: Iterable[Mapping[str, Any]],
        kind: RecordKind | str = RecordKind.SALE,
        first_row_num: int = 1,
    ) -> dict[str, Any]:
        """Import loosely typed rows for an organization.

        Args:
            org_id: Organization ID
            source_label: Label of the import source; part of the dedupe hash
            rows: Row mappings (CSV dicts or JSON objects)
            kind: "sale" or "expense"
            first_row_num: Number reported for the first row in messages

        Returns:
            Dict with import statistics:
            - inserted: number of records stored
            - inserted_ids: IDs of stored records
            - skipped_duplicates: skip reason per duplicate row
            - errors: validation error per rejected row

        Raises:
            ValidationError: If org_id is empty or kind is unknown
        """
        if not org_id:
            raise ValidationError("Organization ID is required")
        try:
            kind = RecordKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown record kind '{kind}'")

        build_fields = self._sale_fields if kind is RecordKind.SALE else self._expense_fields
        source_label = source_label or "unknown"

        inserted_ids: list[int] = []
        skipped: list[str] = []
        errors: list[str] = []

        for row_num, row in enumerate(rows, start=first_row_num):
            if not isinstance(row, Mapping):
                errors.append(f"Row {row_num}: expected an object with named fields, got {type(row).__name__}")
                continue

            try:
                fields = build_fields(row, source_label)
            except ValidationError as e:
                errors.append(f"Row {row_num}: {e}")
                continue

            row_hash = fields.pop("row_hash")
            if self.db.record_hash_exists(org_id, row_hash):
                skipped.append(duplicate_row(row_num, row_hash))
                continue

            try:
                inserted_ids.append(self.db.create_record(org_id=org_id, row_hash=row_hash, **fields))
            except ConflictError:
                # Lost a race with a concurrent import of the same row
                skipped.append(duplicate_row(row_num, row_hash))

        logger.info(
            "Imported %d %s rows for org %s from %s (%d duplicates, %d errors)",
            len(inserted_ids),
            kind.value,
            org_id,
            source_label,
            len(skipped),
            len(errors),
        )
        return {
            "inserted": len(inserted_ids),
            "inserted_ids": inserted_ids,
            "skipped_duplicates": skipped,
            "errors": errors,
        }

    def import_csv(
        self,
        csv_file_path: str,
        org_id: str,
        kind: RecordKind | str = RecordKind.SALE,
        source_label: Optional[str] = None,
    ) -> dict[str, Any]:
        """Import rows from a CSV file.

        The source label defaults to the file name, so re-importing the same
        file skips every row it already stored.

        Raises:
            ValidationError: If the file has no header row
            FileNotFoundError: If CSV file doesn't exist
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            sample = f.read(1024)
            f.seek(0)
            try:
                delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
            except csv.Error:
                delimiter = ","

            reader = csv.DictReader(f, delimiter=delimiter)
            if reader.fieldnames is None:
                raise ValidationError("CSV file has no columns")

            # Row 1 is the header
            return self.import_rows(
                org_id=org_id,
                source_label=source_label or csv_path.name,
                rows=reader,
                kind=kind,
                first_row_num=2,
            )
