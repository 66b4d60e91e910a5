"""Content hashes used to reject re-imported rows.

The hash is a SHA-256 over a canonical JSON array, so the same logical row
produces the same value on every platform and process. Fields outside the
hashed set (titles, notes, raw column names) never influence it.
"""

import hashlib
import json
from typing import Optional


def _canonical_label(value: Optional[str]) -> str:
    return " ".join(str(value).split()).lower() if value is not None else ""


def compute_row_hash(
    source_label: str,
    occurred_at: int,
    amount_cents: int,
    category: str,
    vendor: Optional[str],
    reference: Optional[str] = None,
) -> str:
    """Compute the dedupe hash for one imported row.

    Args:
        source_label: Import source (file name or caller-provided label)
        occurred_at: Epoch milliseconds
        amount_cents: Integer cents
        category: Record category
        vendor: Vendor or marketplace label
        reference: Marketplace order id; only hashed when present

    Returns:
        64-character hex digest
    """
    fields: list = [
        " ".join(str(source_label).split()),
        int(occurred_at),
        int(amount_cents),
        _canonical_label(category),
        _canonical_label(vendor),
    ]
    if reference:
        fields.append(str(reference).strip())

    canonical = json.dumps(fields, separators=(",", ":"), ensure_ascii=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
