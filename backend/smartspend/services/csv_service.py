"""
CSV import/export of transactions.

Columns: date, amount, type, category, description. Categories are matched
by name (case-insensitive); unknown names land in "Other".
"""
import csv
import io
import logging
import math
from datetime import datetime
from typing import Dict, Iterable, List, Tuple

from smartspend.models import Category, Transaction

logger = logging.getLogger(__name__)

CSV_HEADERS = ["date", "amount", "type", "category", "description"]
FALLBACK_CATEGORY = "Other"


def export_transactions(transactions: Iterable[Transaction]) -> str:
    out = io.StringIO()
    writer = csv.writer(out)
    writer.writerow(CSV_HEADERS)
    for txn in transactions:
        writer.writerow([
            txn.date.strftime("%Y-%m-%d"),
            f"{txn.amount:.2f}",
            txn.type,
            txn.category.name if txn.category else "",
            txn.description or "",
        ])
    return out.getvalue()


def _parse_date(value: str) -> datetime:
    value = value.strip()
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return datetime.fromisoformat(value)


def parse_transactions(
    content: str,
    user_id: int,
    categories: Iterable[Category],
) -> Tuple[List[Transaction], List[Dict]]:
    """
    Build unsaved Transaction rows from CSV text.

    Returns (transactions, errors); a bad row is reported and skipped, it
    never aborts the import. Raises ValueError when required headers are
    missing.
    """
    reader = csv.DictReader(io.StringIO(content))
    headers = {h.strip().lower() for h in (reader.fieldnames or [])}
    missing = [h for h in ("date", "amount", "type") if h not in headers]
    if missing:
        raise ValueError(f"CSV must have headers: {', '.join(CSV_HEADERS)}")

    by_name = {c.name.lower(): c for c in categories}
    fallback = by_name.get(FALLBACK_CATEGORY.lower())

    transactions, errors = [], []
    for line, raw in enumerate(reader, start=2):
        try:
            # DictReader files surplus fields under the None key
            if None in raw:
                raise ValueError("too many fields")
            row = {k.strip().lower(): (v or "").strip() for k, v in raw.items()}
            kind = row["type"].lower()
            if kind not in ("income", "expense"):
                raise ValueError(f"invalid type '{row['type']}'")
            amount = float(row["amount"])
            if not math.isfinite(amount) or amount <= 0:
                raise ValueError("amount must be a positive number")
            category = by_name.get(row.get("category", "").lower(), fallback)
            if category is None:
                raise ValueError(f"unknown category '{row.get('category', '')}'")
            transactions.append(Transaction(
                user_id=user_id,
                type=kind,
                amount=amount,
                category_id=category.id,
                description=row.get("description") or category.name,
                date=_parse_date(row["date"]),
                tags=[],
                is_recurring=False,
            ))
        except (KeyError, ValueError) as e:
            logger.warning("Skipping CSV line %d: %s", line, e)
            errors.append({"line": line, "error": str(e)})
    return transactions, errors
