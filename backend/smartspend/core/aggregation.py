"""
Period aggregator: totals and groupings over a user's transactions.

Input lists are expected to be owner-scoped already. Sums use math.fsum so a
total does not depend on the order transactions arrive in.
"""
import math
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple


def filter_transactions(
    transactions: Iterable,
    type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    category_id=None,
) -> List:
    """Transactions matching type/category whose date falls in the closed window [start, end]."""
    matched = []
    for txn in transactions:
        if type is not None and txn.type != type:
            continue
        if category_id is not None and txn.category_id != category_id:
            continue
        if start is not None and txn.date < start:
            continue
        if end is not None and txn.date > end:
            continue
        matched.append(txn)
    return matched


def aggregate(
    transactions: Iterable,
    type: Optional[str],
    start: Optional[datetime],
    end: Optional[datetime],
    category_id=None,
) -> Dict:
    matched = filter_transactions(transactions, type, start, end, category_id)
    return {
        "total": math.fsum(t.amount for t in matched),
        "count": len(matched),
    }


def _group(transactions: Iterable, key) -> "OrderedDict":
    buckets = OrderedDict()
    for txn in transactions:
        buckets.setdefault(key(txn), []).append(txn.amount)
    return OrderedDict(
        (k, {"total": math.fsum(amounts), "count": len(amounts)})
        for k, amounts in buckets.items()
    )


def totals_by_category(transactions: Iterable, descending: bool = True) -> "OrderedDict":
    """{category_id: {total, count}}, largest total first."""
    grouped = _group(transactions, lambda t: t.category_id)
    if descending:
        grouped = OrderedDict(sorted(grouped.items(), key=lambda item: item[1]["total"], reverse=True))
    return grouped


def totals_by_month(transactions: Iterable) -> Dict[Tuple[int, int], Dict]:
    """{(year, month): {total, count}} in chronological order."""
    grouped = _group(transactions, lambda t: (t.date.year, t.date.month))
    return OrderedDict(sorted(grouped.items()))


def totals_by_day(transactions: Iterable) -> Dict:
    grouped = _group(transactions, lambda t: t.date.date())
    return OrderedDict(sorted(grouped.items()))
