import logging
import math
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from smartspend.core.aggregation import totals_by_day
from smartspend.core.money import round_money
from smartspend.core.periods import month_bounds
from smartspend.database import get_db
from smartspend.deps import get_current_user, get_now
from smartspend.models import Category, Transaction, User
from smartspend.schemas import (
    CategoryBrief,
    TransactionCreate,
    TransactionOut,
    TransactionType,
    TransactionUpdate,
)
from smartspend.services import csv_service
from smartspend.services.db_service import get_user_category, query_transactions, sum_by_category

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transactions"])

SORTABLE_FIELDS = {
    "date": Transaction.date,
    "amount": Transaction.amount,
    "description": Transaction.description,
    "createdAt": Transaction.created_at,
}


def _get_or_404(db: Session, user: User, transaction_id: int) -> Transaction:
    txn = db.query(Transaction).options(joinedload(Transaction.category)).filter(
        Transaction.id == transaction_id,
        Transaction.user_id == user.id,
    ).first()
    if not txn:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return txn


def _check_category(db: Session, user: User, category_id: int):
    if not get_user_category(db, user.id, category_id):
        raise HTTPException(status_code=400, detail="Category not found")


def _order_by(sort: str):
    descending = sort.startswith("-")
    column = SORTABLE_FIELDS.get(sort.lstrip("-"))
    if column is None:
        raise HTTPException(status_code=400, detail=f"Cannot sort by '{sort}'")
    return column.desc() if descending else column.asc()


@router.get("/")
def list_transactions(
    type: Optional[TransactionType] = None,
    category: Optional[int] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    min_amount: Optional[float] = Query(None, alias="minAmount"),
    max_amount: Optional[float] = Query(None, alias="maxAmount"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    sort: str = "-date",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Filtered, paginated transaction list, newest first by default.
    """
    query = db.query(Transaction).filter(Transaction.user_id == current_user.id)
    if type:
        query = query.filter(Transaction.type == type)
    if category is not None:
        query = query.filter(Transaction.category_id == category)
    if start_date:
        query = query.filter(Transaction.date >= start_date)
    if end_date:
        query = query.filter(Transaction.date <= end_date)
    if min_amount is not None:
        query = query.filter(Transaction.amount >= min_amount)
    if max_amount is not None:
        query = query.filter(Transaction.amount <= max_amount)

    total = query.count()
    rows = (
        query.options(joinedload(Transaction.category))
        .order_by(_order_by(sort), Transaction.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "transactions": [TransactionOut.model_validate(t) for t in rows],
        "pagination": {
            "total": total,
            "page": page,
            "pages": math.ceil(total / limit),
            "limit": limit,
        },
    }


@router.get("/summary")
def transactions_summary(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    period: str = "month",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """
    Income/expense totals, spend by category and daily spend for a window.
    """
    if start_date and end_date:
        start, end = start_date, end_date
    elif period == "year":
        start, end = datetime(now.year, 1, 1), month_bounds(now.year, 12)[1]
    else:
        start, end = month_bounds(now.year, now.month)

    totals = dict(
        (kind, (total or 0, count))
        for kind, total, count in db.query(
            Transaction.type, func.sum(Transaction.amount), func.count(Transaction.id)
        ).filter(
            Transaction.user_id == current_user.id,
            Transaction.date >= start,
            Transaction.date <= end,
        ).group_by(Transaction.type).all()
    )
    income = totals.get("income", (0, 0))
    expenses = totals.get("expense", (0, 0))

    by_category = sum_by_category(db, current_user.id, "expense", start, end)
    expense_rows = query_transactions(db, current_user.id, "expense", start=start, end=end)

    return {
        "income": round_money(income[0]),
        "expenses": round_money(expenses[0]),
        "balance": round_money(income[0] - expenses[0]),
        "transactionCount": income[1] + expenses[1],
        "byCategory": [
            {
                "category": CategoryBrief.model_validate(row["category"]),
                "total": round_money(row["total"]),
                "count": row["count"],
            }
            for row in by_category
        ],
        "dailySpending": [
            {"date": day.isoformat(), "total": round_money(bucket["total"])}
            for day, bucket in totals_by_day(expense_rows).items()
        ],
    }


@router.get("/export")
def export_transactions(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = query_transactions(db, current_user.id, start=start_date, end=end_date)
    return Response(
        content=csv_service.export_transactions(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=transactions.csv"},
    )


@router.post("/import", status_code=status.HTTP_201_CREATED)
async def import_transactions(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Bulk-create transactions from an uploaded CSV; bad rows are skipped and reported.
    """
    raw = await file.read()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")

    categories = db.query(Category).filter(Category.user_id == current_user.id).all()
    try:
        transactions, errors = csv_service.parse_transactions(content, current_user.id, categories)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        db.add_all(transactions)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Imported %d transactions for user %s (%d skipped)",
                len(transactions), current_user.id, len(errors))
    return {
        "message": f"Imported {len(transactions)} transactions",
        "imported": len(transactions),
        "skipped": len(errors),
        "errors": errors,
    }


@router.get("/{transaction_id}", response_model=TransactionOut)
def get_transaction(transaction_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, current_user, transaction_id)


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    _check_category(db, current_user, payload.category_id)
    txn = Transaction(
        user_id=current_user.id,
        type=payload.type,
        amount=payload.amount,
        category_id=payload.category_id,
        description=payload.description.strip(),
        date=payload.date or now,
        tags=payload.tags,
        notes=payload.notes,
        is_recurring=payload.is_recurring,
        recurring_frequency=payload.recurring_frequency,
    )
    try:
        db.add(txn)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(txn)
    logger.info("Created %s transaction %s for user %s", txn.type, txn.id, current_user.id)
    return {"message": "Transaction created successfully", "transaction": TransactionOut.model_validate(txn)}


@router.put("/{transaction_id}")
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    txn = _get_or_404(db, current_user, transaction_id)
    changes = payload.model_dump(exclude_unset=True)
    for required in ("type", "amount", "category_id", "description", "date"):
        if required in changes and changes[required] is None:
            del changes[required]
    if "category_id" in changes:
        _check_category(db, current_user, changes["category_id"])

    for field, value in changes.items():
        setattr(txn, field, value)
    db.commit()
    db.refresh(txn)
    return {"message": "Transaction updated successfully", "transaction": TransactionOut.model_validate(txn)}


@router.delete("/{transaction_id}")
def delete_transaction(transaction_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    txn = _get_or_404(db, current_user, transaction_id)
    db.delete(txn)
    db.commit()
    logger.info("Deleted transaction %s for user %s", transaction_id, current_user.id)
    return {"message": "Transaction deleted successfully"}
