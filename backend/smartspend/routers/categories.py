import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from smartspend.core.money import round_money
from smartspend.core.periods import month_bounds, shift_month
from smartspend.database import get_db
from smartspend.deps import get_current_user, get_now
from smartspend.models import Budget, Category, Subscription, Transaction, User
from smartspend.schemas import CategoryCreate, CategoryOut, CategoryType, CategoryUpdate
from smartspend.services.db_service import get_user_category, sum_by_month

logger = logging.getLogger(__name__)

router = APIRouter(tags=["categories"])


def _get_or_404(db: Session, user: User, category_id: int) -> Category:
    category = get_user_category(db, user.id, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


def _name_taken(db: Session, user_id: int, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Category).filter(Category.user_id == user_id, Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


@router.get("/", response_model=List[CategoryOut])
def list_categories(
    type: Optional[CategoryType] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Categories sorted by name. Filtering by type also returns 'both' categories.
    """
    query = db.query(Category).filter(Category.user_id == current_user.id)
    if type:
        query = query.filter(or_(Category.type == type, Category.type == "both"))
    return query.order_by(Category.name.asc()).all()


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, current_user, category_id)


@router.get("/{category_id}/stats")
def category_stats(
    category_id: int,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """
    Totals for the category in a window (default: this month) and its last six months.
    """
    category = _get_or_404(db, current_user, category_id)
    month_start, month_end = month_bounds(now.year, now.month)
    start = start_date or month_start
    end = end_date or month_end

    total, count, avg, largest, smallest = db.query(
        func.sum(Transaction.amount),
        func.count(Transaction.id),
        func.avg(Transaction.amount),
        func.max(Transaction.amount),
        func.min(Transaction.amount),
    ).filter(
        Transaction.user_id == current_user.id,
        Transaction.category_id == category.id,
        Transaction.date >= start,
        Transaction.date <= end,
    ).one()

    trend_start = month_bounds(*shift_month(now.year, now.month, -5))[0]
    trend = sum_by_month(db, current_user.id, type=None, category_id=category.id, start=trend_start)

    stats = {"totalAmount": round_money(total or 0), "count": count, "avgAmount": round_money(avg or 0)}
    if count:
        stats["maxAmount"] = largest
        stats["minAmount"] = smallest
    return {
        "stats": stats,
        "monthlyTrend": [
            {"year": row["year"], "month": row["month"], "total": round_money(row["total"])}
            for row in trend
        ],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    name = payload.name.strip()
    if _name_taken(db, current_user.id, name):
        raise HTTPException(status_code=400, detail="Category with this name already exists")

    category = Category(
        user_id=current_user.id,
        name=name,
        icon=payload.icon or "📁",
        color=payload.color or "#6c5ce7",
        type=payload.type,
        is_default=False,
    )
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        # lost a race against a concurrent create with the same name
        db.rollback()
        raise HTTPException(status_code=400, detail="Category with this name already exists")
    db.refresh(category)
    logger.info("Created category %s for user %s", category.id, current_user.id)
    return {"message": "Category created successfully", "category": CategoryOut.model_validate(category)}


@router.put("/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    category = _get_or_404(db, current_user, category_id)
    changes = payload.model_dump(exclude_none=True)
    if "name" in changes:
        changes["name"] = changes["name"].strip()
        if _name_taken(db, current_user.id, changes["name"], exclude_id=category.id):
            raise HTTPException(status_code=400, detail="Category with this name already exists")

    for field, value in changes.items():
        setattr(category, field, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Category with this name already exists")
    db.refresh(category)
    return {"message": "Category updated successfully", "category": CategoryOut.model_validate(category)}


@router.delete("/{category_id}")
def delete_category(category_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    Default categories, and categories still referenced by transactions, are kept.
    """
    category = _get_or_404(db, current_user, category_id)
    if category.is_default:
        raise HTTPException(status_code=400, detail="Cannot delete default categories")

    in_use = db.query(func.count(Transaction.id)).filter(
        Transaction.user_id == current_user.id,
        Transaction.category_id == category.id,
    ).scalar()
    if in_use:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete category with {in_use} transactions. "
                   "Please reassign or delete transactions first.",
        )

    # budgets go with their category; subscriptions only lose the link
    db.query(Budget).filter(Budget.category_id == category.id).delete(synchronize_session=False)
    db.query(Subscription).filter(Subscription.category_id == category.id).update(
        {Subscription.category_id: None}, synchronize_session=False
    )
    db.delete(category)
    db.commit()
    logger.info("Deleted category %s for user %s", category_id, current_user.id)
    return {"message": "Category deleted successfully"}
