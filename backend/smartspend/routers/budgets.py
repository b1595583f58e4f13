import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from smartspend.core.budgets import budget_alerts, budget_status
from smartspend.database import get_db
from smartspend.deps import get_current_user, get_now
from smartspend.models import Budget, User
from smartspend.schemas import BudgetCreate, BudgetOut, BudgetUpdate
from smartspend.services.db_service import (
    get_active_budgets,
    get_categories_map,
    get_user_category,
    query_transactions,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["budgets"])


def _get_or_404(db: Session, user: User, budget_id: int) -> Budget:
    budget = db.query(Budget).options(joinedload(Budget.category)).filter(
        Budget.id == budget_id,
        Budget.user_id == user.id,
    ).first()
    if not budget:
        raise HTTPException(status_code=404, detail="Budget not found")
    return budget


@router.get("/")
def list_budgets(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """
    Every budget with the spend of its current period.
    """
    budgets = db.query(Budget).options(joinedload(Budget.category)).filter(
        Budget.user_id == current_user.id
    ).order_by(Budget.id.asc()).all()
    expenses = query_transactions(db, current_user.id, "expense")
    return [
        {**BudgetOut.model_validate(b).model_dump(by_alias=True), **budget_status(b, expenses, now)}
        for b in budgets
    ]


@router.get("/alerts")
def list_alerts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    return budget_alerts(
        get_active_budgets(db, current_user.id),
        query_transactions(db, current_user.id, "expense"),
        now,
        categories=get_categories_map(db, current_user.id),
        currency=current_user.currency,
    )


@router.get("/{budget_id}", response_model=BudgetOut)
def get_budget(budget_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, current_user, budget_id)


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_budget(
    payload: BudgetCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    if not get_user_category(db, current_user.id, payload.category_id):
        raise HTTPException(status_code=400, detail="Category not found")
    existing = db.query(Budget).filter(
        Budget.user_id == current_user.id,
        Budget.category_id == payload.category_id,
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="Budget already exists for this category")

    budget = Budget(
        user_id=current_user.id,
        category_id=payload.category_id,
        amount=payload.amount,
        period=payload.period,
        alert_threshold=payload.alert_threshold,
        is_active=True,
        start_date=now,
    )
    db.add(budget)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Budget already exists for this category")
    db.refresh(budget)
    logger.info("Created budget %s for user %s", budget.id, current_user.id)
    return {"message": "Budget created successfully", "budget": BudgetOut.model_validate(budget)}


@router.put("/{budget_id}")
def update_budget(
    budget_id: int,
    payload: BudgetUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    budget = _get_or_404(db, current_user, budget_id)
    for field, value in payload.model_dump(exclude_none=True).items():
        setattr(budget, field, value)
    db.commit()
    db.refresh(budget)
    return {"message": "Budget updated successfully", "budget": BudgetOut.model_validate(budget)}


@router.delete("/{budget_id}")
def delete_budget(budget_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    budget = _get_or_404(db, current_user, budget_id)
    db.delete(budget)
    db.commit()
    logger.info("Deleted budget %s for user %s", budget_id, current_user.id)
    return {"message": "Budget deleted successfully"}
