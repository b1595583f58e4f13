from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from smartspend.core.predictions import analyze_trends, predict_categories, predict_monthly_spend
from smartspend.database import get_db
from smartspend.deps import get_current_user, get_now
from smartspend.models import User
from smartspend.services.db_service import get_active_subscriptions, get_categories_map, query_transactions

router = APIRouter(tags=["predictions"])


@router.get("/monthly")
def monthly_prediction(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """
    Month-end spend estimate blending current pace, recent history and upcoming subscriptions.
    """
    return predict_monthly_spend(
        query_transactions(db, current_user.id),
        get_active_subscriptions(db, current_user.id),
        now,
    )


@router.get("/category")
def category_predictions(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    return predict_categories(
        query_transactions(db, current_user.id, "expense"),
        get_categories_map(db, current_user.id),
        now,
    )


@router.get("/trends")
def trends(
    months: int = Query(6, ge=1, le=24),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    return analyze_trends(query_transactions(db, current_user.id), now, months)
