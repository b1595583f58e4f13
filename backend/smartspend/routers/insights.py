from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smartspend.core.insights import analyze_dashboard
from smartspend.core.periods import month_bounds, shift_month
from smartspend.database import get_db
from smartspend.deps import get_current_user, get_now
from smartspend.models import User
from smartspend.schemas import InsightsPreviewRequest
from smartspend.services.db_service import (
    get_active_budgets,
    get_active_subscriptions,
    get_categories_map,
    query_transactions,
)

router = APIRouter(tags=["insights"])


@router.get("/")
def dashboard_insights(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """
    Health score, spending patterns and insights for the current month.
    """
    since = month_bounds(*shift_month(now.year, now.month, -1))[0]
    return analyze_dashboard(
        query_transactions(db, current_user.id, start=since),
        now,
        budgets=get_active_budgets(db, current_user.id),
        subscriptions=get_active_subscriptions(db, current_user.id),
        monthly_income=current_user.monthly_income or 0,
        categories=get_categories_map(db, current_user.id),
        currency=current_user.currency,
    )


@router.post("/preview")
def preview_insights(payload: InsightsPreviewRequest, now: datetime = Depends(get_now)):
    """
    Same analysis over caller-supplied transactions; nothing is read or stored.
    """
    return analyze_dashboard(
        payload.transactions,
        now,
        monthly_income=payload.monthly_income,
        currency=payload.currency,
    )
