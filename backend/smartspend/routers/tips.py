import math
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from smartspend.core.periods import month_bounds, shift_month
from smartspend.core.savings import TRAILING_MONTHS, recommend_savings_goal
from smartspend.core.tips import build_tip_context, generate_tips, summarize_tips
from smartspend.database import get_db
from smartspend.deps import get_current_user, get_now
from smartspend.models import User
from smartspend.services.db_service import (
    get_active_budgets,
    get_active_subscriptions,
    get_categories_map,
    query_transactions,
)

router = APIRouter(tags=["tips"])


@router.get("/")
def smart_tips(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """
    Personalised tips for this month plus the savings they could unlock.
    """
    since = month_bounds(*shift_month(now.year, now.month, -1))[0]
    ctx = build_tip_context(
        query_transactions(db, current_user.id, "expense", start=since),
        now,
        budgets=get_active_budgets(db, current_user.id),
        subscriptions=get_active_subscriptions(db, current_user.id),
        categories=get_categories_map(db, current_user.id),
        currency=current_user.currency,
    )
    tips = generate_tips(ctx)
    return {"tips": tips, "summary": summarize_tips(tips)}


@router.get("/savings-goal")
def savings_goal(
    target_amount: Optional[float] = Query(None, alias="targetAmount"),
    target_months: Optional[int] = Query(None, alias="targetMonths"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    if (not target_amount or not target_months or not math.isfinite(target_amount)
            or target_amount <= 0 or target_months <= 0):
        raise HTTPException(status_code=400, detail="Target amount and months are required")

    since = month_bounds(*shift_month(now.year, now.month, -TRAILING_MONTHS))[0]
    return recommend_savings_goal(
        query_transactions(db, current_user.id, start=since),
        target_amount,
        target_months,
        now,
        categories=get_categories_map(db, current_user.id),
        currency=current_user.currency,
    )
