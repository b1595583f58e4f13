import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload

from smartspend.core.recurring import subscription_summary
from smartspend.database import get_db
from smartspend.deps import get_current_user, get_now
from smartspend.models import Subscription, User
from smartspend.schemas import SubscriptionCreate, SubscriptionOut, SubscriptionUpdate
from smartspend.services.db_service import get_active_subscriptions, get_user_category

logger = logging.getLogger(__name__)

router = APIRouter(tags=["subscriptions"])


def _get_or_404(db: Session, user: User, subscription_id: int) -> Subscription:
    sub = db.query(Subscription).options(joinedload(Subscription.category)).filter(
        Subscription.id == subscription_id,
        Subscription.user_id == user.id,
    ).first()
    if not sub:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return sub


@router.get("/", response_model=List[SubscriptionOut])
def list_subscriptions(
    active: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Subscription).options(joinedload(Subscription.category)).filter(
        Subscription.user_id == current_user.id
    )
    if active is not None:
        query = query.filter(Subscription.is_active == active)
    return query.order_by(Subscription.next_billing_date.asc(), Subscription.id.asc()).all()


@router.get("/summary")
def subscriptions_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """
    Normalized monthly/yearly cost of active subscriptions and those billing within a week.
    """
    return subscription_summary(get_active_subscriptions(db, current_user.id), now)


@router.get("/{subscription_id}", response_model=SubscriptionOut)
def get_subscription(subscription_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, current_user, subscription_id)


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_subscription(
    payload: SubscriptionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    if payload.category_id is not None and not get_user_category(db, current_user.id, payload.category_id):
        raise HTTPException(status_code=400, detail="Category not found")

    fields = payload.model_dump(exclude_none=True)
    sub = Subscription.create(now, user_id=current_user.id, **fields)
    try:
        db.add(sub)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(sub)
    logger.info("Created subscription %s for user %s", sub.id, current_user.id)
    return {"message": "Subscription created successfully", "subscription": SubscriptionOut.model_validate(sub)}


@router.put("/{subscription_id}")
def update_subscription(
    subscription_id: int,
    payload: SubscriptionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Field update only; the next billing date stays as it was set at creation.
    """
    sub = _get_or_404(db, current_user, subscription_id)
    changes = payload.model_dump(exclude_none=True)
    if "category_id" in changes and not get_user_category(db, current_user.id, changes["category_id"]):
        raise HTTPException(status_code=400, detail="Category not found")

    for field, value in changes.items():
        setattr(sub, field, value)
    db.commit()
    db.refresh(sub)
    return {"message": "Subscription updated successfully", "subscription": SubscriptionOut.model_validate(sub)}


@router.put("/{subscription_id}/toggle")
def toggle_subscription(subscription_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    sub = _get_or_404(db, current_user, subscription_id)
    sub.is_active = not sub.is_active
    db.commit()
    db.refresh(sub)
    state = "activated" if sub.is_active else "paused"
    return {"message": f"Subscription {state} successfully", "subscription": SubscriptionOut.model_validate(sub)}


@router.delete("/{subscription_id}")
def delete_subscription(subscription_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    sub = _get_or_404(db, current_user, subscription_id)
    db.delete(sub)
    db.commit()
    logger.info("Deleted subscription %s for user %s", subscription_id, current_user.id)
    return {"message": "Subscription deleted successfully"}
