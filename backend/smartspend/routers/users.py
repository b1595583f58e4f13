import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smartspend.database import get_db
from smartspend.deps import get_current_user
from smartspend.models import User
from smartspend.models.user import default_settings
from smartspend.schemas import ProfileUpdate, SettingsUpdate, UserOut

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


@router.get("/profile", response_model=UserOut)
def read_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for field, value in payload.model_dump(exclude_none=True).items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return {"message": "Profile updated successfully", "user": UserOut.model_validate(current_user)}


@router.put("/settings")
def update_settings(
    payload: SettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Partial update; unspecified notification flags keep their value.
    """
    # JSON columns only persist on reassignment, not in-place mutation
    merged = default_settings()
    merged.update(current_user.settings or {})
    merged["notifications"] = dict(merged.get("notifications") or {})

    if payload.theme:
        merged["theme"] = payload.theme
    if payload.notifications:
        merged["notifications"].update(payload.notifications.model_dump(by_alias=True, exclude_none=True))
    current_user.settings = merged
    if payload.currency:
        current_user.currency = payload.currency

    db.commit()
    db.refresh(current_user)
    return {
        "message": "Settings updated successfully",
        "settings": current_user.settings,
        "currency": current_user.currency,
    }


@router.delete("/account")
def delete_account(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    Delete the user and, through the relationship cascades, every record they own.
    """
    user_id = current_user.id
    try:
        db.delete(current_user)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted account %s", user_id)
    return {"message": "Account deleted successfully"}
