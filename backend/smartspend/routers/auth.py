import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from smartspend.core.security import create_access_token, get_password_hash, verify_password
from smartspend.database import get_db
from smartspend.deps import get_current_user
from smartspend.models import User
from smartspend.models.user import default_settings
from smartspend.schemas import ChangePassword, UserOut, UserRegister
from smartspend.services.db_service import initialize_default_categories

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    """
    Create an account and seed its default categories.
    """
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="User already exists with this email")

    user = User(
        name=payload.name,
        email=email,
        hashed_password=get_password_hash(payload.password),
        settings=default_settings(),
    )
    try:
        db.add(user)
        db.flush()
        initialize_default_categories(db, user.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    return {
        "message": "User registered successfully",
        "token": create_access_token({"sub": str(user.id)}),
        "user": UserOut.model_validate(user),
    }


@router.post("/login")
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """
    OAuth2 password flow; the username field carries the email.
    """
    user = db.query(User).filter(User.email == form_data.username.strip().lower()).first()
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    return {
        "access_token": create_access_token({"sub": str(user.id)}),
        "token_type": "bearer",
        "user": UserOut.model_validate(user),
    }


@router.get("/me", response_model=UserOut)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/change-password")
def change_password(
    payload: ChangePassword,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(payload.current_password, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    current_user.hashed_password = get_password_hash(payload.new_password)
    db.commit()
    logger.info("Password changed for user %s", current_user.id)
    return {"message": "Password changed successfully"}
