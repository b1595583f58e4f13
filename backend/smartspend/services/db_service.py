"""
Record-store queries shared by the routers.

Every helper is scoped to one user; the engine in smartspend.core only ever
sees what these return.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from smartspend.models import Budget, Category, Subscription, Transaction

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ("Salary", "💰", "#2ecc71", "income"),
    ("Freelance", "💼", "#3498db", "income"),
    ("Investments", "📈", "#9b59b6", "income"),
    ("Food & Dining", "🍔", "#e74c3c", "expense"),
    ("Transportation", "🚗", "#f39c12", "expense"),
    ("Shopping", "🛒", "#e91e63", "expense"),
    ("Entertainment", "🎬", "#9c27b0", "expense"),
    ("Bills & Utilities", "📱", "#00bcd4", "expense"),
    ("Healthcare", "🏥", "#4caf50", "expense"),
    ("Education", "📚", "#ff9800", "expense"),
    ("Travel", "✈️", "#03a9f4", "expense"),
    ("Subscriptions", "📺", "#6c5ce7", "expense"),
    ("Other", "📁", "#95a5a6", "both"),
]


def query_transactions(
    db: Session,
    user_id: int,
    type: Optional[str] = None,
    category_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Transaction]:
    """User's transactions in [start, end], oldest first"""
    query = db.query(Transaction).filter(Transaction.user_id == user_id)
    if type:
        query = query.filter(Transaction.type == type)
    if category_id is not None:
        query = query.filter(Transaction.category_id == category_id)
    if start is not None:
        query = query.filter(Transaction.date >= start)
    if end is not None:
        query = query.filter(Transaction.date <= end)
    return query.order_by(Transaction.date.asc(), Transaction.id.asc()).all()


def sum_by_category(
    db: Session,
    user_id: int,
    type: str = "expense",
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Dict]:
    """Grouped totals joined with their category, largest first"""
    total = func.sum(Transaction.amount).label("total")
    count = func.count(Transaction.id).label("count")
    query = (
        db.query(Category, total, count)
        .join(Transaction, Transaction.category_id == Category.id)
        .filter(Transaction.user_id == user_id, Transaction.type == type)
    )
    if start is not None:
        query = query.filter(Transaction.date >= start)
    if end is not None:
        query = query.filter(Transaction.date <= end)
    rows = query.group_by(Category.id).order_by(total.desc()).all()
    return [{"category": category, "total": row_total or 0, "count": row_count}
            for category, row_total, row_count in rows]


def sum_by_month(
    db: Session,
    user_id: int,
    type: Optional[str] = "expense",
    category_id: Optional[int] = None,
    start: Optional[datetime] = None,
) -> List[Dict]:
    year = extract("year", Transaction.date).label("year")
    month = extract("month", Transaction.date).label("month")
    query = db.query(year, month, func.sum(Transaction.amount), func.count(Transaction.id)) \
        .filter(Transaction.user_id == user_id)
    if type:
        query = query.filter(Transaction.type == type)
    if category_id is not None:
        query = query.filter(Transaction.category_id == category_id)
    if start is not None:
        query = query.filter(Transaction.date >= start)
    rows = query.group_by(year, month).order_by(year, month).all()
    return [{"year": int(y), "month": int(m), "total": t or 0, "count": c} for y, m, t, c in rows]


def get_categories_map(db: Session, user_id: int) -> Dict[int, Category]:
    categories = db.query(Category).filter(Category.user_id == user_id).all()
    return {c.id: c for c in categories}


def get_user_category(db: Session, user_id: int, category_id: int) -> Optional[Category]:
    return db.query(Category).filter(
        Category.id == category_id,
        Category.user_id == user_id,
    ).first()


def get_active_budgets(db: Session, user_id: int) -> List[Budget]:
    return db.query(Budget).filter(Budget.user_id == user_id, Budget.is_active == True).all()  # noqa: E712


def get_active_subscriptions(db: Session, user_id: int) -> List[Subscription]:
    return db.query(Subscription).filter(
        Subscription.user_id == user_id,
        Subscription.is_active == True,  # noqa: E712
    ).all()


def initialize_default_categories(db: Session, user_id: int):
    """Seed the default categories for a new user; caller commits"""
    for name, icon, color, type in DEFAULT_CATEGORIES:
        db.add(Category(
            user_id=user_id,
            name=name,
            icon=icon,
            color=color,
            type=type,
            is_default=True,
        ))
    logger.info("Seeded %d default categories for user %s", len(DEFAULT_CATEGORIES), user_id)
