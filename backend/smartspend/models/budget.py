from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from smartspend.database import Base


class Category(Base):
    """Income/expense category, unique by name per user"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    icon = Column(String, default="📁")
    color = Column(String(16), default="#6c5ce7")
    type = Column(String(10), nullable=False, default="expense")  # income | expense | both
    is_default = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.now)

    owner = relationship("User", back_populates="categories")

    __table_args__ = (UniqueConstraint("user_id", "name", name="_user_category_name_uc"),)


class Budget(Base):
    """Spending limit for one category; one per (user, category)"""
    __tablename__ = "budgets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    amount = Column(Float, nullable=False)
    period = Column(String(10), nullable=False, default="monthly")  # weekly | monthly | yearly
    alert_threshold = Column(Integer, default=80)  # 0..100
    is_active = Column(Boolean, default=True)
    start_date = Column(DateTime, default=datetime.now)
    created_at = Column(DateTime, default=datetime.now)

    owner = relationship("User", back_populates="budgets")
    category = relationship("Category")

    __table_args__ = (UniqueConstraint("user_id", "category_id", name="_user_budget_category_uc"),)
