from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime, JSON
from sqlalchemy.orm import relationship
from smartspend.database import Base

CURRENCIES = ("GBP", "USD", "EUR")


def default_settings():
    return {
        "theme": "light",
        "notifications": {
            "email": True,
            "push": True,
            "budgetAlerts": True,
            "weeklyReport": False,
        },
    }


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)  # stored lowercased
    hashed_password = Column(String(255), nullable=False)
    avatar = Column(String, default="avatar1.png")
    currency = Column(String(3), default="GBP")
    monthly_income = Column(Float, default=0)
    settings = Column(JSON, default=default_settings)
    created_at = Column(DateTime, default=datetime.now)

    # Account deletion is the only path that cascades to owned records
    categories = relationship("Category", back_populates="owner", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="owner", cascade="all, delete-orphan")
    budgets = relationship("Budget", back_populates="owner", cascade="all, delete-orphan")
    subscriptions = relationship("Subscription", back_populates="owner", cascade="all, delete-orphan")
