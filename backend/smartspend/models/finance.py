from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Boolean, Text, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from smartspend.database import Base
from smartspend.core.recurring import next_billing_date


class Transaction(Base):
    __tablename__ = "transactions"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(10), nullable=False)  # income | expense
    amount = Column(Float, nullable=False)  # always positive
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    description = Column(String, nullable=False)
    date = Column(DateTime, default=datetime.now, index=True)
    tags = Column(JSON, default=list)
    notes = Column(Text, nullable=True)
    is_recurring = Column(Boolean, default=False)
    recurring_frequency = Column(String(10), nullable=True)  # weekly | monthly | yearly
    created_at = Column(DateTime, default=datetime.now)

    owner = relationship("User", back_populates="transactions")
    category = relationship("Category")


class Subscription(Base):
    __tablename__ = "subscriptions"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    frequency = Column(String(10), nullable=False, default="monthly")  # weekly | monthly | yearly
    billing_day = Column(Integer, default=1)  # 1..31
    start_date = Column(DateTime, default=datetime.now)
    next_billing_date = Column(DateTime, nullable=True)
    icon = Column(String, default="📦")
    color = Column(String(16), default="#6c5ce7")
    is_active = Column(Boolean, default=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

    owner = relationship("User", back_populates="subscriptions")
    category = relationship("Category")

    @classmethod
    def create(cls, now: datetime, **fields) -> "Subscription":
        """Build a subscription with its derived next billing date filled in."""
        fields.setdefault("frequency", "monthly")
        fields.setdefault("billing_day", 1)
        fields.setdefault("is_active", True)
        fields.setdefault("start_date", now)
        if fields.get("next_billing_date") is None:
            fields["next_billing_date"] = next_billing_date(fields["billing_day"], now)
        return cls(**fields)
