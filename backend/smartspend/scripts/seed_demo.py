"""
Seed the database with a demo account and three months of sample data.

Wipes every existing record first. Login: demo@smartspend.com / demo123
"""
import random
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()

from smartspend.core.periods import shift_month
from smartspend.core.security import get_password_hash
from smartspend.database import Base, SessionLocal, engine
from smartspend.models import Budget, Category, Subscription, Transaction, User
from smartspend.models.user import default_settings
from smartspend.services.db_service import initialize_default_categories

DEMO_EMAIL = "demo@smartspend.com"
DEMO_PASSWORD = "demo123"

# (category, min, max, count per month)
EXPENSE_PLAN = [
    ("Food & Dining", 200, 400, 15),
    ("Transportation", 50, 150, 8),
    ("Shopping", 30, 200, 5),
    ("Entertainment", 20, 80, 6),
    ("Bills & Utilities", 100, 200, 3),
    ("Healthcare", 20, 100, 2),
    ("Subscriptions", 10, 50, 4),
]

BUDGETS = [
    ("Food & Dining", 400, 80),
    ("Transportation", 150, 80),
    ("Shopping", 200, 75),
    ("Entertainment", 100, 80),
    ("Subscriptions", 80, 90),
]

SUBSCRIPTIONS = [
    ("Netflix", 15.99, "🎬", "#e50914", 15),
    ("Spotify", 10.99, "🎵", "#1db954", 1),
    ("Amazon Prime", 8.99, "📦", "#ff9900", 20),
    ("Gym Membership", 29.99, "💪", "#00bcd4", 5),
    ("iCloud", 2.99, "☁️", "#3498db", 10),
]


def seed(db, now: datetime, rng: random.Random):
    for model in (Transaction, Budget, Subscription, Category, User):
        db.query(model).delete()
    print("Cleared existing data")

    user = User(
        name="Demo User",
        email=DEMO_EMAIL,
        hashed_password=get_password_hash(DEMO_PASSWORD),
        avatar="avatar1.png",
        currency="GBP",
        monthly_income=3500,
        settings=default_settings(),
    )
    db.add(user)
    db.flush()
    initialize_default_categories(db, user.id)
    db.flush()
    category_ids = {c.name: c.id for c in db.query(Category).filter(Category.user_id == user.id)}
    print("Created demo user and categories")

    transactions = []
    for offset in range(3):
        year, month = shift_month(now.year, now.month, -offset)
        transactions.append(Transaction(
            user_id=user.id, type="income", amount=3500, category_id=category_ids["Salary"],
            description="Monthly Salary", date=datetime(year, month, 28), tags=[],
        ))
        for name, low, high, count in EXPENSE_PLAN:
            for _ in range(count):
                transactions.append(Transaction(
                    user_id=user.id,
                    type="expense",
                    amount=round(rng.uniform(low, high), 2),
                    category_id=category_ids[name],
                    description=f"{name} expense",
                    date=datetime(year, month, rng.randint(1, 28)),
                    tags=[],
                ))
    db.add_all(transactions)
    print(f"Created {len(transactions)} transactions")

    for name, amount, threshold in BUDGETS:
        db.add(Budget(
            user_id=user.id, category_id=category_ids[name], amount=amount,
            period="monthly", alert_threshold=threshold, is_active=True, start_date=now,
        ))
    print("Created budgets")

    for name, amount, icon, color, billing_day in SUBSCRIPTIONS:
        db.add(Subscription.create(
            now,
            user_id=user.id, name=name, amount=amount, icon=icon, color=color,
            billing_day=billing_day, category_id=category_ids["Subscriptions"],
        ))
    print("Created subscriptions")

    db.commit()
    return user


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed(db, datetime.now(), random.Random())
        print("\n✅ Database seeded successfully!")
        print(f"   Email: {DEMO_EMAIL}")
        print(f"   Password: {DEMO_PASSWORD}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
