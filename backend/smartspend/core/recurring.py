import math
from datetime import datetime, timedelta
from typing import Dict, Iterable

from smartspend.core.money import round_money
from smartspend.core.periods import days_in_month, shift_month

# 52 / 12, truncated; kept as-is so monthly figures match the dashboard
WEEKS_PER_MONTH = 4.33


def normalize_to_monthly(amount: float, frequency: str) -> float:
    if frequency == "weekly":
        return amount * WEEKS_PER_MONTH
    if frequency == "yearly":
        return amount / 12
    return amount


def normalize_to_yearly(amount: float, frequency: str) -> float:
    if frequency == "weekly":
        return amount * 52
    if frequency == "monthly":
        return amount * 12
    return amount


def monthly_cost(subscriptions: Iterable) -> float:
    return math.fsum(normalize_to_monthly(s.amount, s.frequency) for s in subscriptions)


def _billing_date(year: int, month: int, billing_day: int) -> datetime:
    # Day 31 in a 30-day month bills on the 30th
    return datetime(year, month, min(billing_day, days_in_month(year, month)))


def next_billing_date(billing_day: int, now: datetime) -> datetime:
    """
    Next occurrence of `billing_day` strictly after `now`.

    Computed once when a subscription is created and not advanced afterwards.
    """
    candidate = _billing_date(now.year, now.month, billing_day)
    if candidate <= now:
        year, month = shift_month(now.year, now.month, 1)
        candidate = _billing_date(year, month, billing_day)
    return candidate


def subscription_summary(subscriptions: Iterable, now: datetime, horizon_days: int = 7) -> Dict:
    subscriptions = list(subscriptions)
    monthly_total = math.fsum(normalize_to_monthly(s.amount, s.frequency) for s in subscriptions)
    yearly_total = math.fsum(normalize_to_yearly(s.amount, s.frequency) for s in subscriptions)

    horizon = now + timedelta(days=horizon_days)
    upcoming = []
    for sub in subscriptions:
        due = sub.next_billing_date
        if due is None or not (now <= due <= horizon):
            continue
        upcoming.append({
            "id": sub.id,
            "name": sub.name,
            "amount": sub.amount,
            "nextBillingDate": due,
            "daysUntil": math.ceil((due - now).total_seconds() / 86400),
        })

    return {
        "count": len(subscriptions),
        "monthlyTotal": round_money(monthly_total),
        "yearlyTotal": round_money(yearly_total),
        "upcoming": upcoming,
    }
