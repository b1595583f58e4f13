"""
Financial health score.

Four components add up to a 0..100 score:

    savings rate       40   this month's (income - expense) / income, full marks at 20%
    budget adherence   30   share of active budgets still under 100%
    spending trend     20   change against last month's total
    subscription load  10   normalized subscription cost as a share of income
"""
from datetime import datetime
from typing import Dict, Iterable

from smartspend.core.aggregation import aggregate
from smartspend.core.budgets import budget_percentage, budget_spent
from smartspend.core.money import round_half_up, round_money, round_one
from smartspend.core.periods import month_bounds, shift_month
from smartspend.core.recurring import monthly_cost

TARGET_SAVINGS_RATE = 0.20

GRADES = [
    (80, "excellent"),
    (60, "good"),
    (40, "fair"),
    (0, "poor"),
]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def savings_component(income: float, expense: float) -> Dict:
    if income <= 0:
        return {"points": 0, "max": 40, "savingsRate": 0}
    rate = (income - expense) / income
    return {
        "points": _clamp(rate / TARGET_SAVINGS_RATE, 0, 1) * 40,
        "max": 40,
        "savingsRate": round_one(rate * 100),
    }


def budget_component(budgets: Iterable, transactions: list, now: datetime) -> Dict:
    tracked = [b for b in budgets if b.is_active and b.amount > 0]
    if not tracked:
        return {"points": 15, "max": 30, "budgetsTracked": 0, "budgetsOnTrack": 0}
    on_track = sum(
        1 for b in tracked
        if budget_percentage(budget_spent(b, transactions, now), b.amount) < 100
    )
    return {
        "points": on_track / len(tracked) * 30,
        "max": 30,
        "budgetsTracked": len(tracked),
        "budgetsOnTrack": on_track,
    }


def trend_component(current: float, previous: float) -> Dict:
    if previous <= 0:
        return {"points": 10, "max": 20, "changeVsLastMonth": None}
    change = (current - previous) / previous * 100
    if change <= 0:
        points = 20
    elif change <= 10:
        points = 10
    elif change <= 25:
        points = 5
    else:
        points = 0
    return {"points": points, "max": 20, "changeVsLastMonth": round_one(change)}


def subscription_component(subscriptions: Iterable, income: float) -> Dict:
    cost = monthly_cost(s for s in subscriptions if s.is_active)
    if income <= 0:
        return {"points": 5, "max": 10, "monthlyCost": round_money(cost), "shareOfIncome": None}
    share = cost / income
    if share <= 0.10:
        points = 10
    elif share <= 0.20:
        points = 5
    else:
        points = 0
    return {
        "points": points,
        "max": 10,
        "monthlyCost": round_money(cost),
        "shareOfIncome": round_one(share * 100),
    }


def grade_for(score: int) -> str:
    for floor, grade in GRADES:
        if score >= floor:
            return grade
    return "poor"


def compute_health_score(
    transactions: Iterable,
    budgets: Iterable,
    subscriptions: Iterable,
    now: datetime,
    monthly_income: float = 0,
) -> Dict:
    transactions = list(transactions)
    start, end = month_bounds(now.year, now.month)
    last_start, last_end = month_bounds(*shift_month(now.year, now.month, -1))

    expense = aggregate(transactions, "expense", start, end)["total"]
    income = aggregate(transactions, "income", start, end)["total"] or (monthly_income or 0)
    last_expense = aggregate(transactions, "expense", last_start, last_end)["total"]

    components = {
        "savingsRate": savings_component(income, expense),
        "budgetAdherence": budget_component(budgets, transactions, now),
        "spendingTrend": trend_component(expense, last_expense),
        "subscriptionLoad": subscription_component(subscriptions, income),
    }
    score = round_half_up(sum(c["points"] for c in components.values()))
    score = int(_clamp(score, 0, 100))

    for component in components.values():
        component["points"] = round_one(component["points"])

    return {
        "score": score,
        "grade": grade_for(score),
        "components": components,
        "income": round_money(income),
        "expenses": round_money(expense),
    }
