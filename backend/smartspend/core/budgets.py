"""
Budget status evaluator.

A budget alerts once the spend of its current period (weekly, monthly or
yearly window around `now`) reaches its alert threshold. Budgets with a zero
amount never alert.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

from smartspend.core.aggregation import aggregate
from smartspend.core.money import format_money, round_half_up, round_money, round_one
from smartspend.core.periods import period_bounds

DEFAULT_ALERT_THRESHOLD = 80


def _threshold(budget) -> float:
    return budget.alert_threshold if budget.alert_threshold is not None else DEFAULT_ALERT_THRESHOLD


def budget_spent(budget, transactions: Iterable, now: datetime) -> float:
    start, end = period_bounds(budget.period or "monthly", now)
    return aggregate(transactions, "expense", start, end, category_id=budget.category_id)["total"]


def budget_percentage(spent: float, amount: float) -> float:
    if amount <= 0:
        return 0
    return spent * 100 / amount


def classify(percentage: float, alert_threshold: float, amount: float) -> Optional[str]:
    """'exceeded', 'warning' or None. The threshold boundary is inclusive."""
    if amount <= 0:
        return None
    if percentage >= 100:
        return "exceeded"
    if percentage >= alert_threshold:
        return "warning"
    return None


def budget_alert(
    budget,
    transactions: Iterable,
    now: datetime,
    category_name: Optional[str] = None,
    currency: str = "GBP",
) -> Optional[Dict]:
    spent = budget_spent(budget, transactions, now)
    percentage = budget_percentage(spent, budget.amount)
    kind = classify(percentage, _threshold(budget), budget.amount)
    if kind is None:
        return None

    name = category_name or "category"
    if kind == "exceeded":
        message = f"You've exceeded your {name} budget by {format_money(spent - budget.amount, currency)}"
    else:
        message = f"You've used {round_half_up(percentage)}% of your {name} budget"

    return {
        "budgetId": budget.id,
        "categoryId": budget.category_id,
        "categoryName": category_name,
        "budgetAmount": budget.amount,
        "spent": round_money(spent),
        "percentage": round_half_up(percentage),
        "type": kind,
        "message": message,
    }


def budget_alerts(
    budgets: Iterable,
    transactions: Iterable,
    now: datetime,
    categories: Optional[Mapping] = None,
    currency: str = "GBP",
) -> List[Dict]:
    transactions = list(transactions)
    categories = categories or {}
    alerts = []
    for budget in budgets:
        if not budget.is_active:
            continue
        category = categories.get(budget.category_id)
        alert = budget_alert(
            budget, transactions, now,
            category_name=category.name if category is not None else None,
            currency=currency,
        )
        if alert:
            alerts.append(alert)
    return alerts


def budget_status(budget, transactions: Iterable, now: datetime) -> Dict:
    """Spend figures shown next to each budget in the budget list."""
    spent = budget_spent(budget, transactions, now)
    percentage = budget_percentage(spent, budget.amount)
    return {
        "spent": round_money(spent),
        "remaining": round_money(budget.amount - spent),
        "percentage": round_one(percentage),
        "isOverBudget": spent > budget.amount,
        "isNearLimit": budget.amount > 0 and _threshold(budget) <= percentage < 100,
    }
