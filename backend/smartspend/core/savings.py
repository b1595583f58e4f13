import math
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Iterable, Mapping

from smartspend.core.aggregation import filter_transactions, totals_by_category, totals_by_month
from smartspend.core.money import format_money, round_money
from smartspend.core.periods import month_bounds, shift_month

TRAILING_MONTHS = 6
FEASIBILITY_SLACK = 0.8
REDUCTION_RATE = 0.2
TOP_CATEGORIES = 3


def _monthly_average(transactions, type) -> float:
    months = totals_by_month(filter_transactions(transactions, type))
    return math.fsum(m["total"] for m in months.values()) / max(len(months), 1)


def recommend_savings_goal(
    transactions: Iterable,
    target_amount: float,
    target_months: int,
    now: datetime,
    categories: Mapping = None,
    currency: str = "GBP",
) -> Dict:
    """
    Compare the saving needed for a goal with what the user saves today.

    The goal counts as feasible when current savings cover 80% of the
    monthly target. When it does not, the three largest expense categories
    of the trailing window come back with a flat 20% reduction suggestion.
    """
    if target_months <= 0:
        raise ValueError("target_months must be positive")

    categories = categories or {}
    monthly_target = target_amount / target_months
    window_start = month_bounds(*shift_month(now.year, now.month, -TRAILING_MONTHS))[0]
    window = filter_transactions(transactions, start=window_start)

    avg_income = _monthly_average(window, "income")
    avg_expense = _monthly_average(window, "expense")
    current_savings = avg_income - avg_expense

    recommendations = []
    if current_savings >= monthly_target:
        recommendations.append({
            "type": "success",
            "message": (
                f"Great news! Your current savings rate of {format_money(current_savings, currency)}/month "
                "already meets your goal."
            ),
        })
    else:
        gap = monthly_target - current_savings
        gap_percentage = gap / avg_expense * 100 if avg_expense > 0 else 0
        recommendations.append({
            "type": "info",
            "message": (
                f"You need to save an additional {format_money(gap, currency)}/month "
                f"({gap_percentage:.1f}% of current spending) to reach your goal."
            ),
        })

        ranked = OrderedDict(
            (cid, bucket)
            for cid, bucket in totals_by_category(filter_transactions(window, "expense")).items()
            if cid in categories
        )
        for category_id, bucket in list(ranked.items())[:TOP_CATEGORIES]:
            category = categories[category_id]
            reduction = bucket["total"] / TRAILING_MONTHS * REDUCTION_RATE
            recommendations.append({
                "type": "suggestion",
                "category": category.name,
                "icon": category.icon,
                "message": (
                    f"Reduce {category.name} spending by 20% to save {format_money(reduction, currency)}/month"
                ),
            })

    return {
        "goal": {
            "targetAmount": target_amount,
            "targetMonths": target_months,
            "monthlyRequired": round_money(monthly_target),
        },
        "current": {
            "avgMonthlyIncome": round_money(avg_income),
            "avgMonthlyExpense": round_money(avg_expense),
            "avgMonthlySavings": round_money(current_savings),
        },
        "feasible": current_savings >= monthly_target * FEASIBILITY_SLACK,
        "recommendations": recommendations,
    }
