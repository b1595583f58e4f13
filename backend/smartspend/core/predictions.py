"""
Monthly spend predictor, category predictor and trend analyzer.

Intermediate math stays unrounded; figures are rounded only in the returned
dicts.
"""
import math
from datetime import datetime
from typing import Dict, Iterable, List, Mapping

from smartspend.core.aggregation import aggregate, filter_transactions, totals_by_category
from smartspend.core.money import round_money, round_one
from smartspend.core.periods import MONTH_NAMES, days_in_month, month_bounds, shift_month

# Weighted blend of the three estimates; favours the current month's pace
TREND_WEIGHT = 0.6
HISTORICAL_WEIGHT = 0.3
SUBSCRIPTION_WEIGHT = 0.1

HISTORY_MONTHS = 3


def _previous_month_totals(transactions: List, now: datetime, months: int) -> List[Dict]:
    """Expense totals of the `months` months before now, newest first; months without data are left out."""
    history = []
    for offset in range(1, months + 1):
        year, month = shift_month(now.year, now.month, -offset)
        start, end = month_bounds(year, month)
        result = aggregate(transactions, "expense", start, end)
        if result["count"] > 0:
            history.append({"year": year, "month": month, "total": result["total"]})
    return history


def predict_monthly_spend(transactions: Iterable, subscriptions: Iterable, now: datetime) -> Dict:
    transactions = list(transactions)
    current_day = now.day
    month_days = days_in_month(now.year, now.month)
    days_remaining = month_days - current_day
    month_start, month_end = month_bounds(now.year, now.month)

    spent = aggregate(transactions, "expense", month_start, month_end)["total"]
    daily_average = spent / current_day if current_day > 0 else 0

    history = _previous_month_totals(transactions, now, HISTORY_MONTHS)
    if history:
        historical = math.fsum(m["total"] for m in history) / len(history)
    else:
        historical = daily_average * month_days

    upcoming = math.fsum(
        sub.amount for sub in subscriptions
        if sub.is_active and sub.frequency == "monthly" and sub.billing_day > current_day
    )

    trend_based = spent + daily_average * days_remaining
    subscription_adjusted = trend_based + upcoming
    prediction = (
        trend_based * TREND_WEIGHT
        + historical * HISTORICAL_WEIGHT
        + subscription_adjusted * SUBSCRIPTION_WEIGHT
    )

    income = aggregate(transactions, "income", month_start, month_end)["total"]

    return {
        "currentMonth": {
            "spent": round_money(spent),
            "income": round_money(income),
            "daysElapsed": current_day,
            "daysRemaining": days_remaining,
            "dailyAverage": round_money(daily_average),
        },
        "prediction": {
            "estimated": round_money(prediction),
            "trendBased": round_money(trend_based),
            "historicalBased": round_money(historical),
            "upcomingSubscriptions": round_money(upcoming),
            "subscriptionAdjusted": round_money(subscription_adjusted),
        },
        "comparison": {
            "vsLastMonths": [
                {"month": m["month"], "year": m["year"], "total": round_money(m["total"])}
                for m in history
            ],
            "averageLastMonths": round_money(historical),
        },
        # None rather than 0: no income recorded is not the same as no savings
        "savingsOpportunity": round_money(income - prediction) if income > 0 else None,
    }


def predict_categories(transactions: Iterable, categories: Mapping, now: datetime) -> List[Dict]:
    """Month-end projection per category, ordered by spend so far (not by projection)."""
    current_day = now.day
    month_days = days_in_month(now.year, now.month)
    start, end = month_bounds(now.year, now.month)
    expenses = filter_transactions(transactions, "expense", start, end)

    predictions = []
    for category_id, bucket in totals_by_category(expenses).items():
        category = categories.get(category_id)
        if category is None:
            continue
        daily_average = bucket["total"] / current_day if current_day > 0 else 0
        predictions.append({
            "category": {
                "id": category.id,
                "name": category.name,
                "icon": category.icon,
                "color": category.color,
            },
            "spent": round_money(bucket["total"]),
            "transactionCount": bucket["count"],
            "dailyAverage": round_money(daily_average),
            "predictedTotal": round_money(daily_average * month_days),
        })
    return predictions


def _mean(values: List[float]) -> float:
    return math.fsum(values) / len(values) if values else 0


def analyze_trends(transactions: Iterable, now: datetime, months: int = 6) -> Dict:
    """
    Month-over-month direction over the last `months` calendar months.

    Compares the mean expense of the most recent three months with the mean
    of the earliest three. With fewer than six months the two slices overlap.
    """
    transactions = list(transactions)
    rows = []
    for i in range(months):
        year, month = shift_month(now.year, now.month, -(months - 1 - i))
        start, end = month_bounds(year, month)
        expense = aggregate(transactions, "expense", start, end)
        income = aggregate(transactions, "income", start, end)
        rows.append({
            "month": MONTH_NAMES[month - 1],
            "year": year,
            "expenses": expense["total"],
            "income": income["total"],
            "savings": income["total"] - expense["total"],
            "transactionCount": expense["count"],
        })

    recent_mean = _mean([r["expenses"] for r in rows[-3:]])
    previous_mean = _mean([r["expenses"] for r in rows[:3]])

    if recent_mean > previous_mean:
        direction = "increasing"
    elif recent_mean < previous_mean:
        direction = "decreasing"
    else:
        direction = "stable"
    change = (recent_mean - previous_mean) / previous_mean * 100 if previous_mean > 0 else 0

    return {
        "monthlyData": [
            {
                **row,
                "expenses": round_money(row["expenses"]),
                "income": round_money(row["income"]),
                "savings": round_money(row["savings"]),
            }
            for row in rows
        ],
        "trend": {
            "direction": direction,
            "percentageChange": round_one(change),
        },
        "averages": {
            "monthlyExpense": round_money(_mean([r["expenses"] for r in rows])),
            "monthlyIncome": round_money(_mean([r["income"] for r in rows])),
            "monthlySavings": round_money(_mean([r["savings"] for r in rows])),
        },
    }
