"""
Dashboard insights: a fixed battery of rules over the month so far.

Same shape as the tip generator, but the rules emit in registry order with
no priority sort, so the dashboard always lists them the same way.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from smartspend.core.aggregation import aggregate, totals_by_category
from smartspend.core.health import compute_health_score
from smartspend.core.money import format_money, round_half_up
from smartspend.core.patterns import detect_patterns, month_to_date_expenses
from smartspend.core.periods import days_in_month, month_bounds

TOP_CATEGORY_SHARE = 0.4
NO_SPEND_STREAK_MIN = 3
SPENDING_STREAK_MIN = 7
SPIKE_MULTIPLIER = 3
SPIKE_MIN_EXPENSES = 5
UNKNOWN_CATEGORY = "Other"


@dataclass
class InsightContext:
    now: datetime
    expenses: List
    patterns: Dict
    income: float = 0
    categories: Mapping = field(default_factory=dict)
    currency: str = "GBP"

    @property
    def total_spent(self) -> float:
        return math.fsum(t.amount for t in self.expenses)

    def category_name(self, category_id) -> str:
        category = self.categories.get(category_id)
        if category is not None:
            return category.name
        # preview payloads carry the category name in place of an id
        if isinstance(category_id, str) and category_id.strip():
            return category_id
        return UNKNOWN_CATEGORY

    def money(self, amount: float) -> str:
        return format_money(amount, self.currency)


def build_insight_context(
    transactions: Iterable,
    now: datetime,
    monthly_income: float = 0,
    categories: Optional[Mapping] = None,
    currency: str = "GBP",
) -> InsightContext:
    transactions = list(transactions)
    start, end = month_bounds(now.year, now.month)
    income = aggregate(transactions, "income", start, end)["total"] or (monthly_income or 0)
    return InsightContext(
        now=now,
        expenses=month_to_date_expenses(transactions, now),
        patterns=detect_patterns(transactions, now),
        income=income,
        categories=categories or {},
        currency=currency,
    )


def top_category_insight(ctx: InsightContext) -> List[Dict]:
    total = ctx.total_spent
    if total <= 0:
        return []
    category_id, bucket = next(iter(totals_by_category(ctx.expenses).items()))
    share = bucket["total"] / total
    if share <= TOP_CATEGORY_SHARE:
        return []
    name = ctx.category_name(category_id)
    return [{
        "id": "top-category",
        "type": "warning",
        "title": f"{name} dominates your spending",
        "message": f"{round_half_up(share * 100)}% of this month's spending went to {name}.",
    }]


def weekend_insight(ctx: InsightContext) -> List[Dict]:
    weekend = ctx.patterns["weekend"]
    if not weekend["skewed"]:
        return []
    return [{
        "id": "weekend-skew",
        "type": "info",
        "title": "Weekends cost more",
        "message": (
            f"You spend {ctx.money(weekend['weekendDailyAverage'])} per weekend day versus "
            f"{ctx.money(weekend['weekdayDailyAverage'])} on weekdays."
        ),
    }]


def day_of_week_insight(ctx: InsightContext) -> List[Dict]:
    pattern = ctx.patterns["dayOfWeek"]
    if not pattern["skewed"]:
        return []
    return [{
        "id": "day-of-week-skew",
        "type": "info",
        "title": f"{pattern['peakDay']} is your big spending day",
        "message": f"{pattern['peakShare']}% of this month's spending happened on {pattern['peakDay']}s.",
    }]


def no_spend_streak_insight(ctx: InsightContext) -> List[Dict]:
    streak = ctx.patterns["streaks"]["currentNoSpendStreak"]
    if streak < NO_SPEND_STREAK_MIN:
        return []
    return [{
        "id": "no-spend-streak",
        "type": "success",
        "title": f"{streak} days without spending",
        "message": "Nice work! Keep the no-spend streak going.",
    }]


def spending_streak_insight(ctx: InsightContext) -> List[Dict]:
    streak = ctx.patterns["streaks"]["longestSpendingStreak"]
    if streak < SPENDING_STREAK_MIN:
        return []
    return [{
        "id": "spending-streak",
        "type": "warning",
        "title": f"{streak} spending days in a row",
        "message": "Try adding a few no-spend days to your week.",
    }]


def spike_insight(ctx: InsightContext) -> List[Dict]:
    if len(ctx.expenses) < SPIKE_MIN_EXPENSES:
        return []
    mean = ctx.total_spent / len(ctx.expenses)
    largest = max(ctx.expenses, key=lambda t: t.amount)
    if largest.amount <= mean * SPIKE_MULTIPLIER:
        return []
    label = largest.description or ctx.category_name(largest.category_id)
    return [{
        "id": "spending-spike",
        "type": "warning",
        "title": "Unusually large purchase",
        "message": (
            f"{label} ({ctx.money(largest.amount)}) is more than {SPIKE_MULTIPLIER}x "
            f"your average expense of {ctx.money(mean)}."
        ),
    }]


def pace_insight(ctx: InsightContext) -> List[Dict]:
    if ctx.income <= 0 or not ctx.expenses:
        return []
    daily_average = ctx.total_spent / ctx.now.day
    projected = daily_average * days_in_month(ctx.now.year, ctx.now.month)
    if projected <= ctx.income:
        return []
    return [{
        "id": "overspend-pace",
        "type": "danger",
        "title": "On pace to overspend",
        "message": (
            f"At {ctx.money(daily_average)}/day you'll spend {ctx.money(projected)} this month, "
            f"{ctx.money(projected - ctx.income)} more than your income."
        ),
    }]


INSIGHT_RULES: List[Callable[[InsightContext], List[Dict]]] = [
    top_category_insight,
    weekend_insight,
    day_of_week_insight,
    no_spend_streak_insight,
    spending_streak_insight,
    spike_insight,
    pace_insight,
]


def generate_insights(ctx: InsightContext, rules: Optional[List[Callable]] = None) -> List[Dict]:
    insights = []
    for rule in rules or INSIGHT_RULES:
        insights.extend(rule(ctx))
    return insights


def analyze_dashboard(
    transactions: Iterable,
    now: datetime,
    budgets: Iterable = (),
    subscriptions: Iterable = (),
    monthly_income: float = 0,
    categories: Optional[Mapping] = None,
    currency: str = "GBP",
) -> Dict:
    """Health score, patterns and insights in one payload."""
    transactions = list(transactions)
    ctx = build_insight_context(transactions, now, monthly_income, categories, currency)
    return {
        "healthScore": compute_health_score(transactions, budgets, subscriptions, now, monthly_income),
        "patterns": ctx.patterns,
        "insights": generate_insights(ctx),
    }
