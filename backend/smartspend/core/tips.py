"""
Rule-based smart tips.

Every rule is a plain function taking a TipContext and returning a list of
tips (empty when the rule does not fire). Rules never see each other's
output; `generate_tips` runs them in registry order and stable-sorts the
result by priority.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from smartspend.core.aggregation import filter_transactions, totals_by_category
from smartspend.core.money import format_money, round_half_up, round_money
from smartspend.core.periods import days_in_month, is_weekend, month_bounds, shift_month
from smartspend.core.recurring import monthly_cost

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

SPIKE_THRESHOLD = 30  # % increase vs last month
SPIKE_HIGH_THRESHOLD = 50
BUDGET_EXHAUSTION_PCT = 90
BUDGET_MIN_DAYS_LEFT = 7
SUBSCRIPTION_COUNT_LIMIT = 5
SUBSCRIPTION_COST_LIMIT = 100
SMALL_PURCHASE_AMOUNT = 10
SMALL_PURCHASE_COUNT = 20
WEEKEND_SHARE_LIMIT = 0.4
PROGRESS_RATIO = 0.9


@dataclass
class TipContext:
    now: datetime
    current_expenses: List
    last_month_expenses: List
    budgets: List = field(default_factory=list)
    subscriptions: List = field(default_factory=list)
    categories: Mapping = field(default_factory=dict)
    currency: str = "GBP"

    def __post_init__(self):
        self.current_by_category = totals_by_category(self.current_expenses)
        self.last_by_category = totals_by_category(self.last_month_expenses)

    @property
    def days_left_in_month(self) -> int:
        return days_in_month(self.now.year, self.now.month) - self.now.day

    def money(self, amount: float) -> str:
        return format_money(amount, self.currency)


def build_tip_context(
    transactions: Iterable,
    now: datetime,
    budgets: Iterable = (),
    subscriptions: Iterable = (),
    categories: Optional[Mapping] = None,
    currency: str = "GBP",
) -> TipContext:
    transactions = list(transactions)
    current_start, current_end = month_bounds(now.year, now.month)
    last_start, last_end = month_bounds(*shift_month(now.year, now.month, -1))
    return TipContext(
        now=now,
        current_expenses=filter_transactions(transactions, "expense", current_start, current_end),
        last_month_expenses=filter_transactions(transactions, "expense", last_start, last_end),
        budgets=[b for b in budgets if b.is_active],
        subscriptions=[s for s in subscriptions if s.is_active],
        categories=categories or {},
        currency=currency,
    )


def detect_category_spikes(ctx: TipContext) -> List[Dict]:
    tips = []
    for category_id, current in ctx.current_by_category.items():
        category = ctx.categories.get(category_id)
        previous = ctx.last_by_category.get(category_id)
        if category is None or previous is None or previous["total"] <= 0:
            continue
        increase = (current["total"] - previous["total"]) / previous["total"] * 100
        if increase <= SPIKE_THRESHOLD:
            continue
        tips.append({
            "id": f"spending-increase-{category.name}",
            "type": "warning",
            "category": category.name,
            "icon": category.icon,
            "title": f"{category.name} spending is up {round_half_up(increase)}%",
            "description": (
                f"You've spent {ctx.money(current['total'])} on {category.name} this month, "
                f"compared to {ctx.money(previous['total'])} last month."
            ),
            "potentialSavings": round_money(current["total"] - previous["total"]),
            "action": f"Try to reduce {category.name} spending to last month's level",
            "priority": "high" if increase > SPIKE_HIGH_THRESHOLD else "medium",
        })
    return tips


def detect_budget_exhaustion(ctx: TipContext) -> List[Dict]:
    tips = []
    days_left = ctx.days_left_in_month
    for budget in ctx.budgets:
        spending = ctx.current_by_category.get(budget.category_id)
        if spending is None or budget.amount <= 0:
            continue
        percentage = spending["total"] * 100 / budget.amount
        if percentage < BUDGET_EXHAUSTION_PCT or days_left <= BUDGET_MIN_DAYS_LEFT:
            continue
        category = ctx.categories.get(budget.category_id)
        name = category.name if category is not None else "Budget"
        tips.append({
            "id": f"budget-warning-{name}",
            "type": "alert",
            "category": name,
            "icon": category.icon if category is not None else "⚠️",
            "title": f"{name} budget almost exhausted",
            "description": (
                f"You've used {round_half_up(percentage)}% of your {ctx.money(budget.amount)} budget "
                f"with {days_left} days left."
            ),
            "potentialSavings": round_money(budget.amount * 0.1),
            "action": f"Limit {name} spending for the rest of the month",
            "priority": "high",
        })
    return tips


def detect_subscription_overload(ctx: TipContext) -> List[Dict]:
    count = len(ctx.subscriptions)
    cost = monthly_cost(ctx.subscriptions)
    if count <= SUBSCRIPTION_COUNT_LIMIT or cost <= SUBSCRIPTION_COST_LIMIT:
        return []
    return [{
        "id": "subscription-review",
        "type": "insight",
        "category": "Subscriptions",
        "icon": "📺",
        "title": "Review your subscriptions",
        "description": (
            f"You have {count} active subscriptions costing {ctx.money(cost)}/month. "
            "Consider reviewing which ones you actually use."
        ),
        "potentialSavings": round_money(cost * 0.2),
        "action": "Cancel unused subscriptions to save up to 20%",
        "priority": "medium",
    }]


def detect_small_purchases(ctx: TipContext) -> List[Dict]:
    small = [t.amount for t in ctx.current_expenses if t.amount < SMALL_PURCHASE_AMOUNT]
    if len(small) <= SMALL_PURCHASE_COUNT:
        return []
    total = math.fsum(small)
    return [{
        "id": "small-purchases",
        "type": "insight",
        "category": "General",
        "icon": "💡",
        "title": "Watch your small purchases",
        "description": (
            f"You've made {len(small)} purchases under {ctx.money(SMALL_PURCHASE_AMOUNT)}, "
            f"totaling {ctx.money(total)}. These add up quickly!"
        ),
        "potentialSavings": round_money(total * 0.3),
        "action": "Try to batch small purchases or use the 24-hour rule before buying",
        "priority": "low",
    }]


def detect_weekend_concentration(ctx: TipContext) -> List[Dict]:
    weekend = math.fsum(t.amount for t in ctx.current_expenses if is_weekend(t.date))
    total = math.fsum(t.amount for t in ctx.current_expenses)
    if total <= 0 or weekend / total <= WEEKEND_SHARE_LIMIT:
        return []
    return [{
        "id": "weekend-spending",
        "type": "insight",
        "category": "General",
        "icon": "📅",
        "title": "Weekend spending is high",
        "description": (
            f"{round_half_up(weekend / total * 100)}% of your spending happens on weekends. "
            "Plan budget-friendly weekend activities."
        ),
        "potentialSavings": round_money(weekend * 0.15),
        "action": "Set a weekend spending limit or plan free activities",
        "priority": "medium",
    }]


def detect_positive_progress(ctx: TipContext) -> List[Dict]:
    current = math.fsum(b["total"] for b in ctx.current_by_category.values())
    previous = math.fsum(b["total"] for b in ctx.last_by_category.values())
    if previous <= 0 or current >= previous * PROGRESS_RATIO:
        return []
    return [{
        "id": "great-progress",
        "type": "success",
        "category": "General",
        "icon": "🎉",
        "title": "Great progress this month!",
        "description": (
            f"You've spent {round_half_up((1 - current / previous) * 100)}% less than last month so far. "
            "Keep it up!"
        ),
        "potentialSavings": round_money(previous - current),
        "action": "Maintain your current spending habits",
        "priority": "low",
    }]


TIP_DETECTORS: List[Callable[[TipContext], List[Dict]]] = [
    detect_category_spikes,
    detect_budget_exhaustion,
    detect_subscription_overload,
    detect_small_purchases,
    detect_weekend_concentration,
    detect_positive_progress,
]


def generate_tips(ctx: TipContext, detectors: Optional[List[Callable]] = None) -> List[Dict]:
    tips = []
    for detector in detectors or TIP_DETECTORS:
        tips.extend(detector(ctx))
    # sorted() is stable: equal priorities keep detector order
    return sorted(tips, key=lambda tip: PRIORITY_ORDER[tip["priority"]])


def summarize_tips(tips: List[Dict]) -> Dict:
    potential = math.fsum(tip.get("potentialSavings") or 0 for tip in tips)
    return {
        "totalTips": len(tips),
        "highPriority": sum(1 for tip in tips if tip["priority"] == "high"),
        "potentialMonthlySavings": round_money(potential),
        "potentialYearlySavings": round_money(potential * 12),
    }
