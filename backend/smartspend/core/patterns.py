"""
Spending-pattern detection over the current month, up to `now`.

Feeds the dashboard insights and the health score page.
"""
import math
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List

from smartspend.core.aggregation import filter_transactions, totals_by_day
from smartspend.core.money import round_money, round_one
from smartspend.core.periods import DAY_NAMES, is_weekend, month_bounds

# Uniform spread would put ~14.3% on each weekday
DAY_SKEW_SHARE = 0.25
DAY_SKEW_MIN_EXPENSES = 5
WEEKEND_SKEW_RATIO = 1.5


def month_to_date_expenses(transactions: Iterable, now: datetime) -> List:
    start, _ = month_bounds(now.year, now.month)
    return filter_transactions(transactions, "expense", start, now)


def _elapsed_days(now: datetime) -> List[date]:
    first = date(now.year, now.month, 1)
    return [first + timedelta(days=i) for i in range(now.day)]


def day_of_week_pattern(expenses: List) -> Dict:
    totals = [0.0] * 7
    for txn in expenses:
        totals[txn.date.weekday()] += txn.amount
    overall = math.fsum(totals)

    if overall <= 0:
        return {
            "totals": {name: 0 for name in DAY_NAMES},
            "peakDay": None,
            "peakShare": 0,
            "skewed": False,
        }

    peak = max(range(7), key=lambda i: totals[i])
    share = totals[peak] / overall
    return {
        "totals": {name: round_money(totals[i]) for i, name in enumerate(DAY_NAMES)},
        "peakDay": DAY_NAMES[peak],
        "peakShare": round_one(share * 100),
        "skewed": share > DAY_SKEW_SHARE and len(expenses) >= DAY_SKEW_MIN_EXPENSES,
    }


def weekend_pattern(expenses: List, now: datetime) -> Dict:
    weekend = math.fsum(t.amount for t in expenses if is_weekend(t.date))
    weekday = math.fsum(t.amount for t in expenses if not is_weekend(t.date))
    days = _elapsed_days(now)
    weekend_days = sum(1 for d in days if d.weekday() >= 5)
    weekday_days = len(days) - weekend_days

    weekend_avg = weekend / weekend_days if weekend_days else 0
    weekday_avg = weekday / weekday_days if weekday_days else 0
    if weekday_avg > 0:
        skewed = weekend_avg > weekday_avg * WEEKEND_SKEW_RATIO
    else:
        skewed = weekend_avg > 0

    total = weekend + weekday
    return {
        "weekendTotal": round_money(weekend),
        "weekdayTotal": round_money(weekday),
        "weekendShare": round_one(weekend / total * 100) if total > 0 else 0,
        "weekendDailyAverage": round_money(weekend_avg),
        "weekdayDailyAverage": round_money(weekday_avg),
        "skewed": skewed,
    }


def spending_streaks(expenses: List, now: datetime) -> Dict:
    """Longest spending / no-spend runs and the no-spend run ending today."""
    if not expenses:
        return {"longestSpendingStreak": 0, "longestNoSpendStreak": 0, "currentNoSpendStreak": 0}

    spend_days = set(totals_by_day(expenses))
    longest_spend = longest_quiet = run_spend = run_quiet = 0
    for day in _elapsed_days(now):
        if day in spend_days:
            run_spend += 1
            run_quiet = 0
        else:
            run_quiet += 1
            run_spend = 0
        longest_spend = max(longest_spend, run_spend)
        longest_quiet = max(longest_quiet, run_quiet)

    return {
        "longestSpendingStreak": longest_spend,
        "longestNoSpendStreak": longest_quiet,
        # the loop ends on today, so the open quiet run is the current streak
        "currentNoSpendStreak": run_quiet,
    }


def detect_patterns(transactions: Iterable, now: datetime) -> Dict:
    expenses = month_to_date_expenses(transactions, now)
    return {
        "expenseCount": len(expenses),
        "dayOfWeek": day_of_week_pattern(expenses),
        "weekend": weekend_pattern(expenses, now),
        "streaks": spending_streaks(expenses, now),
    }
