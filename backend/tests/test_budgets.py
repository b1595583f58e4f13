from datetime import datetime

from smartspend.core.budgets import budget_alert, budget_alerts, budget_status, classify


def test_threshold_boundary_is_inclusive():
    assert classify(80, 80, 100) == "warning"
    assert classify(79.99, 80, 100) is None
    assert classify(100, 80, 100) == "exceeded"


def test_zero_amount_never_alerts():
    assert classify(0, 80, 0) is None
    assert classify(500, 0, 0) is None


def test_warning_alert(now, make):
    txns = [make.txn(50, datetime(2026, 4, 2)), make.txn(30, datetime(2026, 4, 8))]
    alert = budget_alert(make.budget(1, 100), txns, now, category_name="Food")
    assert alert["type"] == "warning"
    assert alert["percentage"] == 80
    assert alert["spent"] == 80
    assert alert["message"] == "You've used 80% of your Food budget"


def test_exceeded_alert_message_uses_currency(now, make):
    txns = [make.txn(120, datetime(2026, 4, 2))]
    alert = budget_alert(make.budget(1, 100), txns, now, category_name="Food", currency="USD")
    assert alert["type"] == "exceeded"
    assert alert["percentage"] == 120
    assert alert["message"] == "You've exceeded your Food budget by $20.00"


def test_below_threshold_gives_no_alert(now, make):
    txns = [make.txn(10, datetime(2026, 4, 2))]
    assert budget_alert(make.budget(1, 100), txns, now) is None


def test_weekly_budget_only_counts_this_week(now, make):
    txns = [
        make.txn(90, datetime(2026, 4, 4, 18)),  # Saturday of the previous week
        make.txn(10, datetime(2026, 4, 5, 8)),
    ]
    b = make.budget(1, 50, period="weekly")
    assert budget_alert(b, txns, now) is None
    assert budget_status(b, txns, now)["spent"] == 10


def test_other_categories_and_income_are_ignored(now, make):
    txns = [
        make.txn(500, datetime(2026, 4, 2), category_id=2),
        make.txn(500, datetime(2026, 4, 2), type="income", category_id=1),
    ]
    assert budget_alert(make.budget(1, 100), txns, now) is None


def test_budget_alerts_skips_inactive(now, make):
    txns = [make.txn(100, datetime(2026, 4, 2), category_id=1), make.txn(100, datetime(2026, 4, 2), category_id=2)]
    budgets = [
        make.budget(1, 100, id=1),
        make.budget(2, 100, id=2, is_active=False),
    ]
    alerts = budget_alerts(budgets, txns, now, categories=make.categories("Food", "Transport"))
    assert [a["budgetId"] for a in alerts] == [1]
    assert alerts[0]["categoryName"] == "Food"


def test_budget_status_fields(now, make):
    txns = [make.txn(85.5, datetime(2026, 4, 3))]
    status = budget_status(make.budget(1, 100), txns, now)
    assert status == {
        "spent": 85.5,
        "remaining": 14.5,
        "percentage": 85.5,
        "isOverBudget": False,
        "isNearLimit": True,
    }


def test_budget_status_over_budget(now, make):
    txns = [make.txn(150, datetime(2026, 4, 3))]
    status = budget_status(make.budget(1, 100), txns, now)
    assert status["isOverBudget"] is True
    assert status["isNearLimit"] is False
    assert status["remaining"] == -50


def test_reaching_threshold_exactly_warns(now, make):
    alert = budget_alert(make.budget(1, 400), [make.txn(320, datetime(2026, 4, 6))], now)
    assert alert["type"] == "warning"
    assert alert["percentage"] == 80
