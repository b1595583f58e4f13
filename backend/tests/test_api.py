from smartspend.services.db_service import DEFAULT_CATEGORIES


def _add_txn(client, headers, category_id, amount, date, type="expense", description="Groceries"):
    resp = client.post("/api/transactions/", headers=headers, json={
        "type": type,
        "amount": amount,
        "categoryId": category_id,
        "description": description,
        "date": date,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["transaction"]


def _register(client, email="other@example.com"):
    resp = client.post("/api/auth/register", json={"name": "Other", "email": email, "password": "secret123"})
    return {"Authorization": f"Bearer {resp.json()['token']}"}


# --- auth / users ---

def test_health(client):
    assert client.get("/health").json()["status"] == "OK"


def test_register_seeds_default_categories(client, auth_headers):
    me = client.get("/api/auth/me", headers=auth_headers).json()
    assert me["email"] == "test@example.com"
    assert me["currency"] == "GBP"
    assert me["settings"]["notifications"]["budgetAlerts"] is True

    categories = client.get("/api/categories/", headers=auth_headers).json()
    assert len(categories) == len(DEFAULT_CATEGORIES) == 13
    assert all(c["isDefault"] for c in categories)


def test_register_rejects_duplicate_email(client, auth_headers):
    resp = client.post("/api/auth/register", json={"name": "Again", "email": "test@example.com", "password": "secret123"})
    assert resp.status_code == 400


def test_register_validates_password_length(client):
    resp = client.post("/api/auth/register", json={"name": "A", "email": "a@example.com", "password": "123"})
    assert resp.status_code == 422


def test_login_and_token(client, auth_headers):
    resp = client.post("/api/auth/login", data={"username": "TEST@example.com", "password": "secret123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.json()["name"] == "Test User"


def test_login_with_wrong_password(client, auth_headers):
    resp = client.post("/api/auth/login", data={"username": "test@example.com", "password": "nope123"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid credentials"


def test_requests_without_token_are_rejected(client):
    assert client.get("/api/budgets/").status_code == 401
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


def test_change_password(client, auth_headers):
    resp = client.post("/api/auth/change-password", headers=auth_headers,
                       json={"currentPassword": "wrong1", "newPassword": "newpass1"})
    assert resp.status_code == 400
    resp = client.post("/api/auth/change-password", headers=auth_headers,
                       json={"currentPassword": "secret123", "newPassword": "newpass1"})
    assert resp.status_code == 200
    login = client.post("/api/auth/login", data={"username": "test@example.com", "password": "newpass1"})
    assert login.status_code == 200


def test_profile_and_settings(client, auth_headers):
    resp = client.put("/api/users/profile", headers=auth_headers, json={"monthlyIncome": 3500, "currency": "EUR"})
    assert resp.json()["user"]["monthlyIncome"] == 3500
    assert resp.json()["user"]["currency"] == "EUR"

    resp = client.put("/api/users/settings", headers=auth_headers,
                      json={"theme": "dark", "notifications": {"weeklyReport": True}})
    settings = resp.json()["settings"]
    assert settings["theme"] == "dark"
    assert settings["notifications"]["weeklyReport"] is True
    assert settings["notifications"]["email"] is True

    profile = client.get("/api/users/profile", headers=auth_headers).json()
    assert profile["settings"]["theme"] == "dark"


def test_delete_account_removes_everything(client, auth_headers, category_ids):
    _add_txn(client, auth_headers, category_ids["Food & Dining"], 20, "2026-04-02T10:00:00")
    assert client.delete("/api/users/account", headers=auth_headers).status_code == 200
    assert client.get("/api/auth/me", headers=auth_headers).status_code == 401
    resp = client.post("/api/auth/login", data={"username": "test@example.com", "password": "secret123"})
    assert resp.status_code == 400


# --- categories ---

def test_category_type_filter_includes_both(client, auth_headers):
    names = [c["name"] for c in client.get("/api/categories/?type=income", headers=auth_headers).json()]
    assert names == ["Freelance", "Investments", "Other", "Salary"]


def test_category_lifecycle(client, auth_headers):
    resp = client.post("/api/categories/", headers=auth_headers, json={"name": "Pets", "type": "expense"})
    assert resp.status_code == 201
    pet = resp.json()["category"]
    assert pet["icon"] == "📁"

    dup = client.post("/api/categories/", headers=auth_headers, json={"name": "Pets"})
    assert dup.status_code == 400

    renamed = client.put(f"/api/categories/{pet['id']}", headers=auth_headers, json={"name": "Pet care"})
    assert renamed.json()["category"]["name"] == "Pet care"

    _add_txn(client, auth_headers, pet["id"], 30, "2026-04-03T10:00:00")
    blocked = client.delete(f"/api/categories/{pet['id']}", headers=auth_headers)
    assert blocked.status_code == 400
    assert "1 transactions" in blocked.json()["detail"]


def test_default_category_cannot_be_deleted(client, auth_headers, category_ids):
    resp = client.delete(f"/api/categories/{category_ids['Travel']}", headers=auth_headers)
    assert resp.status_code == 400


def test_category_stats(client, auth_headers, category_ids):
    food = category_ids["Food & Dining"]
    _add_txn(client, auth_headers, food, 20, "2026-04-02T10:00:00")
    _add_txn(client, auth_headers, food, 40, "2026-04-05T10:00:00")
    _add_txn(client, auth_headers, food, 15, "2026-02-05T10:00:00")
    body = client.get(f"/api/categories/{food}/stats", headers=auth_headers).json()
    assert body["stats"]["totalAmount"] == 60
    assert body["stats"]["avgAmount"] == 30
    assert body["stats"]["maxAmount"] == 40
    assert body["monthlyTrend"] == [
        {"year": 2026, "month": 2, "total": 15},
        {"year": 2026, "month": 4, "total": 60},
    ]


# --- transactions ---

def test_transaction_crud_and_isolation(client, auth_headers, category_ids):
    txn = _add_txn(client, auth_headers, category_ids["Shopping"], 49.99, "2026-04-04T15:00:00")
    assert txn["category"]["name"] == "Shopping"

    other = _register(client)
    assert client.get(f"/api/transactions/{txn['id']}", headers=other).status_code == 404

    updated = client.put(f"/api/transactions/{txn['id']}", headers=auth_headers, json={"amount": 59.99})
    assert updated.json()["transaction"]["amount"] == 59.99

    assert client.delete(f"/api/transactions/{txn['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/transactions/{txn['id']}", headers=auth_headers).status_code == 404


def test_transaction_validation(client, auth_headers, category_ids):
    resp = client.post("/api/transactions/", headers=auth_headers, json={
        "type": "expense", "amount": 0, "categoryId": category_ids["Shopping"], "description": "x",
    })
    assert resp.status_code == 422
    resp = client.post(
        "/api/transactions/",
        headers={**auth_headers, "Content-Type": "application/json"},
        content=f'{{"type": "expense", "amount": NaN, "categoryId": {category_ids["Shopping"]}, "description": "x"}}',
    )
    assert resp.status_code == 422
    resp = client.post("/api/transactions/", headers=auth_headers, json={
        "type": "transfer", "amount": 5, "categoryId": category_ids["Shopping"], "description": "x",
    })
    assert resp.status_code == 422
    resp = client.post("/api/transactions/", headers=auth_headers, json={
        "type": "expense", "amount": 5, "categoryId": 99999, "description": "x",
    })
    assert resp.status_code == 400


def test_transaction_defaults_to_now(client, auth_headers, category_ids):
    resp = client.post("/api/transactions/", headers=auth_headers, json={
        "type": "expense", "amount": 5, "categoryId": category_ids["Shopping"], "description": "Socks",
    })
    assert resp.json()["transaction"]["date"] == "2026-04-10T12:00:00"


def test_transaction_list_filters_and_pagination(client, auth_headers, category_ids):
    food = category_ids["Food & Dining"]
    for day in range(1, 6):
        _add_txn(client, auth_headers, food, day * 10, f"2026-04-0{day}T10:00:00")
    _add_txn(client, auth_headers, category_ids["Salary"], 3000, "2026-04-01T09:00:00", type="income")

    body = client.get("/api/transactions/?type=expense&limit=2&page=2", headers=auth_headers).json()
    assert body["pagination"] == {"total": 5, "page": 2, "pages": 3, "limit": 2}
    assert [t["amount"] for t in body["transactions"]] == [30, 20]

    body = client.get("/api/transactions/?minAmount=25&maxAmount=45&sort=amount", headers=auth_headers).json()
    assert [t["amount"] for t in body["transactions"]] == [30, 40]

    body = client.get("/api/transactions/?startDate=2026-04-04T00:00:00", headers=auth_headers).json()
    assert body["pagination"]["total"] == 2

    assert client.get("/api/transactions/?sort=owner", headers=auth_headers).status_code == 400


def test_transaction_summary(client, auth_headers, category_ids):
    _add_txn(client, auth_headers, category_ids["Salary"], 3000, "2026-04-01T09:00:00", type="income")
    _add_txn(client, auth_headers, category_ids["Food & Dining"], 120, "2026-04-02T10:00:00")
    _add_txn(client, auth_headers, category_ids["Food & Dining"], 30, "2026-04-02T18:00:00")
    _add_txn(client, auth_headers, category_ids["Transportation"], 50, "2026-04-03T10:00:00")
    _add_txn(client, auth_headers, category_ids["Transportation"], 500, "2026-03-03T10:00:00")

    body = client.get("/api/transactions/summary", headers=auth_headers).json()
    assert body["income"] == 3000
    assert body["expenses"] == 200
    assert body["balance"] == 2800
    assert body["transactionCount"] == 4
    assert [c["category"]["name"] for c in body["byCategory"]] == ["Food & Dining", "Transportation"]
    assert body["dailySpending"] == [
        {"date": "2026-04-02", "total": 150},
        {"date": "2026-04-03", "total": 50},
    ]


def test_csv_export_and_import(client, auth_headers, category_ids):
    _add_txn(client, auth_headers, category_ids["Food & Dining"], 12.5, "2026-04-02T10:00:00", description="Lunch")
    export = client.get("/api/transactions/export", headers=auth_headers)
    assert export.headers["content-type"].startswith("text/csv")
    lines = export.text.strip().splitlines()
    assert lines[0] == "date,amount,type,category,description"
    assert lines[1] == "2026-04-02,12.50,expense,Food & Dining,Lunch"

    csv_text = (
        "date,amount,type,category,description\n"
        "2026-04-03,8.20,expense,transportation,Bus\n"
        "2026-04-04,15,expense,Mystery,Something\n"
        "2026-04-05,-3,expense,Shopping,Refund\n"
        "not-a-date,3,expense,Shopping,Broken\n"
        "2026-04-06,8.20,expense,Shopping,Bus,EXTRA\n"
        "2026-04-07,nan,expense,Shopping,Nothing\n"
        "2026-04-08,inf,expense,Shopping,Everything\n"
    )
    resp = client.post("/api/transactions/import", headers=auth_headers,
                       files={"file": ("tx.csv", csv_text, "text/csv")})
    assert resp.status_code == 201
    body = resp.json()
    assert body["imported"] == 2
    assert body["skipped"] == 5
    assert [e["line"] for e in body["errors"]] == [4, 5, 6, 7, 8]
    assert body["errors"][2]["error"] == "too many fields"
    assert body["errors"][3]["error"] == "amount must be a positive number"

    listed = client.get("/api/transactions/?sort=date", headers=auth_headers).json()["transactions"]
    assert [t["category"]["name"] for t in listed] == ["Food & Dining", "Transportation", "Other"]


def test_csv_import_requires_headers(client, auth_headers):
    resp = client.post("/api/transactions/import", headers=auth_headers,
                       files={"file": ("tx.csv", "foo,bar\n1,2\n", "text/csv")})
    assert resp.status_code == 400


# --- budgets ---

def test_budget_lifecycle_and_alerts(client, auth_headers, category_ids):
    food = category_ids["Food & Dining"]
    resp = client.post("/api/budgets/", headers=auth_headers, json={"categoryId": food, "amount": 100})
    assert resp.status_code == 201
    budget = resp.json()["budget"]
    assert budget["alertThreshold"] == 80
    assert budget["period"] == "monthly"

    dup = client.post("/api/budgets/", headers=auth_headers, json={"categoryId": food, "amount": 50})
    assert dup.status_code == 400

    _add_txn(client, auth_headers, food, 85, "2026-04-03T10:00:00")
    listed = client.get("/api/budgets/", headers=auth_headers).json()
    assert listed[0]["spent"] == 85
    assert listed[0]["isNearLimit"] is True
    assert listed[0]["category"]["name"] == "Food & Dining"

    alerts = client.get("/api/budgets/alerts", headers=auth_headers).json()
    assert alerts == [{
        "budgetId": budget["id"],
        "categoryId": food,
        "categoryName": "Food & Dining",
        "budgetAmount": 100,
        "spent": 85,
        "percentage": 85,
        "type": "warning",
        "message": "You've used 85% of your Food & Dining budget",
    }]

    client.put(f"/api/budgets/{budget['id']}", headers=auth_headers, json={"isActive": False})
    assert client.get("/api/budgets/alerts", headers=auth_headers).json() == []

    assert client.delete(f"/api/budgets/{budget['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/budgets/{budget['id']}", headers=auth_headers).status_code == 404


def test_budget_amount_must_be_positive(client, auth_headers, category_ids):
    resp = client.post("/api/budgets/", headers=auth_headers,
                       json={"categoryId": category_ids["Travel"], "amount": 0})
    assert resp.status_code == 422


# --- subscriptions ---

def test_subscription_lifecycle(client, auth_headers, category_ids):
    resp = client.post("/api/subscriptions/", headers=auth_headers, json={
        "name": "Gym", "amount": 29.99, "billingDay": 31, "categoryId": category_ids["Subscriptions"],
    })
    assert resp.status_code == 201
    sub = resp.json()["subscription"]
    assert sub["nextBillingDate"] == "2026-04-30T00:00:00"
    assert sub["icon"] == "📦"

    client.post("/api/subscriptions/", headers=auth_headers,
                json={"name": "Music", "amount": 10, "billingDay": 12})
    summary = client.get("/api/subscriptions/summary", headers=auth_headers).json()
    assert summary["count"] == 2
    assert summary["monthlyTotal"] == 39.99
    assert summary["yearlyTotal"] == 479.88
    assert [u["name"] for u in summary["upcoming"]] == ["Music"]

    toggled = client.put(f"/api/subscriptions/{sub['id']}/toggle", headers=auth_headers).json()
    assert toggled["message"] == "Subscription paused successfully"
    active = client.get("/api/subscriptions/?active=true", headers=auth_headers).json()
    assert [s["name"] for s in active] == ["Music"]


def test_subscription_validation(client, auth_headers):
    resp = client.post("/api/subscriptions/", headers=auth_headers, json={"name": "X", "amount": 5, "billingDay": 32})
    assert resp.status_code == 422


# --- engine endpoints ---

def test_monthly_prediction_endpoint(client, auth_headers, category_ids):
    food = category_ids["Food & Dining"]
    for month, amount in ((1, 700), (2, 750), (3, 800)):
        _add_txn(client, auth_headers, food, amount, f"2026-0{month}-15T10:00:00")
    _add_txn(client, auth_headers, food, 300, "2026-04-02T10:00:00")

    body = client.get("/api/predictions/monthly", headers=auth_headers).json()
    assert body["prediction"]["estimated"] == 855
    assert body["savingsOpportunity"] is None

    categories = client.get("/api/predictions/category", headers=auth_headers).json()
    assert categories[0]["predictedTotal"] == 900


def test_trends_months_is_bounded(client, auth_headers):
    assert client.get("/api/predictions/trends?months=0", headers=auth_headers).status_code == 422
    assert client.get("/api/predictions/trends?months=25", headers=auth_headers).status_code == 422
    body = client.get("/api/predictions/trends?months=12", headers=auth_headers).json()
    assert len(body["monthlyData"]) == 12


def test_tips_endpoint(client, auth_headers, category_ids):
    food = category_ids["Food & Dining"]
    _add_txn(client, auth_headers, food, 100, "2026-03-10T10:00:00")
    _add_txn(client, auth_headers, food, 160, "2026-04-07T10:00:00")
    body = client.get("/api/tips/", headers=auth_headers).json()
    assert [t["id"] for t in body["tips"]] == ["spending-increase-Food & Dining"]
    assert body["summary"]["potentialYearlySavings"] == 720


def test_savings_goal_endpoint(client, auth_headers, category_ids):
    assert client.get("/api/tips/savings-goal", headers=auth_headers).status_code == 400
    assert client.get("/api/tips/savings-goal?targetAmount=100&targetMonths=0", headers=auth_headers).status_code == 400
    for bad in ("nan", "inf", "-inf"):
        resp = client.get(f"/api/tips/savings-goal?targetAmount={bad}&targetMonths=3", headers=auth_headers)
        assert resp.status_code == 400

    _add_txn(client, auth_headers, category_ids["Salary"], 2000, "2026-03-28T09:00:00", type="income")
    _add_txn(client, auth_headers, category_ids["Food & Dining"], 500, "2026-03-05T10:00:00")
    body = client.get("/api/tips/savings-goal?targetAmount=3000&targetMonths=6", headers=auth_headers).json()
    assert body["current"]["avgMonthlySavings"] == 1500
    assert body["feasible"] is True


def test_insights_endpoint(client, auth_headers, category_ids):
    client.put("/api/users/profile", headers=auth_headers, json={"monthlyIncome": 500})
    _add_txn(client, auth_headers, category_ids["Food & Dining"], 300, "2026-04-01T10:00:00")
    body = client.get("/api/insights/", headers=auth_headers).json()
    assert body["healthScore"]["income"] == 500
    ids = [i["id"] for i in body["insights"]]
    assert ids[0] == "top-category"
    assert "overspend-pace" in ids


def test_insights_preview_needs_no_account(client):
    resp = client.post("/api/insights/preview", json={
        "monthlyIncome": 1000,
        "transactions": [
            {"type": "expense", "amount": 300, "categoryId": "Food", "date": "2026-04-06T12:00:00Z"},
            {"type": "expense", "amount": 100, "categoryId": "Travel", "date": "2026-04-07T12:00:00"},
        ],
    })
    assert resp.status_code == 200
    top = resp.json()["insights"][0]
    assert top["title"] == "Food dominates your spending"
