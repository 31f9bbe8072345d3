from datetime import datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from app.salestrack.services.dashboard import build_chart, get_period_range, normalize_period, profit_margin

from tests.helpers import (
    auth_headers,
    create_branch,
    create_expense,
    create_product,
    create_sale,
    create_staff,
    owner_session,
)


def test_get_period_range_bounds():
    reference = datetime(2025, 3, 12, 15, 0, tzinfo=timezone.utc)

    day_start, day_end = get_period_range("day", reference)
    assert (day_start.date().isoformat(), day_end.date().isoformat()) == ("2025-03-12", "2025-03-13")

    week_start, week_end = get_period_range("week", reference)
    assert week_start.date().isoformat() == "2025-03-09"
    assert week_start.weekday() == 6
    assert week_end - week_start == timedelta(days=7)

    month_start, month_end = get_period_range("month", reference)
    assert (month_start.date().isoformat(), month_end.date().isoformat()) == ("2025-03-01", "2025-04-01")

    year_start, year_end = get_period_range("year", reference)
    assert (year_start.date().isoformat(), year_end.date().isoformat()) == ("2025-01-01", "2026-01-01")

    assert get_period_range("all", reference) == (None, None)


def test_period_range_keeps_local_timezone():
    reference = datetime(2025, 12, 31, 23, 0, tzinfo=ZoneInfo("Africa/Accra"))
    start, end = get_period_range("month", reference)
    assert start.tzinfo == reference.tzinfo
    assert end.date().isoformat() == "2026-01-01"


def test_unknown_period_falls_back_to_month():
    assert normalize_period("fortnight") == "month"
    assert normalize_period(" WEEK ") == "week"


def test_profit_margin():
    assert profit_margin(Decimal("200.00"), Decimal("50.00")) == Decimal("25.00")
    assert profit_margin(Decimal("0.00"), Decimal("-10.00")) == Decimal("0.00")


def test_build_chart_daily_buckets_most_recent_first():
    start = datetime(2025, 3, 1, tzinfo=timezone.utc)
    end = datetime(2025, 4, 1, tzinfo=timezone.utc)
    sales = [(datetime(2025, 3, 2, 10, tzinfo=timezone.utc), Decimal("40.00"))]
    expenses = [(datetime(2025, 3, 2, 12, tzinfo=timezone.utc), Decimal("15.00"))]

    chart = build_chart("month", start, end, sales, expenses)
    assert len(chart) == 31
    assert chart[0]["name"] == "Mar 31"
    march_second = next(bucket for bucket in chart if bucket["name"] == "Mar 2")
    assert march_second["profit"] == Decimal("25.00")


def test_build_chart_year_and_all():
    start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    end = datetime(2026, 1, 1, tzinfo=timezone.utc)
    sales = [
        (datetime(2025, 2, 5, tzinfo=timezone.utc), Decimal("10.00")),
        (datetime(2025, 2, 20, tzinfo=timezone.utc), Decimal("5.00")),
    ]

    year = build_chart("year", start, end, sales, [])
    assert [bucket["name"] for bucket in year][:3] == ["Jan", "Feb", "Mar"]
    assert year[1]["sales"] == Decimal("15.00")

    everything = build_chart("all", None, None, sales + [(datetime(2024, 11, 1, tzinfo=timezone.utc), Decimal("1.00"))], [])
    assert [bucket["name"] for bucket in everything] == ["Nov 2024", "Feb 2025"]


def test_dashboard_endpoint_totals(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    product_id = create_product(client, token, price="100.00")
    create_sale(client, token, branch_id, [{"product_id": product_id, "quantity": 2}], sale_date="2025-03-10T10:00:00Z")
    create_sale(client, token, branch_id, [{"product_id": product_id, "quantity": 1}], sale_date="2025-04-02T10:00:00Z")
    voided = create_sale(client, token, branch_id, [{"product_id": product_id, "quantity": 5}])
    client.post(f"/salestrack/sales/{voided['id']}/void", headers=auth_headers(token))
    create_expense(client, token, branch_id, amount="60.00", expense_date="2025-03-11T09:00:00Z")

    response = client.get("/salestrack/dashboard?period=all", headers=auth_headers(token))
    assert response.status_code == 200
    body = response.json()
    assert body["period"] == "all"
    assert Decimal(body["total_sales"]) == Decimal("300.00")
    assert Decimal(body["total_expenses"]) == Decimal("60.00")
    assert Decimal(body["net_profit"]) == Decimal("240.00")
    assert Decimal(body["profit_margin"]) == Decimal("80.00")
    assert body["sales_count"] == 2
    assert [bucket["name"] for bucket in body["chart"]] == ["Mar 2025", "Apr 2025"]
    assert body["trace_id"]


def test_dashboard_month_defaults_and_scoping(client):
    _, token = owner_session(client)
    branch_id = create_branch(client, token)
    other_branch = create_branch(client, token, name="Kejetia")
    product_id = create_product(client, token, price="10.00")
    create_sale(client, token, branch_id, [{"product_id": product_id, "quantity": 1}])
    create_sale(client, token, other_branch, [{"product_id": product_id, "quantity": 3}])
    _, seller_token = create_staff(client, token, email="seller@example.com", role="sales_person", branch_id=branch_id)

    owner_view = client.get("/salestrack/dashboard", headers=auth_headers(token)).json()
    assert owner_view["period"] == "month"
    assert Decimal(owner_view["total_sales"]) == Decimal("40.00")

    seller_view = client.get("/salestrack/dashboard", headers=auth_headers(seller_token)).json()
    assert seller_view["branch_id"] == branch_id
    assert Decimal(seller_view["total_sales"]) == Decimal("10.00")

    mismatch = client.get(f"/salestrack/dashboard?branch_id={other_branch}", headers=auth_headers(seller_token))
    assert mismatch.status_code == 403
