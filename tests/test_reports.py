import csv
import io
from datetime import date, datetime
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from app.salestrack.services.exports import ExportDataset, build_dataset, export_filename, render_csv
from app.salestrack.services.reports import default_report_dates

from tests.helpers import (
    auth_headers,
    create_branch,
    create_expense,
    create_product,
    create_sale,
    create_staff,
    owner_session,
)

MARCH = "start_date=2025-03-10&end_date=2025-03-12"


@pytest.fixture
def seeded(client):
    _, token = owner_session(client)
    adum = create_branch(client, token, name="Adum")
    kejetia = create_branch(client, token, name="Kejetia")
    product_id = create_product(client, token, price="50.00")
    create_sale(
        client, token, adum, [{"product_id": product_id, "quantity": 2}], sale_date="2025-03-10T09:00:00Z"
    )
    create_sale(
        client, token, kejetia, [{"product_id": product_id, "quantity": 1}], sale_date="2025-03-12T09:00:00Z"
    )
    voided = create_sale(
        client, token, adum, [{"product_id": product_id, "quantity": 9}], sale_date="2025-03-11T09:00:00Z"
    )
    client.post(f"/salestrack/sales/{voided['id']}/void", headers=auth_headers(token))
    create_expense(client, token, adum, amount="30.00", category="Transport", expense_date="2025-03-11T12:00:00Z")
    create_expense(client, token, kejetia, amount="20.00", category="Rent", expense_date="2025-03-12T12:00:00Z")
    return {"token": token, "adum": adum, "kejetia": kejetia}


def test_default_report_dates_are_month_to_date():
    assert default_report_dates(date(2025, 3, 17)) == (date(2025, 3, 1), date(2025, 3, 17))


def test_report_summary(client, seeded):
    response = client.get(f"/salestrack/reports/summary?{MARCH}", headers=auth_headers(seeded["token"]))
    assert response.status_code == 200
    body = response.json()
    assert body["organization_name"] == "Acme Traders"
    assert Decimal(body["total_sales"]) == Decimal("150.00")
    assert Decimal(body["total_expenses"]) == Decimal("50.00")
    assert Decimal(body["net_profit"]) == Decimal("100.00")
    assert Decimal(body["profit_margin"]) == Decimal("66.67")
    assert body["sales_count"] == 2

    assert [entry["branch_name"] for entry in body["by_branch"]] == ["Adum", "Kejetia"]
    adum = body["by_branch"][0]
    assert Decimal(adum["net_profit"]) == Decimal("70.00")
    assert adum["sales_count"] == 1

    assert [entry["category"] for entry in body["by_category"]] == ["Transport", "Rent"]
    assert [row["date"] for row in body["daily"]] == ["2025-03-10", "2025-03-11", "2025-03-12"]
    assert Decimal(body["daily"][1]["profit"]) == Decimal("-30.00")


def test_report_summary_branch_scope(client, seeded):
    _, seller_token = create_staff(
        client, seeded["token"], email="seller@example.com", role="sales_person", branch_id=seeded["kejetia"]
    )
    body = client.get(f"/salestrack/reports/summary?{MARCH}", headers=auth_headers(seller_token)).json()
    assert body["branch_id"] == seeded["kejetia"]
    assert Decimal(body["total_sales"]) == Decimal("50.00")
    assert [entry["branch_name"] for entry in body["by_branch"]] == ["Kejetia"]


def test_report_range_limits(client, seeded):
    headers = auth_headers(seeded["token"])
    too_long = client.get("/salestrack/reports/summary?start_date=2023-01-01&end_date=2025-01-01", headers=headers)
    assert too_long.status_code == 422
    assert too_long.json()["code"] == "VALIDATION_ERROR"

    reversed_range = client.get("/salestrack/reports/summary?start_date=2025-03-12&end_date=2025-03-10", headers=headers)
    assert reversed_range.status_code == 422


def test_export_csv(client, seeded):
    response = client.get(
        f"/salestrack/reports/export?source=sales&format=csv&{MARCH}",
        headers=auth_headers(seeded["token"]),
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="sales_2025-03-10_2025-03-12.csv"'
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["sale_date", "branch_name", "customer_name", "items_count", "amount", "closed"]
    assert len(rows) == 3
    assert sorted(row[4] for row in rows[1:]) == ["100.00", "50.00"]


def test_export_xlsx(client, seeded):
    response = client.get(
        f"/salestrack/reports/export?source=expenses&format=xlsx&{MARCH}",
        headers=auth_headers(seeded["token"]),
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/vnd.openxmlformats")
    sheet = load_workbook(io.BytesIO(response.content)).active
    values = list(sheet.iter_rows(values_only=True))
    assert values[0] == ("expense_date", "branch_name", "category", "description", "amount")
    assert sorted(row[4] for row in values[1:]) == [20.0, 30.0]


def test_export_pdf(client, seeded):
    response = client.get(
        f"/salestrack/reports/export?source=summary&format=pdf&{MARCH}",
        headers=auth_headers(seeded["token"]),
    )
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert response.headers["x-trace-id"]


def test_export_rejects_unknown_source_and_format(client, seeded):
    headers = auth_headers(seeded["token"])
    bad_source = client.get(f"/salestrack/reports/export?source=inventory&{MARCH}", headers=headers)
    assert bad_source.status_code == 422
    bad_format = client.get(f"/salestrack/reports/export?format=docx&{MARCH}", headers=headers)
    assert bad_format.status_code == 422


def test_build_dataset_summary_totals():
    summary = {
        "total_sales": Decimal("10.00"),
        "total_expenses": Decimal("4.00"),
        "net_profit": Decimal("6.00"),
        "profit_margin": Decimal("60.00"),
        "by_branch": [
            {
                "branch_name": "Adum",
                "sales_count": 1,
                "total_sales": Decimal("10.00"),
                "total_expenses": Decimal("4.00"),
                "net_profit": Decimal("6.00"),
            }
        ],
        "sales": [],
        "expenses": [],
    }
    dataset = build_dataset(summary, "summary")
    assert dataset.rows == [["Adum", 1, Decimal("10.00"), Decimal("4.00"), Decimal("6.00")]]
    assert dataset.totals["profit_margin"] == Decimal("60.00")


def test_render_csv_blanks_missing_values():
    dataset = ExportDataset(
        columns=["sale_date", "customer_name", "amount"],
        rows=[[datetime(2025, 3, 10, 9, 0), None, Decimal("5")]],
        totals=None,
    )
    lines = render_csv(dataset).decode("utf-8").splitlines()
    assert lines[1] == "2025-03-10T09:00:00,,5.00"


def test_export_filename_is_sanitized():
    assert export_filename("sales", "csv", date(2025, 3, 1), date(2025, 3, 31)) == "sales_2025-03-01_2025-03-31.csv"
