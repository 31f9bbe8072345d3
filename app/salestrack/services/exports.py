from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from openpyxl import Workbook
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.services.activity_formatters import format_currency

EXPORT_SOURCES = ("sales", "expenses", "summary")
EXPORT_FORMATS = ("csv", "xlsx", "pdf")

CONTENT_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pdf": "application/pdf",
}


@dataclass
class ExportDataset:
    columns: list[str]
    rows: list[list[object]]
    totals: dict[str, object] | None


def build_dataset(summary: dict, source: str) -> ExportDataset:
    totals = {
        "total_sales": summary["total_sales"],
        "total_expenses": summary["total_expenses"],
        "net_profit": summary["net_profit"],
        "profit_margin": summary["profit_margin"],
    }
    if source == "sales":
        columns = ["sale_date", "branch_name", "customer_name", "items_count", "amount", "closed"]
        rows = [[row[col] for col in columns] for row in summary["sales"]]
        return ExportDataset(columns=columns, rows=rows, totals={"total_sales": summary["total_sales"]})
    if source == "expenses":
        columns = ["expense_date", "branch_name", "category", "description", "amount"]
        rows = [[row[col] for col in columns] for row in summary["expenses"]]
        return ExportDataset(columns=columns, rows=rows, totals={"total_expenses": summary["total_expenses"]})
    if source == "summary":
        columns = ["branch_name", "sales_count", "total_sales", "total_expenses", "net_profit"]
        rows = [[entry[col] for col in columns] for entry in summary["by_branch"]]
        return ExportDataset(columns=columns, rows=rows, totals=totals)
    raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "invalid source", "source": source})


def export_filename(source: str, format: str, start_date: date, end_date: date) -> str:
    base = f"{source}_{start_date.isoformat()}_{end_date.isoformat()}"
    return f"{re.sub(r'[^A-Za-z0-9._-]+', '_', base)}.{format}"


def _format_cell(value: object) -> object:
    if isinstance(value, Decimal):
        return value.quantize(Decimal("0.01"))
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if value is None:
        return ""
    return value


def render_csv(dataset: ExportDataset) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(dataset.columns)
    for row in dataset.rows:
        writer.writerow([_format_cell(value) for value in row])
    return buffer.getvalue().encode("utf-8")


def render_xlsx(dataset: ExportDataset, *, sheet_title: str = "report") -> bytes:
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = sheet_title[:31]
    worksheet.append(dataset.columns)
    for row in dataset.rows:
        worksheet.append([_format_xlsx_cell(value) for value in row])
    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def _format_xlsx_cell(value: object) -> object:
    if isinstance(value, Decimal):
        return float(value.quantize(Decimal("0.01")))
    return _format_cell(value)


def _pdf_text(value: object) -> str:
    # the built-in Helvetica font only covers latin-1; ₵ and friends become '?'
    return str(value).encode("latin-1", "replace").decode("latin-1")


def _draw_lines(pdf: canvas.Canvas, lines: Iterable[str], *, start_y: int, line_height: int) -> int:
    y = start_y
    for line in lines:
        if y < 72:
            pdf.showPage()
            pdf.setFont("Helvetica", 10)
            y = 750
        pdf.drawString(72, y, _pdf_text(line))
        y -= line_height
    return y


def render_pdf(
    dataset: ExportDataset,
    *,
    title: str,
    filters: dict,
    generated_at: datetime,
    currency: str,
) -> bytes:
    output = io.BytesIO()
    pdf = canvas.Canvas(output, pagesize=letter)
    pdf.setFont("Helvetica", 12)
    pdf.drawString(72, 750, _pdf_text(title))
    pdf.setFont("Helvetica", 10)
    lines = [f"Generated at: {generated_at.isoformat()}", "Filters:"]
    for key, value in filters.items():
        lines.append(f"- {key}: {value if value is not None else 'all'}")
    if dataset.totals:
        lines.append("Totals:")
        for key, value in dataset.totals.items():
            shown = f"{_format_cell(value)}%" if key == "profit_margin" else format_currency(value, currency)
            lines.append(f"- {key}: {shown}")
    y = _draw_lines(pdf, lines, start_y=730, line_height=14)
    y -= 10
    y = _draw_lines(pdf, [" | ".join(dataset.columns)], start_y=y, line_height=14)
    row_lines = [" | ".join(str(_format_cell(value)) for value in row) for row in dataset.rows]
    _draw_lines(pdf, row_lines, start_y=y, line_height=14)
    pdf.showPage()
    pdf.save()
    return output.getvalue()


def render_export(
    dataset: ExportDataset,
    format: str,
    *,
    title: str,
    filters: dict,
    generated_at: datetime,
    currency: str,
) -> tuple[bytes, str]:
    if format == "csv":
        return render_csv(dataset), CONTENT_TYPES["csv"]
    if format == "xlsx":
        return render_xlsx(dataset), CONTENT_TYPES["xlsx"]
    if format == "pdf":
        return (
            render_pdf(dataset, title=title, filters=filters, generated_at=generated_at, currency=currency),
            CONTENT_TYPES["pdf"],
        )
    raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "invalid format", "format": format})
