from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal

from app.salestrack.core.config import settings
from app.salestrack.core.context import RequestContext
from app.salestrack.core.scope import resolve_branch_filter
from app.salestrack.repos.branches import BranchRepository
from app.salestrack.repos.expenses import ExpenseRepository
from app.salestrack.repos.organizations import OrganizationRepository
from app.salestrack.repos.sales import SaleRepository
from app.salestrack.services.dashboard import profit_margin
from app.salestrack.services.periods import DateWindow, from_utc_naive, iter_dates, resolve_date_window, resolve_timezone

ZERO = Decimal("0.00")
UNCATEGORIZED = "Uncategorized"


def default_report_dates(today: date) -> tuple[date, date]:
    return today.replace(day=1), today


class ReportsService:
    def __init__(self, db, context: RequestContext):
        self.db = db
        self.context = context

    def resolve_window(
        self,
        start_date: date | None,
        end_date: date | None,
        timezone_name: str | None,
    ) -> DateWindow:
        tz = resolve_timezone(timezone_name)
        if start_date is None or end_date is None:
            default_start, default_end = default_report_dates(datetime.now(tz).date())
            start_date = start_date or default_start
            end_date = end_date or max(default_end, start_date)
        return resolve_date_window(start_date, end_date, tz, max_days=settings.REPORTS_MAX_DATE_RANGE_DAYS)

    def summary(
        self,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        timezone_name: str | None = None,
        branch_id=None,
    ) -> dict:
        window = self.resolve_window(start_date, end_date, timezone_name)
        scoped_branch = resolve_branch_filter(self.context, branch_id)
        organization_id = self.context.organization_id

        sales = SaleRepository(self.db).list(
            organization_id,
            branch_id=scoped_branch,
            start=window.start_utc,
            end=window.end_utc,
        )
        expenses = ExpenseRepository(self.db).list(
            organization_id,
            branch_id=scoped_branch,
            start=window.start_utc,
            end=window.end_utc,
        )
        branch_names = BranchRepository(self.db).names_by_id(organization_id)
        organization = OrganizationRepository(self.db).get_by_id(organization_id)

        by_branch: dict[str, dict] = {}

        def _branch_entry(key) -> dict:
            key = str(key)
            if key not in by_branch:
                by_branch[key] = {
                    "branch_id": key,
                    "branch_name": branch_names.get(key, "Unknown branch"),
                    "total_sales": ZERO,
                    "total_expenses": ZERO,
                    "sales_count": 0,
                }
            return by_branch[key]

        by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
        daily_sales: dict[date, Decimal] = defaultdict(lambda: ZERO)
        daily_expenses: dict[date, Decimal] = defaultdict(lambda: ZERO)

        sale_rows = []
        for sale in sales:
            amount = Decimal(sale.amount)
            entry = _branch_entry(sale.branch_id)
            entry["total_sales"] += amount
            entry["sales_count"] += 1
            local_date = from_utc_naive(sale.sale_date, window.tz)
            daily_sales[local_date.date()] += amount
            sale_rows.append(
                {
                    "id": str(sale.id),
                    "sale_date": local_date,
                    "branch_name": entry["branch_name"],
                    "customer_name": sale.customer_name,
                    "items_count": len(sale.items),
                    "amount": amount,
                    "closed": sale.closed,
                }
            )

        expense_rows = []
        for expense in expenses:
            amount = Decimal(expense.amount)
            entry = _branch_entry(expense.branch_id)
            entry["total_expenses"] += amount
            label = expense.category or UNCATEGORIZED
            by_category[label] += amount
            local_date = from_utc_naive(expense.expense_date, window.tz)
            daily_expenses[local_date.date()] += amount
            expense_rows.append(
                {
                    "id": str(expense.id),
                    "expense_date": local_date,
                    "branch_name": entry["branch_name"],
                    "category": label,
                    "description": expense.description,
                    "amount": amount,
                }
            )

        for entry in by_branch.values():
            entry["net_profit"] = entry["total_sales"] - entry["total_expenses"]

        total_sales = sum((row["amount"] for row in sale_rows), ZERO)
        total_expenses = sum((row["amount"] for row in expense_rows), ZERO)
        net_profit = total_sales - total_expenses
        daily = [
            {
                "date": day,
                "sales": daily_sales[day],
                "expenses": daily_expenses[day],
                "profit": daily_sales[day] - daily_expenses[day],
            }
            for day in iter_dates(window.start_date, window.end_date)
        ]
        return {
            "organization_name": organization.name if organization is not None else None,
            "currency": organization.currency if organization is not None else settings.DEFAULT_CURRENCY,
            "start_date": window.start_date,
            "end_date": window.end_date,
            "timezone": str(window.tz),
            "branch_id": scoped_branch,
            "total_sales": total_sales,
            "total_expenses": total_expenses,
            "net_profit": net_profit,
            "profit_margin": profit_margin(total_sales, net_profit),
            "sales_count": len(sale_rows),
            "expenses_count": len(expense_rows),
            "by_branch": sorted(by_branch.values(), key=lambda entry: entry["branch_name"]),
            "by_category": [
                {"category": label, "total": total}
                for label, total in sorted(by_category.items(), key=lambda item: item[1], reverse=True)
            ],
            "daily": daily,
            "sales": sale_rows,
            "expenses": expense_rows,
        }
