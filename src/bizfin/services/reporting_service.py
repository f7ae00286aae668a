from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from bizfin.domain.models import Expense, ExpenseKind, FixedExpense, Purchase, Revenue
from bizfin.domain.money import quantize_money
from bizfin.domain.periods import MonthPeriod, month_period
from bizfin.domain.reports import DashboardMetrics, GroupTotal, MonthlyReport, MonthlySummary
from bizfin.services import aggregation

log = logging.getLogger(__name__)


class ReportingService:
    def __init__(self, repo):
        self.repo = repo

    # ---------- Fetch ----------
    def _revenues(self, period: MonthPeriod) -> list[Revenue]:
        return self.repo.fetch_revenues(period.start, period.end)

    def _purchases(self, period: MonthPeriod) -> list[Purchase]:
        return self.repo.fetch_purchases(period.start, period.end)

    def _expenses(self, period: MonthPeriod, kind: Optional[ExpenseKind] = None) -> list[Expense]:
        kinds = [kind] if kind is not None else [ExpenseKind.FIXED, ExpenseKind.GENERAL]
        out: list[Expense] = []
        for k in kinds:
            out.extend(self.repo.fetch_expenses(k, period.start, period.end))
        return out

    # ---------- Aggregates ----------
    def monthly_summary(self, reference: date) -> MonthlySummary:
        period = month_period(reference)
        return aggregation.summarize_month(
            reference,
            self._revenues(period),
            self._purchases(period),
            self._expenses(period),
        )

    def expenses_by_category(self, reference: date, kind: Optional[ExpenseKind] = None) -> tuple[GroupTotal, ...]:
        expenses = aggregation.counted_expenses(self._expenses(month_period(reference), kind))
        return aggregation.group_by_category(expenses)

    def revenues_by_category(self, reference: date) -> tuple[GroupTotal, ...]:
        return aggregation.group_by_category(self._revenues(month_period(reference)))

    def purchases_by_supplier(self, reference: date) -> tuple[GroupTotal, ...]:
        return aggregation.group_by_supplier(self._purchases(month_period(reference)))

    def monthly_report(self, reference: date) -> MonthlyReport:
        period = month_period(reference)
        revenues = self._revenues(period)
        purchases = self._purchases(period)
        expenses = self._expenses(period)
        summary = aggregation.summarize_month(reference, revenues, purchases, expenses)
        return MonthlyReport(
            summary=summary,
            revenues=tuple(revenues),
            purchases=tuple(purchases),
            expenses=tuple(expenses),
            revenues_by_category=aggregation.group_by_category(revenues),
            expenses_by_category=aggregation.group_by_category(aggregation.counted_expenses(expenses)),
            purchases_by_supplier=aggregation.group_by_supplier(purchases),
        )

    def dashboard_metrics(self, reference: date, today: date, days_ahead: int = 7) -> DashboardMetrics:
        period = month_period(reference)
        totals = aggregation.purchase_totals(self._purchases(period))
        upcoming = self.repo.fetch_purchases_due_between(today, today + timedelta(days=int(days_ahead)))
        return DashboardMetrics(
            period=period,
            purchases_total=totals.total,
            purchases_count=totals.count,
            pending_purchases=totals.pending_count,
            active_suppliers=int(self.repo.count_active_suppliers()),
            upcoming_due=tuple(upcoming),
        )

    # ---------- Export ----------
    def export_monthly_report_excel(self, path: str, reference: date) -> MonthlyReport:
        report = self.monthly_report(reference)
        summary = report.summary
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, end_row: int, end_col: int):
            ref = f"A{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        def detail_sheet(title: str, table_name: str, headers: list[str], rows: list[list], money_cols: list[str], widths: dict[str, int]):
            ws = wb.create_sheet(title)
            ws.append(headers)
            bold_row(ws, 1)
            for i, row in enumerate(rows, start=2):
                ws.append(row)
                for col in money_cols:
                    money(ws[f"{col}{i}"])
            ws.freeze_panes = "A2"
            set_widths(ws, widths)
            if ws.max_row >= 2:
                add_table(ws, table_name, 1, ws.max_row, len(headers))

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = f"Monthly report {summary.period.label}"
        ws["A1"].font = Font(bold=True, size=14)

        ws["A3"] = "Window"
        ws["B3"] = f"{summary.period.start.isoformat()}  ->  {summary.period.end.isoformat()}"

        rows = [
            ("Revenue total", summary.revenue.total),
            ("Revenue received", summary.revenue.received),
            ("Revenue pending", summary.revenue.pending),
            ("Purchases total", summary.purchases.total),
            ("Purchases count", summary.purchases.count),
            ("Fixed expenses", summary.expenses.fixed_total),
            ("Fixed paid", summary.expenses.fixed.paid),
            ("Fixed pending", summary.expenses.fixed.pending),
            ("General expenses", summary.expenses.general_total),
            ("General paid", summary.expenses.general.paid),
            ("General pending", summary.expenses.general.pending),
            ("Expenses total", summary.expenses.total),
            ("Expenses paid", summary.expenses.paid_total),
            ("Net profit", summary.net_profit),
            ("Profit margin %", summary.profit_margin),
        ]
        start_row = 5
        for i, (label, val) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            if isinstance(val, int):
                ws[f"B{r}"] = val
            else:
                ws[f"B{r}"] = float(quantize_money(val))
                money(ws[f"B{r}"])
        set_widths(ws, {"A": 24, "B": 30})

        # -------- 2) Details --------
        detail_sheet(
            "Revenues",
            "RevenuesDetail",
            ["Date", "Description", "Category", "Status", "Amount"],
            [
                [r.date.isoformat(), r.description, r.category, r.receipt_status.value, float(quantize_money(r.amount))]
                for r in report.revenues
            ],
            ["E"],
            {"A": 12, "B": 34, "C": 20, "D": 12, "E": 16},
        )
        detail_sheet(
            "Purchases",
            "PurchasesDetail",
            ["Date", "Supplier", "Method", "Status", "Due date", "Invoice", "Amount"],
            [
                [
                    p.purchase_date.isoformat(),
                    p.supplier_name or aggregation.SUPPLIER_NOT_FOUND,
                    p.payment_method.value,
                    p.payment_status.value,
                    p.due_date.isoformat() if p.due_date else "",
                    p.invoice_number or "",
                    float(quantize_money(p.amount)),
                ]
                for p in report.purchases
            ],
            ["G"],
            {"A": 12, "B": 28, "C": 10, "D": 10, "E": 12, "F": 14, "G": 16},
        )
        detail_sheet(
            "Expenses",
            "ExpensesDetail",
            ["Kind", "Date", "Description", "Category", "Status", "Active", "Amount"],
            [
                [
                    e.kind.value,
                    e.effective_date.isoformat(),
                    e.description,
                    e.category,
                    e.payment_status.value,
                    ("yes" if e.active else "no") if isinstance(e, FixedExpense) else "",
                    float(quantize_money(e.amount)),
                ]
                for e in report.expenses
            ],
            ["G"],
            {"A": 10, "B": 12, "C": 34, "D": 20, "E": 10, "F": 8, "G": 16},
        )

        # -------- 3) Groupings --------
        ws_groups = wb.create_sheet("By Category")
        out_row = 1
        for title, groups in (
            ("Revenues by category", report.revenues_by_category),
            ("Expenses by category", report.expenses_by_category),
            ("Purchases by supplier", report.purchases_by_supplier),
        ):
            ws_groups.cell(row=out_row, column=1, value=title).font = Font(bold=True, size=12)
            out_row += 1
            for g in groups:
                ws_groups.cell(row=out_row, column=1, value=g.label)
                ws_groups.cell(row=out_row, column=2, value=g.count)
                money(ws_groups.cell(row=out_row, column=3, value=float(quantize_money(g.amount))))
                out_row += 1
            out_row += 1
        set_widths(ws_groups, {"A": 30, "B": 8, "C": 16})

        wb.save(path)
        log.info("monthly_report_exported month=%s path=%s", summary.period.label, path)
        return report
