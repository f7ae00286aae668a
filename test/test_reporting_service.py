from datetime import date
from decimal import Decimal
from pathlib import Path

from conftest import add_fixed, add_general, new_repo
from openpyxl import load_workbook

from bizfin.domain.models import PaymentMethod, PaymentStatus, Purchase, ReceiptStatus, Revenue, Supplier
from bizfin.services.reporting_service import ReportingService

JUNE = date(2024, 6, 1)


def _seed(tmp_path: Path):
    repo = new_repo(tmp_path)
    acme = repo.add_supplier(Supplier(name="ACME"))
    paper = repo.add_supplier(Supplier(name="Paper Co"))
    repo.add_supplier(Supplier(name="Dormant", active=False))

    repo.add_revenue(Revenue(date=date(2024, 6, 3), description="Shop sales", amount="500", category="Sales", receipt_status=ReceiptStatus.RECEIVED))
    repo.add_revenue(Revenue(date=date(2024, 6, 28), description="Consulting", amount="200", category="Services"))
    repo.add_revenue(Revenue(date=date(2024, 7, 1), description="July sales", amount="999", category="Sales", receipt_status=ReceiptStatus.RECEIVED))

    repo.add_purchase(Purchase(supplier_id=acme.id, purchase_date=date(2024, 6, 10), amount="200", payment_method=PaymentMethod.PIX, payment_status=PaymentStatus.PAID))
    repo.add_purchase(
        Purchase(
            supplier_id=paper.id,
            purchase_date=date(2024, 6, 12),
            amount="100",
            payment_method=PaymentMethod.BOLETO,
            due_date=date(2024, 6, 20),
        )
    )
    repo.add_purchase(Purchase(supplier_id=acme.id, purchase_date=date(2024, 5, 31), amount="777", payment_method=PaymentMethod.CASH))

    add_fixed(repo, "Rent", "100", JUNE, paid=True)
    add_fixed(repo, "Old gym", "70", JUNE, active=False, category="Perks")
    add_general(repo, "Taxi", "50", date(2024, 6, 30), category="Transport")
    add_general(repo, "May taxi", "40", date(2024, 5, 31), category="Transport")
    return repo


def test_monthly_summary_reads_only_the_reference_month(tmp_path: Path):
    svc = ReportingService(_seed(tmp_path))

    s = svc.monthly_summary(date(2024, 6, 18))

    assert s.period.label == "2024-06"
    assert s.revenue.total == Decimal("700")
    assert s.revenue.received == Decimal("500")
    assert s.purchases.total == Decimal("300")
    assert s.purchases.pending_count == 1
    assert s.expenses.fixed_total == Decimal("100")
    assert s.expenses.general_total == Decimal("50")
    # 500 - (300 + 150)
    assert s.net_profit == Decimal("50")
    assert s.profit_margin == Decimal("10")


def test_breakdowns(tmp_path: Path):
    svc = ReportingService(_seed(tmp_path))

    by_supplier = svc.purchases_by_supplier(JUNE)
    by_category = svc.expenses_by_category(JUNE)

    assert [(g.label, g.amount) for g in by_supplier] == [("ACME", Decimal("200")), ("Paper Co", Decimal("100"))]
    assert [g.label for g in by_category] == ["Rent", "Transport"]
    assert [g.label for g in svc.revenues_by_category(JUNE)] == ["Sales", "Services"]


def test_dashboard_metrics(tmp_path: Path):
    svc = ReportingService(_seed(tmp_path))

    m = svc.dashboard_metrics(JUNE, today=date(2024, 6, 15))

    assert m.purchases_total == Decimal("300")
    assert m.purchases_count == 2
    assert m.pending_purchases == 1
    assert m.active_suppliers == 2
    assert [p.supplier_name for p in m.upcoming_due] == ["Paper Co"]


def test_export_writes_all_sheets(tmp_path: Path):
    svc = ReportingService(_seed(tmp_path))
    out = tmp_path / "june.xlsx"

    report = svc.export_monthly_report_excel(str(out), JUNE)

    wb = load_workbook(out)
    assert wb.sheetnames == ["Summary", "Revenues", "Purchases", "Expenses", "By Category"]
    ws = wb["Summary"]
    assert ws["A1"].value == "Monthly report 2024-06"
    labels = {ws[f"A{r}"].value: ws[f"B{r}"].value for r in range(5, ws.max_row + 1)}
    assert labels["Net profit"] == 50.0
    assert labels["Purchases count"] == 2
    assert wb["Expenses"].max_row == 1 + len(report.expenses)
    assert wb["Revenues"]["B2"].value in {"Shop sales", "Consulting"}
