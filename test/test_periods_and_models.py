from datetime import date
from decimal import Decimal

import pytest

from bizfin.domain.errors import ValidationError
from bizfin.domain.models import ExpenseKind, FixedExpense, GeneralExpense, PaymentStatus, Revenue
from bizfin.domain.money import quantize_money, to_decimal
from bizfin.domain.periods import add_months, month_period, parse_month, previous_month


def test_month_period_ignores_day_and_handles_leap_february():
    p = month_period(date(2024, 2, 15))
    assert p.start == date(2024, 2, 1)
    assert p.end == date(2024, 2, 29)
    assert p.label == "2024-02"


def test_previous_month_is_calendar_based():
    assert previous_month(date(2024, 3, 1)) == date(2024, 2, 1)
    assert previous_month(date(2024, 3, 31)) == date(2024, 2, 1)
    assert previous_month(date(2024, 1, 10)) == date(2023, 12, 1)


def test_add_months_clamps_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 12, 15), 2) == date(2024, 2, 15)


def test_parse_month_accepts_year_month():
    assert parse_month("2024-06") == date(2024, 6, 1)
    assert parse_month("2024-06-18") == date(2024, 6, 1)


def test_fixed_expense_rejects_out_of_range_due_day():
    with pytest.raises(ValidationError):
        FixedExpense("Rent", Decimal("1"), "Rent", due_day=32, reference_month=date(2024, 6, 1))


def test_fixed_expense_requires_first_of_month():
    with pytest.raises(ValidationError):
        FixedExpense("Rent", Decimal("1"), "Rent", due_day=5, reference_month=date(2024, 6, 2))


def test_negative_amount_is_rejected():
    with pytest.raises(ValidationError, match="Amount must be >= 0"):
        GeneralExpense("Refund", Decimal("-1"), "Misc", date=date(2024, 6, 2))


@pytest.mark.parametrize("raw", ["Infinity", "-Infinity", "NaN", "sNaN"])
def test_non_finite_amount_is_rejected(raw):
    with pytest.raises(ValidationError, match="finite"):
        GeneralExpense("Bogus", raw, "Misc", date=date(2024, 6, 2))
    with pytest.raises(ValidationError):
        Revenue(date=date(2024, 6, 1), description="x", amount=raw, category="c")


def test_variants_expose_kind_and_effective_date():
    fixed = FixedExpense("Rent", "100.00", "Rent", due_day=5, reference_month=date(2024, 6, 1), payment_status="paid")
    general = GeneralExpense("Taxi", 12.5, "Transport", date=date(2024, 6, 9))

    assert fixed.kind is ExpenseKind.FIXED
    assert fixed.effective_date == date(2024, 6, 1)
    assert fixed.amount == Decimal("100.00")
    assert fixed.payment_status is PaymentStatus.PAID
    assert general.kind is ExpenseKind.GENERAL
    assert general.effective_date == date(2024, 6, 9)
    assert general.amount == Decimal("12.5")


def test_unknown_status_is_rejected():
    with pytest.raises(ValidationError):
        Revenue(date=date(2024, 6, 1), description="x", amount="1", category="c", receipt_status="maybe")


def test_money_helpers():
    assert to_decimal(0.1) == Decimal("0.1")
    assert quantize_money(Decimal("10.005")) == Decimal("10.01")
