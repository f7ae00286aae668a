"""
Monthly aggregation over already-fetched collections.

Everything here is pure: inputs are the month's revenues, purchases and
expenses, outputs are immutable totals. Amounts are summed as Decimal at
full precision; rounding belongs to whoever renders the numbers.

Net profit is received revenue minus the nominal (paid + pending) cost of
purchases and expenses. Pending revenue does not count, pending bills do.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Optional, TypeVar

from bizfin.domain.models import (
    Expense,
    FixedExpense,
    GeneralExpense,
    PaymentStatus,
    Purchase,
    ReceiptStatus,
    Revenue,
)
from bizfin.domain.money import ZERO, percentage, total
from bizfin.domain.periods import month_period
from bizfin.domain.reports import (
    ExpenseTotals,
    GroupTotal,
    KindTotals,
    MonthlySummary,
    PurchaseTotals,
    RevenueTotals,
)

T = TypeVar("T")

UNCATEGORIZED = "Uncategorized"
SUPPLIER_NOT_FOUND = "Supplier not found"


def revenue_totals(revenues: Iterable[Revenue]) -> RevenueTotals:
    revenues = list(revenues)
    received = total(r.amount for r in revenues if r.receipt_status == ReceiptStatus.RECEIVED)
    pending = total(r.amount for r in revenues if r.receipt_status == ReceiptStatus.PENDING)
    return RevenueTotals(total=received + pending, received=received, pending=pending, count=len(revenues))


def purchase_totals(purchases: Iterable[Purchase]) -> PurchaseTotals:
    purchases = list(purchases)
    paid = [p for p in purchases if p.payment_status == PaymentStatus.PAID]
    pending = [p for p in purchases if p.payment_status == PaymentStatus.PENDING]
    return PurchaseTotals(
        total=total(p.amount for p in purchases),
        count=len(purchases),
        paid_total=total(p.amount for p in paid),
        pending_total=total(p.amount for p in pending),
        pending_count=len(pending),
    )


def counted_expenses(expenses: Iterable[Expense]) -> list[Expense]:
    """Expenses that weigh on profit: all general ones, active fixed ones."""
    return [e for e in expenses if not isinstance(e, FixedExpense) or e.active]


def kind_totals(expenses: Sequence[Expense]) -> KindTotals:
    paid = total(e.amount for e in expenses if e.payment_status == PaymentStatus.PAID)
    pending = total(e.amount for e in expenses if e.payment_status == PaymentStatus.PENDING)
    return KindTotals(total=paid + pending, paid=paid, pending=pending, count=len(expenses))


def expense_totals(expenses: Iterable[Expense]) -> ExpenseTotals:
    counted = counted_expenses(expenses)
    fixed = kind_totals([e for e in counted if isinstance(e, FixedExpense)])
    general = kind_totals([e for e in counted if isinstance(e, GeneralExpense)])
    return ExpenseTotals(
        total=fixed.total + general.total,
        fixed_total=fixed.total,
        general_total=general.total,
        paid_total=fixed.paid + general.paid,
        pending_total=fixed.pending + general.pending,
        count=fixed.count + general.count,
        fixed=fixed,
        general=general,
    )


def net_profit(received_revenue: Decimal, purchases_total: Decimal, expenses_total: Decimal) -> Decimal:
    return received_revenue - (purchases_total + expenses_total)


def profit_margin(profit: Decimal, received_revenue: Decimal) -> Decimal:
    # no received revenue means margin 0, whatever the sign of profit
    return percentage(profit, received_revenue)


def summarize_month(
    reference: date,
    revenues: Iterable[Revenue],
    purchases: Iterable[Purchase],
    expenses: Iterable[Expense],
) -> MonthlySummary:
    rev = revenue_totals(revenues)
    pur = purchase_totals(purchases)
    exp = expense_totals(expenses)
    profit = net_profit(rev.received, pur.total, exp.total)
    return MonthlySummary(
        period=month_period(reference),
        revenue=rev,
        purchases=pur,
        expenses=exp,
        net_profit=profit,
        profit_margin=profit_margin(profit, rev.received),
    )


def group_totals(
    records: Iterable[T],
    key: Callable[[T], Optional[str]],
    amount: Callable[[T], Decimal],
    fallback: str,
) -> tuple[GroupTotal, ...]:
    """Sum and count per label, largest first. Equal sums keep first-seen order."""
    sums: dict[str, Decimal] = {}
    counts: dict[str, int] = {}
    for rec in records:
        label = key(rec) or fallback
        sums[label] = sums.get(label, ZERO) + amount(rec)
        counts[label] = counts.get(label, 0) + 1
    ordered = sorted(sums.items(), key=lambda item: item[1], reverse=True)
    return tuple(GroupTotal(label=label, amount=value, count=counts[label]) for label, value in ordered)


def group_by_category(records: Sequence[Revenue | Expense]) -> tuple[GroupTotal, ...]:
    return group_totals(records, key=lambda r: r.category, amount=lambda r: r.amount, fallback=UNCATEGORIZED)


def group_by_supplier(purchases: Iterable[Purchase]) -> tuple[GroupTotal, ...]:
    return group_totals(purchases, key=lambda p: p.supplier_name, amount=lambda p: p.amount, fallback=SUPPLIER_NOT_FOUND)
