"""
Filter requests and the store queries they translate to.

Expenses keep their date in a different column per kind: fixed expenses
are keyed by `reference_month`, general expenses by `date`. A date range
without a kind therefore cannot be a single query over one column; it is
planned as one query per kind with the same non-date predicates, and the
caller merges the results by effective date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from bizfin.domain.errors import ValidationError
from bizfin.domain.models import EntityId, Expense, ExpenseKind, PaymentStatus, ReceiptStatus, coerce_field


def _check_range(date_start: Optional[date], date_end: Optional[date]) -> None:
    if date_start and date_end and date_start > date_end:
        raise ValidationError("Start date must be on or before end date.")


@dataclass(frozen=True)
class ExpenseFilter:
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    category: Optional[str] = None
    description: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    kind: Optional[ExpenseKind] = None

    def __post_init__(self) -> None:
        _check_range(self.date_start, self.date_end)
        coerce_field(self, "payment_status", PaymentStatus, optional=True)
        coerce_field(self, "kind", ExpenseKind, optional=True)

    @property
    def has_date_range(self) -> bool:
        return self.date_start is not None or self.date_end is not None

    def predicates(self) -> dict[str, str]:
        out: dict[str, str] = {}
        if self.category:
            out["category"] = self.category
        if self.description:
            out["description"] = self.description
        if self.payment_status:
            out["payment_status"] = self.payment_status.value
        return out


@dataclass(frozen=True)
class ExpenseQuery:
    """One store round trip. `kind=None` means both kinds, no date bound."""

    kind: Optional[ExpenseKind]
    date_start: Optional[date]
    date_end: Optional[date]
    predicates: dict[str, str]


def plan_expense_queries(flt: ExpenseFilter) -> list[ExpenseQuery]:
    predicates = flt.predicates()
    if flt.kind is not None:
        return [ExpenseQuery(flt.kind, flt.date_start, flt.date_end, predicates)]
    if not flt.has_date_range:
        return [ExpenseQuery(None, None, None, predicates)]
    return [
        ExpenseQuery(ExpenseKind.FIXED, flt.date_start, flt.date_end, dict(predicates)),
        ExpenseQuery(ExpenseKind.GENERAL, flt.date_start, flt.date_end, dict(predicates)),
    ]


def order_expenses(expenses: Iterable[Expense]) -> list[Expense]:
    # effective date desc, then newest insert first; sorted() keeps store order on exact ties
    return sorted(
        expenses,
        key=lambda e: (e.effective_date, e.created_at or ""),
        reverse=True,
    )


@dataclass(frozen=True)
class RevenueFilter:
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    category: Optional[str] = None
    receipt_status: Optional[ReceiptStatus] = None

    def __post_init__(self) -> None:
        _check_range(self.date_start, self.date_end)
        coerce_field(self, "receipt_status", ReceiptStatus, optional=True)

    def predicates(self) -> dict[str, str]:
        out: dict[str, str] = {}
        if self.category:
            out["category"] = self.category
        if self.receipt_status:
            out["receipt_status"] = self.receipt_status.value
        return out


@dataclass(frozen=True)
class PurchaseFilter:
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    supplier_id: Optional[EntityId] = None
    payment_status: Optional[PaymentStatus] = None

    def __post_init__(self) -> None:
        _check_range(self.date_start, self.date_end)
        coerce_field(self, "payment_status", PaymentStatus, optional=True)

    def predicates(self) -> dict[str, str]:
        out: dict[str, str] = {}
        if self.supplier_id is not None:
            out["supplier_id"] = str(self.supplier_id)
        if self.payment_status:
            out["payment_status"] = self.payment_status.value
        return out
