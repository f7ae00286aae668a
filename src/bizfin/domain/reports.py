from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from bizfin.domain.models import Expense, Purchase, Revenue
from bizfin.domain.periods import MonthPeriod


@dataclass(frozen=True)
class RevenueTotals:
    total: Decimal
    received: Decimal
    pending: Decimal
    count: int


@dataclass(frozen=True)
class PurchaseTotals:
    total: Decimal
    count: int
    paid_total: Decimal
    pending_total: Decimal
    pending_count: int


@dataclass(frozen=True)
class KindTotals:
    """Paid/pending split of one expense kind."""

    total: Decimal
    paid: Decimal
    pending: Decimal
    count: int


@dataclass(frozen=True)
class ExpenseTotals:
    total: Decimal
    fixed_total: Decimal
    general_total: Decimal
    paid_total: Decimal
    pending_total: Decimal
    count: int
    fixed: KindTotals
    general: KindTotals


@dataclass(frozen=True)
class MonthlySummary:
    period: MonthPeriod
    revenue: RevenueTotals
    purchases: PurchaseTotals
    expenses: ExpenseTotals
    net_profit: Decimal
    profit_margin: Decimal


@dataclass(frozen=True)
class GroupTotal:
    label: str
    amount: Decimal
    count: int


@dataclass(frozen=True)
class MonthlyReport:
    summary: MonthlySummary
    revenues: tuple[Revenue, ...]
    purchases: tuple[Purchase, ...]
    expenses: tuple[Expense, ...]
    revenues_by_category: tuple[GroupTotal, ...]
    expenses_by_category: tuple[GroupTotal, ...]
    purchases_by_supplier: tuple[GroupTotal, ...]


@dataclass(frozen=True)
class DashboardMetrics:
    period: MonthPeriod
    purchases_total: Decimal
    purchases_count: int
    pending_purchases: int
    active_suppliers: int
    upcoming_due: tuple[Purchase, ...]
