from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Optional

from bizfin.domain.errors import NotFoundError, ValidationError
from bizfin.domain.filters import ExpenseFilter, order_expenses, plan_expense_queries
from bizfin.domain.models import (
    EntityId,
    Expense,
    ExpenseKind,
    FixedExpense,
    GeneralExpense,
    PaymentStatus,
)
from bizfin.domain.periods import first_of_month, month_period

log = logging.getLogger(__name__)


def _required(value: Optional[str], label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{label} is required.")
    return value


class ExpenseService:
    def __init__(self, repo):
        self.repo = repo

    def create_fixed(
        self,
        description: str,
        amount,
        category: str,
        due_day: int,
        reference_month: date,
        active: bool = True,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        notes: Optional[str] = None,
    ) -> FixedExpense:
        expense = FixedExpense(
            description=_required(description, "Description"),
            amount=amount,
            category=_required(category, "Category"),
            due_day=int(due_day),
            reference_month=first_of_month(reference_month),
            payment_status=payment_status,
            active=bool(active),
            notes=notes,
        )
        return self.repo.add_expense(expense)

    def create_general(
        self,
        description: str,
        amount,
        category: str,
        expense_date: date,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        notes: Optional[str] = None,
    ) -> GeneralExpense:
        expense = GeneralExpense(
            description=_required(description, "Description"),
            amount=amount,
            category=_required(category, "Category"),
            date=expense_date,
            payment_status=payment_status,
            notes=notes,
        )
        return self.repo.add_expense(expense)

    def get(self, expense_id: EntityId) -> Expense:
        expense = self.repo.get_expense(expense_id)
        if expense is None:
            raise NotFoundError("Expense not found.")
        return expense

    def update(self, expense: Expense) -> Expense:
        if expense.id is None:
            raise ValidationError("Cannot update an expense without id.")
        return self.repo.update_expense(expense)

    def set_payment_status(self, expense_id: EntityId, status: PaymentStatus) -> Expense:
        expense = self.get(expense_id)
        return self.repo.update_expense(replace(expense, payment_status=PaymentStatus(status)))

    def set_active(self, expense_id: EntityId, active: bool) -> FixedExpense:
        expense = self.get(expense_id)
        if not isinstance(expense, FixedExpense):
            raise ValidationError("Only fixed expenses can be activated or deactivated.")
        return self.repo.update_expense(replace(expense, active=bool(active)))

    def delete(self, expense_id: EntityId) -> None:
        self.repo.delete_expense(expense_id)

    # ---------- Month views ----------
    def fixed_for_month(self, month: date, active_only: bool = False) -> list[FixedExpense]:
        """Display list; inactive rows are included unless asked otherwise."""
        return self.repo.fetch_fixed_expenses_for_month(first_of_month(month), active_only=active_only)

    def general_for_month(self, month: date) -> list[GeneralExpense]:
        period = month_period(month)
        return self.repo.fetch_expenses(ExpenseKind.GENERAL, period.start, period.end)

    def for_month(self, month: date) -> list[Expense]:
        return [*self.fixed_for_month(month), *self.general_for_month(month)]

    def upcoming_fixed_due(self, month: date, today: date, days_ahead: int = 5) -> list[FixedExpense]:
        """Active, unpaid fixed expenses of `month` due between today's day and `days_ahead` days later."""
        first_day = today.day
        last_day = min(first_day + int(days_ahead), 31)
        due = [
            e
            for e in self.fixed_for_month(month, active_only=True)
            if e.payment_status == PaymentStatus.PENDING and first_day <= e.due_day <= last_day
        ]
        return sorted(due, key=lambda e: e.due_day)

    def descriptions(self) -> list[str]:
        return self.repo.distinct_expense_descriptions()

    # ---------- Filtering ----------
    def filter_expenses(self, flt: ExpenseFilter) -> list[Expense]:
        """
        Run the filter against the store and return one list, newest effective date first.

        A date range without a kind needs one query per kind. The two reads
        are not a single snapshot: a row written between them can be missing
        from the result, but no row is ever returned twice.
        """
        queries = plan_expense_queries(flt)
        merged: list[Expense] = []
        for q in queries:
            merged.extend(self.repo.fetch_expenses(q.kind, q.date_start, q.date_end, q.predicates))
        if len(queries) > 1:
            log.debug("expense_filter_merged queries=%d rows=%d", len(queries), len(merged))
        return order_expenses(merged)
