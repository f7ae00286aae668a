from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping, Optional, Protocol

from bizfin.domain.models import (
    EntityId,
    Expense,
    ExpenseKind,
    FixedExpense,
    Purchase,
    Revenue,
    Supplier,
)

Filters = Optional[Mapping[str, str]]


class EntityStore(Protocol):
    """Persistence collaborator shared by every service.

    Implementations raise DataAccessError on transport/storage failure and
    ConstraintViolationError when the store rejects a write. They never
    cache between calls.
    """

    # ---------- Reads used by reports ----------
    def fetch_revenues(self, date_start: Optional[date], date_end: Optional[date], filters: Filters = None) -> list[Revenue]: ...

    def fetch_purchases(self, date_start: Optional[date], date_end: Optional[date], filters: Filters = None) -> list[Purchase]: ...

    def fetch_expenses(
        self,
        kind: Optional[ExpenseKind],
        date_start: Optional[date] = None,
        date_end: Optional[date] = None,
        filters: Filters = None,
    ) -> list[Expense]:
        """A date bound is applied to the kind's own date column, so it requires `kind`."""
        ...

    def fetch_fixed_expenses_for_month(self, month: date, active_only: bool = False) -> list[FixedExpense]: ...

    def fetch_purchases_due_between(self, start: date, end: date) -> list[Purchase]: ...

    def count_active_suppliers(self) -> int: ...

    # ---------- Writes ----------
    def bulk_insert_expenses(self, expenses: Iterable[Expense]) -> list[Expense]:
        """All rows are created or none are."""
        ...

    def add_supplier(self, supplier: Supplier) -> Supplier: ...
    def update_supplier(self, supplier: Supplier) -> Supplier: ...
    def delete_supplier(self, supplier_id: EntityId) -> None: ...
    def get_supplier(self, supplier_id: EntityId) -> Optional[Supplier]: ...
    def list_suppliers(self, active_only: bool = False) -> list[Supplier]: ...
    def search_suppliers(self, text: str) -> list[Supplier]: ...

    def add_purchase(self, purchase: Purchase) -> Purchase: ...
    def update_purchase(self, purchase: Purchase) -> Purchase: ...
    def delete_purchase(self, purchase_id: EntityId) -> None: ...
    def get_purchase(self, purchase_id: EntityId) -> Optional[Purchase]: ...

    def add_revenue(self, revenue: Revenue) -> Revenue: ...
    def update_revenue(self, revenue: Revenue) -> Revenue: ...
    def delete_revenue(self, revenue_id: EntityId) -> None: ...
    def get_revenue(self, revenue_id: EntityId) -> Optional[Revenue]: ...

    def add_expense(self, expense: Expense) -> Expense: ...
    def update_expense(self, expense: Expense) -> Expense: ...
    def delete_expense(self, expense_id: EntityId) -> None: ...
    def get_expense(self, expense_id: EntityId) -> Optional[Expense]: ...
    def distinct_expense_descriptions(self) -> list[str]: ...
