from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional

from bizfin.domain.errors import NotFoundError, ValidationError
from bizfin.domain.filters import RevenueFilter
from bizfin.domain.models import EntityId, ReceiptStatus, Revenue


class RevenueService:
    def __init__(self, repo):
        self.repo = repo

    def create_revenue(
        self,
        revenue_date: date,
        description: str,
        amount,
        category: str,
        receipt_status: ReceiptStatus = ReceiptStatus.PENDING,
        notes: Optional[str] = None,
    ) -> Revenue:
        description = (description or "").strip()
        category = (category or "").strip()
        if not description or not category:
            raise ValidationError("Description and Category are required.")
        revenue = Revenue(
            date=revenue_date,
            description=description,
            amount=amount,
            category=category,
            receipt_status=receipt_status,
            notes=notes,
        )
        return self.repo.add_revenue(revenue)

    def get(self, revenue_id: EntityId) -> Revenue:
        r = self.repo.get_revenue(revenue_id)
        if not r:
            raise NotFoundError("Revenue not found.")
        return r

    def update(self, revenue: Revenue) -> Revenue:
        if revenue.id is None:
            raise ValidationError("Cannot update a revenue without id.")
        return self.repo.update_revenue(revenue)

    def mark_received(self, revenue_id: EntityId) -> Revenue:
        return self.repo.update_revenue(replace(self.get(revenue_id), receipt_status=ReceiptStatus.RECEIVED))

    def delete(self, revenue_id: EntityId) -> None:
        self.repo.delete_revenue(revenue_id)

    def list_revenues(self, flt: RevenueFilter) -> list[Revenue]:
        return self.repo.fetch_revenues(flt.date_start, flt.date_end, flt.predicates())
