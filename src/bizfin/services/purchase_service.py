from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from typing import Optional

from bizfin.domain.errors import NotFoundError, ValidationError
from bizfin.domain.filters import PurchaseFilter
from bizfin.domain.models import EntityId, PaymentMethod, PaymentStatus, Purchase


class PurchaseService:
    def __init__(self, repo):
        self.repo = repo

    def create_purchase(
        self,
        supplier_id: EntityId,
        purchase_date: date,
        amount,
        payment_method: PaymentMethod,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        due_date: Optional[date] = None,
        invoice_number: Optional[str] = None,
        notes: Optional[str] = None,
        invoice_url: Optional[str] = None,
    ) -> Purchase:
        """
        Record a purchase against an existing supplier.

        Without an explicit due date, one is derived from the supplier's
        default payment terms when it has them.
        """
        supplier = self.repo.get_supplier(supplier_id)
        if not supplier:
            raise NotFoundError("Supplier not found.")
        if not supplier.active:
            raise ValidationError("Supplier is inactive.")

        if due_date is None and supplier.default_payment_days:
            due_date = purchase_date + timedelta(days=int(supplier.default_payment_days))
        if due_date is not None and due_date < purchase_date:
            raise ValidationError("Due date cannot be before the purchase date.")

        purchase = Purchase(
            supplier_id=supplier_id,
            purchase_date=purchase_date,
            amount=amount,
            payment_method=payment_method,
            payment_status=payment_status,
            due_date=due_date,
            invoice_number=(invoice_number or "").strip() or None,
            notes=notes,
            invoice_url=invoice_url,
        )
        return self.repo.add_purchase(purchase)

    def get(self, purchase_id: EntityId) -> Purchase:
        p = self.repo.get_purchase(purchase_id)
        if not p:
            raise NotFoundError("Purchase not found.")
        return p

    def update(self, purchase: Purchase) -> Purchase:
        if purchase.id is None:
            raise ValidationError("Cannot update a purchase without id.")
        return self.repo.update_purchase(purchase)

    def mark_paid(self, purchase_id: EntityId) -> Purchase:
        return self.repo.update_purchase(replace(self.get(purchase_id), payment_status=PaymentStatus.PAID))

    def delete(self, purchase_id: EntityId) -> None:
        self.repo.delete_purchase(purchase_id)

    def list_purchases(self, flt: PurchaseFilter) -> list[Purchase]:
        return self.repo.fetch_purchases(flt.date_start, flt.date_end, flt.predicates())

    def due_soon(self, today: date, days: int = 7) -> list[Purchase]:
        return self.repo.fetch_purchases_due_between(today, today + timedelta(days=int(days)))
