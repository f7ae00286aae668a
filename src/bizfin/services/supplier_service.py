from __future__ import annotations

from dataclasses import replace
from typing import Optional

from bizfin.domain.errors import NotFoundError, ValidationError
from bizfin.domain.models import EntityId, Supplier


class SupplierService:
    def __init__(self, repo):
        self.repo = repo

    def add_supplier(
        self,
        name: str,
        tax_id: Optional[str] = None,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
        main_products: Optional[str] = None,
        default_payment_days: Optional[int] = None,
    ) -> Supplier:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required.")
        if default_payment_days is not None and default_payment_days < 0:
            raise ValidationError("Payment terms must be >= 0 days.")
        return self.repo.add_supplier(
            Supplier(
                name=name,
                tax_id=tax_id,
                phone=phone,
                email=email,
                address=address,
                main_products=main_products,
                default_payment_days=default_payment_days,
            )
        )

    def get(self, supplier_id: EntityId) -> Supplier:
        s = self.repo.get_supplier(supplier_id)
        if not s:
            raise NotFoundError("Supplier not found.")
        return s

    def update(self, supplier: Supplier) -> Supplier:
        if not (supplier.name or "").strip():
            raise ValidationError("Name is required.")
        return self.repo.update_supplier(supplier)

    def deactivate(self, supplier_id: EntityId) -> Supplier:
        return self.repo.update_supplier(replace(self.get(supplier_id), active=False))

    def delete(self, supplier_id: EntityId) -> None:
        """Hard delete. The store refuses it while purchases reference the supplier."""
        self.repo.delete_supplier(supplier_id)

    def list_suppliers(self, active_only: bool = False) -> list[Supplier]:
        return self.repo.list_suppliers(active_only=active_only)

    def search(self, text: str) -> list[Supplier]:
        return self.repo.search_suppliers((text or "").strip())

    def count_active(self) -> int:
        return self.repo.count_active_suppliers()
