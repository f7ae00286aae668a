from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from bizfin.config import StoreSettings
from bizfin.repositories.rest_repo import RestRepository
from bizfin.repositories.sqlite_repo import SqliteRepository
from bizfin.repositories.store import EntityStore
from bizfin.services.expense_service import ExpenseService
from bizfin.services.purchase_service import PurchaseService
from bizfin.services.reporting_service import ReportingService
from bizfin.services.revenue_service import RevenueService
from bizfin.services.rollover_service import RolloverService
from bizfin.services.supplier_service import SupplierService


@dataclass(frozen=True)
class AppContainer:
    repo: EntityStore
    suppliers: SupplierService
    purchases: PurchaseService
    revenues: RevenueService
    expenses: ExpenseService
    rollover: RolloverService
    reporting: ReportingService


def build_store(db_path: Path | str, settings: Optional[StoreSettings] = None) -> EntityStore:
    if settings is not None and settings.is_remote:
        return RestRepository(
            settings.url,
            settings.api_key or "",
            user_id=settings.user_id,
            timeout=settings.timeout,
        )
    repo = SqliteRepository(db_path)
    repo.init_db()
    return repo


def build_container(db_path: Path | str, settings: Optional[StoreSettings] = None) -> AppContainer:
    repo = build_store(db_path, settings)

    return AppContainer(
        repo=repo,
        suppliers=SupplierService(repo),
        purchases=PurchaseService(repo),
        revenues=RevenueService(repo),
        expenses=ExpenseService(repo),
        rollover=RolloverService(repo),
        reporting=ReportingService(repo),
    )
