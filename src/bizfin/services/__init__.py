from .supplier_service import SupplierService
from .purchase_service import PurchaseService
from .revenue_service import RevenueService
from .expense_service import ExpenseService
from .rollover_service import RolloverService
from .reporting_service import ReportingService

__all__ = [
    "SupplierService",
    "PurchaseService",
    "RevenueService",
    "ExpenseService",
    "RolloverService",
    "ReportingService",
]
