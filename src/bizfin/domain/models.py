from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from bizfin.domain.errors import ValidationError
from bizfin.domain.money import ZERO, to_decimal

EntityId = Union[int, str]


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"


class ReceiptStatus(str, Enum):
    RECEIVED = "received"
    PENDING = "pending"


class PaymentMethod(str, Enum):
    PIX = "Pix"
    BOLETO = "Boleto"
    CARD = "Card"
    CASH = "Cash"
    CHECK = "Check"


class ExpenseKind(str, Enum):
    FIXED = "fixed"
    GENERAL = "general"


def _amount(value: object) -> Decimal:
    try:
        amount = to_decimal(value)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    # Decimal accepts "NaN" and "Infinity"
    if not amount.is_finite():
        raise ValidationError(f"Amount must be a finite number: {value!r}")
    if amount < ZERO:
        raise ValidationError("Amount must be >= 0.")
    return amount


def coerce_field(obj: object, name: str, factory, optional: bool = False) -> None:
    """Replace `obj.name` with `factory(value)` on a frozen dataclass, as a ValidationError on bad input."""
    value = getattr(obj, name)
    if optional and value is None:
        return
    try:
        object.__setattr__(obj, name, factory(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid {name}: {value!r}") from exc


@dataclass(frozen=True)
class Supplier:
    name: str
    tax_id: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    main_products: Optional[str] = None
    default_payment_days: Optional[int] = None
    active: bool = True
    id: Optional[EntityId] = None
    created_at: Optional[str] = None


@dataclass(frozen=True)
class Purchase:
    supplier_id: EntityId
    purchase_date: date
    amount: Decimal
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    due_date: Optional[date] = None
    invoice_number: Optional[str] = None
    notes: Optional[str] = None
    invoice_url: Optional[str] = None
    # joined from suppliers; None once the supplier row is gone
    supplier_name: Optional[str] = None
    id: Optional[EntityId] = None
    created_at: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _amount(self.amount))
        coerce_field(self, "payment_method", PaymentMethod)
        coerce_field(self, "payment_status", PaymentStatus)


@dataclass(frozen=True)
class Revenue:
    date: date
    description: str
    amount: Decimal
    category: str
    receipt_status: ReceiptStatus = ReceiptStatus.PENDING
    notes: Optional[str] = None
    id: Optional[EntityId] = None
    created_at: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _amount(self.amount))
        coerce_field(self, "receipt_status", ReceiptStatus)


@dataclass(frozen=True)
class FixedExpense:
    """Recurring monthly obligation, one row per reference month."""

    description: str
    amount: Decimal
    category: str
    due_day: int
    reference_month: date
    payment_status: PaymentStatus = PaymentStatus.PENDING
    active: bool = True
    origin_expense_id: Optional[EntityId] = None
    notes: Optional[str] = None
    id: Optional[EntityId] = None
    created_at: Optional[str] = None

    kind = ExpenseKind.FIXED

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _amount(self.amount))
        coerce_field(self, "payment_status", PaymentStatus)
        if not 1 <= int(self.due_day) <= 31:
            raise ValidationError("Due day must be between 1 and 31.")
        if self.reference_month.day != 1:
            raise ValidationError("Reference month must be the first day of a month.")

    @property
    def effective_date(self) -> date:
        return self.reference_month


@dataclass(frozen=True)
class GeneralExpense:
    """One-off expense tied to an exact date."""

    description: str
    amount: Decimal
    category: str
    date: date
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: Optional[str] = None
    id: Optional[EntityId] = None
    created_at: Optional[str] = None

    kind = ExpenseKind.GENERAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _amount(self.amount))
        coerce_field(self, "payment_status", PaymentStatus)

    @property
    def effective_date(self) -> date:
        return self.date


Expense = Union[FixedExpense, GeneralExpense]
