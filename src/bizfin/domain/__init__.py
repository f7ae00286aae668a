from .models import (
    Supplier,
    Purchase,
    Revenue,
    FixedExpense,
    GeneralExpense,
    Expense,
    ExpenseKind,
    PaymentMethod,
    PaymentStatus,
    ReceiptStatus,
)
from .errors import (
    AppError,
    ValidationError,
    NotFoundError,
    DataAccessError,
    ConstraintViolationError,
    AlreadyRolledOverError,
    NoSourceExpensesError,
    PartialRolloverError,
)

__all__ = [
    "Supplier",
    "Purchase",
    "Revenue",
    "FixedExpense",
    "GeneralExpense",
    "Expense",
    "ExpenseKind",
    "PaymentMethod",
    "PaymentStatus",
    "ReceiptStatus",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "DataAccessError",
    "ConstraintViolationError",
    "AlreadyRolledOverError",
    "NoSourceExpensesError",
    "PartialRolloverError",
]
