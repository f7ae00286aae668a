import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def new_repo(tmp_path: Path, name: str = "bizfin.db"):
    from bizfin.repositories.sqlite_repo import SqliteRepository

    repo = SqliteRepository(tmp_path / name)
    repo.init_db()
    return repo


def add_fixed(repo, description: str, amount: str, month: date, active: bool = True, paid: bool = False, category: str = "Rent"):
    from bizfin.domain.models import FixedExpense, PaymentStatus

    return repo.add_expense(
        FixedExpense(
            description=description,
            amount=Decimal(amount),
            category=category,
            due_day=10,
            reference_month=month,
            payment_status=PaymentStatus.PAID if paid else PaymentStatus.PENDING,
            active=active,
        )
    )


def add_general(repo, description: str, amount: str, day: date, paid: bool = False, category: str = "General"):
    from bizfin.domain.models import GeneralExpense, PaymentStatus

    return repo.add_expense(
        GeneralExpense(
            description=description,
            amount=Decimal(amount),
            category=category,
            date=day,
            payment_status=PaymentStatus.PAID if paid else PaymentStatus.PENDING,
        )
    )
