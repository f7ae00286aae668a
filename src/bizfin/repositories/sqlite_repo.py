from __future__ import annotations

import logging
import shutil
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional, TypeVar

from bizfin.domain.errors import ConstraintViolationError, DataAccessError, NotFoundError, ValidationError
from bizfin.domain.models import (
    EntityId,
    Expense,
    ExpenseKind,
    FixedExpense,
    GeneralExpense,
    Purchase,
    Revenue,
    Supplier,
)
from bizfin.domain.money import to_decimal
from bizfin.domain.periods import first_of_month, parse_date

log = logging.getLogger("bizfin.store")

T = TypeVar("T")

_EXPENSE_DATE_COLUMN = {
    ExpenseKind.FIXED: "reference_month",
    ExpenseKind.GENERAL: "date",
}
_EXPENSE_FILTER_COLUMNS = {"category", "description", "payment_status"}
_REVENUE_FILTER_COLUMNS = {"category", "receipt_status"}
_PURCHASE_FILTER_COLUMNS = {"supplier_id", "payment_status"}

_PURCHASE_SELECT = """
    SELECT p.id, p.supplier_id, p.purchase_date, p.amount, p.payment_method, p.payment_status,
           p.due_date, p.invoice_number, p.notes, p.invoice_url, p.created_at,
           s.name AS supplier_name
    FROM purchases p
    LEFT JOIN suppliers s ON s.id = p.supplier_id
"""


def _now_iso() -> str:
    return datetime.now().isoformat(sep=" ", timespec="microseconds")


def _iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d is not None else None


def _opt_date(value) -> Optional[date]:
    return parse_date(value) if value else None


def _read_back(entity: Optional[T], entity_id: EntityId) -> T:
    if entity is None:
        raise DataAccessError(f"Row {entity_id} was written but could not be read back.")
    return entity


def _still_there(entity: Optional[T], entity_id: EntityId) -> T:
    if entity is None:
        raise NotFoundError(f"Row {entity_id} was deleted while being updated.")
    return entity


def _where(
    clauses: list[str],
    params: list,
    filters: Optional[Mapping[str, str]],
    allowed: set[str],
    prefix: str = "",
) -> None:
    for column, value in (filters or {}).items():
        if column not in allowed:
            raise ValidationError(f"Unsupported filter: {column}")
        clauses.append(f"{prefix}{column} = ?")
        params.append(value)


class SqliteRepository:
    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Cursor]:
        try:
            conn = self._conn()
        except sqlite3.Error as exc:
            raise DataAccessError(f"Cannot open database: {exc}") from exc
        try:
            yield conn.cursor()
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise ConstraintViolationError(str(exc)) from exc
        except sqlite3.Error as exc:
            conn.rollback()
            log.error("sqlite_error db=%s error=%s", self.db_path, exc)
            raise DataAccessError(str(exc)) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        self.run_migrations()

    def run_migrations(self) -> None:
        conn = self._conn()
        backup_path = self._create_pre_migration_backup()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_base),
                (2, self._migration_v2_lookup_indexes),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            raise DataAccessError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS suppliers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                tax_id TEXT,
                phone TEXT,
                email TEXT,
                address TEXT,
                main_products TEXT,
                default_payment_days INTEGER CHECK(default_payment_days IS NULL OR default_payment_days >= 0),
                active INTEGER NOT NULL DEFAULT 1 CHECK(active IN (0,1)),
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )

        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS purchases (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                supplier_id INTEGER NOT NULL,
                purchase_date TEXT NOT NULL,
                amount TEXT NOT NULL CHECK(CAST(amount AS REAL) >= 0),
                payment_method TEXT NOT NULL CHECK(payment_method IN ('Pix','Boleto','Card','Cash','Check')),
                payment_status TEXT NOT NULL CHECK(payment_status IN ('paid','pending')),
                due_date TEXT,
                invoice_number TEXT,
                notes TEXT,
                invoice_url TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY(supplier_id) REFERENCES suppliers(id)
            )
            """
        )

        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS revenues (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                date TEXT NOT NULL,
                description TEXT NOT NULL,
                amount TEXT NOT NULL CHECK(CAST(amount AS REAL) >= 0),
                category TEXT NOT NULL,
                receipt_status TEXT NOT NULL CHECK(receipt_status IN ('received','pending')),
                notes TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )

        # one table, two shapes: the kind decides which date columns are populated
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                kind TEXT NOT NULL CHECK(kind IN ('fixed','general')),
                description TEXT NOT NULL,
                amount TEXT NOT NULL CHECK(CAST(amount AS REAL) >= 0),
                category TEXT NOT NULL,
                payment_status TEXT NOT NULL CHECK(payment_status IN ('paid','pending')),
                notes TEXT,
                date TEXT,
                reference_month TEXT,
                due_day INTEGER CHECK(due_day IS NULL OR due_day BETWEEN 1 AND 31),
                active INTEGER CHECK(active IS NULL OR active IN (0,1)),
                origin_expense_id INTEGER,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                CHECK(
                    (kind = 'fixed' AND date IS NULL AND reference_month IS NOT NULL
                        AND due_day IS NOT NULL AND active IS NOT NULL)
                    OR
                    (kind = 'general' AND date IS NOT NULL AND reference_month IS NULL
                        AND due_day IS NULL AND active IS NULL AND origin_expense_id IS NULL)
                )
            )
            """
        )

    def _migration_v2_lookup_indexes(self, cur: sqlite3.Cursor) -> None:
        cur.execute("CREATE INDEX IF NOT EXISTS ix_expenses_fixed_month ON expenses(kind, reference_month)")
        cur.execute("CREATE INDEX IF NOT EXISTS ix_expenses_general_date ON expenses(kind, date)")
        cur.execute("CREATE INDEX IF NOT EXISTS ix_revenues_date ON revenues(date)")
        cur.execute("CREATE INDEX IF NOT EXISTS ix_purchases_date ON purchases(purchase_date)")
        cur.execute("CREATE INDEX IF NOT EXISTS ix_purchases_supplier ON purchases(supplier_id)")

    # ---------- Row mapping ----------
    @staticmethod
    def _supplier_from_row(r: sqlite3.Row) -> Supplier:
        return Supplier(
            id=int(r["id"]),
            name=str(r["name"]),
            tax_id=r["tax_id"],
            phone=r["phone"],
            email=r["email"],
            address=r["address"],
            main_products=r["main_products"],
            default_payment_days=(int(r["default_payment_days"]) if r["default_payment_days"] is not None else None),
            active=bool(r["active"]),
            created_at=str(r["created_at"]),
        )

    @staticmethod
    def _purchase_from_row(r: sqlite3.Row) -> Purchase:
        return Purchase(
            id=int(r["id"]),
            supplier_id=int(r["supplier_id"]),
            purchase_date=parse_date(r["purchase_date"]),
            amount=to_decimal(r["amount"]),
            payment_method=r["payment_method"],
            payment_status=r["payment_status"],
            due_date=_opt_date(r["due_date"]),
            invoice_number=r["invoice_number"],
            notes=r["notes"],
            invoice_url=r["invoice_url"],
            supplier_name=r["supplier_name"],
            created_at=str(r["created_at"]),
        )

    @staticmethod
    def _revenue_from_row(r: sqlite3.Row) -> Revenue:
        return Revenue(
            id=int(r["id"]),
            date=parse_date(r["date"]),
            description=str(r["description"]),
            amount=to_decimal(r["amount"]),
            category=str(r["category"]),
            receipt_status=r["receipt_status"],
            notes=r["notes"],
            created_at=str(r["created_at"]),
        )

    @staticmethod
    def _expense_from_row(r: sqlite3.Row) -> Expense:
        if r["kind"] == ExpenseKind.FIXED.value:
            return FixedExpense(
                id=int(r["id"]),
                description=str(r["description"]),
                amount=to_decimal(r["amount"]),
                category=str(r["category"]),
                payment_status=r["payment_status"],
                due_day=int(r["due_day"]),
                reference_month=parse_date(r["reference_month"]),
                active=bool(r["active"]),
                origin_expense_id=(int(r["origin_expense_id"]) if r["origin_expense_id"] is not None else None),
                notes=r["notes"],
                created_at=str(r["created_at"]),
            )
        return GeneralExpense(
            id=int(r["id"]),
            description=str(r["description"]),
            amount=to_decimal(r["amount"]),
            category=str(r["category"]),
            payment_status=r["payment_status"],
            date=parse_date(r["date"]),
            notes=r["notes"],
            created_at=str(r["created_at"]),
        )

    @staticmethod
    def _expense_columns(e: Expense) -> dict:
        cols = {
            "kind": e.kind.value,
            "description": e.description,
            "amount": str(e.amount),
            "category": e.category,
            "payment_status": e.payment_status.value,
            "notes": e.notes,
            "date": None,
            "reference_month": None,
            "due_day": None,
            "active": None,
            "origin_expense_id": None,
        }
        if isinstance(e, FixedExpense):
            cols.update(
                reference_month=_iso(e.reference_month),
                due_day=int(e.due_day),
                active=int(bool(e.active)),
                origin_expense_id=(int(e.origin_expense_id) if e.origin_expense_id is not None else None),
            )
        else:
            cols["date"] = _iso(e.date)
        return cols

    # ---------- Suppliers ----------
    def add_supplier(self, supplier: Supplier) -> Supplier:
        now = _now_iso()
        with self._session() as cur:
            cur.execute(
                """
                INSERT INTO suppliers (name, tax_id, phone, email, address, main_products,
                                       default_payment_days, active, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    supplier.name, supplier.tax_id, supplier.phone, supplier.email, supplier.address,
                    supplier.main_products, supplier.default_payment_days, int(bool(supplier.active)), now, now,
                ),
            )
            sid = int(cur.lastrowid)
        return _read_back(self.get_supplier(sid), sid)

    def update_supplier(self, supplier: Supplier) -> Supplier:
        with self._session() as cur:
            cur.execute(
                """
                UPDATE suppliers
                SET name=?, tax_id=?, phone=?, email=?, address=?, main_products=?,
                    default_payment_days=?, active=?, updated_at=?
                WHERE id=?
                """,
                (
                    supplier.name, supplier.tax_id, supplier.phone, supplier.email, supplier.address,
                    supplier.main_products, supplier.default_payment_days, int(bool(supplier.active)),
                    _now_iso(), int(supplier.id),
                ),
            )
            if cur.rowcount == 0:
                raise NotFoundError("Supplier not found.")
        return _still_there(self.get_supplier(supplier.id), supplier.id)

    def delete_supplier(self, supplier_id: EntityId) -> None:
        try:
            with self._session() as cur:
                cur.execute("DELETE FROM suppliers WHERE id=?", (int(supplier_id),))
                if cur.rowcount == 0:
                    raise NotFoundError("Supplier not found.")
        except ConstraintViolationError as exc:
            raise ConstraintViolationError("Supplier is referenced by purchases; deactivate it instead.") from exc

    def get_supplier(self, supplier_id: EntityId) -> Optional[Supplier]:
        with self._session() as cur:
            cur.execute("SELECT * FROM suppliers WHERE id=?", (int(supplier_id),))
            r = cur.fetchone()
        return self._supplier_from_row(r) if r else None

    def list_suppliers(self, active_only: bool = False) -> list[Supplier]:
        sql = "SELECT * FROM suppliers"
        if active_only:
            sql += " WHERE active=1"
        sql += " ORDER BY name"
        with self._session() as cur:
            cur.execute(sql)
            rows = cur.fetchall()
        return [self._supplier_from_row(r) for r in rows]

    def search_suppliers(self, text: str) -> list[Supplier]:
        with self._session() as cur:
            cur.execute(
                "SELECT * FROM suppliers WHERE name LIKE ? ORDER BY name",
                (f"%{text}%",),
            )
            rows = cur.fetchall()
        return [self._supplier_from_row(r) for r in rows]

    def count_active_suppliers(self) -> int:
        with self._session() as cur:
            cur.execute("SELECT COUNT(*) FROM suppliers WHERE active=1")
            return int(cur.fetchone()[0])

    # ---------- Purchases ----------
    def add_purchase(self, purchase: Purchase) -> Purchase:
        now = _now_iso()
        with self._session() as cur:
            cur.execute(
                """
                INSERT INTO purchases (supplier_id, purchase_date, amount, payment_method, payment_status,
                                       due_date, invoice_number, notes, invoice_url, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    int(purchase.supplier_id), _iso(purchase.purchase_date), str(purchase.amount),
                    purchase.payment_method.value, purchase.payment_status.value, _iso(purchase.due_date),
                    purchase.invoice_number, purchase.notes, purchase.invoice_url, now, now,
                ),
            )
            pid = int(cur.lastrowid)
        return _read_back(self.get_purchase(pid), pid)

    def update_purchase(self, purchase: Purchase) -> Purchase:
        with self._session() as cur:
            cur.execute(
                """
                UPDATE purchases
                SET supplier_id=?, purchase_date=?, amount=?, payment_method=?, payment_status=?,
                    due_date=?, invoice_number=?, notes=?, invoice_url=?, updated_at=?
                WHERE id=?
                """,
                (
                    int(purchase.supplier_id), _iso(purchase.purchase_date), str(purchase.amount),
                    purchase.payment_method.value, purchase.payment_status.value, _iso(purchase.due_date),
                    purchase.invoice_number, purchase.notes, purchase.invoice_url, _now_iso(), int(purchase.id),
                ),
            )
            if cur.rowcount == 0:
                raise NotFoundError("Purchase not found.")
        return _still_there(self.get_purchase(purchase.id), purchase.id)

    def delete_purchase(self, purchase_id: EntityId) -> None:
        with self._session() as cur:
            cur.execute("DELETE FROM purchases WHERE id=?", (int(purchase_id),))
            if cur.rowcount == 0:
                raise NotFoundError("Purchase not found.")

    def get_purchase(self, purchase_id: EntityId) -> Optional[Purchase]:
        with self._session() as cur:
            cur.execute(_PURCHASE_SELECT + " WHERE p.id = ?", (int(purchase_id),))
            r = cur.fetchone()
        return self._purchase_from_row(r) if r else None

    def fetch_purchases(
        self,
        date_start: Optional[date],
        date_end: Optional[date],
        filters: Optional[Mapping[str, str]] = None,
    ) -> list[Purchase]:
        clauses: list[str] = []
        params: list = []
        if date_start:
            clauses.append("p.purchase_date >= ?")
            params.append(_iso(date_start))
        if date_end:
            clauses.append("p.purchase_date <= ?")
            params.append(_iso(date_end))
        _where(clauses, params, filters, _PURCHASE_FILTER_COLUMNS, prefix="p.")

        sql = _PURCHASE_SELECT
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY p.purchase_date DESC, p.created_at DESC, p.id DESC"
        with self._session() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [self._purchase_from_row(r) for r in rows]

    def fetch_purchases_due_between(self, start: date, end: date) -> list[Purchase]:
        with self._session() as cur:
            cur.execute(
                _PURCHASE_SELECT
                + """
                WHERE p.payment_status = 'pending' AND p.due_date >= ? AND p.due_date <= ?
                ORDER BY p.due_date ASC, p.id ASC
                """,
                (_iso(start), _iso(end)),
            )
            rows = cur.fetchall()
        return [self._purchase_from_row(r) for r in rows]

    # ---------- Revenues ----------
    def add_revenue(self, revenue: Revenue) -> Revenue:
        now = _now_iso()
        with self._session() as cur:
            cur.execute(
                """
                INSERT INTO revenues (date, description, amount, category, receipt_status, notes, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    _iso(revenue.date), revenue.description, str(revenue.amount), revenue.category,
                    revenue.receipt_status.value, revenue.notes, now, now,
                ),
            )
            rid = int(cur.lastrowid)
        return _read_back(self.get_revenue(rid), rid)

    def update_revenue(self, revenue: Revenue) -> Revenue:
        with self._session() as cur:
            cur.execute(
                """
                UPDATE revenues
                SET date=?, description=?, amount=?, category=?, receipt_status=?, notes=?, updated_at=?
                WHERE id=?
                """,
                (
                    _iso(revenue.date), revenue.description, str(revenue.amount), revenue.category,
                    revenue.receipt_status.value, revenue.notes, _now_iso(), int(revenue.id),
                ),
            )
            if cur.rowcount == 0:
                raise NotFoundError("Revenue not found.")
        return _still_there(self.get_revenue(revenue.id), revenue.id)

    def delete_revenue(self, revenue_id: EntityId) -> None:
        with self._session() as cur:
            cur.execute("DELETE FROM revenues WHERE id=?", (int(revenue_id),))
            if cur.rowcount == 0:
                raise NotFoundError("Revenue not found.")

    def get_revenue(self, revenue_id: EntityId) -> Optional[Revenue]:
        with self._session() as cur:
            cur.execute("SELECT * FROM revenues WHERE id=?", (int(revenue_id),))
            r = cur.fetchone()
        return self._revenue_from_row(r) if r else None

    def fetch_revenues(
        self,
        date_start: Optional[date],
        date_end: Optional[date],
        filters: Optional[Mapping[str, str]] = None,
    ) -> list[Revenue]:
        clauses: list[str] = []
        params: list = []
        if date_start:
            clauses.append("date >= ?")
            params.append(_iso(date_start))
        if date_end:
            clauses.append("date <= ?")
            params.append(_iso(date_end))
        _where(clauses, params, filters, _REVENUE_FILTER_COLUMNS)

        sql = "SELECT * FROM revenues"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY date DESC, created_at DESC, id DESC"
        with self._session() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [self._revenue_from_row(r) for r in rows]

    # ---------- Expenses ----------
    def _insert_expense(self, cur: sqlite3.Cursor, expense: Expense, now: str) -> int:
        cols = self._expense_columns(expense)
        names = list(cols) + ["created_at", "updated_at"]
        cur.execute(
            f"INSERT INTO expenses ({', '.join(names)}) VALUES ({', '.join('?' for _ in names)})",
            [*cols.values(), now, now],
        )
        return int(cur.lastrowid)

    def add_expense(self, expense: Expense) -> Expense:
        with self._session() as cur:
            eid = self._insert_expense(cur, expense, _now_iso())
        return _read_back(self.get_expense(eid), eid)

    def bulk_insert_expenses(self, expenses: Iterable[Expense]) -> list[Expense]:
        expenses = list(expenses)
        if not expenses:
            return []
        now = _now_iso()
        with self._session() as cur:
            ids = [self._insert_expense(cur, e, now) for e in expenses]
            cur.execute(
                f"SELECT * FROM expenses WHERE id IN ({', '.join('?' for _ in ids)}) ORDER BY id",
                ids,
            )
            rows = cur.fetchall()
        log.info("expenses_bulk_inserted count=%d", len(rows))
        return [self._expense_from_row(r) for r in rows]

    def update_expense(self, expense: Expense) -> Expense:
        cols = self._expense_columns(expense)
        assignments = ", ".join(f"{name}=?" for name in cols)
        with self._session() as cur:
            cur.execute(
                f"UPDATE expenses SET {assignments}, updated_at=? WHERE id=?",
                [*cols.values(), _now_iso(), int(expense.id)],
            )
            if cur.rowcount == 0:
                raise NotFoundError("Expense not found.")
        return _still_there(self.get_expense(expense.id), expense.id)

    def delete_expense(self, expense_id: EntityId) -> None:
        with self._session() as cur:
            cur.execute("DELETE FROM expenses WHERE id=?", (int(expense_id),))
            if cur.rowcount == 0:
                raise NotFoundError("Expense not found.")

    def get_expense(self, expense_id: EntityId) -> Optional[Expense]:
        with self._session() as cur:
            cur.execute("SELECT * FROM expenses WHERE id=?", (int(expense_id),))
            r = cur.fetchone()
        return self._expense_from_row(r) if r else None

    def fetch_expenses(
        self,
        kind: Optional[ExpenseKind],
        date_start: Optional[date] = None,
        date_end: Optional[date] = None,
        filters: Optional[Mapping[str, str]] = None,
    ) -> list[Expense]:
        clauses: list[str] = []
        params: list = []
        if kind is not None:
            kind = ExpenseKind(kind)
            clauses.append("kind = ?")
            params.append(kind.value)
        if date_start or date_end:
            if kind is None:
                raise ValidationError("A date range on expenses needs a kind: fixed and general use different date columns.")
            column = _EXPENSE_DATE_COLUMN[kind]
            if date_start:
                clauses.append(f"{column} >= ?")
                params.append(_iso(date_start))
            if date_end:
                clauses.append(f"{column} <= ?")
                params.append(_iso(date_end))
        _where(clauses, params, filters, _EXPENSE_FILTER_COLUMNS)

        sql = "SELECT * FROM expenses"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY COALESCE(reference_month, date) DESC, created_at DESC, id DESC"
        with self._session() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [self._expense_from_row(r) for r in rows]

    def fetch_fixed_expenses_for_month(self, month: date, active_only: bool = False) -> list[FixedExpense]:
        sql = "SELECT * FROM expenses WHERE kind = 'fixed' AND reference_month = ?"
        if active_only:
            sql += " AND active = 1"
        sql += " ORDER BY description, id"
        with self._session() as cur:
            cur.execute(sql, (_iso(first_of_month(month)),))
            rows = cur.fetchall()
        return [self._expense_from_row(r) for r in rows]

    def distinct_expense_descriptions(self) -> list[str]:
        with self._session() as cur:
            cur.execute(
                """
                SELECT DISTINCT description
                FROM expenses
                WHERE description IS NOT NULL AND TRIM(description) <> ''
                ORDER BY description
                """
            )
            rows = cur.fetchall()
        return [str(r[0]) for r in rows]
