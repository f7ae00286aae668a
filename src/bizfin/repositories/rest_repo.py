from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, Mapping, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

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

# The hosted schema predates this package; names and enum values are kept as stored.
_PAYMENT_STATUS = {"paid": "pago", "pending": "pendente"}
_RECEIPT_STATUS = {"received": "recebido", "pending": "pendente"}
_PAYMENT_METHOD = {"Pix": "Pix", "Boleto": "Boleto", "Card": "Cartão", "Cash": "Dinheiro", "Check": "Cheque"}
_EXPENSE_KIND = {"fixed": "fixa", "general": "geral"}


def _reverse(mapping: dict[str, str]) -> dict[str, str]:
    return {v: k for k, v in mapping.items()}


_PAYMENT_STATUS_IN = _reverse(_PAYMENT_STATUS)
_RECEIPT_STATUS_IN = _reverse(_RECEIPT_STATUS)
_PAYMENT_METHOD_IN = _reverse(_PAYMENT_METHOD)
_EXPENSE_KIND_IN = _reverse(_EXPENSE_KIND)

_EXPENSE_DATE_COLUMN = {ExpenseKind.FIXED: "mes_referencia", ExpenseKind.GENERAL: "data"}

_EXPENSE_FILTERS = {
    "category": ("categoria", None),
    "description": ("descricao", None),
    "payment_status": ("status_pagamento", _PAYMENT_STATUS),
}
_REVENUE_FILTERS = {
    "category": ("categoria", None),
    "receipt_status": ("status_recebimento", _RECEIPT_STATUS),
}
_PURCHASE_FILTERS = {
    "supplier_id": ("fornecedor_id", None),
    "payment_status": ("status_pagamento", _PAYMENT_STATUS),
}

_PURCHASE_SELECT = "*,fornecedores(nome)"


def _iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d is not None else None


def _opt_date(value) -> Optional[date]:
    return parse_date(value) if value else None


def _where(query, filters: Optional[Mapping[str, str]], allowed: dict):
    for key, value in (filters or {}).items():
        if key not in allowed:
            raise ValidationError(f"Unsupported filter: {key}")
        column, translate = allowed[key]
        value = str(value)
        if translate is not None:
            value = translate[value]
        query = query.eq(column, value)
    return query


def _between(query, column: str, date_start: Optional[date], date_end: Optional[date]):
    if date_start:
        query = query.gte(column, _iso(date_start))
    if date_end:
        query = query.lte(column, _iso(date_end))
    return query


class RestRepository:
    """Entity store backed by the hosted Supabase project, through its PostgREST tables."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        user_id: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.user_id = user_id
        self.timeout = timeout
        # created on first use
        self.client = client

    # ---------- Transport ----------
    def _table(self, name: str):
        if self.client is None:
            self.client = create_client(
                self.base_url,
                self.api_key,
                options=ClientOptions(postgrest_client_timeout=self.timeout),
            )
        return self.client.table(name)

    @staticmethod
    def _run(query, action: str, table: str) -> Any:
        try:
            return query.execute()
        except APIError as exc:
            code = str(exc.code or "")
            message = exc.message or str(exc)
            # SQLSTATE class 23 is integrity constraint violation
            if code.startswith("23"):
                raise ConstraintViolationError(message) from exc
            log.error("store_api_error action=%s table=%s code=%s message=%s", action, table, code, message)
            raise DataAccessError(f"Store rejected {action} on {table}: {message}") from exc
        except httpx.HTTPError as exc:
            log.error("store_request_failed action=%s table=%s error=%s", action, table, exc)
            raise DataAccessError(f"Store request failed: {exc}") from exc

    def _rows(self, query, action: str, table: str) -> list[dict]:
        return list(self._run(query, action, table).data or [])

    def _insert(self, table: str, rows: list[dict]) -> list[dict]:
        if self.user_id:
            rows = [{**row, "user_id": self.user_id} for row in rows]
        # one insert of the whole list is one server-side transaction
        return self._rows(self._table(table).insert(rows), "insert", table)

    def _update(self, table: str, entity_id: EntityId, values: dict) -> dict:
        rows = self._rows(self._table(table).update(values).eq("id", entity_id), "update", table)
        if not rows:
            raise NotFoundError(f"{table} row not found: {entity_id}")
        return rows[0]

    def _delete(self, table: str, entity_id: EntityId) -> None:
        if not self._rows(self._table(table).delete().eq("id", entity_id), "delete", table):
            raise NotFoundError(f"{table} row not found: {entity_id}")

    def _get_one(self, table: str, entity_id: EntityId, columns: str = "*") -> Optional[dict]:
        rows = self._rows(self._table(table).select(columns).eq("id", entity_id), "select", table)
        return rows[0] if rows else None

    # ---------- Row mapping ----------
    @staticmethod
    def _supplier_from_row(r: dict) -> Supplier:
        return Supplier(
            id=r["id"],
            name=r["nome"],
            tax_id=r.get("cnpj"),
            phone=r.get("telefone"),
            email=r.get("email"),
            address=r.get("endereco"),
            main_products=r.get("produtos_principais"),
            default_payment_days=r.get("prazo_pagamento_padrao"),
            active=bool(r.get("ativo", True)),
            created_at=r.get("criado_em"),
        )

    @staticmethod
    def _supplier_to_row(s: Supplier) -> dict:
        return {
            "nome": s.name,
            "cnpj": s.tax_id,
            "telefone": s.phone,
            "email": s.email,
            "endereco": s.address,
            "produtos_principais": s.main_products,
            "prazo_pagamento_padrao": s.default_payment_days,
            "ativo": bool(s.active),
        }

    @staticmethod
    def _purchase_from_row(r: dict) -> Purchase:
        supplier = r.get("fornecedores") or {}
        return Purchase(
            id=r["id"],
            supplier_id=r["fornecedor_id"],
            purchase_date=parse_date(r["data_compra"]),
            amount=to_decimal(r["valor_total"]),
            payment_method=_PAYMENT_METHOD_IN[r["forma_pagamento"]],
            payment_status=_PAYMENT_STATUS_IN[r["status_pagamento"]],
            due_date=_opt_date(r.get("data_vencimento")),
            invoice_number=r.get("numero_nf"),
            notes=r.get("observacoes"),
            invoice_url=r.get("arquivo_nf_url"),
            supplier_name=supplier.get("nome"),
            created_at=r.get("criado_em"),
        )

    @staticmethod
    def _purchase_to_row(p: Purchase) -> dict:
        return {
            "fornecedor_id": p.supplier_id,
            "data_compra": _iso(p.purchase_date),
            "valor_total": str(p.amount),
            "forma_pagamento": _PAYMENT_METHOD[p.payment_method.value],
            "status_pagamento": _PAYMENT_STATUS[p.payment_status.value],
            "data_vencimento": _iso(p.due_date),
            "numero_nf": p.invoice_number,
            "observacoes": p.notes,
            "arquivo_nf_url": p.invoice_url,
        }

    @staticmethod
    def _revenue_from_row(r: dict) -> Revenue:
        return Revenue(
            id=r["id"],
            date=parse_date(r["data"]),
            description=r["descricao"],
            amount=to_decimal(r["valor"]),
            category=r["categoria"],
            receipt_status=_RECEIPT_STATUS_IN[r["status_recebimento"]],
            notes=r.get("observacoes"),
            created_at=r.get("criado_em"),
        )

    @staticmethod
    def _revenue_to_row(rv: Revenue) -> dict:
        return {
            "data": _iso(rv.date),
            "descricao": rv.description,
            "valor": str(rv.amount),
            "categoria": rv.category,
            "status_recebimento": _RECEIPT_STATUS[rv.receipt_status.value],
            "observacoes": rv.notes,
        }

    @staticmethod
    def _expense_from_row(r: dict) -> Expense:
        common = dict(
            id=r["id"],
            description=r["descricao"],
            amount=to_decimal(r["valor"]),
            category=r["categoria"],
            payment_status=_PAYMENT_STATUS_IN[r["status_pagamento"]],
            notes=r.get("observacoes"),
            created_at=r.get("criado_em"),
        )
        if _EXPENSE_KIND_IN[r["tipo"]] == ExpenseKind.FIXED.value:
            return FixedExpense(
                due_day=int(r["dia_vencimento"]),
                reference_month=parse_date(r["mes_referencia"]),
                active=bool(r["ativa"]),
                origin_expense_id=r.get("despesa_origem_id"),
                **common,
            )
        return GeneralExpense(date=parse_date(r["data"]), **common)

    @staticmethod
    def _expense_to_row(e: Expense) -> dict:
        row = {
            "tipo": _EXPENSE_KIND[e.kind.value],
            "descricao": e.description,
            "valor": str(e.amount),
            "categoria": e.category,
            "status_pagamento": _PAYMENT_STATUS[e.payment_status.value],
            "observacoes": e.notes,
            "data": None,
            "mes_referencia": None,
            "dia_vencimento": None,
            "ativa": None,
            "despesa_origem_id": None,
        }
        if isinstance(e, FixedExpense):
            row.update(
                mes_referencia=_iso(e.reference_month),
                dia_vencimento=int(e.due_day),
                ativa=bool(e.active),
                despesa_origem_id=e.origin_expense_id,
            )
        else:
            row["data"] = _iso(e.date)
        return row


    # ---------- Suppliers ----------
    def add_supplier(self, supplier: Supplier) -> Supplier:
        return self._supplier_from_row(self._insert("fornecedores", [self._supplier_to_row(supplier)])[0])

    def update_supplier(self, supplier: Supplier) -> Supplier:
        return self._supplier_from_row(self._update("fornecedores", supplier.id, self._supplier_to_row(supplier)))

    def delete_supplier(self, supplier_id: EntityId) -> None:
        try:
            self._delete("fornecedores", supplier_id)
        except ConstraintViolationError as exc:
            raise ConstraintViolationError("Supplier is referenced by purchases; deactivate it instead.") from exc

    def get_supplier(self, supplier_id: EntityId) -> Optional[Supplier]:
        row = self._get_one("fornecedores", supplier_id)
        return self._supplier_from_row(row) if row else None

    def list_suppliers(self, active_only: bool = False) -> list[Supplier]:
        query = self._table("fornecedores").select("*")
        if active_only:
            query = query.eq("ativo", "true")
        rows = self._rows(query.order("nome"), "select", "fornecedores")
        return [self._supplier_from_row(r) for r in rows]

    def search_suppliers(self, text: str) -> list[Supplier]:
        query = self._table("fornecedores").select("*").ilike("nome", f"%{text}%").order("nome")
        return [self._supplier_from_row(r) for r in self._rows(query, "select", "fornecedores")]

    def count_active_suppliers(self) -> int:
        query = self._table("fornecedores").select("id", count="exact", head=True).eq("ativo", "true")
        return int(self._run(query, "count", "fornecedores").count or 0)

    # ---------- Purchases ----------
    def _reload_purchase(self, purchase_id: EntityId) -> Purchase:
        # writes do not return the supplier join
        purchase = self.get_purchase(purchase_id)
        if purchase is None:
            raise NotFoundError(f"Purchase {purchase_id} disappeared after writing.")
        return purchase

    def add_purchase(self, purchase: Purchase) -> Purchase:
        row = self._insert("compras", [self._purchase_to_row(purchase)])[0]
        return self._reload_purchase(row["id"])

    def update_purchase(self, purchase: Purchase) -> Purchase:
        row = self._update("compras", purchase.id, self._purchase_to_row(purchase))
        return self._reload_purchase(row["id"])

    def delete_purchase(self, purchase_id: EntityId) -> None:
        self._delete("compras", purchase_id)

    def get_purchase(self, purchase_id: EntityId) -> Optional[Purchase]:
        row = self._get_one("compras", purchase_id, columns=_PURCHASE_SELECT)
        return self._purchase_from_row(row) if row else None

    def fetch_purchases(
        self,
        date_start: Optional[date],
        date_end: Optional[date],
        filters: Optional[Mapping[str, str]] = None,
    ) -> list[Purchase]:
        query = self._table("compras").select(_PURCHASE_SELECT)
        query = _between(query, "data_compra", date_start, date_end)
        query = _where(query, filters, _PURCHASE_FILTERS)
        query = query.order("data_compra", desc=True).order("criado_em", desc=True)
        return [self._purchase_from_row(r) for r in self._rows(query, "select", "compras")]

    def fetch_purchases_due_between(self, start: date, end: date) -> list[Purchase]:
        query = self._table("compras").select(_PURCHASE_SELECT).eq("status_pagamento", "pendente")
        query = _between(query, "data_vencimento", start, end).order("data_vencimento")
        return [self._purchase_from_row(r) for r in self._rows(query, "select", "compras")]

    # ---------- Revenues ----------
    def add_revenue(self, revenue: Revenue) -> Revenue:
        return self._revenue_from_row(self._insert("receitas", [self._revenue_to_row(revenue)])[0])

    def update_revenue(self, revenue: Revenue) -> Revenue:
        return self._revenue_from_row(self._update("receitas", revenue.id, self._revenue_to_row(revenue)))

    def delete_revenue(self, revenue_id: EntityId) -> None:
        self._delete("receitas", revenue_id)

    def get_revenue(self, revenue_id: EntityId) -> Optional[Revenue]:
        row = self._get_one("receitas", revenue_id)
        return self._revenue_from_row(row) if row else None

    def fetch_revenues(
        self,
        date_start: Optional[date],
        date_end: Optional[date],
        filters: Optional[Mapping[str, str]] = None,
    ) -> list[Revenue]:
        query = _between(self._table("receitas").select("*"), "data", date_start, date_end)
        query = _where(query, filters, _REVENUE_FILTERS)
        query = query.order("data", desc=True).order("criado_em", desc=True)
        return [self._revenue_from_row(r) for r in self._rows(query, "select", "receitas")]

    # ---------- Expenses ----------
    def add_expense(self, expense: Expense) -> Expense:
        return self._expense_from_row(self._insert("despesas", [self._expense_to_row(expense)])[0])

    def bulk_insert_expenses(self, expenses: Iterable[Expense]) -> list[Expense]:
        rows = [self._expense_to_row(e) for e in expenses]
        if not rows:
            return []
        created = self._insert("despesas", rows)
        log.info("expenses_bulk_inserted count=%d", len(created))
        return [self._expense_from_row(r) for r in created]

    def update_expense(self, expense: Expense) -> Expense:
        return self._expense_from_row(self._update("despesas", expense.id, self._expense_to_row(expense)))

    def delete_expense(self, expense_id: EntityId) -> None:
        self._delete("despesas", expense_id)

    def get_expense(self, expense_id: EntityId) -> Optional[Expense]:
        row = self._get_one("despesas", expense_id)
        return self._expense_from_row(row) if row else None

    def fetch_expenses(
        self,
        kind: Optional[ExpenseKind],
        date_start: Optional[date] = None,
        date_end: Optional[date] = None,
        filters: Optional[Mapping[str, str]] = None,
    ) -> list[Expense]:
        query = self._table("despesas").select("*")
        if kind is not None:
            kind = ExpenseKind(kind)
            query = query.eq("tipo", _EXPENSE_KIND[kind.value])
        if date_start or date_end:
            if kind is None:
                raise ValidationError("A date range on expenses needs a kind: fixed and general use different date columns.")
            query = _between(query, _EXPENSE_DATE_COLUMN[kind], date_start, date_end)
        query = _where(query, filters, _EXPENSE_FILTERS).order("criado_em", desc=True)
        return [self._expense_from_row(r) for r in self._rows(query, "select", "despesas")]

    def fetch_fixed_expenses_for_month(self, month: date, active_only: bool = False) -> list[FixedExpense]:
        query = (
            self._table("despesas")
            .select("*")
            .eq("tipo", "fixa")
            .eq("mes_referencia", _iso(first_of_month(month)))
        )
        if active_only:
            query = query.eq("ativa", "true")
        rows = self._rows(query.order("descricao"), "select", "despesas")
        return [self._expense_from_row(r) for r in rows]

    def distinct_expense_descriptions(self) -> list[str]:
        query = self._table("despesas").select("descricao").not_.is_("descricao", "null").order("descricao")
        seen: dict[str, None] = {}
        for r in self._rows(query, "select", "despesas"):
            desc = (r.get("descricao") or "").strip()
            if desc:
                seen.setdefault(desc, None)
        return list(seen)
