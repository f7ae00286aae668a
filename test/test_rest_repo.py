from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import httpx
import pytest
from postgrest.exceptions import APIError

from bizfin.domain.errors import ConstraintViolationError, DataAccessError, NotFoundError, ValidationError
from bizfin.domain.models import ExpenseKind, FixedExpense, GeneralExpense, PaymentStatus
from bizfin.repositories.rest_repo import RestRepository


class FakeQuery:
    """Records the builder chain; `execute()` hands back the next canned outcome."""

    def __init__(self, table, outcomes):
        self.table = table
        self.calls = []
        self._outcomes = outcomes

    def __getattr__(self, name):
        def step(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return step

    @property
    def not_(self):
        self.calls.append(("not_", (), {}))
        return self

    def execute(self):
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeClient:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.queries = []

    def table(self, name):
        query = FakeQuery(name, self.outcomes)
        self.queries.append(query)
        return query


def _result(data=None, count=None):
    return SimpleNamespace(data=data if data is not None else [], count=count)


def _api_error(code, message):
    return APIError({"code": code, "message": message, "details": None, "hint": None})


def _repo(*outcomes, user_id=None) -> RestRepository:
    return RestRepository("https://store.example.com/", "secret", user_id=user_id, client=FakeClient(*outcomes))


def test_general_expense_query_uses_hosted_columns():
    repo = _repo(_result())

    repo.fetch_expenses(
        ExpenseKind.GENERAL,
        date(2024, 6, 1),
        date(2024, 6, 30),
        {"category": "Utilities", "payment_status": "pending"},
    )

    (query,) = repo.client.queries
    assert query.table == "despesas"
    assert query.calls == [
        ("select", ("*",), {}),
        ("eq", ("tipo", "geral"), {}),
        ("gte", ("data", "2024-06-01"), {}),
        ("lte", ("data", "2024-06-30"), {}),
        ("eq", ("categoria", "Utilities"), {}),
        ("eq", ("status_pagamento", "pendente"), {}),
        ("order", ("criado_em",), {"desc": True}),
    ]


def test_expense_date_range_without_kind_is_rejected():
    repo = _repo()
    with pytest.raises(ValidationError):
        repo.fetch_expenses(None, date(2024, 6, 1), date(2024, 6, 30))


def test_unknown_filter_is_rejected_before_any_request():
    repo = _repo()
    with pytest.raises(ValidationError, match="supplier_id"):
        repo.fetch_revenues(None, None, {"supplier_id": "s1"})


def test_expense_rows_are_mapped_per_kind():
    rows = [
        {
            "id": "a1", "tipo": "fixa", "descricao": "Aluguel", "valor": "1500.00", "categoria": "Rent",
            "status_pagamento": "pago", "mes_referencia": "2024-06-01", "dia_vencimento": 5, "ativa": True,
            "despesa_origem_id": "a0", "data": None, "criado_em": "2024-06-01T10:00:00+00:00",
        },
        {
            "id": "b1", "tipo": "geral", "descricao": "Taxi", "valor": 12.5, "categoria": "Transport",
            "status_pagamento": "pendente", "data": "2024-06-09", "mes_referencia": None,
            "criado_em": "2024-06-09T10:00:00+00:00",
        },
    ]
    repo = _repo(_result(rows))

    fixed, general = repo.fetch_expenses(None)

    assert isinstance(fixed, FixedExpense)
    assert fixed.reference_month == date(2024, 6, 1)
    assert fixed.origin_expense_id == "a0"
    assert fixed.payment_status is PaymentStatus.PAID
    assert isinstance(general, GeneralExpense)
    assert general.amount == Decimal("12.5")


def test_purchase_with_missing_supplier_has_no_name():
    row = {
        "id": "p1", "fornecedor_id": "s1", "data_compra": "2024-06-02", "valor_total": "80",
        "forma_pagamento": "Cartão", "status_pagamento": "pendente", "fornecedores": None,
    }
    repo = _repo(_result([row]))

    (purchase,) = repo.fetch_purchases(date(2024, 6, 1), date(2024, 6, 30))

    assert purchase.supplier_name is None
    assert purchase.payment_method.value == "Card"
    assert repo.client.queries[0].calls[0] == ("select", ("*,fornecedores(nome)",), {})


def test_transport_failure_becomes_data_access_error():
    repo = _repo(httpx.ConnectError("unreachable"))
    with pytest.raises(DataAccessError, match="unreachable"):
        repo.fetch_revenues(None, None)


def test_server_error_becomes_data_access_error():
    repo = _repo(_api_error("XX000", "db down"))
    with pytest.raises(DataAccessError, match="db down"):
        repo.list_suppliers()


def test_foreign_key_violation_on_supplier_delete():
    repo = _repo(_api_error("23503", "violates foreign key"))
    with pytest.raises(ConstraintViolationError, match="deactivate"):
        repo.delete_supplier("s1")
    assert repo.client.queries[0].calls == [("delete", (), {}), ("eq", ("id", "s1"), {})]


def test_delete_of_missing_row_raises_not_found():
    repo = _repo(_result([]))
    with pytest.raises(NotFoundError):
        repo.delete_revenue("r404")


def test_active_supplier_count_uses_exact_head_count():
    repo = _repo(_result(count=3))

    assert repo.count_active_suppliers() == 3
    assert repo.client.queries[0].calls == [
        ("select", ("id",), {"count": "exact", "head": True}),
        ("eq", ("ativo", "true"), {}),
    ]


def test_supplier_search_is_case_insensitive_substring():
    repo = _repo(_result([{"id": "s1", "nome": "Paper Co", "ativo": True}]))

    (supplier,) = repo.search_suppliers("paper")

    assert supplier.name == "Paper Co"
    assert ("ilike", ("nome", "%paper%"), {}) in repo.client.queries[0].calls


def test_distinct_descriptions_skip_nulls_and_duplicates():
    rows = [{"descricao": "Rent"}, {"descricao": " Rent "}, {"descricao": ""}, {"descricao": "Power"}]
    repo = _repo(_result(rows))

    assert repo.distinct_expense_descriptions() == ["Rent", "Power"]
    calls = repo.client.queries[0].calls
    assert ("not_", (), {}) in calls
    assert ("is_", ("descricao", "null"), {}) in calls


def test_bulk_insert_is_a_single_request_tagged_with_user():
    created = [
        {
            "id": i, "tipo": "fixa", "descricao": d, "valor": "10", "categoria": "Rent",
            "status_pagamento": "pendente", "mes_referencia": "2024-07-01", "dia_vencimento": 5,
            "ativa": True, "despesa_origem_id": 1,
        }
        for i, d in ((10, "Rent"), (11, "Power"))
    ]
    repo = _repo(_result(created), user_id="u-1")
    clones = [
        FixedExpense(d, Decimal("10"), "Rent", due_day=5, reference_month=date(2024, 7, 1), origin_expense_id=1)
        for d in ("Rent", "Power")
    ]

    out = repo.bulk_insert_expenses(clones)

    (query,) = repo.client.queries
    ((name, (body,), _),) = query.calls
    assert name == "insert"
    assert [row["descricao"] for row in body] == ["Rent", "Power"]
    assert all(row["user_id"] == "u-1" and row["tipo"] == "fixa" for row in body)
    assert [e.id for e in out] == [10, 11]
