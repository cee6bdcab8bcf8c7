from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from gestao_eventos.core.errors import AuthError, ConflictError, NotFoundError
from gestao_eventos.gateway.base import Embed, Filter, Op, Order, Query, eq
from tests.seed_helpers import seed_contract, seed_row, seed_ticket


def test_filters_order_and_limit(gateway) -> None:
    for nome, cidade in (("Arena Norte", "Recife"), ("Arena Sul", "Porto Alegre"), ("Teatro Central", "Recife")):
        seed_row(gateway, "empresas", nome=nome, cidade=cidade)

    rows = gateway.select(
        Query(
            "empresas",
            columns=("id", "nome"),
            filters=(Filter("cidade", Op.IN, ["Recife"]), Filter("nome", Op.ILIKE, "%arena%")),
        )
    )
    ordered = gateway.select(Query("empresas", orders=(Order("nome", descending=True),), limit=2))

    assert [row["nome"] for row in rows] == ["Arena Norte"]
    assert set(rows[0]) == {"id", "nome"}
    assert [row["nome"] for row in ordered] == ["Teatro Central", "Arena Sul"]


def test_values_are_coerced_to_column_types(gateway) -> None:
    contrato = seed_contract(gateway)
    ticket = seed_ticket(gateway, contrato["id"])

    row = seed_row(
        gateway,
        "bilheteria",
        ticket_id=ticket["id"],
        quantidade=2,
        valor_unitario="50.00",
        valor_total="100.00",
        forma_pagamento="pix",
        data_venda="2026-01-05T10:00:00Z",
    )

    assert row["data_venda"] == date(2026, 1, 5)
    assert row["valor_total"] == Decimal("100.00")
    assert gateway.select(Query("bilheteria").where("data_venda", Op.GTE, "2026-01-05"))[0]["id"] == row["id"]


def test_nested_and_many_embeds(gateway) -> None:
    contrato = seed_contract(gateway)
    seed_ticket(gateway, contrato["id"], tipo_ingresso="Pista")
    seed_ticket(gateway, contrato["id"], tipo_ingresso="Camarote")
    query = Query(
        "contratos",
        embeds=(
            Embed("entidade", "entidades", "entidade_id", columns=("id", "nome")),
            Embed("tickets", "tickets", "id", remote_key="contrato_id", many=True, columns=("id", "tipo_ingresso")),
        ),
    )

    row = gateway.select_one(query.eq("id", contrato["id"]))

    assert row["entidade"] == {"id": contrato["entidade_id"], "nome": "Produtora Aurora"}
    assert sorted(ticket["tipo_ingresso"] for ticket in row["tickets"]) == ["Camarote", "Pista"]


def test_missing_relation_embeds_none(gateway) -> None:
    seed_row(gateway, "projetos", nome="Sem cliente", data_inicio=date(2026, 1, 1), data_fim=date(2026, 1, 2))

    rows = gateway.select(Query("projetos", embeds=(Embed("entidade", "entidades", "entidade_id"),)))

    assert rows[0]["entidade"] is None


def test_select_one_requires_exactly_one_row(gateway) -> None:
    with pytest.raises(NotFoundError) as exc:
        gateway.select_one(Query("grupos").eq("id", 1))

    assert exc.value.code == "PGRST116"
    assert exc.value.status_code == 406


def test_unknown_table(gateway) -> None:
    with pytest.raises(NotFoundError):
        gateway.select(Query("inexistente"))


def test_constraint_violations_are_conflicts(gateway) -> None:
    contrato = seed_contract(gateway)
    ticket = seed_ticket(gateway, contrato["id"], capacidade=10)

    with pytest.raises(ConflictError):
        gateway.update("tickets", {"quantidade_vendida": 11}, [eq("id", ticket["id"])])
    with pytest.raises(ConflictError):
        seed_contract(gateway)

    assert gateway.count("contratos", []) == 1


def test_update_returns_the_changed_rows(gateway) -> None:
    seed_row(gateway, "grupos", nome="Admin")
    seed_row(gateway, "grupos", nome="Vendas")

    rows = gateway.update("grupos", {"descricao": "Equipe"}, [eq("nome", "Vendas")])

    assert [(row["nome"], row["descricao"]) for row in rows] == [("Vendas", "Equipe")]
    assert gateway.update("grupos", {"descricao": "x"}, [eq("nome", "Nenhum")]) == []


def test_transaction_rolls_back_every_write(gateway) -> None:
    with pytest.raises(RuntimeError):
        with gateway.transaction():
            seed_row(gateway, "grupos", nome="Admin")
            with gateway.transaction():
                seed_row(gateway, "grupos", nome="Vendas")
            raise RuntimeError("abort")

    assert gateway.count("grupos", []) == 0

    with gateway.transaction():
        seed_row(gateway, "grupos", nome="Admin")
    assert gateway.count("grupos", [eq("nome", "Admin")]) == 1


def test_delete_needs_filters(gateway) -> None:
    seed_row(gateway, "grupos", nome="Admin")

    with pytest.raises(ValueError):
        gateway.delete("grupos", [])
    gateway.delete("grupos", [eq("nome", "Admin")])

    assert gateway.count("grupos", []) == 0


def test_auth_round_trip(gateway) -> None:
    account = gateway.auth.admin_create_user(" Ana@Example.com ", "segredo1")

    with pytest.raises(AuthError):
        gateway.auth.change_password("outra")
    with pytest.raises(AuthError):
        gateway.auth.sign_in("ana@example.com", "errada")

    session = gateway.auth.sign_in("ANA@example.com", "segredo1")
    gateway.auth.change_password("NovaSenha1")
    gateway.auth.sign_out()

    assert account["email"] == "ana@example.com"
    assert session.user_id == account["id"]
    assert session.access_token
    assert gateway.auth.sign_in("ana@example.com", "NovaSenha1").user_id == account["id"]


def test_admin_update_unknown_user(gateway) -> None:
    with pytest.raises(NotFoundError):
        gateway.auth.admin_update_user("missing", password="segredo1")
