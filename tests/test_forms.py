from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from gestao_eventos.core.errors import ConflictError, InsufficientInventoryError
from gestao_eventos.forms import (
    CanalForm,
    ContratoForm,
    EmpresaForm,
    EntidadeForm,
    FechamentoForm,
    FormDialog,
    GroupForm,
    MovementForm,
    PasswordChangeForm,
    PasswordResetForm,
    ProjetoForm,
    TicketForm,
    VendaForm,
)
from gestao_eventos.forms.financial import DespesaForm, ReceitaForm
from gestao_eventos.forms.registry import END_BEFORE_START, SPACE_OUTSIDE_COMPANY
from gestao_eventos.forms.users import PASSWORD_MISMATCH
from gestao_eventos.models.financial import CategoriaFinanceira
from gestao_eventos.models.registry import Espaco, Projeto
from gestao_eventos.views.notifications import NotificationCenter, NotificationKind


def _project_input(**overrides: Any) -> dict[str, Any]:
    values = {
        "nome": "Festival de Verão",
        "descricao": "",
        "entidade_id": "none",
        "espaco_id": "",
        "data_inicio": "2026-01-10",
        "data_fim": "2026-01-12",
        "status": "planejamento",
        "orcamento": "",
    }
    values.update(overrides)
    return values


def test_required_fields_use_field_messages() -> None:
    result = ProjetoForm.validate_input(_project_input(nome="   ", data_inicio=""))

    assert not result.is_valid
    assert result.field_errors["nome"] == "Nome é obrigatório"
    assert result.field_errors["data_inicio"] == "Data de início é obrigatória"
    assert result.first_invalid_field in {"nome", "data_inicio"}


def test_blanks_and_none_option_become_null() -> None:
    result = ProjetoForm.validate_input(_project_input(orcamento="1.234,56", contrato_id="7"))

    assert result.is_valid
    assert result.values["descricao"] is None
    assert result.values["entidade_id"] is None
    assert result.values["espaco_id"] is None
    assert result.values["contrato_id"] == 7
    assert result.values["orcamento"] == Decimal("1234.56")
    assert result.values["data_inicio"] == date(2026, 1, 10)


@pytest.mark.parametrize(
    ("overrides", "field", "message"),
    [
        ({"orcamento": "abc"}, "orcamento", "Valor numérico inválido"),
        ({"orcamento": "-10"}, "orcamento", "Orçamento deve ser maior ou igual a zero"),
        ({"status": "arquivado"}, "status", "Opção inválida"),
        ({"data_inicio": "2026-13-01"}, "data_inicio", "Data inválida"),
        ({"data_fim": "2026-01-09"}, "data_fim", END_BEFORE_START),
    ],
)
def test_project_field_errors(overrides: dict[str, str], field: str, message: str) -> None:
    result = ProjetoForm.validate_input(_project_input(**overrides))

    assert result.field_errors == {field: message}
    assert result.values["nome"] == "Festival de Verão"


def test_initial_values_for_new_and_existing_records() -> None:
    fresh = ProjetoForm.initial_values()
    record = Projeto(
        id=3,
        nome="Feira",
        status="em_andamento",
        entidade_id=None,
        espaco_id=4,
        data_inicio=date(2026, 5, 1),
        data_fim=date(2026, 5, 3),
        orcamento="1500.00",
    )
    editing = ProjetoForm.initial_values(record)

    assert fresh["nome"] == ""
    assert fresh["entidade_id"] == ""
    assert fresh["status"] == "planejamento"
    assert editing["entidade_id"] == "none"
    assert editing["espaco_id"] == "4"
    assert editing["orcamento"] == "1500.00"
    assert editing["data_inicio"] == "2026-05-01"


def test_entity_needs_a_role() -> None:
    missing = EntidadeForm.validate_input({"nome": "Produtora", "email": "CONTATO@Produtora.com"})
    valid = EntidadeForm.validate_input({"nome": "Produtora", "email": "CONTATO@Produtora.com", "e_fornecedor": True})

    assert missing.field_errors == {"e_cliente": "Selecione pelo menos um tipo"}
    assert valid.values["email"] == "contato@produtora.com"
    assert valid.values["e_fornecedor"] is True


def test_company_state_is_two_letters() -> None:
    assert EmpresaForm.validate_input({"nome": "Arena", "estado": "sp"}).values["estado"] == "SP"
    assert EmpresaForm.validate_input({"nome": "Arena", "estado": "S"}).field_errors == {
        "estado": "Estado deve ter 2 caracteres"
    }
    assert EmpresaForm.validate_input({"nome": "Arena", "email": "sem-arroba"}).field_errors == {"email": "Email inválido"}


def test_contract_total_is_rental_plus_services() -> None:
    result = ContratoForm.validate_input(
        {
            "numero": "CT-010",
            "nome_evento": "Congresso",
            "inicio_realizacao": "2026-04-01",
            "fim_realizacao": "2026-04-02",
            "valor_locacao": "10.000,00",
            "valor_servicos": "2.500,50",
            "valor_total": "1",
            "projeto_id": "none",
        }
    )

    assert result.is_valid
    assert result.values["valor_total"] == Decimal("12500.50")
    assert result.values["status"] == "rascunho"
    assert "valor_total" not in ContratoForm.initial_values()


def _espacos() -> list[Espaco]:
    return [
        Espaco(id=1, nome="Salão Azul", empresa_id=10),
        Espaco(id=2, nome="Arena", empresa_id=20),
    ]


def test_project_space_must_belong_to_the_selected_company() -> None:
    context = {"espacos": _espacos()}

    inside = ProjetoForm.validate_input(_project_input(unidade_id="10", espaco_id="1"), context)
    outside = ProjetoForm.validate_input(_project_input(unidade_id="10", espaco_id="2"), context)
    no_company = ProjetoForm.validate_input(_project_input(unidade_id="none", espaco_id="2"), context)

    assert inside.values["unidade_id"] == 10
    assert inside.values["espaco_id"] == 1
    assert outside.field_errors == {"espaco_id": SPACE_OUTSIDE_COMPANY}
    assert no_company.is_valid
    assert no_company.values["unidade_id"] is None


def test_contract_keeps_its_company_link() -> None:
    values = {
        "numero": "CT-011",
        "nome_evento": "Congresso",
        "inicio_realizacao": "2026-04-01",
        "fim_realizacao": "2026-04-02",
        "valor_locacao": "1000",
        "unidade_id": "20",
        "espaco_id": "1",
    }

    assert ContratoForm.validate_input(values, {"espacos": _espacos()}).field_errors == {
        "espaco_id": SPACE_OUTSIDE_COMPANY
    }
    assert ContratoForm.validate_input({**values, "espaco_id": "2"}).values["unidade_id"] == 20
    assert ContratoForm.initial_values(None)["unidade_id"] == ""


def test_ticket_capacity_covers_what_was_sold() -> None:
    values = {"contrato_id": "3", "tipo_ingresso": "Pista", "preco": "50,00", "quantidade_disponivel": "40"}

    assert TicketForm.validate_input(values, {"quantidade_vendida": 50}).field_errors == {
        "quantidade_disponivel": "Quantidade não pode ser menor que os 50 ingressos já vendidos"
    }
    assert TicketForm.validate_input(values, {"quantidade_vendida": 40}).values["quantidade_disponivel"] == 40
    assert TicketForm.validate_input(values).is_valid


def _categorias() -> list[CategoriaFinanceira]:
    return [
        CategoriaFinanceira(id=1, nome="Bilheteria", tipo="receita"),
        CategoriaFinanceira(id=2, nome="Limpeza", tipo="despesa"),
        CategoriaFinanceira(id=3, nome="Diversos", tipo="ambos"),
        CategoriaFinanceira(id=4, nome="Antiga", tipo="despesa", ativo=False),
    ]


def _movement_input(**overrides: Any) -> dict[str, Any]:
    values = {
        "tipo": "despesa",
        "descricao": "Limpeza pós-evento",
        "categoria": "Limpeza",
        "projeto_id": "none",
        "valor": "300,00",
        "data_vencimento": "2026-02-01",
        "data_pagamento": "",
        "status": "pendente",
    }
    values.update(overrides)
    return values


def test_movement_form_dispatches_on_kind() -> None:
    context = {"categorias": _categorias()}

    despesa = MovementForm.validate_input(_movement_input(), context)
    receita = MovementForm.validate_input(_movement_input(tipo="receita", categoria="Diversos"), context)

    assert despesa.values["tipo"] == "despesa"
    assert despesa.values["valor"] == Decimal("300.00")
    assert despesa.values["projeto_id"] is None
    assert receita.values["tipo"] == "receita"
    assert MovementForm.variant("receita") is ReceitaForm
    assert MovementForm.variant("despesa") is DespesaForm


@pytest.mark.parametrize(
    ("overrides", "field", "message"),
    [
        ({"tipo": "receita"}, "categoria", "Categoria não disponível para este tipo de lançamento"),
        ({"categoria": "Antiga"}, "categoria", "Categoria não disponível para este tipo de lançamento"),
        ({"valor": "0"}, "valor", "Valor deve ser maior que zero"),
        ({"status": "pago"}, "status", "Data de pagamento é obrigatória para lançamentos pagos"),
        ({"tipo": "transferencia"}, "tipo", "Opção inválida"),
    ],
)
def test_movement_form_errors(overrides: dict[str, str], field: str, message: str) -> None:
    result = MovementForm.validate_input(_movement_input(**overrides), {"categorias": _categorias()})

    assert result.field_errors == {field: message}


def test_movement_form_requires_kind() -> None:
    values = _movement_input()
    del values["tipo"]

    assert MovementForm.validate_input(values).field_errors == {"tipo": "Tipo é obrigatório"}


def test_paid_movement_with_date() -> None:
    result = MovementForm.validate_input(_movement_input(status="pago", data_pagamento="2026-02-03"))

    assert result.values["status"] == "pago"
    assert result.values["data_pagamento"] == date(2026, 2, 3)


def test_movement_initial_values_follow_kind() -> None:
    assert MovementForm.initial_values(tipo="despesa")["tipo"] == "despesa"
    assert MovementForm.initial_values()["tipo"] == "receita"


def test_closing_payload_includes_result() -> None:
    result = FechamentoForm.validate_input(
        {"projeto_id": "1", "data_fechamento": "2026-02-10", "total_receitas": "1500", "total_despesas": "300"}
    )

    assert result.values["resultado"] == Decimal("1200")
    assert result.values["status"] == "pendente"


def test_sale_total_defaults_to_quantity_times_price() -> None:
    result = VendaForm.validate_input(
        {
            "ticket_id": "1",
            "quantidade": "3",
            "valor_unitario": "50,00",
            "forma_pagamento": "pix",
            "email_comprador": " Comprador@Example.com ",
        }
    )

    assert result.values["valor_total"] == Decimal("150.00")
    assert result.values["status"] == "confirmado"
    assert result.values["data_venda"] == date.today()
    assert result.values["email_comprador"] == "comprador@example.com"


def test_sale_rejects_fractional_quantity_and_unknown_payment() -> None:
    result = VendaForm.validate_input(
        {"ticket_id": "1", "quantidade": "1,5", "valor_unitario": "50", "forma_pagamento": "cheque"}
    )

    assert result.field_errors == {"quantidade": "Valor numérico inválido", "forma_pagamento": "Opção inválida"}


def test_channel_fee_range() -> None:
    result = CanalForm.validate_input({"nome": "Sympla", "tipo": "online", "taxa_servico": "150"})

    assert result.field_errors == {"taxa_servico": "Taxa deve ser menor ou igual a 100"}


def test_password_confirmation() -> None:
    mismatch = PasswordResetForm.validate_input({"new_password": "segredo1", "confirm_password": "segredo2"})
    ok = PasswordResetForm.validate_input({"new_password": "segredo1", "confirm_password": "segredo1"})

    assert mismatch.field_errors == {"confirm_password": PASSWORD_MISMATCH}
    assert ok.values == {"new_password": "segredo1"}


def test_first_login_password_rules() -> None:
    short = PasswordChangeForm.validate_input({"new_password": "Ab1", "confirm_password": "Ab1"})
    weak = PasswordChangeForm.validate_input({"new_password": "semnumeros", "confirm_password": "semnumeros"})
    strong = PasswordChangeForm.validate_input({"new_password": "NovaSenha1", "confirm_password": "NovaSenha1"})

    assert short.field_errors["new_password"] == "A senha deve ter pelo menos 8 caracteres"
    assert "maiúscula" in weak.field_errors["new_password"]
    assert strong.is_valid


def test_group_form_lengths() -> None:
    result = GroupForm.validate_input({"nome": "A", "descricao": "abc"})

    assert result.field_errors == {
        "nome": "Nome deve ter pelo menos 2 caracteres",
        "descricao": "Descrição deve ter pelo menos 5 caracteres",
    }


class _Recorder:
    def __init__(self, fail_with: Exception | None = None) -> None:
        self.fail_with = fail_with
        self.created: list[dict[str, Any]] = []
        self.updated: list[tuple[Any, dict[str, Any]]] = []

    def create(self, values: dict[str, Any]) -> dict[str, Any]:
        if self.fail_with is not None:
            raise self.fail_with
        self.created.append(values)
        return {"id": 99, **values}

    def update(self, record_id: Any, values: dict[str, Any]) -> dict[str, Any]:
        self.updated.append((record_id, values))
        return {"id": record_id, **values}


def test_dialog_validation_failure_keeps_it_open() -> None:
    recorder = _Recorder()
    dialog = FormDialog(GroupForm, NotificationCenter(), recorder.create, recorder.update)
    dialog.open()
    dialog.set_value("nome", "")

    assert dialog.submit() is None
    assert dialog.is_open
    assert dialog.field_errors == {"nome": "Nome é obrigatório", "descricao": "Descrição é obrigatória"}
    assert recorder.created == []

    dialog.set_value("nome", "Financeiro")
    assert "nome" not in dialog.field_errors


def test_dialog_create_success_closes_and_notifies() -> None:
    recorder = _Recorder()
    saved: list[Any] = []
    notifications = NotificationCenter()
    dialog = FormDialog(GroupForm, notifications, recorder.create, recorder.update, on_success=saved.append)
    dialog.open()
    dialog.set_value("nome", " Financeiro ")
    dialog.set_value("descricao", "Equipe financeira")

    result = dialog.submit()

    assert result == {"id": 99, "nome": "Financeiro", "descricao": "Equipe financeira", "ativo": True}
    assert saved == [result]
    assert not dialog.is_open
    assert notifications.latest.kind is NotificationKind.SUCCESS
    assert notifications.latest.message == "Registro criado com sucesso"


def test_dialog_edit_routes_to_update() -> None:
    recorder = _Recorder()
    notifications = NotificationCenter()
    dialog = FormDialog(GroupForm, notifications, recorder.create, recorder.update)

    values = dialog.open({"id": 5, "nome": "Vendas", "descricao": "Equipe de vendas", "ativo": True})
    dialog.set_value("descricao", "Equipe comercial")
    dialog.submit()

    assert values["nome"] == "Vendas"
    assert recorder.updated == [(5, {"nome": "Vendas", "descricao": "Equipe comercial", "ativo": True})]
    assert notifications.latest.message == "Registro atualizado com sucesso"


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (ConflictError(code="23505", message="duplicate key", status_code=409), "Já existe um registro com estes dados."),
        (InsufficientInventoryError(4), "Apenas 4 ingressos disponíveis"),
    ],
)
def test_dialog_store_failure_keeps_values(error: Exception, message: str) -> None:
    notifications = NotificationCenter()
    dialog = FormDialog(GroupForm, notifications, _Recorder(fail_with=error).create)
    dialog.open()
    dialog.set_value("nome", "Financeiro")
    dialog.set_value("descricao", "Equipe financeira")

    assert dialog.submit() is None
    assert dialog.is_open
    assert dialog.values["nome"] == "Financeiro"
    assert notifications.latest.kind is NotificationKind.ERROR
    assert notifications.latest.message == message
    assert not dialog.submitting
