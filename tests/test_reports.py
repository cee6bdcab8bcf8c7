from __future__ import annotations

from datetime import date
from decimal import Decimal

from gestao_eventos.models.box_office import VendaIngresso
from gestao_eventos.models.financial import Movimentacao
from gestao_eventos.models.registry import Contrato, Projeto
from gestao_eventos.models.tickets import Ticket, VendaTicket
from gestao_eventos.views.reports import (
    FALLBACK_LABEL,
    Regime,
    category_breakdown,
    channel_sales_report,
    contract_totals,
    dashboard_kpis,
    financial_summary,
    group_totals,
    percentage_of,
    ticket_sales_report,
)


def _movement(movement_id: int, tipo: str, valor: str, status: str, pago_em: date | None = None, categoria: str = "Geral") -> Movimentacao:
    return Movimentacao(
        id=movement_id,
        tipo=tipo,
        categoria=categoria,
        descricao=f"{tipo} {movement_id}",
        valor=valor,
        data_vencimento=date(2026, 2, 1),
        data_pagamento=pago_em,
        status=status,
    )


def _contract(contract_id: int, status: str, locacao: str, servicos: str = "0", caucao: str = "0") -> Contrato:
    total = Decimal(locacao) + Decimal(servicos)
    return Contrato(
        id=contract_id,
        numero=f"CT-{contract_id:03d}",
        nome_evento=f"Evento {contract_id}",
        valor_locacao=locacao,
        valor_servicos=servicos,
        valor_caucao=caucao,
        valor_total=total,
        status=status,
    )


def test_percentage_of_zero_total_and_clamp() -> None:
    assert percentage_of(10, 0) == Decimal("0")
    assert percentage_of(25, 200) == Decimal("12.50")
    assert percentage_of(300, 200) == Decimal("100.00")
    assert percentage_of(-5, 200) == Decimal("0.00")


def test_group_totals_orders_by_value_and_labels_missing_keys() -> None:
    rows = [
        {"canal": "Online", "valor": "100"},
        {"canal": None, "valor": "50"},
        {"canal": "Online", "valor": "20"},
        {"canal": "  ", "valor": "30"},
        {"canal": "Balcão", "valor": "120"},
    ]

    groups = group_totals(rows, key=lambda row: row["canal"], value=lambda row: row["valor"])

    assert [(group.label, group.count, group.value) for group in groups] == [
        ("Balcão", 1, Decimal("120.00")),
        ("Online", 2, Decimal("120.00")),
        (FALLBACK_LABEL, 2, Decimal("80.00")),
    ]
    assert groups[0].quantity == 1
    assert sum(group.percentage for group in groups) == Decimal("100.00")


def test_group_totals_of_nothing() -> None:
    assert group_totals([], key=lambda row: row, value=lambda row: row) == []


def test_financial_summary_regimes_and_idempotence() -> None:
    movements = [
        _movement(1, "receita", "1000.00", "pago", date(2026, 2, 2)),
        _movement(2, "receita", "500.00", "pendente"),
        _movement(3, "despesa", "300.00", "pago", date(2026, 2, 3)),
        _movement(4, "despesa", "80.00", "cancelado"),
    ]

    cash = financial_summary(movements, Regime.CASH)
    accrual = financial_summary(movements, Regime.ACCRUAL)

    assert (cash.receitas, cash.despesas, cash.resultado) == (Decimal("1000.00"), Decimal("300.00"), Decimal("700.00"))
    assert (accrual.receitas, accrual.despesas, accrual.resultado) == (
        Decimal("1500.00"),
        Decimal("300.00"),
        Decimal("1200.00"),
    )
    assert financial_summary(movements, Regime.ACCRUAL) == accrual
    assert financial_summary(movements, "caixa") == cash


def test_negative_margin_is_not_clamped() -> None:
    movements = [
        _movement(1, "receita", "100.00", "pendente"),
        _movement(2, "despesa", "150.00", "pendente"),
    ]

    summary = financial_summary(movements)

    assert summary.resultado == Decimal("-50.00")
    assert summary.margem == Decimal("-50.00")
    assert financial_summary([]).margem == Decimal("0")


def test_category_breakdown() -> None:
    movements = [
        _movement(1, "despesa", "300.00", "pago", date(2026, 2, 3), categoria="Limpeza"),
        _movement(2, "despesa", "100.00", "pendente", categoria="Segurança"),
        _movement(3, "despesa", "100.00", "pago", date(2026, 2, 4), categoria="Limpeza"),
        _movement(4, "receita", "900.00", "pago", date(2026, 2, 4), categoria="Locação"),
    ]

    accrual = category_breakdown(movements, "despesa")
    cash = category_breakdown(movements, "despesa", Regime.CASH)

    assert [(group.label, group.value, group.percentage) for group in accrual] == [
        ("Limpeza", Decimal("400.00"), Decimal("80.00")),
        ("Segurança", Decimal("100.00"), Decimal("20.00")),
    ]
    assert [group.label for group in cash] == ["Limpeza"]


def test_ticket_sales_report_counts_confirmed_revenue() -> None:
    contrato = {"id": 1, "nome_evento": "Festival de Verão"}
    tickets = [
        Ticket(id=1, contrato_id=1, tipo_ingresso="Pista", preco="50", quantidade_disponivel=100, quantidade_vendida=12, contrato=contrato),
        Ticket(id=2, contrato_id=1, tipo_ingresso="Camarote", preco="200", quantidade_disponivel=20, quantidade_vendida=2, contrato=contrato),
        Ticket(id=3, contrato_id=2, tipo_ingresso="Inteira", preco="30", quantidade_disponivel=50, quantidade_vendida=0),
    ]
    vendas = [
        VendaTicket(id=1, ticket_id=1, quantidade=10, valor_unitario="50", valor_total="500", forma_pagamento="pix", data_venda=date(2026, 1, 5)),
        VendaTicket(id=2, ticket_id=1, quantidade=2, valor_unitario="50", valor_total="100", forma_pagamento="dinheiro", status="pendente", data_venda=date(2026, 1, 6)),
        VendaTicket(id=3, ticket_id=2, quantidade=2, valor_unitario="200", valor_total="400", forma_pagamento="pix", data_venda=date(2026, 1, 7)),
        VendaTicket(id=4, ticket_id=1, quantidade=4, valor_unitario="50", valor_total="200", forma_pagamento="pix", status="cancelado", data_venda=date(2026, 1, 7)),
    ]

    report = ticket_sales_report(tickets, vendas, contrato_id=1)

    assert report.total_vendas == 4
    assert report.ingressos_vendidos == 12
    assert report.faturamento == Decimal("900.00")
    assert report.capacidade == 120
    assert report.disponiveis == 106
    assert report.taxa_ocupacao == Decimal("11.67")
    assert [(group.label, group.quantity) for group in report.por_tipo] == [("Pista", 10), ("Camarote", 2)]
    assert [group.label for group in report.por_evento] == ["Festival de Verão"]
    assert {group.label: group.count for group in report.por_status} == {"confirmado": 2, "pendente": 1, "cancelado": 1}

    first_day = ticket_sales_report(tickets, vendas, date_from=date(2026, 1, 5), date_to=date(2026, 1, 5))
    assert first_day.faturamento == Decimal("500.00")
    assert first_day.capacidade == 170


def test_channel_sales_report() -> None:
    vendas = [
        VendaIngresso(id=1, projeto_id=1, canal_venda_id=1, quantidade=10, valor_total="1000", valor_liquido="900", canal={"id": 1, "nome": "Sympla"}),
        VendaIngresso(id=2, projeto_id=1, canal_venda_id=2, quantidade=5, valor_total="250", valor_liquido="250", canal={"id": 2, "nome": "Balcão"}),
        VendaIngresso(id=3, projeto_id=1, canal_venda_id=2, quantidade=3, valor_total="150", valor_liquido="150", status="cancelado", canal={"id": 2, "nome": "Balcão"}),
        VendaIngresso(id=4, projeto_id=2, canal_venda_id=1, quantidade=1, valor_total="100", valor_liquido="90", canal={"id": 1, "nome": "Sympla"}),
    ]

    report = channel_sales_report(vendas, projeto_id=1)

    assert report.total_vendas == 2
    assert report.quantidade == 15
    assert report.valor_bruto == Decimal("1250.00")
    assert report.valor_liquido == Decimal("1150.00")
    assert report.taxas == Decimal("100.00")
    assert [(group.label, group.percentage) for group in report.por_canal] == [
        ("Sympla", Decimal("80.00")),
        ("Balcão", Decimal("20.00")),
    ]


def test_contract_totals() -> None:
    totals = contract_totals(
        [
            _contract(1, "ativo", "10000", "2500", "1000"),
            _contract(2, "rascunho", "5000"),
            _contract(3, "ativo", "2500"),
        ]
    )

    assert totals.count == 3
    assert totals.valor_total == Decimal("20000.00")
    assert totals.valor_caucao == Decimal("1000.00")
    assert [(group.label, group.count) for group in totals.por_status] == [("ativo", 2), ("rascunho", 1)]


def test_dashboard_kpis() -> None:
    projetos = [
        Projeto(id=1, nome="A", status="planejamento"),
        Projeto(id=2, nome="B", status="em_andamento"),
        Projeto(id=3, nome="C", status="concluido"),
        Projeto(id=4, nome="D", status="cancelado"),
    ]
    contratos = [_contract(1, "ativo", "100"), _contract(2, "concluido", "100")]
    movimentacoes = [
        _movement(1, "receita", "500.00", "pendente"),
        _movement(2, "despesa", "200.00", "pago", date(2026, 2, 2)),
    ]
    tickets = [Ticket(id=1, contrato_id=1, tipo_ingresso="Pista", preco="50", quantidade_disponivel=40, quantidade_vendida=10)]

    kpis = dashboard_kpis(projetos, contratos, movimentacoes, tickets)

    assert kpis.projetos_ativos == 2
    assert kpis.contratos_ativos == 1
    assert kpis.resultado == Decimal("300.00")
    assert kpis.taxa_ocupacao == Decimal("25.00")
