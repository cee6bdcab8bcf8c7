"""In-memory aggregations over cached store collections.

Every report is recomputed from scratch on each call; nothing here talks to
the gateway.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable, Sequence

from ..core.money import ZERO, quantize, to_decimal
from ..models.box_office import VendaIngresso
from ..models.financial import Movimentacao, StatusMovimentacao, TipoMovimentacao
from ..models.registry import Contrato, Projeto, StatusContrato, StatusProjeto
from ..models.tickets import StatusVenda, Ticket, VendaTicket

FALLBACK_LABEL = "Não identificado"
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class GroupTotal:
    label: str
    count: int
    quantity: int
    value: Decimal
    percentage: Decimal


def percentage_of(value: Any, total: Any) -> Decimal:
    """Share of ``value`` in ``total`` as a percentage in [0, 100]; 0 for a zero total."""
    total_amount = to_decimal(total)
    if total_amount == 0:
        return ZERO
    share = to_decimal(value) / total_amount * HUNDRED
    return quantize(min(max(share, Decimal(0)), HUNDRED))


def _label(raw: Any, fallback: str) -> str:
    if raw is None:
        return fallback
    text = str(getattr(raw, "value", raw)).strip()
    return text or fallback


def group_totals(
    records: Iterable[Any],
    key: Callable[[Any], Any],
    value: Callable[[Any], Any],
    quantity: Callable[[Any], Any] | None = None,
    fallback: str = FALLBACK_LABEL,
) -> list[GroupTotal]:
    """Group ``records`` by ``key`` and sum ``value`` (and ``quantity``) per group.

    Groups come back ordered by summed value, largest first, ties by label.
    """
    counts: dict[str, int] = {}
    quantities: dict[str, int] = {}
    values: dict[str, Decimal] = {}
    for record in records:
        label = _label(key(record), fallback)
        counts[label] = counts.get(label, 0) + 1
        units = int(quantity(record) or 0) if quantity is not None else 1
        quantities[label] = quantities.get(label, 0) + units
        values[label] = values.get(label, ZERO) + to_decimal(value(record))
    grand_total = sum(values.values(), ZERO)
    groups = [
        GroupTotal(
            label=label,
            count=counts[label],
            quantity=quantities[label],
            value=quantize(values[label]),
            percentage=percentage_of(values[label], grand_total),
        )
        for label in values
    ]
    return sorted(groups, key=lambda group: (-group.value, group.label))


# -- financial ----------------------------------------------------------------


class Regime(str, Enum):
    CASH = "caixa"
    ACCRUAL = "competencia"


def counts_in_regime(movement: Movimentacao, regime: Regime) -> bool:
    """Cash counts paid movements with a payment date; accrual counts everything not cancelled."""
    if Regime(regime) is Regime.CASH:
        return movement.status == StatusMovimentacao.PAGO.value and movement.data_pagamento is not None
    return movement.status != StatusMovimentacao.CANCELADO.value


@dataclass(frozen=True)
class FinancialSummary:
    regime: Regime
    receitas: Decimal
    despesas: Decimal
    resultado: Decimal
    margem: Decimal
    counts: dict[str, int] = field(default_factory=dict)


def financial_summary(movements: Iterable[Movimentacao], regime: Regime = Regime.ACCRUAL) -> FinancialSummary:
    regime = Regime(regime)
    receitas = despesas = ZERO
    counts = {tipo.value: 0 for tipo in TipoMovimentacao}
    for movement in movements:
        if not counts_in_regime(movement, regime):
            continue
        if movement.tipo == TipoMovimentacao.RECEITA.value:
            receitas += to_decimal(movement.valor)
        elif movement.tipo == TipoMovimentacao.DESPESA.value:
            despesas += to_decimal(movement.valor)
        else:
            continue
        counts[movement.tipo] += 1
    resultado = receitas - despesas
    # Margin may be negative, so it is not clamped like a share of the whole.
    margem = quantize(resultado / receitas * HUNDRED) if receitas else ZERO
    return FinancialSummary(
        regime=regime,
        receitas=quantize(receitas),
        despesas=quantize(despesas),
        resultado=quantize(resultado),
        margem=margem,
        counts=counts,
    )


def category_breakdown(
    movements: Iterable[Movimentacao],
    tipo: TipoMovimentacao | str,
    regime: Regime = Regime.ACCRUAL,
) -> list[GroupTotal]:
    wanted = TipoMovimentacao(tipo).value
    selected = [item for item in movements if item.tipo == wanted and counts_in_regime(item, regime)]
    return group_totals(selected, key=lambda item: item.categoria, value=lambda item: item.valor)


# -- ticketing ----------------------------------------------------------------


@dataclass(frozen=True)
class TicketSalesReport:
    total_vendas: int
    ingressos_vendidos: int
    faturamento: Decimal
    capacidade: int
    disponiveis: int
    taxa_ocupacao: Decimal
    por_evento: list[GroupTotal]
    por_tipo: list[GroupTotal]
    por_forma_pagamento: list[GroupTotal]
    por_status: list[GroupTotal]


def _in_range(day: date | None, date_from: date | None, date_to: date | None) -> bool:
    if date_from is None and date_to is None:
        return True
    if day is None:
        return False
    if date_from is not None and day < date_from:
        return False
    return date_to is None or day <= date_to


def ticket_sales_report(
    tickets: Sequence[Ticket],
    vendas: Sequence[VendaTicket],
    contrato_id: Any | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> TicketSalesReport:
    """Sales per event, ticket type, payment method and status.

    Revenue and the per-event/type/payment groups only count confirmed sales;
    the status breakdown shows every sale in scope.
    """
    if contrato_id is not None:
        tickets = [ticket for ticket in tickets if str(ticket.contrato_id) == str(contrato_id)]
    by_id = {str(ticket.id): ticket for ticket in tickets}
    scoped = [
        venda
        for venda in vendas
        if (contrato_id is None or str(venda.ticket_id) in by_id) and _in_range(venda.data_venda, date_from, date_to)
    ]
    confirmed = [venda for venda in scoped if venda.status == StatusVenda.CONFIRMADO.value]

    def ticket_of(venda: VendaTicket) -> Ticket | None:
        return by_id.get(str(venda.ticket_id))

    def event_of(venda: VendaTicket) -> str | None:
        ticket = ticket_of(venda)
        if ticket is not None and ticket.contrato is not None:
            return ticket.contrato.nome_evento
        if venda.ticket is not None and venda.ticket.contrato is not None:
            return venda.ticket.contrato.nome_evento
        return None

    def type_of(venda: VendaTicket) -> str | None:
        ticket = ticket_of(venda)
        if ticket is not None:
            return ticket.tipo_ingresso
        return venda.ticket.tipo_ingresso if venda.ticket is not None else None

    def amount(venda: VendaTicket) -> Decimal:
        return venda.valor_total

    def units(venda: VendaTicket) -> int:
        return venda.quantidade

    capacidade = sum(ticket.quantidade_disponivel for ticket in tickets)
    vendidos = sum(ticket.quantidade_vendida for ticket in tickets)
    return TicketSalesReport(
        total_vendas=len(scoped),
        ingressos_vendidos=sum(venda.quantidade for venda in confirmed),
        faturamento=quantize(sum((to_decimal(venda.valor_total) for venda in confirmed), ZERO)),
        capacidade=capacidade,
        disponiveis=capacidade - vendidos,
        taxa_ocupacao=percentage_of(vendidos, capacidade),
        por_evento=group_totals(confirmed, event_of, amount, units),
        por_tipo=group_totals(confirmed, type_of, amount, units),
        por_forma_pagamento=group_totals(confirmed, lambda venda: venda.forma_pagamento, amount, units),
        por_status=group_totals(scoped, lambda venda: venda.status, amount, units),
    )


# -- box office ---------------------------------------------------------------


@dataclass(frozen=True)
class ChannelSalesReport:
    total_vendas: int
    quantidade: int
    valor_bruto: Decimal
    valor_liquido: Decimal
    taxas: Decimal
    por_canal: list[GroupTotal]


def channel_sales_report(vendas: Iterable[VendaIngresso], projeto_id: Any | None = None) -> ChannelSalesReport:
    """Confirmed channel sales grouped by channel, largest gross value first."""
    selected = [
        venda
        for venda in vendas
        if venda.status == StatusVenda.CONFIRMADO.value
        and (projeto_id is None or str(venda.projeto_id) == str(projeto_id))
    ]
    bruto = sum((to_decimal(venda.valor_total) for venda in selected), ZERO)
    liquido = sum((to_decimal(venda.valor_liquido) for venda in selected), ZERO)
    return ChannelSalesReport(
        total_vendas=len(selected),
        quantidade=sum(venda.quantidade or 1 for venda in selected),
        valor_bruto=quantize(bruto),
        valor_liquido=quantize(liquido),
        taxas=quantize(bruto - liquido),
        por_canal=group_totals(
            selected,
            key=lambda venda: venda.canal.nome if venda.canal is not None else None,
            value=lambda venda: venda.valor_total,
            quantity=lambda venda: venda.quantidade or 1,
        ),
    )


# -- registry -----------------------------------------------------------------


@dataclass(frozen=True)
class ContractTotals:
    count: int
    valor_locacao: Decimal
    valor_servicos: Decimal
    valor_caucao: Decimal
    valor_total: Decimal
    por_status: list[GroupTotal]


def contract_totals(contratos: Sequence[Contrato]) -> ContractTotals:
    def total(column: str) -> Decimal:
        return quantize(sum((to_decimal(getattr(item, column)) for item in contratos), ZERO))

    return ContractTotals(
        count=len(contratos),
        valor_locacao=total("valor_locacao"),
        valor_servicos=total("valor_servicos"),
        valor_caucao=total("valor_caucao"),
        valor_total=total("valor_total"),
        por_status=group_totals(contratos, lambda item: item.status, lambda item: item.valor_total),
    )


@dataclass(frozen=True)
class DashboardKpis:
    projetos_ativos: int
    contratos_ativos: int
    receitas: Decimal
    despesas: Decimal
    resultado: Decimal
    taxa_ocupacao: Decimal


CLOSED_PROJECT_STATUSES = {StatusProjeto.CONCLUIDO.value, StatusProjeto.CANCELADO.value}


def dashboard_kpis(
    projetos: Iterable[Projeto],
    contratos: Iterable[Contrato],
    movimentacoes: Iterable[Movimentacao],
    tickets: Iterable[Ticket],
) -> DashboardKpis:
    summary = financial_summary(movimentacoes, Regime.ACCRUAL)
    tickets = list(tickets)
    capacidade = sum(ticket.quantidade_disponivel for ticket in tickets)
    vendidos = sum(ticket.quantidade_vendida for ticket in tickets)
    return DashboardKpis(
        projetos_ativos=sum(1 for item in projetos if item.status not in CLOSED_PROJECT_STATUSES),
        contratos_ativos=sum(1 for item in contratos if item.status == StatusContrato.ATIVO.value),
        receitas=summary.receitas,
        despesas=summary.despesas,
        resultado=summary.resultado,
        taxa_ocupacao=percentage_of(vendidos, capacidade),
    )
