from __future__ import annotations

from datetime import date
from typing import Any

from ..core.errors import BusinessRuleError
from ..gateway.base import Embed, Filter, Op, Order, Row
from ..models.financial import (
    CategoriaFinanceira,
    FechamentoEvento,
    Movimentacao,
    StatusFechamento,
    StatusMovimentacao,
    TipoCategoria,
    TipoMovimentacao,
)
from ..views.reports import FinancialSummary, Regime, financial_summary
from .base import EntityStore, Resource

PROJETO = Embed("projeto", "projetos", "projeto_id", columns=("id", "nome"))


def regime_filters(regime: Regime) -> tuple[Filter, ...]:
    if regime is Regime.CASH:
        return (
            Filter("status", Op.EQ, StatusMovimentacao.PAGO.value),
            Filter("data_pagamento", Op.IS_NOT, None),
        )
    return (Filter("status", Op.NEQ, StatusMovimentacao.CANCELADO.value),)


class FinancialStore(EntityStore):
    module = "financeiro"
    resources = (
        Resource(
            "movimentacoes",
            "movimentacoes_financeiras",
            Movimentacao,
            "lançamento",
            orders=(Order("data_vencimento", descending=True), Order("created_at", descending=True)),
            embeds=(PROJETO,),
            parent_key="projeto_id",
        ),
        Resource(
            "categorias",
            "categorias_financeiras",
            CategoriaFinanceira,
            "categoria",
            orders=(Order("nome"),),
            base_filters=(Filter("ativo", Op.EQ, True),),
            active_flag="ativo",
            drop_inactive=True,
        ),
        Resource(
            "fechamentos",
            "fechamentos_eventos",
            FechamentoEvento,
            "fechamento",
            orders=(Order("data_fechamento", descending=True),),
            embeds=(PROJETO,),
            parent_key="projeto_id",
        ),
    )

    @property
    def movimentacoes(self) -> list[Movimentacao]:
        return self.items("movimentacoes")

    @property
    def receitas(self) -> list[Movimentacao]:
        return [item for item in self.movimentacoes if item.tipo == TipoMovimentacao.RECEITA.value]

    @property
    def despesas(self) -> list[Movimentacao]:
        return [item for item in self.movimentacoes if item.tipo == TipoMovimentacao.DESPESA.value]

    def fetch_movements(
        self,
        *,
        tipo: TipoMovimentacao | None = None,
        regime: Regime | None = None,
        projeto_id: Any | None = None,
    ) -> list[Movimentacao]:
        filters: list[Filter] = []
        if tipo is not None:
            filters.append(Filter("tipo", Op.EQ, TipoMovimentacao(tipo).value))
        if regime is not None:
            filters.extend(regime_filters(Regime(regime)))
        if projeto_id is not None:
            filters.append(Filter("projeto_id", Op.EQ, projeto_id))
        return self.fetch_all("movimentacoes", filters)

    def create_movement(self, payload: Row) -> Movimentacao:
        return self.create("movimentacoes", payload)

    def update_movement(self, movimentacao_id: Any, patch: Row) -> Movimentacao:
        return self.update("movimentacoes", movimentacao_id, patch)

    def delete_movement(self, movimentacao_id: Any) -> None:
        self.delete("movimentacoes", movimentacao_id)

    def mark_paid(self, movimentacao_id: Any, data_pagamento: date | None = None) -> Movimentacao:
        return self.update(
            "movimentacoes",
            movimentacao_id,
            {"status": StatusMovimentacao.PAGO.value, "data_pagamento": data_pagamento or date.today()},
        )

    def movements_by_project(self, projeto_id: Any) -> list[Movimentacao]:
        return self.by_parent_id("movimentacoes", projeto_id)

    def calculate_totals(self, projeto_id: Any | None = None, regime: Regime = Regime.ACCRUAL) -> FinancialSummary:
        movements = self.movimentacoes if projeto_id is None else self.movements_by_project(projeto_id)
        return financial_summary(movements, regime)

    # -- categories ----------------------------------------------------------

    def fetch_categories(self) -> list[CategoriaFinanceira]:
        return self.fetch_all("categorias")

    def categories_for(self, tipo: TipoMovimentacao) -> list[CategoriaFinanceira]:
        allowed = {TipoMovimentacao(tipo).value, TipoCategoria.AMBOS.value}
        return [item for item in self.items("categorias") if item.tipo in allowed]

    def create_category(self, payload: Row) -> CategoriaFinanceira:
        return self.create("categorias", payload)

    def update_category(self, categoria_id: Any, patch: Row) -> CategoriaFinanceira:
        return self.update("categorias", categoria_id, patch)

    def deactivate_category(self, categoria_id: Any) -> CategoriaFinanceira:
        return self.deactivate("categorias", categoria_id)

    # -- closings ------------------------------------------------------------

    def fetch_closings(self) -> list[FechamentoEvento]:
        return self.fetch_all("fechamentos")

    def build_closing(self, projeto_id: Any, data_fechamento: date | None = None) -> Row:
        summary = self.calculate_totals(projeto_id, Regime.ACCRUAL)
        return {
            "projeto_id": projeto_id,
            "data_fechamento": data_fechamento or date.today(),
            "total_receitas": summary.receitas,
            "total_despesas": summary.despesas,
            "resultado": summary.resultado,
            "status": StatusFechamento.PENDENTE.value,
        }

    def create_closing(self, projeto_id: Any, observacoes: str | None = None) -> FechamentoEvento:
        pending = [
            item
            for item in self.by_parent_id("fechamentos", projeto_id)
            if item.status == StatusFechamento.PENDENTE.value
        ]
        if pending:
            self._reject(
                "fechamentos.create",
                BusinessRuleError("Já existe um fechamento pendente para este projeto"),
                projeto_id=projeto_id,
            )
        payload = self.build_closing(projeto_id)
        if observacoes:
            payload["observacoes"] = observacoes
        return self.create("fechamentos", payload)

    def validate_closing(self, fechamento_id: Any) -> FechamentoEvento:
        return self._set_closing_status(fechamento_id, StatusFechamento.VALIDADO)

    def reject_closing(self, fechamento_id: Any) -> FechamentoEvento:
        return self._set_closing_status(fechamento_id, StatusFechamento.REJEITADO)

    def _set_closing_status(self, fechamento_id: Any, status: StatusFechamento) -> FechamentoEvento:
        current = self.get("fechamentos", fechamento_id)
        if current is not None and current.status != StatusFechamento.PENDENTE.value:
            self._reject(
                "fechamentos.update",
                BusinessRuleError("Somente fechamentos pendentes podem ser validados ou rejeitados"),
                record_id=fechamento_id,
            )
        return self.update(
            "fechamentos",
            fechamento_id,
            {"status": status.value, "data_validacao": date.today()},
        )

    def closings_by_project(self, projeto_id: Any) -> list[FechamentoEvento]:
        return self.by_parent_id("fechamentos", projeto_id)

