from __future__ import annotations

from typing import Any

from ..gateway.base import Embed, Filter, Op, Order, Row
from ..models.box_office import CanalVenda, VendaIngresso
from ..models.tickets import StatusVenda
from ..views.reports import ChannelSalesReport, channel_sales_report
from .base import EntityStore, Resource

CANAL = Embed("canal", "canais_venda", "canal_venda_id", columns=("id", "nome", "tipo", "taxa_servico"))
PROJETO = Embed("projeto", "projetos", "projeto_id", columns=("id", "nome"))


class BoxOfficeStore(EntityStore):
    """Sales channels and the ticket sales recorded per channel."""

    module = "bilheteria"
    resources = (
        Resource(
            "canais",
            "canais_venda",
            CanalVenda,
            "canal de venda",
            orders=(Order("nome"),),
            active_flag="ativo",
        ),
        Resource(
            "vendas_canal",
            "vendas_ingressos",
            VendaIngresso,
            "venda",
            orders=(Order("data_venda", descending=True), Order("created_at", descending=True)),
            embeds=(CANAL, PROJETO),
            parent_key="canal_venda_id",
        ),
    )

    @property
    def canais(self) -> list[CanalVenda]:
        return self.items("canais")

    @property
    def vendas(self) -> list[VendaIngresso]:
        return self.items("vendas_canal")

    def fetch_channels(self) -> list[CanalVenda]:
        return self.fetch_all("canais")

    def active_channels(self) -> list[CanalVenda]:
        return [canal for canal in self.canais if canal.ativo]

    def create_channel(self, payload: Row) -> CanalVenda:
        return self.create("canais", payload)

    def update_channel(self, canal_id: Any, patch: Row) -> CanalVenda:
        return self.update("canais", canal_id, patch)

    def delete_channel(self, canal_id: Any) -> None:
        self.delete("canais", canal_id)

    def toggle_channel(self, canal_id: Any) -> CanalVenda:
        current = self.get("canais", canal_id) or self.fetch_one("canais", canal_id)
        return self.update("canais", canal_id, {"ativo": not current.ativo})

    def fetch_channel_sales(
        self,
        projeto_id: Any | None = None,
        status: StatusVenda | None = StatusVenda.CONFIRMADO,
    ) -> list[VendaIngresso]:
        filters: list[Filter] = []
        if status is not None:
            filters.append(Filter("status", Op.EQ, StatusVenda(status).value))
        if projeto_id is not None:
            filters.append(Filter("projeto_id", Op.EQ, projeto_id))
        return self.fetch_all("vendas_canal", filters)

    def record_channel_sale(self, payload: Row) -> VendaIngresso:
        body = dict(payload)
        if body.get("valor_liquido") is None:
            body["valor_liquido"] = body.get("valor_total")
        return self.create("vendas_canal", body)

    def delete_channel_sale(self, venda_id: Any) -> None:
        self.delete("vendas_canal", venda_id)

    def sales_by_channel(self, canal_id: Any) -> list[VendaIngresso]:
        return self.by_parent_id("vendas_canal", canal_id)

    def channel_report(self, projeto_id: Any | None = None) -> ChannelSalesReport:
        return channel_sales_report(self.vendas, projeto_id=projeto_id)
