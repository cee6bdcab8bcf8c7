from __future__ import annotations

from typing import Any

from ..gateway.base import Embed, Filter, Op, Order, Row
from ..models.registry import Contrato, Empresa, Entidade, Espaco, PapelEntidade, Projeto
from ..views.reports import ContractTotals, contract_totals
from .base import EntityStore, Resource, same_id

NOME = ("id", "nome")


class EntidadeStore(EntityStore):
    """Clients, partners and suppliers; deactivated entities leave the listing."""

    module = "entidades"
    resources = (
        Resource(
            "entidades",
            "entidades",
            Entidade,
            "entidade",
            orders=(Order("nome"),),
            base_filters=(Filter("ativo", Op.EQ, True),),
            active_flag="ativo",
            drop_inactive=True,
        ),
    )

    @property
    def entidades(self) -> list[Entidade]:
        return self.items("entidades")

    def fetch_entities(self) -> list[Entidade]:
        return self.fetch_all("entidades")

    def create_entity(self, payload: Row) -> Entidade:
        return self.create("entidades", payload)

    def update_entity(self, entidade_id: Any, patch: Row) -> Entidade:
        return self.update("entidades", entidade_id, patch)

    def deactivate_entity(self, entidade_id: Any) -> Entidade:
        return self.deactivate("entidades", entidade_id)

    def by_role(self, papel: PapelEntidade | str) -> list[Entidade]:
        flag = f"e_{PapelEntidade(papel).value}"
        return [item for item in self.entidades if getattr(item, flag)]


class VenueStore(EntityStore):
    """Companies and the spaces each one operates."""

    module = "empresas"
    resources = (
        Resource("empresas", "empresas", Empresa, "empresa", orders=(Order("nome"),), active_flag="ativo"),
        Resource(
            "espacos",
            "espacos",
            Espaco,
            "espaço",
            orders=(Order("nome"),),
            embeds=(Embed("empresa", "empresas", "empresa_id", columns=NOME),),
            parent_key="empresa_id",
            active_flag="ativo",
        ),
    )

    @property
    def empresas(self) -> list[Empresa]:
        return self.items("empresas")

    @property
    def espacos(self) -> list[Espaco]:
        return self.items("espacos")

    def fetch_companies(self) -> list[Empresa]:
        return self.fetch_all("empresas")

    def fetch_spaces(self) -> list[Espaco]:
        return self.fetch_all("espacos")

    def create_company(self, payload: Row) -> Empresa:
        return self.create("empresas", payload)

    def update_company(self, empresa_id: Any, patch: Row) -> Empresa:
        return self.update("empresas", empresa_id, patch)

    def delete_company(self, empresa_id: Any) -> None:
        self.delete("empresas", empresa_id)

    def create_space(self, payload: Row) -> Espaco:
        return self.create("espacos", payload)

    def update_space(self, espaco_id: Any, patch: Row) -> Espaco:
        return self.update("espacos", espaco_id, patch)

    def delete_space(self, espaco_id: Any) -> None:
        self.delete("espacos", espaco_id)

    def spaces_by_company(self, empresa_id: Any) -> list[Espaco]:
        return self.by_parent_id("espacos", empresa_id)


class ProjectStore(EntityStore):
    module = "projetos"
    resources = (
        Resource(
            "projetos",
            "projetos",
            Projeto,
            "projeto",
            embeds=(
                Embed("entidade", "entidades", "entidade_id", columns=NOME),
                Embed("unidade", "empresas", "unidade_id", columns=NOME),
                Embed("espaco", "espacos", "espaco_id", columns=NOME),
            ),
            parent_key="entidade_id",
        ),
    )

    @property
    def projetos(self) -> list[Projeto]:
        return self.items("projetos")

    def fetch_projects(self) -> list[Projeto]:
        return self.fetch_all("projetos")

    def create_project(self, payload: Row) -> Projeto:
        return self.create("projetos", payload)

    def update_project(self, projeto_id: Any, patch: Row) -> Projeto:
        return self.update("projetos", projeto_id, patch)

    def delete_project(self, projeto_id: Any) -> None:
        self.delete("projetos", projeto_id)

    def by_status(self, status: str) -> list[Projeto]:
        value = getattr(status, "value", status)
        return [item for item in self.projetos if item.status == value]

    def projects_by_client(self, entidade_id: Any) -> list[Projeto]:
        return self.by_parent_id("projetos", entidade_id)


class ContractStore(EntityStore):
    module = "contratos"
    resources = (
        Resource(
            "contratos",
            "contratos",
            Contrato,
            "contrato",
            embeds=(
                Embed("projeto", "projetos", "projeto_id", columns=NOME),
                Embed("entidade", "entidades", "entidade_id", columns=NOME),
                Embed("unidade", "empresas", "unidade_id", columns=NOME),
                Embed("espaco", "espacos", "espaco_id", columns=NOME),
            ),
            parent_key="projeto_id",
        ),
    )

    @property
    def contratos(self) -> list[Contrato]:
        return self.items("contratos")

    def fetch_contracts(self) -> list[Contrato]:
        return self.fetch_all("contratos")

    def create_contract(self, payload: Row) -> Contrato:
        return self.create("contratos", payload)

    def update_contract(self, contrato_id: Any, patch: Row) -> Contrato:
        return self.update("contratos", contrato_id, patch)

    def delete_contract(self, contrato_id: Any) -> None:
        self.delete("contratos", contrato_id)

    def contracts_by_project(self, projeto_id: Any) -> list[Contrato]:
        return self.by_parent_id("contratos", projeto_id)

    def contracts_by_entity(self, entidade_id: Any) -> list[Contrato]:
        return [item for item in self.contratos if same_id(item.entidade_id, entidade_id)]

    def totals(self, projeto_id: Any | None = None) -> ContractTotals:
        contratos = self.contratos if projeto_id is None else self.contracts_by_project(projeto_id)
        return contract_totals(contratos)
