from __future__ import annotations

from datetime import date
from enum import Enum

from .base import Amount, NamedRef, Record


class StatusProjeto(str, Enum):
    PLANEJAMENTO = "planejamento"
    APROVADO = "aprovado"
    EM_ANDAMENTO = "em_andamento"
    CONCLUIDO = "concluido"
    CANCELADO = "cancelado"


class StatusContrato(str, Enum):
    RASCUNHO = "rascunho"
    ATIVO = "ativo"
    CONCLUIDO = "concluido"
    CANCELADO = "cancelado"


class PapelEntidade(str, Enum):
    CLIENTE = "cliente"
    PARCEIRO = "parceiro"
    FORNECEDOR = "fornecedor"


class Empresa(Record):
    nome: str
    razao_social: str | None = None
    cnpj: str | None = None
    email: str | None = None
    telefone: str | None = None
    endereco: str | None = None
    cidade: str | None = None
    estado: str | None = None
    cep: str | None = None
    responsavel: str | None = None
    observacoes: str | None = None
    ativo: bool = True


class Espaco(Record):
    empresa_id: int | None = None
    nome: str
    descricao: str | None = None
    localizacao: str | None = None
    capacidade: int | None = None
    valor_base: Amount | None = None
    ativo: bool = True
    empresa: NamedRef | None = None


class Entidade(Record):
    nome: str
    e_cliente: bool = False
    e_parceiro: bool = False
    e_fornecedor: bool = False
    documento: str | None = None
    email: str | None = None
    telefone: str | None = None
    endereco: str | None = None
    ativo: bool = True

    @property
    def papeis(self) -> list[str]:
        return [papel.value for papel in PapelEntidade if getattr(self, f"e_{papel.value}")]


class Projeto(Record):
    nome: str
    tipo: str | None = None
    descricao: str | None = None
    local: str | None = None
    responsavel: str | None = None
    entidade_id: int | None = None
    unidade_id: int | None = None
    espaco_id: int | None = None
    contrato_id: int | None = None
    data_inicio: date | None = None
    data_fim: date | None = None
    status: str = StatusProjeto.PLANEJAMENTO.value
    orcamento: Amount | None = None
    observacoes: str | None = None
    entidade: NamedRef | None = None
    unidade: NamedRef | None = None
    espaco: NamedRef | None = None


class Contrato(Record):
    numero: str
    projeto_id: int | None = None
    entidade_id: int | None = None
    unidade_id: int | None = None
    espaco_id: int | None = None
    nome_evento: str
    tipo_evento: str | None = None
    data_assinatura: date | None = None
    inicio_realizacao: date | None = None
    fim_realizacao: date | None = None
    publico_estimado: int | None = None
    valor_locacao: Amount
    valor_servicos: Amount
    valor_caucao: Amount
    valor_total: Amount
    status: str = StatusContrato.RASCUNHO.value
    observacoes: str | None = None
    projeto: NamedRef | None = None
    entidade: NamedRef | None = None
    unidade: NamedRef | None = None
    espaco: NamedRef | None = None
