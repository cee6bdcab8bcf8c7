from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import Field, ValidationInfo, field_validator, model_validator

from ..core.money import quantize
from ..models.registry import StatusContrato, StatusProjeto
from .base import Email, FormModel, Integer, Money

END_BEFORE_START = "Data de término deve ser maior ou igual à data de início"
SPACE_OUTSIDE_COMPANY = "Espaço não pertence à empresa selecionada"


def _space_in_company(value: int | None, info: ValidationInfo) -> int | None:
    # Spaces are picked from the selected company's list; context carries that list.
    espacos = (info.context or {}).get("espacos")
    unidade_id = info.data.get("unidade_id")
    if value is None or espacos is None or unidade_id is None:
        return value
    espaco = next((item for item in espacos if str(item.id) == str(value)), None)
    if espaco is None or str(espaco.empresa_id) != str(unidade_id):
        raise ValueError(SPACE_OUTSIDE_COMPANY)
    return value


class EntidadeForm(FormModel):
    messages = {"nome": "Nome é obrigatório"}

    nome: str = Field(min_length=1)
    documento: str | None = None
    email: Email | None = None
    telefone: str | None = None
    endereco: str | None = None
    ativo: bool = True
    e_parceiro: bool = False
    e_fornecedor: bool = False
    e_cliente: bool = False

    @field_validator("e_cliente")
    @classmethod
    def _at_least_one_role(cls, value: bool, info: ValidationInfo) -> bool:
        if not (value or info.data.get("e_parceiro") or info.data.get("e_fornecedor")):
            raise ValueError("Selecione pelo menos um tipo")
        return value


class EmpresaForm(FormModel):
    messages = {
        "nome": "Nome é obrigatório",
        "estado:string_too_short": "Estado deve ter 2 caracteres",
        "estado:string_too_long": "Estado deve ter 2 caracteres",
    }

    nome: str = Field(min_length=1)
    razao_social: str | None = None
    cnpj: str | None = None
    email: Email | None = None
    telefone: str | None = None
    endereco: str | None = None
    cidade: str | None = None
    estado: str | None = Field(default=None, min_length=2, max_length=2)
    cep: str | None = None
    responsavel: str | None = None
    observacoes: str | None = None
    ativo: bool = True

    @field_validator("estado")
    @classmethod
    def _upper(cls, value: str | None) -> str | None:
        return value.upper() if value else value


class EspacoForm(FormModel):
    messages = {
        "nome": "Nome é obrigatório",
        "capacidade:greater_than_equal": "Capacidade deve ser maior ou igual a zero",
        "valor_base:greater_than_equal": "Valor deve ser maior ou igual a zero",
    }
    fk_fields = ("empresa_id",)

    nome: str = Field(min_length=1)
    empresa_id: int | None = None
    descricao: str | None = None
    localizacao: str | None = None
    capacidade: Integer | None = Field(default=None, ge=0)
    valor_base: Money | None = Field(default=None, ge=0)
    ativo: bool = True


class ProjetoForm(FormModel):
    messages = {
        "nome": "Nome é obrigatório",
        "data_inicio": "Data de início é obrigatória",
        "data_fim": "Data de término é obrigatória",
        "orcamento:greater_than_equal": "Orçamento deve ser maior ou igual a zero",
    }
    fk_fields = ("entidade_id", "unidade_id", "espaco_id", "contrato_id")

    nome: str = Field(min_length=1)
    tipo: str | None = None
    descricao: str | None = None
    local: str | None = None
    responsavel: str | None = None
    entidade_id: int | None = None
    unidade_id: int | None = None
    espaco_id: int | None = None
    contrato_id: int | None = None
    data_inicio: date
    data_fim: date
    status: StatusProjeto = StatusProjeto.PLANEJAMENTO
    orcamento: Money | None = Field(default=None, ge=0)
    observacoes: str | None = None

    @field_validator("espaco_id")
    @classmethod
    def _space_belongs_to_company(cls, value: int | None, info: ValidationInfo) -> int | None:
        return _space_in_company(value, info)

    @field_validator("data_fim")
    @classmethod
    def _ends_after_start(cls, value: date, info: ValidationInfo) -> date:
        start = info.data.get("data_inicio")
        if start is not None and value < start:
            raise ValueError(END_BEFORE_START)
        return value


class ContratoForm(FormModel):
    """Contract; ``valor_total`` is always rental plus services."""

    messages = {
        "numero": "Número do contrato é obrigatório",
        "nome_evento": "Nome do evento é obrigatório",
        "inicio_realizacao": "Data de início é obrigatória",
        "fim_realizacao": "Data de término é obrigatória",
        "valor_locacao": "Valor é obrigatório",
        "valor_locacao:greater_than_equal": "Valor da locação deve ser positivo",
        "valor_servicos:greater_than_equal": "Valor dos serviços deve ser positivo",
        "valor_caucao:greater_than_equal": "Valor da caução deve ser positivo",
        "publico_estimado:greater_than_equal": "Público estimado deve ser positivo",
    }
    fk_fields = ("projeto_id", "entidade_id", "unidade_id", "espaco_id")

    numero: str = Field(min_length=1)
    nome_evento: str = Field(min_length=1)
    tipo_evento: str | None = None
    projeto_id: int | None = None
    entidade_id: int | None = None
    unidade_id: int | None = None
    espaco_id: int | None = None
    data_assinatura: date | None = None
    inicio_realizacao: date
    fim_realizacao: date
    publico_estimado: Integer | None = Field(default=None, ge=0)
    valor_locacao: Money = Field(ge=0)
    valor_servicos: Money = Field(default=Decimal("0"), ge=0)
    valor_caucao: Money = Field(default=Decimal("0"), ge=0)
    valor_total: Decimal | None = None
    status: StatusContrato = StatusContrato.RASCUNHO
    observacoes: str | None = None

    @field_validator("espaco_id")
    @classmethod
    def _space_belongs_to_company(cls, value: int | None, info: ValidationInfo) -> int | None:
        return _space_in_company(value, info)

    @field_validator("fim_realizacao")
    @classmethod
    def _ends_after_start(cls, value: date, info: ValidationInfo) -> date:
        start = info.data.get("inicio_realizacao")
        if start is not None and value < start:
            raise ValueError(END_BEFORE_START)
        return value

    @model_validator(mode="after")
    def _total(self) -> ContratoForm:
        self.valor_total = quantize(self.valor_locacao + self.valor_servicos)
        return self

    @classmethod
    def initial_values(cls, record: Any | None = None) -> dict[str, Any]:
        values = super().initial_values(record)
        values.pop("valor_total", None)
        return values
