from __future__ import annotations

from datetime import date

from pydantic import Field

from ..models.box_office import TipoCanal
from ..models.tickets import StatusVenda
from .base import FormModel, Integer, Money


class CanalForm(FormModel):
    messages = {
        "nome": "Nome é obrigatório",
        "tipo": "Tipo é obrigatório",
        "taxa_servico:greater_than_equal": "Taxa deve ser maior ou igual a zero",
        "taxa_servico:less_than_equal": "Taxa deve ser menor ou igual a 100",
    }

    nome: str = Field(min_length=1)
    tipo: TipoCanal
    responsavel: str | None = None
    contato: str | None = None
    taxa_servico: Money | None = Field(default=None, ge=0, le=100)
    ativo: bool = True
    observacoes: str | None = None


class VendaCanalForm(FormModel):
    messages = {
        "canal_venda_id": "Canal de venda é obrigatório",
        "quantidade:greater_than_equal": "Quantidade deve ser maior que zero",
        "valor_total": "Valor é obrigatório",
        "valor_total:greater_than_equal": "Valor deve ser maior ou igual a zero",
    }
    fk_fields = ("projeto_id",)

    canal_venda_id: int
    projeto_id: int | None = None
    quantidade: Integer = Field(default=1, ge=1)
    valor_total: Money = Field(ge=0)
    valor_liquido: Money | None = Field(default=None, ge=0)
    data_venda: date = Field(default_factory=date.today)
    status: StatusVenda = StatusVenda.CONFIRMADO
    observacoes: str | None = None
