from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import Field, ValidationInfo, field_validator, model_validator

from ..core.money import quantize
from ..models.tickets import FormaPagamento, StatusVenda
from .base import Email, FormModel, Integer, Money


class TicketForm(FormModel):
    messages = {
        "contrato_id": "Contrato é obrigatório",
        "tipo_ingresso": "Tipo de ingresso é obrigatório",
        "preco": "Preço é obrigatório",
        "preco:greater_than_equal": "Preço deve ser maior ou igual a zero",
        "quantidade_disponivel": "Quantidade é obrigatória",
        "quantidade_disponivel:greater_than_equal": "Quantidade deve ser maior que zero",
    }

    contrato_id: int
    tipo_ingresso: str = Field(min_length=1)
    preco: Money = Field(ge=0)
    quantidade_disponivel: Integer = Field(ge=1)
    descricao: str | None = None
    ativo: bool = True

    @field_validator("quantidade_disponivel")
    @classmethod
    def _covers_sold(cls, value: int, info: ValidationInfo) -> int:
        sold = (info.context or {}).get("quantidade_vendida") or 0
        if value < sold:
            raise ValueError(f"Quantidade não pode ser menor que os {sold} ingressos já vendidos")
        return value


class VendaForm(FormModel):
    """Ticket sale; ``valor_total`` defaults to quantity times unit price."""

    messages = {
        "ticket_id": "Tipo de ingresso é obrigatório",
        "quantidade": "Quantidade é obrigatória",
        "quantidade:greater_than_equal": "Quantidade deve ser maior que zero",
        "valor_unitario": "Valor unitário é obrigatório",
        "valor_unitario:greater_than_equal": "Valor unitário deve ser maior ou igual a zero",
        "valor_total:greater_than_equal": "Valor total deve ser maior ou igual a zero",
        "forma_pagamento": "Forma de pagamento é obrigatória",
        "data_venda": "Data da venda é obrigatória",
    }

    ticket_id: int
    quantidade: Integer = Field(ge=1)
    valor_unitario: Money = Field(ge=0)
    valor_total: Money | None = Field(default=None, ge=0)
    forma_pagamento: FormaPagamento
    nome_comprador: str | None = None
    email_comprador: Email | None = None
    telefone_comprador: str | None = None
    data_venda: date = Field(default_factory=date.today)
    status: StatusVenda = StatusVenda.CONFIRMADO
    observacoes: str | None = None

    @model_validator(mode="after")
    def _default_total(self) -> VendaForm:
        if self.valor_total is None:
            self.valor_total = quantize(Decimal(self.quantidade) * self.valor_unitario)
        return self
