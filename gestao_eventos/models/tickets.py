from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict

from .base import Amount, NamedRef, Record


class StatusVenda(str, Enum):
    PENDENTE = "pendente"
    CONFIRMADO = "confirmado"
    CANCELADO = "cancelado"


class FormaPagamento(str, Enum):
    DINHEIRO = "dinheiro"
    CARTAO_CREDITO = "cartao_credito"
    CARTAO_DEBITO = "cartao_debito"
    PIX = "pix"
    TRANSFERENCIA = "transferencia"
    BOLETO = "boleto"


class ContratoRef(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    numero: str | None = None
    nome_evento: str | None = None
    inicio_realizacao: date | None = None
    entidade: NamedRef | None = None


class Ticket(Record):
    contrato_id: int
    tipo_ingresso: str
    preco: Amount
    quantidade_disponivel: int
    quantidade_vendida: int = 0
    descricao: str | None = None
    ativo: bool = True
    contrato: ContratoRef | None = None

    @property
    def remaining(self) -> int:
        return self.quantidade_disponivel - self.quantidade_vendida


class TicketRef(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    tipo_ingresso: str | None = None
    preco: Amount | None = None
    contrato_id: int | None = None
    contrato: ContratoRef | None = None


class VendaTicket(Record):
    ticket_id: int
    quantidade: int
    valor_unitario: Amount
    valor_total: Amount
    forma_pagamento: str
    nome_comprador: str | None = None
    email_comprador: str | None = None
    telefone_comprador: str | None = None
    data_venda: date | None = None
    status: str = StatusVenda.CONFIRMADO.value
    observacoes: str | None = None
    ticket: TicketRef | None = None
