from __future__ import annotations

from datetime import date
from enum import Enum

from .base import Amount, NamedRef, Record


class TipoMovimentacao(str, Enum):
    RECEITA = "receita"
    DESPESA = "despesa"


class StatusMovimentacao(str, Enum):
    PENDENTE = "pendente"
    PAGO = "pago"
    CANCELADO = "cancelado"


class TipoCategoria(str, Enum):
    RECEITA = "receita"
    DESPESA = "despesa"
    AMBOS = "ambos"


class StatusFechamento(str, Enum):
    PENDENTE = "pendente"
    VALIDADO = "validado"
    REJEITADO = "rejeitado"


class CategoriaFinanceira(Record):
    nome: str
    tipo: str
    descricao: str | None = None
    cor: str | None = None
    ativo: bool = True


class Movimentacao(Record):
    tipo: str
    categoria: str
    projeto_id: int | None = None
    descricao: str
    valor: Amount
    data_vencimento: date | None = None
    data_pagamento: date | None = None
    status: str = StatusMovimentacao.PENDENTE.value
    observacoes: str | None = None
    projeto: NamedRef | None = None


class FechamentoEvento(Record):
    projeto_id: int
    data_fechamento: date
    total_receitas: Amount
    total_despesas: Amount
    resultado: Amount
    status: str = StatusFechamento.PENDENTE.value
    observacoes: str | None = None
    email_enviado: bool = False
    data_validacao: date | None = None
    projeto: NamedRef | None = None
