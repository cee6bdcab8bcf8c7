from __future__ import annotations

from datetime import date
from enum import Enum

from .base import Amount, NamedRef, Record


class TipoCanal(str, Enum):
    PRESENCIAL = "presencial"
    ONLINE = "online"
    TELEFONE = "telefone"
    TERCEIRO = "terceiro"
    CORTESIA = "cortesia"


class CanalVenda(Record):
    nome: str
    tipo: str
    responsavel: str | None = None
    contato: str | None = None
    taxa_servico: Amount | None = None
    ativo: bool = True
    observacoes: str | None = None


class VendaIngresso(Record):
    projeto_id: int | None = None
    canal_venda_id: int | None = None
    quantidade: int = 1
    valor_total: Amount
    valor_liquido: Amount
    data_venda: date | None = None
    status: str = "confirmado"
    observacoes: str | None = None
    canal: NamedRef | None = None
    projeto: NamedRef | None = None
