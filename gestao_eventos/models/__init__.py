from .base import Amount, NamedRef, Record
from .box_office import CanalVenda, TipoCanal, VendaIngresso
from .financial import (
    CategoriaFinanceira,
    FechamentoEvento,
    Movimentacao,
    StatusFechamento,
    StatusMovimentacao,
    TipoCategoria,
    TipoMovimentacao,
)
from .registry import (
    Contrato,
    Empresa,
    Entidade,
    Espaco,
    PapelEntidade,
    Projeto,
    StatusContrato,
    StatusProjeto,
)
from .tickets import ContratoRef, FormaPagamento, StatusVenda, Ticket, TicketRef, VendaTicket
from .users import Grupo, GrupoPermissao, Permissao, Usuario, UsuarioPermissao

__all__ = [
    "Amount",
    "CanalVenda",
    "CategoriaFinanceira",
    "Contrato",
    "ContratoRef",
    "Empresa",
    "Entidade",
    "Espaco",
    "FechamentoEvento",
    "FormaPagamento",
    "Grupo",
    "GrupoPermissao",
    "Movimentacao",
    "NamedRef",
    "PapelEntidade",
    "Permissao",
    "Projeto",
    "Record",
    "StatusContrato",
    "StatusFechamento",
    "StatusMovimentacao",
    "StatusProjeto",
    "StatusVenda",
    "Ticket",
    "TicketRef",
    "TipoCanal",
    "TipoCategoria",
    "TipoMovimentacao",
    "Usuario",
    "UsuarioPermissao",
    "VendaIngresso",
    "VendaTicket",
]
