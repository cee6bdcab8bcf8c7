"""Relational layout of the backend tables the stores read and write."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Engine,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _money(name: str, nullable: bool = False) -> Column:
    return Column(name, Numeric(14, 2), nullable=nullable, default=None if nullable else 0)


def _timestamps() -> tuple[Column, Column]:
    return (
        Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
        Column("updated_at", DateTime(timezone=True), nullable=False, default=_utcnow),
    )


def _pk() -> Column:
    return Column("id", Integer, primary_key=True, autoincrement=True)


empresas = Table(
    "empresas",
    metadata,
    _pk(),
    Column("nome", String(255), nullable=False),
    Column("razao_social", String(255)),
    Column("cnpj", String(32)),
    Column("email", String(255)),
    Column("telefone", String(64)),
    Column("endereco", Text),
    Column("cidade", String(128)),
    Column("estado", String(2)),
    Column("cep", String(16)),
    Column("responsavel", String(255)),
    Column("observacoes", Text),
    Column("ativo", Boolean, nullable=False, default=True),
    *_timestamps(),
)

espacos = Table(
    "espacos",
    metadata,
    _pk(),
    Column("empresa_id", Integer, ForeignKey("empresas.id")),
    Column("nome", String(255), nullable=False),
    Column("descricao", Text),
    Column("localizacao", String(255)),
    Column("capacidade", Integer),
    _money("valor_base", nullable=True),
    Column("ativo", Boolean, nullable=False, default=True),
    *_timestamps(),
)

entidades = Table(
    "entidades",
    metadata,
    _pk(),
    Column("nome", String(255), nullable=False),
    Column("e_cliente", Boolean, nullable=False, default=False),
    Column("e_parceiro", Boolean, nullable=False, default=False),
    Column("e_fornecedor", Boolean, nullable=False, default=False),
    Column("documento", String(32)),
    Column("email", String(255)),
    Column("telefone", String(64)),
    Column("endereco", Text),
    Column("ativo", Boolean, nullable=False, default=True),
    *_timestamps(),
)

projetos = Table(
    "projetos",
    metadata,
    _pk(),
    Column("nome", String(255), nullable=False),
    Column("tipo", String(64)),
    Column("descricao", Text),
    Column("local", String(255)),
    Column("responsavel", String(255)),
    Column("entidade_id", Integer, ForeignKey("entidades.id")),
    Column("unidade_id", Integer, ForeignKey("empresas.id")),
    Column("espaco_id", Integer, ForeignKey("espacos.id")),
    Column("contrato_id", Integer),
    Column("data_inicio", Date, nullable=False),
    Column("data_fim", Date, nullable=False),
    Column("status", String(32), nullable=False, default="planejamento"),
    _money("orcamento", nullable=True),
    Column("observacoes", Text),
    *_timestamps(),
)

contratos = Table(
    "contratos",
    metadata,
    _pk(),
    Column("numero", String(64), nullable=False, unique=True),
    Column("projeto_id", Integer, ForeignKey("projetos.id")),
    Column("entidade_id", Integer, ForeignKey("entidades.id")),
    Column("unidade_id", Integer, ForeignKey("empresas.id")),
    Column("espaco_id", Integer, ForeignKey("espacos.id")),
    Column("nome_evento", String(255), nullable=False),
    Column("tipo_evento", String(64)),
    Column("data_assinatura", Date),
    Column("inicio_realizacao", Date, nullable=False),
    Column("fim_realizacao", Date, nullable=False),
    Column("publico_estimado", Integer),
    _money("valor_locacao"),
    _money("valor_servicos"),
    _money("valor_caucao"),
    _money("valor_total"),
    Column("status", String(32), nullable=False, default="rascunho"),
    Column("observacoes", Text),
    *_timestamps(),
)

tickets = Table(
    "tickets",
    metadata,
    _pk(),
    Column("contrato_id", Integer, ForeignKey("contratos.id"), nullable=False),
    Column("tipo_ingresso", String(128), nullable=False),
    _money("preco"),
    Column("quantidade_disponivel", Integer, nullable=False),
    Column("quantidade_vendida", Integer, nullable=False, default=0),
    Column("descricao", Text),
    Column("ativo", Boolean, nullable=False, default=True),
    *_timestamps(),
    CheckConstraint("quantidade_vendida >= 0", name="ck_tickets_vendida_non_negative"),
    CheckConstraint("quantidade_vendida <= quantidade_disponivel", name="ck_tickets_vendida_capacity"),
)

bilheteria = Table(
    "bilheteria",
    metadata,
    _pk(),
    Column("ticket_id", Integer, ForeignKey("tickets.id"), nullable=False),
    Column("quantidade", Integer, nullable=False),
    _money("valor_unitario"),
    _money("valor_total"),
    Column("forma_pagamento", String(32), nullable=False),
    Column("nome_comprador", String(255)),
    Column("email_comprador", String(255)),
    Column("telefone_comprador", String(64)),
    Column("data_venda", Date, nullable=False),
    Column("status", String(32), nullable=False, default="confirmado"),
    Column("observacoes", Text),
    *_timestamps(),
)

canais_venda = Table(
    "canais_venda",
    metadata,
    _pk(),
    Column("nome", String(255), nullable=False),
    Column("tipo", String(32), nullable=False),
    Column("responsavel", String(255)),
    Column("contato", String(255)),
    _money("taxa_servico", nullable=True),
    Column("ativo", Boolean, nullable=False, default=True),
    Column("observacoes", Text),
    *_timestamps(),
)

vendas_ingressos = Table(
    "vendas_ingressos",
    metadata,
    _pk(),
    Column("projeto_id", Integer, ForeignKey("projetos.id")),
    Column("canal_venda_id", Integer, ForeignKey("canais_venda.id")),
    Column("quantidade", Integer, nullable=False, default=1),
    _money("valor_total"),
    _money("valor_liquido"),
    Column("data_venda", Date, nullable=False),
    Column("status", String(32), nullable=False, default="confirmado"),
    Column("observacoes", Text),
    *_timestamps(),
)

categorias_financeiras = Table(
    "categorias_financeiras",
    metadata,
    _pk(),
    Column("nome", String(255), nullable=False),
    Column("tipo", String(16), nullable=False),
    Column("descricao", Text),
    Column("cor", String(16), nullable=False, default="#64748b"),
    Column("ativo", Boolean, nullable=False, default=True),
    *_timestamps(),
)

movimentacoes_financeiras = Table(
    "movimentacoes_financeiras",
    metadata,
    _pk(),
    Column("tipo", String(16), nullable=False),
    Column("categoria", String(255), nullable=False),
    Column("projeto_id", Integer, ForeignKey("projetos.id")),
    Column("descricao", String(255), nullable=False),
    _money("valor"),
    Column("data_vencimento", Date, nullable=False),
    Column("data_pagamento", Date),
    Column("status", String(16), nullable=False, default="pendente"),
    Column("observacoes", Text),
    *_timestamps(),
)

fechamentos_eventos = Table(
    "fechamentos_eventos",
    metadata,
    _pk(),
    Column("projeto_id", Integer, ForeignKey("projetos.id"), nullable=False),
    Column("data_fechamento", Date, nullable=False),
    _money("total_receitas"),
    _money("total_despesas"),
    _money("resultado"),
    Column("status", String(16), nullable=False, default="pendente"),
    Column("observacoes", Text),
    Column("email_enviado", Boolean, nullable=False, default=False),
    Column("data_validacao", Date),
    *_timestamps(),
)

grupos = Table(
    "grupos",
    metadata,
    _pk(),
    Column("nome", String(128), nullable=False, unique=True),
    Column("descricao", Text),
    Column("ativo", Boolean, nullable=False, default=True),
    *_timestamps(),
)

permissoes = Table(
    "permissoes",
    metadata,
    _pk(),
    Column("nome", String(128), nullable=False, unique=True),
    Column("descricao", Text),
    Column("modulo", String(64), nullable=False),
    Column("acao", String(64), nullable=False),
    *_timestamps(),
)

grupo_permissoes = Table(
    "grupo_permissoes",
    metadata,
    _pk(),
    Column("grupo_id", Integer, ForeignKey("grupos.id"), nullable=False),
    Column("permission_id", Integer, ForeignKey("permissoes.id"), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
    UniqueConstraint("grupo_id", "permission_id", name="uq_grupo_permissao"),
)

usuarios = Table(
    "usuarios",
    metadata,
    Column("id", String(36), primary_key=True, default=lambda: str(uuid.uuid4())),
    Column("email", String(255), nullable=False, unique=True),
    Column("nome", String(255), nullable=False),
    Column("grupo_id", Integer, ForeignKey("grupos.id")),
    Column("ativo", Boolean, nullable=False, default=True),
    Column("primeiro_login", Boolean, nullable=False, default=True),
    Column("ultimo_login", DateTime(timezone=True)),
    *_timestamps(),
)

usuario_permissoes = Table(
    "usuario_permissoes",
    metadata,
    _pk(),
    Column("user_id", String(36), ForeignKey("usuarios.id"), nullable=False),
    Column("permission_id", Integer, ForeignKey("permissoes.id"), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
    UniqueConstraint("user_id", "permission_id", name="uq_usuario_permissao"),
)

auth_users = Table(
    "auth_users",
    metadata,
    Column("id", String(36), primary_key=True, default=lambda: str(uuid.uuid4())),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    *_timestamps(),
)


def create_schema(engine: Engine) -> None:
    metadata.create_all(engine)
