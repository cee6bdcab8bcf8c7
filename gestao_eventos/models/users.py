from __future__ import annotations

from datetime import datetime

from .base import NamedRef, Record


class Permissao(Record):
    nome: str
    descricao: str | None = None
    modulo: str
    acao: str


class GrupoPermissao(Record):
    grupo_id: int
    permission_id: int
    permissao: Permissao | None = None


class UsuarioPermissao(Record):
    user_id: str
    permission_id: int
    permissao: Permissao | None = None


class Grupo(Record):
    nome: str
    descricao: str | None = None
    ativo: bool = True
    permissoes: list[GrupoPermissao] = []

    @property
    def permission_ids(self) -> set[int]:
        return {link.permission_id for link in self.permissoes}


class Usuario(Record):
    email: str
    nome: str
    grupo_id: int | None = None
    ativo: bool = True
    primeiro_login: bool = True
    ultimo_login: datetime | None = None
    grupo: NamedRef | None = None
